"""
Listing parser registry and factory.
"""

from __future__ import annotations

import importlib
from collections.abc import Mapping

from app.price_monitor.parsing import ListingParser, MadeiraMadeiraListingParser


class ParserRegistry:
    """
    Resolves listing parsers by name, with `module.path:ClassName` for external formats.
    """

    def __init__(self, registrations: Mapping[str, type[ListingParser]] | None = None) -> None:
        builtins: dict[str, type[ListingParser]] = {
            MadeiraMadeiraListingParser.name: MadeiraMadeiraListingParser,
        }
        if registrations:
            builtins.update({key.strip().lower(): value for key, value in registrations.items()})
        self._registrations = builtins

    def register(self, *, name: str, parser_class: type[ListingParser]) -> None:
        self._registrations[name.strip().lower()] = parser_class

    @property
    def names(self) -> list[str]:
        return sorted(self._registrations)

    def create_parser(self, name: str) -> ListingParser:
        return self._resolve_parser_class(name)()

    def _resolve_parser_class(self, name: str) -> type[ListingParser]:
        if ":" in name:
            return self._load_dynamic_class(name)

        resolved = self._registrations.get(name.strip().lower())
        if resolved is None:
            allowed = ", ".join(self.names)
            raise ValueError(f"Unknown listing parser '{name}'. Allowed parsers: {allowed}.")
        return resolved

    @staticmethod
    def _load_dynamic_class(path: str) -> type[ListingParser]:
        module_path, class_name = path.split(":", 1)
        module = importlib.import_module(module_path)
        loaded = getattr(module, class_name, None)
        if loaded is None:
            raise ValueError(f"Unable to resolve parser class '{path}'.")
        if not isinstance(loaded, type) or not issubclass(loaded, ListingParser):
            raise ValueError(f"Class '{path}' must inherit from ListingParser.")
        return loaded
