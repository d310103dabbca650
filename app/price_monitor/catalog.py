"""
Catalog helpers: marketplace URLs and target seeding from catalog exports.
"""

from __future__ import annotations

import csv
import io
import logging
import re
import unicodedata
from collections.abc import Iterable

from app.domain.price_monitoring import NewTarget
from app.price_monitor.parsing.base import PRODUCT_ID_REGEX
from app.price_monitor.parsing.prices import parse_brl_price

logger = logging.getLogger(__name__)

PARTNER_URL_TEMPLATE = "https://www.madeiramadeira.com.br/parceiros/{slug}-{product_id}.html"

PRODUCT_ID_HEADER = "id produto"
SKU_HEADER = "sku seller"
NAME_HEADER = "nome"
COST_HEADER = "custo"


def extract_product_id(url: str) -> str | None:
    match = PRODUCT_ID_REGEX.search(url)
    return match.group(1) if match else None


def slugify(name: str) -> str:
    """
    Lowercase ASCII slug: accents stripped, punctuation dropped, spaces to hyphens.
    """

    decomposed = unicodedata.normalize("NFD", str(name).lower())
    ascii_only = "".join(char for char in decomposed if not unicodedata.combining(char))
    cleaned = re.sub(r"[^a-z0-9\s-]", "", ascii_only).strip()
    return re.sub(r"\s+", "-", cleaned)


def build_target_url(name: str | None, product_id: str | int | None) -> str | None:
    if not name or not product_id:
        return None
    slug = slugify(name)
    if not slug:
        return None
    return PARTNER_URL_TEMPLATE.format(slug=slug, product_id=str(product_id).strip())


def read_catalog_csv(content: str) -> list[dict[str, str]]:
    """
    Parse a catalog CSV export into rows keyed by lowercased header.

    Raises ValueError when the "ID Produto", "SKU Seller" or "Nome" headers are missing.
    """

    sample = content[:4096]
    try:
        dialect = csv.Sniffer().sniff(sample, delimiters=",;\t")
    except csv.Error:
        dialect = csv.excel

    reader = csv.DictReader(io.StringIO(content), dialect=dialect)
    headers = {(name or "").strip().lower() for name in reader.fieldnames or []}
    missing = [h for h in (PRODUCT_ID_HEADER, SKU_HEADER, NAME_HEADER) if h not in headers]
    if missing:
        raise ValueError(
            "Catalog export is missing required headers: "
            + ", ".join(f'"{header}"' for header in missing)
        )

    return [
        {(key or "").strip().lower(): (value or "").strip() for key, value in row.items()}
        for row in reader
    ]


def plan_new_targets(
    rows: Iterable[dict[str, str]],
    *,
    known_urls: set[str],
    known_skus: set[str],
) -> list[NewTarget]:
    """
    Turn catalog rows into targets, skipping rows whose SKU or URL is already
    registered or appeared earlier in the same export.
    """

    seen_urls = set(known_urls)
    seen_skus = set(known_skus)
    planned: list[NewTarget] = []

    for row in rows:
        sku = row.get(SKU_HEADER, "")
        name = row.get(NAME_HEADER, "")
        product_id = row.get(PRODUCT_ID_HEADER, "")
        if not sku or sku in seen_skus:
            continue

        url = build_target_url(name, product_id)
        if url is None or url in seen_urls:
            logger.debug("catalog row skipped sku=%s product_id=%s", sku, product_id)
            continue

        planned.append(
            NewTarget(
                url=url,
                description=name,
                sku=sku,
                cost=parse_brl_price(row.get(COST_HEADER)),
            )
        )
        seen_skus.add(sku)
        seen_urls.add(url)

    return planned
