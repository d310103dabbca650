"""
Environment-driven database configuration helpers.
"""

from __future__ import annotations

import os
from pathlib import Path
from urllib.parse import quote_plus


def load_env_files() -> None:
    """
    Load KEY=VALUE pairs from `.env` and `.env.local` at the project root.
    Variables already present in the process environment are kept.
    """

    project_root = Path(__file__).resolve().parents[1]
    for filename in (".env", ".env.local"):
        env_path = project_root / filename
        if not env_path.exists():
            continue

        for raw_line in env_path.read_text(encoding="utf-8").splitlines():
            line = raw_line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue

            key, value = line.split("=", 1)
            key = key.strip()
            value = value.strip().strip('"').strip("'")
            if key and key not in os.environ:
                os.environ[key] = value


def normalize_postgres_url(url: str) -> str:
    """
    Rewrite postgres URLs to SQLAlchemy's psycopg (v3) driver form.
    """

    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+psycopg://", 1)
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+psycopg://", 1)
    return url


def _url_from_parts() -> str | None:
    """
    Assemble a URL from the DB_MON_* variables used by the monitoring database.
    """

    host = os.getenv("DB_MON_HOST", "").strip()
    database = os.getenv("DB_MON_DATABASE", "").strip()
    if not host or not database:
        return None

    user = quote_plus(os.getenv("DB_MON_USER", "").strip())
    password = quote_plus(os.getenv("DB_MON_PASSWORD", ""))
    port = os.getenv("DB_MON_PORT", "5432").strip() or "5432"
    credentials = f"{user}:{password}@" if user else ""
    return f"postgresql+psycopg://{credentials}{host}:{port}/{database}"


def resolve_database_url() -> str:
    """
    Resolve the monitoring database URL.

    Priority:
    1) DATABASE_URL
    2) CLOUD_DATABASE_URL when ENVIRONMENT is cloud-like
    3) LOCAL_DATABASE_URL
    4) DB_MON_USER / DB_MON_PASSWORD / DB_MON_HOST / DB_MON_PORT / DB_MON_DATABASE
    """

    load_env_files()

    direct_url = os.getenv("DATABASE_URL")
    if direct_url:
        return normalize_postgres_url(direct_url)

    environment = os.getenv("ENVIRONMENT", "local").strip().lower()
    cloud_like_envs = {"prod", "production", "staging", "cloud"}

    cloud_url = os.getenv("CLOUD_DATABASE_URL")
    if environment in cloud_like_envs and cloud_url:
        return normalize_postgres_url(cloud_url)

    local_url = os.getenv("LOCAL_DATABASE_URL")
    if local_url:
        return normalize_postgres_url(local_url)

    assembled = _url_from_parts()
    if assembled:
        return assembled

    raise RuntimeError(
        "No database URL configured. Set DATABASE_URL, LOCAL_DATABASE_URL / "
        "CLOUD_DATABASE_URL, or the DB_MON_HOST / DB_MON_DATABASE pair."
    )
