from __future__ import annotations

import os
import re
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv


_TOKEN_PATTERN = re.compile(r"""window\.NOTION_TOKEN\s*=\s*['"`]([^'"`]+)['"`]""")


def _load_env() -> None:
    # Centralized dotenv loading; safe if .env missing
    load_dotenv()


def _read_token_file(path: str) -> str | None:
    """Pull the token out of an untracked ``local.js`` style file."""
    token_file = Path(path)
    if not token_file.is_file():
        return None
    match = _TOKEN_PATTERN.search(token_file.read_text(encoding="utf-8"))
    return match.group(1) if match else None


@dataclass(frozen=True)
class Settings:
    notion_token: str | None
    notion_token_file: str
    notion_database_id: str
    notion_api_url: str
    notion_version: str
    notion_page_size: int

    http_timeout_seconds: int

    # Output
    data_path: str
    image_cache_dir: str
    html_output_path: str

    # Rendering
    semester_category: str
    site_title: str

    log_level: str
    run_env: str

    # Public Notion site used for "open page" links, e.g. https://me.notion.site
    notion_site_url: str | None = None
    notion_view_id: str | None = None


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    _load_env()
    token_file = os.getenv("NOTION_TOKEN_FILE", "local.js")
    token = _read_token_file(token_file) or os.getenv("NOTION_TOKEN")
    return Settings(
        notion_token=token,
        notion_token_file=token_file,
        notion_database_id=os.getenv("NOTION_DATABASE_ID", "14fcf2908c698021aa5ee3656ab26d16"),
        notion_api_url=os.getenv("NOTION_API_URL", "https://api.notion.com/v1").rstrip("/"),
        notion_version=os.getenv("NOTION_VERSION", "2022-06-28"),
        notion_page_size=int(os.getenv("NOTION_PAGE_SIZE", "100")),
        http_timeout_seconds=int(os.getenv("HTTP_TIMEOUT_SECONDS", "30")),
        data_path=os.getenv("DATA_PATH", "notion-data.json"),
        image_cache_dir=os.getenv("IMAGE_CACHE_DIR", "images"),
        html_output_path=os.getenv("HTML_OUTPUT_PATH", "index.html"),
        semester_category=os.getenv("SEMESTER_CATEGORY", "Teaching"),
        site_title=os.getenv("SITE_TITLE", "Curriculum Vitae"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        run_env=os.getenv("RUN_ENV", "local"),
        notion_site_url=os.getenv("NOTION_SITE_URL") or None,
        notion_view_id=os.getenv("NOTION_VIEW_ID") or None,
    )


def require_token(settings: Settings) -> str:
    if not settings.notion_token:
        raise RuntimeError(
            f"NOTION_TOKEN not found. Set it in {settings.notion_token_file} "
            "or as an environment variable."
        )
    return settings.notion_token
