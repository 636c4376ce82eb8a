"""
Notion REST API access: database queries and block children, both paginated.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests

from config.settings import Settings, get_settings, require_token


DEFAULT_SORTS: List[Dict[str, str]] = [
    {"property": "Category", "direction": "ascending"},
    {"property": "Date", "direction": "descending"},
]


class NotionAPIError(RuntimeError):
    """Raised for any non-success status or unparseable body from Notion."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class NotionClient:
    """Thin wrapper around the two Notion endpoints the CV build needs."""

    def __init__(self, settings: Optional[Settings] = None, session=None):
        self.settings = settings or get_settings()
        self.token = require_token(self.settings)
        self.session = session or requests.Session()
        self.api_calls_made = 0

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.token}",
            "Content-Type": "application/json",
            "Notion-Version": self.settings.notion_version,
        }

    def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        url = f"{self.settings.notion_api_url}{path}"
        logging.debug(f"Notion API call {self.api_calls_made + 1}: {method} {path}")
        response = self.session.request(
            method,
            url,
            headers=self._headers(),
            timeout=self.settings.http_timeout_seconds,
            **kwargs,
        )
        self.api_calls_made += 1

        try:
            data = response.json()
        except ValueError as e:
            if response.status_code != 200:
                raise NotionAPIError(f"HTTP {response.status_code}: {response.text}", response.status_code) from e
            raise NotionAPIError(f"Failed to parse response: {e}") from e

        if response.status_code != 200:
            message = data.get("message") if isinstance(data, dict) else None
            raise NotionAPIError(f"HTTP {response.status_code}: {message or response.text}", response.status_code)
        if not isinstance(data, dict):
            raise NotionAPIError("Failed to parse response: expected a JSON object")
        return data

    def _paginate(self, method: str, path: str, body: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """Follow ``next_cursor`` until Notion reports ``has_more`` false."""
        all_results: List[Dict[str, Any]] = []
        cursor: Optional[str] = None
        page_number = 0

        while True:
            page_number += 1
            if method == "POST":
                payload = dict(body or {})
                payload["page_size"] = self.settings.notion_page_size
                if cursor:
                    payload["start_cursor"] = cursor
                data = self._request("POST", path, json=payload)
            else:
                params: Dict[str, Any] = {"page_size": self.settings.notion_page_size}
                if cursor:
                    params["start_cursor"] = cursor
                data = self._request("GET", path, params=params)

            results = data.get("results") or []
            all_results.extend(results)
            logging.debug(f"{path}: page {page_number} returned {len(results)} results")

            cursor = data.get("next_cursor")
            if not data.get("has_more") or not cursor:
                break

        return all_results

    def query_database(self, database_id: Optional[str] = None, sorts: Optional[List[Dict[str, str]]] = None) -> List[Dict[str, Any]]:
        """Return every page of the database in server sort order."""
        database_id = database_id or self.settings.notion_database_id
        body = {"sorts": sorts if sorts is not None else DEFAULT_SORTS}
        pages = self._paginate("POST", f"/databases/{database_id}/query", body)
        logging.info(f"Fetched {len(pages)} pages from database {database_id}")
        return pages

    def list_block_children(self, block_id: str) -> List[Dict[str, Any]]:
        return self._paginate("GET", f"/blocks/{block_id}/children")

    def download(self, url: str) -> bytes:
        """Fetch a raw file (no Notion auth headers; file URLs are pre-signed)."""
        response = self.session.get(url, timeout=self.settings.http_timeout_seconds)
        self.api_calls_made += 1
        response.raise_for_status()
        return response.content

    def get_api_usage(self) -> Dict[str, int]:
        return {"api_calls_made": self.api_calls_made}
