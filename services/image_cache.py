from __future__ import annotations

import hashlib
import logging
from pathlib import Path, PurePosixPath
from typing import Callable
from urllib.parse import urlsplit

import requests


DEFAULT_SUFFIX = ".png"


def stable_url(url: str) -> str:
    """Origin + path of a URL; pre-signed query strings change on every fetch."""
    parts = urlsplit(url)
    return f"{parts.scheme}://{parts.netloc}{parts.path}"


def cache_filename(url: str) -> str:
    digest = hashlib.sha256(stable_url(url).encode("utf-8")).hexdigest()[:16]
    suffix = PurePosixPath(urlsplit(url).path).suffix.lower()
    return f"{digest}{suffix or DEFAULT_SUFFIX}"


class ImageCache:
    """Download-once store for page images, keyed by the stable URL hash.

    ``fetcher`` receives a URL and returns the raw bytes; entries are never evicted.
    """

    def __init__(self, cache_dir: str | Path, fetcher: Callable[[str], bytes]):
        self.cache_dir = Path(cache_dir)
        self.fetcher = fetcher
        self.downloaded = 0
        self.reused = 0

    def path_for(self, url: str) -> Path:
        return self.cache_dir / cache_filename(url)

    def fetch(self, url: str) -> Path:
        """Return the local path for ``url``, downloading it if not cached yet."""
        target = self.path_for(url)
        if target.exists():
            self.reused += 1
            return target
        data = self.fetcher(url)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
        self.downloaded += 1
        logging.info(f"Cached image {stable_url(url)} -> {target}")
        return target

    def resolve(self, url: str) -> str:
        """Local path as a posix string, or the remote URL when the download fails."""
        try:
            return self.fetch(url).as_posix()
        except (requests.RequestException, OSError) as e:
            logging.warning(f"Image download failed, keeping remote URL: {e}", extra={"status": "degraded"})
            return url

