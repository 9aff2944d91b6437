#!/usr/bin/env python3
# ascii_video/cache.py
"""
Disk cache for remote media with robust HTTP retry handling.

Features:
- SHA1-named cache files, keeping the URL's file extension so decoders can
  pick the right adapter.
- Thread-safe writes through a temp file and rename.
- Automatic retry using urllib3 Retry.
- Size-based pruning of least recently modified files.
"""

from __future__ import annotations
import hashlib, logging, os, threading
from pathlib import Path
from typing import List, Optional, Tuple
from urllib.parse import urlparse

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ascii_video.errors import UnsupportedSource

log = logging.getLogger(__name__)

# -------------------------
# Internal helpers
# -------------------------

def _cache_name(url: str) -> str:
    """Deterministic file name for a URL, preserving its extension."""
    h = hashlib.sha1(url.encode("utf-8")).hexdigest()[:16]
    suffix = Path(urlparse(url).path).suffix.lower()
    if len(suffix) > 6:
        suffix = ""
    return h + suffix


# -------------------------
# MediaCache
# -------------------------

class MediaCache:
    """
    Persistent media cache with HTTP fetch.
    Thread-safe. Safe for multi-reader use.
    """

    def __init__(
        self,
        cache_dir: Path,
        user_agent: str,
        connect_timeout: float = 5.0,
        read_timeout: float = 30.0,
        retries: int = 3,
        session: Optional[requests.Session] = None,
    ):
        self.root_dir = Path(cache_dir)
        self.root_dir.mkdir(parents=True, exist_ok=True)
        self.timeout: Tuple[float, float] = (connect_timeout, read_timeout)

        if session is None:
            session = requests.Session()
            retry = Retry(
                total=retries,
                connect=retries,
                read=retries,
                backoff_factor=0.3,
                status_forcelist=(429, 500, 502, 503, 504),
                allowed_methods=False,
            )
            adapter = HTTPAdapter(max_retries=retry)
            session.mount("http://", adapter)
            session.mount("https://", adapter)
        session.headers["User-Agent"] = user_agent
        self.session = session

        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, cfg) -> "MediaCache":
        n = cfg["network"]
        return cls(
            Path(cfg.cache_dir),
            n["user_agent"],
            connect_timeout=n["connect_timeout_s"],
            read_timeout=n["read_timeout_s"],
            retries=n["retries"],
        )

    def path_for(self, url: str) -> Path:
        return self.root_dir / _cache_name(url)

    # -------------
    # Fetch logic
    # -------------

    def fetch(self, url: str) -> Path:
        """
        Return a local path holding the media at `url`, downloading it once.
        Raises UnsupportedSource when the download fails.
        """
        p = self.path_for(url)
        if p.exists() and p.stat().st_size > 0:
            os.utime(p)
            return p

        log.info("Downloading %s", url)
        tmp = p.with_name(p.name + ".part")
        try:
            with self.session.get(url, timeout=self.timeout, stream=True) as r:
                if r.status_code != 200:
                    raise UnsupportedSource(f"GET {url} returned HTTP {r.status_code}")
                with self._lock:
                    with open(tmp, "wb") as f:
                        for chunk in r.iter_content(chunk_size=256 * 1024):
                            if chunk:
                                f.write(chunk)
                    if tmp.stat().st_size == 0:
                        raise UnsupportedSource(f"GET {url} returned an empty body")
                    os.replace(tmp, p)
        except requests.RequestException as e:
            raise UnsupportedSource(f"cannot download {url}: {e}") from e
        finally:
            if tmp.exists():
                try:
                    tmp.unlink()
                except OSError:
                    pass
        return p

    # ----------------------
    # Prune logic
    # ----------------------

    def prune(self, max_bytes: int, watermark: float = 0.85) -> int:
        """
        Delete oldest files if cache exceeds max_bytes. Returns bytes freed.
        """
        total = 0
        files: List[Path] = []
        for p in self.root_dir.iterdir():
            if p.is_file() and not p.name.endswith(".part"):
                total += p.stat().st_size
                files.append(p)
        if total <= max_bytes:
            return 0
        files.sort(key=lambda p: p.stat().st_mtime)
        target = int(max_bytes * watermark)
        freed = 0
        for f in files:
            if total <= target:
                break
            try:
                s = f.stat().st_size
                f.unlink()
            except OSError as e:
                log.warning("Could not prune %s: %s", f, e)
                continue
            total -= s
            freed += s
        log.debug("Pruned %d bytes from %s", freed, self.root_dir)
        return freed
