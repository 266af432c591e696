"""
Asset Loader for Gang Sheet Export

Fetches and decodes print assets. Remote assets come over HTTP(S) with
requests; local assets come from plain paths or file:// URLs. Loading many
assets is a concurrent fan-out followed by a strict join: every attempt
finishes, successfully or not, before results are returned.
"""

import io
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence
from urllib.parse import unquote, urlparse

import requests
from PIL import Image, UnidentifiedImageError

from ..config import ExportSettings
from ..core.shapes import ImageObject

logger = logging.getLogger(__name__)


class AssetLoadError(Exception):
    """Raised when a single asset cannot be fetched or decoded."""

    def __init__(self, src: str, reason: str):
        super().__init__(f"Failed to load {src}: {reason}")
        self.src = src
        self.reason = reason


@dataclass
class LoadResult:
    """Outcome of loading the asset of one object."""
    obj: ImageObject
    src: str
    image: Optional[Image.Image] = None
    error: Optional[str] = None
    used_proxy: bool = False
    elapsed: float = 0.0

    @property
    def success(self) -> bool:
        return self.image is not None


class AssetLoader:
    """
    Fetch and decode print assets.

    Each asset has its own timeout and size limit so one slow or huge remote
    file only fails itself.
    """

    CHUNK_SIZE = 64 * 1024

    def __init__(self, settings: Optional[ExportSettings] = None,
                 session: Optional[requests.Session] = None):
        self.settings = settings or ExportSettings()
        self.session = session

    def fetch(self, src: str) -> bytes:
        """
        Fetch raw asset bytes.

        Raises:
            AssetLoadError: on any transport, timeout, size or missing-file error
        """
        if not src:
            raise AssetLoadError(src, "no image source")

        parsed = urlparse(src)
        if parsed.scheme in ('http', 'https'):
            return self._fetch_http(src)
        if parsed.scheme == 'file':
            return self._read_file(Path(unquote(parsed.path)), src)
        if parsed.scheme and len(parsed.scheme) > 1:
            raise AssetLoadError(src, f"unsupported scheme '{parsed.scheme}'")
        # Plain path (a one-letter scheme is a Windows drive)
        return self._read_file(Path(src), src)

    def _fetch_http(self, src: str) -> bytes:
        timeout = self.settings.asset_timeout
        limit = self.settings.max_asset_bytes
        deadline = time.monotonic() + timeout
        getter = self.session.get if self.session is not None else requests.get
        try:
            response = getter(
                src,
                stream=True,
                timeout=timeout,
                headers={'User-Agent': self.settings.user_agent},
            )
            try:
                response.raise_for_status()
                declared = response.headers.get('Content-Length')
                if declared and declared.isdigit() and int(declared) > limit:
                    raise AssetLoadError(src, f"asset larger than {limit} bytes")

                buffer = io.BytesIO()
                for chunk in response.iter_content(chunk_size=self.CHUNK_SIZE):
                    buffer.write(chunk)
                    if buffer.tell() > limit:
                        raise AssetLoadError(src, f"asset larger than {limit} bytes")
                    if time.monotonic() > deadline:
                        raise AssetLoadError(src, f"timed out after {timeout}s")
                return buffer.getvalue()
            finally:
                response.close()
        except requests.Timeout as e:
            raise AssetLoadError(src, f"timed out after {timeout}s") from e
        except requests.RequestException as e:
            raise AssetLoadError(src, str(e)) from e

    def _read_file(self, path: Path, src: str) -> bytes:
        try:
            size = path.stat().st_size
            if size > self.settings.max_asset_bytes:
                raise AssetLoadError(src, f"asset larger than {self.settings.max_asset_bytes} bytes")
            return path.read_bytes()
        except OSError as e:
            raise AssetLoadError(src, e.strerror or str(e)) from e

    def decode(self, data: bytes, src: str = "") -> Image.Image:
        """
        Decode image bytes to an RGBA image.

        Raises:
            AssetLoadError: if the bytes are empty or not a readable image
        """
        if not data:
            raise AssetLoadError(src, "empty image data")
        try:
            img = Image.open(io.BytesIO(data))
            img.load()
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
            raise AssetLoadError(src, f"cannot decode image: {e}") from e
        if img.mode != 'RGBA':
            img = img.convert('RGBA')
        return img

    def load(self, src: str) -> Image.Image:
        """Fetch and decode one asset."""
        return self.decode(self.fetch(src), src)

    def load_object(self, obj: ImageObject) -> LoadResult:
        """Load the best available asset for an object, never raising."""
        src = obj.best_src
        result = LoadResult(obj=obj, src=src, used_proxy=obj.uses_proxy)
        start = time.monotonic()
        try:
            logger.debug(f"Loading image: {src}")
            result.image = self.load(src)
            logger.debug(f"Loaded image: {src} ({result.image.width}x{result.image.height})")
        except AssetLoadError as e:
            result.error = e.reason
            logger.warning(f"Object {obj.id}: {e}")
        result.elapsed = time.monotonic() - start
        return result

    def load_many(self, objects: Sequence[ImageObject]) -> List[LoadResult]:
        """
        Load every object's asset concurrently.

        Blocks until all attempts have finished. Results keep input order.
        """
        if not objects:
            return []
        workers = max(1, min(self.settings.max_workers, len(objects)))
        with ThreadPoolExecutor(max_workers=workers,
                                thread_name_prefix="asset-loader") as executor:
            return list(executor.map(self.load_object, objects))
