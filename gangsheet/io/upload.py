"""
Asset Uploader for Gang Sheets

Stores an uploaded image twice: the untouched original for print export and
a small proxy for on-screen editing. The proxy fits inside
``UploadSettings.proxy_max_size`` and is never enlarged.
"""

import io
import logging
from pathlib import Path, PurePosixPath
from typing import Optional, Union
from uuid import uuid4

import numpy as np
from PIL import Image, UnidentifiedImageError

from ..config import UploadSettings
from ..core.document import UploadedAsset

logger = logging.getLogger(__name__)

_CONTENT_TYPES = {
    'PNG': 'image/png',
    'JPEG': 'image/jpeg',
    'WEBP': 'image/webp',
    'GIF': 'image/gif',
    'TIFF': 'image/tiff',
    'BMP': 'image/bmp',
}


class UploadError(ValueError):
    """Raised when an upload is not a usable image."""


class LocalObjectStore:
    """
    Object storage on the local filesystem.

    Keys are flat file names under ``root``. URLs are built from
    ``public_url_base`` when given, otherwise they are file:// URLs.
    """

    def __init__(self, root: Union[str, Path], public_url_base: Optional[str] = None):
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)
        self.public_url_base = public_url_base.rstrip('/') if public_url_base else None

    def path_for(self, key: str) -> Path:
        name = PurePosixPath(key).name
        if not name or name != key:
            raise ValueError(f"Invalid object key: {key!r}")
        return self.root / name

    def url_for(self, key: str) -> str:
        if self.public_url_base:
            return f"{self.public_url_base}/{key}"
        return self.path_for(key).resolve().as_uri()

    def put(self, data: bytes, key: str, content_type: str = 'application/octet-stream') -> str:
        """Write an object and return its public URL."""
        path = self.path_for(key)
        path.write_bytes(data)
        logger.debug(f"Stored {key} ({len(data)} bytes, {content_type})")
        return self.url_for(key)


def has_transparency(img: Image.Image) -> bool:
    """True if any pixel of the image is not fully opaque."""
    if img.mode in ('RGBA', 'LA'):
        alpha = np.asarray(img.getchannel('A'), dtype=np.uint8)
        return bool(np.any(alpha < 255))
    if img.mode == 'P' and 'transparency' in img.info:
        alpha = np.asarray(img.convert('RGBA').getchannel('A'), dtype=np.uint8)
        return bool(np.any(alpha < 255))
    return False


class AssetUploader:
    """
    Upload images to an object store as an original plus a proxy.
    """

    def __init__(self, store: LocalObjectStore, settings: Optional[UploadSettings] = None):
        self.store = store
        self.settings = settings or UploadSettings()

    def make_proxy(self, img: Image.Image) -> Image.Image:
        """
        Downsample a copy of ``img`` to fit the proxy box.

        Images already inside the box are returned unchanged in size.
        """
        proxy = img.copy()
        proxy.thumbnail(self.settings.proxy_max_size, Image.Resampling.LANCZOS)
        return proxy

    def upload(self, data: bytes, filename: str) -> UploadedAsset:
        """
        Store an uploaded image.

        Args:
            data: Raw file bytes
            filename: Name the user uploaded the file as

        Returns:
            UploadedAsset with both URLs and the original pixel size

        Raises:
            UploadError: if the data is not an image in an allowed format
        """
        if not data:
            raise UploadError("Uploaded file is empty")
        try:
            img = Image.open(io.BytesIO(data))
            img.load()
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
            raise UploadError(f"{filename} is not a readable image: {e}") from e

        fmt = img.format or ''
        if fmt not in self.settings.allowed_formats:
            raise UploadError(f"Unsupported image format: {fmt or 'unknown'}")

        original_width, original_height = img.size
        if not has_transparency(img):
            logger.warning(f"{filename} has no transparent pixels; it will print as a solid rectangle")

        unique = uuid4().hex
        suffix = Path(filename).suffix.lower() or f".{fmt.lower()}"
        content_type = _CONTENT_TYPES.get(fmt, 'application/octet-stream')

        high_res_src = self.store.put(
            data, f"{self.settings.high_res_prefix}{unique}{suffix}", content_type
        )

        proxy = self.make_proxy(img)
        buffer = io.BytesIO()
        # JPEG has no alpha channel
        if fmt == 'JPEG' and proxy.mode not in ('RGB', 'L'):
            proxy = proxy.convert('RGB')
        proxy.save(buffer, format=fmt)
        proxy_src = self.store.put(
            buffer.getvalue(), f"{self.settings.proxy_prefix}{unique}{suffix}", content_type
        )

        logger.info(
            f"Uploaded {filename}: {original_width}x{original_height}, "
            f"proxy {proxy.width}x{proxy.height}"
        )
        return UploadedAsset(
            id=unique[:12],
            proxy_src=proxy_src,
            width=original_width,
            height=original_height,
            name=filename,
            high_res_src=high_res_src,
        )
