"""
High Resolution Compositor

Re-renders a design at print resolution. Given a sheet and its objects the
compositor loads every asset concurrently, paints the ones that loaded onto a
single transparent raster back to front, and encodes a PNG tagged with the
print resolution.

Failure handling:
- Bad input is rejected before any asset is fetched
- A failed asset skips its object; the rest still render
- If no asset loads, or the raster cannot be encoded, the export fails
"""

import io
import logging
import math
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

from PIL import Image

from ..config import ExportSettings
from ..core.document import Sheet
from ..core.shapes import (
    DesignObject, DesignObjectError, ImageObject, Rect, is_finite, paint_order
)
from ..io.project_io import ProjectFormatError, dict_to_object
from .loader import AssetLoader, LoadResult

logger = logging.getLogger(__name__)


class CompositorError(Exception):
    """Base class for export failures."""


class ExportValidationError(CompositorError):
    """The export request is missing data or has nothing to render."""


class NoAssetsLoadedError(CompositorError):
    """Every asset failed to load; no raster is produced."""

    def __init__(self, message: str, failures: Sequence[Tuple[str, str]] = ()):
        super().__init__(message)
        self.failures = list(failures)


class RenderFinalizeError(CompositorError):
    """The raster surface could not be created or encoded."""


@dataclass(frozen=True)
class ExportRequest:
    """Everything the compositor needs: the sheet and the ordered objects."""
    sheet: Optional[Sheet]
    objects: Tuple[DesignObject, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, 'objects', tuple(self.objects or ()))


@dataclass
class ExportResult:
    """A finished export with its metrics."""
    png_bytes: bytes
    width: int
    height: int
    dpi: float
    succeeded: int
    skipped: int
    total: int
    elapsed_seconds: float
    warnings: List[str] = field(default_factory=list)
    failures: List[Tuple[str, str]] = field(default_factory=list)
    created_at: datetime = field(default_factory=datetime.now)

    content_type = "image/png"

    @property
    def filename(self) -> str:
        """Download name for the export."""
        return f"gang-sheet-HQ-{int(self.created_at.timestamp() * 1000)}.png"

    @property
    def partial(self) -> bool:
        return self.skipped > 0


def parse_export_request(payload: Any) -> ExportRequest:
    """
    Build an ExportRequest from the wire format.

    Accepts ``{"size": {"width": w, "height": h}, "objects": [...]}``
    (``"sheet"`` is accepted in place of ``"size"``). Objects of kinds this
    version does not know are dropped.

    Raises:
        ExportValidationError: for missing or malformed input
    """
    if not isinstance(payload, dict):
        raise ExportValidationError("Export request must be an object")

    size = payload.get('size') or payload.get('sheet')
    objects = payload.get('objects')
    if not size or objects is None:
        raise ExportValidationError("Missing size or objects data")
    if not isinstance(objects, list) or not objects:
        raise ExportValidationError("No objects to export")

    try:
        sheet = Sheet(width=float(size['width']), height=float(size['height']),
                      label=str(size.get('label', '')))
    except (KeyError, TypeError, ValueError, AttributeError, OverflowError) as e:
        raise ExportValidationError(f"Invalid sheet size: {e}") from e

    parsed = []
    for index, item in enumerate(objects):
        if not isinstance(item, dict):
            raise ExportValidationError(f"Object {index} is not an object")
        if item.get('type') != 'image':
            logger.debug(f"Skipping object {item.get('id')} of type {item.get('type')!r}")
            continue
        try:
            parsed.append(dict_to_object(item))
        except (ProjectFormatError, DesignObjectError) as e:
            raise ExportValidationError(f"Object {index}: {e}") from e

    if not parsed:
        raise ExportValidationError("No image objects to export")
    return ExportRequest(sheet=sheet, objects=tuple(parsed))


def destination_rect(obj: DesignObject, scale: float) -> Rect:
    """
    Pixel rectangle an object occupies on the output raster, before rotation.

    Sized by absolute scale, so mirrored objects keep their size.
    """
    return Rect(
        x=obj.x * scale,
        y=obj.y * scale,
        width=obj.width * scale * abs(obj.scale_x),
        height=obj.height * scale * abs(obj.scale_y),
    )


def _composite_clipped(canvas: Image.Image, layer: Image.Image,
                       left: int, top: int) -> bool:
    """
    Alpha composite ``layer`` at (left, top), clipping at the canvas edges.

    Returns:
        False if the layer lies entirely outside the canvas
    """
    dest_left = max(0, left)
    dest_top = max(0, top)
    right = min(canvas.width, left + layer.width)
    bottom = min(canvas.height, top + layer.height)
    if right <= dest_left or bottom <= dest_top:
        return False

    src_left = dest_left - left
    src_top = dest_top - top
    source = (src_left, src_top,
              src_left + (right - dest_left), src_top + (bottom - dest_top))
    canvas.alpha_composite(layer, dest=(dest_left, dest_top), source=source)
    return True


class Compositor:
    """
    Stateless export engine.

    One Compositor can serve many exports concurrently; nothing is shared
    between calls except the loader's HTTP client.
    """

    def __init__(self, settings: Optional[ExportSettings] = None,
                 loader: Optional[AssetLoader] = None):
        self.settings = settings or ExportSettings()
        self.loader = loader or AssetLoader(self.settings)

    @property
    def scale_factor(self) -> float:
        return self.settings.scale_factor

    def canvas_size(self, sheet: Sheet) -> Tuple[int, int]:
        """Raster size in pixels for a sheet."""
        scale = self.scale_factor
        return math.ceil(sheet.width * scale), math.ceil(sheet.height * scale)

    def validate(self, request: ExportRequest) -> List[ImageObject]:
        """
        Check a request and return its image objects in paint order.

        Raises:
            ExportValidationError: if the sheet or objects are missing, there
                is no image object to render, or a size does not fit a raster
        """
        if request is None or request.sheet is None:
            raise ExportValidationError("Missing size or objects data")
        if not request.objects:
            raise ExportValidationError("No objects to export")
        images = [obj for obj in paint_order(request.objects)
                  if isinstance(obj, ImageObject)]
        if not images:
            raise ExportValidationError("No image objects to export")

        try:
            self.canvas_size(request.sheet)
        except (OverflowError, ValueError) as e:
            raise ExportValidationError(f"Invalid sheet size: {e}") from e
        scale = self.scale_factor
        for obj in images:
            rect = destination_rect(obj, scale)
            if not all(is_finite(v) for v in (rect.x, rect.y, rect.width, rect.height)):
                raise ExportValidationError(f"Object {obj.id} has a non-finite size or position")
        return images

    def export(self, request: ExportRequest) -> ExportResult:
        """
        Render a request to PNG bytes.

        Raises:
            ExportValidationError: bad input, nothing fetched
            NoAssetsLoadedError: every asset failed
            RenderFinalizeError: the raster could not be created or encoded
        """
        images = self.validate(request)
        start = time.monotonic()
        width, height = self.canvas_size(request.sheet)
        logger.info(f"Starting export: {len(images)} image(s) on {width}x{height} px")

        warnings = []
        for obj in images:
            if obj.uses_proxy:
                warnings.append(
                    f"Object {obj.id} has no high resolution source; using proxy asset"
                )
                logger.warning(warnings[-1])

        # Fan out, then join: painting starts only after every load finished
        results = self.loader.load_many(images)
        loaded = [r for r in results if r.success]
        failures = [(r.obj.id, r.error or "unknown error") for r in results if not r.success]

        if not loaded:
            logger.error(f"Export failed: none of {len(images)} image(s) loaded")
            raise NoAssetsLoadedError(
                "Failed to load any images. Please ensure images are uploaded "
                "and accessible.",
                failures,
            )
        if failures:
            warnings.append(f"Only {len(loaded)}/{len(images)} images loaded successfully")
            logger.warning(warnings[-1])

        canvas = self._create_canvas(width, height)
        for result in loaded:
            self._paint(canvas, result)

        png_bytes = self._finalize(canvas)
        elapsed = time.monotonic() - start
        logger.info(
            f"Export finished in {elapsed:.2f}s "
            f"({len(loaded)} images, {len(png_bytes) / 1024:.2f}KB)"
        )

        return ExportResult(
            png_bytes=png_bytes,
            width=width,
            height=height,
            dpi=self.settings.target_dpi,
            succeeded=len(loaded),
            skipped=len(failures),
            total=len(images),
            elapsed_seconds=elapsed,
            warnings=warnings,
            failures=failures,
        )

    def _create_canvas(self, width: int, height: int) -> Image.Image:
        try:
            return Image.new('RGBA', (width, height), (0, 0, 0, 0))
        except (MemoryError, OverflowError, ValueError) as e:
            raise RenderFinalizeError(f"Cannot allocate {width}x{height} canvas") from e

    def _paint(self, canvas: Image.Image, result: LoadResult) -> None:
        """
        Draw one loaded object.

        The image is scaled to its destination rectangle, rotated about the
        rectangle's center (clockwise for positive angles, as on screen) and
        composited centered on that point.
        """
        obj = result.obj
        rect = destination_rect(obj, self.scale_factor)
        size = (max(1, round(rect.width)), max(1, round(rect.height)))

        layer = result.image
        if layer.size != size:
            layer = layer.resize(size, Image.Resampling.LANCZOS)
        if obj.rotation % 360:
            layer = layer.rotate(-obj.rotation, resample=Image.Resampling.BICUBIC,
                                 expand=True)

        center = rect.center
        left = round(center.x - layer.width / 2)
        top = round(center.y - layer.height / 2)
        if not _composite_clipped(canvas, layer, left, top):
            logger.debug(f"Object {obj.id} lies outside the sheet")

    def _finalize(self, canvas: Image.Image) -> bytes:
        """Encode the canvas as PNG with the print resolution tag."""
        dpi = self.settings.target_dpi
        buffer = io.BytesIO()
        try:
            canvas.save(buffer, format='PNG', dpi=(dpi, dpi))
        except (OSError, ValueError) as e:
            logger.error(f"Failed to encode canvas: {e}")
            raise RenderFinalizeError(f"Failed to convert canvas to buffer: {e}") from e

        data = buffer.getvalue()
        if not data:
            raise RenderFinalizeError("Canvas buffer is empty")
        return data


def export_payload(payload: Dict[str, Any],
                   settings: Optional[ExportSettings] = None) -> ExportResult:
    """Parse a wire-format request and export it."""
    return Compositor(settings).export(parse_export_request(payload))
