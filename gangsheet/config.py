"""
Gang Sheet Settings

Settings dataclasses for export, editing and upload, plus the catalog of
printable sheet sizes.
"""

import os
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .core.document import Sheet


# Sheet-space reference grid used while editing
REFERENCE_PPI = 96

# Resolution of the exported raster
TARGET_DPI = 300


def inches(value: float) -> float:
    """Convert inches to sheet-space units."""
    return value * REFERENCE_PPI


SHEET_SIZES: List[Sheet] = [
    Sheet(width=inches(22), height=inches(12), label="22 x 12 in"),
    Sheet(width=inches(22), height=inches(24), label="22 x 24 in"),
    Sheet(width=inches(22), height=inches(36), label="22 x 36 in"),
    Sheet(width=inches(22), height=inches(48), label="22 x 48 in"),
    Sheet(width=inches(22), height=inches(60), label="22 x 60 in"),
]

DEFAULT_SHEET = SHEET_SIZES[0]


def get_sheet_by_label(label: str) -> Optional[Sheet]:
    """Find a catalog sheet by its label."""
    for sheet in SHEET_SIZES:
        if sheet.label == label:
            return sheet
    return None


@dataclass
class ExportSettings:
    """Settings for the high resolution compositor."""
    reference_ppi: float = REFERENCE_PPI
    target_dpi: float = TARGET_DPI
    asset_timeout: float = 30.0                 # seconds, per asset
    max_asset_bytes: int = 100 * 1024 * 1024    # per asset download
    max_workers: int = 8                        # concurrent asset loads
    user_agent: str = "gangsheet-export/0.1"

    @property
    def scale_factor(self) -> float:
        """Sheet units to output pixels."""
        return self.target_dpi / self.reference_ppi

    @classmethod
    def from_env(cls, environ=None) -> 'ExportSettings':
        """
        Build settings with GANGSHEET_* environment overrides.

        Recognised variables: GANGSHEET_ASSET_TIMEOUT,
        GANGSHEET_MAX_ASSET_BYTES, GANGSHEET_MAX_WORKERS.
        """
        env = os.environ if environ is None else environ
        settings = cls()
        if env.get('GANGSHEET_ASSET_TIMEOUT'):
            settings.asset_timeout = float(env['GANGSHEET_ASSET_TIMEOUT'])
        if env.get('GANGSHEET_MAX_ASSET_BYTES'):
            settings.max_asset_bytes = int(env['GANGSHEET_MAX_ASSET_BYTES'])
        if env.get('GANGSHEET_MAX_WORKERS'):
            settings.max_workers = max(1, int(env['GANGSHEET_MAX_WORKERS']))
        return settings


@dataclass
class EditorSettings:
    """Settings for interactive editing."""
    reference_ppi: float = REFERENCE_PPI

    # Minimum real-world gap between printed pieces
    overlap_buffer_inches: float = 0.25

    # Placement of newly added assets
    max_place_inches: float = 10.0
    placement_origin: float = 50.0
    placement_step: float = 20.0
    placement_cycle: int = 10
    duplicate_offset: float = 30.0

    # Transform handles
    min_transform_size: float = 5.0   # sheet units
    keep_ratio: bool = True           # corner handles keep aspect ratio
    rotation_snaps: Tuple[float, ...] = (0.0, 90.0, 180.0, 270.0)
    rotation_snap_tolerance: float = 5.0  # degrees, 0 disables snapping

    # None keeps every history entry
    max_history: Optional[int] = None

    @property
    def overlap_buffer(self) -> float:
        """Overlap buffer in sheet units."""
        return self.overlap_buffer_inches * self.reference_ppi


@dataclass
class UploadSettings:
    """Settings for asset upload and proxy generation."""
    proxy_max_size: Tuple[int, int] = (1000, 1000)
    high_res_prefix: str = "hq-"
    proxy_prefix: str = "thumb-"
    allowed_formats: List[str] = field(
        default_factory=lambda: ["PNG", "JPEG", "WEBP", "GIF", "TIFF", "BMP"]
    )
