"""
Gang Sheet Document Model

The Design is the root container for all design data: the sheet, the placed
objects and the library of uploaded assets. A Design is never mutated in
place; every edit returns a new Design.
"""

from dataclasses import dataclass, replace
from typing import Dict, Iterable, Optional, Tuple

from .shapes import DesignObject, DesignObjectError, is_finite


@dataclass(frozen=True)
class Sheet:
    """Printable sheet size in sheet units (96 per inch)."""
    width: float
    height: float
    label: str = ""

    def __post_init__(self):
        if not (is_finite(self.width) and is_finite(self.height)):
            raise DesignObjectError(
                f"Sheet size must be finite (got {self.width}x{self.height})"
            )
        if self.width <= 0 or self.height <= 0:
            raise DesignObjectError(
                f"Sheet size must be positive (got {self.width}x{self.height})"
            )


@dataclass(frozen=True)
class UploadedAsset:
    """
    An uploaded image in the asset library.

    ``width`` and ``height`` are the pixel size of the original upload.
    """
    id: str
    proxy_src: str
    width: int
    height: int
    name: str = ""
    high_res_src: Optional[str] = None
    is_uploading: bool = False


@dataclass(frozen=True)
class Design:
    """
    The root document containing all design data.

    ``objects`` is ordered; list order is the default paint order.
    """
    sheet: Sheet
    objects: Tuple[DesignObject, ...] = ()
    asset_library: Tuple[UploadedAsset, ...] = ()
    id: Optional[str] = None

    def __post_init__(self):
        # Accept any iterable from callers but always store tuples
        object.__setattr__(self, 'objects', tuple(self.objects))
        object.__setattr__(self, 'asset_library', tuple(self.asset_library))
        seen = set()
        for obj in self.objects:
            if obj.id in seen:
                raise DesignObjectError(f"Duplicate object id: {obj.id}")
            seen.add(obj.id)

    def with_objects(self, objects: Iterable[DesignObject]) -> 'Design':
        """Return a copy with a new object list."""
        return replace(self, objects=tuple(objects))

    def with_sheet(self, sheet: Sheet) -> 'Design':
        """Return a copy on a different sheet."""
        return replace(self, sheet=sheet)

    def with_asset_library(self, assets: Iterable[UploadedAsset]) -> 'Design':
        """Return a copy with a new asset library."""
        return replace(self, asset_library=tuple(assets))

    def with_id(self, design_id: str) -> 'Design':
        return replace(self, id=design_id)

    def object_index(self) -> Dict[str, DesignObject]:
        """Map of object id to object."""
        return {obj.id: obj for obj in self.objects}

    def get_object(self, object_id: str) -> Optional[DesignObject]:
        """Find an object by its ID."""
        for obj in self.objects:
            if obj.id == object_id:
                return obj
        return None

    def get_asset(self, asset_id: str) -> Optional[UploadedAsset]:
        """Find a library asset by its ID."""
        for asset in self.asset_library:
            if asset.id == asset_id:
                return asset
        return None
