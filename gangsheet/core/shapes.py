"""
Gang Sheet Core Shapes Module

Defines the geometric primitives and the design objects placed on a sheet.
Design objects are immutable; edits produce patched copies so that every
committed history snapshot stays untouched.
"""

from abc import ABC
from dataclasses import dataclass, fields, replace
from enum import Enum
from typing import Iterable, List, Optional
from uuid import uuid4
import math


class DesignObjectError(ValueError):
    """Raised when a design object is constructed or patched with invalid values."""


def is_finite(value) -> bool:
    """True unless the value is NaN, infinite or too large for a float."""
    try:
        return math.isfinite(value)
    except OverflowError:
        return False


@dataclass(frozen=True)
class Point:
    """A 2D point in sheet units."""
    x: float
    y: float

    def __add__(self, other: 'Point') -> 'Point':
        return Point(self.x + other.x, self.y + other.y)

    def __sub__(self, other: 'Point') -> 'Point':
        return Point(self.x - other.x, self.y - other.y)

    def distance_to(self, other: 'Point') -> float:
        """Calculate Euclidean distance to another point."""
        return math.sqrt((self.x - other.x)**2 + (self.y - other.y)**2)

    def rotate(self, angle: float, center: Optional['Point'] = None) -> 'Point':
        """Rotate point around center by angle (radians)."""
        if center is None:
            center = Point(0, 0)
        cos_a = math.cos(angle)
        sin_a = math.sin(angle)
        dx = self.x - center.x
        dy = self.y - center.y
        return Point(
            center.x + dx * cos_a - dy * sin_a,
            center.y + dx * sin_a + dy * cos_a
        )


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle given by its top-left corner and size."""
    x: float
    y: float
    width: float
    height: float

    @classmethod
    def from_points(cls, a: Point, b: Point) -> 'Rect':
        """Rectangle spanned by two opposite corners, in any order."""
        return cls(
            x=min(a.x, b.x),
            y=min(a.y, b.y),
            width=abs(b.x - a.x),
            height=abs(b.y - a.y)
        )

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def center(self) -> Point:
        return Point(self.x + self.width / 2, self.y + self.height / 2)

    def normalized(self) -> 'Rect':
        """Return an equivalent rectangle with non-negative width and height."""
        x, width = (self.x + self.width, -self.width) if self.width < 0 else (self.x, self.width)
        y, height = (self.y + self.height, -self.height) if self.height < 0 else (self.y, self.height)
        return Rect(x, y, width, height)


class ObjectKind(Enum):
    """Kinds of objects that can be placed on a sheet."""
    IMAGE = "image"


def new_object_id() -> str:
    """Generate a short unique object id."""
    return uuid4().hex[:12]


@dataclass(frozen=True)
class DesignObject(ABC):
    """
    Abstract base for everything placed on a sheet.

    Position is the top-left corner of the unrotated box in sheet units.
    Rotation is in degrees about the object's own center. ``width`` and
    ``height`` are the intrinsic source size and never change after creation;
    the displayed size is ``width * |scale_x|`` by ``height * |scale_y|``.
    Negative scales mirror the object.
    """
    id: str
    x: float = 0.0
    y: float = 0.0
    width: float = 1.0
    height: float = 1.0
    rotation: float = 0.0
    scale_x: float = 1.0
    scale_y: float = 1.0
    z_index: Optional[int] = None

    # Fields fixed at creation
    IMMUTABLE_FIELDS = frozenset({'id', 'kind', 'width', 'height'})

    kind = None

    def __post_init__(self):
        if not self.id:
            raise DesignObjectError("Object id must not be empty")
        for name in ('x', 'y', 'width', 'height', 'rotation', 'scale_x', 'scale_y'):
            if not is_finite(getattr(self, name)):
                raise DesignObjectError(f"Object {self.id}: {name} must be finite")
        if self.z_index is not None and not is_finite(self.z_index):
            raise DesignObjectError(f"Object {self.id}: z_index must be finite")
        if self.width <= 0 or self.height <= 0:
            raise DesignObjectError(
                f"Object {self.id}: width and height must be positive "
                f"(got {self.width}x{self.height})"
            )
        if self.scale_x == 0 or self.scale_y == 0:
            raise DesignObjectError(f"Object {self.id}: scale must be nonzero")

    @property
    def display_width(self) -> float:
        """Width on the sheet, ignoring mirroring."""
        return self.width * abs(self.scale_x)

    @property
    def display_height(self) -> float:
        """Height on the sheet, ignoring mirroring."""
        return self.height * abs(self.scale_y)

    @property
    def center(self) -> Point:
        return Point(self.x + self.display_width / 2, self.y + self.display_height / 2)

    @property
    def position(self) -> Point:
        return Point(self.x, self.y)

    def with_patch(self, **changes) -> 'DesignObject':
        """
        Return a modified copy, leaving this object untouched.

        Raises:
            DesignObjectError: if a creation-time field is patched or the
                result violates the size/scale invariants.
        """
        locked = self.IMMUTABLE_FIELDS.intersection(changes)
        if locked:
            raise DesignObjectError(
                f"Cannot patch immutable field(s): {', '.join(sorted(locked))}"
            )
        unknown = set(changes) - {f.name for f in fields(self)}
        if unknown:
            raise DesignObjectError(f"Unknown field(s): {', '.join(sorted(unknown))}")
        return replace(self, **changes)

    def transform_equals(self, other: 'DesignObject') -> bool:
        """Check if position, rotation and scale match another object."""
        return (self.x == other.x and self.y == other.y and
                self.rotation == other.rotation and
                self.scale_x == other.scale_x and
                self.scale_y == other.scale_y)


@dataclass(frozen=True)
class ImageObject(DesignObject):
    """
    A bitmap placed on the sheet.

    ``proxy_src`` references a fast-loading, possibly downsampled copy used
    while editing. ``high_res_src`` references the original upload and is
    preferred for export when present.
    """
    proxy_src: str = ""
    high_res_src: Optional[str] = None

    kind = ObjectKind.IMAGE

    @property
    def best_src(self) -> str:
        """The source to use for print output."""
        return self.high_res_src or self.proxy_src

    @property
    def uses_proxy(self) -> bool:
        """True when export has to fall back to the proxy asset."""
        return not self.high_res_src


def paint_order(objects: Iterable[DesignObject]) -> List[DesignObject]:
    """
    Sort objects back to front.

    Objects without a z_index use their list position as the key. Equal keys
    keep list order.
    """
    keyed = []
    for index, obj in enumerate(objects):
        z = obj.z_index if obj.z_index is not None else index
        keyed.append((z, index, obj))
    keyed.sort(key=lambda item: (item[0], item[1]))
    return [obj for _, _, obj in keyed]
