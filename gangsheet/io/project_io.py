"""
Design File I/O for Gang Sheets

Converts designs to and from the JSON document shared with the editor and
the persistence service:

    {"size": {...}, "objects": [...], "uploadedFiles": [...]}

Object and asset keys use the camelCase names of the wire format.
"""

import json
import logging
import math
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Union

from ..config import DEFAULT_SHEET
from ..core.document import Design, Sheet, UploadedAsset
from ..core.shapes import DesignObject, DesignObjectError, ImageObject, ObjectKind

logger = logging.getLogger(__name__)

FORMAT_VERSION = '1.0'


class ProjectFormatError(ValueError):
    """Raised when a design document cannot be parsed."""


def _number(data: Dict[str, Any], key: str, default: Optional[float] = None) -> float:
    value = data.get(key, default)
    if value is None:
        raise ProjectFormatError(f"Missing field '{key}'")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ProjectFormatError(f"Field '{key}' must be a number, got {value!r}")
    try:
        number = float(value)
    except OverflowError as e:
        raise ProjectFormatError(f"Field '{key}' is out of range") from e
    if not math.isfinite(number):
        raise ProjectFormatError(f"Field '{key}' must be finite, got {value!r}")
    return number


def _entries(doc_dict: Dict[str, Any], key: str) -> list:
    entries = doc_dict.get(key) or []
    if not isinstance(entries, list):
        raise ProjectFormatError(f"Field '{key}' must be a list")
    return entries


def object_to_dict(obj: DesignObject) -> Dict[str, Any]:
    """Convert a DesignObject to dictionary."""
    obj_dict = {
        'id': obj.id,
        'type': obj.kind.value,
        'x': obj.x,
        'y': obj.y,
        'width': obj.width,
        'height': obj.height,
        'rotation': obj.rotation,
        'scaleX': obj.scale_x,
        'scaleY': obj.scale_y,
        'zIndex': obj.z_index,
    }
    if isinstance(obj, ImageObject):
        obj_dict['src'] = obj.proxy_src
        if obj.high_res_src:
            obj_dict['highResSrc'] = obj.high_res_src
    return obj_dict


def dict_to_object(obj_dict: Dict[str, Any]) -> DesignObject:
    """
    Convert dictionary to a DesignObject.

    Raises:
        ProjectFormatError: for unknown kinds or missing/invalid fields
        DesignObjectError: if the values break object invariants
    """
    if not isinstance(obj_dict, dict):
        raise ProjectFormatError(f"Object entry must be an object, got {obj_dict!r}")
    kind = obj_dict.get('type')
    if kind != ObjectKind.IMAGE.value:
        raise ProjectFormatError(f"Unknown object type: {kind!r}")

    obj_id = obj_dict.get('id')
    if not obj_id:
        raise ProjectFormatError("Object is missing its id")

    z_index = obj_dict.get('zIndex')
    if z_index is not None:
        z_index = int(_number(obj_dict, 'zIndex'))

    # Older documents may lack scale, treat that as unscaled
    scale_x = obj_dict.get('scaleX')
    scale_y = obj_dict.get('scaleY')

    return ImageObject(
        id=str(obj_id),
        x=_number(obj_dict, 'x', 0.0),
        y=_number(obj_dict, 'y', 0.0),
        width=_number(obj_dict, 'width'),
        height=_number(obj_dict, 'height'),
        rotation=_number(obj_dict, 'rotation', 0.0),
        scale_x=_number(obj_dict, 'scaleX') if scale_x is not None else 1.0,
        scale_y=_number(obj_dict, 'scaleY') if scale_y is not None else 1.0,
        z_index=z_index,
        proxy_src=str(obj_dict.get('src') or ''),
        high_res_src=obj_dict.get('highResSrc') or None,
    )


def asset_to_dict(asset: UploadedAsset) -> Dict[str, Any]:
    """Convert UploadedAsset to dictionary."""
    asset_dict = {
        'id': asset.id,
        'src': asset.proxy_src,
        'width': asset.width,
        'height': asset.height,
        'name': asset.name,
    }
    if asset.high_res_src:
        asset_dict['highResSrc'] = asset.high_res_src
    if asset.is_uploading:
        asset_dict['isUploading'] = True
    return asset_dict


def dict_to_asset(asset_dict: Dict[str, Any]) -> UploadedAsset:
    """Convert dictionary to UploadedAsset."""
    if not isinstance(asset_dict, dict):
        raise ProjectFormatError(f"Asset entry must be an object, got {asset_dict!r}")
    if not asset_dict.get('id'):
        raise ProjectFormatError("Asset is missing its id")
    return UploadedAsset(
        id=str(asset_dict['id']),
        proxy_src=str(asset_dict.get('src') or ''),
        width=int(_number(asset_dict, 'width', 0)),
        height=int(_number(asset_dict, 'height', 0)),
        name=str(asset_dict.get('name', '')),
        high_res_src=asset_dict.get('highResSrc') or None,
        is_uploading=bool(asset_dict.get('isUploading', False)),
    )


def sheet_to_dict(sheet: Sheet) -> Dict[str, Any]:
    return {'label': sheet.label, 'width': sheet.width, 'height': sheet.height}


def dict_to_sheet(sheet_dict: Dict[str, Any]) -> Sheet:
    if not isinstance(sheet_dict, dict):
        raise ProjectFormatError("Sheet size must be an object")
    return Sheet(
        width=_number(sheet_dict, 'width'),
        height=_number(sheet_dict, 'height'),
        label=str(sheet_dict.get('label', '')),
    )


def design_to_dict(design: Design) -> Dict[str, Any]:
    """Convert Design to dictionary."""
    return {
        'size': sheet_to_dict(design.sheet),
        'objects': [object_to_dict(obj) for obj in design.objects],
        'uploadedFiles': [asset_to_dict(asset) for asset in design.asset_library],
    }


def dict_to_design(doc_dict: Dict[str, Any], design_id: Optional[str] = None,
                   default_sheet: Optional[Sheet] = None) -> Design:
    """
    Convert dictionary to Design.

    Args:
        doc_dict: Parsed design document
        design_id: External id the document was stored under
        default_sheet: Sheet to use when the document has none

    Raises:
        ProjectFormatError: if the document is malformed
    """
    if not isinstance(doc_dict, dict):
        raise ProjectFormatError("Design document must be an object")

    try:
        if doc_dict.get('size'):
            sheet = dict_to_sheet(doc_dict['size'])
        else:
            sheet = default_sheet or DEFAULT_SHEET
        objects = [dict_to_object(o) for o in _entries(doc_dict, 'objects')]
        assets = [dict_to_asset(a) for a in _entries(doc_dict, 'uploadedFiles')]
        return Design(sheet=sheet, objects=objects, asset_library=assets, id=design_id)
    except DesignObjectError as e:
        raise ProjectFormatError(str(e)) from e


def save_project(design: Design, filepath: Union[str, Path]) -> None:
    """
    Save a design to a JSON file.

    Raises:
        OSError: if the file cannot be written
    """
    doc_dict = design_to_dict(design)
    doc_dict['version'] = FORMAT_VERSION
    doc_dict['savedAt'] = datetime.now().isoformat()

    with open(filepath, 'w', encoding='utf-8') as f:
        json.dump(doc_dict, f, indent=2, ensure_ascii=False)
    logger.debug(f"Saved design to {filepath}")


def load_project(filepath: Union[str, Path], design_id: Optional[str] = None) -> Design:
    """
    Load a design from a JSON file.

    Raises:
        OSError: if the file cannot be read
        ProjectFormatError: if the file is not a valid design
    """
    with open(filepath, 'r', encoding='utf-8') as f:
        try:
            doc_dict = json.load(f)
        except json.JSONDecodeError as e:
            raise ProjectFormatError(f"Invalid JSON in {filepath}: {e}") from e
    return dict_to_design(doc_dict, design_id=design_id)
