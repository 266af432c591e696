"""
Gang Sheet I/O Module

Design documents, design persistence and asset upload.
"""

from .project_io import (
    ProjectFormatError, object_to_dict, dict_to_object, design_to_dict,
    dict_to_design, save_project, load_project
)
from .design_store import DesignStore, DesignNotFoundError
from .upload import AssetUploader, LocalObjectStore, UploadError, has_transparency

__all__ = [
    'ProjectFormatError',
    'object_to_dict',
    'dict_to_object',
    'design_to_dict',
    'dict_to_design',
    'save_project',
    'load_project',
    'DesignStore',
    'DesignNotFoundError',
    'AssetUploader',
    'LocalObjectStore',
    'UploadError',
    'has_transparency',
]
