"""
Design Store

File-backed persistence for designs keyed by an external id. Each design is
one JSON document; saving an existing id replaces it.
"""

import logging
import os
import re
import tempfile
from pathlib import Path
from typing import List, Union
from uuid import uuid4

from ..core.document import Design
from .project_io import load_project, save_project

logger = logging.getLogger(__name__)

_ID_PATTERN = re.compile(r'^[A-Za-z0-9_-]{1,64}$')


class DesignNotFoundError(KeyError):
    """Raised when no design is stored under an id."""


class DesignStore:
    """
    Store designs as ``<root>/<design_id>.json``.

    Writes go to a temporary file first and are renamed into place, so a
    reader never sees a half-written design.
    """

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def new_design_id() -> str:
        """Generate a fresh design id."""
        return uuid4().hex[:12]

    def _path(self, design_id: str) -> Path:
        if not _ID_PATTERN.match(design_id or ''):
            raise ValueError(f"Invalid design id: {design_id!r}")
        return self.root / f"{design_id}.json"

    def exists(self, design_id: str) -> bool:
        return self._path(design_id).exists()

    def save(self, design_id: str, design: Design) -> None:
        """Insert or replace a design."""
        path = self._path(design_id)
        fd, tmp_name = tempfile.mkstemp(dir=self.root, suffix='.tmp')
        os.close(fd)
        try:
            save_project(design, tmp_name)
            os.replace(tmp_name, path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise
        logger.info(f"Design saved: {design_id}")

    def load(self, design_id: str) -> Design:
        """
        Load a design by id.

        Raises:
            DesignNotFoundError: if nothing is stored under the id
            ProjectFormatError: if the stored document is invalid
        """
        path = self._path(design_id)
        if not path.exists():
            raise DesignNotFoundError(design_id)
        return load_project(path, design_id=design_id)

    def delete(self, design_id: str) -> bool:
        """Delete a design. Returns False if it did not exist."""
        path = self._path(design_id)
        if not path.exists():
            return False
        path.unlink()
        return True

    def list_ids(self) -> List[str]:
        return sorted(p.stem for p in self.root.glob('*.json'))
