"""Medical document storage: scans, lab results and letters on local disk.

Files live under `<root>/medical_files/` with a timestamp prefix; callers
keep the returned relative path (e.g. in a patient record) and use it to
read or delete the file later.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime
from pathlib import Path

from carestore.exceptions import DocumentNotFound

_logger = logging.getLogger(__name__)

DOCUMENTS_SUBDIR = "medical_files"

_UNSAFE = re.compile(r"[^\w.\-]", re.UNICODE)


def sanitize_filename(filename: str) -> str:
    """Replace anything but letters, digits, `.`, `-` and `_` with `_`."""
    return _UNSAFE.sub("_", filename)


class DocumentStore:
    def __init__(self, root: str | Path) -> None:
        self._root = Path(root)

    @property
    def directory(self) -> Path:
        return self._root / DOCUMENTS_SUBDIR

    def _full_path(self, relative_path: str) -> Path:
        root = self._root.resolve()
        full = (root / relative_path).resolve()
        if root not in full.parents:
            raise DocumentNotFound(relative_path)
        return full

    def _unused_name(self, safe_name: str) -> str:
        """`YYYYMMDD_HHMMSS_name`, with `_N` before the extension when taken."""
        stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        stem, dot, ext = safe_name.rpartition(".")
        if not stem:
            stem, dot, ext = safe_name, "", ""
        counter = 0
        while True:
            suffix = f"_{counter}" if counter else ""
            name = f"{stamp}_{stem}{suffix}{dot}{ext}"
            if not (self.directory / name).exists():
                return name
            counter += 1

    def save(self, data: bytes, filename: str) -> str:
        """Write `data` and return its path relative to the store root."""
        self.directory.mkdir(parents=True, exist_ok=True)
        name = self._unused_name(sanitize_filename(filename))
        (self.directory / name).write_bytes(data)
        _logger.info("Stored medical document %s (%d bytes)", name, len(data))
        return f"{DOCUMENTS_SUBDIR}/{name}"

    def read(self, relative_path: str) -> bytes:
        full = self._full_path(relative_path)
        if not full.is_file():
            raise DocumentNotFound(relative_path)
        return full.read_bytes()

    def delete(self, relative_path: str) -> None:
        """Remove a stored document; already-missing files are fine."""
        full = self._full_path(relative_path)
        if full.is_file():
            full.unlink()
            _logger.info("Deleted medical document %s", relative_path)
