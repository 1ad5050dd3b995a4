from __future__ import annotations

import re
import uuid
from pathlib import Path
from typing import Optional

_FILE_ID = re.compile(r"^[0-9a-f]{32}$")


class PdfStore:
    """Short-lived storage for exported proposal PDFs, keyed by random id."""

    def __init__(self, directory: str | Path, log):
        self.directory = Path(directory).expanduser()
        self.log = log
        if not self.directory.exists():
            self.directory.mkdir(parents=True, exist_ok=True)
            self.log.info("Created missing temp directory: %s", self.directory)

    def save(self, data: bytes) -> str:
        file_id = uuid.uuid4().hex
        path = self.directory / f"{file_id}.pdf"
        path.write_bytes(data)
        self.log.info("PDF saved to %s", path)
        return file_id

    def path_for(self, file_id: str) -> Optional[Path]:
        """Path of a stored PDF, or None when the id is malformed or unknown."""
        if not file_id or not _FILE_ID.match(file_id):
            return None
        path = self.directory / f"{file_id}.pdf"
        return path if path.is_file() else None

    def discard(self, file_id: str) -> None:
        path = self.path_for(file_id)
        if path is None:
            return
        try:
            path.unlink()
            self.log.info("PDF deleted after serving: %s", path)
        except OSError as exc:
            self.log.warning("Error deleting %s: %s", path, exc)
