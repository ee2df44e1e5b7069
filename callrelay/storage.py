"""
Flat-file JSON persistence.

Each piece of state (active configs, archived configs, changelog) lives in its
own JSON document under the data directory. Writes go through a temporary
file in the same directory followed by a rename, so a crash mid-write leaves
the previous document intact.
"""
import json
import os
import tempfile
from pathlib import Path
from typing import Any
from loguru import logger

from callrelay.utils.errors import PersistenceError


def _atomic_write_file(file_path: Path, content: str):
    """
    Atomically write content to a file using a temporary file and rename.

    Raises:
        OSError: If the directory cannot be created or the file cannot be written
    """
    file_path.parent.mkdir(parents=True, exist_ok=True)
    # Create temp file in same directory for atomic rename
    fd, temp_path = tempfile.mkstemp(dir=file_path.parent, suffix=".tmp")
    temp_file = Path(temp_path)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(content)
        os.replace(temp_file, file_path)
    except BaseException:
        if temp_file.exists():
            temp_file.unlink()
        raise


class JsonDocumentStore:
    """Loads and saves one JSON document."""

    def __init__(self, path: Path | str):
        self.path = Path(path)

    def load(self, default: Any = None) -> Any:
        """
        Read the document.

        Returns `default` when the file does not exist or cannot be parsed;
        a corrupt file is logged and left on disk for inspection.
        """
        if not self.path.exists():
            logger.debug(f"{self.path.name} not found, starting empty")
            return default

        try:
            with self.path.open("r", encoding="utf-8") as handle:
                return json.load(handle)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to read {self.path}: {e}")
            return default

    def save(self, data: Any):
        """
        Replace the document with `data`.

        Raises:
            PersistenceError: If the write fails; the previous document is kept
        """
        try:
            content = json.dumps(data, indent=2, ensure_ascii=False)
            _atomic_write_file(self.path, content)
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Failed to write {self.path}: {e}")
            raise PersistenceError(f"Failed to save {self.path.name}") from e
        logger.debug(f"Saved {self.path.name}")

    def exists(self) -> bool:
        return self.path.exists()
