"""Filesystem document store rooted at a note vault directory"""

import logging
import os
import tempfile
from pathlib import Path

from notetex.crud.store import DocumentStore
from notetex.errors import ReadFailure, WriteFailure


logger = logging.getLogger(__name__)


class VaultStore(DocumentStore):
    """Documents are files under root; store paths are vault-relative."""

    def __init__(self, root: str | Path):
        self.root = Path(root)

    def full_path(self, path: str) -> Path:
        return self.root / path

    def read(self, path: str) -> str | None:
        target = self.full_path(path)
        if not target.is_file():
            return None
        try:
            return target.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ReadFailure(f"Cannot read {path}: {e}") from e

    def write(self, path: str, text: str) -> None:
        """Write to a temporary sibling, then atomically replace the target."""
        target = self.full_path(path)
        tmp_name = None
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.", suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as fh:
                fh.write(text)
            os.replace(tmp_name, target)
        except OSError as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise WriteFailure(f"Cannot write {path}: {e}") from e
        logger.debug("Wrote %s (%d chars)", target, len(text))

    def ensure_directory(self, path: str) -> None:
        try:
            self.full_path(path).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise WriteFailure(f"Cannot create directory {path}: {e}") from e

    def list(self, path: str = '') -> list[str]:
        base = self.full_path(path)
        if not base.is_dir():
            return []
        return sorted(
            p.relative_to(self.root).as_posix()
            for p in base.rglob("*")
            if p.is_file() and not p.name.startswith(".")
        )
