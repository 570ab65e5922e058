"""Idempotent file content management."""

import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

from .kitchen_models import FileSpec, FileWriteError

logger = logging.getLogger(__name__)


class FileMaterializer:
    """Writes target files only when their content differs."""

    def __init__(self, root: Optional[Path] = None):
        """
        Initialize the materializer.

        Args:
            root: Alternate root directory; absolute target paths are resolved
                beneath it (defaults to the real filesystem root)
        """
        self.root = Path(root) if root else Path("/")

    def resolve(self, path: str) -> Path:
        """Map a target path onto the materializer root."""
        target = Path(path)
        if target.is_absolute():
            target = target.relative_to(target.anchor)
        return self.root / target

    def is_converged(self, spec: FileSpec) -> bool:
        """Check if the file already holds exactly the desired content."""
        target = self.resolve(spec.path)
        if not target.is_file():
            return False

        try:
            current = target.read_bytes()
        except OSError as e:
            raise FileWriteError(spec.path, e) from e

        return current == spec.content.encode()

    def replace(self, spec: FileSpec) -> None:
        """
        Atomically create or replace the file with the desired content.

        Raises:
            FileWriteError: If the directory or file cannot be written
        """
        target = self.resolve(spec.path)
        logger.info(f"Writing {spec.path} ({len(spec.content)} bytes)")

        if target.is_dir():
            raise FileWriteError(spec.path, IsADirectoryError(f"{target} is a directory"))

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FileWriteError(spec.path, e) from e

        # Temporary file must live in the target directory for rename to be atomic
        try:
            with tempfile.NamedTemporaryFile(
                mode="wb", dir=target.parent, prefix=f".{target.name}.", delete=False
            ) as tmp_file:
                tmp_file.write(spec.content.encode())
                tmp_path = Path(tmp_file.name)
        except OSError as e:
            raise FileWriteError(spec.path, e) from e

        try:
            if spec.mode is not None:
                os.chmod(tmp_path, spec.mode)
            elif target.exists():
                os.chmod(tmp_path, target.stat().st_mode & 0o7777)
            else:
                os.chmod(tmp_path, 0o644)
            os.replace(tmp_path, target)
        except OSError as e:
            tmp_path.unlink(missing_ok=True)
            raise FileWriteError(spec.path, e) from e

    def write(self, spec: FileSpec) -> bool:
        """Converge the file. Returns True if it was changed."""
        if self.is_converged(spec):
            logger.debug(f"{spec.path} already up to date")
            return False
        self.replace(spec)
        return True
