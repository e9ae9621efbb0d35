"""File operations for moving files into category folders."""

import errno
import logging
import os
import shutil
from pathlib import Path

from ..exceptions import FileOperationError

logger = logging.getLogger(__name__)


class FileMover:
    """Move files into ``root/<category>/``, replacing same-named files."""

    def category_dir(self, root: Path, category: str) -> Path:
        return root / category

    def ensure_directory(self, directory: Path) -> Path:
        """Create the directory and any missing parents."""
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FileOperationError(f"Cannot create {directory.name}/: {e}")
        return directory

    def move_file(self, source: Path, root: Path, category: str) -> Path:
        """
        Move a file into its category folder.

        An existing file with the same name in the category folder is
        replaced.

        Args:
            source: File to move
            root: Directory being organized
            category: Name of the destination folder under ``root``

        Returns:
            The file's new path

        Raises:
            FileOperationError: If the folder cannot be created or the move fails
        """
        target_dir = self.ensure_directory(self.category_dir(root, category))
        target_path = target_dir / source.name

        try:
            os.replace(source, target_path)
        except OSError as e:
            if e.errno != errno.EXDEV:
                raise FileOperationError(f"Failed to move {source.name}: {e}")
            # Category folder on another device (mount point)
            try:
                if target_path.is_file():
                    target_path.unlink()
                shutil.move(str(source), str(target_path))
            except OSError as e:
                raise FileOperationError(f"Failed to move {source.name}: {e}")

        logger.info(f"Moved {source} -> {target_path}")
        return target_path
