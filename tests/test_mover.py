"""Tests for file mover functionality."""

import errno
import pytest
from pathlib import Path
from unittest.mock import patch

from safe_organizer.core.mover import FileMover
from safe_organizer.exceptions import FileOperationError


@pytest.fixture
def root(tmp_path):
    root = tmp_path / "inbox"
    root.mkdir()
    return root


class TestFileMover:
    """Test FileMover class."""

    def test_move_creates_category_dir(self, root):
        source = root / "a.jpg"
        source.write_bytes(b"image data")

        target = FileMover().move_file(source, root, "Images")

        assert target == root / "Images" / "a.jpg"
        assert target.read_bytes() == b"image data"
        assert not source.exists()

    def test_move_into_existing_dir(self, root):
        (root / "Images").mkdir()
        (root / "Images" / "old.jpg").write_bytes(b"old")
        source = root / "a.jpg"
        source.write_bytes(b"new")

        FileMover().move_file(source, root, "Images")

        assert (root / "Images" / "old.jpg").read_bytes() == b"old"
        assert (root / "Images" / "a.jpg").read_bytes() == b"new"

    def test_existing_file_replaced(self, root):
        """Test last write wins on a name collision."""
        (root / "Images").mkdir()
        (root / "Images" / "a.jpg").write_bytes(b"previous contents")
        source = root / "a.jpg"
        source.write_bytes(b"incoming contents")

        target = FileMover().move_file(source, root, "Images")

        assert target.read_bytes() == b"incoming contents"
        assert list((root / "Images").iterdir()) == [target]

    def test_category_path_is_a_file(self, root):
        (root / "Images").write_bytes(b"not a directory")
        source = root / "a.jpg"
        source.write_bytes(b"data")

        with pytest.raises(FileOperationError, match="Cannot create Images/"):
            FileMover().move_file(source, root, "Images")

        assert source.exists()

    def test_missing_source(self, root):
        with pytest.raises(FileOperationError, match="Failed to move gone.txt"):
            FileMover().move_file(root / "gone.txt", root, "Documents")

    def test_cross_device_fallback(self, root):
        """Test a move across devices falls back to copy and delete."""
        (root / "Images").mkdir()
        (root / "Images" / "a.jpg").write_bytes(b"old")
        source = root / "a.jpg"
        source.write_bytes(b"new")

        cross_device = OSError(errno.EXDEV, "Invalid cross-device link")
        with patch("safe_organizer.core.mover.os.replace", side_effect=cross_device):
            target = FileMover().move_file(source, root, "Images")

        assert target.read_bytes() == b"new"
        assert not source.exists()

    def test_ensure_directory_creates_parents(self, root):
        directory = FileMover().ensure_directory(root / "a" / "b")
        assert directory.is_dir()
