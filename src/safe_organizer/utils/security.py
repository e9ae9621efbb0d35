"""
Security utilities for file operations.

Decides whether a directory may be organized: it must sit under one of the
whitelisted directories and outside every system path prefix.
"""

import logging
from pathlib import Path, PurePath
from typing import Iterable, Optional, Tuple, Union

from ..exceptions import InvalidRootError, PathValidationError

logger = logging.getLogger(__name__)

PathLike = Union[str, PurePath]

# System locations that are never organized, even when nested under an
# allowed directory through a symlinked home.
DANGEROUS_PATH_PREFIXES: Tuple[str, ...] = (
    "/bin", "/etc", "/lib", "/usr", "/sbin", "/System", "/opt"
)


def default_safe_directories(home: Optional[Path] = None) -> Tuple[Path, ...]:
    """Whitelisted directories derived from the user's home directory."""
    home = home if home is not None else Path.home()
    return (home / "Desktop", home / "Downloads")


def canonicalize(raw_path: PathLike) -> Path:
    """
    Resolve a path to its canonical absolute form.

    Args:
        raw_path: Path as typed by the user, ``~`` is expanded

    Returns:
        Absolute path with symlinks followed and ``.``/``..`` collapsed

    Raises:
        PathValidationError: If the path is empty or cannot be resolved
    """
    if raw_path is None or not str(raw_path).strip():
        raise PathValidationError("Path cannot be empty")

    try:
        return Path(raw_path).expanduser().resolve()
    except (OSError, RuntimeError, ValueError) as e:
        # RuntimeError: symlink loop on older interpreters
        # ValueError: embedded null byte
        raise PathValidationError(f"Cannot resolve path: {e}")


def has_dangling_link(raw_path: PathLike) -> bool:
    """True if the path or one of its parents is a symlink to nothing."""
    path = Path(raw_path).expanduser().absolute()
    for candidate in (path, *path.parents):
        if candidate.is_symlink() and not candidate.exists():
            return True
    return False


def is_nested(path: PurePath, base: PurePath) -> bool:
    """True if ``path`` equals ``base`` or lies under it, compared by segment."""
    return path == base or base in path.parents


class PathSafetyValidator:
    """Gatekeeper for the directories the organizer may touch."""

    def __init__(
        self,
        safe_directories: Optional[Iterable[PathLike]] = None,
        dangerous_prefixes: Iterable[PathLike] = DANGEROUS_PATH_PREFIXES
    ):
        if safe_directories is None:
            safe_directories = default_safe_directories()

        allowed = []
        for directory in safe_directories:
            try:
                canonical = canonicalize(directory)
            except PathValidationError as e:
                logger.warning(f"Ignoring unusable safe directory {directory}: {e}")
                continue
            if canonical not in allowed:
                allowed.append(canonical)

        self.safe_directories: Tuple[Path, ...] = tuple(allowed)
        self.dangerous_prefixes: Tuple[PurePath, ...] = tuple(
            PurePath(prefix) for prefix in dangerous_prefixes
        )

    def is_safe(self, raw_path: PathLike) -> bool:
        """
        Check whether a path may be organized.

        Args:
            raw_path: Path to check

        Returns:
            True only if the canonical path is under a safe directory and
            not under any dangerous prefix. Broken symlinks along the way
            are rejected. Never raises.
        """
        try:
            canonical = canonicalize(raw_path)
            if has_dangling_link(raw_path):
                logger.debug(f"Rejecting {raw_path!r}: broken symlink")
                return False
        except (PathValidationError, OSError, ValueError) as e:
            logger.debug(f"Rejecting {raw_path!r}: {e}")
            return False

        for safe_dir in self.safe_directories:
            if is_nested(canonical, safe_dir):
                # Denylist wins over the allowlist
                for prefix in self.dangerous_prefixes:
                    if is_nested(canonical, prefix):
                        logger.warning(
                            f"Rejecting {canonical}: under system path {prefix}"
                        )
                        return False
                return True

        logger.debug(f"Rejecting {canonical}: outside safe directories")
        return False

    def validate_root(self, raw_path: PathLike) -> Path:
        """
        Validate a directory before organizing it.

        Args:
            raw_path: Directory supplied by the user

        Returns:
            Canonical path of the directory

        Raises:
            PathValidationError: If the path fails the safety check
            InvalidRootError: If the path is safe but not an existing directory
        """
        if not self.is_safe(raw_path):
            raise PathValidationError(
                f"Path is unsafe or not whitelisted: {raw_path}"
            )

        root = canonicalize(raw_path)
        if not root.is_dir():
            raise InvalidRootError(f"Not an existing directory: {root}")
        return root
