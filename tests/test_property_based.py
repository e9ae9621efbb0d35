"""Property-based tests for path safety, extension handling and dry runs.

Uses Hypothesis to generate paths, extensions and folder contents and checks
the invariants that must hold for every input, not just hand-picked ones.
"""

from __future__ import annotations

import os
import string
import sys
import tempfile
from pathlib import Path

import pytest
from hypothesis import assume, given, settings, strategies as st

from safe_organizer.core.categories import (
    BLOCKED_EXTENSIONS,
    BUILTIN_CATEGORIES,
    CategoryResolver,
    normalize_extension,
)
from safe_organizer.core.move_logger import MoveLogger
from safe_organizer.core.organizer import FileOrganizer, OrganizeRequest
from safe_organizer.utils.security import DANGEROUS_PATH_PREFIXES, PathSafetyValidator

# Locations that do not exist; non-strict resolution keeps them as written
BASE = Path("/organizer-property-tests")
ALLOWED = BASE / "Desktop"
SYSTEM = ALLOWED / "system"

segments = st.text(
    alphabet=string.ascii_letters + string.digits + "-_.",
    min_size=1,
    max_size=12,
).filter(lambda s: s not in (".", ".."))


def _join(base: Path, parts) -> str:
    return str(base.joinpath(*parts))


# ============================================================================
# Path safety
# ============================================================================

@given(
    st.one_of(segments, segments.map(lambda s: "Desktop" + s)),
    st.lists(segments, max_size=4),
)
def test_path_outside_allowlist_is_unsafe(first: str, rest) -> None:
    """Siblings of the allowed directory, lookalikes included, are never safe."""
    assume(first != "Desktop")
    validator = PathSafetyValidator([ALLOWED])

    assert validator.is_safe(_join(BASE, [first, *rest])) is False


@given(st.lists(segments, max_size=5))
def test_path_inside_allowlist_is_safe(parts) -> None:
    assume(not parts or parts[0] != "system")
    validator = PathSafetyValidator([ALLOWED], dangerous_prefixes=[SYSTEM])

    assert validator.is_safe(_join(ALLOWED, parts)) is True


@given(st.lists(segments, max_size=5))
def test_denylist_wins_over_allowlist(parts) -> None:
    """A dangerous prefix nested in an allowed directory is still rejected."""
    validator = PathSafetyValidator([ALLOWED], dangerous_prefixes=[SYSTEM])

    assert validator.is_safe(_join(SYSTEM, parts)) is False


@pytest.mark.skipif(sys.platform != "linux", reason="system paths are not symlinked elsewhere")
@given(st.sampled_from(DANGEROUS_PATH_PREFIXES), st.lists(segments, max_size=4))
def test_system_paths_unsafe_under_root_allowlist(prefix: str, parts) -> None:
    # Existing entries such as /etc/mtab may link out of the system tree
    assume(not parts or not os.path.lexists(os.path.join(prefix, parts[0])))
    validator = PathSafetyValidator(["/"])

    assert validator.is_safe(_join(Path(prefix), parts)) is False


# ============================================================================
# Extensions
# ============================================================================

@given(st.text(max_size=20))
def test_normalize_extension_is_idempotent(text: str) -> None:
    once = normalize_extension(text)
    assert normalize_extension(once) == once


@given(st.text(max_size=20))
def test_normalize_extension_lowercases_ascii_only(text: str) -> None:
    """ASCII letters are lowercased; every other character is kept as is."""
    normalized = normalize_extension(text)

    assert not any(c in string.ascii_uppercase for c in normalized)
    assert [c for c in normalized if ord(c) > 127] == [c for c in text.strip() if ord(c) > 127]
    if normalized:
        assert normalized.startswith(".")


@given(
    st.sampled_from([ext for exts in BUILTIN_CATEGORIES.values() for ext in exts]),
    st.lists(st.booleans(), min_size=8, max_size=8),
)
def test_lookup_ignores_case(extension: str, upper) -> None:
    rule_set = CategoryResolver.builtin_rule_set()
    mixed = "".join(c.upper() if flip else c for c, flip in zip(extension, upper))
    mixed += extension[len(upper):]

    assert CategoryResolver.category_for(rule_set, mixed) == \
        CategoryResolver.category_for(rule_set, extension.lower())
    assert CategoryResolver.is_blocked(mixed) is CategoryResolver.is_blocked(extension)


@given(st.sampled_from(sorted(BLOCKED_EXTENSIONS)), st.lists(st.booleans(), min_size=4, max_size=4))
def test_blocked_extensions_ignore_case(extension: str, upper) -> None:
    mixed = "".join(c.upper() if flip else c for c, flip in zip(extension, upper))

    assert CategoryResolver.is_blocked(mixed) is True


# ============================================================================
# Dry run
# ============================================================================

stems = st.text(alphabet=string.ascii_letters + string.digits + "-_", min_size=1, max_size=10)
suffixes = st.sampled_from(
    ["", ".jpg", ".PDF", ".zip", ".md", ".tar.gz", ".exe", ".DLL", ".unknownext"]
)
file_names = st.builds(
    lambda hidden, stem, suffix: ("." if hidden else "") + stem + suffix,
    st.booleans(),
    stems,
    suffixes,
)


def snapshot(directory: Path):
    state = {}
    for dirpath, dirnames, filenames in os.walk(directory):
        for name in dirnames:
            state[os.path.relpath(os.path.join(dirpath, name), directory)] = None
        for name in filenames:
            path = os.path.join(dirpath, name)
            with open(path, "rb") as f:
                state[os.path.relpath(path, directory)] = f.read()
    return state


@settings(max_examples=50, deadline=None)
@given(st.lists(file_names, max_size=10, unique_by=str.lower), st.lists(segments, max_size=3))
def test_dry_run_leaves_filesystem_unchanged(names, subdirs) -> None:
    with tempfile.TemporaryDirectory() as workdir:
        root = Path(workdir) / "root"
        root.mkdir()
        for name in names:
            (root / name).write_bytes(name.encode())
        for subdir in subdirs:
            (root / ("sub+" + subdir)).mkdir(exist_ok=True)
        log_file = Path(workdir) / "organizer.log"
        before = snapshot(root)

        organizer = FileOrganizer(move_logger=MoveLogger(log_file))
        report = organizer.run(OrganizeRequest(
            root=root,
            dry_run=True,
            rule_set=CategoryResolver.builtin_rule_set()
        ))

        assert snapshot(root) == before
        assert not log_file.exists()
        assert report.moved == []

        expected = [
            name for name in names
            if not name.startswith(".")
            and not CategoryResolver.is_blocked(os.path.splitext(name)[1])
        ]
        assert sorted(o.name for o in report.planned) == sorted(expected)
        for outcome in report.planned:
            assert outcome.target_path == root / outcome.category / outcome.name
