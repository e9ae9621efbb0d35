"""Extension based categorization of files."""

import logging
import string
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple, Union

from ..exceptions import ConfigurationError

logger = logging.getLogger(__name__)

FALLBACK_CATEGORY = "Others"

BUILTIN_CATEGORIES: Dict[str, Tuple[str, ...]] = {
    "Images": (".jpg", ".jpeg", ".png", ".gif", ".bmp", ".icon"),
    "Videos": (".mp4", ".mov", ".mkv", ".avi"),
    "Audio": (".mp3", ".flp", ".wav", ".aup"),
    "Documents": (".docx", ".pdf", ".pptx", ".csv", ".txt", "doc", ".ppt", "doc"),
    "Archives": (".zip", ".rar", ".7z", ".tar", ".gz", ".sitx"),
    "Executables": (".jar", ".sh", ".bat"),
}

# Installers and native binaries are never touched
BLOCKED_EXTENSIONS: FrozenSet[str] = frozenset({
    ".exe", ".dll", ".sys", ".app", ".deb", ".msi"
})

_ASCII_LOWER = str.maketrans(string.ascii_uppercase, string.ascii_lowercase)

CustomEntries = Union[Mapping[str, Iterable[str]], Iterable[Tuple[str, Iterable[str]]]]


def normalize_extension(extension: Optional[str]) -> str:
    """Lowercase (ASCII only) and dot-prefix an extension. Empty stays empty."""
    if not extension:
        return ""
    extension = extension.strip().translate(_ASCII_LOWER)
    if not extension:
        return ""
    if not extension.startswith("."):
        extension = "." + extension
    return extension


def extension_of(filename: str) -> str:
    """Extension of a file name including the dot, ``""`` when there is none.

    A leading dot does not start an extension, so ``.bashrc`` has none.
    """
    dot = filename.rfind(".")
    return filename[dot:] if dot > 0 else ""


def parse_extension_list(text: str) -> List[str]:
    """Parse user input such as ``pdf, .DOCX,txt`` into normalized extensions."""
    extensions: List[str] = []
    for token in (text or "").split(","):
        extension = normalize_extension(token)
        if extension and extension not in extensions:
            extensions.append(extension)
    return extensions


def validate_category_name(name: str) -> str:
    """Category names become folder names directly under the root."""
    cleaned = (name or "").strip()
    if not cleaned:
        raise ConfigurationError("Category name cannot be empty")
    if cleaned in (".", "..") or "/" in cleaned or "\\" in cleaned or "\x00" in cleaned:
        raise ConfigurationError(f"Invalid category name: {name!r}")
    return cleaned


@dataclass(frozen=True)
class CategoryRuleSet:
    """Ordered, read-only mapping of category name to extensions."""
    categories: Mapping[str, FrozenSet[str]]

    def __post_init__(self):
        if not isinstance(self.categories, MappingProxyType):
            object.__setattr__(
                self, "categories", MappingProxyType(dict(self.categories))
            )

    def __iter__(self):
        return iter(self.categories.items())

    def __len__(self) -> int:
        return len(self.categories)

    def __contains__(self, name: object) -> bool:
        return name in self.categories

    @property
    def names(self) -> List[str]:
        return list(self.categories)

    def extensions_for(self, name: str) -> FrozenSet[str]:
        return self.categories.get(name, frozenset())

    def duplicate_extensions(self) -> Dict[str, List[str]]:
        """Extensions claimed by more than one category, with the claimants in order."""
        owners: Dict[str, List[str]] = {}
        for name, extensions in self.categories.items():
            for extension in extensions:
                owners.setdefault(extension, []).append(name)
        return {ext: names for ext, names in sorted(owners.items()) if len(names) > 1}


class CategoryResolver:
    """Build rule sets and map extensions to category names."""

    @staticmethod
    def builtin_rule_set() -> CategoryRuleSet:
        return CategoryResolver.build_rule_set(())

    @staticmethod
    def build_rule_set(custom_entries: Optional[CustomEntries] = None) -> CategoryRuleSet:
        """
        Overlay custom categories on the built-in table.

        A custom category with the same name as a built-in one replaces its
        whole extension set; it does not add to it.

        Args:
            custom_entries: Mapping or ``(name, extensions)`` pairs

        Returns:
            Immutable rule set

        Raises:
            ConfigurationError: If a category name is not a plain folder name
        """
        table: Dict[str, FrozenSet[str]] = {}
        for name, extensions in BUILTIN_CATEGORIES.items():
            table[name] = _normalized_set(extensions)

        if custom_entries is None:
            custom_entries = ()
        if isinstance(custom_entries, Mapping):
            custom_entries = custom_entries.items()

        for name, extensions in custom_entries:
            name = validate_category_name(name)
            if isinstance(extensions, str):
                extensions = parse_extension_list(extensions)
            if name in table:
                logger.info(f"Custom category {name} replaces the earlier definition")
            table[name] = _normalized_set(extensions)

        rule_set = CategoryRuleSet(table)
        for extension, names in rule_set.duplicate_extensions().items():
            logger.warning(
                f"Extension {extension} is listed under {', '.join(names)}; "
                f"files go to {names[0]}"
            )
        return rule_set

    @staticmethod
    def resolve(rule_set: CategoryRuleSet, extension: str) -> Optional[str]:
        """First category in rule set order containing the extension."""
        extension = normalize_extension(extension)
        if not extension:
            return None
        for name, extensions in rule_set:
            if extension in extensions:
                return name
        return None

    @staticmethod
    def category_for(rule_set: CategoryRuleSet, extension: str) -> str:
        return CategoryResolver.resolve(rule_set, extension) or FALLBACK_CATEGORY

    @staticmethod
    def is_blocked(extension: str) -> bool:
        return normalize_extension(extension) in BLOCKED_EXTENSIONS


def _normalized_set(extensions: Iterable[str]) -> FrozenSet[str]:
    normalized = (normalize_extension(ext) for ext in extensions)
    return frozenset(ext for ext in normalized if ext)

