"""Safe File Organizer

Sorts the files of a whitelisted directory into category folders by extension.
"""

__version__ = "0.1.0"

from .core.categories import (
    BLOCKED_EXTENSIONS,
    BUILTIN_CATEGORIES,
    FALLBACK_CATEGORY,
    CategoryResolver,
    CategoryRuleSet,
)

from .core.organizer import (
    FileEntry,
    FileOrganizer,
    FileOutcome,
    OrganizeReport,
    OrganizeRequest,
    OutcomeAction,
)

from .core.move_logger import (
    MoveLogger,
    MoveRecord,
)

from .utils.security import (
    DANGEROUS_PATH_PREFIXES,
    PathSafetyValidator,
)

__all__ = [
    # Core components
    "CategoryResolver",
    "FileOrganizer",
    "MoveLogger",
    "PathSafetyValidator",

    # Types
    "CategoryRuleSet",
    "FileEntry",
    "FileOutcome",
    "MoveRecord",
    "OrganizeReport",
    "OrganizeRequest",
    "OutcomeAction",

    # Static tables
    "BLOCKED_EXTENSIONS",
    "BUILTIN_CATEGORIES",
    "DANGEROUS_PATH_PREFIXES",
    "FALLBACK_CATEGORY",
]
