"""Configuration model for the file organizer."""

from pathlib import Path
from typing import Dict, List, Optional
import json
from dataclasses import dataclass, field

from ..core.move_logger import DEFAULT_LOG_FILE
from ..exceptions import ConfigurationError
from ..utils.security import PathSafetyValidator, default_safe_directories


@dataclass
class SafetyConfig:
    """Directories the organizer is allowed to work in."""
    safe_directories: List[Path] = field(
        default_factory=lambda: list(default_safe_directories())
    )

    def __post_init__(self):
        # A bare string would be walked character by character
        if not _is_list_of(self.safe_directories, (str, Path)):
            raise ConfigurationError("safe_directories must be a list of paths")
        self.safe_directories = [Path(d).expanduser() for d in self.safe_directories]

    def build_validator(self) -> PathSafetyValidator:
        return PathSafetyValidator(self.safe_directories)


@dataclass
class Config:
    """Main configuration model."""
    log_file: Path = Path(DEFAULT_LOG_FILE)
    custom_categories: Dict[str, List[str]] = field(default_factory=dict)
    safety: SafetyConfig = field(default_factory=SafetyConfig)

    def __post_init__(self):
        if not isinstance(self.log_file, (str, Path)):
            raise ConfigurationError("log_file must be a path")
        self.log_file = Path(self.log_file)

        if not isinstance(self.custom_categories, dict):
            raise ConfigurationError("custom_categories must map names to extension lists")
        for name, extensions in self.custom_categories.items():
            if not _is_list_of(extensions, str):
                raise ConfigurationError(
                    f"Custom category {name!r} must map to a list of extensions"
                )

    @classmethod
    def default(cls) -> "Config":
        return cls()


def _is_list_of(value, item_types) -> bool:
    return isinstance(value, (list, tuple)) and all(
        isinstance(item, item_types) for item in value
    )


def _dataclass_to_dict(obj):
    """Convert dataclass to dict recursively."""
    from dataclasses import is_dataclass, fields
    if is_dataclass(obj):
        return {f.name: _dataclass_to_dict(getattr(obj, f.name)) for f in fields(obj)}
    elif isinstance(obj, Path):
        return str(obj)
    elif isinstance(obj, dict):
        return {key: _dataclass_to_dict(value) for key, value in obj.items()}
    elif isinstance(obj, (list, tuple)):
        return [_dataclass_to_dict(item) for item in obj]
    else:
        return obj


def _dict_to_dataclass(data, dataclass_type):
    """Convert dict to dataclass recursively."""
    from dataclasses import is_dataclass, fields
    if not is_dataclass(dataclass_type):
        return data
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Expected an object for {dataclass_type.__name__}, got {type(data).__name__}"
        )

    known = {f.name: f.type for f in fields(dataclass_type)}
    unknown = set(data) - set(known)
    if unknown:
        raise ConfigurationError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")

    kwargs = {}
    for field_name, field_type in known.items():
        if field_name in data:
            if hasattr(field_type, '__dataclass_fields__'):
                kwargs[field_name] = _dict_to_dataclass(data[field_name], field_type)
            else:
                kwargs[field_name] = data[field_name]

    return dataclass_type(**kwargs)


def load_config(config_path: Path) -> Config:
    """Load configuration from JSON file."""
    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            config_data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Cannot read config {config_path}: {e}")

    return _dict_to_dataclass(config_data, Config)


def save_config(config: Config, config_path: Path) -> None:
    """Save configuration to JSON file."""
    with open(config_path, 'w', encoding='utf-8') as f:
        json.dump(_dataclass_to_dict(config), f, indent=2)


def resolve_config(config_path: Optional[Path] = None) -> Config:
    """Config from file when given, defaults otherwise."""
    return load_config(config_path) if config_path else Config.default()
