"""
Baseline rule configuration: defaults, merging and config-file discovery
"""

import json
import logging
from pathlib import Path
from typing import Any, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)

CONFIG_FILENAMES = ("baseline.config.json", ".baseline.json", "package.json")


class ConfigError(ValueError):
    """Raised when a configuration source cannot be used"""


class RulesConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    allow_low: bool = Field(default=False, alias="allowLow")
    block_false: bool = Field(default=True, alias="blockFalse")


class BaselineConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    rules: RulesConfig = Field(default_factory=RulesConfig)
    ignore: List[str] = Field(default_factory=list)
    # Reserved for per-browser targeting; not consulted during resolution
    browsers: Optional[List[str]] = None

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True)


DEFAULT_CONFIG = BaselineConfig()

ConfigInput = Union[BaselineConfig, Mapping[str, Any], None]


def validate_config(data: Union[BaselineConfig, Mapping[str, Any]]) -> BaselineConfig:
    """Validate a (possibly partial) config, filling absent fields from defaults"""
    if isinstance(data, BaselineConfig):
        return data
    try:
        return BaselineConfig.model_validate(dict(data))
    except (TypeError, ValueError, ValidationError) as e:
        raise ConfigError(f"Invalid baseline configuration: {e}") from e


def merge_config(partial: ConfigInput = None, base: BaselineConfig = DEFAULT_CONFIG) -> BaselineConfig:
    """Overlay the fields a caller supplied onto ``base``, one level deep

    Each rules flag is overridden on its own, so ``{"rules": {"allowLow": True}}``
    keeps the base ``blockFalse``. ``ignore`` and ``browsers`` are replaced
    wholesale when supplied.
    """
    if partial is None:
        return base

    try:
        overlay = validate_config(partial)
    except ConfigError as e:
        logger.warning(f"Ignoring unusable configuration override: {e}")
        return base

    rules = base.rules
    if "rules" in overlay.model_fields_set:
        rules = base.rules.model_copy(update={
            name: getattr(overlay.rules, name) for name in overlay.rules.model_fields_set
        })

    update = {
        name: getattr(overlay, name)
        for name in overlay.model_fields_set
        if name != "rules"
    }
    update["rules"] = rules
    return base.model_copy(update=update)


def _read_config_file(path: Path) -> Optional[BaselineConfig]:
    """Read one config file; ``None`` when it holds no baseline settings"""
    with open(path, "r", encoding="utf-8") as f:
        parsed = json.load(f)

    if path.name == "package.json":
        if not isinstance(parsed, dict) or "baseline" not in parsed:
            return None
        parsed = parsed["baseline"]

    if not isinstance(parsed, dict):
        raise ConfigError(f"{path} does not contain a JSON object")
    return merge_config(validate_config(parsed))


def _candidate_paths(start_dir: Path) -> List[Path]:
    candidates = []
    current = start_dir.resolve()
    while True:
        candidates.extend(current / name for name in CONFIG_FILENAMES)
        if current.parent == current:
            break
        current = current.parent
    return candidates


def load_config(config_path: Optional[str] = None, start_dir: Optional[str] = None) -> BaselineConfig:
    """Load baseline configuration from an explicit file or by searching upward

    Without ``config_path`` the search walks from ``start_dir`` (default: the
    working directory) to the filesystem root, trying ``baseline.config.json``,
    ``.baseline.json`` and the ``baseline`` key of ``package.json`` in each
    directory. Falls back to DEFAULT_CONFIG when nothing usable is found.
    """
    if config_path:
        path = Path(config_path)
        if not path.is_file():
            raise ConfigError(f"Config file not found: {config_path}")
        try:
            return _read_config_file(path) or DEFAULT_CONFIG
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Failed to read config file {config_path}: {e}") from e

    for candidate in _candidate_paths(Path(start_dir or Path.cwd())):
        if not candidate.is_file():
            continue
        try:
            config = _read_config_file(candidate)
        except (OSError, json.JSONDecodeError, ConfigError) as e:
            logger.warning(f"Failed to parse config file {candidate}: {e}")
            continue
        if config is not None:
            logger.debug(f"Loaded baseline configuration from {candidate}")
            return config

    return DEFAULT_CONFIG
