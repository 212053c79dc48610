"""Configuration parser for .idiomlint.yml files."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, FrozenSet, Optional

import structlog

from .errors import ConfigError
from .utils.fileio import read_yaml_file, read_yaml_text

logger = structlog.get_logger()

CONFIG_NAMES = (".idiomlint.yml", ".idiomlint.yaml", "idiomlint.yml")


@dataclass(frozen=True)
class EngineConfig:
    """Tunable engine settings."""

    # Minimum number of compared branches before an else-if chain is reported
    min_else_if_branches: int = 4
    # Element/parameter types larger than this many bytes count as non-trivial
    trivial_size_threshold: int = 16
    # Rule ids never dispatched
    excluded_rules: FrozenSet[str] = field(default_factory=frozenset)
    # Worker threads for multi-file analysis (None: executor default)
    max_workers: Optional[int] = None

    def __post_init__(self) -> None:
        normalized = frozenset(str(rule_id).strip().upper() for rule_id in self.excluded_rules)
        object.__setattr__(self, "excluded_rules", normalized)


def parse_config(content: str | dict[str, Any]) -> EngineConfig:
    """Parse configuration from YAML string or dict."""
    if isinstance(content, str):
        data = read_yaml_text(content) or {}
    else:
        data = content
    if not isinstance(data, dict):
        raise ConfigError("Configuration must be a mapping")

    rules = data.get("rules") or {}
    if not isinstance(rules, dict):
        raise ConfigError("'rules' must be a mapping")

    min_branches = _positive_int(rules.get("min_else_if_branches", 4), "rules.min_else_if_branches")
    if min_branches < 2:
        raise ConfigError("rules.min_else_if_branches must be at least 2")
    threshold = _positive_int(rules.get("trivial_size_threshold", 16), "rules.trivial_size_threshold")

    excluded = data.get("exclude") or []
    if isinstance(excluded, str):
        excluded = [excluded]
    if not isinstance(excluded, (list, tuple, set)):
        raise ConfigError("'exclude' must be a list of rule ids")

    workers = data.get("max_workers")
    if workers is not None:
        workers = _positive_int(workers, "max_workers")
        if workers == 0:
            raise ConfigError("max_workers must be positive")

    return EngineConfig(
        min_else_if_branches=min_branches,
        trivial_size_threshold=threshold,
        excluded_rules=frozenset(str(rule_id) for rule_id in excluded),
        max_workers=workers,
    )


def load_config(path: Path | str) -> EngineConfig:
    """Load configuration from a file, or from a directory holding one."""
    path = Path(path)

    if path.is_file():
        logger.info("Loading config", config_file=str(path))
        return parse_config(read_yaml_file(path) or {})

    for name in CONFIG_NAMES:
        config_file = path / name
        if config_file.exists():
            logger.info("Loading config", config_file=str(config_file))
            return parse_config(read_yaml_file(config_file) or {})

    logger.info("No config file found, using defaults", search_path=str(path))
    return EngineConfig()


def _positive_int(value: Any, key: str) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"{key} must be an integer")
    try:
        number = int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{key} must be an integer") from exc
    if number < 0:
        raise ConfigError(f"{key} must not be negative")
    return number
