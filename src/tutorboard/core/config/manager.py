"""
ConfigManager: dynamic, cache-backed configuration access for tutorboard.

Purpose
-------
- Provide hierarchical, dot-notation access to tunable configuration values
  (onboarding catalog, achievement tier ladders, reward amounts, timeouts).
- Back configuration with the packaged YAML defaults plus optional YAML
  files from `Config.CONFIG_DIR`.
- Allow in-memory overrides for ops tooling and tests.

Key Design Decisions
--------------------
- YAML is the single source for **defaults**; overrides are layered on top.
- Files are deep-merged in lexical order, so later files win per key.
- Reads never raise: a missing key returns the caller's default.
- Per-key validators run on every override write.
"""

from __future__ import annotations

import copy
import threading
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, MutableMapping, Optional

import yaml

from tutorboard.core.config.config import Config
from tutorboard.core.exceptions import ConfigurationError
from tutorboard.core.logging.logger import get_logger

logger = get_logger(__name__)

DEFAULTS_FILE = Path(__file__).with_name("defaults.yaml")

_MISSING = object()


@dataclass(slots=True)
class ConfigMetrics:
    gets: int = 0
    cache_hits: int = 0
    cache_misses: int = 0
    overrides_set: int = 0
    validation_errors: int = 0
    yaml_files_loaded: int = 0


class ConfigManager:
    """
    Dot-notation configuration store.

    Features
    --------
    - Hierarchical config access (e.g. `"onboarding.minutes_per_step"`).
    - Deep-merged YAML defaults.
    - In-memory overrides with optional validation.
    - Read metrics.

    Examples
    --------
    >>> ConfigManager.get("onboarding.minutes_per_step", 5)
    5
    >>> ConfigManager.set_override("onboarding.minutes_per_step", 10)
    """

    _defaults: Dict[str, Any] = {}
    _overrides: Dict[str, Any] = {}
    _validators: Dict[str, Callable[[Any], Any]] = {}
    _initialized: bool = False
    _lock = threading.RLock()
    _metrics: ConfigMetrics = ConfigMetrics()

    # =========================================================================
    # YAML LOADING & DEFAULTS
    # =========================================================================

    @staticmethod
    def _deep_merge_dict(
        target: MutableMapping[str, Any],
        source: MutableMapping[str, Any],
    ) -> None:
        """Recursively merge `source` into `target` (in-place)."""
        for key, value in source.items():
            if isinstance(value, dict) and isinstance(target.get(key), dict):
                ConfigManager._deep_merge_dict(target[key], value)
            else:
                target[key] = copy.deepcopy(value)

    @classmethod
    def _load_yaml_file(cls, path: Path) -> Dict[str, Any]:
        with path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle)

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigurationError(
                str(path), "top-level YAML value must be a mapping"
            )

        cls._metrics.yaml_files_loaded += 1
        return data

    @classmethod
    def initialize(cls, config_dir: Optional[Path] = None) -> None:
        """
        Load packaged defaults and merge every YAML file under `config_dir`.

        Safe to call repeatedly; each call rebuilds defaults from disk and
        keeps existing overrides.

        Raises
        ------
        ConfigurationError
            If a YAML file does not contain a mapping at the top level.
        """
        with cls._lock:
            defaults = cls._load_yaml_file(DEFAULTS_FILE)

            directory = config_dir or Config.CONFIG_DIR
            loaded: List[str] = []
            if directory is not None and Path(directory).is_dir():
                yaml_files = sorted(
                    list(Path(directory).rglob("*.yaml"))
                    + list(Path(directory).rglob("*.yml"))
                )
                for yaml_file in yaml_files:
                    cls._deep_merge_dict(defaults, cls._load_yaml_file(yaml_file))
                    loaded.append(str(yaml_file))

            cls._defaults = defaults
            cls._initialized = True

        logger.info(
            "ConfigManager initialized",
            extra={
                "top_level_keys": sorted(cls._defaults.keys()),
                "override_files": loaded,
            },
        )

    @classmethod
    def _ensure_initialized(cls) -> None:
        if not cls._initialized:
            cls.initialize()

    # =========================================================================
    # READS
    # =========================================================================

    @staticmethod
    def _traverse(source: Dict[str, Any], key: str) -> Any:
        value: Any = source
        for part in key.split("."):
            if not isinstance(value, dict) or part not in value:
                return _MISSING
            value = value[part]
        return value

    @classmethod
    def get(cls, key: str, default: Any = None) -> Any:
        """
        Retrieve a configuration value by dot-notation path.

        Overrides take precedence over YAML defaults. A `None` value is
        treated as missing.
        """
        cls._ensure_initialized()
        cls._metrics.gets += 1

        if key in cls._overrides:
            cls._metrics.cache_hits += 1
            return copy.deepcopy(cls._overrides[key])

        value = cls._traverse(cls._defaults, key)
        if value is _MISSING or value is None:
            cls._metrics.cache_misses += 1
            return default

        cls._metrics.cache_hits += 1
        return copy.deepcopy(value)

    @classmethod
    def get_all_keys(cls) -> List[str]:
        cls._ensure_initialized()
        return sorted(set(cls._defaults.keys()) | {k.split(".")[0] for k in cls._overrides})

    # =========================================================================
    # OVERRIDES & VALIDATION
    # =========================================================================

    @classmethod
    def register_validator(cls, key: str, validator: Callable[[Any], Any]) -> None:
        """
        Register a validator for a full dot key.

        The validator receives the candidate value and returns the (possibly
        normalized) value, or raises to reject it.
        """
        cls._validators[key] = validator

    @classmethod
    def set_override(cls, key: str, value: Any) -> None:
        """
        Override a configuration value in memory.

        Raises
        ------
        ConfigurationError
            If a registered validator rejects the value.
        """
        validator = cls._validators.get(key)
        if validator is not None:
            try:
                value = validator(value)
            except (TypeError, ValueError) as exc:
                cls._metrics.validation_errors += 1
                raise ConfigurationError(key, str(exc)) from exc

        with cls._lock:
            cls._overrides[key] = value
        cls._metrics.overrides_set += 1

        logger.info("Configuration override set", extra={"config_key": key})

    @classmethod
    def clear_overrides(cls) -> None:
        with cls._lock:
            cls._overrides.clear()

    @classmethod
    def reset(cls) -> None:
        """Drop all state; the next read reloads defaults from disk."""
        with cls._lock:
            cls._defaults = {}
            cls._overrides = {}
            cls._validators = {}
            cls._initialized = False
            cls._metrics = ConfigMetrics()

    @classmethod
    def get_metrics(cls) -> Dict[str, Any]:
        return asdict(cls._metrics)
