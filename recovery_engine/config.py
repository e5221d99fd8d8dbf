"""
Application configuration management.

Load order (each layer overrides the previous):
  1. ``config/default.toml``      - committed static defaults and policy tables
  2. ``config/local.toml``        - optional local overrides (gitignored)
  3. ``.env``                     - local secrets and env overrides (gitignored)
  4. Environment variables        - ``RECOVERY_ENGINE_*`` prefix

Entry point: ``load_config(config_path=None) -> AppConfig``

The policy tables (priority tiers, rebuild size buckets) live here as data;
``AppConfig.priority_policy()`` and ``AppConfig.size_buckets()`` turn them
into the rule objects the classifier and generator walk.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from recovery_engine.classification.rules import (
    PriorityPolicy,
    PriorityRule,
    SizeBucket,
    VulnerabilityWeights,
    validate_priority_rules,
    validate_size_buckets,
)
from recovery_engine.recommendations.quantity import QuantityPolicy, make_quantity_policy
from recovery_engine.taxonomy.case_taxonomy import PriorityTier

# ── Sub-config models ─────────────────────────────────────────────────────────


class DatabaseConfig(BaseModel):
    """SQLite database connection settings."""

    model_config = ConfigDict(frozen=True)

    db_path: str = "data/db/recovery.db"
    wal_mode: bool = True
    busy_timeout_ms: int = 5000


class DataConfig(BaseModel):
    """Filesystem paths for import data."""

    model_config = ConfigDict(frozen=True)

    seed_file: str = "config/seed/sample_seed.json"


class LoggingConfig(BaseModel):
    """Logging output settings."""

    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    log_file: str = "data/logs/recovery.log"
    json_format: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"Log level must be one of {sorted(valid)}, got '{v}'.")
        return v.upper()


class LedgerConfig(BaseModel):
    """Material ledger settings."""

    model_config = ConfigDict(frozen=True)

    shortage_top_n: int = 4

    @field_validator("shortage_top_n")
    @classmethod
    def validate_top_n(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"shortage_top_n must be >= 1, got {v}.")
        return v


class PriorityRuleConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    tier: PriorityTier
    min_score: float


class ClassificationConfig(BaseModel):
    """Vulnerability weights and the ordered priority tier table."""

    model_config = ConfigDict(frozen=True)

    elderly_weight: float = 2.0
    children_weight: float = 1.0
    disabled_weight: float = 3.0
    extra_member_weight: float = 1.0
    baseline_family_size: int = 4
    rebuild_bonus: float = 2.0
    priority_rules: list[PriorityRuleConfig] = [
        PriorityRuleConfig(tier=PriorityTier.HIGH, min_score=6.0),
        PriorityRuleConfig(tier=PriorityTier.MEDIUM, min_score=3.0),
        PriorityRuleConfig(tier=PriorityTier.LOW, min_score=0.0),
    ]

    @model_validator(mode="after")
    def validate_rules(self) -> "ClassificationConfig":
        validate_priority_rules([PriorityRule(r.tier, r.min_score) for r in self.priority_rules])
        return self


class SizeBucketConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    code: str
    max_family_size: Optional[int] = None
    display_name: str


class RecommendationConfig(BaseModel):
    """Rebuild size table, repair selection limits and quantity policy."""

    model_config = ConfigDict(frozen=True)

    size_buckets: list[SizeBucketConfig] = [
        SizeBucketConfig(code="SIZE-S", max_family_size=2, display_name="Small house (24 m²)"),
        SizeBucketConfig(code="SIZE-M", max_family_size=4, display_name="Medium house (48 m²)"),
        SizeBucketConfig(code="SIZE-L", max_family_size=6, display_name="Large house (64 m²)"),
        SizeBucketConfig(code="SIZE-XL", display_name="Extra-large house (80 m²)"),
    ]
    max_materials_per_area: int = 2
    max_line_items: int = 6
    quantity_policy: str = "even_share"
    random_low: int = 5
    random_high: int = 20

    @field_validator("quantity_policy")
    @classmethod
    def validate_policy(cls, v: str) -> str:
        valid = {"even_share", "bounded_random"}
        if v not in valid:
            raise ValueError(f"quantity_policy must be one of {sorted(valid)}, got '{v}'.")
        return v

    @model_validator(mode="after")
    def validate_buckets(self) -> "RecommendationConfig":
        validate_size_buckets(
            [SizeBucket(b.code, b.max_family_size, b.display_name) for b in self.size_buckets]
        )
        if self.max_materials_per_area < 1 or self.max_line_items < 1:
            raise ValueError("max_materials_per_area and max_line_items must be >= 1.")
        return self


class AppConfig(BaseModel):
    """Complete application configuration."""

    model_config = ConfigDict(frozen=True)

    database: DatabaseConfig = DatabaseConfig()
    data: DataConfig = DataConfig()
    logging: LoggingConfig = LoggingConfig()
    ledger: LedgerConfig = LedgerConfig()
    classification: ClassificationConfig = ClassificationConfig()
    recommendation: RecommendationConfig = RecommendationConfig()
    debug: bool = False

    def priority_policy(self) -> PriorityPolicy:
        c = self.classification
        return PriorityPolicy(
            weights=VulnerabilityWeights(
                elderly=c.elderly_weight,
                children=c.children_weight,
                disabled=c.disabled_weight,
                extra_member=c.extra_member_weight,
                baseline_family_size=c.baseline_family_size,
                rebuild_bonus=c.rebuild_bonus,
            ),
            rules=tuple(PriorityRule(r.tier, r.min_score) for r in c.priority_rules),
        )

    def size_buckets(self) -> tuple[SizeBucket, ...]:
        return tuple(
            SizeBucket(b.code, b.max_family_size, b.display_name)
            for b in self.recommendation.size_buckets
        )

    def quantity_policy(self, seed: Optional[int] = None) -> QuantityPolicy:
        r = self.recommendation
        return make_quantity_policy(r.quantity_policy, r.random_low, r.random_high, seed)


# ── Loader ────────────────────────────────────────────────────────────────────

# env var -> (section, key); section None means top level
_ENV_OVERRIDES: dict[str, tuple[Optional[str], str]] = {
    "RECOVERY_ENGINE_DB_PATH": ("database", "db_path"),
    "RECOVERY_ENGINE_SEED_FILE": ("data", "seed_file"),
    "RECOVERY_ENGINE_LOG_LEVEL": ("logging", "level"),
    "RECOVERY_ENGINE_LOG_FILE": ("logging", "log_file"),
    "RECOVERY_ENGINE_DEBUG": (None, "debug"),
}

_TRUTHY = frozenset({"1", "true", "yes", "on"})

_SECTION_MODELS: dict[str, type[BaseModel]] = {
    "database": DatabaseConfig,
    "data": DataConfig,
    "logging": LoggingConfig,
    "ledger": LedgerConfig,
    "classification": ClassificationConfig,
    "recommendation": RecommendationConfig,
}


def _project_root() -> Path:
    """Nearest ancestor of this package holding ``pyproject.toml``."""
    here = Path(__file__).resolve().parent
    for parent in here.parents:
        if (parent / "pyproject.toml").is_file():
            return parent
    return here.parent


def _read_toml(path: Path) -> dict[str, Any]:
    with path.open("rb") as fh:
        return tomllib.load(fh)


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Load and merge application configuration.

    Args:
        config_path: TOML file to start from. Defaults to
            ``<project_root>/config/default.toml``. A ``local.toml`` next to
            it is merged on top when present.

    Returns:
        Fully validated ``AppConfig`` instance.

    Raises:
        FileNotFoundError: If the config file does not exist.
        pydantic.ValidationError: If merged config values fail validation.
    """
    root = _project_root()
    load_dotenv(dotenv_path=root / ".env", override=False)

    path = Path(config_path) if config_path is not None else root / "config" / "default.toml"
    if not path.is_file():
        raise FileNotFoundError(
            f"Config file not found: {path}\n"
            "Create config/default.toml or pass --config."
        )

    raw = _read_toml(path)
    local = path.with_name("local.toml")
    if local.is_file():
        raw = _deep_merge(raw, _read_toml(local))

    return _build_app_config(_apply_env_overrides(raw))


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge ``override`` into a copy of ``base``; nested tables merge, arrays replace."""
    merged = dict(base)
    for key, val in override.items():
        current = merged.get(key)
        both_tables = isinstance(current, dict) and isinstance(val, dict)
        merged[key] = _deep_merge(current, val) if both_tables else val
    return merged


def _apply_env_overrides(raw: dict[str, Any]) -> dict[str, Any]:
    """Copy any set ``RECOVERY_ENGINE_*`` variable into its config slot."""
    for var, (section, key) in _ENV_OVERRIDES.items():
        value = os.environ.get(var)
        if not value:
            continue
        if key == "debug":
            raw["debug"] = value.strip().lower() in _TRUTHY
        elif section is None:
            raw[key] = value
        else:
            raw.setdefault(section, {})[key] = value
    return raw


def _build_app_config(raw: dict[str, Any]) -> AppConfig:
    """Map the raw TOML dict onto ``AppConfig``."""
    sections = {name: model(**raw.get(name, {})) for name, model in _SECTION_MODELS.items()}
    debug = raw.get("debug", raw.get("project", {}).get("debug", False))
    return AppConfig(debug=debug, **sections)
