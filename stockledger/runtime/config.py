"""Runtime settings loaded from ``stockledger.toml``.

Example::

    [matching]
    noise_tokens = ["100", "100s", "20", "20s", "25", "25s"]
    fuzzy_ratio = "0.7"
    min_token_length = 3

    [sync]
    chunk_size = 200
    max_attempts = 3

    [alerts]
    high_sales_threshold = 50

    [firestore]
    project_id = "my-shop"
    api_key = "..."
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from functools import lru_cache
from pathlib import Path
from typing import Any

from stockledger.domain.alerts import DEFAULT_HIGH_SALES_THRESHOLD
from stockledger.domain.matching import DEFAULT_POLICY, MatchPolicy
from stockledger.runtime.logging import get_logger

logger = get_logger(__name__)

CONFIG_ENV_VAR = "STOCKLEDGER_CONFIG"
DEFAULT_CONFIG_NAME = "stockledger.toml"


@dataclass(frozen=True)
class SyncSettings:
    chunk_size: int = 200
    max_attempts: int = 3


@dataclass(frozen=True)
class FirestoreSettings:
    project_id: str | None = None
    database: str = "(default)"
    api_key: str | None = None
    products_collection: str = "products"
    sales_collection: str = "register_sales"


@dataclass(frozen=True)
class Settings:
    """All tunables, with defaults matching the built-in behavior."""

    matching: MatchPolicy = DEFAULT_POLICY
    sync: SyncSettings = field(default_factory=SyncSettings)
    high_sales_threshold: int = DEFAULT_HIGH_SALES_THRESHOLD
    firestore: FirestoreSettings = field(default_factory=FirestoreSettings)
    source_path: Path | None = None


def resolve_config_path(config_path: str | None = None) -> Path:
    """Explicit path, then $STOCKLEDGER_CONFIG, then ./stockledger.toml."""
    if config_path:
        return Path(config_path)
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)
    return Path.cwd() / DEFAULT_CONFIG_NAME


def _positive_int(section: dict[str, Any], key: str, default: int) -> int:
    value = section.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValueError(f"{key} must be a positive integer, got {value!r}")
    return value


def _parse_matching(section: dict[str, Any]) -> MatchPolicy:
    tokens = section.get("noise_tokens", sorted(DEFAULT_POLICY.noise_tokens))
    if not isinstance(tokens, list) or not all(isinstance(t, str) for t in tokens):
        raise ValueError("matching.noise_tokens must be a list of strings")

    raw_ratio = section.get("fuzzy_ratio", str(DEFAULT_POLICY.fuzzy_ratio))
    try:
        # Strings keep "0.7" exact; floats go through str() for the same reason.
        ratio = Decimal(str(raw_ratio))
    except InvalidOperation as exc:
        raise ValueError(f"matching.fuzzy_ratio is not a number: {raw_ratio!r}") from exc
    if not Decimal("0") < ratio <= Decimal("1"):
        raise ValueError(f"matching.fuzzy_ratio must be in (0, 1], got {ratio}")

    return MatchPolicy(
        noise_tokens=frozenset(token.lower() for token in tokens),
        fuzzy_ratio=ratio,
        min_token_length=_positive_int(section, "min_token_length", DEFAULT_POLICY.min_token_length),
    )


def _parse_firestore(section: dict[str, Any]) -> FirestoreSettings:
    defaults = FirestoreSettings()
    return FirestoreSettings(
        project_id=section.get("project_id", defaults.project_id),
        database=section.get("database", defaults.database),
        api_key=section.get("api_key", defaults.api_key),
        products_collection=section.get("products_collection", defaults.products_collection),
        sales_collection=section.get("sales_collection", defaults.sales_collection),
    )


@lru_cache(maxsize=4)
def load_settings(config_path: str | None = None) -> Settings:
    """
    Load settings from TOML.

    Args:
        config_path: Optional TOML path override.

    Returns:
        Settings; defaults when the file does not exist.

    Raises:
        ValueError: if a value is present but invalid.
    """
    path = resolve_config_path(config_path)
    if not path.exists():
        logger.debug("No config file at %s, using defaults", path)
        return Settings()

    with open(path, "rb") as f:
        data = tomllib.load(f)

    sync_section = data.get("sync", {})
    alerts_section = data.get("alerts", {})
    settings = Settings(
        matching=_parse_matching(data.get("matching", {})),
        sync=SyncSettings(
            chunk_size=_positive_int(sync_section, "chunk_size", SyncSettings.chunk_size),
            max_attempts=_positive_int(sync_section, "max_attempts", SyncSettings.max_attempts),
        ),
        high_sales_threshold=_positive_int(alerts_section, "high_sales_threshold", DEFAULT_HIGH_SALES_THRESHOLD),
        firestore=_parse_firestore(data.get("firestore", {})),
        source_path=path,
    )
    logger.debug("Loaded settings from %s", path)
    return settings
