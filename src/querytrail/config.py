"""Configuration loading and auto-discovery.

Defaults can be overridden via:
1. QUERYTRAIL_CONFIG environment variable pointing at a TOML file
2. Project querytrail.toml
3. ~/.config/querytrail/config.toml
4. Environment variables QUERYTRAIL_<SECTION>_<KEY> (highest priority)
"""
import os
import tomllib
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from querytrail.exceptions import ConfigError


DEFAULTS = {
    "store": {
        "backend": "sqlite",  # sqlite | memory
        "path": None,  # None: .querytrail/querytrail.db under the working directory
    },
    "tracking": {
        "recency_minutes": 30,  # Lookback for continuing an in-progress query
        "serialize_per_user": True,  # Per-user lock around read-then-write sequences
    },
    "limits": {
        # [min, max] ranges; requested limits are clamped into these
        "user_stats": [1, 50],
        "global_stats": [1, 100],
        "suggestions": [1, 10],
        "popular_searches": [5, 20],
        "top_queries": [5, 50],
        "top_queries_days": [1, 365],
        "recent_searches": [1, 5],
    },
}

# Cached config
_config_cache: Optional[dict] = None


def load_config() -> Optional[Dict[str, Any]]:
    """
    Load configuration from file.

    Priority:
    1. QUERYTRAIL_CONFIG environment variable
    2. ./querytrail.toml (project config)
    3. ~/.config/querytrail/config.toml (user config)

    Returns:
        Configuration dict or None if no config found

    Raises:
        ConfigError: If a config file exists but is not valid TOML
    """
    global _config_cache
    if _config_cache is not None:
        return _config_cache

    config_paths = []

    env_config = os.environ.get("QUERYTRAIL_CONFIG")
    if env_config:
        config_paths.append(Path(env_config))

    config_paths.append(Path("querytrail.toml"))
    config_paths.append(Path.home() / ".config" / "querytrail" / "config.toml")

    for path in config_paths:
        if path.exists():
            try:
                with open(path, "rb") as f:
                    _config_cache = tomllib.load(f)
            except tomllib.TOMLDecodeError as e:
                raise ConfigError(f"Invalid config file {path}: {e}")
            return _config_cache

    return None


def reload():
    """Force reload of config (useful for testing)."""
    global _config_cache
    _config_cache = None


def _coerce_env(raw: str, like: Any) -> Any:
    """Convert an environment string to the type of the default it overrides."""
    if isinstance(like, bool):
        return raw.lower() in ("1", "true", "yes")
    if isinstance(like, int):
        try:
            return int(raw)
        except ValueError:
            raise ConfigError(f"Expected an integer, got {raw!r}")
    if isinstance(like, list):
        parts = [p.strip() for p in raw.split(",") if p.strip()]
        try:
            return [int(p) for p in parts]
        except ValueError:
            raise ConfigError(f"Expected comma-separated integers, got {raw!r}")
    return raw


def get_config_value(key: str, default: Any = None) -> Any:
    """
    Get a configuration value by dot-notation key.

    Example:
        get_config_value("tracking.recency_minutes")
        get_config_value("limits.global_stats", [1, 100])
    """
    parts = key.split(".")

    fallback = DEFAULTS
    for part in parts:
        fallback = fallback.get(part) if isinstance(fallback, dict) else None
    if default is None:
        default = fallback

    env_key = "QUERYTRAIL_" + "_".join(p.upper() for p in parts)
    env_val = os.environ.get(env_key)
    if env_val is not None:
        return _coerce_env(env_val, default)

    config = load_config()
    if config is None:
        return default

    value = config
    for part in parts:
        if isinstance(value, dict) and part in value:
            value = value[part]
        else:
            return default

    return value


def get_limit_range(name: str) -> Tuple[int, int]:
    """Get the (minimum, maximum) range for a named limit."""
    low, high = get_config_value(f"limits.{name}")
    if low > high:
        raise ConfigError(f"limits.{name}: minimum {low} exceeds maximum {high}")
    return int(low), int(high)


def clamp_limit(name: str, requested: Optional[int]) -> int:
    """
    Clamp a requested limit into the configured range for `name`.

    Missing or non-integer values clamp to the minimum.
    """
    low, high = get_limit_range(name)
    try:
        value = int(requested)
    except (TypeError, ValueError):
        value = low
    return max(low, min(value, high))


# Convenience accessors for commonly used settings
def recency_minutes() -> int:
    return int(get_config_value("tracking.recency_minutes"))


def serialize_per_user() -> bool:
    return bool(get_config_value("tracking.serialize_per_user"))


def store_backend() -> str:
    return get_config_value("store.backend")


def store_path() -> Path:
    configured = get_config_value("store.path")
    if not configured:
        from querytrail.paths import get_paths
        return get_paths().store_db
    return Path(configured).expanduser()
