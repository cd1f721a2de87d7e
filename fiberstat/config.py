"""Configuration loading for fiberstat.

Loads settings from TOML config files with sensible defaults.
Search order: explicit --config path → ~/.config/fiberstat/config.toml → defaults only.
"""

from __future__ import annotations

import sys
import tomllib
from pathlib import Path
from typing import Any

from fiberstat.interfaces import POWER_UNKNOWN

DEFAULT_CONFIG: dict[str, Any] = {
    "timeout_ms": 1000,
    "sysfs_prefix": "",
    "correlation": "phandle",
    "charset": "auto",
    "log_file": "/tmp/fiberstat.log",
    # dBm; good/bad land on whole gauge rows at both resolutions
    "power": {
        "max": 0.0,
        "good": -18.4,
        "bad": -21.7,
        "min": -25.0,
    },
    "gauges": {
        "tx_thresholds": True,
        "rx_thresholds": True,
    },
}

CORRELATION_MODES = ("phandle", "none")
CHARSETS = ("auto", "ascii", "utf8")
# curses takes the input timeout as a C int
TIMEOUT_MAX_MS = 2**31 - 1

_DEFAULT_PATH = Path.home() / ".config" / "fiberstat" / "config.toml"


def _deep_merge(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """Merge overlay into base. Nested dicts are merged at the first level only."""
    merged = {k: dict(v) if isinstance(v, dict) else v for k, v in base.items()}
    for key, value in overlay.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            # Merge one level: overlay sub-keys into base sub-keys
            merged[key] = {**merged[key], **value}
        else:
            merged[key] = value
    return merged


def validate_config(config: dict[str, Any]) -> list[str]:
    """Return a list of problems found in a merged configuration."""
    problems: list[str] = []

    timeout = config.get("timeout_ms")
    if (
        not isinstance(timeout, int)
        or isinstance(timeout, bool)
        or not 0 < timeout <= TIMEOUT_MAX_MS
    ):
        problems.append(
            f"timeout_ms must be an integer in 1..{TIMEOUT_MAX_MS}, got {timeout!r}"
        )

    for key in ("sysfs_prefix", "log_file"):
        if not isinstance(config.get(key), str):
            problems.append(f"{key} must be a string, got {config.get(key)!r}")

    if config.get("correlation") not in CORRELATION_MODES:
        problems.append(
            f"correlation must be one of {', '.join(CORRELATION_MODES)}, "
            f"got {config.get('correlation')!r}"
        )

    if config.get("charset") not in CHARSETS:
        problems.append(
            f"charset must be one of {', '.join(CHARSETS)}, "
            f"got {config.get('charset')!r}"
        )

    power = config.get("power", {})
    try:
        levels = [float(power[k]) for k in ("min", "bad", "good", "max")]
    except (KeyError, TypeError, ValueError):
        problems.append("power needs numeric min, bad, good and max levels")
    else:
        levels.insert(0, POWER_UNKNOWN)
        if levels != sorted(levels) or len(set(levels)) != len(levels):
            problems.append(
                f"power levels must satisfy {POWER_UNKNOWN} < min < bad < good < max"
            )

    gauges = config.get("gauges")
    if not isinstance(gauges, dict):
        problems.append(f"gauges must be a table, got {gauges!r}")
    else:
        for key in ("tx_thresholds", "rx_thresholds"):
            if not isinstance(gauges.get(key), bool):
                problems.append(
                    f"gauges.{key} must be true or false, got {gauges.get(key)!r}"
                )

    return problems


def _checked(config: dict[str, Any], source: Path | None) -> dict[str, Any]:
    problems = validate_config(config)
    if problems:
        where = f" in {source}" if source is not None else ""
        for problem in problems:
            print(f"fiberstat: invalid configuration{where}: {problem}", file=sys.stderr)
        raise SystemExit(1)
    return config


def load_config(path: Path | None = None) -> dict[str, Any]:
    """Load configuration, merging user TOML over defaults.

    Args:
        path: Explicit config file path (from --config). If None, tries the
              default location ~/.config/fiberstat/config.toml.

    Returns:
        Merged configuration dict.

    Raises:
        SystemExit: If an explicit path doesn't exist, can't be parsed, or
                    holds invalid values.
    """
    if path is not None:
        if not path.is_file():
            print(f"fiberstat: config file not found: {path}", file=sys.stderr)
            raise SystemExit(1)
        try:
            user_config = tomllib.loads(path.read_text(encoding="utf-8"))
        except tomllib.TOMLDecodeError as e:
            print(f"fiberstat: invalid TOML in {path}: {e}", file=sys.stderr)
            raise SystemExit(1) from e
        return _checked(_deep_merge(DEFAULT_CONFIG, user_config), path)

    # Try default location silently
    if _DEFAULT_PATH.is_file():
        try:
            user_config = tomllib.loads(_DEFAULT_PATH.read_text(encoding="utf-8"))
            return _checked(_deep_merge(DEFAULT_CONFIG, user_config), _DEFAULT_PATH)
        except tomllib.TOMLDecodeError:
            print(
                f"fiberstat: warning: ignoring invalid TOML in {_DEFAULT_PATH}",
                file=sys.stderr,
            )

    return _deep_merge(DEFAULT_CONFIG, {})


def _toml_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return f'"{value}"'
    return str(value)


def dump_default_config() -> str:
    """Return the default configuration as a TOML string."""
    lines = [
        "# fiberstat configuration",
        "# Place this file at ~/.config/fiberstat/config.toml",
        "",
    ]

    for key, value in DEFAULT_CONFIG.items():
        if not isinstance(value, dict):
            lines.append(f"{key} = {_toml_value(value)}")
    lines.append("")

    for key, value in DEFAULT_CONFIG.items():
        if isinstance(value, dict):
            lines.append(f"[{key}]")
            for sub_key, sub_value in value.items():
                lines.append(f"{sub_key} = {_toml_value(sub_value)}")
            lines.append("")

    return "\n".join(lines) + "\n"
