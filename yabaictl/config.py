"""Configuration wrapper providing typed access and schema defaults."""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import TYPE_CHECKING, Any

import aiofiles
import aiofiles.os

from .constants import (
    CONFIG_FILE,
    CONFIG_SECTION,
    DEFAULT_FOCUS_DELAY,
    DEFAULT_NUM_SPACES,
    DEFAULT_SOCKET_PATH,
    DEFAULT_TIMEOUT,
    IPC_MAX_RETRIES,
)
from .models import ConfigError

if TYPE_CHECKING:
    import logging

__all__ = ["BOOL_FALSE_STRINGS", "DEFAULTS", "Configuration", "coerce_to_bool", "load_config"]

ConfigValueType = float | bool | str | list | dict

BOOL_FALSE_STRINGS = frozenset({"false", "no", "off", "0", "disabled"})

DEFAULTS: dict[str, ConfigValueType] = {
    "socket_path": DEFAULT_SOCKET_PATH,
    "yabai_path": "yabai",
    "check_version": True,
    "num_spaces": DEFAULT_NUM_SPACES,
    "timeout": DEFAULT_TIMEOUT,
    "query_retries": IPC_MAX_RETRIES,
    "focus_delay": DEFAULT_FOCUS_DELAY,
    "multi_display_layout": "bsp",
    "single_display_layout": "stack",
}


def coerce_to_bool(value: ConfigValueType | None, default: bool = False) -> bool:
    """Coerce a value to boolean, handling loose typing.

    Behavior:
        - None → default
        - Empty string → False
        - Explicit falsy strings ("false", "no", "off", "0", "disabled") → False
        - Any other non-empty string → True
        - Non-string values → bool(value)
    """
    if value is None:
        return default
    if isinstance(value, str):
        if not value.strip():
            return False
        return value.lower().strip() not in BOOL_FALSE_STRINGS
    return bool(value)


class Configuration(dict):
    """Configuration wrapper providing typed access.

    Missing keys fall back to `DEFAULTS`.
    """

    def __init__(self, *args: Any, logger: logging.Logger, **kwargs: Any) -> None:  # noqa: ANN401
        super().__init__(*args, **kwargs)
        self.log = logger

    def get(self, name: str, default: ConfigValueType | None = None) -> ConfigValueType | None:  # type: ignore[override]
        """Get a value, the built-in default, or `default`."""
        if name in self:
            return dict.get(self, name)  # type: ignore[no-any-return]
        if name in DEFAULTS:
            return DEFAULTS[name]
        return default

    def get_bool(self, name: str, default: bool = False) -> bool:
        """Get a boolean value, handling loose typing."""
        return coerce_to_bool(self.get(name), default)

    def get_int(self, name: str, default: int = 0) -> int:
        """Get an integer value.

        Args:
            name: The key name
            default: Default value if key is missing or invalid
        """
        value = self.get(name)
        if value is None:
            return default
        try:
            return int(value)  # type: ignore[arg-type]
        except (ValueError, TypeError):
            self.log.warning("Invalid integer value for %s: %s", name, value)
            return default

    def get_float(self, name: str, default: float = 0.0) -> float:
        """Get a float value.

        Args:
            name: The key name
            default: Default value if key is missing or invalid
        """
        value = self.get(name)
        if value is None:
            return default
        try:
            return float(value)  # type: ignore[arg-type]
        except (ValueError, TypeError):
            self.log.warning("Invalid float value for %s: %s", name, value)
            return default

    def get_str(self, name: str, default: str = "") -> str:
        """Get a string value."""
        value = self.get(name)
        if value is None:
            return default
        return str(value)

    @property
    def num_spaces(self) -> int:
        """Number of working spaces, always even and positive."""
        count = self.get_int("num_spaces", DEFAULT_NUM_SPACES)
        if count < 2 or count % 2:  # noqa: PLR2004
            self.log.warning("num_spaces must be an even number >= 2, using %d", DEFAULT_NUM_SPACES)
            return DEFAULT_NUM_SPACES
        return count


async def load_config(log: logging.Logger, config_filename: str = "") -> Configuration:
    """Load the `[yabaictl]` section of the configuration file.

    A missing file is not an error when using the default location.

    Raises:
        ConfigError: If the file can't be parsed or an explicit file is missing.
    """
    if config_filename:
        fname = Path(os.path.expandvars(config_filename)).expanduser()
        if not await aiofiles.os.path.exists(fname):
            log.critical("Config file not found: %s", fname)
            msg = f"config file not found: {fname}"
            raise ConfigError(msg)
    else:
        fname = CONFIG_FILE
        if not await aiofiles.os.path.exists(fname):
            log.debug("No config file at %s, using defaults", fname)
            return Configuration(logger=log)

    log.info("Loading %s", fname)
    async with aiofiles.open(fname, encoding="utf-8") as f:
        content = await f.read()
    try:
        data = tomllib.loads(content)
    except tomllib.TOMLDecodeError as e:
        log.critical("Problem reading %s: %s", fname, e)
        msg = f"invalid TOML in {fname}: {e}"
        raise ConfigError(msg) from e

    section = data.get(CONFIG_SECTION, {})
    if not isinstance(section, dict):
        msg = f"[{CONFIG_SECTION}] must be a table in {fname}"
        raise ConfigError(msg)
    return Configuration(section, logger=log)
