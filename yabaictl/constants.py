"""Shared constants for yabaictl."""

import getpass
import os
from pathlib import Path

from .models import VersionInfo

__all__ = [
    "CONFIG_FILE",
    "CONFIG_SECTION",
    "DEFAULT_FOCUS_DELAY",
    "DEFAULT_NUM_SPACES",
    "DEFAULT_SOCKET_PATH",
    "DEFAULT_TIMEOUT",
    "IPC_MAX_RETRIES",
    "IPC_RETRY_DELAY_MULTIPLIER",
    "MINIMUM_YABAI_VERSION",
    "RESERVED_LABEL",
    "YABAI_FAILURE_BYTE",
]

# Config file path - use XDG_CONFIG_HOME with fallback to ~/.config
_xdg_config_home = Path(os.environ.get("XDG_CONFIG_HOME") or Path.home() / ".config")
CONFIG_FILE = _xdg_config_home / "yabaictl" / "config.toml"
CONFIG_SECTION = "yabaictl"

DEFAULT_SOCKET_PATH = f"/tmp/yabai_{getpass.getuser()}.socket"  # noqa: S108

# The length-prefixed message format appeared in yabai 4.0.2
MINIMUM_YABAI_VERSION = VersionInfo(4, 0, 2)

# First byte of a reply when yabai failed to run the command
YABAI_FAILURE_BYTE = 0x07

# yabai may take a few seconds to answer while a display is added or removed
DEFAULT_TIMEOUT = 10.0

# IPC retry settings (queries only)
IPC_MAX_RETRIES = 3
IPC_RETRY_DELAY_MULTIPLIER = 0.1

# Space layout
DEFAULT_NUM_SPACES = 10
RESERVED_LABEL = "reserved"
DEFAULT_FOCUS_DELAY = 0.25
