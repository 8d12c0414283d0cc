"""Common types from the yabai API."""

from dataclasses import dataclass
from enum import IntEnum, StrEnum
from typing import NotRequired, TypedDict

PlainTypes = float | str | dict[str, "PlainTypes"] | list["PlainTypes"]
JSONResponse = dict[str, PlainTypes] | list[dict[str, PlainTypes]]


class Frame(TypedDict):
    """Rectangle in screen coordinates."""

    x: float
    y: float
    w: float
    h: float


# yabai uses dashed keys, hence the functional syntax

SpaceInfo = TypedDict(
    "SpaceInfo",
    {
        "id": int,
        "uuid": str,
        "index": int,
        "label": str,
        "type": str,
        "display": int,
        "windows": list[int],
        "first-window": int,
        "last-window": int,
        "has-focus": bool,
        "is-visible": bool,
        "is-native-fullscreen": bool,
    },
)
"""Space information as returned by `yabai -m query --spaces`."""

DisplayInfo = TypedDict(
    "DisplayInfo",
    {
        "id": int,
        "uuid": str,
        "index": int,
        "frame": Frame,
        "spaces": list[int],
        "label": NotRequired[str],
        "has-focus": NotRequired[bool],
    },
)
"""Display information as returned by `yabai -m query --displays`."""

WindowInfo = TypedDict(
    "WindowInfo",
    {
        "id": int,
        "pid": int,
        "app": str,
        "title": str,
        "frame": Frame,
        "display": int,
        "space": int,
        "has-focus": bool,
        "is-visible": bool,
        "is-minimized": bool,
        "is-hidden": bool,
        "is-floating": bool,
        "is-sticky": bool,
        "is-native-fullscreen": bool,
    },
)
"""Window information as returned by `yabai -m query --windows`."""


class QueryDomain(StrEnum):
    """Domains accepted by `yabai -m query`."""

    WINDOWS = "--windows"
    SPACES = "--spaces"
    DISPLAYS = "--displays"


class Direction(StrEnum):
    """Cardinal directions understood by yabai's window selectors."""

    NORTH = "north"
    EAST = "east"
    SOUTH = "south"
    WEST = "west"


class WindowOp(StrEnum):
    """Window operations taking a direction or a window id."""

    FOCUS = "--focus"
    SWAP = "--swap"
    WARP = "--warp"


class SpaceKeyword(StrEnum):
    """Symbolic targets for `focus-space`."""

    NEXT = "next"
    PREV = "prev"
    RECENT = "recent"
    EXTRA = "extra"


SpaceArg = SpaceKeyword | int


@dataclass(order=True)
class VersionInfo:
    """Stores version information."""

    major: int = 0
    minor: int = 0
    micro: int = 0

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.micro}"


class ExitCode(IntEnum):
    """Exit codes for the yabaictl CLI."""

    SUCCESS = 0
    COMMAND_ERROR = 1  # yabai reported a failure, same code as `yabai -m`
    USAGE_ERROR = 2  # invalid arguments (argparse's own code)
    CONNECTION_ERROR = 3  # cannot reach the daemon
    VERSION_ERROR = 4  # daemon too old or speaking another format
    PRECONDITION_ERROR = 5  # layout does not allow the command
    CONFIG_ERROR = 6  # invalid configuration file


class YabaictlError(Exception):
    """Base class for errors which are reported to the user."""

    exit_code: ExitCode = ExitCode.COMMAND_ERROR


class DaemonError(YabaictlError):
    """yabai replied with a failure message."""

    exit_code = ExitCode.COMMAND_ERROR


class DaemonUnreachable(YabaictlError):
    """yabai is not running or does not answer."""

    exit_code = ExitCode.CONNECTION_ERROR


class VersionMismatch(YabaictlError):
    """yabai speaks a protocol this tool does not target."""

    exit_code = ExitCode.VERSION_ERROR


class PreconditionFailed(YabaictlError):
    """The current layout does not allow the requested command."""

    exit_code = ExitCode.PRECONDITION_ERROR


class ConfigError(YabaictlError):
    """The configuration file can't be used."""

    exit_code = ExitCode.CONFIG_ERROR
