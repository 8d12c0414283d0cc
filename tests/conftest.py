" generic fixtures "
from copy import deepcopy
from unittest.mock import AsyncMock, Mock

import pytest

from yabaictl.config import Configuration
from yabaictl.states import YabaiStates


def pytest_configure():
    "Runs once before all"
    from yabaictl.logging_setup import init_logger

    init_logger("/dev/null", force_debug=True)


def make_space(index, label, display, windows=(), focus=False, visible=False, fullscreen=False):
    windows = list(windows)
    return {
        "id": 100 + index,
        "uuid": f"UUID-{index}",
        "index": index,
        "label": label,
        "type": "bsp",
        "display": display,
        "windows": windows,
        "first-window": windows[0] if windows else 0,
        "last-window": windows[-1] if windows else 0,
        "has-focus": focus,
        "is-visible": visible or focus,
        "is-native-fullscreen": fullscreen,
    }


def make_display(index, x=0, spaces=()):
    return {
        "id": 1000 + index,
        "uuid": f"DISPLAY-{index}",
        "index": index,
        "frame": {"x": float(x), "y": 0.0, "w": 2560.0, "h": 1440.0},
        "spaces": list(spaces),
    }


def make_window(wid, display, space, focus=False):
    return {
        "id": wid,
        "pid": 500 + wid,
        "app": "Terminal",
        "title": f"window {wid}",
        "frame": {"x": 0.0, "y": 0.0, "w": 800.0, "h": 600.0},
        "display": display,
        "space": space,
        "has-focus": focus,
        "is-visible": True,
        "is-minimized": False,
        "is-hidden": False,
        "is-floating": False,
        "is-sticky": False,
        "is-native-fullscreen": False,
    }


# Right monitor (display 1): reserved s2 s4 s6 s8 s10
# Left monitor (display 2):  s1 s3 s5 s7 s9
TWO_DISPLAYS_SPACES = [
    make_space(1, "reserved", 1),
    make_space(2, "s2", 1, windows=[20, 21], focus=True),
    make_space(3, "s4", 1),
    make_space(4, "s6", 1),
    make_space(5, "s8", 1),
    make_space(6, "s10", 1),
    make_space(7, "s1", 2, windows=[30, 31], visible=True),
    make_space(8, "s3", 2),
    make_space(9, "s5", 2),
    make_space(10, "s7", 2),
    make_space(11, "s9", 2),
]

TWO_DISPLAYS = [make_display(1, x=2560, spaces=range(1, 7)), make_display(2, x=0, spaces=range(7, 12))]

TWO_DISPLAYS_WINDOWS = [
    make_window(20, 1, 2, focus=True),
    make_window(21, 1, 2),
    make_window(30, 2, 7),
    make_window(31, 2, 7),
]

ONE_DISPLAY_SPACES = [make_space(1, "reserved", 1)] + [
    make_space(i + 1, f"s{i}", 1, windows=[10] if i == 1 else (), focus=i == 1) for i in range(1, 11)
]


@pytest.fixture
def two_displays():
    "Labelled layout on two displays, s2 focused"
    return YabaiStates(
        spaces=deepcopy(TWO_DISPLAYS_SPACES),
        displays=deepcopy(TWO_DISPLAYS),
        windows=deepcopy(TWO_DISPLAYS_WINDOWS),
    )


@pytest.fixture
def one_display():
    "Labelled layout on a single display, s1 focused"
    return YabaiStates(
        spaces=deepcopy(ONE_DISPLAY_SPACES),
        displays=[make_display(1, spaces=range(1, 12))],
        windows=[make_window(10, 1, 2, focus=True)],
    )


@pytest.fixture
def test_logger():
    return Mock()


@pytest.fixture
def config(test_logger):
    return Configuration({"check_version": False, "focus_delay": 0}, logger=test_logger)


@pytest.fixture
def dispatcher(config):
    "Dispatcher with mocked yabai access"
    from yabaictl.dispatcher import Dispatcher

    disp = Dispatcher(config)
    disp.yabai_message = AsyncMock(return_value="")
    disp.yabai_query = AsyncMock()
    disp.query_states = AsyncMock()
    return disp
