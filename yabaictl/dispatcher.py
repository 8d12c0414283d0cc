"""Monitor-aware command dispatcher.

Every `run_<name>` coroutine implements the `<name>` subcommand: it reads the
layout from yabai, resolves the target and sends the matching messages.
"""

import asyncio
import json
from dataclasses import asdict
from typing import cast

from .config import Configuration
from .ipc import check_version, get_controls
from .layout import (
    MAX_DISPLAYS,
    display_assignments,
    expected_space_count,
    next_label_index,
    paired_label_index,
    parse_label_index,
    prev_label_index,
    space_label,
    space_labels,
)
from .logging_setup import get_logger
from .models import DaemonError, Direction, PreconditionFailed, QueryDomain, SpaceArg, SpaceInfo, SpaceKeyword, WindowOp
from .states import YabaiStates

__all__ = ["Dispatcher", "get_commands_help"]

ALREADY_FOCUSED = "cannot focus an already focused space."
ALREADY_ON_DISPLAY = "acting space is already located on the given display."
WINDOW_GONE = ("could not locate the window to act on!", "is not a valid option for SPACE_SEL")
NO_WINDOW_IN_SPACE = "could not locate the selected window."

REORGANIZE_PASSES = 2


class Dispatcher:
    """Resolve multi-display targets and run yabai commands."""

    def __init__(self, config: Configuration, name: str = "dispatcher") -> None:
        self.config = config
        self.log = get_logger(name)
        self.yabai_message, self.yabai_query, self.query_states = get_controls(self.log)

    @property
    def num_spaces(self) -> int:
        return self.config.num_spaces

    async def prepare(self) -> None:
        """Fail early if yabai speaks another message format."""
        if self.config.get_bool("check_version", True):
            await check_version(self.config.get_str("yabai_path", "yabai"), logger=self.log)

    # Single messages {{{

    async def focus_space(self, selector: str | int) -> None:
        """Focus a space by index, label or yabai selector."""
        await self.yabai_message("space", "--focus", selector, ignore=(ALREADY_FOCUSED,))

    async def label_space(self, space_index: int, label: str) -> None:
        await self.yabai_message("space", space_index, "--label", label)

    async def move_space_to_display(self, space_index: int, display_index: int) -> None:
        await self.yabai_message("space", space_index, "--display", display_index, ignore=(ALREADY_ON_DISPLAY,))

    async def move_window_to_space(self, window_id: int, label: str) -> None:
        """Send a window to a labelled space, ignoring windows which vanished."""
        if not label:
            self.log.warning("Not moving %s to an unlabeled space", window_id)
            return
        await self.yabai_message("window", window_id, "--space", label, ignore=WINDOW_GONE)

    # }}}

    # Space restoration {{{

    async def even_spaces(self, states: YabaiStates, space_count: int | None = None) -> None:
        """Evenly split the spaces among the displays.

        Only the first `space_count` spaces are moved (the current ones by default),
        yabai rejects indexes which do not exist yet.
        """
        space_count = states.num_spaces if space_count is None else space_count
        for space_index, display_index in display_assignments(states.num_displays, self.num_spaces):
            if space_index > space_count:
                continue
            await self.move_space_to_display(space_index, display_index)

    async def ensure_spaces(self, states: YabaiStates) -> YabaiStates:
        """Create or destroy spaces until every display has its share."""
        layout_key = "multi_display_layout" if states.num_displays > 1 else "single_display_layout"
        layout = self.config.get_str(layout_key)
        delay = self.config.get_float("focus_delay")

        # Visiting every space lets yabai refresh its window lists, which are
        # empty right after a reload (except for the focused space)
        focused = states.focused_space()
        for space in states.spaces:
            if space["is-native-fullscreen"]:
                continue
            await self.focus_space(space["index"])
            await asyncio.sleep(delay)
            await self.yabai_message("space", "--layout", layout)
        await self.focus_space(focused["index"])

        states = await self.query_states()
        target = expected_space_count(states.num_displays, self.num_spaces)

        # Spread first: destroying the last space of a display fails
        await self.even_spaces(states)
        if states.num_spaces < target:
            for _ in range(target - states.num_spaces):
                await self.yabai_message("space", "--create")
        elif states.num_spaces > target:
            for _ in range(states.num_spaces - target):
                await self.yabai_message("space", target + 1, "--destroy")
        await self.even_spaces(states, target)

        return await self.query_states()

    async def ensure_labels(self, states: YabaiStates) -> YabaiStates:
        """Label every space according to the display count."""
        for space_index, label in space_labels(states.num_displays, states.num_spaces, self.num_spaces).items():
            await self.label_space(space_index, label)
        return await self.query_states()

    async def reorganize_spaces(self, states: YabaiStates) -> YabaiStates:
        """Move windows out of the reserved space.

        yabai sometimes drops a window move, a second pass picks up the leftovers.
        """
        for attempt in range(REORGANIZE_PASSES):
            windows = states.reserved_windows()
            if not windows:
                return states
            if attempt:
                self.log.info("windows %s are still on the reserved space, moving them again", windows)
            for window_id in windows:
                await self.move_window_to_space(window_id, space_label(1))
            states = await self.query_states()
        if states.reserved_windows():
            self.log.warning("windows %s could not be moved out of the reserved space", states.reserved_windows())
        return states

    async def restore(self, states: YabaiStates) -> YabaiStates:
        """Rebuild spaces, labels and window placement."""
        states = await self.ensure_spaces(states)
        states = await self.ensure_labels(states)
        return await self.reorganize_spaces(states)

    async def restore_if_necessary(self, states: YabaiStates) -> YabaiStates:
        """Restore spaces when an unlabeled one shows up (eg. a display was plugged in)."""
        unlabeled = states.find_unlabeled_space()
        if unlabeled is None:
            return states
        self.log.warning("Space %s has no label, restoring spaces", unlabeled["index"])
        return await self.restore(states)

    # }}}

    # Commands {{{

    async def run_restore_spaces(self) -> None:
        """Rebuild the spaces: count, labels, display assignment and layout."""
        await self.restore(await self.query_states())

    async def run_focus_space(self, space: SpaceArg) -> None:
        """<next|prev|recent|extra|N> Focus a space, bringing up both halves of a composite desktop.

        With two or three displays, spaces s1/s2, s3/s4... are shown together.
        """
        states = await self.restore_if_necessary(await self.query_states())
        focused_index = states.focused_label_index()
        display_count = 2 if states.num_displays >= 2 else 1  # noqa: PLR2004
        label_index = await self._resolve_space(space, focused_index, display_count)
        self.log.debug("focus_space: label_index=%s", label_index)

        if states.find_space_by_label_index(label_index) is None:
            msg = f"no space labeled {space_label(label_index)}"
            raise PreconditionFailed(msg)

        if states.num_displays == 1:
            await self.focus_space(space_label(label_index))
        elif states.num_displays <= MAX_DISPLAYS:
            neighbor_index = paired_label_index(label_index)
            neighbor = states.find_space_by_label_index(neighbor_index)
            # no need to bring up the other half if already shown
            if neighbor and focused_index != neighbor_index and not neighbor["is-visible"]:
                await self.focus_space(space_label(neighbor_index))
            await self.focus_space(space_label(label_index))
        else:
            msg = f"don't know how to handle {states.num_displays} monitors"
            raise PreconditionFailed(msg)

    async def _resolve_space(self, space: SpaceArg, focused_index: int, display_count: int) -> int:
        """Turn a `focus-space` argument into a label index."""
        match space:
            case SpaceKeyword.NEXT:
                return next_label_index(focused_index, display_count, self.num_spaces)
            case SpaceKeyword.PREV:
                return prev_label_index(focused_index, display_count, self.num_spaces)
            case SpaceKeyword.EXTRA:
                return self.num_spaces + 1
            case SpaceKeyword.RECENT:
                recent = cast(SpaceInfo, await self.yabai_query(QueryDomain.SPACES, "--space", "recent"))
                index = parse_label_index(recent["label"])
                if index is None:
                    msg = f"recent space {recent['index']} has no usable label"
                    raise PreconditionFailed(msg)
                if display_count > 1 and paired_label_index(index) == focused_index:
                    # focus-space brings up the pair first, so yabai's recent space is often the other half
                    self.log.warning("recent space %s belongs to the focused desktop", recent["label"])
                return index
        return int(space)

    async def run_focus_window(self, direction: Direction) -> None:
        """<north|east|south|west> Focus the window in the given direction, across displays."""
        await self._operate_window(WindowOp.FOCUS, direction)

    async def run_swap_window(self, direction: Direction) -> None:
        """<north|east|south|west> Swap the focused window with its neighbor, across displays."""
        await self._operate_window(WindowOp.SWAP, direction)

    async def run_warp_window(self, direction: Direction) -> None:
        """<north|east|south|west> Warp the focused window next to its neighbor, across displays."""
        await self._operate_window(WindowOp.WARP, direction)

    async def _operate_window(self, op: WindowOp, direction: Direction) -> None:
        """Run `window <op> <direction>`, crossing to the next display at the edge."""
        states = await self.restore_if_necessary(await self.query_states())
        try:
            await self.yabai_message("window", op, direction)
        except DaemonError as e:
            if direction not in {Direction.EAST, Direction.WEST}:
                raise
            if f"could not locate a {direction}ward managed window" not in str(e) and NO_WINDOW_IN_SPACE not in str(e):
                raise
            await self._operate_window_across(op, direction, states, e)

    async def _operate_window_across(self, op: WindowOp, direction: Direction, states: YabaiStates, error: DaemonError) -> None:
        """Handle a window operation which hit the edge of the focused space."""
        edge = "first-window" if direction == Direction.EAST else "last-window"

        if states.num_displays == 1:
            # wrap around within the space
            window_id = states.focused_space()[edge]  # type: ignore[literal-required]
            if not window_id:
                raise error
            await self.yabai_message("window", op, window_id)
            return

        if states.num_displays > MAX_DISPLAYS:
            msg = f"don't know how to handle {states.num_displays} monitors"
            raise PreconditionFailed(msg)

        neighbor = states.find_space_by_label_index(paired_label_index(states.focused_label_index()))
        if neighbor is None:
            raise error

        if op == WindowOp.FOCUS:
            window_id = neighbor[edge]  # type: ignore[literal-required]
            # first-window and last-window can be stale: the space is most
            # likely empty, with a hidden window or two
            if not window_id or window_id not in neighbor["windows"]:
                window_id = states.focused_space()[edge]  # type: ignore[literal-required]
            if not window_id:
                raise error
            self.log.debug("next_window=%s", window_id)
            await self.yabai_message("window", op, window_id)
            return

        if neighbor["windows"]:
            await self.yabai_message("window", op, neighbor[edge])  # type: ignore[literal-required]
        else:
            await self.yabai_message("window", "--space", neighbor["label"])
        await self.focus_space(neighbor["label"])

    async def run_focus_display(self) -> None:
        """Focus the other display (exactly two displays)."""
        states = await self.query_states()
        target = states.other_display()
        await self.yabai_message("display", "--focus", target["index"])

    async def run_move_window_to_display(self) -> None:
        """Move the focused window to the other display and keep it focused (exactly two displays)."""
        states = await self.query_states()
        window = states.focused_window()
        target = states.other_display(window["display"])
        self.log.info("moving window %s to display %s", window["id"], target["index"])
        await self.yabai_message("window", window["id"], "--display", target["index"])
        # yabai leaves the focus on the display the window came from
        await self.yabai_message("window", "--focus", window["id"])

    async def run_states(self) -> str:
        """Print spaces, displays and windows as JSON."""
        states = await self.query_states()
        return json.dumps(asdict(states), indent=2)

    # }}}


def get_commands_help() -> dict[str, str]:
    """Return the docstring of every command, by command name."""
    docs = {}
    for name in dir(Dispatcher):
        if not name.startswith("run_"):
            continue
        docs[name[4:].replace("_", "-")] = getattr(Dispatcher, name).__doc__ or "N/A"
    return docs

