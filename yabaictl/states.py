"""Snapshot of the layout reported by yabai."""

from dataclasses import dataclass, field

from .constants import RESERVED_LABEL
from .layout import parse_label_index, space_label
from .models import DisplayInfo, PreconditionFailed, SpaceInfo, WindowInfo

__all__ = ["YabaiStates"]

TWO_DISPLAYS = 2


@dataclass
class YabaiStates:
    """Spaces, displays and windows as returned by one round of queries."""

    spaces: list[SpaceInfo] = field(default_factory=list)
    displays: list[DisplayInfo] = field(default_factory=list)
    windows: list[WindowInfo] = field(default_factory=list)

    @property
    def num_spaces(self) -> int:
        return len(self.spaces)

    @property
    def num_displays(self) -> int:
        return len(self.displays)

    def focused_space(self) -> SpaceInfo:
        """Return the focused space.

        Raises:
            PreconditionFailed: yabai reports no focused space
        """
        for space in self.spaces:
            if space["has-focus"]:
                return space
        msg = "no focused space found"
        raise PreconditionFailed(msg)

    def focused_label_index(self) -> int:
        """Return the label index of the focused space (3 for "s3")."""
        space = self.focused_space()
        index = parse_label_index(space["label"])
        if index is None:
            msg = f"focused space {space['index']} has an unexpected label {space['label']!r}, run restore-spaces"
            raise PreconditionFailed(msg)
        return index

    def focused_window(self) -> WindowInfo:
        """Return the focused window.

        Raises:
            PreconditionFailed: no window has the focus
        """
        for window in self.windows:
            if window["has-focus"]:
                return window
        msg = "no focused window"
        raise PreconditionFailed(msg)

    def focused_display(self) -> DisplayInfo:
        """Return the display holding the focused space."""
        display_index = self.focused_space()["display"]
        for display in self.displays:
            if display["index"] == display_index:
                return display
        msg = f"display {display_index} of the focused space is unknown"
        raise PreconditionFailed(msg)

    def other_display(self, display_index: int | None = None) -> DisplayInfo:
        """Return the display which is not `display_index` (the focused one by default).

        Raises:
            PreconditionFailed: there are not exactly two displays
        """
        if self.num_displays != TWO_DISPLAYS:
            msg = f"expected exactly {TWO_DISPLAYS} displays, found {self.num_displays}"
            raise PreconditionFailed(msg)
        if display_index is None:
            display_index = self.focused_display()["index"]
        return next(display for display in self.displays if display["index"] != display_index)

    def find_space_by_label(self, label: str) -> SpaceInfo | None:
        for space in self.spaces:
            if space["label"] == label:
                return space
        return None

    def find_space_by_label_index(self, label_index: int) -> SpaceInfo | None:
        return self.find_space_by_label(space_label(label_index))

    def find_unlabeled_space(self) -> SpaceInfo | None:
        """Return a space without label, ignoring native fullscreen ones.

        Such a space shows up when a display is plugged in or when spaces were
        created outside of yabaictl. macOS gives every fullscreen app its own
        space, those come and go and are left alone.
        """
        for space in self.spaces:
            if not space["label"] and not space["is-native-fullscreen"]:
                return space
        return None

    def windows_in_space(self, label: str) -> list[int]:
        space = self.find_space_by_label(label)
        return list(space["windows"]) if space else []

    def reserved_windows(self) -> list[int]:
        """Windows sitting on the reserved space."""
        return self.windows_in_space(RESERVED_LABEL)
