"""Space labelling scheme and target resolution.

Desktop 1 is reserved: macOS misbehaves when windows live there, so nothing
is put on it. The other spaces are labelled "s1" .. "sN".

With two monitors, the one on the right being primary (display 1)::

    Right monitor:  reserved s2 s4 s6 s8 s10   <= yabai space labels
                    Desktop1 D2 D3 D4 D5 D6    <= macOS desktops
    Left monitor:   s1 s3 s5 s7 s9
                    D7 D8 D9 D10 D11

s1 and s2 form a single composite desktop, so do s3 and s4, and so on. A third
display gets one extra space, labelled "s{N+1}".
"""

__all__ = [
    "MAX_DISPLAYS",
    "display_assignments",
    "expected_space_count",
    "next_label_index",
    "paired_label_index",
    "parse_label_index",
    "prev_label_index",
    "space_label",
    "space_labels",
]

from .constants import RESERVED_LABEL
from .models import PreconditionFailed

MAX_DISPLAYS = 3
LABEL_PREFIX = "s"


def _check_displays(num_displays: int) -> None:
    if not 1 <= num_displays <= MAX_DISPLAYS:
        msg = f"don't know how to handle {num_displays} monitors"
        raise PreconditionFailed(msg)


def space_label(label_index: int) -> str:
    """Return the label of a working space: 3 -> "s3"."""
    return f"{LABEL_PREFIX}{label_index}"


def parse_label_index(label: str) -> int | None:
    """Return the index of a working space label: "s3" -> 3, else None."""
    if not label.startswith(LABEL_PREFIX):
        return None
    try:
        return int(label[len(LABEL_PREFIX) :])
    except ValueError:
        return None


def paired_label_index(label_index: int) -> int:
    """Return the other half of a composite desktop (1 <-> 2, 3 <-> 4...)."""
    return label_index - 1 if label_index % 2 == 0 else label_index + 1


def expected_space_count(num_displays: int, num_spaces: int) -> int:
    """Number of macOS spaces the scheme needs, the reserved one included."""
    _check_displays(num_displays)
    return num_spaces + 1 + max(0, num_displays - 2)


def display_assignments(num_displays: int, num_spaces: int) -> list[tuple[int, int]]:
    """Return (space index, display index) pairs splitting spaces evenly.

    The first half of the working spaces goes to display 1, the other half to
    display 2 and a third display gets the single extra space.
    """
    _check_displays(num_displays)
    if num_displays == 1:
        return []
    half = num_spaces // 2
    moves = [(i + 1, 1 if i <= half else 2) for i in range(1, num_spaces + 1)]
    if num_displays > 2:  # noqa: PLR2004
        moves.append((num_spaces + 2, 3))
    return moves


def space_labels(num_displays: int, total_spaces: int, num_spaces: int) -> dict[int, str]:
    """Return the label of every space index, from 1 to `total_spaces`."""
    _check_displays(num_displays)
    labels = {1: RESERVED_LABEL}
    half = num_spaces // 2
    for i in range(1, total_spaces):
        if num_displays == 1:
            labels[i + 1] = space_label(i)
        elif i <= half:
            labels[i + 1] = space_label(i * 2)
        elif i <= num_spaces:
            labels[i + 1] = space_label((i - half) * 2 - 1)
        else:
            labels[i + 1] = space_label(num_spaces + 1)
    return labels


def next_label_index(focused: int, display_count: int, num_spaces: int) -> int:
    """Label index `display_count` steps after `focused`, wrapping around."""
    index = focused + display_count
    if index > num_spaces:
        index %= num_spaces
    return index


def prev_label_index(focused: int, display_count: int, num_spaces: int) -> int:
    """Label index `display_count` steps before `focused`, wrapping around."""
    if focused <= display_count:
        return num_spaces - (display_count - focused)
    return focused - display_count
