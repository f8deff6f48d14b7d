"""
Abstract base classes for editing tools.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass

from ..actions import ActionStack
from ..classes.chart import Chart
from ..screen import Point, ScreenState, Shape

__all__ = [
    "CursorInfo",
    "CursorObject",
]


@dataclass(frozen=True)
class CursorInfo:
    """
    Where the pointer is, in chart terms.

    :param tick: The tick snapped to the editor grid.
    :param tick_f: The exact (unsnapped) tick.
    :param lane: The horizontal position within the track, in [0, 6].
    :param pos: The pointer's screen position.
    """

    tick: int
    tick_f: float
    lane: float
    pos: Point


class CursorObject(ABC):
    """
    An abstract base class for tools that turn pointer input into chart edits.

    Tools receive the chart read-only, and only ever change it by committing actions to the action stack.
    """

    @abstractmethod
    def on_interaction_start(self, screen: ScreenState, cursor: CursorInfo, chart: Chart, actions: ActionStack) -> None:
        """Handle the primary button being pressed."""
        pass

    @abstractmethod
    def on_interaction_end(self, screen: ScreenState, cursor: CursorInfo, chart: Chart, actions: ActionStack) -> None:
        """Handle the primary button being released."""
        pass

    @abstractmethod
    def on_secondary_click(self, screen: ScreenState, cursor: CursorInfo, chart: Chart, actions: ActionStack) -> None:
        """Handle a click of the secondary (middle) button."""
        pass

    @abstractmethod
    def on_update(self, cursor: CursorInfo) -> None:
        """Handle pointer motion."""
        pass

    @abstractmethod
    def render_overlay(self, screen: ScreenState) -> list[Shape]:
        """Draw the tool's uncommitted state."""
        pass

    @abstractmethod
    def reset(self) -> None:
        """Abandon any gesture in progress."""
        pass
