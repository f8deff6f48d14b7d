"""
Editing tools that turn pointer input into chart actions.
"""
from .base import CursorInfo, CursorObject
from .button import ButtonInterval
from .laser import LaserTool
from ..classes.enums import (
    ButtonKind,
    ChartTool,
    LaserSide,
)

__all__ = [
    "CursorInfo",
    "CursorObject",
    "ButtonInterval",
    "LaserTool",
    "make_cursor_object",
]


def make_cursor_object(tool: ChartTool) -> CursorObject | None:
    """Create the cursor object for a tool. The ``NONE`` tool has no cursor object."""
    match tool:
        case ChartTool.BT:
            return ButtonInterval(ButtonKind.BT)
        case ChartTool.FX:
            return ButtonInterval(ButtonKind.FX)
        case ChartTool.LLASER:
            return LaserTool(LaserSide.LEFT)
        case ChartTool.RLASER:
            return LaserTool(LaserSide.RIGHT)
    return None
