"""
General purpose enumerations.
"""
from enum import Enum, unique

__all__ = [
    "ButtonKind",
    "LaserSide",
    "ChartTool",
    "Difficulty",
]


@unique
class ButtonKind(Enum):
    """Enumeration for the kind of button lane."""

    BT = 0
    FX = 1

    def __str__(self) -> str:
        return self.name

    @property
    def lane_count(self) -> int:
        return 4 if self is ButtonKind.BT else 2


@unique
class LaserSide(Enum):
    """Enumeration for the side of a laser lane. The value is the index into the laser lists."""

    LEFT = 0
    RIGHT = 1

    def __str__(self) -> str:
        return self.name.capitalize()


@unique
class ChartTool(Enum):
    """Enumeration for the editing tool that receives cursor input."""

    NONE = 0
    BT = 1
    FX = 2
    LLASER = 3
    RLASER = 4

    def __str__(self) -> str:
        match self:
            case ChartTool.LLASER:
                return "LL"
            case ChartTool.RLASER:
                return "RL"
        return self.name


class Difficulty(Enum):
    """Enumeration for the difficulty names used by KSH files."""

    LIGHT = 0
    CHALLENGE = 1
    EXTENDED = 2
    INFINITE = 3

    def __str__(self) -> str:
        return self.name.capitalize()

    def to_shorthand(self) -> str:
        # fmt: off
        return {
            Difficulty.LIGHT    : "LT",
            Difficulty.CHALLENGE: "CH",
            Difficulty.EXTENDED : "EX",
            Difficulty.INFINITE : "IN",
        }[self]
        # fmt: on
