"""
Base, generic classes supporting other more specialized classes.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

__all__ = [
    "KsonEntity",
    "Validateable",
    "ChartParseError",
    "ActionError",
    "LaserSectionError",
    "TimeSignature",
]


class KsonEntity(ABC):
    """An abstract base class for objects that directly represent an entity in KSON file format."""

    @abstractmethod
    def to_kson(self) -> Any:
        """Convert the object to a JSON-ready value in KSON file format."""
        pass

    @classmethod
    @abstractmethod
    def from_kson(cls, data: Any):
        """
        Create an object from a JSON value in KSON file format.

        :raises KeyError: if a required field is missing.
        :raises ValueError: if any of the values is invalid.
        """
        pass


class Validateable(ABC):
    """An abstract base class for classes that require validation."""

    @abstractmethod
    def validate(self):
        """
        Perform validation on the object.

        :raises ValueError: if any of the input is invalid.
        """
        pass


class ChartParseError(ValueError):
    """Raised when a chart file contains data that cannot be parsed."""

    line_no: int
    line: str

    def __init__(self, message: str, line_no: int = 0, line: str = ""):
        super().__init__(message)
        self.line_no = line_no
        self.line = line

    def __str__(self) -> str:
        message = super().__str__()
        if self.line_no:
            return f'{message} at line {self.line_no}: "{self.line}"'
        return message


class ActionError(Exception):
    """Raised when an action cannot be applied to a chart. The chart is left unchanged."""

    pass


class LaserSectionError(ValueError):
    """Raised when a laser section's points are not ordered by time."""

    pass


@dataclass(frozen=True)
class TimeSignature(Validateable, KsonEntity):
    """An immutable class that represents a time signature."""

    n: int = 4
    d: int = 4

    def __post_init__(self):
        self.validate()

    def validate(self):
        if self.n <= 0:
            raise ValueError(f"numerator must be positive (got {self.n})")
        if self.d <= 0:
            raise ValueError(f"denominator must be positive (got {self.d})")

    def measure_ticks(self, resolution: int) -> int:
        """Number of ticks in a measure of this time signature."""
        return resolution * 4 * self.n // self.d

    def to_kson(self) -> dict[str, int]:
        return {"n": self.n, "d": self.d}

    @classmethod
    def from_kson(cls, data: dict[str, Any]) -> "TimeSignature":
        return cls(int(data["n"]), int(data["d"]))
