"""
Reversible chart edits and the undo/redo history they are recorded in.
"""
import copy
import logging

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field

from .classes.base import ActionError
from .classes.chart import (
    Chart,
    Interval,
    LaserSection,
    insert_interval,
    insert_section,
)
from .classes.enums import (
    ButtonKind,
    LaserSide,
)

__all__ = [
    "Action",
    "AddInterval",
    "RemoveInterval",
    "AddLaserSection",
    "RemoveLaserSection",
    "AdjustLaserCurve",
    "ActionStack",
]

logger = logging.getLogger(__name__)


class Action(ABC):
    """
    An abstract base class for a reversible edit.

    Actions own all the data they need, so they can be replayed any number of times. ``apply`` may record whatever
    ``invert`` needs to restore the chart.
    """

    @property
    @abstractmethod
    def description(self) -> str:
        """A short human-readable label of the edit."""
        pass

    @abstractmethod
    def apply(self, chart: Chart) -> None:
        """
        Perform the edit.

        :raises ValueError: if the edit would break the chart's invariants.
        :raises IndexError: if the edit refers to an object that does not exist.
        """
        pass

    @abstractmethod
    def invert(self, chart: Chart) -> None:
        """Revert the edit made by the last call to :meth:`apply`."""
        pass


def _check_lane(kind: ButtonKind, lane: int):
    if not 0 <= lane < kind.lane_count:
        raise ValueError(f"invalid {kind} lane (got {lane})")


@dataclass
class AddInterval(Action):
    kind: ButtonKind
    lane: int
    interval: Interval

    def __post_init__(self):
        _check_lane(self.kind, self.lane)
        self.interval = copy.deepcopy(self.interval)

    @property
    def description(self) -> str:
        return f"Add {self.kind}"

    def apply(self, chart: Chart) -> None:
        insert_interval(chart.note.lane(self.kind, self.lane), copy.deepcopy(self.interval))

    def invert(self, chart: Chart) -> None:
        chart.note.lane(self.kind, self.lane).remove(self.interval)


@dataclass
class RemoveInterval(Action):
    kind: ButtonKind
    lane: int
    index: int

    _removed: Interval | None = field(default=None, init=False, repr=False)

    def __post_init__(self):
        _check_lane(self.kind, self.lane)

    @property
    def description(self) -> str:
        return f"Remove {self.kind}"

    def apply(self, chart: Chart) -> None:
        self._removed = chart.note.lane(self.kind, self.lane).pop(self.index)

    def invert(self, chart: Chart) -> None:
        if self._removed is None:
            raise IndexError("action was never applied")
        chart.note.lane(self.kind, self.lane).insert(self.index, copy.deepcopy(self._removed))


@dataclass
class AddLaserSection(Action):
    side: LaserSide
    section: LaserSection

    _index: int | None = field(default=None, init=False, repr=False)

    def __post_init__(self):
        self.section = copy.deepcopy(self.section)

    @property
    def description(self) -> str:
        return f"Add {self.side} Laser"

    def apply(self, chart: Chart) -> None:
        section = copy.deepcopy(self.section)
        section.validate()
        self._index = insert_section(chart.note.lasers(self.side), section)

    def invert(self, chart: Chart) -> None:
        if self._index is None:
            raise IndexError("action was never applied")
        chart.note.lasers(self.side).pop(self._index)


@dataclass
class RemoveLaserSection(Action):
    side: LaserSide
    index: int

    _removed: LaserSection | None = field(default=None, init=False, repr=False)

    @property
    def description(self) -> str:
        return f"Remove {str(self.side).lower()} laser"

    def apply(self, chart: Chart) -> None:
        self._removed = chart.note.lasers(self.side).pop(self.index)

    def invert(self, chart: Chart) -> None:
        if self._removed is None:
            raise IndexError("action was never applied")
        chart.note.lasers(self.side).insert(self.index, copy.deepcopy(self._removed))


@dataclass
class AdjustLaserCurve(Action):
    """Overwrite the curve parameters of a single point in a committed laser section."""

    side: LaserSide
    section_index: int
    point_index: int
    a: float | None
    b: float | None

    _previous: tuple[float | None, float | None] | None = field(default=None, init=False, repr=False)

    @property
    def description(self) -> str:
        return f"Adjust {self.side} Laser Curve"

    def apply(self, chart: Chart) -> None:
        point = chart.note.lasers(self.side)[self.section_index].v[self.point_index]
        self._previous = point.a, point.b
        point.a, point.b = self.a, self.b
        point.validate()

    def invert(self, chart: Chart) -> None:
        if self._previous is None:
            raise IndexError("action was never applied")
        point = chart.note.lasers(self.side)[self.section_index].v[self.point_index]
        point.a, point.b = self._previous


class ActionStack:
    """
    Linear undo/redo history over a single chart.

    The stack owns the chart. Every edit runs against a copy which replaces the chart only once the edit has
    succeeded, so a failing edit never leaves a partially modified chart behind.
    """

    def __init__(self, chart: Chart | None = None):
        self._chart = chart if chart is not None else Chart()
        self._undo_stack: list[Action] = []
        self._redo_stack: list[Action] = []

    @property
    def chart(self) -> Chart:
        """The current chart. Callers must treat it as read-only."""
        return self._chart

    def _run(self, action: Action, func: Callable[[Chart], None], verb: str):
        working = copy.deepcopy(self._chart)
        try:
            func(working)
        except (ValueError, IndexError) as e:
            raise ActionError(f'cannot {verb} "{action.description}": {e}') from e
        self._chart = working

    def new_action(self, action: Action) -> None:
        """
        Apply an action and record it in the history. Any redo history is discarded.

        :raises ~ksoneditor.classes.base.ActionError: if the action cannot be applied. The chart is left unchanged.
        """
        self._run(action, action.apply, "apply")
        self._undo_stack.append(action)
        self._redo_stack.clear()
        logger.debug(f'committed "{action.description}"')

    def undo(self) -> bool:
        """
        Revert the most recent action.

        :returns: `True` if an action was reverted, `False` if there was nothing to undo.
        """
        if not self._undo_stack:
            return False
        action = self._undo_stack[-1]
        self._run(action, action.invert, "undo")
        self._redo_stack.append(self._undo_stack.pop())
        logger.debug(f'undid "{action.description}"')
        return True

    def redo(self) -> bool:
        """
        Re-apply the most recently reverted action.

        :returns: `True` if an action was re-applied, `False` if there was nothing to redo.
        """
        if not self._redo_stack:
            return False
        action = self._redo_stack[-1]
        self._run(action, action.apply, "redo")
        self._undo_stack.append(self._redo_stack.pop())
        logger.debug(f'redid "{action.description}"')
        return True

    def prev_action_desc(self) -> str | None:
        return self._undo_stack[-1].description if self._undo_stack else None

    def next_action_desc(self) -> str | None:
        return self._redo_stack[-1].description if self._redo_stack else None

    def reset(self, chart: Chart | None = None) -> None:
        """Replace the chart and forget all history."""
        self._chart = chart if chart is not None else Chart()
        self._undo_stack.clear()
        self._redo_stack.clear()
        logger.debug("action history cleared")
