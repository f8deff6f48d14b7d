"""
Tool for drawing laser sections and shaping their curves.

The tool is a small state machine:

- Idle: the next press either picks an existing section to edit, or starts a new one.
- New: every press adds a point to the working section. Pressing twice on the same spot commits the section.
- Edit: pressing on a curve control point of the picked section and dragging reshapes that segment.
"""
import copy
import itertools
import logging
import math
import sys

from collections.abc import Sequence
from dataclasses import dataclass

from .base import CursorInfo, CursorObject
from ..actions import (
    ActionStack,
    AddLaserSection,
    AdjustLaserCurve,
    RemoveLaserSection,
)
from ..classes.base import LaserSectionError
from ..classes.chart import (
    Chart,
    GraphSectionPoint,
    Interval,
    LaserSection,
)
from ..classes.enums import LaserSide
from ..screen import (
    LANE_COUNT,
    Circle,
    Color,
    Point,
    Polyline,
    ScreenState,
    Shape,
)
from ..utils import clamp, linear_map

__all__ = [
    "CONTROL_POINT_RADIUS",
    "IdleMode",
    "NewMode",
    "EditMode",
    "LaserEditMode",
    "LaserTool",
    "lane_to_value",
    "lane_to_curve_value",
    "get_control_point_pos",
]

CONTROL_POINT_RADIUS = 5.0
"""Distance in pixels within which a press grabs a curve control point."""
DEFAULT_CURVE = 0.5
LANE_VALUE_STEPS = 10
VALUE_EPSILON = sys.float_info.epsilon

# fmt: off
NEW_COLORS: dict[LaserSide, Color] = {
    LaserSide.LEFT : (  0,  92, 115, 255),
    LaserSide.RIGHT: (155,   5, 112, 255),
}
EDIT_COLOR: Color            = (  0, 194,   0, 255)
CONTROL_POINT_COLOR: Color   = (  0,   0, 255, 255)
ACTIVE_POINT_COLOR: Color    = (  0, 255,   0, 255)
# fmt: on
LASER_THICKNESS = 3.0

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IdleMode:
    pass


@dataclass(frozen=True)
class NewMode:
    pass


@dataclass(frozen=True)
class EditMode:
    section_index: int
    curving_index: int | None = None


LaserEditMode = IdleMode | NewMode | EditMode


def lane_to_value(lane: float) -> float:
    """Convert a lane number in [0, 6] to a laser value, rounded down to tenths."""
    return clamp(math.floor(LANE_VALUE_STEPS * lane / LANE_COUNT) / LANE_VALUE_STEPS, 0.0, 1.0)


def lane_to_curve_value(lane: float, wide: int = 1) -> float:
    """
    Convert a lane number to the unrounded laser value drawn at that position.

    Wide lasers span twice the track width, so the same lane maps closer to the center value.
    """
    return (lane / LANE_COUNT - 0.5) / wide + 0.5


def _new_point(ry: int, v: float) -> GraphSectionPoint:
    return GraphSectionPoint(ry, v, a=DEFAULT_CURVE, b=DEFAULT_CURVE)


def get_control_point_pos(
    screen: ScreenState,
    points: Sequence[GraphSectionPoint],
    start_y: int,
    wide: int = 1,
) -> Point | None:
    """
    Find where the curve control point of a laser segment is drawn.

    :param screen: The screen layout.
    :param points: The start and end points of the segment.
    :param start_y: The tick the laser section starts at.
    :param wide: The laser section's width multiplier.
    :raises ~ksoneditor.classes.base.LaserSectionError: if the segment ends before it starts.
    :returns: The screen position of the control point, or `None` if the segment has no control point.
    """
    start, end = points[0], points[1]
    if start.a is None or start.b is None or end.a is None or end.b is None:
        return None

    start_tick = start_y + start.ry
    end_tick = start_y + end.ry
    if start_tick > end_tick:
        raise LaserSectionError(f"laser segment starts at {start_tick} but ends at {end_tick}")
    if start_tick == end_tick:
        return None

    span = end_tick - start_tick
    a_tick = start_tick + start.a * span
    start_value = start.value_out
    for draw_range in screen.interval_to_ranges(Interval(start_tick, span)):
        s, e = draw_range.ticks
        if s <= a_tick <= e:
            value = start_value + start.b * (end.v - start_value)
            x = screen.value_to_x(value, wide, draw_range.x)
            y = linear_map(a_tick, domain=(s, e), range=(draw_range.y, draw_range.y + draw_range.h))
            return x, y
    return None


class LaserTool(CursorObject):
    def __init__(self, side: LaserSide):
        self.side = side
        self.section = LaserSection(0)
        self.mode: LaserEditMode = IdleMode()

    def _second_to_last(self) -> GraphSectionPoint | None:
        if len(self.section.v) < 2:
            return None
        return self.section.v[-2]

    def calc_ry(self, tick: int) -> int:
        """Tick relative to the working section, never earlier than the last placed point."""
        ry = max(tick - self.section.y, 0)
        second_last = self._second_to_last()
        if second_last is not None:
            ry = max(ry, second_last.ry)
        return ry

    def hit_test(self, chart: Chart, tick: int) -> int | None:
        """Find the index of the section on this tool's side that covers a tick."""
        for index, section in enumerate(chart.note.lasers(self.side)):
            if section.contains(tick):
                return index
        return None

    def on_interaction_start(self, screen: ScreenState, cursor: CursorInfo, chart: Chart, actions: ActionStack) -> None:
        value = lane_to_value(cursor.lane)

        match self.mode:
            case IdleMode():
                section_index = self.hit_test(chart, cursor.tick)
                if section_index is not None:
                    self.section = copy.deepcopy(chart.note.lasers(self.side)[section_index])
                    self.mode = EditMode(section_index)
                    logger.debug(f"{self.side} laser: editing section {section_index}")
                else:
                    self.section = LaserSection(cursor.tick, [_new_point(0, value), _new_point(0, value)])
                    self.mode = NewMode()
                    logger.debug(f"{self.side} laser: new section at {cursor.tick}")

            case NewMode():
                ry = self.calc_ry(cursor.tick)
                second_last = self._second_to_last()
                if second_last is not None:
                    if second_last.vf is not None:
                        finalize = ry == second_last.ry
                    else:
                        finalize = ry == second_last.ry and abs(value - second_last.v) < VALUE_EPSILON
                    if finalize:
                        self._finalize(actions)
                        return
                self.section.v.append(_new_point(ry, value))

            case EditMode(section_index=section_index):
                if self.hit_test(chart, cursor.tick) != section_index:
                    self.mode = IdleMode()
                    self.section = LaserSection(cursor.tick)
                    return
                for index, points in enumerate(itertools.pairwise(self.section.v)):
                    pos = get_control_point_pos(screen, points, self.section.y, self.section.wide)
                    if pos is not None and math.dist(pos, cursor.pos) < CONTROL_POINT_RADIUS:
                        self.mode = EditMode(section_index, index)

    def _finalize(self, actions: ActionStack) -> None:
        # The last point is the one following the cursor
        self.section.v.pop()
        section = self.section
        self.reset()
        if len(section.v) < 2:
            logger.debug(f"{self.side} laser: discarding section without length at {section.y}")
            return
        actions.new_action(AddLaserSection(self.side, section))

    def on_interaction_end(self, screen: ScreenState, cursor: CursorInfo, chart: Chart, actions: ActionStack) -> None:
        if not isinstance(self.mode, EditMode):
            return
        mode = self.mode
        self.mode = EditMode(mode.section_index)
        if mode.curving_index is not None:
            point = self.section.v[mode.curving_index]
            actions.new_action(AdjustLaserCurve(self.side, mode.section_index, mode.curving_index, point.a, point.b))

    def on_secondary_click(self, screen: ScreenState, cursor: CursorInfo, chart: Chart, actions: ActionStack) -> None:
        section_index = self.hit_test(chart, cursor.tick)
        if section_index is None:
            return
        self.reset()
        actions.new_action(RemoveLaserSection(self.side, section_index))

    def on_update(self, cursor: CursorInfo) -> None:
        match self.mode:
            case NewMode():
                ry = self.calc_ry(cursor.tick)
                value = lane_to_value(cursor.lane)
                second_last = self._second_to_last()
                last = self.section.v[-1]
                last.ry = ry
                last.v = value
                if second_last is not None:
                    # Moving straight sideways makes a slam
                    if second_last.ry == ry:
                        last.v = second_last.v
                        last.vf = value
                    else:
                        last.vf = None

            case EditMode(curving_index=curving_index):
                for point in self.section.v:
                    if point.a is None:
                        point.a = DEFAULT_CURVE
                    if point.b is None:
                        point.b = DEFAULT_CURVE
                if curving_index is None:
                    return

                point = self.section.v[curving_index]
                end_point = self.section.v[curving_index + 1]
                start_tick = self.section.y + point.ry
                end_tick = self.section.y + end_point.ry
                if end_tick != start_tick:
                    point.a = clamp((cursor.tick_f - start_tick) / (end_tick - start_tick), 0.0, 1.0)
                start_value = point.value_out
                if end_point.v != start_value:
                    cursor_value = lane_to_curve_value(cursor.lane, self.section.wide)
                    point.b = clamp((cursor_value - start_value) / (end_point.v - start_value), 0.0, 1.0)

    def render_overlay(self, screen: ScreenState) -> list[Shape]:
        if len(self.section.v) < 2:
            return []

        match self.mode:
            case NewMode():
                color = NEW_COLORS[self.side]
            case EditMode():
                color = EDIT_COLOR
            case _:
                return []

        shapes: list[Shape] = [
            Polyline(points, color, LASER_THICKNESS) for points in screen.laser_section_to_polylines(self.section)
        ]
        if isinstance(self.mode, EditMode):
            for index, points in enumerate(itertools.pairwise(self.section.v)):
                pos = get_control_point_pos(screen, points, self.section.y, self.section.wide)
                if pos is None:
                    continue
                point_color = ACTIVE_POINT_COLOR if self.mode.curving_index == index else CONTROL_POINT_COLOR
                shapes.append(Circle(pos, CONTROL_POINT_RADIUS, point_color))
        return shapes

    def reset(self) -> None:
        self.section = LaserSection(0)
        self.mode = IdleMode()
