"""
Mapping between chart coordinates (ticks and lanes) and screen coordinates, plus the drawing primitives handed to the
editor window.

The chart is laid out in columns of a fixed number of beats. Each column is read from bottom to top, and columns are
placed from left to right.
"""
import itertools
import math

from dataclasses import dataclass
from typing import NamedTuple

from .classes.chart import (
    DEFAULT_RESOLUTION,
    Interval,
    LaserSection,
)
from .utils import clamp, interpolate, linear_map

__all__ = [
    "LANE_COUNT",
    "Color",
    "Point",
    "DrawRange",
    "Polyline",
    "Circle",
    "Rectangle",
    "Shape",
    "ScreenState",
]

LANE_COUNT = 6
"""The track is six lanes wide: the laser margins at both edges, and four BT lanes in between."""

LASER_SAMPLES_PER_BEAT = 8

Color = tuple[int, int, int, int]
Point = tuple[float, float]


class DrawRange(NamedTuple):
    """The part of an interval that falls in a single column. ``h`` is negative, since ticks go upwards."""

    x: float
    y: float
    h: float
    ticks: tuple[int, int]


@dataclass
class Polyline:
    points: list[Point]
    color: Color
    thickness: float = 1.0


@dataclass
class Circle:
    center: Point
    radius: float
    color: Color


@dataclass
class Rectangle:
    pmin: Point
    pmax: Point
    color: Color


Shape = Polyline | Circle | Rectangle


@dataclass
class ScreenState:
    # fmt: off
    w: float             = 1280.0
    h: float             = 720.0
    top_margin: float    = 60.0
    bottom_margin: float = 10.0
    track_width: float   = 72.0
    beats_per_col: int   = 16
    x_offset: float      = 0.0
    resolution: int      = DEFAULT_RESOLUTION
    # fmt: on

    @property
    def track_height(self) -> float:
        return self.h - self.top_margin - self.bottom_margin

    @property
    def ticks_per_col(self) -> int:
        return self.beats_per_col * self.resolution

    @property
    def column_width(self) -> float:
        """Horizontal distance between two columns: the track itself, and an equally wide gap."""
        return self.track_width * 2

    def lane_width(self) -> float:
        return self.track_width / LANE_COUNT

    def column_x(self, col: int) -> float:
        return col * self.column_width - self.x_offset

    def _column_y(self, col_tick: float) -> float:
        return self.h - self.bottom_margin - col_tick / self.ticks_per_col * self.track_height

    def tick_to_pos(self, tick: int) -> Point:
        """
        Convert a tick to a screen position.

        :returns: The left edge of the track, and the height of the tick within its column.
        """
        col, col_tick = divmod(tick, self.ticks_per_col)
        return self.column_x(col), self._column_y(col_tick)

    def pos_to_tick(self, x: float, y: float) -> float:
        """Convert a screen position to a (fractional) tick. Positions outside the chart are clamped to it."""
        col = max(math.floor((x + self.x_offset) / self.column_width), 0)
        progress = clamp((self.h - self.bottom_margin - y) / self.track_height, 0.0, 1.0)
        return (col + progress) * self.ticks_per_col

    def snap_tick(self, tick_f: float, division: int) -> int:
        """
        Round a tick down to a grid.

        :param tick_f: The tick to snap.
        :param division: Number of grid lines in a 4/4 measure, e.g. 16 for sixteenth notes.
        """
        step = max(self.resolution * 4 // division, 1)
        return int(tick_f // step) * step

    def pos_to_lane(self, x: float) -> float:
        """Convert a screen x position to a lane number in [0, 6], relative to the track in its column."""
        in_column = (x + self.x_offset) % self.column_width
        return clamp(in_column / self.lane_width(), 0.0, float(LANE_COUNT))

    def value_to_x(self, value: float, wide: int = 1, column_x: float = 0.0) -> float:
        """Convert a laser value to a screen x position. Wide lasers span twice the track width."""
        center = column_x + self.track_width / 2
        return center + (value - 0.5) * self.track_width * wide

    def interval_to_ranges(self, interval: Interval) -> list[DrawRange]:
        """
        Split an interval into the parts that fall in each column it crosses.

        A chip produces a single range of zero height.
        """
        tpc = self.ticks_per_col
        ranges: list[DrawRange] = []
        start, end = interval.y, interval.end
        while True:
            col = start // tpc
            col_end = min(end, (col + 1) * tpc)
            h = -(col_end - start) / tpc * self.track_height
            ranges.append(DrawRange(self.column_x(col), self._column_y(start - col * tpc), h, (start, col_end)))
            if col_end >= end:
                break
            start = col_end
        return ranges

    def laser_section_to_polylines(self, section: LaserSection) -> list[list[Point]]:
        """
        Sample a laser section into lines on the screen.

        Slams are drawn as horizontal segments. Segments crossing a column boundary are split.
        """
        polylines: list[list[Point]] = []
        step = max(self.resolution // LASER_SAMPLES_PER_BEAT, 1)
        for point in section.v:
            if point.vf is not None:
                x, y = self.tick_to_pos(section.y + point.ry)
                polylines.append(
                    [(self.value_to_x(point.v, section.wide, x), y), (self.value_to_x(point.vf, section.wide, x), y)]
                )

        for point_i, point_f in itertools.pairwise(section.v):
            if point_f.ry <= point_i.ry:
                continue
            start_tick = section.y + point_i.ry
            span = point_f.ry - point_i.ry
            for draw_range in self.interval_to_ranges(Interval(start_tick, span)):
                s, e = draw_range.ticks
                ticks = list(range(s, e, step)) + [e]
                line: list[Point] = []
                for tick in ticks:
                    value = interpolate((tick - start_tick) / span, point_i.value_out, point_f.v, point_i.curve)
                    y = linear_map(tick, domain=(s, e), range=(draw_range.y, draw_range.y + draw_range.h))
                    line.append((self.value_to_x(value, section.wide, draw_range.x), y))
                polylines.append(line)
        return polylines
