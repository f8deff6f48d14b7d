import logging

from .base import CursorInfo, CursorObject
from ..actions import ActionStack, AddInterval, RemoveInterval
from ..classes.chart import Chart, Interval
from ..classes.enums import ButtonKind
from ..screen import Color, Rectangle, ScreenState, Shape
from ..utils import clamp

__all__ = [
    "ButtonInterval",
]

# fmt: off
BT_COLOR: Color = (255, 255, 255, 128)
FX_COLOR: Color = (255,  77,   0, 128)
# fmt: on
CHIP_HEIGHT = 2.0

logger = logging.getLogger(__name__)


class ButtonInterval(CursorObject):
    """Tool that places BT or FX objects. Dragging while pressed creates a hold."""

    def __init__(self, kind: ButtonKind):
        self.kind = kind
        self.pressed = False
        self.interval = Interval(0)
        self.lane = 0

    def lane_from_cursor(self, lane: float) -> int:
        if self.kind is ButtonKind.BT:
            return clamp(int(lane), 1, 4) - 1
        return 0 if lane < 3 else 1

    def find_interval(self, chart: Chart, lane: int, tick: int) -> int | None:
        for index, interval in enumerate(chart.note.lane(self.kind, lane)):
            if interval.contains(tick):
                return index
        return None

    def on_interaction_start(self, screen: ScreenState, cursor: CursorInfo, chart: Chart, actions: ActionStack) -> None:
        self.pressed = True
        self.lane = self.lane_from_cursor(cursor.lane)
        self.interval = Interval(cursor.tick)

    def on_interaction_end(self, screen: ScreenState, cursor: CursorInfo, chart: Chart, actions: ActionStack) -> None:
        if not self.pressed:
            return
        interval = Interval(self.interval.y, max(cursor.tick - self.interval.y, 0))
        lane = self.lane
        self.reset()
        actions.new_action(AddInterval(self.kind, lane, interval))

    def on_secondary_click(self, screen: ScreenState, cursor: CursorInfo, chart: Chart, actions: ActionStack) -> None:
        lane = self.lane_from_cursor(cursor.lane)
        index = self.find_interval(chart, lane, cursor.tick)
        if index is None:
            logger.debug(f"no {self.kind} object on lane {lane} at tick {cursor.tick}")
            return
        actions.new_action(RemoveInterval(self.kind, lane, index))

    def on_update(self, cursor: CursorInfo) -> None:
        if not self.pressed:
            self.interval.y = cursor.tick
            self.lane = self.lane_from_cursor(cursor.lane)
        self.interval.l = max(cursor.tick - self.interval.y, 0)

    def _lane_bounds(self, screen: ScreenState, column_x: float) -> tuple[float, float]:
        lane_width = screen.lane_width()
        if self.kind is ButtonKind.BT:
            left = column_x + (self.lane + 1) * lane_width
            return left + 1, left + lane_width - 1
        left = column_x + (self.lane * 2 + 1) * lane_width
        return left + 1, left + lane_width * 2 - 1

    def render_overlay(self, screen: ScreenState) -> list[Shape]:
        color = BT_COLOR if self.kind is ButtonKind.BT else FX_COLOR
        shapes: list[Shape] = []
        for draw_range in screen.interval_to_ranges(self.interval):
            x_min, x_max = self._lane_bounds(screen, draw_range.x)
            h = draw_range.h if self.interval.l > 0 else -CHIP_HEIGHT
            shapes.append(Rectangle((x_min, draw_range.y + h), (x_max, draw_range.y), color))
        return shapes

    def reset(self) -> None:
        self.pressed = False
        self.interval = Interval(0)
        self.lane = 0
