"""
Editor state shared by the front ends: the chart being edited, its history, the screen layout and the active tool.
"""
import logging
import math
import pathlib

from .actions import ActionStack
from .classes.base import ActionError, TimeSignature
from .classes.chart import (
    DEFAULT_BPM,
    Chart,
)
from .classes.enums import (
    ButtonKind,
    ChartTool,
    LaserSide,
)
from .parser import load_chart, save_chart
from .screen import (
    Color,
    Polyline,
    Rectangle,
    ScreenState,
    Shape,
)
from .tools import CursorInfo, CursorObject, make_cursor_object

__all__ = [
    "SNAP_DIVISION",
    "ChartEditor",
]

SNAP_DIVISION = 16

# fmt: off
TRACK_LINE_COLOR: Color   = (128, 128, 128, 255)
MEASURE_LINE_COLOR: Color = (255, 255,   0, 255)
BEAT_LINE_COLOR: Color    = ( 64,  64,  64, 255)
NOTE_COLORS: dict[ButtonKind, Color] = {
    ButtonKind.BT: (255, 255, 255, 255),
    ButtonKind.FX: (255,  77,   0, 255),
}
LASER_COLORS: dict[LaserSide, Color] = {
    LaserSide.LEFT : (  0, 115, 144, 255),
    LaserSide.RIGHT: (194,   6, 140, 255),
}
# fmt: on
CHIP_HEIGHT = 2.0
LASER_THICKNESS = 2.0

logger = logging.getLogger(__name__)


def new_chart() -> Chart:
    """Create an empty chart with the default tempo and time signature at the start."""
    chart = Chart()
    chart.beat.set_bpm(0, DEFAULT_BPM)
    chart.beat.set_time_sig(0, TimeSignature())
    return chart


class ChartEditor:
    """
    Glue between a window and the editing core.

    Pointer positions are converted to chart positions and forwarded to the active tool. Failed edits and file errors
    are logged rather than raised, so the editing session survives them.
    """

    def __init__(self, chart: Chart | None = None, screen: ScreenState | None = None):
        self.actions = ActionStack(chart if chart is not None else new_chart())
        self.screen = screen if screen is not None else ScreenState()
        self.screen.resolution = self.chart.beat.resolution
        self.current_tool = ChartTool.NONE
        self.cursor_object: CursorObject | None = None
        self.file_path: pathlib.Path | None = None
        self.snap_division = SNAP_DIVISION

    @property
    def chart(self) -> Chart:
        return self.actions.chart

    def set_tool(self, tool: ChartTool) -> None:
        if tool is self.current_tool:
            return
        if self.cursor_object is not None:
            self.cursor_object.reset()
        self.current_tool = tool
        self.cursor_object = make_cursor_object(tool)
        logger.debug(f"switched to {tool} tool")

    def cursor_info(self, x: float, y: float) -> CursorInfo:
        tick_f = self.screen.pos_to_tick(x, y)
        tick = self.screen.snap_tick(tick_f, self.snap_division)
        return CursorInfo(tick, tick_f, self.screen.pos_to_lane(x), (x, y))

    def drag_start(self, x: float, y: float) -> None:
        if self.cursor_object is None:
            return
        try:
            self.cursor_object.on_interaction_start(self.screen, self.cursor_info(x, y), self.chart, self.actions)
        except ActionError as e:
            logger.warning(e)

    def drag_end(self, x: float, y: float) -> None:
        if self.cursor_object is None:
            return
        try:
            self.cursor_object.on_interaction_end(self.screen, self.cursor_info(x, y), self.chart, self.actions)
        except ActionError as e:
            logger.warning(e)

    def middle_clicked(self, x: float, y: float) -> None:
        if self.cursor_object is None:
            return
        try:
            self.cursor_object.on_secondary_click(self.screen, self.cursor_info(x, y), self.chart, self.actions)
        except ActionError as e:
            logger.warning(e)

    def mouse_motion(self, x: float, y: float) -> None:
        if self.cursor_object is not None:
            self.cursor_object.on_update(self.cursor_info(x, y))

    def scroll(self, delta: float) -> None:
        self.screen.x_offset = max(self.screen.x_offset + delta, 0.0)

    def _reset_cursor(self) -> None:
        if self.cursor_object is not None:
            self.cursor_object.reset()

    def undo(self) -> bool:
        self._reset_cursor()
        try:
            return self.actions.undo()
        except ActionError as e:
            logger.warning(e)
            return False

    def redo(self) -> bool:
        self._reset_cursor()
        try:
            return self.actions.redo()
        except ActionError as e:
            logger.warning(e)
            return False

    def _replace_chart(self, chart: Chart) -> None:
        self._reset_cursor()
        self.actions.reset(chart)
        self.screen.resolution = chart.beat.resolution
        self.screen.x_offset = 0.0

    def new_chart(self) -> None:
        self._replace_chart(new_chart())
        self.file_path = None
        logger.info("created new chart")

    def open_file(self, path: str | pathlib.Path) -> bool:
        """
        Load a chart, replacing the current one and its history.

        :returns: `True` if the chart was loaded. On failure, the error is logged and the current chart is kept.
        """
        fpath = pathlib.Path(path)
        try:
            chart = load_chart(fpath)
        except (OSError, ValueError) as e:
            logger.error(f"cannot open {fpath}: {e}")
            return False

        self._replace_chart(chart)
        # Saving always produces KSON, so never overwrite the imported file
        self.file_path = fpath.with_suffix(".kson")
        logger.info(f"opened {fpath}")
        return True

    def save_file(self, path: str | pathlib.Path | None = None) -> bool:
        """
        Save the chart as KSON.

        :param path: Where to save. If `None`, the chart is saved to the path it was last opened from or saved to.
        :returns: `True` if the chart was saved.
        """
        fpath = pathlib.Path(path) if path is not None else self.file_path
        if fpath is None:
            logger.warning("no file to save to")
            return False
        try:
            save_chart(self.chart, fpath)
        except OSError as e:
            logger.error(f"cannot save {fpath}: {e}")
            return False

        self.file_path = fpath
        logger.info(f"saved {fpath}")
        return True

    def visible_columns(self) -> range:
        first = max(math.floor(self.screen.x_offset / self.screen.column_width), 0)
        last = math.floor((self.screen.x_offset + self.screen.w) / self.screen.column_width)
        return range(first, last + 1)

    def _draw_track(self) -> list[Shape]:
        screen = self.screen
        shapes: list[Shape] = []
        bottom = screen.h - screen.bottom_margin
        top = bottom - screen.track_height
        for col in self.visible_columns():
            x = screen.column_x(col)
            for lane in range(1, 6):
                lane_x = x + lane * screen.lane_width()
                shapes.append(Polyline([(lane_x, bottom), (lane_x, top)], TRACK_LINE_COLOR))
            for beat in range(screen.beats_per_col):
                tick = col * screen.ticks_per_col + beat * screen.resolution
                _, y = screen.tick_to_pos(tick)
                color = MEASURE_LINE_COLOR if beat % 4 == 0 else BEAT_LINE_COLOR
                shapes.append(Polyline([(x + screen.lane_width(), y), (x + 5 * screen.lane_width(), y)], color))
        return shapes

    def _is_visible(self, x: float) -> bool:
        return -self.screen.column_width <= x <= self.screen.w

    def _draw_buttons(self) -> list[Shape]:
        screen = self.screen
        lane_width = screen.lane_width()
        shapes: list[Shape] = []
        # FX objects are drawn first, so that BT objects end up on top
        for draw_kind in [ButtonKind.FX, ButtonKind.BT]:
            for kind, lane, interval in self.chart.note.iter_buttons():
                if kind is not draw_kind:
                    continue
                for draw_range in screen.interval_to_ranges(interval):
                    if not self._is_visible(draw_range.x):
                        continue
                    if kind is ButtonKind.BT:
                        x_min = draw_range.x + (lane + 1) * lane_width
                        x_max = x_min + lane_width
                    else:
                        x_min = draw_range.x + (lane * 2 + 1) * lane_width
                        x_max = x_min + lane_width * 2
                    h = draw_range.h if interval.l > 0 else -CHIP_HEIGHT
                    shapes.append(
                        Rectangle((x_min + 1, draw_range.y + h), (x_max - 1, draw_range.y), NOTE_COLORS[kind])
                    )
        return shapes

    def _draw_lasers(self) -> list[Shape]:
        shapes: list[Shape] = []
        for side, section in self.chart.note.iter_lasers():
            for points in self.screen.laser_section_to_polylines(section):
                if any(self._is_visible(x) for x, _ in points):
                    shapes.append(Polyline(points, LASER_COLORS[side], LASER_THICKNESS))
        return shapes

    def draw(self) -> list[Shape]:
        """Produce everything the window should draw, back to front."""
        shapes = self._draw_track() + self._draw_buttons() + self._draw_lasers()
        if self.cursor_object is not None:
            shapes.extend(self.cursor_object.render_overlay(self.screen))
        return shapes
