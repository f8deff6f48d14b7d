import dataclasses
import logging
import re

from typing import TextIO

from .base import Parser
from ..classes.base import (
    ChartParseError,
    TimeSignature,
)
from ..classes.chart import (
    DEFAULT_BPM,
    DEFAULT_RESOLUTION,
    Chart,
    DifficultyInfo,
    GraphSectionPoint,
    Interval,
    LaserSection,
)
from ..classes.enums import (
    ButtonKind,
    Difficulty,
    LaserSide,
)

__all__ = [
    "KSHParser",
    "convert_laser_pos",
]

BOM = "\ufeff"
BAR_LINE = "--"
NOTE_LINE_REGEX = re.compile(r"^[0-2]{4}\|")
LASER_POSITION = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmno"
LASER_NONE = "-"
LASER_CONTINUE = ":"
# KSH uses opposite characters for chips and holds on BT and FX lanes
BT_CHIP, BT_HOLD = "1", "2"
FX_CHIP, FX_HOLD = "2", "1"
KSH_SLAM_DIVISION = 32
"""Laser points closer than a 1/32 of a 4/4 measure are treated as slams."""
DIFFICULTY_MAP = {
    "light": Difficulty.LIGHT,
    "challenge": Difficulty.CHALLENGE,
    "extended": Difficulty.EXTENDED,
    "infinite": Difficulty.INFINITE,
}
LASER_RANGE_KEYS = {
    "laserrange_l": LaserSide.LEFT,
    "laserrange_r": LaserSide.RIGHT,
}

logger = logging.getLogger(__name__)

_Line = tuple[int, str]


@dataclasses.dataclass
class _LaneState:
    kind: ButtonKind
    chip: str
    hold: str
    hold_start: int | None = None

    def feed(self, state: str, tick: int, lane: list[Interval]) -> None:
        if state == self.hold:
            if self.hold_start is None:
                self.hold_start = tick
            return
        # Anything else terminates a hold, including chips
        if self.hold_start is not None:
            lane.append(Interval(self.hold_start, tick - self.hold_start))
            self.hold_start = None
        if state == self.chip:
            lane.append(Interval(tick, 0))


@dataclasses.dataclass
class _LaserState:
    section: LaserSection | None = None
    wide: int = 1


def convert_laser_pos(s: str) -> float:
    """Convert a KSH laser position character to a laser value in [0, 1]."""
    if len(s) != 1 or s not in LASER_POSITION:
        raise ValueError(f"invalid laser position (got {s!r})")
    return LASER_POSITION.index(s) / (len(LASER_POSITION) - 1)


def _parse_time_signature(value: str) -> TimeSignature:
    if "/" not in value:
        raise ValueError(f"invalid time signature (got {value})")
    n_str, d_str = value.split("/", 1)
    return TimeSignature(int(n_str), int(d_str))


def _parse_bpm(value: str, line_no: int, line: str) -> float:
    try:
        return float(value)
    except ValueError as e:
        raise ChartParseError(f"invalid BPM value {value!r}", line_no, line) from e


@dataclasses.dataclass(eq=False)
class KSHParser(Parser):
    """
    Parser for the line-based KSH chart format.

    Measures are read one at a time; each note row advances a tick cursor by an equal share of the measure. BT, FX and
    laser columns are tracked by small per-lane state machines, so holds and laser sections may span several measures.
    """

    resolution: int = DEFAULT_RESOLUTION

    _chart: Chart = dataclasses.field(init=False, repr=False)
    _tick: int = dataclasses.field(default=0, init=False, repr=False)
    _cur_timesig: TimeSignature = dataclasses.field(default=TimeSignature(), init=False, repr=False)
    _pending_timesig: TimeSignature | None = dataclasses.field(default=None, init=False, repr=False)

    _bts: list[_LaneState] = dataclasses.field(default_factory=list, init=False, repr=False)
    _fxs: list[_LaneState] = dataclasses.field(default_factory=list, init=False, repr=False)
    _lasers: list[_LaserState] = dataclasses.field(default_factory=list, init=False, repr=False)

    @property
    def slam_ticks(self) -> int:
        return self.resolution * 4 // KSH_SLAM_DIVISION

    def parse(self, f: TextIO) -> Chart:
        self._initialize_stateful_data()

        lines = [line.strip() for line in f.read().splitlines()]
        if lines and lines[0].startswith(BOM):
            lines[0] = lines[0][len(BOM) :]

        header: list[_Line] = []
        measures: list[list[_Line]] = []
        for line_no, line in enumerate(lines, start=1):
            if line.startswith(BAR_LINE):
                measures.append([])
            elif not measures:
                header.append((line_no, line))
            else:
                measures[-1].append((line_no, line))

        self._parse_metadata(header)
        for measure_no, measure in enumerate(measures, start=1):
            self._parse_measure(measure, measure_no)
        self._handle_postprocessing()

        return self._chart

    def _initialize_stateful_data(self) -> None:
        self._chart = Chart()
        self._chart.beat.resolution = self.resolution
        self._tick = 0
        self._cur_timesig = TimeSignature()
        self._pending_timesig = None
        self._bts = [_LaneState(ButtonKind.BT, BT_CHIP, BT_HOLD) for _ in range(4)]
        self._fxs = [_LaneState(ButtonKind.FX, FX_CHIP, FX_HOLD) for _ in range(2)]
        self._lasers = [_LaserState() for _ in LaserSide]

    def _parse_metadata(self, header: list[_Line]) -> None:
        meta = self._chart.meta
        for line_no, line in header:
            if not line:
                continue
            if "=" not in line:
                logger.warning(f'unrecognized line at line {line_no}: "{line}"')
                continue
            key, value = line.split("=", 1)
            try:
                if key == "title":
                    meta.title = value
                elif key == "artist":
                    meta.artist = value
                elif key == "effect":
                    meta.chart_author = value
                elif key == "jacket":
                    meta.jacket_filename = value
                elif key == "illustrator":
                    meta.jacket_author = value
                elif key == "information":
                    meta.information = value
                elif key == "difficulty":
                    if value not in DIFFICULTY_MAP:
                        raise ValueError(f"unrecognized difficulty (got {value})")
                    difficulty = DIFFICULTY_MAP[value]
                    meta.difficulty = DifficultyInfo(str(difficulty), difficulty.to_shorthand(), difficulty.value)
                elif key == "level":
                    meta.level = int(value)
                elif key == "t":
                    meta.disp_bpm = value
                    # BPM ranges are only informative
                    if "-" not in value:
                        bpm = _parse_bpm(value, line_no, line)
                        meta.std_bpm = bpm
                        self._chart.beat.set_bpm(0, bpm)
                elif key == "beat":
                    self._cur_timesig = _parse_time_signature(value)
                    self._chart.beat.set_time_sig(0, self._cur_timesig)
                else:
                    # Silently ignoring all other metadata
                    pass
            except ChartParseError:
                raise
            except ValueError as e:
                logger.warning(f"{e} at line {line_no}")

    def _parse_measure(self, measure: list[_Line], measure_no: int) -> None:
        note_count = sum(1 for _, line in measure if NOTE_LINE_REGEX.match(line))
        if note_count == 0:
            logger.debug(f"skipping measure {measure_no} with no note data")
            return

        # Time signature changes at the start of the measure take effect immediately
        for line_no, line in measure:
            if NOTE_LINE_REGEX.match(line):
                break
            if line.startswith("beat="):
                try:
                    self._pending_timesig = _parse_time_signature(line.split("=", 1)[1])
                except ValueError as e:
                    logger.warning(f"{e} at line {line_no}")
        if self._pending_timesig is not None:
            self._cur_timesig = self._pending_timesig
            self._chart.beat.set_time_sig(self._tick, self._cur_timesig)
            self._pending_timesig = None

        measure_ticks = self._cur_timesig.measure_ticks(self.resolution)
        ticks_per_line = measure_ticks // note_count
        if ticks_per_line * note_count != measure_ticks:
            logger.debug(f"measure {measure_no}: {note_count} lines do not divide {measure_ticks} ticks evenly")

        seen_notes = False
        for line_no, line in measure:
            # 1. Note data
            if NOTE_LINE_REGEX.match(line):
                self._handle_notedata(line, line_no)
                self._tick += ticks_per_line
                seen_notes = True
            # 2. Comments
            elif line.startswith("//") or not line:
                continue
            # 3. Options (BPM change, time signature change, laser range, etc)
            elif "=" in line:
                self._handle_option(line, line_no, seen_notes)
            else:
                logger.warning(f'unrecognized line at line {line_no}: "{line}"')

    def _handle_option(self, line: str, line_no: int, seen_notes: bool) -> None:
        key, value = line.split("=", 1)
        if key == "t":
            self._chart.beat.set_bpm(self._tick, _parse_bpm(value, line_no, line))
        elif key == "beat":
            # Already handled before the measure started
            if not seen_notes:
                return
            try:
                self._pending_timesig = _parse_time_signature(value)
            except ValueError as e:
                logger.warning(f"{e} at line {line_no}")
        elif key in LASER_RANGE_KEYS:
            laser_state = self._lasers[LASER_RANGE_KEYS[key].value]
            if laser_state.section is not None:
                logger.debug(f"ignoring {key} inside a laser section at line {line_no}")
                return
            laser_state.wide = 2 if value == "2x" else 1
        else:
            # Silently ignoring all other options
            pass

    def _handle_notedata(self, line: str, line_no: int) -> None:
        columns = line.split("|")
        bts = columns[0][:4]
        fxs = columns[1][:2] if len(columns) > 1 else ""
        lasers = columns[2][:2] if len(columns) > 2 else ""

        for lane_state, state, lane in zip(self._bts, bts, self._chart.note.bt):
            lane_state.feed(state, self._tick, lane)
        for lane_state, state, lane in zip(self._fxs, fxs, self._chart.note.fx):
            lane_state.feed(state, self._tick, lane)
        for side, state in zip(LaserSide, lasers):
            self._handle_laser(side, state, line_no)

    def _handle_laser(self, side: LaserSide, state: str, line_no: int) -> None:
        laser_state = self._lasers[side.value]
        if state == LASER_NONE:
            self._close_section(side)
            return
        if state == LASER_CONTINUE:
            return
        try:
            value = convert_laser_pos(state)
        except ValueError as e:
            logger.warning(f"{e} at line {line_no}")
            return

        if laser_state.section is None:
            laser_state.section = LaserSection(self._tick, [GraphSectionPoint(0, value)], wide=laser_state.wide)
            laser_state.wide = 1
            return

        section = laser_state.section
        ry = self._tick - section.y
        last_point = section.v[-1]
        # Short laser segments are slams
        if last_point.vf is None and ry - last_point.ry <= self.slam_ticks and value != last_point.v:
            logger.debug(f"{side} laser: slam at {section.y + last_point.ry}, {last_point.v} -> {value}")
            last_point.vf = value
        else:
            section.v.append(GraphSectionPoint(ry, value))

    def _close_section(self, side: LaserSide) -> None:
        laser_state = self._lasers[side.value]
        section = laser_state.section
        if section is None:
            return
        laser_state.section = None

        if len(section.v) == 1:
            point = section.v[0]
            if point.vf is None:
                logger.warning(f"dropping {side} laser section without length at tick {section.y}")
                return
            # A lone slam gets a 1/32 tail, so that the section covers at least one tick
            section.v.append(GraphSectionPoint(self.slam_ticks, point.vf))
        self._chart.note.laser[side.value].append(section)

    def _handle_postprocessing(self) -> None:
        for side in LaserSide:
            self._close_section(side)

        for index, lane_state in enumerate(self._bts + self._fxs):
            if lane_state.hold_start is not None:
                logger.warning(
                    f"dropping unterminated {lane_state.kind} hold on lane {index % 4} at tick {lane_state.hold_start}"
                )

        note = self._chart.note
        for lane in note.bt + note.fx:
            lane.sort(key=lambda i: i.y)
        for sections in note.laser:
            sections.sort(key=lambda s: s.y)
            for section in sections:
                section.validate()

        beat = self._chart.beat
        if not beat.bpm:
            logger.warning(f"no BPM specified, defaulting to {DEFAULT_BPM}")
            beat.set_bpm(0, DEFAULT_BPM)
        elif beat.bpm[0].y != 0:
            logger.warning(f"first BPM change is at tick {beat.bpm[0].y}, using it from the start")
            beat.set_bpm(0, beat.bpm[0].v)
        if not beat.time_sig or beat.time_sig[0].y != 0:
            beat.set_time_sig(0, TimeSignature())
