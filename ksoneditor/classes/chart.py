"""
Classes that represent chart-related entities.
"""
import bisect
import itertools
import logging

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from .base import (
    KsonEntity,
    TimeSignature,
    Validateable,
)
from .enums import (
    ButtonKind,
    LaserSide,
)
from ..utils import interpolate

__all__ = [
    "DEFAULT_RESOLUTION",
    "DEFAULT_BPM",
    "Interval",
    "GraphSectionPoint",
    "LaserSection",
    "NoteInfo",
    "ByPulse",
    "TimeSignatureEvent",
    "BeatInfo",
    "DifficultyInfo",
    "MetaInfo",
    "Chart",
    "insert_interval",
    "insert_section",
]

DEFAULT_RESOLUTION = 240
"""Number of ticks in a quarter note."""

DEFAULT_BPM = 120.0

logger = logging.getLogger(__name__)


def _optional_float(data: dict[str, Any], key: str) -> float | None:
    value = data.get(key)
    return None if value is None else float(value)


def _tick_value(value: Any, name: str) -> int:
    """Read an integer field, rejecting fractional numbers instead of truncating them."""
    if isinstance(value, float) and not value.is_integer():
        raise ValueError(f"{name} must be a whole number (got {value})")
    return int(value)


def _check_unit(name: str, value: float | None):
    if value is not None and not 0 <= value <= 1:
        raise ValueError(f"{name} value out of range (got {value})")


@dataclass
class Interval(Validateable, KsonEntity):
    """A class that represents a BT or FX object. A length of zero is a chip; anything longer is a hold."""

    y: int
    l: int = 0

    def __post_init__(self):
        self.validate()

    def validate(self):
        if self.y < 0:
            raise ValueError(f"tick cannot be negative (got {self.y})")
        if self.l < 0:
            raise ValueError(f"length cannot be negative (got {self.l})")

    @property
    def end(self) -> int:
        return self.y + self.l

    def contains(self, tick: int) -> bool:
        """Return `True` if the tick is covered by this object. Chips only cover their own tick."""
        if self.l == 0:
            return tick == self.y
        return self.y <= tick < self.end

    def overlaps(self, other: "Interval") -> bool:
        """Return `True` if the two objects cannot coexist in the same lane."""
        if self.l == 0 and other.l == 0:
            return self.y == other.y
        if self.l == 0:
            return other.contains(self.y)
        if other.l == 0:
            return self.contains(other.y)
        return self.y < other.end and other.y < self.end

    def to_kson(self) -> dict[str, int]:
        return {"y": self.y, "l": self.l}

    @classmethod
    def from_kson(cls, data: dict[str, Any]) -> "Interval":
        return cls(_tick_value(data["y"], "y"), _tick_value(data.get("l", 0), "l"))


@dataclass
class GraphSectionPoint(Validateable, KsonEntity):
    """
    A class that represents a single point of a laser section.

    ``v`` is the value approached from the previous point, while ``vf`` is the value the laser jumps to on the same
    tick (a slam). ``a`` and ``b`` describe the curve towards the next point.
    """

    ry: int
    v: float
    vf: float | None = None
    a: float | None = None
    b: float | None = None

    def __post_init__(self):
        self.validate()

    def validate(self):
        if self.ry < 0:
            raise ValueError(f"relative tick cannot be negative (got {self.ry})")
        _check_unit("v", self.v)
        _check_unit("vf", self.vf)
        _check_unit("a", self.a)
        _check_unit("b", self.b)

    @property
    def value_out(self) -> float:
        """The value the laser continues from after this point."""
        return self.v if self.vf is None else self.vf

    @property
    def curve(self) -> tuple[float, float] | None:
        """The curve parameters of the segment starting from this point, or `None` if it is linear."""
        if self.a is None or self.b is None:
            return None
        return self.a, self.b

    def to_kson(self) -> dict[str, Any]:
        data: dict[str, Any] = {"ry": self.ry, "v": self.v}
        for key in ("vf", "a", "b"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        return data

    @classmethod
    def from_kson(cls, data: dict[str, Any]) -> "GraphSectionPoint":
        return cls(
            _tick_value(data["ry"], "ry"),
            float(data["v"]),
            vf=_optional_float(data, "vf"),
            a=_optional_float(data, "a"),
            b=_optional_float(data, "b"),
        )


@dataclass
class LaserSection(Validateable, KsonEntity):
    """
    A class that represents a single continuous laser.

    Validation is not done on creation, since laser tools build sections one point at a time.
    """

    y: int
    v: list[GraphSectionPoint] = field(default_factory=list)
    wide: int = 1

    def validate(self):
        if self.y < 0:
            raise ValueError(f"tick cannot be negative (got {self.y})")
        if self.wide < 1:
            raise ValueError(f"wide must be positive (got {self.wide})")
        if not self.v:
            raise ValueError("laser section has no points")
        if self.v[0].ry != 0:
            raise ValueError(f"first laser point must be at the section start (got ry={self.v[0].ry})")
        for point_i, point_f in itertools.pairwise(self.v):
            if point_f.ry < point_i.ry:
                raise ValueError(f"laser points out of order (ry={point_f.ry} after ry={point_i.ry})")
        for point in self.v:
            point.validate()

    @property
    def tail_ry(self) -> int:
        """Relative tick of the last point."""
        return max((p.ry for p in self.v), default=0)

    @property
    def end(self) -> int:
        return self.y + self.tail_ry

    def contains(self, tick: int) -> bool:
        """Return `True` if the tick is within [start, start + last point)."""
        return self.y <= tick < self.end

    def value_at(self, ry: float) -> float | None:
        """
        Evaluate the laser's value.

        :param ry: Tick relative to the start of the section.
        :returns: The laser's value, or `None` if the section does not exist at that point.
        """
        if not self.v or ry < 0 or ry > self.tail_ry:
            return None
        for point_i, point_f in itertools.pairwise(self.v):
            if ry == point_i.ry:
                return point_i.value_out
            if point_i.ry < ry < point_f.ry:
                progress = (ry - point_i.ry) / (point_f.ry - point_i.ry)
                return interpolate(progress, point_i.value_out, point_f.v, point_i.curve)
        return self.v[-1].value_out

    def to_kson(self) -> dict[str, Any]:
        return {
            "y": self.y,
            "v": [p.to_kson() for p in self.v],
            "wide": self.wide,
        }

    @classmethod
    def from_kson(cls, data: dict[str, Any]) -> "LaserSection":
        section = cls(
            _tick_value(data["y"], "y"),
            [GraphSectionPoint.from_kson(p) for p in data["v"]],
            wide=_tick_value(data.get("wide", 1), "wide"),
        )
        section.validate()
        return section


def insert_interval(lane: list[Interval], interval: Interval) -> int:
    """
    Insert a BT/FX object into a lane, keeping it sorted.

    :raises ValueError: if the object overlaps an existing object.
    :returns: The index the object was inserted at.
    """
    for other in lane:
        if other.overlaps(interval):
            raise ValueError(f"object at {interval.y} overlaps existing object at {other.y}")
    index = bisect.bisect_right(lane, interval.y, key=lambda i: i.y)
    lane.insert(index, interval)
    return index


def insert_section(sections: list[LaserSection], section: LaserSection) -> int:
    """
    Insert a laser section into a list, keeping it sorted by start tick.

    :returns: The index the section was inserted at.
    """
    index = bisect.bisect_right(sections, section.y, key=lambda s: s.y)
    sections.insert(index, section)
    return index


@dataclass
class NoteInfo(KsonEntity):
    """A class encapsulating all the note data in a chart."""

    bt: list[list[Interval]] = field(default_factory=lambda: [[], [], [], []])
    fx: list[list[Interval]] = field(default_factory=lambda: [[], []])
    laser: list[list[LaserSection]] = field(default_factory=lambda: [[], []])

    def lane(self, kind: ButtonKind, index: int) -> list[Interval]:
        """Get a BT or FX lane."""
        return self.bt[index] if kind is ButtonKind.BT else self.fx[index]

    def lasers(self, side: LaserSide) -> list[LaserSection]:
        return self.laser[side.value]

    def iter_buttons(self) -> Iterable[tuple[ButtonKind, int, Interval]]:
        """
        Iterate through every BT and FX object.

        :returns: A generator that emits a 3-tuple of: lane kind, lane index, and note object.
        """
        for kind, lanes in [(ButtonKind.BT, self.bt), (ButtonKind.FX, self.fx)]:
            for index, lane in enumerate(lanes):
                for interval in lane:
                    yield kind, index, interval

    def iter_lasers(self) -> Iterable[tuple[LaserSide, LaserSection]]:
        for side in LaserSide:
            for section in self.laser[side.value]:
                yield side, section

    @property
    def chip_notecount(self) -> int:
        return sum(1 for _, _, interval in self.iter_buttons() if interval.l == 0)

    @property
    def long_notecount(self) -> int:
        return sum(1 for _, _, interval in self.iter_buttons() if interval.l > 0)

    @property
    def vol_notecount(self) -> int:
        """Number of laser sections."""
        return sum(1 for _ in self.iter_lasers())

    @property
    def slam_notecount(self) -> int:
        return sum(1 for _, section in self.iter_lasers() for point in section.v if point.vf is not None)

    def to_kson(self) -> dict[str, Any]:
        return {
            "bt": [[i.to_kson() for i in lane] for lane in self.bt],
            "fx": [[i.to_kson() for i in lane] for lane in self.fx],
            "laser": [[s.to_kson() for s in side] for side in self.laser],
        }

    @classmethod
    def from_kson(cls, data: dict[str, Any]) -> "NoteInfo":
        note_info = cls()
        for lanes, key, count in [(note_info.bt, "bt", 4), (note_info.fx, "fx", 2)]:
            lane_data = data.get(key, [])
            if len(lane_data) > count:
                raise ValueError(f"too many {key} lanes (got {len(lane_data)})")
            for lane, intervals in zip(lanes, lane_data):
                for interval in intervals:
                    insert_interval(lane, Interval.from_kson(interval))
        laser_data = data.get("laser", [])
        if len(laser_data) > 2:
            raise ValueError(f"too many laser lanes (got {len(laser_data)})")
        for sections, section_list in zip(note_info.laser, laser_data):
            for section in section_list:
                insert_section(sections, LaserSection.from_kson(section))
        return note_info


@dataclass
class ByPulse(KsonEntity):
    """A value that changes at a particular tick, e.g. a tempo change."""

    y: int
    v: float

    def to_kson(self) -> dict[str, Any]:
        return {"y": self.y, "v": self.v}

    @classmethod
    def from_kson(cls, data: dict[str, Any]) -> "ByPulse":
        return cls(_tick_value(data["y"], "y"), float(data["v"]))


@dataclass
class TimeSignatureEvent(KsonEntity):
    """A time signature change at a particular tick."""

    y: int
    v: TimeSignature = field(default_factory=TimeSignature)

    def to_kson(self) -> dict[str, Any]:
        return {"y": self.y, "v": self.v.to_kson()}

    @classmethod
    def from_kson(cls, data: dict[str, Any]) -> "TimeSignatureEvent":
        return cls(_tick_value(data["y"], "y"), TimeSignature.from_kson(data["v"]))


@dataclass
class BeatInfo(KsonEntity):
    """A class that contains the tempo map of a chart."""

    bpm: list[ByPulse] = field(default_factory=list)
    time_sig: list[TimeSignatureEvent] = field(default_factory=list)
    resolution: int = DEFAULT_RESOLUTION

    def bpm_at(self, tick: int) -> float:
        """Get the tempo in effect at a tick."""
        current = self.bpm[0].v if self.bpm else DEFAULT_BPM
        for event in self.bpm:
            if event.y > tick:
                break
            current = event.v
        return current

    def set_bpm(self, y: int, v: float) -> None:
        """Add a tempo change, replacing any existing change at the same tick."""
        for event in self.bpm:
            if event.y == y:
                event.v = v
                return
        bisect.insort(self.bpm, ByPulse(y, v), key=lambda e: e.y)

    def set_time_sig(self, y: int, v: TimeSignature) -> None:
        """Add a time signature change, replacing any existing change at the same tick."""
        for event in self.time_sig:
            if event.y == y:
                event.v = v
                return
        bisect.insort(self.time_sig, TimeSignatureEvent(y, v), key=lambda e: e.y)

    def to_kson(self) -> dict[str, Any]:
        return {
            "bpm": [e.to_kson() for e in self.bpm],
            "time_sig": [e.to_kson() for e in self.time_sig],
            "resolution": self.resolution,
        }

    @classmethod
    def from_kson(cls, data: dict[str, Any]) -> "BeatInfo":
        beat_info = cls(
            [ByPulse.from_kson(e) for e in data.get("bpm", [])],
            [TimeSignatureEvent.from_kson(e) for e in data.get("time_sig", [])],
            _tick_value(data.get("resolution", DEFAULT_RESOLUTION), "resolution"),
        )
        if beat_info.resolution <= 0:
            raise ValueError(f"resolution must be positive (got {beat_info.resolution})")
        beat_info.bpm.sort(key=lambda e: e.y)
        beat_info.time_sig.sort(key=lambda e: e.y)
        return beat_info


@dataclass
class DifficultyInfo(KsonEntity):
    name: str = ""
    short_name: str = ""
    idx: int = 0

    def to_kson(self) -> dict[str, Any]:
        return {"name": self.name, "short_name": self.short_name, "idx": self.idx}

    @classmethod
    def from_kson(cls, data: dict[str, Any]) -> "DifficultyInfo":
        return cls(str(data.get("name", "")), str(data.get("short_name", "")), int(data.get("idx", 0)))


@dataclass
class MetaInfo(KsonEntity):
    """A class that contains chart metadata."""

    title: str = ""
    title_translit: str = ""
    subtitle: str = ""
    artist: str = ""
    artist_translit: str = ""
    chart_author: str = ""
    difficulty: DifficultyInfo = field(default_factory=DifficultyInfo)
    level: int = 1
    disp_bpm: str = ""
    std_bpm: float | None = None
    jacket_filename: str = ""
    jacket_author: str = ""
    information: str = ""

    _STRING_FIELDS = (
        "title",
        "title_translit",
        "subtitle",
        "artist",
        "artist_translit",
        "chart_author",
        "disp_bpm",
        "jacket_filename",
        "jacket_author",
        "information",
    )

    def to_kson(self) -> dict[str, Any]:
        data: dict[str, Any] = {name: getattr(self, name) for name in self._STRING_FIELDS}
        data["difficulty"] = self.difficulty.to_kson()
        data["level"] = self.level
        if self.std_bpm is not None:
            data["std_bpm"] = self.std_bpm
        return data

    @classmethod
    def from_kson(cls, data: dict[str, Any]) -> "MetaInfo":
        meta = cls(**{name: str(data.get(name, "")) for name in cls._STRING_FIELDS})
        meta.difficulty = DifficultyInfo.from_kson(data.get("difficulty", {}))
        meta.level = int(data.get("level", 1))
        meta.std_bpm = _optional_float(data, "std_bpm")
        return meta


@dataclass
class Chart(KsonEntity):
    """
    A class that contains all chart data and metadata.

    This is the unit of persistence and of undo/redo. Once loaded, instances are meant to be modified only through
    :class:`~ksoneditor.actions.ActionStack`.
    """

    meta: MetaInfo = field(default_factory=MetaInfo)
    note: NoteInfo = field(default_factory=NoteInfo)
    beat: BeatInfo = field(default_factory=BeatInfo)

    def to_kson(self) -> dict[str, Any]:
        return {
            "meta": self.meta.to_kson(),
            "beat": self.beat.to_kson(),
            "note": self.note.to_kson(),
        }

    @classmethod
    def from_kson(cls, data: dict[str, Any]) -> "Chart":
        return cls(
            MetaInfo.from_kson(data.get("meta", {})),
            NoteInfo.from_kson(data.get("note", {})),
            BeatInfo.from_kson(data.get("beat", {})),
        )
