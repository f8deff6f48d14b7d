import io

from collections.abc import Callable

import pytest

from ksoneditor.actions import ActionStack
from ksoneditor.classes.chart import (
    Chart,
    GraphSectionPoint,
    LaserSection,
)
from ksoneditor.screen import ScreenState
from ksoneditor.tools.base import CursorInfo

KshFactory = Callable[..., io.StringIO]
CursorFactory = Callable[..., CursorInfo]


@pytest.fixture
def screen() -> ScreenState:
    return ScreenState()


@pytest.fixture
def laser_chart() -> Chart:
    """A chart with a single left laser covering ticks [100, 300)."""
    chart = Chart()
    chart.note.laser[0].append(LaserSection(100, [GraphSectionPoint(0, 0.0), GraphSectionPoint(200, 1.0)]))
    return chart


@pytest.fixture
def curve_chart() -> Chart:
    """A chart with a single left laser from 0 to 1 over ticks [0, 480), with linear curve parameters set."""
    chart = Chart()
    chart.note.laser[0].append(
        LaserSection(0, [GraphSectionPoint(0, 0.0, a=0.5, b=0.5), GraphSectionPoint(480, 1.0, a=0.5, b=0.5)])
    )
    return chart


@pytest.fixture
def actions() -> ActionStack:
    return ActionStack(Chart())


@pytest.fixture
def make_cursor() -> CursorFactory:
    def _make_cursor(
        tick: int,
        lane: float = 0.0,
        pos: tuple[float, float] = (0.0, 0.0),
        tick_f: float | None = None,
    ) -> CursorInfo:
        return CursorInfo(tick, float(tick) if tick_f is None else tick_f, lane, pos)

    return _make_cursor


@pytest.fixture
def make_ksh() -> KshFactory:
    """Build a KSH document from header lines and a list of measures."""

    def _make_ksh(header: list[str], measures: list[list[str]]) -> io.StringIO:
        lines = list(header)
        for measure in measures:
            lines.append("--")
            lines.extend(measure)
        lines.append("--")
        return io.StringIO("\r\n".join(lines) + "\r\n")

    return _make_ksh
