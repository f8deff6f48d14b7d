import pytest

from ksoneditor.classes.base import TimeSignature
from ksoneditor.classes.chart import (
    BeatInfo,
    ByPulse,
    Chart,
    GraphSectionPoint,
    Interval,
    LaserSection,
    MetaInfo,
    NoteInfo,
    insert_interval,
    insert_section,
)
from ksoneditor.classes.enums import ButtonKind, LaserSide


def test_interval_rejects_negative_values():
    with pytest.raises(ValueError):
        Interval(-1)
    with pytest.raises(ValueError):
        Interval(0, -10)


@pytest.mark.parametrize(
    "first, second, expected",
    [
        (Interval(0), Interval(0), True),
        (Interval(0), Interval(60), False),
        (Interval(0, 240), Interval(120), True),
        (Interval(0, 240), Interval(240), False),
        (Interval(0, 240), Interval(239, 10), True),
        (Interval(0, 240), Interval(240, 10), False),
        (Interval(120), Interval(0, 240), True),
    ],
)
def test_interval_overlaps(first, second, expected):
    assert first.overlaps(second) is expected
    assert second.overlaps(first) is expected


def test_insert_interval_keeps_lane_sorted():
    lane: list[Interval] = []
    for y in [480, 0, 240, 960]:
        insert_interval(lane, Interval(y))
    assert [i.y for i in lane] == [0, 240, 480, 960]


def test_insert_interval_rejects_overlap():
    lane = [Interval(0, 480)]
    with pytest.raises(ValueError):
        insert_interval(lane, Interval(240))
    assert lane == [Interval(0, 480)]


def test_insert_interval_returns_index():
    lane = [Interval(0), Interval(480)]
    assert insert_interval(lane, Interval(240)) == 1


def test_insert_section_is_stable_for_equal_ticks():
    first = LaserSection(0, [GraphSectionPoint(0, 0.0)])
    second = LaserSection(0, [GraphSectionPoint(0, 1.0)])
    sections = [LaserSection(480, [GraphSectionPoint(0, 0.5)])]
    insert_section(sections, first)
    assert insert_section(sections, second) == 1
    assert sections == [first, second, LaserSection(480, [GraphSectionPoint(0, 0.5)])]


def test_graph_section_point_range():
    with pytest.raises(ValueError):
        GraphSectionPoint(0, 1.5)
    with pytest.raises(ValueError):
        GraphSectionPoint(0, 0.5, a=-0.1)
    with pytest.raises(ValueError):
        GraphSectionPoint(-1, 0.5)


def test_laser_section_validation():
    LaserSection(0, [GraphSectionPoint(0, 0.0), GraphSectionPoint(0, 0.0, vf=1.0)]).validate()
    with pytest.raises(ValueError):
        LaserSection(0).validate()
    with pytest.raises(ValueError):
        LaserSection(0, [GraphSectionPoint(10, 0.0)]).validate()
    with pytest.raises(ValueError):
        LaserSection(0, [GraphSectionPoint(0, 0.0), GraphSectionPoint(200, 0.5), GraphSectionPoint(100, 1.0)]).validate()
    with pytest.raises(ValueError):
        LaserSection(0, [GraphSectionPoint(0, 0.0)], wide=0).validate()


def test_laser_section_contains_is_half_open(laser_chart):
    section = laser_chart.note.laser[0][0]
    assert section.end == 300
    assert not section.contains(99)
    assert section.contains(100)
    assert section.contains(299)
    assert not section.contains(300)


def test_laser_section_value_at():
    section = LaserSection(0, [GraphSectionPoint(0, 0.0), GraphSectionPoint(200, 1.0)])
    assert section.value_at(0) == 0.0
    assert section.value_at(50) == pytest.approx(0.25)
    assert section.value_at(200) == 1.0
    assert section.value_at(201) is None
    assert section.value_at(-1) is None


def test_laser_section_value_at_with_linear_curve():
    section = LaserSection(0, [GraphSectionPoint(0, 0.0, a=0.5, b=0.5), GraphSectionPoint(200, 1.0)])
    assert section.value_at(50) == pytest.approx(0.25)


def test_laser_section_value_at_slam():
    section = LaserSection(0, [GraphSectionPoint(0, 0.0, vf=1.0), GraphSectionPoint(200, 0.0)])
    assert section.value_at(0) == 1.0
    assert section.value_at(100) == pytest.approx(0.5)


def test_note_info_counts():
    note = NoteInfo()
    note.bt[0] = [Interval(0), Interval(240, 240)]
    note.fx[1] = [Interval(0)]
    note.laser[1] = [LaserSection(0, [GraphSectionPoint(0, 0.0, vf=1.0), GraphSectionPoint(240, 1.0)])]
    assert note.chip_notecount == 2
    assert note.long_notecount == 1
    assert note.vol_notecount == 1
    assert note.slam_notecount == 1
    assert note.lane(ButtonKind.FX, 1) is note.fx[1]
    assert note.lasers(LaserSide.RIGHT) is note.laser[1]


def test_beat_info_set_bpm_replaces_and_sorts():
    beat = BeatInfo()
    beat.set_bpm(960, 200.0)
    beat.set_bpm(0, 120.0)
    beat.set_bpm(960, 180.0)
    assert beat.bpm == [ByPulse(0, 120.0), ByPulse(960, 180.0)]
    assert beat.bpm_at(0) == 120.0
    assert beat.bpm_at(959) == 120.0
    assert beat.bpm_at(960) == 180.0


def test_time_signature():
    assert TimeSignature().measure_ticks(240) == 960
    assert TimeSignature(3, 4).measure_ticks(240) == 720
    assert TimeSignature(7, 8).measure_ticks(240) == 840
    with pytest.raises(ValueError):
        TimeSignature(0, 4)


def test_meta_info_omits_missing_std_bpm():
    assert "std_bpm" not in MetaInfo().to_kson()
    assert MetaInfo(std_bpm=150.0).to_kson()["std_bpm"] == 150.0


def test_graph_section_point_omits_missing_fields():
    assert GraphSectionPoint(0, 0.5).to_kson() == {"ry": 0, "v": 0.5}
    assert GraphSectionPoint.from_kson({"ry": 0, "v": 0.5, "vf": None}) == GraphSectionPoint(0, 0.5)


def test_from_kson_rejects_fractional_ticks():
    with pytest.raises(ValueError):
        Interval.from_kson({"y": 1.5})
    with pytest.raises(ValueError):
        Interval.from_kson({"y": 0, "l": 240.5})
    with pytest.raises(ValueError):
        GraphSectionPoint.from_kson({"ry": 0.5, "v": 0})
    assert Interval.from_kson({"y": 480.0, "l": 240}) == Interval(480, 240)


def test_chart_round_trip():
    chart = Chart()
    chart.meta.title = "Test"
    chart.meta.std_bpm = 180.0
    chart.beat.set_bpm(0, 180.0)
    chart.beat.set_time_sig(0, TimeSignature(3, 4))
    chart.note.bt[2] = [Interval(0), Interval(240, 480)]
    chart.note.laser[0] = [
        LaserSection(0, [GraphSectionPoint(0, 0.0), GraphSectionPoint(240, 1.0)]),
        LaserSection(960, [GraphSectionPoint(0, 0.3, vf=0.7, a=0.2, b=0.9), GraphSectionPoint(480, 0.1)], wide=2),
    ]
    assert Chart.from_kson(chart.to_kson()) == chart


def test_chart_from_kson_rejects_overlapping_notes():
    data = Chart().to_kson()
    data["note"]["bt"][0] = [{"y": 0, "l": 480}, {"y": 240, "l": 0}]
    with pytest.raises(ValueError):
        Chart.from_kson(data)
