import copy

import pytest

from ksoneditor.actions import (
    ActionStack,
    AddInterval,
    AddLaserSection,
    AdjustLaserCurve,
    RemoveInterval,
    RemoveLaserSection,
)
from ksoneditor.classes.base import ActionError
from ksoneditor.classes.chart import (
    Chart,
    GraphSectionPoint,
    Interval,
    LaserSection,
)
from ksoneditor.classes.enums import ButtonKind, LaserSide


def _section(y: int, length: int = 240) -> LaserSection:
    return LaserSection(y, [GraphSectionPoint(0, 0.0), GraphSectionPoint(length, 1.0)])


def test_empty_stack():
    actions = ActionStack()
    assert actions.chart == Chart()
    assert actions.prev_action_desc() is None
    assert actions.next_action_desc() is None
    assert not actions.undo()
    assert not actions.redo()


def test_undo_redo(actions):
    actions.new_action(AddInterval(ButtonKind.BT, 1, Interval(240)))
    assert actions.chart.note.bt[1] == [Interval(240)]
    assert actions.prev_action_desc() == "Add BT"

    assert actions.undo()
    assert actions.chart.note.bt[1] == []
    assert actions.prev_action_desc() is None
    assert actions.next_action_desc() == "Add BT"

    assert actions.redo()
    assert actions.chart.note.bt[1] == [Interval(240)]
    assert actions.next_action_desc() is None


def test_new_action_clears_redo(actions):
    actions.new_action(AddInterval(ButtonKind.FX, 0, Interval(0)))
    actions.new_action(AddInterval(ButtonKind.FX, 0, Interval(480)))
    actions.undo()
    actions.undo()
    assert actions.next_action_desc() == "Add FX"

    actions.new_action(AddInterval(ButtonKind.BT, 0, Interval(0)))
    assert actions.next_action_desc() is None
    assert not actions.redo()
    assert actions.chart.note.fx[0] == []


def test_undo_then_redo_restores_chart(actions):
    actions.new_action(AddLaserSection(LaserSide.LEFT, _section(0)))
    actions.new_action(AddInterval(ButtonKind.BT, 0, Interval(0, 480)))
    actions.new_action(RemoveLaserSection(LaserSide.LEFT, 0))
    before = copy.deepcopy(actions.chart)

    actions.undo()
    assert actions.chart != before
    actions.redo()
    assert actions.chart == before


def test_lanes_stay_sorted_and_disjoint(actions):
    for y in [480, 0, 960, 240]:
        actions.new_action(AddInterval(ButtonKind.BT, 2, Interval(y, 120)))
    actions.new_action(RemoveInterval(ButtonKind.BT, 2, 1))
    actions.undo()
    actions.new_action(RemoveInterval(ButtonKind.BT, 2, 3))

    lane = actions.chart.note.bt[2]
    assert [i.y for i in lane] == [0, 240, 480]
    for first, second in zip(lane, lane[1:]):
        assert first.end <= second.y


def test_failed_action_leaves_chart_untouched(actions):
    actions.new_action(AddInterval(ButtonKind.BT, 0, Interval(0, 480)))
    chart = actions.chart

    with pytest.raises(ActionError):
        actions.new_action(AddInterval(ButtonKind.BT, 0, Interval(240)))
    assert actions.chart is chart
    assert actions.chart.note.bt[0] == [Interval(0, 480)]
    assert actions.prev_action_desc() == "Add BT"


def test_remove_missing_section_fails(actions):
    with pytest.raises(ActionError):
        actions.new_action(RemoveLaserSection(LaserSide.RIGHT, 0))
    assert actions.prev_action_desc() is None


def test_invalid_laser_section_is_rejected(actions):
    with pytest.raises(ActionError):
        actions.new_action(AddLaserSection(LaserSide.LEFT, LaserSection(0)))
    assert actions.chart.note.laser[0] == []


def test_add_laser_section_sorts(actions):
    actions.new_action(AddLaserSection(LaserSide.RIGHT, _section(960)))
    actions.new_action(AddLaserSection(LaserSide.RIGHT, _section(0)))
    assert [s.y for s in actions.chart.note.laser[1]] == [0, 960]
    assert actions.prev_action_desc() == "Add Right Laser"

    actions.undo()
    assert [s.y for s in actions.chart.note.laser[1]] == [960]


def test_action_payload_is_copied(actions):
    section = _section(0)
    action = AddLaserSection(LaserSide.LEFT, section)
    section.v.append(GraphSectionPoint(480, 0.5))
    actions.new_action(action)
    assert actions.chart.note.laser[0] == [_section(0)]

    actions.chart.note.laser[0][0].v[0].v = 0.7
    actions.undo()
    actions.redo()
    assert actions.chart.note.laser[0] == [_section(0)]


def test_adjust_laser_curve(actions):
    actions.new_action(AddLaserSection(LaserSide.LEFT, _section(0)))
    actions.new_action(AdjustLaserCurve(LaserSide.LEFT, 0, 0, 0.25, 0.75))
    point = actions.chart.note.laser[0][0].v[0]
    assert (point.a, point.b) == (0.25, 0.75)
    assert actions.prev_action_desc() == "Adjust Left Laser Curve"

    actions.undo()
    point = actions.chart.note.laser[0][0].v[0]
    assert (point.a, point.b) == (None, None)


def test_adjust_laser_curve_out_of_range(actions):
    actions.new_action(AddLaserSection(LaserSide.LEFT, _section(0)))
    with pytest.raises(ActionError):
        actions.new_action(AdjustLaserCurve(LaserSide.LEFT, 0, 0, 1.5, 0.5))
    assert actions.chart.note.laser[0][0].v[0].a is None


@pytest.mark.parametrize(
    "action, description",
    [
        (AddInterval(ButtonKind.BT, 0, Interval(0)), "Add BT"),
        (RemoveInterval(ButtonKind.FX, 0, 0), "Remove FX"),
        (AddLaserSection(LaserSide.LEFT, _section(0)), "Add Left Laser"),
        (RemoveLaserSection(LaserSide.LEFT, 0), "Remove left laser"),
        (RemoveLaserSection(LaserSide.RIGHT, 0), "Remove right laser"),
        (AdjustLaserCurve(LaserSide.RIGHT, 0, 0, 0.5, 0.5), "Adjust Right Laser Curve"),
    ],
)
def test_descriptions(action, description):
    assert action.description == description


def test_invalid_lane():
    with pytest.raises(ValueError):
        AddInterval(ButtonKind.FX, 2, Interval(0))


def test_reset(actions):
    actions.new_action(AddInterval(ButtonKind.BT, 0, Interval(0)))
    chart = Chart()
    chart.meta.title = "New"
    actions.reset(chart)
    assert actions.chart is chart
    assert actions.prev_action_desc() is None
    assert not actions.undo()
