import logging

import pytest

from ksoneditor.classes.chart import ByPulse, Interval
from ksoneditor.classes.enums import ChartTool
from ksoneditor.editor import ChartEditor
from ksoneditor.screen import Polyline, Rectangle
from ksoneditor.tools import ButtonInterval, LaserTool

# Screen position of tick 240 on the second BT lane
BT_POS = (30.0, 669.375)
# Screen position of tick 180 on the left laser lane
LASER_POS = (6.0, 679.53125)


@pytest.fixture
def editor() -> ChartEditor:
    return ChartEditor()


def test_new_chart_defaults(editor):
    assert editor.chart.beat.bpm == [ByPulse(0, 120.0)]
    assert editor.chart.beat.time_sig[0].y == 0
    assert editor.cursor_object is None
    assert editor.file_path is None


def test_set_tool(editor):
    editor.set_tool(ChartTool.BT)
    assert isinstance(editor.cursor_object, ButtonInterval)
    editor.set_tool(ChartTool.RLASER)
    assert isinstance(editor.cursor_object, LaserTool)
    editor.set_tool(ChartTool.NONE)
    assert editor.cursor_object is None


def test_cursor_info_snaps(editor):
    cursor = editor.cursor_info(30.0, 665.0)
    assert cursor.tick == 240
    assert cursor.tick_f > 240
    assert cursor.lane == 2.5


def test_no_tool_ignores_input(editor):
    editor.drag_start(*BT_POS)
    editor.mouse_motion(*BT_POS)
    editor.drag_end(*BT_POS)
    editor.middle_clicked(*BT_POS)
    assert editor.actions.prev_action_desc() is None


def test_place_bt(editor):
    editor.set_tool(ChartTool.BT)
    editor.drag_start(*BT_POS)
    editor.drag_end(*BT_POS)
    assert editor.chart.note.bt[1] == [Interval(240)]


def test_failed_edit_is_logged(editor, caplog):
    editor.set_tool(ChartTool.BT)
    editor.drag_start(*BT_POS)
    editor.drag_end(*BT_POS)
    with caplog.at_level(logging.WARNING):
        editor.drag_start(*BT_POS)
        editor.drag_end(*BT_POS)
    assert editor.chart.note.bt[1] == [Interval(240)]
    assert "cannot apply" in caplog.text


def test_undo_redo(editor):
    editor.set_tool(ChartTool.FX)
    editor.drag_start(*BT_POS)
    editor.drag_end(*BT_POS)
    assert editor.chart.note.fx[0] == [Interval(240)]

    assert editor.undo()
    assert editor.chart.note.fx[0] == []
    assert not editor.undo()
    assert editor.redo()
    assert editor.chart.note.fx[0] == [Interval(240)]
    assert not editor.redo()


def test_remove_laser_with_middle_click(laser_chart):
    editor = ChartEditor(laser_chart)
    editor.set_tool(ChartTool.LLASER)
    editor.middle_clicked(*LASER_POS)
    assert editor.chart.note.laser[0] == []
    assert editor.actions.prev_action_desc() == "Remove left laser"


def test_scroll_clamps(editor):
    editor.scroll(200)
    assert editor.screen.x_offset == 200
    editor.scroll(-500)
    assert editor.screen.x_offset == 0


def test_visible_columns(editor):
    assert editor.visible_columns() == range(0, 9)
    editor.scroll(300)
    assert editor.visible_columns() == range(2, 11)


def test_draw(editor):
    editor.set_tool(ChartTool.BT)
    editor.drag_start(*BT_POS)
    editor.drag_end(*BT_POS)
    shapes = editor.draw()
    assert any(isinstance(shape, Polyline) for shape in shapes)
    assert Rectangle((25, 667.375), (35, 669.375), (255, 255, 255, 255)) in shapes


def test_draw_lasers(laser_chart):
    editor = ChartEditor(laser_chart)
    lasers = [shape for shape in editor.draw() if isinstance(shape, Polyline) and shape.thickness > 1]
    assert len(lasers) == 1


def test_open_missing_file(editor, tmp_path, caplog):
    with caplog.at_level(logging.ERROR):
        assert not editor.open_file(tmp_path / "missing.ksh")
    assert "cannot open" in caplog.text
    assert editor.file_path is None


def test_open_invalid_file_keeps_chart(editor, tmp_path):
    path = tmp_path / "broken.kson"
    path.write_text("{")
    editor.set_tool(ChartTool.BT)
    editor.drag_start(*BT_POS)
    editor.drag_end(*BT_POS)
    assert not editor.open_file(path)
    assert editor.chart.note.bt[1] == [Interval(240)]


def test_open_wrong_document_shape_keeps_chart(editor, tmp_path, caplog):
    path = tmp_path / "broken.kson"
    path.write_text('{"version": "0.1.0", "note": []}')
    editor.set_tool(ChartTool.BT)
    editor.drag_start(*BT_POS)
    editor.drag_end(*BT_POS)
    with caplog.at_level(logging.ERROR):
        assert not editor.open_file(path)
    assert "malformed KSON document" in caplog.text
    assert editor.chart.note.bt[1] == [Interval(240)]
    assert editor.file_path is None


def test_open_ksh_and_save(editor, tmp_path):
    path = tmp_path / "chart.ksh"
    path.write_text("title=Song\nt=150\n--\n0000|00|--\n1000|00|--\n--\n", encoding="utf-8")
    assert editor.open_file(path)
    assert editor.file_path == tmp_path / "chart.kson"
    assert editor.chart.meta.title == "Song"
    assert editor.chart.note.bt[0] == [Interval(480)]
    assert editor.actions.prev_action_desc() is None

    assert editor.save_file()
    reopened = ChartEditor()
    assert reopened.open_file(tmp_path / "chart.kson")
    assert reopened.chart == editor.chart


def test_save_new_chart_without_path(editor, caplog):
    with caplog.at_level(logging.WARNING):
        assert not editor.save_file()
    assert "no file to save to" in caplog.text


def test_save_as(editor, tmp_path):
    path = tmp_path / "new.kson"
    assert editor.save_file(path)
    assert editor.file_path == path
    assert path.exists()


def test_new_chart_resets(editor, tmp_path):
    editor.set_tool(ChartTool.BT)
    editor.drag_start(*BT_POS)
    editor.drag_end(*BT_POS)
    editor.save_file(tmp_path / "chart.kson")
    editor.new_chart()
    assert editor.chart.note.bt[1] == []
    assert editor.file_path is None
    assert not editor.undo()
