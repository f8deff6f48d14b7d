#!/usr/bin/env python
import logging
import time

import dearpygui.dearpygui as dpg

from pathlib import Path
from tkinter import filedialog
from typing import Any, Callable

from ksoneditor.classes.enums import ChartTool
from ksoneditor.editor import ChartEditor
from ksoneditor.screen import Circle, Polyline, Rectangle

ObjectID = int | str
# fmt: off
TOOL_LABELS = {
    ChartTool.NONE  : "Select",
    ChartTool.BT    : "BT",
    ChartTool.FX    : "FX",
    ChartTool.LLASER: "Left laser",
    ChartTool.RLASER: "Right laser",
}
# fmt: on
SCROLL_SPEED = 40.0
DRAWLIST_HEIGHT = 620
BACKGROUND_COLOR = 16, 16, 16, 255


class FunctionHandler(logging.Handler):
    _handler: Callable[[str], Any]

    def __init__(self, callable: Callable[[str], Any], level: int | str = 0) -> None:
        super().__init__(level)
        self._handler = callable

    def emit(self, record: logging.LogRecord) -> None:
        self._handler(self.format(record))


class KSONEditorApp:
    ui: dict[str, ObjectID] = dict()

    editor: ChartEditor
    current_path: Path | None = None
    dragging: bool = False

    logger: logging.Logger

    def __init__(self):
        self.editor = ChartEditor()

        logging.basicConfig(format="[%(levelname)s %(asctime)s] %(name)s: %(message)s", level=logging.DEBUG)

        self.logger = logging.getLogger("main")

        log_handler = FunctionHandler(self.log)
        log_handler.setLevel(logging.INFO)
        log_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
        logging.getLogger("").addHandler(log_handler)

        dpg.create_context()
        dpg.create_viewport(title="KSON Editor", width=1280, height=800)
        dpg.setup_dearpygui()

        # ================= #
        # WINDOW/APP LAYOUT #
        # ================= #

        with dpg.window(label="KSON Editor") as self.ui["primary_window"]:
            with dpg.menu_bar():
                with dpg.menu(label="File"):
                    dpg.add_menu_item(label="New", callback=self.new_chart)
                    dpg.add_menu_item(label="Open...", callback=self.open_chart)
                    dpg.add_menu_item(label="Save", callback=self.save_chart)
                    dpg.add_menu_item(label="Save As...", callback=self.save_chart_as)
                with dpg.menu(label="Edit"):
                    self.ui["undo"] = dpg.add_menu_item(label="Undo", callback=self.undo, enabled=False)
                    self.ui["redo"] = dpg.add_menu_item(label="Redo", callback=self.redo, enabled=False)

            with dpg.group(horizontal=True):
                for tool, label in TOOL_LABELS.items():
                    self.ui[f"tool_{tool.name}"] = dpg.add_button(label=label, callback=self.set_tool, user_data=tool)
                self.ui["loaded_file"] = dpg.add_text("[new chart]")

            self.ui["drawlist"] = dpg.add_drawlist(width=1260, height=DRAWLIST_HEIGHT)

            with dpg.child_window(label="Logs", width=-1, height=-1, horizontal_scrollbar=True) as self.ui["log"]:
                pass

        # ============== #
        # INPUT HANDLERS #
        # ============== #

        with dpg.handler_registry():
            dpg.add_mouse_click_handler(button=dpg.mvMouseButton_Left, callback=self.on_left_press)
            dpg.add_mouse_release_handler(button=dpg.mvMouseButton_Left, callback=self.on_left_release)
            dpg.add_mouse_click_handler(button=dpg.mvMouseButton_Middle, callback=self.on_middle_click)
            dpg.add_mouse_move_handler(callback=self.on_mouse_move)
            dpg.add_mouse_wheel_handler(callback=self.on_mouse_wheel)
            dpg.add_key_press_handler(dpg.mvKey_Z, callback=self.on_shortcut, user_data="undo")
            dpg.add_key_press_handler(dpg.mvKey_Y, callback=self.on_shortcut, user_data="redo")

        with dpg.theme() as primary_window_theme:
            with dpg.theme_component(dpg.mvAll):
                dpg.add_theme_style(dpg.mvStyleVar_FrameRounding, 5, category=dpg.mvThemeCat_Core)
                dpg.add_theme_style(dpg.mvStyleVar_WindowBorderSize, 0, category=dpg.mvThemeCat_Core)

            with dpg.theme_component(dpg.mvButton, enabled_state=True):
                dpg.add_theme_color(dpg.mvThemeCol_Button, (23, 60, 95), category=dpg.mvThemeCat_Core)
                dpg.add_theme_color(dpg.mvThemeCol_Header, (23, 60, 95), category=dpg.mvThemeCat_Core)

        with dpg.theme() as log_theme:
            with dpg.theme_component(dpg.mvText):
                dpg.add_theme_style(dpg.mvStyleVar_FramePadding, 4, 0, category=dpg.mvThemeCat_Core)
                dpg.add_theme_style(dpg.mvStyleVar_ItemSpacing, 8, 0, category=dpg.mvThemeCat_Core)

        dpg.bind_item_theme(self.ui["primary_window"], primary_window_theme)
        dpg.bind_item_theme(self.ui["log"], log_theme)
        dpg.set_primary_window(self.ui["primary_window"], True)

        dpg.show_viewport()
        while dpg.is_dearpygui_running():
            self.redraw()
            dpg.render_dearpygui_frame()

        dpg.destroy_context()

    def log(self, message):
        dpg.add_text(f'[{time.strftime("%H:%M:%S", time.localtime())}] {message}', parent=self.ui["log"])
        dpg.set_y_scroll(self.ui["log"], dpg.get_y_scroll_max(self.ui["log"]))

    # ============== #
    # INPUT HANDLING #
    # ============== #

    def drawing_pos(self) -> tuple[float, float] | None:
        if not dpg.is_item_hovered(self.ui["drawlist"]):
            return None
        x, y = dpg.get_drawing_mouse_pos()
        return x, y

    def on_left_press(self):
        if (pos := self.drawing_pos()) is None:
            return
        self.dragging = True
        self.editor.drag_start(*pos)

    def on_left_release(self):
        if not self.dragging:
            return
        self.dragging = False
        x, y = dpg.get_drawing_mouse_pos()
        self.editor.drag_end(x, y)

    def on_middle_click(self):
        if (pos := self.drawing_pos()) is not None:
            self.editor.middle_clicked(*pos)

    def on_mouse_move(self):
        if self.dragging or dpg.is_item_hovered(self.ui["drawlist"]):
            x, y = dpg.get_drawing_mouse_pos()
            self.editor.mouse_motion(x, y)

    def on_mouse_wheel(self, sender: ObjectID, app_data: int):
        if dpg.is_item_hovered(self.ui["drawlist"]):
            self.editor.scroll(-app_data * SCROLL_SPEED)

    def on_shortcut(self, sender: ObjectID, app_data: Any, user_data: str):
        if not dpg.is_key_down(dpg.mvKey_LControl):
            return
        if user_data == "undo":
            self.undo()
        else:
            self.redo()

    def set_tool(self, sender: ObjectID, app_data: Any, user_data: ChartTool):
        self.editor.set_tool(user_data)

    # ======= #
    # DRAWING #
    # ======= #

    def update_menu_labels(self):
        prev_desc = self.editor.actions.prev_action_desc()
        next_desc = self.editor.actions.next_action_desc()
        dpg.configure_item(
            self.ui["undo"], label=f"Undo: {prev_desc}" if prev_desc else "Undo", enabled=prev_desc is not None
        )
        dpg.configure_item(
            self.ui["redo"], label=f"Redo: {next_desc}" if next_desc else "Redo", enabled=next_desc is not None
        )

    def redraw(self):
        width, height = dpg.get_item_rect_size(self.ui["drawlist"])
        if width > 0 and height > 0:
            self.editor.screen.w, self.editor.screen.h = width, height

        drawlist = self.ui["drawlist"]
        dpg.delete_item(drawlist, children_only=True)
        dpg.draw_rectangle((0, 0), (self.editor.screen.w, self.editor.screen.h), fill=BACKGROUND_COLOR, parent=drawlist)
        for shape in self.editor.draw():
            match shape:
                case Polyline(points=points, color=color, thickness=thickness):
                    dpg.draw_polyline(points, color=color, thickness=thickness, parent=drawlist)
                case Circle(center=center, radius=radius, color=color):
                    dpg.draw_circle(center, radius, color=color, fill=color, parent=drawlist)
                case Rectangle(pmin=pmin, pmax=pmax, color=color):
                    dpg.draw_rectangle(pmin, pmax, color=color, fill=color, parent=drawlist)

        self.update_menu_labels()

    # ============= #
    # FILE HANDLING #
    # ============= #

    def undo(self):
        self.editor.undo()

    def redo(self):
        self.editor.redo()

    def new_chart(self):
        self.editor.new_chart()
        dpg.set_value(self.ui["loaded_file"], "[new chart]")

    def open_chart(self):
        file_path_str = filedialog.askopenfilename(
            filetypes=(
                ("Chart files", "*.kson *.ksh"),
                ("KSON charts", "*.kson"),
                ("K-Shoot Mania charts", "*.ksh"),
                ("All files", "*"),
            ),
            initialdir=self.current_path,
            title="Open chart",
        )
        if not file_path_str:
            return

        file_path = Path(file_path_str)
        self.log(f'Reading from "{file_path}"...')
        if not self.editor.open_file(file_path):
            return

        self.current_path = file_path.parent
        meta = self.editor.chart.meta
        self.log(f"Chart loaded: {meta.title} / {meta.artist} ({meta.difficulty.short_name} {meta.level})")
        dpg.set_value(self.ui["loaded_file"], str(file_path))

    def save_chart(self):
        if self.editor.file_path is None:
            self.save_chart_as()
            return
        self.editor.save_file()

    def save_chart_as(self):
        file_path_str = filedialog.asksaveasfilename(
            confirmoverwrite=True,
            defaultextension="kson",
            filetypes=(
                ("KSON charts", "*.kson"),
                ("All files", "*"),
            ),
            initialdir=self.current_path,
            initialfile=self.editor.file_path.name if self.editor.file_path is not None else None,
            title="Save chart",
        )
        if not file_path_str:
            return

        file_path = Path(file_path_str)
        if self.editor.save_file(file_path):
            self.current_path = file_path.parent
            dpg.set_value(self.ui["loaded_file"], str(file_path))


if __name__ == "__main__":
    KSONEditorApp()
