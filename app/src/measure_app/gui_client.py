#!/usr/bin/env python3
"""
GUI client for the floor-plan measurement tool.

Load a raster drawing or PDF, draw a reference line of known length to set
the scale, then trace lines, rectangles, pipes, walls and windows.  Closed
outlines become polygons whose area is reported in square meters; holes can
be cut out of them and the last polygon can be merged into the one before.
The annotated drawing is exported as a PNG with an information footer.

Every user gesture is translated into a command for ``MeasureController``;
the canvas is a Pillow rendering of the controller's state.

Note: this client needs Tkinter and a graphical desktop.
"""
from __future__ import annotations

import logging
import os
import sys
from typing import List, Optional

try:
    import tkinter as tk
    from tkinter import filedialog, messagebox, simpledialog
    from PIL import ImageTk
except ImportError:
    # Tkinter unavailable (e.g. headless environment)
    tk = None  # type: ignore

from .core import commands as cmd
from .core import facade
from .core.config import AppConfig
from .core.controller import MeasureController
from .core.errors import MeasureError
from .core.model import LineKind, ToolMode
from .app_io.export_mod import export_filename, save_csv, save_png

logger = logging.getLogger(__name__)

TOOL_LABELS = (
    (ToolMode.LINE, "Line"),
    (ToolMode.RECTANGLE, "Rectangle"),
    (ToolMode.PIPE, "Pipe"),
    (ToolMode.SUBTRACT, "Subtract"),
    (ToolMode.WALLS, "Walls"),
    (ToolMode.WINDOW, "Window"),
    (ToolMode.SELECT, "Select"),
)
STATUS_DURATION_MS: int = 2500


class MeasureAppGUI:
    """Main class encapsulating the Tkinter application."""

    def __init__(self, root: "tk.Tk", config: Optional[AppConfig] = None) -> None:
        self.root = root
        self.root.title("Floor Plan Measurement Tool")
        self.root.geometry("1200x800")
        self.controller = MeasureController(config=config, status_sink=self.show_status_message)
        self.state = self.controller.state
        self.photo: Optional["ImageTk.PhotoImage"] = None
        self._status_job: Optional[str] = None
        self._skip_release = False
        self._prompt_scheduled = False

        main_frame = tk.Frame(root)
        main_frame.pack(fill=tk.BOTH, expand=True)
        canvas_frame = tk.Frame(main_frame)
        canvas_frame.pack(side=tk.LEFT, fill=tk.BOTH, expand=True)
        self.canvas = tk.Canvas(canvas_frame, bg='gray', width=800, height=600, highlightthickness=0)
        self.canvas.pack(side=tk.TOP, fill=tk.BOTH, expand=True)

        ctrl = tk.Frame(canvas_frame)
        ctrl.pack(side=tk.BOTTOM, fill=tk.X)
        tk.Button(ctrl, text="Zoom In", command=lambda: self.send(cmd.Zoom(1))).pack(side=tk.LEFT, padx=2)
        tk.Button(ctrl, text="Zoom Out", command=lambda: self.send(cmd.Zoom(-1))).pack(side=tk.LEFT, padx=2)
        tk.Button(ctrl, text="Reset View", command=lambda: self.send(cmd.ResetView())).pack(side=tk.LEFT, padx=2)

        side = tk.Frame(main_frame)
        side.pack(side=tk.RIGHT, fill=tk.Y)
        tk.Button(side, text="Load Drawing", command=self.load_drawing).pack(fill=tk.X)
        tk.Button(side, text="Load Config", command=self.load_config).pack(fill=tk.X)
        tk.Button(side, text="Save Config", command=self.save_config).pack(fill=tk.X)

        tk.Label(side, text="Project name").pack(fill=tk.X, pady=(10, 0))
        self.project_var = tk.StringVar(value="")
        self.project_var.trace_add("write", lambda *_: setattr(self.state, "project_name", self.project_var.get()))
        tk.Entry(side, textvariable=self.project_var).pack(fill=tk.X)

        tools = tk.LabelFrame(side, text="Tool")
        tools.pack(fill=tk.X, pady=(10, 0))
        self.tool_var = tk.StringVar(value=self.state.tool.value)
        for tool, label in TOOL_LABELS:
            tk.Radiobutton(
                tools, text=label, value=tool.value, variable=self.tool_var, anchor="w",
                command=lambda: self.send(cmd.SelectTool(ToolMode(self.tool_var.get()))),
            ).pack(fill=tk.X)

        tk.Button(side, text="Undo", command=lambda: self.send(cmd.Undo())).pack(fill=tk.X, pady=(10, 0))
        tk.Button(side, text="Delete Selected", command=lambda: self.send(cmd.DeleteSelected())).pack(fill=tk.X)
        tk.Button(side, text="Merge Last Polygon", command=lambda: self.send(cmd.Merge())).pack(fill=tk.X)
        tk.Button(side, text="Rename Polygon", command=self.rename_polygon).pack(fill=tk.X)
        tk.Button(side, text="Polygon Color", command=self.recolor_polygon).pack(fill=tk.X)
        tk.Button(side, text="Length Labels", command=lambda: self.send(cmd.ToggleLengthLabels())).pack(fill=tk.X)
        tk.Button(side, text="Angle Snap", command=lambda: self.send(cmd.ToggleAngleSnap())).pack(fill=tk.X)
        tk.Button(side, text="Point Snap", command=lambda: self.send(cmd.TogglePointSnap())).pack(fill=tk.X)
        tk.Button(side, text="Recalibrate", command=self.recalibrate).pack(fill=tk.X, pady=(10, 0))
        tk.Button(side, text="Clear All", command=self.clear_all).pack(fill=tk.X)
        tk.Button(side, text="Export PNG", command=self.export_png).pack(fill=tk.X, pady=(10, 0))
        tk.Button(side, text="Export CSV", command=self.export_csv).pack(fill=tk.X)

        self.scale_label = tk.Label(side, text="Scale: not calibrated")
        self.scale_label.pack(fill=tk.X, pady=(10, 0))
        self.polygon_list = tk.Listbox(side, height=10)
        self.polygon_list.pack(fill=tk.BOTH, expand=True)
        self.total_label = tk.Label(side, text="Total Area: 0.00 m²")
        self.total_label.pack(fill=tk.X)
        self.status_label = tk.Label(side, text="", fg='gray', wraplength=220, justify=tk.LEFT)
        self.status_label.pack(fill=tk.X)

        self.canvas.bind("<ButtonPress-1>", lambda e: self.send(cmd.BeginDrag(e.x, e.y)))
        self.canvas.bind("<ButtonRelease-1>", self.on_release)
        self.canvas.bind("<Double-Button-1>", self.on_double_click)
        self.canvas.bind("<Motion>", lambda e: self.send(cmd.MoveCursor(e.x, e.y)))
        self.canvas.bind("<B1-Motion>", lambda e: self.send(cmd.MoveCursor(e.x, e.y)))
        self.canvas.bind("<ButtonPress-3>", self.on_pan_start)
        self.canvas.bind("<B3-Motion>", lambda e: self.send(cmd.MoveCursor(e.x, e.y)))
        self.canvas.bind("<ButtonRelease-3>", lambda e: facade.pan_on_end(self.state))
        self.canvas.bind("<MouseWheel>", self.on_wheel)
        self.canvas.bind("<Button-4>", lambda e: self.send(cmd.Zoom(1, (e.x, e.y), wheel=True)))
        self.canvas.bind("<Button-5>", lambda e: self.send(cmd.Zoom(-1, (e.x, e.y), wheel=True)))
        self.canvas.bind("<Configure>", lambda e: self.send(cmd.Resize(e.width, e.height)))
        self.root.bind("<Escape>", lambda e: self.send(cmd.Cancel()))
        self.root.bind("<Delete>", lambda e: self.send(cmd.DeleteSelected()))
        self.root.bind("<Control-z>", lambda e: self.send(cmd.Undo()))

    # ----- Command plumbing -----
    def send(self, command) -> object:
        result = self.controller.dispatch(command)
        if self.state.pending_length is not None and not self._prompt_scheduled:
            self._prompt_scheduled = True
            self.root.after_idle(self.prompt_length)
        self.redraw()
        return result

    def on_double_click(self, event) -> None:
        # a release that follows a wall edit must not place another point
        self._skip_release = self.send(cmd.DoubleClick(event.x, event.y)) is not None

    def on_release(self, event) -> None:
        if self._skip_release:
            self._skip_release = False
            return
        additive = bool(event.state & 0x0001)  # Shift
        self.send(cmd.EndDrag(event.x, event.y, additive))

    def on_pan_start(self, event) -> None:
        facade.pan_on_start(self.state, event.x, event.y)

    def on_wheel(self, event) -> None:
        self.send(cmd.Zoom(1 if event.delta > 0 else -1, (event.x, event.y), wheel=True))

    def prompt_length(self) -> None:
        pending = self.state.pending_length
        if pending is None:
            self._prompt_scheduled = False
            return
        if facade.scale_is_pending(self.state):
            title, prompt = "Calibrate", "Real length of the reference line (m):"
        else:
            title = "Window length" if pending.group.kind is LineKind.WINDOW else "Wall length"
            prompt = f"Length in meters (currently {pending.group.length_m or 0.0:.2f}):"
        value = simpledialog.askstring(title, prompt, parent=self.root)
        self._prompt_scheduled = False
        if value is None:
            self.send(cmd.CancelLength())
        else:
            self.send(cmd.SubmitLength(value))

    def show_status_message(self, msg: str, duration_ms: int = STATUS_DURATION_MS) -> None:
        """Show a transient status message in the side panel."""
        label = getattr(self, "status_label", None)
        if label is None:
            return
        label.config(text=msg)
        if self._status_job is not None:
            self.root.after_cancel(self._status_job)
        self._status_job = self.root.after(duration_ms, lambda: label.config(text=""))

    # ----- File operations -----
    def load_drawing(self) -> None:
        path = filedialog.askopenfilename(
            title="Select drawing",
            filetypes=[("Drawings", "*.pdf *.png *.jpg *.jpeg *.gif *.webp"), ("All files", "*.*")],
        )
        if not path:
            return
        try:
            with open(path, 'rb') as f:
                data = f.read()
            background = facade.file_load_document(
                data, os.path.basename(path), self.state.config.max_upload_bytes, self.state.config.pdf_render_zoom
            )
        except (OSError, MeasureError) as e:
            messagebox.showerror("Error", f"Failed to load drawing: {e}")
            return
        self.controller.load_image(background)
        self.redraw()

    def load_config(self) -> None:
        path = filedialog.askopenfilename(title="Select Config JSON", filetypes=[("JSON files", "*.json")])
        if not path:
            return
        try:
            self.state.config = facade.file_load_config(path)
        except MeasureError as e:
            messagebox.showerror("Error", str(e))
            return
        messagebox.showinfo("Config", "Configuration loaded.")

    def save_config(self) -> None:
        path = filedialog.asksaveasfilename(title="Save Config", defaultextension='.json', filetypes=[("JSON files", "*.json")])
        if not path:
            return
        try:
            facade.file_save_config(self.state.config, path)
        except MeasureError as e:
            messagebox.showerror("Error", str(e))
            return
        messagebox.showinfo("Config", "Configuration saved.")

    def export_png(self) -> None:
        if self.state.image is None:
            messagebox.showwarning("Warning", "Please upload a drawing first")
            return
        region = None
        if self.state.selected_points:
            # export the bounding box of the selected points when there is one
            pts = [p for p in self.state.points if p.id in self.state.selected_points]
            xs, ys = [p.x for p in pts], [p.y for p in pts]
            region = (min(xs), min(ys), max(xs) - min(xs), max(ys) - min(ys))
        try:
            suggested = export_filename(self.state.project_name)
        except MeasureError as e:
            messagebox.showerror("Error", str(e))
            return
        path = filedialog.asksaveasfilename(
            title="Save Screenshot", initialfile=suggested, defaultextension='.png', filetypes=[("PNG", "*.png")]
        )
        if not path:
            return
        try:
            save_png(self.state, path, region)
        except MeasureError as e:
            messagebox.showerror("Error", str(e))

    def export_csv(self) -> None:
        path = filedialog.asksaveasfilename(title="Save CSV", defaultextension='.csv', filetypes=[("CSV files", "*.csv")])
        if not path:
            return
        try:
            save_csv(self.state, path)
        except MeasureError as e:
            messagebox.showerror("Error", str(e))

    # ----- Polygon panel -----
    def _selected_polygon_id(self) -> Optional[str]:
        sel = self.polygon_list.curselection()
        if not sel or sel[0] >= len(self.state.polygons):
            return None
        return self.state.polygons[sel[0]].id

    def rename_polygon(self) -> None:
        pid = self._selected_polygon_id()
        if pid is None:
            return
        name = simpledialog.askstring("Rename", "Polygon name:", parent=self.root)
        if name is not None:
            self.send(cmd.RenamePolygon(pid, name))

    def recolor_polygon(self) -> None:
        pid = self._selected_polygon_id()
        if pid is None:
            return
        color = simpledialog.askstring("Polygon color", "Color (#rrggbb):", parent=self.root)
        if color:
            self.send(cmd.RecolorPolygon(pid, color))

    def recalibrate(self) -> None:
        if messagebox.askyesno("Recalibrate", "This clears the scale and every measurement. Continue?"):
            self.send(cmd.Recalibrate())

    def clear_all(self) -> None:
        if messagebox.askyesno("Clear All", "Remove every line and polygon?"):
            self.send(cmd.ClearAll())

    # ----- Drawing and Display -----
    def redraw(self) -> None:
        """Render the state with Pillow and show it on the canvas."""
        image = facade.render_scene(self.state)
        self.photo = ImageTk.PhotoImage(image)
        self.canvas.delete("all")
        self.canvas.create_image(0, 0, anchor=tk.NW, image=self.photo)
        self.tool_var.set(self.state.tool.value)
        self.update_info_panel()

    def update_info_panel(self) -> None:
        cal = self.state.calibration
        if cal is None:
            self.scale_label.config(text="Scale: not calibrated")
        else:
            self.scale_label.config(text=f"Scale: 1px = {1 / cal.pixels_per_meter:.4f}m")
        rows: List[str] = []
        for polygon in self.state.polygons:
            extra = f" (-{len(polygon.subtracts)})" if polygon.subtracts else ""
            rows.append(f"{polygon.name}: {polygon.area_m2:.2f} m²{extra}")
        self.polygon_list.delete(0, tk.END)
        for row in rows:
            self.polygon_list.insert(tk.END, row)
        text = f"Total Area: {self.state.total_area():.2f} m²"
        if self.state.pipes():
            text += f"\nTotal Pipes: {self.state.total_pipe_length():.2f} m"
        self.total_label.config(text=text)


def main() -> None:
    config = AppConfig()
    if len(sys.argv) > 1:
        config = facade.file_load_config(sys.argv[1])
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if tk is None:
        raise RuntimeError("Tkinter is not available in this environment. Please run this script on a system with a graphical desktop and Tk installed.")
    root = tk.Tk()
    MeasureAppGUI(root, config)
    root.mainloop()


if __name__ == '__main__':
    main()
