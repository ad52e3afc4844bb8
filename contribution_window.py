"""Contribution-wall painter window (tkinter)."""

from datetime import date
from tkinter import filedialog, messagebox, simpledialog
from tkinter import font as tkfont
import logging
import tkinter as tk

from PIL import ImageTk, UnidentifiedImageError

from editor import EditorSession, Mode
from grid_logic import (
    DAY_ABBR,
    INTENSITIES,
    column_count,
    current_year,
    from_grid,
    is_valid_year,
    month_labels,
    to_grid,
    utc_today,
    year_dates,
)
from icon_gen import LEVEL_COLORS, create_icon_image
from image_quantizer import QuantizeOptions, load_bitmap
from paint_engine import PRIMARY, SECONDARY, PenMode, Tool
from settings import load_settings, save_settings

logger = logging.getLogger(__name__)

# Colours
ACCENT = "#216E39"
GRID_BG = "white"
HEADER_FG = "#555555"
PREVIEW_BG = "#F0883E"
SEL_OUTLINE = "#0969DA"
FUTURE_BG = "#F6F8FA"

MAX_COLUMNS = 54
CELL = 13


class _ToolTip:
    """Lightweight shared tooltip for grid cells."""

    __slots__ = ("_root", "_tw")

    def __init__(self, root: tk.Tk) -> None:
        self._root = root
        self._tw: tk.Toplevel | None = None

    def show(self, widget: tk.Widget, text: str) -> None:
        self.hide()
        tw = tk.Toplevel(self._root)
        tw.wm_overrideredirect(True)
        tw.wm_attributes("-topmost", True)
        lbl = tk.Label(
            tw, text=text, bg="#24292F", fg="white",
            relief="solid", borderwidth=0, padx=6, pady=3,
        )
        lbl.pack()
        x = widget.winfo_rootx() + widget.winfo_width() // 2
        y = widget.winfo_rooty() + widget.winfo_height() + 4
        tw.wm_geometry(f"+{x}+{y}")
        self._tw = tw

    def hide(self) -> None:
        if self._tw:
            self._tw.destroy()
            self._tw = None


class _GridPanel:
    """Pre-allocated 7 × 54 pool of cell canvases plus header labels."""

    __slots__ = ("frame", "font", "month_labels", "day_labels", "cells")

    def __init__(self, parent: tk.Frame, fonts: dict, bindings: dict) -> None:
        self.frame = tk.Frame(parent, bg=GRID_BG)

        self.font = fonts["small"]
        # Recreated per year by set_month_labels
        self.month_labels: list[tk.Label] = []

        self.day_labels: list[tk.Label] = []
        for row, abbr in enumerate(DAY_ABBR):
            text = abbr if row in (0, 2, 4) else ""
            lbl = tk.Label(self.frame, text=text, font=fonts["small"], bg=GRID_BG,
                           fg=HEADER_FG, width=4, anchor="e")
            lbl.grid(row=row + 1, column=0, sticky="e")
            self.day_labels.append(lbl)

        self.cells: list[list[tk.Canvas]] = []
        for row in range(7):
            row_cells: list[tk.Canvas] = []
            for col in range(MAX_COLUMNS):
                cell = tk.Canvas(
                    self.frame, width=CELL, height=CELL, bg=GRID_BG,
                    highlightthickness=1, highlightbackground=GRID_BG, borderwidth=0,
                )
                cell.grid(row=row + 1, column=col + 1, padx=1, pady=1)
                # Bind once; handlers look the date up in _widget_dates
                for sequence, handler in bindings.items():
                    cell.bind(sequence, handler)
                row_cells.append(cell)
            self.cells.append(row_cells)

    def set_month_labels(self, labels: list[tuple[int, str]]) -> None:
        for lbl in self.month_labels:
            lbl.destroy()
        self.month_labels = []
        for col, name in labels:
            lbl = tk.Label(self.frame, text=name, font=self.font, bg=GRID_BG,
                           fg=HEADER_FG, anchor="w", padx=0, pady=0)
            lbl.grid(row=0, column=col + 1, columnspan=3, sticky="w")
            self.month_labels.append(lbl)


class ContributionWindow:
    """One-year contribution grid with pen, eraser, stamping and clipboard."""

    def __init__(self, base=(), on_finalize=None) -> None:
        self.root = tk.Tk()
        self.root.title("Contribution Wall")
        self.root.configure(bg=GRID_BG)
        self._icon = ImageTk.PhotoImage(create_icon_image())
        self.root.iconphoto(True, self._icon)

        self._setup_fonts()
        self._settings = load_settings()
        self._on_finalize = on_finalize

        self.session = EditorSession(base, year=self._settings["year"])
        brush = self.session.brush
        brush.tool = Tool(self._settings["tool"])
        brush.pen_mode = PenMode(self._settings["pen_mode"])
        brush.set_intensity(self._settings["pen_intensity"])

        self._widget_dates: dict[int, date] = {}
        self._hover: date | None = None
        self._tooltip = _ToolTip(self.root)

        self._build_shell()
        self._rebuild_grid()

        self.root.bind("<Escape>", self._on_escape)
        self.root.bind("<Control-z>", lambda _e: self._undo())
        self.root.bind("<Control-y>", lambda _e: self._redo())
        self.root.bind("<Control-Z>", lambda _e: self._redo())
        self.root.bind("<Control-c>", lambda _e: self._copy())
        self.root.bind("<Control-v>", lambda _e: self._paste())
        # Releasing the button anywhere ends a stroke
        self.root.bind_all("<ButtonRelease-1>", self._on_global_release, add="+")
        self.root.protocol("WM_DELETE_WINDOW", self.close)

        w, h = self._settings["window_width"], self._settings["window_height"]
        if w and h:
            self.root.geometry(f"{w}x{h}")

    # ------------------------------------------------------------------
    # Fonts
    # ------------------------------------------------------------------
    def _setup_fonts(self) -> None:
        families = tkfont.families(self.root)
        base = "Segoe UI" if "Segoe UI" in families else "TkDefaultFont"
        self.font_normal = tkfont.Font(family=base, size=9)
        self.font_bold = tkfont.Font(family=base, size=9, weight="bold")
        self.font_nav = tkfont.Font(family=base, size=12, weight="bold")
        self.font_small = tkfont.Font(family=base, size=8)

    # ------------------------------------------------------------------
    # Build shell (once): nav bar + toolbar + grid + footer
    # ------------------------------------------------------------------
    def _build_shell(self) -> None:
        self._outer = tk.Frame(self.root, bg=GRID_BG)
        self._outer.pack(padx=8, pady=6)

        # Navigation row: ◀  2024  ▶
        nav = tk.Frame(self._outer, bg=GRID_BG)
        nav.pack(fill="x", pady=(0, 4))

        btn_prev = tk.Label(nav, text="◀", font=self.font_nav, bg=GRID_BG, cursor="hand2")
        btn_prev.pack(side="left", padx=6)
        btn_prev.bind("<Button-1>", lambda _e: self._navigate_year(-1))

        self._year_label = tk.Label(nav, font=self.font_nav, bg=GRID_BG)
        self._year_label.pack(side="left", padx=6)

        btn_next = tk.Label(nav, text="▶", font=self.font_nav, bg=GRID_BG, cursor="hand2")
        btn_next.pack(side="left", padx=6)
        btn_next.bind("<Button-1>", lambda _e: self._navigate_year(1))

        btn_today = tk.Label(nav, text="This year", font=self.font_bold, bg=GRID_BG,
                             fg=ACCENT, cursor="hand2")
        btn_today.pack(side="left", padx=6)
        btn_today.bind("<Button-1>", lambda _e: self._go_year(current_year()))

        # Toolbar
        tools = tk.Frame(self._outer, bg=GRID_BG)
        tools.pack(fill="x", pady=(0, 4))
        self._tool_buttons: dict[str, tk.Label] = {}
        for key, text, action in (
            ("pen", "Pen", lambda: self._set_tool(Tool.PEN)),
            ("eraser", "Eraser", lambda: self._set_tool(Tool.ERASER)),
            ("select", "Select", self._toggle_select),
            ("mode", "", self._toggle_pen_mode),
            ("intensity", "", self._cycle_intensity),
        ):
            self._tool_buttons[key] = self._button(tools, text, action)

        actions = tk.Frame(self._outer, bg=GRID_BG)
        actions.pack(fill="x", pady=(0, 4))
        for text, action in (
            ("Undo", self._undo), ("Redo", self._redo),
            ("Copy", self._copy), ("Paste", self._paste),
            ("Text…", self._ask_text), ("Image…", self._ask_image),
            ("Fill", self._fill), ("Clear", self._reset),
        ):
            self._button(actions, text, action)
        if self._on_finalize is not None:
            self._button(actions, "Finalize", self._finalize)

        self._grid = _GridPanel(self._outer, {"small": self.font_small}, {
            "<ButtonPress-1>": self._on_press,
            "<B1-Motion>": self._on_motion,
            "<ButtonRelease-1>": self._on_release,
            "<ButtonPress-3>": self._on_secondary,
            "<Enter>": self._on_cell_enter,
            "<Leave>": self._on_cell_leave,
        })
        self._grid.frame.pack()

        legend = tk.Frame(self._outer, bg=GRID_BG)
        legend.pack(fill="x", pady=(4, 0))
        tk.Label(legend, text="More", font=self.font_small, bg=GRID_BG,
                 fg=HEADER_FG).pack(side="right")
        for color in reversed(LEVEL_COLORS):
            tk.Canvas(legend, width=CELL, height=CELL, bg=color,
                      highlightthickness=0).pack(side="right", padx=1)
        tk.Label(legend, text="Less", font=self.font_small, bg=GRID_BG,
                 fg=HEADER_FG).pack(side="right")

        self._footer_label = tk.Label(self._outer, font=self.font_normal,
                                      bg=GRID_BG, fg=HEADER_FG, anchor="w")
        self._footer_label.pack(fill="x", pady=(4, 0))

    def _button(self, parent: tk.Frame, text: str, action) -> tk.Label:
        btn = tk.Label(parent, text=text, font=self.font_normal, bg=GRID_BG,
                       relief="solid", borderwidth=1, padx=6, pady=2, cursor="hand2")
        btn.pack(side="left", padx=2)
        btn.bind("<Button-1>", lambda _e: action())
        return btn

    # ------------------------------------------------------------------
    # Grid rebuild (year switch) and repaint
    # ------------------------------------------------------------------
    def _rebuild_grid(self) -> None:
        self._widget_dates.clear()
        year = self.session.year
        self._year_label.configure(text=str(year))

        self._grid.set_month_labels(month_labels(year))

        cols = column_count(year)
        for row in range(7):
            for col in range(MAX_COLUMNS):
                cell = self._grid.cells[row][col]
                if col >= cols:
                    cell.grid_remove()
                    continue
                cell.grid()
                d = from_grid(col, row, year)
                if d.year == year:
                    self._widget_dates[id(cell)] = d
        self._repaint()

    def _repaint(self) -> None:
        session = self.session
        preview = session.previewed_dates()
        selected = session.clipboard.selected_dates
        for d in year_dates(session.year):
            col, row = to_grid(d, session.year)
            cell = self._grid.cells[row][col]
            if d in preview:
                bg = PREVIEW_BG
            elif session.store.is_future(d):
                bg = FUTURE_BG
            else:
                bg = LEVEL_COLORS[session.level(d)]
            outline = SEL_OUTLINE if d in selected else GRID_BG
            cell.configure(bg=bg, highlightbackground=outline,
                           cursor="crosshair" if session.brush.tool is Tool.PEN else "dotbox")
        # Cells before Jan 1 / after Dec 31 stay blank
        for row in range(7):
            for col in (0, column_count(session.year) - 1):
                cell = self._grid.cells[row][col]
                if id(cell) not in self._widget_dates:
                    cell.configure(bg=GRID_BG, highlightbackground=GRID_BG, cursor="")
        self._refresh_toolbar()
        self._footer_label.configure(text=self._footer_text())

    def _refresh_toolbar(self) -> None:
        brush = self.session.brush
        active = {
            "pen": brush.tool is Tool.PEN and not self.session.selection_tool,
            "eraser": brush.tool is Tool.ERASER and not self.session.selection_tool,
            "select": self.session.selection_tool,
        }
        for key, on in active.items():
            self._tool_buttons[key].configure(bg=ACCENT if on else GRID_BG,
                                              fg="white" if on else "black")
        self._tool_buttons["mode"].configure(text=f"Mode: {brush.pen_mode.value}")
        self._tool_buttons["intensity"].configure(text=f"Intensity: {brush.intensity}")

    def _footer_text(self) -> str:
        if self.session.last_notice:
            return self.session.last_notice
        mode = self.session.mode
        if mode is Mode.PATTERN_PREVIEW:
            return "Click to stamp, right-click or Esc to cancel"
        if mode is Mode.PASTE_PREVIEW:
            return "Click to paste, right-click or Esc to cancel"
        return f"{self.session.total()} contributions in {self.session.year}"

    # ------------------------------------------------------------------
    # Pointer events
    # ------------------------------------------------------------------
    def _date_under_pointer(self, event: tk.Event) -> date | None:
        w = event.widget.winfo_containing(event.x_root, event.y_root)
        return self._widget_dates.get(id(w)) if w else None

    def _on_press(self, event: tk.Event) -> None:
        d = self._widget_dates.get(id(event.widget))
        if d:
            self.session.pointer_down(d, PRIMARY)
        else:
            self.session.pointer_down_blank(PRIMARY)
        self._repaint()

    def _on_motion(self, event: tk.Event) -> None:
        if self.session.mode not in (Mode.PAINTING, Mode.SELECTING):
            return
        d = self._date_under_pointer(event)
        if d and d != self._hover:
            self._hover = d
            self.session.pointer_enter(d)
            self._repaint()

    def _on_release(self, _event: tk.Event) -> None:
        self._end_stroke()

    def _on_global_release(self, _event: tk.Event) -> None:
        self._end_stroke()

    def _end_stroke(self) -> None:
        if self.session.mode in (Mode.PAINTING, Mode.SELECTING):
            self.session.pointer_up()
            self._hover = None
            self._repaint()

    def _on_secondary(self, event: tk.Event) -> None:
        d = self._widget_dates.get(id(event.widget))
        if d:
            self.session.pointer_down(d, SECONDARY)
        else:
            self.session.pointer_down_blank(SECONDARY)
        self._repaint()

    def _on_cell_enter(self, event: tk.Event) -> None:
        d = self._widget_dates.get(id(event.widget))
        if not d:
            return
        if self.session.mode in (Mode.PATTERN_PREVIEW, Mode.PASTE_PREVIEW):
            self.session.pointer_enter(d)
            self._repaint()
        elif self.session.mode is Mode.IDLE:
            self._tooltip.show(event.widget, self.session.cell_tooltip(d))

    def _on_cell_leave(self, _event: tk.Event) -> None:
        self._tooltip.hide()

    def _on_escape(self, _event: tk.Event) -> None:
        self.session.cancel()
        self._repaint()

    # ------------------------------------------------------------------
    # Toolbar actions
    # ------------------------------------------------------------------
    def _set_tool(self, tool: Tool) -> None:
        if self.session.selection_tool:
            self.session.toggle_selection_tool()
        self.session.brush.tool = tool
        self._repaint()

    def _toggle_select(self) -> None:
        self.session.toggle_selection_tool()
        self._repaint()

    def _toggle_pen_mode(self) -> None:
        brush = self.session.brush
        brush.pen_mode = PenMode.MANUAL if brush.pen_mode is PenMode.AUTO else PenMode.AUTO
        self._repaint()

    def _cycle_intensity(self) -> None:
        brush = self.session.brush
        idx = INTENSITIES.index(brush.intensity)
        brush.set_intensity(INTENSITIES[(idx + 1) % len(INTENSITIES)])
        brush.pen_mode = PenMode.MANUAL
        self._repaint()

    def _undo(self) -> None:
        self.session.undo()
        self._repaint()

    def _redo(self) -> None:
        self.session.redo()
        self._repaint()

    def _copy(self) -> None:
        self.session.copy_selection()
        self._repaint()

    def _paste(self) -> None:
        self.session.start_paste_preview()
        self._repaint()

    def _fill(self) -> None:
        self.session.fill_all()
        self._repaint()

    def _reset(self) -> None:
        if messagebox.askyesno("Clear", "Remove all painted cells?", parent=self.root):
            self.session.reset_all()
            self._repaint()

    def _ask_text(self) -> None:
        text = simpledialog.askstring("Stamp text", "Text to stamp:", parent=self.root)
        if text:
            self.session.start_text_preview(text)
            self._repaint()

    def _ask_image(self) -> None:
        path = filedialog.askopenfilename(
            parent=self.root, title="Import image",
            filetypes=[("Images", "*.png *.jpg *.jpeg *.bmp *.gif"), ("All files", "*.*")],
        )
        if not path:
            return
        try:
            img = load_bitmap(path)
        except (UnidentifiedImageError, OSError) as exc:
            logger.warning("Could not load image %s: %s", path, exc)
            messagebox.showerror("Import image", f"Could not load image:\n{exc}", parent=self.root)
            return
        s = self._settings
        options = QuantizeOptions(
            invert=s["invert"], mode=s["quantize_mode"],
            binary_relax_steps=s["binary_relax_steps"],
            relax_step=s["relax_step"], sparse_ratio=s["sparse_ratio"],
        )
        self.session.start_image_preview(img, options)
        self._repaint()

    def _finalize(self) -> None:
        self._on_finalize(self.session.finalize())

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------
    def _navigate_year(self, direction: int) -> None:
        self._go_year(self.session.year + direction)

    def _go_year(self, year: int) -> None:
        if not is_valid_year(year, utc_today()):
            return
        if self.session.set_year(year):
            self._rebuild_grid()

    # ------------------------------------------------------------------
    # Persist and close
    # ------------------------------------------------------------------
    def _persist(self) -> None:
        settings = load_settings()
        brush = self.session.brush
        settings["year"] = self.session.year
        settings["tool"] = brush.tool.value
        settings["pen_mode"] = brush.pen_mode.value
        settings["pen_intensity"] = brush.intensity
        settings["window_width"] = self.root.winfo_width()
        settings["window_height"] = self.root.winfo_height()
        try:
            save_settings(settings)
        except OSError as exc:
            logger.warning("Could not save settings: %s", exc)

    def close(self) -> None:
        self._persist()
        self.root.destroy()
