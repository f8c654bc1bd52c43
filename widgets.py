"""
Tk widgets used by the main window: the directory tree of images, the
start/stop switch, the progress bar, the line-number gutter and tooltips.
"""
import logging
import tkinter as tk
from pathlib import Path
from tkinter import messagebox
from tkinter import ttk

from PIL import Image, ImageDraw, ImageTk

import file_ops
import ocr_ops
from errors import AppError, AppWarning

logger = logging.getLogger(__name__)

GREEN_COLOR = "#00a000"
RED_COLOR = "#d00000"
ICON_SIZE = 16


class FileTree(tk.Frame):
    """
    A ttk.Treeview of the directories and files under root_dir.

    The hierarchy can be passed in already scanned (file_ops.scan_tree(),
    e.g. from a worker thread) or is scanned here. Selecting a node calls
    on_select(path); an AppError raised by it is shown in an error dialog.
    """

    def __init__(self, parent, root_dir, extensions=None, include=None,
                 on_select=None, tree=None):
        super().__init__(parent)
        if root_dir is None:
            raise AppError("The root directory of the tree is None")
        self.root_dir = Path(root_dir)
        self.on_select = on_select
        if tree is None:
            tree = file_ops.scan_tree(root_dir, extensions, include)

        self.treeview = ttk.Treeview(self, show="tree", selectmode="browse")
        scrollbar = tk.Scrollbar(self, orient=tk.VERTICAL, command=self.treeview.yview)
        self.treeview.configure(yscrollcommand=scrollbar.set)
        scrollbar.pack(side=tk.RIGHT, fill=tk.Y)
        self.treeview.pack(side=tk.LEFT, fill=tk.BOTH, expand=True)

        self._add_node("", tree)
        self.treeview.item(tree.path, open=True)
        self.treeview.bind("<<TreeviewSelect>>", self._on_treeview_select)

    def _add_node(self, parent_item, node):
        item = self.treeview.insert(parent_item, "end", iid=node.path, text=node.name,
                                    **self.decorate(Path(node.path), node.is_file))
        for child in node.children:
            self._add_node(item, child)
        return item

    def decorate(self, path, is_file):
        """Item options (e.g. an image) used to render a node; none by default."""
        return {}

    def path_of(self, item):
        if not item:
            return None
        return Path(item)

    def get_selected_item(self):
        selection = self.treeview.selection()
        if not selection:
            return None
        return self.path_of(selection[0])

    def refresh_item(self, item):
        """Re-renders the decoration of the item and of its ancestors."""
        while item:
            path = self.path_of(item)
            self.treeview.item(item, **self.decorate(path, path.is_file()))
            item = self.treeview.parent(item)

    def refresh(self):
        for item in self._all_items(""):
            path = self.path_of(item)
            self.treeview.item(item, **self.decorate(path, path.is_file()))

    def _all_items(self, item):
        for child in self.treeview.get_children(item):
            yield child
            yield from self._all_items(child)

    def _on_treeview_select(self, event):
        selection = self.get_selected_item()
        if selection is None or self.on_select is None:
            return
        try:
            self.on_select(selection)
        except AppWarning as e:
            logger.warning(e)
            messagebox.showwarning(f"Warning for '{selection}'", str(e))
        except AppError as e:
            logger.error(e)
            messagebox.showerror(f"Error for '{selection}'", str(e))


def make_icon(is_file, processed, size=ICON_SIZE):
    """Draws a small folder or page icon, green if processed, red otherwise."""
    color = GREEN_COLOR if processed else RED_COLOR
    image = Image.new("RGBA", (size, size), (0, 0, 0, 0))
    draw = ImageDraw.Draw(image)
    if is_file:
        draw.rectangle((3, 1, size - 4, size - 2), fill="white", outline=color)
        for y in range(5, size - 4, 3):
            draw.line((6, y, size - 7, y), fill=color)
    else:
        draw.rectangle((1, 2, size // 2, 5), fill=color)
        draw.rectangle((1, 4, size - 2, size - 3), fill=color, outline="black")
    return image


class ImageFileTree(FileTree):
    """A FileTree whose nodes show whether their images have been recognized."""

    def __init__(self, parent, root_dir, extensions=None, include=None,
                 on_select=None, tree=None):
        extensions = extensions or ocr_ops.IMAGE_EXTENSIONS
        self.image_extensions = extensions
        self.icons = {}
        for is_file in (False, True):
            for processed in (False, True):
                self.icons[is_file, processed] = ImageTk.PhotoImage(
                    make_icon(is_file, processed), master=parent)
        super().__init__(parent, root_dir, extensions, include, on_select, tree)

    def decorate(self, path, is_file):
        if is_file:
            processed = ocr_ops.get_text_file(path) is not None
        else:
            processed = ocr_ops.all_images_processed(path, self.image_extensions)
        return {"image": self.icons[is_file, processed]}


class Tooltip:
    def __init__(self, widget, text):
        self.widget = widget
        self.text = text
        self.tip_window = None
        widget.bind("<Enter>", self.show, add="+")
        widget.bind("<Leave>", self.hide, add="+")

    def show(self, event=None):
        if self.tip_window is not None or not self.text:
            return
        x = self.widget.winfo_rootx() + 20
        y = self.widget.winfo_rooty() + self.widget.winfo_height() + 2
        self.tip_window = tw = tk.Toplevel(self.widget)
        tw.wm_overrideredirect(True)
        tw.wm_geometry(f"+{x}+{y}")
        tk.Label(tw, text=self.text, bg="#ffffe0", relief=tk.SOLID, bd=1).pack()

    def hide(self, event=None):
        if self.tip_window is not None:
            self.tip_window.destroy()
            self.tip_window = None


class OnOffSwitch(tk.LabelFrame):
    """
    A pair of mutually exclusive buttons. "On" starts out enabled and "off"
    disabled. While locked, the enable/disable calls are ignored.
    """

    def __init__(self, parent, title, on_label, on_tooltip, on_command,
                 off_label, off_tooltip, off_command, **kwargs):
        super().__init__(parent, text=title, **kwargs)
        self.locked = False
        self.on_button = tk.Button(self, text=on_label, fg=GREEN_COLOR, width=8, command=on_command)
        self.on_button.pack(side=tk.LEFT, padx=5, pady=5)
        self.off_button = tk.Button(self, text=off_label, fg=RED_COLOR, width=8,
                                    command=off_command, state=tk.DISABLED)
        self.off_button.pack(side=tk.LEFT, padx=5, pady=5)
        Tooltip(self.on_button, on_tooltip)
        Tooltip(self.off_button, off_tooltip)

    def enable_on_button(self):
        if not self.locked:
            self.on_button.config(state=tk.NORMAL)
            self.off_button.config(state=tk.DISABLED)

    def enable_off_button(self):
        if not self.locked:
            self.on_button.config(state=tk.DISABLED)
            self.off_button.config(state=tk.NORMAL)

    def disable_buttons(self):
        if not self.locked:
            self.on_button.config(state=tk.DISABLED)
            self.off_button.config(state=tk.DISABLED)

    def lock_buttons(self):
        self.locked = True

    def unlock_buttons(self):
        self.locked = False

    def is_locked(self):
        return self.locked


class ProgressPanel(tk.Frame):
    """
    A 0..100 progress bar. The setters can be called from any thread: the
    widget updates are scheduled on the Tk event loop.
    """

    def __init__(self, parent, length=200):
        super().__init__(parent)
        self.value = 0
        self.visible = False
        self.bar = ttk.Progressbar(self, orient=tk.HORIZONTAL, mode="determinate",
                                   maximum=100, length=length)

    def set_value(self, value):
        self.value = max(0, min(100, int(value)))
        self.after(0, self._update_value)

    def get_value(self):
        return self.value

    def set_visible(self, visible):
        self.visible = visible
        self.after(0, self._update_visible)

    def reset(self, visible=False):
        self.set_value(0)
        self.set_visible(visible)

    def _update_value(self):
        self.bar["value"] = self.value

    def _update_visible(self):
        if self.visible:
            self.bar.pack(fill=tk.X, expand=True, padx=5, pady=5)
        else:
            self.bar.pack_forget()


class LineNumbers(tk.Canvas):
    """Gutter that shows the numbers of the visible lines of a Text widget."""

    def __init__(self, parent, text_widget, background="#c8d2f0", font=None, **kwargs):
        super().__init__(parent, background=background, highlightthickness=0, **kwargs)
        self.text_widget = text_widget
        self.font = font
        self.redraw_job = None

    def gutter_width(self):
        last_line = int(self.text_widget.index("end-1c").split(".")[0])
        digits = max(2, len(str(last_line)))
        return digits * 9 + 10

    def redraw(self, *args):
        self.delete("all")
        width = self.gutter_width()
        if int(self.cget("width")) != width:
            self.config(width=width)
        index = self.text_widget.index("@0,0")
        while True:
            line_info = self.text_widget.dlineinfo(index)
            if line_info is None:
                break
            line_number = index.split(".")[0]
            self.create_text(width - 5, line_info[1], anchor="ne", text=line_number, font=self.font)
            next_index = self.text_widget.index(f"{index}+1line")
            if next_index == index:
                break
            index = next_index

    def schedule_redraw(self, *args):
        if self.redraw_job is not None:
            self.after_cancel(self.redraw_job)
        self.redraw_job = self.after(20, self._run_redraw)

    def _run_redraw(self):
        self.redraw_job = None
        self.redraw()


