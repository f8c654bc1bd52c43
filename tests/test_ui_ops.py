"""
Tests for the event handlers of the main window: selection state, starting,
stopping and finishing a batch, and saving the '.ocr' file.
Skipped when Tk cannot open a display.
"""

import copy
import os
import threading
from unittest.mock import patch

import pytest

tk = pytest.importorskip("tkinter")

import ctx_ui  # noqa: E402
import highlight  # noqa: E402
import ocr_ops  # noqa: E402
import settings  # noqa: E402
import ui_ops  # noqa: E402
import widgets  # noqa: E402
from errors import AppWarning  # noqa: E402


class FakeThread:
    """Holds on to the worker so the test can run it on the Tk thread."""

    def __init__(self, target, args=(), daemon=None):
        self.target = target
        self.args = args

    def start(self):
        pass

    def run(self):
        self.target(*self.args)


@pytest.fixture
def window(tk_root, monkeypatch):
    monkeypatch.setattr(settings, "settings", copy.deepcopy(settings.DEFAULT_SETTINGS))
    monkeypatch.setattr(ui_ops, "selected_path", None)
    monkeypatch.setattr(ui_ops, "stop_event", None)
    monkeypatch.setattr(ui_ops, "worker_thread", None)

    text_output = tk.Text(tk_root, state=tk.DISABLED)
    widget_map = {
        "window": tk_root,
        "status_label": tk.Label(tk_root),
        "save_button": tk.Button(tk_root, state=tk.DISABLED),
        "ocr_switch": widgets.OnOffSwitch(tk_root, "Image Text Recognition", "Start", "start",
                                          None, "Stop", "stop", None),
        "progress_panel": widgets.ProgressPanel(tk_root),
        "text_output": text_output,
        "line_numbers": widgets.LineNumbers(tk_root, text_output),
        "highlighter": highlight.Highlighter(text_output),
        "image_canvas": tk.Canvas(tk_root),
        "color_text_var": tk.BooleanVar(master=tk_root, value=False),
        "reformat_lines_var": tk.BooleanVar(master=tk_root, value=False),
        "file_tree": None,
    }
    for name, widget in widget_map.items():
        monkeypatch.setattr(ctx_ui, name, widget)
    ctx_ui.progress_panel.pack()
    ctx_ui.ocr_switch.disable_buttons()
    return tk_root


def state(widget):
    return str(widget["state"])


def status():
    return ctx_ui.status_label.cget("text")


def start_batch(directory):
    """Selects the directory and presses Start; returns the pending worker."""
    ui_ops.on_node_selected(directory)
    with patch("ui_ops.threading.Thread", FakeThread):
        ui_ops.start_processing()
    return ui_ops.worker_thread


# ============================================
# SELECTION
# ============================================

def test_select_processed_image(window, image_tree):
    ui_ops.on_node_selected(image_tree / "a.png")
    window.update()

    assert ctx_ui.text_output.get("1.0", "end-1c") == "text of a"
    assert state(ctx_ui.text_output) == "normal"
    assert state(ctx_ui.save_button) == "normal"
    assert state(ctx_ui.ocr_switch.on_button) == "disabled"
    assert state(ctx_ui.ocr_switch.off_button) == "disabled"


def test_select_unprocessed_image(window, image_tree):
    ui_ops.on_node_selected(image_tree / "a.png")
    ui_ops.on_node_selected(image_tree / "b.jpeg")

    assert ctx_ui.text_output.get("1.0", "end-1c") == ""
    assert state(ctx_ui.text_output) == "disabled"
    assert state(ctx_ui.save_button) == "disabled"


def test_select_directory(window, image_tree):
    ui_ops.on_node_selected(image_tree)
    assert state(ctx_ui.ocr_switch.on_button) == "normal"
    assert state(ctx_ui.save_button) == "disabled"

    # Every image under 'sub' already has its text
    ui_ops.on_node_selected(image_tree / "sub")
    assert state(ctx_ui.ocr_switch.on_button) == "disabled"


def test_select_removed_path(window, image_tree):
    with pytest.raises(AppWarning, match="no longer exists"):
        ui_ops.on_node_selected(image_tree / "gone.png")


# ============================================
# PROCESSING
# ============================================

def test_start_locks_the_switch(window, image_tree):
    worker = start_batch(image_tree)
    window.update()

    assert worker.args[0] == [os.path.join(os.fspath(image_tree), "b.jpeg")]
    assert ctx_ui.ocr_switch.is_locked()
    assert state(ctx_ui.ocr_switch.on_button) == "disabled"
    assert state(ctx_ui.ocr_switch.off_button) == "normal"
    assert ctx_ui.progress_panel.bar.winfo_manager() == "pack"
    assert status().startswith("Processing 1 images")


def test_start_without_pending_images(window, image_tree):
    ui_ops.on_node_selected(image_tree / "sub")
    ui_ops.start_processing()
    assert ui_ops.worker_thread is None
    assert status().startswith("All images in")


@patch("ocr_ops.pytesseract.image_to_string", return_value="text of b")
def test_finished_batch_restores_the_controls(mock_ocr, window, image_tree):
    start_batch(image_tree).run()
    window.update()

    assert (image_tree / "b.ocr").read_text(encoding="utf-8") == "text of b"
    assert status() == "Processed 1 images (0 failed)"
    assert not ctx_ui.ocr_switch.is_locked()
    assert state(ctx_ui.ocr_switch.on_button) == "disabled"
    assert state(ctx_ui.ocr_switch.off_button) == "disabled"
    assert ctx_ui.progress_panel.get_value() == 100
    assert ctx_ui.progress_panel.bar.winfo_manager() == ""


@patch("ocr_ops.pytesseract.image_to_string", side_effect=RuntimeError("engine crashed"))
def test_failed_image_is_counted(mock_ocr, window, image_tree):
    start_batch(image_tree).run()
    window.update()

    assert status() == "Processed 0 images (1 failed)"
    assert not (image_tree / "b.ocr").exists()


def test_controls_restored_when_the_batch_dies(window, image_tree, monkeypatch):
    worker = start_batch(image_tree)

    def broken_batch(*args, **kwargs):
        raise RuntimeError("worker died")

    monkeypatch.setattr(ocr_ops, "process_images", broken_batch)
    with pytest.raises(RuntimeError):
        worker.run()
    window.update()

    assert not ctx_ui.ocr_switch.is_locked()
    assert ctx_ui.progress_panel.bar.winfo_manager() == ""
    assert status() == "Processed 0 images (0 failed)"


def test_stop_processing(window, image_tree):
    start_batch(image_tree)
    ui_ops.stop_processing()

    assert ui_ops.stop_event.is_set()
    assert not ctx_ui.ocr_switch.is_locked()
    assert state(ctx_ui.ocr_switch.on_button) == "normal"
    assert state(ctx_ui.ocr_switch.off_button) == "disabled"
    assert status() == "Stopping after the current image ..."


def test_stopped_batch_resets_the_progress(window, image_tree):
    start_batch(image_tree)
    ctx_ui.progress_panel.set_value(50)
    ui_ops.stop_processing()

    ui_ops._on_processing_done(ui_ops.stop_event, ocr_ops.BatchResult(1, 0, True))
    window.update()

    assert status() == "Stopped. Processed 1 images (0 failed)"
    assert ctx_ui.progress_panel.get_value() == 0
    assert ctx_ui.progress_panel.bar.winfo_manager() == ""
    # The switch is left ready for the next start
    assert state(ctx_ui.ocr_switch.on_button) == "normal"


def test_stale_batch_leaves_the_controls_alone(window, image_tree):
    start_batch(image_tree)
    ui_ops.set_status("busy")

    ui_ops._on_processing_done(threading.Event(), ocr_ops.BatchResult(1, 0, False))
    window.update()

    assert status() == "busy"
    assert ctx_ui.ocr_switch.is_locked()


# ============================================
# SAVING
# ============================================

def test_save_ocr_file(window, image_tree):
    ui_ops.on_node_selected(image_tree / "a.png")
    ctx_ui.text_output.delete("1.0", "end")
    ctx_ui.text_output.insert("1.0", "corrected text")

    ui_ops.save_ocr_file()

    assert (image_tree / "a.ocr").read_text(encoding="utf-8") == "corrected text"
    assert status() == f"Saved {os.path.join(os.fspath(image_tree), 'a.ocr')}"


def test_save_ocr_file_needs_an_image(window, image_tree):
    ui_ops.on_node_selected(image_tree)
    ui_ops.save_ocr_file()
    assert not (image_tree / "root.ocr").exists()
    assert status() == ""
