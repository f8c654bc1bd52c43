from tkinter import filedialog, messagebox
import tkinter as tk
import logging
import os
import threading

import settings
import ctx_ui
import file_ops
import image_ops
import io_ops
import ocr_ops
import text_ops
import widgets
from errors import AppError, AppWarning

logger = logging.getLogger(__name__)

status_message = ""

resize_delay = 300  # Milliseconds

selected_path = None
worker_thread = None
stop_event = None


def show_error(message, title="Error"):
    logger.error(message)
    messagebox.showerror(title, message)


def select_root_directory():
    """Opens a directory dialog and loads the chosen directory into the tree."""
    initial_dir = settings.current_root_directory
    if not initial_dir or not os.path.isdir(initial_dir):
        initial_dir = os.getcwd()
    directory_path = filedialog.askdirectory(title="Select the directory with the images",
                                             initialdir=initial_dir)
    if not directory_path:
        return
    load_root_directory(directory_path)


def load_root_directory(directory_path):
    """
    Scans the directory on a worker thread and replaces the file tree with
    the result once the scan is done.
    """
    try:
        file_ops.validate_dir_to_read(directory_path)
    except AppError as e:
        show_error(str(e), "Invalid directory")
        return
    directory_path = os.path.abspath(directory_path)
    ctx_ui.loading_label.config(text="Loading ...")
    ctx_ui.browse_button.config(state=tk.DISABLED)
    reset_panel()
    extensions = settings.image_extensions()

    def scan():
        try:
            tree = file_ops.scan_tree(directory_path, extensions)
        except AppError as e:
            ctx_ui.window.after(0, _on_tree_error, directory_path, e)
            return
        ctx_ui.window.after(0, _attach_tree, directory_path, extensions, tree)

    threading.Thread(target=scan, daemon=True).start()


def _attach_tree(directory_path, extensions, tree):
    if ctx_ui.file_tree is not None:
        ctx_ui.file_tree.destroy()
    ctx_ui.file_tree = widgets.ImageFileTree(ctx_ui.tree_frame, directory_path, extensions,
                                             on_select=on_node_selected, tree=tree)
    ctx_ui.file_tree.pack(fill=tk.BOTH, expand=True)
    settings.current_root_directory = directory_path
    ctx_ui.loading_label.config(text="")
    ctx_ui.browse_button.config(state=tk.NORMAL)
    set_status(f"Loaded {directory_path}")


def _on_tree_error(directory_path, error):
    ctx_ui.loading_label.config(text="")
    ctx_ui.browse_button.config(state=tk.NORMAL)
    show_error(str(error), f"Error loading '{directory_path}'")


def handle_drop(event):
    """Loads a directory dropped onto the tree panel as the root directory."""
    path = event.data

    # Remove curly braces if present (Windows drag and drop format)
    if path.startswith("{") and path.endswith("}"):
        path = path[1:-1]

    # Remove quotes if present
    if path.startswith('"') and path.endswith('"'):
        path = path[1:-1]

    if os.path.isdir(path):
        load_root_directory(path)
    else:
        set_status("Drop a directory to load its images")


def reset_panel():
    """Clears the text and the image and disables the controls."""
    global selected_path
    selected_path = None
    text_ops.set_text(None)
    text_ops.set_editable(False)
    image_ops.clear()
    ctx_ui.save_button.config(state=tk.DISABLED)
    ctx_ui.ocr_switch.disable_buttons()


def on_node_selected(path):
    """
    Shows a selected image along with its text (if it has been recognized),
    or prepares the switch to process a selected directory.
    """
    global selected_path
    selected_path = path
    clear_status()
    if path.is_file():
        text_file = ocr_ops.get_text_file(path)
        if text_file is not None:
            text_ops.set_editable(True)
            text_ops.set_text(io_ops.read_text(text_file), ctx_ui.color_text_var.get())
            ctx_ui.save_button.config(state=tk.NORMAL)
        else:
            text_ops.set_text(None)
            text_ops.set_editable(False)
            ctx_ui.save_button.config(state=tk.DISABLED)
        image_ops.load_image(path)
        ctx_ui.ocr_switch.disable_buttons()
    elif path.is_dir():
        text_ops.set_text(None)
        text_ops.set_editable(False)
        image_ops.clear()
        ctx_ui.save_button.config(state=tk.DISABLED)
        if ocr_ops.all_images_processed(path, settings.image_extensions()):
            ctx_ui.ocr_switch.disable_buttons()
        else:
            ctx_ui.ocr_switch.enable_on_button()
    else:
        raise AppWarning(f"'{path}' no longer exists")


def start_processing():
    """Runs OCR on the unprocessed images of the selected directory in the background."""
    global worker_thread, stop_event
    directory = selected_path
    if directory is None or not directory.is_dir():
        set_status("Select a directory to process")
        return
    try:
        images = ocr_ops.images_to_process(directory, settings.image_extensions())
    except AppError as e:
        show_error(str(e), f"Error for '{directory}'")
        return
    if not images:
        ctx_ui.ocr_switch.disable_buttons()
        set_status(f"All images in {directory} have been processed")
        return

    ctx_ui.progress_panel.reset(visible=True)
    ctx_ui.ocr_switch.enable_off_button()
    ctx_ui.ocr_switch.lock_buttons()
    set_status(f"Processing {len(images)} images in {directory} ...")

    stop_event = threading.Event()
    worker_thread = threading.Thread(target=_process, args=(images, stop_event), daemon=True)
    worker_thread.start()


def _process(images, event):
    result = ocr_ops.BatchResult(0, 0, False)
    try:
        result = ocr_ops.process_images(images, event, on_progress=_on_progress,
                                        **settings.ocr_options())
    finally:
        # The controls are restored even if the batch died
        ctx_ui.window.after(0, _on_processing_done, event, result)


def _on_progress(percent, image_path):
    ctx_ui.progress_panel.set_value(percent)
    ctx_ui.window.after(0, _refresh_tree_item, image_path)


def _refresh_tree_item(image_path):
    if ctx_ui.file_tree is None:
        return
    item = os.fspath(image_path)
    if ctx_ui.file_tree.treeview.exists(item):
        ctx_ui.file_tree.refresh_item(item)


def _on_processing_done(event, result):
    if ctx_ui.file_tree is not None:
        ctx_ui.file_tree.refresh()
    summary = f"Processed {result.processed} images ({result.failed} failed)"
    # A batch that was stopped and then replaced by a new one leaves the controls alone
    if event is not stop_event:
        return
    if result.stopped:
        ctx_ui.progress_panel.reset(visible=False)
        set_status(f"Stopped. {summary}")
        return
    ctx_ui.ocr_switch.unlock_buttons()
    ctx_ui.ocr_switch.disable_buttons()
    ctx_ui.progress_panel.set_visible(False)
    set_status(summary)


def stop_processing():
    if stop_event is not None:
        stop_event.set()
    ctx_ui.ocr_switch.unlock_buttons()
    ctx_ui.ocr_switch.enable_on_button()
    set_status("Stopping after the current image ...")


def save_ocr_file():
    """Writes the editor text to the '.ocr' file of the selected image."""
    if selected_path is None or not selected_path.is_file():
        return
    try:
        ocr_path = ocr_ops.save_image_text(selected_path, text_ops.get_text())
    except AppError as e:
        show_error(str(e), "Error saving the OCR file")
        return
    if ocr_path is not None:
        _refresh_tree_item(selected_path)
        set_status(f"Saved {ocr_path}")


def set_status(message):
    global status_message
    status_message = message
    ctx_ui.status_label.config(text=status_message)


def clear_status():
    global status_message
    status_message = ""
    ctx_ui.status_label.config(text="")


def on_color_text_toggled():
    text_ops.set_color_text(ctx_ui.color_text_var.get())


def on_resize(event):
    """
    Redraws the image once the window size has stabilized.
    """
    if event.widget != ctx_ui.window:
        return
    schedule_image_redraw()


def schedule_image_redraw(event=None):
    # Cancel any pending resize tasks
    if hasattr(ctx_ui.window, '_resize_job'):
        ctx_ui.window.after_cancel(ctx_ui.window._resize_job)
    ctx_ui.window._resize_job = ctx_ui.window.after(resize_delay, image_ops.display_image)


def set_initial_sash_positions():
    window_width = ctx_ui.window.winfo_width()
    split_height = ctx_ui.split_panel.winfo_height()

    if window_width > 1 and split_height > 1:  # Ensure window has been drawn
        left_width = int(window_width * settings.settings.get("tree_pane_ratio", 0.28))
        ctx_ui.main_paned_window.sash_place(0, left_width, 0)
        text_height = int(split_height * settings.settings.get("split_ratio", 0.5))
        ctx_ui.split_panel.sash_place(0, 0, text_height)
        image_ops.display_image(force=True)


def on_closing():
    if stop_event is not None:
        stop_event.set()
    settings.save(ctx_ui)
    ctx_ui.window.destroy()
