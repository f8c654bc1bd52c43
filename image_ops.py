import logging
import os
import time

from PIL import Image, ImageTk

import ctx_ui

logger = logging.getLogger(__name__)

original_image = None
loaded_image_path = None
image_load_time = 0
image_resize_time = 0
last_display_width = 0
last_display_height = 0

DEFAULT_DISPLAY_SIZE = 300


def fit_size(image_size, box_size):
    """
    Scales image_size to fit box_size keeping the aspect ratio and centers it.
    Returns (width, height, x_offset, y_offset).
    """
    width, height = image_size
    box_width, box_height = box_size
    if width <= 0 or height <= 0 or box_width <= 0 or box_height <= 0:
        return 0, 0, 0, 0
    if width / height > box_width / box_height:
        # Image is wider than the display area (relative to height)
        new_width = box_width
        new_height = max(1, int(height * (box_width / width)))
    else:
        new_height = box_height
        new_width = max(1, int(width * (box_height / height)))
    return new_width, new_height, (box_width - new_width) // 2, (box_height - new_height) // 2


def load_image(file_path):
    """Opens the image and shows it in the image panel."""
    global original_image, loaded_image_path, image_load_time
    start_time = time.time()
    try:
        with Image.open(file_path) as image:
            image.load()
            original_image = image.copy()
    except OSError as e:
        logger.error(f"Error loading image {file_path}: {e}")
        clear()
        return False
    image_load_time = (time.time() - start_time) * 1000
    loaded_image_path = file_path
    logger.debug(f"Image [{os.path.basename(file_path)}] loaded in {image_load_time:.2f}ms")
    display_image(force=True)
    return True


def display_image(force=False):
    """
    Displays the loaded image scaled to fit the image canvas.

    Args:
        force (bool): If True, redraws the image even if the canvas size
            changed by less than 5 pixels
    """
    global last_display_width, last_display_height, image_resize_time
    if original_image is None:
        return

    start_time = time.time()
    canvas = ctx_ui.image_canvas
    display_width = canvas.winfo_width()
    display_height = canvas.winfo_height()

    # Use default dimensions if the widget hasn't been rendered yet
    if display_width <= 1:
        display_width = DEFAULT_DISPLAY_SIZE
    if display_height <= 1:
        display_height = DEFAULT_DISPLAY_SIZE

    if not force and getattr(canvas, "photo", None) is not None and \
            abs(display_width - last_display_width) < 5 and \
            abs(display_height - last_display_height) < 5:
        return
    last_display_width = display_width
    last_display_height = display_height

    new_width, new_height, x, y = fit_size(original_image.size, (display_width, display_height))
    if new_width == 0:
        return
    img_resized = original_image.resize((new_width, new_height), Image.LANCZOS)
    photo = ImageTk.PhotoImage(img_resized)

    canvas.delete("all")
    canvas.photo = photo  # Keep a reference!
    canvas.create_image(x, y, anchor="nw", image=photo)
    image_resize_time = (time.time() - start_time) * 1000
    logger.debug(f"Resized to {new_width}x{new_height} in {image_resize_time:.2f}ms")


def clear():
    global original_image, loaded_image_path
    original_image = None
    loaded_image_path = None
    ctx_ui.image_canvas.photo = None
    ctx_ui.image_canvas.delete("all")
