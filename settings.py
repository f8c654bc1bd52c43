import copy
import json
import logging
import os

import ocr_ops

logger = logging.getLogger(__name__)

CONFIG_FILE = os.environ.get("IMAGE_TO_TEXT_CONFIG") or \
    os.path.join(os.path.expanduser("~"), ".image_to_text_config.json")

current_root_directory = ""

DEFAULT_SETTINGS = {
    "window": {
        "width": 1100,
        "height": 750,
        "x": None,
        "y": None
    },
    "tree_pane_ratio": 0.28,  # file tree (left column)
    "split_ratio": 0.5,  # text editor share of the right column, image below
    "options": {
        "color_text": True,
        "reformat_lines": False
    },
    "last_root_directory": "",
    "image_extensions": list(ocr_ops.IMAGE_EXTENSIONS),
    "tesseract": {
        "cmd": "",
        "lang": "eng",
        "config": "",
        "timeout": 0
    },
    "log_level": "INFO"
}

settings = copy.deepcopy(DEFAULT_SETTINGS)


def _merge(target, source):
    for key, value in source.items():
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            _merge(target[key], value)
        else:
            target[key] = value


def load(config_file=None):
    """
    Loads the settings file on top of the defaults and returns the result.
    A missing or unreadable file leaves the defaults in place.
    """
    global settings
    config_file = config_file or CONFIG_FILE
    loaded = copy.deepcopy(DEFAULT_SETTINGS)
    try:
        if os.path.exists(config_file):
            with open(config_file, 'r', encoding="utf-8") as f:
                _merge(loaded, json.load(f))
    except (OSError, ValueError) as e:
        logger.error(f"Error loading settings from {config_file}: {e}")
    settings = loaded
    return settings


def save(ctx_ui=None, config_file=None):
    """Stores the window state (if a window is given) and writes the settings file."""
    config_file = config_file or CONFIG_FILE
    if ctx_ui is not None and ctx_ui.window is not None:
        settings["window"]["width"] = ctx_ui.window.winfo_width()
        settings["window"]["height"] = ctx_ui.window.winfo_height()
        settings["window"]["x"] = ctx_ui.window.winfo_x()
        settings["window"]["y"] = ctx_ui.window.winfo_y()
        if ctx_ui.main_paned_window.winfo_width() > 0:
            settings["tree_pane_ratio"] = ctx_ui.left_frame.winfo_width() / ctx_ui.main_paned_window.winfo_width()
        if ctx_ui.split_panel.winfo_height() > 0:
            settings["split_ratio"] = ctx_ui.text_frame.winfo_height() / ctx_ui.split_panel.winfo_height()
        settings["options"]["color_text"] = ctx_ui.color_text_var.get()
        settings["options"]["reformat_lines"] = ctx_ui.reformat_lines_var.get()
    settings["last_root_directory"] = current_root_directory
    try:
        with open(config_file, 'w', encoding="utf-8") as f:
            json.dump(settings, f, indent=4)
    except OSError as e:
        logger.error(f"Error saving settings to {config_file}: {e}")


def apply(ctx_ui):
    width = settings["window"]["width"]
    height = settings["window"]["height"]
    x = settings["window"]["x"]
    y = settings["window"]["y"]
    geometry = f"{width}x{height}"
    if x is not None and y is not None:
        geometry += f"+{x}+{y}"
    ctx_ui.window.geometry(geometry)
    ctx_ui.color_text_var.set(settings["options"]["color_text"])
    ctx_ui.reformat_lines_var.set(settings["options"]["reformat_lines"])


def image_extensions():
    return tuple(ext.lower() for ext in settings.get("image_extensions") or ocr_ops.IMAGE_EXTENSIONS)


def ocr_options():
    """Keyword arguments for ocr_ops.image_to_text()"""
    tesseract = settings["tesseract"]
    return {
        "lang": tesseract.get("lang") or None,
        "config": tesseract.get("config") or "",
        "timeout": tesseract.get("timeout") or 0
    }


def log_level():
    if os.environ.get("VERBOSE"):
        return logging.DEBUG
    level = logging.getLevelName(str(settings.get("log_level", "INFO")).upper())
    return level if isinstance(level, int) else logging.INFO
