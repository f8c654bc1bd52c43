import os
import tkinter as tk
from tkinterdnd2 import DND_FILES, TkinterDnD

import ctx_ui
import highlight
import settings
import ui_ops
import text_ops
import widgets

BACKGROUND_COLOR = "#e1e6f5"
GUTTER_COLOR = "#c8d2f0"
TEXT_FONT = ("Courier New", 12)


def create_menu():
    menu_bar = tk.Menu(ctx_ui.window)
    options_menu = tk.Menu(menu_bar, tearoff=0)
    options_menu.add_checkbutton(label="Color text", variable=ctx_ui.color_text_var,
                                 command=ui_ops.on_color_text_toggled)
    options_menu.add_checkbutton(label="Reformat copied lines", variable=ctx_ui.reformat_lines_var)
    options_menu.add_separator()
    options_menu.add_command(label="Copy Text", command=text_ops.copy_to_clipboard)
    options_menu.add_command(label="Exit", command=ui_ops.on_closing)
    menu_bar.add_cascade(label="Options", menu=options_menu)
    ctx_ui.window.config(menu=menu_bar)


def create_left_column():
    # Browse panel
    browse_frame = tk.LabelFrame(ctx_ui.left_frame, text="Load images for text recognition",
                                 bg=BACKGROUND_COLOR)
    browse_frame.pack(fill=tk.X, padx=5, pady=5)

    ctx_ui.browse_button = tk.Button(browse_frame, text="Browse...", command=ui_ops.select_root_directory)
    ctx_ui.browse_button.pack(side=tk.LEFT, padx=5, pady=5)
    widgets.Tooltip(ctx_ui.browse_button, "Select the root directory of the images")

    ctx_ui.loading_label = tk.Label(browse_frame, text="", bg=BACKGROUND_COLOR)
    ctx_ui.loading_label.pack(side=tk.LEFT, padx=5)

    # The file tree is created once a directory is loaded
    ctx_ui.tree_frame = tk.Frame(ctx_ui.left_frame, bg="white")
    ctx_ui.tree_frame.pack(fill=tk.BOTH, expand=True, padx=5, pady=(0, 5))

    # Make the tree panel a drop target for directories
    ctx_ui.tree_frame.drop_target_register(DND_FILES)
    ctx_ui.tree_frame.dnd_bind("<<Drop>>", ui_ops.handle_drop)


def create_control_bar():
    controls_frame = tk.Frame(ctx_ui.right_frame, bg=BACKGROUND_COLOR)
    controls_frame.pack(fill=tk.X, padx=5, pady=5)

    ctx_ui.ocr_switch = widgets.OnOffSwitch(
        controls_frame, "Image Text Recognition",
        "Start", "Recognize the text of the unprocessed images in the selected directory",
        ui_ops.start_processing,
        "Stop", "Stop after the image being processed",
        ui_ops.stop_processing,
        bg=BACKGROUND_COLOR)
    ctx_ui.ocr_switch.pack(side=tk.LEFT)
    ctx_ui.ocr_switch.disable_buttons()

    ctx_ui.progress_panel = widgets.ProgressPanel(ctx_ui.ocr_switch)
    ctx_ui.progress_panel.pack(side=tk.LEFT, fill=tk.X, expand=True)

    save_frame = tk.LabelFrame(controls_frame, text="OCR File", bg=BACKGROUND_COLOR)
    save_frame.pack(side=tk.LEFT, padx=10)
    ctx_ui.save_button = tk.Button(save_frame, text="Save", width=8, state=tk.DISABLED,
                                   command=ui_ops.save_ocr_file)
    ctx_ui.save_button.pack(padx=5, pady=5)
    widgets.Tooltip(ctx_ui.save_button, "Save OCR File")


def create_split_panel():
    ctx_ui.split_panel = tk.PanedWindow(ctx_ui.right_frame, orient=tk.VERTICAL, sashwidth=5,
                                        sashrelief=tk.RAISED, bg=BACKGROUND_COLOR)
    ctx_ui.split_panel.pack(fill=tk.BOTH, expand=True, padx=5, pady=(0, 5))

    # Text editor with line numbers (top)
    ctx_ui.text_frame = tk.Frame(ctx_ui.split_panel)
    text_scrollbar = tk.Scrollbar(ctx_ui.text_frame, orient=tk.VERTICAL)
    ctx_ui.text_output = tk.Text(ctx_ui.text_frame, font=TEXT_FONT, undo=True, wrap=tk.NONE,
                                 state=tk.DISABLED)
    ctx_ui.line_numbers = widgets.LineNumbers(ctx_ui.text_frame, ctx_ui.text_output,
                                              background=GUTTER_COLOR, font=TEXT_FONT, width=30)

    def on_text_scroll(first, last):
        text_scrollbar.set(first, last)
        ctx_ui.line_numbers.redraw()

    ctx_ui.text_output.config(yscrollcommand=on_text_scroll)
    text_scrollbar.config(command=ctx_ui.text_output.yview)
    ctx_ui.line_numbers.pack(side=tk.LEFT, fill=tk.Y)
    text_scrollbar.pack(side=tk.RIGHT, fill=tk.Y)
    ctx_ui.text_output.pack(side=tk.LEFT, fill=tk.BOTH, expand=True)
    ctx_ui.highlighter = highlight.Highlighter(ctx_ui.text_output)

    ctx_ui.text_output.bind("<KeyRelease>", text_ops.on_key_release)
    ctx_ui.text_output.bind("<<Paste>>", lambda event: text_ops.restyle(), add="+")
    ctx_ui.text_output.bind("<Control-z>", text_ops.undo)
    ctx_ui.text_output.bind("<Control-y>", text_ops.redo)
    ctx_ui.text_output.bind("<Configure>", ctx_ui.line_numbers.schedule_redraw)

    # Image preview (bottom)
    ctx_ui.image_frame = tk.Frame(ctx_ui.split_panel)
    ctx_ui.image_canvas = tk.Canvas(ctx_ui.image_frame, bg="lightgray")
    ctx_ui.image_canvas.pack(fill=tk.BOTH, expand=True)

    ctx_ui.split_panel.add(ctx_ui.text_frame, stretch="always")
    ctx_ui.split_panel.add(ctx_ui.image_frame, stretch="always")
    ctx_ui.split_panel.bind("<ButtonRelease-1>", ui_ops.schedule_image_redraw)


def setup(root_directory=None):
    # Create the main window
    ctx_ui.window = TkinterDnD.Tk()
    ctx_ui.window.title("Image to Text Conversion")
    ctx_ui.window.configure(bg=BACKGROUND_COLOR)

    settings.current_root_directory = settings.settings["last_root_directory"]

    ctx_ui.color_text_var = tk.BooleanVar()
    ctx_ui.reformat_lines_var = tk.BooleanVar()
    create_menu()

    # Status bar at the bottom
    ctx_ui.status_label = tk.Label(ctx_ui.window, text="No directory loaded", bd=1,
                                   relief=tk.SUNKEN, anchor=tk.W)
    ctx_ui.status_label.pack(side=tk.BOTTOM, fill=tk.X)

    # Tree on the left, controls and text/image split on the right
    ctx_ui.main_paned_window = tk.PanedWindow(ctx_ui.window, orient=tk.HORIZONTAL, sashwidth=5,
                                              sashrelief=tk.RAISED, bg=BACKGROUND_COLOR)
    ctx_ui.main_paned_window.pack(fill=tk.BOTH, expand=True, padx=10, pady=10)
    ctx_ui.left_frame = tk.Frame(ctx_ui.main_paned_window, bg=BACKGROUND_COLOR)
    ctx_ui.right_frame = tk.Frame(ctx_ui.main_paned_window, bg=BACKGROUND_COLOR)
    ctx_ui.main_paned_window.add(ctx_ui.left_frame, width=300)
    ctx_ui.main_paned_window.add(ctx_ui.right_frame, width=700)

    create_left_column()
    create_control_bar()
    create_split_panel()

    ctx_ui.window.bind("<Configure>", ui_ops.on_resize)
    ctx_ui.window.protocol("WM_DELETE_WINDOW", ui_ops.on_closing)

    # Apply saved settings
    settings.apply(ctx_ui)

    if root_directory is None and os.path.isdir(settings.current_root_directory or ""):
        root_directory = settings.current_root_directory
    if root_directory:
        ctx_ui.window.after(0, ui_ops.load_root_directory, root_directory)

    # Schedule the sash position setting after the window is drawn
    ctx_ui.set_sash_job = ctx_ui.window.after(100, ui_ops.set_initial_sash_positions)

    # Run the application
    ctx_ui.window.mainloop()
