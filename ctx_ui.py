# Live widgets and UI state shared between the ui_* modules, set up by ui_setup.setup()

window = None
main_paned_window = None
left_frame = None
right_frame = None
split_panel = None
text_frame = None
image_frame = None

browse_button = None
loading_label = None
tree_frame = None
file_tree = None

ocr_switch = None
progress_panel = None
save_button = None

text_output = None
line_numbers = None
highlighter = None
image_canvas = None
status_label = None

color_text_var = None
reformat_lines_var = None

set_sash_job = None
