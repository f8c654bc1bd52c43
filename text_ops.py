import logging
import tkinter as tk

import pyperclip

import ctx_ui
import highlight
import ui_ops

logger = logging.getLogger(__name__)

edit_delay = 200  # Milliseconds before a deleted/pasted edit is restyled
_restyle_job = None


def reformat_text(text):
    """
    Reformat text to ensure only one space exists between words.
    A lone punctuation mark is attached to the word before it.
    """
    normalized_words = []
    for word in text.split():
        if word in [',', ':', '.', ';'] and len(normalized_words) > 0:
            normalized_words[-1] += word
        else:
            normalized_words.append(word)
    return ' '.join(normalized_words)


def set_text(text, color_text=False):
    """
    Replaces the editor contents and starts a fresh undo history.
    None clears the editor.
    """
    text_output = ctx_ui.text_output
    state = text_output.cget("state")
    text_output.config(state="normal")
    text_output.delete("1.0", "end")
    if text is not None:
        text_output.insert("1.0", text)
    text_output.edit_reset()
    text_output.edit_modified(False)
    text_output.config(state=state)
    ctx_ui.highlighter.set_enabled(color_text and text is not None)
    ctx_ui.line_numbers.schedule_redraw()


def get_text():
    return ctx_ui.text_output.get("1.0", "end-1c")


def set_editable(flag):
    ctx_ui.text_output.config(state="normal" if flag else "disabled")


def set_color_text(flag):
    ctx_ui.highlighter.set_enabled(flag)


def highlight_text(start_line, end_line):
    ctx_ui.highlighter.highlight_lines(start_line, end_line)


def undo(event=None):
    try:
        ctx_ui.text_output.edit_undo()
    except tk.TclError as e:  # nothing to undo
        logger.debug(f"Nothing to undo: {e}")
    restyle()
    return "break"


def redo(event=None):
    try:
        ctx_ui.text_output.edit_redo()
    except tk.TclError as e:  # nothing to redo
        logger.debug(f"Nothing to redo: {e}")
    restyle()
    return "break"


def restyle():
    """Restyles the whole text once the edits have settled."""
    global _restyle_job
    if _restyle_job is not None:
        ctx_ui.window.after_cancel(_restyle_job)
    _restyle_job = ctx_ui.window.after(edit_delay, _run_restyle)


def _run_restyle():
    global _restyle_job
    _restyle_job = None
    ctx_ui.highlighter.refresh()
    ctx_ui.line_numbers.redraw()


def on_key_release(event):
    """Restyles the text around the insertion cursor after a keystroke."""
    if str(ctx_ui.text_output.cget("state")) == "disabled":
        return
    text = get_text()
    offset = highlight.index_to_offset(text, ctx_ui.text_output.index("insert"))
    if event.char and event.char.isprintable():
        # The typed character is just before the cursor
        ctx_ui.highlighter.on_edit(max(0, offset - 1), event.char)
        ctx_ui.line_numbers.schedule_redraw()
    elif event.keysym in ("BackSpace", "Delete", "Return", "KP_Enter", "Tab"):
        restyle()


def copy_to_clipboard():
    """Copy selected text to clipboard, or all text if none selected."""
    try:
        selected_text = ctx_ui.text_output.get(tk.SEL_FIRST, tk.SEL_LAST)
    except tk.TclError as e:  # No selection
        logger.debug(f"No selection, copying all text: {e}")
        selected_text = get_text()

    if selected_text:
        if ctx_ui.reformat_lines_var.get():
            selected_text = reformat_text(selected_text)
        pyperclip.copy(selected_text)
        ui_ops.set_status("Text copied to clipboard.")
    else:
        ui_ops.set_status("No text to copy.")
