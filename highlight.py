"""
Regex based colorizer for the text editor.

The OCR text of a screenshot of source code is easier to proofread when
keywords, string literals and comments stand out, so the editor colors
them the way a Java editor would. The styles are computed on the plain text
as (tag, start, end) character ranges and then applied as Tk text tags.
"""
import re

JAVA_KEYWORDS = sorted([
    "abstract", "assert", "boolean", "break", "byte", "case", "catch",
    "char", "class", "const", "continue", "default", "double", "do", "else",
    "enum", "extends", "false", "final", "finally", "float", "for", "goto",
    "if", "implements", "import", "instanceof", "int", "interface", "long",
    "native", "new", "null", "package", "private", "protected", "public",
    "return", "short", "static", "strictfp", "super", "switch",
    "synchronized", "this", "throw", "throws", "transient", "true", "try",
    "void", "volatile", "while",
])

KEYWORD_PATTERN = re.compile(r"\b(?:" + "|".join(JAVA_KEYWORDS) + r")\b")
DOUBLE_QUOTE_PATTERN = re.compile(r'".*"')
SINGLE_LINE_COMMENT_PATTERN = re.compile(r"//.*")
MULTI_LINE_COMMENT_PATTERN = re.compile(r"/\*.*?\*/", re.DOTALL)
JAVADOC_PATTERN = re.compile(r"/\*\*.*?\*/", re.DOTALL)
NON_WORD_PATTERN = re.compile(r"\W")

# Characters that can open or close a string or comment
DELIMITERS = set('"/*')

# Later entries win when ranges overlap
STYLES = [
    ("keyword", {"foreground": "#960055"}),
    ("string", {"foreground": "blue"}),
    ("comment", {"foreground": "#088422"}),
    ("javadoc", {"foreground": "#4164be"}),
]
STYLE_TAGS = [tag for tag, _ in STYLES]
PROTECTED_TAGS = ("string", "comment", "javadoc")
HIGHLIGHT_TAG = "highlight"
HIGHLIGHT_BACKGROUND = "#b4d8fd"


def style_ranges(text):
    """Returns the (tag, start, end) ranges for the text, lowest priority first."""
    ranges = []
    for match in KEYWORD_PATTERN.finditer(text):
        ranges.append(("keyword", match.start(), match.end()))
    for tag, pattern in (("string", DOUBLE_QUOTE_PATTERN),
                         ("comment", SINGLE_LINE_COMMENT_PATTERN),
                         ("comment", MULTI_LINE_COMMENT_PATTERN),
                         ("javadoc", JAVADOC_PATTERN)):
        for match in pattern.finditer(text):
            ranges.append((tag, match.start(), match.end()))
    return ranges


def in_protected_range(ranges, offset):
    """True if the offset is within (or at the edge of) a string or comment."""
    return any(tag in PROTECTED_TAGS and start <= offset <= end
               for tag, start, end in ranges)


def word_bounds(text, offset):
    """
    Returns (start, end) of the word around the offset, delimited by the
    closest non-word characters on each side.
    """
    start = offset
    while start > 0 and not NON_WORD_PATTERN.match(text[start - 1]):
        start -= 1
    end = offset
    while end < len(text) and not NON_WORD_PATTERN.match(text[end]):
        end += 1
    return start, end


def offset_to_index(text, offset):
    """Converts a character offset to a Tk 'line.column' index."""
    offset = max(0, min(offset, len(text)))
    line = text.count("\n", 0, offset) + 1
    column = offset - (text.rfind("\n", 0, offset) + 1)
    return f"{line}.{column}"


def index_to_offset(text, index):
    """Converts a Tk 'line.column' index to a character offset."""
    line, column = (int(part) for part in str(index).split("."))
    lines = text.split("\n")
    line = max(1, min(line, len(lines)))
    offset = sum(len(lines[i]) + 1 for i in range(line - 1))
    return offset + min(column, len(lines[line - 1]))


def line_range(text, start_line, end_line):
    """
    Returns the (start, end) character span that covers the lines from
    start_line (inclusive) to end_line (exclusive), both 0-based.
    """
    lines = text.split("\n")
    start = sum(len(line) + 1 for line in lines[:start_line])
    end = start + sum(len(line) + 1 for line in lines[start_line:end_line])
    return start, min(end, len(text))


class Highlighter:
    """Applies the color styles to a Tk Text widget as the text is edited."""

    def __init__(self, widget, enabled=False):
        self.widget = widget
        self.enabled = enabled
        for tag, options in STYLES:
            widget.tag_configure(tag, foreground=options["foreground"])
        widget.tag_configure(HIGHLIGHT_TAG, background=HIGHLIGHT_BACKGROUND)
        # Tags created later take precedence; keep strings and comments over keywords
        for tag in STYLE_TAGS[1:]:
            widget.tag_raise(tag)

    def set_enabled(self, flag):
        self.enabled = flag
        self.refresh()

    def text(self):
        return self.widget.get("1.0", "end-1c")

    def clear_styles(self, start="1.0", end="end"):
        for tag in STYLE_TAGS:
            self.widget.tag_remove(tag, start, end)

    def refresh(self):
        """Restyles the whole text."""
        self.clear_styles()
        if not self.enabled:
            return
        text = self.text()
        for tag, start, end in style_ranges(text):
            self.widget.tag_add(tag, offset_to_index(text, start), offset_to_index(text, end))

    def on_edit(self, offset, changed_text=None):
        """
        Updates the styles after an edit at the given offset.

        When the changed text cannot open or close a string or comment and
        the edit is outside of one, only the words it touches need
        restyling. Anything else (e.g. a deletion whose text is unknown,
        passed as None) restyles the whole text.
        """
        if not self.enabled:
            self.clear_styles()
            return
        text = self.text()
        if changed_text is None or DELIMITERS & set(changed_text) \
                or in_protected_range(style_ranges(text), offset):
            self.refresh()
            return
        # From the word before the change to the word after it; a typed
        # space can split a keyword in two
        start = word_bounds(text, offset)[0]
        end = word_bounds(text, min(len(text), offset + len(changed_text)))[1]
        self.widget.tag_remove("keyword", offset_to_index(text, start), offset_to_index(text, end))
        for match in KEYWORD_PATTERN.finditer(text[start:end]):
            self.widget.tag_add("keyword", offset_to_index(text, start + match.start()),
                                offset_to_index(text, start + match.end()))

    def highlight_lines(self, start_line, end_line):
        """Marks lines [start_line, end_line) (0-based) with a background color."""
        text = self.text()
        start, end = line_range(text, start_line, end_line)
        self.widget.tag_add(HIGHLIGHT_TAG, offset_to_index(text, start), offset_to_index(text, end))
