"""
Pytest configuration and shared test fixtures
"""

import pytest
from PIL import Image, ImageDraw


def make_image(path, text="Hello"):
    image = Image.new("RGB", (120, 40), "white")
    ImageDraw.Draw(image).text((5, 10), text, fill="black")
    image.save(path)
    return path


# ============================================
# FILESYSTEM FIXTURES
# ============================================

@pytest.fixture
def image_tree(tmp_path):
    """
    root/
        a.png       (processed: a.ocr)
        b.jpeg
        notes.txt
        sub/
            c.png   (processed: c.ocr)
        empty/
    """
    root = tmp_path / "root"
    (root / "sub").mkdir(parents=True)
    (root / "empty").mkdir()
    make_image(root / "a.png")
    (root / "a.ocr").write_text("text of a", encoding="utf-8")
    make_image(root / "b.jpeg")
    (root / "notes.txt").write_text("not an image", encoding="utf-8")
    make_image(root / "sub" / "c.png")
    (root / "sub" / "c.ocr").write_text("text of c", encoding="utf-8")
    return root


@pytest.fixture
def text_file(tmp_path):
    def write(contents, name="input.txt"):
        path = tmp_path / name
        path.write_text(contents, encoding="utf-8")
        return path
    return write


# ============================================
# WIDGET FIXTURES
# ============================================

class FakeTextWidget:
    """Records the tag calls a Highlighter makes on a Tk Text widget."""

    def __init__(self, text=""):
        self.text = text
        self.configured = {}
        self.raised = []
        self.added = []
        self.removed = []

    def tag_configure(self, tag, **options):
        self.configured[tag] = options

    def tag_raise(self, tag):
        self.raised.append(tag)

    def tag_add(self, tag, start, end):
        self.added.append((tag, start, end))

    def tag_remove(self, tag, start, end):
        self.removed.append((tag, start, end))

    def get(self, start, end):
        return self.text


@pytest.fixture
def fake_text_widget():
    return FakeTextWidget()


@pytest.fixture
def tk_root():
    """A hidden Tk root window; skips the test when no display is available."""
    tk = pytest.importorskip("tkinter")
    try:
        root = tk.Tk()
    except tk.TclError as e:
        pytest.skip(f"No display available: {e}")
    root.withdraw()
    yield root
    root.destroy()
