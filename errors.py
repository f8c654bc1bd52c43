class AppError(Exception):
    """Base class for errors raised by the application utilities."""


class InvalidArgumentError(AppError, ValueError):
    """An argument passed to a utility function is not acceptable."""


class AppWarning(AppError):
    """A recoverable condition that is reported as a warning."""


class OCRError(AppError):
    """The OCR engine failed to recognize the text of an image."""

    def __init__(self, image_path, message):
        super().__init__(f"Error recognizing text in '{image_path}': {message}")
        self.image_path = image_path
