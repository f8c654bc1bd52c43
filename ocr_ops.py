import logging
import os
import time
from collections import namedtuple
from decimal import Decimal, ROUND_HALF_UP

import pytesseract
from PIL import Image

import file_ops
import io_ops
from errors import AppError, OCRError

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = (".png", ".jpeg", ".jpg", ".bmp", ".gif", ".tiff", ".jfif")
OCR_EXT = ".ocr"
SEPARATOR = "-" * 46

BatchResult = namedtuple("BatchResult", ["processed", "failed", "stopped"])


def text_file_path(image_path):
    """
    Returns the path of the file that holds (or will hold) the text of the
    given image: same directory and name, with the extension replaced by
    '.ocr' (e.g. 'scans/foo.png' -> 'scans/foo.ocr').
    Returns None if the image file name has no extension.
    """
    image_path = os.fspath(image_path)
    root, ext = os.path.splitext(image_path)
    if not ext:
        return None
    return root + OCR_EXT


def get_text_file(image_path):
    """Returns the '.ocr' file of the image if it exists, otherwise None."""
    ocr_path = text_file_path(image_path)
    if ocr_path is not None and os.path.isfile(ocr_path):
        return ocr_path
    return None


def is_processed(image_path):
    return get_text_file(image_path) is not None


def image_to_text(image_path, lang=None, config="", timeout=0):
    """
    Extracts the text from the given image with Tesseract.
    Raises OCRError if the image cannot be opened or recognition fails.
    """
    start_time = time.time()
    try:
        with Image.open(image_path) as image:
            text = pytesseract.image_to_string(image, lang=lang, config=config, timeout=timeout)
    except Exception as e:
        # Pillow raises more than OSError on bad input, e.g. DecompressionBombError
        raise OCRError(image_path, e)
    image_ocr_time = (time.time() - start_time) * 1000
    logger.debug(f"OCR for {image_path}: {image_ocr_time:.2f}ms - {len(text)} characters")
    return text.rstrip("\f \t\r\n")


def save_image_text(image_path, text):
    """
    Writes the text of the image to its '.ocr' file, replacing any previous
    contents. Returns the path of the '.ocr' file.
    """
    ocr_path = text_file_path(image_path)
    if ocr_path is None:
        logger.warning(f"Cannot save text for '{image_path}': the file name has no extension")
        return None
    file_ops.validate_file_to_write(ocr_path)
    io_ops.write_file(ocr_path, text or "")
    return ocr_path


def recognize_text(image_path, **ocr_options):
    """Runs OCR on the image and saves the text next to it."""
    text = image_to_text(image_path, **ocr_options)
    return save_image_text(image_path, text)


def images_to_process(dir_path, extensions=IMAGE_EXTENSIONS):
    """Returns the images in the directory that have no '.ocr' file yet."""
    return [image for image in file_ops.list_files(dir_path, extensions)
            if not is_processed(image)]


def all_images_processed(dir_path, extensions=IMAGE_EXTENSIONS):
    """
    Checks whether every image right under the directory has been processed.
    A directory without images counts as processed.
    """
    try:
        images = file_ops.list_files(dir_path, extensions)
    except AppError as e:
        logger.error(e)
        return False
    return all(is_processed(image) for image in images)


def progress_percent(count, total):
    if total <= 0:
        return 100
    value = Decimal(count * 100) / Decimal(total)
    percent = int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))
    return max(0, min(100, percent))


def process_images(images, stop_event, on_progress=None, **ocr_options):
    """
    Recognizes the text of each image in turn and saves it to the image's
    '.ocr' file. A failure for one image is logged and processing moves on
    to the next one.

    Args:
        images: The image paths to process
        stop_event: threading.Event checked after each image; once set the
            batch stops
        on_progress: Called as on_progress(percent, image_path) after each image
        ocr_options: Passed through to image_to_text()
    """
    processed = 0
    failed = 0
    total = len(images)
    for count, image_path in enumerate(images, start=1):
        try:
            recognize_text(image_path, **ocr_options)
            processed += 1
        except AppError as e:
            failed += 1
            logger.error(f"Error processing '{image_path}': {e}")

        percent = progress_percent(count, total)
        logger.debug(f"Progress {percent}% ({count}/{total})")
        if on_progress is not None:
            on_progress(percent, image_path)

        if stop_event.is_set():
            logger.info(f"Processing stopped after {count} of {total} images")
            return BatchResult(processed, failed, True)
    return BatchResult(processed, failed, False)


def extract_text_from_images(dir_path, ext, output_file, **ocr_options):
    """
    Recognizes the text of every image in the directory with the given
    extension and writes it all to a single report file.
    """
    try:
        images = file_ops.list_files(dir_path, ext)
    except AppError as e:
        logger.error(f"Error listing the images in {dir_path}: {e}")
        return
    if not images:
        logger.info(f"No images (*{ext}) found in {dir_path}")
        return

    blocks = []
    errors = []
    for image_path in images:
        name = os.path.basename(image_path)
        try:
            text = image_to_text(image_path, **ocr_options)
            blocks.append(f"{name}:\n\n{text}\n{SEPARATOR}")
        except OCRError as e:
            errors.append(f"{name}:\n{e}\n{SEPARATOR}")

    try:
        io_ops.write_file(output_file, blocks, add_new_line=True)
    except AppError as e:
        logger.error(f"Error creating output {output_file}: {e}")
        return

    if errors:
        logger.error("Failed to process the following files:\n" + "\n".join(errors))
