import logging
import os
import sys

import pytesseract

import file_ops
import settings
import ui_setup

logger = logging.getLogger(__name__)


def find_tesseract():
    """The tesseract binary from the settings, TESSERACT_HOME or PATH."""
    cmd = settings.settings["tesseract"].get("cmd")
    if cmd:
        return cmd
    return file_ops.find_binary_on_env_var("TESSERACT_HOME", "tesseract") or \
        file_ops.find_binary_on_env_var("TESSERACT_HOME", "tesseract", "bin") or \
        file_ops.find_binary_on_env_var("PATH", "tesseract")


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    settings.load()
    logging.basicConfig(level=settings.log_level(),
                        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    tesseract_cmd = find_tesseract()
    if tesseract_cmd:
        pytesseract.pytesseract.tesseract_cmd = tesseract_cmd
        logger.info(f"Using tesseract at {tesseract_cmd}")
    else:
        logger.warning("tesseract not found on TESSERACT_HOME or PATH, set 'tesseract.cmd' in "
                       f"{settings.CONFIG_FILE}")

    root_directory = None
    if argv:
        root_directory = os.path.abspath(argv[0])
    ui_setup.setup(root_directory)


if __name__ == '__main__':
    main()
