"""
Logging setup shared by every module of the benchmark.
"""

import logging
import os

from central_pixel.cste import GeneralPath

_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_configured = False


def _configure_root(log_dir: str = GeneralPath.LOG_PATH) -> None:
    """Attach console and file handlers to the package root logger (once)."""
    global _configured
    if _configured:
        return

    root = logging.getLogger("central_pixel")
    root.setLevel(logging.INFO)
    formatter = logging.Formatter(_FORMAT)

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    root.addHandler(console)

    try:
        os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.FileHandler(
            os.path.join(log_dir, "central_pixel.log"), encoding="utf-8"
        )
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)
    except OSError as e:
        root.warning(f"File logging disabled, cannot write to {log_dir}: {e}")

    _configured = True


def get_logger(name: str) -> logging.Logger:
    """
    Return a named logger under the package root.

    Example : get_logger("io_utils") -> logger 'central_pixel.io_utils'
    """
    _configure_root()
    return logging.getLogger(f"central_pixel.{name}")
