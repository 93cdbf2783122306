# core/cooperative.py
# Version 01.00.00.00 dated 20261019
# Explicit suspend points for long single-threaded loops

import time

from PySide6.QtCore import QCoreApplication

# Records/files handled between two yields
DEFAULT_CHUNK_SIZE = 50

# Pause at each yield point, in seconds
DEFAULT_YIELD_DELAY = 0.01


def cooperative_yield(delay: float = DEFAULT_YIELD_DELAY):
    """
    Let the host run pending work.

    Pumps the Qt event loop when an application exists so the grid can
    repaint and deleted objects are collected, then sleeps briefly.
    """
    if QCoreApplication.instance() is not None:
        QCoreApplication.processEvents()
    if delay > 0:
        time.sleep(delay)


def should_yield(processed: int, chunk_size: int = DEFAULT_CHUNK_SIZE) -> bool:
    """True after every full chunk of processed items."""
    return chunk_size > 0 and processed > 0 and processed % chunk_size == 0
