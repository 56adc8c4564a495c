"""
core/utils.py - Pure utility functions for export file naming.

These are kept out of the UI so they can be tested without Qt.
"""

import os
import re
from typing import Optional

DEFAULT_FILENAME = "barcode-labels"
PDF_EXTENSION = ".pdf"

_INVALID_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')


def sanitize_filename(name: str) -> str:
    """
    Strip characters that are not allowed in file names on common platforms.

    Falls back to DEFAULT_FILENAME when nothing usable is left.
    """
    name = _INVALID_CHARS.sub("", (name or "").strip())
    name = name.strip(" .")
    return name or DEFAULT_FILENAME


def with_pdf_extension(name: str) -> str:
    """Append '.pdf' unless *name* already ends with it (case-insensitive)."""
    if name.lower().endswith(PDF_EXTENSION):
        return name
    return name + PDF_EXTENSION


def export_path(filename: Optional[str] = None, directory: Optional[str] = None) -> str:
    """
    Build the output path for an export.

    If *filename* already contains a directory it is used as-is (apart from
    the extension); otherwise it is placed in *directory* (or the current
    working directory).
    """
    filename = filename or DEFAULT_FILENAME
    head, tail = os.path.split(os.path.expanduser(filename))
    tail = with_pdf_extension(sanitize_filename(tail))
    if head:
        return os.path.join(head, tail)
    base = os.path.expanduser(directory) if directory else os.getcwd()
    return os.path.join(base, tail)
