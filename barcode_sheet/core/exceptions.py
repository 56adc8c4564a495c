# barcode_sheet/core/exceptions.py
"""
Error types shared by the layout, occupancy and export layers.

No Qt dependencies; this module is pure Python so it can be used
in non-GUI contexts (tests, CLI tools, headless exports).
"""
from __future__ import annotations

from typing import Dict, Iterable, Optional


class LabelSheetError(Exception):
    """Base exception for all label sheet errors."""


class OutOfRange(LabelSheetError, IndexError):
    """A cell index lies outside the grid of the active layout."""

    def __init__(self, cell_index: object, total: int):
        self.cell_index = cell_index
        self.total = total
        super().__init__(
            f"Cell {cell_index!r} is outside the sheet (valid cells: 1–{total})."
        )


class CellConflict(LabelSheetError):
    """One or more requested cells already belong to another entry."""

    def __init__(self, cells: Iterable[int], owners: Optional[Dict[int, str]] = None):
        self.cells = tuple(sorted(cells))
        self.owners = dict(owners or {})
        joined = ", ".join(str(c) for c in self.cells)
        super().__init__(f"Cell(s) already in use by another entry: {joined}")


class InvalidSymbologyInput(LabelSheetError, ValueError):
    """Raised when barcode text cannot be encoded by the selected symbology."""

    def __init__(self, message: str, format: str = ""):
        self.format = format
        super().__init__(message)


class ExportFailure(LabelSheetError):
    """The document or raster library failed while producing the export."""


class UnknownLayout(LabelSheetError, KeyError):
    """The requested layout name is not in the layout table."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(name)

    def __str__(self) -> str:
        return f"Unknown label layout: {self.name!r}"


# ---------------------------------------------------------------------------
# Error-mapping helpers
# ---------------------------------------------------------------------------

_EXPORT_IO_PATTERNS: list[tuple[type, str]] = [
    (PermissionError, "Permission denied while writing the PDF file."),
    (FileNotFoundError, "The export folder does not exist."),
    (IsADirectoryError, "The export path points to a folder, not a file."),
    (OSError, "Could not write the PDF file."),
]


def _chain(new: LabelSheetError, cause: BaseException) -> LabelSheetError:
    """Attach *cause* as ``__cause__`` (mimics ``raise new from cause``)."""
    new.__cause__ = cause
    return new


def map_exception(exc: BaseException) -> LabelSheetError:
    """
    Wrap a low-level exception raised during export into ``ExportFailure``
    with a user-friendly message while preserving the original as ``__cause__``.

    If *exc* is already a ``LabelSheetError`` it is returned unchanged.
    """
    if isinstance(exc, LabelSheetError):
        return exc

    for exc_type, message in _EXPORT_IO_PATTERNS:
        if isinstance(exc, exc_type):
            detail = getattr(exc, "filename", None)
            if detail:
                message = f"{message} ({detail})"
            return _chain(ExportFailure(message), exc)

    text = str(exc) or exc.__class__.__name__
    return _chain(ExportFailure(f"Export failed: {text}"), exc)


def friendly_message(exc: BaseException) -> str:
    """Return a short, UI-safe description for *exc*."""
    mapped = map_exception(exc)
    return str(mapped)
