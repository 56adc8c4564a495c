# barcode_sheet/export/renderer.py
"""
Export renderer: put one barcode per (entry, cell) onto the page.

Placement uses core.layout.rect_for + core.placement.fit_rect, the same
math the preview uses; this module adds rasterization and error policy:

- an entry whose text the symbology rejects is skipped and reported,
  the rest of the sheet is still produced;
- any other failure aborts the export as ExportFailure.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional

from ..core.barcodes import EXPORT_OPTIONS, SymbologyOptions, render_symbol, symbol_size
from ..core.exceptions import InvalidSymbologyInput, LabelSheetError, map_exception
from ..core.layout import LayoutSpec
from ..core.models import LabelEntry
from ..core.placement import DEFAULT_PADDING_MM, PlacedGlyph, plan_placements
from ..core.utils import DEFAULT_FILENAME, export_path
from .pdf_writer import DocumentWriter, PdfDocumentWriter

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int], None]


@dataclass
class ExportReport:
    path: Optional[str] = None
    placed: List[PlacedGlyph] = field(default_factory=list)
    failures: Dict[str, str] = field(default_factory=dict)   # entry id -> message
    skipped: List[str] = field(default_factory=list)         # invalid entries, never attempted

    @property
    def ok(self) -> bool:
        return not self.failures

    def summary(self) -> str:
        text = f"Placed {len(self.placed)} label(s)"
        if self.failures:
            text += f", {len(self.failures)} entr{'y' if len(self.failures) == 1 else 'ies'} skipped"
        return text


def render_sheet(
    entries: Iterable[LabelEntry],
    spec: LayoutSpec,
    writer: DocumentWriter,
    options: SymbologyOptions = EXPORT_OPTIONS,
    padding_mm: float = DEFAULT_PADDING_MM,
    progress: Optional[ProgressCallback] = None,
) -> ExportReport:
    """
    Rasterize every valid entry once and place a copy in each of its cells.

    *progress* receives 0–100 after each entry.
    """
    report = ExportReport()
    entries = list(entries)
    valid = [e for e in entries if e.is_valid]
    report.skipped = [e.id for e in entries if not e.is_valid]

    images = {}
    sizes = {}
    for i, entry in enumerate(valid, start=1):
        try:
            img = render_symbol(entry.text, options)
        except InvalidSymbologyInput as exc:
            logger.warning("Skipping entry %s (%r): %s", entry.id, entry.text, exc)
            report.failures[entry.id] = str(exc)
        else:
            images[entry.id] = img
            sizes[entry.id] = symbol_size(img, options)
        if progress is not None:
            progress(int(i * 100 / len(valid)))

    report.placed = plan_placements(valid, spec, sizes, padding_mm)
    for glyph in report.placed:
        r = glyph.rect
        writer.place_image(images[glyph.entry_id], r.x, r.y, r.width, r.height)

    return report


def export_pdf(
    entries: Iterable[LabelEntry],
    spec: LayoutSpec,
    filename: str = DEFAULT_FILENAME,
    directory: Optional[str] = None,
    options: SymbologyOptions = EXPORT_OPTIONS,
    padding_mm: float = DEFAULT_PADDING_MM,
    progress: Optional[ProgressCallback] = None,
    resolution: int = 300,
) -> ExportReport:
    """
    Render *entries* onto one page of *spec* and save it as a PDF.

    Raises ExportFailure if the document could not be produced.
    """
    path = export_path(filename, directory)
    logger.info("Exporting %s layout to %s", spec.name, path)
    try:
        writer = PdfDocumentWriter(spec.page_width_mm, spec.page_height_mm, resolution)
        report = render_sheet(entries, spec, writer, options, padding_mm, progress)
        report.path = writer.save(path)
    except LabelSheetError:
        raise
    except Exception as exc:
        raise map_exception(exc) from exc

    logger.info("%s -> %s", report.summary(), report.path)
    return report
