from __future__ import annotations

"""
Label sheet geometry.

Maps 1-based, row-major cell indices to rectangles on the page. All values
are millimetres; converting to screen pixels or PDF device units is the
caller's job (one multiplicative factor, see ``Rect.scaled``), so the preview
and the PDF export read their coordinates from the same function.
"""

from dataclasses import dataclass
from typing import Dict, List, Tuple

from .exceptions import OutOfRange, UnknownLayout


A4_WIDTH_MM = 210.0
A4_HEIGHT_MM = 297.0


# ---------- Geometry primitives ----------

@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def center(self) -> Tuple[float, float]:
        return (self.x + self.width / 2.0, self.y + self.height / 2.0)

    def intersects(self, other: "Rect") -> bool:
        """True if the interiors overlap (shared edges do not count)."""
        return (
            self.x < other.right
            and other.x < self.right
            and self.y < other.bottom
            and other.y < self.bottom
        )

    def contains(self, other: "Rect") -> bool:
        return (
            self.x <= other.x
            and self.y <= other.y
            and other.right <= self.right
            and other.bottom <= self.bottom
        )

    def scaled(self, factor: float) -> "Rect":
        return Rect(
            self.x * factor,
            self.y * factor,
            self.width * factor,
            self.height * factor,
        )


# ---------- Layout spec ----------

@dataclass(frozen=True)
class LayoutSpec:
    name: str
    label: str
    columns: int
    rows: int
    cell_width_mm: float
    cell_height_mm: float
    column_spacing_mm: float
    top_margin_mm: float
    left_margin_mm: float
    # (first row the spacing applies to, spacing below that row in mm)
    row_spacing_schedule: Tuple[Tuple[int, float], ...]
    page_width_mm: float = A4_WIDTH_MM
    page_height_mm: float = A4_HEIGHT_MM


def total_cells(spec: LayoutSpec) -> int:
    return spec.columns * spec.rows


def grid_shape(spec: LayoutSpec) -> Tuple[int, int]:
    """Return ``(columns, rows)``."""
    return (spec.columns, spec.rows)


def cell_indices(spec: LayoutSpec) -> range:
    return range(1, total_cells(spec) + 1)


def page_rect(spec: LayoutSpec) -> Rect:
    return Rect(0.0, 0.0, spec.page_width_mm, spec.page_height_mm)


def check_cell(cell_index: object, spec: LayoutSpec) -> int:
    """
    Validate *cell_index* against *spec* and return it.

    Raises OutOfRange for anything that is not an int in [1, total_cells].
    """
    total = total_cells(spec)
    if isinstance(cell_index, bool) or not isinstance(cell_index, int):
        raise OutOfRange(cell_index, total)
    if cell_index < 1 or cell_index > total:
        raise OutOfRange(cell_index, total)
    return cell_index


def spacing_for_row(row: int, spec: LayoutSpec) -> float:
    """
    Vertical gap below *row* (zero-based).

    The schedule is a step function: the entry with the greatest start that
    is still <= row wins.
    """
    spacing = 0.0
    for start, value in spec.row_spacing_schedule:
        if start > row:
            break
        spacing = value
    return spacing


def cell_position(cell_index: int, spec: LayoutSpec) -> Tuple[int, int]:
    """Return the zero-based ``(row, col)`` of a 1-based cell index."""
    idx = check_cell(cell_index, spec) - 1
    return (idx // spec.columns, idx % spec.columns)


def rect_for(cell_index: int, spec: LayoutSpec) -> Rect:
    """
    Physical rectangle of *cell_index* on the page, in millimetres.
    """
    row, col = cell_position(cell_index, spec)

    x = spec.left_margin_mm + col * (spec.cell_width_mm + spec.column_spacing_mm)

    y = spec.top_margin_mm
    for r in range(row):
        y += spec.cell_height_mm + spacing_for_row(r, spec)

    return Rect(x, y, spec.cell_width_mm, spec.cell_height_mm)


# ---------- Supported sheet formats ----------

# 2 mm below the first row, 1.7 mm below rows 2–3, 1.5 mm from row 4 on.
# Measured on the physical sheet; do not collapse into a single constant.
DEFAULT_ROW_SPACING: Tuple[Tuple[int, float], ...] = ((0, 2.0), (1, 1.7), (3, 1.5))


def _a4_65_cell(name: str) -> LayoutSpec:
    return LayoutSpec(
        name=name,
        label=f"{name} - 65 cells on A4 (37 x 20 mm)",
        columns=5,
        rows=13,
        cell_width_mm=37.0,
        cell_height_mm=20.0,
        column_spacing_mm=2.0,
        top_margin_mm=9.0,
        left_margin_mm=8.0,
        row_spacing_schedule=DEFAULT_ROW_SPACING,
    )


# All three formats share the same sheet geometry for now; entries are
# kept separate so each can be filled in once its sheet is measured.
LAYOUTS: Dict[str, LayoutSpec] = {
    "40L": _a4_65_cell("40L"),
    "80L": _a4_65_cell("80L"),
    "65L": _a4_65_cell("65L"),
}

DEFAULT_LAYOUT = "40L"


def layout_names() -> List[str]:
    return list(LAYOUTS)


def get_layout(name: str) -> LayoutSpec:
    try:
        return LAYOUTS[name]
    except KeyError:
        raise UnknownLayout(name) from None
