from __future__ import annotations

"""
Barcode rendering helpers.

Dependencies:
- Pillow                  → pip install pillow
- python-barcode          → pip install python-barcode[images]

Symbols are rendered to Pillow images; this module only turns text into
bars. Placing the result on the sheet is the job of core.placement.
"""

from dataclasses import dataclass
from typing import Dict, Tuple

import barcode
from barcode.errors import BarcodeError
from barcode.writer import ImageWriter
from PIL import Image
from PySide6 import QtGui

from .exceptions import InvalidSymbologyInput
from .placement import symbol_size_mm


# --- Options ----------------------------------------------------------------


@dataclass(frozen=True)
class SymbologyOptions:
    format: str = "CODE128"
    module_width: float = 0.3     # mm per narrow bar
    module_height: float = 8.0    # bar height in mm
    show_text: bool = True
    font_size: int = 10           # pt
    text_distance: float = 3.0    # mm between bars and text
    quiet_zone: float = 2.0       # mm on each side
    dpi: int = 300

    def writer_options(self) -> Dict[str, object]:
        return {
            "module_width": self.module_width,
            "module_height": self.module_height,
            "quiet_zone": self.quiet_zone,
            "font_size": self.font_size if self.show_text else 0,
            "text_distance": self.text_distance,
            "write_text": self.show_text,
            "dpi": self.dpi,
            "background": "white",
            "foreground": "black",
        }


# The PDF gets a slightly heavier, larger symbol than the on-screen preview.
EXPORT_OPTIONS = SymbologyOptions(
    module_width=0.3,
    module_height=8.0,
    font_size=10,
    text_distance=3.0,
    quiet_zone=2.0,
    dpi=300,
)
PREVIEW_OPTIONS = SymbologyOptions(
    module_width=0.25,
    module_height=6.0,
    font_size=9,
    text_distance=2.5,
    quiet_zone=2.0,
    dpi=150,
)

SUPPORTED_FORMATS = ("CODE128", "CODE39", "EAN13", "UPCA", "ITF")

# Cache for rendered symbols:
# key = (normalized_format, data_string, options)
_SYMBOL_CACHE: Dict[Tuple[str, str, SymbologyOptions], Image.Image] = {}
_CACHE_LIMIT = 512


# --- Checksums --------------------------------------------------------------


def ean13_checksum(data: str) -> str:
    """
    Compute the EAN-13 checksum digit for the first 12 digits of `data`.
    """
    digits = [int(ch) for ch in data[:12] if ch.isdigit()]
    if len(digits) != 12:
        raise ValueError("EAN-13 requires at least 12 digits for checksum")

    s = 0
    for i, d in enumerate(digits):
        s += d * (3 if (i % 2 == 1) else 1)
    return str((10 - (s % 10)) % 10)


def upca_checksum(data: str) -> str:
    """
    Compute the UPC-A checksum digit for the first 11 digits of `data`.
    """
    digits = [int(ch) for ch in data[:11] if ch.isdigit()]
    if len(digits) != 11:
        raise ValueError("UPC-A requires at least 11 digits for checksum")

    odd_sum = sum(digits[0::2])
    even_sum = sum(digits[1::2])
    total = odd_sum * 3 + even_sum
    return str((10 - (total % 10)) % 10)


# --- Validation helpers -----------------------------------------------------


def _validate_code128(data: str) -> str:
    data = data or ""
    if not data:
        raise InvalidSymbologyInput("Code 128 data cannot be empty.", "CODE128")
    for ch in data:
        if ord(ch) < 32 or ord(ch) > 126:
            raise InvalidSymbologyInput(
                f"Code 128 only supports printable ASCII (32–126). Offending char: {repr(ch)}",
                "CODE128",
            )
    return data


def _validate_code39(data: str) -> str:
    data = (data or "").strip().upper()
    if not data:
        raise InvalidSymbologyInput("Code 39 data cannot be empty.", "CODE39")
    if "*" in data:
        raise InvalidSymbologyInput(
            "Do not include '*' in Code 39 data (it's reserved for start/stop).",
            "CODE39",
        )
    allowed = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ -. $/+%"
    for ch in data:
        if ch not in allowed:
            raise InvalidSymbologyInput(
                f"Code 39 does not allow {repr(ch)}. Allowed: A–Z, 0–9, space, - . $ / + %",
                "CODE39",
            )
    return data


def _validate_itf(data: str) -> str:
    data = (data or "").strip()
    if not data:
        raise InvalidSymbologyInput("ITF data cannot be empty.", "ITF")
    if not data.isdigit():
        raise InvalidSymbologyInput("ITF (Interleaved 2 of 5) supports digits only.", "ITF")
    if len(data) % 2 != 0:
        raise InvalidSymbologyInput("ITF requires an even number of digits.", "ITF")
    return data


def _validate_ean13(data: str) -> str:
    data = (data or "").strip()
    if not data:
        raise InvalidSymbologyInput("EAN-13 data cannot be empty.", "EAN13")
    if not data.isdigit():
        raise InvalidSymbologyInput("EAN-13 supports digits only.", "EAN13")
    if len(data) not in (12, 13):
        raise InvalidSymbologyInput("EAN-13 must be 12 or 13 digits long.", "EAN13")

    if len(data) == 12:
        return data + ean13_checksum(data)

    expected = ean13_checksum(data[:-1])
    if data[-1] != expected:
        raise InvalidSymbologyInput(
            f"Invalid EAN-13 check digit: got {data[-1]}, expected {expected}.",
            "EAN13",
        )
    return data


def _validate_upca(data: str) -> str:
    data = (data or "").strip()
    if not data:
        raise InvalidSymbologyInput("UPC-A data cannot be empty.", "UPCA")
    if not data.isdigit():
        raise InvalidSymbologyInput("UPC-A supports digits only.", "UPCA")
    if len(data) not in (11, 12):
        raise InvalidSymbologyInput("UPC-A must be 11 or 12 digits long.", "UPCA")

    if len(data) == 11:
        return data + upca_checksum(data)

    expected = upca_checksum(data[:-1])
    if data[-1] != expected:
        raise InvalidSymbologyInput(
            f"Invalid UPC-A check digit: got {data[-1]}, expected {expected}.",
            "UPCA",
        )
    return data


def normalize_format(kind: str) -> str:
    """'Code 128', 'code-128', 'CODE128' -> 'CODE128'."""
    key = (kind or "").strip().upper().replace(" ", "").replace("-", "").replace("_", "")
    if key in {"UPC", "UPCA"}:
        return "UPCA"
    if key in {"ITF", "I2OF5", "INTERLEAVED2OF5"}:
        return "ITF"
    return key or "CODE128"


_VALIDATORS = {
    "CODE128": _validate_code128,
    "CODE39": _validate_code39,
    "EAN13": _validate_ean13,
    "UPCA": _validate_upca,
    "ITF": _validate_itf,
}

# python-barcode class names
_BARCODE_CLASSES = {
    "CODE128": "code128",
    "CODE39": "code39",
    "EAN13": "ean13",
    "UPCA": "upca",
    "ITF": "itf",
}


def validate_barcode_data(kind: str, data: str) -> str:
    """
    Main entry point for data validation.

    Returns normalized data, or raises InvalidSymbologyInput.
    """
    fmt = normalize_format(kind)
    validator = _VALIDATORS.get(fmt)
    if validator is None:
        raise InvalidSymbologyInput(f"Unsupported barcode format: {kind!r}", fmt)
    return validator(data)


def barcode_help_text(kind: str) -> str:
    fmt = normalize_format(kind)
    if fmt == "CODE128":
        return "Code 128: printable ASCII (letters, digits, punctuation, space)."
    if fmt == "CODE39":
        return "Code 39: A–Z, 0–9, space, - . $ / + % (no * in data)."
    if fmt == "EAN13":
        return "EAN-13: 12 or 13 digits; check digit is validated automatically."
    if fmt == "UPCA":
        return "UPC-A: 11 or 12 digits; check digit is validated automatically."
    if fmt == "ITF":
        return "ITF: numeric only, even number of digits (pairs are interleaved)."
    return ""


# --- Rendering --------------------------------------------------------------


def render_symbol(text: str, options: SymbologyOptions = EXPORT_OPTIONS) -> Image.Image:
    """
    Rasterize *text* with python-barcode, with caching.

    Raises InvalidSymbologyInput if the text can't be encoded by
    ``options.format``. Other library errors propagate unchanged.
    """
    fmt = normalize_format(options.format)
    data = validate_barcode_data(fmt, text)

    key = (fmt, data, options)
    cached = _SYMBOL_CACHE.get(key)
    if cached is not None:
        return cached

    try:
        bc_class = barcode.get_barcode_class(_BARCODE_CLASSES[fmt])
        bc = bc_class(data, writer=ImageWriter())
        pil_img = bc.render(options.writer_options())
    except BarcodeError as exc:
        raise InvalidSymbologyInput(str(exc) or f"Cannot encode {data!r}", fmt) from exc

    pil_img = pil_img.convert("RGB")

    if len(_SYMBOL_CACHE) >= _CACHE_LIMIT:
        _SYMBOL_CACHE.clear()
    _SYMBOL_CACHE[key] = pil_img
    return pil_img


def symbol_size(img: Image.Image, options: SymbologyOptions) -> Tuple[float, float]:
    """Natural printed size of a rendered symbol, in mm."""
    w, h = img.size
    return symbol_size_mm(w, h, options.dpi)


def clear_cache() -> None:
    _SYMBOL_CACHE.clear()


# --- Utility: Pillow → QImage ----------------------------------------------


def pil_to_qimage(img: Image.Image) -> QtGui.QImage:
    """
    Convert a Pillow Image to a QtGui.QImage.
    """
    img = img.convert("RGBA")
    w, h = img.size
    data = img.tobytes("raw", "RGBA")
    qimg = QtGui.QImage(data, w, h, QtGui.QImage.Format.Format_RGBA8888)
    return qimg.copy()  # detach from original buffer
