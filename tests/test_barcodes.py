"""
Tests for barcode data validation and rendering through python-barcode.
"""
from __future__ import annotations

import pytest
from PIL import Image

from barcode_sheet.core.barcodes import (
    EXPORT_OPTIONS,
    PREVIEW_OPTIONS,
    SymbologyOptions,
    barcode_help_text,
    clear_cache,
    ean13_checksum,
    normalize_format,
    render_symbol,
    symbol_size,
    upca_checksum,
    validate_barcode_data,
)
from barcode_sheet.core.exceptions import InvalidSymbologyInput


class TestChecksums:
    def test_ean13(self):
        assert ean13_checksum("400638133393") == "1"

    def test_upca(self):
        assert upca_checksum("03600029145") == "2"

    def test_too_short(self):
        with pytest.raises(ValueError):
            ean13_checksum("123")


class TestValidation:
    def test_code128_accepts_printable_ascii(self):
        assert validate_barcode_data("CODE128", "ABC-123 xyz!") == "ABC-123 xyz!"

    @pytest.mark.parametrize("text", ["héllo", "tab\there", "€"])
    def test_code128_rejects_non_printable(self, text):
        with pytest.raises(InvalidSymbologyInput) as info:
            validate_barcode_data("CODE128", text)
        assert info.value.format == "CODE128"

    def test_empty_rejected(self):
        with pytest.raises(InvalidSymbologyInput):
            validate_barcode_data("CODE128", "")

    def test_code39_uppercases(self):
        assert validate_barcode_data("Code 39", "abc-1") == "ABC-1"

    def test_code39_rejects_star(self):
        with pytest.raises(InvalidSymbologyInput):
            validate_barcode_data("CODE39", "A*B")

    def test_ean13_appends_check_digit(self):
        assert validate_barcode_data("EAN13", "400638133393") == "4006381333931"

    def test_ean13_wrong_check_digit(self):
        with pytest.raises(InvalidSymbologyInput):
            validate_barcode_data("EAN13", "4006381333930")

    def test_upca_appends_check_digit(self):
        assert validate_barcode_data("UPC-A", "03600029145") == "036000291452"

    def test_itf_needs_even_digits(self):
        assert validate_barcode_data("ITF", "1234") == "1234"
        with pytest.raises(InvalidSymbologyInput):
            validate_barcode_data("ITF", "123")

    def test_unsupported_format(self):
        with pytest.raises(InvalidSymbologyInput):
            validate_barcode_data("PDF417", "x")

    def test_invalid_input_is_a_value_error(self):
        with pytest.raises(ValueError):
            validate_barcode_data("EAN13", "abc")

    def test_format_normalization(self):
        assert normalize_format("code-128") == "CODE128"
        assert normalize_format("upc") == "UPCA"
        assert normalize_format("Interleaved 2 of 5") == "ITF"
        assert normalize_format("") == "CODE128"

    def test_help_text(self):
        assert "Code 128" in barcode_help_text("CODE128")
        assert barcode_help_text("nope") == ""


class TestRenderSymbol:
    def setup_method(self):
        clear_cache()

    def test_returns_rgb_image(self):
        img = render_symbol("ABC-123", EXPORT_OPTIONS)
        assert isinstance(img, Image.Image)
        assert img.mode == "RGB"
        assert img.width > img.height > 0

    def test_cached(self):
        assert render_symbol("CACHE", EXPORT_OPTIONS) is render_symbol("CACHE", EXPORT_OPTIONS)

    def test_preview_preset_is_smaller(self):
        big = symbol_size(render_symbol("12345", EXPORT_OPTIONS), EXPORT_OPTIONS)
        small = symbol_size(render_symbol("12345", PREVIEW_OPTIONS), PREVIEW_OPTIONS)
        assert small[1] < big[1]

    def test_natural_size_in_mm(self):
        img = render_symbol("12345", EXPORT_OPTIONS)
        w_mm, h_mm = symbol_size(img, EXPORT_OPTIONS)
        assert w_mm == pytest.approx(img.width / 300 * 25.4)
        assert h_mm == pytest.approx(img.height / 300 * 25.4)

    def test_invalid_character_raises(self):
        with pytest.raises(InvalidSymbologyInput):
            render_symbol("naïve", EXPORT_OPTIONS)

    def test_other_formats_render(self):
        opts = SymbologyOptions(format="EAN13")
        img = render_symbol("400638133393", opts)
        assert img.width > 0
