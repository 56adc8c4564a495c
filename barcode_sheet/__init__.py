"""Barcode label sheet designer: A4 grids of barcode labels, exported to PDF."""

__version__ = "1.0.0"
