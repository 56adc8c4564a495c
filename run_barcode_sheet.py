#!/usr/bin/env python
"""
Launcher script for Barcode Sheet Designer.

Usage from repo root:
    python run_barcode_sheet.py

Alternative:
    python -m barcode_sheet
"""
from barcode_sheet.app import main

if __name__ == "__main__":
    main()
