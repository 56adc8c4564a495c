"""
Module entrypoint for `python -m barcode_sheet`.

This allows running the application as a module from the repository root:
    python -m barcode_sheet
"""
from barcode_sheet.app import main

if __name__ == "__main__":
    main()
