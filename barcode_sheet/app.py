from __future__ import annotations
import sys
from PySide6.QtWidgets import QApplication
from . import __version__
from .logging_config import level_from_env, setup_logging
from .ui.main_window import APP_NAME, ORG_NAME, MainWindow


def main():
    setup_logging(level_from_env())

    app = QApplication(sys.argv)
    app.setOrganizationName(ORG_NAME)
    app.setApplicationName(APP_NAME)
    app.setApplicationVersion(__version__)

    win = MainWindow()
    win.show()
    sys.exit(app.exec())

if __name__ == '__main__':
    main()
