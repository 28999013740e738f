"""Desktop entry point for the template builder."""

from __future__ import annotations

import sys

from PySide6.QtWidgets import QApplication

from agreement_vault.config import configure_logging
from agreement_vault.ui.main_window import MainWindow


def main() -> int:
    configure_logging()
    app = QApplication(sys.argv)
    window = MainWindow()
    window.show()
    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
