"""Main entry point for the RL playground."""

import os
import signal
import sys

from PySide6.QtCore import Qt
from PySide6.QtWidgets import QApplication


def main():
    """Main entry point for the RL playground application."""
    # Disable DPI scaling so the grid renders at a fixed size on macOS
    os.environ.setdefault('QT_AUTO_SCREEN_SCALE_FACTOR', '0')
    os.environ.setdefault('QT_SCALE_FACTOR', '1')
    os.environ.setdefault('QT_LOGGING_RULES', 'qt.qpa.backingstore=false')

    QApplication.setHighDpiScaleFactorRoundingPolicy(Qt.HighDpiScaleFactorRoundingPolicy.Floor)

    app = QApplication(sys.argv)
    app.setApplicationName("RL Playground")
    app.setApplicationVersion("1.0.0")

    # Import UI components (after QApplication is created)
    from .app.controller import PlaygroundController
    from .ui.main_window import MainWindow

    controller = PlaygroundController()
    window = MainWindow(controller)

    def signal_handler(sig, frame):
        """Handle system signals for graceful shutdown."""
        print(f"\nReceived signal {sig}, shutting down gracefully...")
        controller.cleanup()
        window.close()
        app.quit()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    try:
        window.show()
        return app.exec()
    finally:
        controller.cleanup()


if __name__ == "__main__":
    sys.exit(main())
