"""
Main entry point for tangerine: a code editor with debounced inline AI completion.
"""

import argparse
import logging
import os
import signal
import sys

# Third-party
from PyQt5 import QtCore, QtWidgets

# Local imports from our package structure
from .config import settings
from .core.core import AutocompleteCore
from .core.llm_client import LLMClient
from .core.overlay import Overlay
from .hooking.hooking_qt import EditorWindow, QtScheduler, install_editor_hooks


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="tangerine",
        description="Edit code with inline completions from a local language model.",
    )
    parser.add_argument("file", nargs="?", help="file to open")
    parser.add_argument("--project-root", help="directory scanned by 'Summarize project' "
                                               "(default: the open file's directory)")
    parser.add_argument("--base-url", default=settings.LLM_BASE_URL,
                        help="inference endpoint base URL (default: %(default)s)")
    parser.add_argument("--model", default=settings.LLM_MODEL,
                        help="model name sent with every request (default: %(default)s)")
    parser.add_argument("--debounce", type=float, default=settings.DEBOUNCE_DELAY,
                        help="seconds of inactivity before requesting a completion "
                             "(default: %(default)s)")
    parser.add_argument("--no-auto-trigger", dest="auto_trigger", action="store_false",
                        default=settings.AUTO_TRIGGER,
                        help="start with automatic completion disabled")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser.parse_args(argv)


def main(argv=None):
    """
    Entry point that launches the editor window.
    """
    args = parse_args(argv)

    logging.basicConfig(level=args.log_level, format="%(asctime)s [%(levelname)s] %(message)s")
    logger = logging.getLogger(__name__)

    app = QtWidgets.QApplication.instance() or QtWidgets.QApplication(sys.argv[:1])

    logger.info("Initializing LLM client, editor, overlay, and core logic...")
    llm_client = LLMClient(base_url=args.base_url, model=args.model)
    window = EditorWindow()
    overlay = Overlay(window.editor, window.statusBar())
    scheduler = QtScheduler(window)
    core = AutocompleteCore(
        window.editor, llm_client, overlay, scheduler,
        debounce_delay=args.debounce, auto_trigger=args.auto_trigger,
    )
    install_editor_hooks(window, core)

    if args.project_root:
        window.editor.root = os.path.abspath(args.project_root)
    if args.file:
        window.open_file(args.file)

    # Set up signal handlers for clean exit (e.g., Ctrl+C)
    def handle_signal(signum, frame):
        logger.info("Received signal %s. Shutting down gracefully.", signum)
        app.quit()

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)
    # Python only runs signal handlers between bytecodes; wake it up periodically.
    wakeup = QtCore.QTimer()
    wakeup.start(250)
    wakeup.timeout.connect(lambda: None)

    window.show()
    logger.info("Using %s at %s. Close the window or press Ctrl+C to exit.",
                llm_client.model, llm_client.endpoint)
    try:
        return app.exec_()
    finally:
        llm_client.close()


if __name__ == "__main__":
    sys.exit(main())
