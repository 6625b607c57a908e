"""
hooking_qt.py

The host editor: a PyQt5 code editor and main window whose signals drive
AutocompleteCore, plus a scheduler that runs the core's timers and worker
results on the Qt event loop.
"""

import functools
import logging
import os
import re

from PyQt5 import QtCore, QtGui, QtWidgets

from ..core.context import DocumentSnapshot, language_for_path

logger = logging.getLogger(__name__)

_WORD = re.compile(r"[A-Za-z_]\w{2,}")
_WORD_TAIL = re.compile(r"\w*$")


class _TimerHandle:
    def __init__(self, timer):
        self._timer = timer
        self.cancelled = False

    def cancel(self):
        if not self.cancelled:
            self.cancelled = True
            self._timer.stop()
            self._timer.deleteLater()

    def _fire(self, callback, args):
        if self.cancelled:
            return
        self.cancelled = True
        self._timer.deleteLater()
        callback(*args)


class QtScheduler(QtCore.QObject):
    """
    The subset of the asyncio loop API that AutocompleteCore uses, on top of
    the Qt event loop.
    """

    _posted = QtCore.pyqtSignal(object)

    def __init__(self, parent=None):
        super().__init__(parent)
        self._posted.connect(self._run, QtCore.Qt.QueuedConnection)

    def call_later(self, delay, callback, *args):
        timer = QtCore.QTimer(self)
        timer.setSingleShot(True)
        handle = _TimerHandle(timer)
        timer.timeout.connect(functools.partial(handle._fire, callback, args))
        timer.start(max(0, int(delay * 1000)))
        return handle

    def call_soon_threadsafe(self, callback, *args):
        # Emitting from a worker thread queues the slot onto the GUI thread.
        self._posted.emit(functools.partial(callback, *args))

    def _run(self, callback):
        callback()


class CodeEditor(QtWidgets.QPlainTextEdit):
    """
    Plain-text code editor exposing what AutocompleteCore needs: snapshots,
    line access, cursor placement, and the project root.

    Signals:
      cursor_navigated           the cursor moved without the text changing
      native_completion_accepted the built-in word completer is about to insert
    """

    cursor_navigated = QtCore.pyqtSignal()
    native_completion_accepted = QtCore.pyqtSignal()

    def __init__(self, parent=None):
        super().__init__(parent)
        self.path = ""
        # Untitled buffers are scratch space until saved to a file.
        self.kind = "scratch"
        self.language = ""
        self.root = ""
        self.core = None
        self.overlay = None

        self.setFont(QtGui.QFontDatabase.systemFont(QtGui.QFontDatabase.FixedFont))
        self.setLineWrapMode(QtWidgets.QPlainTextEdit.NoWrap)

        self._seen_revision = self.document().revision()
        self.textChanged.connect(self._remember_revision)
        self.cursorPositionChanged.connect(self._on_cursor_position_changed)

        self.completer = QtWidgets.QCompleter(self)
        self.completer.setWidget(self)
        self.completer.setCompletionMode(QtWidgets.QCompleter.PopupCompletion)
        self.completer.setCaseSensitivity(QtCore.Qt.CaseInsensitive)
        self.completer.setModel(QtCore.QStringListModel(self.completer))
        self.completer.activated[str].connect(self.insert_completion)

    # ------------------------------------------------------------------
    # Files
    # ------------------------------------------------------------------

    def load_file(self, path):
        with open(path, encoding="utf-8", errors="replace") as f:
            text = f.read()
        # Loading is not typing; keep the core out of it.
        self.blockSignals(True)
        try:
            self.setPlainText(text)
        finally:
            self.blockSignals(False)
        self._seen_revision = self.document().revision()
        self.set_path(path)
        self.document().setModified(False)
        logger.info("Opened %s (%s)", path, self.language or "unknown language")

    def save_file(self, path=None):
        path = path or self.path
        if not path:
            raise ValueError("no file name to save to")
        with open(path, "w", encoding="utf-8") as f:
            f.write(self.toPlainText())
        self.set_path(path)
        self.document().setModified(False)
        logger.info("Saved %s", path)

    def set_path(self, path):
        self.path = os.path.abspath(path)
        self.kind = "file"
        self.language = language_for_path(path)

    # ------------------------------------------------------------------
    # Interface used by AutocompleteCore
    # ------------------------------------------------------------------

    def snapshot(self):
        cursor = self.textCursor()
        return DocumentSnapshot(
            text=self.toPlainText(),
            cursor_line=cursor.blockNumber(),
            cursor_col=cursor.positionInBlock(),
            language=self.language,
            path=self.path,
            kind=self.kind,
            read_only=self.isReadOnly(),
        )

    def get_line(self, row):
        block = self.document().findBlockByNumber(row)
        return block.text() if block.isValid() else ""

    def set_line(self, row, text):
        block = self.document().findBlockByNumber(row)
        if not block.isValid():
            return
        cursor = QtGui.QTextCursor(block)
        cursor.beginEditBlock()
        cursor.movePosition(QtGui.QTextCursor.StartOfBlock)
        cursor.movePosition(QtGui.QTextCursor.EndOfBlock, QtGui.QTextCursor.KeepAnchor)
        cursor.insertText(text)
        cursor.endEditBlock()

    def set_cursor(self, row, col):
        """Place the cursor ``col`` characters after the start of line ``row``; may run past it."""
        block = self.document().findBlockByNumber(row)
        if not block.isValid():
            return
        last = self.document().characterCount() - 1
        cursor = self.textCursor()
        cursor.setPosition(min(block.position() + col, last))
        self.setTextCursor(cursor)

    def project_root(self):
        if self.root:
            return self.root
        return os.path.dirname(self.path) if self.path else ""

    # ------------------------------------------------------------------
    # Native word completion
    # ------------------------------------------------------------------

    def word_before_cursor(self):
        cursor = self.textCursor()
        return _WORD_TAIL.search(cursor.block().text()[:cursor.positionInBlock()]).group()

    def show_completions(self):
        words = sorted(set(_WORD.findall(self.toPlainText())))
        self.completer.model().setStringList(words)
        self.completer.setCompletionPrefix(self.word_before_cursor())
        rect = self.cursorRect()
        rect.setWidth(self.completer.popup().sizeHintForColumn(0)
                      + self.completer.popup().verticalScrollBar().sizeHint().width())
        self.completer.complete(rect)

    def insert_completion(self, completion):
        prefix = self.completer.completionPrefix()
        # Suppression must be up before the insertion edit happens.
        self.native_completion_accepted.emit()
        cursor = self.textCursor()
        cursor.movePosition(QtGui.QTextCursor.Left, QtGui.QTextCursor.KeepAnchor, len(prefix))
        cursor.insertText(completion)
        self.setTextCursor(cursor)

    # ------------------------------------------------------------------
    # Qt overrides
    # ------------------------------------------------------------------

    def keyPressEvent(self, event):
        popup = self.completer.popup()
        if popup.isVisible() and event.key() in (
            QtCore.Qt.Key_Enter, QtCore.Qt.Key_Return, QtCore.Qt.Key_Escape,
            QtCore.Qt.Key_Tab, QtCore.Qt.Key_Backtab,
        ):
            event.ignore()
            return

        if event.key() == QtCore.Qt.Key_Tab and event.modifiers() == QtCore.Qt.NoModifier:
            if self.core is not None and self.core.accept():
                event.accept()
                return

        if event.key() == QtCore.Qt.Key_Space and event.modifiers() == QtCore.Qt.ControlModifier:
            self.show_completions()
            return

        super().keyPressEvent(event)

    def paintEvent(self, event):
        super().paintEvent(event)
        if self.overlay is not None:
            painter = QtGui.QPainter(self.viewport())
            try:
                self.overlay.paint(painter)
            finally:
                painter.end()

    def _remember_revision(self):
        self._seen_revision = self.document().revision()

    def _on_cursor_position_changed(self):
        revision = self.document().revision()
        if revision != self._seen_revision:
            # Moved by an edit, which textChanged already reported.
            self._seen_revision = revision
            return
        self.cursor_navigated.emit()


class EditorWindow(QtWidgets.QMainWindow):
    """Main window: one CodeEditor, File and AI menus, and a status bar for notifications."""

    def __init__(self, parent=None):
        super().__init__(parent)
        self.editor = CodeEditor(self)
        self.setCentralWidget(self.editor)
        self.statusBar()
        self.resize(960, 720)
        self._update_title()

        file_menu = self.menuBar().addMenu("&File")
        self.open_action = file_menu.addAction("&Open...", self.open_file, QtGui.QKeySequence.Open)
        self.save_action = file_menu.addAction("&Save", self.save_file, QtGui.QKeySequence.Save)
        file_menu.addSeparator()
        file_menu.addAction("&Quit", self.close, QtGui.QKeySequence.Quit)

        ai_menu = self.menuBar().addMenu("&AI")
        self.enable_action = ai_menu.addAction("&Enable auto-trigger")
        self.disable_action = ai_menu.addAction("&Disable auto-trigger")
        ai_menu.addSeparator()
        self.describe_action = ai_menu.addAction("Describe current &file")
        self.summarize_action = ai_menu.addAction("Summarize &project")

    def bind_commands(self, core):
        self.enable_action.triggered.connect(lambda: core.enable_auto_trigger())
        self.disable_action.triggered.connect(lambda: core.disable_auto_trigger())
        self.describe_action.triggered.connect(lambda: core.describe_current_file())
        self.summarize_action.triggered.connect(lambda: core.summarize_project())

    def open_file(self, path=None):
        if not path:
            path, _ = QtWidgets.QFileDialog.getOpenFileName(self, "Open file", self.editor.project_root())
            if not path:
                return
        try:
            self.editor.load_file(path)
        except OSError as e:
            logger.error("Could not open %s: %s", path, e)
            self.statusBar().showMessage(f"Could not open {path}: {e}", 5000)
            return
        self._update_title()

    def save_file(self):
        path = self.editor.path
        if not path:
            path, _ = QtWidgets.QFileDialog.getSaveFileName(self, "Save file", self.editor.project_root())
            if not path:
                return
        try:
            self.editor.save_file(path)
        except OSError as e:
            logger.error("Could not save %s: %s", path, e)
            self.statusBar().showMessage(f"Could not save {path}: {e}", 5000)
            return
        self._update_title()

    def _update_title(self):
        self.setWindowTitle(f"{os.path.basename(self.editor.path) or 'untitled'} - tangerine")


def install_editor_hooks(window, core):
    """
    Connect the editor's signals and the window's commands to the core.
    Call once after both are constructed.
    """
    editor = window.editor
    editor.core = core
    editor.overlay = core.overlay
    editor.textChanged.connect(core.on_text_changed)
    editor.cursor_navigated.connect(core.on_cursor_moved)
    editor.native_completion_accepted.connect(core.on_native_completion_accepted)
    window.bind_commands(core)
