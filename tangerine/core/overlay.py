"""
PyQt presentation layer: inline ghost text, the summary dialog, and status
notifications.

The ghost text is purely decorative. It is painted over the editor viewport and
never enters the document.
"""

import itertools
import logging
import re

from PyQt5 import QtCore, QtGui, QtWidgets

logger = logging.getLogger(__name__)

# Lines made only of digits, separators and whitespace ("1.", "---", "| 2 |").
_NOISE_LINE = re.compile(r"^[\d\s.,:;|/\\_=*#+\-]+$")

NOTIFY_TIMEOUT_MS = 5000


def strip_noise_lines(text):
    """Drop model artifacts such as bare ordinals and separator rules; blank lines stay."""
    kept = [line for line in text.split("\n") if not (line.strip() and _NOISE_LINE.match(line))]
    return "\n".join(kept).strip("\n")


class GhostText:
    """Handle for one rendered suggestion."""

    _ids = itertools.count(1)

    def __init__(self, anchor, text):
        self.id = next(self._ids)
        self.anchor = anchor
        self.text = text

    def __repr__(self):
        return f"GhostText(id={self.id}, anchor={self.anchor!r})"


class SummaryDialog(QtWidgets.QDialog):
    """
    Read-only window showing a description or project summary. Escape or ``q``
    closes it; both bindings only exist inside the dialog.
    """

    def __init__(self, title, body, parent=None):
        super().__init__(parent)
        self.setWindowTitle(title)
        self.setAttribute(QtCore.Qt.WA_DeleteOnClose)
        self.resize(720, 480)

        self.view = QtWidgets.QPlainTextEdit(self)
        self.view.setReadOnly(True)
        self.view.setPlainText(strip_noise_lines(body))
        self.view.setLineWrapMode(QtWidgets.QPlainTextEdit.WidgetWidth)

        layout = QtWidgets.QVBoxLayout()
        layout.setContentsMargins(8, 8, 8, 8)
        layout.addWidget(self.view)
        self.setLayout(layout)

    def keyPressEvent(self, event):
        # Escape is handled by QDialog itself.
        if event.key() == QtCore.Qt.Key_Q and not event.modifiers():
            self.close()
            return
        super().keyPressEvent(event)

    def body(self):
        return self.view.toPlainText()


class Overlay:
    """
    The presentation adapter used by AutocompleteCore:
      - render()/remove() manage the single ghost-text suggestion on the editor
      - show_modal() opens a SummaryDialog
      - notify() puts a message in the status bar

    The editor calls paint() from its own paintEvent.
    """

    def __init__(self, editor, status_bar=None):
        """
        :param editor:     The QPlainTextEdit the ghost text is drawn on.
        :param status_bar: Optional QStatusBar used for notifications.
        """
        self.editor = editor
        self.status_bar = status_bar
        self.color = QtGui.QColor(150, 150, 150)
        self.current = None
        self.dialog = None

    def render(self, anchor, text):
        self.current = GhostText(anchor, text)
        self.editor.viewport().update()
        return self.current

    def remove(self, handle):
        if handle is not None and handle is self.current:
            self.current = None
            self.editor.viewport().update()

    def show_modal(self, title, body):
        if self.dialog is not None:
            self.dialog.close()
        self.dialog = SummaryDialog(title, body, parent=self.editor.window())
        self.dialog.finished.connect(self._on_dialog_finished)
        self.dialog.setModal(True)
        self.dialog.show()
        return self.dialog

    def _on_dialog_finished(self, _result):
        self.dialog = None

    def notify(self, message, error=False):
        if error:
            logger.error(message)
        else:
            logger.info(message)
        if self.status_bar is not None:
            self.status_bar.showMessage(message, NOTIFY_TIMEOUT_MS)

    def paint(self, painter):
        """Draw the current suggestion at its anchor, continuation lines at the left margin."""
        ghost = self.current
        if ghost is None:
            return
        row, col = ghost.anchor
        block = self.editor.document().findBlockByNumber(row)
        if not block.isValid() or not block.isVisible():
            return

        cursor = QtGui.QTextCursor(block)
        cursor.setPosition(block.position() + min(col, block.length() - 1))
        rect = self.editor.cursorRect(cursor)
        metrics = self.editor.fontMetrics()
        left = int(self.editor.contentOffset().x() + self.editor.document().documentMargin())

        font = QtGui.QFont(self.editor.font())
        font.setItalic(True)
        painter.save()
        painter.setFont(font)
        painter.setPen(self.color)
        y = rect.top() + metrics.ascent()
        for i, line in enumerate(ghost.text.split("\n")):
            painter.drawText(rect.left() if i == 0 else left, y + i * metrics.lineSpacing(), line)
        painter.restore()
