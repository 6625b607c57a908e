"""
context.py

Turns an editor snapshot into the context payload sent to the language model,
and decides which buffers are eligible for automatic completion.
"""

import os
from dataclasses import dataclass

from ..config import settings

# Language tags by file extension, used when the host cannot tell us better.
LANGUAGES = {
    ".py": "python",
    ".pyi": "python",
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".ts": "typescript",
    ".tsx": "typescript",
    ".rs": "rust",
    ".go": "go",
    ".c": "c",
    ".h": "c",
    ".cc": "cpp",
    ".cpp": "cpp",
    ".hpp": "cpp",
    ".java": "java",
    ".kt": "kotlin",
    ".rb": "ruby",
    ".lua": "lua",
    ".sh": "sh",
    ".json": "json",
    ".toml": "toml",
    ".yaml": "yaml",
    ".yml": "yaml",
    ".html": "html",
    ".css": "css",
    ".sql": "sql",
    ".md": "markdown",
    ".markdown": "markdown",
}


@dataclass(frozen=True)
class DocumentSnapshot:
    """What the host editor tells us about the active buffer.

    ``cursor_line`` and ``cursor_col`` are zero-based; ``kind`` is ``"file"`` for
    an ordinary file-backed buffer and something else (``"scratch"``,
    ``"prompt"``, ``"tree"`` ...) for editor-internal surfaces.
    """

    text: str
    cursor_line: int
    cursor_col: int
    language: str = ""
    path: str = ""
    kind: str = "file"
    read_only: bool = False

    @property
    def extension(self):
        return os.path.splitext(self.path)[1].lower()

    def line(self, index):
        lines = self.text.split("\n")
        if 0 <= index < len(lines):
            return lines[index]
        return ""


@dataclass(frozen=True)
class ContextPayload:
    text: str
    cursor_line: int
    cursor_col: int
    language_tag: str


def language_for_path(path):
    """Guess a language tag from the file extension ("" when unknown)."""
    return LANGUAGES.get(os.path.splitext(path)[1].lower(), "")


def is_eligible(snapshot,
                disallowed_kinds=settings.DISALLOWED_BUFFER_KINDS,
                disallowed_filetypes=settings.DISALLOWED_FILETYPES,
                disallowed_extensions=settings.DISALLOWED_EXTENSIONS):
    """
    True when automatic completion may run in this buffer.

    Buffers of a disallowed kind never qualify, nor do unsaved or read-only
    ones, nor the disallowed filetypes and extensions.
    """
    if snapshot is None:
        return False
    if snapshot.kind in disallowed_kinds:
        return False
    if not snapshot.path or snapshot.read_only:
        return False
    if snapshot.language.lower() in disallowed_filetypes:
        return False
    return snapshot.extension not in disallowed_extensions


def extract(snapshot):
    """Build the prompt context from a snapshot. Never fails, never mutates."""
    language = snapshot.language or language_for_path(snapshot.path) or "plain text"
    return ContextPayload(
        text=snapshot.text,
        cursor_line=snapshot.cursor_line,
        cursor_col=snapshot.cursor_col,
        language_tag=language,
    )
