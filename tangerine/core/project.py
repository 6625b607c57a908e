"""
project.py

Builds the textual project overview sent with the summarize-project command:
one line per source file listing the top-level symbols it defines.
"""

import ast
import logging
import os
import re

from ..config import settings
from .context import LANGUAGES

logger = logging.getLogger(__name__)

# Declaration patterns for languages we don't parse into a real syntax tree.
_DECLARATIONS = {
    "javascript": [
        r"^\s*(?:export\s+)?(?:default\s+)?(?:async\s+)?function\*?\s+(\w+)",
        r"^\s*(?:export\s+)?(?:default\s+)?class\s+(\w+)",
        r"^\s*(?:export\s+)?(?:const|let|var)\s+(\w+)\s*=\s*(?:async\s*)?(?:\([^)]*\)|\w+)\s*=>",
    ],
    "typescript": [
        r"^\s*(?:export\s+)?(?:default\s+)?(?:async\s+)?function\*?\s+(\w+)",
        r"^\s*(?:export\s+)?(?:default\s+)?(?:abstract\s+)?class\s+(\w+)",
        r"^\s*(?:export\s+)?(?:interface|type|enum)\s+(\w+)",
        r"^\s*(?:export\s+)?(?:const|let|var)\s+(\w+)\s*=\s*(?:async\s*)?(?:\([^)]*\)|\w+)\s*=>",
    ],
    "rust": [
        r"^\s*(?:pub(?:\([^)]*\))?\s+)?(?:async\s+)?(?:unsafe\s+)?fn\s+(\w+)",
        r"^\s*(?:pub(?:\([^)]*\))?\s+)?(?:struct|enum|trait|mod|type)\s+(\w+)",
    ],
    "go": [
        r"^func\s+(?:\([^)]*\)\s*)?(\w+)",
        r"^type\s+(\w+)",
    ],
    "c": [r"^[A-Za-z_][\w \t\*]*?\b(\w+)\s*\([^;]*$", r"^\s*(?:typedef\s+)?struct\s+(\w+)"],
    "cpp": [
        r"^[A-Za-z_][\w \t\*&:<>]*?\b(\w+)\s*\([^;]*$",
        r"^\s*(?:class|struct|namespace)\s+(\w+)",
    ],
    "java": [
        r"^\s*(?:public|protected|private|static|final|abstract|\s)*\s*(?:class|interface|enum|record)\s+(\w+)",
        r"^\s+(?:public|protected|private)[\w\s<>\[\],]*?\s(\w+)\s*\(",
    ],
    "kotlin": [r"^\s*(?:\w+\s+)*(?:fun|class|object|interface)\s+(\w+)"],
    "ruby": [r"^\s*(?:def|class|module)\s+(?:self\.)?(\w+[?!]?)"],
    "lua": [r"^\s*(?:local\s+)?function\s+([\w.:]+)", r"^\s*([\w.]+)\s*=\s*function\b"],
    "sh": [r"^\s*(?:function\s+)?(\w+)\s*\(\)\s*\{?"],
}

_COMPILED = {
    language: [re.compile(pattern) for pattern in patterns]
    for language, patterns in _DECLARATIONS.items()
}

_C_KEYWORDS = frozenset(["if", "for", "while", "switch", "return", "sizeof", "else"])


def python_symbols(source):
    """Top-level functions and classes (with their methods) from Python source."""
    try:
        tree = ast.parse(source)
    except (SyntaxError, ValueError):
        return []
    symbols = []
    for node in tree.body:
        if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
            symbols.append(node.name)
        elif isinstance(node, ast.ClassDef):
            symbols.append(node.name)
            for child in node.body:
                if isinstance(child, (ast.FunctionDef, ast.AsyncFunctionDef)):
                    symbols.append(f"{node.name}.{child.name}")
    return symbols


def pattern_symbols(source, language):
    symbols = []
    for line in source.splitlines():
        for pattern in _COMPILED.get(language, ()):
            match = pattern.match(line)
            if match and match.group(1) not in _C_KEYWORDS:
                symbols.append(match.group(1))
                break
    return list(dict.fromkeys(symbols))


def extract_symbols(source, language):
    if language == "python":
        return python_symbols(source)
    return pattern_symbols(source, language)


def iter_source_files(root, skip_dirs=settings.PROJECT_SKIP_DIRS):
    """Yield paths of recognised source files under root, in a stable order."""
    for dirpath, dirs, files in os.walk(root):
        dirs[:] = sorted(d for d in dirs if not d.startswith(".") and d not in skip_dirs)
        for name in sorted(files):
            language = LANGUAGES.get(os.path.splitext(name)[1].lower())
            if language in _COMPILED or language == "python":
                yield os.path.join(dirpath, name)


def summarize_project(root, max_files=settings.PROJECT_MAX_FILES,
                      max_bytes=settings.PROJECT_MAX_FILE_BYTES):
    """
    Return one ``relative/path: sym, sym`` line per source file under root.

    Files that are too large are listed without symbols, unreadable ones are
    skipped. Returns an empty string when no source files were found.
    """
    lines = []
    for path in iter_source_files(root):
        if len(lines) >= max_files:
            logger.info("Project summary truncated at %d files", max_files)
            break
        relpath = os.path.relpath(path, root)
        language = LANGUAGES[os.path.splitext(path)[1].lower()]
        try:
            if os.path.getsize(path) > max_bytes:
                lines.append(f"{relpath}: (too large)")
                continue
            with open(path, encoding="utf-8", errors="replace") as f:
                source = f.read()
        except OSError as e:
            logger.warning("Skipping %s: %s", path, e)
            continue
        symbols = extract_symbols(source, language)
        lines.append(f"{relpath}: {', '.join(symbols)}" if symbols else f"{relpath}:")
    return "\n".join(lines)
