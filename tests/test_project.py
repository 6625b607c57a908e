"""Tests for the project walk and symbol extraction behind the summarize command."""

from tangerine.core.project import (
    extract_symbols,
    iter_source_files,
    pattern_symbols,
    python_symbols,
    summarize_project,
)


def test_python_symbols_lists_functions_classes_and_methods():
    source = (
        "import os\n"
        "def load(path):\n    pass\n"
        "async def fetch():\n    pass\n"
        "class Store:\n"
        "    def get(self):\n        pass\n"
        "    async def put(self):\n        pass\n"
        "VALUE = 3\n"
    )
    assert python_symbols(source) == ["load", "fetch", "Store", "Store.get", "Store.put"]


def test_python_syntax_error_yields_no_symbols():
    assert python_symbols("def broken(:\n") == []


def test_pattern_symbols_for_rust_and_typescript():
    rust = "pub struct Point { x: i32 }\nimpl Point {\n    pub fn norm(&self) -> f64 { 0.0 }\n}\nfn main() {}\n"
    assert pattern_symbols(rust, "rust") == ["Point", "norm", "main"]

    ts = "export interface Props {}\nexport default function App() {}\nconst onClick = (e) => {}\n"
    assert pattern_symbols(ts, "typescript") == ["Props", "App", "onClick"]


def test_pattern_symbols_deduplicates():
    go = "func (s *Server) Start() {}\nfunc Start() {}\ntype Server struct {}\n"
    assert pattern_symbols(go, "go") == ["Start", "Server"]


def test_extract_symbols_dispatches_on_language():
    assert extract_symbols("def f():\n    pass\n", "python") == ["f"]
    assert extract_symbols("function g() {}\n", "javascript") == ["g"]
    assert extract_symbols("anything", "json") == []


def test_iter_source_files_skips_vendor_and_hidden_dirs(tmp_path):
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "app.py").write_text("x = 1\n")
    (tmp_path / "node_modules").mkdir()
    (tmp_path / "node_modules" / "dep.js").write_text("function dep() {}\n")
    (tmp_path / ".git").mkdir()
    (tmp_path / ".git" / "hook.py").write_text("x = 1\n")
    (tmp_path / "README.md").write_text("# readme\n")
    (tmp_path / "data.json").write_text("{}\n")

    found = [p.replace(str(tmp_path), "") for p in iter_source_files(str(tmp_path))]
    assert [p.replace("\\", "/") for p in found] == ["/src/app.py"]


def test_summarize_project_lines(tmp_path):
    (tmp_path / "main.py").write_text("def run():\n    pass\n")
    (tmp_path / "util.rs").write_text("// nothing here\n")
    (tmp_path / "pkg").mkdir()
    (tmp_path / "pkg" / "mod.ts").write_text("export class Thing {}\n")

    summary = summarize_project(str(tmp_path)).replace("\\", "/")
    assert summary.splitlines() == ["main.py: run", "util.rs:", "pkg/mod.ts: Thing"]


def test_summarize_project_respects_limits(tmp_path):
    for i in range(5):
        (tmp_path / f"m{i}.py").write_text(f"def f{i}():\n    pass\n")
    (tmp_path / "big.py").write_text("def huge():\n    pass\n" + "#" * 500)

    summary = summarize_project(str(tmp_path), max_files=3, max_bytes=100)
    lines = summary.splitlines()
    assert lines[0] == "big.py: (too large)"
    assert len(lines) == 3


def test_summarize_empty_directory(tmp_path):
    assert summarize_project(str(tmp_path)) == ""
