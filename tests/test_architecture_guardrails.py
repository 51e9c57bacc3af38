from __future__ import annotations

import ast
from pathlib import Path


ROOT = Path(__file__).resolve().parents[1]


def _line_count(path: Path) -> int:
    return len(path.read_text(encoding="utf-8", errors="ignore").splitlines())


def _python_files(root: Path):
    for path in root.rglob("*.py"):
        # Keep architecture checks focused on source/test code, not packaged artifacts.
        if {"dist", "build", ".venv", "site-packages"} & set(path.parts):
            continue
        yield path


def _imported_modules(path: Path):
    tree = ast.parse(path.read_text(encoding="utf-8", errors="ignore"))
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                yield alias.name
        elif isinstance(node, ast.ImportFrom):
            yield node.module or ""


def _violations(root: Path, forbidden: tuple[str, ...]) -> list[tuple[str, str]]:
    found: list[tuple[str, str]] = []
    for path in _python_files(root):
        for name in _imported_modules(path):
            if any(name == prefix or name.startswith(prefix + ".") for prefix in forbidden):
                found.append((str(path.relative_to(ROOT)), name))
    return found


def test_no_python_module_exceeds_hard_line_limit():
    offenders = []
    for path in _python_files(ROOT):
        lines = _line_count(path)
        if lines > 1200:
            offenders.append((str(path.relative_to(ROOT)), lines))
    assert not offenders, f"Modules exceed hard 1200-line limit: {offenders}"


def test_core_layer_does_not_import_infra_or_orm():
    violations = _violations(ROOT / "core", ("infra", "sqlalchemy", "alembic"))

    assert not violations, f"Core layer imports infrastructure: {violations}"


def test_profitability_calculations_stay_free_of_io():
    violations = _violations(
        ROOT / "core" / "services" / "profitability",
        ("openpyxl", "urllib", "core.reporting"),
    )

    assert not violations, f"Profitability calculations import I/O modules: {violations}"
