"""Architecture boundary checks for the pure domain layer."""

from __future__ import annotations

import ast
import sys
from pathlib import Path

import stockledger

PACKAGE_DIR = Path(stockledger.__file__).resolve().parent


def _imports(path: Path) -> list[str]:
    tree = ast.parse(path.read_text(encoding="utf-8"), filename=str(path))
    result: list[str] = []
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                result.append(alias.name)
        elif isinstance(node, ast.ImportFrom):
            base = "." * node.level + (node.module or "")
            result.append(base)
    return result


def test_domain_imports_only_stdlib_and_itself() -> None:
    violations: list[str] = []
    for path in sorted((PACKAGE_DIR / "domain").rglob("*.py")):
        for mod in _imports(path):
            if mod.startswith("."):
                violations.append(f"{path}: relative import {mod}")
                continue
            top = mod.split(".")[0]
            if mod == "stockledger.domain" or mod.startswith("stockledger.domain."):
                continue
            if top in sys.stdlib_module_names or top == "__future__":
                continue
            violations.append(f"{path}: {mod}")
    assert not violations, "Domain import violations:\n" + "\n".join(violations)


def test_runtime_does_not_import_application_or_store() -> None:
    violations: list[str] = []
    for path in sorted((PACKAGE_DIR / "runtime").rglob("*.py")):
        for mod in _imports(path):
            if mod.startswith(("stockledger.application", "stockledger.store", "stockledger.cli")):
                violations.append(f"{path}: {mod}")
    assert not violations, "Runtime import violations:\n" + "\n".join(violations)
