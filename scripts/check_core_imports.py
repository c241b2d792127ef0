#!/usr/bin/env python3
"""
Fail if core imports transport-specific modules.
Checks all Python files under src/canvas_mcp/core/.
"""

from __future__ import annotations

import ast
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parent.parent
CORE_DIR = REPO_ROOT / "src" / "canvas_mcp" / "core"

FORBIDDEN_PREFIXES = (
    "starlette",
    "uvicorn",
    "mcp.server",
    "canvas_mcp.transports",
    "canvas_mcp.cli",
)


def is_forbidden(module: str) -> bool:
    return any(
        module == prefix or module.startswith(prefix + ".")
        for prefix in FORBIDDEN_PREFIXES
    )


def scan_file(path: Path) -> list[str]:
    errors: list[str] = []
    tree = ast.parse(path.read_text())
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            names = [alias.name for alias in node.names]
        elif isinstance(node, ast.ImportFrom) and node.level == 0:
            names = [node.module or ""]
        else:
            continue
        errors.extend(
            f"{path}: forbidden import '{mod}'" for mod in names if mod and is_forbidden(mod)
        )
    return errors


def main(core_dir: Path = CORE_DIR) -> int:
    violations: list[str] = []
    for py_file in sorted(core_dir.rglob("*.py")):
        violations.extend(scan_file(py_file))

    if violations:
        for v in violations:
            print(v, file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
