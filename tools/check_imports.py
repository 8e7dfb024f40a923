"""Validate Python layer import boundaries for story_shelf."""

from __future__ import annotations

import ast
from pathlib import Path

PACKAGE = "story_shelf"
PROJECT_ROOT = Path(__file__).resolve().parents[1]
DEFAULT_SOURCE_ROOT = PROJECT_ROOT / "src" / PACKAGE
KNOWN_LAYERS = {"api", "core", "adapters", "cli"}
RULES: dict[str, set[str]] = {
    "core": {"api", "adapters", "cli"},
    "adapters": {"api", "cli"},
}


def _layer_for_path(path: Path, source_root: Path) -> str | None:
    try:
        relative = path.relative_to(source_root)
    except ValueError:
        return None
    if len(relative.parts) < 2:
        return None
    return relative.parts[0]


def _layer_of(module_parts: list[str]) -> str | None:
    if len(module_parts) < 2 or module_parts[0] != PACKAGE:
        return None
    candidate = module_parts[1]
    return candidate if candidate in KNOWN_LAYERS else None


def _absolute_parts(node: ast.ImportFrom, path: Path, source_root: Path) -> list[str]:
    if node.level == 0:
        return node.module.split(".") if node.module else []
    relative = path.relative_to(source_root)
    package_parts = [PACKAGE, *relative.with_suffix("").parts[:-1]]
    if node.level - 1 > len(package_parts) - 1:
        return []
    base = package_parts[: len(package_parts) - (node.level - 1)]
    return [*base, *node.module.split(".")] if node.module else base


def _imported_layers(node: ast.Import | ast.ImportFrom, path: Path, source_root: Path) -> set[str]:
    if isinstance(node, ast.Import):
        layers = {_layer_of(alias.name.split(".")) for alias in node.names}
        return {layer for layer in layers if layer is not None}
    parts = _absolute_parts(node, path, source_root)
    direct = _layer_of(parts)
    if direct is not None:
        return {direct}
    if parts == [PACKAGE]:
        return {alias.name for alias in node.names if alias.name in KNOWN_LAYERS}
    return set()


def check_file(path: Path, source_root: Path = DEFAULT_SOURCE_ROOT) -> list[str]:
    layer = _layer_for_path(path, source_root)
    banned_layers = RULES.get(layer or "", set())
    if not banned_layers:
        return []

    tree = ast.parse(path.read_text(encoding="utf-8"), filename=str(path))
    violations: list[str] = []
    for node in ast.walk(tree):
        if not isinstance(node, (ast.Import, ast.ImportFrom)):
            continue
        for imported_layer in sorted(_imported_layers(node, path, source_root) & banned_layers):
            violations.append(f"{path}: {layer} must not import {PACKAGE}.{imported_layer}")
    return violations


def check_import_boundaries(source_root: Path = DEFAULT_SOURCE_ROOT) -> list[str]:
    violations: list[str] = []
    for path in sorted(source_root.rglob("*.py")):
        violations.extend(check_file(path, source_root))
    return violations


def main() -> None:
    violations = check_import_boundaries()
    if violations:
        raise SystemExit("\n".join(violations))
    print("import boundary checks passed")


if __name__ == "__main__":
    main()
