"""Boundary checks: routers delegate data access and transactions to services."""

from __future__ import annotations

import ast
from pathlib import Path

ROUTERS_DIR = Path(__file__).resolve().parents[1] / "casecore" / "routers"


def _function_source(path: Path, function_name: str) -> str:
    source = path.read_text(encoding="utf-8")
    tree = ast.parse(source)
    lines = source.splitlines()

    for node in tree.body:
        if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)) and node.name == function_name:
            if node.end_lineno is None:
                break
            return "\n".join(lines[node.lineno - 1 : node.end_lineno])

    raise AssertionError(f"Function {function_name!r} not found in {path}")


def test_routers_do_not_import_models_directly() -> None:
    offenders: list[str] = []

    for path in ROUTERS_DIR.rglob("*.py"):
        content = path.read_text(encoding="utf-8")
        if "casecore.db.models" in content:
            offenders.append(str(path.relative_to(ROUTERS_DIR)))

    assert not offenders, f"Routers should not import models directly: {offenders}"


def test_routers_never_query_or_commit() -> None:
    offenders: list[str] = []

    for path in ROUTERS_DIR.rglob("*.py"):
        content = path.read_text(encoding="utf-8")
        if "db.query(" in content or "db.commit(" in content:
            offenders.append(str(path.relative_to(ROUTERS_DIR)))

    assert not offenders, f"Routers should go through services: {offenders}"


def test_case_lifecycle_endpoints_delegate_to_lifecycle_service() -> None:
    router_path = ROUTERS_DIR / "cases.py"
    for function_name, service_call in (
        ("change_stage", "case_lifecycle_service.update_stage("),
        ("complete_case", "case_lifecycle_service.complete_case("),
        ("delete_case", "case_lifecycle_service.delete_case("),
        ("assign_staff", "case_lifecycle_service.assign_staff("),
    ):
        fn_source = _function_source(router_path, function_name)
        assert service_call in fn_source
        assert "decide(" not in fn_source
        assert "notifier=notifier" in fn_source
