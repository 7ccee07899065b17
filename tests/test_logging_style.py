"""Static checks that log calls use f-strings instead of %-style arguments."""

import ast
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).parent.parent
PACKAGES = ("core", "translation", "documents", "sessions")
LOG_METHODS = {"debug", "info", "warning", "error", "exception", "critical"}


def _source_files():
    for package in PACKAGES:
        yield from sorted((PROJECT_ROOT / package).glob("*.py"))


def _percent_style_calls(path: Path):
    tree = ast.parse(path.read_text(encoding="utf-8"))
    for node in ast.walk(tree):
        if not (isinstance(node, ast.Call) and isinstance(node.func, ast.Attribute)):
            continue
        if node.func.attr not in LOG_METHODS:
            continue
        if not (isinstance(node.func.value, ast.Name) and node.func.value.id == "logger"):
            continue
        if len(node.args) > 1:
            yield node.lineno


@pytest.mark.parametrize("path", list(_source_files()), ids=lambda p: f"{p.parent.name}/{p.name}")
def test_log_calls_take_a_single_message(path):
    offenders = list(_percent_style_calls(path))
    assert not offenders, f"{path.name}: %-style logger arguments at lines {offenders}"
