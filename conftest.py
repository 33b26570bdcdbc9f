"""Root conftest.py for the Bus Pirate client.

Shared pytest configuration for both packages. Tests that use mocking are
marked automatically, and hardware tests are skipped unless a serial port
is given with ``--buspirate-port``.
"""

from __future__ import annotations

import ast
import inspect
import sys
import textwrap
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from _pytest.config import Config
    from _pytest.config.argparsing import Parser
    from _pytest.nodes import Item


# Add all package src directories to path for imports
PROJECT_ROOT = Path(__file__).parent
for pkg_dir in PROJECT_ROOT.glob("buspirate*/src"):
    if str(pkg_dir) not in sys.path:
        sys.path.insert(0, str(pkg_dir))


def pytest_addoption(parser: Parser) -> None:
    """Add the hardware port option."""
    parser.addoption(
        "--buspirate-port",
        default=None,
        help="Serial port of a Bus Pirate for integration tests",
    )


def pytest_configure(config: Config) -> None:
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "uses_mock: Test uses mocking (auto-detected or manually marked)",
    )
    config.addinivalue_line(
        "markers",
        "integration: Integration test requiring a Bus Pirate on a serial port",
    )


class MockDetector(ast.NodeVisitor):
    """AST visitor flagging calls to unittest.mock helpers."""

    MOCK_NAMES = frozenset({"MagicMock", "Mock", "patch", "create_autospec", "PropertyMock"})

    def __init__(self) -> None:
        self.uses_mock = False

    def visit_Call(self, node: ast.Call) -> None:
        func = node.func
        name = func.id if isinstance(func, ast.Name) else getattr(func, "attr", "")
        if name in self.MOCK_NAMES:
            self.uses_mock = True
        self.generic_visit(node)

    def visit_FunctionDef(self, node: ast.FunctionDef) -> None:
        # Fixtures such as mock_serial
        if any("mock" in arg.arg.lower() for arg in node.args.args):
            self.uses_mock = True
        self.generic_visit(node)


def _uses_mock(item: Item) -> bool:
    obj = getattr(item, "obj", None)
    if obj is None:
        return False
    try:
        tree = ast.parse(textwrap.dedent(inspect.getsource(obj)))
    except (OSError, TypeError, SyntaxError):
        return False
    detector = MockDetector()
    detector.visit(tree)
    return detector.uses_mock


def pytest_collection_modifyitems(config: Config, items: list[Item]) -> None:
    """Mark mocked tests and skip hardware tests without a port."""
    skip_hardware = pytest.mark.skip(reason="needs --buspirate-port")
    has_port = config.getoption("--buspirate-port") is not None

    for item in items:
        if item.get_closest_marker("integration") and not has_port:
            item.add_marker(skip_hardware)
        if not item.get_closest_marker("uses_mock") and _uses_mock(item):
            item.add_marker(pytest.mark.uses_mock)


@pytest.fixture
def buspirate_port(request: pytest.FixtureRequest) -> str:
    """Serial port given with ``--buspirate-port``."""
    return request.config.getoption("--buspirate-port")


def pytest_report_header(config: Config) -> list[str]:
    """Add the hardware port to the pytest header."""
    port = config.getoption("--buspirate-port")
    return [
        "Bus Pirate client test suite",
        f"Hardware port: {port}" if port else "Hardware port: none (integration tests skipped)",
    ]
