"""The ASGI entry point imports cleanly in a fresh interpreter."""

import subprocess
import sys
from pathlib import Path

import pytest

SRC = Path(__file__).resolve().parents[3] / "src"


def _import_in_fresh_interpreter(statement):
    return subprocess.run(
        [sys.executable, "-c", statement],
        cwd=SRC,
        capture_output=True,
        text=True,
        timeout=120,
    )


class TestEntryPoint:
    def test_app_module_initializes_domain_and_builds_app(self):
        result = _import_in_fresh_interpreter("import app; assert app.app.title == 'Storefront API'")
        assert result.returncode == 0, result.stderr

    @pytest.mark.parametrize("module", ["cart", "catalogue", "orders", "deps", "schemas"])
    def test_router_module_imports_before_the_package(self, module):
        result = _import_in_fresh_interpreter(
            f"import storefront.api.{module}; from storefront.api.app import routers; assert routers"
        )
        assert result.returncode == 0, result.stderr
