"""Each entry module must import cleanly in a fresh interpreter"""

import subprocess
import sys

import pytest


@pytest.mark.parametrize(
    "module",
    [
        "crud_app.app",
        "crud_app.auth.session_manager",
        "crud_app.services",
        "crud_app.services.catalog_service",
        "crud_app.services.store",
    ],
)
def test_module_imports_first(module):
    result = subprocess.run(
        [sys.executable, "-c", f"import {module}"],
        capture_output=True,
        text=True,
    )
    assert result.returncode == 0, result.stderr


def test_create_app_importable():
    from crud_app.app import create_app
    assert callable(create_app)
