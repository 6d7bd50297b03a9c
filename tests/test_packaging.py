from pathlib import Path

import pytest

tomllib = pytest.importorskip("tomllib")

PYPROJECT = Path(__file__).resolve().parent.parent / "pyproject.toml"


def test_package_discovery_includes_implicit_namespace_packages():
    config = tomllib.loads(PYPROJECT.read_text(encoding="utf-8"))
    find = config["tool"]["setuptools"]["packages"]["find"]

    assert find["namespaces"] is True
    assert "namespace" not in find
    assert find["include"] == ["school_directory*"]
