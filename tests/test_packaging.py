"""
tests/test_packaging.py

Covers:
  - pyproject metadata points only at files that ship with the project
  - Every third-party import of the library is a declared dependency
"""

from pathlib import Path

import pytest

tomllib = pytest.importorskip("tomllib")

ROOT = Path(__file__).resolve().parents[1]


@pytest.fixture
def project():
    with open(ROOT / "pyproject.toml", "rb") as fh:
        return tomllib.load(fh)["project"]


class TestPyproject:

    def test_readme_exists_when_declared(self, project):
        readme = project.get("readme")
        if readme is not None:
            assert (ROOT / readme).is_file()
            assert Path(readme).stem.upper() == "README"

    def test_runtime_dependencies(self, project):
        names = {dep.split(">")[0].split("=")[0].strip() for dep in project["dependencies"]}
        assert names == {"numpy", "python-dateutil"}
