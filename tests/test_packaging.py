"""Packaging regression tests.

Tests that verify the package structure and import boundary.
"""

from pathlib import Path


def test_source_layout():
    here = Path(__file__).resolve().parent
    repo_root = here.parent
    src_pkg = repo_root / "src" / "sfdelta"

    assert src_pkg.exists(), "sfdelta package should exist in src/"
    assert (src_pkg / "kernel").exists(), "sfdelta.kernel should exist in src/"
    assert (src_pkg / "_internal").exists(), "sfdelta._internal should exist in src/"
    assert (repo_root / "pyproject.toml").exists()


def test_import_boundary():
    """Installed package imports and every public export resolves."""
    import sfdelta
    import sfdelta.kernel.classify  # noqa: F401

    assert sfdelta.__version__ in ("1.0.0", "dev")
    for name in sfdelta.__all__:
        assert hasattr(sfdelta, name), f"sfdelta.{name} is exported but missing"


def test_console_script_entry_point():
    text = (Path(__file__).resolve().parents[1] / "pyproject.toml").read_text(encoding="utf-8")
    assert 'sfdelta = "sfdelta.cli:main"' in text
