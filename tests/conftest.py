"""Pytest configuration and shared fixtures.

No sys.path hacks - tests import from the installed sfdelta package.
External collaborators (sf CLI, git) are replaced by fakes that return
CmdResult objects, so no test touches a real org.
"""

import json
import zipfile
from pathlib import Path
from typing import Dict, List, Optional

import pytest

from sfdelta.config import ProjectConfig, load_config
from sfdelta._internal.cmd import CmdResult


RETRIEVED_PACKAGE_XML = """<?xml version="1.0" encoding="UTF-8"?>
<Package xmlns="http://soap.sforce.com/2006/04/metadata">
    <types>
        <members>Foo</members>
        <name>ApexClass</name>
    </types>
    <version>63.0</version>
</Package>
"""


def cmd_result(exit_code: int = 0, stdout: str = "", stderr: str = "", command: str = "sf") -> CmdResult:
    return CmdResult(
        exit_code=exit_code,
        elapsed_seconds=0.0,
        command_str=command,
        stdout=stdout,
        stderr=stderr,
    )


class FakeRetriever:
    """Stands in for `sf project retrieve start --target-metadata-dir`.

    Writes ``files`` into ``<target_dir>/<archive_name>`` and records calls.
    """

    def __init__(self, files: Optional[Dict[str, str]] = None, exit_code: int = 0,
                 stderr: str = "", archive_name: str = "unpackaged.zip", write_archive: bool = True):
        self.files = files if files is not None else {
            "unpackaged/package.xml": RETRIEVED_PACKAGE_XML,
            "unpackaged/classes/Foo.cls": "public class Foo {}\n",
            "unpackaged/classes/Foo.cls-meta.xml": "<ApexClass/>\n",
        }
        self.exit_code = exit_code
        self.stderr = stderr
        self.archive_name = archive_name
        self.write_archive = write_archive
        self.calls: List[tuple] = []
        self.manifest_seen: Optional[str] = None

    def __call__(self, manifest_path: Path, target_dir: Path) -> CmdResult:
        self.calls.append((manifest_path, target_dir))
        self.manifest_seen = manifest_path.read_text(encoding="utf-8")
        if self.exit_code == 0 and self.write_archive:
            with zipfile.ZipFile(target_dir / self.archive_name, "w") as zf:
                for name, content in self.files.items():
                    zf.writestr(name, content)
        return cmd_result(self.exit_code, stderr=self.stderr, command="sf project retrieve start")


class FakeDeployer:
    """Stands in for `sf project deploy start --metadata-dir`; snapshots the archive."""

    def __init__(self, exit_code: int = 0, stderr: str = ""):
        self.exit_code = exit_code
        self.stderr = stderr
        self.calls: List[Path] = []
        self.archive_entries: Dict[str, bytes] = {}
        self.compress_types: Dict[str, int] = {}

    def __call__(self, archive_path: Path) -> CmdResult:
        self.calls.append(archive_path)
        with zipfile.ZipFile(archive_path) as zf:
            for info in zf.infolist():
                self.archive_entries[info.filename] = zf.read(info)
                self.compress_types[info.filename] = info.compress_type
        return cmd_result(self.exit_code, stderr=self.stderr, command="sf project deploy start")


@pytest.fixture
def project_root(tmp_path) -> Path:
    root = tmp_path / "project"
    root.mkdir()
    (root / "sfdx-project.json").write_text(
        json.dumps({"packageDirectories": [{"path": "force-app", "default": True}], "sourceApiVersion": "62.0"}),
        encoding="utf-8",
    )
    return root


@pytest.fixture
def config(project_root) -> ProjectConfig:
    return load_config(project_root, environ={})
