"""CLI tests: argument handling, modes and exit codes."""

import pytest

from sfdelta import cli
from sfdelta.codes import ChangeKind
from sfdelta.contracts import ChangedPath
from sfdelta._internal import sf_cli

from conftest import FakeDeployer, FakeRetriever, cmd_result


CHANGED = [
    ChangedPath(path="force-app/main/default/classes/Foo.cls", kind=ChangeKind.MODIFIED),
    ChangedPath(path="force-app/main/default/classes/Foo.cls-meta.xml", kind=ChangeKind.MODIFIED),
    ChangedPath(path="force-app/main/default/lwc/card/card.js", kind=ChangeKind.ADDED),
]


def _run_cli(args):
    with pytest.raises(SystemExit) as excinfo:
        cli.main(args)
    return excinfo.value.code


@pytest.fixture
def changed(monkeypatch):
    """Replace the git query with a fixed list of changed paths."""
    paths = list(CHANGED)
    monkeypatch.setattr("sfdelta.api.collect_changed_paths", lambda config, target: ("feature/x", paths))
    return paths


def test_missing_branch_is_usage_error(capsys):
    assert _run_cli([]) == 1
    captured = capsys.readouterr()
    assert "Missing required parameter: -b <branch>" in captured.err
    assert "usage: sfdelta" in captured.out


def test_unrecognized_flag_shows_help(capsys):
    assert _run_cli(["-b", "main", "--frobnicate"]) == 1
    captured = capsys.readouterr()
    assert "Unrecognized arguments: --frobnicate" in captured.err
    assert "usage: sfdelta" in captured.out


def test_retrieve_and_deploy_are_exclusive(capsys):
    assert _run_cli(["-b", "main", "-r", "-d", "R1"]) == 2
    assert "not allowed with argument" in capsys.readouterr().err


def test_empty_change_set_name(capsys, project_root):
    assert _run_cli(["-b", "main", "-d", " ", "--project-root", str(project_root)]) == 1
    assert "must not be empty" in capsys.readouterr().err


def test_no_changes_exits_zero_without_manifest(monkeypatch, capsys, config):
    monkeypatch.setattr("sfdelta.api.collect_changed_paths", lambda config, target: ("feature/x", []))
    assert _run_cli(["-b", "main", "--project-root", str(config.project_root)]) == 0
    out = capsys.readouterr().out
    assert "No changes" in out
    assert not config.manifest_path.exists()


def test_generate_manifest(changed, capsys, config):
    assert _run_cli(["-b", "main", "--project-root", str(config.project_root)]) == 0
    out = capsys.readouterr().out
    assert 'Comparing "feature/x" branch to "main"' in out
    assert "Changed files: 3" in out
    assert "[WARN] 1 changed file(s) matched no metadata rule" in out
    assert "[OK] manifest/package-diff.xml created!" in out

    text = config.manifest_path.read_text(encoding="utf-8")
    assert "<members>Foo</members>" in text
    assert "<members>card</members>" in text
    assert "<version>62.0</version>" in text


def test_api_version_flag(changed, config):
    _run_cli(["-b", "main", "--project-root", str(config.project_root), "--api-version", "60.0"])
    assert "<version>60.0</version>" in config.manifest_path.read_text(encoding="utf-8")


def test_only_unclassified_changes(monkeypatch, capsys, config):
    monkeypatch.setattr("sfdelta.api.collect_changed_paths",
                        lambda config, target: ("feature/x", [ChangedPath(path="README.md")]))
    assert _run_cli(["-b", "main", "--project-root", str(config.project_root)]) == 0
    assert "No metadata components" in capsys.readouterr().out
    assert not config.manifest_path.exists()


def test_quiet_suppresses_progress(changed, capsys, config):
    assert _run_cli(["-b", "main", "--quiet", "--project-root", str(config.project_root)]) == 0
    assert capsys.readouterr().out == ""


def test_retrieve_mode(changed, monkeypatch, capsys, config):
    calls = []

    def fake_retrieve_source(cfg, manifest_path):
        calls.append(manifest_path.read_text(encoding="utf-8"))
        return cmd_result(0)

    monkeypatch.setattr(sf_cli, "retrieve_source", fake_retrieve_source)
    assert _run_cli(["-b", "main", "-r", "--project-root", str(config.project_root)]) == 0
    assert len(calls) == 1 and "<members>Foo</members>" in calls[0]
    assert "[OK] Retrieve complete" in capsys.readouterr().out
    assert not config.manifest_path.exists()


def test_retrieve_mode_failure(changed, monkeypatch, capsys, config):
    monkeypatch.setattr(sf_cli, "retrieve_source", lambda cfg, manifest_path: cmd_result(1, stderr="expired token"))
    assert _run_cli(["-b", "main", "--retrieve", "--project-root", str(config.project_root)]) == 1
    assert "Error: Retrieve failed with exit code 1: expired token" in capsys.readouterr().err
    assert not config.manifest_path.exists()


def test_deploy_mode(changed, monkeypatch, capsys, config):
    retriever = FakeRetriever()
    deployer = FakeDeployer()
    monkeypatch.setattr(sf_cli, "retrieve_metadata", lambda cfg, manifest, target: retriever(manifest, target))
    monkeypatch.setattr(sf_cli, "deploy_metadata", lambda cfg, archive: deployer(archive))

    assert _run_cli(["-b", "main", "-d", "Release_9", "--project-root", str(config.project_root)]) == 0
    out = capsys.readouterr().out
    assert "[OK] Change set 'Release_9' deployed" in out
    assert "<fullName>Release_9</fullName>" in deployer.archive_entries["unpackaged/package.xml"].decode("utf-8")
    assert not config.work_dir.exists()
    assert not config.manifest_path.exists()


def test_deploy_mode_failure(changed, monkeypatch, capsys, config):
    monkeypatch.setattr(sf_cli, "retrieve_metadata",
                        lambda cfg, manifest, target: cmd_result(1, stderr="retrieve blew up"))
    assert _run_cli(["-b", "main", "--deploy", "Release_9", "--project-root", str(config.project_root)]) == 1
    assert "retrieve blew up" in capsys.readouterr().err
    assert not config.work_dir.exists()


def test_git_error_is_reported(monkeypatch, capsys, config):
    from sfdelta.errors import GitError

    def _fail(config, target):
        raise GitError("fatal: not a git repository")

    monkeypatch.setattr("sfdelta.api.collect_changed_paths", _fail)
    assert _run_cli(["-b", "main", "--project-root", str(config.project_root)]) == 1
    assert "Error: fatal: not a git repository" in capsys.readouterr().err


def test_version_flag(capsys):
    assert _run_cli(["--version"]) == 0
    assert capsys.readouterr().out.startswith("sfdelta ")


def test_work_dir_env_pointing_at_project_is_rejected(changed, monkeypatch, capsys, config):
    monkeypatch.setenv("SFDELTA_WORK_DIR", ".")
    deployer = FakeDeployer()
    monkeypatch.setattr(sf_cli, "deploy_metadata", lambda cfg, archive: deployer(archive))

    assert _run_cli(["-b", "main", "-d", "Release_9", "--project-root", str(config.project_root)]) == 1
    assert "single file or directory name" in capsys.readouterr().err
    assert deployer.calls == []
    assert (config.project_root / "sfdx-project.json").is_file()
