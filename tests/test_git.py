"""Tests for git output parsing and query wrappers."""

import pytest

from sfdelta.codes import ChangeKind
from sfdelta.contracts import ChangedPath
from sfdelta.errors import GitError
from sfdelta._internal import git

from conftest import cmd_result


def test_parse_name_status():
    output = (
        "A\0force-app/main/default/classes/New.cls\0"
        "M\0force-app/main/default/classes/Old.cls\0"
        "D\0force-app/main/default/classes/Gone.cls\0"
        "M\0force-app/main/default/lwc/my cmp/my cmp.js\0"
    )
    assert git.parse_name_status(output) == [
        ChangedPath(path="force-app/main/default/classes/New.cls", kind=ChangeKind.ADDED),
        ChangedPath(path="force-app/main/default/classes/Old.cls", kind=ChangeKind.MODIFIED),
        ChangedPath(path="force-app/main/default/lwc/my cmp/my cmp.js", kind=ChangeKind.MODIFIED),
    ]


def test_parse_name_status_keeps_paths_verbatim():
    # Without -z git C-quotes both of these
    output = (
        'A\0force-app/main/default/classes/Say"Hi".cls\0'
        "M\0force-app/main/default/classes/tab\there.cls\0"
    )
    assert [c.path for c in git.parse_name_status(output)] == [
        'force-app/main/default/classes/Say"Hi".cls',
        "force-app/main/default/classes/tab\there.cls",
    ]


def test_parse_name_status_skips_renames_and_stays_aligned():
    output = "R100\0old/A.cls\0new/A.cls\0A\0classes/B.cls\0"
    assert git.parse_name_status(output) == [ChangedPath(path="classes/B.cls", kind=ChangeKind.ADDED)]


def test_parse_name_status_ignores_truncated_output():
    assert git.parse_name_status("M\0") == []


def test_parse_name_status_empty():
    assert git.parse_name_status("") == []


def test_get_changed_paths_uses_merge_base(monkeypatch):
    calls = []
    responses = {
        "merge-base": cmd_result(0, stdout="abc123\n"),
        "diff": cmd_result(0, stdout="A\0force-app/main/default/classes/Foo.cls\0"),
    }

    def fake_git(repo_path, *args):
        calls.append(args)
        return responses[args[0]]

    monkeypatch.setattr(git, "_git", fake_git)
    changed = git.get_changed_paths("/repo", "main", current_ref="feature")
    assert changed == [ChangedPath(path="force-app/main/default/classes/Foo.cls", kind=ChangeKind.ADDED)]
    assert calls == [
        ("merge-base", "feature", "main"),
        ("diff", "--name-status", "-z", "--diff-filter=AM", "abc123", "feature"),
    ]


def test_git_failure_raises(monkeypatch):
    monkeypatch.setattr(git, "_git", lambda repo_path, *args: cmd_result(
        128, stderr="fatal: Not a valid object name main", command="git merge-base feature main"))
    with pytest.raises(GitError, match="Not a valid object name"):
        git.get_merge_base("/repo", "feature", "main")


def test_get_current_branch(monkeypatch):
    monkeypatch.setattr(git, "_git", lambda repo_path, *args: cmd_result(0, stdout="feature/x\n"))
    assert git.get_current_branch("/repo") == "feature/x"
