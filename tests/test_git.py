"""
Unit tests for the git layer: parsers, RepositorySnapshot, GitCollector.

Run with:
    pytest tests/test_git.py -v
"""

import shutil
import subprocess

import pytest

from git_ai_commit.git import (
    ChangeType,
    DiffInfo,
    FileChange,
    GitCollector,
    GitError,
    GitParseError,
    GitStatus,
    RepositorySnapshot,
    combine_numstat,
    merge_file_changes,
)
from git_ai_commit.prompts import PromptBuilder
from git_ai_commit.prompts.builder import STAGED_HEADER, UNSTAGED_HEADER

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")


# ---------------------------------------------------------------------------
# Status parser
# ---------------------------------------------------------------------------

class TestGitStatusParse:

    def test_short_lines_are_ignored(self):
        status = GitStatus.parse("M\n??\n\nA  ok.txt\n")
        assert status.staged == ("ok.txt",)
        assert status.modified == ()
        assert status.untracked == ()
        assert status.deleted == ()

    @pytest.mark.parametrize("code", ["A ", "M ", "R ", "C "])
    def test_index_status_adds_to_staged(self, code):
        status = GitStatus.parse(f"{code} file.txt")
        assert status.staged == ("file.txt",)
        assert status.deleted == ()

    def test_index_delete_is_staged_and_deleted(self):
        status = GitStatus.parse("D  gone.txt")
        assert status.staged == ("gone.txt",)
        assert status.deleted == ("gone.txt",)

    def test_worktree_statuses(self):
        status = GitStatus.parse(" M mod.txt\n D del.txt\n?? new.txt")
        assert status.modified == ("mod.txt",)
        assert status.deleted == ("del.txt",)
        assert status.untracked == ("new.txt",)
        assert status.staged == ()

    def test_path_in_multiple_sets(self):
        status = GitStatus.parse("MM both.txt")
        assert status.staged == ("both.txt",)
        assert status.modified == ("both.txt",)

    def test_unknown_codes_are_ignored(self):
        status = GitStatus.parse("UU conflict.txt\n!! ignored.txt")
        assert status.is_clean

    def test_rename_records_new_path(self):
        status = GitStatus.parse("R  old.txt -> new.txt\nRM moved.py -> dir/moved.py")
        assert status.staged == ("new.txt", "dir/moved.py")
        assert status.modified == ("dir/moved.py",)

    def test_copy_records_new_path(self):
        assert GitStatus.parse("C  base.cfg -> copy.cfg").staged == ("copy.cfg",)

    def test_display_empty(self):
        assert GitStatus().display() == "  No changes detected"

    def test_display_lists_groups(self):
        status = GitStatus(staged=("a.py", "b.py"), untracked=("c.py",))
        out = status.display()
        assert "Staged files (2): a.py, b.py" in out
        assert "Untracked files (1): c.py" in out
        assert "Modified" not in out


# ---------------------------------------------------------------------------
# Numstat parser
# ---------------------------------------------------------------------------

class TestDiffInfoParse:

    def test_parses_counts(self):
        diff = DiffInfo.parse("10\t5\tfile.rs")
        assert diff.file_stats[0].insertions == 10
        assert diff.file_stats[0].deletions == 5
        assert diff.file_stats[0].filename == "file.rs"

    def test_non_numeric_counts_default_to_zero(self):
        diff = DiffInfo.parse("abc\t5\tfile.rs")
        assert diff.file_stats[0].insertions == 0
        assert diff.file_stats[0].deletions == 5

    def test_binary_file_counts(self):
        diff = DiffInfo.parse("-\t-\timage.png")
        assert diff.files_changed == 1
        assert diff.insertions == 0
        assert diff.deletions == 0

    @pytest.mark.parametrize("line", [
        "10\t5",
        "10\t5\ta\tb",
        "no tabs at all",
        "   ",
    ])
    def test_malformed_lines_skipped(self, line):
        diff = DiffInfo.parse(line)
        assert diff.files_changed == 0
        assert diff.file_stats == ()

    def test_totals_are_summed(self):
        diff = DiffInfo.parse("1\t2\ta.py\n3\t4\tb.py\n\n5\t6\tc.py")
        assert diff.files_changed == 3
        assert diff.insertions == 9
        assert diff.deletions == 12
        assert [s.filename for s in diff.file_stats] == ["a.py", "b.py", "c.py"]

    def test_combine_numstat_staged_first(self):
        combined = combine_numstat("1\t1\tstaged.py\n", "2\t2\tunstaged.py\n")
        diff = DiffInfo.parse(combined)
        assert [s.filename for s in diff.file_stats] == ["staged.py", "unstaged.py"]

    def test_combine_numstat_blank_unstaged(self):
        assert combine_numstat("1\t1\ta.py\n", "  \n") == "1\t1\ta.py\n"

    def test_display_no_changes(self):
        assert DiffInfo().display() == "  No changes in diff"

    def test_display_summary(self):
        out = DiffInfo.parse("3\t1\tsrc/app.py").display()
        assert "1 files changed, 3 insertions(+), 1 deletions(-)" in out
        assert "src/app.py: +3 -1" in out


# ---------------------------------------------------------------------------
# Name-status parser
# ---------------------------------------------------------------------------

class TestFileChangeParse:

    def test_added_line_displays_back(self):
        change = FileChange.parse_line("A\tfoo.txt")
        assert change.change_type == ChangeType.ADDED
        assert change.display() == "A  foo.txt"

    def test_rename_with_score(self):
        change = FileChange.parse_line("R100\told.txt\tnew.txt")
        assert change.change_type == ChangeType.RENAMED
        assert change.path == "new.txt"
        assert change.original_path == "old.txt"
        assert change.display() == "R  old.txt -> new.txt"

    def test_copy(self):
        change = FileChange.parse_line("C75\tsrc.txt\tdst.txt")
        assert change.change_type == ChangeType.COPIED
        assert change.original_path == "src.txt"

    @pytest.mark.parametrize("status, expected", [
        ("M", ChangeType.MODIFIED),
        ("D", ChangeType.DELETED),
        ("U", ChangeType.UNMERGED),
    ])
    def test_simple_statuses(self, status, expected):
        change = FileChange.parse_line(f"{status}\tpath.txt")
        assert change.change_type == expected
        assert change.original_path is None

    def test_unknown_status_is_fatal(self):
        with pytest.raises(GitParseError, match="Unknown git status"):
            FileChange.parse_line("X\tfile.txt")

    def test_rename_without_new_path_is_fatal(self):
        with pytest.raises(GitParseError, match="rename/copy"):
            FileChange.parse_line("R100\told.txt")

    def test_missing_path_is_fatal(self):
        with pytest.raises(GitParseError):
            FileChange.parse_line("M")

    def test_parse_error_is_git_error(self):
        with pytest.raises(GitError):
            FileChange.parse_list("Z\tbad.txt")

    def test_parse_list_skips_blank_lines(self):
        changes = FileChange.parse_list("M\ta.py\n\n  \nA\tb.py\n")
        assert [c.path for c in changes] == ["a.py", "b.py"]

    def test_original_path_required_for_rename(self):
        with pytest.raises(ValueError):
            FileChange(ChangeType.RENAMED, "new.txt")

    def test_original_path_rejected_for_modify(self):
        with pytest.raises(ValueError):
            FileChange(ChangeType.MODIFIED, "a.txt", original_path="b.txt")


class TestFileChangeClassification:

    @pytest.mark.parametrize("path", [
        "package.json",
        "frontend/package.json",
        "Cargo.toml",
        "pyproject.toml",
        "requirements.txt",
        "Dockerfile",
        "Makefile",
        ".gitignore",
        "README.md",
        "LICENSE",
        "CHANGELOG.md",
    ])
    def test_config_files(self, path):
        assert FileChange(ChangeType.MODIFIED, path).is_config_file

    @pytest.mark.parametrize("path", [
        "tests/test_main.py",
        "src/app.spec.ts",
        "web/Button.test.tsx",
        "pkg/server/handler_test.go",
        "conftest.py",
        "src/__tests__/App.jsx",
        "spec/models/user_spec.rb",
    ])
    def test_test_files(self, path):
        assert FileChange(ChangeType.MODIFIED, path).is_test_file

    @pytest.mark.parametrize("path", [
        "src/latest.py",
        "crypto/attestation.rs",
        "docs/contest_rules.md",
        "lib/inspect.py",
    ])
    def test_substring_is_not_a_test_file(self, path):
        assert not FileChange(ChangeType.MODIFIED, path).is_test_file

    def test_source_file(self):
        change = FileChange(ChangeType.MODIFIED, "src/main.py")
        assert not change.is_config_file
        assert not change.is_test_file


class TestMergeFileChanges:

    def test_staged_record_wins(self):
        staged = [FileChange(ChangeType.MODIFIED, "a.txt")]
        unstaged = [
            FileChange(ChangeType.MODIFIED, "a.txt"),
            FileChange(ChangeType.ADDED, "b.txt"),
        ]
        merged = merge_file_changes(staged, unstaged)
        assert [c.path for c in merged] == ["a.txt", "b.txt"]
        assert merged[0] is staged[0]

    def test_staged_type_kept_over_unstaged(self):
        staged = [FileChange(ChangeType.ADDED, "new.py")]
        unstaged = [FileChange(ChangeType.MODIFIED, "new.py")]
        merged = merge_file_changes(staged, unstaged)
        assert len(merged) == 1
        assert merged[0].change_type == ChangeType.ADDED

    def test_empty_inputs(self):
        assert merge_file_changes([], []) == []


# ---------------------------------------------------------------------------
# RepositorySnapshot
# ---------------------------------------------------------------------------

class TestRepositorySnapshot:

    def test_empty_snapshot(self):
        snapshot = RepositorySnapshot()
        assert snapshot.is_empty(False)
        assert snapshot.is_empty(True)

    def test_only_modified(self):
        snapshot = RepositorySnapshot(status=GitStatus(modified=("m.txt",)))
        assert snapshot.is_empty(False) is False
        assert snapshot.is_empty(True) is True

    def test_staged_changes(self):
        snapshot = RepositorySnapshot(status=GitStatus(staged=("s.txt",)))
        assert not snapshot.is_empty(False)
        assert not snapshot.is_empty(True)

    def test_frozen(self):
        snapshot = RepositorySnapshot()
        with pytest.raises(AttributeError):
            snapshot.branch_name = "other"

    def test_display(self):
        snapshot = RepositorySnapshot(
            status=GitStatus(staged=("a.py",)),
            file_changes=(FileChange(ChangeType.ADDED, "a.py"),),
            untracked_files=("notes.txt",),
            branch_name="main",
            last_commit="feat: initial",
        )
        out = snapshot.display()
        assert "Branch: main" in out
        assert "Last commit: feat: initial" in out
        assert "A  a.py" in out
        assert "notes.txt" in out


# ---------------------------------------------------------------------------
# GitCollector with canned command output
# ---------------------------------------------------------------------------

class FakeGit:
    """Stands in for subprocess.run, answering git commands from a table."""

    def __init__(self, outputs, failures=()):
        self.outputs = outputs
        self.failures = set(failures)
        self.calls = []

    def __call__(self, cmd, **kwargs):
        args = tuple(cmd[1:])
        self.calls.append(args)
        if args in self.failures:
            raise subprocess.CalledProcessError(128, cmd, output="", stderr="fatal: boom")
        return subprocess.CompletedProcess(cmd, 0, stdout=self.outputs.get(args, ""), stderr="")


CANNED = {
    ('status', '--porcelain=v1'): "M  a.py\n M b.py\n?? new.txt\n",
    ('diff', '--cached', '--numstat'): "3\t1\ta.py\n",
    ('diff', '--numstat'): "2\t0\tb.py\n",
    ('branch', '--show-current'): "feature/x\n",
    ('log', '-1', '--pretty=%B'): "fix: previous\n\n",
    ('diff', '--cached', '--name-status'): "M\ta.py\n",
    ('diff', '--name-status'): "M\ta.py\nM\tb.py\n",
    ('ls-files', '--others', '--exclude-standard'): "new.txt\n",
}


class TestGitCollectorFake:

    @pytest.fixture
    def fake_git(self, monkeypatch):
        def _install(outputs=CANNED, failures=()):
            fake = FakeGit(outputs, failures)
            monkeypatch.setattr("git_ai_commit.git.collector.subprocess.run", fake)
            return fake
        return _install

    def test_collect_merges_all_queries(self, fake_git, tmp_path):
        fake_git()
        snapshot = GitCollector(tmp_path).collect()

        assert snapshot.status.staged == ("a.py",)
        assert snapshot.status.modified == ("b.py",)
        assert snapshot.diff_stat.files_changed == 2
        assert snapshot.diff_stat.insertions == 5
        assert [c.path for c in snapshot.file_changes] == ["a.py", "b.py"]
        assert snapshot.untracked_files == ("new.txt",)
        assert snapshot.branch_name == "feature/x"
        assert snapshot.last_commit == "fix: previous"

    def test_failed_query_is_fatal(self, fake_git, tmp_path):
        fake_git(failures=[('status', '--porcelain=v1')])
        with pytest.raises(GitError, match="fatal: boom"):
            GitCollector(tmp_path).collect()

    def test_failed_log_means_no_previous_commit(self, fake_git, tmp_path):
        fake_git(failures=[('log', '-1', '--pretty=%B')])
        snapshot = GitCollector(tmp_path).collect()
        assert snapshot.last_commit is None
        assert snapshot.branch_name == "feature/x"

    def test_parse_error_propagates(self, fake_git, tmp_path):
        outputs = dict(CANNED)
        outputs[('diff', '--name-status')] = "X\tweird.py\n"
        fake_git(outputs=outputs)
        with pytest.raises(GitParseError):
            GitCollector(tmp_path).collect()

    def test_stage_all_runs_update_then_all(self, fake_git, tmp_path):
        fake = fake_git()
        GitCollector(tmp_path).stage_all_unstaged()
        assert fake.calls == [('add', '--update'), ('add', '--all')]

    def test_stage_all_stops_on_failure(self, fake_git, tmp_path):
        fake = fake_git(failures=[('add', '--update')])
        with pytest.raises(GitError):
            GitCollector(tmp_path).stage_all_unstaged()
        assert ('add', '--all') not in fake.calls

    def test_git_not_installed(self, monkeypatch, tmp_path):
        def missing(*args, **kwargs):
            raise FileNotFoundError("git")
        monkeypatch.setattr("git_ai_commit.git.collector.subprocess.run", missing)
        with pytest.raises(GitError, match="not installed"):
            GitCollector(tmp_path).collect()


# ---------------------------------------------------------------------------
# GitCollector against a real repository
# ---------------------------------------------------------------------------

@requires_git
class TestGitCollectorRepository:

    @pytest.fixture
    def repo(self, tmp_path):
        def git(*args):
            subprocess.run(["git", *args], cwd=tmp_path, check=True, capture_output=True)
        git("init", "-q")
        git("config", "user.email", "dev@example.com")
        git("config", "user.name", "Dev")
        git("config", "commit.gpgsign", "false")
        (tmp_path / "tracked.txt").write_text("one\n")
        git("add", "tracked.txt")
        git("commit", "-q", "-m", "chore: initial commit")
        return tmp_path

    def test_clean_repository(self, repo):
        snapshot = GitCollector(repo).collect()
        assert snapshot.is_empty(False)
        assert snapshot.last_commit == "chore: initial commit"

    def test_unstaged_and_untracked(self, repo):
        (repo / "tracked.txt").write_text("one\ntwo\n")
        (repo / "fresh.txt").write_text("new\n")

        snapshot = GitCollector(repo).collect()
        assert snapshot.status.modified == ("tracked.txt",)
        assert snapshot.untracked_files == ("fresh.txt",)
        assert snapshot.diff_stat.insertions == 1
        assert snapshot.is_empty(True)

    def test_stage_all_then_commit(self, repo):
        (repo / "tracked.txt").write_text("changed\n")
        (repo / "fresh.txt").write_text("new\n")
        (repo / ".gitignore").write_text("ignored.log\n")
        (repo / "ignored.log").write_text("noise\n")

        collector = GitCollector(repo)
        collector.stage_all_unstaged()
        snapshot = collector.collect()

        assert set(snapshot.status.staged) == {"tracked.txt", "fresh.txt", ".gitignore"}
        assert "ignored.log" not in snapshot.untracked_files
        assert not snapshot.is_empty(True)

        collector.commit("feat: add fresh file")
        assert GitCollector(repo).collect().last_commit == "feat: add fresh file"

    def test_staged_rename_is_staged(self, repo):
        subprocess.run(["git", "mv", "tracked.txt", "renamed.txt"], cwd=repo, check=True, capture_output=True)

        snapshot = GitCollector(repo).collect()

        assert snapshot.status.staged == ("renamed.txt",)
        assert snapshot.file_changes == (FileChange(ChangeType.RENAMED, "renamed.txt", "tracked.txt"),)
        assert not snapshot.is_empty(True)
        prompt = PromptBuilder().build(snapshot)
        assert f"{STAGED_HEADER}\n  - R  tracked.txt -> renamed.txt" in prompt
        assert UNSTAGED_HEADER not in prompt

    def test_repository_without_commits(self, tmp_path):
        subprocess.run(["git", "init", "-q"], cwd=tmp_path, check=True)
        snapshot = GitCollector(tmp_path).collect()
        assert snapshot.last_commit is None

    def test_is_repository(self, repo, tmp_path_factory):
        assert GitCollector(repo).is_repository()
        assert not GitCollector(tmp_path_factory.mktemp("plain")).is_repository()
