"""Git Collector - Gather repository state into one immutable snapshot."""

import subprocess
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path

from git_ai_commit.git.parsers import (
    DiffInfo,
    FileChange,
    GitError,
    GitStatus,
    combine_numstat,
    merge_file_changes,
)


@dataclass(frozen=True)
class RepositorySnapshot:
    """Complete picture of the repository for one collection cycle."""
    status: GitStatus = field(default_factory=GitStatus)
    diff_stat: DiffInfo = field(default_factory=DiffInfo)
    file_changes: tuple[FileChange, ...] = ()
    untracked_files: tuple[str, ...] = ()
    branch_name: str = ""
    last_commit: str | None = None

    def is_empty(self, after_staging: bool = False) -> bool:
        """No changes to commit.

        After staging only the staged set matters; before staging any
        status group counts.
        """
        if after_staging:
            return not self.status.staged
        return self.status.is_clean

    def display(self) -> str:
        lines = [f"Branch: {self.branch_name}"]
        if self.last_commit:
            lines.append(f"Last commit: {self.last_commit}")

        lines.extend(["", "Status:", self.status.display(), "", "Diff stats:", self.diff_stat.display()])

        if self.file_changes:
            lines.extend(["", "File changes:"])
            lines.extend(f"  {change.display()}" for change in self.file_changes)

        if self.untracked_files:
            lines.extend(["", "Untracked files:"])
            lines.extend(f"  {path}" for path in self.untracked_files)

        return "\n".join(lines)


class GitCollector:
    """Runs the read-only git queries and builds RepositorySnapshot objects."""

    MAX_WORKERS = 6

    def __init__(self, repo_path: str | Path | None = None):
        self.repo_path = Path(repo_path) if repo_path else Path.cwd()

    def _run_git(self, *args: str) -> str:
        """Run a git command and return stdout."""
        try:
            result = subprocess.run(
                ['git', *args],
                cwd=self.repo_path,
                capture_output=True,
                text=True,
                check=True,
                encoding='utf-8',
                errors='replace'
            )
            return result.stdout
        except subprocess.CalledProcessError as e:
            raise GitError(f"Git command failed: git {' '.join(args)}\n{e.stderr}")
        except FileNotFoundError:
            raise GitError("Git is not installed or not in PATH")

    def is_repository(self) -> bool:
        try:
            self._run_git('rev-parse', '--git-dir')
        except GitError:
            return False
        return True

    def collect(self) -> RepositorySnapshot:
        """Query the repository concurrently and merge the results."""
        with ThreadPoolExecutor(max_workers=self.MAX_WORKERS) as pool:
            status = pool.submit(self._get_status)
            diff_stat = pool.submit(self._get_diff_stat)
            branch_name = pool.submit(self._get_branch_name)
            last_commit = pool.submit(self._get_last_commit)
            file_changes = pool.submit(self._get_file_changes)
            untracked_files = pool.submit(self._get_untracked_files)

            # .result() re-raises the first GitError from any query
            return RepositorySnapshot(
                status=status.result(),
                diff_stat=diff_stat.result(),
                file_changes=tuple(file_changes.result()),
                untracked_files=tuple(untracked_files.result()),
                branch_name=branch_name.result(),
                last_commit=last_commit.result(),
            )

    def _get_status(self) -> GitStatus:
        return GitStatus.parse(self._run_git('status', '--porcelain=v1'))

    def _get_diff_stat(self) -> DiffInfo:
        staged = self._run_git('diff', '--cached', '--numstat')
        unstaged = self._run_git('diff', '--numstat')
        return DiffInfo.parse(combine_numstat(staged, unstaged))

    def _get_file_changes(self) -> list[FileChange]:
        staged = FileChange.parse_list(self._run_git('diff', '--cached', '--name-status'))
        unstaged = FileChange.parse_list(self._run_git('diff', '--name-status'))
        return merge_file_changes(staged, unstaged)

    def _get_untracked_files(self) -> list[str]:
        output = self._run_git('ls-files', '--others', '--exclude-standard')
        return [line.strip() for line in output.splitlines() if line.strip()]

    def _get_branch_name(self) -> str:
        return self._run_git('branch', '--show-current').strip()

    def _get_last_commit(self) -> str | None:
        """Most recent commit message, or None for a repository without commits."""
        try:
            message = self._run_git('log', '-1', '--pretty=%B').strip()
        except GitError:
            return None
        return message or None

    def stage_all_unstaged(self) -> None:
        """Stage modified/deleted files, then everything not ignored."""
        self._run_git('add', '--update')
        self._run_git('add', '--all')

    def commit(self, message: str) -> None:
        self._run_git('commit', '-m', message)
