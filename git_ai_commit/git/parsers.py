"""Parsers - Turn raw git command output into typed records."""

from dataclasses import dataclass, field
from enum import Enum


class GitError(Exception):
    """Raised when git operations fail."""
    pass


class GitParseError(GitError):
    """Raised when git output cannot be parsed."""
    pass


# Recognized configuration/metadata files, matched as a lowercase path suffix
CONFIG_FILES = (
    "package.json", "cargo.toml", "pyproject.toml", "requirements.txt",
    "dockerfile", "docker-compose.yml", "makefile", ".gitignore",
    "readme.md", "license", "changelog.md",
)

# Test files: matched by directory name or filename pattern
TEST_DIRS = {"test", "tests", "spec", "specs", "__tests__", "testing"}
TEST_PREFIXES = ("test_", "test-")
TEST_STEM_SUFFIXES = ("_test", "-test", "_tests", "_spec", "-spec")
TEST_NAME_MARKERS = (".test.", ".spec.")

RENAME_ARROW = " -> "


def _join_paths(paths: tuple[str, ...]) -> str:
    return ", ".join(paths)


@dataclass(frozen=True)
class GitStatus:
    """Paths grouped by porcelain status. A path may sit in several groups."""
    staged: tuple[str, ...] = ()
    modified: tuple[str, ...] = ()
    untracked: tuple[str, ...] = ()
    deleted: tuple[str, ...] = ()

    @classmethod
    def parse(cls, text: str) -> 'GitStatus':
        """Parse 'git status --porcelain=v1' output."""
        staged, modified, untracked, deleted = [], [], [], []

        for line in text.splitlines():
            if len(line) < 3:
                continue

            index_status, worktree_status = line[0], line[1]
            path = line[3:]
            if index_status in 'RC' and RENAME_ARROW in path:
                # "old -> new": the new path is what name-status reports
                path = path.split(RENAME_ARROW, 1)[1]

            if index_status in 'AMRC':
                staged.append(path)
            elif index_status == 'D':
                staged.append(path)
                deleted.append(path)

            if worktree_status == 'M':
                modified.append(path)
            elif worktree_status == 'D':
                deleted.append(path)
            elif worktree_status == '?':
                untracked.append(path)

        return cls(
            staged=tuple(staged),
            modified=tuple(modified),
            untracked=tuple(untracked),
            deleted=tuple(deleted),
        )

    @property
    def is_clean(self) -> bool:
        return not (self.staged or self.modified or self.untracked or self.deleted)

    def display(self) -> str:
        groups = [
            ("Staged files", self.staged),
            ("Modified files", self.modified),
            ("Deleted files", self.deleted),
            ("Untracked files", self.untracked),
        ]
        lines = [
            f"  {label} ({len(paths)}): {_join_paths(paths)}"
            for label, paths in groups if paths
        ]
        return "\n".join(lines) if lines else "  No changes detected"


@dataclass(frozen=True)
class FileStat:
    """Insertions/deletions for a single file."""
    filename: str
    insertions: int = 0
    deletions: int = 0


def _parse_count(value: str) -> int:
    # Binary files report '-' for both counts
    try:
        return int(value)
    except ValueError:
        return 0


@dataclass(frozen=True)
class DiffInfo:
    """Aggregate numstat totals plus the per-file breakdown."""
    files_changed: int = 0
    insertions: int = 0
    deletions: int = 0
    file_stats: tuple[FileStat, ...] = ()

    @classmethod
    def parse(cls, text: str) -> 'DiffInfo':
        """Parse 'git diff --numstat' output. Malformed lines are skipped."""
        stats = []
        for line in text.splitlines():
            if not line.strip():
                continue

            parts = line.split('\t')
            if len(parts) != 3:
                continue

            stats.append(FileStat(
                filename=parts[2],
                insertions=_parse_count(parts[0]),
                deletions=_parse_count(parts[1]),
            ))

        return cls(
            files_changed=len(stats),
            insertions=sum(s.insertions for s in stats),
            deletions=sum(s.deletions for s in stats),
            file_stats=tuple(stats),
        )

    def display(self) -> str:
        if self.files_changed == 0:
            return "  No changes in diff"

        lines = [f"  {self.files_changed} files changed, {self.insertions} insertions(+), {self.deletions} deletions(-)"]
        for stat in self.file_stats:
            if stat.insertions or stat.deletions:
                lines.append(f"    {stat.filename}: +{stat.insertions} -{stat.deletions}")
        return "\n".join(lines)


def combine_numstat(staged: str, unstaged: str) -> str:
    """Join staged and unstaged numstat output, staged first."""
    if not unstaged.strip():
        return staged
    return f"{staged}\n{unstaged}"


class ChangeType(Enum):
    """Change kinds reported by 'git diff --name-status', keyed by status letter."""
    ADDED = 'A'
    MODIFIED = 'M'
    DELETED = 'D'
    RENAMED = 'R'
    COPIED = 'C'
    UNMERGED = 'U'

    @property
    def has_origin(self) -> bool:
        return self in (ChangeType.RENAMED, ChangeType.COPIED)


@dataclass(frozen=True)
class FileChange:
    """One entry of a name-status change list."""
    change_type: ChangeType
    path: str
    original_path: str | None = field(default=None)

    def __post_init__(self):
        if self.change_type.has_origin != (self.original_path is not None):
            raise ValueError(
                f"original_path must be set only for renames and copies, "
                f"got {self.change_type.name} with original_path={self.original_path!r}"
            )

    @classmethod
    def parse_line(cls, line: str) -> 'FileChange':
        parts = line.split('\t')
        status = parts[0]

        try:
            change_type = ChangeType(status[:1])
        except ValueError:
            raise GitParseError(f"Unknown git status: {status}")

        if change_type.has_origin:
            if len(parts) < 3:
                raise GitParseError(f"Invalid rename/copy line: {line}")
            return cls(change_type=change_type, path=parts[2], original_path=parts[1])

        if len(parts) < 2:
            raise GitParseError(f"Invalid status line: {line}")
        return cls(change_type=change_type, path=parts[1])

    @classmethod
    def parse_list(cls, text: str) -> list['FileChange']:
        """Parse 'git diff --name-status' output. Blank lines are skipped."""
        return [cls.parse_line(line) for line in text.splitlines() if line.strip()]

    def display(self) -> str:
        marker = self.change_type.value
        if self.original_path is not None:
            return f"{marker}  {self.original_path} -> {self.path}"
        return f"{marker}  {self.path}"

    @property
    def is_test_file(self) -> bool:
        *dirs, name = self.path.lower().replace('\\', '/').split('/')
        stem = name.split('.', 1)[0]
        return (
            any(d in TEST_DIRS for d in dirs)
            or stem in ('test', 'tests', 'conftest')
            or stem.startswith(TEST_PREFIXES)
            or stem.endswith(TEST_STEM_SUFFIXES)
            or any(marker in name for marker in TEST_NAME_MARKERS)
        )

    @property
    def is_config_file(self) -> bool:
        return self.path.lower().endswith(CONFIG_FILES)


def merge_file_changes(staged: list[FileChange], unstaged: list[FileChange]) -> list[FileChange]:
    """Staged records first, then unstaged records for paths not yet seen."""
    merged = list(staged)
    seen = {change.path for change in merged}
    for change in unstaged:
        if change.path not in seen:
            merged.append(change)
            seen.add(change.path)
    return merged
