"""Git Operations Package"""

from git_ai_commit.git.parsers import (
    ChangeType,
    DiffInfo,
    FileChange,
    FileStat,
    GitError,
    GitParseError,
    GitStatus,
    combine_numstat,
    merge_file_changes,
)
from git_ai_commit.git.collector import GitCollector, RepositorySnapshot

__all__ = [
    "ChangeType",
    "DiffInfo",
    "FileChange",
    "FileStat",
    "GitCollector",
    "GitError",
    "GitParseError",
    "GitStatus",
    "RepositorySnapshot",
    "combine_numstat",
    "merge_file_changes",
]
