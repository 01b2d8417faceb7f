"""Prompt Builder - Construct the generation prompt from a repository snapshot."""

from git_ai_commit.git import FileChange, RepositorySnapshot

PLACEHOLDER = "{CONTEXT}"

# Rough per-file diff size, counted against max_diff_lines
CONFIG_FILE_COST = 5
DEFAULT_FILE_COST = 20

MAX_UNTRACKED_SHOWN = 5

STAGED_HEADER = "Staged changes (will be committed):"
UNSTAGED_HEADER = "Unstaged changes (will NOT be committed):"

DEFAULT_TEMPLATE = """You are an expert software developer creating a git commit message.

Based on the following git repository changes, generate a concise, descriptive commit message that follows conventional commit format.

Repository Context:
{CONTEXT}

Guidelines for the commit message:
1. Use conventional commit format: type(scope): description
2. Types: feat, fix, docs, style, refactor, test, chore
3. Keep the first line under 50 characters
4. Be specific about what changed and why
5. Use imperative mood (e.g., "add" not "added")
6. Focus on the most significant changes
7. If there are breaking changes, mention them
8. For config file changes, use "chore" type
9. For test changes, use "test" type
10. Only include changes that are staged for commit in the commit message

Generate only the commit message, no additional explanation:"""


def file_cost(change: FileChange) -> int:
    return CONFIG_FILE_COST if change.is_config_file else DEFAULT_FILE_COST


class PromptBuilder:
    """Builds a bounded prompt: staged changes first, then unstaged, then stats."""

    def __init__(self, max_files: int = 10, max_diff_lines: int = 50, template: str | None = None):
        template = DEFAULT_TEMPLATE if template is None else template
        if template.count(PLACEHOLDER) != 1:
            raise ValueError(f"Prompt template must contain {PLACEHOLDER} exactly once")
        self.max_files = max_files
        self.max_diff_lines = max_diff_lines
        self.template = template

    def build(self, snapshot: RepositorySnapshot) -> str:
        sections = [
            self._build_branch_section(snapshot),
            self._build_changes_section(snapshot),
            self._build_stats_section(snapshot),
            self._build_untracked_section(snapshot),
        ]
        context = "\n\n".join(filter(None, sections))
        return self.template.replace(PLACEHOLDER, context)

    def _build_branch_section(self, snapshot: RepositorySnapshot) -> str:
        lines = [f"Current branch: {snapshot.branch_name}"]
        if snapshot.last_commit:
            lines.append(f"Last commit: {snapshot.last_commit}")
        return "\n".join(lines)

    def _build_changes_section(self, snapshot: RepositorySnapshot) -> str:
        staged_paths = set(snapshot.status.staged)
        staged = [c for c in snapshot.file_changes if c.path in staged_paths]
        unstaged = [c for c in snapshot.file_changes if c.path not in staged_paths]

        blocks = []
        if staged:
            blocks.append("\n".join([STAGED_HEADER, *self._render_changes(staged)]))
        if unstaged:
            blocks.append("\n".join([UNSTAGED_HEADER, *self._render_changes(unstaged)]))
        return "\n\n".join(blocks)

    def _render_changes(self, changes: list[FileChange]) -> list[str]:
        """Render changes in order until the file count or diff budget runs out."""
        lines = []
        used = 0

        for i, change in enumerate(changes):
            remaining = len(changes) - i
            if i >= self.max_files:
                lines.append(f"  ... and {remaining} more files")
                break

            cost = file_cost(change)
            if used + cost > self.max_diff_lines:
                lines.append(f"  ... and {remaining} more files (diff limit reached)")
                break
            used += cost

            lines.append(f"  - {change.display()}")
            if change.is_config_file:
                lines.append("    [CONFIG FILE]")
            elif change.is_test_file:
                lines.append("    [TEST FILE]")

        return lines

    def _build_stats_section(self, snapshot: RepositorySnapshot) -> str:
        # Never truncated: one short line per file
        diff = snapshot.diff_stat
        if diff.files_changed == 0:
            return ""

        lines = [f"Diff summary: {diff.files_changed} files changed, {diff.insertions} insertions(+), {diff.deletions} deletions(-)"]
        if diff.file_stats:
            lines.extend(["", "Detailed changes per file:"])
            lines.extend(
                f"  {stat.filename}: {stat.insertions} insertions(+), {stat.deletions} deletions(-)"
                for stat in diff.file_stats
            )
        return "\n".join(lines)

    def _build_untracked_section(self, snapshot: RepositorySnapshot) -> str:
        untracked = snapshot.untracked_files
        if not untracked:
            return ""

        line = f"Untracked files ({len(untracked)}): {', '.join(untracked[:MAX_UNTRACKED_SHOWN])}"
        if len(untracked) > MAX_UNTRACKED_SHOWN:
            line += f" and {len(untracked) - MAX_UNTRACKED_SHOWN} more"
        return line
