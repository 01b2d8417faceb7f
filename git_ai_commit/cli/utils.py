"""CLI Utility Functions"""

import re
from pathlib import Path

from git_ai_commit.config import ConfigError
from git_ai_commit.prompts import PromptBuilder

FENCE_RE = re.compile(r'^\s*```[\w-]*\s*$')


def clean_commit_message(text: str) -> str:
    """Strip whitespace and markdown code fences the model wraps around messages."""
    lines = [line for line in text.strip().split('\n') if not FENCE_RE.match(line)]
    first, _, rest = '\n'.join(lines).strip().partition('\n')
    first = first.strip('`').strip()
    return f"{first}\n{rest}" if rest else first


def confirm(question: str, default: bool = True) -> bool:
    """Yes/no prompt. EOF or Ctrl-C counts as no."""
    suffix = "[Y/n]" if default else "[y/N]"
    try:
        answer = input(f"{question} {suffix}: ").strip().lower()
    except (KeyboardInterrupt, EOFError):
        print()
        return False
    if not answer:
        return default
    return answer in ('y', 'yes')


def build_prompt_builder(max_files: int, max_diff_lines: int, template_path: str | None = None) -> PromptBuilder:
    """PromptBuilder using the default template or one read from template_path."""
    template = None
    if template_path:
        try:
            template = Path(template_path).read_text(encoding='utf-8')
        except OSError as e:
            raise ConfigError(f"Could not read template {template_path}: {e}")

    try:
        return PromptBuilder(max_files=max_files, max_diff_lines=max_diff_lines, template=template)
    except ValueError as e:
        raise ConfigError(f"Invalid template {template_path}: {e}")
