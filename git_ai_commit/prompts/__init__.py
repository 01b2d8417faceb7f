"""Prompt Construction Package"""

from git_ai_commit.prompts.builder import DEFAULT_TEMPLATE, PLACEHOLDER, PromptBuilder

__all__ = [
    "DEFAULT_TEMPLATE",
    "PLACEHOLDER",
    "PromptBuilder",
]
