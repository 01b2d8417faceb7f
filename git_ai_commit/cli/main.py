"""CLI Main Entry Point"""

import sys

from git_ai_commit.config import ConfigError, Settings, load_config, resolve_settings
from git_ai_commit.git import GitCollector, GitError, RepositorySnapshot
from git_ai_commit.ollama import OllamaError, OllamaManager
from git_ai_commit.output import (
    Spinner, bold, colorize_commit_type, dim, print_error, print_info,
    print_rule, print_step, print_success, print_warning,
)

from git_ai_commit.cli.args import parse_args
from git_ai_commit.cli.commands import display_config, run_install_completion, run_list_models, run_save_config
from git_ai_commit.cli.utils import build_prompt_builder, clean_commit_message, confirm


def _display_message(message: str, title: str) -> None:
    """Display commit message between horizontal rules with a colored type."""
    width = max((len(line) for line in message.split('\n')), default=30)
    width = max(width, 30)
    print(f"\n{bold(title)}")
    print_rule(width)
    print(colorize_commit_type(message))
    print_rule(width)


def _collect(collector: GitCollector, add_unstaged: bool) -> tuple[RepositorySnapshot, bool]:
    """Collect repository state, staging everything first when asked.

    Returns:
        tuple: (snapshot, after_staging)
    """
    print_step("ANALYZE", "Analyzing git repository...")
    snapshot = collector.collect()

    status = snapshot.status
    if add_unstaged and (status.modified or status.untracked or status.deleted):
        print_step("STAGE", "Staging all unstaged changes...")
        collector.stage_all_unstaged()
        print_step("REFRESH", "Refreshing repository status...")
        return collector.collect(), True

    return snapshot, add_unstaged


def _generate(settings: Settings, prompt: str) -> str:
    """Start Ollama if needed and run the single generation request."""
    with OllamaManager(model=settings.model, port=settings.port, timeout=settings.timeout_seconds) as manager:
        print_step("START", f"Checking Ollama on port {settings.port}...")
        manager.ensure_running()

        print_step("GENERATE", f"Generating commit message with {bold(manager.model)}...")
        with Spinner():
            return manager.generate(prompt)


def _generate_commit_flow(args, settings: Settings) -> int:
    """Main commit message generation flow.

    Returns:
        int: Exit code
    """
    builder = build_prompt_builder(settings.max_files, settings.max_diff_lines, args.template)

    collector = GitCollector()
    if not collector.is_repository():
        print_error("Not a git repository. Run this command from within a git repository.")
        return 1

    print(bold("AI Commit Message Generator"))
    snapshot, after_staging = _collect(collector, args.add_unstaged)

    if snapshot.is_empty(after_staging):
        if after_staging:
            print_info("No changes to commit after staging.")
        else:
            print_info("No changes detected in the repository.")
            print(dim("Make some changes and stage them before generating a commit message."))
        return 0

    if args.dry_run:
        print_step("DRY RUN", "Will generate a commit message but not commit")
        print(snapshot.display())
    elif not snapshot.status.staged:
        print_error("Nothing is staged for commit. Run 'git add' first or use --add-unstaged.")
        return 1

    prompt = builder.build(snapshot)
    if args.verbose:
        print_step("PROMPT", "Generated prompt:")
        print(prompt)
        print_rule()

    message = clean_commit_message(_generate(settings, prompt))
    if not message:
        raise OllamaError("The model returned an empty commit message")

    if args.dry_run:
        _display_message(message, "Generated Commit Message (not committed):")
        print(dim("\nThis was a dry run. To actually commit, run without --dry-run"))
        return 0

    _display_message(message, "Generated Commit Message:")

    if args.confirm:
        if not sys.stdin.isatty():
            print_warning("--confirm needs an interactive terminal; committing without confirmation")
        elif not confirm("Commit these changes?"):
            print_info("Commit cancelled by user")
            return 0

    collector.commit(message)
    print_success("Commit created successfully!")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI."""
    args = parse_args(argv)
    config = load_config()

    if args.display_config:
        return display_config(config)

    if args.install_completion:
        return run_install_completion()

    if args.save_config:
        return run_save_config(args, config)

    if args.list_models:
        return run_list_models(args.port or config.port)

    try:
        settings = resolve_settings(args, config)
        return _generate_commit_flow(args, settings)
    except (GitError, OllamaError, ConfigError) as e:
        print_error(str(e))
        return 1
    except KeyboardInterrupt:
        print_error("Interrupted")
        return 130
