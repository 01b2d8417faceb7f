"""CLI Argument Parsing"""

import argparse
import argcomplete

from git_ai_commit import __version__


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: '{value}'")
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive integer: '{value}'")
    return number


def _port(value: str) -> int:
    number = _positive_int(value)
    if number > 65535:
        raise argparse.ArgumentTypeError(f"port out of range: '{value}'")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='git-ai-commit',
        description='Generate commit messages from your git changes with a local Ollama model',
        epilog='Example: git-ai-commit --add-unstaged --confirm'
    )

    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')

    # Values that may also come from the config file default to None so an
    # explicit flag can be told apart from "not given"
    model = parser.add_argument_group('Model Options')
    model.add_argument('-m', '--model', type=str, default=None, metavar='MODEL', help='Ollama model (default: config file, else last installed model)')
    model.add_argument('--list-models', action='store_true', help='List installed Ollama models and exit')
    model.add_argument('-p', '--port', type=_port, default=None, metavar='PORT', help='Ollama server port (default: 11434)')
    model.add_argument('-t', '--timeout-seconds', type=_positive_int, default=None, metavar='SECONDS', help='Generation request timeout (default: 300)')

    diff = parser.add_argument_group('Diff Options')
    diff.add_argument('-f', '--max-files', type=_positive_int, default=None, metavar='COUNT', help='Max files listed per section (default: 10)')
    diff.add_argument('-l', '--max-diff-lines', type=_positive_int, default=None, metavar='LINES', help='Estimated diff line budget per section (default: 50)')

    commit = parser.add_argument_group('Commit Options')
    commit.add_argument('-a', '--add-unstaged', action='store_true', help='Stage all changes (git add --all) before generating')
    commit.add_argument('--confirm', action='store_true', help='Ask for confirmation before committing')
    commit.add_argument('-d', '--dry-run', action='store_true', help='Show the analysis and message without committing')

    parser.add_argument('--template', type=str, default=None, metavar='FILE', help='Custom prompt template containing {CONTEXT}')
    parser.add_argument('-v', '--verbose', action='store_true', help='Print the full prompt sent to the model')
    parser.add_argument('--display-config', action='store_true', help='Show the configuration file settings and exit')
    parser.add_argument('--install-completion', action='store_true', help='Show how to enable shell tab completion and exit')
    parser.add_argument('--save-config', action='store_true', help='Save the given model and limit options to the config file and exit')

    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = build_parser()
    argcomplete.autocomplete(parser)
    return parser.parse_args(argv)
