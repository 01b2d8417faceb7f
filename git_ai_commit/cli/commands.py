"""CLI Commands"""

import os
from dataclasses import fields, replace

from git_ai_commit.config import Config, get_config_path, save_config
from git_ai_commit.ollama import OllamaClient, OllamaError
from git_ai_commit.output import bold, dim, info, print_error, print_success


def display_config(config: Config) -> int:
    """Display the configuration file contents after defaults are applied."""
    config_path = get_config_path()

    print(f"\n{bold('Current Configuration')}\n")
    if config_path.exists():
        print(f"  {dim('Loaded from:')} {config_path}")
    else:
        print(f"  {dim('Loaded from:')} defaults (no {config_path})")

    print()
    print(f"  {bold('Settings:')}")
    print(f"    model:           {info(config.model or 'auto (last installed model)')}")
    print(f"    max_files:       {info(str(config.max_files))}")
    print(f"    max_diff_lines:  {info(str(config.max_diff_lines))}")
    print(f"    port:            {info(str(config.port))}")
    print(f"    timeout_seconds: {info(str(config.timeout_seconds))}")
    print()
    return 0


def run_save_config(args, config: Config) -> int:
    """Store the settings given on the command line as new defaults."""
    updates = {
        f.name: getattr(args, f.name)
        for f in fields(Config)
        if getattr(args, f.name, None) is not None
    }
    if not updates:
        print_error("Nothing to save. Combine --save-config with options such as --model or --max-files.")
        return 1

    try:
        path = save_config(replace(config, **updates))
    except OSError as e:
        print_error(f"Could not write {get_config_path()}: {e}")
        return 1

    for name, value in updates.items():
        print(f"  {name}: {info(str(value))}")
    print_success(f"Saved to {path}")
    return 0


def run_list_models(port: int) -> int:
    """List installed models of a running Ollama server."""
    client = OllamaClient(port=port)
    if not client.is_running():
        print_error("Ollama is not running. Please start Ollama first.")
        return 1

    try:
        models = client.list_models()
    except OllamaError as e:
        print_error(f"Failed to list models: {e}")
        return 1

    if not models:
        print("No models found. Install models with 'ollama pull <model>'")
        return 0

    print(bold("Available models:"))
    for model in models:
        print(f"  - {model}")
    return 0


def run_install_completion(shell: str | None = None) -> int:
    """Print the line that enables tab completion for the current shell."""
    shell = shell if shell is not None else os.environ.get('SHELL', '')
    prog = 'git-ai-commit'

    print(f"\n{bold('Tab Completion Setup')}\n")

    for name, rc_file in (('zsh', '~/.zshrc'), ('bash', '~/.bashrc')):
        if name in shell:
            print(f"Add this line to {dim(os.path.expanduser(rc_file))}:\n")
            print(f'  eval "$(register-python-argcomplete {prog})"\n')
            print(f"Then run: {dim(f'source {rc_file}')}")
            return 0

    if 'fish' in shell:
        print(f"Add this line to {dim(os.path.expanduser('~/.config/fish/config.fish'))}:\n")
        print(f"  register-python-argcomplete --shell fish {prog} | source")
        return 0

    print("Run one of these based on your shell:\n")
    print(f"  {dim('# Bash/Zsh')}")
    print(f'  eval "$(register-python-argcomplete {prog})"\n')
    print(f"  {dim('# PowerShell')}")
    print(f"  register-python-argcomplete --shell powershell {prog} | Out-String | Invoke-Expression")
    return 0
