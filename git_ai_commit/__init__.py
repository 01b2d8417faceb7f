"""
Git AI Commit

Commit message generation from pending git changes using a local Ollama model.
"""

__version__ = "0.1.2"

# Fallback when no model is configured and no local Ollama model can be found
FALLBACK_MODEL = "gemma3:4b"

DEFAULT_PORT = 11434
