"""Ollama Backend Package"""

from git_ai_commit.ollama.base import (
    NoModelsError,
    OllamaClientBase,
    OllamaError,
    ProvisioningError,
    ServiceTimeoutError,
    UnsupportedPlatformError,
)
from git_ai_commit.ollama.binary import BinaryProvisioner
from git_ai_commit.ollama.client import OllamaClient
from git_ai_commit.ollama.manager import OllamaManager, ServiceState

__all__ = [
    "BinaryProvisioner",
    "NoModelsError",
    "OllamaClient",
    "OllamaClientBase",
    "OllamaError",
    "OllamaManager",
    "ProvisioningError",
    "ServiceState",
    "ServiceTimeoutError",
    "UnsupportedPlatformError",
]
