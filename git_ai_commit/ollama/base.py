"""Ollama Base Classes and Errors"""

from abc import ABC, abstractmethod


class OllamaError(Exception):
    """Raised when Ollama operations fail."""
    pass


class ServiceTimeoutError(OllamaError):
    """Raised when a launched server never answers the health probe."""
    pass


class NoModelsError(OllamaError):
    """Raised when no model is configured and none is installed."""
    pass


class UnsupportedPlatformError(OllamaError):
    """Raised when there is neither a system binary nor a packaged one."""
    pass


class ProvisioningError(OllamaError):
    """Raised when the packaged binary cannot be extracted."""
    pass


class OllamaClientBase(ABC):
    """Capabilities the lifecycle manager needs from a backend client."""

    @abstractmethod
    def is_running(self) -> bool:
        """Health probe: True if the server answered at all."""

    @abstractmethod
    def generate(self, model: str, prompt: str) -> str:
        pass

    @abstractmethod
    def list_models(self) -> list[str]:
        pass

    @abstractmethod
    def pull_model(self, model: str) -> None:
        pass

    @abstractmethod
    def delete_model(self, model: str) -> None:
        pass

    def has_model(self, model: str) -> bool:
        return model in self.list_models()

    def last_model(self) -> str | None:
        """Most recently listed installed model, if any."""
        models = self.list_models()
        return models[-1] if models else None
