"""Ollama Manager - Lifecycle of the local generation backend."""

import os
import subprocess
import sys
import time
from enum import Enum
from pathlib import Path

from git_ai_commit import DEFAULT_PORT
from git_ai_commit.ollama.base import (
    NoModelsError,
    OllamaClientBase,
    OllamaError,
    ServiceTimeoutError,
)
from git_ai_commit.ollama.binary import BinaryProvisioner
from git_ai_commit.ollama.client import OllamaClient
from git_ai_commit.output import print_info, print_step, print_success


class ServiceState(Enum):
    NOT_RUNNING = "not running"
    LAUNCHING = "launching"
    AWAITING_READY = "awaiting ready"
    MODEL_ENSURING = "ensuring model"
    READY = "ready"


class OllamaManager:
    """Makes sure an Ollama server is up with a usable model, then generates.

    The manager owns at most one spawned `ollama serve` process and the
    provisioner's extracted binary. Use it as a context manager, or call
    close(), to release both.
    """

    POLL_INTERVAL = 1.0
    MAX_POLL_ATTEMPTS = 30
    SHUTDOWN_TIMEOUT = 5.0

    def __init__(
        self,
        model: str | None = None,
        port: int = DEFAULT_PORT,
        timeout: int | None = None,
        bind_host: str = "127.0.0.1",
        client: OllamaClientBase | None = None,
        provisioner: BinaryProvisioner | None = None,
    ):
        self.model = model or None
        self.port = port
        self.bind_host = bind_host
        self.client = client or OllamaClient(port=port, timeout=timeout)
        self.provisioner = provisioner or BinaryProvisioner()
        self.process: subprocess.Popen | None = None
        self.state = ServiceState.NOT_RUNNING

    def __enter__(self) -> 'OllamaManager':
        return self

    def __exit__(self, *args):
        self.close()

    def ensure_running(self) -> None:
        """Bring the backend to READY: launch if needed, then ensure the model."""
        if self.state == ServiceState.READY:
            return

        if not self.client.is_running():
            binary_path = self.provisioner.resolve()
            self._start_server(binary_path)
            self._wait_for_server()

        self.state = ServiceState.MODEL_ENSURING
        if not self.model:
            self.model = self._pick_installed_model()
        self.ensure_model_available(self.model)
        self.state = ServiceState.READY

    def _start_server(self, binary_path: Path) -> None:
        self.state = ServiceState.LAUNCHING
        print_step("START", f"Starting ollama on port {self.port}...")

        env = dict(os.environ, OLLAMA_HOST=f"{self.bind_host}:{self.port}")
        kwargs = {}
        if sys.platform == 'win32':
            kwargs['creationflags'] = subprocess.CREATE_NEW_PROCESS_GROUP
        else:
            kwargs['start_new_session'] = True

        try:
            self.process = subprocess.Popen(
                [str(binary_path), "serve"],
                env=env,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                **kwargs
            )
        except OSError as e:
            self.state = ServiceState.NOT_RUNNING
            raise OllamaError(f"Failed to start ollama: {e}")

    def _wait_for_server(self) -> None:
        self.state = ServiceState.AWAITING_READY
        for _ in range(self.MAX_POLL_ATTEMPTS):
            if self.client.is_running():
                return
            time.sleep(self.POLL_INTERVAL)

        raise ServiceTimeoutError(
            f"Timed out waiting for ollama to start on port {self.port} "
            f"({self.MAX_POLL_ATTEMPTS} attempts)"
        )

    def _pick_installed_model(self) -> str:
        model = self.client.last_model()
        if not model:
            raise NoModelsError("No ollama models found. Install one with: ollama pull <model>")
        print_info(f"No model specified, using last available model: {model}")
        return model

    def ensure_model_available(self, model: str) -> None:
        """Pull the model unless the server already has it."""
        try:
            present = self.client.has_model(model)
        except OllamaError:
            present = False

        if present:
            return

        print_step("DOWN", f"Model '{model}' not found. Downloading (this can take minutes)...")
        try:
            self.client.pull_model(model)
        except OllamaError as e:
            raise OllamaError(f"Failed to pull model '{model}': {e}")
        print_success(f"Downloaded model '{model}'")

    def generate(self, prompt: str) -> str:
        """Single generation request against the resolved model."""
        if self.state != ServiceState.READY:
            raise OllamaError("Ollama is not ready; call ensure_running() first")
        try:
            return self.client.generate(self.model, prompt)
        except OllamaError as e:
            raise OllamaError(f"Failed to generate commit message: {e}")

    def close(self) -> None:
        """Stop the spawned server, if any, and drop the extracted binary."""
        process, self.process = self.process, None
        if process is not None and process.poll() is None:
            process.terminate()
            try:
                process.wait(timeout=self.SHUTDOWN_TIMEOUT)
            except subprocess.TimeoutExpired:
                process.kill()
                process.wait()
        self.provisioner.cleanup()
        self.state = ServiceState.NOT_RUNNING
