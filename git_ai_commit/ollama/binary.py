"""Binary Provisioner - Locate or extract an ollama executable."""

import os
import platform
import shutil
import tempfile
from importlib import resources
from pathlib import Path

from git_ai_commit.ollama.base import ProvisioningError, UnsupportedPlatformError

EXECUTABLE_NAME = "ollama"

# (system, normalized machine) -> packaged asset name
PLATFORM_ASSETS = {
    ("darwin", "arm64"): "ollama-darwin-arm64",
    ("darwin", "amd64"): "ollama-darwin-amd64",
    ("linux", "amd64"): "ollama-linux-amd64",
    ("linux", "arm64"): "ollama-linux-arm64",
    ("windows", "amd64"): "ollama-windows-amd64.exe",
}

_MACHINE_ALIASES = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "arm64": "arm64",
    "aarch64": "arm64",
}


def current_platform() -> tuple[str, str]:
    machine = platform.machine().lower()
    return platform.system().lower(), _MACHINE_ALIASES.get(machine, machine)


def executable_name(system: str) -> str:
    return f"{EXECUTABLE_NAME}.exe" if system == "windows" else EXECUTABLE_NAME


def packaged_assets():
    return resources.files("git_ai_commit") / "assets"


class BinaryProvisioner:
    """Resolves an ollama executable, extracting a packaged one if needed.

    A system install on PATH always wins. Otherwise the asset matching the
    current platform is copied into a private temporary directory owned by
    this instance and removed again by cleanup().
    """

    def __init__(self, assets_dir=None, platform_key: tuple[str, str] | None = None):
        self.assets_dir = assets_dir if assets_dir is not None else packaged_assets()
        self.platform_key = platform_key or current_platform()
        self._temp_dir: tempfile.TemporaryDirectory | None = None
        self._binary_path: Path | None = None

    @property
    def extracted(self) -> bool:
        return self._temp_dir is not None

    def resolve(self) -> Path:
        if self._binary_path is not None and self._binary_path.exists():
            return self._binary_path

        system_path = shutil.which(EXECUTABLE_NAME)
        if system_path:
            self._binary_path = Path(system_path)
            return self._binary_path

        self._binary_path = self._extract()
        return self._binary_path

    def _find_asset(self):
        asset_name = PLATFORM_ASSETS.get(self.platform_key)
        if asset_name is None:
            system, machine = self.platform_key
            raise UnsupportedPlatformError(
                f"No ollama build for {system}/{machine}. Install ollama from https://ollama.com"
            )

        asset = self.assets_dir / asset_name
        if not asset.is_file():
            raise UnsupportedPlatformError(
                f"Packaged binary '{asset_name}' is missing and ollama is not on PATH. "
                "Install ollama from https://ollama.com"
            )
        return asset

    def _extract(self) -> Path:
        asset = self._find_asset()
        system = self.platform_key[0]

        self.cleanup()
        try:
            self._temp_dir = tempfile.TemporaryDirectory(prefix="git-ai-commit-")
            binary_path = Path(self._temp_dir.name) / executable_name(system)
            binary_path.write_bytes(asset.read_bytes())
            # Windows only needs the .exe suffix
            if system != "windows" and os.name == "posix":
                binary_path.chmod(0o755)
        except OSError as e:
            self.cleanup()
            raise ProvisioningError(f"Failed to extract ollama binary: {e}")

        return binary_path

    def cleanup(self) -> None:
        if self._temp_dir is not None:
            self._temp_dir.cleanup()
            self._temp_dir = None
            self._binary_path = None
