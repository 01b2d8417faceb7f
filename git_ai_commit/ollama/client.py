"""Ollama HTTP Client"""

import http.client
import json
import socket
import urllib.error
import urllib.request

from git_ai_commit import DEFAULT_PORT
from git_ai_commit.ollama.base import OllamaClientBase, OllamaError


class OllamaClient(OllamaClientBase):
    """Talks to the Ollama REST API on localhost."""

    DEFAULT_TIMEOUT = 300  # 5 minutes, model loads on CPU are slow
    PROBE_TIMEOUT = 5
    PULL_TIMEOUT = 1800  # model downloads run for minutes

    TEMPERATURE = 0.7
    TOP_P = 0.9
    NUM_PREDICT = 200

    def __init__(self, port: int = DEFAULT_PORT, timeout: int | None = None, host: str = "localhost"):
        self.base_url = f"http://{host}:{port}"
        self.timeout = timeout or self.DEFAULT_TIMEOUT

    def _request(self, method: str, path: str, payload: dict | None = None, timeout: float | None = None) -> dict:
        """Send a JSON request and decode the JSON response."""
        url = f"{self.base_url}{path}"
        endpoint = f"{method} {path}"
        data = json.dumps(payload).encode('utf-8') if payload is not None else None
        req = urllib.request.Request(url, data=data, method=method, headers={"Content-Type": "application/json"})

        try:
            with urllib.request.urlopen(req, timeout=timeout or self.timeout) as response:
                body = response.read().decode('utf-8')
        except urllib.error.HTTPError as e:
            detail = e.read().decode('utf-8', errors='replace').strip()
            raise OllamaError(f"{endpoint} failed with status {e.code}: {detail or e.reason}")
        except urllib.error.URLError as e:
            if isinstance(e.reason, socket.timeout):
                raise OllamaError(f"{endpoint} timed out after {timeout or self.timeout}s")
            raise OllamaError(f"{endpoint} request failed: {e.reason}")
        except socket.timeout:
            raise OllamaError(f"{endpoint} timed out after {timeout or self.timeout}s")
        except http.client.HTTPException as e:
            raise OllamaError(f"{endpoint} returned an incomplete response: {e}")
        except OSError as e:
            raise OllamaError(f"{endpoint} connection lost: {e}")

        if not body.strip():
            return {}
        try:
            return json.loads(body)
        except json.JSONDecodeError:
            raise OllamaError(f"{endpoint} returned invalid JSON: {body[:100]}")

    def is_running(self) -> bool:
        try:
            req = urllib.request.Request(f"{self.base_url}/api/tags")
            with urllib.request.urlopen(req, timeout=self.PROBE_TIMEOUT):
                pass
        except urllib.error.HTTPError:
            # Any HTTP status means something is listening
            return True
        except (urllib.error.URLError, OSError):
            # includes RemoteDisconnected: closed without a reply
            return False
        except http.client.HTTPException:
            # A malformed reply still came from a listener
            return True
        return True

    def generate(self, model: str, prompt: str) -> str:
        payload = {
            "model": model,
            "prompt": prompt,
            "stream": False,
            "options": {
                "temperature": self.TEMPERATURE,
                "top_p": self.TOP_P,
                "num_predict": self.NUM_PREDICT,
            }
        }
        result = self._request("POST", "/api/generate", payload)
        if "response" not in result:
            raise OllamaError("POST /api/generate returned no 'response' field")
        return result["response"]

    def list_models(self) -> list[str]:
        result = self._request("GET", "/api/tags", timeout=self.PROBE_TIMEOUT)
        return [m.get("name", "") for m in result.get("models", []) if m.get("name")]

    def pull_model(self, model: str) -> None:
        self._request("POST", "/api/pull", {"name": model, "stream": False}, timeout=self.PULL_TIMEOUT)

    def delete_model(self, model: str) -> None:
        self._request("DELETE", "/api/delete", {"name": model})
