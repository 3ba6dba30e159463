"""Local inference status checker. Reports whether an Ollama daemon is up and which models it has."""

import httpx
import structlog

from forge.core.exceptions import RuntimeUnavailableError

logger = structlog.get_logger()


class OllamaRuntime:
    """Advisory view of the local runtime. The run controller never consults it."""

    def __init__(self, base_url: str, http_client: httpx.AsyncClient | None = None):
        self.base_url = base_url.rstrip("/")
        self._client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(connect=2.0, read=10.0, write=5.0, pool=5.0)
        )

    async def check_status(self) -> bool:
        """Ollama answers 200 at its root when running."""
        try:
            response = await self._client.get(f"{self.base_url}/")
            return response.status_code == 200
        except (httpx.ConnectError, httpx.TimeoutException):
            return False

    async def list_installed_models(self) -> list[str]:
        """Model tags from /api/tags, e.g. ``llama3:8b``."""
        try:
            response = await self._client.get(f"{self.base_url}/api/tags")
            response.raise_for_status()
        except (httpx.ConnectError, httpx.TimeoutException) as e:
            logger.debug("ollama_unreachable", base_url=self.base_url, error=str(e))
            raise RuntimeUnavailableError(f"Cannot reach Ollama at {self.base_url}: {e}")
        except httpx.HTTPStatusError as e:
            raise RuntimeUnavailableError(f"Ollama returned error: {e.response.status_code}")

        return [m.get("model", m.get("name", "")) for m in response.json().get("models", []) if m]

    async def close(self):
        """Close the underlying HTTP client."""
        await self._client.aclose()
