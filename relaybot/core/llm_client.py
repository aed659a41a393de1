"""
Async client for OpenAI-compatible APIs (chat completions and image generation).
"""

import base64
import binascii
import logging
from enum import Enum
from typing import Any, Dict, List, Sequence, Union

import httpx

from relaybot.core.constants import DEFAULT_HTTP_TIMEOUT
from relaybot.core.errors import BackendError, BackendTimeoutError

logger = logging.getLogger(__name__)


class ImageSize(str, Enum):
    """Image sizes accepted by the images endpoint."""
    SMALL = "256x256"
    MEDIUM = "512x512"
    LARGE = "1024x1024"


class LLMClient:
    """Minimal LLM client for OpenAI-compatible APIs."""

    def __init__(
        self,
        base_url: str,
        model_name: str,
        api_key: str = "",
        timeout: float = DEFAULT_HTTP_TIMEOUT
    ):
        """Initialize LLM client.

        Args:
            base_url: Base URL for API (e.g., https://api.openai.com/v1)
            model_name: Chat model name
            api_key: Bearer token for the API
            timeout: Request timeout in seconds
        """
        self.base_url = base_url.rstrip('/')
        self.model_name = model_name
        self.api_key = api_key
        self.timeout = timeout

        logger.info(f"[LLM] Initialized client: {self.base_url} / {model_name}")

    def _get_headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(url, json=payload, headers=self._get_headers())
                response.raise_for_status()
                return response.json()
        except httpx.TimeoutException as e:
            logger.error(f"[LLM] Request to {path} timed out after {self.timeout}s")
            raise BackendTimeoutError(f"{path} timed out after {self.timeout}s") from e
        except httpx.HTTPStatusError as e:
            logger.error(f"[LLM] HTTP error: {e.response.status_code}")
            logger.error(f"[LLM] Response: {e.response.text}")
            raise BackendError(
                f"{path} returned HTTP {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"[LLM] Request to {path} failed: {e}")
            raise BackendError(f"{path} failed: {e}") from e

    async def complete(self, messages: Sequence[Union[Dict[str, str], Any]]) -> str:
        """Send a chat completion request and return the reply text.

        Args:
            messages: Ordered messages, either dicts with 'role' and 'content'
                or objects exposing to_dict()

        Returns:
            Content of the first choice
        """
        payload = {
            "model": self.model_name,
            "messages": as_messages(messages),
        }

        response = await self._post("/chat/completions", payload)

        try:
            content = response["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            logger.error(f"[LLM] Failed to extract message: {e}")
            logger.error(f"[LLM] Response: {response}")
            raise BackendError(f"Invalid chat completion response: {e}") from e

        logger.debug(f"[LLM] Completion: {content[:100] if content else content}")
        return content or ""

    async def generate_image(self, prompt: str, size: ImageSize = ImageSize.SMALL) -> bytes:
        """Generate a single image and return its raw bytes.

        Args:
            prompt: Image description
            size: Requested image size

        Returns:
            Decoded image bytes
        """
        payload = {
            "prompt": prompt,
            "size": ImageSize(size).value,
            "response_format": "b64_json",
            "n": 1,
        }

        response = await self._post("/images/generations", payload)

        try:
            encoded = response["data"][0]["b64_json"]
            return base64.b64decode(encoded, validate=True)
        except (KeyError, IndexError, TypeError) as e:
            logger.error(f"[LLM] Failed to extract image: {e}")
            raise BackendError(f"Invalid image response: {e}") from e
        except binascii.Error as e:
            logger.error(f"[LLM] Base64 decode error: {e}")
            raise BackendError(f"Invalid image payload: {e}") from e

    async def health_check(self) -> bool:
        """Check that the backend answers the models endpoint."""
        try:
            async with httpx.AsyncClient(timeout=5.0) as client:
                response = await client.get(f"{self.base_url}/models", headers=self._get_headers())
                return response.status_code == 200
        except httpx.HTTPError as e:
            logger.warning(f"[LLM] Health check failed: {e}")
            return False


def as_messages(messages: Sequence[Any]) -> List[Dict[str, str]]:
    """Convert session messages to the wire format."""
    return [m if isinstance(m, dict) else m.to_dict() for m in messages]
