"""
VisionModelClient backed by the Anthropic Messages API.

The prompt text comes first, followed by one base64 image block per inline
frame, all in a single user turn. The SDK retries nothing
(max_retries=0). Every SDK failure surfaces as AnthropicClientError, a
ModelError subclass.
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Optional

import anthropic
from anthropic import APIConnectionError, APIError, APITimeoutError, RateLimitError

from guardian.core.analysis.models import InlineMedia
from guardian.core.errors import ModelError

logger = logging.getLogger(__name__)


class AnthropicClientError(ModelError):
    """The Messages API call did not produce a usable reply."""


class RateLimitExceeded(AnthropicClientError):
    """Anthropic answered 429."""


SUPPORTED_IMAGE_TYPES = ("image/jpeg", "image/png", "image/gif", "image/webp")


@dataclass
class AnthropicConfig:
    """
    Configuration for the Anthropic client.

    Validated at construction time so a bad deployment fails at startup,
    not on the first request.
    """
    api_key: str
    model: str = "claude-sonnet-4-20250514"
    max_tokens: int = 1024
    temperature: float = 0.0  # verdicts should be repeatable
    timeout_seconds: float = 120.0

    def __post_init__(self) -> None:
        if not self.api_key:
            raise ValueError("API key is required")
        if self.max_tokens < 1:
            raise ValueError("max_tokens must be positive")
        if not 0 <= self.temperature <= 1:
            raise ValueError("temperature must be between 0 and 1")
        if self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")


class AnthropicVisionClient:
    """
    Sends prompt plus images to Claude and returns the reply text.

    Knows the Messages API wire format and nothing about verdicts. One SDK
    client is shared by all requests.
    """

    def __init__(self, config: AnthropicConfig) -> None:
        self._config = config
        self._client = anthropic.Anthropic(
            api_key=config.api_key,
            timeout=config.timeout_seconds,
            max_retries=0,  # every external call is attempted exactly once
        )

    async def generate(
        self,
        prompt: str,
        media: list[InlineMedia],
    ) -> str:
        """
        Send one user turn: the prompt first, then the media in order.

        The SDK call is blocking, so it runs in a worker thread to keep
        the event loop free for other requests.
        """
        content = self._build_content(prompt, media)

        try:
            response = await asyncio.to_thread(
                self._client.messages.create,
                model=self._config.model,
                max_tokens=self._config.max_tokens,
                temperature=self._config.temperature,
                messages=[
                    {"role": "user", "content": content}
                ],
            )
        except RateLimitError as e:
            logger.warning("Rate limit hit", extra={"error": str(e)})
            raise RateLimitExceeded("API rate limit exceeded. Please try again later.") from e
        except APITimeoutError as e:
            logger.error("Model request timed out", extra={"timeout": self._config.timeout_seconds})
            raise AnthropicClientError("Model request timed out") from e
        except APIConnectionError as e:
            logger.error("Model connection failed", extra={"error": str(e)})
            raise AnthropicClientError(f"Connection error: {e}") from e
        except APIError as e:
            logger.error(
                "API error",
                extra={"error": str(e), "status": getattr(e, "status_code", None)}
            )
            raise AnthropicClientError(f"API error: {e.message}") from e

        return self._extract_text_response(response)

    def _build_content(
        self,
        prompt: str,
        media: list[InlineMedia],
    ) -> list[dict]:
        """
        Build the content array for a multi-part request.

        Claude expects:
        [
            {"type": "text", "text": "..."},
            {"type": "image", "source": {"type": "base64", "media_type": "image/png", "data": "..."}},
            ...
        ]
        """
        content: list[dict] = [{"type": "text", "text": prompt}]

        for unit in media:
            if unit.media_type not in SUPPORTED_IMAGE_TYPES:
                raise AnthropicClientError(f"Unsupported media type: {unit.media_type}")

            content.append({
                "type": "image",
                "source": {
                    "type": "base64",
                    "media_type": unit.media_type,
                    "data": unit.data,
                }
            })

        return content

    def _extract_text_response(self, response) -> str:
        """Concatenate the text blocks of a Messages API reply."""
        if not response.content:
            return ""

        text_blocks = [
            block.text
            for block in response.content
            if hasattr(block, 'text')
        ]

        return "\n".join(text_blocks)


class MockVisionClient:
    """
    Canned model for local development and tests.

    Returns a fixed JSON verdict, and remembers every request so tests
    can assert on what would have been sent.
    """

    DEFAULT_REPLY = json.dumps({
        "verdict": "safe",
        "confidence": 0.5,
        "explanation": "[MOCK] No model was called. Set ANTHROPIC_MOCK_MODE=false for real analysis.",
    })

    def __init__(self, reply: Optional[str] = None) -> None:
        self._reply = reply if reply is not None else self.DEFAULT_REPLY
        self.requests: list[tuple[str, list[InlineMedia]]] = []
        logger.info("Initialized mock vision client")

    async def generate(
        self,
        prompt: str,
        media: list[InlineMedia],
    ) -> str:
        self.requests.append((prompt, list(media)))
        return self._reply


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------

def create_vision_client(
    config: Optional[AnthropicConfig] = None,
    mock_mode: bool = False,
):
    """
    Return the canned client in mock mode, otherwise a real one for config.
    """
    if mock_mode:
        return MockVisionClient()

    if config is None:
        raise ValueError("config is required when not in mock mode")

    return AnthropicVisionClient(config)
