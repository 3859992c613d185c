"""
Anthropic Claude API client wrapper.

Implements the VisionModelClient protocol from core.analysis.analyzer.
"""

from .client import (
    AnthropicClientError,
    AnthropicConfig,
    AnthropicVisionClient,
    MockVisionClient,
    create_vision_client,
)

__all__ = [
    "AnthropicClientError",
    "AnthropicConfig",
    "AnthropicVisionClient",
    "MockVisionClient",
    "create_vision_client",
]
