"""
Misinformation analysis logic and prompt management.

This module turns user content into a single model request and the
model's reply into an AnalysisResult. It's framework-agnostic and
doesn't know about HTTP, storage or databases.

The prompts are here, not in config, because they're core business logic.
Changing them changes what the product does.
"""

import json
import logging
import re
from typing import Protocol

from ..errors import ModelError
from .models import AnalysisResult, InlineMedia

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Protocols (interfaces)
# ---------------------------------------------------------------------------

class VisionModelClient(Protocol):
    """
    Interface for vision-capable LLM clients.

    The request is one user turn: the prompt text first, followed by the
    media units in the given order. Transport failures raise ModelError.
    """

    async def generate(
        self,
        prompt: str,
        media: list[InlineMedia],
    ) -> str:
        """Send prompt plus media and return the reply text."""
        ...


# ---------------------------------------------------------------------------
# Prompts
# ---------------------------------------------------------------------------

_RESPONSE_FORMAT = (
    'Return ONLY a valid JSON object with the keys "verdict", "confidence", '
    'and "explanation". Verdict can be "safe", "misinformation", or "caution". '
    "Confidence is a number from 0 to 1. Explanation is a brief summary."
)

TEXT_PROMPT_TEMPLATE = "Analyze this text for misinformation. " + _RESPONSE_FORMAT + ' Text: "{text}"'

IMAGE_PROMPT = (
    "Analyze this image for signs of manipulation, deepfakes, or misinformation. "
    + _RESPONSE_FORMAT
)

VIDEO_PROMPT = (
    "Analyze this sequence of frames from a video for signs of manipulation, "
    "deepfakes, or misinformation. The frames are in temporal order. "
    "Look for inconsistencies between frames. "
    + _RESPONSE_FORMAT
)


# ---------------------------------------------------------------------------
# Reply parsing
# ---------------------------------------------------------------------------

# Fences open at the start of a line and close at the end of one, so
# backticks inside a JSON string value never count as a fence.
_FENCE_PATTERN = re.compile(
    r"^```[A-Za-z0-9_-]*[ \t]*\n?(.*?)\n?[ \t]*```[ \t]*$",
    re.DOTALL | re.MULTILINE,
)


def strip_code_fences(raw: str) -> str:
    """
    Remove markdown code-fence markup the model may wrap around its JSON.

    No-op (apart from whitespace trimming) on already-clean input.
    """
    text = raw.strip()
    match = _FENCE_PATTERN.search(text)
    if match:
        return match.group(1).strip()
    return text


def parse_analysis_reply(raw: str) -> AnalysisResult:
    """
    Parse the model's reply into an AnalysisResult.

    Any deviation (invalid JSON, missing keys, unknown verdict, confidence
    outside [0, 1]) raises ModelError. Nothing is defaulted.
    """
    cleaned = strip_code_fences(raw or "")
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise ModelError(f"Model reply is not valid JSON: {e}") from e

    try:
        return AnalysisResult.from_dict(data)
    except ValueError as e:
        raise ModelError(f"Model reply has an invalid structure: {e}") from e


# ---------------------------------------------------------------------------
# Analyzer Service
# ---------------------------------------------------------------------------

class MisinformationAnalyzer:
    """
    Builds analysis requests and interprets the replies.

    This is a service, not a data container. Each call makes exactly one
    model request; there are no retries.
    """

    def __init__(self, vision_client: VisionModelClient) -> None:
        self._vision_client = vision_client

    async def analyze_text(self, text: str) -> AnalysisResult:
        prompt = TEXT_PROMPT_TEMPLATE.format(text=text)
        return await self._submit(prompt, [])

    async def analyze_image(self, image: InlineMedia) -> AnalysisResult:
        return await self._submit(IMAGE_PROMPT, [image])

    async def analyze_frames(self, frames: list[InlineMedia]) -> AnalysisResult:
        """Analyze an ordered frame sequence sampled from one video."""
        if not frames:
            raise ValueError("At least one frame is required")
        return await self._submit(VIDEO_PROMPT, frames)

    async def _submit(self, prompt: str, media: list[InlineMedia]) -> AnalysisResult:
        try:
            raw_reply = await self._vision_client.generate(prompt=prompt, media=media)
        except ModelError:
            raise
        except Exception as e:
            # anything else escaping a client is still a transport failure
            raise ModelError(f"Model request failed: {e}") from e

        result = parse_analysis_reply(raw_reply)

        logger.info(
            "Model analysis parsed",
            extra={
                "media_parts": len(media),
                "verdict": result.verdict.value,
                "confidence": result.confidence,
            }
        )

        return result
