"""Abstract base class for transaction extraction providers.

Each provider is one stage of the extraction fallback chain. A stage either
returns the raw JSON object produced by its model or raises an ExtractionError
subclass, in which case the orchestrator moves on to the next stage.

Based on Strategy Pattern:
https://refactoring.guru/design-patterns/strategy/python
"""

import json
import re
from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel

from voiceflow.extraction.prompts import PromptBuilder
from voiceflow.extraction.schema import TransactionData
from voiceflow.shared.config import Settings
from voiceflow.shared.errors import MalformedProviderOutputError


class ExtractionResult(BaseModel):
    """Result of running the extraction chain.

    Attributes:
        transaction: Validated transaction data
        provider: Name of the stage that produced it (e.g. 'openai', 'mock')
        cached: Whether the result was served from the cache
    """

    transaction: TransactionData
    provider: str
    cached: bool = False


class ExtractionProvider(ABC):
    """Abstract base class for a single extraction stage.

    Example implementations:
    - SeaLionExtractionProvider: regional SEA-LION model
    - OpenAIExtractionProvider: general-purpose model with retry/backoff
    - MockExtractionProvider: deterministic per-language records
    """

    def __init__(self, settings: Settings, prompt_builder: PromptBuilder | None = None) -> None:
        """Initialize provider with settings.

        Args:
            settings: Application settings
            prompt_builder: Prompt builder, a default one is created if omitted
        """
        self.settings = settings
        self.prompt_builder = prompt_builder or PromptBuilder()

    @abstractmethod
    async def extract_transaction(self, transcript: str, language: str) -> dict[str, Any]:
        """Extract a raw transaction payload from a transcript.

        Args:
            transcript: Transcribed speech
            language: Supported language code

        Returns:
            Raw JSON object as returned by the model (not yet validated)

        Raises:
            ExtractionError: If this stage cannot produce a payload
        """
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """Check if this provider is configured (credentials, feature flags)."""
        pass

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Provider identifier for logging/metrics (e.g. 'openai')."""
        pass

    async def aclose(self) -> None:
        """Release resources held by the provider. No-op unless overridden."""
        return None


def parse_json_object(response_text: str) -> dict[str, Any]:
    """Extract and parse a JSON object from an LLM response.

    Handles markdown code fences around the JSON.

    Args:
        response_text: Raw LLM response

    Returns:
        Parsed JSON object

    Raises:
        MalformedProviderOutputError: If no JSON object can be parsed
    """
    text = (response_text or "").strip()
    fenced = re.search(r"```(?:json)?\s*([\s\S]*?)```", text)
    if fenced:
        text = fenced.group(1).strip()

    try:
        result = json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedProviderOutputError(f"Model output is not valid JSON: {e}") from e

    if not isinstance(result, dict):
        raise MalformedProviderOutputError(
            f"Expected a JSON object, got {type(result).__name__}"
        )
    return result
