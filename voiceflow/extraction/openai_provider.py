"""OpenAI-based extraction provider for spoken transactions.

Second stage of the extraction chain. Uses the chat completions API in JSON
mode and retries transient failures with exponential backoff before giving up.

Based on OpenAI JSON mode:
https://platform.openai.com/docs/guides/structured-outputs
"""

import asyncio
import logging
import os
from typing import Any

from openai import AsyncOpenAI
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from voiceflow.extraction.base import ExtractionProvider, parse_json_object
from voiceflow.extraction.prompts import ExtractionPrompt, PromptBuilder
from voiceflow.shared.config import Settings
from voiceflow.shared.errors import (
    MalformedProviderOutputError,
    ProviderRequestError,
    ProviderUnavailableError,
)

logger = logging.getLogger(__name__)


class OpenAIExtractionProvider(ExtractionProvider):
    """General-purpose model stage using OpenAI chat completions.

    Requires OPENAI_API_KEY environment variable.
    """

    def __init__(self, settings: Settings, prompt_builder: PromptBuilder | None = None) -> None:
        """Initialize OpenAI extraction provider.

        Args:
            settings: Application settings
            prompt_builder: Prompt builder shared with other stages
        """
        super().__init__(settings, prompt_builder)
        self._client: AsyncOpenAI | None = None

    @property
    def provider_name(self) -> str:
        return "openai"

    def is_available(self) -> bool:
        """Check if OpenAI API key is configured.

        Returns:
            True if OPENAI_API_KEY environment variable is set
        """
        return os.getenv("OPENAI_API_KEY") is not None

    async def extract_transaction(self, transcript: str, language: str) -> dict[str, Any]:
        """Extract a raw transaction payload using OpenAI.

        Args:
            transcript: Transcribed speech
            language: Supported language code

        Returns:
            Raw JSON object from the model

        Raises:
            ProviderUnavailableError: If OPENAI_API_KEY is not set
            ProviderRequestError: If every attempt failed
            MalformedProviderOutputError: If the response is empty or not a JSON object
        """
        if not self.is_available():
            raise ProviderUnavailableError("OPENAI_API_KEY environment variable not set")

        if not transcript or not transcript.strip():
            raise MalformedProviderOutputError("Empty transcript provided")

        api_key = os.getenv("OPENAI_API_KEY")
        if self._client is None or self._client.api_key != api_key:
            self._client = AsyncOpenAI(api_key=api_key)

        prompt = self.prompt_builder.build(transcript, language)

        try:
            response = await self._call_openai_with_retry(prompt)
        except Exception as e:
            raise ProviderRequestError(f"OpenAI extraction failed: {e}") from e

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise MalformedProviderOutputError("No response from AI service")

        return parse_json_object(content)

    async def _call_openai_with_retry(self, prompt: ExtractionPrompt) -> Any:
        """Call OpenAI with exponential backoff.

        Waits multiplier * 2^(n-1) seconds after attempt n (2s, 4s with the
        default multiplier of 2). Only the final attempt's error propagates.

        Args:
            prompt: System and user instructions

        Returns:
            OpenAI chat completion response
        """
        retrying = AsyncRetrying(
            retry=retry_if_exception_type(Exception),
            wait=wait_exponential(multiplier=self.settings.extraction_backoff_multiplier, exp_base=2),
            stop=stop_after_attempt(self.settings.extraction_max_attempts),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            sleep=asyncio.sleep,
            reraise=True,
        )
        return await retrying(self._create_completion, prompt)

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None

    async def _create_completion(self, prompt: ExtractionPrompt) -> Any:
        if self._client is None:
            raise RuntimeError("OpenAI client not initialized")

        return await self._client.chat.completions.create(
            model=self.settings.openai_extraction_model,
            messages=[
                {"role": "system", "content": prompt.system},
                {"role": "user", "content": prompt.user},
            ],
            temperature=self.settings.openai_temperature,
            response_format={"type": "json_object"},
        )
