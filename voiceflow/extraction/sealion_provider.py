"""SEA-LION regional model extraction provider.

First stage of the extraction chain. SEA-LION is tuned for Southeast Asian
languages and is served through an OpenAI-compatible chat-completions API.
The stage is disabled by default (APP_SEALION_ENABLED=false) and then fails
fast so the chain moves on to the general-purpose model.

See: https://sea-lion.ai/
"""

import logging
import os
from typing import Any

import httpx

from voiceflow.extraction.base import ExtractionProvider, parse_json_object
from voiceflow.extraction.prompts import PromptBuilder
from voiceflow.shared.config import Settings
from voiceflow.shared.errors import (
    MalformedProviderOutputError,
    ProviderRequestError,
    ProviderUnavailableError,
)

logger = logging.getLogger(__name__)


class SeaLionExtractionProvider(ExtractionProvider):
    """Extraction through the SEA-LION chat-completions endpoint.

    Requires APP_SEALION_ENABLED=true and the SEALION_API_KEY environment variable.
    Not retried: a failure here falls straight through to the next stage.
    """

    def __init__(self, settings: Settings, prompt_builder: PromptBuilder | None = None) -> None:
        super().__init__(settings, prompt_builder)
        self._base_url = settings.sealion_base_url.rstrip("/")
        self._model = settings.sealion_model
        self._client = httpx.AsyncClient(timeout=60.0)

    @property
    def provider_name(self) -> str:
        return "sealion"

    def is_available(self) -> bool:
        """Check that the stage is enabled and has a credential.

        Returns:
            True if SEA-LION is enabled and SEALION_API_KEY is set
        """
        return self.settings.sealion_enabled and os.getenv("SEALION_API_KEY") is not None

    async def extract_transaction(self, transcript: str, language: str) -> dict[str, Any]:
        """Extract a raw transaction payload using SEA-LION.

        Raises:
            ProviderUnavailableError: If the stage is disabled or unconfigured
            ProviderRequestError: On HTTP or transport failure
            MalformedProviderOutputError: If the response holds no JSON object
        """
        if not self.is_available():
            raise ProviderUnavailableError("SEA-LION API not available in this deployment")

        prompt = self.prompt_builder.build(transcript, language)
        try:
            response = await self._client.post(
                f"{self._base_url}/chat/completions",
                headers={"Authorization": f"Bearer {os.getenv('SEALION_API_KEY')}"},
                json={
                    "model": self._model,
                    "messages": [
                        {"role": "system", "content": prompt.system},
                        {"role": "user", "content": prompt.user},
                    ],
                    "temperature": self.settings.openai_temperature,
                },
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise ProviderRequestError(f"SEA-LION request failed: {e}") from e

        try:
            content = response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise MalformedProviderOutputError(f"Unexpected SEA-LION response shape: {e}") from e

        return parse_json_object(content)

    async def aclose(self) -> None:
        await self._client.aclose()
