"""Extraction orchestrator: transcript in, TransactionData out.

Runs the provider chain in order (regional model, general-purpose model, ...)
and stops at the first stage whose output survives validation. When every
stage fails, the static mock record for the language is returned, so the
public operation never raises for extraction problems. The only error that
reaches the caller is ExtractionTimeoutError when the whole chain overruns
its deadline.

Validated results are cached per (language, transcript), whichever stage
produced them.
"""

import asyncio
import logging

from prometheus_client import Counter

from voiceflow.extraction.base import ExtractionProvider, ExtractionResult
from voiceflow.extraction.cache import TransactionCache, transcript_fingerprint
from voiceflow.extraction.factory import create_provider_chain
from voiceflow.extraction.mock_provider import MockExtractionProvider
from voiceflow.extraction.prompts import PromptBuilder
from voiceflow.extraction.schema import normalize_language
from voiceflow.extraction.validator import validate_transaction
from voiceflow.shared.config import Settings
from voiceflow.shared.errors import ExtractionTimeoutError

logger = logging.getLogger(__name__)

extraction_results_total = Counter(
    "extraction_results_total",
    "Extraction results by the stage that produced them",
    ["provider"],
)

extraction_stage_failures_total = Counter(
    "extraction_stage_failures_total",
    "Extraction stage failures that triggered a fallback",
    ["provider"],
)

extraction_cache_lookups_total = Counter(
    "extraction_cache_lookups_total",
    "Extraction cache lookups",
    ["result"],  # hit, miss
)


class ExtractionOrchestrator:
    """Drives the extraction fallback chain.

    Args:
        settings: Application settings
        providers: Ordered stages to attempt before the fallback
        cache: Result cache; a fresh one is built from settings if omitted
        fallback: Terminal stage that must not fail (defaults to the mock provider)
    """

    def __init__(
        self,
        settings: Settings,
        providers: list[ExtractionProvider],
        cache: TransactionCache | None = None,
        fallback: ExtractionProvider | None = None,
    ) -> None:
        self.settings = settings
        self.providers = providers
        self.cache = cache if cache is not None else TransactionCache.from_settings(settings)
        self.fallback = fallback if fallback is not None else MockExtractionProvider(settings)

    @classmethod
    def from_settings(cls, settings: Settings) -> "ExtractionOrchestrator":
        prompt_builder = PromptBuilder()
        return cls(
            settings=settings,
            providers=create_provider_chain(settings, prompt_builder),
            fallback=MockExtractionProvider(settings, prompt_builder),
        )

    async def process_voice_transaction(
        self, transcript: str, language: str, timeout: float | None = None
    ) -> ExtractionResult:
        """Turn a transcript into validated transaction data.

        Args:
            transcript: Transcribed speech
            language: Language code of the transcript
            timeout: Deadline in seconds for the whole chain, defaults to
                settings.extraction_timeout_seconds

        Returns:
            ExtractionResult naming the stage that produced the data

        Raises:
            ExtractionTimeoutError: If the chain did not finish before the deadline
        """
        language = normalize_language(language)
        key = transcript_fingerprint(transcript, language)

        cached = self.cache.get(key)
        if cached is not None:
            extraction_cache_lookups_total.labels(result="hit").inc()
            return ExtractionResult(transaction=cached, provider="cache", cached=True)
        extraction_cache_lookups_total.labels(result="miss").inc()

        deadline = timeout if timeout is not None else self.settings.extraction_timeout_seconds
        try:
            result = await asyncio.wait_for(self._run_chain(transcript, language), deadline)
        except asyncio.TimeoutError as e:
            logger.error(f"Extraction for '{language}' exceeded {deadline}s, abandoning")
            raise ExtractionTimeoutError(f"Extraction timed out after {deadline} seconds") from e

        self.cache.put(key, result.transaction)
        extraction_results_total.labels(provider=result.provider).inc()
        return result

    async def aclose(self) -> None:
        """Release network clients held by the chain stages."""
        for provider in [*self.providers, self.fallback]:
            await provider.aclose()

    async def _run_chain(self, transcript: str, language: str) -> ExtractionResult:
        for provider in self.providers:
            try:
                raw = await provider.extract_transaction(transcript, language)
                transaction = validate_transaction(raw, language)
            except Exception as e:
                extraction_stage_failures_total.labels(provider=provider.provider_name).inc()
                logger.warning(f"Extraction stage '{provider.provider_name}' failed: {e}")
                continue

            logger.info(f"Extraction succeeded with '{provider.provider_name}'")
            return ExtractionResult(transaction=transaction, provider=provider.provider_name)

        logger.warning(f"All extraction stages failed, using '{self.fallback.provider_name}'")
        raw = await self.fallback.extract_transaction(transcript, language)
        return ExtractionResult(
            transaction=validate_transaction(raw, language),
            provider=self.fallback.provider_name,
        )
