"""Unit tests for the extraction orchestrator.

Tests cover:
- First-success ordering across the provider chain
- Fallback to the mock record when every stage fails
- Cache hits and expiry, including fallback results
- Whole-chain timeout
"""

import asyncio
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from voiceflow.extraction.base import ExtractionProvider
from voiceflow.extraction.cache import TransactionCache
from voiceflow.extraction.mock_provider import MOCK_TRANSACTIONS, MockExtractionProvider
from voiceflow.extraction.openai_provider import OpenAIExtractionProvider
from voiceflow.extraction.service import ExtractionOrchestrator
from voiceflow.shared.config import Settings
from voiceflow.shared.errors import (
    ExtractionTimeoutError,
    ProviderRequestError,
    ProviderUnavailableError,
)

THAI_TRANSCRIPT = "ลูกค้าซื้อผัดไทย 3 จาน ส้มตำ 2 จาน รวม 250 บาท"


class ScriptedProvider(ExtractionProvider):
    """Stage that returns a fixed payload or raises a fixed error."""

    def __init__(
        self,
        settings: Settings,
        name: str,
        payload: dict[str, Any] | None = None,
        error: Exception | None = None,
        delay: float = 0.0,
    ) -> None:
        super().__init__(settings)
        self._name = name
        self._payload = payload
        self._error = error
        self._delay = delay
        self.calls = 0

    @property
    def provider_name(self) -> str:
        return self._name

    def is_available(self) -> bool:
        return self._error is None

    async def extract_transaction(self, transcript: str, language: str) -> dict[str, Any]:
        self.calls += 1
        if self._delay:
            await asyncio.sleep(self._delay)
        if self._error is not None:
            raise self._error
        return dict(self._payload or {})


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None)


@pytest.fixture
def model_payload() -> dict[str, Any]:
    return {
        "items": [{"name": "Kopi", "quantity": 2, "unitPrice": 15000}],
        "total": 30000,
        "currency": "IDR",
        "paymentTerms": "immediate",
        "businessType": "warung",
        "language": "id",
    }


def _failing(settings: Settings, name: str) -> ScriptedProvider:
    return ScriptedProvider(settings, name, error=ProviderUnavailableError(f"{name} offline"))


@pytest.mark.asyncio
async def test_first_successful_stage_wins(
    settings: Settings, model_payload: dict[str, Any]
) -> None:
    regional = ScriptedProvider(settings, "sealion", payload=model_payload)
    general = ScriptedProvider(settings, "openai", payload=model_payload)
    orchestrator = ExtractionOrchestrator(settings, [regional, general])

    result = await orchestrator.process_voice_transaction("dua kopi", "id")

    assert result.provider == "sealion"
    assert result.cached is False
    assert result.transaction.items[0].total == 30000
    assert general.calls == 0


@pytest.mark.asyncio
async def test_falls_through_to_next_stage(
    settings: Settings, model_payload: dict[str, Any]
) -> None:
    regional = _failing(settings, "sealion")
    general = ScriptedProvider(settings, "openai", payload=model_payload)
    orchestrator = ExtractionOrchestrator(settings, [regional, general])

    result = await orchestrator.process_voice_transaction("dua kopi", "id")

    assert result.provider == "openai"
    assert regional.calls == 1


@pytest.mark.asyncio
async def test_malformed_stage_output_falls_through(
    settings: Settings, model_payload: dict[str, Any]
) -> None:
    broken = ScriptedProvider(settings, "sealion", payload={"items": "two coffees"})
    general = ScriptedProvider(settings, "openai", payload=model_payload)
    orchestrator = ExtractionOrchestrator(settings, [broken, general])

    result = await orchestrator.process_voice_transaction("dua kopi", "id")

    assert result.provider == "openai"


@pytest.mark.asyncio
async def test_all_stages_fail_returns_documented_mock(settings: Settings) -> None:
    orchestrator = ExtractionOrchestrator(
        settings,
        [
            _failing(settings, "sealion"),
            ScriptedProvider(settings, "openai", error=ProviderRequestError("quota exceeded")),
        ],
    )

    result = await orchestrator.process_voice_transaction(THAI_TRANSCRIPT, "th")

    transaction = result.transaction
    assert result.provider == "mock"
    assert [(item.name, item.quantity, item.unit_price, item.total) for item in transaction.items] == [
        ("ผัดไทย", 3, 60, 180),
        ("ส้มตำ", 2, 35, 70),
    ]
    assert transaction.total == 250
    assert transaction.currency == "THB"
    assert transaction.payment_terms == "immediate"
    assert transaction.business_type == "street food"
    assert transaction.metadata.confidence == 0.95


@pytest.mark.asyncio
@pytest.mark.parametrize("language", sorted(MOCK_TRANSACTIONS))
async def test_empty_chain_never_raises(settings: Settings, language: str) -> None:
    orchestrator = ExtractionOrchestrator(settings, [])

    result = await orchestrator.process_voice_transaction("anything", language)

    assert result.provider == "mock"
    assert result.transaction.language == language
    assert result.transaction.total == MOCK_TRANSACTIONS[language]["total"]


@pytest.mark.asyncio
async def test_unknown_language_uses_english_mock(settings: Settings) -> None:
    orchestrator = ExtractionOrchestrator(settings, [])

    result = await orchestrator.process_voice_transaction("Guten Tag", "de")

    assert result.transaction.language == "en"
    assert result.transaction.currency == "USD"


@pytest.mark.asyncio
async def test_repeat_request_is_served_from_cache(
    settings: Settings, model_payload: dict[str, Any]
) -> None:
    general = ScriptedProvider(settings, "openai", payload=model_payload)
    orchestrator = ExtractionOrchestrator(settings, [general])

    first = await orchestrator.process_voice_transaction("dua kopi", "id")
    second = await orchestrator.process_voice_transaction("dua kopi", "id")

    assert general.calls == 1
    assert second.cached is True
    assert second.provider == "cache"
    assert second.transaction == first.transaction


@pytest.mark.asyncio
async def test_cache_is_keyed_by_language(
    settings: Settings, model_payload: dict[str, Any]
) -> None:
    general = ScriptedProvider(settings, "openai", payload=model_payload)
    orchestrator = ExtractionOrchestrator(settings, [general])

    await orchestrator.process_voice_transaction("150", "id")
    await orchestrator.process_voice_transaction("150", "en")

    assert general.calls == 2


@pytest.mark.asyncio
async def test_expired_cache_entry_triggers_new_extraction(
    settings: Settings, model_payload: dict[str, Any]
) -> None:
    clock = FakeClock()
    cache = TransactionCache(ttl_seconds=300, max_entries=100, clock=clock)
    general = ScriptedProvider(settings, "openai", payload=model_payload)
    orchestrator = ExtractionOrchestrator(settings, [general], cache=cache)

    await orchestrator.process_voice_transaction("dua kopi", "id")
    clock.now = 299.0
    await orchestrator.process_voice_transaction("dua kopi", "id")
    clock.now = 300.0
    result = await orchestrator.process_voice_transaction("dua kopi", "id")

    assert general.calls == 2
    assert result.cached is False


@pytest.mark.asyncio
async def test_fallback_result_is_cached(settings: Settings) -> None:
    """A repeat request during an outage does not run the failing chain again."""
    failing = _failing(settings, "openai")
    orchestrator = ExtractionOrchestrator(settings, [failing])

    first = await orchestrator.process_voice_transaction(THAI_TRANSCRIPT, "th")
    second = await orchestrator.process_voice_transaction(THAI_TRANSCRIPT, "th")

    assert first.provider == "mock"
    assert second.cached is True
    assert second.transaction == first.transaction
    assert failing.calls == 1


@pytest.mark.asyncio
async def test_cached_result_is_isolated_from_caller(
    settings: Settings, model_payload: dict[str, Any]
) -> None:
    orchestrator = ExtractionOrchestrator(
        settings, [ScriptedProvider(settings, "openai", payload=model_payload)]
    )

    first = await orchestrator.process_voice_transaction("dua kopi", "id")
    first.transaction.total = 1
    second = await orchestrator.process_voice_transaction("dua kopi", "id")

    assert second.transaction.total == 30000


@pytest.mark.asyncio
async def test_chain_exceeding_deadline_times_out(settings: Settings) -> None:
    slow = ScriptedProvider(settings, "openai", payload={}, delay=5.0)
    orchestrator = ExtractionOrchestrator(settings, [slow])

    with pytest.raises(ExtractionTimeoutError, match="timed out"):
        await orchestrator.process_voice_transaction("dua kopi", "id", timeout=0.05)

    assert len(orchestrator.cache) == 0


@pytest.mark.asyncio
async def test_from_settings_builds_configured_chain() -> None:
    settings = Settings(_env_file=None, extraction_chain=["mock"])

    orchestrator = ExtractionOrchestrator.from_settings(settings)

    assert [provider.provider_name for provider in orchestrator.providers] == ["mock"]
    assert isinstance(orchestrator.fallback, MockExtractionProvider)
    assert orchestrator.cache.ttl_seconds == settings.cache_ttl_seconds


@pytest.mark.asyncio
async def test_mock_provider_returns_independent_copies(settings: Settings) -> None:
    provider = MockExtractionProvider(settings)

    first = await provider.extract_transaction("", "vi")
    first["total"] = 0
    second = await provider.extract_transaction("", "vi")

    assert second["total"] == 1500000
    assert provider.is_available() is True


def test_injected_empty_cache_and_fallback_are_kept(settings: Settings) -> None:
    cache = TransactionCache(ttl_seconds=300, max_entries=100, clock=FakeClock())
    fallback = MockExtractionProvider(settings)

    orchestrator = ExtractionOrchestrator(settings, [], cache=cache, fallback=fallback)

    assert len(cache) == 0
    assert orchestrator.cache is cache
    assert orchestrator.fallback is fallback


@pytest.mark.asyncio
@patch("voiceflow.extraction.openai_provider.AsyncOpenAI")
@patch.dict("os.environ", {"OPENAI_API_KEY": "test-key"})
async def test_deadline_abandons_retry_backoff(
    mock_openai_class: MagicMock, settings: Settings
) -> None:
    """The deadline fires during the first 2s backoff, before a second attempt."""
    mock_client = MagicMock()
    mock_client.chat.completions.create = AsyncMock(side_effect=RuntimeError("rate limited"))
    mock_openai_class.return_value = mock_client
    orchestrator = ExtractionOrchestrator(settings, [OpenAIExtractionProvider(settings)])

    with pytest.raises(ExtractionTimeoutError):
        await orchestrator.process_voice_transaction("dua kopi", "id", timeout=0.2)

    assert mock_client.chat.completions.create.await_count == 1
    assert len(orchestrator.cache) == 0


@pytest.mark.asyncio
async def test_aclose_closes_every_stage(settings: Settings) -> None:
    regional = ScriptedProvider(settings, "sealion", payload={})
    fallback = MockExtractionProvider(settings)
    orchestrator = ExtractionOrchestrator(settings, [regional], fallback=fallback)

    with (
        patch.object(regional, "aclose", AsyncMock()) as regional_close,
        patch.object(fallback, "aclose", AsyncMock()) as fallback_close,
    ):
        await orchestrator.aclose()

    regional_close.assert_awaited_once()
    fallback_close.assert_awaited_once()
