"""Unit tests for the voice-to-invoice API.

Tests cover:
- Health check, demo scenarios and metrics endpoints
- Audio upload validation
- Error mapping for transcription failures and extraction timeouts
- Transcript-only and invoice-only endpoints

No API keys are set, so transcription returns sample transcripts and
extraction falls back to the mock records.
"""

from collections.abc import Iterator
from typing import Any
from unittest.mock import AsyncMock, patch

import pytest
from fastapi import status
from fastapi.testclient import TestClient

from voiceflow.api import main
from voiceflow.api.main import app
from voiceflow.shared.errors import ExtractionTimeoutError, TranscriptionError
from voiceflow.transcription.service import SAMPLE_TRANSCRIPTS


@pytest.fixture(autouse=True)
def no_api_keys() -> Iterator[None]:
    with patch.dict("os.environ", {}, clear=True):
        yield


@pytest.fixture(autouse=True)
def empty_extraction_cache() -> Iterator[None]:
    main.orchestrator.cache.clear()
    yield
    main.orchestrator.cache.clear()


@pytest.fixture
def client() -> TestClient:
    """Create test client."""
    return TestClient(app)


@pytest.fixture
def audio_file() -> dict[str, Any]:
    return {"audio": ("recording.webm", b"\x1aE\xdf\xa3fake-webm", "audio/webm")}


@pytest.fixture
def transaction_payload() -> dict[str, Any]:
    return {
        "items": [
            {"name": "Shirts", "quantity": 3, "unitPrice": 25, "total": 75},
            {"name": "Pants", "quantity": 2, "unitPrice": 37.5, "total": 75},
        ],
        "customer": {"name": "Alex"},
        "total": 150,
        "currency": "USD",
        "paymentTerms": "later",
        "dueDate": "next week",
        "businessType": "retail",
        "language": "en",
    }


def test_health_check(client: TestClient) -> None:
    response = client.get("/api/health")

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["status"] == "OK"
    assert data["service"] == "voiceflow-invoice"
    assert "version" in data


def test_metrics_endpoint(client: TestClient) -> None:
    client.get("/api/health")

    response = client.get("/metrics")

    assert response.status_code == status.HTTP_200_OK
    assert "text/plain" in response.headers["content-type"]
    assert "http_requests_total" in response.text


def test_demo_scenarios(client: TestClient) -> None:
    response = client.get("/api/demo/scenarios")

    assert response.status_code == status.HTTP_200_OK
    scenarios = response.json()
    assert {scenario["language"] for scenario in scenarios} == {"id", "th", "vi", "tl", "en"}
    assert all(scenario["voiceInput"] == SAMPLE_TRANSCRIPTS[scenario["language"]] for scenario in scenarios)
    assert "businessType" in scenarios[0]


def test_voice_process_end_to_end(client: TestClient, audio_file: dict[str, Any]) -> None:
    response = client.post("/api/voice/process", files=audio_file, data={"language": "th"})

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["success"] is True
    assert data["transcription"] == SAMPLE_TRANSCRIPTS["th"]
    assert data["provider"] == "mock"
    assert data["transactionData"]["total"] == 250
    assert data["transactionData"]["currency"] == "THB"
    assert data["invoiceData"]["invoiceNumber"].startswith("VF")
    assert data["invoiceData"]["template"] == "food-service"
    assert data["invoiceData"]["qrCode"].startswith("data:image/png;base64,")
    assert "ผัดไทย" in data["invoiceHTML"]
    assert isinstance(data["processingTime"], int)


def test_voice_process_business_type_override(
    client: TestClient, audio_file: dict[str, Any]
) -> None:
    response = client.post(
        "/api/voice/process",
        files=audio_file,
        data={"language": "id", "businessType": "tailor"},
    )

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["invoiceData"]["template"] == "custom-service"


def test_voice_process_without_audio(client: TestClient) -> None:
    response = client.post("/api/voice/process", data={"language": "en"})

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert "No audio file provided" in response.json()["detail"]


def test_voice_process_empty_audio(client: TestClient) -> None:
    response = client.post(
        "/api/voice/process",
        files={"audio": ("empty.webm", b"", "audio/webm")},
        data={"language": "en"},
    )

    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_voice_process_unsupported_language(
    client: TestClient, audio_file: dict[str, Any]
) -> None:
    response = client.post("/api/voice/process", files=audio_file, data={"language": "de"})

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert "Unsupported language" in response.json()["detail"]


def test_voice_process_oversized_audio(client: TestClient, audio_file: dict[str, Any]) -> None:
    with patch.object(main.settings, "max_upload_bytes", 4):
        response = client.post("/api/voice/process", files=audio_file, data={"language": "en"})

    assert response.status_code == status.HTTP_413_REQUEST_ENTITY_TOO_LARGE


def test_voice_process_transcription_failure(
    client: TestClient, audio_file: dict[str, Any]
) -> None:
    with patch.object(
        main.transcription_service,
        "transcribe",
        AsyncMock(side_effect=TranscriptionError("Failed to transcribe audio: upstream 502")),
    ):
        response = client.post("/api/voice/process", files=audio_file, data={"language": "en"})

    assert response.status_code == status.HTTP_502_BAD_GATEWAY
    detail = response.json()["detail"]
    assert detail["retryable"] is True
    assert "Failed to transcribe audio" in detail["error"]


def test_voice_process_extraction_timeout(client: TestClient, audio_file: dict[str, Any]) -> None:
    with patch.object(
        main.orchestrator,
        "process_voice_transaction",
        AsyncMock(side_effect=ExtractionTimeoutError("Extraction timed out after 30 seconds")),
    ):
        response = client.post("/api/voice/process", files=audio_file, data={"language": "vi"})

    assert response.status_code == status.HTTP_504_GATEWAY_TIMEOUT
    assert response.json()["detail"]["retryable"] is True


def test_process_transaction(client: TestClient) -> None:
    response = client.post(
        "/api/transactions/process",
        json={"transcript": SAMPLE_TRANSCRIPTS["id"], "language": "id"},
    )

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["provider"] == "mock"
    assert data["cached"] is False
    assert data["transactionData"]["total"] == 350000
    assert data["transactionData"]["paymentTerms"] == "later"
    assert data["transactionData"]["items"][0]["unitPrice"] == 150000


@pytest.mark.parametrize(
    "body",
    [{"transcript": "", "language": "en"}, {"transcript": "hello", "language": "fr"}, {}],
)
def test_process_transaction_invalid_request(client: TestClient, body: dict[str, Any]) -> None:
    response = client.post("/api/transactions/process", json=body)

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_generate_invoice(client: TestClient, transaction_payload: dict[str, Any]) -> None:
    response = client.post(
        "/api/invoice/generate",
        json={"transactionData": transaction_payload, "businessType": "street food"},
    )

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["success"] is True
    assert data["invoiceData"]["total"] == 150
    assert data["invoiceData"]["template"] == "food-service"
    assert data["invoiceData"]["dueDate"] is not None
    assert "Shirts" in data["invoiceHTML"]


def test_generate_invoice_reconciles_client_total(
    client: TestClient, transaction_payload: dict[str, Any]
) -> None:
    transaction_payload["total"] = 999

    response = client.post("/api/invoice/generate", json={"transactionData": transaction_payload})

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["invoiceData"]["total"] == 150


def test_generate_invoice_rejects_malformed_items(
    client: TestClient, transaction_payload: dict[str, Any]
) -> None:
    transaction_payload["items"] = [{"name": "Shirts", "quantity": "many"}]

    response = client.post("/api/invoice/generate", json={"transactionData": transaction_payload})

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_repeat_transcript_is_served_from_cache(client: TestClient) -> None:
    body = {"transcript": SAMPLE_TRANSCRIPTS["vi"], "language": "vi"}

    client.post("/api/transactions/process", json=body)
    response = client.post("/api/transactions/process", json=body)

    data = response.json()
    assert data["cached"] is True
    assert data["provider"] == "cache"
    assert data["transactionData"]["currency"] == "VND"


def test_shutdown_closes_provider_clients() -> None:
    with (
        patch.object(main.orchestrator, "aclose", AsyncMock()) as orchestrator_close,
        patch.object(main.transcription_service, "aclose", AsyncMock()) as transcription_close,
    ):
        with TestClient(app) as client:
            client.get("/api/health")
            orchestrator_close.assert_not_awaited()

    orchestrator_close.assert_awaited_once()
    transcription_close.assert_awaited_once()
