"""FastAPI application for voice-to-invoice processing.

Thin HTTP glue around the pipeline:
- Audio upload, transcription, extraction and invoice synthesis in one call
- Transcript-only extraction and invoice-only synthesis endpoints
- Health check and Prometheus metrics

Run with: uvicorn voiceflow.api.main:app --port 8000

Based on FastAPI best practices:
https://fastapi.tiangolo.com/
"""

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, File, Form, HTTPException, Request, Response, UploadFile, status
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from voiceflow.api import metrics
from voiceflow.api.demo import DEMO_SCENARIOS, DemoScenario
from voiceflow.extraction.base import ExtractionResult
from voiceflow.extraction.schema import (
    SUPPORTED_LANGUAGES,
    CamelModel,
    Language,
    TransactionData,
)
from voiceflow.extraction.service import ExtractionOrchestrator
from voiceflow.extraction.validator import validate_transaction
from voiceflow.invoice.schema import InvoiceData
from voiceflow.invoice.service import InvoiceSynthesizer
from voiceflow.shared.config import configure_logging, get_settings
from voiceflow.shared.errors import (
    ExtractionTimeoutError,
    MalformedProviderOutputError,
    TranscriptionError,
)
from voiceflow.transcription.service import TranscriptionService

settings = get_settings()
configure_logging(settings)
logger = logging.getLogger(__name__)

transcription_service = TranscriptionService(settings)
orchestrator = ExtractionOrchestrator.from_settings(settings)
synthesizer = InvoiceSynthesizer(settings)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    yield
    await orchestrator.aclose()
    await transcription_service.aclose()
    logger.info("Closed extraction and transcription clients")


app = FastAPI(
    title="VoiceFlow Invoice",
    description="Voice-to-invoice API for Southeast Asian small businesses",
    version=settings.service_version,
    lifespan=lifespan,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def metrics_middleware(request: Request, call_next):  # type: ignore[no-untyped-def]
    """Middleware to collect request count and duration metrics."""
    if request.url.path == "/metrics":
        return await call_next(request)

    start_time = time.time()
    response = await call_next(request)
    duration = time.time() - start_time

    metrics.http_requests_total.labels(
        method=request.method,
        endpoint=request.url.path,
        status=response.status_code,
    ).inc()

    metrics.http_request_duration_seconds.labels(
        method=request.method,
        endpoint=request.url.path,
    ).observe(duration)

    return response


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    message: str
    version: str
    service: str


class TransactionRequest(CamelModel):
    transcript: str = Field(..., min_length=1)
    language: Language = "en"


class TransactionResponse(CamelModel):
    success: bool = True
    transaction_data: TransactionData
    provider: str
    cached: bool


class InvoiceRequest(CamelModel):
    transaction_data: TransactionData
    business_type: str | None = None


class InvoiceResponse(CamelModel):
    success: bool = True
    invoice_data: InvoiceData
    invoice_html: str = Field(..., alias="invoiceHTML")


class VoiceProcessResponse(CamelModel):
    success: bool = True
    transcription: str
    transaction_data: TransactionData
    invoice_data: InvoiceData
    invoice_html: str = Field(..., alias="invoiceHTML")
    provider: str
    processing_time: int = Field(..., description="Processing time in milliseconds")


def _retryable_error(
    status_code: int, error: TranscriptionError | ExtractionTimeoutError
) -> HTTPException:
    return HTTPException(
        status_code=status_code,
        detail={"error": error.message, "retryable": error.retryable},
    )


async def _extract(transcript: str, language: str) -> ExtractionResult:
    start = time.time()
    try:
        return await orchestrator.process_voice_transaction(transcript, language)
    except ExtractionTimeoutError as e:
        raise _retryable_error(status.HTTP_504_GATEWAY_TIMEOUT, e) from e
    finally:
        metrics.extraction_duration_seconds.observe(time.time() - start)


@app.get("/api/health", response_model=HealthResponse, tags=["Health"])
def health_check() -> HealthResponse:
    """Health check endpoint for liveness probe."""
    return HealthResponse(
        status="OK",
        message="VoiceFlow AI Backend is running",
        version=settings.service_version,
        service=settings.service_name,
    )


@app.get("/metrics", tags=["Monitoring"])
def get_metrics() -> Response:
    """Prometheus metrics endpoint."""
    metrics_data, content_type = metrics.get_metrics()
    return Response(content=metrics_data, media_type=content_type)


@app.get("/api/demo/scenarios", response_model=list[DemoScenario], tags=["Demo"])
def list_demo_scenarios() -> list[DemoScenario]:
    """Scripted demo transactions, one per supported language."""
    return DEMO_SCENARIOS


@app.post("/api/voice/process", response_model=VoiceProcessResponse, tags=["Voice"])
async def process_voice(
    audio: UploadFile | None = File(None, description="Recorded audio (webm, ogg, wav, mp3)"),  # noqa: B008
    language: str = Form("en"),
    business_type: str | None = Form(None, alias="businessType"),
) -> VoiceProcessResponse:
    """Transcribe a recording and turn it into an invoice.

    ## Usage

    ```bash
    curl -X POST "http://localhost:8000/api/voice/process" \\
      -F "audio=@recording.webm" -F "language=th"
    ```

    ## Error Handling

    - Returns 400 if audio is missing or empty, or the language is unsupported
    - Returns 413 if the upload exceeds the configured size limit
    - Returns 502 (`retryable: true`) if transcription fails
    - Returns 504 (`retryable: true`) if extraction exceeds its deadline
    """
    started = time.time()

    if audio is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No audio file provided")
    if language not in SUPPORTED_LANGUAGES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unsupported language: {language}. Supported: {', '.join(SUPPORTED_LANGUAGES)}",
        )

    content = await audio.read()
    if not content:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Empty audio file")
    if len(content) > settings.max_upload_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"Audio exceeds {settings.max_upload_bytes} bytes",
        )
    metrics.audio_upload_size_bytes.observe(len(content))
    logger.info(f"Processing audio: {len(content)} bytes, language: {language}")

    transcription_start = time.time()
    try:
        transcript = await transcription_service.transcribe(
            content,
            language,
            filename=audio.filename or "audio.webm",
            content_type=audio.content_type or "audio/webm",
        )
    except TranscriptionError as e:
        metrics.transcription_requests_total.labels(status="failed").inc()
        raise _retryable_error(status.HTTP_502_BAD_GATEWAY, e) from e
    finally:
        metrics.transcription_duration_seconds.observe(time.time() - transcription_start)
    metrics.transcription_requests_total.labels(status="success").inc()

    result = await _extract(transcript, language)
    document = synthesizer.synthesize_invoice(result.transaction, business_type)
    metrics.invoices_generated_total.labels(currency=document.invoice.currency).inc()

    return VoiceProcessResponse(
        transcription=transcript,
        transaction_data=result.transaction,
        invoice_data=document.invoice,
        invoice_html=document.html,
        provider=result.provider,
        processing_time=int((time.time() - started) * 1000),
    )


@app.post("/api/transactions/process", response_model=TransactionResponse, tags=["Voice"])
async def process_transaction(request: TransactionRequest) -> TransactionResponse:
    """Extract structured transaction data from an existing transcript."""
    result = await _extract(request.transcript, request.language)
    return TransactionResponse(
        transaction_data=result.transaction, provider=result.provider, cached=result.cached
    )


@app.post("/api/invoice/generate", response_model=InvoiceResponse, tags=["Invoice"])
def generate_invoice(request: InvoiceRequest) -> InvoiceResponse:
    """Generate an invoice from client-supplied transaction data.

    The payload is reconciled again before synthesis since it arrives from the client.
    """
    transaction = request.transaction_data
    try:
        transaction = validate_transaction(
            transaction.model_dump(by_alias=True), transaction.language
        )
    except MalformedProviderOutputError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=e.message) from e

    document = synthesizer.synthesize_invoice(transaction, request.business_type)
    metrics.invoices_generated_total.labels(currency=document.invoice.currency).inc()
    return InvoiceResponse(invoice_data=document.invoice, invoice_html=document.html)
