"""Prometheus metrics for the API service.

Exposes key metrics for monitoring:
- Request counts by endpoint and status
- Request duration histograms
- Audio upload and transcription metrics
- Invoice generation counts

Extraction chain metrics live in voiceflow.extraction.service.

Based on Prometheus best practices:
https://prometheus.io/docs/practices/naming/
"""

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

# Request metrics
http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=(0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)

# Audio metrics
audio_upload_size_bytes = Histogram(
    "audio_upload_size_bytes",
    "Audio upload size in bytes",
    buckets=(1024, 10240, 102400, 1048576, 10485760),  # 1KB to 10MB
)

transcription_requests_total = Counter(
    "transcription_requests_total",
    "Total transcription requests",
    ["status"],  # success, failed
)

transcription_duration_seconds = Histogram(
    "transcription_duration_seconds",
    "Transcription duration in seconds",
    buckets=(0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0),
)

# Pipeline metrics
extraction_duration_seconds = Histogram(
    "extraction_duration_seconds",
    "Transaction extraction duration in seconds",
    buckets=(0.01, 0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0),
)

invoices_generated_total = Counter(
    "invoices_generated_total",
    "Total invoices generated",
    ["currency"],
)


def get_metrics() -> tuple[bytes, str]:
    """Generate Prometheus metrics in text format.

    Returns:
        Tuple of (metrics bytes, content type)
    """
    return generate_latest(), CONTENT_TYPE_LATEST
