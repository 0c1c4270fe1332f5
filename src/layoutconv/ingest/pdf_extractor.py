"""AI-backed PDF table extraction.

The PDF is sent to the configured model provider as a base64 data URI and
the reply is parsed into an ``ExtractionResult``. Provider failures never
raise out of ``extract``: they come back as ``ExtractionResult.error`` so
the loader can decide whether the headers alone are usable.
"""

from __future__ import annotations

import asyncio
import base64
import hashlib
from typing import Any

from pydantic import ValidationError

from layoutconv.core.config import ExtractionConfig
from layoutconv.core.exceptions import CacheError
from layoutconv.core.logging_config import get_logger
from layoutconv.core.protocols import ICacheBackend, IModelProvider
from layoutconv.models.dataset import ExtractionResult

logger = get_logger(__name__)

PDF_MEDIA_TYPE = "application/pdf"
CACHE_PREFIX = "extraction:"
DEFAULT_CACHE_TTL = 86400

EXTRACTION_PROMPT = """Analyze the provided PDF document, which contains tabular data. Extract the main table content.

Identify the table headers accurately.
Extract all data rows corresponding to these headers.
Ensure the data in each row aligns correctly with the identified headers.
Return the extracted data with 'headers' as an array of strings and 'rows' as an array of objects, where each object maps header names to cell values. If an object structure is difficult, an array of values per row, matching the header order, is acceptable.

If you cannot reliably extract a table, return empty arrays for headers and rows and provide an explanation in the 'error' field. Focus on the primary data table, ignoring surrounding text unless it is part of the table structure. Pay close attention to multi-line headers or cells. Extract numeric values and dates exactly as they appear in the PDF, preserving their original format.
"""


def pdf_data_uri(content: bytes) -> str:
    """``data:application/pdf;base64,<payload>``."""
    return f"data:{PDF_MEDIA_TYPE};base64,{base64.b64encode(content).decode('ascii')}"


def build_messages(data_uri: str) -> list[dict[str, Any]]:
    return [
        {
            "role": "user",
            "content": [
                {"type": "document", "name": "table", "data_uri": data_uri},
                {"type": "text", "text": EXTRACTION_PROMPT},
            ],
        },
    ]


class PdfTableExtractor:
    """Extracts the main table of a PDF through an ``IModelProvider``.

    Successful results are cached by SHA-256 of the PDF bytes when a cache
    backend is supplied.
    """

    def __init__(
        self,
        provider: IModelProvider,
        cache: ICacheBackend | None = None,
        cache_ttl: int = DEFAULT_CACHE_TTL,
    ) -> None:
        self._provider = provider
        self._cache = cache
        self._cache_ttl = cache_ttl

    @staticmethod
    def cache_key(content: bytes) -> str:
        return CACHE_PREFIX + hashlib.sha256(content).hexdigest()

    async def extract(self, content: bytes) -> ExtractionResult:
        key = self.cache_key(content)
        cached = self._cache_get(key)
        if cached is not None:
            logger.info("PDF extraction served from cache", extra={"cache_key": key})
            return cached

        result = await asyncio.to_thread(self._extract_sync, content)
        if result.error is None and result.headers:
            self._cache_put(key, result)
        return result

    def _extract_sync(self, content: bytes) -> ExtractionResult:
        messages = build_messages(pdf_data_uri(content))
        try:
            result = self._provider.structured_output(messages, ExtractionResult)
        except ValidationError as exc:
            logger.warning("PDF extraction reply did not match the table schema", extra={"error": str(exc)})
            return ExtractionResult(error=f"AI model returned incomplete data: {exc.error_count()} validation error(s)")
        except Exception as exc:
            logger.warning("PDF extraction failed", extra={"error": str(exc)})
            return ExtractionResult(error=f"AI processing error: {str(exc) or 'Unknown error'}")

        if result is None:
            return ExtractionResult(error="AI model returned no output.")
        if not result.headers and result.error is None:
            return result.model_copy(update={"error": "AI model returned no table headers."})
        return result

    def _cache_get(self, key: str) -> ExtractionResult | None:
        if self._cache is None:
            return None
        try:
            raw = self._cache.get(key)
        except CacheError as exc:
            logger.warning("Extraction cache read failed", extra={"cache_key": key, "error": str(exc)})
            return None
        if raw is None:
            return None
        try:
            return ExtractionResult.model_validate_json(raw)
        except ValidationError:
            logger.warning("Discarding unreadable cached extraction", extra={"cache_key": key})
            return None

    def _cache_put(self, key: str, result: ExtractionResult) -> None:
        if self._cache is None:
            return
        try:
            self._cache.setex(key, self._cache_ttl, result.model_dump_json())
        except CacheError as exc:
            logger.warning("Extraction cache write failed", extra={"cache_key": key, "error": str(exc)})


def create_model_provider(config: ExtractionConfig) -> IModelProvider:
    """Model provider selected by ``LAYOUTCONV_EXTRACTION_PROVIDER``."""
    if config.provider == "bedrock":
        from layoutconv.model_providers.bedrock_provider import BedrockModelProvider

        return BedrockModelProvider(
            model_id=config.bedrock_model,
            region=config.region,
            endpoint_url=config.endpoint_url,
            max_tokens=config.max_tokens,
        )
    from layoutconv.model_providers.mock_provider import MockModelProvider

    return MockModelProvider()


def create_pdf_extractor(config: ExtractionConfig, cache: ICacheBackend | None = None) -> PdfTableExtractor:
    return PdfTableExtractor(create_model_provider(config), cache=cache, cache_ttl=config.cache_ttl_seconds)
