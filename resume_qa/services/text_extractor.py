"""
Resume text extraction.

Turns a PDF (bytes, an http(s) URL or an inline data URI) into plain text
with the provider chosen at deployment:

- structured: Nanonets/DocStrange extraction API returning flat JSON fields
- text_api: a plain PDF-to-text HTTP endpoint
- pypdf: the PDF text layer, parsed in process
- vision: pages rendered locally and transcribed by a vision model
- stub: fixed placeholder text

Whatever the provider, output that is empty after stripping whitespace is an
``ExtractionError``. Nothing is retried here.
"""

import asyncio
import base64
import binascii
import json
import logging
from typing import Any
from urllib.parse import unquote_to_bytes

import httpx
from openai import AsyncOpenAI

from ..config import ExtractionProvider, Settings, get_settings
from .ai.transcription import transcribe_pages
from .exceptions import ExtractionError, NotFoundError, UnconfiguredError
from .pdf_service import PDFService, get_pdf_service

logger = logging.getLogger(__name__)

PLACEHOLDER_TEXT = (
    "Resume text extraction is not configured. "
    "The uploaded resume could not be read."
)


def decode_data_uri(uri: str) -> bytes:
    """
    Decode a ``data:[<mediatype>][;base64],<data>`` URI.

    Raises:
        ExtractionError: If the URI is malformed.
    """
    header, sep, payload = uri.partition(",")
    if not sep or not header.startswith("data:"):
        raise ExtractionError("Malformed data URI")
    if header.endswith(";base64"):
        try:
            return base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ExtractionError(f"Invalid base64 in data URI: {e}") from e
    return unquote_to_bytes(payload)


def ensure_text(text: str | None) -> str:
    """Reject empty or whitespace-only extraction output."""
    if not text or not text.strip():
        raise ExtractionError("No text could be extracted from the resume")
    return text.strip()


def _is_empty_structure(value: Any) -> bool:
    return isinstance(value, (dict, list)) and not value


class TextExtractor:
    """Extracts resume text using one configured provider."""

    def __init__(
        self,
        provider: ExtractionProvider,
        *,
        api_key: str | None = None,
        extraction_api_url: str | None = None,
        text_api_url: str | None = None,
        text_api_key: str | None = None,
        vision_client: AsyncOpenAI | None = None,
        vision_model: str | None = None,
        timeout: float = 30.0,
        pdf_service: PDFService | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize the extractor.

        Args:
            provider: Which extraction strategy to use.
            api_key: Bearer key for the structured extraction API.
            extraction_api_url: Structured extraction endpoint.
            text_api_url: Plain PDF-to-text endpoint.
            text_api_key: Optional bearer key for the text endpoint.
            vision_client: Client used by the vision provider.
            vision_model: Vision-capable model identifier.
            timeout: Timeout in seconds for downloads and provider calls.
            pdf_service: Local PDF helper; defaults to the shared instance.
            transport: httpx transport override (tests use MockTransport).
        """
        self.provider = provider
        self.api_key = api_key
        self.extraction_api_url = extraction_api_url
        self.text_api_url = text_api_url
        self.text_api_key = text_api_key
        self.vision_client = vision_client
        self.vision_model = vision_model
        self.timeout = timeout
        self.pdf_service = pdf_service or get_pdf_service()
        self.transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> "TextExtractor":
        provider = settings.resolved_extraction_provider
        vision_client = None
        if provider == "vision" and settings.openrouter_api_key:
            vision_client = AsyncOpenAI(
                api_key=settings.openrouter_api_key,
                base_url=settings.openrouter_base_url,
            )
        logger.info("Text extraction provider: %s", provider)
        return cls(
            provider,
            api_key=settings.docstrange_api_key,
            extraction_api_url=settings.extraction_api_url,
            text_api_url=settings.text_api_url,
            text_api_key=settings.text_api_key,
            vision_client=vision_client,
            vision_model=settings.vision_model,
            timeout=settings.http_timeout_seconds,
            pdf_service=PDFService(max_pages=settings.vision_max_pages),
        )

    def _http_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=True,
            transport=self.transport,
        )

    async def fetch_pdf(self, url: str) -> bytes:
        """
        Load PDF bytes from a data URI or an http(s) URL.

        Raises:
            NotFoundError: If the URL answers 404.
            ExtractionError: On any other download failure.
        """
        if url.startswith("data:"):
            return decode_data_uri(url)

        if not url.startswith(("http://", "https://")):
            raise NotFoundError(f"Unsupported resume URL: {url[:100]}")

        logger.info("Downloading resume from %s", url)
        try:
            async with self._http_client() as client:
                response = await client.get(url)
        except httpx.HTTPError as e:
            logger.error("Resume download failed: %s", e)
            raise ExtractionError(f"Failed to fetch PDF: {e}") from e

        if response.status_code == 404:
            raise NotFoundError(f"Resume file not found at {url}")
        if response.is_error:
            raise ExtractionError(f"Failed to fetch PDF: HTTP {response.status_code}")
        return response.content

    async def extract(self, source: bytes | str) -> str:
        """
        Extract text from PDF bytes or a URL.

        Returns:
            Non-empty, stripped text.

        Raises:
            ExtractionError: If extraction fails or produces no text.
            NotFoundError: If a URL source does not exist.
            UnconfiguredError: If the provider is missing a required setting.
        """
        pdf_bytes = await self.fetch_pdf(source) if isinstance(source, str) else source
        pdf_bytes = self.pdf_service.validate_pdf(pdf_bytes)

        logger.info("Extracting text (%s, %d bytes)", self.provider, len(pdf_bytes))

        if self.provider == "structured":
            text = await self._extract_structured(pdf_bytes)
        elif self.provider == "text_api":
            text = await self._extract_text_api(pdf_bytes)
        elif self.provider == "pypdf":
            text = await asyncio.to_thread(self.pdf_service.extract_text, pdf_bytes)
        elif self.provider == "vision":
            text = await self._extract_vision(pdf_bytes)
        elif self.provider == "stub":
            logger.warning("Using placeholder resume text: no extraction provider configured")
            text = PLACEHOLDER_TEXT
        else:
            raise UnconfiguredError(f"Unknown extraction provider: {self.provider}")

        return ensure_text(text)

    async def _extract_structured(self, pdf_bytes: bytes) -> str:
        """Send the PDF to the structured extraction API and flatten its JSON."""
        if not self.api_key:
            raise UnconfiguredError(
                "Extraction API key not provided. Set DOCSTRANGE_API_KEY environment variable."
            )

        try:
            async with self._http_client() as client:
                response = await client.post(
                    self.extraction_api_url,
                    headers={"Authorization": f"Bearer {self.api_key}"},
                    files={"file": ("resume.pdf", pdf_bytes, "application/pdf")},
                    data={"output_type": "flat-json"},
                )
        except httpx.HTTPError as e:
            raise ExtractionError(f"Extraction API request failed: {e}") from e

        if response.is_error:
            raise ExtractionError(
                f"Extraction API error (HTTP {response.status_code}): {response.text[:500]}"
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise ExtractionError(f"Invalid JSON from extraction API: {e}") from e

        data = payload.get("data") if isinstance(payload, dict) else None
        content = data.get("content") if isinstance(data, dict) else None
        if not content:
            logger.warning("Extraction API returned no content")
            raise ExtractionError("Extraction API returned no content")

        if isinstance(content, str):
            try:
                parsed = json.loads(content)
            except ValueError:
                # Some output types return plain text rather than a JSON string
                return content
        else:
            parsed = content

        if _is_empty_structure(parsed):
            return ""
        return json.dumps(parsed, ensure_ascii=False)

    async def _extract_text_api(self, pdf_bytes: bytes) -> str:
        """Send the PDF to a plain PDF-to-text endpoint."""
        if not self.text_api_url:
            raise UnconfiguredError(
                "Text conversion API URL not provided. Set TEXT_API_URL environment variable."
            )

        headers = {}
        if self.text_api_key:
            headers["Authorization"] = f"Bearer {self.text_api_key}"

        try:
            async with self._http_client() as client:
                response = await client.post(
                    self.text_api_url,
                    headers=headers,
                    files={"file": ("resume.pdf", pdf_bytes, "application/pdf")},
                )
        except httpx.HTTPError as e:
            raise ExtractionError(f"Text conversion API request failed: {e}") from e

        if response.is_error:
            raise ExtractionError(
                f"Text conversion API error (HTTP {response.status_code}): {response.text[:500]}"
            )

        if "application/json" in response.headers.get("content-type", ""):
            try:
                payload = response.json()
            except ValueError as e:
                raise ExtractionError(f"Invalid JSON from text conversion API: {e}") from e
            text = payload.get("text") if isinstance(payload, dict) else None
            return text if isinstance(text, str) else ""
        return response.text

    async def _extract_vision(self, pdf_bytes: bytes) -> str:
        """Render pages locally and transcribe them with a vision model."""
        if self.vision_client is None or not self.vision_model:
            raise UnconfiguredError(
                "Vision extraction needs OPENROUTER_API_KEY and VISION_MODEL to be set."
            )
        images = await asyncio.to_thread(self.pdf_service.convert_pdf_to_images, pdf_bytes)
        return await transcribe_pages(
            images,
            client=self.vision_client,
            model=self.vision_model,
            pdf_service=self.pdf_service,
        )


# Singleton instance for convenience
_text_extractor: TextExtractor | None = None


def get_text_extractor() -> TextExtractor:
    """Get or create the text extractor singleton."""
    global _text_extractor
    if _text_extractor is None:
        _text_extractor = TextExtractor.from_settings(get_settings())
    return _text_extractor
