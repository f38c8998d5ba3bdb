"""
Local PDF processing: text layer parsing with pypdf and page rendering
with pdf2image (poppler) for OCR.
"""

import base64
import io
import logging
from typing import BinaryIO

from PIL import Image
from pypdf import PdfReader
from pypdf.errors import PdfReadError

from .exceptions import ExtractionError

logger = logging.getLogger(__name__)


def _read_bytes(file_bytes: bytes | BinaryIO) -> bytes:
    if hasattr(file_bytes, "read"):
        return file_bytes.read()
    return file_bytes


class PDFService:
    """
    Service for local PDF processing operations.

    Text extraction reads the PDF text layer with pypdf. Scanned resumes
    have no text layer; for those, pages are rendered to images with
    pdf2image so a vision model can transcribe them.
    """

    def __init__(self, dpi: int = 150, image_format: str = "PNG", max_pages: int = 5):
        """
        Initialize the PDF service.

        Args:
            dpi: Resolution for PDF to image conversion.
            image_format: Output image format (PNG recommended for OCR).
            max_pages: Maximum number of pages rendered for OCR.
        """
        self.dpi = dpi
        self.image_format = image_format
        self.max_pages = max_pages

    def validate_pdf(self, file_bytes: bytes | BinaryIO) -> bytes:
        """
        Check that the input looks like a PDF and return its bytes.

        Raises:
            ExtractionError: If the input is empty or lacks the PDF header.
        """
        pdf_bytes = _read_bytes(file_bytes)

        if not pdf_bytes:
            raise ExtractionError("Empty PDF file provided")

        # Validate PDF magic bytes
        if not pdf_bytes[:4] == b"%PDF":
            raise ExtractionError("Invalid PDF file: does not start with PDF header")

        return pdf_bytes

    def extract_text(self, file_bytes: bytes | BinaryIO) -> str:
        """
        Extract the text layer of every page.

        Args:
            file_bytes: PDF file as bytes or file-like object.

        Returns:
            Page texts joined by blank lines. May be empty for scanned PDFs.

        Raises:
            ExtractionError: If the PDF cannot be parsed.
        """
        pdf_bytes = self.validate_pdf(file_bytes)

        try:
            reader = PdfReader(io.BytesIO(pdf_bytes))
            text_parts = []
            for page in reader.pages:
                page_text = page.extract_text()
                if page_text:
                    text_parts.append(page_text)
        except PdfReadError as e:
            logger.error("PDF read error: %s", e)
            raise ExtractionError(f"Invalid or corrupted PDF file: {e}") from e
        except Exception as e:
            logger.exception("Unexpected error during PDF text extraction")
            raise ExtractionError(f"PDF text extraction failed: {e}") from e

        logger.info(
            "Extracted %d characters from %d page(s)",
            sum(len(p) for p in text_parts),
            len(reader.pages),
        )
        return "\n\n".join(text_parts)

    def convert_pdf_to_images(self, file_bytes: bytes | BinaryIO) -> list[Image.Image]:
        """
        Render the first ``max_pages`` pages to PIL Images.

        Pages beyond the limit are skipped with a warning.

        Raises:
            ExtractionError: If conversion fails for any reason.
        """
        try:
            # Import here to provide clear error if poppler bindings are missing
            from pdf2image import convert_from_bytes, pdfinfo_from_bytes
            from pdf2image.exceptions import (
                PDFInfoNotInstalledError,
                PDFPageCountError,
                PDFSyntaxError,
            )
        except ImportError as e:
            logger.error("pdf2image not installed: %s", e)
            raise ExtractionError(
                "pdf2image library not installed. Run: pip install pdf2image"
            ) from e

        pdf_bytes = self.validate_pdf(file_bytes)

        try:
            page_count = int(pdfinfo_from_bytes(pdf_bytes)["Pages"])
            if page_count > self.max_pages:
                logger.warning(
                    "PDF has %d pages; only the first %d are rendered for OCR",
                    page_count,
                    self.max_pages,
                )

            logger.info(
                "Converting PDF to images (dpi=%d, max_pages=%d)",
                self.dpi,
                self.max_pages,
            )
            images = convert_from_bytes(
                pdf_bytes,
                dpi=self.dpi,
                fmt=self.image_format.lower(),
                first_page=1,
                last_page=self.max_pages,
            )
            logger.info("Successfully converted %d page(s)", len(images))
            return images

        except PDFInfoNotInstalledError as e:
            logger.error("Poppler not installed: %s", e)
            raise ExtractionError(
                "Poppler not installed. Install poppler-utils: "
                "brew install poppler (macOS) or apt-get install poppler-utils (Linux)"
            ) from e

        except PDFPageCountError as e:
            logger.error("Could not get PDF page count: %s", e)
            raise ExtractionError(f"Could not determine PDF page count: {e}") from e

        except PDFSyntaxError as e:
            logger.error("PDF syntax error: %s", e)
            raise ExtractionError(f"Invalid or corrupted PDF file: {e}") from e

        except Exception as e:
            logger.exception("Unexpected error during PDF conversion")
            raise ExtractionError(f"PDF conversion failed: {e}") from e

    def image_to_base64(self, image: Image.Image, max_size: int = 2048) -> str:
        """
        Encode a PIL Image as base64 PNG for a vision model.

        Images larger than ``max_size`` on their longest side are downscaled.
        """
        if max(image.size) > max_size:
            ratio = max_size / max(image.size)
            new_size = (int(image.size[0] * ratio), int(image.size[1] * ratio))
            image = image.resize(new_size, Image.Resampling.LANCZOS)

        buffer = io.BytesIO()
        image.save(buffer, format="PNG", optimize=True)
        buffer.seek(0)
        return base64.b64encode(buffer.getvalue()).decode("utf-8")


# Singleton instance for convenience
_pdf_service: PDFService | None = None


def get_pdf_service() -> PDFService:
    """Get or create the PDF service singleton."""
    global _pdf_service
    if _pdf_service is None:
        _pdf_service = PDFService()
    return _pdf_service
