"""
OCR for scanned resumes using a vision-capable chat model.
"""

import logging

from openai import AsyncOpenAI
from PIL import Image

from ..exceptions import ExtractionError
from ..pdf_service import PDFService

logger = logging.getLogger(__name__)


TRANSCRIPTION_SYSTEM_PROMPT = """You are a precise document transcriber.
Transcribe ALL text visible in the resume page images, in reading order.
Keep section headings, bullet points, dates and contact details exactly as written.
Do not summarise, translate or add commentary. Output plain text only."""


async def transcribe_pages(
    images: list[Image.Image],
    *,
    client: AsyncOpenAI,
    model: str,
    pdf_service: PDFService,
) -> str:
    """
    Transcribe rendered resume pages to plain text.

    Args:
        images: Rendered pages, in order.
        client: OpenAI-compatible async client.
        model: Vision-capable model identifier.
        pdf_service: Used to encode the page images.

    Returns:
        The transcription. May be empty if the model saw no text.

    Raises:
        ExtractionError: If the request fails.
    """
    if not images:
        raise ExtractionError("No pages found in PDF")

    content: list[dict] = [
        {"type": "text", "text": f"Transcribe these {len(images)} resume page(s)."},
    ]
    for image in images:
        content.append({
            "type": "image_url",
            "image_url": {
                "url": f"data:image/png;base64,{pdf_service.image_to_base64(image)}",
                "detail": "high",
            },
        })

    logger.info("Transcribing %d page(s) with %s", len(images), model)
    try:
        response = await client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": TRANSCRIPTION_SYSTEM_PROMPT},
                {"role": "user", "content": content},
            ],
        )
    except Exception as e:
        logger.error("Vision transcription failed: %s", e)
        raise ExtractionError(f"Vision transcription failed: {e}") from e

    choices = getattr(response, "choices", None)
    if not choices:
        raise ExtractionError("Vision transcription returned no choices")
    return choices[0].message.content or ""
