"""
Services package for the Resume Q&A application.

Contains:
- pdf_service: Local PDF text parsing and page rendering
- text_extractor: Provider-selectable resume text extraction
- ai: Chat-completion answering with ordered model fallback
- storage_service: Database and Supabase resume stores
"""

from .ai import AnswerService
from .pdf_service import PDFService
from .text_extractor import TextExtractor

__all__ = ["AnswerService", "PDFService", "TextExtractor"]
