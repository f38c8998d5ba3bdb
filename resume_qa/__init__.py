"""
Resume Q&A Backend Application.

A FastAPI service that stores PDF resumes and answers questions about
them with a chat-completion API (OpenRouter).
"""

__version__ = "1.0.0"
