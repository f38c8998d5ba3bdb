"""
Routers package for FastAPI endpoints.

Organized by domain:
- ask: Question answering about a resume
- resumes: Stored resume listing, detail and deletion
- upload: Resume upload
"""

from . import ask, resumes, upload

__all__ = ["ask", "resumes", "upload"]
