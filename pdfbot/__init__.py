"""
PDF Bot Studio

A multi-tenant "chat with your PDF" backend: admins create bots and upload
PDFs, end users chat with a bot using their own Google Gemini API key.

Features:
- PDF text extraction at upload time
- Whole-document context with per-file markers
- Per-request end-user credentials (never stored)
- Optional chat history
"""

__version__ = "1.0.0"
__author__ = "PDF Bot Studio Team"
__description__ = "Create chatbots over your PDF documents"
