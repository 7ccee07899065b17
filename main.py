"""
Main Application Entry Point

FastAPI application for chunked text and queued document translation.
"""

from core.app_factory import create_app

app = create_app()
