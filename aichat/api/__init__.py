"""
API module - FastAPI routes and HTTP handling.

This module handles:
- Request validation and parsing
- Authentication and rate-limit dependencies
- Error rendering
- Route definitions

The application object lives in aichat.api.main.
"""
