"""
AI chat SaaS backend.

This package contains all application source code organized by responsibility:
- api/       : FastAPI routes and HTTP handling
- core/      : Configuration, logging, errors and cross-cutting utilities
- services/  : Business logic and orchestration
- llm/       : Hosted LLM integration
- ai/        : Model catalog and plan entitlements
- auth/      : Access-token verification against the hosted auth provider
- cache/     : Redis caching layer
- database/  : Relational, document and vector persistence
- models/    : Pydantic models for request/response schemas
"""
__version__ = "0.3.0"
