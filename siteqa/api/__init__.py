"""
API schemas and models for the QA service.
Contains Pydantic models for request/response validation.
"""

from .schemas import (
    AskRequest, AskResponse, SourceInfo, HealthResponse, CacheStats, MessageResponse, ErrorResponse
)

__all__ = ['AskRequest', 'AskResponse', 'SourceInfo', 'HealthResponse', 'CacheStats', 'MessageResponse',
           'ErrorResponse']
