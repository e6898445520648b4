"""
Pydantic schemas for API request/response validation.
Defines the wire format of the question-answering service.

Field names follow the JSON the service has always produced
(``processingTime``, ``cacheStats``...), so they are camelCase.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class AskRequest(BaseModel):
    """Request model for questions."""

    question: str = Field("", description="The user's question")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "question": "What are the tuition fees?"
            }
        }
    )


class SourceInfo(BaseModel):
    """A source the answer was built from."""

    title: str = Field(..., description="Page title or document file name")
    url: str = Field(..., description="Source URL on the restricted domain")
    type: str = Field(..., description="'webpage' or 'pdf'")
    domain: str = Field(..., description="Restricted domain the source belongs to")


class AskResponse(BaseModel):
    """
    Response model for questions.

    Rejections and "no information found" answers carry only ``answer`` and
    ``processingTime``; failed requests add ``error``.
    """

    answer: str = Field(..., description="Generated answer or explanatory message")
    sources: Optional[List[SourceInfo]] = Field(None, description="Sources used for the answer")
    processingTime: int = Field(..., description="Request processing time in milliseconds")
    cached: Optional[bool] = Field(None, description="True when served from the response cache")
    sourceRestriction: Optional[str] = Field(None, description="Statement of the evidence restriction")
    error: Optional[str] = Field(None, description="Error message if any")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "answer": "Tuition fees for undergraduate programs are...",
                "sources": [
                    {
                        "title": "Tuition Fees",
                        "url": "https://final.edu.tr/en/fees",
                        "type": "webpage",
                        "domain": "final.edu.tr"
                    }
                ],
                "processingTime": 18342,
                "cached": False,
                "sourceRestriction": "Information extracted exclusively from final.edu.tr"
            }
        }
    )


class CacheStats(BaseModel):
    """Response cache counters."""

    hits: int = Field(..., description="Cache hits since start or last clear")
    misses: int = Field(..., description="Cache misses since start or last clear")
    keys: int = Field(..., description="Live cached questions")
    ttlSeconds: int = Field(..., description="Entry time to live")


class HealthResponse(BaseModel):
    """Response model for health checks."""

    status: str = Field(..., description="Overall health status")
    timestamp: str = Field(..., description="ISO-8601 time of the check")
    targetDomain: str = Field(..., description="Restricted domain")
    cacheStats: CacheStats = Field(..., description="Response cache counters")
    performance: Dict[str, Any] = Field(default_factory=dict, description="Per-stage timing summary")


class MessageResponse(BaseModel):
    """Plain acknowledgement."""

    message: str


class ErrorResponse(BaseModel):
    """Failure outside ``/ask``: a readable answer pointing to the contact channel, plus the cause."""

    answer: str = Field(..., description="Human-readable explanation with the organization's contact")
    error: str = Field(..., description="What went wrong")
