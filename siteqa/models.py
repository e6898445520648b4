"""
Per-request data model for the retrieval pipeline.

All of these are created when a request starts and discarded when it ends;
only the response dictionary built from them outlives the request, inside
the cache.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional


class LinkKind(str, Enum):
    """How a candidate link must be read."""

    WEBPAGE = "webpage"
    DOCUMENT = "document"


class PipelineState(str, Enum):
    """States a request passes through in the coordinator."""

    VALIDATING = "validating"
    CACHE_CHECK = "cache_check"
    RETRIEVING = "retrieving"
    EXTRACTING = "extracting"
    ANSWERING = "answering"
    RESPONDING = "responding"
    REJECTED_INVALID = "rejected_invalid"
    NO_EVIDENCE = "no_evidence"


@dataclass(frozen=True)
class Query:
    """A user question with its derived language tag and validity."""

    text: str
    language: str = "en"
    is_valid: bool = True
    reason: Optional[str] = None


@dataclass(frozen=True)
class SearchResult:
    """A candidate link returned by a search backend or the crawler."""

    url: str
    title: str = ""


@dataclass(frozen=True)
class ContentSource:
    """
    Normalized unit of evidence handed to the answer generator.

    ``metadata`` always carries ``title`` and ``type``; webpages add
    ``description``/``keywords``, documents add ``pageCount`` and ``ocr``.
    """

    url: str
    content: str
    metadata: Mapping[str, Any] = field(default_factory=dict)
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def __post_init__(self):
        # Read-only view over a private copy of the caller's dict
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))

    @property
    def title(self) -> str:
        return self.metadata.get("title") or ""

    @property
    def source_type(self) -> str:
        return self.metadata.get("type") or LinkKind.WEBPAGE.value


@dataclass(frozen=True)
class ExtractionOutcome:
    """Result of reading one link: either a source or the reason it is unavailable."""

    url: str
    kind: LinkKind
    source: Optional[ContentSource] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.source is not None and self.error is None
