"""
Domain-restricted question answering package.

This package provides modular components for:
- Question validation and language detection
- Link retrieval through scraped search engines with a direct-crawl fallback
- A TTL response cache
- Answer generation with a local Ollama model
- Complete pipeline orchestration
"""

from .cache import ResponseCache
from .retriever import DomainRetriever
from .pipeline import PipelineContext, QAPipeline

__all__ = ['ResponseCache', 'DomainRetriever', 'PipelineContext', 'QAPipeline']
