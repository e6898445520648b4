"""
Question-answering pipeline orchestrator.

``QAPipeline.ask`` drives one request through validation, the response
cache, domain-restricted retrieval, per-link extraction and answer
generation. All shared state (validated configuration and the response
cache) arrives through an explicitly built ``PipelineContext``.
"""

import logging
import os
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, AsyncContextManager, Callable, Dict, List, Optional
from urllib.parse import unquote, urlparse

from ..extractors.classifier import LinkClassifier
from ..extractors.html_extractor import HTMLExtractor
from ..extractors.pdf_processor import PDFProcessor
from ..interfaces.base_interfaces import (
    AnswerGenerationFailure,
    BaseAnswerGenerator,
    ExtractionUnavailable,
    RenderedPageSource,
    RetrievalExhausted,
    ValidationError,
)
from ..models import ContentSource, ExtractionOutcome, LinkKind, PipelineState, SearchResult
from ..utils.async_helpers import make_async
from ..utils.core import belongs_to_domain, load_settings
from ..utils.performance import get_metrics_collector, performance_context
from ..utils.validation import SiteQAConfig
from .cache import ResponseCache
from .query import build_query
from .retriever import DomainRetriever

logger = logging.getLogger(__name__)

PageSourceFactory = Callable[[], AsyncContextManager[RenderedPageSource]]


@dataclass
class PipelineContext:
    """Validated configuration plus the response cache shared by all requests."""

    config: SiteQAConfig
    cache: ResponseCache

    @classmethod
    def from_config(cls, config: SiteQAConfig) -> "PipelineContext":
        return cls(config=config, cache=ResponseCache.from_config(config.cache))

    @classmethod
    def from_config_path(cls, config_path: Optional[str] = None) -> "PipelineContext":
        """Load and validate configuration, then build a fresh cache for it."""
        return cls.from_config(load_settings(config_path))


def _document_title(link: SearchResult) -> str:
    name = os.path.basename(unquote(urlparse(link.url).path))
    return name or link.title or link.url


class QAPipeline:
    """Domain-restricted question answering over live web content."""

    def __init__(self,
                 context: PipelineContext,
                 page_source_factory: Optional[PageSourceFactory] = None,
                 retriever: Optional[DomainRetriever] = None,
                 generator: Optional[BaseAnswerGenerator] = None,
                 html_extractor: Optional[HTMLExtractor] = None,
                 pdf_processor: Optional[PDFProcessor] = None,
                 classifier: Optional[LinkClassifier] = None):
        """
        Initialize the pipeline.

        Every collaborator is built from the context configuration unless
        supplied, which is how tests swap in fakes.

        Args:
            context: Configuration and cache
            page_source_factory: Zero-argument callable returning an async
                context manager that yields a RenderedPageSource for one request
            retriever: Link retriever
            generator: Answer generation collaborator
            html_extractor: Webpage extractor
            pdf_processor: Document processor
            classifier: Webpage/document classifier
        """
        logger.info("Initializing QA pipeline...")

        self.context = context
        self.config = context.config
        self.cache = context.cache
        self.domain = self.config.organization.domain

        if page_source_factory is None:
            from ..rendering.playwright_source import open_browser_session

            def page_source_factory():
                return open_browser_session(self.config.browser, self.config.search.navigation_timeout)

        self.page_source_factory = page_source_factory
        self.retriever = retriever or DomainRetriever(self.config)
        self.html_extractor = html_extractor or HTMLExtractor(self.config.extraction)
        self.pdf_processor = pdf_processor or PDFProcessor(
            self.config.pdf, max_content_length=self.config.extraction.max_content_length
        )
        self.classifier = classifier or LinkClassifier(self.config.classification)

        if generator is None:
            from .generator import OllamaAnswerGenerator
            generator = OllamaAnswerGenerator(self.config)
        self.generator = generator

        self._classify = make_async(self.classifier.classify)
        self._process_pdf = make_async(self.pdf_processor.process)

        logger.info(f"QA pipeline initialized for {self.domain}")

    async def ask(self, question: str) -> Dict[str, Any]:
        """
        Answer ``question`` from content on the restricted domain.

        Args:
            question: Raw question text

        Returns:
            Response dictionary. Rejections and "no information" answers carry
            only ``answer`` and ``processingTime``; failures add ``error``.
        """
        start_time = time.time()
        state = PipelineState.VALIDATING

        try:
            with performance_context("question_validation"):
                query = build_query(question, self.config.validation)
            if not query.is_valid:
                raise ValidationError(query.reason)

            state = PipelineState.CACHE_CHECK
            cached = self.cache.get(query.text)
            if cached is not None:
                logger.info("Returning cached result")
                cached['cached'] = True
                return self._finish(PipelineState.RESPONDING, cached, start_time)

            state = PipelineState.RETRIEVING
            async with self.page_source_factory() as page_source:
                with performance_context("retrieval", question_length=len(query.text)):
                    links = await self.retriever.retrieve(page_source, query.text)
                if not links:
                    raise RetrievalExhausted(f"No links found on {self.domain} for {query.text!r}")

                state = PipelineState.EXTRACTING
                with performance_context("extraction", links=len(links)):
                    outcomes = await self.extract_all(page_source, links)

            sources = [outcome.source for outcome in outcomes if outcome.ok]
            if not sources:
                logger.info(f"None of {len(outcomes)} links produced usable content")
                return self._finish(PipelineState.NO_EVIDENCE,
                                    {'answer': self.config.message('no_content')}, start_time)

            state = PipelineState.ANSWERING
            with performance_context("answer_generation", sources=len(sources)):
                answer = await self.generator.generate(query, sources)

            state = PipelineState.RESPONDING
            response = {
                'answer': answer,
                'sources': [self._source_info(source) for source in sources],
                'processingTime': self._elapsed_ms(start_time),
                'cached': False,
                'sourceRestriction': f"Information extracted exclusively from {self.domain}",
            }
            self.cache.set(query.text, response)
            return self._finish(PipelineState.RESPONDING, response, start_time)

        except ValidationError as e:
            logger.info(f"Question rejected: {e}")
            return self._finish(PipelineState.REJECTED_INVALID,
                                {'answer': self.config.message('rejected')}, start_time)

        except RetrievalExhausted as e:
            logger.info(str(e))
            return self._finish(PipelineState.NO_EVIDENCE,
                                {'answer': self.config.message('no_results')}, start_time)

        except AnswerGenerationFailure as e:
            logger.error(f"Answer generation failed: {e}")
            return self._error_response(e, state, start_time)

        except Exception as e:
            logger.error(f"Error processing question in state {state.value}: {e}", exc_info=True)
            return self._error_response(e, state, start_time)

    async def extract_all(self, page_source: RenderedPageSource,
                          links: List[SearchResult]) -> List[ExtractionOutcome]:
        """Read every link in order with the shared page source, one outcome per link."""
        outcomes = []
        for link in links:
            outcome = await self.extract_one(page_source, link)
            if outcome.ok:
                logger.info(f"Content extracted from {link.url} ({len(outcome.source.content)} chars)")
            else:
                logger.warning(f"Skipping {link.url}: {outcome.error}")
            outcomes.append(outcome)
        return outcomes

    async def extract_one(self, page_source: RenderedPageSource, link: SearchResult) -> ExtractionOutcome:
        """
        Classify ``link`` and route it to the HTML extractor or the PDF processor.

        Never raises: every failure is carried in the returned outcome.
        """
        url = link.url
        if not belongs_to_domain(url, self.domain):
            return ExtractionOutcome(url, LinkKind.WEBPAGE,
                                     error=ExtractionUnavailable(url, f"outside {self.domain}"))

        kind = LinkKind.WEBPAGE
        try:
            kind = await self._classify(url)
            if kind is LinkKind.DOCUMENT:
                source = await self._process_pdf(url, _document_title(link))
            else:
                source = await self.html_extractor.extract(page_source, url)
        except Exception as e:
            return ExtractionOutcome(url, kind, error=ExtractionUnavailable(url, str(e)))

        if source is None:
            return ExtractionOutcome(url, kind, error=ExtractionUnavailable(url, "no content extracted"))

        minimum = self.config.extraction.min_source_length
        if len(source.content.strip()) < minimum:
            return ExtractionOutcome(
                url, kind, error=ExtractionUnavailable(url, f"content shorter than {minimum} characters")
            )
        return ExtractionOutcome(url, kind, source=source)

    def _source_info(self, source: ContentSource) -> Dict[str, str]:
        return {
            'title': source.title or os.path.basename(urlparse(source.url).path) or source.url,
            'url': source.url,
            'type': source.source_type,
            'domain': self.domain,
        }

    @staticmethod
    def _elapsed_ms(start_time: float) -> int:
        return int((time.time() - start_time) * 1000)

    def _finish(self, state: PipelineState, response: Dict[str, Any], start_time: float) -> Dict[str, Any]:
        response['processingTime'] = self._elapsed_ms(start_time)
        logger.info(f"Request finished in state {state.value} after {response['processingTime']}ms")
        return response

    def _error_response(self, error: Exception, state: PipelineState, start_time: float) -> Dict[str, Any]:
        response = {
            'answer': self.config.message('error'),
            'error': str(error),
        }
        return self._finish(state, response, start_time)

    def cache_stats(self) -> Dict[str, int]:
        """Hit/miss counters and live key count of the response cache."""
        return self.cache.stats()

    def clear_cache(self) -> None:
        self.cache.clear()

    def health_check(self) -> Dict[str, Any]:
        """
        Report service status.

        Returns:
            Status, timestamp, target domain, cache statistics and per-stage timings
        """
        return {
            'status': 'healthy',
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'targetDomain': self.domain,
            'cacheStats': self.cache_stats(),
            'performance': get_metrics_collector().summary(),
        }
