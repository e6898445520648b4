"""
Shared fixtures for the siteqa test suite.

Provides a validated configuration tuned for tests (no query delay, no HEAD
requests), a pipeline context and a temporary config directory.
"""

import os
import tempfile

import pytest
import yaml

from siteqa.rag.cache import ResponseCache
from siteqa.rag.pipeline import PipelineContext
from siteqa.utils.validation import SiteQAConfig


@pytest.fixture
def settings():
    """Validated configuration for tests."""
    return SiteQAConfig(**{
        'organization': {
            'name': 'Example University',
            'domain': 'example.edu',
            'base_url': 'https://example.edu',
            'contact': 'info@example.edu',
        },
        'search': {'query_delay': 0},
        'retrieval': {'crawl_paths': ['', '/en'], 'max_links': 8},
        'classification': {'probe_content_type': False},
    })


@pytest.fixture
def pipeline_context(settings):
    return PipelineContext(config=settings, cache=ResponseCache(ttl_seconds=60))


@pytest.fixture
def temp_config_dir():
    """Temporary config directory holding a config.yaml."""
    config = {
        'organization': {
            'name': 'Test College',
            'domain': 'test.edu',
            'base_url': 'https://www.test.edu',
        },
        'retrieval': {'max_links': 4},
        'cache': {'ttl_seconds': 120},
    }
    with tempfile.TemporaryDirectory() as tmp_dir:
        with open(os.path.join(tmp_dir, 'config.yaml'), 'w', encoding='utf-8') as f:
            yaml.safe_dump(config, f)
        yield tmp_dir
