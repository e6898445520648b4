"""
Utilities package for siteqa.
Contains configuration and logging setup, URL/text helpers, async helpers and
performance tracking.
"""

# Core utilities (configuration, logging, URL and text helpers)
from .core import (
    load_config, load_settings, setup_logging, belongs_to_domain, unwrap_redirect,
    normalize_url, collapse_whitespace, truncate_text
)

# Async helpers
from .async_helpers import async_timeout, make_async

# Performance tracking
from .performance import get_metrics_collector, performance_context

__all__ = [
    # Core utilities
    'load_config',
    'load_settings',
    'setup_logging',
    'belongs_to_domain',
    'unwrap_redirect',
    'normalize_url',
    'collapse_whitespace',
    'truncate_text',

    # Async helpers
    'async_timeout',
    'make_async',

    # Performance
    'get_metrics_collector',
    'performance_context'
]
