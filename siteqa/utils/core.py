"""Core utilities module for siteqa.

This module provides configuration loading, logging setup, and the small text
and URL helpers shared by the retriever, the extractors and the coordinator.

Key Components:
    - Configuration loading with Hydra and fallback mechanisms
    - Logging setup with YAML configuration support
    - Domain membership, redirect unwrapping and URL normalization
    - Whitespace collapsing and bounded truncation

Typical usage:
    from siteqa.utils.core import load_settings, setup_logging

    setup_logging()
    settings = load_settings()
"""

import os
import re
import logging
import logging.config
from typing import Optional
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse, unquote

# Third-party imports
import yaml
from omegaconf import DictConfig, OmegaConf
from hydra import compose, initialize_config_dir

# Module logger
logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "conf"

TRACKING_PARAMS = {'gclid', 'fbclid', 'msclkid', 'mc_cid', 'mc_eid', 'ref', '_ga'}

_WHITESPACE_RE = re.compile(r'\s+')


def load_config(config_path: Optional[str] = None, config_name: str = "config") -> DictConfig:
    """Load configuration using Hydra with robust fallback mechanisms.

    Attempts to load configuration using Hydra's compose mechanism. If that fails,
    falls back to direct YAML loading. Returns an empty configuration as a last resort.

    Args:
        config_path: Path to config directory or file. If ends with '.yaml',
                    treats as file path. Otherwise treats as directory path.
                    Defaults to $SITEQA_CONFIG_PATH, then "conf".
        config_name: Name of config file without extension. Defaults to "config".

    Returns:
        DictConfig: Configuration object containing the loaded configuration.
                   Returns empty config if all loading attempts fail.

    Raises:
        yaml.YAMLError: If the fallback YAML file exists but cannot be parsed.

    Example:
        >>> config = load_config("conf", "config")
        >>> domain = config.get("organization", {}).get("domain")
    """
    if config_path is None:
        config_path = os.getenv("SITEQA_CONFIG_PATH", DEFAULT_CONFIG_PATH)
        logger.debug(f"Config path was None, using '{config_path}'")

    logger.info(f"Loading configuration from path: {config_path}, name: {config_name}")

    # Handle both directory paths and file paths
    if config_path.endswith('.yaml'):
        config_dir = os.path.dirname(config_path) or "."
        config_name = os.path.splitext(os.path.basename(config_path))[0]
        logger.debug(f"Extracted config_dir: {config_dir}, config_name: {config_name} from file path")
    else:
        config_dir = config_path

    if not os.path.isabs(config_dir):
        config_dir = os.path.abspath(config_dir)

    try:
        with initialize_config_dir(config_dir=config_dir, version_base=None):
            cfg = compose(config_name=config_name)
            logger.info(f"Successfully loaded Hydra config from {config_dir}/{config_name}.yaml")
            return cfg

    except Exception as e:
        logger.warning(f"Failed to load Hydra config from '{config_dir}/{config_name}.yaml'. Using fallback.")
        logger.debug(f"Hydra loading error: {e}")

    # Fallback to basic YAML loading
    fallback_path = os.path.join(config_dir, f"{config_name}.yaml")
    if os.path.exists(fallback_path):
        with open(fallback_path, "r", encoding="utf-8") as f:
            config_dict = yaml.safe_load(f) or {}
        logger.info(f"Successfully loaded fallback YAML config from {fallback_path}")
        return OmegaConf.create(config_dict)

    logger.warning(f"Config file not found: {fallback_path}, returning empty configuration")
    return OmegaConf.create({})


def load_settings(config_path: Optional[str] = None):
    """Load the configuration and validate it into a ``SiteQAConfig``.

    Raises:
        ConfigurationError: When the loaded values fail validation.
    """
    from .validation import validate_config

    config = load_config(config_path)
    return validate_config(OmegaConf.to_container(config, resolve=True))


def setup_logging(
    logging_config_path: Optional[str] = None,
    default_level: int = logging.INFO,
    log_dir: Optional[str] = None
) -> None:
    """Set up logging configuration from YAML file with robust fallback handling.

    Configures the logging system using a YAML configuration file. If the file
    is missing, malformed, or inaccessible, falls back to a basic logging setup
    to ensure the application can continue running.

    Args:
        logging_config_path: Path to YAML file containing logging configuration.
                           Defaults to $SITEQA_LOGGING_CONFIG, then "conf/logging.yaml".
        default_level: Logging level for fallback configuration.
        log_dir: Optional directory to redirect log files. If provided,
                all file handlers will write to this directory instead of
                their configured paths. Directory will be created if needed.
    """
    if logging_config_path is None:
        logging_config_path = os.getenv("SITEQA_LOGGING_CONFIG", "conf/logging.yaml")

    try:
        with open(logging_config_path, "rt", encoding="utf-8") as file:
            log_config = yaml.safe_load(file)

        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
            for handler_config in log_config.get("handlers", {}).values():
                if "filename" in handler_config:
                    filename = os.path.basename(handler_config["filename"])
                    handler_config["filename"] = os.path.join(log_dir, filename)
        else:
            for handler_config in log_config.get("handlers", {}).values():
                if "filename" in handler_config:
                    os.makedirs(os.path.dirname(handler_config["filename"]) or ".", exist_ok=True)

        logging.config.dictConfig(log_config)
        logging.getLogger(__name__).info(f"Configured logging from {logging_config_path}")

    except (FileNotFoundError, PermissionError) as file_err:
        logging.basicConfig(
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            level=default_level,
        )
        logging.getLogger().warning(
            f"Logging config file not found or inaccessible: {logging_config_path}. Using basic config."
        )
        logging.getLogger().debug(f"File error details: {file_err}")

    except (yaml.YAMLError, ValueError, TypeError, AttributeError) as parse_err:
        logging.basicConfig(
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            level=default_level,
        )
        logging.getLogger().warning(
            f"Error parsing logging config from {logging_config_path}. Using basic config."
        )
        logging.getLogger().debug(f"Parse error details: {parse_err}")


def collapse_whitespace(text: str) -> str:
    """Collapse every run of whitespace into a single space and trim."""
    return _WHITESPACE_RE.sub(' ', text or '').strip()


def truncate_text(text: str, max_length: int) -> str:
    """Bound ``text`` to ``max_length`` characters. Overflow is cut, never an error."""
    if max_length <= 0:
        return ""
    return text[:max_length]


def is_absolute_http_url(url: Optional[str]) -> bool:
    """True for http(s) URLs with a host."""
    if not url:
        return False
    parsed = urlparse(url)
    return parsed.scheme in ('http', 'https') and bool(parsed.netloc)


def unwrap_redirect(url: str) -> str:
    """Return the target of a search-engine redirect link, or ``url`` unchanged.

    Handles Google ``/url?q=...`` (and ``url=``) and DuckDuckGo ``/l/?uddg=...``.
    """
    if not url:
        return url
    parsed = urlparse(url)
    host = (parsed.hostname or '').lower()
    params = dict(parse_qsl(parsed.query))

    if 'google.' in host and parsed.path == '/url':
        target = params.get('q') or params.get('url')
    elif 'duckduckgo.com' in host and parsed.path.startswith('/l/'):
        target = params.get('uddg')
    else:
        return url

    if target and is_absolute_http_url(unquote(target)):
        return unquote(target)
    return url


def belongs_to_domain(url: str, domain: str) -> bool:
    """Check whether ``url`` is served by ``domain`` or one of its subdomains.

    Example:
        >>> belongs_to_domain("https://www.example.edu/fees.pdf", "example.edu")
        True
        >>> belongs_to_domain("https://example.edu.evil.com/", "example.edu")
        False
    """
    if not is_absolute_http_url(url):
        return False
    host = (urlparse(url).hostname or '').lower().rstrip('.')
    domain = domain.lower().strip()
    return host == domain or host.endswith('.' + domain)


def normalize_url(url: str) -> str:
    """Build the deduplication key for a URL.

    Two URLs that differ only in fragment, tracking query parameters
    (``utm_*``, ``gclid``, ...), host case, a leading ``www.`` or a trailing
    slash map to the same key.
    """
    parsed = urlparse(url.strip())
    host = (parsed.hostname or '').lower()
    if host.startswith('www.'):
        host = host[4:]
    netloc = host if parsed.port is None else f"{host}:{parsed.port}"

    query = urlencode([
        (key, value) for key, value in parse_qsl(parsed.query, keep_blank_values=True)
        if not key.lower().startswith('utm_') and key.lower() not in TRACKING_PARAMS
    ])
    path = parsed.path.rstrip('/') or '/'

    return urlunparse((parsed.scheme.lower(), netloc, path, '', query, ''))


def url_suffix(url: str) -> str:
    """Lower-cased file extension of the URL path ('' when there is none)."""
    path = urlparse(url).path
    _, ext = os.path.splitext(path)
    return ext.lower()
