"""
Unit tests for core utilities - configuration loading, logging setup and URL helpers.
"""

import os
import tempfile
from unittest.mock import patch

import pytest
import yaml

from siteqa.interfaces.base_interfaces import ConfigurationError
from siteqa.utils.core import (
    belongs_to_domain,
    collapse_whitespace,
    load_config,
    load_settings,
    normalize_url,
    setup_logging,
    truncate_text,
    unwrap_redirect,
    url_suffix,
)


class TestLoadConfig:
    """Test configuration loading with file and environment variable support."""

    def test_load_config_from_directory(self, temp_config_dir):
        config = load_config(temp_config_dir)

        assert config['organization']['domain'] == 'test.edu'
        assert config['retrieval']['max_links'] == 4

    def test_load_config_from_yaml_path(self, temp_config_dir):
        config = load_config(os.path.join(temp_config_dir, 'config.yaml'))
        assert config['cache']['ttl_seconds'] == 120

    def test_load_config_missing_file(self):
        """Missing configuration yields an empty config."""
        with tempfile.TemporaryDirectory() as tmp_dir:
            config = load_config(os.path.join(tmp_dir, 'absent.yaml'))
        assert len(config) == 0

    def test_load_config_env_path_override(self, temp_config_dir):
        """SITEQA_CONFIG_PATH is used when no path is given."""
        with patch.dict(os.environ, {'SITEQA_CONFIG_PATH': temp_config_dir}):
            config = load_config()
        assert config['organization']['name'] == 'Test College'

    def test_load_settings_validates(self, temp_config_dir):
        settings = load_settings(temp_config_dir)

        assert settings.organization.domain == 'test.edu'
        assert settings.organization.base_url == 'https://www.test.edu'
        # Untouched sections keep their defaults
        assert settings.pdf.ocr_max_pages == 3

    def test_load_settings_invalid_values(self):
        with tempfile.TemporaryDirectory() as tmp_dir:
            with open(os.path.join(tmp_dir, 'config.yaml'), 'w') as f:
                yaml.safe_dump({'retrieval': {'max_links': 0}}, f)

            with pytest.raises(ConfigurationError):
                load_settings(tmp_dir)


class TestSetupLogging:

    def test_missing_logging_config_falls_back(self):
        with patch('logging.basicConfig') as basic_config:
            setup_logging('/nonexistent/logging.yaml')
        basic_config.assert_called_once()

    def test_logging_config_redirects_log_dir(self):
        log_config = {
            'version': 1,
            'disable_existing_loggers': False,
            'handlers': {
                'file': {'class': 'logging.FileHandler', 'filename': 'logs/siteqa.log'},
            },
            'root': {'level': 'INFO', 'handlers': ['file']},
        }
        with tempfile.TemporaryDirectory() as tmp_dir:
            config_path = os.path.join(tmp_dir, 'logging.yaml')
            with open(config_path, 'w') as f:
                yaml.safe_dump(log_config, f)
            log_dir = os.path.join(tmp_dir, 'out')

            with patch('logging.config.dictConfig') as dict_config:
                setup_logging(config_path, log_dir=log_dir)

            applied = dict_config.call_args[0][0]
            assert applied['handlers']['file']['filename'] == os.path.join(log_dir, 'siteqa.log')
            assert os.path.isdir(log_dir)


class TestDomainMembership:

    @pytest.mark.parametrize("url", [
        "https://example.edu/",
        "https://www.example.edu/en/fees",
        "http://library.example.edu/docs/guide.pdf",
        "https://EXAMPLE.edu/upper",
    ])
    def test_accepts_domain_and_subdomains(self, url):
        assert belongs_to_domain(url, "example.edu")

    @pytest.mark.parametrize("url", [
        "https://example.edu.attacker.com/",
        "https://notexample.edu/",
        "https://google.com/search?q=example.edu",
        "javascript:void(0)",
        "/relative/path",
        "",
    ])
    def test_rejects_everything_else(self, url):
        assert not belongs_to_domain(url, "example.edu")


class TestUrlHelpers:

    def test_unwrap_google_redirect(self):
        wrapped = "https://www.google.com/url?q=https%3A%2F%2Fexample.edu%2Ffees&sa=U"
        assert unwrap_redirect(wrapped) == "https://example.edu/fees"

    def test_unwrap_duckduckgo_redirect(self):
        wrapped = "https://duckduckgo.com/l/?uddg=https%3A%2F%2Fexample.edu%2Fadmissions&rut=abc"
        assert unwrap_redirect(wrapped) == "https://example.edu/admissions"

    def test_plain_url_unchanged(self):
        assert unwrap_redirect("https://example.edu/a") == "https://example.edu/a"

    def test_normalize_url_ignores_fragment_tracking_and_slash(self):
        variants = [
            "https://example.edu/fees",
            "https://example.edu/fees/",
            "https://example.edu/fees#table",
            "https://www.example.edu/fees?utm_source=google&utm_medium=cpc",
            "https://Example.edu/fees?gclid=xyz",
        ]
        assert len({normalize_url(v) for v in variants}) == 1

    def test_normalize_url_keeps_meaningful_query(self):
        assert normalize_url("https://example.edu/p?id=1") != normalize_url("https://example.edu/p?id=2")

    def test_url_suffix(self):
        assert url_suffix("https://example.edu/files/Fees.PDF") == ".pdf"
        assert url_suffix("https://example.edu/en/fees") == ""


class TestTextHelpers:

    def test_collapse_whitespace(self):
        assert collapse_whitespace("  a \n\n b\t c  ") == "a b c"

    def test_truncate_text_never_errors(self):
        assert truncate_text("abcdef", 3) == "abc"
        assert truncate_text("abc", 10) == "abc"
        assert truncate_text("abc", 0) == ""
