"""
Configuration validation utilities using Pydantic.

This module validates the raw configuration loaded by Hydra/YAML before the
pipeline is built, so that bad values fail at startup instead of halfway
through a request. Every field has a default: an empty configuration is a
valid one.

Classes:
    OrganizationConfig: The restricted domain and who answers for it
    QuestionValidationConfig: Relevance keywords and language hints
    SearchConfig: Search backends, query templates and timeouts
    RetrievalConfig: Link limit and direct-crawl seed paths
    ExtractionConfig: HTML extraction selectors and length limits
    PDFConfig: Download bound and OCR settings
    SiteQAConfig: Top-level configuration
"""

from typing import Any, Dict, List

from pydantic import BaseModel, Field, field_validator, model_validator

from ..interfaces.base_interfaces import ConfigurationError


SUPPORTED_BACKENDS = ['google', 'duckduckgo']


class OrganizationConfig(BaseModel):
    """The organization whose domain restricts all evidence."""

    name: str = Field("Final International University", description="Organization display name")
    domain: str = Field("final.edu.tr", description="Restricted web domain")
    base_url: str = Field("https://final.edu.tr", description="Root URL used for the direct crawl")
    contact: str = Field("+90 392 630 1000 or info@final.edu.tr", description="Direct contact channel")

    @field_validator('domain')
    @classmethod
    def validate_domain(cls, v):
        """Normalize the domain to a bare lower-case host name."""
        v = v.strip().lower()
        if not v or '/' in v or ' ' in v:
            raise ValueError("domain must be a bare host name such as 'example.edu'")
        return v.removeprefix('www.')

    @field_validator('base_url')
    @classmethod
    def validate_base_url(cls, v):
        """Validate base URL format."""
        if not v.startswith(('http://', 'https://')):
            raise ValueError("base_url must start with http:// or https://")
        return v.rstrip('/')


class QuestionValidationConfig(BaseModel):
    """Relevance gate applied before any network call."""

    min_length: int = Field(3, ge=1, description="Minimum trimmed question length")
    organization_keywords: List[str] = Field(default_factory=lambda: [
        'final international university', 'fiu', 'final university', 'final üniversitesi',
        'final uluslararası üniversitesi', 'university', 'campus', 'tuition', 'fees',
        'admission', 'program', 'course', 'faculty', 'student', 'academic', 'degree',
        'bachelor', 'master', 'doctorate', 'phd', 'enrollment', 'scholarship',
        'dormitory', 'library', 'laboratory', 'girne', 'cyprus', 'kıbrıs',
    ])
    academic_terms: List[str] = Field(default_factory=lambda: [
        'study', 'education', 'learn', 'program', 'course', 'degree',
    ])
    local_language: str = Field("tr", description="Language tag of the organization's local language")
    local_language_words: List[str] = Field(default_factory=lambda: [
        'nedir', 'nasıl', 'ne', 'üniversite', 'öğrenci', 'ders', 'fakülte',
    ])
    local_language_chars: str = Field("çğışöü", description="Characters that only occur in the local language")


class SearchConfig(BaseModel):
    """Search backends consumed by scraping their rendered results pages."""

    backends: List[str] = Field(default_factory=lambda: ['google', 'duckduckgo'],
                                description="Primary first, then fallback")
    query_templates: List[str] = Field(default_factory=lambda: [
        'site:{domain} {question}',
        'site:{domain} "{question}"',
    ])
    navigation_timeout: float = Field(30.0, gt=0, description="Results page navigation timeout in seconds")
    selector_timeout: float = Field(10.0, gt=0, description="Wait for result anchors, in seconds")
    query_delay: float = Field(2.0, ge=0, description="Pause between consecutive search queries")
    google_max_results: int = Field(5, ge=1, le=20)
    duckduckgo_max_results: int = Field(3, ge=1, le=20)

    @field_validator('backends')
    @classmethod
    def validate_backends(cls, v):
        """Validate backend names are supported."""
        if not v:
            raise ValueError("at least one search backend is required")
        for name in v:
            if name not in SUPPORTED_BACKENDS:
                raise ValueError(f"backend must be one of {SUPPORTED_BACKENDS}, got '{name}'")
        return v

    @field_validator('query_templates')
    @classmethod
    def validate_query_templates(cls, v):
        """Every template must place the question."""
        for template in v:
            if '{question}' not in template:
                raise ValueError(f"query template '{template}' has no {{question}} placeholder")
        return v


class RetrievalConfig(BaseModel):
    """Link limit and direct-crawl fallback."""

    max_links: int = Field(8, ge=1, le=50, description="Maximum links handed to extraction")
    crawl_paths: List[str] = Field(default_factory=lambda: [
        '', '/en', '/en/admissions', '/en/academics', '/en/programs', '/en/student-life',
        '/en/fees', '/tr', '/tr/ogrenci-isci', '/tr/akademik', '/tr/programlar',
    ])
    crawl_timeout: float = Field(30.0, gt=0)


class ExtractionConfig(BaseModel):
    """HTML extraction settings."""

    max_content_length: int = Field(8000, ge=100, description="Content is truncated to this many characters")
    min_region_length: int = Field(100, ge=0, description="A content region must exceed this to be selected")
    min_source_length: int = Field(50, ge=0, description="Sources shorter than this are discarded")
    navigation_timeout: float = Field(30.0, gt=0)
    remove_selectors: List[str] = Field(default_factory=lambda: [
        'script', 'style', 'noscript', 'nav', 'header', 'footer', 'aside', 'iframe',
        '.advertisement', '.ads', '.social-media', '.menu',
    ])
    content_selectors: List[str] = Field(default_factory=lambda: [
        'main', '.main-content', '.content', 'article', '.post-content',
        '.page-content', '#content', '.container', '.wrapper',
    ])


class PDFConfig(BaseModel):
    """Document download and OCR settings."""

    download_timeout: float = Field(30.0, gt=0)
    max_download_bytes: int = Field(50 * 1024 * 1024, gt=0)
    min_text_length: int = Field(100, ge=0, description="Quality gate below which OCR runs")
    ocr_max_pages: int = Field(3, ge=1)
    ocr_dpi: int = Field(200, ge=72, le=600)
    ocr_languages: str = Field("eng+tur", description="Tesseract language string")
    temp_dir: str = Field("", description="Parent directory for scratch files; system default when empty")


class ClassificationConfig(BaseModel):
    """Webpage/document classification."""

    probe_content_type: bool = Field(True, description="Ask the server for the content type before looking at the suffix")
    probe_timeout: float = Field(10.0, gt=0)
    document_suffixes: List[str] = Field(default_factory=lambda: ['.pdf'])


class CacheConfig(BaseModel):
    """Response cache settings."""

    enabled: bool = True
    ttl_seconds: int = Field(3600, ge=1)


class LLMConfig(BaseModel):
    """Local Ollama text-generation service."""

    model: str = Field("deepseek-llm:7b-chat")
    base_url: str = Field("http://localhost:11434")
    temperature: float = Field(0.3, ge=0.0, le=2.0)
    top_p: float = Field(0.9, gt=0.0, le=1.0)
    repeat_penalty: float = Field(1.1, ge=0.0)
    max_tokens: int = Field(2000, ge=1, le=8192)
    timeout: float = Field(120.0, gt=0)
    prompt_template: str = Field("", description="Overrides the built-in prompt when set")

    @field_validator('base_url')
    @classmethod
    def validate_base_url(cls, v):
        """Validate Ollama base URL format."""
        if not v.startswith(('http://', 'https://')):
            raise ValueError("base_url must start with http:// or https://")
        return v.rstrip('/')


class BrowserConfig(BaseModel):
    """Headless browser session settings."""

    headless: bool = True
    wait_until: str = Field("networkidle", description="Playwright load state awaited after navigation")
    locale: str = "en-US"
    accept_language: str = "en-US,en;q=0.9"
    viewport_width: int = Field(1920, ge=320)
    viewport_height: int = Field(1080, ge=240)
    launch_args: List[str] = Field(default_factory=lambda: [
        '--no-sandbox', '--disable-setuid-sandbox', '--disable-dev-shm-usage',
        '--disable-gpu', '--lang=en-US,en',
    ])


class MessagesConfig(BaseModel):
    """User-facing answers for early exits. ``{organization}``, ``{domain}`` and ``{contact}`` are filled in."""

    rejected: str = (
        "Please ask a question related to {organization}. I can help you with information about "
        "admissions, programs, fees, campus life, and more using official information from {domain}."
    )
    no_results: str = (
        "I couldn't find specific information about your question on the official {organization} "
        "website ({domain}). Please try rephrasing your question or contact the university directly "
        "at {contact} for assistance."
    )
    no_content: str = (
        "I couldn't extract meaningful content from the available {domain} sources. Please try asking "
        "a more specific question about {organization} or contact the university directly at {contact}."
    )
    error: str = (
        "I encountered an error while processing your question from {domain}. Please try again in a "
        "moment or contact the university directly at {contact}."
    )


class SiteQAConfig(BaseModel):
    """Top-level system configuration validation."""

    organization: OrganizationConfig = Field(default_factory=OrganizationConfig)
    validation: QuestionValidationConfig = Field(default_factory=QuestionValidationConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)
    retrieval: RetrievalConfig = Field(default_factory=RetrievalConfig)
    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
    pdf: PDFConfig = Field(default_factory=PDFConfig)
    classification: ClassificationConfig = Field(default_factory=ClassificationConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    browser: BrowserConfig = Field(default_factory=BrowserConfig)
    messages: MessagesConfig = Field(default_factory=MessagesConfig)

    @model_validator(mode='after')
    def validate_crawl_base(self):
        """The crawl root has to live on the restricted domain."""
        from .core import belongs_to_domain
        if not belongs_to_domain(self.organization.base_url, self.organization.domain):
            raise ValueError(
                f"organization.base_url {self.organization.base_url} is outside {self.organization.domain}"
            )
        return self

    def message(self, name: str) -> str:
        """Render a user-facing message with organization details filled in."""
        template = getattr(self.messages, name)
        return template.format(
            organization=self.organization.name,
            domain=self.organization.domain,
            contact=self.organization.contact,
        )


def validate_config(config_dict: Dict[str, Any]) -> SiteQAConfig:
    """
    Validate system configuration using Pydantic models.

    Args:
        config_dict: Raw configuration dictionary from Hydra/YAML

    Returns:
        Validated SiteQAConfig object

    Raises:
        ConfigurationError: When validation fails with detailed error messages
    """
    try:
        return SiteQAConfig(**(config_dict or {}))
    except Exception as e:
        raise ConfigurationError(f"Configuration validation failed: {str(e)}") from e
