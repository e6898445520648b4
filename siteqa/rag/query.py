"""
Question validation and language detection.

A question is accepted when its trimmed length reaches the configured minimum
and it mentions either an organization keyword or a generic academic term.
Nothing here touches the network, so a rejected question costs nothing.
"""

import logging
import re

from ..models import Query
from ..utils.validation import QuestionValidationConfig

logger = logging.getLogger(__name__)

_TOKEN_RE = re.compile(r"\w+", re.UNICODE)


def _mentions_any(text: str, terms) -> bool:
    lowered = text.casefold()
    return any(term.casefold() in lowered for term in terms if term)


def detect_language(text: str, config: QuestionValidationConfig) -> str:
    """
    Tag ``text`` with the local language or English.

    The local language wins when the text contains one of its characteristic
    letters or one of the configured marker words as a whole token.
    """
    lowered = (text or "").casefold()
    if any(char in lowered for char in config.local_language_chars.casefold()):
        return config.local_language

    tokens = set(_TOKEN_RE.findall(lowered))
    markers = {word.casefold() for word in config.local_language_words}
    if tokens & markers:
        return config.local_language
    return "en"


def build_query(text: str, config: QuestionValidationConfig) -> Query:
    """
    Validate a raw question and derive its language tag.

    Args:
        text: Raw question text as received
        config: Relevance keywords and length limit

    Returns:
        Query with ``is_valid`` set and, when invalid, a ``reason``
    """
    question = (text or "").strip()
    language = detect_language(question, config)

    if len(question) < config.min_length:
        return Query(text=question, language=language, is_valid=False, reason="Question too short")

    if not (_mentions_any(question, config.organization_keywords)
            or _mentions_any(question, config.academic_terms)):
        return Query(
            text=question,
            language=language,
            is_valid=False,
            reason="Question not related to the organization",
        )

    return Query(text=question, language=language)
