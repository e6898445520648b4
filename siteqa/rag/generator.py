"""
Answer generation component for the QA pipeline.
Builds the grounded prompt and calls a local Ollama model.
"""

import os
import logging
from typing import List

from langchain_core.prompts import PromptTemplate
from langchain_ollama import OllamaLLM

from ..interfaces.base_interfaces import AnswerGenerationFailure, BaseAnswerGenerator
from ..models import ContentSource, Query
from ..utils.async_helpers import async_timeout
from ..utils.validation import SiteQAConfig

logger = logging.getLogger(__name__)

LANGUAGE_NAMES = {
    'en': 'English',
    'tr': 'Turkish',
}

DEFAULT_PROMPT_TEMPLATE = """You are the official AI assistant for {organization}. Your role is to provide comprehensive, accurate, and helpful information about the organization using ONLY the official sources from {domain} provided below.

CONTEXT FROM OFFICIAL SOURCES ({domain}):
{context}

USER QUESTION: "{question}"

#Objective:
Answer the question efficiently using accurate and official information. Always include relevant links from the official website {base_url}. If a question is not clear, ask a follow-up question to clarify the user's intent.

#Style:
Friendly, supportive and professional. Use structured formatting with headers and bullet points, and bold for important keywords or actions.

ANSWER FORMAT:
- Start with a direct answer to the question
- Provide detailed information organized in clear sections
- Include specific data (numbers, dates, requirements, etc.) when available
- End with additional resources or contact information from {domain} if relevant

If the sources from {domain} don't contain enough information to fully answer the question, acknowledge this, give what information is available, then suggest contacting {organization} directly at {contact}.

IMPORTANT:
- ONLY use information from the {domain} sources provided
- Do not make assumptions or add information not in the sources
- {language_instruction}

ANSWER:"""


class OllamaAnswerGenerator(BaseAnswerGenerator):
    """
    Generates answers from extracted sources with a local Ollama model.

    The model is reached through ``/api/generate`` (``OllamaLLM``); model
    name, sampling options and the prompt text all come from configuration.

    Example:
        >>> generator = OllamaAnswerGenerator(settings)
        >>> answer = await generator.generate(query, sources)
    """

    def __init__(self, config: SiteQAConfig, llm=None):
        """
        Initialize the answer generator.

        Args:
            config: Validated configuration
            llm: Pre-built LangChain LLM (built from ``config.llm`` if None)
        """
        self.config = config
        llm_config = config.llm
        self.timeout = llm_config.timeout

        # Environment override for container setups
        self.base_url = os.getenv('OLLAMA_BASE_URL', llm_config.base_url)
        self.llm = llm or OllamaLLM(
            model=llm_config.model,
            base_url=self.base_url,
            temperature=llm_config.temperature,
            top_p=llm_config.top_p,
            repeat_penalty=llm_config.repeat_penalty,
            num_predict=llm_config.max_tokens,
        )
        self.prompt_template = self._create_prompt_template()

        logger.info(f"Answer generator ready: {llm_config.model} at {self.base_url}")

    def _create_prompt_template(self) -> PromptTemplate:
        template = self.config.llm.prompt_template or DEFAULT_PROMPT_TEMPLATE
        return PromptTemplate(
            template=template,
            input_variables=[
                "organization", "domain", "base_url", "contact",
                "context", "question", "language_instruction",
            ],
        )

    def _prepare_context(self, sources: List[ContentSource]) -> str:
        """Number every source with its title and URL above its content."""
        context_parts = []
        for i, source in enumerate(sources, 1):
            context_parts.append(
                f"--- Source {i}: {source.title or source.url} ---\nURL: {source.url}\n{source.content}"
            )
        context = "\n\n".join(context_parts)
        logger.debug("Prepared context: %d characters from %d sources", len(context), len(sources))
        return context

    def _language_instruction(self, language: str) -> str:
        name = LANGUAGE_NAMES.get(language, language)
        return f"Respond in {name}, the language of the question"

    def build_prompt(self, query: Query, sources: List[ContentSource]) -> str:
        """Render the full prompt for ``query``."""
        organization = self.config.organization
        return self.prompt_template.format(
            organization=organization.name,
            domain=organization.domain,
            base_url=organization.base_url,
            contact=organization.contact,
            context=self._prepare_context(sources),
            question=query.text,
            language_instruction=self._language_instruction(query.language),
        )

    async def generate(self, query: Query, sources: List[ContentSource]) -> str:
        prompt = self.build_prompt(query, sources)
        logger.debug(f"Generating answer ({len(prompt)} prompt chars, language={query.language})")

        try:
            response = await async_timeout(self.llm.ainvoke(prompt), self.timeout, "answer_generation")
        except Exception as e:
            raise AnswerGenerationFailure(f"Failed to generate response from AI model: {e}") from e

        answer = response.content if hasattr(response, 'content') else str(response)
        answer = answer.strip()
        if not answer:
            raise AnswerGenerationFailure("AI model returned an empty response")
        return answer
