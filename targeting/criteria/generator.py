"""Criteria generation with a chat-completion language model.

Prompts live as Jinja2 templates in ``targeting/criteria/templates`` and are
rendered with strict undefined checking, so a missing variable fails loudly
instead of sending a half-filled prompt.
"""

import re
from typing import Any, List, Optional

from jinja2 import Environment, PackageLoader, StrictUndefined, TemplateError

from targeting.config.models import CriteriaConfig
from targeting.logging import get_logger

from .catalog import category_label
from .exceptions import CriteriaGenerationError

logger = get_logger(__name__, component="criteria")

_LIST_MARKER = re.compile(r"^(\d+\.|-|•|\*|–|—)")
_META_COMMENTARY = re.compile(
    r"^(Note|Pour|Voici|Cette|La liste|N\.B\.|P\.S\.|Remarque|Here|This list|The list|These are)",
    re.IGNORECASE,
)


def clean_criteria_lines(text: Optional[str], max_results: int) -> List[str]:
    """Keep only lines that look like a single name.

    Lines are trimmed; empty lines, list-marker lines and commentary lines
    ("Here is...", "Voici...") are dropped. At most ``max_results`` lines
    are returned, in their original order.
    """
    if not text:
        return []

    kept = []
    for line in text.split("\n"):
        line = line.strip()
        if not line or _LIST_MARKER.match(line) or _META_COMMENTARY.match(line):
            continue
        kept.append(line)
    return kept[:max_results]


class CriteriaGenerator:
    """Asks a language model for well-known names in a category and country."""

    def __init__(
        self,
        api_key: Optional[str],
        model: str = "gpt-4-turbo",
        temperature: float = 1.0,
        max_tokens: int = 4000,
        frequency_penalty: float = 0.3,
        presence_penalty: float = 0.1,
        client: Any = None,
        template_dir: str = "templates",
    ):
        """Initialize the generator.

        Args:
            api_key: OpenAI API key; required unless ``client`` is given
            model: Chat completion model
            temperature: Sampling temperature
            max_tokens: Completion token limit
            frequency_penalty: Repetition penalty on token frequency
            presence_penalty: Repetition penalty on token presence
            client: Pre-built OpenAI-compatible client (used by tests)
            template_dir: Directory name within the targeting.criteria package
        """
        self.api_key = api_key
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.frequency_penalty = frequency_penalty
        self.presence_penalty = presence_penalty
        self._client = client

        self.env = Environment(
            loader=PackageLoader("targeting.criteria", template_dir),
            autoescape=False,
            undefined=StrictUndefined,
            keep_trailing_newline=False,
        )

    @classmethod
    def from_config(cls, api_key: Optional[str], criteria_config: CriteriaConfig) -> "CriteriaGenerator":
        return cls(
            api_key=api_key,
            model=criteria_config.model,
            temperature=criteria_config.temperature,
            max_tokens=criteria_config.max_tokens,
            frequency_penalty=criteria_config.frequency_penalty,
            presence_penalty=criteria_config.presence_penalty,
        )

    @property
    def client(self):
        if self._client is None:
            if not self.api_key:
                raise CriteriaGenerationError(
                    "OPENAI_API_KEY is not set; criteria generation is unavailable"
                )
            import openai

            self._client = openai.OpenAI(api_key=self.api_key)
        return self._client

    def render_prompts(self, category: str, country: str, max_results: int) -> tuple[str, str]:
        """Render the (system, user) prompt pair.

        Raises:
            CriteriaGenerationError: If a template is missing or fails to render
        """
        context = {
            "category": category_label(category),
            "country": country,
            "max_results": max_results,
        }
        try:
            system_prompt = self.env.get_template("system_prompt.j2").render(context)
            user_prompt = self.env.get_template("user_prompt.j2").render(context)
        except TemplateError as e:
            raise CriteriaGenerationError(f"Prompt rendering failed: {e}") from e
        return system_prompt.strip(), user_prompt.strip()

    def generate(self, category: str, country: str, max_results: int = 50) -> List[str]:
        """Generate up to ``max_results`` criteria for ``category`` in ``country``.

        Args:
            category: Category id (see CATEGORIES) or free text
            country: Country name as it should appear in the prompt
            max_results: Maximum number of criteria to return

        Returns:
            Cleaned criteria, one name per entry

        Raises:
            CriteriaGenerationError: If the API key is missing or the model call fails
        """
        if not category or not country:
            raise CriteriaGenerationError("Category and country are required")

        system_prompt, user_prompt = self.render_prompts(category, country, max_results)
        client = self.client

        logger.info(
            f"Generating criteria for '{category}' in {country}",
            extra={
                "event": "criteria.generate.started",
                "category": category,
                "country": country,
                "model": self.model,
                "max_results": max_results,
            },
        )

        try:
            response = client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=self.temperature,
                max_tokens=self.max_tokens,
                frequency_penalty=self.frequency_penalty,
                presence_penalty=self.presence_penalty,
            )
            text = response.choices[0].message.content
        except Exception as e:
            logger.error(
                f"Criteria generation failed: {e}",
                extra={"event": "criteria.generate.failed", "error_type": type(e).__name__},
            )
            raise CriteriaGenerationError(f"Failed to generate criteria: {e}") from e

        criteria = clean_criteria_lines(text, max_results)
        logger.info(
            f"Generated {len(criteria)} criteria",
            extra={
                "event": "criteria.generate.completed",
                "category": category,
                "count": len(criteria),
            },
        )
        return criteria
