"""
Theme Summary Agent.

Turns a theme's comments into one sentence an administrator can act on.
Optional: the dashboard works without it.
"""

import dataclasses
import json
import logging
from typing import List, Optional

import google.generativeai as genai

from dfac_pulse.models.theme import Theme

logger = logging.getLogger(__name__)


SYSTEM_PROMPT = """You summarize customer feedback for a military dining facility (DFAC) manager.

Your task:
1. Read a group of comments that share a theme
2. Write ONE sentence (at most 25 words) describing what diners are saying
3. Be specific and actionable (what, where, when if mentioned)

Rules:
- Do not invent details that are not in the comments
- Plain professional language, no emojis
- Do not quote comments verbatim

Output valid JSON only: {"summary": "..."}"""


def _construct_user_prompt(theme: Theme, max_comments: int) -> str:
    comments = "\n".join(f"- {c}" for c in theme.comments[:max_comments])
    return f"""Theme: "{theme.label}" ({theme.count} comments)

Comments:
{comments}

Return the summary as JSON:
{{
  "summary": "..."
}}"""


class ThemeSummaryAgent:
    """
    Summarizes themes with Gemini.

    Failures never propagate: a theme that cannot be summarized is shown
    without a summary.
    """

    def __init__(
        self,
        api_key: str,
        model_name: str = "gemini-1.5-flash",
        temperature: float = 0.0,
        max_retries: int = 2,
        max_comments: int = 20
    ):
        """
        Initialize summary agent.

        Args:
            api_key: Gemini API key
            model_name: Gemini model to use
            temperature: LLM temperature (0.0 for deterministic)
            max_retries: Attempts per theme before giving up
            max_comments: Comments per theme included in the prompt
        """
        self.model_name = model_name
        self.temperature = temperature
        self.max_retries = max_retries
        self.max_comments = max_comments

        genai.configure(api_key=api_key)
        self.model = genai.GenerativeModel(
            model_name=model_name,
            generation_config={
                "temperature": temperature,
                "response_mime_type": "application/json"
            },
            system_instruction=SYSTEM_PROMPT
        )

        logger.info(f"Initialized ThemeSummaryAgent with model={model_name}, temp={temperature}")

    def summarize(self, theme: Theme) -> Optional[str]:
        """
        Summarize one theme.

        Returns:
            Summary sentence, or None if the theme has no comments or the
            model failed on every attempt
        """
        if not theme.comments:
            return None

        user_prompt = _construct_user_prompt(theme, self.max_comments)

        for attempt in range(self.max_retries):
            try:
                response = self.model.generate_content(user_prompt)
                return self._parse_llm_response(response.text, theme.label)

            except json.JSONDecodeError as e:
                logger.error(f"Failed to parse LLM JSON response (attempt {attempt + 1}): {e}")

            except Exception as e:
                logger.error(f"LLM API error (attempt {attempt + 1}): {e}")

        logger.warning(f"Max retries reached for theme '{theme.label}', no summary")
        return None

    def summarize_all(self, themes: List[Theme]) -> List[Theme]:
        """Copies of the themes with `summary` filled in where possible."""
        return [dataclasses.replace(theme, summary=self.summarize(theme)) for theme in themes]

    def _parse_llm_response(self, response_text: str, label: str) -> Optional[str]:
        """
        Extract the summary from the model's JSON.

        Raises:
            json.JSONDecodeError: If response is not valid JSON
        """
        data = json.loads(response_text)

        summary = data.get("summary") if isinstance(data, dict) else None
        if not isinstance(summary, str) or not summary.strip():
            logger.warning(f"LLM response missing 'summary' field for theme '{label}'")
            return None

        return summary.strip()
