"""
AI Task Advisor for JournalMe

CRITICAL BOUNDARIES:
- CAN: Suggest five tasks for today from the user's context
- CANNOT: Read or write finance data (it only sees the numbers we pass)
- CANNOT: Block the app; any failure returns the static fallback list

The advisor is rate limited per calendar day. The counter lives in
local bookkeeping storage so the limit survives restarts.
"""

import json
from datetime import date
from decimal import Decimal
from typing import Optional

import google.generativeai as genai
from pydantic import BaseModel, Field
from tenacity import retry, stop_after_attempt, wait_exponential

from journalme.activity import ActivityLogger
from journalme.config import GeminiSettings, get_settings
from journalme.services.storage import BookkeepingStorageInterface


FALLBACK_TASKS = [
    "Review your daily survival budget in the Bank tab",
    "Practice Premeditatio Malorum: What could go wrong today?",
    "Identify the one task you are avoiding and do it first",
    "Log your current mental state in the Journal",
    "Take a 10-minute walk to clear your mind",
]

SYSTEM_PROMPT = (
    "You are a Stoic Executive Coach. Return ONLY a JSON array of 5 strings. "
    'Format: ["Task 1", "Task 2", ...]. No other text or markdown.'
)


class AdvisorLimitReached(Exception):
    """The daily advisor quota is used up."""
    pass


class AdvisorContext(BaseModel):
    """What the advisor is allowed to see."""

    net_position: Decimal
    survival_budget: Decimal
    recent_entries: list[str] = Field(default_factory=list)
    goals: list[str] = Field(default_factory=list)

    def to_prompt(self) -> str:
        thoughts = " | ".join(entry[:200] for entry in self.recent_entries[:5]) or "none"
        goals = ", ".join(self.goals) or "none set"
        return (
            f"Financials: Net {self.net_position}, Survival Budget {self.survival_budget}. "
            f"Recent Thoughts: {thoughts}. Goals: {goals}. Generate 5 tasks."
        )


class TaskSuggestion(BaseModel):
    """Advisor output."""

    tasks: list[str]
    from_fallback: bool = False


def extract_task_list(text: str) -> list[str]:
    """
    Pull the JSON array out of a model reply.

    Models sometimes wrap the array in prose or code fences, so we take
    the outermost [...] span.

    Raises:
        ValueError: If no usable array of strings is found
    """
    start = text.find("[")
    end = text.rfind("]") + 1
    if start < 0 or end <= start:
        raise ValueError("No JSON array found in response")

    data = json.loads(text[start:end])
    if not isinstance(data, list):
        raise ValueError("Response is not an array")

    tasks = [str(item).strip() for item in data if str(item).strip()]
    if not tasks:
        raise ValueError("Response array is empty")
    return tasks


class TaskAdvisor:
    """
    Suggests today's tasks with Gemini.

    BOUNDARIES:
    - NEVER mutates stored data except its own usage counter
    - ALWAYS returns something usable
    """

    def __init__(
        self,
        bookkeeping: BookkeepingStorageInterface,
        settings: Optional[GeminiSettings] = None,
        activity_logger: Optional[ActivityLogger] = None,
        model=None,
    ):
        """
        Initialize the advisor.

        Args:
            bookkeeping: Where the per-day usage counter lives
            settings: Gemini settings (loaded from env if omitted)
            activity_logger: Logs fallbacks and service errors
            model: Pre-built model object (tests pass a stub here)
        """
        self._bookkeeping = bookkeeping
        self._settings = settings or get_settings().gemini
        self._activity_logger = activity_logger
        self._model = model or self._configure_genai()

    def _configure_genai(self):
        """Configure Google Generative AI."""
        genai.configure(api_key=self._settings.api_key)
        return genai.GenerativeModel(
            model_name=self._settings.model_name,
            system_instruction=SYSTEM_PROMPT,
            generation_config={
                "temperature": self._settings.temperature,
                "max_output_tokens": self._settings.max_tokens,
            }
        )

    async def remaining_requests(self, today: date) -> int:
        used = await self._bookkeeping.get_usage(today)
        return max(0, self._settings.daily_request_limit - used)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def _generate(self, prompt: str) -> str:
        response = await self._model.generate_content_async(prompt)
        return response.text.strip()

    async def suggest_tasks(self, context: AdvisorContext, today: date) -> TaskSuggestion:
        """
        Ask for five tasks.

        Returns the fallback list if the quota is used up, the call fails,
        or the reply can't be parsed.
        """
        try:
            if await self.remaining_requests(today) <= 0:
                raise AdvisorLimitReached("Daily AI limit reached")

            text = await self._generate(context.to_prompt())
            tasks = extract_task_list(text)
        except AdvisorLimitReached as e:
            return self._fallback(str(e))
        except ValueError as e:
            return self._fallback(f"Unreadable response: {e}")
        except Exception as e:
            if self._activity_logger:
                self._activity_logger.log_external_service_error("gemini", str(e))
            return self._fallback(f"Service error: {e}")

        await self._bookkeeping.increment_usage(today)
        return TaskSuggestion(tasks=tasks[:5])

    def _fallback(self, reason: str) -> TaskSuggestion:
        if self._activity_logger:
            self._activity_logger.log_advisor_fallback(reason)
        return TaskSuggestion(tasks=list(FALLBACK_TASKS), from_fallback=True)
