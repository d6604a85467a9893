"""AI Agents package."""

from journalme.agents.advisor import (
    FALLBACK_TASKS,
    AdvisorContext,
    AdvisorLimitReached,
    TaskAdvisor,
    TaskSuggestion,
    extract_task_list,
)

__all__ = [
    "FALLBACK_TASKS",
    "AdvisorContext",
    "AdvisorLimitReached",
    "TaskAdvisor",
    "TaskSuggestion",
    "extract_task_list",
]
