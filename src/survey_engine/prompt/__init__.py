"""Prompt rendering for chat and speech.

Provides ``PromptManager``, a Jinja2-based template engine that renders
the current question of a session as chat text and as a spoken variant,
and ``messages``, the fixed set of respondent-facing strings.
"""

from survey_engine.prompt import messages
from survey_engine.prompt.manager import PromptManager, RenderedPrompt

__all__ = ["PromptManager", "RenderedPrompt", "messages"]
