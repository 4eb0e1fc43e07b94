"""survey_server — runs the survey engine as a Telegram bot.

Two entry points share the same runtime wiring:
  - ``survey-server``: FastAPI app receiving Telegram webhook updates
  - ``survey-bot``: long-polling loop, no public URL needed
"""
