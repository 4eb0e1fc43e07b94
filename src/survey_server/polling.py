"""Long-polling runner — ``survey-bot``.

Runs the same engine as the webhook server but pulls updates with
``getUpdates``, so no public URL is needed.  Each update becomes its own
task; the engine's per-respondent turn lock keeps one chat's updates in
arrival order while different chats are handled concurrently.

Examples::

    TELEGRAM_BOT_TOKEN=... FORM_DIR=forms uv run survey-bot
    TELEGRAM_BOT_TOKEN=... FORM_API_URL=https://forms.example/api uv run survey-bot
"""

from __future__ import annotations

import argparse
import asyncio
import logging

from pydantic import ValidationError

from survey_clients.telegram import TelegramChannel, parse_update
from survey_engine.engine import SurveyEngine
from survey_engine.errors import ChannelError

from survey_server.config import load_settings
from survey_server.runtime import build_runtime

logger = logging.getLogger(__name__)

# Pause before polling again after a failed getUpdates call
RETRY_DELAY = 5.0


async def _dispatch(engine: SurveyEngine, raw: dict) -> None:
    try:
        event = parse_update(raw)
    except ValidationError as exc:
        logger.warning("Skipping malformed update %s: %s", raw.get("update_id"), exc)
        return
    if event is None:
        return
    try:
        await engine.handle_event(event)
    except Exception:
        logger.exception("Update %s failed", raw.get("update_id"))


async def run_polling(
    engine: SurveyEngine,
    channel: TelegramChannel,
    *,
    poll_timeout: int = 30,
    stop: asyncio.Event | None = None,
    retry_delay: float = RETRY_DELAY,
) -> None:
    """Poll Telegram until ``stop`` is set, dispatching every update."""
    stop = stop or asyncio.Event()
    tasks: set[asyncio.Task] = set()
    offset: int | None = None

    try:
        while not stop.is_set():
            try:
                updates = await channel.get_updates(offset=offset, poll_timeout=poll_timeout)
            except ChannelError as exc:
                logger.warning("getUpdates failed: %s", exc)
                await asyncio.sleep(retry_delay)
                continue

            for raw in updates:
                offset = int(raw["update_id"]) + 1
                task = asyncio.create_task(_dispatch(engine, raw))
                tasks.add(task)
                task.add_done_callback(tasks.discard)
    finally:
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)


async def _main(poll_timeout: int | None) -> None:
    settings = load_settings()
    runtime = build_runtime(settings)
    try:
        # getUpdates refuses to work while a webhook is registered
        await runtime.channel.delete_webhook()
        logger.info("Polling for updates (forms: %s)", ", ".join(settings.forms))
        await run_polling(
            runtime.engine,
            runtime.channel,
            poll_timeout=poll_timeout or settings.poll_timeout,
        )
    finally:
        await runtime.aclose()


def cli() -> None:
    """Console-script entry point: ``survey-bot``."""
    parser = argparse.ArgumentParser(
        prog="survey-bot",
        description="Run the survey bot with Telegram long polling.",
    )
    parser.add_argument(
        "--poll-timeout",
        type=int,
        default=None,
        help="Seconds each getUpdates call may wait (default: $POLL_TIMEOUT or 30)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (default: INFO)",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    logger.info("accessibility survey bot started")

    try:
        asyncio.run(_main(args.poll_timeout))
    except KeyboardInterrupt:
        logger.info("Stopped")
