"""Telegram webhook endpoint.

Telegram POSTs one update per request.  The update is converted into an
engine event and processed before the response is sent; the engine's
per-respondent turn lock keeps concurrent deliveries for the same chat
in order.  The endpoint answers 200 for every well-formed update, even
when processing failed, so Telegram does not redeliver it.
"""

import logging

from fastapi import APIRouter, Depends

from survey_clients.telegram import TelegramUpdate, parse_update
from survey_engine.engine import SurveyEngine

from survey_server.dependencies import get_engine, verify_webhook_secret

logger = logging.getLogger(__name__)

router = APIRouter(tags=["telegram"])


@router.post("/telegram/webhook", dependencies=[Depends(verify_webhook_secret)])
async def telegram_webhook(
    update: TelegramUpdate,
    engine: SurveyEngine = Depends(get_engine),
) -> dict:
    """Receive one Telegram update and run the matching turn."""
    event = parse_update(update)
    if event is None:
        logger.debug("Ignoring update %d: nothing to handle", update.update_id)
        return {"ok": True}

    try:
        await engine.handle_event(event)
    except Exception:
        logger.exception("Update %d failed", update.update_id)
    return {"ok": True}
