"""FastAPI dependency injection — provides the engine and webhook auth."""

import hmac

from fastapi import Header, HTTPException, Request

from survey_engine.engine import SurveyEngine


def get_engine(request: Request) -> SurveyEngine:
    """Return the engine singleton from ``app.state``."""
    return request.app.state.runtime.engine


async def verify_webhook_secret(
    request: Request,
    x_telegram_bot_api_secret_token: str | None = Header(
        None, alias="X-Telegram-Bot-Api-Secret-Token",
    ),
) -> None:
    """Reject webhook calls that do not carry the configured secret.

    Telegram echoes the ``secret_token`` given to ``setWebhook`` in every
    request.  When no secret is configured, every caller is accepted.
    """
    expected: str | None = request.app.state.settings.webhook_secret
    if not expected:
        return
    if not x_telegram_bot_api_secret_token:
        raise HTTPException(status_code=401, detail="Webhook secret is required")
    # Constant-time comparison to prevent timing side-channels.
    if not hmac.compare_digest(x_telegram_bot_api_secret_token, expected):
        raise HTTPException(status_code=403, detail="Invalid webhook secret")
