"""Channel-facing models — inbound events and outbound inline actions.

These are transport-neutral: the Telegram client converts raw updates
into these events and renders ``InlineAction`` lists as inline keyboards.
"""

from typing import Literal, Union

from pydantic import BaseModel


class InlineAction(BaseModel):
    """A labelled button bound to an opaque callback token."""

    label: str
    token: str


class _InboundBase(BaseModel):
    respondent_id: str
    # Display name for greetings, if the channel provides one
    display_name: str | None = None


class TextMessage(_InboundBase):
    kind: Literal["text"] = "text"
    text: str


class VoiceMessage(_InboundBase):
    kind: Literal["voice"] = "voice"
    # Channel-specific handle used to download the audio clip
    audio_ref: str


class CallbackPressed(_InboundBase):
    kind: Literal["callback"] = "callback"
    token: str
    # Channel-specific id used to acknowledge the button press
    callback_id: str | None = None


InboundEvent = Union[TextMessage, VoiceMessage, CallbackPressed]
