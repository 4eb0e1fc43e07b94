import pytest

from helpers.fakes import (
    FakeChannel,
    FakeSink,
    FakeSource,
    FakeSpeech,
    make_question_set,
)
from survey_engine.engine import SurveyEngine
from survey_engine.store import SessionStore

# Two-question form from the end-to-end scenario: a required select and
# an optional free-text question.
SCENARIO_QUESTIONS = (
    {"id": "q1", "text": "Выберите букву", "kind": "select", "required": True,
     "options": ["A", "B"]},
    {"id": "q2", "text": "Комментарий", "kind": "textarea", "required": False},
)

# One question of every kind, for navigation and validation flows.
FULL_QUESTIONS = (
    {"id": "agree", "text": "Вы согласны?", "kind": "select", "required": True,
     "options": ["Да", "Нет"]},
    {"id": "device", "text": "Устройство", "kind": "checkbox", "required": False,
     "options": ["Смартфон", "Компьютер", "Планшет"]},
    {"id": "born", "text": "Дата рождения", "kind": "date", "required": True},
    {"id": "phone", "text": "Телефон", "kind": "text", "required": True,
     "hint": "Формат: +7XXXXXXXXXX"},
    {"id": "notes", "text": "Пожелания", "kind": "textarea", "required": False},
)


@pytest.fixture
def scenario_form():
    return make_question_set("main", *SCENARIO_QUESTIONS)


@pytest.fixture
def full_form():
    return make_question_set("full", *FULL_QUESTIONS)


@pytest.fixture
def channel():
    return FakeChannel()


@pytest.fixture
def source(scenario_form, full_form):
    return FakeSource(scenario_form, full_form)


@pytest.fixture
def sink():
    return FakeSink()


@pytest.fixture
def speech():
    return FakeSpeech()


@pytest.fixture
def store():
    return SessionStore()


@pytest.fixture
def engine(source, sink, channel, speech, store):
    """Engine wired to in-memory fakes, with no pacing delay."""
    return SurveyEngine(
        source=source,
        sink=sink,
        channel=channel,
        speech=speech,
        forms={"main": "Анкета", "full": "Полная анкета"},
        store=store,
        prompt_delay=0,
    )
