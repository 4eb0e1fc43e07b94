"""Fixed respondent-facing strings.

Strings with ``{placeholders}`` are filled with ``str.format`` by the
engine or the prompt manager.
"""

GREETING = "Добро пожаловать, {name}!"
DEFAULT_NAME = "Пользователь"
CHOOSE_VERSION = "Выберите версию опроса:"

INSTRUCTIONS = (
    "Отвечайте на вопросы текстом или голосовым сообщением. "
    "Чтобы выбрать вариант, назовите его номер или текст. "
    "Скажите «повторить» или 0, чтобы услышать вопрос ещё раз, "
    "«назад», чтобы вернуться к предыдущему вопросу, "
    "и «пропустить», чтобы пропустить необязательный вопрос."
)

ANSWER_SAVED = "Ваш ответ: {value}"
GOING_BACK = "Возвращаемся к предыдущему вопросу."
FIRST_QUESTION = "Это первый вопрос."
SKIPPED = "Вопрос пропущен."
CANNOT_SKIP = "Это обязательный вопрос, его нельзя пропустить."
CONFIRM_CANDIDATE = "Вы имели в виду «{option}»?"

BAD_DATE_FORMAT = "Введите дату в формате ДД.ММ.ГГГГ, например 15.03.1990."
BAD_PHONE_FORMAT = "Номер телефона должен начинаться с +7 или 8."
NO_MATCH = "Такого варианта нет. Выберите один из вариантов:"
EMPTY_ANSWER = "Ответ не может быть пустым."

RECOGNITION_FAILED = (
    "Не удалось распознать голосовое сообщение. "
    "Попробуйте ещё раз или ответьте текстом."
)
SOURCE_UNAVAILABLE = "Не удалось загрузить вопросы. Попробуйте позже."
COMPLETED = "Спасибо! Ваши ответы отправлены."
SUBMISSION_FAILED = (
    "Не удалось отправить ответы. "
    "Пожалуйста, попробуйте пройти опрос заново."
)

# Button labels
CONFIRM_LABEL = "Да, верно"
REPEAT_LABEL = "Повторить"
PREVIOUS_LABEL = "Назад"
SKIP_LABEL = "Пропустить"
HOME_LABEL = "В начало"
RESTART_LABEL = "Пройти заново"
