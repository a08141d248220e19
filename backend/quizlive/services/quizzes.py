"""Quiz authoring: validation and persistence of a quiz with its questions."""
import json
import math

from quizlive import db
from quizlive.errors import ValidationError
from quizlive.models import QUESTION_TYPES, Question, Quiz

TRUE_FALSE_LABELS = ['True', 'False']


def _as_number(value, label, position):
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f'Question {position}: {label} must be a number')
    if not math.isfinite(number):
        raise ValidationError(f'Question {position}: {label} must be a finite number')
    return number


def _correct_index(data, option_count, position):
    index = data.get('correct_index')
    if isinstance(index, bool) or not isinstance(index, int):
        raise ValidationError(f'Question {position}: correct_index must be an integer')
    if not 0 <= index < option_count:
        raise ValidationError(f'Question {position}: correct_index out of range')
    return index


def validate_question(data, position):
    """Return (text, type, answers, correct_index) or raise ValidationError."""
    if not isinstance(data, dict):
        raise ValidationError(f'Question {position} is malformed')
    text = (data.get('text') or '').strip()
    if not text:
        raise ValidationError(f'Question {position} has no text')
    qtype = data.get('type') or 'multiple_choice'
    if qtype not in QUESTION_TYPES:
        raise ValidationError(f'Question {position}: unknown type {qtype!r}')

    if qtype == 'estimate':
        answers = data.get('answers')
        if answers is None:
            answers = [data.get('min'), data.get('max'), data.get('correct_value')]
        if not isinstance(answers, (list, tuple)) or len(answers) != 3:
            raise ValidationError(f'Question {position}: estimate needs min, max and correct value')
        low = _as_number(answers[0], 'min', position)
        high = _as_number(answers[1], 'max', position)
        correct = _as_number(answers[2], 'correct value', position)
        if low >= high:
            raise ValidationError(f'Question {position}: min must be below max')
        if not low <= correct <= high:
            raise ValidationError(f'Question {position}: correct value must lie within [min, max]')
        return text, qtype, [str(a).strip() for a in answers], None

    if qtype == 'true_false':
        answers = data.get('answers') or TRUE_FALSE_LABELS
        if not isinstance(answers, list) or len(answers) != 2:
            raise ValidationError(f'Question {position}: true/false needs exactly two options')
    else:
        answers = data.get('answers')
        if not isinstance(answers, list) or not 2 <= len(answers) <= 4:
            raise ValidationError(f'Question {position}: multiple choice needs 2 to 4 options')
    answers = [str(a).strip() if a is not None else '' for a in answers]
    if any(not a for a in answers):
        raise ValidationError(f'Question {position} has empty answers')
    return text, qtype, answers, _correct_index(data, len(answers), position)


def create_quiz(owner_id: str, data) -> Quiz:
    """Validate everything first, then write quiz and questions in one commit."""
    if not isinstance(data, dict):
        raise ValidationError('Quiz payload must be an object')
    title = (data.get('title') or '').strip()
    if not title:
        raise ValidationError('Title is required')
    raw_questions = data.get('questions') or []
    if not raw_questions:
        raise ValidationError('A quiz needs at least one question')
    validated = [validate_question(q, i + 1) for i, q in enumerate(raw_questions)]

    quiz = Quiz(owner_id=str(owner_id), title=title, gamification=bool(data.get('gamification')))
    for order_index, (text, qtype, answers, correct_index) in enumerate(validated):
        quiz.questions.append(Question(
            order_index=order_index,
            text=text,
            question_type=qtype,
            answers=json.dumps(answers),
            correct_index=correct_index,
        ))
    db.session.add(quiz)
    db.session.commit()
    return quiz


def delete_quiz(quiz: Quiz) -> None:
    db.session.delete(quiz)
    db.session.commit()
