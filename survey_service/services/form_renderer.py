"""Survey form rendering and answer extraction.

This module turns the ordered question list into control descriptors for the
survey page, pulls typed answers back out of submitted form data, and
validates a submission.

Validation is exhaustive: every required question left empty gets its own
error message, not just the first one found.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Optional, Sequence, Union

from survey_service.schemas.question import (
    DropdownQuestion,
    MultiChoiceQuestion,
    QuestionDefinition,
    ScaleQuestion,
    ShortTextQuestion,
    SingleChoiceQuestion,
    YesNoQuestion,
)
from survey_service.logging_config import get_logger

logger = get_logger(__name__)

REQUIRED_FIELD_MESSAGE = "This field is required."
INCOMPLETE_FORM_MESSAGE = "Please complete all required fields."
SUBMISSION_FAILED_MESSAGE = "Submission failed. Please try again."
NO_QUESTIONS_MESSAGE = "No questions are available yet. Please check back soon."

TEXT_PLACEHOLDER = "Your response"
SELECT_PLACEHOLDER = "Select an option"

# Value extracted from a control; "" or [] when unanswered
ExtractedValue = Union[str, int, list]


class ControlKind(str, Enum):
    """HTML control used for a question."""
    TEXT = "text"
    RADIO = "radio"
    SELECT = "select"
    CHECKBOX = "checkbox"


@dataclass(frozen=True)
class ChoiceControl:
    """One selectable option inside a control group."""
    value: str
    input_id: str


@dataclass
class FieldControl:
    """Descriptor for one question's control group on the survey page.

    Attributes:
        question_id: Question the control answers
        question_type: Question type string
        label: Display label ("<n>. <text>", plus " *" when required)
        required: Whether the question is required
        kind: HTML control kind
        choices: Options for radio/select/checkbox controls
        is_scale: Render choices as scale pills
        placeholder: Placeholder text (text input / select)
        value: Previously submitted value, for re-rendering after errors
        error: Field error message, if any
    """
    question_id: str
    question_type: str
    label: str
    required: bool
    kind: ControlKind
    choices: list[ChoiceControl] = field(default_factory=list)
    is_scale: bool = False
    placeholder: Optional[str] = None
    value: Any = ""
    error: Optional[str] = None

    def is_selected(self, choice_value: str) -> bool:
        """Whether a choice was part of the previously submitted value."""
        if isinstance(self.value, list):
            return choice_value in self.value
        return str(self.value) == choice_value


@dataclass
class SubmissionResult:
    """Outcome of validating a survey submission.

    Attributes:
        answers: Non-empty answers keyed by question ID
        values: Every extracted value keyed by question ID (for re-rendering)
        errors: Field error messages keyed by question ID
    """
    answers: dict[str, Any] = field(default_factory=dict)
    values: dict[str, ExtractedValue] = field(default_factory=dict)
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    @property
    def form_error(self) -> Optional[str]:
        return None if self.is_valid else INCOMPLETE_FORM_MESSAGE


def _choice_controls(question_id: str, values: Iterable[str]) -> list[ChoiceControl]:
    return [
        ChoiceControl(value=value, input_id=f"{question_id}-{idx}")
        for idx, value in enumerate(values)
    ]


def build_control(question: QuestionDefinition, index: int) -> FieldControl:
    """Build the control descriptor for one question.

    Args:
        question: Question variant
        index: Zero-based display position

    Returns:
        FieldControl for the question

    Raises:
        TypeError: If the question variant is not supported
    """
    label = f"{index + 1}. {question.text}{' *' if question.required else ''}"
    common = dict(
        question_id=question.id,
        question_type=question.type,
        label=label,
        required=question.required,
    )

    if isinstance(question, ShortTextQuestion):
        return FieldControl(kind=ControlKind.TEXT, placeholder=TEXT_PLACEHOLDER, **common)
    elif isinstance(question, (SingleChoiceQuestion, YesNoQuestion)):
        return FieldControl(
            kind=ControlKind.RADIO,
            choices=_choice_controls(question.id, question.choices),
            **common
        )
    elif isinstance(question, DropdownQuestion):
        return FieldControl(
            kind=ControlKind.SELECT,
            choices=_choice_controls(question.id, question.choices),
            placeholder=SELECT_PLACEHOLDER,
            **common
        )
    elif isinstance(question, MultiChoiceQuestion):
        return FieldControl(
            kind=ControlKind.CHECKBOX,
            choices=_choice_controls(question.id, question.choices),
            value=[],
            **common
        )
    elif isinstance(question, ScaleQuestion):
        return FieldControl(
            kind=ControlKind.RADIO,
            choices=_choice_controls(question.id, question.choices),
            is_scale=True,
            **common
        )
    raise TypeError(f"Unsupported question type: {question.type}")


def build_controls(
    questions: Sequence[QuestionDefinition],
    result: Optional[SubmissionResult] = None,
) -> list[FieldControl]:
    """Build control descriptors for the whole form, in display order.

    Args:
        questions: Questions ordered by ``order``
        result: Previous submission outcome, to keep values and show errors

    Returns:
        list[FieldControl]: One control per question
    """
    controls = []
    for index, question in enumerate(questions):
        control = build_control(question, index)
        if result is not None:
            if question.id in result.values:
                control.value = result.values[question.id]
            control.error = result.errors.get(question.id)
        controls.append(control)
    return controls


def _get_one(form: Any, key: str) -> Optional[str]:
    value = form.get(key)
    if value is None:
        return None
    return str(value)


def _get_all(form: Any, key: str) -> list[str]:
    if hasattr(form, "getlist"):
        return [str(value) for value in form.getlist(key)]
    value = form.get(key)
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value]
    return [str(value)]


def extract_answer(question: QuestionDefinition, form: Any) -> ExtractedValue:
    """Extract the typed answer for one question from submitted form data.

    Values that are not one of the control's choices are treated as
    unanswered.

    Args:
        question: Question variant
        form: Submitted form data (``FormData``/multi-dict or plain mapping)

    Returns:
        Trimmed string, option string, int 1-5, or list of options;
        "" or [] when unanswered
    """
    if isinstance(question, ShortTextQuestion):
        value = _get_one(form, question.id)
        return value.strip() if value is not None else ""

    elif isinstance(question, (SingleChoiceQuestion, DropdownQuestion, YesNoQuestion)):
        value = _get_one(form, question.id)
        if value is None or value == "":
            return ""
        if value not in question.choices:
            logger.debug(
                f"Ignoring value outside choices for question {question.id}",
                extra={"question_id": question.id}
            )
            return ""
        return value

    elif isinstance(question, ScaleQuestion):
        value = _get_one(form, question.id)
        if value is None or value.strip() not in question.choices:
            return ""
        return int(value.strip())

    elif isinstance(question, MultiChoiceQuestion):
        selected = set(_get_all(form, question.id))
        return [option for option in question.options if option in selected]

    raise TypeError(f"Unsupported question type: {question.type}")


def is_empty(value: Any) -> bool:
    """An answer is empty when it is "", None or an empty sequence."""
    if isinstance(value, (list, tuple)):
        return len(value) == 0
    return value is None or value == ""


def validate_submission(
    questions: Sequence[QuestionDefinition],
    form: Any,
) -> SubmissionResult:
    """Validate a submission against every question, in display order.

    Args:
        questions: Questions ordered by ``order``
        form: Submitted form data

    Returns:
        SubmissionResult: Answers to store (non-empty only) and any field errors

    Example:
        >>> result = validate_submission(questions, {"q1": "Yes"})
        >>> result.is_valid
        True
        >>> result.answers
        {'q1': 'Yes'}
    """
    result = SubmissionResult()

    for question in questions:
        value = extract_answer(question, form)
        result.values[question.id] = value
        empty = is_empty(value)

        if question.required and empty:
            result.errors[question.id] = REQUIRED_FIELD_MESSAGE
        elif not empty:
            result.answers[question.id] = value

    if result.errors:
        logger.info(f"Submission rejected: {len(result.errors)} required fields empty")

    return result
