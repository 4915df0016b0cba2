"""Pydantic schemas for survey questions.

Stored questions are read into a tagged union with one variant per question
type. Only the choice variants carry ``options``; yes/no and scale questions
expose their fixed choices through the ``choices`` property. Renderer and
aggregator code dispatch over these variants.

``QuestionInput`` is the admin-facing payload for creating and updating a
question and enforces the well-formedness rules.
"""

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    field_validator,
    model_validator,
)


class QuestionType(str, Enum):
    """Valid question types."""
    SHORT_TEXT = "short_text"
    SINGLE_CHOICE = "single_choice"
    DROPDOWN = "dropdown"
    MULTI_CHOICE = "multi_choice"
    YES_NO = "yes_no"
    SCALE_1_5 = "scale_1_5"


CHOICE_TYPES = frozenset({
    QuestionType.SINGLE_CHOICE,
    QuestionType.MULTI_CHOICE,
    QuestionType.DROPDOWN,
})

YES_NO_CHOICES = ("Yes", "No")
SCALE_CHOICES = ("1", "2", "3", "4", "5")

TYPE_LABELS = {
    QuestionType.SHORT_TEXT: "Short text",
    QuestionType.SINGLE_CHOICE: "Single choice",
    QuestionType.DROPDOWN: "Dropdown",
    QuestionType.MULTI_CHOICE: "Multi select",
    QuestionType.YES_NO: "Yes/No",
    QuestionType.SCALE_1_5: "Scale 1-5",
}


def get_type_label(question_type: str) -> str:
    """Human-readable label for a question type ("Custom" when unknown)."""
    try:
        return TYPE_LABELS[QuestionType(question_type)]
    except ValueError:
        return "Custom"


class _QuestionBase(BaseModel):
    """Fields shared by every question variant."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Opaque question identifier")
    text: str = Field(..., description="Display label")
    required: bool = Field(default=False, description="Whether an answer is required")
    order: float = Field(..., description="Display rank, ascending")

    @property
    def choices(self) -> tuple[str, ...]:
        """Values a respondent can pick from (empty for free text)."""
        return ()

    @property
    def type_label(self) -> str:
        return get_type_label(self.type)


class ShortTextQuestion(_QuestionBase):
    type: Literal["short_text"] = "short_text"


class _OptionsQuestion(_QuestionBase):
    options: list[str] = Field(default_factory=list, description="Ordered choice options")

    @property
    def choices(self) -> tuple[str, ...]:
        return tuple(self.options)


class SingleChoiceQuestion(_OptionsQuestion):
    type: Literal["single_choice"] = "single_choice"


class DropdownQuestion(_OptionsQuestion):
    type: Literal["dropdown"] = "dropdown"


class MultiChoiceQuestion(_OptionsQuestion):
    type: Literal["multi_choice"] = "multi_choice"


class YesNoQuestion(_QuestionBase):
    type: Literal["yes_no"] = "yes_no"

    @property
    def choices(self) -> tuple[str, ...]:
        return YES_NO_CHOICES


class ScaleQuestion(_QuestionBase):
    type: Literal["scale_1_5"] = "scale_1_5"

    @property
    def choices(self) -> tuple[str, ...]:
        return SCALE_CHOICES


QuestionDefinition = Annotated[
    Union[
        ShortTextQuestion,
        SingleChoiceQuestion,
        DropdownQuestion,
        MultiChoiceQuestion,
        YesNoQuestion,
        ScaleQuestion,
    ],
    Field(discriminator="type"),
]

question_adapter: TypeAdapter[QuestionDefinition] = TypeAdapter(QuestionDefinition)


def parse_question(data: dict) -> QuestionDefinition:
    """Build the typed variant for a stored question record.

    Args:
        data: Mapping with id, text, type, required, order and options

    Returns:
        The question variant matching ``data["type"]``

    Raises:
        ValidationError: If the type is unknown or fields are malformed
    """
    return question_adapter.validate_python(data)


def split_options(raw: Union[str, list, tuple, None]) -> list[str]:
    """Normalize admin option input.

    Accepts newline-separated text or a sequence. Every option is trimmed and
    blank entries are dropped; duplicates are kept as separate options.
    """
    if raw is None:
        return []
    if isinstance(raw, str):
        items = raw.split("\n")
    else:
        items = list(raw)
    return [str(item).strip() for item in items if str(item).strip()]


class QuestionInput(BaseModel):
    """Admin payload for creating or updating a question.

    Attributes:
        text: Question text (trimmed, required)
        type: One of the six question types
        required: Whether respondents must answer
        options: Choice options, as a list or newline-separated text

    Example:
        {
            "text": "Favourite colour",
            "type": "single_choice",
            "required": true,
            "options": "Red\\nGreen\\nBlue"
        }
    """

    text: str = Field(default="", description="Question text")
    type: QuestionType = Field(..., description="Question type")
    required: bool = Field(default=True, description="Whether an answer is required")
    options: list[str] = Field(default_factory=list, description="Choice options")

    @field_validator("text", mode="before")
    @classmethod
    def text_required(cls, v):
        """Strip whitespace and reject blank question text."""
        text = "" if v is None else str(v).strip()
        if not text:
            raise ValueError("Question text is required.")
        return text

    @field_validator("type", mode="before")
    @classmethod
    def type_recognized(cls, v):
        """Reject anything that isn't one of the six question types."""
        try:
            return QuestionType(v)
        except ValueError:
            raise ValueError("Unknown question type.")

    @field_validator("options", mode="before")
    @classmethod
    def normalize_options(cls, v):
        """Split newline-separated input and drop blank options."""
        return split_options(v)

    @model_validator(mode="after")
    def validate_options_for_type(self):
        """Choice types need options; every other type stores none."""
        if self.type in CHOICE_TYPES:
            if not self.options:
                raise ValueError("Please provide at least one option.")
        else:
            self.options = []
        return self


class MoveDirection(str, Enum):
    UP = "up"
    DOWN = "down"

    @property
    def delta(self) -> int:
        return -1 if self is MoveDirection.UP else 1


class MoveRequest(BaseModel):
    """Payload for moving a question one slot up or down."""
    direction: MoveDirection


class QuestionRead(BaseModel):
    """Question as returned by the admin API."""
    id: str
    text: str
    type: str
    type_label: str
    required: bool
    options: list[str]
    order: float

    @classmethod
    def from_definition(cls, question: QuestionDefinition) -> "QuestionRead":
        return cls(
            id=question.id,
            text=question.text,
            type=question.type,
            type_label=question.type_label,
            required=question.required,
            options=list(getattr(question, "options", [])),
            order=question.order,
        )
