"""Loader for the default question set.

The defaults live in ``survey_service/data/default_questions.yaml`` and are
validated with the same ``QuestionInput`` rules the admin editor applies.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

import yaml
from pydantic import ValidationError

from survey_service.schemas.question import QuestionInput
from survey_service.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_QUESTIONS_PATH = Path(__file__).parent.parent / "data" / "default_questions.yaml"


class DefaultQuestionsError(Exception):
    """Raised when the default question file is missing or invalid."""
    pass


@lru_cache(maxsize=4)
def load_default_questions(path: Optional[Path] = None) -> tuple[QuestionInput, ...]:
    """Load and validate the default question set.

    Args:
        path: YAML file to read (defaults to the packaged file)

    Returns:
        tuple[QuestionInput, ...]: Questions in display order

    Raises:
        DefaultQuestionsError: If the file can't be read or fails validation
    """
    yaml_path = Path(path) if path is not None else DEFAULT_QUESTIONS_PATH

    try:
        with open(yaml_path, "r", encoding="utf-8") as f:
            raw_data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.error(f"Error reading default questions {yaml_path}: {e}")
        raise DefaultQuestionsError(f"Cannot read default questions at {yaml_path}: {e}")

    try:
        questions = tuple(
            QuestionInput.model_validate(item)
            for item in raw_data.get("questions", [])
        )
    except ValidationError as e:
        logger.error(f"Validation error in default questions: {e}")
        raise DefaultQuestionsError(f"Invalid default questions: {e}")

    logger.debug(f"Loaded {len(questions)} default questions from {yaml_path}")
    return questions
