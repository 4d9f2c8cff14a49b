"""
Subject catalogue: which subjects, exam boards and tiers the tutor supports.
"""

from typing import Dict, List

# Normalized subject -> prompt-service subject name
SUBJECT_NAMES: Dict[str, str] = {
    "maths": "Mathematics",
    "mathematics": "Mathematics",
    "english language": "English Language",
    "english literature": "English Literature",
    "biology": "Biology",
    "combined science": "Combined Science",
}

LESSON_EXAM_BOARDS: Dict[str, List[str]] = {
    "Mathematics": ["Edexcel"],
    "English Language": ["AQA"],
    "Biology": ["AQA"],
    "Combined Science": ["AQA"],
    "English Literature": ["AQA", "Edexcel", "OCR"],
}

MOCK_EXAM_BOARDS = ["AQA", "Edexcel", "OCR"]
MOCK_TIERS = ["Foundation", "Higher"]


class LessonValidationError(ValueError):
    """Request names a subject/board/tier combination the tutor cannot serve."""


def normalize_subject(subject: str) -> str:
    return subject.strip().lower()


def resolve_subject_name(subject: str) -> str:
    """Map a client subject to its prompt-service name or raise."""
    name = SUBJECT_NAMES.get(normalize_subject(subject))
    if name is None:
        raise LessonValidationError(f"Unsupported subject: {subject}")
    return name


def validate_lesson_exam_board(subject_name: str, exam_board: str) -> None:
    if exam_board.strip() not in LESSON_EXAM_BOARDS.get(subject_name, []):
        raise LessonValidationError(
            f"Exam board {exam_board} not supported for {subject_name}"
        )


def validate_mock_options(exam_board: str, tier: str) -> None:
    if exam_board not in MOCK_EXAM_BOARDS:
        raise LessonValidationError(
            f"Exam board {exam_board} not supported. "
            f"Supported boards: {', '.join(MOCK_EXAM_BOARDS)}"
        )
    if tier not in MOCK_TIERS:
        raise LessonValidationError(
            f"Invalid tier: {tier}. Must be either Foundation or Higher"
        )
