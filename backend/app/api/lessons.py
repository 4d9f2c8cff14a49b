"""
Lesson API endpoints.

Provides:
- POST /api/lesson/start - Run one tutoring turn (with diagram rendering)
- GET /api/lesson/history - List a student's sessions
- POST /api/lesson/save-lesson-data - Store terminal lesson metrics
- POST /api/lesson/generate-diagram - Generate one diagram directly
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from app.api.deps import get_lesson_service
from app.providers.chat import ModelGatewayError
from app.schemas.lesson import (
    DiagramRequest,
    DiagramResponse,
    LessonDataRequest,
    LessonDataResponse,
    LessonHistoryResponse,
    LessonStartRequest,
    LessonStartResponse,
)
from app.services.lesson import LessonService
from app.services.prompts import PromptFetchError
from app.services.subjects import LessonValidationError
from app.logging import logger


router = APIRouter(prefix="/api/lesson", tags=["Lessons"])


@router.post("/start", response_model=LessonStartResponse)
def start_lesson(
    request: LessonStartRequest,
    service: LessonService = Depends(get_lesson_service),
):
    """
    Run one lesson turn.

    Finds or creates the session for (student, subject, exam board, tier,
    topic), asks the model for the next reply and renders any
    `[CreateVisual: ...]` directives as diagrams. `lesson_id` scopes diagram
    reuse: a description already generated for the same lesson is served
    from storage.
    """
    try:
        return service.start_lesson(request)
    except LessonValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except (PromptFetchError, ModelGatewayError) as e:
        raise HTTPException(status_code=500, detail=str(e))
    except Exception as e:
        logger.error(
            "LESSON_START_FAILED",
            extra={"student_id": request.student_id, "error": str(e)},
        )
        raise HTTPException(status_code=500, detail=str(e) or "Internal Server Error")


@router.get("/history", response_model=LessonHistoryResponse)
def lesson_history(
    student_id: Optional[str] = Query(None),
    subject: Optional[str] = Query(None),
    exam_board: Optional[str] = Query(None),
    tier: Optional[str] = Query(None),
    lesson_topic_code: Optional[str] = Query(None),
    lesson_topic: Optional[str] = Query(None),
    include_messages: bool = Query(False),
    service: LessonService = Depends(get_lesson_service),
):
    """
    List a student's sessions, newest first.

    With `include_messages=true` each session carries its messages ordered
    by timestamp; messages with visuals show their rendered content.
    """
    try:
        sessions = service.get_history(
            student_id or "",
            include_messages=include_messages,
            subject=subject,
            exam_board=exam_board,
            tier=tier,
            lesson_topic_code=lesson_topic_code,
            lesson_topic=lesson_topic,
        )
    except LessonValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error("LESSON_HISTORY_FAILED", extra={"student_id": student_id, "error": str(e)})
        raise HTTPException(status_code=500, detail=str(e) or "Internal Server Error")

    return LessonHistoryResponse(data=sessions)


@router.post("/save-lesson-data", response_model=LessonDataResponse)
def save_lesson_data(
    request: LessonDataRequest,
    service: LessonService = Depends(get_lesson_service),
):
    try:
        saved = service.save_lesson_data(request)
    except LessonValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error("LESSON_DATA_SAVE_FAILED", extra={"student_id": request.student_id, "error": str(e)})
        raise HTTPException(status_code=500, detail=str(e) or "Internal Server Error")

    return LessonDataResponse(data=saved)


@router.post("/generate-diagram", response_model=DiagramResponse)
def generate_diagram(
    request: DiagramRequest,
    service: LessonService = Depends(get_lesson_service),
):
    """Generate a single diagram without touching any session."""
    try:
        return service.generate_diagram(request)
    except LessonValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
