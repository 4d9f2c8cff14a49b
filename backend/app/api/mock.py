"""
Mock test API endpoints.

Provides:
- POST /api/mock/start-mock - Start or continue a mock exam
- GET /api/mock/history - List a student's mock exam sessions
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from app.api.deps import get_mock_service
from app.providers.chat import ModelGatewayError
from app.schemas.lesson import LessonHistoryResponse
from app.schemas.mock import MockStartRequest, MockStartResponse
from app.services.mock_test import MockTestService
from app.services.prompts import PromptFetchError
from app.services.subjects import LessonValidationError
from app.logging import logger


router = APIRouter(prefix="/api/mock", tags=["Mock Tests"])


@router.post("/start-mock", response_model=MockStartResponse)
def start_mock(
    request: MockStartRequest,
    service: MockTestService = Depends(get_mock_service),
):
    """
    Start a mock exam, or continue one with `is_continuation=true`, the
    prior `chat_history` and the `student_response` to `question_number`.

    The reply's JSON result is parsed into `data`; unparseable replies come
    back as `{"note": ..., "raw_response": ...}`.
    """
    try:
        return service.start_mock(request)
    except LessonValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except (PromptFetchError, ModelGatewayError) as e:
        raise HTTPException(status_code=500, detail=str(e))
    except Exception as e:
        logger.error(
            "MOCK_START_FAILED",
            extra={"student_id": request.student_id, "error": str(e)},
        )
        raise HTTPException(status_code=500, detail=str(e) or "Internal Server Error")


@router.get("/history", response_model=LessonHistoryResponse)
def mock_history(
    student_id: Optional[str] = Query(None),
    include_messages: bool = Query(False),
    service: MockTestService = Depends(get_mock_service),
):
    try:
        sessions = service.get_history(student_id or "", include_messages=include_messages)
    except LessonValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error("MOCK_HISTORY_FAILED", extra={"student_id": student_id, "error": str(e)})
        raise HTTPException(status_code=500, detail=str(e) or "Internal Server Error")

    return LessonHistoryResponse(data=sessions)
