"""
API request/response schemas for /api/mock.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from app.schemas.lesson import ConversationMessage


class MockStartRequest(BaseModel):
    student_id: str
    student_name: str
    subject: str = "Mathematics"
    exam_board: str = "AQA"
    tier: str = "Higher"
    mock_cycle: int = 1
    predicted_grade: str = "6"
    student_type: str = "average"
    error_rate_percent: int = 20
    simulate_student_responses: bool = True

    # Continuation of an ongoing mock exam
    is_continuation: bool = False
    chat_history: List[ConversationMessage] = Field(default_factory=list)
    question_number: Optional[int] = None
    student_response: Optional[str] = None

    class Config:
        json_schema_extra = {
            "examples": [
                {
                    "student_id": "stu-1042",
                    "student_name": "Amira",
                    "exam_board": "Edexcel",
                    "tier": "Foundation",
                    "mock_cycle": 2,
                },
                {
                    "student_id": "stu-1042",
                    "student_name": "Amira",
                    "exam_board": "Edexcel",
                    "tier": "Foundation",
                    "mock_cycle": 2,
                    "is_continuation": True,
                    "chat_history": [{"role": "assistant", "content": "Question 1: ..."}],
                    "question_number": 1,
                    "student_response": "x = 4",
                },
            ]
        }


class MockStartResponse(BaseModel):
    success: bool = True
    data: Dict[str, Any] = Field(..., description="Parsed result plus transcript and session data")
    session_id: str
    chat_history: List[ConversationMessage]
