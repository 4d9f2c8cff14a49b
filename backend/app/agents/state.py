"""
Graph state models for the lesson and mock-test flows.
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field

from app.schemas.lesson import ConversationMessage


class LessonState(BaseModel):
    """
    State for one POST /api/lesson/start request.

    validate → resolve_session → fetch_prompt → call_model
      → [process_visuals] → persist_reply
    """
    # =====================
    # Request
    # =====================
    student_id: str
    student_name: str
    subject: str
    exam_board: str
    tier: str
    lesson_topic_code: str
    lesson_topic: str
    messages: List[ConversationMessage] = Field(default_factory=list)
    lesson_id: Optional[str] = None

    # =====================
    # validate
    # =====================
    normalized_subject: Optional[str] = None
    subject_name: Optional[str] = None  # prompt-service name

    # =====================
    # resolve_session
    # =====================
    session_id: Optional[str] = None
    session_created: bool = False

    # =====================
    # fetch_prompt / call_model
    # =====================
    system_prompt: Optional[str] = None
    user_turn: Optional[str] = None
    reply: Optional[str] = None
    message_id: Optional[str] = None

    # =====================
    # process_visuals
    # =====================
    processed_reply: Optional[str] = None
    has_visuals: bool = False


class MockTestState(BaseModel):
    """
    State for one POST /api/mock/start-mock request.

    validate → resolve_session → fetch_prompt → call_model
      → persist_reply → parse_result
    """
    # =====================
    # Request
    # =====================
    student_id: str
    student_name: str
    subject: str
    exam_board: str
    tier: str
    mock_cycle: int = 1
    predicted_grade: str = "6"
    student_type: str = "average"
    error_rate_percent: int = 20
    simulate_student_responses: bool = True
    is_continuation: bool = False
    chat_history: List[ConversationMessage] = Field(default_factory=list)
    question_number: Optional[int] = None
    student_response: Optional[str] = None

    # =====================
    # Derived
    # =====================
    normalized_subject: Optional[str] = None
    subject_name: Optional[str] = None
    session_id: Optional[str] = None
    session_created: bool = False
    system_prompt: Optional[str] = None
    user_turn: Optional[str] = None
    reply: Optional[str] = None
    message_id: Optional[str] = None
    result: Dict[str, Any] = Field(default_factory=dict)
