"""
API request/response schemas for /api/lesson.
"""

from datetime import datetime
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, Field

from app.providers.images import GeneratedImage


# ============================================================================
# Shared
# ============================================================================

class ConversationMessage(BaseModel):
    """A prior turn supplied by the client."""
    role: Literal["system", "user", "assistant"]
    content: Optional[str] = None
    id: Optional[str] = Field(None, description="Client message identifier")
    timestamp: Optional[datetime] = Field(None, description="Client timestamp; defaults to now")

    @property
    def has_content(self) -> bool:
        return bool(self.content and self.content.strip())


# ============================================================================
# POST /api/lesson/start
# ============================================================================

class LessonStartRequest(BaseModel):
    student_id: str
    student_name: str
    subject: str
    exam_board: str
    tier: str
    lesson_topic_code: str
    lesson_topic: str
    messages: List[ConversationMessage] = Field(default_factory=list)
    lesson_id: Optional[str] = Field(None, description="Scopes diagram reuse across requests")

    class Config:
        json_schema_extra = {
            "examples": [
                {
                    "student_id": "stu-1042",
                    "student_name": "Amira",
                    "subject": "Biology",
                    "exam_board": "AQA",
                    "tier": "Higher",
                    "lesson_topic_code": "B1.1",
                    "lesson_topic": "Cell structure",
                    "messages": [],
                    "lesson_id": "lesson-b1-1",
                }
            ]
        }


class LessonReply(BaseModel):
    role: Literal["assistant"] = "assistant"
    content: str = Field(..., description="Reply with visual directives rendered as HTML")
    message_id: str


class LessonStartResponse(BaseModel):
    success: bool = True
    data: LessonReply
    session_id: str
    has_visuals: bool


# ============================================================================
# GET /api/lesson/history
# ============================================================================

class HistoryMessage(BaseModel):
    id: Optional[str] = None
    role: str
    content: str
    timestamp: datetime
    has_visuals: bool = False


class HistorySession(BaseModel):
    id: str
    student_id: str
    student_name: str
    subject: str
    exam_board: str
    tier: str
    lesson_topic_code: str
    lesson_topic: str
    lesson_status: str
    lesson_start_time: Optional[datetime] = None
    lesson_end_time: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    message_count: int = 0
    messages: Optional[List[HistoryMessage]] = None


class LessonHistoryResponse(BaseModel):
    success: bool = True
    data: List[HistorySession]


# ============================================================================
# POST /api/lesson/save-lesson-data
# ============================================================================

class LessonDataRequest(BaseModel):
    """Terminal lesson metrics reported by the client."""
    student_id: str
    student_name: str
    subject: str
    session_id: Optional[str] = None

    student_summary: Optional[str] = None
    exam_board: Optional[str] = None
    tier: Optional[str] = None
    lesson_topic_code: Optional[str] = None
    lesson_topic: Optional[str] = None
    lesson_status: Optional[str] = None
    lesson_start_time: Optional[datetime] = None
    lesson_end_time: Optional[datetime] = None
    lesson_duration_minutes: Optional[int] = None
    student_start_time: Optional[datetime] = None
    student_end_time: Optional[datetime] = None
    student_total_duration_minutes: Optional[int] = None
    designed_pacing_minutes: Optional[int] = None
    lesson_quality_score: Optional[int] = None
    student_engagement_score: Optional[int] = None
    knowledge_gain_estimate: Optional[int] = None
    quiz_score: Optional[int] = None
    quiz_question_topics: Optional[List[Any]] = None
    regeneration_count: Optional[int] = None
    regeneration_maxed: Optional[bool] = None
    lesson_quality_commentary: Optional[str] = None
    student_confidence_level: Optional[str] = None
    student_progress_trend: Optional[str] = None
    estimated_tokens_used: Optional[int] = None
    estimated_cost_usd: Optional[float] = None
    full_chat_transcript: Optional[str] = None


class LessonDataSaved(BaseModel):
    id: str
    diagrams_generated: int


class LessonDataResponse(BaseModel):
    success: bool = True
    data: LessonDataSaved


# ============================================================================
# POST /api/lesson/generate-diagram
# ============================================================================

class DiagramRequest(BaseModel):
    description: str = Field(..., min_length=1)
    subject: str = "biology"


class DiagramResponse(BaseModel):
    success: bool
    description: str
    subject: str
    image_url: Optional[str] = None
    images: List[GeneratedImage] = Field(default_factory=list)
    error: Optional[str] = None
