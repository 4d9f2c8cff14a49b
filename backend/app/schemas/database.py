"""
Database record schemas for PostgreSQL persistence.
These are INTERNAL models - API responses are shaped in app/schemas/lesson.py.

Tables:
- tutoring_sessions
- session_messages
- generated_diagrams
- lesson_data (write-only, see DatabaseService.insert_lesson_summary)
"""

from datetime import datetime
from typing import Optional, List, Literal
from pydantic import BaseModel


class SessionRecord(BaseModel):
    """Database record for tutoring_sessions table."""
    id: str
    student_id: str
    student_name: str
    subject: str
    exam_board: str
    tier: str
    lesson_topic_code: str
    lesson_topic: str
    lesson_status: str = "active"
    lesson_start_time: Optional[datetime] = None
    lesson_end_time: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    # Populated by list_sessions()
    message_count: int = 0
    # Populated if include_messages=True
    messages: Optional[List["MessageRecord"]] = None


class MessageRecord(BaseModel):
    """Database record for session_messages table."""
    id: str
    session_id: str
    role: Literal["system", "user", "assistant"]
    content: str
    processed_content: Optional[str] = None
    has_visuals: bool = False
    message_id: Optional[str] = None  # client-supplied or generated
    timestamp: datetime
    created_at: Optional[datetime] = None

    @property
    def display_content(self) -> str:
        """Processed markup when the message carried visuals, raw text otherwise."""
        if self.has_visuals and self.processed_content is not None:
            return self.processed_content
        return self.content


class DiagramRecord(BaseModel):
    """Database record for generated_diagrams table."""
    id: str
    session_id: str
    lesson_id: Optional[str] = None
    message_id: Optional[str] = None
    description: str
    image_url: Optional[str] = None
    revised_prompt: Optional[str] = None
    subject: Optional[str] = None
    success: bool
    error_message: Optional[str] = None
    generation_time: datetime


SessionRecord.model_rebuild()
