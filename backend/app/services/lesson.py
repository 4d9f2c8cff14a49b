"""
Lesson service: runs the lesson graph and serves lesson history,
lesson outcome records and ad-hoc diagram generation.
"""

from typing import List, Optional

from app.agents.lesson_graph import LessonNodes, build_lesson_graph
from app.agents.state import LessonState
from app.providers.chat import ChatModel
from app.providers.images import ImageGenerationError, ImageGenerator
from app.schemas.database import SessionRecord
from app.schemas.lesson import (
    DiagramRequest,
    DiagramResponse,
    HistoryMessage,
    HistorySession,
    LessonDataRequest,
    LessonDataSaved,
    LessonReply,
    LessonStartRequest,
    LessonStartResponse,
)
from app.services.database import DatabaseService
from app.services.prompts import PromptSource
from app.services.subjects import LessonValidationError
from app.visuals.processor import VisualDirectiveProcessor
from app.logging import logger


def to_history_session(record: SessionRecord) -> HistorySession:
    """Shape a stored session for the history API."""
    messages = None
    if record.messages is not None:
        messages = [
            HistoryMessage(
                id=message.message_id,
                role=message.role,
                content=message.display_content,
                timestamp=message.timestamp,
                has_visuals=message.has_visuals,
            )
            for message in record.messages
        ]
    return HistorySession(**record.model_dump(exclude={"messages"}), messages=messages)


class LessonService:
    def __init__(
        self,
        store: DatabaseService,
        prompts: PromptSource,
        chat_model: ChatModel,
        generator: ImageGenerator,
    ):
        self.store = store
        self.generator = generator
        self.visuals = VisualDirectiveProcessor(store, generator)
        self.graph = build_lesson_graph(
            LessonNodes(store, prompts, chat_model, self.visuals)
        )

    def start_lesson(self, request: LessonStartRequest) -> LessonStartResponse:
        logger.info(
            "LESSON_START_REQUESTED",
            extra={
                "student_id": request.student_id,
                "subject": request.subject,
                "lesson_topic": request.lesson_topic,
                "lesson_id": request.lesson_id,
            },
        )

        # LangGraph returns a dict, not a LessonState
        final_state = self.graph.invoke(LessonState(**request.model_dump()))

        has_visuals = bool(final_state.get("has_visuals"))
        content = final_state["processed_reply"] if has_visuals else final_state["reply"]

        return LessonStartResponse(
            data=LessonReply(content=content, message_id=final_state["message_id"]),
            session_id=final_state["session_id"],
            has_visuals=has_visuals,
        )

    def get_history(
        self,
        student_id: str,
        include_messages: bool = False,
        subject: Optional[str] = None,
        exam_board: Optional[str] = None,
        tier: Optional[str] = None,
        lesson_topic_code: Optional[str] = None,
        lesson_topic: Optional[str] = None,
    ) -> List[HistorySession]:
        if not student_id or not student_id.strip():
            raise LessonValidationError("student_id is required")

        sessions = self.store.list_sessions(
            student_id,
            include_messages=include_messages,
            subject=subject,
            exam_board=exam_board,
            tier=tier,
            lesson_topic_code=lesson_topic_code,
            lesson_topic=lesson_topic,
        )
        return [to_history_session(session) for session in sessions]

    def save_lesson_data(self, request: LessonDataRequest) -> LessonDataSaved:
        if not all(v.strip() for v in (request.student_id, request.student_name, request.subject)):
            raise LessonValidationError("Missing required fields")

        diagrams_generated = 0
        if request.session_id:
            try:
                diagrams_generated = self.store.count_successful_diagrams(request.session_id)
            except Exception as e:
                logger.warning(
                    "DIAGRAM_COUNT_FAILED",
                    extra={"session_id": request.session_id, "error": str(e)},
                )

        summary_id = self.store.insert_lesson_summary(
            request.model_dump(exclude={"session_id"}),
            session_id=request.session_id,
            diagrams_generated=diagrams_generated,
        )
        return LessonDataSaved(id=summary_id, diagrams_generated=diagrams_generated)

    def generate_diagram(self, request: DiagramRequest) -> DiagramResponse:
        description = " ".join(request.description.split())
        if not description:
            raise LessonValidationError("Description is required")

        try:
            images = self.generator.generate(description, request.subject)
            if not images:
                raise ImageGenerationError("Image provider returned no images")
        except ImageGenerationError as e:
            logger.warning(
                "ADHOC_DIAGRAM_FAILED",
                extra={"description": description, "error": str(e)},
            )
            return DiagramResponse(
                success=False,
                description=description,
                subject=request.subject,
                error=str(e),
            )

        return DiagramResponse(
            success=True,
            description=description,
            subject=request.subject,
            image_url=images[0].url,
            images=images,
        )
