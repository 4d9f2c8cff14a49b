"""
Lesson Graph - one tutoring turn as a LangGraph state machine.

Flow:
  validate → resolve_session → fetch_prompt → call_model
  call_model → (process_visuals | persist_reply)
  process_visuals → persist_reply → END

Any node exception propagates out of invoke(). Rows written before the
failure are kept.
"""

import json
import uuid
from datetime import datetime, timezone
from typing import Dict, List

from langgraph.graph import StateGraph, END

from app.agents.state import LessonState
from app.providers.chat import ChatModel
from app.schemas.lesson import ConversationMessage
from app.services.database import DatabaseService
from app.services.prompts import PromptSource
from app.services.subjects import (
    LessonValidationError,
    normalize_subject,
    resolve_subject_name,
    validate_lesson_exam_board,
)
from app.visuals.processor import VisualDirectiveProcessor
from app.logging import logger

REQUIRED_LESSON_FIELDS = (
    "student_id", "student_name", "subject", "exam_board",
    "tier", "lesson_topic_code", "lesson_topic",
)


# ============================
# Shared helpers
# ============================

def store_client_messages(
    store: DatabaseService,
    session_id: str,
    messages: List[ConversationMessage],
    session_created: bool,
) -> int:
    """
    Persist client-supplied turns.

    A new session stores every non-empty message; a reused session stores
    only the latest one (if non-empty).
    """
    if session_created:
        to_store = [m for m in messages if m.has_content]
    else:
        to_store = [messages[-1]] if messages and messages[-1].has_content else []

    return store.add_messages(
        session_id,
        [
            {
                "role": m.role,
                "content": m.content.strip(),
                "id": m.id,
                "timestamp": m.timestamp,
            }
            for m in to_store
        ],
    )


def history_turns(messages: List[ConversationMessage]) -> List[Dict[str, str]]:
    return [
        {"role": m.role, "content": m.content.strip()}
        for m in messages
        if m.has_content
    ]


# ============================
# Nodes
# ============================

class LessonNodes:
    """Graph nodes bound to their collaborators."""

    def __init__(
        self,
        store: DatabaseService,
        prompts: PromptSource,
        chat_model: ChatModel,
        visuals: VisualDirectiveProcessor,
    ):
        self.store = store
        self.prompts = prompts
        self.chat_model = chat_model
        self.visuals = visuals

    def validate(self, state: LessonState) -> dict:
        if any(not getattr(state, field).strip() for field in REQUIRED_LESSON_FIELDS):
            raise LessonValidationError("Missing required fields")

        subject_name = resolve_subject_name(state.subject)
        validate_lesson_exam_board(subject_name, state.exam_board)

        return {
            "normalized_subject": normalize_subject(state.subject),
            "subject_name": subject_name,
        }

    def resolve_session(self, state: LessonState) -> dict:
        session, created = self.store.find_or_create_session(
            student_id=state.student_id,
            student_name=state.student_name,
            subject=state.normalized_subject,
            exam_board=state.exam_board,
            tier=state.tier,
            lesson_topic_code=state.lesson_topic_code,
            lesson_topic=state.lesson_topic,
        )
        stored = store_client_messages(self.store, session.id, state.messages, created)

        logger.info(
            "LESSON_SESSION_RESOLVED",
            extra={
                "session_id": session.id,
                "created": created,
                "messages_stored": stored,
            },
        )
        return {"session_id": session.id, "session_created": created}

    def fetch_prompt(self, state: LessonState) -> dict:
        return {"system_prompt": self.prompts.fetch_prompt(state.subject_name)}

    def call_model(self, state: LessonState) -> dict:
        lesson_input = {
            "student_id": state.student_id,
            "student_name": state.student_name,
            "subject": state.normalized_subject,
            "exam_board": state.exam_board,
            "tier": state.tier,
            "lesson_topic_code": state.lesson_topic_code,
            "lesson_topic": state.lesson_topic,
            "simulate_student_responses": False,
            "lesson_start_time": datetime.now(timezone.utc).isoformat(),
        }
        user_turn = json.dumps(lesson_input)

        reply = self.chat_model.complete(
            state.system_prompt,
            history_turns(state.messages),
            user_turn,
        )
        return {
            "user_turn": user_turn,
            "reply": reply,
            "message_id": str(uuid.uuid4()),
        }

    def route_after_model(self, state: LessonState) -> str:
        if self.visuals.has_directives(state.reply):
            return "process_visuals"
        return "persist_reply"

    def process_visuals(self, state: LessonState) -> dict:
        processed = self.visuals.process(
            state.reply,
            state.normalized_subject,
            session_id=state.session_id,
            message_id=state.message_id,
            lesson_id=state.lesson_id,
        )
        return {"processed_reply": processed, "has_visuals": True}

    def persist_reply(self, state: LessonState) -> dict:
        self.store.add_message(
            session_id=state.session_id,
            role="assistant",
            content=state.reply,
            processed_content=state.processed_reply if state.has_visuals else None,
            has_visuals=state.has_visuals,
            message_id=state.message_id,
        )

        logger.info(
            "LESSON_REPLY_STORED",
            extra={
                "session_id": state.session_id,
                "message_id": state.message_id,
                "has_visuals": state.has_visuals,
            },
        )
        return {}


# ============================
# LangGraph Construction
# ============================

def build_lesson_graph(nodes: LessonNodes):
    graph = StateGraph(LessonState)

    graph.add_node("validate", nodes.validate)
    graph.add_node("resolve_session", nodes.resolve_session)
    graph.add_node("fetch_prompt", nodes.fetch_prompt)
    graph.add_node("call_model", nodes.call_model)
    graph.add_node("process_visuals", nodes.process_visuals)
    graph.add_node("persist_reply", nodes.persist_reply)

    graph.set_entry_point("validate")

    graph.add_edge("validate", "resolve_session")
    graph.add_edge("resolve_session", "fetch_prompt")
    graph.add_edge("fetch_prompt", "call_model")

    # Model reply → (Visuals | Persist)
    graph.add_conditional_edges(
        "call_model",
        nodes.route_after_model,
        {
            "process_visuals": "process_visuals",
            "persist_reply": "persist_reply",
        },
    )

    graph.add_edge("process_visuals", "persist_reply")
    graph.add_edge("persist_reply", END)

    return graph.compile()
