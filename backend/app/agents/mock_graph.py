"""
Mock Test Graph - one mock-exam turn.

Flow:
  validate → resolve_session → fetch_prompt → call_model
    → persist_reply → parse_result → END

Mock exams are stored as tutoring sessions with topic "Mock Exam" and
topic code "MOCK-<cycle>".
"""

import json
import re
import uuid
from typing import Any, Dict, Optional

from langgraph.graph import StateGraph, END

from app.agents.lesson_graph import history_turns, store_client_messages
from app.agents.state import MockTestState
from app.providers.chat import ChatModel
from app.services.database import DatabaseService
from app.services.prompts import PromptSource
from app.services.subjects import (
    LessonValidationError,
    normalize_subject,
    resolve_subject_name,
    validate_mock_options,
)
from app.logging import logger

MOCK_TOPIC = "Mock Exam"
MOCK_PROMPT_TYPE = "mock"

FENCED_JSON_PATTERN = re.compile(r"```json\s*([\s\S]*?)\s*```")


def mock_topic_code(mock_cycle: int) -> str:
    return f"MOCK-{mock_cycle}"


def extract_json(text: Optional[str]) -> Optional[Dict[str, Any]]:
    """
    Pull a JSON object out of a model reply.

    Tries a ```json fenced block first, then the span from the first "{"
    to the last "}". Returns None when neither parses to an object.
    """
    if not text:
        return None

    match = FENCED_JSON_PATTERN.search(text)
    if match:
        try:
            parsed = json.loads(match.group(1))
            if isinstance(parsed, dict):
                return parsed
        except json.JSONDecodeError as e:
            logger.warning("MOCK_FENCED_JSON_INVALID", extra={"error": str(e)})

    first, last = text.find("{"), text.rfind("}")
    if first != -1 and last > first:
        try:
            parsed = json.loads(text[first:last + 1])
            if isinstance(parsed, dict):
                return parsed
        except json.JSONDecodeError as e:
            logger.warning("MOCK_BRACE_JSON_INVALID", extra={"error": str(e)})

    return None


class MockTestNodes:
    def __init__(self, store: DatabaseService, prompts: PromptSource, chat_model: ChatModel):
        self.store = store
        self.prompts = prompts
        self.chat_model = chat_model

    def validate(self, state: MockTestState) -> dict:
        if not state.student_id.strip() or not state.student_name.strip():
            raise LessonValidationError("student_id and student_name are required")

        validate_mock_options(state.exam_board, state.tier)
        subject_name = resolve_subject_name(state.subject)

        if state.is_continuation and not (state.student_response or "").strip():
            raise LessonValidationError("student_response is required to continue a mock test")

        return {
            "normalized_subject": normalize_subject(state.subject),
            "subject_name": subject_name,
        }

    def resolve_session(self, state: MockTestState) -> dict:
        session, created = self.store.find_or_create_session(
            student_id=state.student_id,
            student_name=state.student_name,
            subject=state.normalized_subject,
            exam_board=state.exam_board,
            tier=state.tier,
            lesson_topic_code=mock_topic_code(state.mock_cycle),
            lesson_topic=MOCK_TOPIC,
        )
        stored = store_client_messages(self.store, session.id, state.chat_history, created)

        logger.info(
            "MOCK_SESSION_RESOLVED",
            extra={
                "session_id": session.id,
                "created": created,
                "messages_stored": stored,
                "mock_cycle": state.mock_cycle,
            },
        )
        return {"session_id": session.id, "session_created": created}

    def fetch_prompt(self, state: MockTestState) -> dict:
        return {
            "system_prompt": self.prompts.fetch_prompt(
                state.subject_name, prompt_type=MOCK_PROMPT_TYPE
            )
        }

    def call_model(self, state: MockTestState) -> dict:
        if state.is_continuation:
            turn = {
                "question_number": state.question_number,
                "student_response": state.student_response.strip(),
            }
        else:
            turn = {
                "student_id": state.student_id,
                "student_name": state.student_name,
                "subject": state.subject_name,
                "exam_board": state.exam_board,
                "tier": state.tier,
                "mock_cycle": state.mock_cycle,
                "predicted_grade": state.predicted_grade,
                "student_type": state.student_type,
                "error_rate_percent": state.error_rate_percent,
                "simulate_student_responses": state.simulate_student_responses,
            }
        user_turn = json.dumps(turn)

        reply = self.chat_model.complete(
            state.system_prompt,
            history_turns(state.chat_history),
            user_turn,
        )
        return {
            "user_turn": user_turn,
            "reply": reply,
            "message_id": str(uuid.uuid4()),
        }

    def persist_reply(self, state: MockTestState) -> dict:
        self.store.add_message(
            session_id=state.session_id,
            role="assistant",
            content=state.reply,
            message_id=state.message_id,
        )
        return {}

    def parse_result(self, state: MockTestState) -> dict:
        result = extract_json(state.reply)
        if result is None:
            logger.warning(
                "MOCK_RESULT_NOT_JSON",
                extra={"session_id": state.session_id, "reply_length": len(state.reply or "")},
            )
            result = {
                "note": "Could not parse JSON from response",
                "raw_response": state.reply,
            }
        return {"result": result}


def build_mock_graph(nodes: MockTestNodes):
    graph = StateGraph(MockTestState)

    graph.add_node("validate", nodes.validate)
    graph.add_node("resolve_session", nodes.resolve_session)
    graph.add_node("fetch_prompt", nodes.fetch_prompt)
    graph.add_node("call_model", nodes.call_model)
    graph.add_node("persist_reply", nodes.persist_reply)
    graph.add_node("parse_result", nodes.parse_result)

    graph.set_entry_point("validate")

    graph.add_edge("validate", "resolve_session")
    graph.add_edge("resolve_session", "fetch_prompt")
    graph.add_edge("fetch_prompt", "call_model")
    graph.add_edge("call_model", "persist_reply")
    graph.add_edge("persist_reply", "parse_result")
    graph.add_edge("parse_result", END)

    return graph.compile()
