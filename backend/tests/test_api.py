"""
Tests for the tutor HTTP API.
"""

import pytest

from app.providers.chat import ModelGatewayError
from app.providers.images import ImageGenerationError
from app.services.prompts import PromptFetchError


class TestHealthCheck:
    def test_health_returns_ok(self, test_client):
        response = test_client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "operational"
        assert data["version"] == "1.0.0"
        assert "chat_provider" in data
        assert "image_provider" in data


class TestLessonStart:
    """Test POST /api/lesson/start."""

    def test_plain_reply(self, test_client, lesson_request_body):
        response = test_client.post("/api/lesson/start", json=lesson_request_body)

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["has_visuals"] is False
        assert data["data"]["role"] == "assistant"
        assert data["data"]["content"] == "Welcome to today's lesson."
        assert data["data"]["message_id"]
        assert data["session_id"]

    def test_reply_with_visuals(self, test_client, stub_chat_model, stub_generator, lesson_request_body):
        stub_chat_model.replies = ['Here is a cell: [CreateVisual: "a plant cell"]']

        response = test_client.post(
            "/api/lesson/start", json={**lesson_request_body, "lesson_id": "lesson-b1"}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["has_visuals"] is True
        assert '<img src="http://example/img1.png"' in data["data"]["content"]
        assert stub_generator.calls == [("a plant cell", "biology")]

    def test_same_key_reuses_session(self, test_client, lesson_request_body):
        first = test_client.post("/api/lesson/start", json=lesson_request_body).json()
        second = test_client.post("/api/lesson/start", json=lesson_request_body).json()

        assert first["session_id"] == second["session_id"]
        assert first["data"]["message_id"] != second["data"]["message_id"]

    def test_missing_fields(self, test_client):
        response = test_client.post("/api/lesson/start", json={"student_id": "stu-1042"})

        assert response.status_code == 400
        data = response.json()
        assert data["success"] is False
        assert data["error"].startswith("Missing required fields:")
        assert "student_name" in data["error"]
        assert "lesson_topic_code" in data["error"]

    def test_blank_field(self, test_client, lesson_request_body):
        response = test_client.post(
            "/api/lesson/start", json={**lesson_request_body, "student_name": "   "}
        )

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Missing required fields"}

    def test_unsupported_subject(self, test_client, memory_store, lesson_request_body):
        response = test_client.post(
            "/api/lesson/start", json={**lesson_request_body, "subject": "Chemistry"}
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Unsupported subject: Chemistry"
        assert memory_store.sessions == {}

    def test_prompt_failure(self, test_client, stub_prompts, lesson_request_body):
        stub_prompts.error = PromptFetchError("No prompt found for subject: Biology")

        response = test_client.post("/api/lesson/start", json=lesson_request_body)

        assert response.status_code == 500
        assert response.json() == {
            "success": False,
            "error": "No prompt found for subject: Biology",
        }

    def test_model_failure(self, test_client, stub_chat_model, lesson_request_body):
        stub_chat_model.error = ModelGatewayError("Model call failed: 503")

        response = test_client.post("/api/lesson/start", json=lesson_request_body)

        assert response.status_code == 500
        assert response.json()["error"] == "Model call failed: 503"

    def test_store_failure(self, test_client, memory_store, lesson_request_body):
        memory_store.fail_message_inserts = True

        response = test_client.post("/api/lesson/start", json=lesson_request_body)

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "message insert failed"}


class TestLessonHistory:
    """Test GET /api/lesson/history."""

    def test_requires_student_id(self, test_client):
        response = test_client.get("/api/lesson/history")

        assert response.status_code == 400
        assert response.json()["error"] == "student_id is required"

    def test_lists_sessions(self, test_client, lesson_request_body):
        started = test_client.post("/api/lesson/start", json=lesson_request_body).json()

        response = test_client.get("/api/lesson/history", params={"student_id": "stu-1042"})

        assert response.status_code == 200
        [session] = response.json()["data"]
        assert session["id"] == started["session_id"]
        assert session["subject"] == "biology"
        assert session["message_count"] == 1
        assert session["messages"] is None

    def test_include_messages(self, test_client, lesson_request_body):
        started = test_client.post("/api/lesson/start", json=lesson_request_body).json()

        response = test_client.get(
            "/api/lesson/history",
            params={"student_id": "stu-1042", "include_messages": "true"},
        )

        [session] = response.json()["data"]
        [message] = session["messages"]
        assert message["id"] == started["data"]["message_id"]
        assert message["role"] == "assistant"
        assert message["content"] == "Welcome to today's lesson."

    def test_filters(self, test_client, lesson_request_body):
        test_client.post("/api/lesson/start", json=lesson_request_body)

        response = test_client.get(
            "/api/lesson/history",
            params={"student_id": "stu-1042", "lesson_topic_code": "B9.9"},
        )

        assert response.json()["data"] == []


class TestSaveLessonData:
    """Test POST /api/lesson/save-lesson-data."""

    def test_saves_summary(self, test_client, memory_store, lesson_request_body):
        session_id = test_client.post(
            "/api/lesson/start", json=lesson_request_body
        ).json()["session_id"]
        memory_store.insert_diagram(
            session_id, None, None, "a plant cell", "http://example/1.png", "biology", True
        )

        response = test_client.post("/api/lesson/save-lesson-data", json={
            "student_id": "stu-1042",
            "student_name": "Amira",
            "subject": "Biology",
            "session_id": session_id,
            "lesson_duration_minutes": 35,
            "quiz_question_topics": ["cell wall", "mitochondria"],
            "estimated_cost_usd": 0.042,
        })

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["data"]["diagrams_generated"] == 1
        summary = memory_store.summaries[0]
        assert summary["lesson_duration_minutes"] == 35
        assert summary["quiz_question_topics"] == ["cell wall", "mitochondria"]

    def test_missing_fields(self, test_client):
        response = test_client.post("/api/lesson/save-lesson-data", json={"student_id": "stu-1042"})

        assert response.status_code == 400
        assert "student_name" in response.json()["error"]

    def test_wrong_type(self, test_client):
        response = test_client.post("/api/lesson/save-lesson-data", json={
            "student_id": "stu-1042",
            "student_name": "Amira",
            "subject": "Biology",
            "quiz_score": "excellent",
        })

        assert response.status_code == 400
        assert "quiz_score" in response.json()["error"]


class TestGenerateDiagram:
    """Test POST /api/lesson/generate-diagram."""

    def test_success(self, test_client):
        response = test_client.post(
            "/api/lesson/generate-diagram", json={"description": "a plant cell"}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["subject"] == "biology"
        assert data["image_url"] == "http://example/img1.png"

    def test_provider_failure(self, test_client, stub_generator):
        stub_generator.error = ImageGenerationError("Content policy violation")

        response = test_client.post(
            "/api/lesson/generate-diagram", json={"description": "a plant cell"}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is False
        assert data["error"] == "Content policy violation"

    @pytest.mark.parametrize("body", [{}, {"description": ""}, {"description": "   "}])
    def test_description_required(self, test_client, body):
        response = test_client.post("/api/lesson/generate-diagram", json=body)

        assert response.status_code == 400
        assert response.json()["success"] is False


class TestMockEndpoints:
    """Test /api/mock endpoints."""

    def test_start_mock(self, test_client, stub_chat_model):
        stub_chat_model.replies = ['```json\n{"question_number": 1, "question": "Solve 2x = 8"}\n```']

        response = test_client.post("/api/mock/start-mock", json={
            "student_id": "stu-1042",
            "student_name": "Amira",
        })

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["data"]["question"] == "Solve 2x = 8"
        assert data["data"]["session_data"]["exam_board"] == "AQA"
        assert data["data"]["session_data"]["tier"] == "Higher"
        assert [m["role"] for m in data["chat_history"]] == ["user", "assistant"]

    def test_invalid_tier(self, test_client):
        response = test_client.post("/api/mock/start-mock", json={
            "student_id": "stu-1042",
            "student_name": "Amira",
            "tier": "Intermediate",
        })

        assert response.status_code == 400
        assert "Invalid tier" in response.json()["error"]

    def test_history(self, test_client, lesson_request_body):
        test_client.post("/api/lesson/start", json=lesson_request_body)
        test_client.post("/api/mock/start-mock", json={
            "student_id": "stu-1042",
            "student_name": "Amira",
        })

        response = test_client.get("/api/mock/history", params={"student_id": "stu-1042"})

        assert response.status_code == 200
        [session] = response.json()["data"]
        assert session["lesson_topic"] == "Mock Exam"
        assert session["lesson_topic_code"] == "MOCK-1"
