"""
Request-scoped access to the services built in the application lifespan.
"""

from fastapi import Request

from app.services.lesson import LessonService
from app.services.mock_test import MockTestService


def get_lesson_service(request: Request) -> LessonService:
    return request.app.state.lesson_service


def get_mock_service(request: Request) -> MockTestService:
    return request.app.state.mock_service
