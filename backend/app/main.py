"""
Tutor FastAPI Application
"""

from contextlib import asynccontextmanager
import os

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api import lessons, mock
from app.providers.chat import CHAT_PROVIDER, build_chat_model
from app.providers.images import IMAGE_PROVIDER, build_image_generator
from app.services.database import DatabaseService
from app.services.lesson import LessonService
from app.services.mock_test import MockTestService
from app.services.prompts import PromptSource
from app.logging import configure_logging, logger

# --- Configuration ---
ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv("ALLOWED_ORIGINS", "http://localhost:3000").split(",")
    if origin.strip()
]


# --- Lifespan ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    logger.info("APP_STARTING")

    store = DatabaseService()
    store.initialize()
    store.apply_migrations()

    prompts = PromptSource()
    chat_model = build_chat_model()
    generator = build_image_generator()

    app.state.store = store
    app.state.lesson_service = LessonService(store, prompts, chat_model, generator)
    app.state.mock_service = MockTestService(store, prompts, chat_model)

    logger.info("APP_STARTED")
    yield

    store.shutdown()
    logger.info("APP_SHUTDOWN")


app = FastAPI(
    title="Tutor API",
    description="AI tutoring backend: lessons with generated diagrams and mock exams",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
    max_age=86400,
)

app.include_router(lessons.router)
app.include_router(mock.router)


# --- Error envelope ---

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": str(exc.detail)},
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request, exc: RequestValidationError):
    errors = exc.errors()
    missing = [
        ".".join(str(part) for part in err["loc"][1:])
        for err in errors
        if err.get("type") == "missing"
    ]
    if missing:
        message = f"Missing required fields: {', '.join(missing)}"
    else:
        message = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'][1:])}: {err['msg']}"
            for err in errors
        )

    return JSONResponse(
        status_code=400,
        content={"success": False, "error": message},
    )


# --- Endpoints ---

@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "operational",
        "system": "tutor",
        "version": "1.0.0",
        "chat_provider": CHAT_PROVIDER,
        "image_provider": IMAGE_PROVIDER,
    }
