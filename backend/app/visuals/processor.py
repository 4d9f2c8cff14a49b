"""
Visual Directive Processor

Turns [CreateVisual: ...] directives in model output into rendered diagram
markup and records every generation attempt.

Per directive, in text order:
1. Look up generated_diagrams for (lesson_id, description) when a lesson id is given
2. On miss, call the image generator with the effective subject
3. Persist one row per image (or one failure row) when a session id is given
4. Replace the directive's exact span with diagram or fallback markup

The cache is check-then-generate. Concurrent identical requests may both
generate; every attempt is still persisted.
"""

from typing import List, Optional

from app.providers.images import GeneratedImage, ImageGenerationError, ImageGenerator
from app.schemas.database import DiagramRecord
from app.services.database import DatabaseService
from app.visuals.parser import Directive, parse_directives
from app.visuals.render import render_diagram, render_fallback
from app.logging import logger


class VisualDirectiveProcessor:
    def __init__(self, store: DatabaseService, generator: ImageGenerator):
        self.store = store
        self.generator = generator

    def has_directives(self, text: Optional[str]) -> bool:
        return bool(text) and bool(parse_directives(text))

    def process(
        self,
        text: str,
        subject: str,
        session_id: Optional[str] = None,
        message_id: Optional[str] = None,
        lesson_id: Optional[str] = None,
    ) -> str:
        """
        Return text with every directive replaced by markup.

        Never raises: a failing directive renders as a fallback block or is
        left untouched, and a failure outside any directive returns the
        original text.
        """
        try:
            directives = parse_directives(text)
            if not directives:
                return text

            logger.info(
                "VISUAL_DIRECTIVES_FOUND",
                extra={
                    "count": len(directives),
                    "session_id": session_id,
                    "lesson_id": lesson_id,
                    "message_id": message_id,
                },
            )

            pieces: List[str] = []
            cursor = 0
            for directive in directives:
                pieces.append(text[cursor:directive.start])
                try:
                    pieces.append(
                        self._resolve(directive, subject, session_id, message_id, lesson_id)
                    )
                except Exception as e:
                    logger.error(
                        "VISUAL_DIRECTIVE_FAILED",
                        extra={"description": directive.description, "error": str(e)},
                    )
                    pieces.append(directive.matched_text)
                cursor = directive.end
            pieces.append(text[cursor:])

            return "".join(pieces)

        except Exception as e:
            logger.error("VISUAL_PROCESSING_FAILED", extra={"error": str(e)})
            return text

    # ========================================================================
    # Per-directive steps
    # ========================================================================

    def _resolve(
        self,
        directive: Directive,
        subject: str,
        session_id: Optional[str],
        message_id: Optional[str],
        lesson_id: Optional[str],
    ) -> str:
        description = directive.description
        effective_subject = directive.subject_override or subject

        cached = self._find_cached(lesson_id, description)
        if cached is not None:
            logger.info(
                "DIAGRAM_CACHE_HIT",
                extra={"lesson_id": lesson_id, "diagram_id": cached.id, "description": description},
            )
            return render_diagram(description, effective_subject, [cached.image_url], [cached.id])

        try:
            images: List[GeneratedImage] = self.generator.generate(description, effective_subject)
            if not images:
                raise ImageGenerationError("Image provider returned no images")
        except Exception as e:
            error = str(e) or type(e).__name__
            logger.warning(
                "DIAGRAM_GENERATION_FAILED",
                extra={
                    "provider": self.generator.name,
                    "description": description,
                    "subject": effective_subject,
                    "error": error,
                },
            )
            self._record(
                session_id, lesson_id, message_id, description,
                None, effective_subject, False, error_message=error,
            )
            return render_fallback(description, effective_subject, error)

        logger.info(
            "DIAGRAM_GENERATED",
            extra={
                "provider": self.generator.name,
                "description": description,
                "image_count": len(images),
            },
        )
        diagram_ids = [
            self._record(
                session_id, lesson_id, message_id, description,
                image.url, effective_subject, True, revised_prompt=image.revised_prompt,
            )
            for image in images
        ]
        return render_diagram(
            description, effective_subject, [image.url for image in images], diagram_ids
        )

    def _find_cached(self, lesson_id: Optional[str], description: str) -> Optional[DiagramRecord]:
        if not lesson_id:
            return None
        try:
            return self.store.find_cached_diagram(lesson_id, description)
        except Exception as e:
            logger.warning(
                "DIAGRAM_CACHE_LOOKUP_FAILED",
                extra={"lesson_id": lesson_id, "error": str(e)},
            )
            return None

    def _record(
        self,
        session_id: Optional[str],
        lesson_id: Optional[str],
        message_id: Optional[str],
        description: str,
        image_url: Optional[str],
        subject: str,
        success: bool,
        error_message: Optional[str] = None,
        revised_prompt: Optional[str] = None,
    ) -> Optional[str]:
        """Persist one attempt. Returns the row id, or None if not stored."""
        if not session_id:
            logger.debug("DIAGRAM_NOT_PERSISTED_NO_SESSION", extra={"description": description})
            return None
        try:
            return self.store.insert_diagram(
                session_id=session_id,
                lesson_id=lesson_id,
                message_id=message_id,
                description=description,
                image_url=image_url,
                subject=subject,
                success=success,
                error_message=error_message,
                revised_prompt=revised_prompt,
            )
        except Exception as e:
            logger.error(
                "DIAGRAM_PERSIST_FAILED",
                extra={"session_id": session_id, "description": description, "error": str(e)},
            )
            return None
