"""
Versioned schema migrations, applied once at startup by
DatabaseService.apply_migrations().

Append new migrations to the end of MIGRATIONS; never edit an applied one.
"""

from typing import List, Tuple

SCHEMA_MIGRATIONS_TABLE = """
CREATE TABLE IF NOT EXISTS schema_migrations (
    version INTEGER PRIMARY KEY,
    name TEXT NOT NULL,
    applied_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
)
"""

MIGRATIONS: List[Tuple[int, str, str]] = [
    (
        1,
        "create_tutoring_sessions",
        """
        CREATE TABLE IF NOT EXISTS tutoring_sessions (
            id UUID PRIMARY KEY,
            student_id VARCHAR(100) NOT NULL,
            student_name VARCHAR(100) NOT NULL,
            subject VARCHAR(50) NOT NULL,
            exam_board VARCHAR(50) NOT NULL,
            tier VARCHAR(20) NOT NULL,
            lesson_topic_code VARCHAR(50) NOT NULL,
            lesson_topic VARCHAR(100) NOT NULL,
            lesson_status VARCHAR(20) NOT NULL DEFAULT 'active',
            lesson_start_time TIMESTAMPTZ,
            lesson_end_time TIMESTAMPTZ,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT unique_session UNIQUE (
                student_id, subject, exam_board, tier, lesson_topic_code, lesson_topic
            )
        );
        CREATE INDEX IF NOT EXISTS idx_sessions_student
            ON tutoring_sessions (student_id, created_at DESC);
        """,
    ),
    (
        2,
        "create_session_messages",
        """
        CREATE TABLE IF NOT EXISTS session_messages (
            id UUID PRIMARY KEY,
            session_id UUID NOT NULL
                REFERENCES tutoring_sessions(id) ON DELETE CASCADE,
            role VARCHAR(10) NOT NULL
                CHECK (role IN ('system', 'user', 'assistant')),
            content TEXT NOT NULL,
            processed_content TEXT,
            has_visuals BOOLEAN NOT NULL DEFAULT FALSE,
            message_id VARCHAR(100),
            timestamp TIMESTAMPTZ NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        );
        CREATE INDEX IF NOT EXISTS idx_messages_session_timestamp
            ON session_messages (session_id, timestamp);
        """,
    ),
    (
        3,
        "create_generated_diagrams",
        """
        CREATE TABLE IF NOT EXISTS generated_diagrams (
            id UUID PRIMARY KEY,
            session_id UUID NOT NULL
                REFERENCES tutoring_sessions(id) ON DELETE CASCADE,
            lesson_id VARCHAR(100),
            message_id VARCHAR(100),
            description TEXT NOT NULL,
            image_url TEXT,
            revised_prompt TEXT,
            subject VARCHAR(50),
            success BOOLEAN NOT NULL,
            error_message TEXT,
            generation_time TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT diagram_outcome_consistent CHECK (
                (success AND image_url IS NOT NULL)
                OR (NOT success AND error_message IS NOT NULL)
            )
        );
        CREATE INDEX IF NOT EXISTS idx_diagrams_session
            ON generated_diagrams (session_id);
        CREATE INDEX IF NOT EXISTS idx_diagrams_lesson_time
            ON generated_diagrams (lesson_id, generation_time DESC);
        """,
    ),
    (
        4,
        "create_lesson_data",
        """
        CREATE TABLE IF NOT EXISTS lesson_data (
            id UUID PRIMARY KEY,
            session_id UUID
                REFERENCES tutoring_sessions(id) ON DELETE SET NULL,
            student_id VARCHAR(100) NOT NULL,
            student_name VARCHAR(100) NOT NULL,
            student_summary TEXT,
            subject VARCHAR(50) NOT NULL,
            exam_board VARCHAR(50),
            tier VARCHAR(20),
            lesson_topic_code VARCHAR(50),
            lesson_topic VARCHAR(100),
            lesson_status VARCHAR(20),
            lesson_start_time TIMESTAMPTZ,
            lesson_end_time TIMESTAMPTZ,
            lesson_duration_minutes INTEGER,
            student_start_time TIMESTAMPTZ,
            student_end_time TIMESTAMPTZ,
            student_total_duration_minutes INTEGER,
            designed_pacing_minutes INTEGER,
            lesson_quality_score INTEGER,
            student_engagement_score INTEGER,
            knowledge_gain_estimate INTEGER,
            quiz_score INTEGER,
            quiz_question_topics JSONB,
            regeneration_count INTEGER,
            regeneration_maxed BOOLEAN,
            lesson_quality_commentary TEXT,
            student_confidence_level VARCHAR(20),
            student_progress_trend VARCHAR(20),
            diagrams_generated INTEGER NOT NULL DEFAULT 0,
            estimated_tokens_used INTEGER,
            estimated_cost_usd NUMERIC(12, 6),
            full_chat_transcript TEXT,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        );
        """,
    ),
]
