"""
Prompt source: fetches subject/type-specific system prompts from the
remote prompt-management API.
"""

import os
from typing import Optional
from urllib.parse import quote

import requests
from requests.exceptions import RequestException

from app.logging import logger

PROMPT_API_URL = os.getenv(
    "PROMPT_API_URL",
    "https://prompts.example.com/api/get-prompt/",
)


class PromptFetchError(RuntimeError):
    """The prompt service failed or returned no prompt."""


class PromptSource:
    """
    Thin client for GET {base_url}{subject}[?type=...].

    Expected response: {"success": true, "data": {"prompt": "..."}}
    """

    def __init__(self, base_url: str = PROMPT_API_URL, session: Optional[requests.Session] = None):
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"
        self.http = session or requests.Session()

    def fetch_prompt(self, subject: str, prompt_type: Optional[str] = None) -> str:
        url = f"{self.base_url}{quote(subject, safe='')}"
        params = {"type": prompt_type} if prompt_type else None

        try:
            response = self.http.get(url, params=params)
            response.raise_for_status()
            body = response.json()
        except (RequestException, ValueError) as e:
            logger.error(
                "PROMPT_FETCH_FAILED",
                extra={"subject": subject, "prompt_type": prompt_type, "error": str(e)},
            )
            raise PromptFetchError(f"Failed to fetch prompt for subject: {subject}") from e

        prompt = None
        if isinstance(body, dict) and body.get("success"):
            prompt = (body.get("data") or {}).get("prompt")
        if not prompt:
            logger.error(
                "PROMPT_NOT_FOUND",
                extra={"subject": subject, "prompt_type": prompt_type},
            )
            raise PromptFetchError(f"No prompt found for subject: {subject}")

        logger.info(
            "PROMPT_FETCHED",
            extra={"subject": subject, "prompt_type": prompt_type, "prompt_length": len(prompt)},
        )
        return prompt
