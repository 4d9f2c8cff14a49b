"""
Conversational completion providers.

Both variants implement complete(system_prompt, history, new_turn) -> str:
- OpenAIChatModel: stateless single call through langchain ChatOpenAI
- GeminiChatModel: stateful chat session through google-genai

No explicit timeout or retry; transport defaults apply.
"""

import os
from typing import Dict, List, Optional

from langchain_openai import ChatOpenAI
from google import genai
from google.genai import types

from app.logging import logger

CHAT_PROVIDER = os.getenv("CHAT_PROVIDER", "openai")
OPENAI_CHAT_MODEL = os.getenv("OPENAI_CHAT_MODEL", "gpt-4o")
GEMINI_CHAT_MODEL = os.getenv("GEMINI_CHAT_MODEL", "gemini-2.5-flash")
CHAT_TEMPERATURE = float(os.getenv("CHAT_TEMPERATURE", "0.7"))
CHAT_MAX_TOKENS = int(os.getenv("CHAT_MAX_TOKENS", "4096"))

ConversationTurn = Dict[str, str]


class ModelGatewayError(RuntimeError):
    """The completion provider failed or returned an empty reply."""


class ChatModel:
    name = "base"

    def complete(
        self,
        system_prompt: str,
        history: List[ConversationTurn],
        new_turn: str,
    ) -> str:
        """
        Args:
            system_prompt: Subject prompt from the prompt service
            history: Prior turns as {"role": "user"|"assistant", "content": ...}
            new_turn: The new user turn

        Returns:
            Reply text
        """
        raise NotImplementedError


class OpenAIChatModel(ChatModel):
    name = "openai"

    def __init__(self, llm_client=None):
        self.llm = llm_client or ChatOpenAI(
            model=OPENAI_CHAT_MODEL,
            temperature=CHAT_TEMPERATURE,
            max_tokens=CHAT_MAX_TOKENS,
        )

    def complete(self, system_prompt, history, new_turn):
        messages = [{"role": "system", "content": system_prompt}]
        messages.extend(
            {"role": turn["role"], "content": turn["content"]}
            for turn in history
            if turn.get("role") in ("user", "assistant") and turn.get("content")
        )
        messages.append({"role": "user", "content": new_turn})

        try:
            response = self.llm.invoke(messages)
        except Exception as e:
            logger.error(
                "MODEL_CALL_FAILED",
                extra={"provider": self.name, "error": str(e)},
            )
            raise ModelGatewayError(f"Model call failed: {e}") from e

        content = response.content if isinstance(response.content, str) else ""
        if not content.strip():
            raise ModelGatewayError("Model returned an empty reply")

        logger.info(
            "MODEL_CALL_COMPLETED",
            extra={
                "provider": self.name,
                "turns": len(messages),
                "reply_length": len(content),
            },
        )
        return content


class GeminiChatModel(ChatModel):
    name = "gemini"

    def __init__(self, client: Optional["genai.Client"] = None, model: str = GEMINI_CHAT_MODEL):
        self.client = client or genai.Client(api_key=os.getenv("GEMINI_API_KEY"))
        self.model = model

    def complete(self, system_prompt, history, new_turn):
        # Gemini names the assistant role "model"
        contents = [
            types.Content(
                role="model" if turn["role"] == "assistant" else "user",
                parts=[types.Part(text=turn["content"])],
            )
            for turn in history
            if turn.get("role") in ("user", "assistant") and turn.get("content")
        ]

        try:
            chat = self.client.chats.create(
                model=self.model,
                config=types.GenerateContentConfig(
                    system_instruction=system_prompt,
                    temperature=CHAT_TEMPERATURE,
                    max_output_tokens=CHAT_MAX_TOKENS,
                ),
                history=contents,
            )
            response = chat.send_message(new_turn)
        except Exception as e:
            logger.error(
                "MODEL_CALL_FAILED",
                extra={"provider": self.name, "error": str(e)},
            )
            raise ModelGatewayError(f"Model call failed: {e}") from e

        content = response.text or ""
        if not content.strip():
            raise ModelGatewayError("Model returned an empty reply")

        logger.info(
            "MODEL_CALL_COMPLETED",
            extra={
                "provider": self.name,
                "turns": len(contents) + 1,
                "reply_length": len(content),
            },
        )
        return content


def build_chat_model(provider: str = CHAT_PROVIDER) -> ChatModel:
    provider = provider.strip().lower()
    if provider == "openai":
        model = OpenAIChatModel()
    elif provider == "gemini":
        model = GeminiChatModel()
    else:
        raise ValueError(f"Unknown CHAT_PROVIDER: {provider}")

    logger.info("CHAT_PROVIDER_CONFIGURED", extra={"provider": model.name})
    return model
