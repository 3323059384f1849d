"""
Chat assistant for visitors, backed by an OpenAI-compatible chat completions API
(Groq by default, xAI Grok when LLM_PROVIDER=grok).

The assistant only receives a `grounding` callable that returns the current
topic catalogue as plain {title, description} records. It is called on every
question, so the prompt never goes stale after an admin edits topics, and the
assistant has no handle on the state controller itself.
"""

from __future__ import annotations

import time
from typing import Any, Callable, Iterable, Mapping

import requests

from dialogics.utils.config import llm_api_key, llm_base_url, llm_max_tokens, llm_model
from dialogics.utils.logger import get_logger

logger = get_logger()

MAX_RETRIES = 3

UNAVAILABLE_REPLY = "I'm sorry, my connection is currently unavailable (API Key missing)."
ERROR_REPLY = "I encountered a temporary error. Please try again."
EMPTY_REPLY = "I apologize, I couldn't generate a response."

SYSTEM_PROMPT_TEMPLATE = """You are the AI Assistant for VENUS Dialogics and Training Unlimited, representing Mr. Roel Venus.

Your STRICT goal is to assist users ONLY with the following training topics:
{topic_list}

Rules:
1. If a user asks about these topics, provide helpful, professional summaries and encourage them to book a schedule.
2. If a user asks about anything else (e.g., cooking, coding, general news), politely decline and steer them back to Mr. Venus's training services.
3. Be professional, concise, and enthusiastic.
4. Do not make up facts about Mr. Venus outside of provided context."""


def build_system_prompt(topics: Iterable[Mapping[str, Any]]) -> str:
    lines = [f"- {t.get('title', '')}: {t.get('description', '')}" for t in topics]
    topic_list = "\n".join(lines) if lines else "- (no topics are currently published)"
    return SYSTEM_PROMPT_TEMPLATE.format(topic_list=topic_list)


class AssistantClient:
    def __init__(
        self,
        grounding: Callable[[], Iterable[Mapping[str, Any]]],
        api_key: str | None = None,
        base_url: str | None = None,
        model: str | None = None,
    ) -> None:
        self._grounding = grounding
        self._base_url = base_url or llm_base_url()
        self.model = model or llm_model()
        self.max_tokens = llm_max_tokens()
        if api_key is None:
            try:
                api_key = llm_api_key()
            except ValueError as e:
                logger.warning("Assistant disabled: %s", e)
                api_key = ""
        self.api_key = api_key

    @property
    def available(self) -> bool:
        return bool(self.api_key)

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def _chat_request(self, messages: list[dict[str, Any]]) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "max_tokens": self.max_tokens,
        }
        last_err: Exception | None = None
        for attempt in range(MAX_RETRIES):
            try:
                r = requests.post(
                    self._base_url,
                    headers=self._headers(),
                    json=payload,
                    timeout=60,
                )
                r.raise_for_status()
                return r.json()
            except requests.RequestException as e:
                last_err = e
                status = None
                if getattr(e, "response", None) is not None:
                    status = getattr(e.response, "status_code", None)
                logger.warning("LLM API attempt %d failed (status %s): %s", attempt + 1, status, e)
                # Auth and bad-request errors will not fix themselves.
                if status in (400, 401, 403):
                    break
                if attempt < MAX_RETRIES - 1:
                    time.sleep(2 ** attempt)
        raise RuntimeError(f"LLM API request failed after retries: {last_err}") from last_err

    def ask(self, question: str) -> str:
        """Answer a visitor question about the current topics. Never raises."""
        if not self.available:
            return UNAVAILABLE_REPLY
        question = (question or "").strip()
        if not question:
            return EMPTY_REPLY

        messages = [
            {"role": "system", "content": build_system_prompt(self._grounding())},
            {"role": "user", "content": question},
        ]
        try:
            data = self._chat_request(messages)
        except RuntimeError as e:
            logger.error("Assistant request failed: %s", e)
            return ERROR_REPLY
        except ValueError as e:
            logger.error("Assistant returned malformed JSON: %s", e)
            return ERROR_REPLY

        try:
            content = data["choices"][0]["message"].get("content")
        except (KeyError, IndexError, TypeError, AttributeError):
            logger.error("Assistant response missing choices: %s", str(data)[:300])
            return ERROR_REPLY
        return content.strip() if isinstance(content, str) and content.strip() else EMPTY_REPLY
