from __future__ import annotations
import time
from typing import Any, Dict, List, Optional

from openai import OpenAI

from .config import Settings
from .errors import ErrorKind, VerificationError
from .logger import log_event

PROMPT_TEMPLATE = (
    "I'm providing a 'before' and 'after' image for work verification. "
    "Please analyze these images based on the following specific instructions: {instructions}\n"
    "\n"
    "Please describe what changes have been made between the images and verify if the requested "
    "work appears to be completed based on visible changes. Focus on the specific elements mentioned "
    "in the instructions above. Provide a detailed assessment of the changes and conclude whether the "
    "work seems to be completed or not. Write a detailed report in bullet points about the relevant "
    "changes you notice."
)


def build_prompt(instructions: str) -> str:
    return PROMPT_TEMPLATE.format(instructions=instructions)


def build_messages(instructions: str, before_url: str, after_url: str, detail: str = "high") -> List[Dict[str, Any]]:
    """One user message: the prompt, then the before image, then the after image."""
    return [
        {
            "role": "user",
            "content": [
                {"type": "text", "text": build_prompt(instructions)},
                {"type": "image_url", "image_url": {"url": before_url, "detail": detail}},
                {"type": "image_url", "image_url": {"url": after_url, "detail": detail}},
            ],
        }
    ]


class CompletionService:
    """Thin wrapper around the OpenAI chat-completions endpoint.

    The call is bounded by ``openai_timeout_s`` and never retried.
    """

    def __init__(self, settings: Settings, client: Optional[OpenAI] = None):
        self.model = settings.openai_model
        self.max_tokens = settings.openai_max_tokens
        self.detail = settings.openai_image_detail
        self._settings = settings
        self._client = client

    @property
    def client(self) -> OpenAI:
        # built lazily so a missing key only fails the request that needs it
        if self._client is None:
            self._client = OpenAI(
                api_key=self._settings.openai_api_key or None,
                timeout=self._settings.openai_timeout_s,
                max_retries=0,
            )
        return self._client

    def analyze(self, instructions: str, before_url: str, after_url: str) -> str:
        messages = build_messages(instructions, before_url, after_url, self.detail)
        t0 = time.perf_counter()
        response = self.client.chat.completions.create(
            model=self.model,
            messages=messages,
            max_tokens=self.max_tokens,
        )
        log_event("completion", model=self.model, latency_ms=round((time.perf_counter() - t0) * 1000, 2))
        if not response.choices or response.choices[0].message.content is None:
            raise VerificationError(ErrorKind.EXTERNAL_SERVICE, "Completion service returned no analysis text")
        return response.choices[0].message.content
