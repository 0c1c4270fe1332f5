"""Mock model provider for local development and testing.

Returns canned responses. No real LLM calls.
"""

from __future__ import annotations

from typing import Any, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class MockModelProvider:
    """IModelProvider implementation that returns deterministic mock responses."""

    def __init__(self, default_response: str = "Mock LLM response") -> None:
        self._default_response = default_response
        self._canned_responses: dict[str, str] = {}
        self._structured: dict[str, Any] = {}
        self._failure: Exception | None = None
        self.calls: list[list[dict[str, Any]]] = []

    def set_response(self, prompt_contains: str, response: str) -> None:
        """Register a canned chat response for prompts containing a keyword."""
        self._canned_responses[prompt_contains] = response

    def set_structured_response(self, response_model: type[BaseModel], payload: Any) -> None:
        """Register the payload ``structured_output`` validates into ``response_model``."""
        self._structured[response_model.__name__] = payload

    def fail_with(self, error: Exception | None) -> None:
        """Make every subsequent call raise ``error`` (``None`` clears it)."""
        self._failure = error

    def chat(self, messages: list[dict[str, Any]], **kwargs: Any) -> str:
        self.calls.append(messages)
        if self._failure is not None:
            raise self._failure
        last_content = _text_of(messages[-1]) if messages else ""
        for keyword, response in self._canned_responses.items():
            if keyword in last_content:
                return response
        return self._default_response

    def structured_output(
        self, messages: list[dict[str, Any]], response_model: type[T], **kwargs: Any
    ) -> T:
        """Validate the registered payload, or return a default instance of the response model."""
        self.calls.append(messages)
        if self._failure is not None:
            raise self._failure
        payload = self._structured.get(response_model.__name__)
        if payload is None:
            return response_model()  # type: ignore[call-arg]
        return response_model.model_validate(payload)  # type: ignore[attr-defined]


def _text_of(message: dict[str, Any]) -> str:
    content = message.get("content", "")
    if isinstance(content, str):
        return content
    return " ".join(part.get("text", "") for part in content if isinstance(part, dict))
