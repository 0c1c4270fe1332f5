"""Bedrock model provider via the Converse API.

Used for PDF table extraction: the PDF travels as a document content block
and structured replies are forced through a single tool whose input schema
is the pydantic response model's JSON schema.
"""

from __future__ import annotations

import base64
from typing import Any, TypeVar

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from layoutconv.core.exceptions import ExtractionError

T = TypeVar("T")

_TOOL_NAME = "record_result"


def _decode_data_uri(data_uri: str) -> tuple[str, bytes]:
    """``data:<mime>;base64,<payload>`` -> (document format, raw bytes)."""
    header, _, payload = data_uri.partition(",")
    mime = header.removeprefix("data:").split(";")[0]
    doc_format = mime.rsplit("/", 1)[-1] or "pdf"
    return doc_format, base64.b64decode(payload)


def to_converse_messages(messages: list[dict[str, Any]]) -> tuple[list[dict[str, Any]], list[dict[str, str]]]:
    """Split generic chat messages into Converse ``messages`` and ``system`` blocks."""
    converse: list[dict[str, Any]] = []
    system: list[dict[str, str]] = []
    for message in messages:
        content = message.get("content", "")
        parts = [{"type": "text", "text": content}] if isinstance(content, str) else content
        if message.get("role") == "system":
            system.extend({"text": p["text"]} for p in parts if p.get("type") == "text")
            continue
        blocks: list[dict[str, Any]] = []
        for part in parts:
            if part.get("type") == "document":
                doc_format, data = _decode_data_uri(part["data_uri"])
                blocks.append({"document": {
                    "format": doc_format,
                    "name": part.get("name", "document"),
                    "source": {"bytes": data},
                }})
            else:
                blocks.append({"text": part.get("text", "")})
        converse.append({"role": message.get("role", "user"), "content": blocks})
    return converse, system


class BedrockModelProvider:
    """Production IModelProvider backed by Amazon Bedrock."""

    def __init__(self, model_id: str, region: str = "us-east-1",
                 endpoint_url: str | None = None, max_tokens: int = 8192,
                 client: Any = None) -> None:
        self._model_id = model_id
        self._max_tokens = max_tokens
        if client is None:
            kwargs: dict = {"region_name": region}
            if endpoint_url:
                kwargs["endpoint_url"] = endpoint_url
            client = boto3.client("bedrock-runtime", **kwargs)
        self._client = client

    def _converse(self, messages: list[dict[str, Any]], **extra: Any) -> dict[str, Any]:
        converse_messages, system = to_converse_messages(messages)
        request: dict[str, Any] = {
            "modelId": self._model_id,
            "messages": converse_messages,
            "inferenceConfig": {"maxTokens": self._max_tokens, "temperature": 0},
            **extra,
        }
        if system:
            request["system"] = system
        try:
            return self._client.converse(**request)
        except (ClientError, BotoCoreError) as exc:
            raise ExtractionError(f"Bedrock converse failed for model {self._model_id!r}: {exc}") from exc

    def chat(self, messages: list[dict[str, Any]], **kwargs: Any) -> str:
        response = self._converse(messages)
        blocks = response.get("output", {}).get("message", {}).get("content", [])
        return "".join(b.get("text", "") for b in blocks)

    def structured_output(
        self, messages: list[dict[str, Any]], response_model: type[T], **kwargs: Any
    ) -> T:
        schema = response_model.model_json_schema()  # type: ignore[attr-defined]
        tool_config = {
            "tools": [{"toolSpec": {
                "name": _TOOL_NAME,
                "description": schema.get("description") or f"Record the {response_model.__name__}.",
                "inputSchema": {"json": schema},
            }}],
            "toolChoice": {"tool": {"name": _TOOL_NAME}},
        }
        response = self._converse(messages, toolConfig=tool_config)
        for block in response.get("output", {}).get("message", {}).get("content", []):
            tool_use = block.get("toolUse")
            if tool_use and tool_use.get("name") == _TOOL_NAME:
                return response_model.model_validate(tool_use.get("input", {}))  # type: ignore[attr-defined]
        raise ExtractionError(f"Bedrock model {self._model_id!r} returned no structured output")
