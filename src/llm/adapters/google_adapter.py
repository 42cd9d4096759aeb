# src/llm/adapters/google_adapter.py — v1
"""Google Gemini adapter implementing BaseLLMClient.

Uses the google-generativeai SDK. Structured outputs are requested through
``response_mime_type`` + ``response_schema``.
"""

from __future__ import annotations

import time
from typing import Any

from pydantic import BaseModel

from sitegen.llm.base_client import BaseLLMClient
from sitegen.llm.models import LLMResponse, Message


class GoogleAdapter(BaseLLMClient):
    """Google Gemini adapter (default provider)."""

    def __init__(self, model: str = "gemini-2.5-flash", api_key: str = "", **kwargs: Any):
        self._model = model
        self._api_key = api_key

    async def complete(
        self,
        messages: list[Message],
        system: str | None = None,
        max_tokens: int = 8192,
        temperature: float = 0.7,
        response_format: type[BaseModel] | None = None,
    ) -> LLMResponse:
        api_key = self.require_api_key(self.provider_name, self._api_key)
        import google.generativeai as genai

        genai.configure(api_key=api_key)
        model = genai.GenerativeModel(self._model, system_instruction=system)

        gen_config: dict[str, Any] = {
            "max_output_tokens": max_tokens,
            "temperature": temperature,
        }
        if response_format is not None:
            gen_config["response_mime_type"] = "application/json"
            gen_config["response_schema"] = _gemini_schema(response_format)

        contents = []
        for m in messages:
            role = "model" if m.role == "assistant" else "user"
            contents.append({"role": role, "parts": [{"text": m.content}]})

        t0 = time.monotonic()
        resp = await model.generate_content_async(
            contents, generation_config=gen_config,
        )
        latency = int((time.monotonic() - t0) * 1000)

        usage = getattr(resp, "usage_metadata", None)
        return LLMResponse(
            content=resp.text or "",
            input_tokens=getattr(usage, "prompt_token_count", 0) if usage else 0,
            output_tokens=getattr(usage, "candidates_token_count", 0) if usage else 0,
            model=self._model,
            provider="google",
            latency_ms=latency,
            truncated=_hit_token_limit(resp),
            raw_response=resp,
        )

    @property
    def provider_name(self) -> str:
        return "google"


def _gemini_schema(model: type[BaseModel]) -> dict[str, Any]:
    """Inline a pydantic JSON schema into the OpenAPI subset Gemini accepts.

    Gemini rejects ``$ref``/``$defs``, ``title`` and ``default`` keys.
    """
    schema = model.model_json_schema(by_alias=True)
    defs = schema.pop("$defs", {})

    def _resolve(node: Any) -> Any:
        if isinstance(node, dict):
            if "$ref" in node:
                return _resolve(defs[node["$ref"].rsplit("/", 1)[-1]])
            if "anyOf" in node:
                options = [o for o in node["anyOf"] if o.get("type") != "null"]
                if len(options) == 1:
                    return _resolve(options[0])
            out: dict[str, Any] = {}
            for key, value in node.items():
                if key == "properties":
                    # field names, not schema keywords
                    out[key] = {name: _resolve(sub) for name, sub in value.items()}
                elif key not in ("title", "default"):
                    out[key] = _resolve(value)
            return out
        if isinstance(node, list):
            return [_resolve(v) for v in node]
        return node

    return _resolve(schema)


def _hit_token_limit(resp: Any) -> bool:
    candidates = getattr(resp, "candidates", None) or []
    if not candidates:
        return False
    reason = getattr(candidates[0], "finish_reason", None)
    return getattr(reason, "name", str(reason)) == "MAX_TOKENS"
