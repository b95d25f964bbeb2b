"""OpenAI 兼容 Provider 适配器。

适用于 OpenAI、Groq 以及其他实现了 chat/completions 端点的服务：
- URL: {base_url}/chat/completions
- 认证: Authorization: Bearer <api_key>

本实现只发送公共字段：model/messages/max_tokens/temperature，不使用流式。
"""

import json
from typing import Any, Dict, List

import httpx

from deca_chat.domain.exceptions import ApiError, MalformedResponseError, NetworkError, RateLimitError
from deca_chat.domain.models import ChatChoice, ChatMessage, ChatRequest, ChatResult, ChatUsage


class OpenAICompatClient:
    """OpenAI 兼容接口的客户端实现。"""

    name = "openai-compat"

    def __init__(self, api_key: str, base_url: str, timeout: float = 30.0):
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    @property
    def endpoint(self) -> str:
        return f"{self._base_url}/chat/completions"

    def complete(self, req: ChatRequest) -> ChatResult:
        payload = req.to_payload()
        try:
            with httpx.Client(timeout=self._timeout, trust_env=False) as client:
                resp = client.post(
                    self.endpoint,
                    json=payload,
                    headers={
                        "Authorization": f"Bearer {self._api_key}",
                        "Content-Type": "application/json",
                    },
                )
        except httpx.RequestError as e:
            raise NetworkError(code="NETWORK_ERROR", message=str(e), http_status=503) from e
        if resp.status_code == 429:
            raise RateLimitError(code="RATE_LIMIT", message="Rate limit exceeded", http_status=429)
        if resp.status_code >= 400:
            raise ApiError(code="API_ERROR", message=resp.text, http_status=resp.status_code)
        try:
            data = resp.json()
        except (json.JSONDecodeError, ValueError) as e:
            raise MalformedResponseError(
                code="MALFORMED_RESPONSE", message=f"Response is not valid JSON: {e}", http_status=502
            ) from e
        if not isinstance(data, dict):
            raise MalformedResponseError(
                code="MALFORMED_RESPONSE", message="Response JSON is not an object", http_status=502
            )
        return self._parse_response(data, req)

    # ---- 辅助方法 ----

    def _parse_response(self, data: Dict[str, Any], req: ChatRequest) -> ChatResult:
        choices: List[ChatChoice] = []
        raw_choices = data.get("choices") or []
        if not isinstance(raw_choices, list):
            raw_choices = []
        for i, ch in enumerate(raw_choices):
            if not isinstance(ch, dict):
                continue
            msg = ch.get("message") or {}
            choices.append(
                ChatChoice(
                    index=ch.get("index", i),
                    message=self._build_chat_message(msg),
                    finish_reason=ch.get("finish_reason"),
                )
            )
        usage = None
        usage_raw = data.get("usage") or {}
        if isinstance(usage_raw, dict) and usage_raw:
            usage = ChatUsage(
                prompt_tokens=usage_raw.get("prompt_tokens", 0),
                completion_tokens=usage_raw.get("completion_tokens", 0),
                total_tokens=usage_raw.get("total_tokens", 0),
            )
        return ChatResult(model=data.get("model") or req.model, choices=choices, usage=usage, raw=data)

    @staticmethod
    def _build_chat_message(payload: Any) -> ChatMessage:
        if not isinstance(payload, dict):
            payload = {}
        content = payload.get("content")
        if not isinstance(content, str):
            content = ""
        # 回复只会是 assistant，忽略厂商返回的其他 role
        return ChatMessage(role="assistant", content=content)
