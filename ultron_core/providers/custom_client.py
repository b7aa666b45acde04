"""自定义 OpenAI 兼容服务的通用 HTTP Backend。

接口风格与 OpenAI 一致，使用 chat/completions 端点：
- URL: {base_url}/chat/completions
- 认证: Authorization: Bearer <api_key>（未配置密钥时不发送）

本实现只依赖公共字段：model/messages，以及响应中的 choices[0].message。
"""

import json
from typing import Any, Dict, Sequence

import httpx

from ultron_core.config.run_config import BackendConfig
from ultron_core.domain.exceptions import (
    BackendMalformedError,
    BackendSerializationError,
    BackendStatusError,
    BackendTimeoutError,
    BackendTransportError,
)
from ultron_core.domain.models import ChatMessage
from ultron_core.infrastructure.logging.logger import logger
from ultron_core.providers.registry import CUSTOM_CONFIG


class CustomBackend:
    """通用 HTTP Backend 实现。"""

    name = "custom"

    def __init__(self, config: BackendConfig):
        self._config = config
        self._base_url = (config.base_url or CUSTOM_CONFIG.base_url or "").rstrip("/")
        self._model = config.model or CUSTOM_CONFIG.default_model
        logger.debug("Initializing custom backend", extra={"extra": {"model": self._model, "base_url": self._base_url}})

    def complete(self, conversation: Sequence[ChatMessage]) -> ChatMessage:
        payload = {
            "model": self._model,
            "messages": [{"role": m.role, "content": m.content} for m in conversation],
        }
        try:
            body = json.dumps(payload, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise BackendSerializationError(code="BACKEND_SERIALIZATION", message=str(e), backend=self.name) from e

        headers = {"Content-Type": "application/json"}
        if self._config.api_key:
            headers["Authorization"] = f"Bearer {self._config.api_key}"
        try:
            with httpx.Client(timeout=self._config.timeout, trust_env=False) as client:
                resp = client.post(
                    f"{self._base_url}/chat/completions",
                    content=body.encode("utf-8"),
                    headers=headers,
                )
        except httpx.TimeoutException as e:
            raise BackendTimeoutError(code="BACKEND_TIMEOUT", message=str(e), backend=self.name) from e
        except httpx.RequestError as e:
            # 网络错误：DNS 失败、连接被拒绝等
            raise BackendTransportError(code="BACKEND_TRANSPORT", message=str(e), backend=self.name) from e
        if resp.status_code != 200:
            raise BackendStatusError(
                code="BACKEND_STATUS",
                message=f"custom backend returned non-200 status code: {resp.status_code}",
                status=resp.status_code,
                backend=self.name,
            )
        try:
            data = resp.json()
        except ValueError as e:
            raise BackendMalformedError(code="BACKEND_MALFORMED", message=str(e), backend=self.name) from e
        return self._parse_response(data)

    def _parse_response(self, data: Any) -> ChatMessage:
        choices = data.get("choices") if isinstance(data, dict) else None
        if not isinstance(choices, list) or not choices:
            raise BackendMalformedError(code="BACKEND_MALFORMED", message="no choices in response", backend=self.name)
        first = choices[0] if isinstance(choices[0], dict) else {}
        message: Dict[str, Any] = first.get("message") or {}
        content = message.get("content") if isinstance(message, dict) else None
        if not isinstance(content, str):
            raise BackendMalformedError(code="BACKEND_MALFORMED", message="first choice has no content", backend=self.name)
        logger.debug("custom.response", extra={"extra": {"content": content}})
        return ChatMessage(role="assistant", content=content)
