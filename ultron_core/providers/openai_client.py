"""OpenAI Backend 适配器。

通过官方 openai SDK 调用 chat.completions 接口：

1. 把 ChatMessage 列表转换为 SDK 所需的 role/content 字典。
2. 调用接口并把 SDK 异常映射为 BackendError 的各个子类。
3. 只取第一个 choice 的文本内容，其余字段（usage、finish_reason 等）丢弃。

SDK 内置重试被关闭（max_retries=0），重试策略统一由控制循环负责。
"""

from typing import Any, Dict, List, Sequence

import openai
from openai import OpenAI

from ultron_core.config.run_config import BackendConfig
from ultron_core.domain.exceptions import (
    BackendError,
    BackendMalformedError,
    BackendSerializationError,
    BackendStatusError,
    BackendTimeoutError,
    BackendTransportError,
)
from ultron_core.domain.models import ChatMessage
from ultron_core.infrastructure.logging.logger import logger
from ultron_core.providers.registry import OPENAI_CONFIG, ProviderConfig


class OpenAIBackend:
    """OpenAI 官方 SDK 实现。"""

    name = "openai"
    defaults: ProviderConfig = OPENAI_CONFIG

    def __init__(self, config: BackendConfig):
        self._config = config
        self._model = config.model or self.defaults.default_model
        logger.debug(f"Initializing {self.name} backend", extra={"extra": {"model": self._model}})
        self._client = OpenAI(
            api_key=config.api_key,
            base_url=config.base_url or self.defaults.base_url,
            timeout=config.timeout,
            max_retries=0,
        )

    @property
    def model(self) -> str:
        return self._model

    def complete(self, conversation: Sequence[ChatMessage]) -> ChatMessage:
        messages = self._to_messages(conversation)
        logger.debug(
            f"{self.name}.request",
            extra={"extra": {"model": self._model, "messages": len(messages)}},
        )
        try:
            resp = self._client.chat.completions.create(model=self._model, messages=messages)
        except openai.APITimeoutError as e:
            raise BackendTimeoutError(code="BACKEND_TIMEOUT", message=str(e), backend=self.name) from e
        except openai.APIConnectionError as e:
            # 网络错误：DNS 失败、连接被拒绝等
            raise BackendTransportError(code="BACKEND_TRANSPORT", message=str(e), backend=self.name) from e
        except openai.APIStatusError as e:
            raise BackendStatusError(
                code="BACKEND_STATUS",
                message=str(e),
                status=e.status_code,
                backend=self.name,
            ) from e
        except openai.APIResponseValidationError as e:
            raise BackendMalformedError(code="BACKEND_MALFORMED", message=str(e), backend=self.name) from e
        except openai.APIError as e:
            raise BackendError(code="BACKEND_ERROR", message=str(e), backend=self.name) from e
        except (TypeError, ValueError) as e:
            raise BackendSerializationError(code="BACKEND_SERIALIZATION", message=str(e), backend=self.name) from e
        return self._parse_response(resp)

    def _to_messages(self, conversation: Sequence[ChatMessage]) -> List[Dict[str, str]]:
        return [{"role": m.role, "content": m.content} for m in conversation]

    def _parse_response(self, resp: Any) -> ChatMessage:
        choices = getattr(resp, "choices", None)
        if not choices:
            raise BackendMalformedError(code="BACKEND_MALFORMED", message="no choices in response", backend=self.name)
        message = getattr(choices[0], "message", None)
        if message is None:
            raise BackendMalformedError(code="BACKEND_MALFORMED", message="first choice has no message", backend=self.name)
        content = message.content or ""
        logger.debug(f"{self.name}.response", extra={"extra": {"content": content}})
        return ChatMessage(role="assistant", content=content)
