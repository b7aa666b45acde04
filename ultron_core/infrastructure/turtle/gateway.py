"""turtle HTTP 网关。

- GET  {api_url}/api/turtle/{id}: 读取 turtle 当前状态，原文返回。
- POST {api_url}/api/turtle/{id}: 提交 JSON 字符串数组形式的命令批次，200 视为成功。
"""

import json
from typing import Sequence

import httpx

from ultron_core.config.run_config import TurtleConfig
from ultron_core.domain.exceptions import NetworkError, RemoteError, ValidationError
from ultron_core.domain.models import TurtleState
from ultron_core.infrastructure.logging.logger import logger


class TurtleGateway:
    """与 turtle API 通信的同步客户端。"""

    def __init__(self, config: TurtleConfig):
        self._config = config

    @property
    def endpoint(self) -> str:
        return self._config.endpoint

    def fetch_state(self) -> TurtleState:
        """读取 turtle 状态；不检查状态码，也不解析内容。"""

        logger.debug("turtle.fetch_state", extra={"extra": {"url": self.endpoint}})
        try:
            with httpx.Client(timeout=self._config.timeout, trust_env=False) as client:
                resp = client.get(self.endpoint)
        except httpx.RequestError as e:
            raise NetworkError(code="TURTLE_NETWORK_ERROR", message=str(e), operation="fetch_state") from e
        logger.debug("turtle.state", extra={"extra": {"status": resp.status_code, "body": resp.text}})
        return resp.text

    def submit(self, commands: Sequence[str]) -> None:
        """提交命令批次。

        命令必须全部是字符串；校验或序列化失败时在任何网络请求之前抛出
        ValidationError。
        """

        body = serialize_batch(commands)
        logger.info("turtle.submit", extra={"extra": {"url": self.endpoint, "commands": len(commands)}})
        try:
            with httpx.Client(timeout=self._config.timeout, trust_env=False) as client:
                resp = client.post(
                    self.endpoint,
                    content=body.encode("utf-8"),
                    headers={"Content-Type": "application/json"},
                )
        except httpx.RequestError as e:
            raise NetworkError(code="TURTLE_NETWORK_ERROR", message=str(e), operation="submit") from e
        logger.debug("turtle.submit.response", extra={"extra": {"status": resp.status_code, "body": resp.text}})
        if resp.status_code != 200:
            raise RemoteError(
                code="TURTLE_REMOTE_ERROR",
                message=f"failed to send command to turtle: {resp.status_code}",
                status=resp.status_code,
            )


def serialize_batch(commands: Sequence[str]) -> str:
    """把命令批次序列化为 JSON 字符串数组。"""

    if isinstance(commands, (str, bytes)):
        raise ValidationError(code="INVALID_COMMAND_BATCH", message="command batch must be a sequence, not a string")
    try:
        items = list(commands)
    except TypeError as e:
        raise ValidationError(code="INVALID_COMMAND_BATCH", message=str(e)) from e
    if not all(isinstance(c, str) for c in items):
        raise ValidationError(code="INVALID_COMMAND_BATCH", message="command batch must contain only strings")
    try:
        return json.dumps(items)
    except (TypeError, ValueError) as e:
        raise ValidationError(code="INVALID_COMMAND_BATCH", message=str(e)) from e
