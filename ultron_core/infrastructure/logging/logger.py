import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path


LOGGER_NAME = "ultron_core"

logger = logging.getLogger(LOGGER_NAME)


class JsonFormatter(logging.Formatter):
    def __init__(self, redact_content: bool = False):
        super().__init__()
        self._redact = redact_content

    def format(self, record: logging.LogRecord) -> str:
        msg = record.getMessage()
        if self._redact:
            msg = (msg or "")[:64]
        payload = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "name": record.name,
            "msg": msg,
        }
        extra = getattr(record, "extra", None)
        if isinstance(extra, dict):
            if self._redact:
                extra = {k: (v[:64] if isinstance(v, str) else v) for k, v in extra.items()}
            payload.update(extra)
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_logger(settings) -> logging.Logger:
    """挂载 JSON 文件日志与控制台日志，重复调用不会重复添加 handler。"""

    level = logging.DEBUG if getattr(settings, "debug", False) else logging.INFO
    logger.setLevel(level)
    if getattr(logger, "_ultron_configured", False):
        return logger

    log_dir = Path(settings.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    fh = logging.FileHandler(log_dir / "runtime.log", encoding="utf-8")
    fh.setFormatter(JsonFormatter(redact_content=getattr(settings, "log_redact_content", False)))
    logger.addHandler(fh)

    ch = logging.StreamHandler(sys.stdout)
    ch.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
    logger.addHandler(ch)

    logger._ultron_configured = True  # type: ignore[attr-defined]
    return logger
