import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from focus_core.config.settings import Settings


logger = logging.getLogger("focus_core")

_HANDLER_MARK = "_focus_core_handler"


class JsonFormatter(logging.Formatter):
    def __init__(self, redact_content: bool = False):
        super().__init__()
        self._redact_content = redact_content

    def format(self, record: logging.LogRecord) -> str:
        msg = record.getMessage()
        if self._redact_content:
            msg = (msg or "")[:64]
        payload = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "name": record.name,
            "msg": msg,
        }
        extra = getattr(record, "extra", None)
        if isinstance(extra, dict):
            payload.update(extra)
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_logger(settings: Optional[Settings] = None) -> logging.Logger:
    """为 ``focus_core`` logger 挂载 JSON 格式的 handler（只挂一次）。"""

    if any(getattr(h, _HANDLER_MARK, False) for h in logger.handlers):
        return logger
    level = getattr(logging, str(getattr(settings, "log_level", "INFO")).upper(), logging.INFO)
    formatter = JsonFormatter(redact_content=bool(getattr(settings, "log_redact_content", False)))
    logger.setLevel(level)

    sh = logging.StreamHandler(sys.stderr)
    handlers = [sh]
    log_dir = getattr(settings, "log_dir", None)
    if log_dir:
        path = Path(log_dir)
        path.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(path / "focus_core.log", encoding="utf-8"))
    for h in handlers:
        h.setLevel(level)
        h.setFormatter(formatter)
        setattr(h, _HANDLER_MARK, True)
        logger.addHandler(h)
    return logger
