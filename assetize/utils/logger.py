"""assetize 日志配置

命令行默认输出人类可读的文本；ASSETIZE_LOG_JSON=1 时每条日志输出一行 JSON，
安装和改写日志携带的 package / file 上下文会作为独立字段输出。
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import IO

TEXT_FORMAT = "%(asctime)s [%(levelname)-7s] %(name)s: %(message)s"

# 通过 logger.xxx(..., extra={...}) 附带的上下文字段
CONTEXT_FIELDS = ("package", "file")


class JSONFormatter(logging.Formatter):
    """一行一个 JSON 对象:

        {"timestamp": "...", "level": "INFO", "logger": "assetize.core.installer",
         "message": "! installing left-pad@^1", "package": "left-pad"}
    """

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in CONTEXT_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                entry[key] = str(value)
        if record.exc_info and record.exc_info[1]:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


def setup_logging(
    level: str = "INFO", json_output: bool = False, stream: IO[str] | None = None,
) -> None:
    """配置根日志器，重复调用时替换之前的 handler

    无法识别的级别名按 INFO 处理。
    """
    reset_logging()
    root = logging.getLogger()
    root.setLevel(logging.getLevelNamesMapping().get(level.upper(), logging.INFO))

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(JSONFormatter() if json_output else logging.Formatter(TEXT_FORMAT))
    root.addHandler(handler)


def reset_logging() -> None:
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()
