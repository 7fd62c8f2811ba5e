"""package.json 读取

两种语义:
- load_manifest: 严格读取，缺失或无法解析抛 ManifestParseError（安装阶段使用）
- read_manifest: 宽松读取，任何问题都视为清单不存在（路径解析阶段使用）
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from assetize.core.exceptions import ManifestParseError
from assetize.utils import fs

logger = logging.getLogger(__name__)


async def load_manifest(path: str | Path) -> dict[str, Any]:
    try:
        data = json.loads(await fs.read_text(path))
    except FileNotFoundError as e:
        raise ManifestParseError(str(path), "文件不存在") from e
    except (OSError, ValueError) as e:
        raise ManifestParseError(str(path), str(e)) from e
    if not isinstance(data, dict):
        raise ManifestParseError(str(path), f"顶层必须是对象，实际为 {type(data).__name__}")
    return data


async def read_manifest(path: str | Path) -> dict[str, Any] | None:
    if not await fs.is_file(path):
        return None
    try:
        return await load_manifest(path)
    except ManifestParseError as e:
        logger.debug("忽略无法解析的清单: %s", e)
        return None
