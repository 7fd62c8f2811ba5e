"""YAML 文件统一读取工具

集中管理配置文件的反序列化，统一 encoding="utf-8"、空值保护和大小限制。
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

# YAML 文件最大大小限制 (1MB)，配置文件不应超过此大小
MAX_YAML_SIZE = 1024 * 1024


def load_yaml(path: str | Path) -> dict[str, Any]:
    """安全读取 YAML 文件

    参数:
        path: YAML 文件路径

    返回:
        dict: 解析后的字典。如果文件不存在、为空、或内容不是字典类型，返回空字典

    异常:
        yaml.YAMLError: YAML 格式错误
        OSError: IO 错误
        ValueError: 文件过大（超过 MAX_YAML_SIZE）

    示例:
        >>> cfg = load_yaml("assetize.yml")
        >>> assets_dir = cfg.get("assets_dir", "assets")
    """
    p = Path(path)
    if not p.exists():
        return {}

    file_size = p.stat().st_size
    if file_size > MAX_YAML_SIZE:
        raise ValueError(
            f"YAML 文件过大: {p} ({file_size} 字节), "
            f"超过限制 {MAX_YAML_SIZE} 字节"
        )

    try:
        with open(p, encoding="utf-8") as f:
            result = yaml.safe_load(f)
    except yaml.YAMLError as e:
        logger.error("解析 YAML 文件失败: %s, 错误: %s", path, e)
        raise
    except OSError as e:
        logger.error("读取文件失败: %s, 错误: %s", path, e)
        raise

    if result is None:
        return {}
    if not isinstance(result, dict):
        logger.warning(
            "%s 内容不是字典类型 (实际类型: %s)，返回空字典",
            path, type(result).__name__,
        )
        return {}
    return result
