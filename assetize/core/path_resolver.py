"""路径解析器

给定目录和候选相对路径，按固定顺序决定它指向的具体文件:

  1. directory/candidate 是文件       -> 原样返回
  2. directory/candidate 是目录       -> 读取其中 package.json 的
     module / jsnext:main / main 字段（都没有则 index.js），拼接后校验存在
  3. directory/candidate 不存在       -> 尝试 candidate + ".js"
  4. 以上都不满足                     -> 告警并返回 None，import 保持原样

解析失败只降级为告警，不会中断运行。
"""

from __future__ import annotations

import logging
import posixpath
from pathlib import Path
from typing import Any

from assetize.core.exceptions import UnresolvedImport
from assetize.core.manifest import read_manifest
from assetize.core.models import DEFAULT_ENTRY, MANIFEST_NAME
from assetize.utils import fs

logger = logging.getLogger(__name__)

ENTRY_FIELDS = ("module", "jsnext:main", "main")


def normalize_mjs(path: str) -> str:
    """.mjs 统一改为 .js，与改写阶段的重命名保持一致"""
    if path.endswith(".mjs"):
        return path[:-len(".mjs")] + ".js"
    return path


def dot_prefixed(path: str) -> str:
    """没有相对前缀的路径补上 './'，保证浏览器按相对路径加载"""
    if path.startswith(("./", "../")) or path in (".", ".."):
        return path
    return "./" + path


def entry_from_manifest(manifest: dict[str, Any] | None) -> str:
    """按 module > jsnext:main > main 的优先级选入口，缺省 index.js"""
    entry = None
    if manifest:
        for key in ENTRY_FIELDS:
            value = manifest.get(key)
            if isinstance(value, str) and value.strip():
                entry = value.strip()
                break
    return normalize_mjs((entry or DEFAULT_ENTRY).lstrip("/"))


class PathResolver:
    """把候选路径解析为磁盘上真实存在、带扩展名的相对路径"""

    async def resolve(
        self, directory: str | Path, candidate: str, *, specifier: str = "",
    ) -> str | None:
        try:
            return await self._resolve(Path(directory), candidate)
        except UnresolvedImport as e:
            label = f"import '{specifier}' " if specifier else ""
            logger.warning("%s%s", label, e)
            return None

    async def _resolve(self, base: Path, candidate: str) -> str:
        target = base / candidate
        if await fs.is_file(target):
            return dot_prefixed(candidate)

        if await fs.is_dir(target):
            manifest = await read_manifest(target / MANIFEST_NAME)
            entry = posixpath.normpath(
                posixpath.join(candidate, entry_from_manifest(manifest))
            )
            for option in (entry, entry + ".js", posixpath.join(entry, DEFAULT_ENTRY)):
                if await fs.is_file(base / option):
                    return dot_prefixed(option)
            raise UnresolvedImport(candidate, "目录中找不到入口文件（package.json main / index.js）")

        if await fs.exists(target):
            raise UnresolvedImport(candidate, "既不是文件也不是目录")

        if await fs.is_file(base / (candidate + ".js")):
            return dot_prefixed(candidate + ".js")

        raise UnresolvedImport(candidate, "该路径下找不到文件")
