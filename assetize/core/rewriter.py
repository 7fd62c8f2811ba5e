"""import 改写器

对资源目录中的一个模块树:
  1. 所有 .mjs 文件重命名为 .js（内容不变）
  2. 逐个 .js 文件定位 import 说明符，解析为真实存在的相对路径
  3. 按位置一次性替换全部说明符（替换文本按字面插入）
  4. process.env 改为 self.process.env，便于在浏览器中执行
  5. 写回文件并 chmod 755

对已改写过的内容再次执行不会产生任何变化。
"""

from __future__ import annotations

import asyncio
import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from assetize.core.exceptions import MalformedSpecifier
from assetize.core.models import ImportMatch, Specifier
from assetize.core.path_resolver import PathResolver, normalize_mjs
from assetize.core.scanner import find_imports
from assetize.core.specifier import parse_specifier
from assetize.utils import fs

logger = logging.getLogger(__name__)

# 已经带成员访问前缀的（self.process.env、globalThis.process.env）不再处理
PROCESS_ENV_RE = re.compile(r"(?<![\w$.])process\.env\b")
BROWSER_PROCESS_ENV = "self.process.env"


@dataclass(frozen=True)
class Replacement:
    """一处待替换的说明符，[start, end) 为其在原文中的位置"""

    start: int
    end: int
    text: str


def apply_replacements(content: str, replacements: Iterable[Replacement]) -> str:
    """按位置排序后拼接重建文本，重叠的替换只保留靠前的一处"""
    pieces: list[str] = []
    cursor = 0
    for r in sorted(replacements, key=lambda r: r.start):
        if r.start < cursor:
            continue
        pieces.append(content[cursor:r.start])
        pieces.append(r.text)
        cursor = r.end
    pieces.append(content[cursor:])
    return "".join(pieces)


def browser_safe_env(content: str) -> str:
    return PROCESS_ENV_RE.sub(lambda _: BROWSER_PROCESS_ENV, content)


class ImportRewriter:
    """把资源目录中模块的 import 改写为显式相对路径"""

    def __init__(self, assets_dir: str | Path, resolver: PathResolver | None = None) -> None:
        self.assets_dir = Path(assets_dir)
        self.resolver = resolver or PathResolver()

    async def rewrite_module(self, name: str) -> int:
        """重命名 + 改写 assets/<name>，返回被改写的 import 数量"""
        await self.rename_mjs(name)
        return await self.rewrite_tree(name)

    async def rename_mjs(self, name: str) -> int:
        """assets/<name> 下的 .mjs 全部改为 .js，返回重命名的文件数"""
        mjs_files = await fs.find_files(self.assets_dir / name, ".mjs")
        await asyncio.gather(*(fs.rename(f, f.with_suffix(".js")) for f in mjs_files))
        return len(mjs_files)

    async def rewrite_tree(self, name: str) -> int:
        """改写 assets/<name> 下所有 .js 文件的 import"""
        root = self.assets_dir / name
        if not await fs.is_dir(root):
            logger.warning("模块目录不存在，跳过改写: %s", root)
            return 0

        js_files = await fs.find_files(root, ".js")
        counts = await asyncio.gather(*(self.rewrite_file(f) for f in js_files))
        total = sum(counts)
        logger.debug("模块 %s: %d 个文件, %d 处 import 已改写", name, len(js_files), total)
        return total

    async def rewrite_file(self, file: Path) -> int:
        content = await fs.read_text(file)
        rewritten, count = await self.rewrite_source(content, file)
        if rewritten != content:
            await fs.write_text(file, rewritten)
        await fs.make_servable(file)
        return count

    async def rewrite_source(self, content: str, file: Path) -> tuple[str, int]:
        """返回 (改写后的文本, 改写的 import 数量)，不做任何写入"""
        matches = find_imports(content, file)
        fixes = await asyncio.gather(*(self._fix(m, file) for m in matches))
        replacements = [r for r in fixes if r is not None]
        content = apply_replacements(content, replacements)
        return browser_safe_env(content), len(replacements)

    def candidate_path(self, spec: Specifier, directory: Path) -> str:
        """计算说明符相对于 directory 的候选路径（尚未校验存在）"""
        if spec.is_relative:
            target = directory / spec.base_name
        else:
            target = self.assets_dir / spec.base_name
        modpath = Path(
            os.path.relpath(os.path.abspath(target), os.path.abspath(directory))
        ).as_posix()
        if modpath == ".":
            modpath = ""
        if spec.sub_path:
            modpath += ("/" if modpath else "./") + spec.sub_path.strip()
        return normalize_mjs(modpath)

    async def _fix(self, match: ImportMatch, file: Path) -> Replacement | None:
        try:
            spec = parse_specifier(match.raw_specifier)
        except MalformedSpecifier as e:
            logger.warning("%s: %s，保持原样", file, e, extra={"file": file})
            return None

        directory = file.parent
        modpath = self.candidate_path(spec, directory)
        resolved = await self.resolver.resolve(
            directory, modpath, specifier=match.raw_specifier,
        )
        if resolved is None or resolved == match.raw_specifier:
            return None

        logger.info(
            "%s\n  %s\n  %s", file, match.full_match_text, match.prelude + resolved,
            extra={"file": file},
        )
        return Replacement(start=match.start, end=match.end, text=resolved)
