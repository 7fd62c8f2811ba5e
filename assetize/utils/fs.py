"""异步文件系统工具

所有文件读写、重命名、删除都在这里挂起让出事件循环：
aiofiles 负责读写和 os 级调用，没有异步版本的操作（chmod、rmtree、
递归 glob）放到线程中执行。
"""

from __future__ import annotations

import asyncio
import contextlib
import os
import shutil
from pathlib import Path

import aiofiles
import aiofiles.os

# 源码按 UTF-8 读写；无法解码的字节以代理字符保留，写回时原样还原
TEXT_ENCODING = "utf-8"
TEXT_ERRORS = "surrogateescape"

# 资源文件权限: owner rwx, group/other rx（部分静态服务器拒绝提供不可执行的文件）
SERVABLE_MODE = 0o755


async def exists(path: str | Path) -> bool:
    return await aiofiles.os.path.exists(path)


async def is_file(path: str | Path) -> bool:
    return await aiofiles.os.path.isfile(path)


async def is_dir(path: str | Path) -> bool:
    return await aiofiles.os.path.isdir(path)


async def read_text(path: str | Path) -> str:
    async with aiofiles.open(
        path, encoding=TEXT_ENCODING, errors=TEXT_ERRORS, newline="",
    ) as f:
        return await f.read()


async def write_text(path: str | Path, content: str) -> None:
    async with aiofiles.open(
        path, "w", encoding=TEXT_ENCODING, errors=TEXT_ERRORS, newline="",
    ) as f:
        await f.write(content)


async def rename(src: str | Path, dst: str | Path) -> None:
    await aiofiles.os.rename(src, dst)


async def make_dirs(path: str | Path) -> None:
    await aiofiles.os.makedirs(path, exist_ok=True)


async def remove_file(path: str | Path) -> None:
    """删除文件，文件不存在时忽略"""
    with contextlib.suppress(FileNotFoundError):
        await aiofiles.os.remove(path)


async def remove_tree(path: str | Path) -> None:
    """递归删除目录，目录不存在时忽略"""
    if await is_dir(path):
        await asyncio.to_thread(shutil.rmtree, path)
    else:
        await remove_file(path)


async def make_servable(path: str | Path) -> None:
    await asyncio.to_thread(os.chmod, path, SERVABLE_MODE)


async def find_files(root: str | Path, suffix: str) -> list[Path]:
    """递归查找 root 下所有指定后缀的文件，结果按路径排序"""

    def _scan() -> list[Path]:
        base = Path(root)
        if not base.is_dir():
            return []
        return sorted(p for p in base.rglob(f"*{suffix}") if p.is_file())

    return await asyncio.to_thread(_scan)
