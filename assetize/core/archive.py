"""归档解压

npm tarball 的所有内容都包在一个顶层目录（通常是 package/）下，
解压时去掉这一层，等价于 `tar xf --strip-components 1`。
"""

from __future__ import annotations

import asyncio
import logging
import tarfile
from pathlib import Path

from assetize.core.exceptions import ExtractionError

logger = logging.getLogger(__name__)


def _strip_component(path: str) -> str:
    if path.startswith("./"):
        path = path[2:]
    parts = path.split("/", 1)
    return parts[1] if len(parts) == 2 else ""


def _strip_filter(member: tarfile.TarInfo, dest_path: str) -> tarfile.TarInfo | None:
    name = _strip_component(member.name)
    if not name:
        return None
    changes: dict[str, str] = {"name": name}
    if member.islnk():
        changes["linkname"] = _strip_component(member.linkname)
    return tarfile.data_filter(member.replace(**changes, deep=False), dest_path)


def _extract(archive: Path, target: Path) -> int:
    with tarfile.open(archive) as tf:
        members = tf.getmembers()
        tf.extractall(path=str(target), filter=_strip_filter)  # noqa: S202
    return len(members)


async def extract_archive(archive: str | Path, target: str | Path) -> None:
    """解压 archive 到 target，去掉顶层包裹目录

    异常:
        ExtractionError: 文件不存在、不是 tar 归档或包含不安全的成员
    """
    archive, target = Path(archive), Path(target)
    try:
        count = await asyncio.to_thread(_extract, archive, target)
    except (OSError, tarfile.TarError) as e:
        raise ExtractionError(f"解压失败 {archive} -> {target}: {e}") from e
    logger.debug("已解压 %d 个条目: %s -> %s", count, archive.name, target)
