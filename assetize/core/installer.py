"""依赖安装器

对一批 name@range 请求:
  - 向注册表查询元数据（多版本列表取第一项）
  - 以解析出的包名为键，每个包名在一次运行中只启动一个安装任务
    （拉取 tarball -> 落地 -> 删除 tarball），后续同名请求等待同一任务
  - 同一批请求并发执行，互相之间没有顺序保证

依赖环（A -> B -> A）中，等待一个正在等待自己的任务会死锁，
因此发现等待关系成环时直接返回，不再等待。
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Iterable

from assetize.core.exceptions import RegistryError
from assetize.core.materializer import PackageMaterializer
from assetize.core.models import PackageDescriptor
from assetize.core.registry import RegistryClient
from assetize.utils import fs

logger = logging.getLogger(__name__)


class DependencyInstaller:
    """依赖安装器，按包名去重，每个实例对应一次运行"""

    def __init__(self, registry: RegistryClient, assets_dir: str | Path) -> None:
        self.registry = registry
        self.assets_dir = Path(assets_dir)
        self.materializer = PackageMaterializer(self.assets_dir, self)
        # 包名 -> 安装任务（进行中或已完成），只增不减
        self._tasks: dict[str, asyncio.Task[PackageDescriptor]] = {}
        # 包名 -> 它正在等待的依赖包名
        self._waiting: dict[str, set[str]] = {}

    @property
    def installed(self) -> list[str]:
        """本次运行中已安装或正在安装的包名，按首次请求顺序"""
        return list(self._tasks)

    async def install_modules(self, requests: Iterable[str], *, parent: str | None = None) -> None:
        await asyncio.gather(*(self.install_module(r, parent=parent) for r in requests))

    async def install_module(
        self, request: str, *, parent: str | None = None,
    ) -> PackageDescriptor | None:
        descriptor = PackageDescriptor.from_manifest(await self._metadata(request))
        name = descriptor.name

        task = self._tasks.get(name)
        if task is None:
            task = asyncio.create_task(self._install(request, descriptor))
            self._tasks[name] = task

        if parent is not None:
            if parent == name or self._reaches(name, parent):
                logger.debug("循环依赖，不等待: %s -> %s", parent, name)
                return None
            waits = self._waiting.setdefault(parent, set())
            waits.add(name)
            try:
                return await task
            finally:
                waits.discard(name)

        return await task

    async def _metadata(self, request: str) -> dict[str, Any]:
        meta = await self.registry.view(request)
        if isinstance(meta, list):
            if not meta:
                raise RegistryError(f"注册表没有返回任何版本: {request}", package=request)
            meta = meta[0]
        if not isinstance(meta, dict) or not meta.get("name"):
            raise RegistryError(f"注册表元数据缺少包名: {request}", package=request)
        return meta

    async def _install(self, request: str, descriptor: PackageDescriptor) -> PackageDescriptor:
        logger.info("! installing %s", request, extra={"package": descriptor.name})
        archive = await self.registry.pack(request)
        try:
            return await self.materializer.materialize(descriptor, archive)
        finally:
            await fs.remove_file(archive)

    def _reaches(self, src: str, dst: str) -> bool:
        """等待关系图中 src 是否（间接）在等待 dst"""
        stack, seen = [src], set()
        while stack:
            node = stack.pop()
            if node == dst:
                return True
            if node in seen:
                continue
            seen.add(node)
            stack.extend(self._waiting.get(node, ()))
        return False
