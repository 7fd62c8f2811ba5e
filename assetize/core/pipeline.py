"""运行编排

一次运行分两个阶段，中间是硬性屏障:

  安装阶段: 读取项目 package.json 的 assetDependencies，安装全部依赖
            （含传递依赖），全部完成后才进入下一阶段
  改写阶段: 对本次安装的每个模块以及命令行指定的模块改写 import

用法:
    pipeline = Pipeline()
    summary = asyncio.run(pipeline.run(["already-staged-module"]))
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Sequence

from assetize.core.config import Config, get_config
from assetize.core.exceptions import ManifestParseError, NothingToDoError
from assetize.core.installer import DependencyInstaller
from assetize.core.manifest import load_manifest
from assetize.core.registry import NpmRegistryClient, RegistryClient
from assetize.core.rewriter import ImportRewriter
from assetize.utils import fs

logger = logging.getLogger(__name__)


@dataclass
class RunSummary:
    """一次运行的结果汇总"""

    installed: list[str] = field(default_factory=list)
    rewritten: dict[str, int] = field(default_factory=dict)

    @property
    def total_rewritten(self) -> int:
        return sum(self.rewritten.values())


class Pipeline:
    """安装 + 改写两阶段编排"""

    def __init__(
        self,
        config: Config | None = None,
        registry: RegistryClient | None = None,
    ) -> None:
        self.config = config or get_config()
        self.assets_dir = Path(self.config.assets_dir)
        self.registry = registry or NpmRegistryClient(
            npm_command=self.config.npm_command,
            work_dir=self.config.work_dir,
        )

    async def load_requests(self) -> list[str] | None:
        """读取项目清单中的资源依赖，清单不存在时返回 None"""
        manifest = Path(self.config.manifest)
        if not await fs.is_file(manifest):
            return None
        data = await load_manifest(manifest)
        deps = data.get(self.config.dependency_field) or {}
        if not isinstance(deps, dict):
            raise ManifestParseError(
                str(manifest), f"{self.config.dependency_field} 必须是对象",
            )
        return [f"{name}@{rng}" for name, rng in deps.items()]

    async def run(self, modules: Sequence[str] = ()) -> RunSummary:
        requests = await self.load_requests()
        if requests is None and not modules:
            raise NothingToDoError(f"找不到项目清单 {self.config.manifest}，也没有指定模块")

        installer = DependencyInstaller(self.registry, self.assets_dir)
        if requests:
            logger.info("安装 %d 个资源依赖", len(requests))
            await installer.install_modules(requests)

        # 安装阶段已全部完成（含传递依赖），之后才开始改写
        names = list(dict.fromkeys([*installer.installed, *modules]))
        rewriter = ImportRewriter(self.assets_dir)
        # 先完成全部 .mjs 重命名，跨包解析时目标文件名已经是 .js
        await asyncio.gather(*(rewriter.rename_mjs(n) for n in names))
        counts = await asyncio.gather(*(rewriter.rewrite_tree(n) for n in names))

        summary = RunSummary(installed=installer.installed, rewritten=dict(zip(names, counts)))
        logger.info(
            "完成: 安装 %d 个包, 改写 %d 处 import",
            len(summary.installed), summary.total_rewritten,
        )
        return summary
