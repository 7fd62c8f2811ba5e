"""包注册表客户端

通过 npm 可执行文件访问注册表:
- view(): `npm view <name@range> --json`，返回包元数据（dict，或多版本时的 list）
- pack(): `npm pack <name@range>`，在工作目录生成 tarball 并返回其路径

任何满足 RegistryClient 协议的对象都可以注入安装器（测试中使用内存实现）。
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Protocol

from assetize.core.exceptions import RegistryError
from assetize.utils.shell import CommandExecutor, CommandResult, get_executor

logger = logging.getLogger(__name__)


class RegistryClient(Protocol):
    """注册表客户端协议"""

    async def view(self, request: str) -> dict[str, Any] | list[dict[str, Any]]:
        """获取包元数据"""
        ...

    async def pack(self, request: str) -> Path:
        """下载包 tarball 到本地，返回文件路径"""
        ...


class NpmRegistryClient:
    """基于 npm 命令行的注册表客户端"""

    def __init__(
        self,
        npm_command: str = "npm",
        work_dir: str | Path = ".",
        executor: CommandExecutor | None = None,
    ) -> None:
        self.npm_command = npm_command
        self.work_dir = Path(work_dir)
        self.executor = executor

    async def view(self, request: str) -> dict[str, Any] | list[dict[str, Any]]:
        r = await self._run(["view", request, "--json"], request)
        try:
            data = json.loads(r.stdout)
        except ValueError as e:
            raise RegistryError(f"注册表返回了无法解析的元数据: {request}: {e}", package=request) from e
        if not isinstance(data, (dict, list)):
            raise RegistryError(f"注册表返回了意外的元数据类型: {request}", package=request)
        return data

    async def pack(self, request: str) -> Path:
        r = await self._run(["pack", request], request)
        lines = [line.strip() for line in r.stdout.splitlines() if line.strip()]
        if not lines:
            raise RegistryError(f"npm pack 没有输出 tarball 文件名: {request}", package=request)
        tarball = self.work_dir / lines[-1]
        logger.debug("  tarball: %s", tarball)
        return tarball

    async def _run(self, args: list[str], request: str) -> CommandResult:
        executor = self.executor or get_executor()
        cmd = [self.npm_command, *args]
        try:
            r = await executor.execute(cmd, cwd=str(self.work_dir))
        except OSError as e:
            raise RegistryError(f"无法执行 {self.npm_command}: {e}", package=request) from e
        if not r.success:
            raise RegistryError(
                f"{' '.join(cmd)} 失败 (rc={r.returncode}): {r.stderr.strip()[:500]}",
                package=request,
            )
        return r
