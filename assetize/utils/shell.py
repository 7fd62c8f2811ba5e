"""子进程执行工具：统一异步子进程调用

通过 CommandExecutor 协议抽象子进程执行，方便测试替换。
注册表客户端（npm view / npm pack）经由这里执行。
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Protocol

logger = logging.getLogger(__name__)


# =========================================================================
# 命令执行结果
# =========================================================================

@dataclass
class CommandResult:
    """命令执行结果（与 subprocess 解耦）"""

    returncode: int
    stdout: str
    stderr: str

    @property
    def success(self) -> bool:
        return self.returncode == 0


# =========================================================================
# 命令执行器协议
# =========================================================================

class CommandExecutor(Protocol):
    """命令执行器协议：抽象子进程调用

    测试时可注入 fake 实现，无需 patch asyncio。
    """

    async def execute(
        self,
        args: list[str],
        *,
        cwd: str = ".",
    ) -> CommandResult:
        """执行命令并返回结果"""
        ...


# =========================================================================
# 默认实现: 本地执行器
# =========================================================================

class LocalExecutor:
    """本地子进程执行器（默认实现）"""

    async def execute(
        self,
        args: list[str],
        *,
        cwd: str = ".",
    ) -> CommandResult:
        logger.debug("  exec: %s (cwd=%s)", " ".join(args), cwd)
        proc = await asyncio.create_subprocess_exec(
            *args, cwd=cwd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        stdout, stderr = await proc.communicate()
        return CommandResult(
            returncode=proc.returncode if proc.returncode is not None else -1,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
        )


# =========================================================================
# 全局默认执行器（可替换）
# =========================================================================

_default_executor: CommandExecutor = LocalExecutor()


def get_executor() -> CommandExecutor:
    """获取全局默认命令执行器"""
    return _default_executor


def set_executor(executor: CommandExecutor) -> None:
    """替换全局默认命令执行器（用于测试）"""
    global _default_executor  # noqa: PLW0603
    _default_executor = executor
