"""测试共享 fixture：内存注册表 + 真实 tarball

整体思路:

  packages = {                      FakeRegistry                     DependencyInstaller
    "left-pad": {                ┌──────────────────┐            ┌──────────────────────┐
      "manifest": {...},   ────> │ view() 返回清单  │ <───────── │ install_module()     │
      "files": {...},            │ pack() 现场打包  │            │   -> materialize()   │
    },                           │ 记录调用次数     │            └──────────────────────┘
  }                              └──────────────────┘

tarball 与 npm pack 的产物结构一致：所有文件都在 package/ 目录下。
"""

from __future__ import annotations

import io
import json
import tarfile
from collections import Counter
from pathlib import Path
from typing import Any

import pytest

from assetize.utils.logger import reset_logging
from assetize.utils.shell import CommandResult, get_executor, set_executor


def split_request(request: str) -> str:
    """'@foo/bar@^1.0' -> '@foo/bar'，'lodash@4' -> 'lodash'"""
    at = request.find("@", 1)
    return request if at < 0 else request[:at]


def make_tarball(path: Path, files: dict[str, str], wrapper: str = "package") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with tarfile.open(path, "w:gz") as tf:
        for name, content in files.items():
            data = content.encode("utf-8")
            info = tarfile.TarInfo(f"{wrapper}/{name}")
            info.size = len(data)
            info.mode = 0o600
            tf.addfile(info, io.BytesIO(data))
    return path


def package_files(spec: dict[str, Any]) -> dict[str, str]:
    files = dict(spec.get("files", {}))
    files.setdefault("package.json", json.dumps(spec["manifest"]))
    return files


class FakeRegistry:
    """满足 RegistryClient 协议的内存注册表"""

    def __init__(self, tmp_path: Path, packages: dict[str, dict[str, Any]]) -> None:
        self.tarball_dir = tmp_path / "tarballs"
        self.packages = packages
        self.views: Counter[str] = Counter()
        self.packs: Counter[str] = Counter()
        self.as_list = False

    async def view(self, request: str) -> dict[str, Any] | list[dict[str, Any]]:
        name = split_request(request)
        self.views[name] += 1
        manifest = dict(self.packages[name]["manifest"])
        return [manifest] if self.as_list else manifest

    async def pack(self, request: str) -> Path:
        name = split_request(request)
        self.packs[name] += 1
        filename = name.lstrip("@").replace("/", "-") + f"-{self.packs[name]}.tgz"
        return make_tarball(self.tarball_dir / filename, package_files(self.packages[name]))


class FakeNpmExecutor:
    """模拟 npm view / npm pack 的命令执行器"""

    def __init__(self, registry: FakeRegistry) -> None:
        self.registry = registry
        self.calls: list[list[str]] = []

    async def execute(self, args: list[str], *, cwd: str = ".") -> CommandResult:
        self.calls.append(args)
        sub, request = args[1], args[2]
        if split_request(request) not in self.registry.packages:
            return CommandResult(returncode=1, stdout="", stderr=f"404 Not Found - {request}")
        if sub == "view":
            return CommandResult(0, json.dumps(await self.registry.view(request)), "")
        tarball = await self.registry.pack(request)
        target = Path(cwd) / tarball.name
        tarball.replace(target)
        return CommandResult(0, f"npm notice\n{target.name}\n", "")


# =========================================================================
# Fixtures
# =========================================================================


@pytest.fixture()
def registry_factory(tmp_path: Path):
    """FakeRegistry 工厂：registry_factory({"left-pad": {...}})"""

    def _make(packages: dict[str, dict[str, Any]]) -> FakeRegistry:
        return FakeRegistry(tmp_path, packages)

    return _make


@pytest.fixture()
def fake_executor():
    """临时替换全局命令执行器，测试结束后恢复"""
    original = get_executor()
    holder: dict[str, FakeNpmExecutor] = {}

    def _install(registry: FakeRegistry) -> FakeNpmExecutor:
        holder["executor"] = FakeNpmExecutor(registry)
        set_executor(holder["executor"])
        return holder["executor"]

    yield _install
    set_executor(original)


@pytest.fixture()
def clean_logging():
    """CLI 会重新配置根日志器，测试后清理，避免写入已关闭的流"""
    yield
    reset_logging()


def write_tree(root: Path, files: dict[str, str]) -> None:
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")


@pytest.fixture()
def tree():
    """文件树写入工具：tree(root, {"a/b.js": "..."})"""
    return write_tree


@pytest.fixture()
def tarball():
    """tarball 构造工具：tarball(path, {"index.js": "..."})"""
    return make_tarball
