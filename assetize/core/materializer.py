"""包落地（materialize）

把一个已下载的包 tarball 落到资源目录:
  1. 清空 assets/<name>，重新创建
  2. 解压 tarball（去掉顶层包裹目录）
  3. 读取解压出的 package.json（解析失败对该包是致命错误）
  4. 通过安装器递归安装它声明的依赖，并等待全部完成
  5. 在资源目录根部写入入口 shim: assets/<name>.js

scope 包 @foo/bar 解压到 assets/@foo/bar，shim 为 assets/@foo/bar.js，
shim 内的相对引用是 ./bar/<entry>。
"""

from __future__ import annotations

import logging
import posixpath
from dataclasses import replace
from pathlib import Path
from typing import TYPE_CHECKING

from assetize.core.archive import extract_archive
from assetize.core.manifest import load_manifest
from assetize.core.models import DEFAULT_ENTRY, MANIFEST_NAME, PackageDescriptor
from assetize.core.path_resolver import normalize_mjs
from assetize.utils import fs

if TYPE_CHECKING:
    from assetize.core.installer import DependencyInstaller

logger = logging.getLogger(__name__)


def render_shim(prefix: str, entry: str) -> str:
    """生成入口 shim：转发全部具名导出和默认导出"""
    target = f"./{prefix}/{entry}"
    return (
        f"export * from '{target}'\n"
        f"import def from '{target}'\n"
        f"export default def\n"
    )


class PackageMaterializer:
    """解压包、递归安装依赖并写入 shim"""

    def __init__(self, assets_dir: str | Path, installer: DependencyInstaller) -> None:
        self.assets_dir = Path(assets_dir)
        self.installer = installer

    def package_dir(self, name: str) -> Path:
        return self.assets_dir / name

    async def materialize(self, descriptor: PackageDescriptor, archive: Path) -> PackageDescriptor:
        target = self.package_dir(descriptor.name)
        await fs.remove_tree(target)
        await fs.make_dirs(target)
        await extract_archive(archive, target)

        pkg = PackageDescriptor.from_manifest(await load_manifest(target / MANIFEST_NAME))
        if not pkg.name:
            pkg = replace(pkg, name=descriptor.name)

        await self.installer.install_modules(pkg.dependency_requests(), parent=descriptor.name)

        await self.write_shim(descriptor, pkg, target)
        return pkg

    async def write_shim(
        self, descriptor: PackageDescriptor, pkg: PackageDescriptor, package_dir: Path,
    ) -> Path:
        entry = await self.entry_file(pkg, package_dir)
        prefix = descriptor.unscoped_name
        shim = self.assets_dir / f"{descriptor.name}.js"
        await fs.make_dirs(shim.parent)
        await fs.write_text(shim, render_shim(prefix, entry))
        logger.info("  shim: %s -> ./%s/%s", shim, prefix, entry, extra={"package": descriptor.name})
        return shim

    async def entry_file(self, pkg: PackageDescriptor, package_dir: Path) -> str:
        """计算包入口文件相对包目录的路径

        以 main 为准（缺省 index.js），.mjs 视为 .js；字面路径不存在时依次尝试
        补 .js 和 /index.js。
        """
        main = posixpath.normpath(normalize_mjs((pkg.main or DEFAULT_ENTRY).lstrip("/")))
        for option in (main, main + ".js", posixpath.join(main, DEFAULT_ENTRY)):
            if await self._has_script(package_dir, option):
                return option
        logger.warning("包 %s 的入口文件不存在: %s", pkg.name, main, extra={"package": pkg.name})
        return main

    @staticmethod
    async def _has_script(package_dir: Path, relpath: str) -> bool:
        """文件存在，或者是改写阶段才会由 .mjs 重命名得到的 .js"""
        if await fs.is_file(package_dir / relpath):
            return True
        if relpath.endswith(".js"):
            return await fs.is_file(package_dir / (relpath[:-len(".js")] + ".mjs"))
        return False
