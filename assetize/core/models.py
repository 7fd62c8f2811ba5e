"""核心数据模型

数据类:
- PackageDescriptor: 包清单（package.json）的只读视图
- Specifier: 解析后的 import 目标
- ImportMatch: 文件文本中定位到的一处 import
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

MANIFEST_NAME = "package.json"
DEFAULT_ENTRY = "index.js"


def _str_field(data: Mapping[str, Any], key: str) -> str | None:
    value = data.get(key)
    return value if isinstance(value, str) and value else None


@dataclass(frozen=True)
class PackageDescriptor:
    """单个包的清单信息，读取后不可变"""

    name: str
    version: str = ""
    main: str | None = None
    module: str | None = None
    jsnext_main: str | None = None
    dependencies: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_manifest(cls, data: Mapping[str, Any]) -> PackageDescriptor:
        deps = data.get("dependencies") or {}
        if not isinstance(deps, Mapping):
            deps = {}
        return cls(
            name=str(data.get("name", "")),
            version=str(data.get("version", "")),
            main=_str_field(data, "main"),
            module=_str_field(data, "module"),
            jsnext_main=_str_field(data, "jsnext:main"),
            dependencies=MappingProxyType({str(k): str(v) for k, v in deps.items()}),
        )

    @property
    def scoped(self) -> bool:
        return self.name.startswith("@")

    @property
    def unscoped_name(self) -> str:
        """去掉 scope 段后的包名: @foo/bar -> bar"""
        if self.scoped and "/" in self.name:
            return self.name.split("/", 1)[1]
        return self.name

    def dependency_requests(self) -> list[str]:
        """依赖列表转换为 name@range 请求"""
        return [f"{name}@{rng}" for name, rng in self.dependencies.items()]


@dataclass(frozen=True)
class Specifier:
    """import 目标的结构化形式

    base_name 为 "." / ".."（相对路径）或包名（可带 scope），
    sub_path 为包名之后的剩余路径。
    """

    base_name: str
    sub_path: str | None = None

    @property
    def is_relative(self) -> bool:
        return self.base_name.startswith(".")

    def __str__(self) -> str:
        if self.sub_path:
            return f"{self.base_name}/{self.sub_path}"
        return self.base_name


@dataclass(frozen=True)
class ImportMatch:
    """文件中的一处 import 说明符

    prelude 为语句开头到左引号（含）的原文，full_match_text = prelude + raw_specifier。
    start / end 是 raw_specifier 在文件文本中的位置，用于按位置替换。
    """

    full_match_text: str
    prelude: str
    raw_specifier: str
    source_file: Path | None
    start: int
    end: int
    quote: str
    kind: str = "import"  # "import", "export", "dynamic"
