"""集中配置管理

提供统一的配置入口：资源目录、项目清单、依赖字段名、npm 可执行文件。
支持从 YAML 文件加载 + 命令行覆盖。
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field, replace

import yaml

from assetize.core.exceptions import ConfigError
from assetize.utils.yaml_io import load_yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "assetize.yml"


@dataclass
class Config:
    """全局配置"""

    # 目录
    assets_dir: str = "assets"
    work_dir: str = "."

    # 项目清单
    manifest: str = "package.json"
    dependency_field: str = "assetDependencies"

    # 注册表客户端
    npm_command: str = "npm"

    # 自定义扩展 (放不到字段里的配置项)
    extra: dict = field(default_factory=dict)

    @classmethod
    def from_file(cls, path: str = DEFAULT_CONFIG_FILE) -> Config:
        """从 YAML 文件加载配置，不存在则返回默认"""
        try:
            data = load_yaml(path)
        except (yaml.YAMLError, ValueError) as e:
            raise ConfigError(f"配置文件无效 {path}: {e}") from e
        if not data:
            return cls()
        known = {f.name for f in cls.__dataclass_fields__.values()} - {"extra"}
        matched = {k: v for k, v in data.items() if k in known}
        extra = {k: v for k, v in data.items() if k not in known}
        for k, v in matched.items():
            if not isinstance(v, str):
                raise ConfigError(f"配置项 {k} 必须是字符串: {v!r}")
        cfg = cls(**matched)
        cfg.extra = extra
        return cfg

    def override(self, **changes: str | None) -> Config:
        """返回应用了非空覆盖值的新配置（CLI 选项优先于文件）"""
        return replace(self, **{k: v for k, v in changes.items() if v})

    def to_dict(self) -> dict:
        return asdict(self)


# 全局单例，首次 import 时不加载文件；由 CLI 入口显式初始化
_current: Config | None = None


def get_config() -> Config:
    """获取当前配置（未初始化则返回默认值）"""
    global _current  # noqa: PLW0603
    if _current is None:
        _current = Config()
    return _current


def init_config(path: str = DEFAULT_CONFIG_FILE) -> Config:
    """从文件初始化全局配置"""
    global _current  # noqa: PLW0603
    _current = Config.from_file(path)
    logger.debug("配置已加载: %s", path)
    return _current


def set_config(cfg: Config) -> None:
    """替换全局配置（CLI 合并覆盖项后调用）"""
    global _current  # noqa: PLW0603
    _current = cfg
