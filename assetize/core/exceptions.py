"""统一异常体系

所有业务异常继承 AssetizeError，替代散落的 ValueError / RuntimeError。
CLI 层据此输出错误码和具体原因，并以 exit_code 退出。

单条 import 的解析失败（MalformedSpecifier / UnresolvedImport）
由改写器就地降级为告警，不中断整个运行。
"""

from __future__ import annotations


class AssetizeError(Exception):
    """框架基础异常"""

    code: str = "UNKNOWN"
    exit_code: int = 1

    def __init__(self, message: str) -> None:
        super().__init__(message)


class ConfigError(AssetizeError):
    """配置文件缺失或内容无效"""

    code = "CONFIG_ERROR"
    exit_code = 78


class MalformedSpecifier(AssetizeError):
    """模块说明符既不是相对路径也不是包名"""

    code = "MALFORMED_SPECIFIER"
    exit_code = 65

    def __init__(self, specifier: str) -> None:
        super().__init__(f"无法识别的模块说明符: '{specifier}'")
        self.specifier = specifier


class ManifestParseError(AssetizeError):
    """package.json 缺失或不是合法 JSON"""

    code = "MANIFEST_PARSE_ERROR"
    exit_code = 65

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"清单解析失败 {path}: {reason}")
        self.path = path
        self.reason = reason


class UnresolvedImport(AssetizeError):
    """路径解析策略穷尽，import 保持原样（仅作告警原因）"""

    code = "UNRESOLVED_IMPORT"

    def __init__(self, modpath: str, reason: str) -> None:
        super().__init__(f"无法解析路径 '{modpath}': {reason}")
        self.modpath = modpath
        self.reason = reason


class RegistryError(AssetizeError):
    """包注册表客户端调用失败（元数据或 tarball）"""

    code = "REGISTRY_ERROR"
    exit_code = 69

    def __init__(self, message: str, package: str = "") -> None:
        super().__init__(message)
        self.package = package


class ExtractionError(AssetizeError):
    """归档解压失败"""

    code = "EXTRACTION_ERROR"
    exit_code = 74


class NothingToDoError(AssetizeError):
    """既没有项目清单也没有指定模块，CLI 显示用法说明"""

    code = "NOTHING_TO_DO"
    exit_code = 2
