"""模块说明符解析

把 import 中的原始字符串拆成 (base_name, sub_path)：
  './lib/a'        -> ('.', 'lib/a')
  '../x'           -> ('..', 'x')
  'lodash/map'     -> ('lodash', 'map')
  '@foo/bar/lib/x' -> ('@foo/bar', 'lib/x')

纯函数，无 IO。
"""

from __future__ import annotations

import re

from assetize.core.exceptions import MalformedSpecifier
from assetize.core.models import Specifier

_RELATIVE_RE = re.compile(r"^(\.\.?)(?:/(.*))?$", re.DOTALL)
_PACKAGE_RE = re.compile(
    r"^((?:@[A-Za-z0-9_~$][-A-Za-z0-9._~$]*/)?[A-Za-z0-9_~$][-A-Za-z0-9._~$]*)"
    r"(?:/(.+))?$",
    re.DOTALL,
)


def parse_specifier(raw: str) -> Specifier:
    """解析原始说明符

    异常:
        MalformedSpecifier: 既不是 '.'/'..' 开头的相对路径，也不是合法包名
    """
    if not raw or raw != raw.strip():
        raise MalformedSpecifier(raw)

    m = _RELATIVE_RE.match(raw)
    if m:
        return Specifier(base_name=m.group(1), sub_path=m.group(2) or None)

    m = _PACKAGE_RE.match(raw)
    if m:
        return Specifier(base_name=m.group(1), sub_path=m.group(2))

    raise MalformedSpecifier(raw)
