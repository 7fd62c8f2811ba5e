"""模块说明符解析测试"""

from __future__ import annotations

import pytest

from assetize.core.exceptions import MalformedSpecifier
from assetize.core.models import Specifier
from assetize.core.specifier import parse_specifier


class TestParseSpecifier:
    @pytest.mark.parametrize(("raw", "base", "sub"), [
        (".", ".", None),
        ("./util", ".", "util"),
        ("./lib/a.js", ".", "lib/a.js"),
        ("..", "..", None),
        ("../x", "..", "x"),
        ("../../lodash/map.js", "..", "../lodash/map.js"),
        ("../@foo/bar/lib/bar.js", "..", "@foo/bar/lib/bar.js"),
        ("lodash", "lodash", None),
        ("lodash/map", "lodash", "map"),
        ("lodash.debounce", "lodash.debounce", None),
        ("@foo/bar", "@foo/bar", None),
        ("@foo/bar/lib/x.mjs", "@foo/bar", "lib/x.mjs"),
    ])
    def test_decomposition(self, raw: str, base: str, sub: str | None) -> None:
        spec = parse_specifier(raw)
        assert spec == Specifier(base_name=base, sub_path=sub)

    def test_relative_flag(self) -> None:
        assert parse_specifier("./a").is_relative
        assert parse_specifier("../a").is_relative
        assert not parse_specifier("@foo/bar").is_relative

    @pytest.mark.parametrize("raw", [
        "", " lodash", "/abs/path.js", "https://cdn.example.com/x.js",
        "data:text/javascript,1", ".hidden", "...", "@scope", "lodash/",
    ])
    def test_malformed(self, raw: str) -> None:
        with pytest.raises(MalformedSpecifier, match="无法识别"):
            parse_specifier(raw)

    @pytest.mark.parametrize("raw", [
        "./util", "../a/b", "lodash/map", "@foo/bar/lib/x.js", ".", "react",
    ])
    def test_reserialize_is_stable(self, raw: str) -> None:
        spec = parse_specifier(raw)
        assert parse_specifier(str(spec)) == spec
