"""基础层测试：models / exceptions / config / logger / fs"""

from __future__ import annotations

import asyncio
import io
import json
import logging
from pathlib import Path

import pytest

from assetize.core.config import Config, get_config, init_config, set_config
from assetize.core.exceptions import (
    AssetizeError,
    ConfigError,
    ExtractionError,
    MalformedSpecifier,
    ManifestParseError,
    NothingToDoError,
    RegistryError,
    UnresolvedImport,
)
from assetize.core.manifest import load_manifest, read_manifest
from assetize.core.models import PackageDescriptor
from assetize.utils import fs
from assetize.utils.logger import JSONFormatter, reset_logging, setup_logging

# =========================================================================
# models.py
# =========================================================================


class TestPackageDescriptor:
    def test_from_manifest(self) -> None:
        pkg = PackageDescriptor.from_manifest({
            "name": "@foo/bar",
            "version": "1.2.3",
            "main": "lib/bar.js",
            "module": "es/bar.js",
            "jsnext:main": "next/bar.js",
            "dependencies": {"lodash": "^4"},
        })
        assert pkg.scoped and pkg.unscoped_name == "bar"
        assert pkg.jsnext_main == "next/bar.js"
        assert pkg.dependency_requests() == ["lodash@^4"]

    def test_defaults_and_immutability(self) -> None:
        pkg = PackageDescriptor.from_manifest({"name": "left-pad", "dependencies": None})
        assert pkg.main is None and pkg.module is None
        assert pkg.unscoped_name == "left-pad"
        assert pkg.dependency_requests() == []
        with pytest.raises(AttributeError):
            pkg.name = "other"  # type: ignore[misc]
        with pytest.raises(TypeError):
            pkg.dependencies["x"] = "1"  # type: ignore[index]


# =========================================================================
# exceptions.py
# =========================================================================


class TestExceptions:
    @pytest.mark.parametrize(("exc", "code", "exit_code"), [
        (MalformedSpecifier("x:y"), "MALFORMED_SPECIFIER", 65),
        (ManifestParseError("package.json", "bad"), "MANIFEST_PARSE_ERROR", 65),
        (RegistryError("boom", package="a"), "REGISTRY_ERROR", 69),
        (ExtractionError("boom"), "EXTRACTION_ERROR", 74),
        (ConfigError("boom"), "CONFIG_ERROR", 78),
        (NothingToDoError("idle"), "NOTHING_TO_DO", 2),
    ])
    def test_codes(self, exc: AssetizeError, code: str, exit_code: int) -> None:
        assert isinstance(exc, AssetizeError)
        assert exc.code == code
        assert exc.exit_code == exit_code

    def test_messages_name_the_subject(self) -> None:
        assert "x:y" in str(MalformedSpecifier("x:y"))
        assert "./util" in str(UnresolvedImport("./util", "no file"))
        assert "package.json" in str(ManifestParseError("package.json", "bad"))


# =========================================================================
# config.py
# =========================================================================


class TestConfig:
    def test_defaults(self) -> None:
        cfg = Config()
        assert cfg.assets_dir == "assets"
        assert cfg.manifest == "package.json"
        assert cfg.dependency_field == "assetDependencies"

    def test_from_file_with_extra(self, tmp_path: Path) -> None:
        path = tmp_path / "assetize.yml"
        path.write_text("assets_dir: public/vendor\nnpm_command: pnpm\nbanner: hi\n")
        cfg = Config.from_file(str(path))
        assert cfg.assets_dir == "public/vendor"
        assert cfg.npm_command == "pnpm"
        assert cfg.extra == {"banner": "hi"}

    def test_missing_file_returns_defaults(self, tmp_path: Path) -> None:
        assert Config.from_file(str(tmp_path / "nope.yml")) == Config()

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "assetize.yml"
        path.write_text("assets_dir: [oops\n")
        with pytest.raises(ConfigError):
            Config.from_file(str(path))

    def test_non_string_value(self, tmp_path: Path) -> None:
        path = tmp_path / "assetize.yml"
        path.write_text("assets_dir: 3\n")
        with pytest.raises(ConfigError, match="assets_dir"):
            Config.from_file(str(path))

    def test_override_ignores_empty(self) -> None:
        cfg = Config().override(assets_dir="out", manifest=None, npm_command="")
        assert cfg.assets_dir == "out"
        assert cfg.manifest == "package.json"
        assert cfg.npm_command == "npm"

    def test_global_instance(self, tmp_path: Path) -> None:
        path = tmp_path / "assetize.yml"
        path.write_text("work_dir: /tmp/pack\n")
        try:
            assert init_config(str(path)).work_dir == "/tmp/pack"
            assert get_config().work_dir == "/tmp/pack"
        finally:
            set_config(Config())


# =========================================================================
# manifest.py
# =========================================================================


class TestManifest:
    def test_strict_and_lenient(self, tmp_path: Path) -> None:
        good = tmp_path / "good.json"
        good.write_text(json.dumps({"name": "x"}))
        bad = tmp_path / "bad.json"
        bad.write_text("[1, 2]")

        assert asyncio.run(load_manifest(good)) == {"name": "x"}
        with pytest.raises(ManifestParseError, match="顶层必须是对象"):
            asyncio.run(load_manifest(bad))
        with pytest.raises(ManifestParseError, match="文件不存在"):
            asyncio.run(load_manifest(tmp_path / "missing.json"))
        assert asyncio.run(read_manifest(bad)) is None
        assert asyncio.run(read_manifest(tmp_path / "missing.json")) is None


# =========================================================================
# utils
# =========================================================================


class TestLogger:
    def test_json_formatter(self) -> None:
        record = logging.LogRecord(
            "assetize.test", logging.WARNING, __file__, 10, "无法解析 %s", ("./x",), None,
        )
        data = json.loads(JSONFormatter().format(record))
        assert data["level"] == "WARNING"
        assert data["message"] == "无法解析 ./x"
        assert data["logger"] == "assetize.test"

    def test_json_formatter_context_fields(self) -> None:
        record = logging.LogRecord(
            "assetize.core.installer", logging.INFO, __file__, 1, "! installing %s", ("a@1",), None,
        )
        record.package = "a"
        data = json.loads(JSONFormatter().format(record))
        assert data["package"] == "a"
        assert "file" not in data

    def test_json_output_stream(self) -> None:
        buf = io.StringIO()
        try:
            setup_logging("INFO", json_output=True, stream=buf)
            logging.getLogger("assetize.core.rewriter").info(
                "改写 %s", "x.js", extra={"file": Path("a/x.js")},
            )
        finally:
            reset_logging()
        data = json.loads(buf.getvalue().splitlines()[-1])
        assert data["message"] == "改写 x.js"
        assert data["file"] == str(Path("a/x.js"))

    def test_unknown_level_falls_back_to_info(self) -> None:
        try:
            setup_logging("LOUD")
            assert logging.getLogger().level == logging.INFO
        finally:
            reset_logging()

    def test_setup_replaces_handlers(self) -> None:
        try:
            setup_logging("DEBUG")
            setup_logging("WARNING", json_output=True)
            root = logging.getLogger()
            assert len(root.handlers) == 1
            assert isinstance(root.handlers[0].formatter, JSONFormatter)
            assert root.level == logging.WARNING
        finally:
            reset_logging()


class TestFs:
    def test_remove_tree_and_find(self, tmp_path: Path) -> None:
        (tmp_path / "a/b").mkdir(parents=True)
        (tmp_path / "a/b/x.mjs").write_text("")
        (tmp_path / "a/y.mjs").write_text("")

        found = asyncio.run(fs.find_files(tmp_path / "a", ".mjs"))
        assert [p.name for p in found] == ["x.mjs", "y.mjs"]

        asyncio.run(fs.remove_tree(tmp_path / "a"))
        assert not (tmp_path / "a").exists()
        asyncio.run(fs.remove_tree(tmp_path / "a"))
        assert asyncio.run(fs.find_files(tmp_path / "a", ".js")) == []
