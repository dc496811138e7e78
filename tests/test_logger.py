"""ログ出力のテスト

InspectLoggerの詳細レベルごとのフィルタリングとファイル出力を検証するテストスイート。
"""

from __future__ import annotations

import io
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from gifinspect.logger import InspectLogger, LogConfig, VerboseLevel

if TYPE_CHECKING:
    from pytest import CaptureFixture


class TestLogConfig:
    """LogConfig設定クラスのテスト"""

    def test_default_values(self) -> None:
        """デフォルト値が正しく設定される"""
        config = LogConfig()
        assert config.verbose_level == VerboseLevel.NORMAL
        assert config.log_file is None
        assert config.use_color is True

    @pytest.mark.parametrize(
        "verbose_level",
        [
            pytest.param(VerboseLevel.QUIET, id="QUIETレベル"),
            pytest.param(VerboseLevel.NORMAL, id="NORMALレベル"),
            pytest.param(VerboseLevel.VERBOSE, id="VERBOSEレベル"),
            pytest.param(VerboseLevel.DEBUG, id="DEBUGレベル"),
        ],
    )
    def test_verbose_level_can_be_set(self, verbose_level: VerboseLevel) -> None:
        """verbose_levelを設定できる"""
        config = LogConfig(verbose_level=verbose_level)
        assert config.verbose_level == verbose_level


class TestVerboseLevel:
    """VerboseLevelのテスト"""

    def test_level_ordering(self) -> None:
        """レベルの順序が正しい"""
        assert VerboseLevel.QUIET < VerboseLevel.NORMAL < VerboseLevel.VERBOSE < VerboseLevel.DEBUG


class TestInspectLogger:
    """InspectLoggerのテスト"""

    @pytest.mark.parametrize(
        "level,expected",
        [
            pytest.param(VerboseLevel.QUIET, [], id="QUIETは何も出さない"),
            pytest.param(VerboseLevel.NORMAL, ["info"], id="NORMALはinfoのみ"),
            pytest.param(VerboseLevel.VERBOSE, ["info", "verbose"], id="VERBOSEはverboseまで"),
            pytest.param(VerboseLevel.DEBUG, ["info", "verbose", "debug"], id="DEBUGはすべて"),
        ],
    )
    def test_filters_by_level(self, level: VerboseLevel, expected: list[str]) -> None:
        """詳細レベルに応じてメッセージをフィルタリングする"""
        stream = io.StringIO()
        logger = InspectLogger(LogConfig(verbose_level=level), stream=stream)

        logger.info("info")
        logger.verbose("verbose")
        logger.debug("debug")

        assert stream.getvalue().splitlines() == expected

    def test_error_goes_to_stderr(self, capsys: CaptureFixture[str]) -> None:
        """エラーはQUIETでも標準エラー出力へ出力される"""
        logger = InspectLogger(LogConfig(verbose_level=VerboseLevel.QUIET))

        logger.error("壊れています")

        captured = capsys.readouterr()
        assert "エラー: 壊れています" in captured.err
        assert captured.out == ""

    def test_warning_suppressed_when_quiet(self, capsys: CaptureFixture[str]) -> None:
        """警告はQUIETでは出力されない"""
        InspectLogger(LogConfig(verbose_level=VerboseLevel.QUIET)).warning("注意")
        InspectLogger(LogConfig()).warning("注意")

        captured = capsys.readouterr()
        assert captured.out.count("警告: 注意") == 1

    def test_strips_color_when_disabled(self) -> None:
        """use_color=FalseではANSIエスケープを除去する"""
        stream = io.StringIO()
        logger = InspectLogger(LogConfig(use_color=False), stream=stream)

        logger.info("\x1b[31mred\x1b[0m")

        assert stream.getvalue() == "red\n"

    def test_log_file_records_all_levels(self, tmp_path: Path) -> None:
        """ログファイルには詳細レベルに関わらずすべて記録される"""
        log_file = tmp_path / "inspect.log"
        config = LogConfig(verbose_level=VerboseLevel.QUIET, log_file=log_file)

        with InspectLogger(config, stream=io.StringIO()) as logger:
            logger.info("\x1b[32mBlock type HEADER\x1b[0m")
            logger.debug("詳細")

        content = log_file.read_text(encoding="utf-8")
        assert "INFO: Block type HEADER" in content
        assert "DEBUG: 詳細" in content
        assert "\x1b[" not in content
