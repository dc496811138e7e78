"""ログ出力のインターフェース定義

このモジュールは、gifinspectの解析結果表示とログ出力のためのロガーを定義する。
VerboseLevel (詳細ログレベル)に応じた出力制御を行い、
必要に応じてログファイルへタイムスタンプ付きで書き出す。
"""

from __future__ import annotations

import re
import sys
from dataclasses import dataclass
from datetime import datetime
from enum import IntEnum
from pathlib import Path
from typing import TextIO


class VerboseLevel(IntEnum):
    """詳細ログレベル

    ログ出力の詳細度を制御するための列挙型。
    QUIET: エラーのみ出力
    NORMAL: ブロック一覧とサマリ出力
    VERBOSE: ブロックごとのフィールドも出力（-vオプション）
    DEBUG: ディスパッチャー内部の判断も出力（-vvオプション）
    """

    QUIET = -1
    NORMAL = 0
    VERBOSE = 1
    DEBUG = 2


@dataclass
class LogConfig:
    """ログ設定

    ログ出力の動作を制御するための設定データクラス。

    Attributes:
        verbose_level: ログの詳細度レベル
        log_file: ログ出力先ファイルパス（Noneの場合はファイル出力なし）
        use_color: カラー出力を使用するか
    """

    verbose_level: VerboseLevel = VerboseLevel.NORMAL
    log_file: Path | None = None
    use_color: bool = True


class InspectLogger:
    """解析ログ出力クラス

    VerboseLevelに応じてメッセージのフィルタリングを行う。
    詳細度はプロセス全体の状態ではなく、LogConfigとして明示的に渡す。

    使用例:
        >>> config = LogConfig(verbose_level=VerboseLevel.VERBOSE)
        >>> with InspectLogger(config) as logger:
        ...     logger.info("Block type HEADER from 0x0 to 0xD (length 0xD)")
        ...     logger.verbose("Dimensions: 16 x 16")
    """

    _ANSI_ESCAPE_PATTERN = re.compile(r"\x1b\[[0-9;]*m")

    def __init__(self, config: LogConfig, stream: TextIO | None = None) -> None:
        """ロガーを初期化する

        Args:
            config: ログ設定
            stream: 通常出力先（Noneの場合は標準出力）
        """
        self._config = config
        self._stream = stream
        self._log_file: TextIO | None = None
        if config.log_file:
            # クラス自体がコンテキストマネージャとして動作し、__exit__でファイルを閉じる
            self._log_file = open(config.log_file, "w", encoding="utf-8")  # noqa: SIM115

    def __enter__(self) -> InspectLogger:
        """コンテキストマネージャのエントリポイント"""
        return self

    def __exit__(self, *args: object) -> None:
        """コンテキストマネージャの終了処理"""
        self.close()

    def close(self) -> None:
        """ログファイルを閉じる"""
        if self._log_file:
            self._log_file.close()
            self._log_file = None

    def is_enabled_for(self, level: VerboseLevel) -> bool:
        """指定レベルのメッセージが画面に出力されるか判定する"""
        return self._config.verbose_level >= level

    def _print(self, message: str, file: TextIO | None = None) -> None:
        """メッセージを出力する

        Args:
            message: 出力するメッセージ
            file: 出力先（Noneの場合は通常出力先）
        """
        if file is None:
            file = self._stream or sys.stdout
        if not self._config.use_color:
            message = self._strip_ansi(message)
        print(message, file=file)

    def _log_to_file(self, level: str, message: str) -> None:
        """ファイルにログ出力する

        Args:
            level: ログレベル文字列
            message: 出力するメッセージ
        """
        if self._log_file:
            timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
            clean_message = self._strip_ansi(message)
            self._log_file.write(f"[{timestamp}] {level}: {clean_message}\n")
            self._log_file.flush()

    def _strip_ansi(self, text: str) -> str:
        """ANSIエスケープシーケンスを除去する"""
        return self._ANSI_ESCAPE_PATTERN.sub("", text)

    def info(self, message: str) -> None:
        """情報メッセージを出力する（NORMAL以上）"""
        if self.is_enabled_for(VerboseLevel.NORMAL):
            self._print(message)
        self._log_to_file("INFO", message)

    def verbose(self, message: str) -> None:
        """詳細メッセージを出力する（VERBOSE以上）"""
        if self.is_enabled_for(VerboseLevel.VERBOSE):
            self._print(message)
        self._log_to_file("VERBOSE", message)

    def debug(self, message: str) -> None:
        """デバッグメッセージを出力する（DEBUG以上）"""
        if self.is_enabled_for(VerboseLevel.DEBUG):
            self._print(message)
        self._log_to_file("DEBUG", message)

    def error(self, message: str) -> None:
        """エラーメッセージを出力する（常に標準エラー出力へ出力）"""
        self._print(f"エラー: {message}", file=sys.stderr)
        self._log_to_file("ERROR", message)

    def warning(self, message: str) -> None:
        """警告メッセージを出力する（QUIET以外）"""
        if self._config.verbose_level > VerboseLevel.QUIET:
            self._print(f"警告: {message}")
        self._log_to_file("WARNING", message)
