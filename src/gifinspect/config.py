"""Configuration module for gifinspect."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml


class ConfigError(Exception):
    """設定ファイル読み込みエラー"""

    pass


@dataclass(frozen=True)
class InspectConfig:
    """ルート設定

    Attributes:
        strict: 想定外のタグや入力終端をエラーとして扱うか
        verbose_level: 詳細出力レベル（-1=静粛, 0=通常, 1=詳細, 2=デバッグ）
        color_preview: 詳細出力で表示するカラーテーブルのエントリ数上限
        log_file: ログ出力ファイルパス
    """

    strict: bool = False
    verbose_level: int = 0
    color_preview: int = 8
    log_file: Path | None = None


def load_config(path: Path) -> InspectConfig:
    """設定ファイルを読み込む

    Args:
        path: 設定ファイルパス

    Returns:
        InspectConfig: 読み込んだ設定（デフォルトとマージ済み）

    Raises:
        ConfigError: ファイル読み込みまたはパースエラー
    """
    if not path.exists():
        raise ConfigError(f"設定ファイルが見つかりません: {path}")

    try:
        with path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"YAML解析エラー: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError("設定ファイルはYAMLのマッピング形式である必要があります")

    default = get_default_config()

    return InspectConfig(
        strict=_get_bool(data, "strict", default.strict),
        verbose_level=_get_int(data, "verbose_level", default.verbose_level),
        color_preview=_get_int(data, "color_preview", default.color_preview),
        log_file=_get_path(data, "log_file", default.log_file),
    )


def get_default_config() -> InspectConfig:
    """デフォルト設定を取得する"""
    return InspectConfig()


def _get_bool(data: dict[str, Any], key: str, default: bool) -> bool:
    """真偽値の設定項目を取得する"""
    value = data.get(key, default)
    if not isinstance(value, bool):
        raise ConfigError(f"{key}は真偽値である必要があります: {value!r}")
    return value


def _get_int(data: dict[str, Any], key: str, default: int) -> int:
    """整数の設定項目を取得する"""
    value = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"{key}は整数である必要があります: {value!r}")
    return value


def _get_path(data: dict[str, Any], key: str, default: Path | None) -> Path | None:
    """パスの設定項目を取得する"""
    value = data.get(key)
    if value is None:
        return default
    return Path(str(value))
