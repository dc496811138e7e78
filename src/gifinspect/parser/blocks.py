"""GIFブロックのデータ定義

ストリームから一度だけデコードされる不変のブロックレコードと、
ブロック種別・タグ定数を定義する。
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

# ブロックタグ
IMAGE_SEPARATOR = 0x2C
EXTENSION_INTRODUCER = 0x21
TRAILER = 0x3B

# 拡張ラベル
GRAPHIC_CONTROL_LABEL = 0xF9
APPLICATION_EXTENSION_LABEL = 0xFF
COMMENT_LABEL = 0xFE
PLAIN_TEXT_LABEL = 0x01

BLOCK_TERMINATOR = 0x00

HEADER_SIZE = 13
"""ヘッダーサイズ: シグネチャ(3) + バージョン(3) + 論理画面記述子(7)"""

GRAPHIC_CONTROL_SIZE = 8
APPLICATION_PREAMBLE_SIZE = 14
PLAIN_TEXT_PREAMBLE_SIZE = 15
IMAGE_DESCRIPTOR_SIZE = 10

# ループ回数を持つアプリケーション拡張の識別子
LOOPING_APPLICATIONS = (b"NETSCAPE2.0", b"ANIMEXTS1.0")


class BlockType(Enum):
    """オブザーバーへ通知されるブロック種別"""

    HEADER = "header"
    GLOBAL_COLOR_TABLE = "global_color_table"
    GRAPHICS_CONTROL_EXTENSION = "graphics_control_extension"
    APPLICATION_EXTENSION = "application_extension"
    COMMENT_EXTENSION = "comment_extension"
    PLAIN_TEXT_EXTENSION = "plain_text_extension"
    TABLE_BASED_IMAGE = "table_based_image"


def color_table_entry_count(size_exponent: int) -> int:
    """カラーテーブルのサイズ指数からエントリ数を求める

    Args:
        size_exponent: パックフィールドの下位3ビット

    Returns:
        2 ** (size_exponent + 1)。常に2から256の2の累乗
    """
    return 2 ** ((size_exponent & 0b111) + 1)


@dataclass(frozen=True)
class HeaderBlock:
    """GIFヘッダーと論理画面記述子

    Attributes:
        signature: シグネチャ（通常は"GIF"、検証しない）
        version: バージョン文字列（"87a"/"89a"、検証しない）
        canvas_width: 論理画面の幅
        canvas_height: 論理画面の高さ
        global_color_table_flag: グローバルカラーテーブルの有無
        color_resolution: 色解像度（3ビット）
        sort_flag: グローバルカラーテーブルがソート済みか
        color_table_size_exponent: カラーテーブルサイズ指数（3ビット）
        background_color_index: 背景色インデックス
        pixel_aspect_ratio: ピクセルアスペクト比
    """

    signature: str
    version: str
    canvas_width: int
    canvas_height: int
    global_color_table_flag: bool
    color_resolution: int
    sort_flag: bool
    color_table_size_exponent: int
    background_color_index: int
    pixel_aspect_ratio: int

    @property
    def color_table_entry_count(self) -> int:
        """グローバルカラーテーブルのエントリ数"""
        return color_table_entry_count(self.color_table_size_exponent)

    @property
    def bits_per_pixel(self) -> int:
        """色解像度から求めた原色あたりのビット数"""
        return self.color_resolution + 1


@dataclass(frozen=True)
class ColorTable:
    """RGBトリプルの順序付きパレット

    Attributes:
        entries: (r, g, b) のタプル列
    """

    entries: tuple[tuple[int, int, int], ...]

    def __len__(self) -> int:
        return len(self.entries)

    @property
    def raw(self) -> bytes:
        """ストリーム上の表現（3 * エントリ数バイト）"""
        return bytes(component for entry in self.entries for component in entry)

    @property
    def packed_colors(self) -> tuple[int, ...]:
        """各エントリを0xRRGGBB形式の整数にしたもの"""
        return tuple((r << 16) | (g << 8) | b for r, g, b in self.entries)


@dataclass(frozen=True)
class GraphicsControlExtensionBlock:
    """グラフィック制御拡張

    次に現れる描画ブロックに位置で関連付けられる。

    Attributes:
        block_size: ブロックサイズバイト（通常4）
        reserved: 予約ビット（3ビット）
        disposal_method: 廃棄方法（3ビット、解釈しない）
        user_input_flag: ユーザー入力フラグ
        transparent_color_flag: 透過色フラグ
        delay_time: 遅延時間（1/100秒単位）
        transparent_color_index: 透過色インデックス
        terminator: ブロック終端バイト
    """

    block_size: int
    reserved: int
    disposal_method: int
    user_input_flag: bool
    transparent_color_flag: bool
    delay_time: int
    transparent_color_index: int
    terminator: int

    @property
    def delay_seconds(self) -> float:
        """遅延時間（秒）"""
        return self.delay_time / 100


@dataclass(frozen=True)
class ApplicationExtensionBlock:
    """アプリケーション拡張

    Attributes:
        block_size: 固定部のブロックサイズバイト（通常11）
        identifier: アプリケーション識別子（8バイト）
        authentication_code: 認証コード（3バイト）
        sub_blocks: データサブブロックの列
    """

    block_size: int
    identifier: bytes
    authentication_code: bytes
    sub_blocks: tuple[bytes, ...]

    @property
    def data(self) -> bytes:
        """サブブロックを連結したベンダー固有データ"""
        return b"".join(self.sub_blocks)

    @property
    def loop_count(self) -> int | None:
        """NETSCAPE2.0/ANIMEXTS1.0のループ回数（0は無限）。該当しなければNone"""
        if self.identifier + self.authentication_code not in LOOPING_APPLICATIONS:
            return None
        for chunk in self.sub_blocks:
            if len(chunk) >= 3 and chunk[0] == 0x01:
                return int.from_bytes(chunk[1:3], "little")
        return None


@dataclass(frozen=True)
class CommentExtensionBlock:
    """コメント拡張

    Attributes:
        sub_blocks: コメントデータのサブブロック列
        text: 推定した文字コードでデコードしたコメント
        encoding: デコードに使用した文字コード
    """

    sub_blocks: tuple[bytes, ...]
    text: str
    encoding: str

    @property
    def data(self) -> bytes:
        """サブブロックを連結したコメントデータ"""
        return b"".join(self.sub_blocks)


@dataclass(frozen=True)
class PlainTextExtensionBlock:
    """プレーンテキスト拡張

    Attributes:
        block_size: 固定部のブロックサイズバイト（通常12）
        grid_left: テキストグリッドの左位置
        grid_top: テキストグリッドの上位置
        grid_width: テキストグリッドの幅
        grid_height: テキストグリッドの高さ
        cell_width: 文字セルの幅
        cell_height: 文字セルの高さ
        foreground_color_index: 前景色インデックス
        background_color_index: 背景色インデックス
        sub_blocks: テキストデータのサブブロック列
        graphic_control: 直前のグラフィック制御拡張（なければNone）
    """

    block_size: int
    grid_left: int
    grid_top: int
    grid_width: int
    grid_height: int
    cell_width: int
    cell_height: int
    foreground_color_index: int
    background_color_index: int
    sub_blocks: tuple[bytes, ...]
    graphic_control: GraphicsControlExtensionBlock | None = None

    @property
    def data(self) -> bytes:
        """サブブロックを連結したテキストデータ"""
        return b"".join(self.sub_blocks)


@dataclass(frozen=True)
class TableBasedImageBlock:
    """テーブルベース画像（画像記述子 + ローカルカラーテーブル + 画像データ）

    画像データはLZW展開せず、サブブロック数と総バイト数だけを記録する。

    Attributes:
        left: 画像の左位置
        top: 画像の上位置
        width: 画像の幅
        height: 画像の高さ
        local_color_table_flag: ローカルカラーテーブルの有無
        interlace_flag: インターレースフラグ
        sort_flag: ローカルカラーテーブルがソート済みか
        reserved: 予約ビット（2ビット）
        local_color_table_size_exponent: ローカルカラーテーブルサイズ指数
        local_color_table: この画像が所有するローカルカラーテーブル
        lzw_minimum_code_size: LZW最小コードサイズ（解釈しない）
        sub_block_count: 画像データサブブロック数（終端を除く）
        data_size: 画像データの総バイト数
        graphic_control: 直前のグラフィック制御拡張（なければNone）
    """

    left: int
    top: int
    width: int
    height: int
    local_color_table_flag: bool
    interlace_flag: bool
    sort_flag: bool
    reserved: int
    local_color_table_size_exponent: int
    local_color_table: ColorTable | None
    lzw_minimum_code_size: int
    sub_block_count: int
    data_size: int
    graphic_control: GraphicsControlExtensionBlock | None = None

    @property
    def local_color_table_entry_count(self) -> int:
        """ローカルカラーテーブルのエントリ数（フラグに関わらず指数から算出）"""
        return color_table_entry_count(self.local_color_table_size_exponent)


@dataclass(frozen=True)
class BlockEvent:
    """オブザーバーへ通知された1ブロック分の情報

    Attributes:
        block_type: ブロック種別
        start: ブロック開始オフセット
        end: ブロック終了オフセット（排他的）
        payload: デコード済みブロック
    """

    block_type: BlockType
    start: int
    end: int
    payload: Any

    @property
    def length(self) -> int:
        """ブロックのバイト長"""
        return self.end - self.start
