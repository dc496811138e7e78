"""GIFブロックデコーダー

固定長レイアウトのデコーダー（バイト列からレコードへの純粋関数）と、
データサブブロック列を消費する可変長デコーダーを提供する。

可変長デコーダーはディスパッチャーが既に読み取ったタグ/ラベルバイトを
prefixとして受け取り、ストリームを巻き戻さずに残りを読み取る。
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

import chardet

from gifinspect.parser.blocks import (
    APPLICATION_PREAMBLE_SIZE,
    BLOCK_TERMINATOR,
    GRAPHIC_CONTROL_SIZE,
    HEADER_SIZE,
    IMAGE_DESCRIPTOR_SIZE,
    PLAIN_TEXT_PREAMBLE_SIZE,
    ApplicationExtensionBlock,
    ColorTable,
    CommentExtensionBlock,
    GraphicsControlExtensionBlock,
    HeaderBlock,
    PlainTextExtensionBlock,
    TableBasedImageBlock,
    color_table_entry_count,
)
from gifinspect.parser.stream import StreamCursor

# chardetが検出できなかった場合の文字コード（全バイト値をデコード可能）
FALLBACK_COMMENT_ENCODING = "latin-1"


def _require_length(data: bytes, expected: int, name: str) -> None:
    """固定長デコーダーの入力長を検証する"""
    if len(data) != expected:
        raise ValueError(f"{name}は{expected}バイト必要です（{len(data)}バイト）")


def _u16(data: bytes, offset: int) -> int:
    """リトルエンディアンの符号なし16ビット整数を取り出す"""
    return int.from_bytes(data[offset : offset + 2], "little")


def decode_header(data: bytes) -> HeaderBlock:
    """13バイトのヘッダー + 論理画面記述子をデコードする

    シグネチャとバージョンは検証せず、そのまま文字列として保持する。

    Args:
        data: オフセット0からの13バイト

    Returns:
        デコードされたヘッダー

    Raises:
        ValueError: dataが13バイトでない場合
    """
    _require_length(data, HEADER_SIZE, "ヘッダー")
    packed = data[10]
    return HeaderBlock(
        signature=data[0:3].decode("latin-1"),
        version=data[3:6].decode("latin-1"),
        canvas_width=_u16(data, 6),
        canvas_height=_u16(data, 8),
        global_color_table_flag=bool(packed & 0b10000000),
        color_resolution=(packed & 0b01110000) >> 4,
        sort_flag=bool(packed & 0b00001000),
        color_table_size_exponent=packed & 0b00000111,
        background_color_index=data[11],
        pixel_aspect_ratio=data[12],
    )


def decode_color_table(data: bytes) -> ColorTable:
    """RGBトリプルの並びをカラーテーブルにデコードする

    Args:
        data: 3の倍数長のバイト列

    Returns:
        デコードされたカラーテーブル

    Raises:
        ValueError: 長さが3の倍数でない場合
    """
    if len(data) % 3 != 0:
        raise ValueError(f"カラーテーブルの長さが3の倍数ではありません: {len(data)}")
    return ColorTable(
        entries=tuple((data[i], data[i + 1], data[i + 2]) for i in range(0, len(data), 3))
    )


def read_color_table(cursor: StreamCursor, flag: bool, size_exponent: int) -> ColorTable | None:
    """所有者のフラグとサイズ指数に従ってカラーテーブルを読み取る

    Args:
        cursor: 読み取りカーソル
        flag: カラーテーブルの有無
        size_exponent: カラーテーブルサイズ指数

    Returns:
        カラーテーブル。flagがFalseの場合は何も読まずNone
    """
    if not flag:
        return None
    return decode_color_table(cursor.read_exact(3 * color_table_entry_count(size_exponent)))


def decode_graphics_control(data: bytes) -> GraphicsControlExtensionBlock:
    """8バイトのグラフィック制御拡張をデコードする

    Args:
        data: 拡張導入子(0x21)から終端バイトまでの8バイト

    Returns:
        デコードされたグラフィック制御拡張

    Raises:
        ValueError: dataが8バイトでない場合
    """
    _require_length(data, GRAPHIC_CONTROL_SIZE, "グラフィック制御拡張")
    packed = data[3]
    return GraphicsControlExtensionBlock(
        block_size=data[2],
        reserved=(packed & 0b11100000) >> 5,
        disposal_method=(packed & 0b00011100) >> 2,
        user_input_flag=bool(packed & 0b00000010),
        transparent_color_flag=bool(packed & 0b00000001),
        delay_time=_u16(data, 4),
        transparent_color_index=data[6],
        terminator=data[7],
    )


@dataclass(frozen=True)
class ImageDescriptor:
    """10バイトの画像記述子"""

    left: int
    top: int
    width: int
    height: int
    local_color_table_flag: bool
    interlace_flag: bool
    sort_flag: bool
    reserved: int
    local_color_table_size_exponent: int


def decode_image_descriptor(data: bytes) -> ImageDescriptor:
    """画像区切り子(0x2C)を含む10バイトの画像記述子をデコードする

    Raises:
        ValueError: dataが10バイトでない場合
    """
    _require_length(data, IMAGE_DESCRIPTOR_SIZE, "画像記述子")
    packed = data[9]
    return ImageDescriptor(
        left=_u16(data, 1),
        top=_u16(data, 3),
        width=_u16(data, 5),
        height=_u16(data, 7),
        local_color_table_flag=bool(packed & 0b10000000),
        interlace_flag=bool(packed & 0b01000000),
        sort_flag=bool(packed & 0b00100000),
        reserved=(packed & 0b00011000) >> 3,
        local_color_table_size_exponent=packed & 0b00000111,
    )


def read_sub_blocks(cursor: StreamCursor) -> Iterator[bytes]:
    """長さ付きデータサブブロックを終端(長さ0)まで順に読み取る

    終端バイトは消費するが、イテレータには含めない。
    終端が現れないままストリームが終わった場合はTruncatedStreamErrorが伝播する。

    Args:
        cursor: 読み取りカーソル

    Yields:
        各サブブロックのペイロード
    """
    while True:
        length = cursor.read_u8()
        if length == BLOCK_TERMINATOR:
            return
        yield cursor.read_exact(length)


def _read_fixed(cursor: StreamCursor, prefix: bytes, size: int) -> bytes:
    """既読のprefixに続けて固定長レイアウトの残りを読み取る"""
    return prefix + cursor.read_exact(size - len(prefix))


def read_header(cursor: StreamCursor) -> HeaderBlock:
    """カーソル位置から13バイトのヘッダーを読み取る"""
    return decode_header(cursor.read_exact(HEADER_SIZE))


def read_graphics_control_extension(
    cursor: StreamCursor, prefix: bytes = b""
) -> GraphicsControlExtensionBlock:
    """グラフィック制御拡張を読み取る

    Args:
        cursor: 読み取りカーソル
        prefix: 既に読み取った拡張導入子とラベル

    Returns:
        デコードされたグラフィック制御拡張
    """
    return decode_graphics_control(_read_fixed(cursor, prefix, GRAPHIC_CONTROL_SIZE))


def read_application_extension(
    cursor: StreamCursor, prefix: bytes = b""
) -> ApplicationExtensionBlock:
    """アプリケーション拡張（14バイトの固定部 + データサブブロック列）を読み取る

    Args:
        cursor: 読み取りカーソル
        prefix: 既に読み取った拡張導入子とラベル

    Returns:
        デコードされたアプリケーション拡張
    """
    preamble = _read_fixed(cursor, prefix, APPLICATION_PREAMBLE_SIZE)
    return ApplicationExtensionBlock(
        block_size=preamble[2],
        identifier=preamble[3:11],
        authentication_code=preamble[11:14],
        sub_blocks=tuple(read_sub_blocks(cursor)),
    )


def decode_comment_text(data: bytes) -> tuple[str, str]:
    """コメントデータの文字コードを推定してデコードする

    Args:
        data: コメントデータ

    Returns:
        (デコード済みテキスト, 使用した文字コード)
    """
    if not data:
        return "", "ascii"
    encoding = chardet.detect(data).get("encoding") or FALLBACK_COMMENT_ENCODING
    try:
        return data.decode(encoding, errors="replace"), encoding
    except LookupError:
        return data.decode(FALLBACK_COMMENT_ENCODING), FALLBACK_COMMENT_ENCODING


def read_comment_extension(cursor: StreamCursor, prefix: bytes = b"") -> CommentExtensionBlock:
    """コメント拡張を読み取る

    Args:
        cursor: 読み取りカーソル
        prefix: 既に読み取った拡張導入子とラベル

    Returns:
        デコードされたコメント拡張
    """
    _read_fixed(cursor, prefix, 2)
    sub_blocks = tuple(read_sub_blocks(cursor))
    text, encoding = decode_comment_text(b"".join(sub_blocks))
    return CommentExtensionBlock(sub_blocks=sub_blocks, text=text, encoding=encoding)


def read_plain_text_extension(
    cursor: StreamCursor,
    prefix: bytes = b"",
    graphic_control: GraphicsControlExtensionBlock | None = None,
) -> PlainTextExtensionBlock:
    """プレーンテキスト拡張（15バイトの固定部 + テキストサブブロック列）を読み取る

    Args:
        cursor: 読み取りカーソル
        prefix: 既に読み取った拡張導入子とラベル
        graphic_control: この描画ブロックに関連付けるグラフィック制御拡張

    Returns:
        デコードされたプレーンテキスト拡張
    """
    preamble = _read_fixed(cursor, prefix, PLAIN_TEXT_PREAMBLE_SIZE)
    return PlainTextExtensionBlock(
        block_size=preamble[2],
        grid_left=_u16(preamble, 3),
        grid_top=_u16(preamble, 5),
        grid_width=_u16(preamble, 7),
        grid_height=_u16(preamble, 9),
        cell_width=preamble[11],
        cell_height=preamble[12],
        foreground_color_index=preamble[13],
        background_color_index=preamble[14],
        sub_blocks=tuple(read_sub_blocks(cursor)),
        graphic_control=graphic_control,
    )


def read_table_based_image(
    cursor: StreamCursor,
    prefix: bytes = b"",
    graphic_control: GraphicsControlExtensionBlock | None = None,
) -> TableBasedImageBlock:
    """テーブルベース画像を読み取る

    画像記述子、ローカルカラーテーブル（あれば）、LZW最小コードサイズを読み、
    画像データサブブロックは展開せずに数とバイト数だけを数えて読み飛ばす。

    Args:
        cursor: 読み取りカーソル
        prefix: 既に読み取った画像区切り子
        graphic_control: この描画ブロックに関連付けるグラフィック制御拡張

    Returns:
        デコードされたテーブルベース画像
    """
    descriptor = decode_image_descriptor(_read_fixed(cursor, prefix, IMAGE_DESCRIPTOR_SIZE))
    local_color_table = read_color_table(
        cursor,
        descriptor.local_color_table_flag,
        descriptor.local_color_table_size_exponent,
    )
    lzw_minimum_code_size = cursor.read_u8()

    sub_block_count = 0
    data_size = 0
    for chunk in read_sub_blocks(cursor):
        sub_block_count += 1
        data_size += len(chunk)

    return TableBasedImageBlock(
        left=descriptor.left,
        top=descriptor.top,
        width=descriptor.width,
        height=descriptor.height,
        local_color_table_flag=descriptor.local_color_table_flag,
        interlace_flag=descriptor.interlace_flag,
        sort_flag=descriptor.sort_flag,
        reserved=descriptor.reserved,
        local_color_table_size_exponent=descriptor.local_color_table_size_exponent,
        local_color_table=local_color_table,
        lzw_minimum_code_size=lzw_minimum_code_size,
        sub_block_count=sub_block_count,
        data_size=data_size,
        graphic_control=graphic_control,
    )
