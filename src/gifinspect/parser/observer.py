"""ブロック通知を受け取るオブザーバー

GifReaderはデコードしたブロックごとに一度だけオブザーバーを同期的に呼び出す。
オブザーバーが指定されない場合はLoggingObserverが使用される。
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Protocol

from gifinspect.logger import InspectLogger, LogConfig, VerboseLevel
from gifinspect.parser.blocks import (
    ApplicationExtensionBlock,
    BlockEvent,
    BlockType,
    ColorTable,
    CommentExtensionBlock,
    GraphicsControlExtensionBlock,
    HeaderBlock,
    PlainTextExtensionBlock,
    TableBasedImageBlock,
)

DISPOSAL_METHODS: dict[int, str] = {
    0: "No disposal specified",
    1: "Do not dispose",
    2: "Restore to background",
    3: "Restore to previous",
}


class BlockObserver(Protocol):
    """ブロック通知のプロトコル"""

    def __call__(self, block_type: BlockType, start: int, end: int, payload: Any) -> None:
        """デコード済みブロックを受け取る

        Args:
            block_type: ブロック種別
            start: ブロック開始オフセット
            end: ブロック終了オフセット（排他的）
            payload: デコード済みブロック
        """
        ...


@dataclass
class CollectingObserver:
    """受け取ったブロックをBlockEventとして蓄積するオブザーバー"""

    events: list[BlockEvent] = field(default_factory=list)

    def __call__(self, block_type: BlockType, start: int, end: int, payload: Any) -> None:
        self.events.append(BlockEvent(block_type, start, end, payload))

    @property
    def ranges(self) -> list[tuple[BlockType, int, int]]:
        """(種別, 開始, 終了) の一覧"""
        return [(event.block_type, event.start, event.end) for event in self.events]

    def of_type(self, block_type: BlockType) -> list[Any]:
        """指定した種別のペイロード一覧"""
        return [event.payload for event in self.events if event.block_type == block_type]


def _flag(value: bool) -> int:
    return int(value)


def _format_color_table(table: ColorTable, limit: int) -> list[str]:
    lines = [f"Colors: {len(table)}"]
    for index, color in enumerate(table.packed_colors[:limit]):
        lines.append(f"  [{index:3d}] #{color:06X}")
    if len(table) > limit:
        lines.append(f"  ... ({len(table) - limit} more)")
    return lines


def _format_header(header: HeaderBlock) -> list[str]:
    return [
        f"{header.signature} {header.version}",
        f"Dimensions: {header.canvas_width} x {header.canvas_height}",
        f"Global color table flag: {_flag(header.global_color_table_flag)}",
        f"Color resolution: 0b{header.color_resolution:b} ({header.bits_per_pixel} bits/pixel)",
        f"Sort flag: {_flag(header.sort_flag)}",
        f"Global color table size: {header.color_table_size_exponent} "
        f"({header.color_table_entry_count})",
        f"BG color index: {header.background_color_index}",
        f"Pixel aspect ratio: {header.pixel_aspect_ratio}",
    ]


def _format_graphics_control(block: GraphicsControlExtensionBlock) -> list[str]:
    disposal = DISPOSAL_METHODS.get(block.disposal_method, "Undefined")
    return [
        f"Block byte size: {block.block_size}",
        f"'reserved': {block.reserved}",
        f"Disposal method: {block.disposal_method} ({disposal})",
        f"User input flag: {_flag(block.user_input_flag)}",
        f"Transparent color flag: {_flag(block.transparent_color_flag)}",
        f"Delay time: {block.delay_time} ({block.delay_seconds:.2f}s)",
        f"Transparent color index: {block.transparent_color_index}",
        f"Block terminator: {block.terminator}",
    ]


def _format_application(block: ApplicationExtensionBlock) -> list[str]:
    lines = [
        f"Application identifier: {block.identifier.decode('latin-1')!r}",
        f"Authentication code: {block.authentication_code.hex()}",
        f"Sub-blocks: {len(block.sub_blocks)} ({len(block.data)} bytes)",
    ]
    if block.loop_count is not None:
        loops = "infinite" if block.loop_count == 0 else str(block.loop_count)
        lines.append(f"Loop count: {loops}")
    return lines


def _format_comment(block: CommentExtensionBlock) -> list[str]:
    return [
        f"Comment ({block.encoding}, {len(block.data)} bytes): {block.text!r}",
    ]


def _format_plain_text(block: PlainTextExtensionBlock) -> list[str]:
    return [
        f"Text grid: {block.grid_width} x {block.grid_height} at ({block.grid_left}, {block.grid_top})",
        f"Character cell: {block.cell_width} x {block.cell_height}",
        f"Foreground/background color index: "
        f"{block.foreground_color_index}/{block.background_color_index}",
        f"Text: {block.data.decode('latin-1')!r}",
        f"Graphic control: {'yes' if block.graphic_control else 'no'}",
    ]


def _format_image(block: TableBasedImageBlock, limit: int) -> list[str]:
    lines = [
        f"Position: ({block.left}, {block.top})",
        f"Size: {block.width} x {block.height}",
        f"Local color table flag: {_flag(block.local_color_table_flag)}",
        f"Interlace flag: {_flag(block.interlace_flag)}",
        f"Sort flag: {_flag(block.sort_flag)}",
        f"Local color table size: {block.local_color_table_size_exponent} "
        f"({block.local_color_table_entry_count})",
        f"LZW minimum code size: {block.lzw_minimum_code_size}",
        f"Image data: {block.sub_block_count} sub-blocks ({block.data_size} bytes)",
    ]
    if block.local_color_table is not None:
        lines.extend(_format_color_table(block.local_color_table, limit))
    if block.graphic_control is not None:
        lines.append(f"Delay time: {block.graphic_control.delay_time}")
    return lines


class LoggingObserver:
    """ブロックをログに出力するデフォルトオブザーバー

    NORMALでは1ブロック1行を出力し、VERBOSE以上では各フィールドも出力する。
    """

    def __init__(self, logger: InspectLogger | None = None, color_preview: int = 8) -> None:
        """オブザーバーを初期化する

        Args:
            logger: 出力先ロガー（Noneの場合はNORMALレベルのロガーを作成）
            color_preview: フィールド出力時に表示するカラーテーブルのエントリ数上限
        """
        self._logger = logger or InspectLogger(LogConfig())
        self._color_preview = color_preview
        self._formatters: dict[BlockType, Callable[[Any], list[str]]] = {
            BlockType.HEADER: _format_header,
            BlockType.GLOBAL_COLOR_TABLE: lambda table: _format_color_table(
                table, self._color_preview
            ),
            BlockType.GRAPHICS_CONTROL_EXTENSION: _format_graphics_control,
            BlockType.APPLICATION_EXTENSION: _format_application,
            BlockType.COMMENT_EXTENSION: _format_comment,
            BlockType.PLAIN_TEXT_EXTENSION: _format_plain_text,
            BlockType.TABLE_BASED_IMAGE: lambda image: _format_image(image, self._color_preview),
        }

    def __call__(self, block_type: BlockType, start: int, end: int, payload: Any) -> None:
        self._logger.info(
            f"Block type {block_type.name} from 0x{start:X} to 0x{end:X} "
            f"(length 0x{end - start:X})"
        )
        if not self._logger.is_enabled_for(VerboseLevel.VERBOSE):
            return
        for line in self._formatters[block_type](payload):
            self._logger.verbose(f"    {line}")
