"""GIFブロックディスパッチャー

ヘッダーとグローバルカラーテーブルを読み取った後、1〜2バイトのタグから
次のブロック種別を判定し、対応するデコーダーへ振り分ける状態機械を提供する。
デコードしたブロックは次のブロックを読む前にオブザーバーへ通知する。
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, BinaryIO

from gifinspect.parser.observer import BlockObserver, LoggingObserver
from gifinspect.parser.blocks import (
    APPLICATION_EXTENSION_LABEL,
    COMMENT_LABEL,
    EXTENSION_INTRODUCER,
    GRAPHIC_CONTROL_LABEL,
    IMAGE_SEPARATOR,
    PLAIN_TEXT_LABEL,
    TRAILER,
    BlockType,
    ColorTable,
    GraphicsControlExtensionBlock,
    HeaderBlock,
)
from gifinspect.parser.decoders import (
    read_application_extension,
    read_color_table,
    read_comment_extension,
    read_graphics_control_extension,
    read_header,
    read_plain_text_extension,
    read_table_based_image,
)
from gifinspect.parser.errors import (
    TruncatedStreamError,
    UnexpectedTagError,
    UnrecognizedExtensionError,
)
from gifinspect.parser.stream import ByteSource, StreamCursor

logger = logging.getLogger(__name__)


class DispatchState(Enum):
    """ディスパッチャーの状態"""

    AWAITING_BLOCK = "awaiting_block"
    DONE = "done"


class ParseOutcome(Enum):
    """ディスパッチループの正常終了理由"""

    TRAILER = "trailer"
    """トレーラー(0x3B)を検出した"""

    END_OF_INPUT = "end_of_input"
    """ブロック境界で入力が終わった（トレーラーなし）"""

    UNEXPECTED_TAG = "unexpected_tag"
    """ブロック境界で想定外のタグを検出した"""


@dataclass(frozen=True)
class ParseResult:
    """解析結果

    Attributes:
        outcome: ループの終了理由
        end_offset: 解析終了時のオフセット
        block_count: オブザーバーへ通知したブロック数
        header: デコードしたヘッダー
        global_color_table: グローバルカラーテーブル（なければNone）
        unexpected_tag: outcomeがUNEXPECTED_TAGの場合の検出タグ
    """

    outcome: ParseOutcome
    end_offset: int
    block_count: int
    header: HeaderBlock
    global_color_table: ColorTable | None = None
    unexpected_tag: int | None = None


class GifReader:
    """GIFストリームを先頭から順に読み、ブロックごとにオブザーバーへ通知するクラス

    ストリームは呼び出し元が所有し、parse()の間だけ借用する。
    タグとラベルは読み取ったバイトをそのままデコーダーへ渡すため、シークは行わない。

    使用例:
        >>> observer = CollectingObserver()
        >>> with open("anim.gif", "rb") as f:
        ...     result = GifReader(f, observer).parse()
        >>> result.outcome
        <ParseOutcome.TRAILER: 'trailer'>
    """

    def __init__(
        self,
        source: ByteSource | BinaryIO,
        observer: BlockObserver | None = None,
        strict: bool = False,
    ) -> None:
        """リーダーを初期化する

        Args:
            source: GIFストリーム（先頭に位置していること）
            observer: ブロック通知先（Noneの場合はLoggingObserver）
            strict: 想定外のタグや入力終端をエラーとして扱うか
        """
        if observer is None:
            observer = LoggingObserver()

        self._cursor = StreamCursor(source)
        self._observer = observer
        self._strict = strict
        self._state = DispatchState.AWAITING_BLOCK
        self._pending_control: GraphicsControlExtensionBlock | None = None
        self._block_count = 0
        self._extension_handlers: dict[int, Callable[[bytes, int], None]] = {
            GRAPHIC_CONTROL_LABEL: self._handle_graphics_control,
            APPLICATION_EXTENSION_LABEL: self._handle_application,
            COMMENT_LABEL: self._handle_comment,
            PLAIN_TEXT_LABEL: self._handle_plain_text,
        }

    @classmethod
    @contextmanager
    def from_path(
        cls,
        path: Path,
        observer: BlockObserver | None = None,
        strict: bool = False,
    ) -> Iterator[GifReader]:
        """ファイルを開いてリーダーを作成する

        Args:
            path: GIFファイルのパス
            observer: ブロック通知先
            strict: strictモード

        Yields:
            ファイルを借用したリーダー

        Raises:
            FileNotFoundError: ファイルが存在しない場合
        """
        if not path.exists():
            raise FileNotFoundError(f"GIFファイルが見つかりません: {path}")
        with open(path, "rb") as f:
            yield cls(f, observer, strict=strict)

    @property
    def state(self) -> DispatchState:
        """現在のディスパッチ状態"""
        return self._state

    @property
    def pending_control(self) -> GraphicsControlExtensionBlock | None:
        """次の描画ブロックを待っているグラフィック制御拡張"""
        return self._pending_control

    def _emit(self, block_type: BlockType, start: int, payload: Any) -> None:
        """ブロックをオブザーバーへ通知する"""
        self._block_count += 1
        self._observer(block_type, start, self._cursor.tell(), payload)

    def _take_pending_control(self) -> GraphicsControlExtensionBlock | None:
        """保留中のグラフィック制御拡張を取り出してスロットを空にする"""
        control = self._pending_control
        self._pending_control = None
        return control

    def parse(self) -> ParseResult:
        """ストリーム全体を解析する

        Returns:
            解析結果

        Raises:
            TruncatedStreamError: ブロックの途中で入力が終わった場合
            UnrecognizedExtensionError: 未知の拡張ラベルを検出した場合
            UnexpectedTagError: strictモードで想定外のタグを検出した場合
            RuntimeError: 解析済みのリーダーで再度呼び出した場合
        """
        if self._state is DispatchState.DONE:
            raise RuntimeError("GifReaderは一度しか解析できません")

        start = self._cursor.tell()
        header = read_header(self._cursor)
        self._emit(BlockType.HEADER, start, header)

        start = self._cursor.tell()
        global_color_table = read_color_table(
            self._cursor, header.global_color_table_flag, header.color_table_size_exponent
        )
        if global_color_table is not None:
            self._emit(BlockType.GLOBAL_COLOR_TABLE, start, global_color_table)

        outcome = ParseOutcome.END_OF_INPUT
        unexpected_tag: int | None = None
        while self._state is DispatchState.AWAITING_BLOCK:
            start = self._cursor.tell()
            if self._cursor.at_eof():
                if self._strict:
                    raise TruncatedStreamError(start, 1, 0)
                logger.debug("トレーラーなしで入力が終了しました: 0x%X", start)
                self._state = DispatchState.DONE
                continue

            tag = self._cursor.read_u8()
            if tag == IMAGE_SEPARATOR:
                image = read_table_based_image(
                    self._cursor, bytes([tag]), self._take_pending_control()
                )
                self._emit(BlockType.TABLE_BASED_IMAGE, start, image)
            elif tag == EXTENSION_INTRODUCER:
                label = self._cursor.read_u8()
                handler = self._extension_handlers.get(label)
                if handler is None:
                    raise UnrecognizedExtensionError(label, start)
                handler(bytes([tag, label]), start)
            elif tag == TRAILER:
                outcome = ParseOutcome.TRAILER
                self._state = DispatchState.DONE
            else:
                if self._strict:
                    raise UnexpectedTagError(tag, start)
                logger.debug("想定外のタグ 0x%02X (0x%X) で解析を終了します", tag, start)
                outcome = ParseOutcome.UNEXPECTED_TAG
                unexpected_tag = tag
                self._state = DispatchState.DONE

        if self._take_pending_control() is not None:
            logger.debug("描画ブロックに関連付けられなかったグラフィック制御拡張を破棄しました")

        return ParseResult(
            outcome=outcome,
            end_offset=self._cursor.tell(),
            block_count=self._block_count,
            header=header,
            global_color_table=global_color_table,
            unexpected_tag=unexpected_tag,
        )

    def _handle_graphics_control(self, prefix: bytes, start: int) -> None:
        control = read_graphics_control_extension(self._cursor, prefix)
        self._emit(BlockType.GRAPHICS_CONTROL_EXTENSION, start, control)
        if self._pending_control is not None:
            logger.debug("未使用のグラフィック制御拡張を置き換えました: 0x%X", start)
        self._pending_control = control

    def _handle_application(self, prefix: bytes, start: int) -> None:
        extension = read_application_extension(self._cursor, prefix)
        self._emit(BlockType.APPLICATION_EXTENSION, start, extension)

    def _handle_comment(self, prefix: bytes, start: int) -> None:
        comment = read_comment_extension(self._cursor, prefix)
        self._emit(BlockType.COMMENT_EXTENSION, start, comment)

    def _handle_plain_text(self, prefix: bytes, start: int) -> None:
        plain_text = read_plain_text_extension(
            self._cursor, prefix, self._take_pending_control()
        )
        self._emit(BlockType.PLAIN_TEXT_EXTENSION, start, plain_text)


def parse_gif(
    source: ByteSource | BinaryIO,
    observer: BlockObserver | None = None,
    strict: bool = False,
) -> ParseResult:
    """GIFストリームを解析する

    Args:
        source: GIFストリーム
        observer: ブロック通知先（Noneの場合はLoggingObserver）
        strict: strictモード

    Returns:
        解析結果
    """
    return GifReader(source, observer, strict=strict).parse()
