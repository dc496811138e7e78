"""ブロックディスパッチャー(GifReader)のテスト"""

import io
from pathlib import Path

import pytest

from gifinspect.parser import (
    BlockType,
    CollectingObserver,
    DispatchState,
    GifReader,
    ParseOutcome,
    ParseResult,
    TruncatedStreamError,
    UnexpectedTagError,
    UnrecognizedExtensionError,
    parse_gif,
)

# 2x2、グローバルカラーテーブル2色のヘッダー
HEADER = b"GIF89a\x02\x00\x02\x00\x80\x00\x00"
HEADER_NO_TABLE = b"GIF89a\x02\x00\x02\x00\x00\x00\x00"
GLOBAL_TABLE = b"\x00\x00\x00\xff\xff\xff"
NETSCAPE = b"\x21\xff\x0bNETSCAPE2.0\x03\x01\x00\x00\x00"
CONTROL = b"\x21\xf9\x04\x05\x0a\x00\x01\x00"
IMAGE = b"\x2c\x00\x00\x00\x00\x02\x00\x02\x00\x00\x02\x02\x44\x01\x00"
COMMENT = b"\x21\xfe\x05hello\x00"
PLAIN_TEXT = b"\x21\x01\x0c" + b"\x00" * 8 + b"\x08\x08\x01\x00" + b"\x02Hi\x00"
TRAILER = b"\x3b"

ANIMATION = HEADER + GLOBAL_TABLE + NETSCAPE + CONTROL + IMAGE + COMMENT + TRAILER


class OnlyReadable:
    """read()だけを持つシーク不可能なソース（標準入力パイプ相当）"""

    def __init__(self, data: bytes) -> None:
        self._buffer = io.BytesIO(data)

    def read(self, size: int = -1) -> bytes:
        return self._buffer.read(size)


def _parse(data: bytes, strict: bool = False) -> tuple[CollectingObserver, ParseResult]:
    observer = CollectingObserver()
    result = parse_gif(io.BytesIO(data), observer, strict=strict)
    return observer, result


class TestMinimalStream:
    """最小構成ストリームのテスト"""

    def test_header_then_trailer(self) -> None:
        """正常系: ヘッダー直後のトレーラーではHeaderイベント1件のみ"""
        observer, result = _parse(HEADER_NO_TABLE + TRAILER)

        assert observer.ranges == [(BlockType.HEADER, 0, 13)]
        assert result.outcome is ParseOutcome.TRAILER
        assert result.block_count == 1
        assert result.end_offset == 14
        assert result.global_color_table is None

    def test_global_color_table_follows_header(self) -> None:
        """正常系: 指数0のグローバルカラーテーブルはヘッダー直後の6バイト"""
        observer, result = _parse(HEADER + GLOBAL_TABLE + TRAILER)

        assert observer.ranges == [
            (BlockType.HEADER, 0, 13),
            (BlockType.GLOBAL_COLOR_TABLE, 13, 19),
        ]
        assert result.global_color_table is not None
        assert result.global_color_table.packed_colors == (0x000000, 0xFFFFFF)


class TestAnimation:
    """複数ブロックを含むストリームのテスト"""

    def test_block_ranges(self) -> None:
        """正常系: 各ブロックのバイト範囲を順に通知する"""
        observer, result = _parse(ANIMATION)

        assert observer.ranges == [
            (BlockType.HEADER, 0, 13),
            (BlockType.GLOBAL_COLOR_TABLE, 13, 19),
            (BlockType.APPLICATION_EXTENSION, 19, 38),
            (BlockType.GRAPHICS_CONTROL_EXTENSION, 38, 46),
            (BlockType.TABLE_BASED_IMAGE, 46, 61),
            (BlockType.COMMENT_EXTENSION, 61, 70),
        ]
        assert result.outcome is ParseOutcome.TRAILER
        assert result.end_offset == len(ANIMATION)
        assert result.block_count == 6

    def test_control_extension_attached_to_image(self) -> None:
        """正常系: グラフィック制御拡張は次の画像ブロックに関連付けられる"""
        observer, _ = _parse(ANIMATION)

        control = observer.of_type(BlockType.GRAPHICS_CONTROL_EXTENSION)[0]
        image = observer.of_type(BlockType.TABLE_BASED_IMAGE)[0]
        assert image.graphic_control == control
        assert control.delay_time == 10
        assert control.transparent_color_index == 1

    def test_control_extension_used_once(self) -> None:
        """正常系: 関連付け後はスロットが空になり次の画像には付かない"""
        observer, _ = _parse(HEADER + GLOBAL_TABLE + CONTROL + IMAGE + IMAGE + TRAILER)

        first, second = observer.of_type(BlockType.TABLE_BASED_IMAGE)
        assert first.graphic_control is not None
        assert second.graphic_control is None

    def test_replaced_control_extension_is_discarded(self) -> None:
        """正常系: 連続したグラフィック制御拡張は後のものが使われる"""
        later = b"\x21\xf9\x04\x00\x14\x00\x00\x00"
        observer, _ = _parse(HEADER + GLOBAL_TABLE + CONTROL + later + IMAGE + TRAILER)

        image = observer.of_type(BlockType.TABLE_BASED_IMAGE)[0]
        assert image.graphic_control.delay_time == 20

    def test_plain_text_takes_control_extension(self) -> None:
        """正常系: プレーンテキスト拡張も描画ブロックとして制御拡張を受け取る"""
        observer, _ = _parse(HEADER + GLOBAL_TABLE + CONTROL + PLAIN_TEXT + IMAGE + TRAILER)

        plain_text = observer.of_type(BlockType.PLAIN_TEXT_EXTENSION)[0]
        image = observer.of_type(BlockType.TABLE_BASED_IMAGE)[0]
        assert plain_text.graphic_control is not None
        assert plain_text.data == b"Hi"
        assert image.graphic_control is None

    def test_comment_does_not_desynchronize(self) -> None:
        """正常系: コメント拡張を読み飛ばした後も後続ブロックを正しく読める"""
        observer, result = _parse(HEADER + GLOBAL_TABLE + COMMENT + IMAGE + TRAILER)

        assert observer.of_type(BlockType.COMMENT_EXTENSION)[0].text == "hello"
        assert len(observer.of_type(BlockType.TABLE_BASED_IMAGE)) == 1
        assert result.outcome is ParseOutcome.TRAILER

    def test_netscape_loop_count(self) -> None:
        """正常系: NETSCAPE2.0のループ回数を取得できる"""
        observer, _ = _parse(ANIMATION)

        assert observer.of_type(BlockType.APPLICATION_EXTENSION)[0].loop_count == 0

    def test_idempotent_over_same_buffer(self) -> None:
        """同じバイト列を2回解析すると同じ範囲列が得られる"""
        first, _ = _parse(ANIMATION)
        second, _ = _parse(ANIMATION)

        assert first.ranges == second.ranges

    def test_unseekable_source(self) -> None:
        """正常系: シーク不可能なソースでも解析できる"""
        observer = CollectingObserver()

        result = GifReader(OnlyReadable(ANIMATION), observer).parse()

        assert result.outcome is ParseOutcome.TRAILER
        assert len(observer.events) == 6


class TestTermination:
    """終了条件とエラーのテスト"""

    def test_truncated_header(self) -> None:
        """異常系: 13バイト未満のストリームはTruncatedStreamErrorでイベントなし"""
        observer = CollectingObserver()

        with pytest.raises(TruncatedStreamError):
            parse_gif(io.BytesIO(HEADER[:10]), observer)

        assert observer.events == []

    def test_unrecognized_extension_stops(self) -> None:
        """異常系: 未知の拡張ラベルで停止し、後続ブロックは通知しない"""
        observer = CollectingObserver()
        data = HEADER + GLOBAL_TABLE + b"\x21\x05\x00" + IMAGE + TRAILER

        with pytest.raises(UnrecognizedExtensionError) as exc_info:
            parse_gif(io.BytesIO(data), observer)

        assert exc_info.value.label == 0x05
        assert exc_info.value.offset == 19
        assert [event.block_type for event in observer.events] == [
            BlockType.HEADER,
            BlockType.GLOBAL_COLOR_TABLE,
        ]

    def test_truncated_image_keeps_delivered_events(self) -> None:
        """異常系: 途中で切れても通知済みのブロックはそのまま残る"""
        observer = CollectingObserver()
        data = HEADER + GLOBAL_TABLE + CONTROL + IMAGE[:-1]

        with pytest.raises(TruncatedStreamError):
            parse_gif(io.BytesIO(data), observer)

        assert len(observer.events) == 3

    def test_unexpected_tag_ends_parse(self) -> None:
        """正常系: 想定外のタグは解析終了として扱う"""
        observer, result = _parse(HEADER + GLOBAL_TABLE + b"\x00" + IMAGE)

        assert result.outcome is ParseOutcome.UNEXPECTED_TAG
        assert result.unexpected_tag == 0x00
        assert result.end_offset == 20
        assert len(observer.events) == 2

    def test_unexpected_tag_strict(self) -> None:
        """異常系: strictモードでは想定外のタグはUnexpectedTagError"""
        with pytest.raises(UnexpectedTagError) as exc_info:
            _parse(HEADER + GLOBAL_TABLE + b"\x99", strict=True)

        assert exc_info.value.tag == 0x99
        assert exc_info.value.offset == 19

    def test_end_of_input_without_trailer(self) -> None:
        """正常系: ブロック境界で入力が終わればEND_OF_INPUT"""
        observer, result = _parse(HEADER + GLOBAL_TABLE + IMAGE)

        assert result.outcome is ParseOutcome.END_OF_INPUT
        assert result.end_offset == 34
        assert len(observer.events) == 3

    def test_end_of_input_strict(self) -> None:
        """異常系: strictモードではトレーラーなしの終端はTruncatedStreamError"""
        with pytest.raises(TruncatedStreamError):
            _parse(HEADER + GLOBAL_TABLE + IMAGE, strict=True)

    def test_state_is_done_after_parse(self) -> None:
        """正常系: 解析後の状態はDONEで保留中の制御拡張は破棄される"""
        data = HEADER + GLOBAL_TABLE + CONTROL + TRAILER
        reader = GifReader(io.BytesIO(data), CollectingObserver())

        assert reader.state is DispatchState.AWAITING_BLOCK
        reader.parse()

        assert reader.state is DispatchState.DONE
        assert reader.pending_control is None


class TestFromPath:
    """GifReader.from_pathのテスト"""

    def test_parses_file(self, tmp_path: Path) -> None:
        """正常系: ファイルを開いて解析できる"""
        gif_file = tmp_path / "anim.gif"
        gif_file.write_bytes(ANIMATION)
        observer = CollectingObserver()

        with GifReader.from_path(gif_file, observer) as reader:
            result = reader.parse()

        assert result.outcome is ParseOutcome.TRAILER
        assert len(observer.events) == 6

    def test_missing_file(self, tmp_path: Path) -> None:
        """異常系: 存在しないファイルはFileNotFoundError"""
        with pytest.raises(FileNotFoundError):
            with GifReader.from_path(tmp_path / "missing.gif"):
                pass


class TestStartOffset:
    """先頭以外に位置したソースの解析テスト"""

    def test_ranges_follow_source_position(self) -> None:
        """正常系: ソースの現在位置を起点にHeaderを含む全範囲を報告する"""
        source = io.BytesIO(b"JUNK" + HEADER + GLOBAL_TABLE + TRAILER)
        source.seek(4)
        observer = CollectingObserver()

        result = parse_gif(source, observer)

        assert observer.ranges == [
            (BlockType.HEADER, 4, 17),
            (BlockType.GLOBAL_COLOR_TABLE, 17, 23),
        ]
        assert result.end_offset == 24


class TestSingleUse:
    """リーダーの再利用のテスト"""

    def test_second_parse_fails(self) -> None:
        """異常系: 解析済みのリーダーで再度parse()するとRuntimeError"""
        observer = CollectingObserver()
        reader = GifReader(io.BytesIO(ANIMATION), observer)
        reader.parse()

        with pytest.raises(RuntimeError):
            reader.parse()

        assert len(observer.events) == 6
