"""バイトストリームカーソル

GIFストリームの現在位置を追跡し、指定バイト数を過不足なく読み取る機能を提供する。
オフセットはカーソル自身が数えるため、標準入力のパイプのようなシーク不可能な入力でも使用できる。
"""

from __future__ import annotations

from typing import BinaryIO, Protocol

from gifinspect.parser.errors import TruncatedStreamError


class ByteSource(Protocol):
    """カーソルが読み取るバイト列ソースのインターフェース"""

    def read(self, size: int = -1, /) -> bytes:
        """最大sizeバイトを読み取る"""
        ...


class StreamCursor:
    """GIFストリーム上の読み取りカーソル

    短い読み取りは常にTruncatedStreamErrorとして扱う。

    使用例:
        >>> cursor = StreamCursor(io.BytesIO(b"GIF89a..."))
        >>> cursor.read_exact(6)
        b'GIF89a'
        >>> cursor.tell()
        6
    """

    def __init__(self, source: ByteSource | BinaryIO, start_offset: int | None = None) -> None:
        """カーソルを初期化する

        Args:
            source: 読み取り元のバイナリストリーム
            start_offset: 開始オフセット（Noneの場合はソースのtell()、取得できなければ0）
        """
        self._source = source
        self._lookahead = b""
        if start_offset is None:
            start_offset = self._source_tell()
        self._offset = start_offset

    def _source_tell(self) -> int:
        """ソースの現在位置を取得する（シーク不可能なら0）"""
        tell = getattr(self._source, "tell", None)
        if tell is None:
            return 0
        try:
            return int(tell())
        except (OSError, ValueError):
            return 0

    def tell(self) -> int:
        """現在のバイトオフセットを返す"""
        return self._offset

    def seek(self, offset: int) -> None:
        """ソースを絶対オフセットへシークする

        Args:
            offset: 移動先のバイトオフセット

        Raises:
            OSError: ソースがシークに対応していない場合
        """
        seek = getattr(self._source, "seek", None)
        if seek is None:
            raise OSError("このストリームはシークに対応していません")
        seek(offset)
        self._lookahead = b""
        self._offset = offset

    def _read_raw(self, size: int) -> bytes:
        """ソースから最大sizeバイトを読み取る（EOFまで繰り返す）"""
        chunks: list[bytes] = []
        if self._lookahead:
            chunks.append(self._lookahead[:size])
            self._lookahead = self._lookahead[size:]
        remaining = size - sum(len(chunk) for chunk in chunks)
        while remaining > 0:
            chunk = self._source.read(remaining)
            if not chunk:
                break
            chunks.append(chunk)
            remaining -= len(chunk)
        return b"".join(chunks)

    def read_exact(self, size: int) -> bytes:
        """ちょうどsizeバイトを読み取る

        Args:
            size: 読み取るバイト数

        Returns:
            長さsizeのバイト列

        Raises:
            TruncatedStreamError: sizeバイトに満たないままストリームが終了した場合
        """
        if size == 0:
            return b""
        data = self._read_raw(size)
        if len(data) < size:
            raise TruncatedStreamError(self._offset, size, len(data))
        self._offset += size
        return data

    def read_u8(self) -> int:
        """符号なし8ビット整数を読み取る"""
        return self.read_exact(1)[0]

    def read_u16(self) -> int:
        """リトルエンディアンの符号なし16ビット整数を読み取る"""
        return int.from_bytes(self.read_exact(2), "little")

    def at_eof(self) -> bool:
        """ストリームの終端に達しているか判定する

        1バイトだけ先読みし、カーソル位置は進めない。
        """
        if self._lookahead:
            return False
        self._lookahead = self._source.read(1)
        return not self._lookahead
