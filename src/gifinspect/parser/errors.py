"""GIFストリーム解析の例外定義

解析を中断する致命的なエラーのみを例外として表現する。
署名の不正や不自然な画像サイズなど、構造的に読めるデータはエラーにしない。
"""

from __future__ import annotations


class GifParseError(Exception):
    """GIF解析エラーの基底クラス

    Attributes:
        offset: エラーが発生したストリーム上のバイトオフセット
    """

    def __init__(self, message: str, offset: int) -> None:
        """エラーメッセージとオフセットを指定して初期化する

        Args:
            message: エラーメッセージ
            offset: エラー発生位置のバイトオフセット
        """
        self.offset = offset
        super().__init__(message)


class TruncatedStreamError(GifParseError):
    """要求されたバイト数を読み取れなかった場合に発生する例外

    GIFは完全に実体化された入力として扱うため、短い読み取りは再試行せず常に致命的とする。

    Attributes:
        requested: 要求したバイト数
        available: 実際に読み取れたバイト数
    """

    def __init__(self, offset: int, requested: int, available: int) -> None:
        """読み取り位置と不足量を指定して初期化する

        Args:
            offset: 読み取りを開始したバイトオフセット
            requested: 要求したバイト数
            available: 実際に読み取れたバイト数
        """
        self.requested = requested
        self.available = available
        super().__init__(
            f"ストリームが途中で終了しました (オフセット 0x{offset:X}: "
            f"{requested}バイト要求, {available}バイトのみ)",
            offset,
        )


class UnrecognizedExtensionError(GifParseError):
    """未知の拡張ラベルを検出した場合に発生する例外

    未知の拡張を推測でスキップするとそれ以降のオフセットがすべて狂うため、解析を停止する。

    Attributes:
        label: 検出された拡張ラベル
    """

    def __init__(self, label: int, offset: int) -> None:
        """拡張ラベルと拡張ブロックの開始位置を指定して初期化する

        Args:
            label: 未知の拡張ラベル
            offset: 拡張導入子(0x21)のバイトオフセット
        """
        self.label = label
        super().__init__(f"未知の拡張ラベルです: 0x{label:02X} (オフセット 0x{offset:X})", offset)


class UnexpectedTagError(GifParseError):
    """ブロック境界で想定外のタグを検出した場合に発生する例外（strictモードのみ）

    Attributes:
        tag: 検出されたタグバイト
    """

    def __init__(self, tag: int, offset: int) -> None:
        """タグと位置を指定して初期化する

        Args:
            tag: 想定外のタグバイト
            offset: タグのバイトオフセット
        """
        self.tag = tag
        super().__init__(f"想定外のブロックタグです: 0x{tag:02X} (オフセット 0x{offset:X})", offset)
