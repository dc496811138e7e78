"""Parser module for gifinspect.

GIF87a/89aストリームをブロック単位に分解し、
各ブロックのバイト範囲とデコード済みフィールドをオブザーバーへ通知する。
画像データのLZW展開は行わない。
"""

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
from gifinspect.parser.errors import (
    GifParseError,
    TruncatedStreamError,
    UnexpectedTagError,
    UnrecognizedExtensionError,
)
from gifinspect.parser.observer import BlockObserver, CollectingObserver, LoggingObserver
from gifinspect.parser.reader import (
    DispatchState,
    GifReader,
    ParseOutcome,
    ParseResult,
    parse_gif,
)
from gifinspect.parser.stream import StreamCursor

__all__ = [
    "ApplicationExtensionBlock",
    "BlockEvent",
    "BlockObserver",
    "BlockType",
    "CollectingObserver",
    "ColorTable",
    "CommentExtensionBlock",
    "DispatchState",
    "GifParseError",
    "GifReader",
    "GraphicsControlExtensionBlock",
    "HeaderBlock",
    "LoggingObserver",
    "ParseOutcome",
    "ParseResult",
    "PlainTextExtensionBlock",
    "StreamCursor",
    "TableBasedImageBlock",
    "TruncatedStreamError",
    "UnexpectedTagError",
    "UnrecognizedExtensionError",
    "parse_gif",
]
