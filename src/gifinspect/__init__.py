"""gifinspect - GIF87a/89a stream block inspector CLI tool."""

from gifinspect.logger import (
    InspectLogger,
    LogConfig,
    VerboseLevel,
)
from gifinspect.parser import (
    BlockObserver,
    BlockType,
    CollectingObserver,
    GifParseError,
    GifReader,
    LoggingObserver,
    ParseOutcome,
    ParseResult,
    parse_gif,
)

__version__ = "0.1.0"

__all__ = [
    "BlockObserver",
    "BlockType",
    "CollectingObserver",
    "GifParseError",
    "GifReader",
    "InspectLogger",
    "LogConfig",
    "LoggingObserver",
    "ParseOutcome",
    "ParseResult",
    "VerboseLevel",
    "parse_gif",
]
