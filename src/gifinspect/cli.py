"""CLI entry point for gifinspect."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated, Any, BinaryIO

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from gifinspect import __version__
from gifinspect.config import ConfigError, InspectConfig, get_default_config, load_config
from gifinspect.logger import InspectLogger, LogConfig, VerboseLevel
from gifinspect.parser import (
    ApplicationExtensionBlock,
    BlockType,
    GifParseError,
    GifReader,
    LoggingObserver,
    ParseOutcome,
    ParseResult,
    TableBasedImageBlock,
)
from gifinspect.types import ExitCode

app = typer.Typer(
    help="GIFストリームをブロック単位に分解して表示するCLIツール",
    context_settings={"help_option_names": ["-h", "--help"]},
    add_completion=False,
)
console = Console()

OUTCOME_LABELS: dict[ParseOutcome, str] = {
    ParseOutcome.TRAILER: "trailer",
    ParseOutcome.END_OF_INPUT: "end of input (no trailer)",
    ParseOutcome.UNEXPECTED_TAG: "unexpected tag",
}


@dataclass
class InspectionSummary:
    """ブロック通知を集計しつつログ出力へ転送するオブザーバー"""

    forward: LoggingObserver
    blocks: int = 0
    frames: int = 0
    total_delay: int = 0
    loop_count: int | None = None
    comments: int = 0

    def __call__(self, block_type: BlockType, start: int, end: int, payload: Any) -> None:
        self.forward(block_type, start, end, payload)
        self.blocks += 1
        if isinstance(payload, TableBasedImageBlock):
            self.frames += 1
            if payload.graphic_control is not None:
                self.total_delay += payload.graphic_control.delay_time
        elif isinstance(payload, ApplicationExtensionBlock) and payload.loop_count is not None:
            self.loop_count = payload.loop_count
        elif block_type is BlockType.COMMENT_EXTENSION:
            self.comments += 1


def _resolve_config(
    config_path: Path | None,
    verbose: int,
    quiet: bool,
    strict: bool,
    log_file: Path | None,
) -> InspectConfig:
    """設定ファイルとCLIオプションをマージする（CLIオプションを優先）"""
    config = load_config(config_path) if config_path else get_default_config()
    verbose_level = config.verbose_level
    if verbose:
        verbose_level = verbose
    if quiet:
        verbose_level = VerboseLevel.QUIET
    return InspectConfig(
        strict=strict or config.strict,
        verbose_level=max(VerboseLevel.QUIET, min(VerboseLevel.DEBUG, verbose_level)),
        color_preview=config.color_preview,
        log_file=log_file or config.log_file,
    )


def _print_summary(summary: InspectionSummary, result: ParseResult, use_color: bool) -> None:
    """解析サマリを表示する"""
    table = Table(title="GIF Summary", show_header=False)
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="green")

    header = result.header
    table.add_row("Format", f"{header.signature}{header.version}")
    table.add_row("Canvas", f"{header.canvas_width} x {header.canvas_height}")
    table.add_row(
        "Global colors",
        str(len(result.global_color_table)) if result.global_color_table is not None else "-",
    )
    table.add_row("Blocks", str(summary.blocks))
    table.add_row("Frames", str(summary.frames))
    table.add_row("Total delay", f"{summary.total_delay / 100:.2f}s")
    if summary.loop_count is not None:
        loops = "infinite" if summary.loop_count == 0 else str(summary.loop_count)
        table.add_row("Loop count", loops)
    if summary.comments:
        table.add_row("Comments", str(summary.comments))
    outcome = OUTCOME_LABELS[result.outcome]
    if result.unexpected_tag is not None:
        outcome = f"{outcome} 0x{result.unexpected_tag:02X}"
    table.add_row("End", f"{outcome} at 0x{result.end_offset:X}")

    Console(no_color=not use_color).print(table)


def _configure_debug_logging() -> None:
    """パーサー内部のloggingをrichで表示する"""
    handler = RichHandler(console=Console(stderr=True), show_path=False)
    package_logger = logging.getLogger("gifinspect")
    package_logger.setLevel(logging.DEBUG)
    if not package_logger.handlers:
        package_logger.addHandler(handler)


def _inspect(stream: BinaryIO, config: InspectConfig, use_color: bool = True) -> ExitCode:
    """ストリームを解析して結果を出力する"""
    log_config = LogConfig(
        verbose_level=VerboseLevel(config.verbose_level),
        log_file=config.log_file,
        use_color=use_color,
    )
    with InspectLogger(log_config) as logger:
        if logger.is_enabled_for(VerboseLevel.DEBUG):
            _configure_debug_logging()
        logger.debug(
            f"設定: strict={config.strict}, color_preview={config.color_preview}, "
            f"log_file={config.log_file}"
        )

        summary = InspectionSummary(LoggingObserver(logger, color_preview=config.color_preview))
        try:
            result = GifReader(stream, summary, strict=config.strict).parse()
        except GifParseError as e:
            logger.error(str(e))
            return ExitCode.ERROR

        if result.outcome is ParseOutcome.UNEXPECTED_TAG:
            logger.warning(f"想定外のタグ 0x{result.unexpected_tag:02X} で解析を終了しました")
        elif result.outcome is ParseOutcome.END_OF_INPUT:
            logger.warning("トレーラーがないまま入力が終了しました")

        if logger.is_enabled_for(VerboseLevel.NORMAL):
            _print_summary(summary, result, use_color)
    return ExitCode.SUCCESS


def version_callback(value: bool) -> None:
    """バージョン表示コールバック"""
    if value:
        typer.echo(f"gifinspect {__version__}")
        raise typer.Exit(0)


@app.command()
def main(
    input_path: Annotated[
        Path | None, typer.Argument(help="GIFファイルパス（省略時は標準入力）")
    ] = None,
    verbose: Annotated[
        int, typer.Option("-v", "--verbose", count=True, help="詳細ログ出力（-vvでデバッグ）")
    ] = 0,
    quiet: Annotated[bool, typer.Option("-q", "--quiet", help="エラーのみ出力")] = False,
    strict: Annotated[
        bool, typer.Option("--strict", help="想定外のタグや入力終端をエラーにする")
    ] = False,
    log_file: Annotated[Path | None, typer.Option(help="ログファイル出力先")] = None,
    no_color: Annotated[bool, typer.Option("--no-color", help="カラー出力を無効にする")] = False,
    config_path: Annotated[
        Path | None, typer.Option("--config", help="設定ファイル（YAML）")
    ] = None,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=version_callback,
            is_eager=True,
            help="バージョンを表示する",
        ),
    ] = False,
) -> None:
    """GIFストリームの各ブロックのバイト範囲とフィールドを表示する

    例: gifinspect < joker1.gif / gifinspect --verbose joker1.gif
    """
    try:
        config = _resolve_config(config_path, verbose, quiet, strict, log_file)
    except ConfigError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(ExitCode.INVALID_INPUT) from e

    if input_path is None:
        exit_code = _inspect(typer.get_binary_stream("stdin"), config, not no_color)
    else:
        if not input_path.is_file():
            console.print(f"[red]Error: ファイルが見つかりません: {input_path}[/red]")
            raise typer.Exit(ExitCode.INVALID_INPUT)
        with input_path.open("rb") as f:
            exit_code = _inspect(f, config, not no_color)

    raise typer.Exit(exit_code)
