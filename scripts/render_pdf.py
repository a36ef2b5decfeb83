#!/usr/bin/env python3
"""
Document Rendering CLI

Renders HTML/XML documents to PDF (or raster images) with the external engine.

Commands:
    convert   - Convert documents with one engine process per run
    rasterize - Render document pages to PNG/JPEG
    batch     - Convert many documents over one persistent control session
    version   - Print the engine version reported by the control handshake

Examples:\n

    render_pdf.py convert report.html -o report.pdf                 # One-shot conversion

    render_pdf.py convert report.html -c engine.yaml -p profile_archival

    render_pdf.py rasterize report.html -o "page_%02d.png"

    render_pdf.py batch docs/*.html --out-dir outs/results          # One engine, many jobs
"""

import os
import time
from pathlib import Path
from typing import List, Optional

import typer
from dotenv import load_dotenv
from typing_extensions import Annotated

from inkpress.contexts.configuration import EngineConfig, load_engine_config
from inkpress.contexts.protocol import (
    ConversionResult,
    EngineJobError,
    InkpressError,
    LogMessage,
    MessageType,
)
from inkpress.contexts.rendering import ControlSession, OneShotConverter
from inkpress.contexts.rendering.logger import setup_rendering_logger
from inkpress.utils.timestamp import now

load_dotenv()
LOGS_PATH = Path(os.getenv("LOGS_PATH", "outs/logs"))

MESSAGE_COLORS = {
    MessageType.ERR: typer.colors.RED,
    MessageType.WRN: typer.colors.YELLOW,
}


app = typer.Typer(
    help="Render HTML/XML documents to PDF with an external rendering engine",
    add_completion=False,
    invoke_without_command=True,
)


@app.callback()
def main(ctx: typer.Context):
    """Show help by default when no command is provided."""
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Engine configuration YAML", exists=True, dir_okay=False),
]
PresetOption = Annotated[
    Optional[List[str]],
    typer.Option("--preset", "-p", help="Named preset to apply (repeatable, later wins)"),
]
EngineOption = Annotated[
    Optional[str],
    typer.Option("--engine", "-e", help="Engine executable (overrides config and INKPRESS_ENGINE_PATH)"),
]
VerboseOption = Annotated[
    bool,
    typer.Option("--verbose", "-v", help="Show debug output, chunk traffic included"),
]


def _load_config(config: Optional[Path], presets: Optional[List[str]], engine: Optional[str]) -> EngineConfig:
    try:
        engine_config = load_engine_config(config, presets=presets or [])
    except InkpressError as e:
        typer.secho(f"Error: {e}\n", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    if engine:
        engine_config = engine_config.with_changes(engine_path=engine)
    return engine_config


def _setup_logging(engine_config: EngineConfig, verbose: bool) -> Path:
    log_dir = LOGS_PATH / f"render_{now()}"
    setup_rendering_logger(log_dir, engine_config.engine_path, verbose=verbose)
    if verbose:
        typer.echo(f"Log: {log_dir}")
    return log_dir


def _echo_message(message: LogMessage) -> None:
    typer.secho(f"  {message}", fg=MESSAGE_COLORS.get(message.type), err=True)


def _report(label: str, result: ConversionResult, elapsed: float) -> None:
    if result.success:
        typer.secho(f"✓ {label} ({elapsed:.2f}s)", fg=typer.colors.GREEN, bold=True)
    elif not result.complete:
        typer.secho(f"✗ {label}: engine stopped without a result", fg=typer.colors.RED, bold=True)
    else:
        typer.secho(
            f"✗ {label}: failed with {len(result.errors)} errors", fg=typer.colors.RED, bold=True
        )


@app.command("convert")
def convert_command(
    inputs: Annotated[List[Path], typer.Argument(help="Input documents (combined into one PDF)")],
    output: Annotated[
        Optional[Path], typer.Option("--output", "-o", help="Output PDF (default: engine's choice)")
    ] = None,
    config: ConfigOption = None,
    preset: PresetOption = None,
    engine: EngineOption = None,
    verbose: VerboseOption = False,
):
    """
    Convert documents to one PDF, launching the engine once.

    Examples:\n

        $ render_pdf.py convert report.html -o report.pdf

        $ render_pdf.py convert cover.html body.html -o book.pdf -p profile_archival
    """
    engine_config = _load_config(config, preset, engine)
    _setup_logging(engine_config, verbose)

    converter = OneShotConverter(engine_config, on_message=_echo_message)
    start_time = time.time()
    try:
        result = converter.convert(inputs, output)
    except InkpressError as e:
        typer.secho(f"Error: {e}\n", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    _report(", ".join(p.name for p in inputs), result, time.time() - start_time)
    raise typer.Exit(code=0 if result.success else 1)


@app.command("rasterize")
def rasterize_command(
    inputs: Annotated[List[Path], typer.Argument(help="Input documents")],
    output: Annotated[
        str,
        typer.Option("--output", "-o", help="Output image path, may contain a page template like %02d"),
    ],
    config: ConfigOption = None,
    preset: PresetOption = None,
    engine: EngineOption = None,
    verbose: VerboseOption = False,
):
    """
    Render document pages to PNG or JPEG images.

    Examples:\n

        $ render_pdf.py rasterize report.html -o "page_%02d.png"
    """
    engine_config = _load_config(config, preset, engine)
    _setup_logging(engine_config, verbose)

    converter = OneShotConverter(engine_config, on_message=_echo_message)
    start_time = time.time()
    try:
        result = converter.rasterize(inputs, output)
    except InkpressError as e:
        typer.secho(f"Error: {e}\n", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    _report(", ".join(p.name for p in inputs), result, time.time() - start_time)
    raise typer.Exit(code=0 if result.success else 1)


@app.command("batch")
def batch_command(
    inputs: Annotated[List[Path], typer.Argument(help="Input documents, one PDF each")],
    out_dir: Annotated[
        Path, typer.Option("--out-dir", "-d", help="Directory for the rendered PDFs")
    ] = Path("outs/results"),
    config: ConfigOption = None,
    preset: PresetOption = None,
    engine: EngineOption = None,
    verbose: VerboseOption = False,
):
    """
    Convert each document to its own PDF over one persistent engine process.

    A job rejected by the engine is reported and the batch continues. A
    protocol failure ends the batch, since the engine stream can no longer be
    trusted.

    Examples:\n

        $ render_pdf.py batch docs/*.html --out-dir outs/results
    """
    engine_config = _load_config(config, preset, engine)
    _setup_logging(engine_config, verbose)
    out_dir.mkdir(parents=True, exist_ok=True)

    succeeded = 0
    try:
        with ControlSession(engine_config, on_message=_echo_message) as session:
            typer.secho(f"\nEngine: {session.version}", fg=typer.colors.BLUE, bold=True)
            for input_path in inputs:
                pdf_path = out_dir / f"{input_path.stem}.pdf"
                start_time = time.time()
                try:
                    with open(pdf_path, "wb") as pdf_file:
                        result = session.convert(input_path, pdf_file)
                except EngineJobError as e:
                    typer.secho(f"✗ {input_path.name}: {e}", fg=typer.colors.RED, bold=True)
                    continue
                _report(input_path.name, result, time.time() - start_time)
                succeeded += int(result.success)
    except InkpressError as e:
        typer.secho(f"Error: {e}\n", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    typer.echo(f"\n{succeeded}/{len(inputs)} documents converted to {out_dir}")
    raise typer.Exit(code=0 if succeeded == len(inputs) else 1)


@app.command("version")
def version_command(
    config: ConfigOption = None,
    engine: EngineOption = None,
):
    """Start a control session and print the engine's version string."""
    engine_config = _load_config(config, None, engine)
    try:
        with ControlSession(engine_config) as session:
            typer.echo(session.version)
    except InkpressError as e:
        typer.secho(f"Error: {e}\n", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
