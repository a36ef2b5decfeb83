"""
One-shot conversion: one engine process per job.

The engine is launched with ``--structured-log=normal`` (output written to a
file by the engine) or ``--structured-log=buffered`` (output on stdout), and
reports its messages and final status on stderr.

When a document is piped in on stdin and the rendered output comes back on
stdout, both directions are live at once. stdin is fed from a writer thread
and stdout drained by a reader thread while the calling thread parses stderr,
so no pipe buffer can fill up and stall the engine.
"""

import io
import time
from pathlib import Path
from typing import BinaryIO, Iterable, List, Optional, Union

from inkpress.contexts.configuration.command_line import job_command_line, to_command
from inkpress.contexts.configuration.enums import RasterFormat
from inkpress.contexts.configuration.options import EngineConfig
from inkpress.contexts.protocol.exceptions import ConfigurationError, EngineIOError
from inkpress.contexts.protocol.messages import ConversionResult
from inkpress.contexts.protocol.structured_log import (
    DataCallback,
    MessageCallback,
    StructuredLogReader,
)
from inkpress.contexts.rendering.logger import _log_debug, log_job_result, log_job_start
from inkpress.contexts.rendering.process import (
    PipeWorker,
    SpawnFunction,
    copy_stream,
    reap,
    spawn_process,
)

PathInput = Union[str, Path]
StreamInput = Union[bytes, str, BinaryIO]

STDIO = "-"


class OneShotConverter:
    """
    Converts documents by launching the engine once per call.

    Example:
        converter = OneShotConverter(EngineConfig(input=InputOptions(input_type=InputType.HTML)))
        result = converter.convert(["report.html"], "report.pdf")
        if not result.success:
            for message in result.errors:
                print(message)
    """

    def __init__(
        self,
        config: EngineConfig,
        on_message: Optional[MessageCallback] = None,
        on_data: Optional[DataCallback] = None,
        spawn: SpawnFunction = spawn_process,
    ):
        self.config = config
        self.on_message = on_message
        self.on_data = on_data
        self._spawn = spawn

    # PDF output

    def convert(
        self, input_paths: Union[PathInput, Iterable[PathInput]], output_path: Optional[PathInput] = None
    ) -> ConversionResult:
        """Convert files to a PDF file (engine picks the name when output_path is None)."""
        argv = job_command_line(self.config, "normal") + _paths(input_paths)
        if output_path is not None:
            argv.append(to_command("output", output_path))
        return self._run(argv)

    def convert_to_stream(
        self, input_paths: Union[PathInput, Iterable[PathInput]], output: BinaryIO
    ) -> ConversionResult:
        """Convert files, writing the PDF to a binary stream."""
        argv = job_command_line(self.config, "buffered") + _paths(input_paths)
        argv.append(to_command("output", STDIO))
        return self._run(argv, output=output)

    def convert_stream(self, source: StreamInput, output: BinaryIO) -> ConversionResult:
        """Convert a document read from a stream (or bytes/str), writing the PDF to output."""
        self._require_input_type()
        argv = job_command_line(self.config, "buffered")
        argv.append(STDIO)
        return self._run(argv, source=source, output=output)

    def convert_string(self, text: str, output: BinaryIO) -> ConversionResult:
        return self.convert_stream(text, output)

    def convert_string_to_file(self, text: str, output_path: PathInput) -> ConversionResult:
        self._require_input_type()
        argv = job_command_line(self.config, "buffered")
        argv.append(to_command("output", output_path))
        argv.append(STDIO)
        return self._run(argv, source=text)

    # Raster output

    def rasterize(
        self, input_paths: Union[PathInput, Iterable[PathInput]], output_path: PathInput
    ) -> ConversionResult:
        """
        Rasterize files to image files.

        output_path may contain a page-number template understood by the engine
        (e.g., 'page_%02d.png').
        """
        argv = job_command_line(self.config, "normal") + _paths(input_paths)
        argv.append(to_command("raster-output", output_path))
        return self._run(argv)

    def rasterize_to_stream(
        self, input_paths: Union[PathInput, Iterable[PathInput]], output: BinaryIO
    ) -> ConversionResult:
        """Rasterize one page of some files to a binary stream."""
        self._require_single_raster_page()
        argv = job_command_line(self.config, "buffered") + _paths(input_paths)
        argv.append(to_command("raster-output", STDIO))
        return self._run(argv, output=output)

    def rasterize_stream(self, source: StreamInput, output: BinaryIO) -> ConversionResult:
        self._require_input_type()
        self._require_single_raster_page()
        argv = job_command_line(self.config, "buffered")
        argv.append(to_command("raster-output", STDIO))
        argv.append(STDIO)
        return self._run(argv, source=source, output=output)

    def rasterize_string(self, text: str, output: BinaryIO) -> ConversionResult:
        return self.rasterize_stream(text, output)

    def rasterize_string_to_file(self, text: str, output_path: PathInput) -> ConversionResult:
        self._require_input_type()
        argv = job_command_line(self.config, "buffered")
        argv.append(to_command("raster-output", output_path))
        argv.append(STDIO)
        return self._run(argv, source=text)

    # Validation

    def _require_input_type(self) -> None:
        if not self.config.input.has_explicit_type:
            raise ConfigurationError(
                "input type has to be set to XML or HTML", option="input.input_type"
            )

    def _require_single_raster_page(self) -> None:
        raster = self.config.raster
        if raster.page is None:
            raise ConfigurationError(
                "raster page has to be set to a value > 0", option="raster.page"
            )
        if raster.format is None or raster.format is RasterFormat.AUTO:
            raise ConfigurationError(
                "raster format has to be set to JPEG or PNG", option="raster.format"
            )

    # Process plumbing

    def _run(
        self,
        argv: List[str],
        source: Optional[StreamInput] = None,
        output: Optional[BinaryIO] = None,
    ) -> ConversionResult:
        label = Path(self.config.engine_path).name
        log_job_start(label, [a for a in argv[1:] if not a.startswith("--")], 0)
        start_time = time.time()

        process = self._spawn(argv)
        try:
            result = self._communicate(process, source, output)
        finally:
            returncode = reap(process)
            _log_debug(f"Engine exited with code {returncode}")

        log_job_result(label, result, time.time() - start_time)
        return result

    def _communicate(
        self, process, source: Optional[StreamInput], output: Optional[BinaryIO]
    ) -> ConversionResult:
        workers = []

        if source is None:
            process.stdin.close()
        else:
            stream = _as_stream(source)

            def feed_stdin():
                try:
                    copy_stream(stream, process.stdin)
                finally:
                    process.stdin.close()

            workers.append(PipeWorker("stdin writer", feed_stdin))

        workers.append(
            PipeWorker("stdout reader", lambda: copy_stream(process.stdout, output))
        )

        for worker in workers:
            worker.start()

        # On failure the caller reaps the process, which unblocks both workers
        reader = StructuredLogReader(on_message=self.on_message, on_data=self.on_data)
        try:
            for line in process.stderr:
                reader.feed_line(line)
        except OSError as e:
            raise EngineIOError("failed to read engine log", original_error=e)

        for worker in workers:
            worker.join_and_check()

        return reader.result()


def _paths(input_paths: Union[PathInput, Iterable[PathInput]]) -> List[str]:
    if isinstance(input_paths, (str, Path)):
        return [str(input_paths)]
    return [str(p) for p in input_paths]


def _as_stream(source: StreamInput) -> BinaryIO:
    if isinstance(source, str):
        return io.BytesIO(source.encode("utf-8"))
    if isinstance(source, (bytes, bytearray)):
        return io.BytesIO(bytes(source))
    return source
