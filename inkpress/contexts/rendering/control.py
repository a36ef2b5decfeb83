"""
Control session: one persistent engine process serving many jobs.

Lifecycle:

    NOT_STARTED --start()--> STARTED --stop()--> STOPPED
                                |
                                +-- protocol/transport failure --> STOPPED (broken)

Per job the session writes one ``job`` chunk (descriptor JSON) and one ``dat``
chunk per resource, then reads an optional ``pdf`` chunk followed by exactly
one ``log`` or ``err`` chunk.

An ``err`` chunk only fails that job; the session stays usable. Any decode
failure, unexpected tag or pipe error leaves the stream at an unknown offset,
so the session kills its process and refuses further work. Create a new
session to continue.

The protocol has no job identifiers: one job in flight per process. A second
concurrent submit_job() raises SessionBusyError instead of interleaving frames.
"""

import threading
import time
from enum import Enum
from pathlib import Path
from typing import BinaryIO, Iterable, Optional, Union

from inkpress.contexts.configuration.command_line import base_command_line, to_command
from inkpress.contexts.configuration.options import EngineConfig
from inkpress.contexts.protocol.chunks import (
    TAG_DATA,
    TAG_END,
    TAG_ERROR,
    TAG_JOB,
    TAG_LOG,
    TAG_PDF,
    TAG_VERSION,
    read_chunk,
    write_chunk,
)
from inkpress.contexts.protocol.exceptions import (
    EngineIOError,
    EngineJobError,
    EngineStartupError,
    ProtocolError,
    SessionBusyError,
    SessionStateError,
    UnexpectedChunkError,
)
from inkpress.contexts.protocol.messages import ConversionResult
from inkpress.contexts.protocol.structured_log import (
    DataCallback,
    MessageCallback,
    read_structured_log,
)
from inkpress.contexts.rendering.job import Job, JobBuilder
from inkpress.contexts.rendering.logger import (
    _log_debug,
    _log_error,
    _log_warning,
    log_job_result,
    log_job_start,
    log_session_start,
    log_session_stop,
)
from inkpress.contexts.rendering.process import (
    PipeWorker,
    ProcessHandle,
    SpawnFunction,
    reap,
    spawn_process,
)

# Seconds to wait for the stderr drain after the engine exits
STDERR_JOIN_TIMEOUT = 1.0


class SessionState(Enum):
    NOT_STARTED = "not started"
    STARTED = "started"
    STOPPED = "stopped"

    def __str__(self) -> str:
        return self.value


class ControlSession:
    """
    Drives the chunk protocol over a persistent engine process.

    Example:
        with ControlSession(config) as session:
            with open("a.pdf", "wb") as out:
                result = session.convert(["a.html"], out)
            job = session.new_job()
            job.add_style_sheet(b"p { color: red }")
            job.add_input_string("<p>hi</p>")
            with open("b.pdf", "wb") as out:
                result = session.submit_job(job.build(), out)
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
        self._process: Optional[ProcessHandle] = None
        self._stderr_worker: Optional[PipeWorker] = None
        self._job_lock = threading.Lock()
        self.state = SessionState.NOT_STARTED
        self.version: Optional[str] = None
        self.broken = False
        self.jobs_submitted = 0

    def __enter__(self) -> "ControlSession":
        self.start()
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        if self.state is SessionState.STARTED:
            self.stop()

    # Lifecycle

    def start(self) -> str:
        """
        Launch the engine in control mode and perform the version handshake.

        Returns:
            Engine version string from the ``ver`` chunk

        Raises:
            SessionStateError: If start() was already called
            EngineStartupError: If the engine answered with an ``err`` chunk
            ProtocolError: On a malformed or unexpected handshake chunk
        """
        if self.state is not SessionState.NOT_STARTED:
            raise SessionStateError(
                "control process has already been started", operation="start", state=self.state
            )

        argv = base_command_line(self.config) + [to_command("control")]
        # Claim the session before spawning so a failed start cannot be retried
        self.state = SessionState.STOPPED
        try:
            self._process = self._spawn(argv)
        except EngineIOError:
            self.broken = True
            raise
        stderr = self._process.stderr
        self._stderr_worker = PipeWorker("stderr drain", lambda: _drain_stderr(stderr))
        self._stderr_worker.start()

        try:
            chunk = read_chunk(self._process.stdout)
            if chunk.tag == TAG_VERSION:
                self.version = chunk.text
            elif chunk.tag == TAG_ERROR:
                raise EngineStartupError(chunk.text)
            else:
                raise UnexpectedChunkError(chunk.tag, expected=(TAG_VERSION, TAG_ERROR))
        except EngineStartupError:
            self._discard()
            raise
        except ProtocolError as e:
            _log_error(f"Control handshake failed: {e}")
            self._discard()
            raise
        except OSError as e:
            self._discard()
            raise EngineIOError("failed to read control handshake", original_error=e)

        self.state = SessionState.STARTED
        log_session_start(self.config.engine_path, self.version)
        return self.version

    def stop(self) -> None:
        """
        Ask the engine to shut down, terminate the process and close its pipes.

        Raises:
            SessionStateError: If the session is not STARTED
        """
        self._require_started("stop")

        process, self._process = self._process, None
        self.state = SessionState.STOPPED
        try:
            write_chunk(process.stdin, TAG_END, b"")
            process.stdin.flush()
            process.stdin.close()
        except OSError as e:
            _log_warning(f"Engine did not accept shutdown request: {e}")

        self._release(process)
        log_session_stop(self.config.engine_path, self.jobs_submitted)

    def kill(self) -> None:
        """
        Terminate the engine without the shutdown handshake.

        For callers enforcing their own deadline: a session killed mid-job is
        broken and must be replaced.
        """
        if self._process is not None:
            self._discard()
        self.state = SessionState.STOPPED

    @property
    def is_running(self) -> bool:
        return self.state is SessionState.STARTED

    # Jobs

    def new_job(self) -> JobBuilder:
        """Return a fresh builder for one job, bound to this session's configuration."""
        return JobBuilder(self.config)

    def submit_job(self, job: Job, output: BinaryIO) -> ConversionResult:
        """
        Run one job on the engine.

        Args:
            job: Descriptor plus resources, from JobBuilder.build()
            output: Binary sink for the rendered PDF, if the engine produces one

        Returns:
            ConversionResult parsed from the ``log`` chunk

        Raises:
            SessionStateError: If the session is not STARTED
            SessionBusyError: If another job is in flight on this session
            EngineJobError: If the engine rejected the job (session stays usable)
            ProtocolError: On any framing/transport failure (session is now broken)
        """
        self._require_started("submit_job")
        if not self._job_lock.acquire(blocking=False):
            raise SessionBusyError(
                "another job is in flight on this session", operation="submit_job", state=self.state
            )
        try:
            return self._submit_locked(job, output)
        finally:
            self._job_lock.release()

    def convert(self, input_paths: Union[str, Path, Iterable], output: BinaryIO) -> ConversionResult:
        """Convert files (paths or URLs the engine can reach) to one PDF."""
        builder = self.new_job()
        if isinstance(input_paths, (str, Path)):
            builder.add_input_path(input_paths)
        else:
            builder.add_input_paths(input_paths)
        return self.submit_job(builder.build(), output)

    def convert_stream(self, source: BinaryIO, output: BinaryIO) -> ConversionResult:
        """Convert a document read fully from a binary stream."""
        builder = self.new_job()
        builder.add_input_bytes(source.read())
        return self.submit_job(builder.build(), output)

    def convert_string(self, text: str, output: BinaryIO) -> ConversionResult:
        builder = self.new_job()
        builder.add_input_string(text)
        return self.submit_job(builder.build(), output)

    def _submit_locked(self, job: Job, output: BinaryIO) -> ConversionResult:
        descriptor = job.descriptor
        label = f"job {self.jobs_submitted + 1}"
        log_job_start(label, list(descriptor.inputs), descriptor.resource_count)
        start_time = time.time()

        try:
            pdf_data, chunk = self._exchange(job)
        except ProtocolError as e:
            _log_error(f"Control session broken during {label}: {e}")
            self._discard()
            raise

        self.jobs_submitted += 1

        if pdf_data is not None:
            output.write(pdf_data)

        if chunk.tag == TAG_ERROR:
            _log_error(f"{label}: engine rejected job: {chunk.text}")
            raise EngineJobError(chunk.text)

        result = read_structured_log(chunk.data, on_message=self.on_message, on_data=self.on_data)
        log_job_result(label, result, time.time() - start_time)
        return result

    def _exchange(self, job: Job):
        """Write one job and read its response. Returns (pdf bytes or None, final chunk)."""
        process = self._process
        if process is None:
            raise EngineIOError("control process was killed before the job was sent")
        stdin = process.stdin
        stdout = process.stdout
        try:
            write_chunk(stdin, TAG_JOB, job.descriptor.to_json())
            for resource in job.resources:
                write_chunk(stdin, TAG_DATA, resource)
            stdin.flush()

            pdf_data = None
            chunk = read_chunk(stdout)
            if chunk.tag == TAG_PDF:
                pdf_data = chunk.data
                chunk = read_chunk(stdout)
        except OSError as e:
            raise EngineIOError("engine pipe failed during job", original_error=e)
        except ValueError as e:
            # I/O on a pipe closed by kill() from another thread
            if stdin.closed or stdout.closed:
                raise EngineIOError("engine pipe closed during job", original_error=e)
            raise

        if chunk.tag not in (TAG_LOG, TAG_ERROR):
            raise UnexpectedChunkError(chunk.tag, expected=(TAG_PDF, TAG_LOG, TAG_ERROR))
        return pdf_data, chunk

    # Internals

    def _require_started(self, operation: str) -> None:
        if self.state is SessionState.STARTED:
            return
        if self.broken:
            message = "control session is broken; create a new session"
        elif self.state is SessionState.NOT_STARTED:
            message = "control process has not been started"
        else:
            message = "control process has been stopped"
        raise SessionStateError(message, operation=operation, state=self.state)

    def _release(self, process: ProcessHandle) -> None:
        """
        Terminate the process, then close its pipes.

        Reaping comes first: a job thread blocked in read_chunk() holds the
        stdout reader lock until the engine exits, so closing before that
        would wait forever.
        """
        reap(process)

        pipes = [process.stdin, process.stdout]
        worker, self._stderr_worker = self._stderr_worker, None
        if worker is not None:
            worker.join(timeout=STDERR_JOIN_TIMEOUT)
            if worker.is_alive():
                _log_debug("stderr drain still running, leaving engine stderr open")
            else:
                pipes.append(process.stderr)

        for pipe in pipes:
            try:
                pipe.close()
            except OSError as e:
                _log_debug(f"Ignoring error while closing engine pipe: {e}")

    def _discard(self) -> None:
        """Kill the process after a fatal failure. The session cannot be reused."""
        self.broken = True
        self.state = SessionState.STOPPED
        # Claim the process so a concurrent kill() and the failing job release it once
        process, self._process = self._process, None
        if process is not None:
            self._release(process)


def _drain_stderr(stream: BinaryIO) -> None:
    """Keep the engine's stderr pipe empty; the structured log travels in chunks."""
    for line in stream:
        _log_debug(f"engine stderr: {line.decode('utf-8', errors='replace').rstrip()}")
