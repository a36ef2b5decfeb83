"""
Engine subprocess handle.

Sessions talk to the engine only through the narrow ProcessHandle interface
(three binary pipes plus terminate/kill/wait/poll), so tests can substitute a
scripted fake for the real binary. spawn_process() is the production factory.
"""

import subprocess
import threading
from typing import BinaryIO, Callable, List, Optional, Protocol

from inkpress.contexts.protocol.exceptions import EngineIOError
from inkpress.contexts.rendering.logger import _log_debug

BUFFER_SIZE = 65536


class ProcessHandle(Protocol):
    """What a session needs from a running engine process."""

    stdin: BinaryIO
    stdout: BinaryIO
    stderr: BinaryIO

    def poll(self) -> Optional[int]: ...

    def wait(self, timeout: Optional[float] = None) -> int: ...

    def terminate(self) -> None: ...

    def kill(self) -> None: ...


SpawnFunction = Callable[[List[str]], ProcessHandle]


def spawn_process(argv: List[str]) -> ProcessHandle:
    """
    Launch the engine with binary pipes on stdin, stdout and stderr.

    Args:
        argv: Full command line, engine executable first

    Returns:
        The running subprocess.Popen (satisfies ProcessHandle)

    Raises:
        EngineIOError: If the executable cannot be launched
    """
    _log_debug(f"Spawning: {' '.join(argv)}")
    try:
        return subprocess.Popen(
            argv,
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            bufsize=BUFFER_SIZE,
        )
    except OSError as e:
        raise EngineIOError(f"failed to launch engine: {argv[0]}", original_error=e)


def copy_stream(source: BinaryIO, destination: Optional[BinaryIO]) -> int:
    """
    Copy a binary stream to EOF in BUFFER_SIZE blocks.

    Args:
        source: Stream to read
        destination: Stream to write, or None to discard

    Returns:
        Number of bytes copied
    """
    total = 0
    while True:
        block = source.read(BUFFER_SIZE)
        if not block:
            return total
        if destination is not None:
            destination.write(block)
        total += len(block)


def reap(process: ProcessHandle, timeout: float = 5.0) -> Optional[int]:
    """
    Make sure a process is gone: terminate it if still running, then wait.

    Falls back to kill() if terminate() is not honoured within the timeout.
    """
    if process.poll() is None:
        process.terminate()
    try:
        return process.wait(timeout=timeout)
    except subprocess.TimeoutExpired:
        _log_debug("Engine ignored terminate, killing")
        process.kill()
        return process.wait()


class PipeWorker(threading.Thread):
    """
    Daemon thread servicing one pipe direction.

    Exceptions raised by the target are kept and re-raised from join_and_check()
    on the calling thread, so a failed direction never goes unnoticed.
    """

    def __init__(self, name: str, target: Callable[[], None]):
        super().__init__(name=name, daemon=True)
        self._target_fn = target
        self.error: Optional[BaseException] = None

    def run(self) -> None:
        try:
            self._target_fn()
        except BaseException as e:  # re-raised on the joining thread
            self.error = e

    def join_and_check(self) -> None:
        self.join()
        if self.error is not None:
            if isinstance(self.error, EngineIOError):
                raise self.error
            raise EngineIOError(f"{self.name} failed", original_error=self.error)
