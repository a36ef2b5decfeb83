"""In-memory stand-ins for the engine subprocess."""

import io
import os
from typing import List

from inkpress.contexts.protocol.chunks import encode_chunk, read_chunk


class RecordingPipe(io.BytesIO):
    """stdin replacement that keeps its contents readable after close()."""

    def __init__(self):
        super().__init__()
        self.was_closed = False

    def close(self):
        self.was_closed = True


class ScriptedProcess:
    """
    Fake ProcessHandle with pre-scripted stdout/stderr.

    It does not react to what is written; tests script the whole exchange up
    front and inspect stdin afterwards.
    """

    def __init__(self, stdout: bytes = b"", stderr: bytes = b""):
        self.stdin = RecordingPipe()
        self.stdout = io.BytesIO(stdout)
        self.stderr = io.BytesIO(stderr)
        self.returncode = None
        self.terminated = False

    def poll(self):
        return self.returncode

    def wait(self, timeout=None):
        if self.returncode is None:
            self.returncode = 0
        return self.returncode

    def terminate(self):
        self.terminated = True
        self.returncode = -15

    def kill(self):
        self.terminate()

    def sent_chunks(self):
        """Decode every chunk the session wrote to stdin."""
        stream = io.BytesIO(self.stdin.getvalue())
        chunks = []
        while stream.tell() < len(stream.getvalue()):
            chunks.append(read_chunk(stream))
        return chunks


class ScriptedSpawner:
    """Spawn function returning prepared processes in order and recording argv."""

    def __init__(self, *processes: ScriptedProcess):
        self.processes = list(processes)
        self.calls: List[List[str]] = []

    def __call__(self, argv):
        self.calls.append(list(argv))
        return self.processes.pop(0)


def chunks(*pairs) -> bytes:
    """Concatenate encoded (tag, payload) chunks into one engine stdout script."""
    return b"".join(encode_chunk(tag, data) for tag, data in pairs)


def log_lines(*lines: str) -> bytes:
    return "".join(f"{line}\n" for line in lines).encode("utf-8")


class StallingProcess(ScriptedProcess):
    """
    Fake process whose stdout is a real OS pipe kept open until terminate().

    Reads past the scripted bytes block the way they would on a hung engine.
    """

    def __init__(self, stdout: bytes = b""):
        super().__init__()
        read_fd, write_fd = os.pipe()
        self.stdout = os.fdopen(read_fd, "rb")
        self._writer = os.fdopen(write_fd, "wb")
        self._writer.write(stdout)
        self._writer.flush()

    def terminate(self):
        super().terminate()
        if not self._writer.closed:
            self._writer.close()
