"""
Exception taxonomy for engine communication.

Three families, handled differently by callers:

- UsageError: wrong lifecycle call or missing configuration. Raised before any
  subprocess is touched; never retried.
- ProtocolError: malformed framing, unexpected chunk tag, short read, broken
  pipe. Always fatal for the session that raised it.
- EngineError: the engine itself reported a failure (an ``err`` chunk).
  Job-scoped for control sessions; a one-shot caller may retry with a fresh
  process.

A non-"success" terminal marker in the structured log is not an exception, it
is reported through ConversionResult.success.
"""

from typing import Optional


class InkpressError(Exception):
    """Root of every exception raised by inkpress."""


class UsageError(InkpressError):
    """Invalid call for the current state or configuration."""


class SessionStateError(UsageError):
    """
    Exception raised when a control session operation is called in the wrong state.

    Attributes:
        operation: Name of the rejected operation (e.g., 'submit_job')
        state: Lifecycle state the session was in
    """

    def __init__(self, message: str, operation: Optional[str] = None, state=None):
        self.message = message
        self.operation = operation
        self.state = state

        parts = [message]
        if operation and state is not None:
            parts.append(f"(operation: {operation}, state: {state})")

        super().__init__(" ".join(parts))


class SessionBusyError(SessionStateError):
    """Raised when a second job is submitted while one is still in flight."""


class ConfigurationError(UsageError, ValueError):
    """
    Exception raised when configuration is missing or invalid for a requested operation.

    Attributes:
        message: Error description
        option: Dotted name of the offending option (e.g., 'input.input_type')
    """

    def __init__(self, message: str, option: Optional[str] = None):
        self.message = message
        self.option = option

        if option:
            message = f"{message} [{option}]"

        super().__init__(message)


class ProtocolError(InkpressError):
    """Session-fatal failure of the chunk stream. Discard the session."""


class ChunkDecodeError(ProtocolError):
    """
    Exception raised when a chunk frame is structurally invalid.

    Attributes:
        message: Error description
        tag: Tag of the frame being decoded, if it was read
    """

    def __init__(self, message: str, tag: Optional[str] = None):
        self.message = message
        self.tag = tag

        if tag:
            message = f"{message} (chunk tag: {tag!r})"

        super().__init__(message)


class UnexpectedChunkError(ProtocolError):
    """
    Exception raised when a well-formed chunk arrives with a tag not valid at this point.

    Attributes:
        tag: The unexpected tag
        expected: Tags that would have been accepted
    """

    def __init__(self, tag: str, expected: tuple = ()):
        self.tag = tag
        self.expected = tuple(expected)

        message = f"unknown chunk: {tag!r}"
        if self.expected:
            message += f" (expected one of: {', '.join(self.expected)})"

        super().__init__(message)


class TransportError(ProtocolError):
    """Pipe or process failure while talking to the engine."""


class EngineIOError(TransportError):
    """
    Exception raised when reading from or writing to the engine process fails.

    Attributes:
        message: Error description
        original_error: The underlying OSError, if any
    """

    def __init__(self, message: str, original_error: Optional[BaseException] = None):
        self.message = message
        self.original_error = original_error

        parts = [message]
        if original_error:
            parts.append(f"Original error: {original_error}")

        super().__init__("\n".join(parts))


class EngineError(InkpressError):
    """
    Failure reported by the engine in an ``err`` chunk.

    Attributes:
        message: Error text sent by the engine
    """

    def __init__(self, message: str):
        self.message = message
        super().__init__(f"error: {message}")


class EngineStartupError(EngineError):
    """The engine answered the control handshake with an error."""


class EngineJobError(EngineError):
    """The engine rejected one job. The control session remains usable."""
