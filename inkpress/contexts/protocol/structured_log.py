"""
Structured-log line protocol.

The engine reports diagnostics as newline-delimited UTF-8 lines:

    msg|<type>|<location>|<text>    diagnostic message (text may contain '|')
    dat|<name>|<value>              data message (value may contain '|')
    fin|<status>                    terminal marker, "success" or anything else

One-shot conversions read these lines from the engine's stderr; control
sessions receive the same lines embedded in a ``log`` chunk.

Malformed lines and unknown tags are skipped. Callbacks fire synchronously in
stream order, before the terminal marker is known, so consumers must not infer
the job outcome from them.
"""

import io
from typing import BinaryIO, Callable, Iterable, Optional, TextIO, Union

from inkpress.contexts.protocol.logger import log_skipped_line
from inkpress.contexts.protocol.messages import (
    ConversionResult,
    DataMessage,
    LogMessage,
    MessageType,
)

MessageCallback = Callable[[LogMessage], None]
DataCallback = Callable[[DataMessage], None]

TAG_MESSAGE = "msg"
TAG_DATA = "dat"
TAG_FINISHED = "fin"


class StructuredLogReader:
    """
    Incremental parser for the structured-log protocol.

    Feed lines one at a time (as they arrive from a pipe) or hand over a whole
    iterable with read(). The accumulated ConversionResult is available from
    result() at any point; it is only final once the stream has ended.
    """

    def __init__(
        self,
        on_message: Optional[MessageCallback] = None,
        on_data: Optional[DataCallback] = None,
    ):
        self.on_message = on_message
        self.on_data = on_data
        self._result = ConversionResult()

    def feed_line(self, line: Union[str, bytes]) -> None:
        if isinstance(line, bytes):
            line = line.decode("utf-8", errors="replace")
        line = line.rstrip("\r\n")

        tag, sep, body = line.partition("|")
        if not sep:
            if line:
                log_skipped_line(line, "no separator")
            return

        if tag == TAG_MESSAGE:
            self._handle_message(line, body)
        elif tag == TAG_DATA:
            self._handle_data(line, body)
        elif tag == TAG_FINISHED:
            self._result.status = body
        else:
            log_skipped_line(line, f"unknown tag {tag!r}")

    def read(self, lines: Iterable[Union[str, bytes]]) -> ConversionResult:
        for line in lines:
            self.feed_line(line)
        return self.result()

    def result(self) -> ConversionResult:
        return self._result

    def _handle_message(self, line: str, body: str) -> None:
        tokens = body.split("|", 2)
        if len(tokens) != 3:
            log_skipped_line(line, "incomplete message")
            return

        try:
            msg_type = MessageType.parse(tokens[0])
        except ValueError:
            log_skipped_line(line, f"unknown message type {tokens[0]!r}")
            return

        message = LogMessage(type=msg_type, location=tokens[1], text=tokens[2])
        self._result.messages.append(message)
        if self.on_message is not None:
            self.on_message(message)

    def _handle_data(self, line: str, body: str) -> None:
        name, sep, value = body.partition("|")
        if not sep:
            log_skipped_line(line, "incomplete data message")
            return

        data = DataMessage(name=name, value=value)
        self._result.data_messages.append(data)
        if self.on_data is not None:
            self.on_data(data)


def read_structured_log(
    source: Union[bytes, str, BinaryIO, TextIO, Iterable[Union[str, bytes]]],
    on_message: Optional[MessageCallback] = None,
    on_data: Optional[DataCallback] = None,
) -> ConversionResult:
    """
    Parse a complete structured log.

    Args:
        source: Whole log as bytes/str (e.g., a control-mode ``log`` chunk
            payload), an open stream, or any iterable of lines
        on_message: Called for each parsed LogMessage, in order
        on_data: Called for each parsed DataMessage, in order

    Returns:
        ConversionResult; check ``complete`` to tell a missing terminal marker
        from an explicit failure
    """
    if isinstance(source, bytes):
        source = io.BytesIO(source)
    elif isinstance(source, str):
        source = io.StringIO(source)

    reader = StructuredLogReader(on_message=on_message, on_data=on_data)
    return reader.read(source)
