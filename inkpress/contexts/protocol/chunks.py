"""
Chunk framing for the engine control protocol.

Every frame is an ASCII header followed by raw bytes:

    <3-char tag> SP <1-9 decimal digits> LF <payload> LF

Known tags:
    ver  handshake version            engine -> host
    job  UTF-8 JSON job descriptor    host -> engine
    dat  raw job resource bytes       host -> engine
    pdf  rendered document bytes      engine -> host
    log  embedded structured log      engine -> host
    err  UTF-8 error text             either direction
    end  empty, shutdown request      host -> engine

A decode failure leaves the stream at an unknown offset. Callers must discard
the stream (and the process behind it), never try to resynchronize.
"""

from dataclasses import dataclass
from typing import BinaryIO, Union

from inkpress.contexts.protocol.exceptions import ChunkDecodeError
from inkpress.contexts.protocol.logger import log_chunk

TAG_LENGTH = 3
MAX_LENGTH_DIGITS = 9
MAX_PAYLOAD_LENGTH = 10**MAX_LENGTH_DIGITS - 1

TAG_VERSION = "ver"
TAG_JOB = "job"
TAG_DATA = "dat"
TAG_PDF = "pdf"
TAG_LOG = "log"
TAG_ERROR = "err"
TAG_END = "end"


@dataclass(frozen=True)
class Chunk:
    """
    One framed unit of the control protocol.

    Attributes:
        tag: 3-character ASCII identifier
        data: Raw payload bytes
    """

    tag: str
    data: bytes

    @property
    def text(self) -> str:
        """Payload decoded as UTF-8, invalid bytes replaced with U+FFFD."""
        return self.data.decode("utf-8", errors="replace")


def _tag_bytes(tag: str) -> bytes:
    try:
        encoded = tag.encode("ascii")
    except UnicodeEncodeError:
        raise ValueError(f"Chunk tag must be ASCII: {tag!r}")
    if len(encoded) != TAG_LENGTH:
        raise ValueError(f"Chunk tag must be exactly {TAG_LENGTH} characters: {tag!r}")
    return encoded


def encode_chunk(tag: str, data: Union[bytes, str] = b"") -> bytes:
    """
    Encode one chunk frame.

    Args:
        tag: 3-character ASCII tag
        data: Payload; str payloads are encoded as UTF-8

    Returns:
        The complete frame, header and trailing newline included

    Raises:
        ValueError: If the tag is not 3 ASCII characters or the payload is too large

    Example:
        >>> encode_chunk("job", b"{}")
        b'job 2\\n{}\\n'
    """
    if isinstance(data, str):
        data = data.encode("utf-8")
    if len(data) > MAX_PAYLOAD_LENGTH:
        raise ValueError(f"Chunk payload too large: {len(data)} bytes (max {MAX_PAYLOAD_LENGTH})")

    header = _tag_bytes(tag) + b" " + str(len(data)).encode("ascii") + b"\n"
    return header + bytes(data) + b"\n"


def write_chunk(stream: BinaryIO, tag: str, data: Union[bytes, str] = b"") -> None:
    """Write one chunk frame to a binary stream. Does not flush."""
    if isinstance(data, str):
        data = data.encode("utf-8")
    stream.write(encode_chunk(tag, data))
    log_chunk("send", tag, len(data))


def _read_exactly(stream: BinaryIO, length: int) -> bytes:
    """Read exactly length bytes, looping over short reads. Returns fewer only at EOF."""
    parts = []
    remaining = length
    while remaining > 0:
        block = stream.read(remaining)
        if not block:
            break
        if len(block) > remaining:
            raise ChunkDecodeError("unexpected read overrun")
        parts.append(block)
        remaining -= len(block)
    return b"".join(parts)


def read_chunk(stream: BinaryIO) -> Chunk:
    """
    Decode one chunk frame from a binary stream.

    Args:
        stream: Binary stream positioned at the start of a frame

    Returns:
        The decoded Chunk

    Raises:
        ChunkDecodeError: On any structural violation (short tag, missing space,
            bad or missing length digits, short payload, missing trailing newline)
    """
    tag_bytes = _read_exactly(stream, TAG_LENGTH)
    if len(tag_bytes) != TAG_LENGTH:
        raise ChunkDecodeError("failed to read chunk tag")
    tag = tag_bytes.decode("ascii", errors="replace")

    if stream.read(1) != b" ":
        raise ChunkDecodeError("expected space after chunk tag", tag=tag)

    length = 0
    num_digits = 0
    while True:
        byte = stream.read(1)
        if byte == b"\n":
            break
        if not byte or not (b"0" <= byte <= b"9"):
            raise ChunkDecodeError("unexpected character in chunk length", tag=tag)
        num_digits += 1
        if num_digits > MAX_LENGTH_DIGITS:
            raise ChunkDecodeError("invalid chunk length", tag=tag)
        length = length * 10 + (byte[0] - ord("0"))

    if num_digits < 1:
        raise ChunkDecodeError("invalid chunk length", tag=tag)

    data = _read_exactly(stream, length)
    if len(data) != length:
        raise ChunkDecodeError(
            f"failed to read chunk data (expected {length} bytes, got {len(data)})", tag=tag
        )

    if stream.read(1) != b"\n":
        raise ChunkDecodeError("expected newline after chunk data", tag=tag)

    log_chunk("recv", tag, length)
    return Chunk(tag=tag, data=data)
