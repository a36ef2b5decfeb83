"""Unit tests for chunk framing."""

import io

import pytest

from inkpress.contexts.protocol.chunks import (
    MAX_PAYLOAD_LENGTH,
    Chunk,
    encode_chunk,
    read_chunk,
    write_chunk,
)
from inkpress.contexts.protocol.exceptions import ChunkDecodeError, ProtocolError


class TrickleStream(io.BytesIO):
    """Returns at most one byte per read, like a slow pipe."""

    def read(self, size=-1):
        return super().read(1 if size is None or size < 0 else min(size, 1))


@pytest.mark.unit
def test_encode_chunk_layout():
    """Test header, payload and trailing newline."""
    assert encode_chunk("job", b"{}") == b"job 2\n{}\n"
    assert encode_chunk("end", b"") == b"end 0\n\n"


@pytest.mark.unit
def test_encode_chunk_str_payload_is_utf8():
    """Test that str payloads are length-counted in UTF-8 bytes."""
    assert encode_chunk("err", "é") == b"err 2\n\xc3\xa9\n"


@pytest.mark.unit
@pytest.mark.parametrize("tag", ["", "jo", "jobs", "jö"])
def test_encode_chunk_rejects_bad_tag(tag):
    """Test that tags must be exactly 3 ASCII characters."""
    with pytest.raises(ValueError):
        encode_chunk(tag, b"")


@pytest.mark.unit
def test_max_payload_length_is_nine_digits():
    assert MAX_PAYLOAD_LENGTH == 999_999_999
    assert len(str(MAX_PAYLOAD_LENGTH)) == 9


@pytest.mark.unit
@pytest.mark.parametrize(
    "tag,payload",
    [
        ("ver", b"Prince 15.1"),
        ("pdf", bytes(range(256)) * 4),
        ("dat", b"\n\n line breaks inside payload \n"),
        ("end", b""),
    ],
)
def test_read_chunk_decodes_written_chunk(tag, payload):
    """Test that a written frame decodes to the same tag and payload."""
    stream = io.BytesIO()
    write_chunk(stream, tag, payload)
    stream.seek(0)

    chunk = read_chunk(stream)

    assert chunk == Chunk(tag, payload)
    assert stream.read() == b""


@pytest.mark.unit
def test_read_chunk_sequence():
    """Test that consecutive frames decode in order without over-reading."""
    stream = io.BytesIO(encode_chunk("pdf", b"%PDF-1.7") + encode_chunk("log", b"fin|success\n"))

    assert read_chunk(stream).tag == "pdf"
    last = read_chunk(stream)
    assert last.tag == "log"
    assert last.text == "fin|success\n"


@pytest.mark.unit
def test_read_chunk_survives_short_reads():
    """Test that payloads arriving one byte at a time are reassembled."""
    stream = TrickleStream(encode_chunk("pdf", b"0123456789" * 10))

    chunk = read_chunk(stream)

    assert chunk.data == b"0123456789" * 10


@pytest.mark.unit
@pytest.mark.parametrize(
    "frame,reason",
    [
        (b"", "empty stream"),
        (b"ve", "short tag"),
        (b"ver\n3\nabc\n", "missing space"),
        (b"ver \nabc\n", "zero length digits"),
        (b"ver 1234567890\n", "ten length digits"),
        (b"ver 1x\nabc\n", "non-digit in length"),
        (b"ver -1\n\n", "sign in length"),
        (b"ver 3", "stream ends in length"),
        (b"ver 5\nabc", "short payload"),
        (b"ver 3\nabcX", "missing trailing newline"),
        (b"ver 3\nabc", "stream ends before trailing newline"),
    ],
)
def test_read_chunk_rejects_malformed_frames(frame, reason):
    """Test that every structural violation is a fatal decode error."""
    with pytest.raises(ChunkDecodeError):
        read_chunk(io.BytesIO(frame))


@pytest.mark.unit
def test_nine_digit_length_is_accepted_up_to_payload_check():
    """Test that 9 digits parse; the failure is the short payload, not the length."""
    with pytest.raises(ChunkDecodeError, match="failed to read chunk data"):
        read_chunk(io.BytesIO(b"pdf 999999999\nabc"))


@pytest.mark.unit
def test_decode_error_is_protocol_error():
    """Test that decode errors belong to the session-fatal family."""
    with pytest.raises(ProtocolError):
        read_chunk(io.BytesIO(b"xyz"))
