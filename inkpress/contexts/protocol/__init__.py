"""
Protocol Context

Responsibilities:
- Encodes and decodes the binary chunk framing used by control sessions
- Builds job descriptor JSON
- Parses the line-oriented structured log reported by the engine
- Defines the exception taxonomy shared by both session strategies

Owns: Wire formats, diagnostic message types, protocol errors
Never: Spawns processes or reads configuration
"""

from inkpress.contexts.protocol.chunks import Chunk, encode_chunk, read_chunk, write_chunk
from inkpress.contexts.protocol.exceptions import (
    ChunkDecodeError,
    ConfigurationError,
    EngineError,
    EngineIOError,
    EngineJobError,
    EngineStartupError,
    InkpressError,
    ProtocolError,
    SessionBusyError,
    SessionStateError,
    TransportError,
    UnexpectedChunkError,
    UsageError,
)
from inkpress.contexts.protocol.json_writer import JsonWriter
from inkpress.contexts.protocol.messages import (
    ConversionResult,
    DataMessage,
    LogMessage,
    MessageType,
)
from inkpress.contexts.protocol.structured_log import StructuredLogReader, read_structured_log

__all__ = [
    # Chunk framing
    "Chunk",
    "encode_chunk",
    "read_chunk",
    "write_chunk",
    # Job descriptor JSON
    "JsonWriter",
    # Structured log
    "StructuredLogReader",
    "read_structured_log",
    "ConversionResult",
    "DataMessage",
    "LogMessage",
    "MessageType",
    # Errors
    "InkpressError",
    "UsageError",
    "SessionStateError",
    "SessionBusyError",
    "ConfigurationError",
    "ProtocolError",
    "ChunkDecodeError",
    "UnexpectedChunkError",
    "TransportError",
    "EngineIOError",
    "EngineError",
    "EngineStartupError",
    "EngineJobError",
]
