"""
Configuration Context

Responsibilities:
- Models every engine option as one immutable EngineConfig snapshot
- Loads configuration from YAML files and composable presets
- Maps configuration onto engine command-line flags

Owns: Option catalogue, option validation, argv construction
Never: Spawns the engine or mutates a snapshot in place
"""

from inkpress.contexts.configuration.command_line import (
    base_command_line,
    job_command_line,
    to_command,
    to_commands,
)
from inkpress.contexts.configuration.enums import (
    AuthMethod,
    AuthScheme,
    InputType,
    KeyBits,
    PdfEvent,
    PdfProfile,
    RasterBackground,
    RasterFormat,
    SslType,
    SslVersion,
)
from inkpress.contexts.configuration.loader import (
    config_from_dict,
    load_engine_config,
    load_presets,
)
from inkpress.contexts.configuration.options import (
    CssOptions,
    EncryptionOptions,
    EngineConfig,
    FileAttachment,
    InputOptions,
    JavaScriptOptions,
    LoggingOptions,
    MetadataOptions,
    NetworkOptions,
    PdfOptions,
    RasterOptions,
)

__all__ = [
    # Snapshot and option groups
    "EngineConfig",
    "LoggingOptions",
    "InputOptions",
    "NetworkOptions",
    "JavaScriptOptions",
    "CssOptions",
    "PdfOptions",
    "MetadataOptions",
    "EncryptionOptions",
    "RasterOptions",
    "FileAttachment",
    # Option values
    "AuthMethod",
    "AuthScheme",
    "InputType",
    "KeyBits",
    "PdfEvent",
    "PdfProfile",
    "RasterBackground",
    "RasterFormat",
    "SslType",
    "SslVersion",
    # Loading
    "load_engine_config",
    "load_presets",
    "config_from_dict",
    # Command line
    "to_command",
    "to_commands",
    "base_command_line",
    "job_command_line",
]
