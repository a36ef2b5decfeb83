"""
Engine configuration snapshot.

EngineConfig is one immutable value grouping every option category the engine
understands. Both session strategies read it (one-shot turns it into argv,
control sessions into argv plus a JSON job descriptor); neither mutates it.
Derive a modified snapshot with ``config.with_changes(...)``.

Example:
    >>> cfg = EngineConfig(input=InputOptions(input_type=InputType.HTML))
    >>> cfg = cfg.with_changes(pdf={"tagged_pdf": True})
    >>> cfg.pdf.tagged_pdf
    True
"""

import os
from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, Optional, Tuple

from dotenv import load_dotenv

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
from inkpress.contexts.protocol.exceptions import ConfigurationError

load_dotenv()
DEFAULT_ENGINE_PATH = os.getenv("INKPRESS_ENGINE_PATH", "prince")


def _require_positive(value: Optional[int], option: str) -> None:
    if value is not None and value < 1:
        raise ConfigurationError(f"invalid value {value} (must be > 0)", option=option)


@dataclass(frozen=True)
class LoggingOptions:
    verbose: bool = False
    debug: bool = False
    log: Optional[str] = None
    no_warn_css_unknown: bool = False
    no_warn_css_unsupported: bool = False


@dataclass(frozen=True)
class InputOptions:
    input_type: Optional[InputType] = None
    base_url: Optional[str] = None
    remaps: Tuple[str, ...] = ()
    xinclude: bool = False
    xml_external_entities: bool = False
    no_local_files: bool = False
    iframes: bool = False

    @property
    def has_explicit_type(self) -> bool:
        """True when the document type is known without sniffing a file name."""
        return self.input_type is not None and self.input_type is not InputType.AUTO


@dataclass(frozen=True)
class NetworkOptions:
    no_network: bool = False
    no_redirects: bool = False
    auth_user: Optional[str] = None
    auth_password: Optional[str] = None
    auth_server: Optional[str] = None
    auth_scheme: Optional[AuthScheme] = None
    auth_methods: Tuple[AuthMethod, ...] = ()
    no_auth_preemptive: bool = False
    http_proxy: Optional[str] = None
    http_timeout: Optional[int] = None
    cookies: Tuple[str, ...] = ()
    cookie_jar: Optional[str] = None
    ssl_ca_cert: Optional[str] = None
    ssl_ca_path: Optional[str] = None
    ssl_cert: Optional[str] = None
    ssl_cert_type: Optional[SslType] = None
    ssl_key: Optional[str] = None
    ssl_key_type: Optional[SslType] = None
    ssl_key_password: Optional[str] = None
    ssl_version: Optional[SslVersion] = None
    insecure: bool = False
    no_parallel_downloads: bool = False

    def __post_init__(self):
        _require_positive(self.http_timeout, "network.http_timeout")


@dataclass(frozen=True)
class JavaScriptOptions:
    javascript: bool = False
    scripts: Tuple[str, ...] = ()
    max_passes: Optional[int] = None

    def __post_init__(self):
        _require_positive(self.max_passes, "javascript.max_passes")


@dataclass(frozen=True)
class CssOptions:
    style_sheets: Tuple[str, ...] = ()
    media: Optional[str] = None
    page_size: Optional[str] = None
    page_margin: Optional[str] = None
    no_author_style: bool = False
    no_default_style: bool = False


@dataclass(frozen=True)
class FileAttachment:
    """A file embedded in the PDF, by URL/path or by ``job-resource:<n>`` reference."""

    url: str
    filename: Optional[str] = None
    description: Optional[str] = None


@dataclass(frozen=True)
class PdfOptions:
    pdf_id: Optional[str] = None
    pdf_lang: Optional[str] = None
    pdf_profile: Optional[PdfProfile] = None
    pdf_output_intent: Optional[str] = None
    pdf_script: Optional[str] = None
    pdf_event_scripts: Tuple[Tuple[PdfEvent, str], ...] = ()
    file_attachments: Tuple[FileAttachment, ...] = ()
    no_artificial_fonts: bool = False
    no_embed_fonts: bool = False
    no_subset_fonts: bool = False
    no_system_fonts: bool = False
    force_identity_encoding: bool = False
    no_compress: bool = False
    no_object_streams: bool = False
    convert_colors: bool = False
    fallback_cmyk_profile: Optional[str] = None
    tagged_pdf: bool = False
    pdf_forms: bool = False
    css_dpi: Optional[int] = None

    def __post_init__(self):
        _require_positive(self.css_dpi, "pdf.css_dpi")


@dataclass(frozen=True)
class MetadataOptions:
    title: Optional[str] = None
    subject: Optional[str] = None
    author: Optional[str] = None
    keywords: Tuple[str, ...] = ()
    creator: Optional[str] = None
    xmp: Optional[str] = None


@dataclass(frozen=True)
class EncryptionOptions:
    encrypt: bool = False
    key_bits: Optional[KeyBits] = None
    user_password: Optional[str] = None
    owner_password: Optional[str] = None
    disallow_print: bool = False
    disallow_copy: bool = False
    allow_copy_for_accessibility: bool = False
    disallow_annotate: bool = False
    disallow_modify: bool = False
    allow_assembly: bool = False


@dataclass(frozen=True)
class RasterOptions:
    format: Optional[RasterFormat] = None
    jpeg_quality: Optional[int] = None
    page: Optional[int] = None
    dpi: Optional[int] = None
    threads: Optional[int] = None
    background: Optional[RasterBackground] = None

    def __post_init__(self):
        if self.jpeg_quality is not None and not 0 <= self.jpeg_quality <= 100:
            raise ConfigurationError(
                f"invalid value {self.jpeg_quality} (must be [0, 100])",
                option="raster.jpeg_quality",
            )
        _require_positive(self.page, "raster.page")
        _require_positive(self.dpi, "raster.dpi")


# Option group name -> dataclass, in the order groups are rendered
OPTION_GROUPS = {
    "logging": LoggingOptions,
    "input": InputOptions,
    "network": NetworkOptions,
    "javascript": JavaScriptOptions,
    "css": CssOptions,
    "pdf": PdfOptions,
    "metadata": MetadataOptions,
    "encryption": EncryptionOptions,
    "raster": RasterOptions,
}


@dataclass(frozen=True)
class EngineConfig:
    """
    Read-only snapshot of every engine option.

    Attributes:
        engine_path: Engine executable (default: INKPRESS_ENGINE_PATH env or 'prince')
        extra_options: Additional raw ``--key[=value]`` options for one-shot runs,
            as (key, value-or-None) pairs
    """

    engine_path: str = DEFAULT_ENGINE_PATH
    logging: LoggingOptions = field(default_factory=LoggingOptions)
    input: InputOptions = field(default_factory=InputOptions)
    network: NetworkOptions = field(default_factory=NetworkOptions)
    javascript: JavaScriptOptions = field(default_factory=JavaScriptOptions)
    css: CssOptions = field(default_factory=CssOptions)
    pdf: PdfOptions = field(default_factory=PdfOptions)
    metadata: MetadataOptions = field(default_factory=MetadataOptions)
    encryption: EncryptionOptions = field(default_factory=EncryptionOptions)
    raster: RasterOptions = field(default_factory=RasterOptions)
    extra_options: Tuple[Tuple[str, Optional[str]], ...] = ()

    def with_changes(self, **changes: Any) -> "EngineConfig":
        """
        Return a new snapshot with some options replaced.

        Group values may be given as a dataclass instance or as a dict of
        field overrides for that group.

        Raises:
            ConfigurationError: If a group or field name is unknown
        """
        resolved: Dict[str, Any] = {}
        for name, value in changes.items():
            if name in OPTION_GROUPS and isinstance(value, dict):
                value = _replace_group(getattr(self, name), name, value)
            elif name not in {f.name for f in fields(self)}:
                raise ConfigurationError(f"unknown configuration key '{name}'", option=name)
            resolved[name] = value
        return replace(self, **resolved)


def _replace_group(group, group_name: str, overrides: Dict[str, Any]):
    known = {f.name for f in fields(group)}
    for key in overrides:
        if key not in known:
            raise ConfigurationError(
                f"unknown option '{key}'", option=f"{group_name}.{key}"
            )
    return replace(group, **overrides)
