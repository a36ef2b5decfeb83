"""
Per-job state for control sessions.

A JobBuilder collects the inputs and inline resources of exactly one job.
Every byte-array resource is appended to the builder's resource list and
referenced from the descriptor as ``job-resource:<index>`` (zero-based, in
append order). build() freezes the builder into a Job; the builder refuses
further additions afterwards, so indices can never leak into a later job.

Example:
    >>> builder = JobBuilder(config)
    >>> builder.add_style_sheet(b"body { color: red }")
    'job-resource:0'
    >>> builder.add_input_string("<p>hello</p>")
    'job-resource:1'
    >>> job = builder.build()
    >>> job.descriptor.resource_count
    2
"""

from dataclasses import dataclass
from os import PathLike
from typing import Iterable, Optional, Tuple, Union

from inkpress.contexts.configuration.options import EngineConfig, FileAttachment
from inkpress.contexts.protocol.exceptions import ConfigurationError, UsageError
from inkpress.contexts.protocol.json_writer import JsonWriter

JOB_RESOURCE_SCHEME = "job-resource"


def job_resource_url(index: int) -> str:
    return f"{JOB_RESOURCE_SCHEME}:{index}"


@dataclass(frozen=True)
class JobDescriptor:
    """
    Immutable snapshot describing one job.

    Attributes:
        config: Configuration the job was built from
        inputs: Input references (paths, URLs or job-resource URLs), in order
        style_sheets: Job-specific style sheet references, after the configured ones
        scripts: Job-specific script references, after the configured ones
        file_attachments: Job-specific attachments, after the configured ones
        resource_count: Number of ``dat`` chunks that follow the ``job`` chunk
    """

    config: EngineConfig
    inputs: Tuple[str, ...]
    style_sheets: Tuple[str, ...] = ()
    scripts: Tuple[str, ...] = ()
    file_attachments: Tuple[FileAttachment, ...] = ()
    resource_count: int = 0

    def to_json(self) -> str:
        """Serialize to the engine's job JSON."""
        cfg = self.config
        json = JsonWriter()
        json.begin_obj()

        inp = cfg.input
        json.begin_obj("input")
        json.begin_list("src").values(self.inputs).end_list()
        if inp.input_type is not None:
            json.field("type", inp.input_type.value)
        if inp.base_url is not None:
            json.field("base", inp.base_url)
        if cfg.css.media is not None:
            json.field("media", cfg.css.media)
        json.begin_list("styles").values(cfg.css.style_sheets + self.style_sheets).end_list()
        json.begin_list("scripts").values(cfg.javascript.scripts + self.scripts).end_list()
        json.field("default-style", not cfg.css.no_default_style)
        json.field("author-style", not cfg.css.no_author_style)
        json.field("javascript", cfg.javascript.javascript)
        if cfg.javascript.max_passes is not None:
            json.field("max-passes", cfg.javascript.max_passes)
        json.field("iframes", inp.iframes)
        json.field("xinclude", inp.xinclude)
        json.field("xml-external-entities", inp.xml_external_entities)
        json.field("no-local-files", inp.no_local_files)
        json.end_obj()

        pdf = cfg.pdf
        json.begin_obj("pdf")
        json.field("embed-fonts", not pdf.no_embed_fonts)
        json.field("subset-fonts", not pdf.no_subset_fonts)
        json.field("artificial-fonts", not pdf.no_artificial_fonts)
        json.field("force-identity-encoding", pdf.force_identity_encoding)
        json.field("compress", not pdf.no_compress)
        json.field("object-streams", not pdf.no_object_streams)

        enc = cfg.encryption
        json.begin_obj("encrypt")
        if enc.key_bits is not None:
            json.field("key-bits", enc.key_bits.value)
        if enc.user_password is not None:
            json.field("user-password", enc.user_password)
        if enc.owner_password is not None:
            json.field("owner-password", enc.owner_password)
        json.field("disallow-print", enc.disallow_print)
        json.field("disallow-modify", enc.disallow_modify)
        json.field("disallow-copy", enc.disallow_copy)
        json.field("disallow-annotate", enc.disallow_annotate)
        json.field("allow-copy-for-accessibility", enc.allow_copy_for_accessibility)
        json.field("allow-assembly", enc.allow_assembly)
        json.end_obj()

        if pdf.pdf_profile is not None:
            json.field("pdf-profile", pdf.pdf_profile.value)
        if pdf.pdf_output_intent is not None:
            json.field("pdf-output-intent", pdf.pdf_output_intent)
        if pdf.fallback_cmyk_profile is not None:
            json.field("fallback-cmyk-profile", pdf.fallback_cmyk_profile)
        json.field("color-conversion", "output-intent" if pdf.convert_colors else "none")
        if pdf.pdf_id is not None:
            json.field("pdf-id", pdf.pdf_id)
        if pdf.pdf_lang is not None:
            json.field("pdf-lang", pdf.pdf_lang)
        if cfg.metadata.xmp is not None:
            json.field("pdf-xmp", cfg.metadata.xmp)
        json.field("tagged-pdf", pdf.tagged_pdf)
        json.field("pdf-forms", pdf.pdf_forms)

        json.begin_list("attach")
        for attachment in pdf.file_attachments + self.file_attachments:
            json.begin_obj()
            json.field("url", attachment.url)
            if attachment.filename is not None:
                json.field("filename", attachment.filename)
            if attachment.description is not None:
                json.field("description", attachment.description)
            json.end_obj()
        json.end_list()

        if pdf.pdf_script is not None:
            json.field("pdf-script", pdf.pdf_script)
        json.begin_list("pdf-event-scripts")
        for event, script in pdf.pdf_event_scripts:
            json.begin_obj().field("event", event.value).field("script", script).end_obj()
        json.end_list()
        json.end_obj()

        meta = cfg.metadata
        json.begin_obj("metadata")
        if meta.title is not None:
            json.field("title", meta.title)
        if meta.subject is not None:
            json.field("subject", meta.subject)
        if meta.author is not None:
            json.field("author", meta.author)
        if meta.keywords:
            json.field("keywords", ",".join(meta.keywords))
        if meta.creator is not None:
            json.field("creator", meta.creator)
        json.end_obj()

        json.field("job-resource-count", self.resource_count)

        json.end_obj()
        return json.getvalue()


@dataclass(frozen=True)
class Job:
    """A descriptor plus the resources it references, ready to submit."""

    descriptor: JobDescriptor
    resources: Tuple[bytes, ...] = ()

    def __post_init__(self):
        if self.descriptor.resource_count != len(self.resources):
            raise UsageError(
                f"job-resource-count {self.descriptor.resource_count} does not match "
                f"{len(self.resources)} resources"
            )


class JobBuilder:
    """Accumulates the inputs and resources of a single job."""

    def __init__(self, config: EngineConfig):
        self.config = config
        self._inputs = []
        self._resources = []
        self._style_sheets = []
        self._scripts = []
        self._attachments = []
        self._built = False

    @property
    def resource_count(self) -> int:
        return len(self._resources)

    def add_input_path(self, path: Union[str, PathLike]) -> "JobBuilder":
        self._check_open()
        self._inputs.append(str(path))
        return self

    def add_input_paths(self, paths: Iterable) -> "JobBuilder":
        for path in paths:
            self.add_input_path(path)
        return self

    def add_input_bytes(self, data: bytes) -> str:
        """
        Add an inline input document.

        Raises:
            ConfigurationError: If the configured input type is unset or 'auto'
                (the engine cannot sniff the type of an inline document)
        """
        if not self.config.input.has_explicit_type:
            raise ConfigurationError(
                "input type has to be set to XML or HTML", option="input.input_type"
            )
        url = self._add_resource(data)
        self._inputs.append(url)
        return url

    def add_input_string(self, text: str) -> str:
        return self.add_input_bytes(text.encode("utf-8"))

    def add_style_sheet(self, data: bytes) -> str:
        url = self._add_resource(data)
        self._style_sheets.append(url)
        return url

    def add_script(self, data: bytes) -> str:
        url = self._add_resource(data)
        self._scripts.append(url)
        return url

    def add_file_attachment(
        self, data: bytes, filename: Optional[str] = None, description: Optional[str] = None
    ) -> str:
        url = self._add_resource(data)
        self._attachments.append(FileAttachment(url, filename, description))
        return url

    def build(self) -> Job:
        """Freeze this builder into a Job. The builder cannot be reused."""
        self._check_open()
        self._built = True
        descriptor = JobDescriptor(
            config=self.config,
            inputs=tuple(self._inputs),
            style_sheets=tuple(self._style_sheets),
            scripts=tuple(self._scripts),
            file_attachments=tuple(self._attachments),
            resource_count=len(self._resources),
        )
        return Job(descriptor=descriptor, resources=tuple(self._resources))

    def _add_resource(self, data: bytes) -> str:
        self._check_open()
        if isinstance(data, str):
            data = data.encode("utf-8")
        self._resources.append(bytes(data))
        return job_resource_url(len(self._resources) - 1)

    def _check_open(self) -> None:
        if self._built:
            raise UsageError("job has already been built; start a new JobBuilder")
