"""Unit tests for per-job builders and descriptor JSON."""

import json

import pytest

from inkpress.contexts.configuration import (
    CssOptions,
    EncryptionOptions,
    EngineConfig,
    FileAttachment,
    InputOptions,
    InputType,
    JavaScriptOptions,
    KeyBits,
    MetadataOptions,
    PdfEvent,
    PdfOptions,
    PdfProfile,
)
from inkpress.contexts.protocol.exceptions import ConfigurationError, UsageError
from inkpress.contexts.rendering.job import Job, JobBuilder, JobDescriptor, job_resource_url

HTML_CONFIG = EngineConfig(input=InputOptions(input_type=InputType.HTML))


@pytest.mark.unit
def test_resources_are_indexed_in_append_order():
    builder = JobBuilder(HTML_CONFIG)

    refs = [
        builder.add_script(b"console.log(1)"),
        builder.add_style_sheet(b"p {}"),
        builder.add_file_attachment(b"\x00", "data.bin", "Raw data"),
    ]
    job = builder.build()

    assert refs == ["job-resource:0", "job-resource:1", "job-resource:2"]
    assert job.resources == (b"console.log(1)", b"p {}", b"\x00")
    assert job.descriptor.resource_count == 3
    assert job.descriptor.scripts == ("job-resource:0",)
    assert job.descriptor.style_sheets == ("job-resource:1",)
    assert job.descriptor.file_attachments == (
        FileAttachment("job-resource:2", "data.bin", "Raw data"),
    )


@pytest.mark.unit
def test_fresh_builders_restart_indices():
    """Test that indices of one job never leak into the next."""
    first = JobBuilder(HTML_CONFIG)
    first.add_style_sheet(b"a")
    first.add_style_sheet(b"b")
    first.build()

    second = JobBuilder(HTML_CONFIG)
    assert second.add_style_sheet(b"c") == job_resource_url(0)
    assert second.build().descriptor.resource_count == 1


@pytest.mark.unit
def test_builder_cannot_be_reused_after_build():
    builder = JobBuilder(HTML_CONFIG)
    builder.build()

    with pytest.raises(UsageError):
        builder.add_script(b"x")
    with pytest.raises(UsageError):
        builder.build()


@pytest.mark.unit
def test_inline_input_requires_explicit_type():
    for input_type in (None, InputType.AUTO):
        config = EngineConfig(input=InputOptions(input_type=input_type))
        with pytest.raises(ConfigurationError):
            JobBuilder(config).add_input_string("<p/>")


@pytest.mark.unit
def test_inputs_keep_order_across_paths_and_resources():
    builder = JobBuilder(HTML_CONFIG)
    builder.add_input_path("cover.html")
    ref = builder.add_input_string("<p>body</p>")
    builder.add_input_paths(["appendix.html"])

    job = builder.build()

    assert ref == "job-resource:0"
    assert job.descriptor.inputs == ("cover.html", "job-resource:0", "appendix.html")
    assert job.resources == ("<p>body</p>".encode("utf-8"),)


@pytest.mark.unit
def test_job_rejects_mismatched_resource_count():
    descriptor = JobDescriptor(config=HTML_CONFIG, inputs=(), resource_count=2)
    with pytest.raises(UsageError):
        Job(descriptor=descriptor, resources=(b"only one",))


@pytest.mark.unit
def test_descriptor_json_default_shape():
    descriptor = JobBuilder(EngineConfig()).add_input_path("a.html").build().descriptor

    data = json.loads(descriptor.to_json())

    assert list(data) == ["input", "pdf", "metadata", "job-resource-count"]
    assert data["input"] == {
        "src": ["a.html"],
        "styles": [],
        "scripts": [],
        "default-style": True,
        "author-style": True,
        "javascript": False,
        "iframes": False,
        "xinclude": False,
        "xml-external-entities": False,
        "no-local-files": False,
    }
    assert data["pdf"]["encrypt"] == {
        "disallow-print": False,
        "disallow-modify": False,
        "disallow-copy": False,
        "disallow-annotate": False,
        "allow-copy-for-accessibility": False,
        "allow-assembly": False,
    }
    assert data["pdf"]["color-conversion"] == "none"
    assert data["pdf"]["attach"] == []
    assert data["metadata"] == {}
    assert data["job-resource-count"] == 0


@pytest.mark.unit
def test_descriptor_json_full_configuration():
    config = EngineConfig(
        input=InputOptions(input_type=InputType.XML, base_url="https://example.com/"),
        css=CssOptions(style_sheets=("site.css",), media="print", no_default_style=True),
        javascript=JavaScriptOptions(javascript=True, scripts=("site.js",), max_passes=5),
        pdf=PdfOptions(
            pdf_profile=PdfProfile.PDFA_1A_AND_PDFUA_1,
            pdf_output_intent="sRGB.icc",
            convert_colors=True,
            tagged_pdf=True,
            no_compress=True,
            file_attachments=(FileAttachment("terms.pdf"),),
            pdf_script="open.js",
            pdf_event_scripts=((PdfEvent.WILL_CLOSE, "x"), (PdfEvent.WILL_CLOSE, "y")),
        ),
        encryption=EncryptionOptions(
            encrypt=True, key_bits=KeyBits.BITS40, user_password="u", disallow_print=True
        ),
        metadata=MetadataOptions(title='Q3 "final"', keywords=("a", "b"), xmp="meta.xmp"),
    )
    builder = JobBuilder(config)
    builder.add_input_string("<doc/>")
    builder.add_style_sheet(b"doc {}")
    builder.add_file_attachment(b"1,2", filename="data.csv")

    data = json.loads(builder.build().descriptor.to_json())

    assert data["input"]["src"] == ["job-resource:0"]
    assert data["input"]["type"] == "xml"
    assert data["input"]["base"] == "https://example.com/"
    assert data["input"]["media"] == "print"
    assert data["input"]["styles"] == ["site.css", "job-resource:1"]
    assert data["input"]["scripts"] == ["site.js"]
    assert data["input"]["default-style"] is False
    assert data["input"]["max-passes"] == 5

    pdf = data["pdf"]
    assert pdf["compress"] is False
    assert pdf["encrypt"]["key-bits"] == "40"
    assert pdf["encrypt"]["user-password"] == "u"
    assert pdf["encrypt"]["disallow-print"] is True
    assert pdf["pdf-profile"] == "PDF/A-1a+PDF/UA-1"
    assert pdf["pdf-output-intent"] == "sRGB.icc"
    assert pdf["color-conversion"] == "output-intent"
    assert pdf["pdf-xmp"] == "meta.xmp"
    assert pdf["tagged-pdf"] is True
    assert pdf["attach"] == [
        {"url": "terms.pdf"},
        {"url": "job-resource:2", "filename": "data.csv"},
    ]
    assert pdf["pdf-script"] == "open.js"
    assert pdf["pdf-event-scripts"] == [
        {"event": "will-close", "script": "x"},
        {"event": "will-close", "script": "y"},
    ]

    assert data["metadata"] == {"title": 'Q3 "final"', "keywords": "a,b"}
    assert data["job-resource-count"] == 3
