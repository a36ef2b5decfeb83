"""
Integration tests against a real rendering engine, when one is installed.
"""

import io
import os
import shutil

import pytest

from inkpress.contexts.configuration import EngineConfig, InputOptions, InputType
from inkpress.contexts.rendering import ControlSession, OneShotConverter

ENGINE_PATH = os.getenv("INKPRESS_ENGINE_PATH", "prince")
ENGINE_AVAILABLE = shutil.which(ENGINE_PATH) is not None
skip_if_no_engine = pytest.mark.skipif(
    not ENGINE_AVAILABLE,
    reason=f"{ENGINE_PATH} not installed - set INKPRESS_ENGINE_PATH to the engine executable"
)

HTML_CONFIG = EngineConfig(engine_path=ENGINE_PATH, input=InputOptions(input_type=InputType.HTML))
DOCUMENT = "<html><body><h1>Hello</h1><p>Rendered by inkpress.</p></body></html>"


@pytest.mark.integration
@pytest.mark.engine
@skip_if_no_engine
def test_one_shot_string_to_pdf():
    output = io.BytesIO()

    result = OneShotConverter(HTML_CONFIG).convert_string(DOCUMENT, output)

    assert result.success, f"Conversion failed with errors: {result.errors}"
    assert output.getvalue().startswith(b"%PDF")


@pytest.mark.integration
@pytest.mark.engine
@skip_if_no_engine
def test_one_shot_file_to_file(tmp_path):
    source = tmp_path / "doc.html"
    source.write_text(DOCUMENT)
    pdf_path = tmp_path / "doc.pdf"

    result = OneShotConverter(HTML_CONFIG).convert([source], pdf_path)

    assert result.success, f"Conversion failed with errors: {result.errors}"
    assert pdf_path.stat().st_size > 0


@pytest.mark.integration
@pytest.mark.engine
@skip_if_no_engine
def test_control_session_two_jobs():
    with ControlSession(HTML_CONFIG) as session:
        assert session.version

        outputs = [io.BytesIO(), io.BytesIO()]
        for output in outputs:
            builder = session.new_job()
            builder.add_style_sheet(b"h1 { color: navy }")
            builder.add_input_string(DOCUMENT)
            result = session.submit_job(builder.build(), output)
            assert result.success, f"Job failed with errors: {result.errors}"

    for output in outputs:
        assert output.getvalue().startswith(b"%PDF")
