"""
Integration tests for both session strategies over real OS pipes.

The engine is tests/integration/fake_engine.py run by the current interpreter,
so these tests need no rendering engine installed.
"""

import io
import json
import sys
import threading
import time
from pathlib import Path

import pytest

from inkpress.contexts.configuration import EngineConfig, InputOptions, InputType
from inkpress.contexts.protocol.exceptions import (
    EngineIOError,
    EngineJobError,
    ProtocolError,
    SessionStateError,
)
from inkpress.contexts.rendering import ControlSession, OneShotConverter, spawn_process

FAKE_ENGINE = Path(__file__).parent / "fake_engine.py"
HTML_CONFIG = EngineConfig(engine_path="fake-engine", input=InputOptions(input_type=InputType.HTML))


def fake_spawn(argv):
    """Launch the fake engine in place of argv[0], keeping the generated flags."""
    return spawn_process([sys.executable, str(FAKE_ENGINE)] + list(argv[1:]))


@pytest.mark.integration
def test_one_shot_convert_to_file(tmp_path):
    output = tmp_path / "out.pdf"
    converter = OneShotConverter(HTML_CONFIG, spawn=fake_spawn)

    result = converter.convert(["a.html"], output)

    assert result.success is True
    assert output.read_bytes().startswith(b"%PDF-FAKE")
    assert len(result.messages) == 2001
    assert result.warnings[0].text == "fake engine rendered 1 input(s)"


@pytest.mark.integration
def test_one_shot_large_stream_does_not_deadlock():
    """Test stdin, stdout and stderr all carrying more than a pipe buffer at once."""
    document = b"<p>" + b"x" * (4 * 1024 * 1024) + b"</p>"
    output = io.BytesIO()
    converter = OneShotConverter(HTML_CONFIG, spawn=fake_spawn)

    result = converter.convert_stream(document, output)

    assert result.success is True
    assert output.getvalue() == b"%PDF-FAKE\n" + document
    assert result.data_messages[0].value == str(len(output.getvalue()))


@pytest.mark.integration
def test_one_shot_failure_is_reported():
    converter = OneShotConverter(HTML_CONFIG, spawn=fake_spawn)

    result = converter.convert(["missing.html"], "unused.pdf")

    assert result.success is False
    assert result.complete is True
    assert result.errors[0].location == "missing.html"


@pytest.mark.integration
def test_one_shot_crash_is_incomplete():
    converter = OneShotConverter(HTML_CONFIG, spawn=fake_spawn)

    result = converter.convert(["crash.html"], "unused.pdf")

    assert result.success is False
    assert result.complete is False


@pytest.mark.integration
def test_missing_executable_raises_io_error():
    config = HTML_CONFIG.with_changes(engine_path="/nonexistent/engine-binary")
    converter = OneShotConverter(config)

    with pytest.raises(EngineIOError):
        converter.convert(["a.html"], "out.pdf")


@pytest.mark.integration
def test_control_session_serves_many_jobs():
    with ControlSession(HTML_CONFIG, spawn=fake_spawn) as session:
        assert session.version == "Fake Engine 1.0"

        first, second = io.BytesIO(), io.BytesIO()
        result_one = session.convert(["a.html", "b.html"], first)

        builder = session.new_job()
        builder.add_style_sheet(b"p { color: red }")
        builder.add_input_string("<p>inline</p>")
        result_two = session.submit_job(builder.build(), second)

    assert session.broken is False
    assert result_one.success is True
    assert result_one.messages[0].text == "rendered 2 input(s)"
    assert json.loads(first.getvalue().split(b"\n")[1]) == ["a.html", "b.html"]

    assert result_two.success is True
    assert result_two.data_messages[0].value == "2"
    assert second.getvalue().endswith(b"p { color: red }<p>inline</p>")


@pytest.mark.integration
def test_control_session_recovers_from_job_error():
    with ControlSession(HTML_CONFIG, spawn=fake_spawn) as session:
        with pytest.raises(EngineJobError, match="cannot render fail.html"):
            session.convert("fail.html", io.BytesIO())

        output = io.BytesIO()
        result = session.convert("ok.html", output)

    assert result.success is True
    assert output.getvalue().startswith(b"%PDF-FAKE")
    assert session.jobs_submitted == 2


@pytest.mark.integration
def test_control_session_is_unusable_after_stop():
    session = ControlSession(HTML_CONFIG, spawn=fake_spawn)
    session.start()
    session.stop()

    with pytest.raises(SessionStateError):
        session.convert("a.html", io.BytesIO())


@pytest.mark.integration
def test_kill_interrupts_hung_job():
    """Test a caller-side deadline: kill() from another thread ends a job the engine never answers."""
    session = ControlSession(HTML_CONFIG, spawn=fake_spawn)
    session.start()
    errors = []

    def run_job():
        try:
            session.convert("stall.html", io.BytesIO())
        except ProtocolError as e:
            errors.append(e)

    job = threading.Thread(target=run_job, daemon=True)
    job.start()
    time.sleep(0.5)

    killer = threading.Thread(target=session.kill, daemon=True)
    killer.start()
    killer.join(timeout=5)
    job.join(timeout=5)

    assert not killer.is_alive()
    assert not job.is_alive()
    assert len(errors) == 1
    assert session.broken is True
