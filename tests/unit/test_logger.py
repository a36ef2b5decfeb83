"""Unit tests for loguru sink setup."""

import pytest
from loguru import logger

from inkpress import __version__
from inkpress.contexts.rendering.logger import _log_debug, setup_rendering_logger


@pytest.mark.unit
def test_rendering_log_file_has_run_header_and_debug_lines(tmp_path):
    log_dir = tmp_path / "render_run"

    try:
        log_file = setup_rendering_logger(log_dir, "/opt/prince/bin/prince")
        _log_debug("recv chunk ver (9 bytes)")
    finally:
        logger.remove()

    assert log_file == log_dir / "render.log"
    content = log_file.read_text()
    assert f"inkpress {__version__}:" in content
    assert "Engine: /opt/prince/bin/prince" in content
    assert "[render] recv chunk ver (9 bytes)" in content
