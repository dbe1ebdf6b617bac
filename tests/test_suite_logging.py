"""
Unit tests for the suite logger
"""
import io
import logging

import pytest

from api_test_kit.suite_logging import LOG_FILE_NAME, RunnerOutputHandler, resolve_level


def read_log(log_dir):
    return (log_dir / LOG_FILE_NAME).read_text(encoding="utf-8")


class TestSuiteLoggerInitialize:

    def test_creates_missing_log_directory(self, tmp_path, suite_logger):
        log_dir = tmp_path / "nested" / "TestLogs"
        suite_logger.initialize(log_dir, "ERROR", stream=io.StringIO())

        assert log_dir.is_dir()
        assert suite_logger.log_file == log_dir / LOG_FILE_NAME

    def test_existing_log_directory_is_fine(self, tmp_path, suite_logger):
        (tmp_path / "TestLogs").mkdir()
        suite_logger.initialize(tmp_path / "TestLogs", stream=io.StringIO())
        assert suite_logger.initialized

    def test_failed_initialize_is_not_an_acquisition(self, tmp_path, suite_logger):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("file in the way")

        with pytest.raises(OSError):
            suite_logger.initialize(blocker / "logs", stream=io.StringIO())
        assert not suite_logger.initialized

        suite_logger.initialize(tmp_path / "logs", stream=io.StringIO())
        suite_logger.flush_and_close()

        assert not suite_logger.initialized

    def test_repeated_initialize_keeps_one_set_of_handlers(self, tmp_path, suite_logger):
        stream = io.StringIO()
        suite_logger.initialize(tmp_path, "INFO", stream=stream)
        suite_logger.initialize(tmp_path, "INFO", stream=stream)

        suite_logger.info("only once")
        suite_logger.flush()

        assert read_log(tmp_path).count("only once") == 1
        assert stream.getvalue().count("only once") == 1


class TestSuiteLoggerWrites:

    def test_records_reach_file_and_output(self, tmp_path, suite_logger):
        stream = io.StringIO()
        suite_logger.initialize(tmp_path, "ERROR", stream=stream)

        suite_logger.error("Initialize failed")
        suite_logger.flush()

        assert "[ERROR]" in read_log(tmp_path)
        assert "Initialize failed" in read_log(tmp_path)
        assert "Initialize failed" in stream.getvalue()

    def test_minimum_level_filters(self, tmp_path, suite_logger):
        suite_logger.initialize(tmp_path, "ERROR", stream=io.StringIO())

        suite_logger.info("chatty")
        suite_logger.warning("still below")
        suite_logger.error("kept")
        suite_logger.flush()

        content = read_log(tmp_path)
        assert "chatty" not in content
        assert "still below" not in content
        assert "kept" in content

    def test_error_traceback_is_included(self, tmp_path, suite_logger):
        suite_logger.initialize(tmp_path, "ERROR", stream=io.StringIO())
        try:
            raise ValueError("Failed to retrieve user ID")
        except ValueError as e:
            suite_logger.error("Test failed", e)
        suite_logger.flush()

        content = read_log(tmp_path)
        assert "Traceback" in content
        assert "ValueError: Failed to retrieve user ID" in content

    def test_unknown_level_does_not_raise(self, tmp_path, suite_logger):
        suite_logger.initialize(tmp_path, "ERROR", stream=io.StringIO())

        suite_logger.log("verbose-ish", "odd level")
        suite_logger.flush()

        assert "odd level" in read_log(tmp_path)

    def test_logging_before_initialize_does_not_raise(self, suite_logger):
        suite_logger.error("nobody listening")


class TestSuiteLoggerClose:

    def test_close_releases_one_acquisition(self, tmp_path, suite_logger):
        suite_logger.initialize(tmp_path, stream=io.StringIO())
        suite_logger.initialize(tmp_path, stream=io.StringIO())

        suite_logger.flush_and_close()
        assert suite_logger.initialized

        suite_logger.flush_and_close()
        assert not suite_logger.initialized

    def test_close_flushes_to_disk(self, tmp_path, suite_logger):
        suite_logger.initialize(tmp_path, stream=io.StringIO())
        suite_logger.error("before close")
        suite_logger.flush_and_close()

        assert "before close" in read_log(tmp_path)

    def test_extra_close_is_harmless(self, tmp_path, suite_logger):
        suite_logger.initialize(tmp_path, stream=io.StringIO())
        suite_logger.flush_and_close()
        suite_logger.flush_and_close()
        assert not suite_logger.initialized

    def test_reinitialize_after_close(self, tmp_path, suite_logger):
        suite_logger.initialize(tmp_path, stream=io.StringIO())
        suite_logger.flush_and_close()
        suite_logger.initialize(tmp_path, stream=io.StringIO())
        suite_logger.error("second fixture")
        suite_logger.flush()

        assert "second fixture" in read_log(tmp_path)


def test_runner_output_handler_follows_sys_stdout(capsys):
    handler = RunnerOutputHandler()
    handler.setFormatter(logging.Formatter("%(message)s"))
    record = logging.LogRecord("x", logging.ERROR, __file__, 1, "captured line", None, None)

    handler.emit(record)

    assert "captured line" in capsys.readouterr().out


def test_resolve_level():
    assert resolve_level("debug") == logging.DEBUG
    assert resolve_level("Warning") == logging.WARNING
    assert resolve_level(logging.INFO) == logging.INFO
    assert resolve_level("nonsense") == logging.ERROR
