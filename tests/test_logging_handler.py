"""Unit tests for logging setup and the in-memory log buffer."""

import logging

import pytest

from commander import logging_handler
from commander.logging_handler import LogBufferHandler, get_buffer_handler, setup_logging


class TestLogBufferHandler:
    """Circular record buffer with filtering."""

    def _logger(self, handler: LogBufferHandler, name: str) -> logging.Logger:
        logger = logging.getLogger(name)
        logger.propagate = False
        logger.handlers[:] = [handler]
        logger.setLevel(logging.DEBUG)
        return logger

    def test_records_kept(self) -> None:
        handler = LogBufferHandler(buffer_size=10)
        self._logger(handler, "test.buffer.kept").info("hello")
        logs = handler.get_logs()
        assert len(logs) == 1
        assert logs[0]['level'] == "INFO"
        assert logs[0]['source'] == "test.buffer.kept"

    def test_buffer_size(self) -> None:
        handler = LogBufferHandler(buffer_size=3)
        logger = self._logger(handler, "test.buffer.size")
        for i in range(5):
            logger.info(f"msg {i}")
        messages = [log['message'] for log in handler.get_logs()]
        assert messages == ["msg 2", "msg 3", "msg 4"]

    def test_filters(self) -> None:
        handler = LogBufferHandler()
        self._logger(handler, "test.buffer.a").warning("a")
        self._logger(handler, "test.buffer.b").info("b")
        assert [log['message'] for log in handler.get_logs(level="warning")] == ["a"]
        assert [log['message'] for log in handler.get_logs(source="buffer.b")] == ["b"]
        assert len(handler.get_logs(limit=1)) == 1

    def test_clear(self) -> None:
        handler = LogBufferHandler()
        self._logger(handler, "test.buffer.clear").info("x")
        handler.clear_logs()
        assert handler.get_logs() == []


@pytest.mark.usefixtures("restore_root_logging")
class TestSetupLogging:
    """Root logger configuration from the logging config section."""

    def test_levels(self) -> None:
        logger = setup_logging({'level': 'WARNING', 'commander': {'level': 'DEBUG'}}, 'commander')
        assert logger.name == 'commander'
        assert logger.level == logging.DEBUG
        assert logging.getLogger().level == logging.WARNING

    def test_handlers_pass_the_verbose_level(self) -> None:
        logging_handler._buffer_handler = None
        setup_logging({'level': 'WARNING', 'commander': {'level': 'DEBUG'}, 'keep_buffer': True}, 'commander')
        buffer = get_buffer_handler()
        assert buffer.level == logging.DEBUG
        logging.getLogger('commander.test').debug("service detail")
        logging.getLogger('test.other').info("library chatter")
        text = "\n".join(log['message'] for log in buffer.get_logs())
        assert "service detail" in text
        assert "library chatter" not in text
        logging_handler._buffer_handler = None

    def test_service_level_defaults_to_global(self) -> None:
        logger = setup_logging({'level': 'ERROR', 'commander': {}}, 'commander')
        assert logger.level == logging.ERROR

    def test_unrelated_loggers_untouched(self) -> None:
        setup_logging({'level': 'DEBUG'}, 'commander')
        assert logging.getLogger('matplotlib').level == logging.NOTSET

    def test_root_logger_without_service(self) -> None:
        assert setup_logging({'level': 'INFO'}) is logging.getLogger()

    def test_buffer_attached(self) -> None:
        logging_handler._buffer_handler = None
        setup_logging({'level': 'INFO', 'keep_buffer': True, 'buffer_size': 5}, 'commander')
        buffer = get_buffer_handler()
        assert buffer in logging.getLogger().handlers
        logging.getLogger('commander.test').info("buffered")
        assert buffer.get_logs()[-1]['source'] == 'commander.test'
        logging_handler._buffer_handler = None

    def test_file_output(self, tmp_path) -> None:
        path = tmp_path / "commander.log"
        setup_logging({'level': 'INFO', 'file_output': str(path)}, 'commander')
        logging.getLogger('commander.test').info("to file")
        for handler in logging.getLogger().handlers:
            handler.flush()
        assert "to file" in path.read_text()

    def test_handlers_replaced(self) -> None:
        setup_logging({'level': 'INFO'})
        setup_logging({'level': 'INFO'})
        assert len(logging.getLogger().handlers) == 1
