import logging
from logging.handlers import RotatingFileHandler

import pytest

from reqbuilder.configs import BuilderConfig
from reqbuilder.ext_logging import LOGGER_NAME, TraceIdFilter, init_logging, trace_id_var


@pytest.fixture
def package_logger():
    logger = logging.getLogger(LOGGER_NAME)
    handlers, level, propagate = logger.handlers[:], logger.level, logger.propagate
    yield logger
    for handler in logger.handlers:
        if handler not in handlers:
            handler.close()
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate


def make_config(**kwargs) -> BuilderConfig:
    return BuilderConfig(_env_file=None, **kwargs)


class TestBuilderConfig:
    def test_default_values(self, monkeypatch):
        monkeypatch.delenv("REQBUILDER_STRICT_BODY", raising=False)
        monkeypatch.delenv("REQBUILDER_LOG_LEVEL", raising=False)
        config = make_config()
        assert config.STRICT_BODY is False
        assert config.LOG_LEVEL == "INFO"
        assert config.LOG_FILE is None
        assert config.LOG_PROPAGATE is False

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("REQBUILDER_STRICT_BODY", "true")
        monkeypatch.setenv("REQBUILDER_LOG_LEVEL", "DEBUG")
        config = make_config()
        assert config.STRICT_BODY is True
        assert config.LOG_LEVEL == "DEBUG"


class TestInitLogging:
    def test_leaves_root_and_httpx_alone(self, package_logger):
        root = logging.getLogger()
        root_handlers, root_level = root.handlers[:], root.level
        httpx_logger = logging.getLogger("httpx")
        httpx_propagate = httpx_logger.propagate

        init_logging(make_config(LOG_LEVEL="WARNING"))

        assert root.handlers == root_handlers
        assert root.level == root_level
        assert httpx_logger.propagate is httpx_propagate

    def test_configures_package_logger(self, package_logger):
        logger = init_logging(make_config(LOG_LEVEL="WARNING", LOG_PROPAGATE=True))

        assert logger is package_logger
        assert logger.level == logging.WARNING
        assert logger.propagate is True
        assert len(logger.handlers) == 1
        assert any(isinstance(f, TraceIdFilter) for f in logger.handlers[0].filters)

    def test_reinit_replaces_handlers(self, package_logger):
        init_logging(make_config())
        first = package_logger.handlers[:]
        init_logging(make_config())

        assert len(package_logger.handlers) == 1
        assert package_logger.handlers[0] not in first

    def test_file_handler_writes_trace_id(self, tmp_path, package_logger):
        log_file = tmp_path / "logs" / "reqbuilder.log"
        init_logging(make_config(LOG_FILE=str(log_file), LOG_FORMAT="%(trace_id)s|%(message)s"))
        assert any(isinstance(h, RotatingFileHandler) for h in package_logger.handlers)

        child = logging.getLogger("reqbuilder.request")
        token = trace_id_var.set("trace-123")
        try:
            child.info("traced")
        finally:
            trace_id_var.reset(token)
        child.info("untraced")
        for handler in package_logger.handlers:
            handler.flush()

        assert log_file.read_text(encoding="utf-8").splitlines() == ["trace-123|traced", "|untraced"]
