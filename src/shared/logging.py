import logging
import sys

from opentelemetry._logs import set_logger_provider
from opentelemetry.sdk._logs import LoggerProvider, LoggingHandler
from opentelemetry.sdk._logs.export import BatchLogRecordProcessor, ConsoleLogRecordExporter

from .config import settings


def setup_logging() -> None:
    """Configure OpenTelemetry logging plus a plain stderr handler."""

    # 1. Setup OpenTelemetry Logger Provider
    logger_provider = LoggerProvider()

    if settings.OTEL_CONSOLE_EXPORT:
        console_exporter = ConsoleLogRecordExporter()
        logger_provider.add_log_record_processor(BatchLogRecordProcessor(console_exporter))

    set_logger_provider(logger_provider)

    # 2. Attach OTel LoggingHandler to Python's root logger
    handler = LoggingHandler(
        level=getattr(logging, settings.LOG_LEVEL), logger_provider=logger_provider
    )

    logging.getLogger().addHandler(handler)
    logging.getLogger().setLevel(settings.LOG_LEVEL)

    # stdout carries the command output, logs go to stderr
    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(
        logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    )
    logging.getLogger().addHandler(stream_handler)


logger = logging.getLogger("rootca")
