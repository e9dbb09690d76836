import json
import logging
import sys
from datetime import date
from pathlib import Path
from typing import Any, Dict, Optional

from loguru import logger

from student_portal.config.settings import settings
from student_portal.utils.context import get_request_id, get_user_email

LOGGING_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config" / "logging_config.json"

# Standard library loggers whose records are routed into loguru
INTERCEPTED_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access", "fastapi", "httpx")


class InterceptHandler(logging.Handler):
    """Forwards standard library log records to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find the caller outside the logging module so loguru reports it
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.bind(
            request_id=get_request_id() or "app", user=get_user_email() or "-"
        ).opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


class CustomizeLogger:
    """Configures loguru from one section of ``logging_config.json``."""

    @classmethod
    def make_logger(
        cls,
        config_path: Path,
        environment: str = "logger",
        level_override: Optional[str] = None,
    ):
        with open(config_path) as config_file:
            sections = json.load(config_file)
        config = sections.get(environment) or sections["logger"]
        level = (level_override or config["level"]).upper()

        logger.remove()
        # Records logged before a request binds its own id still need the keys
        logger.configure(extra={"request_id": "app", "user": "-"})
        logger.add(
            sys.stdout,
            enqueue=True,
            backtrace=True,
            level=level,
            format=config["console_format"],
            colorize=True,
        )
        logger.add(str(cls._log_file(config)), **cls._file_sink_options(config, level))

        logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
        for name in INTERCEPTED_LOGGERS:
            logging.getLogger(name).handlers = [InterceptHandler()]

        return logger

    @staticmethod
    def _log_file(config: Dict[str, Any]) -> Path:
        return Path(config["log_dir"]) / f"{date.today():%Y-%m-%d}-{config['filename']}"

    @staticmethod
    def _file_sink_options(config: Dict[str, Any], level: str) -> Dict[str, Any]:
        options: Dict[str, Any] = {
            "rotation": config.get("rotation"),
            "retention": config.get("retention"),
            "enqueue": True,
            "backtrace": True,
            "level": level,
            "colorize": False,
        }
        if config.get("use_json_logs") and config.get("file_format") == "json":
            options["serialize"] = True
        else:
            options["format"] = config["file_format"]
        return options


custom_logger = CustomizeLogger.make_logger(
    LOGGING_CONFIG_PATH,
    "production" if settings.ENVIRONMENT == "production" else "logger",
    level_override=settings.LOG_LEVEL,
)


def get_logger():
    """Get the custom logger bound to the current request ID and user."""
    return custom_logger.bind(
        request_id=get_request_id() or "app", user=get_user_email() or "-"
    )
