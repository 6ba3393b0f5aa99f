import os
from logging import config, getLevelName, getLogger
from typing import Any

LOGGER_NAME = "geo_resolver"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def resolve_log_level(name: str | None) -> str:
    """Normalize a level name such as `debug`; unknown names fall back to INFO."""
    level = (name or "").strip().upper()
    if isinstance(getLevelName(level), int):
        return level
    return "INFO"


def _uvicorn_formatter(kind: str, fmt: str, use_colors: bool | None) -> dict[str, Any]:
    # use_colors=None lets uvicorn decide based on whether the stream is a tty.
    return {"()": f"uvicorn.logging.{kind}Formatter", "fmt": fmt, "datefmt": DATE_FORMAT, "use_colors": use_colors}


def build_log_config(level: str, use_colors: bool | None = None) -> dict[str, Any]:
    """dictConfig for our logger plus uvicorn's, so both share one output format.

    The config is also handed to uvicorn.run() so the server does not replace it.
    """
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "access": _uvicorn_formatter(
                "Access",
                '%(levelprefix)s %(asctime)s - %(client_addr)s - "%(request_line)s" %(status_code)s',
                use_colors,
            ),
            "default": _uvicorn_formatter(
                "Default",
                "%(levelprefix)s %(asctime)s - %(name)s - %(message)s",
                use_colors,
            ),
        },
        "handlers": {
            "access": {"class": "logging.StreamHandler", "formatter": "access", "stream": "ext://sys.stdout"},
            "default": {"class": "logging.StreamHandler", "formatter": "default", "stream": "ext://sys.stderr"},
        },
        "loggers": {
            LOGGER_NAME: {"handlers": ["default"], "level": level, "propagate": False},
            "uvicorn": {"handlers": ["default"], "level": level, "propagate": True},
            "uvicorn.access": {"handlers": ["access"], "level": level, "propagate": False},
            "uvicorn.error": {"level": level, "propagate": False},
        },
    }


LOG_LEVEL = resolve_log_level(os.getenv("LOG_LEVEL"))
log_config = build_log_config(LOG_LEVEL)
config.dictConfig(log_config)

logger = getLogger(LOGGER_NAME)
