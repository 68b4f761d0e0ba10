"""
Logging configuration with masking of credential values
"""

import logging
import logging.config
import os
import re
from typing import Any, Dict, Optional

# Environment variables whose values never appear unmasked in debug output
SENSITIVE_ENV_VARS = ("AWS_SECRET_ACCESS_KEY", "AWS_SESSION_TOKEN")

_ASSIGNMENT_PATTERN = re.compile(
    r"(?P<key>" + "|".join(SENSITIVE_ENV_VARS) + r")=(?P<value>\S+)"
)


def mask_value(value: str) -> str:
    """Keep the first and last four characters of a secret, hide the rest."""
    if len(value) > 8:
        return value[:4] + "***" + value[-4:]
    return "***"


def mask_sensitive(text: str) -> str:
    """Mask every ``KEY=value`` assignment of a sensitive variable in text."""
    return _ASSIGNMENT_PATTERN.sub(
        lambda m: f"{m.group('key')}={mask_value(m.group('value'))}", text
    )


class SensitiveValueFilter(logging.Filter):
    """Filter that masks credential assignments in log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        masked = mask_sensitive(message)
        if masked != message:
            record.msg = masked
            record.args = None
        return True  # Never drop records, only rewrite them


def get_logging_config(level: Optional[str] = None) -> Dict[str, Any]:
    """Get logging configuration with credential masking."""
    level = (level or os.environ.get("LOG_LEVEL", "INFO")).upper()
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "sensitive_value_filter": {
                "()": SensitiveValueFilter
            }
        },
        "formatters": {
            "default": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            },
            "helmfile": {
                "format": "%(message)s"
            }
        },
        "handlers": {
            "default": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": "ext://sys.stderr",
                "filters": ["sensitive_value_filter"]
            },
            "helmfile": {
                "class": "logging.StreamHandler",
                "formatter": "helmfile",
                "stream": "ext://sys.stderr",
                "filters": ["sensitive_value_filter"]
            }
        },
        "loggers": {
            "helmdrive": {
                "handlers": ["default"],
                "level": level,
                "propagate": False
            },
            "helmdrive.helmfile": {
                "handlers": ["helmfile"],
                "level": level,
                "propagate": False
            }
        },
        "root": {
            "level": "WARNING",
            "handlers": ["default"]
        }
    }


def configure_logging(level: Optional[str] = None) -> None:
    """Apply the helmdrive logging configuration."""
    logging.config.dictConfig(get_logging_config(level))
