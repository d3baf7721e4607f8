from __future__ import annotations

"""Central logging configuration for astedit.

Import and call :func:`setup_logging` at application start-up.
"""

import logging
import os
import logging.config
from astedit.config import ConfigManager

__all__ = ["setup_logging"]

EDIT_LOGGERS = (
    "astedit.core.services.structure_editing_service",
    "astedit.core.services.history_service",
)


def setup_logging() -> None:
    """Configure logging for the application using configuration from YAML files."""
    log_dir = os.environ.get("ASTEDIT_LOG_DIR", "logs")
    os.makedirs(log_dir, exist_ok=True)
    log_file = os.path.join(log_dir, "astedit.log")

    try:
        logging_config = ConfigManager().get_logging_config()

        if logging_config and isinstance(logging_config, dict) and logging_config.get("version"):
            # Update the filename dynamically
            if "handlers" in logging_config and "file" in logging_config["handlers"]:
                logging_config["handlers"]["file"]["filename"] = log_file

            logging.config.dictConfig(logging_config)
            logging.info("===== Logging initialised from config files =====")
        else:
            # No valid config found, use minimal fallback
            _setup_minimal_logging()
    except (ValueError, TypeError, AttributeError, ImportError) as exc:
        # dictConfig reports bad configurations with these
        print(f"Error loading logging config: {exc}")
        _setup_minimal_logging()

    _apply_debug_overrides()


def _setup_minimal_logging() -> None:
    """Set up minimal console-only logging when config is unavailable."""
    minimal_config = {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'simple': {
                'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            },
        },
        'handlers': {
            'console': {
                'class': 'logging.StreamHandler',
                'formatter': 'simple',
                'level': 'INFO',
            },
        },
        'root': {
            'level': 'INFO',
            'handlers': ['console'],
        },
        # Edit loggers listed so they can be flipped via env even in minimal mode
        'loggers': {
            name: {'handlers': ['console'], 'level': 'INFO', 'propagate': False}
            for name in EDIT_LOGGERS
        },
    }

    logging.config.dictConfig(minimal_config)
    logging.error("===== Logging initialised with minimal fallback (config error) =====")


def _apply_debug_overrides() -> None:
    """Apply environment-driven module-specific debug overrides.

    Supports:
    - ASTEDIT_DEBUG_EDITS=true  -> DEBUG for editing and history services
    - ASTEDIT_DEBUG_MODULES=comma,separated,logger,names -> DEBUG for listed loggers
    """
    debug_edits = os.environ.get('ASTEDIT_DEBUG_EDITS', '').strip().lower() in {'1', 'true', 'yes', 'on'}
    extra_modules = os.environ.get('ASTEDIT_DEBUG_MODULES', '').strip()
    targets = []
    if debug_edits:
        targets.extend(EDIT_LOGGERS)
    if extra_modules:
        targets.extend([m.strip() for m in extra_modules.split(',') if m.strip()])
    for name in targets:
        logger = logging.getLogger(name)
        logger.setLevel(logging.DEBUG)
        # Ensure at least one handler emits DEBUG for this logger
        has_debug_handler = any(h.level <= logging.DEBUG for h in logger.handlers)
        if not has_debug_handler:
            h = logging.StreamHandler()
            h.setLevel(logging.DEBUG)
            h.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
            logger.addHandler(h)
        logger.info("Debug override active for logger '%s'", name)
