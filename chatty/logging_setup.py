# -*- coding: utf-8 -*-
"""
Client logging setup.
"""

import logging
import os

from chatty.config import LOG_FILE, LOG_LEVEL

_FORMAT = '%(asctime)s - %(levelname)s - %(name)s - %(message)s'


def setup_logging(log_file: str = LOG_FILE, level: str = LOG_LEVEL) -> logging.Logger:
    """Rotating file log plus console; console only when the file is not writable."""
    numeric_level = getattr(logging, str(level).upper(), logging.INFO)
    try:
        from logging.handlers import RotatingFileHandler

        os.makedirs(os.path.dirname(log_file), exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=10*1024*1024,  # 10MB
            backupCount=5,
            encoding='utf-8'
        )
        file_handler.setFormatter(logging.Formatter(_FORMAT))

        logging.basicConfig(
            level=numeric_level,
            format=_FORMAT,
            handlers=[file_handler, logging.StreamHandler()]
        )
    except (PermissionError, OSError):
        logging.basicConfig(
            level=numeric_level,
            format=_FORMAT,
            handlers=[logging.StreamHandler()]
        )

    # engineio/socketio are chatty at INFO
    logging.getLogger('engineio').setLevel(logging.WARNING)
    logging.getLogger('socketio').setLevel(logging.WARNING)
    return logging.getLogger('chatty')
