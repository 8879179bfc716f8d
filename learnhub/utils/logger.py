import logging
from logging.handlers import RotatingFileHandler
import os


def setup_logger(name, level='INFO', log_dir='logs'):
    """Configure and return a logger instance"""
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))

    # setup_logger runs once per create_app; don't stack handlers
    if logger.handlers:
        return logger

    # Create logs directory if it doesn't exist
    if log_dir:
        if not os.path.exists(log_dir):
            os.makedirs(log_dir)

        # File handler
        file_handler = RotatingFileHandler(os.path.join(log_dir, 'learnhub.log'), maxBytes=10240, backupCount=10)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]'
        ))
        logger.addHandler(file_handler)

    # Console handler
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter(
        '%(levelname)s: %(message)s'
    ))
    logger.addHandler(console_handler)

    return logger
