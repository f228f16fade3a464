import logging

from hostport.utils.logs import LOG_FORMAT, setup_logging


def test_setup_logging_does_not_stack_handlers():
    logger = logging.getLogger("hostport")
    logger.handlers.clear()
    try:
        setup_logging("debug")
        setup_logging("WARNING")
        assert len(logger.handlers) == 1
        assert logger.level == logging.WARNING
        assert logger.handlers[0].formatter._fmt == LOG_FORMAT
    finally:
        logger.handlers.clear()


def test_unknown_level_falls_back_to_info():
    logger = logging.getLogger("hostport")
    try:
        assert setup_logging("chatty").level == logging.INFO
    finally:
        logger.handlers.clear()
