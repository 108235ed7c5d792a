import logging

import pytest


@pytest.fixture(autouse=True)
def reset_hostprep_logger():
    """init_logging detaches the package logger from root; undo that between tests."""
    yield
    logger = logging.getLogger("hostprep")
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
