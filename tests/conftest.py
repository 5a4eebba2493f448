"""Shared pytest fixtures for gemfetch tests."""

import logging
import os

import pytest

from constants import Constants

_LOG_ENV = (Constants.ENV_LOG_LEVEL, Constants.ENV_LOG_FORMAT)


def _installed_by_gemfetch(handler):
    return handler.get_name() == "gemfetch" or isinstance(handler, logging.FileHandler)


@pytest.fixture(autouse=True)
def restore_root_logging():
    """Undo root logger and log env changes made by ``gemfetch.main``.

    Only handlers the CLI installs are touched; pytest's capture handlers
    come and go with each test phase on their own.
    """
    root = logging.getLogger()
    saved_handlers = [h for h in root.handlers if _installed_by_gemfetch(h)]
    saved_level = root.level
    saved_env = {name: os.environ.pop(name, None) for name in _LOG_ENV}

    yield

    for handler in root.handlers[:]:
        if _installed_by_gemfetch(handler) and handler not in saved_handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in saved_handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(saved_level)
    for name, value in saved_env.items():
        if value is None:
            os.environ.pop(name, None)
        else:
            os.environ[name] = value
