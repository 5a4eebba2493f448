"""Constants used in the project."""

from enum import Enum


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    CONNECTION_ERROR = 2
    PARTIAL_FAILURE = 3
    REGISTRY_ERROR = 4
    CONFIG_ERROR = 5


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    REGISTRY_URL_RUBYGEMS = "https://rubygems.org"
    API_PATH = "/api/v1"
    LOG_FORMAT = "[%(levelname)s] %(message)s"
    REQUEST_TIMEOUT = 30  # Timeout in seconds for all HTTP requests

    # Connection pooling for the shared requests.Session
    HTTP_POOL_CONNECTIONS = 100
    HTTP_POOL_MAXSIZE = 20

    # Batch fetches never exceed this many requests in flight
    MAX_CONCURRENT_REQUESTS = 10
    # Version lists are cut to the most recent entries returned by the API
    MAX_VERSIONS = 20

    # Bundler credential lookup
    BUNDLE_KEY_PREFIX = "BUNDLE_"
    TOKEN_USERNAME = "any"
    LOCAL_BUNDLE_CONFIG = ".bundle/config"
    BUNDLE_CONFIG_DIR = ".bundle"
    BUNDLE_CONFIG_FILE = "config"
    ENV_BUNDLE_USER_HOME = "BUNDLE_USER_HOME"
    ENV_HOME = "HOME"

    # Logging knobs read by common.logging_utils.configure_logging
    ENV_LOG_LEVEL = "GEMFETCH_LOG_LEVEL"
    ENV_LOG_FORMAT = "GEMFETCH_LOG_FORMAT"

    USER_AGENT = "gemfetch/0.1"
