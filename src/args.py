"""Argument parsing functionality for gemfetch."""

import argparse
from constants import Constants

def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    parser = argparse.ArgumentParser(
        prog="gemfetch",
        description=(
            "gemfetch - Fetch gem metadata and version lists from a RubyGems registry"
        ),
        add_help=True,
    )

    input_group = parser.add_mutually_exclusive_group(required=True)
    input_group.add_argument("-g", "--gem",
                        dest="GEMS",
                        help="Gem to fetch, as NAME or NAME:VERSION (repeatable)",
                        action="append", type=str)
    input_group.add_argument("-l", "--load_list",
                        dest="LIST_FROM_FILE",
                        help="Load list of gems (NAME or NAME:VERSION per line) from a file",
                        action="store", type=str)
    input_group.add_argument("--versions",
                        dest="VERSIONS",
                        help=f"List the most recent {Constants.MAX_VERSIONS} versions of a gem",
                        action="store", type=str)

    parser.add_argument("-s", "--source",
                        dest="SOURCE",
                        help=f"Gem server base URL (default: {Constants.REGISTRY_URL_RUBYGEMS})",
                        action="store",
                        type=str)
    parser.add_argument("--timeout",
                        dest="TIMEOUT",
                        help=f"Per-request timeout in seconds (default: {Constants.REQUEST_TIMEOUT})",
                        action="store",
                        type=float)
    parser.add_argument("--no-auth",
                        dest="NO_AUTH",
                        help="Do not resolve Bundler credentials for the gem server.",
                        action="store_true")

    parser.add_argument("-o", "--output",
                        dest="OUTPUT",
                        help="Path to JSON output file (default: stdout)",
                        action="store",
                        type=str)
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store",
                        type=str,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        default='INFO')
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store",
                        type=str)
    parser.add_argument("-q", "--quiet",
                        dest="QUIET",
                        help="Do not output to console.",
                        action="store_true")

    # Config file (general)
    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help="Path to configuration file (YAML)",
                        action="store",
                        type=str)

    return parser.parse_args(argv)
