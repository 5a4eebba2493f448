"""gemfetch - RubyGems metadata fetcher with Bundler credential support

    Returns:
        int: Exit code
"""
import sys
import logging
import json
import os
from dataclasses import replace

from constants import ExitCodes
from common.logging_utils import configure_logging, extra_context, is_debug_enabled
from args import parse_args
from cli_config import build_client_config, load_settings
from bundler import CredentialResolver
from registry.rubygems import GemFetchError, GemInfoRequest, RubyGemsClient


def parse_gem_token(token):
    """Split a ``NAME[:VERSION]`` token on its rightmost colon.

    Args:
        token (str): CLI or list-file token.

    Returns:
        GemInfoRequest: Request with version None when no version is given,
        or None when the token carries no gem name (e.g. ``:7``).
    """
    token = token.strip()
    name, sep, version = token.rpartition(":")
    if not sep:
        name, version = token, ""
    name = name.strip()
    if not name:
        logging.warning("Skipping gem token without a name: %r", token)
        return None
    version = version.strip()
    return GemInfoRequest(name=name, version=version or None)


def _parse_tokens(tokens):
    reqs = (parse_gem_token(tok) for tok in tokens)
    return [r for r in reqs if r is not None]


def load_gems_file(file_name):
    """Loads the gems from a file, one token per line.

    Blank lines and ``#`` comments are ignored.

    Args:
        file_name (str): File path containing the list of gems.

    Returns:
        list: List of GemInfoRequest
    """
    try:
        with open(file_name, encoding='utf-8') as file:
            lines = [line.strip() for line in file]
    except FileNotFoundError as e:
        logging.error("File not found: %s, aborting", e)
        sys.exit(ExitCodes.FILE_ERROR.value)
    except IOError as e:
        logging.error("IO error: %s, aborting", e)
        sys.exit(ExitCodes.FILE_ERROR.value)
    return _parse_tokens(line for line in lines if line and not line.startswith("#"))


def build_requests(args):
    """Build the ordered, de-duplicated request list from CLI inputs."""
    if args.LIST_FROM_FILE:
        reqs = load_gems_file(args.LIST_FROM_FILE)
    else:
        reqs = _parse_tokens(tok for tok in args.GEMS or [] if tok.strip())
    return list(dict.fromkeys(reqs))


def export_json(data, path=None):
    """Writes results as JSON to ``path``, or to stdout when no path is given.

    Args:
        data (object): JSON-serializable results.
        path (str, optional): Output file path.
    """
    if not path:
        json.dump(data, sys.stdout, ensure_ascii=False, indent=4)
        sys.stdout.write("\n")
        return
    try:
        with open(path, 'w', encoding='utf-8') as file:
            json.dump(data, file, ensure_ascii=False, indent=4)
        logging.info("JSON file has been successfully exported at: %s", path)
    except OSError as e:
        logging.error("JSON file couldn't be written to disk: %s", e)
        sys.exit(ExitCodes.FILE_ERROR.value)


def result_to_dict(result):
    """Serialize a GemInfoResult for JSON output."""
    return {
        "request": {"name": result.request.name, "version": result.request.version},
        "info": result.info.to_dict() if result.info is not None else None,
        "error": str(result.error) if result.error is not None else None,
    }


def setup_logging(args):
    """Configure logging from --loglevel and --logfile.

    Returns:
        list: Handlers added for this run; pass them to ``teardown_logging``.
    """
    if getattr(args, "LOG_LEVEL", None):
        os.environ['GEMFETCH_LOG_LEVEL'] = str(args.LOG_LEVEL).upper()
    configure_logging()
    try:
        _level_name = str(args.LOG_LEVEL).upper()
        logging.getLogger().setLevel(getattr(logging, _level_name, logging.INFO))
    except (ValueError, AttributeError, TypeError):
        pass

    added = []
    log_file = getattr(args, "LOG_FILE", None)
    if log_file:
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
        logging.getLogger().addHandler(file_handler)
        added.append(file_handler)
    return added


def teardown_logging(handlers):
    """Detach and close handlers returned by ``setup_logging``."""
    root = logging.getLogger()
    for handler in handlers:
        root.removeHandler(handler)
        handler.close()


def create_client(args):
    """Build the registry client from settings, CLI overrides and credentials.

    Raises:
        ValueError: The configured gem server URL is not an http(s) URL.
    """
    config = build_client_config(args, load_settings(getattr(args, "CONFIG", None)))
    if not getattr(args, "NO_AUTH", False):
        creds = CredentialResolver().resolve(config.host)
        if creds is not None:
            logging.info("Using %s credentials for %s.", "token" if creds.is_token else "basic-auth", config.host)
            config = replace(config, credentials=creds)
    return RubyGemsClient(config)


def run(args):
    """Run one CLI invocation; always ends in ``sys.exit``."""
    logger = logging.getLogger(__name__)

    if is_debug_enabled(logger):
        logger.debug(
            "CLI start",
            extra=extra_context(event="function_entry", component="cli", action="main")
        )

    try:
        client = create_client(args)
    except ValueError as e:
        logging.error("Invalid configuration: %s", e)
        sys.exit(ExitCodes.CONFIG_ERROR.value)

    with client:
        if args.VERSIONS:
            try:
                versions = client.get_gem_versions(args.VERSIONS)
            except GemFetchError as e:
                logging.error("Couldn't fetch versions for %s: %s", args.VERSIONS, e)
                # A status code means the server answered; no code means it was never reached.
                if e.status_code is not None:
                    sys.exit(ExitCodes.REGISTRY_ERROR.value)
                sys.exit(ExitCodes.CONNECTION_ERROR.value)
            if not args.QUIET or args.OUTPUT:
                export_json({"name": args.VERSIONS, "versions": versions}, args.OUTPUT)
            sys.exit(ExitCodes.SUCCESS.value)

        reqs = build_requests(args)
        if not reqs:
            logging.warning("No gems found in the input list.")
            sys.exit(ExitCodes.SUCCESS.value)

        results = client.get_multiple_gem_info(reqs)

    if not args.QUIET or args.OUTPUT:
        export_json([result_to_dict(r) for r in results], args.OUTPUT)

    failed = [r for r in results if r.error is not None]
    if failed:
        logging.warning("%d of %d gem(s) could not be fetched.", len(failed), len(results))
        sys.exit(ExitCodes.PARTIAL_FAILURE.value)
    sys.exit(ExitCodes.SUCCESS.value)


def main(argv=None):
    """Main function of the program."""
    args = parse_args(argv)
    handlers = setup_logging(args)
    try:
        run(args)
    finally:
        teardown_logging(handlers)


if __name__ == "__main__":
    main()
