"""Bundler credential support.

This package resolves gem source credentials the way Bundler does:
- config_file.py: reading ``.bundle/config`` files
- credentials.py: credential values, host lookup keys, environment lookup
- resolver.py: local config > environment > global config resolution
"""

from .config_file import global_config_path, parse_bundle_config, read_config_file, trim_quotes
from .credentials import Credentials, credentials_from_env, host_to_env_key, parse_credential_value
from .resolver import ConfigStore, CredentialResolver, credentials_for, default_resolver

__all__ = [
    # Config files
    "global_config_path",
    "parse_bundle_config",
    "read_config_file",
    "trim_quotes",
    # Credential values
    "Credentials",
    "credentials_from_env",
    "host_to_env_key",
    "parse_credential_value",
    # Resolution
    "ConfigStore",
    "CredentialResolver",
    "credentials_for",
    "default_resolver",
]
