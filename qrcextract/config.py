"""Defaults and environment overrides for extraction."""
import os
import stat

# Environment variables understood by the CLI
ENV_OUTPUT_BASE = 'QTEXTRACT_BASE'
ENV_ROOT_NAME = 'QTEXTRACT_ROOT_NAME'

DEFAULT_ROOT_NAME = '__root__'
DEFAULT_OUTPUT_BASE = '.'

# PATH_MAX on Linux
MAX_PATH_LENGTH = 4096

DIRECTORY_MODE = stat.S_IRWXU

SUPPORTED_VERSIONS = (1, 2)


def output_base(cli_value=None, environ=None):
    """Resolve the output base: CLI argument, then QTEXTRACT_BASE, then cwd."""
    if cli_value:
        return cli_value
    environ = os.environ if environ is None else environ
    return environ.get(ENV_OUTPUT_BASE) or DEFAULT_OUTPUT_BASE


def root_name(cli_value=None, environ=None):
    if cli_value:
        return cli_value
    environ = os.environ if environ is None else environ
    return environ.get(ENV_ROOT_NAME) or DEFAULT_ROOT_NAME
