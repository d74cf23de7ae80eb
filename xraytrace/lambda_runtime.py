"""Serverless (AWS Lambda) host integration."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

from xraytrace.config import DEFAULT_TRACE_HEADER_ENV
from xraytrace.context.header import Header, parse_header
from xraytrace.errors import HeaderParseError

logger = logging.getLogger(__name__)

TASK_ROOT_ENV = "LAMBDA_TASK_ROOT"
MARKER_DIR = "/tmp/.aws-xray"
MARKER_FILE = "initialized"


def task_root_present() -> bool:
    return TASK_ROOT_ENV in os.environ


def inbound_header(env_var: str = DEFAULT_TRACE_HEADER_ENV) -> Optional[Header]:
    """
    Trace header the host set for the current invocation.

    Read on every call: the host replaces it for each invocation.
    Returns None when the variable is unset or does not parse.
    """
    value = os.environ.get(env_var)
    if not value:
        return None
    try:
        return parse_header(value)
    except HeaderParseError as e:
        logger.debug("ignoring unparsable `%s`: %s", env_var, e)
        return None


def initialize(marker_dir: str = MARKER_DIR) -> bool:
    """
    Tell the host the SDK is in use by creating its marker file.

    Returns:
        True if the marker was written, False when not running in the host
    """
    if not task_root_present():
        return False
    directory = Path(marker_dir)
    directory.mkdir(parents=True, exist_ok=True)
    (directory / MARKER_FILE).touch()
    logger.debug("created lambda marker file in %s", directory)
    return True
