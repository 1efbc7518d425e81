"""Logging for the infraflow CLI.

Services log through stdlib loggers under the ``infraflow`` tree
(``logging.getLogger(__name__)``); structlog's ProcessorFormatter renders
those records on stderr so stdout carries only command results.

- Console (default): ``level [logger] event`` lines, colored on a tty.
- ``--log-json``: one JSON object per record, with an ISO timestamp, for
  piping into log collectors.
"""

from __future__ import annotations

import logging
import sys

import structlog

PACKAGE_LOGGER = "infraflow"


def level_for(*, verbose: bool = False, quiet: bool = False) -> int:
    """Map the global ``-v`` / ``-q`` flags to the package log level.

    ``-v`` wins over ``-q``. Without either, detection and diff debug
    traces stay hidden and only warnings surface.
    """
    if verbose:
        return logging.DEBUG
    if quiet:
        return logging.ERROR
    return logging.WARNING


def _pre_chain(log_json: bool) -> list[structlog.types.Processor]:
    chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
    ]
    if log_json:
        chain.append(structlog.processors.TimeStamper(fmt="iso"))
    chain.append(structlog.processors.UnicodeDecoder())
    return chain


def _renderer(log_json: bool) -> structlog.types.Processor:
    if log_json:
        # Component labels are often Korean; keep them readable.
        return structlog.processors.JSONRenderer(ensure_ascii=False)
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def configure_logging(
    *,
    verbose: bool = False,
    quiet: bool = False,
    log_json: bool = False,
) -> None:
    """Route ``infraflow`` records to stderr at the level the flags ask for.

    Called once per CLI invocation; repeated calls replace the stderr
    handler instead of stacking another one. Other libraries' loggers
    stay at WARNING.
    """
    pre_chain = _pre_chain(log_json)
    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(log_json),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(logging.WARNING)

    logging.getLogger(PACKAGE_LOGGER).setLevel(level_for(verbose=verbose, quiet=quiet))
