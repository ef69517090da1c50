from __future__ import annotations

import logging
import sys
import typing as t

import click

from singer_protocol.exceptions import ConfigValidationError, IoFailure

logger = logging.getLogger("singer_protocol.cli")


class SingerCommand(click.Command):
    """Custom click command class for Singer protocol tools."""

    def invoke(self, ctx: click.Context) -> t.Any:  # noqa: ANN401
        """Invoke the command, capturing warnings and logging them.

        Configuration and I/O failures are logged and end the process with exit
        code 1.

        Args:
            ctx: The `click` context.

        Returns:
            The result of the command invocation.
        """
        logging.captureWarnings(True)  # noqa: FBT003
        try:
            return super().invoke(ctx)
        except ConfigValidationError as exc:
            for error in exc.errors:
                logger.error("Config validation error: %s", error)  # noqa: TRY400
            sys.exit(1)
        except FileNotFoundError as exc:
            logger.error("%s", exc)  # noqa: TRY400
            sys.exit(1)
        except IoFailure as exc:
            logger.error("I/O failure: %s", exc)  # noqa: TRY400
            sys.exit(1)
