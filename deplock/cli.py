"""
``deplock`` command group.

The group callback applies the global options (color, verbosity, config
file) and stores a :class:`DepLockContext` for the subcommands; :func:`main`
is the console-script entry point and turns every outcome into an exit code.
"""

from __future__ import annotations

import os
import sys
import logging
from pathlib import Path
from typing import Optional

import click

from deplock.config import load_config
from deplock.__version__ import __version__
from deplock.context import DepLockContext
from deplock.exceptions import ConfigError, DepLockError
from deplock.utils.logger import get_logger, setup_logging, verbosity_to_level
from deplock.utils.console import print_error, print_warning, reconfigure_console
from deplock.commands.lock import lock, verify
from deplock.commands.resolve import resolve

logger = get_logger("cli")

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_INTERRUPTED = 130


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--config",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    envvar="DEPLOCK_CONFIG",
    help="Configuration file (default: ./deplock.toml or [tool.deplock] in ./pyproject.toml).",
)
@click.option("--verbose", "-v", count=True, help="-v for progress, -vv for debug output.")
@click.option(
    "--color/--no-color",
    default=True,
    envvar="DEPLOCK_COLOR",
    help="Colored output (NO_COLOR is honored too).",
)
@click.version_option(__version__, prog_name="deplock", message="%(prog)s %(version)s")
@click.pass_context
def cli(ctx: click.Context, config: Optional[Path], verbose: int, color: bool) -> None:
    """deplock: resolve Python requirements and freeze them into a lock file.

    \b
    Examples:
      deplock resolve "requests>=2.28"
      deplock lock -r requirements.txt -c constraints.txt
      deplock -v verify deplock.lock.json
    """
    if not color:
        os.environ["NO_COLOR"] = "1"
    reconfigure_console()

    level = verbosity_to_level(verbose)
    setup_logging(level=level, verbose=verbose >= 2)

    try:
        settings = load_config(config)
    except ConfigError as exc:
        print_error(str(exc))
        raise SystemExit(EXIT_ERROR) from exc

    ctx.obj = DepLockContext(
        settings,
        config_path=config or settings.source_path,
        verbose=verbose,
        color=color,
    )
    logger.debug(
        "deplock %s, log level %s, config %s: %s",
        __version__,
        logging.getLevelName(level),
        ctx.obj.config_path or "<defaults>",
        settings.to_log_dict(),
    )


cli.add_command(resolve)
cli.add_command(lock)
cli.add_command(verify)


def main() -> int:
    """Run the CLI and return its exit code.

    0 on success, 1 on any error, 2 on usage errors and 130 when the user
    interrupts.
    """
    try:
        cli(standalone_mode=False)
    except (click.exceptions.Abort, KeyboardInterrupt):
        print_warning("Interrupted")
        return EXIT_INTERRUPTED
    except click.ClickException as exc:
        exc.show()
        return exc.exit_code
    except SystemExit as exc:
        return exc.code if isinstance(exc.code, int) else EXIT_ERROR
    except DepLockError as exc:
        print_error(str(exc))
        logger.debug("%s raised", type(exc).__name__, exc_info=True)
        return EXIT_ERROR
    except Exception as exc:
        print_error(f"Unexpected error: {exc}")
        logger.exception("Unhandled exception")
        return EXIT_ERROR
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
