"""CLI interface for querywait"""

import functools
import logging
from pathlib import Path
from typing import Any, Optional, Tuple

import click

from querywait import __version__
from querywait.application.outcome import ExitCode, exit_code_for_error, exit_code_for_result
from querywait.application.query_waiter import QueryWaiter
from querywait.domain.config import BackoffPolicy, build_backoff_policy
from querywait.domain.duration import parse_duration
from querywait.domain.errors import InvalidConditionError
from querywait.domain.models.condition import parse_condition
from querywait.domain.models.wait_spec import QueryOptions, WaitSpec
from querywait.infrastructure.config.config_manager import ConfigManager
from querywait.infrastructure.output.renderer import FORMATS, ResultRenderer
from querywait.infrastructure.query.factory import QueryExecutorFactory
from querywait.infrastructure.template import parse_set_flags, render_template

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Setup logging configuration"""
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )
    logging.getLogger().setLevel(level)
    for logger_name in logging.Logger.manager.loggerDict:
        logging.getLogger(logger_name).setLevel(level)


class WaitCommandError(click.ClickException):
    """ClickException carrying a wait exit code"""

    def __init__(self, message: str, exit_code: int = ExitCode.INVALID_ARGUMENTS):
        super().__init__(message)
        self.exit_code = int(exit_code)


def _die(
    message: str,
    verbose: bool = False,
    exc: Optional[Exception] = None,
    exit_code: int = ExitCode.INVALID_ARGUMENTS,
) -> None:
    """Exit with a user-friendly error message and the given exit code"""
    if exc is not None:
        logger.error(message, exc_info=verbose)
    else:
        logger.error(message)
    raise WaitCommandError(message, exit_code)


def _usage_error(message: str, ctx: Optional[click.Context] = None) -> None:
    error = click.UsageError(message, ctx)
    error.exit_code = int(ExitCode.INVALID_ARGUMENTS)
    raise error


class _ArgumentsExitCode:
    """Report click usage errors with the invalid-arguments exit code"""

    def make_context(self, info_name, args, parent=None, **extra):
        try:
            return super().make_context(info_name, args, parent=parent, **extra)
        except click.UsageError as e:
            e.exit_code = int(ExitCode.INVALID_ARGUMENTS)
            raise


class WaitCommand(_ArgumentsExitCode, click.Command):
    pass


class WaitGroup(_ArgumentsExitCode, click.Group):
    command_class = WaitCommand
    group_class = type

    def resolve_command(self, ctx, args):
        try:
            return super().resolve_command(ctx, args)
        except click.UsageError as e:
            e.exit_code = int(ExitCode.INVALID_ARGUMENTS)
            raise


class DurationParamType(click.ParamType):
    """Duration such as 500ms, 5s, 2m or 1h30m (bare numbers are seconds)"""

    name = "duration"

    def convert(self, value: Any, param, ctx) -> float:
        if isinstance(value, float):
            return value
        try:
            return parse_duration(value)
        except ValueError as e:
            self.fail(str(e), param, ctx)


DURATION = DurationParamType()


def read_query(query: Optional[str], query_file, set_flags: Tuple[str, ...]) -> str:
    """Resolve the query text from argument or file and render --set variables

    Args:
        query: Inline query argument
        query_file: Open file (or stdin) passed with --file
        set_flags: key=value template variables

    Returns:
        Query text ready to execute

    Raises:
        click.UsageError: If neither or both of query and --file are given
        TemplateError: If a variable or placeholder is malformed
    """
    if query is not None and query_file is not None:
        _usage_error("provide either a query string or --file, not both")
    if query_file is not None:
        text = query_file.read()
    elif query is not None:
        text = query
    else:
        _usage_error("query string or --file is required")

    if not text.strip():
        _usage_error("query cannot be empty")
    if set_flags:
        text = render_template(text, parse_set_flags(set_flags))
    return text


def _build_backoff(
    defaults: BackoffPolicy,
    initial_delay: Optional[float],
    min_interval: Optional[float],
    max_interval: Optional[float],
    backoff_multiplier: Optional[float],
) -> BackoffPolicy:
    """Overlay CLI backoff flags on the configured policy"""
    values = defaults.model_dump()
    overrides = {
        "initial_delay": initial_delay,
        "min_interval": min_interval,
        "max_interval": max_interval,
        "multiplier": backoff_multiplier,
    }
    values.update({k: v for k, v in overrides.items() if v is not None})
    return build_backoff_policy(**values)


@click.group(cls=WaitGroup)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose (DEBUG) logging")
@click.option(
    "--config",
    type=click.Path(exists=True, path_type=Path),
    help="Path to .querywait.yml config file",
)
@click.version_option(__version__, prog_name="querywait")
@click.pass_context
def cli(ctx, verbose: bool, config: Path):
    """querywait - wait until a query returns the records you expect"""
    ctx.ensure_object(dict)
    setup_logging(verbose)
    ctx.obj["config_path"] = config
    ctx.obj["verbose"] = verbose


@cli.group()
def wait():
    """Wait for specific conditions to be met.

    Useful in tests and pipelines that must verify data has arrived in an
    eventually consistent backend before proceeding.
    """


@wait.command("query")
@click.argument("query", required=False)
@click.option(
    "--file", "-f", "query_file",
    type=click.File("r", encoding="utf-8"),
    help="Read query from file (use - for stdin)",
)
@click.option("--set", "set_flags", multiple=True, metavar="KEY=VALUE", help="Set template variable")
@click.option(
    "--for", "condition_text",
    required=True,
    help="Condition to wait for: count=N, count-gte=N, count-gt=N, count-lte=N, count-lt=N, any, none",
)
@click.option("--timeout", type=DURATION, help="Maximum time to wait, 0 = unlimited [default: 5m]")
@click.option("--max-attempts", type=click.IntRange(min=0), help="Maximum number of attempts, 0 = unlimited [default: 0]")
@click.option("--initial-delay", type=DURATION, help="Delay before the first query attempt [default: 0s]")
@click.option("--min-interval", type=DURATION, help="Minimum interval between retries [default: 1s]")
@click.option("--max-interval", type=DURATION, help="Maximum interval between retries [default: 10s]")
@click.option("--backoff-multiplier", type=float, help="Backoff multiplier, must be > 1.0 [default: 2.0]")
@click.option("--quiet", "-q", is_flag=True, help="Suppress progress messages")
@click.option("--verbose", "-v", is_flag=True, help="Show detailed progress")
@click.option(
    "--output", "-o", "output_format",
    type=click.Choice(FORMATS, case_sensitive=False),
    help="Print the records in this format once the condition is met",
)
@click.option("--max-result-records", type=int, help="Maximum number of result records")
@click.option("--max-result-bytes", type=int, help="Maximum result size in bytes")
@click.option("--default-scan-limit-gbytes", type=float, help="Scan limit in gigabytes")
@click.option("--default-sampling-ratio", type=float, help="Default sampling ratio")
@click.option("--fetch-timeout-seconds", type=int, help="Time limit for fetching data in seconds")
@click.option("--default-timeframe-start", type=str, help="Query timeframe start (ISO-8601/RFC3339)")
@click.option("--default-timeframe-end", type=str, help="Query timeframe end (ISO-8601/RFC3339)")
@click.option("--locale", type=str, help="Query locale (e.g. en_US)")
@click.option("--timezone", type=str, help="Query timezone (e.g. UTC, Europe/Paris)")
@click.pass_context
def query(
    ctx,
    query: Optional[str],
    query_file,
    set_flags: Tuple[str, ...],
    condition_text: str,
    timeout: Optional[float],
    max_attempts: Optional[int],
    initial_delay: Optional[float],
    min_interval: Optional[float],
    max_interval: Optional[float],
    backoff_multiplier: Optional[float],
    quiet: bool,
    verbose: bool,
    output_format: Optional[str],
    max_result_records: Optional[int],
    max_result_bytes: Optional[int],
    default_scan_limit_gbytes: Optional[float],
    default_sampling_ratio: Optional[float],
    fetch_timeout_seconds: Optional[int],
    default_timeframe_start: Optional[str],
    default_timeframe_end: Optional[str],
    locale: Optional[str],
    timezone: Optional[str],
):
    """Wait for a query to meet a condition.

    Runs QUERY repeatedly, backing off exponentially between attempts, until
    the number of returned records satisfies --for, the timeout is reached
    or the attempt budget is used up.

    \b
    Exit codes:
      0  condition met
      1  timeout reached
      2  max attempts exceeded
      3  query execution error
      4  invalid condition syntax
      5  invalid arguments

    \b
    Examples:
      querywait wait query "fetch spans | filter test_id == 'test-123'" --for=count=1
      querywait wait query -f query.dql --set test_id=my-test --for=count-gte=1
      querywait wait query "..." --for=any --min-interval 500ms --max-interval 15s -o json
    """
    log_verbose = ctx.obj.get("verbose", False)
    if quiet and not log_verbose:
        setup_logging(verbose=False, quiet=True)

    try:
        condition = parse_condition(condition_text)
    except InvalidConditionError as e:
        _die(str(e), verbose=log_verbose, exit_code=ExitCode.INVALID_CONDITION)

    try:
        config_manager = ConfigManager(config_path=ctx.obj.get("config_path"))
        backoff = _build_backoff(
            config_manager.get_backoff_policy(), initial_delay, min_interval, max_interval, backoff_multiplier
        )
        wait_config = config_manager.get_wait_config()
        query_text = read_query(query, query_file, set_flags)

        spec = WaitSpec(
            query=query_text,
            condition=condition,
            timeout=wait_config.timeout if timeout is None else timeout,
            max_attempts=wait_config.max_attempts if max_attempts is None else max_attempts,
            backoff=backoff,
            query_options=QueryOptions(
                max_result_records=max_result_records,
                max_result_bytes=max_result_bytes,
                default_scan_limit_gbytes=default_scan_limit_gbytes,
                default_sampling_ratio=default_sampling_ratio,
                fetch_timeout_seconds=fetch_timeout_seconds,
                default_timeframe_start=default_timeframe_start,
                default_timeframe_end=default_timeframe_end,
                locale=locale,
                timezone=timezone,
            ),
            quiet=quiet,
            verbose=verbose,
        )

        output_format = output_format or config_manager.get_output_config().format
        renderer = ResultRenderer(output_format) if output_format else None

        client_config = config_manager.get_client_config()
        executor = QueryExecutorFactory.create(client_config.executor, config_manager.get_executor_config())
    except click.ClickException:
        raise
    except Exception as e:
        _die(str(e), verbose=log_verbose, exc=e, exit_code=exit_code_for_error(e))

    waiter = QueryWaiter(executor, spec, echo=functools.partial(click.echo, err=True))
    result = waiter.wait()

    if result.success and renderer is not None:
        renderer.render(result.last_payload or [])

    ctx.exit(int(exit_code_for_result(result)))


def main():
    """Main entry point"""
    cli(obj={})


if __name__ == "__main__":
    main()
