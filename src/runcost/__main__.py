import asyncio
import signal

import structlog
from prometheus_client import start_http_server

from runcost.calculator import Calculator
from runcost.cli import parse_args
from runcost.config import Config
from runcost.logging import setup_logging
from runcost.metrics import MetricsUpdater
from runcost.provider.github import GitHubProvider
from runcost.report import render_json, render_runs, render_summary
from runcost.store import ResultStore, Status

logger = structlog.get_logger()


def _parse_listen_address(addr: "str") -> "tuple[str, int]":
    """
    parses listen address in format ':9186' or '0.0.0.0:9186'.
    """
    if addr.startswith(":"):
        return ("0.0.0.0", int(addr[1:]))

    host, port = addr.rsplit(":", 1)
    return (host, int(port))


async def _report(
    calculator: "Calculator",
    repositories: "list[str]",
    show_runs: "bool" = False,
    output: "str" = "text",
) -> "int":
    """
    calculates every repository once and prints its summary,
    preceded by every run when show_runs is set. json output
    always includes the runs. Returns the number of failed
    repositories.
    """
    failed = 0
    for slug in repositories:
        record = await calculator.calculate(slug)
        if record.status is Status.COMPLETED and record.result is not None:
            if output == "json":
                print(render_json(record.result))
                continue
            if show_runs and record.result.runs:
                print(render_runs(record.result))
                print()
            print(render_summary(record.result))
        else:
            failed += 1
            print(f"{slug}: Error - {record.error_message}")
    return failed


async def _serve(calculator: "Calculator", config: "Config") -> "None":
    loop = asyncio.get_running_loop()
    # for SIGINT and SIGTERM, signal the calculator
    # to stop gracefully
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, calculator.stop)

    await calculator.run(config.repositories, config.scrape_interval)


def main() -> "None":
    config = parse_args()
    setup_logging(config.log_level, config.log_format)

    if not config.repositories:
        raise SystemExit(
            "No repositories configured. Pass owner/repo arguments or set "
            "RUNCOST_REPOSITORIES environment variable."
        )

    if not config.authenticated:
        logger.warning("github_token_missing", hint="set GITHUB_TOKEN for higher rate limits")

    provider = GitHubProvider(token=config.github_token, base_url=config.github_api_url)
    calculator = Calculator(
        provider,
        ResultStore(),
        MetricsUpdater(),
        days=config.days,
        cache_ttl_seconds=config.cache_ttl,
        concurrency=config.concurrency,
    )

    if config.serve:
        host, port = _parse_listen_address(config.listen_address)
        start_http_server(port, addr=host)
        logger.info("metrics_server_started", host=host, port=port)

    async def _run() -> "int":
        try:
            if config.serve:
                await _serve(calculator, config)
                return 0
            return await _report(
                calculator,
                config.repositories,
                show_runs=config.show_runs,
                output=config.output,
            )
        finally:
            logger.info("shutting_down")
            await calculator.close()
            logger.info("shutdown_complete")

    failed = asyncio.run(_run())
    if failed:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
