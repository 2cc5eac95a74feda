import argparse

from runcost.config import Config


def _positive_int(value: "str") -> "int":
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {value!r}")
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {number}")
    return number


def parse_args(argv: "list[str] | None" = None) -> "Config":
    parser = argparse.ArgumentParser(
        prog="runcost",
        description=(
            "Estimate what GitHub Actions usage of a public repository "
            "would cost as a private repository"
        ),
    )
    parser.add_argument(
        "repositories",
        nargs="*",
        metavar="owner/repo",
        help="Repositories to analyze (default: $RUNCOST_REPOSITORIES)",
    )
    parser.add_argument(
        "--days",
        type=_positive_int,
        default=7,
        help="Number of days of workflow runs to sample (default: 7)",
    )
    parser.add_argument(
        "--concurrency",
        type=_positive_int,
        default=10,
        help="Maximum number of runs fetched concurrently (default: 10)",
    )
    parser.add_argument(
        "--runs",
        dest="show_runs",
        action="store_true",
        help="List every analyzed run before the summary",
    )
    parser.add_argument(
        "--output",
        default="text",
        choices=["text", "json"],
        help="Report format (default: text)",
    )
    parser.add_argument(
        "--serve",
        action="store_true",
        help="Expose estimates as Prometheus metrics and recalculate periodically",
    )
    parser.add_argument(
        "--web.listen-address",
        dest="listen_address",
        default=":9186",
        help="Address to listen on with --serve (default: :9186)",
    )
    parser.add_argument(
        "--scrape.interval",
        dest="scrape_interval",
        type=_positive_int,
        default=3600,
        help="Recalculation interval in seconds with --serve (default: 3600)",
    )
    parser.add_argument(
        "--log.level",
        dest="log_level",
        default="info",
        choices=["debug", "info", "warning", "error"],
        help="Log level (default: info)",
    )
    parser.add_argument(
        "--log.format",
        dest="log_format",
        default="console",
        choices=["console", "json"],
        help="Log format (default: console)",
    )

    args = parser.parse_args(argv)
    config = Config.from_env()
    if args.repositories:
        config.repositories = args.repositories
    config.days = args.days
    config.concurrency = args.concurrency
    config.show_runs = args.show_runs
    config.output = args.output
    config.serve = args.serve
    config.listen_address = args.listen_address
    config.scrape_interval = args.scrape_interval
    # results must not outlive a recalculation cycle
    config.cache_ttl = min(config.cache_ttl, args.scrape_interval)
    config.log_level = args.log_level
    config.log_format = args.log_format
    return config
