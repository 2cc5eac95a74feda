import json

from runcost.models import DAYS_PER_MONTH, AggregateResult, OSClass, RunCost, UsageSource

_OS_NAMES: "dict[OSClass, str]" = {
    OSClass.LINUX: "Linux",
    OSClass.WINDOWS: "Windows",
    OSClass.MACOS: "macOS",
}

_RULE = "-" * 60


def format_cost(cost: "float") -> "str":
    return f"${cost:.4f}"


def format_minutes(minutes: "float") -> "str":
    return f"{minutes:.2f} min"


def render_run(run_cost: "RunCost") -> "str":
    """
    renders one run with its per OS minutes and cost. Runs that
    could not be analyzed get a single line.
    """
    run = run_cost.run
    breakdown = run_cost.breakdown
    if breakdown is None:
        return f"Run #{run.run_number}: {run.name} - no timing or job data available"

    if run_cost.source is UsageSource.BILLABLE:
        source = f"billable timing ({run_cost.job_count} jobs)"
    else:
        source = f"job timestamps, timing data not available ({run_cost.job_count} jobs)"

    lines = [
        f"Run #{run.run_number}: {run.name}",
        f"  ID: {run.id}",
        f"  Status: {run.conclusion}",
        f"  Date: {run.created_at.date().isoformat()}",
        f"  Source: {source}",
    ]
    for os_class in OSClass:
        minutes = breakdown.minutes(os_class)
        if minutes > 0:
            lines.append(
                f"  {_OS_NAMES[os_class]}: {format_minutes(minutes)}"
                f" -> {format_cost(breakdown.cost(os_class))}"
            )
    lines.append(f"  Total Cost: {format_cost(breakdown.total)}")
    return "\n".join(lines)


def render_runs(result: "AggregateResult") -> "str":
    return "\n\n".join(render_run(run_cost) for run_cost in result.runs)


def render_summary(result: "AggregateResult") -> "str":
    """
    renders a plain text summary of an aggregate, listing only
    the OS classes that used any minutes.
    """
    lines = [
        _RULE,
        f"SUMMARY {result.repository} (last {result.days_analyzed} days)",
        _RULE,
        f"Analyzed runs: {result.analyzed_runs}/{result.total_runs}",
    ]

    for os_class in OSClass:
        minutes = result.minutes_for(os_class)
        if minutes > 0:
            projected = result.projected_minutes(os_class, DAYS_PER_MONTH)
            lines.append(
                f"Total {_OS_NAMES[os_class]} minutes: {format_minutes(minutes)}"
                f" (~{format_minutes(projected)} per month)"
            )

    lines.extend(
        [
            "",
            f"Total Cost: {format_cost(result.actual_cost)}",
            f"Monthly Cost: {format_cost(result.monthly_cost)}",
            f"Yearly Cost: {format_cost(result.yearly_cost)}",
            _RULE,
            "Note: GitHub Actions usage in public repositories is free; these are",
            "the theoretical costs if this repository were private.",
        ]
    )

    if result.analyzed_runs == 0:
        lines.extend(
            [
                "",
                "No run could be analyzed. This is expected for repositories",
                "without completed runs in the window or without API access.",
                "Set the GITHUB_TOKEN environment variable for authenticated requests.",
            ]
        )

    return "\n".join(lines)


def render_json(result: "AggregateResult") -> "str":
    return json.dumps(result.to_dict(), indent=2)
