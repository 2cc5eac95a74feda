class RunCostError(Exception):
    """
    RunCostError is the base class of all errors raised
    by runcost.
    """


class InvalidWindowError(RunCostError):
    """
    raised when the sampling window is not a positive
    number of days, making extrapolation meaningless.
    """

    def __init__(self, days: "int") -> "None":
        super().__init__(f"Sampling window must be a positive number of days, got {days}")
        self.days = days


class InvalidRepositoryError(RunCostError):
    def __init__(self, slug: "str") -> "None":
        super().__init__("Invalid repository format. Use: owner/repo")
        self.slug = slug


class ProviderError(RunCostError):
    """
    ProviderError is raised by run providers for failures
    that are not plain transport errors.
    """


class UsageNotAvailableError(ProviderError):
    """
    raised when the provider does not track billable time
    for a run, which is the common case for public repositories.
    """

    def __init__(self, run_id: "int") -> "None":
        super().__init__(f"Timing data not available for run {run_id}")
        self.run_id = run_id


class RateLimitError(ProviderError):
    def __init__(self, reset_at: "int | None") -> "None":
        super().__init__(f"API rate limit exceeded, resets at {reset_at}")
        # unix timestamp, None when the provider did not send one
        self.reset_at = reset_at
