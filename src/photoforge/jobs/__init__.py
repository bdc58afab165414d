"""Remote job polling."""

from .poller import JobPoller, PollPolicy

__all__ = ["JobPoller", "PollPolicy"]
