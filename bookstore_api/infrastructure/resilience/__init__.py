from bookstore_api.infrastructure.resilience.poller import PollTimeoutError, await_until

__all__ = ["PollTimeoutError", "await_until"]
