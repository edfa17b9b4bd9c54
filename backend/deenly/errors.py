"""Domain errors shared by services and routers."""


class ThreadNotFound(LookupError):
    """No message in the log has the given thread id as its id."""

    def __init__(self, thread_id: str):
        super().__init__(f"Thread {thread_id!r} not found")
        self.thread_id = thread_id


class StoreError(Exception):
    """A message or memory store call failed; local state was not changed."""


class StoreUnavailable(StoreError):
    """The store could not be reached."""


class ResponderError(Exception):
    def __init__(self, message: str, is_connectivity: bool = False):
        super().__init__(message)
        self.is_connectivity = is_connectivity


class LimitReached(Exception):
    """Free tier daily question limit hit. A policy signal, not a failure."""

    def __init__(self, limit: int):
        super().__init__(f"Daily limit of {limit} questions reached")
        self.limit = limit


class ConcurrentRequest(Exception):
    """A response is already being generated for this session."""
