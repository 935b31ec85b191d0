"""
Errors raised by the feed client.
"""
from typing import Hashable, Optional


class FetchFailed(Exception):
    """
    An upstream fetch failed.

    Network errors, non-2xx responses and malformed payloads all end up here.
    The original error is kept as ``cause`` and chained via ``__cause__``.
    """

    def __init__(
        self,
        resource: str,
        key: Optional[Hashable] = None,
        cause: Optional[BaseException] = None,
    ):
        self.resource = resource
        self.key = key
        self.cause = cause
        target = resource if key is None else f"{resource} {key}"
        message = f"Failed to fetch {target}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
