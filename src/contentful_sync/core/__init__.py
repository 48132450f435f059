"""Store access shared by the sync engine and the CLI."""

from .async_utils import run_sync
from .client import REMOTE_FAILURES, ContentfulClient, StoreError
from .store import ContentStore

__all__ = [
    "REMOTE_FAILURES",
    "ContentStore",
    "ContentfulClient",
    "StoreError",
    "run_sync",
]
