"""Remote search index clients."""

from indexsync.platform.destinations._base import BaseIndexClient, RemoteIndex
from indexsync.platform.destinations.orama import OramaIndexClient

__all__ = ["BaseIndexClient", "OramaIndexClient", "RemoteIndex"]
