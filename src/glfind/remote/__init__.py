"""Remote catalog sources."""

from glfind.remote.base import FlagName, RemoteSource
from glfind.remote.gitlab import GitLabClient

__all__ = ["FlagName", "GitLabClient", "RemoteSource"]
