"""Resolve the project URL for a local git checkout.

The ``origin`` remote is read with pygit2 and parsed into a host and a
project path. Remotes on the configured GitLab host open there; remotes on
a well-known public host open on that host.
"""

from __future__ import annotations

from pathlib import Path
from urllib.parse import urlsplit

import pygit2
import structlog

from glfind.core.errors import RepoError

logger = structlog.get_logger()

PUBLIC_HOSTS = {
    "github.com": "https://github.com",
    "gitlab.com": "https://gitlab.com",
    "bitbucket.org": "https://bitbucket.org",
}


def origin_url(directory: Path) -> str:
    """URL of the ``origin`` remote of the repository containing ``directory``.

    Raises:
        RepoError: If there is no repository or it has no ``origin``.
    """
    found = pygit2.discover_repository(str(directory))
    if found is None:
        raise RepoError.not_found(str(directory))
    try:
        repo = pygit2.Repository(found)
    except pygit2.GitError as e:
        raise RepoError.not_found(str(directory)) from e
    if "origin" not in [r.name for r in repo.remotes]:
        raise RepoError.no_origin(str(directory))
    return str(repo.remotes["origin"].url)


def split_remote_url(remote_url: str) -> tuple[str, str]:
    """Split a git remote URL into ``(host, project_path)``.

    Accepts ``ssh://[git@]host[:port]/path``, scp-style ``git@host:path``
    and ``http(s)://host[:port]/path``. A trailing ``.git`` is dropped; the
    host keeps its port.
    """
    if remote_url.startswith("ssh://"):
        rest = remote_url.removeprefix("ssh://").removeprefix("git@")
        host, sep, path = rest.partition("/")
        if not sep:
            raise RepoError.unsupported_remote(remote_url)
    elif remote_url.startswith("git@"):
        host, sep, path = remote_url.removeprefix("git@").partition(":")
        if not sep:
            raise RepoError.unsupported_remote(remote_url)
    elif remote_url.startswith(("https://", "http://")):
        parts = urlsplit(remote_url)
        host, path = parts.netloc.rpartition("@")[2], parts.path
    else:
        raise RepoError.unsupported_remote(remote_url)

    path = path.strip("/").removesuffix(".git")
    if not host or not path:
        raise RepoError.unsupported_remote(remote_url)
    return host, path


def project_url_for_remote(remote_url: str, gitlab_url: str) -> str:
    """Browser URL for ``remote_url``.

    Hosts are compared with and without port, so an SSH remote on another
    port than the web UI still matches the configured GitLab.

    Raises:
        RepoError: For unsupported remotes and unknown hosts.
    """
    host, path = split_remote_url(remote_url)
    gitlab_url = gitlab_url.rstrip("/")
    gitlab_host = urlsplit(gitlab_url).netloc if gitlab_url else ""

    hostname = host.partition(":")[0]
    if gitlab_host and (host == gitlab_host or hostname == gitlab_host.partition(":")[0]):
        base = gitlab_url
    elif hostname in PUBLIC_HOSTS:
        base = PUBLIC_HOSTS[hostname]
    else:
        raise RepoError.unknown_host(host, gitlab_host)
    logger.debug("checkout_resolved", remote=remote_url, base=base, path=path)
    return f"{base}/{path}"
