"""Remote repository clients for the hosting platform.

Public API
----------
RemoteRepositoryClient
    Protocol implemented by every backend.
GhCliClient
    Backend that drives the ``gh`` command-line tool.
GitHubRestClient
    Backend that calls the REST API directly over HTTPS.
"""

from repoflip.remote.gh_cli import GH_EXECUTABLE, GhCliClient
from repoflip.remote.protocol import RemoteRepositoryClient
from repoflip.remote.rest import GitHubRestClient, RestClientConfig

__all__ = [
    "GH_EXECUTABLE",
    "GhCliClient",
    "GitHubRestClient",
    "RemoteRepositoryClient",
    "RestClientConfig",
]
