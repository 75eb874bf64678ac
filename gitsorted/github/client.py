"""Sets up the authenticated githubkit client."""

from githubkit import GitHub
from githubkit.auth import TokenAuthStrategy


def get_github_client(github_token: str, github_api_url: str, timeout: float) -> GitHub[TokenAuthStrategy]:
    """Returns an authenticated GitHub client using a personal access token.

    Supports custom base URL for GitHub Enterprise Server (GHES). Every request
    made through the client is bounded by ``timeout`` seconds.
    """
    if not github_token:
        raise RuntimeError("GitHub authentication requires github_token in config.")
    # Disable HTTP caching to always get fresh data
    return GitHub(auth=TokenAuthStrategy(github_token), base_url=github_api_url, http_cache=False, timeout=timeout)
