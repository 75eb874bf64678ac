"""Contains utility functions for GitHub interactions."""


def split_repository(repo: str) -> tuple[str, str]:
    """Splits an 'owner/repo' string into owner and repository."""
    repo = repo.strip("/")
    parts = repo.split("/")
    if len(parts) != 2 or not all(parts):
        raise ValueError("Repository must be in the format 'owner/repo' with no leading/trailing slashes or extra parts.")
    owner, repository = parts
    return owner, repository


def web_base_url_for_api(github_api_url: str) -> str:
    """Derive the GitHub web base URL from a REST API base URL.

    e.g., "https://api.github.com" -> "https://github.com"
    or "https://github.example.com/api/v3" -> "https://github.example.com"
    """
    github_api_url = github_api_url.rstrip("/")
    if "api.github.com" in github_api_url:
        return "https://github.com"
    # For GitHub Enterprise, remove /api/v3 suffix
    return github_api_url.replace("/api/v3", "").replace("/api", "")


def issue_web_url(github_api_url: str, owner: str, repository: str, issue_number: int) -> str:
    """Build the browser URL of an issue."""
    return f"{web_base_url_for_api(github_api_url)}/{owner}/{repository}/issues/{issue_number}"
