from rolloutscorer.clients.azure_devops import AzureDevOpsClient
from rolloutscorer.clients.base import PermanentHTTPError, RetryableHTTPError
from rolloutscorer.clients.github import GitHubClient

__all__ = ["AzureDevOpsClient", "GitHubClient", "PermanentHTTPError", "RetryableHTTPError"]
