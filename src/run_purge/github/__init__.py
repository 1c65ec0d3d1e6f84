from .client import GitHubActionsClient

__all__ = ["GitHubActionsClient"]
