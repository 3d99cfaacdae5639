from typing import Optional


class StarsAnalyzerException(Exception):
    """Base exception for all stars-analyzer errors."""
    pass

class UserInputError(StarsAnalyzerException):
    """Raised when the request cannot be made from the given input (e.g. empty username)."""
    pass

class NotFoundError(StarsAnalyzerException):
    """Raised when GitHub answers 404 for the requested user or repository."""
    def __init__(self, target: str, message: str = "User not found. Please check the username."):
        self.target = target
        super().__init__(message)

class RateLimitError(StarsAnalyzerException):
    """Raised when the GitHub REST rate limit is hit (HTTP 403)."""
    def __init__(self, reset_at: Optional[int], message: str = "Rate limit exceeded. Please add a GitHub personal access token."):
        self.reset_at = reset_at
        reset = reset_at if reset_at is not None else "unknown"
        super().__init__(f"{message} Rate limit resets at: {reset}")

class TransportError(StarsAnalyzerException):
    """Raised for any other non-2xx response or a network failure."""
    def __init__(self, status: Optional[int], reason: str = ""):
        self.status = status
        detail = f"{status} {reason}".strip() if status is not None else reason
        super().__init__(f"GitHub API error: {detail}")

class PerRepositoryFetchError(StarsAnalyzerException):
    """Raised when a trend or contributor fetch fails for a single repository."""
    def __init__(self, repo_id: int, cause: Exception):
        self.repo_id = repo_id
        self.cause = cause
        super().__init__(f"Failed to fetch data for repository {repo_id}: {cause}")

class CredentialRequiredError(StarsAnalyzerException):
    """Raised before a star-history fetch when no token is configured."""
    def __init__(self, message: str = "A GitHub token is required to fetch star history."):
        super().__init__(message)
