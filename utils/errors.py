"""
Defines custom exception classes for the application.
"""

class GitSenseException(Exception):
    """Base exception class for git-sense application."""
    pass

class ConfigError(GitSenseException):
    """Raised when a setting or a stored credential is missing or invalid."""
    pass

class AuthenticationError(GitSenseException):
    """Raised when GitHub rejects the token or no token is stored."""
    pass

class AuthorizationError(GitSenseException):
    """Raised when GitHub denies access to a resource."""
    pass

class RateLimitError(GitSenseException):
    """Raised when the GitHub API rate limit is exhausted."""
    pass

class NotFoundError(GitSenseException):
    """Raised when a repository or a reference cannot be found."""
    pass

class DeviceFlowError(GitSenseException):
    """Raised when the OAuth device flow ends without a token."""
    pass

class TransportError(GitSenseException):
    """Raised when a request fails before an HTTP response is received."""
    pass

class ProviderError(GitSenseException):
    """Raised when an error occurs with the LLM provider."""
    pass

class GitError(GitSenseException):
    """Raised when the local git repository cannot be inspected."""
    pass

class FormatterError(GitSenseException):
    """Raised when an error occurs while rendering a prompt."""
    pass
