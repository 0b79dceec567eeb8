"""Error types and the exit codes the command line maps them to."""

EXIT_ERROR = 1
EXIT_AUTH_REQUIRED = 2
EXIT_NOT_FOUND = 4
EXIT_INVALID = 5


class GranolaError(Exception):
    """Base error; ``exit_code`` is the process status the CLI exits with."""

    exit_code = EXIT_ERROR


class ConfigurationError(GranolaError):
    """Invalid flag value or an impossible mode combination."""

    exit_code = EXIT_INVALID


class AuthenticationError(GranolaError):
    """No usable access token and no fallback is permitted."""

    exit_code = EXIT_AUTH_REQUIRED


class NotFoundError(GranolaError):
    """A meeting, folder, summary or transcript lookup produced nothing."""

    exit_code = EXIT_NOT_FOUND


class CredentialsError(GranolaError):
    """The credentials file is missing, unreadable or holds no token."""


class CacheNotFoundError(GranolaError):
    """The local cache file does not exist."""

    def __init__(self, path: str):
        super().__init__(f"Granola cache not found at {path}")
        self.path = path


class ApiError(GranolaError):
    """Non-success response from the Granola API."""

    def __init__(self, status: int, body: str = "", reason: str = ""):
        super().__init__(f"API error {status}: {body or reason}")
        self.status = status
        self.body = body
