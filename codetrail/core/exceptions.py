class CodeTrailError(Exception):
    """Base class for errors raised by CodeTrail services."""


class PlatformAPIError(CodeTrailError):
    """A LeetCode or Codeforces request failed (network, HTTP or API status)."""

    def __init__(self, platform: str, message: str):
        self.platform = platform
        super().__init__(f"{platform}: {message}")


class InvalidPlatformError(CodeTrailError):
    pass


class HandleNotFoundError(CodeTrailError):
    def __init__(self, platform: str, handle: str):
        self.platform = platform
        self.handle = handle
        super().__init__(f"{platform} user '{handle}' not found. Please check the username.")


class CoachError(CodeTrailError):
    pass
