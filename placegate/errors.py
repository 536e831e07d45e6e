"""
Shared error types for core services.
"""

SITE_UNRESOLVED = "SiteUnresolved"
SLUG_UNRESOLVED = "SlugUnresolved"


class ValidationIssue(ValueError):
    def __init__(
        self,
        message: str,
        field: str = "unknown",
        error_type: str = "invalid",
        error_code: str | None = None,
        data: dict | None = None,
    ):
        super().__init__(message)
        self.field = field
        self.error_type = error_type
        self.error_code = error_code
        self.data = data


class NotFound(LookupError):
    """Raised when a public key or slug does not resolve to an active record."""

    kind = "NotFound"

    def __init__(self, message: str, field: str = "unknown", data: dict | None = None):
        super().__init__(message)
        self.field = field
        self.data = data or {}


class SiteUnresolved(NotFound):
    kind = SITE_UNRESOLVED

    def __init__(self, message: str = "Site key not found", data: dict | None = None):
        super().__init__(message, field="site_key", data=data)


class SlugUnresolved(NotFound):
    kind = SLUG_UNRESOLVED

    def __init__(self, message: str = "Slug not found", data: dict | None = None):
        super().__init__(message, field="slug", data=data)
