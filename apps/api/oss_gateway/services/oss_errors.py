class OssError(Exception):
    """Base class for failures raised by the signing and upload services."""

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code

    def __str__(self) -> str:
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message


class ValidationError(OssError):
    """A required input field is missing or malformed."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="VALIDATION_ERROR")


class ConfigurationError(OssError):
    """OSS credentials are not configured for this deployment."""

    def __init__(self, missing: list[str]) -> None:
        super().__init__(
            "Server configuration error: missing Aliyun credentials",
            code="CONFIG_ERROR",
        )
        self.missing = list(missing)


class UpstreamError(OssError):
    """OSS rejected the object PUT; carries its status and body verbatim."""

    def __init__(self, status_code: int, body: str) -> None:
        super().__init__(f"OSS responded with HTTP {status_code}", code="UPSTREAM_ERROR")
        self.status_code = status_code
        self.body = body
