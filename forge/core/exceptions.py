from fastapi import Request
from fastapi.responses import JSONResponse


class ForgeError(Exception):
    """Base exception for Forge Studio API errors."""

    def __init__(
        self,
        code: str,
        message: str,
        status: int = 500,
        details: dict | None = None,
    ):
        self.code = code
        self.message = message
        self.status = status
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        result = {
            "error": {
                "code": self.code,
                "message": self.message,
                "status": self.status,
            }
        }
        if self.details:
            result["error"]["details"] = self.details
        return result


class NotFoundError(ForgeError):
    def __init__(self, message: str = "Resource not found.", details: dict | None = None):
        super().__init__(code="not_found", message=message, status=404, details=details)


class ConcurrentRestoreError(ForgeError):
    def __init__(self, message: str = "A run is in progress.", details: dict | None = None):
        super().__init__(
            code="concurrent_restore",
            message=message,
            status=409,
            details=details or {"suggestion": "Interrupt the running session before restoring a version."},
        )


class ProviderCredentialError(ForgeError):
    def __init__(self, message: str = "No content provider credential configured.", details: dict | None = None):
        super().__init__(code="credential_required", message=message, status=401, details=details)


class ProviderUnavailableError(ForgeError):
    def __init__(self, message: str = "Content provider is unavailable.", details: dict | None = None):
        super().__init__(code="provider_unavailable", message=message, status=503, details=details)


class RuntimeUnavailableError(ForgeError):
    def __init__(self, message: str = "Local inference runtime is unavailable.", details: dict | None = None):
        super().__init__(
            code="runtime_unavailable",
            message=message,
            status=503,
            details=details or {"suggestion": "Start the Ollama daemon and try again."},
        )


async def forge_error_handler(request: Request, exc: ForgeError) -> JSONResponse:
    """Global exception handler for ForgeError and subclasses."""
    return JSONResponse(status_code=exc.status, content=exc.to_dict())
