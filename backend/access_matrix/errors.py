from typing import Any


class AppError(Exception):
    code: str = "APP_ERROR"
    message: str = "Application error"
    details: Any | None = None

    def __init__(
        self,
        message: str | None = None,
        *,
        code: str | None = None,
        details: Any | None = None,
    ):
        if message is not None:
            self.message = message
        if code is not None:
            self.code = code
        if details is not None:
            self.details = details

        super().__init__(self.message)


class StorageError(AppError):
    code = "STORAGE_ERROR"
    message = "Permission storage unavailable"


class CatalogError(AppError):
    code = "CATALOG_ERROR"
    message = "Invalid module catalog"


def error_payload(
    code: str,
    message: str,
    details: Any | None = None,
) -> dict[str, Any]:
    return {"error": {"code": code, "message": message, "details": details}}


def to_payload(exc: AppError) -> dict[str, Any]:
    return error_payload(exc.code, exc.message, exc.details)
