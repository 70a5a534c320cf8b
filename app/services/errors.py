# app/services/errors.py
from fastapi import HTTPException


class LastAdminError(HTTPException):
    def __init__(self, detail: str = "Cannot deactivate or demote the last active admin"):
        super().__init__(status_code=400, detail=detail)


class RateLimitedError(HTTPException):
    def __init__(self, detail: str = "Too many requests. Please try again later."):
        super().__init__(status_code=429, detail=detail)


class TenantAccessError(HTTPException):
    def __init__(self, detail: str, status_code: int = 403):
        super().__init__(status_code=status_code, detail=detail)
