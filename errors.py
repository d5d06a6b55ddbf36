"""
Error taxonomy

Every failure the API reports maps to one of these classes. Handlers in
main.py turn them into a consistent JSON body:

    {"success": false, "code": "<code>", "detail": "<message>"}
"""

from typing import Any, Dict, List, Optional


class AppError(Exception):
    status_code = 500
    code = "server_error"
    default_detail = "Internal server error"

    def __init__(self, detail: Optional[str] = None, errors: Optional[List[Dict[str, Any]]] = None):
        self.detail = detail or self.default_detail
        self.errors = errors
        super().__init__(self.detail)

    def to_body(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"success": False, "code": self.code, "detail": self.detail}
        if self.errors:
            body["errors"] = self.errors
        return body


class ValidationError(AppError):
    status_code = 400
    code = "validation_error"
    default_detail = "Invalid input"


class AuthError(AppError):
    status_code = 401
    code = "auth_error"
    default_detail = "Not authenticated"


class NotFound(AppError):
    status_code = 404
    code = "not_found"
    default_detail = "Not found"


class Conflict(AppError):
    status_code = 409
    code = "conflict"
    default_detail = "Conflicting state"


class InvalidSignature(AppError):
    status_code = 400
    code = "invalid_signature"
    default_detail = "Invalid payment signature"


class GatewayError(AppError):
    status_code = 500
    code = "gateway_error"
    default_detail = "Payment provider error"


class ServerError(AppError):
    pass
