"""Tool result payloads shared by every handler module."""


def error_result(code: str, message: str) -> dict:
    return {
        "status": "error",
        "error_code": code,
        "message": message,
    }


def is_error_result(result: object) -> bool:
    return isinstance(result, dict) and result.get("status") == "error"
