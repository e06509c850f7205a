from __future__ import annotations


def success_response(data: object = None, status_code: int = 200) -> tuple[dict[str, object], int]:
    return {"status": "success", "data": data}, status_code


def error_response(message: str, status_code: int = 400, **extra: object) -> tuple[dict[str, object], int]:
    body: dict[str, object] = {"status": "error", "message": message}
    body.update(extra)
    return body, status_code
