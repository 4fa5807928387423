# Overview: Request parsing helpers shared by the JSON blueprints.

from flask import current_app, request

from ..validation import ValidationError


def json_payload() -> dict:
    payload = request.get_json(silent=True)
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    return payload


def reject_unknown_fields(payload: dict, allowed: set[str]) -> None:
    unknown = sorted(set(payload) - allowed)
    if unknown:
        raise ValidationError(f"Field not allowed: {', '.join(unknown)}")


def list_args() -> tuple[int | None, int, str | None]:
    """
    Query params shared by list endpoints:
    - page: int (optional) - page number (1-indexed). If omitted, returns all items.
    - page_size: int (optional) - items per page (default DEFAULT_PAGE_SIZE, max MAX_PAGE_SIZE)
    - keyword: str (optional) - substring filter
    """
    if "page" in request.args:
        page = request.args.get("page", type=int)
        if page is None:
            raise ValidationError("page must be an integer")
    else:
        page = None

    page_size = current_app.config["DEFAULT_PAGE_SIZE"]
    if "page_size" in request.args:
        page_size = request.args.get("page_size", type=int)
        if page_size is None:
            raise ValidationError("page_size must be an integer")
    page_size = min(page_size, current_app.config["MAX_PAGE_SIZE"])

    keyword = request.args.get("keyword") or None
    return page, page_size, keyword
