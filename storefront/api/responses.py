"""
Response envelope helpers

{"status": "success", "data": ...} plus total/page/limit/pages
for paginated lists.
"""
from typing import Any, Iterable

from fastapi import Request

from storefront.core.rate_limit import get_client_ip
from storefront.utils import page_meta


def success(data: Any = None, message: str = None, **extra) -> dict:
    body = {"status": "success"}
    if message:
        body["message"] = message
    if data is not None:
        body["data"] = data
    body.update(extra)
    return body


def paginated(items: Iterable[Any], total: int, page: int, limit: int) -> dict:
    return {"status": "success", "data": list(items), **page_meta(total, page, limit)}


def request_meta(request: Request) -> dict:
    """Client IP and user agent recorded on order history entries"""
    return {
        "ip_address": get_client_ip(request),
        "user_agent": request.headers.get("User-Agent"),
    }
