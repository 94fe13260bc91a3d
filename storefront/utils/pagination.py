"""
Pagination helpers shared by list endpoints
"""
import math
from typing import Any, Dict


def page_offset(page: int, limit: int) -> int:
    return (max(page, 1) - 1) * limit


def page_meta(total: int, page: int, limit: int) -> Dict[str, Any]:
    """total/page/limit/pages block added to paginated responses"""
    return {
        "total": total,
        "page": page,
        "limit": limit,
        "pages": math.ceil(total / limit) if limit else 0,
    }
