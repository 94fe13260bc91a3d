"""
Admin API Endpoints
User management, dashboard, sales report and reported reviews
"""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from storefront.api.responses import paginated, success
from storefront.core.auth import require_admin
from storefront.core.database import get_db
from storefront.domain.review import ReportHandleRequest, ReportedReviewResponse
from storefront.domain.user import AdminUserUpdate, UserResponse
from storefront.models import User
from storefront.models.mixins import as_utc_naive
from storefront.repositories import ReviewRepository, UserRepository
from storefront.services import ReportService, ReviewService, UserService

router = APIRouter()


@router.get("/users")
async def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Users, newest first"""
    users, total = UserRepository(db).find_all(page=page, limit=limit)
    return paginated((UserResponse.model_validate(u).to_dict() for u in users), total, page, limit)


@router.get("/users/{user_id}")
async def get_user(user_id: int, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    user = UserService(db).get(user_id)
    return success(UserResponse.model_validate(user).to_dict())


@router.put("/users/{user_id}")
async def update_user(
    user_id: int,
    payload: AdminUserUpdate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    user = UserService(db).admin_update(user_id, payload)
    return success(UserResponse.model_validate(user).to_dict(), message="User updated")


@router.delete("/users/{user_id}")
async def delete_user(user_id: int, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    UserService(db).admin_delete(user_id)
    return success(message="User deleted")


@router.get("/dashboard")
async def dashboard(admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    return success(ReportService(db).dashboard())


@router.get("/sales-report")
async def sales_report(
    start_date: Optional[datetime] = Query(None, description="ISO date, inclusive"),
    end_date: Optional[datetime] = Query(None, description="ISO date, inclusive"),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Delivered orders grouped by year-month"""
    report = ReportService(db).sales_report(as_utc_naive(start_date), as_utc_naive(end_date))
    return success(report)


@router.get("/reported-reviews")
async def reported_reviews(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    rows, total = ReviewRepository(db).reported(page=page, limit=limit)

    items = []
    for review, report_count in rows:
        data = ReportedReviewResponse.model_validate(review)
        data.report_count = report_count
        data.reasons = [report.reason for report in review.reports]
        items.append(data.to_dict())

    return paginated(items, total, page, limit)


@router.post("/reported-reviews/{review_id}/handle")
async def handle_reported_review(
    review_id: int,
    payload: ReportHandleRequest,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """keep clears the reports, delete removes the review"""
    ReviewService(db).handle_report(review_id, payload.action)
    return success(message=f"Review {'deleted' if payload.action == 'delete' else 'kept'}")
