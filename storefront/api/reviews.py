"""
Review API Endpoints
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from storefront.api.responses import paginated, success
from storefront.core.auth import get_current_user, require_admin
from storefront.core.database import get_db
from storefront.domain.review import (
    ReviewCreate,
    ReviewReportRequest,
    ReviewResponse,
    ReviewStatusUpdate,
    ReviewUpdate,
)
from storefront.models import User
from storefront.repositories import ReviewRepository
from storefront.services import ProductService, ReviewService

router = APIRouter()


def _review(review) -> dict:
    return ReviewResponse.model_validate(review).to_dict()


@router.get("/product/{product_id}")
async def product_reviews(
    product_id: int,
    rating: Optional[int] = Query(None, ge=1, le=5),
    verified: Optional[bool] = Query(None, description="Only verified purchases"),
    sort: str = Query("created_at", pattern="^(created_at|rating|helpful)$"),
    order: str = Query("desc", pattern="^(asc|desc)$"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
):
    """Approved reviews of a product"""
    product = ProductService(db).get_active(str(product_id))
    reviews, total = ReviewRepository(db).find_for_product(
        product.id,
        rating=rating,
        verified=verified,
        sort=sort,
        order=order,
        page=page,
        limit=limit,
    )
    return paginated((_review(r) for r in reviews), total, page, limit)


@router.get("/recent")
async def recent_reviews(limit: int = Query(10, ge=1, le=50), db: Session = Depends(get_db)):
    return success([_review(r) for r in ReviewRepository(db).recent(limit)])


@router.get("/mine")
async def my_reviews(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    reviews, total = ReviewRepository(db).find_for_user(user.id, page=page, limit=limit)
    return paginated((_review(r) for r in reviews), total, page, limit)


@router.get("/{review_id}")
async def get_review(review_id: int, db: Session = Depends(get_db)):
    return success(_review(ReviewService(db).get(review_id)))


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_review(
    payload: ReviewCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """New reviews start as pending until an admin approves them"""
    review = ReviewService(db).create(user, payload)
    return success(_review(review), message="Review submitted")


@router.put("/{review_id}")
async def update_review(
    review_id: int,
    payload: ReviewUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    review = ReviewService(db).update(review_id, user, payload)
    return success(_review(review), message="Review updated")


@router.delete("/{review_id}")
async def delete_review(review_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    ReviewService(db).delete(review_id, user)
    return success(message="Review deleted")


@router.put("/{review_id}/status")
async def update_review_status(
    review_id: int,
    payload: ReviewStatusUpdate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    review = ReviewService(db).update_status(review_id, payload.status)
    return success(_review(review), message="Review status updated")


@router.post("/{review_id}/helpful")
async def toggle_helpful(review_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """First call adds the user's vote, a second call takes it back"""
    review, voted = ReviewService(db).toggle_helpful(review_id, user)
    return success({"helpful_votes": review.helpful_votes, "voted": voted})


@router.post("/{review_id}/report")
async def report_review(
    review_id: int,
    payload: ReviewReportRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ReviewService(db).report(review_id, user, payload.reason)
    return success(message="Review reported")
