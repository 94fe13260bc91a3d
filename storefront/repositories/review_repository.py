"""
Review Repository - Data Access Layer for Reviews
"""
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from storefront.models import Review, ReviewReport, ReviewVote
from storefront.utils import page_offset


class ReviewRepository:
    """Repository for Review data access"""

    SORT_FIELDS = {
        "created_at": Review.created_at,
        "rating": Review.rating,
        "helpful": Review.helpful_votes,
    }

    def __init__(self, db: Session):
        self.db = db

    def find_by_id(self, review_id: int) -> Optional[Review]:
        return self.db.get(Review, review_id)

    def find_by_user_and_product(self, user_id: int, product_id: int) -> Optional[Review]:
        return (
            self.db.query(Review)
            .filter(Review.user_id == user_id, Review.product_id == product_id)
            .first()
        )

    def find_for_product(
        self,
        product_id: int,
        status: Optional[str] = "approved",
        rating: Optional[int] = None,
        verified: Optional[bool] = None,
        sort: str = "created_at",
        order: str = "desc",
        page: int = 1,
        limit: int = 10,
    ) -> Tuple[List[Review], int]:
        """
        Reviews of a product

        Args:
            sort: created_at | rating | helpful
            order: asc | desc
        """
        query = self.db.query(Review).filter(Review.product_id == product_id)
        if status:
            query = query.filter(Review.status == status)
        if rating is not None:
            query = query.filter(Review.rating == rating)
        if verified is not None:
            query = query.filter(Review.verified_purchase.is_(verified))

        column = self.SORT_FIELDS.get(sort, Review.created_at)
        ordering = column.asc() if order == "asc" else column.desc()

        total = query.count()
        reviews = (
            query.order_by(ordering, Review.id.desc())
            .offset(page_offset(page, limit))
            .limit(limit)
            .all()
        )
        return reviews, total

    def find_for_user(self, user_id: int, page: int = 1, limit: int = 10) -> Tuple[List[Review], int]:
        query = self.db.query(Review).filter(Review.user_id == user_id)
        total = query.count()
        reviews = (
            query.order_by(Review.created_at.desc(), Review.id.desc())
            .offset(page_offset(page, limit))
            .limit(limit)
            .all()
        )
        return reviews, total

    def recent(self, limit: int = 10) -> List[Review]:
        return (
            self.db.query(Review)
            .filter(Review.status == "approved")
            .order_by(Review.created_at.desc(), Review.id.desc())
            .limit(limit)
            .all()
        )

    def ratings_for_product(self, product_id: int) -> List[int]:
        """Ratings of every non-rejected review of the product"""
        rows = (
            self.db.query(Review.rating)
            .filter(Review.product_id == product_id, Review.status != "rejected")
            .all()
        )
        return [row[0] for row in rows]

    def find_vote(self, review_id: int, user_id: int) -> Optional[ReviewVote]:
        return (
            self.db.query(ReviewVote)
            .filter(ReviewVote.review_id == review_id, ReviewVote.user_id == user_id)
            .first()
        )

    def count_votes(self, review_id: int) -> int:
        return self.db.query(ReviewVote).filter(ReviewVote.review_id == review_id).count()

    def reported(self, page: int = 1, limit: int = 20) -> Tuple[List[Tuple[Review, int]], int]:
        """
        Reviews with at least one report, most reported first

        Returns:
            Tuple of (list of (review, report_count), total count)
        """
        counts = (
            self.db.query(ReviewReport.review_id, func.count(ReviewReport.id).label("report_count"))
            .group_by(ReviewReport.review_id)
            .subquery()
        )
        query = self.db.query(Review, counts.c.report_count).join(counts, counts.c.review_id == Review.id)

        total = query.count()
        rows = (
            query.order_by(counts.c.report_count.desc(), Review.id.desc())
            .offset(page_offset(page, limit))
            .limit(limit)
            .all()
        )
        return [(review, count) for review, count in rows], total

    def add(self, review: Review) -> Review:
        self.db.add(review)
        self.db.flush()
        return review

    def delete(self, review: Review):
        self.db.delete(review)
        self.db.flush()
