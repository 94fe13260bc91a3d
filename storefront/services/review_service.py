"""
Review Service
Reviews, helpful votes, reports and product rating aggregation
"""
import logging
from typing import Tuple

from sqlalchemy.orm import Session

from storefront.core.errors import ConflictError, NotFoundError, PermissionDenied
from storefront.domain.review import ReviewCreate, ReviewUpdate
from storefront.models import Product, Review, ReviewReport, ReviewVote, User
from storefront.models.catalog import empty_distribution
from storefront.repositories import OrderRepository, ProductRepository, ReviewRepository

logger = logging.getLogger(__name__)


def summarize_ratings(ratings) -> dict:
    """
    Average (1 decimal), count and 1-5 distribution of a list of ratings
    """
    ratings = list(ratings)
    distribution = empty_distribution()
    for rating in ratings:
        distribution[str(rating)] += 1

    count = len(ratings)
    return {
        "average": round(sum(ratings) / count, 1) if count else 0.0,
        "count": count,
        "distribution": distribution,
    }


class ReviewService:
    """
    Every create/update/delete/status change recomputes the product's
    rating_average, rating_count and rating_distribution from all
    non-rejected reviews.
    """

    def __init__(self, db: Session):
        self.db = db
        self.reviews = ReviewRepository(db)
        self.products = ProductRepository(db)

    def get(self, review_id: int) -> Review:
        review = self.reviews.find_by_id(review_id)
        if review is None:
            raise NotFoundError("Review not found")
        return review

    def update_product_ratings(self, product_id: int) -> Product:
        """Recompute and store the product's rating aggregate (no commit)"""
        self.db.flush()
        product = self.products.find_by_id(product_id)
        summary = summarize_ratings(self.reviews.ratings_for_product(product_id))

        product.rating_average = summary["average"]
        product.rating_count = summary["count"]
        product.rating_distribution = summary["distribution"]
        return product

    def create(self, user: User, data: ReviewCreate) -> Review:
        product = self.products.find_by_id(data.product_id)
        if product is None or not product.is_active:
            raise NotFoundError("Product not found")

        if self.reviews.find_by_user_and_product(user.id, product.id) is not None:
            raise ConflictError("You have already reviewed this product")

        review = Review(
            user_id=user.id,
            product_id=product.id,
            rating=data.rating,
            title=data.title,
            comment=data.comment,
            images=[image.model_dump() for image in data.images],
            verified_purchase=OrderRepository(self.db).has_delivered_purchase(user.id, product.id),
            helpful_votes=0,
            status="pending",
        )
        self.reviews.add(review)
        self.update_product_ratings(product.id)

        self.db.commit()
        self.db.refresh(review)
        logger.info(f"Review {review.id} created for product {product.id} by user {user.id}")
        return review

    def update(self, review_id: int, user: User, data: ReviewUpdate) -> Review:
        review = self.get(review_id)
        if review.user_id != user.id:
            raise PermissionDenied("Not authorized to update this review")

        changes = data.model_dump(exclude_unset=True)
        for field, value in changes.items():
            if value is None and field in ("rating", "comment"):
                continue
            setattr(review, field, value)

        self.update_product_ratings(review.product_id)
        self.db.commit()
        self.db.refresh(review)
        return review

    def delete(self, review_id: int, user: User) -> None:
        """Author or admin"""
        review = self.get(review_id)
        if review.user_id != user.id and not user.is_admin:
            raise PermissionDenied("Not authorized to delete this review")

        product_id = review.product_id
        self.reviews.delete(review)
        self.update_product_ratings(product_id)
        self.db.commit()
        logger.info(f"Review {review_id} deleted by user {user.id}")

    def update_status(self, review_id: int, status: str) -> Review:
        review = self.get(review_id)
        review.status = status
        self.update_product_ratings(review.product_id)
        self.db.commit()
        self.db.refresh(review)
        logger.info(f"Review {review.id} -> {status}")
        return review

    def toggle_helpful(self, review_id: int, user: User) -> Tuple[Review, bool]:
        """
        First call adds the user's vote, second call removes it

        Returns:
            Tuple of (review, voted)
        """
        review = self.get(review_id)
        vote = self.reviews.find_vote(review.id, user.id)

        if vote is None:
            review.votes.append(ReviewVote(user_id=user.id))
            voted = True
        else:
            review.votes.remove(vote)
            voted = False

        self.db.flush()
        review.helpful_votes = self.reviews.count_votes(review.id)
        self.db.commit()
        self.db.refresh(review)
        return review, voted

    def report(self, review_id: int, user: User, reason: str) -> Review:
        review = self.get(review_id)
        review.reports.append(ReviewReport(user_id=user.id, reason=reason))
        self.db.commit()
        self.db.refresh(review)
        logger.info(f"Review {review.id} reported by user {user.id}")
        return review

    def handle_report(self, review_id: int, action: str) -> None:
        """keep clears the reports, delete removes the review"""
        review = self.get(review_id)
        if action == "delete":
            product_id = review.product_id
            self.reviews.delete(review)
            self.update_product_ratings(product_id)
        else:
            review.reports.clear()

        self.db.commit()
        logger.info(f"Reported review {review_id} handled: {action}")
