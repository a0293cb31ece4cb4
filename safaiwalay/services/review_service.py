from safaiwalay.errors import Forbidden, NotFound, ValidationFailed
from safaiwalay.extensions import db
from safaiwalay.models import Review


class ReviewService:
    @staticmethod
    def _parse_rating(rating):
        try:
            rating_int = int(rating)
        except (TypeError, ValueError) as exc:
            raise ValidationFailed("Rating must be an integer between 1 and 5.", field="rating") from exc
        if rating_int < 1 or rating_int > 5:
            raise ValidationFailed("Rating must be an integer between 1 and 5.", field="rating")
        return rating_int

    @staticmethod
    def _own_review(review_id, user):
        review = db.session.get(Review, review_id)
        if not review or review.is_deleted:
            raise NotFound("Review not found.")
        if review.user_id != user.id:
            raise Forbidden("Not authorized for this review.")
        return review

    @staticmethod
    def create_review(user, rating, comment):
        review = Review(
            user_id=user.id,
            rating=ReviewService._parse_rating(rating),
            comment=(comment or "").strip() or None,
            is_published=False,
        )
        db.session.add(review)
        db.session.commit()
        return review

    @staticmethod
    def update_review(review_id, user, rating, comment):
        review = ReviewService._own_review(review_id, user)
        review.rating = ReviewService._parse_rating(rating)
        review.comment = (comment or "").strip() or None
        # Edited reviews go back through moderation.
        review.is_published = False
        db.session.commit()
        return review

    @staticmethod
    def delete_review(review_id, user):
        review = ReviewService._own_review(review_id, user)
        review.mark_deleted()
        db.session.commit()
        return review

    @staticmethod
    def set_published(review_id, is_published):
        review = db.session.get(Review, review_id)
        if not review or review.is_deleted:
            raise NotFound("Review not found.")
        if not isinstance(is_published, bool):
            raise ValidationFailed("is_published must be true or false.", field="is_published")
        review.is_published = is_published
        db.session.commit()
        return review

    @staticmethod
    def published(limit=20):
        return (
            Review.query.filter_by(is_published=True, is_deleted=False)
            .order_by(Review.created_at.desc(), Review.id.desc())
            .limit(limit)
            .all()
        )
