import logging

from django.db import IntegrityError, transaction
from rest_framework.exceptions import NotFound

from authentication.core.exceptions import DuplicateReviewException, OwnershipException
from store.models import Product, Review

logger = logging.getLogger(__name__)


class ReviewService:
    """
    Review writes. The product's rating and review_count are recomputed by
    the Review post_save/post_delete handlers, which run inside the same
    transaction as the write here.
    """

    @staticmethod
    def _get_owned_review(user, review_id, action):
        review = Review.objects.select_related('product').filter(pk=review_id).first()
        if review is None:
            raise NotFound("Review not found")
        if review.user_id != user.id:
            raise OwnershipException(f"Not authorized to {action} this review")
        return review

    @staticmethod
    @transaction.atomic
    def create_review(user, product_id, rating, comment=''):
        product = Product.objects.filter(pk=product_id).first()
        if product is None:
            raise NotFound("Product not found")

        if Review.objects.filter(product=product, user=user).exists():
            raise DuplicateReviewException()

        try:
            with transaction.atomic():
                review = Review.objects.create(product=product, user=user, rating=rating, comment=comment or '')
        except IntegrityError:
            raise DuplicateReviewException()

        logger.info(f"Review {review.pk} ({rating}*) added to product {product.pk} by {user.email}")
        return review

    @staticmethod
    @transaction.atomic
    def update_review(user, review_id, data):
        review = ReviewService._get_owned_review(user, review_id, 'update')
        if 'rating' in data:
            review.rating = data['rating']
        if 'comment' in data:
            review.comment = data['comment'] or ''
        review.save()
        return review

    @staticmethod
    @transaction.atomic
    def delete_review(user, review_id):
        review = ReviewService._get_owned_review(user, review_id, 'delete')
        product_id = review.product_id
        review.delete()
        logger.info(f"Review {review_id} deleted from product {product_id} by {user.email}")
