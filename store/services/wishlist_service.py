import logging

from django.db import transaction
from rest_framework.exceptions import NotFound, ValidationError

from store.models import Product, Wishlist, WishlistItem

logger = logging.getLogger(__name__)


class WishlistService:

    @staticmethod
    def get_wishlist(user):
        wishlist, _ = Wishlist.objects.get_or_create(user=user)
        return wishlist

    @staticmethod
    def items(user):
        return (
            WishlistItem.objects
            .filter(wishlist__user=user)
            .select_related('product__category', 'product__merchant')
            .prefetch_related('product__images', 'product__variants')
        )

    @staticmethod
    def add(user, product_id):
        product = Product.objects.filter(pk=product_id).first()
        if product is None:
            raise NotFound("Product not found")

        wishlist = WishlistService.get_wishlist(user)
        _, created = WishlistItem.objects.get_or_create(wishlist=wishlist, product=product)
        if not created:
            raise ValidationError("Product already in wishlist")
        logger.info(f"Product {product.pk} added to wishlist of {user.email}")

    @staticmethod
    def remove(user, product_id):
        deleted, _ = WishlistItem.objects.filter(wishlist__user=user, product_id=product_id).delete()
        if not deleted:
            raise NotFound("Product not found in wishlist")

    @staticmethod
    def contains(user, product_id):
        return WishlistItem.objects.filter(wishlist__user=user, product_id=product_id).exists()

    @staticmethod
    @transaction.atomic
    def merge(user, product_ids):
        """Union a guest's wishlist into the stored one. Unknown product ids are skipped."""
        wishlist = WishlistService.get_wishlist(user)
        existing = set(wishlist.items.values_list('product_id', flat=True))
        known = set(Product.objects.filter(pk__in=product_ids).values_list('pk', flat=True))

        added = 0
        for product_id in product_ids:
            if product_id in known and product_id not in existing:
                WishlistItem.objects.create(wishlist=wishlist, product_id=product_id)
                existing.add(product_id)
                added += 1

        skipped = [pid for pid in product_ids if pid not in known]
        logger.info(f"Guest wishlist merged for {user.email}: {added} added, {len(skipped)} skipped")
        return skipped
