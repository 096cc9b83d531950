import logging

from django.db import transaction
from django.db.models import Q

from store.models import Product, ProductImage, ProductVariant

logger = logging.getLogger(__name__)


class ProductService:

    @staticmethod
    def base_queryset():
        return (
            Product.objects
            .select_related('category', 'merchant')
            .prefetch_related('images', 'variants')
        )

    @staticmethod
    def get_by_id_or_slug(identifier):
        query = Q(slug=identifier)
        if str(identifier).isdigit():
            query |= Q(pk=int(identifier))
        return ProductService.base_queryset().filter(query).first()

    @staticmethod
    def featured(limit=8):
        return ProductService.base_queryset().filter(is_featured=True).order_by('-created_at')[:limit]

    @staticmethod
    def _store_images(product, images):
        product.images.all().delete()
        for position, image in enumerate(images):
            ProductImage.objects.create(product=product, image=image, display_order=position)

    @staticmethod
    def _store_variants(product, variants):
        product.variants.all().delete()
        ProductVariant.objects.bulk_create(
            [ProductVariant(product=product, **variant) for variant in variants]
        )

    @staticmethod
    @transaction.atomic
    def create_product(user, serializer):
        """Merchants own what they create; admin-created products have no merchant"""
        product = Product(**serializer.to_model_fields())
        if user.is_merchant:
            product.merchant = user
        product.save()

        data = serializer.validated_data
        if data.get('images'):
            ProductService._store_images(product, data['images'])
        if data.get('variants'):
            ProductService._store_variants(product, data['variants'])

        logger.info(f"Product {product.pk} '{product.name}' created by {user.email}")
        return product

    @staticmethod
    @transaction.atomic
    def update_product(product, serializer):
        """Partial update; uploaded images and a given variants list replace the stored ones"""
        for field, value in serializer.to_model_fields().items():
            setattr(product, field, value)
        product.save()

        data = serializer.validated_data
        if data.get('images'):
            ProductService._store_images(product, data['images'])
        if 'variants' in data:
            ProductService._store_variants(product, data['variants'])

        logger.info(f"Product {product.pk} updated")
        return product

    @staticmethod
    def delete_product(product, user):
        product_id, name = product.pk, product.name
        product.delete()
        logger.info(f"Product {product_id} '{name}' deleted by {user.email}")
