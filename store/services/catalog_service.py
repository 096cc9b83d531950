import logging

from django.db import IntegrityError, transaction
from django.db.models import Count
from django.utils.text import slugify

from store.models import Category

logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES = [
    {'name': 'Electronics', 'slug': 'electronics'},
    {'name': 'Fashion', 'slug': 'fashion'},
    {'name': 'Home & Living', 'slug': 'home-living'},
    {'name': 'Beauty', 'slug': 'beauty'},
    {'name': 'Sports', 'slug': 'sports'},
    {'name': 'Books', 'slug': 'books'},
    {'name': 'Toys', 'slug': 'toys'},
    {'name': 'Food & Beverages', 'slug': 'food-beverages'},
]


class CatalogService:

    @staticmethod
    def ensure_default_categories():
        """Create the default categories that are missing. Returns the number created."""
        created_count = 0
        for category_data in DEFAULT_CATEGORIES:
            try:
                with transaction.atomic():
                    _, created = Category.objects.get_or_create(
                        slug=category_data['slug'],
                        defaults={'name': category_data['name']},
                    )
            except IntegrityError:
                # Same name already taken under another slug
                continue
            created_count += int(created)

        if created_count:
            logger.info(f"Seeded {created_count} default categories")
        return created_count

    @staticmethod
    def list_categories():
        """All categories by name with their product counts; seeds defaults on an empty table"""
        if not Category.objects.exists():
            CatalogService.ensure_default_categories()
        return Category.objects.annotate(product_count=Count('products')).order_by('name')

    @staticmethod
    def category_exists(name):
        return Category.objects.filter(name__iexact=name.strip()).exists() or \
            Category.objects.filter(slug=slugify(name)).exists()

    @staticmethod
    def resolve_category(value):
        """Find a category by id, slug or (case-insensitive) name"""
        value = str(value).strip()
        if not value:
            return None
        if value.isdigit():
            category = Category.objects.filter(pk=int(value)).first()
            if category:
                return category
        return (
            Category.objects.filter(slug=value.lower()).first()
            or Category.objects.filter(name__iexact=value).first()
            or Category.objects.filter(slug=slugify(value)).first()
        )
