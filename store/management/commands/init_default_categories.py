"""
Management command to initialize default product categories.
Run with: python manage.py init_default_categories
"""
from django.core.management.base import BaseCommand

from store.models import Category
from store.services.catalog_service import CatalogService, DEFAULT_CATEGORIES


class Command(BaseCommand):
    help = 'Initialize default product categories'

    def handle(self, *args, **options):
        created_count = CatalogService.ensure_default_categories()
        existing_count = len(DEFAULT_CATEGORIES) - created_count

        self.stdout.write(
            self.style.SUCCESS(
                f'Done! Created: {created_count}, Already existed: {existing_count}, '
                f'Total categories: {Category.objects.count()}'
            )
        )
