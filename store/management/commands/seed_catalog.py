"""
Seed a demo catalog: default categories, an admin, a merchant, a customer
and a handful of products owned by the merchant.

Run with: python manage.py seed_catalog [--reset]
"""
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction

from store.models import Category, Product
from store.services.catalog_service import CatalogService

DEMO_ACCOUNTS = [
    {'email': 'admin@lexury.com', 'name': 'Admin User', 'password': 'admin123', 'role': 'admin'},
    {'email': 'merchant@lexury.com', 'name': 'Merchant User', 'password': 'merchant123', 'role': 'merchant'},
    {'email': 'user@lexury.com', 'name': 'Test User', 'password': 'user123', 'role': 'user'},
]

DEMO_PRODUCTS = [
    {
        'name': 'Premium Wireless Headphones',
        'description': 'High-quality wireless headphones with noise cancellation and premium sound quality.',
        'price': Decimal('299.99'), 'original_price': Decimal('399.99'),
        'category': 'electronics', 'brand': 'AudioTech', 'stock': 50,
        'is_featured': True, 'is_new': False, 'tags': ['wireless', 'audio', 'premium'],
    },
    {
        'name': 'Designer Leather Jacket',
        'description': 'Handcrafted leather jacket with premium quality and timeless design.',
        'price': Decimal('599.99'), 'original_price': Decimal('799.99'),
        'category': 'fashion', 'brand': 'LuxuryWear', 'stock': 25,
        'is_featured': True, 'is_new': True, 'tags': ['leather', 'jacket', 'designer'],
    },
    {
        'name': 'Modern Coffee Table',
        'description': 'Sleek and modern coffee table perfect for contemporary living spaces.',
        'price': Decimal('449.99'), 'original_price': None,
        'category': 'home-living', 'brand': 'HomeStyle', 'stock': 15,
        'is_featured': False, 'is_new': True, 'tags': ['furniture', 'modern', 'coffee-table'],
    },
    {
        'name': 'Luxury Skincare Set',
        'description': 'Complete skincare set with premium ingredients for radiant skin.',
        'price': Decimal('199.99'), 'original_price': Decimal('249.99'),
        'category': 'beauty', 'brand': 'BeautyLux', 'stock': 40,
        'is_featured': True, 'is_new': False, 'tags': ['skincare', 'beauty', 'premium'],
    },
    {
        'name': 'Professional Running Shoes',
        'description': 'High-performance running shoes designed for athletes and fitness enthusiasts.',
        'price': Decimal('149.99'), 'original_price': None,
        'category': 'sports', 'brand': 'SportPro', 'stock': 60,
        'is_featured': False, 'is_new': False, 'tags': ['running', 'shoes', 'sports'],
    },
]


class Command(BaseCommand):
    help = 'Seed demo categories, accounts and products'

    def add_arguments(self, parser):
        parser.add_argument('--reset', action='store_true', help='Delete existing products before seeding')

    @transaction.atomic
    def handle(self, *args, **options):
        User = get_user_model()

        if options['reset']:
            deleted, _ = Product.objects.all().delete()
            self.stdout.write(self.style.WARNING(f'Removed {deleted} existing product rows'))

        CatalogService.ensure_default_categories()

        accounts = {}
        for account in DEMO_ACCOUNTS:
            user = User.objects.filter(email=account['email']).first()
            if user is None:
                user = User.objects.create_user(
                    email=account['email'],
                    password=account['password'],
                    name=account['name'],
                    role=account['role'],
                    is_staff=account['role'] == 'admin',
                )
                self.stdout.write(self.style.SUCCESS(f'Created {account["role"]} account: {user.email}'))
            accounts[account['role']] = user

        created = 0
        for data in DEMO_PRODUCTS:
            fields = dict(data)
            category = Category.objects.get(slug=fields.pop('category'))
            if Product.objects.filter(name=fields['name']).exists():
                continue
            Product.objects.create(category=category, merchant=accounts['merchant'], **fields)
            created += 1

        self.stdout.write(self.style.SUCCESS(f'Done! Created {created} products'))
