import io
import shutil
import tempfile
from decimal import Decimal
from unittest import mock

from PIL import Image
from django.contrib.auth import get_user_model
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase, override_settings
from rest_framework import status
from rest_framework.test import APITestCase

from .models import Category, Product, CartItem, Review, WishlistItem
from .services.cart_service import CartService
from .services.catalog_service import CatalogService, DEFAULT_CATEGORIES
from .services.pricing import PricingService
from .services.review_service import ReviewService

User = get_user_model()


def make_product(category, **fields):
    defaults = {
        'name': 'Test Product',
        'description': 'A product used in tests',
        'price': Decimal('10.00'),
        'stock': 100,
    }
    defaults.update(fields)
    return Product.objects.create(category=category, **defaults)


class StoreTestCase(APITestCase):
    def setUp(self):
        CatalogService.ensure_default_categories()
        self.electronics = Category.objects.get(slug='electronics')
        self.fashion = Category.objects.get(slug='fashion')
        self.customer = User.objects.create_user(email='cust@example.com', password='secret123', name='Customer')
        self.merchant = User.objects.create_user(
            email='shop@example.com', password='secret123', name='Shop', role=User.Role.MERCHANT
        )
        self.admin = User.objects.create_user(
            email='admin@example.com', password='secret123', name='Admin', role=User.Role.ADMIN
        )


# ======================================================
# Pricing
# ======================================================
class PricingTests(TestCase):
    def test_free_shipping_at_threshold(self):
        totals = PricingService.calculate_totals([(Decimal('50.00'), 2)])

        self.assertEqual(totals['subtotal'], Decimal('100.00'))
        self.assertEqual(totals['shipping'], Decimal('0.00'))
        self.assertEqual(totals['tax'], Decimal('8.00'))
        self.assertEqual(totals['total'], Decimal('108.00'))

    def test_flat_shipping_below_threshold(self):
        totals = PricingService.calculate_totals([(Decimal('19.99'), 1)])

        self.assertEqual(totals['shipping'], Decimal('9.99'))
        self.assertEqual(totals['tax'], Decimal('1.60'))
        self.assertEqual(totals['total'], Decimal('31.58'))

    def test_total_is_sum_of_parts(self):
        totals = PricingService.calculate_totals([(Decimal('33.33'), 3), (Decimal('0.05'), 7)])
        expected = totals['subtotal'] - totals['discount'] + totals['shipping'] + totals['tax']
        self.assertEqual(totals['total'], expected)


# ======================================================
# Product model
# ======================================================
class ProductModelTests(StoreTestCase):
    def test_slug_has_name_and_timestamp(self):
        product = make_product(self.electronics, name='Wireless Mouse')
        self.assertRegex(product.slug, r'^wireless-mouse-\d{13}$')

    def test_slug_regenerates_on_rename_only(self):
        product = make_product(self.electronics, name='Wireless Mouse')
        original_slug = product.slug

        product.stock = 5
        product.save()
        self.assertEqual(product.slug, original_slug)

        product.name = 'Gaming Mouse'
        product.save()
        self.assertTrue(product.slug.startswith('gaming-mouse-'))

    def test_discount_derived_from_original_price(self):
        product = make_product(self.electronics, price=Decimal('80.00'), original_price=Decimal('100.00'))
        self.assertEqual(product.discount, 20)

        product.original_price = Decimal('70.00')
        product.save()
        self.assertIsNone(product.discount)


# ======================================================
# Catalog
# ======================================================
class ProductCatalogTests(StoreTestCase):
    url = '/api/products'

    def setUp(self):
        super().setUp()
        self.phone = make_product(self.electronics, name='Smart Phone', price=Decimal('499.00'), brand='Acme',
                                  stock=3, is_featured=True)
        self.cable = make_product(self.electronics, name='USB Cable', price=Decimal('9.00'), brand='Wired', stock=0)
        self.jacket = make_product(self.fashion, name='Leather Jacket', price=Decimal('150.00'),
                                   description='Warm and waterproof', stock=7, merchant=self.merchant)

    def _names(self, resp):
        return [item['name'] for item in resp.data['data']]

    def test_list_is_public_and_paginated(self):
        resp = self.client.get(self.url, {'limit': 2})

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(len(resp.data['data']), 2)
        self.assertEqual(resp.data['pagination'], {'page': 1, 'limit': 2, 'total': 3, 'totalPages': 2})

    def test_filter_by_category_and_price(self):
        resp = self.client.get(self.url, {'category': 'electronics', 'minPrice': '100'})
        self.assertEqual(self._names(resp), ['Smart Phone'])

    def test_search_matches_description(self):
        resp = self.client.get(self.url, {'search': 'waterproof'})
        self.assertEqual(self._names(resp), ['Leather Jacket'])

    def test_in_stock_and_featured(self):
        resp = self.client.get(self.url, {'inStock': 'true'})
        self.assertNotIn('USB Cable', self._names(resp))

        resp = self.client.get(self.url, {'featured': 'true'})
        self.assertEqual(self._names(resp), ['Smart Phone'])

    def test_sort_by_price(self):
        resp = self.client.get(self.url, {'sort': 'price-asc'})
        self.assertEqual(self._names(resp), ['USB Cable', 'Leather Jacket', 'Smart Phone'])

        resp = self.client.get(self.url, {'sort': 'price-desc'})
        self.assertEqual(self._names(resp), ['Smart Phone', 'Leather Jacket', 'USB Cable'])

    def test_malformed_numbers_are_ignored(self):
        resp = self.client.get(self.url, {'minPrice': 'abc', 'rating': 'NaN', 'page': 'x', 'limit': 'y'})

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data['pagination']['total'], 3)

    def test_mine_limits_merchant_to_own_products(self):
        self.client.force_authenticate(user=self.merchant)
        resp = self.client.get(self.url, {'mine': 'true'})
        self.assertEqual(self._names(resp), ['Leather Jacket'])

    def test_detail_by_id_and_slug(self):
        by_id = self.client.get(f'{self.url}/{self.jacket.pk}')
        by_slug = self.client.get(f'{self.url}/{self.jacket.slug}')

        self.assertEqual(by_id.status_code, status.HTTP_200_OK)
        self.assertEqual(by_id.data['data']['id'], by_slug.data['data']['id'])
        self.assertEqual(by_id.data['data']['category'], 'Fashion')
        self.assertEqual(by_id.data['data']['images'], ['/placeholder.svg'])
        self.assertEqual(by_id.data['data']['merchant']['email'], 'shop@example.com')

    def test_unknown_product_is_404(self):
        resp = self.client.get(f'{self.url}/does-not-exist')
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)
        self.assertFalse(resp.data['success'])

    def test_featured_endpoint(self):
        resp = self.client.get('/api/products/featured')
        self.assertEqual(self._names(resp), ['Smart Phone'])


class ProductWriteTests(StoreTestCase):
    url = '/api/products'

    def setUp(self):
        super().setUp()
        self.media_root = tempfile.mkdtemp()
        self.override = override_settings(MEDIA_ROOT=self.media_root)
        self.override.enable()

    def tearDown(self):
        self.override.disable()
        shutil.rmtree(self.media_root, ignore_errors=True)

    def _payload(self, **overrides):
        payload = {
            'name': 'Noise Cancelling Headphones',
            'description': 'Over-ear, wireless',
            'price': '199.99',
            'originalPrice': '249.99',
            'category': 'electronics',
            'brand': 'AudioTech',
            'stock': 12,
            'tags': ['audio', 'wireless'],
        }
        payload.update(overrides)
        return payload

    def _image(self, name='photo.png'):
        buffer = io.BytesIO()
        Image.new('RGB', (10, 10), color='red').save(buffer, format='PNG')
        return SimpleUploadedFile(name, buffer.getvalue(), content_type='image/png')

    def test_customer_cannot_create(self):
        self.client.force_authenticate(user=self.customer)
        resp = self.client.post(self.url, self._payload(), format='json')
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

    def test_anonymous_cannot_create(self):
        resp = self.client.post(self.url, self._payload(), format='json')
        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_merchant_creates_and_owns_product(self):
        self.client.force_authenticate(user=self.merchant)
        resp = self.client.post(self.url, self._payload(), format='json')

        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        product = Product.objects.get(pk=resp.data['data']['id'])
        self.assertEqual(product.merchant, self.merchant)
        self.assertEqual(product.category, self.electronics)
        self.assertEqual(product.discount, 20)
        self.assertEqual(resp.data['data']['images'], ['/placeholder.svg'])
        self.assertEqual(resp.data['data']['tags'], ['audio', 'wireless'])

    def test_unknown_category_is_rejected(self):
        self.client.force_authenticate(user=self.admin)
        resp = self.client.post(self.url, self._payload(category='Spaceships'), format='json')

        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('category', resp.data['errors'])

    def test_multipart_upload_with_images(self):
        self.client.force_authenticate(user=self.merchant)
        payload = self._payload(tags='audio,wireless', images=[self._image('a.png'), self._image('b.png')])
        resp = self.client.post(self.url, payload, format='multipart')

        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        images = resp.data['data']['images']
        self.assertEqual(len(images), 2)
        self.assertTrue(all(url.startswith('/uploads/products/') for url in images))
        self.assertEqual(resp.data['data']['tags'], ['audio', 'wireless'])

    def test_other_merchant_cannot_update(self):
        product = make_product(self.electronics, merchant=self.merchant)
        rival = User.objects.create_user(email='rival@example.com', password='secret123', name='Rival',
                                         role=User.Role.MERCHANT)
        self.client.force_authenticate(user=rival)

        resp = self.client.put(f'{self.url}/{product.pk}', {'price': '1.00'}, format='json')

        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)
        product.refresh_from_db()
        self.assertEqual(product.price, Decimal('10.00'))

    def test_owner_updates_and_admin_deletes(self):
        product = make_product(self.electronics, merchant=self.merchant)

        self.client.force_authenticate(user=self.merchant)
        resp = self.client.put(f'{self.url}/{product.pk}', {'price': '12.50', 'stock': 4}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data['data']['price'], Decimal('12.50'))

        self.client.force_authenticate(user=self.admin)
        resp = self.client.delete(f'{self.url}/{product.pk}')
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertFalse(Product.objects.filter(pk=product.pk).exists())

    def test_delete_removes_dependent_rows(self):
        product = make_product(self.electronics, merchant=self.merchant)
        self.client.force_authenticate(user=self.customer)
        self.client.post('/api/cart/items', {'productId': product.pk, 'quantity': 1}, format='json')
        self.client.post('/api/wishlist', {'productId': product.pk}, format='json')
        self.client.post('/api/reviews', {'productId': product.pk, 'rating': 4}, format='json')

        self.client.force_authenticate(user=self.merchant)
        self.client.delete(f'{self.url}/{product.pk}')

        self.assertFalse(CartItem.objects.filter(product_id=product.pk).exists())
        self.assertFalse(WishlistItem.objects.filter(product_id=product.pk).exists())
        self.assertFalse(Review.objects.filter(product_id=product.pk).exists())


class CategoryTests(StoreTestCase):
    url = '/api/products/categories'

    def test_list_seeds_defaults_when_empty(self):
        Category.objects.all().delete()

        resp = self.client.get(self.url)

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(len(resp.data['data']), len(DEFAULT_CATEGORIES))

    def test_list_includes_product_count(self):
        make_product(self.electronics)
        make_product(self.electronics, name='Other')

        resp = self.client.get(self.url)
        counts = {item['slug']: item['productCount'] for item in resp.data['data']}

        self.assertEqual(counts['electronics'], 2)
        self.assertEqual(counts['fashion'], 0)

    def test_admin_creates_category(self):
        self.client.force_authenticate(user=self.admin)
        resp = self.client.post(self.url, {'name': 'Garden Tools'}, format='json')

        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        self.assertEqual(resp.data['data']['slug'], 'garden-tools')

    def test_duplicate_category_is_rejected(self):
        self.client.force_authenticate(user=self.admin)
        resp = self.client.post(self.url, {'name': 'electronics'}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

    def test_merchant_cannot_create_category(self):
        self.client.force_authenticate(user=self.merchant)
        resp = self.client.post(self.url, {'name': 'Garden Tools'}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)


# ======================================================
# Cart
# ======================================================
class CartTests(StoreTestCase):
    def setUp(self):
        super().setUp()
        self.product = make_product(self.electronics, name='Desk Lamp', price=Decimal('50.00'), stock=5)
        self.client.force_authenticate(user=self.customer)

    def _add(self, quantity, product=None):
        product = product or self.product
        return self.client.post('/api/cart/items', {'productId': product.pk, 'quantity': quantity}, format='json')

    def test_cart_requires_authentication(self):
        self.client.force_authenticate(user=None)
        resp = self.client.get('/api/cart')
        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_empty_cart(self):
        resp = self.client.get('/api/cart')

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data['data']['items'], [])
        self.assertEqual(resp.data['data']['subtotal'], Decimal('0.00'))

    def test_add_computes_totals(self):
        resp = self._add(2)

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        data = resp.data['data']
        self.assertEqual(len(data['items']), 1)
        self.assertEqual(data['subtotal'], Decimal('100.00'))
        self.assertEqual(data['shipping'], Decimal('0.00'))
        self.assertEqual(data['tax'], Decimal('8.00'))
        self.assertEqual(data['total'], Decimal('108.00'))

    def test_adding_same_product_merges_line(self):
        self._add(1)
        resp = self._add(2)

        self.assertEqual(len(resp.data['data']['items']), 1)
        self.assertEqual(resp.data['data']['items'][0]['quantity'], 3)

    def test_add_beyond_stock_is_rejected(self):
        self._add(4)
        resp = self._add(2)

        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('Insufficient stock', resp.data['message'])
        self.assertEqual(CartItem.objects.get(cart__user=self.customer).quantity, 4)

    def test_add_unknown_product_is_404(self):
        resp = self.client.post('/api/cart/items', {'productId': 9999, 'quantity': 1}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)

    def test_update_and_remove_line(self):
        line_id = self._add(1).data['data']['items'][0]['id']

        resp = self.client.put(f'/api/cart/items/{line_id}', {'quantity': 3}, format='json')
        self.assertEqual(resp.data['data']['items'][0]['quantity'], 3)

        resp = self.client.put(f'/api/cart/items/{line_id}', {'quantity': 6}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

        resp = self.client.delete(f'/api/cart/items/{line_id}')
        self.assertEqual(resp.data['data']['items'], [])

    def test_other_users_line_is_not_found(self):
        line_id = self._add(1).data['data']['items'][0]['id']

        other = User.objects.create_user(email='other@example.com', password='secret123', name='Other')
        self.client.force_authenticate(user=other)
        resp = self.client.delete(f'/api/cart/items/{line_id}')

        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)
        self.assertTrue(CartItem.objects.filter(pk=line_id).exists())

    def test_clear_cart(self):
        self._add(1)
        resp = self.client.delete('/api/cart')
        self.assertEqual(resp.data['data']['items'], [])

    def test_guest_merge_clamps_and_reports_skipped(self):
        sold_out = make_product(self.electronics, name='Sold Out', stock=0)
        self._add(3)

        resp = self.client.post('/api/cart/merge', {'items': [
            {'productId': self.product.pk, 'quantity': 4},
            {'productId': sold_out.pk, 'quantity': 1},
            {'productId': 9999, 'quantity': 1},
        ]}, format='json')

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data['data']['items'][0]['quantity'], 5)
        reasons = {entry['productId']: entry['reason'] for entry in resp.data['data']['skipped']}
        self.assertEqual(reasons, {sold_out.pk: 'Out of stock', 9999: 'Product not found'})

    def test_add_folds_into_line_inserted_concurrently(self):
        self._add(1)
        line = CartItem.objects.get(cart__user=self.customer)

        # First lookup misses the line, as when another request inserted it after the check
        with mock.patch.object(CartService, '_find_line', side_effect=[None, line]):
            CartService.add_item(self.customer, self.product.pk, 2)

        line.refresh_from_db()
        self.assertEqual(line.quantity, 3)
        self.assertEqual(CartItem.objects.filter(cart__user=self.customer).count(), 1)

    def test_guest_merge_folds_into_line_inserted_concurrently(self):
        self._add(1)
        line = CartItem.objects.get(cart__user=self.customer)

        with mock.patch.object(CartService, '_find_line', side_effect=[None, line]):
            CartService.merge_guest_items(self.customer, [{'productId': self.product.pk, 'quantity': 9}])

        line.refresh_from_db()
        self.assertEqual(line.quantity, 5)


# ======================================================
# Wishlist
# ======================================================
class WishlistTests(StoreTestCase):
    def setUp(self):
        super().setUp()
        self.product = make_product(self.fashion, name='Silk Scarf')
        self.client.force_authenticate(user=self.customer)

    def test_add_check_and_remove(self):
        resp = self.client.post('/api/wishlist', {'productId': self.product.pk}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data['data'][0]['product']['id'], self.product.pk)

        resp = self.client.get(f'/api/wishlist/check/{self.product.pk}')
        self.assertTrue(resp.data['data']['inWishlist'])

        resp = self.client.delete(f'/api/wishlist/{self.product.pk}')
        self.assertEqual(resp.data['data'], [])

    def test_duplicate_add_is_rejected(self):
        self.client.post('/api/wishlist', {'productId': self.product.pk}, format='json')
        resp = self.client.post('/api/wishlist', {'productId': self.product.pk}, format='json')

        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data['message'], 'Product already in wishlist')

    def test_remove_missing_is_404(self):
        resp = self.client.delete(f'/api/wishlist/{self.product.pk}')
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)

    def test_merge_skips_unknown_products(self):
        resp = self.client.post('/api/wishlist/merge', {'productIds': [self.product.pk, 9999]}, format='json')

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(len(resp.data['data']['items']), 1)
        self.assertEqual(resp.data['data']['skipped'], [9999])


# ======================================================
# Reviews
# ======================================================
class ReviewTests(StoreTestCase):
    def setUp(self):
        super().setUp()
        self.product = make_product(self.electronics, name='Camera')
        self.second = User.objects.create_user(email='second@example.com', password='secret123', name='Second')

    def _review(self, user, rating):
        self.client.force_authenticate(user=user)
        return self.client.post('/api/reviews', {'productId': self.product.pk, 'rating': rating,
                                                 'comment': 'Nice'}, format='json')

    def test_rating_is_recomputed(self):
        self.assertEqual(self._review(self.customer, 5).status_code, status.HTTP_201_CREATED)
        self._review(self.second, 2)

        self.product.refresh_from_db()
        self.assertEqual(self.product.rating, Decimal('3.5'))
        self.assertEqual(self.product.review_count, 2)

    def test_failed_recompute_rolls_back_review(self):
        with mock.patch('store.models.Product.refresh_rating', side_effect=RuntimeError('db down')):
            with self.assertRaises(RuntimeError):
                ReviewService.create_review(self.customer, self.product.pk, 4)

        self.assertFalse(Review.objects.filter(product=self.product).exists())

    def test_second_review_by_same_user_is_rejected(self):
        self._review(self.customer, 5)
        resp = self._review(self.customer, 1)

        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(Review.objects.filter(product=self.product).count(), 1)

    def test_invalid_rating(self):
        resp = self._review(self.customer, 6)
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

    def test_deleting_only_review_resets_rating(self):
        review_id = self._review(self.customer, 4).data['data']['id']

        resp = self.client.delete(f'/api/reviews/{review_id}')

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.product.refresh_from_db()
        self.assertEqual(self.product.rating, Decimal('0.0'))
        self.assertEqual(self.product.review_count, 0)

    def test_only_author_can_edit(self):
        review_id = self._review(self.customer, 4).data['data']['id']

        self.client.force_authenticate(user=self.second)
        resp = self.client.put(f'/api/reviews/{review_id}', {'rating': 1}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(user=self.customer)
        resp = self.client.put(f'/api/reviews/{review_id}', {'rating': 2}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.product.refresh_from_db()
        self.assertEqual(self.product.rating, Decimal('2.0'))

    def test_product_reviews_are_public(self):
        self._review(self.customer, 4)
        self.client.force_authenticate(user=None)

        resp = self.client.get(f'/api/reviews/product/{self.product.pk}')

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data['data'][0]['user']['name'], 'Customer')
