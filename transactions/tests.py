from decimal import Decimal

from django.contrib.auth import get_user_model
from rest_framework import status
from rest_framework.test import APITestCase

from store.models import Category, Product, CartItem, ProductVariant
from store.services.cart_service import CartService
from transactions.models import Order

User = get_user_model()

ADDRESS = {
    'firstName': 'Ada',
    'lastName': 'Buyer',
    'street': '1 Main Street',
    'city': 'Springfield',
    'state': 'IL',
    'zipCode': '62701',
    'country': 'US',
    'phone': '555-0100',
}


class OrderTestCase(APITestCase):
    def setUp(self):
        self.category = Category.objects.create(name='Electronics')
        self.customer = User.objects.create_user(email='cust@example.com', password='secret123', name='Customer')
        self.merchant = User.objects.create_user(
            email='shop@example.com', password='secret123', name='Shop', role=User.Role.MERCHANT
        )
        self.admin = User.objects.create_user(
            email='admin@example.com', password='secret123', name='Admin', role=User.Role.ADMIN
        )
        self.lamp = Product.objects.create(
            category=self.category, merchant=self.merchant, name='Desk Lamp',
            description='Bright', price=Decimal('50.00'), stock=5,
        )
        self.cable = Product.objects.create(
            category=self.category, name='Cable', description='Long', price=Decimal('5.00'), stock=10,
        )

    def place_order(self, user=None, **overrides):
        self.client.force_authenticate(user=user or self.customer)
        payload = {'shippingAddress': ADDRESS, 'paymentMethod': 'card'}
        payload.update(overrides)
        return self.client.post('/api/orders', payload, format='json')


class OrderCreateTests(OrderTestCase):
    def test_order_snapshots_cart_and_decrements_stock(self):
        CartService.add_item(self.customer, self.lamp.pk, 2)

        resp = self.place_order()

        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        data = resp.data['data']
        self.assertRegex(data['orderNumber'], r'^ORD-\d{8}-[0-9A-F]{6}$')
        self.assertEqual(data['subtotal'], Decimal('100.00'))
        self.assertEqual(data['shipping'], Decimal('0.00'))
        self.assertEqual(data['tax'], Decimal('8.00'))
        self.assertEqual(data['total'], Decimal('108.00'))
        self.assertEqual(data['status'], 'pending')
        self.assertEqual(data['paymentStatus'], 'pending')
        self.assertEqual(data['billingAddress'], data['shippingAddress'])
        self.assertEqual(data['items'][0]['name'], 'Desk Lamp')

        self.lamp.refresh_from_db()
        self.assertEqual(self.lamp.stock, 3)
        self.assertFalse(CartItem.objects.filter(cart__user=self.customer).exists())

    def test_unit_price_includes_variant_modifier(self):
        variant = ProductVariant.objects.create(
            product=self.lamp, name='Finish', type='material', value='Brass', price_modifier=Decimal('7.50')
        )
        CartService.add_item(self.customer, self.lamp.pk, 1, variant.pk)

        resp = self.place_order()

        item = resp.data['data']['items'][0]
        self.assertEqual(item['price'], Decimal('57.50'))
        self.assertEqual(item['variant']['value'], 'Brass')

    def test_empty_cart_is_rejected(self):
        resp = self.place_order()

        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data['message'], 'Cart is empty')
        self.assertFalse(Order.objects.exists())

    def test_missing_shipping_address_is_rejected(self):
        CartService.add_item(self.customer, self.lamp.pk, 1)
        self.client.force_authenticate(user=self.customer)

        resp = self.client.post('/api/orders', {'paymentMethod': 'card'}, format='json')

        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('shippingAddress', resp.data['errors'])

    def test_over_stock_line_rolls_back_everything(self):
        CartService.add_item(self.customer, self.cable.pk, 3)
        CartService.add_item(self.customer, self.lamp.pk, 4)
        # Stock drops after the lines were added
        Product.objects.filter(pk=self.lamp.pk).update(stock=2)

        resp = self.place_order()

        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(Order.objects.exists())
        self.cable.refresh_from_db()
        self.assertEqual(self.cable.stock, 10)
        self.assertEqual(CartItem.objects.filter(cart__user=self.customer).count(), 2)

    def test_deleted_product_keeps_order_line(self):
        CartService.add_item(self.customer, self.lamp.pk, 1)
        order_id = self.place_order().data['data']['id']

        self.lamp.delete()

        resp = self.client.get(f'/api/orders/{order_id}')
        item = resp.data['data']['items'][0]
        self.assertIsNone(item['productId'])
        self.assertEqual(item['name'], 'Desk Lamp')


class OrderAccessTests(OrderTestCase):
    def setUp(self):
        super().setUp()
        CartService.add_item(self.customer, self.lamp.pk, 1)
        self.lamp_order_id = self.place_order().data['data']['id']

        CartService.add_item(self.customer, self.cable.pk, 1)
        self.cable_order_id = self.place_order().data['data']['id']

    def _ids(self, resp):
        return {order['id'] for order in resp.data['data']}

    def test_user_sees_own_orders(self):
        stranger = User.objects.create_user(email='x@example.com', password='secret123', name='X')

        self.client.force_authenticate(user=self.customer)
        self.assertEqual(self._ids(self.client.get('/api/orders')), {self.lamp_order_id, self.cable_order_id})

        self.client.force_authenticate(user=stranger)
        resp = self.client.get('/api/orders')
        self.assertEqual(resp.data['data'], [])
        self.assertEqual(resp.data['pagination']['total'], 0)

    def test_merchant_sees_orders_with_their_products(self):
        self.client.force_authenticate(user=self.merchant)
        self.assertEqual(self._ids(self.client.get('/api/orders')), {self.lamp_order_id})

        resp = self.client.get(f'/api/orders/{self.cable_order_id}')
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_search_matches_customer_email(self):
        self.client.force_authenticate(user=self.admin)
        resp = self.client.get('/api/orders', {'search': 'cust@'})
        self.assertEqual(len(resp.data['data']), 2)

    def test_filter_by_status(self):
        Order.objects.filter(pk=self.lamp_order_id).update(status=Order.Status.SHIPPED)
        self.client.force_authenticate(user=self.customer)

        resp = self.client.get('/api/orders', {'status': 'shipped'})

        self.assertEqual(self._ids(resp), {self.lamp_order_id})

    def test_other_user_cannot_view_order(self):
        stranger = User.objects.create_user(email='x@example.com', password='secret123', name='X')
        self.client.force_authenticate(user=stranger)

        resp = self.client.get(f'/api/orders/{self.lamp_order_id}')

        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

    def test_unknown_order_is_404(self):
        self.client.force_authenticate(user=self.customer)
        resp = self.client.get('/api/orders/9999')
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)


class OrderCancelTests(OrderTestCase):
    def setUp(self):
        super().setUp()
        CartService.add_item(self.customer, self.lamp.pk, 2)
        self.order_id = self.place_order().data['data']['id']

    def test_owner_cancels_pending_order(self):
        resp = self.client.put(f'/api/orders/{self.order_id}/cancel')

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data['data']['status'], 'cancelled')
        self.lamp.refresh_from_db()
        self.assertEqual(self.lamp.stock, 5)

    def test_cannot_cancel_twice(self):
        self.client.put(f'/api/orders/{self.order_id}/cancel')
        resp = self.client.put(f'/api/orders/{self.order_id}/cancel')

        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.lamp.refresh_from_db()
        self.assertEqual(self.lamp.stock, 5)

    def test_cannot_cancel_shipped_order(self):
        Order.objects.filter(pk=self.order_id).update(status=Order.Status.SHIPPED)

        resp = self.client.put(f'/api/orders/{self.order_id}/cancel')

        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("shipped", resp.data["message"])

    def test_cannot_cancel_delivered_order(self):
        Order.objects.filter(pk=self.order_id).update(status=Order.Status.DELIVERED)

        resp = self.client.put(f'/api/orders/{self.order_id}/cancel')

        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data['message'], 'Cannot cancel order with status: delivered')
        self.lamp.refresh_from_db()
        self.assertEqual(self.lamp.stock, 3)

    def test_only_owner_can_cancel(self):
        self.client.force_authenticate(user=self.admin)
        resp = self.client.put(f'/api/orders/{self.order_id}/cancel')
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)


class OrderStatusTests(OrderTestCase):
    def setUp(self):
        super().setUp()
        CartService.add_item(self.customer, self.lamp.pk, 2)
        self.order_id = self.place_order().data['data']['id']
        self.url = f'/api/orders/{self.order_id}/status'

    def test_customer_cannot_update_status(self):
        resp = self.client.put(self.url, {'status': 'shipped'}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

    def test_merchant_with_product_updates_status_and_tracking(self):
        self.client.force_authenticate(user=self.merchant)

        resp = self.client.put(self.url, {
            'status': 'shipped',
            'trackingNumber': 'TRK123',
            'estimatedDelivery': '2030-01-15T12:00:00Z',
        }, format='json')

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        order = Order.objects.get(pk=self.order_id)
        self.assertEqual(order.status, Order.Status.SHIPPED)
        self.assertEqual(order.tracking_number, 'TRK123')
        self.assertIsNotNone(order.estimated_delivery)

    def test_merchant_without_product_is_forbidden(self):
        other = User.objects.create_user(email='other@example.com', password='secret123', name='Other',
                                         role=User.Role.MERCHANT)
        self.client.force_authenticate(user=other)

        resp = self.client.put(self.url, {'status': 'shipped'}, format='json')

        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_updates_any_order(self):
        CartService.add_item(self.customer, self.cable.pk, 1)
        cable_order_id = self.place_order().data['data']['id']
        self.client.force_authenticate(user=self.admin)

        resp = self.client.put(f'/api/orders/{cable_order_id}/status', {'status': 'delivered'}, format='json')

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data['data']['status'], 'delivered')
        self.assertEqual(Order.objects.get(pk=cable_order_id).status, Order.Status.DELIVERED)

    def test_invalid_status_is_rejected(self):
        self.client.force_authenticate(user=self.admin)
        resp = self.client.put(self.url, {'status': 'teleported'}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

    def test_cancelling_through_status_restores_stock_once(self):
        self.client.force_authenticate(user=self.admin)

        self.client.put(self.url, {'status': 'cancelled'}, format='json')
        self.client.put(self.url, {'status': 'pending'}, format='json')
        self.client.put(self.url, {'status': 'cancelled'}, format='json')

        self.lamp.refresh_from_db()
        self.assertEqual(self.lamp.stock, 5)
