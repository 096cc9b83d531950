from decimal import Decimal

from django.contrib.auth import get_user_model
from rest_framework import status
from rest_framework.test import APITestCase

from store.models import Category, Product
from transactions.models import Order

User = get_user_model()

ADDRESS = {'street': '1 Main Street', 'city': 'Springfield'}


def make_order(user, total, **fields):
    return Order.objects.create(
        user=user,
        shipping_address=ADDRESS,
        billing_address=ADDRESS,
        payment_method='card',
        subtotal=total,
        total=total,
        **fields,
    )


class AdminStatsTests(APITestCase):
    url = '/api/admin/stats'

    def setUp(self):
        self.admin = User.objects.create_user(
            email='admin@example.com', password='secret123', name='Admin', role=User.Role.ADMIN
        )
        self.customer = User.objects.create_user(email='cust@example.com', password='secret123', name='Customer')
        category = Category.objects.create(name='Books')
        Product.objects.create(category=category, name='Novel', description='Long', price=Decimal('12.00'), stock=3)
        Product.objects.create(category=category, name='Atlas', description='Big', price=Decimal('40.00'), stock=50)

        make_order(self.customer, Decimal('100.00'), payment_status=Order.PaymentStatus.PAID)
        make_order(self.customer, Decimal('25.50'), payment_status=Order.PaymentStatus.PAID,
                   status=Order.Status.DELIVERED)
        make_order(self.customer, Decimal('999.00'))

    def test_requires_admin(self):
        self.client.force_authenticate(user=self.customer)
        resp = self.client.get(self.url)

        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)
        self.assertFalse(resp.data['success'])

    def test_stats(self):
        self.client.force_authenticate(user=self.admin)
        resp = self.client.get(self.url)

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        data = resp.data['data']
        self.assertEqual(data['totalUsers'], 2)
        self.assertEqual(data['totalProducts'], 2)
        self.assertEqual(data['totalOrders'], 3)
        self.assertEqual(data['totalRevenue'], Decimal('125.50'))
        self.assertEqual(data['recentSales'], Decimal('125.50'))
        self.assertEqual(data['lowStockProducts'], 1)
        self.assertEqual(data['ordersByStatus'], {'pending': 2, 'delivered': 1})
        self.assertEqual(data['ordersByPaymentStatus'], {'paid': 2, 'pending': 1})
        self.assertEqual(len(data['recentOrders']), 3)


class AdminUserTests(APITestCase):
    def setUp(self):
        self.admin = User.objects.create_user(
            email='admin@example.com', password='secret123', name='Admin', role=User.Role.ADMIN
        )
        self.customer = User.objects.create_user(email='cust@example.com', password='secret123', name='Customer')
        self.merchant = User.objects.create_user(
            email='shop@example.com', password='secret123', name='Shop Keeper', role=User.Role.MERCHANT
        )

    def test_list_filters_by_role_and_search(self):
        self.client.force_authenticate(user=self.admin)

        resp = self.client.get('/api/users', {'role': 'merchant'})
        self.assertEqual([u['email'] for u in resp.data['data']], ['shop@example.com'])

        resp = self.client.get('/api/users', {'search': 'keeper'})
        self.assertEqual(resp.data['pagination']['total'], 1)

    def test_non_admin_cannot_list(self):
        self.client.force_authenticate(user=self.customer)
        resp = self.client.get('/api/users')
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

    def test_user_can_read_self_only(self):
        self.client.force_authenticate(user=self.customer)

        resp = self.client.get(f'/api/users/{self.customer.pk}')
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data['data']['email'], 'cust@example.com')

        resp = self.client.get(f'/api/users/{self.merchant.pk}')
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_changes_role(self):
        self.client.force_authenticate(user=self.admin)

        resp = self.client.put(f'/api/users/{self.customer.pk}', {'role': 'merchant'}, format='json')

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.role, User.Role.MERCHANT)

    def test_admin_deletes_user(self):
        self.client.force_authenticate(user=self.admin)

        resp = self.client.delete(f'/api/users/{self.customer.pk}')

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertFalse(User.objects.filter(pk=self.customer.pk).exists())

    def test_admin_cannot_delete_self(self):
        self.client.force_authenticate(user=self.admin)

        resp = self.client.delete(f'/api/users/{self.admin.pk}')

        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data['message'], 'You cannot delete your own account')
        self.assertTrue(User.objects.filter(pk=self.admin.pk).exists())

    def test_unknown_user_is_404(self):
        self.client.force_authenticate(user=self.admin)
        resp = self.client.get('/api/users/9999')
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)
