import io
import shutil
import tempfile
from unittest import mock

from PIL import Image
from django.contrib.auth import get_user_model
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import SimpleTestCase, override_settings
from rest_framework import status
from rest_framework.test import APITestCase

from authentication.core.ip_utils import describe_client, get_client_ip
from authentication.core.jwt_utils import TokenManager
from authentication.serializers import UserRegistrationSerializer

User = get_user_model()


class RegistrationTests(APITestCase):
    url = '/api/auth/register'

    def test_register_returns_user_and_tokens(self):
        resp = self.client.post(self.url, {
            'name': 'Ada Buyer',
            'email': 'Ada@Example.com',
            'password': 'secret123',
        }, format='json')

        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        self.assertTrue(resp.data['success'])
        self.assertEqual(resp.data['data']['user']['email'], 'ada@example.com')
        self.assertEqual(resp.data['data']['user']['role'], 'user')
        self.assertIn('token', resp.data['data'])
        self.assertIn('refreshToken', resp.data['data'])

    def test_register_existing_email_is_rejected(self):
        User.objects.create_user(email='taken@example.com', password='secret123', name='First')

        resp = self.client.post(self.url, {
            'name': 'Second',
            'email': 'TAKEN@example.com',
            'password': 'secret123',
        }, format='json')

        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(resp.data['success'])
        self.assertIn('email', resp.data['errors'])
        self.assertEqual(User.objects.filter(email__iexact='taken@example.com').count(), 1)

    def test_email_taken_after_validation_is_rejected(self):
        User.objects.create_user(email='taken@example.com', password='secret123', name='First')

        # The account appears between the serializer check and the insert
        with mock.patch.object(UserRegistrationSerializer, 'validate_email', lambda self, value: value.lower()):
            resp = self.client.post(self.url, {
                'name': 'Second',
                'email': 'taken@example.com',
                'password': 'secret123',
            }, format='json')

        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data['errors'], {'email': ['User already exists']})
        self.assertEqual(User.objects.filter(email__iexact='taken@example.com').count(), 1)

    def test_register_as_merchant(self):
        resp = self.client.post(self.url, {
            'name': 'Shop Owner',
            'email': 'shop@example.com',
            'password': 'secret123',
            'role': 'merchant',
        }, format='json')

        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        self.assertEqual(User.objects.get(email='shop@example.com').role, User.Role.MERCHANT)

    def test_admin_role_cannot_be_self_assigned(self):
        resp = self.client.post(self.url, {
            'name': 'Sneaky',
            'email': 'sneaky@example.com',
            'password': 'secret123',
            'role': 'admin',
        }, format='json')

        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(User.objects.filter(email='sneaky@example.com').exists())

    def test_register_requires_name_and_short_password_fails(self):
        resp = self.client.post(self.url, {'email': 'x@example.com', 'password': 'abc'}, format='json')

        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('name', resp.data['errors'])
        self.assertIn('password', resp.data['errors'])


class LoginTests(APITestCase):
    url = '/api/auth/login'

    def setUp(self):
        self.user = User.objects.create_user(email='buyer@example.com', password='secret123', name='Buyer')

    def test_login_success(self):
        resp = self.client.post(self.url, {'email': 'buyer@example.com', 'password': 'secret123'}, format='json')

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data['data']['user']['id'], self.user.id)
        self.assertTrue(resp.data['data']['token'])

    def test_login_wrong_password(self):
        resp = self.client.post(self.url, {'email': 'buyer@example.com', 'password': 'wrong-pass'}, format='json')

        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(resp.data['message'], 'Invalid credentials')

    def test_login_token_authenticates_requests(self):
        resp = self.client.post(self.url, {'email': 'buyer@example.com', 'password': 'secret123'}, format='json')
        token = resp.data['data']['token']

        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {token}')
        profile = self.client.get('/api/auth/profile')

        self.assertEqual(profile.status_code, status.HTTP_200_OK)
        self.assertEqual(profile.data['data']['email'], 'buyer@example.com')


class TokenTests(APITestCase):
    def setUp(self):
        self.user = User.objects.create_user(email='buyer@example.com', password='secret123', name='Buyer')

    def test_missing_token_is_401(self):
        resp = self.client.get('/api/auth/profile')
        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertFalse(resp.data['success'])

    def test_garbage_token_is_401(self):
        self.client.credentials(HTTP_AUTHORIZATION='Bearer not-a-token')
        resp = self.client.get('/api/auth/profile')
        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_token_of_deleted_user_is_401(self):
        tokens = TokenManager.generate_tokens(self.user)
        self.user.delete()

        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {tokens['access_token']}")
        resp = self.client.get('/api/auth/profile')
        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_refresh_issues_new_access_token(self):
        tokens = TokenManager.generate_tokens(self.user)

        resp = self.client.post('/api/auth/refresh', {'refreshToken': tokens['refresh_token']}, format='json')

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertTrue(resp.data['data']['token'])

    def test_refresh_with_invalid_token(self):
        resp = self.client.post('/api/auth/refresh', {'refreshToken': 'broken'}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_logout_acknowledges(self):
        self.client.force_authenticate(user=self.user)
        resp = self.client.post('/api/auth/logout')
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertTrue(resp.data['success'])


class ProfileTests(APITestCase):
    def setUp(self):
        self.user = User.objects.create_user(email='buyer@example.com', password='secret123', name='Buyer')
        self.client.force_authenticate(user=self.user)

    def test_update_profile_ignores_role_and_email(self):
        resp = self.client.put('/api/auth/profile', {
            'name': 'New Name',
            'phone': '555-0100',
            'address': '1 Main St',
            'role': 'admin',
            'email': 'other@example.com',
        }, format='json')

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertEqual(self.user.name, 'New Name')
        self.assertEqual(self.user.phone, '555-0100')
        self.assertEqual(self.user.role, User.Role.USER)
        self.assertEqual(self.user.email, 'buyer@example.com')

    def test_change_password(self):
        resp = self.client.put('/api/auth/password', {
            'currentPassword': 'secret123',
            'newPassword': 'fresh-secret1',
        }, format='json')

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertTrue(self.user.check_password('fresh-secret1'))

    def test_change_password_wrong_current(self):
        resp = self.client.put('/api/auth/password', {
            'currentPassword': 'nope1234',
            'newPassword': 'fresh-secret1',
        }, format='json')

        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.user.refresh_from_db()
        self.assertTrue(self.user.check_password('secret123'))


class AvatarUploadTests(APITestCase):
    def setUp(self):
        self.media_root = tempfile.mkdtemp()
        self.override = override_settings(MEDIA_ROOT=self.media_root)
        self.override.enable()
        self.user = User.objects.create_user(email='buyer@example.com', password='secret123', name='Buyer')
        self.client.force_authenticate(user=self.user)

    def tearDown(self):
        self.override.disable()
        shutil.rmtree(self.media_root, ignore_errors=True)

    def _image(self, name='avatar.png'):
        buffer = io.BytesIO()
        Image.new('RGB', (20, 20), color='blue').save(buffer, format='PNG')
        return SimpleUploadedFile(name, buffer.getvalue(), content_type='image/png')

    def test_upload_avatar(self):
        resp = self.client.post('/api/auth/avatar', {'avatar': self._image()}, format='multipart')

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertTrue(self.user.avatar.name.startswith('avatars/'))
        self.assertTrue(resp.data['data']['avatar'].startswith('/uploads/avatars/'))

    def test_upload_without_file(self):
        resp = self.client.post('/api/auth/avatar', {}, format='multipart')
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)


class ClientAddressTests(SimpleTestCase):
    def test_forwarded_header_wins_over_remote_addr(self):
        meta = {'HTTP_X_FORWARDED_FOR': '203.0.113.7, 10.0.0.1', 'REMOTE_ADDR': '10.0.0.1'}
        self.assertEqual(get_client_ip(meta), '203.0.113.7')

    def test_falls_back_to_remote_addr(self):
        self.assertEqual(get_client_ip({'REMOTE_ADDR': '198.51.100.2'}), '198.51.100.2')
        self.assertEqual(get_client_ip({}), '')

    def test_describe_client(self):
        tag = describe_client({'REMOTE_ADDR': '198.51.100.2', 'HTTP_USER_AGENT': 'curl/8'})
        self.assertEqual(tag, 'ip=198.51.100.2 agent=curl/8')


class OperationsTests(APITestCase):
    def test_health(self):
        resp = self.client.get('/api/health')
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.json()['status'], 'OK')

    def test_unknown_route_is_json_404(self):
        resp = self.client.get('/api/does-not-exist')
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(resp.json(), {'success': False, 'message': 'Route not found'})
