import logging

from django.contrib.auth import authenticate
from django.db import IntegrityError, transaction
from django.utils import timezone
from rest_framework_simplejwt.exceptions import TokenError

from authentication.serializers import UserBaseSerializer
from authentication.core.jwt_utils import TokenManager
from authentication.core.ip_utils import describe_client
from authentication.models import CustomUser

logger = logging.getLogger(__name__)


class AuthenticationService:
    """Service class to handle authentication-related business logic"""

    @staticmethod
    def _auth_payload(user, request=None):
        context = {'request': request} if request else {}
        tokens = TokenManager.generate_tokens(user)
        return {
            'user': UserBaseSerializer(user, context=context).data,
            'token': tokens['access_token'],
            'refreshToken': tokens['refresh_token'],
        }

    @staticmethod
    def register(name, email, password, role=CustomUser.Role.USER, phone=None,
                 request_meta=None, request=None):
        """Create an account from already-validated input and sign it in"""
        if request_meta:
            logger.info(f"register {email} ({role}) {describe_client(request_meta)}")

        if role == CustomUser.Role.ADMIN:
            return False, {"success": False, "error": "Admin accounts cannot be self-registered"}, 400

        try:
            with transaction.atomic():
                user = CustomUser.objects.create_user(
                    email=email,
                    password=password,
                    name=name,
                    role=role,
                    phone=phone or None,
                )
        except IntegrityError:
            # Same email registered by a concurrent request after validation
            logger.warning(f"Registration lost race for existing email: {email}")
            return False, {"success": False, "error": {"email": ["User already exists"]}}, 400

        logger.info(f"Registration successful for user: {user.email} ({user.role})")

        return True, {
            "success": True,
            "message": "User registered successfully",
            "data": AuthenticationService._auth_payload(user, request),
        }, 201

    @staticmethod
    def login(email, password, request_meta=None, request=None):
        """Handle user login with email and password"""
        if not email or not password:
            return False, {"success": False, "error": "Email and password are required."}, 400

        if request_meta:
            logger.info(f"login {email} {describe_client(request_meta)}")

        user = authenticate(request=request, username=email.strip().lower(), password=password)
        if not user:
            logger.warning(f"Failed login attempt for email: {email}")
            return False, {"success": False, "error": "Invalid credentials"}, 401

        user.last_login = timezone.now()
        user.save(update_fields=['last_login'])
        logger.info(f"Login successful for user: {user.email}")

        return True, {
            "success": True,
            "message": "Login successful",
            "data": AuthenticationService._auth_payload(user, request),
        }, 200

    @staticmethod
    def refresh_token(refresh_token, request=None):
        """Exchange a refresh token for a fresh token pair"""
        if not refresh_token:
            return False, {"success": False, "error": "Refresh token is required"}, 400

        try:
            user, tokens = TokenManager.refresh_tokens(refresh_token)
        except TokenError as e:
            logger.warning(f"Token refresh rejected: {str(e)}")
            return False, {"success": False, "error": "Invalid or expired refresh token"}, 401

        return True, {
            "success": True,
            "data": {
                'token': tokens['access_token'],
                'refreshToken': tokens['refresh_token'],
                'expiresIn': tokens['expires_in'],
            }
        }, 200

    @staticmethod
    def logout(user):
        """Tokens are stateless; logging out is acknowledged and left to the client"""
        logger.info(f"User logged out: {user.pk}")
        return True, {"success": True, "message": "Logged out successfully"}, 200
