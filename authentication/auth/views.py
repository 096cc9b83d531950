from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, AllowAny
from rest_framework.throttling import AnonRateThrottle
from drf_yasg.utils import swagger_auto_schema

from authentication.core.base_view import BaseAPIView
from authentication.core.response import standardized_response
from authentication.serializers import (
    UserRegistrationSerializer,
    UserLoginSerializer,
    TokenRefreshSerializer,
    AuthResponseSerializer,
)
from .services import AuthenticationService


class UserRegistrationView(BaseAPIView):
    permission_classes = [AllowAny]
    authentication_classes = []
    throttle_classes = [AnonRateThrottle]

    @swagger_auto_schema(
        operation_id="auth_register",
        tags=["Auth"],
        request_body=UserRegistrationSerializer,
        responses={201: AuthResponseSerializer, 400: "Validation error or email already registered"}
    )
    def post(self, request):
        serializer = UserRegistrationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        success, response_data, status_code = AuthenticationService.register(
            request_meta=request.META,
            request=request,
            **serializer.validated_data
        )
        return Response(standardized_response(**response_data), status=status_code)


class UserLoginView(BaseAPIView):
    permission_classes = [AllowAny]
    authentication_classes = []
    throttle_classes = [AnonRateThrottle]

    @swagger_auto_schema(
        operation_id="auth_login",
        tags=["Auth"],
        request_body=UserLoginSerializer,
        responses={200: AuthResponseSerializer, 401: "Invalid credentials"}
    )
    def post(self, request):
        serializer = UserLoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        success, response_data, status_code = AuthenticationService.login(
            email=serializer.validated_data['email'],
            password=serializer.validated_data['password'],
            request_meta=request.META,
            request=request
        )
        return Response(standardized_response(**response_data), status=status_code)


class TokenRefreshView(BaseAPIView):
    permission_classes = [AllowAny]
    authentication_classes = []
    throttle_classes = [AnonRateThrottle]

    @swagger_auto_schema(
        operation_id="auth_refresh",
        tags=["Auth"],
        request_body=TokenRefreshSerializer,
        responses={200: "New token pair", 401: "Invalid or expired refresh token"}
    )
    def post(self, request):
        success, response_data, status_code = AuthenticationService.refresh_token(
            request.data.get('refreshToken'),
            request=request
        )
        return Response(standardized_response(**response_data), status=status_code)


class LogoutView(BaseAPIView):
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(
        operation_id="auth_logout",
        tags=["Auth"],
        security=[{"Bearer": []}],
        responses={200: "Logged out"}
    )
    def post(self, request):
        success, response_data, status_code = AuthenticationService.logout(request.user)
        return Response(standardized_response(**response_data), status=status_code)
