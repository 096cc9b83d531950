from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from rest_framework.throttling import UserRateThrottle
from rest_framework.parsers import MultiPartParser, FormParser, JSONParser
from drf_yasg.utils import swagger_auto_schema

from authentication.core.base_view import BaseAPIView
from authentication.core.response import standardized_response
from authentication.serializers import (
    UserBaseSerializer,
    UserProfileUpdateSerializer,
    PasswordChangeSerializer,
    AvatarUploadSerializer,
)
from .services import ProfileService


class UserProfileView(BaseAPIView):
    """
    The authenticated user's own profile.
    GET returns it; PUT/PATCH update name, phone and address.
    """
    permission_classes = [IsAuthenticated]
    throttle_classes = [UserRateThrottle]
    parser_classes = [JSONParser, MultiPartParser, FormParser]

    @swagger_auto_schema(
        operation_id="auth_profile_get",
        tags=["Auth"],
        security=[{"Bearer": []}],
        responses={200: UserBaseSerializer, 401: "Unauthorized: missing or invalid token"}
    )
    def get(self, request):
        data = ProfileService.get_profile(request.user, request=request)
        return Response(standardized_response(data=data))

    @swagger_auto_schema(
        operation_id="auth_profile_update",
        tags=["Auth"],
        security=[{"Bearer": []}],
        request_body=UserProfileUpdateSerializer,
        responses={200: UserBaseSerializer, 400: "Validation error"}
    )
    def put(self, request):
        success, response_data, status_code = ProfileService.update_profile(
            request.user, request.data, request=request
        )
        return Response(standardized_response(**response_data), status=status_code)

    def patch(self, request):
        return self.put(request)


class PasswordChangeView(BaseAPIView):
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(
        operation_id="auth_password_change",
        tags=["Auth"],
        security=[{"Bearer": []}],
        request_body=PasswordChangeSerializer,
        responses={200: "Password updated", 400: "Current password incorrect or new password invalid"}
    )
    def put(self, request):
        success, response_data, status_code = ProfileService.change_password(request.user, request.data)
        return Response(standardized_response(**response_data), status=status_code)


class AvatarUploadView(BaseAPIView):
    permission_classes = [IsAuthenticated]
    parser_classes = [MultiPartParser, FormParser]

    @swagger_auto_schema(
        operation_id="auth_avatar_upload",
        tags=["Auth"],
        security=[{"Bearer": []}],
        request_body=AvatarUploadSerializer,
        responses={200: UserBaseSerializer, 400: "No or invalid image"}
    )
    def post(self, request):
        serializer = AvatarUploadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        success, response_data, status_code = ProfileService.replace_avatar(
            request.user, serializer.validated_data['avatar'], request=request
        )
        return Response(standardized_response(**response_data), status=status_code)
