from django.contrib.auth import password_validation
from rest_framework import serializers

from .models import CustomUser


# ------------------------------------------------------
# BASE USER SERIALIZER
# ------------------------------------------------------
class UserBaseSerializer(serializers.ModelSerializer):
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)
    avatar = serializers.SerializerMethodField()

    class Meta:
        model = CustomUser
        fields = [
            'id',
            'uuid',
            'name',
            'email',
            'phone',
            'address',
            'avatar',
            'role',
            'createdAt',
            'updatedAt',
        ]
        read_only_fields = ['id', 'uuid', 'email', 'role']

    def get_avatar(self, obj):
        if not obj.avatar:
            return None
        return obj.avatar.url


class UserSummarySerializer(serializers.ModelSerializer):
    """Compact user reference embedded in orders and reviews"""

    class Meta:
        model = CustomUser
        fields = ['id', 'name', 'email']


# ------------------------------------------------------
# TOKEN SERIALIZERS
# ------------------------------------------------------
class TokenRefreshSerializer(serializers.Serializer):
    refreshToken = serializers.CharField(help_text="JWT refresh token")


class AuthDataSerializer(serializers.Serializer):
    user = UserBaseSerializer(help_text="User profile information")
    token = serializers.CharField(help_text="JWT access token for API requests")
    refreshToken = serializers.CharField(help_text="JWT refresh token for obtaining new access tokens")


class AuthResponseSerializer(serializers.Serializer):
    success = serializers.BooleanField(help_text="Whether the operation was successful")
    message = serializers.CharField(required=False, help_text="Human-readable message")
    data = AuthDataSerializer(required=False, help_text="Response data containing user and tokens")


# ------------------------------------------------------
# AUTH SERIALIZERS
# ------------------------------------------------------
class UserRegistrationSerializer(serializers.Serializer):
    SELF_ASSIGNABLE_ROLES = (
        (CustomUser.Role.USER, 'User'),
        (CustomUser.Role.MERCHANT, 'Merchant'),
    )

    name = serializers.CharField(max_length=150, help_text="Display name")
    email = serializers.EmailField(help_text="User email address")
    password = serializers.CharField(write_only=True, min_length=6, help_text="User password (minimum 6 characters)")
    phone = serializers.CharField(required=False, allow_blank=True, max_length=20, help_text="User phone number")
    role = serializers.ChoiceField(
        choices=SELF_ASSIGNABLE_ROLES,
        required=False,
        default=CustomUser.Role.USER,
        help_text="user or merchant; admin accounts cannot be self-registered"
    )

    def validate_email(self, value):
        value = value.strip().lower()
        if CustomUser.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError("User already exists")
        return value

    def validate_password(self, value):
        password_validation.validate_password(value)
        return value


class UserLoginSerializer(serializers.Serializer):
    email = serializers.EmailField(help_text="User email address")
    password = serializers.CharField(write_only=True, help_text="User password")


# ------------------------------------------------------
# PROFILE SERIALIZERS
# ------------------------------------------------------
class UserProfileUpdateSerializer(serializers.ModelSerializer):
    class Meta:
        model = CustomUser
        fields = ['name', 'phone', 'address']
        extra_kwargs = {
            'name': {'required': False},
            'phone': {'required': False, 'allow_blank': True, 'allow_null': True},
            'address': {'required': False, 'allow_blank': True, 'allow_null': True},
        }


class PasswordChangeSerializer(serializers.Serializer):
    currentPassword = serializers.CharField(write_only=True)
    newPassword = serializers.CharField(write_only=True, min_length=6)

    def validate_newPassword(self, value):
        password_validation.validate_password(value, user=self.context.get("user"))
        return value


class AvatarUploadSerializer(serializers.Serializer):
    avatar = serializers.ImageField(help_text="Avatar image (multipart)")
