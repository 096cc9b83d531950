import logging

from django.db import transaction

from authentication.serializers import (
    UserBaseSerializer,
    UserProfileUpdateSerializer,
    PasswordChangeSerializer,
)

logger = logging.getLogger(__name__)


class ProfileService:
    """Service class to handle the signed-in user's own profile"""

    # ==============================================================
    # GET PROFILE
    # ==============================================================
    @staticmethod
    def get_profile(user, request=None):
        context = {'request': request} if request else {}
        logger.info(f"Profile retrieved for {user.email} ({user.role})")
        return UserBaseSerializer(user, context=context).data

    # ==============================================================
    # UPDATE PROFILE
    # ==============================================================
    @staticmethod
    @transaction.atomic
    def update_profile(user, data, request=None):
        """
        Update name, phone and address. Email, role and password are not
        editable here; unknown keys are ignored.
        """
        serializer = UserProfileUpdateSerializer(user, data=data, partial=True)
        if not serializer.is_valid():
            return False, {"success": False, "error": serializer.errors}, 400

        serializer.save()
        ProfileService._log_profile_update(user, serializer.validated_data)

        return True, {
            "success": True,
            "data": ProfileService.get_profile(user, request=request),
            "message": "Profile updated successfully"
        }, 200

    # ==============================================================
    # PASSWORD CHANGE
    # ==============================================================
    @staticmethod
    def change_password(user, data):
        serializer = PasswordChangeSerializer(data=data, context={'user': user})
        if not serializer.is_valid():
            return False, {"success": False, "error": serializer.errors}, 400

        if not user.check_password(serializer.validated_data['currentPassword']):
            return False, {"success": False, "error": "Current password is incorrect"}, 400

        user.set_password(serializer.validated_data['newPassword'])
        user.save(update_fields=['password'])

        logger.info(f"Password successfully changed for {user.email}")
        return True, {"success": True, "message": "Password updated successfully"}, 200

    # ==============================================================
    # AVATAR
    # ==============================================================
    @staticmethod
    def replace_avatar(user, file, request=None):
        """Store an uploaded avatar, removing the previous file"""
        old_name = user.avatar.name if user.avatar else None

        user.avatar = file
        user.save(update_fields=['avatar'])

        if old_name and old_name != user.avatar.name:
            try:
                user.avatar.storage.delete(old_name)
            except OSError as e:
                logger.warning(f"Could not remove old avatar for {user.email}: {e}")

        logger.info(f"Avatar updated for {user.email}")
        return True, {
            "success": True,
            "data": ProfileService.get_profile(user, request=request),
            "message": "Avatar uploaded successfully"
        }, 200

    # ==============================================================
    # AUDIT TRAIL
    # ==============================================================
    @staticmethod
    def _log_profile_update(user, updated_data):
        logger.info(f"Audit: Profile updated for {user.email} with fields: {sorted(updated_data.keys())}")
