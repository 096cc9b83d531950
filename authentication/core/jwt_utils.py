import logging

from django.conf import settings
from rest_framework_simplejwt.tokens import RefreshToken, TokenError

logger = logging.getLogger(__name__)

# Copied onto both tokens so clients can route by role without a profile fetch
CLAIMS = ('email', 'role')


class TokenManager:
    """
    Stateless JWT issuance keyed on the user's UUID.

    Tokens are not tracked server-side: an issued access token stays valid
    until it expires, whatever happens to the account afterwards (a deleted
    account is still rejected at authentication time because the user
    lookup fails).
    """

    @staticmethod
    def generate_tokens(user):
        refresh = RefreshToken.for_user(user)
        access = refresh.access_token
        for claim in CLAIMS:
            refresh[claim] = access[claim] = getattr(user, claim)

        return {
            'access_token': str(access),
            'refresh_token': str(refresh),
            'expires_in': int(settings.SIMPLE_JWT['ACCESS_TOKEN_LIFETIME'].total_seconds()),
        }

    @staticmethod
    def refresh_tokens(refresh_token):
        """Validate a refresh token and issue a new pair for its (still active) owner."""
        from authentication.models import CustomUser

        token = RefreshToken(refresh_token)
        user_uuid = token.get(settings.SIMPLE_JWT['USER_ID_CLAIM'])

        user = CustomUser.objects.filter(uuid=user_uuid, is_active=True).first() if user_uuid else None
        if user is None:
            logger.warning(f"Refresh token rejected for unknown or inactive account {user_uuid}")
            raise TokenError("Invalid token")

        return user, TokenManager.generate_tokens(user)
