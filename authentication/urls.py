from django.urls import path

from .auth.views import UserRegistrationView, UserLoginView, TokenRefreshView, LogoutView
from .profile.views import UserProfileView, PasswordChangeView, AvatarUploadView

urlpatterns = [
    # Auth
    path('register', UserRegistrationView.as_view(), name='auth-register'),
    path('login', UserLoginView.as_view(), name='auth-login'),
    path('refresh', TokenRefreshView.as_view(), name='auth-refresh'),
    path('logout', LogoutView.as_view(), name='auth-logout'),

    # Profile
    path('profile', UserProfileView.as_view(), name='auth-profile'),
    path('password', PasswordChangeView.as_view(), name='auth-password'),
    path('avatar', AvatarUploadView.as_view(), name='auth-avatar'),
]
