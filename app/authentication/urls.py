"""
URL configuration for authentication app.

URL structure:
    /api/v1/auth/signup/          - Register an account (POST)
    /api/v1/auth/login/           - PIN login (POST)
    /api/v1/auth/verify/          - Verify access token (GET)
    /api/v1/auth/profile/         - Current account (GET)
    /api/v1/auth/token/refresh/   - Refresh JWT pair (POST)
"""

from django.urls import path
from rest_framework_simplejwt.views import TokenRefreshView

from authentication.views import (
    LoginView,
    ProfileView,
    SignupView,
    VerifyTokenView,
)

app_name = "authentication"

urlpatterns = [
    path("signup/", SignupView.as_view(), name="signup"),
    path("login/", LoginView.as_view(), name="login"),
    path("verify/", VerifyTokenView.as_view(), name="verify"),
    path("profile/", ProfileView.as_view(), name="profile"),
    path("token/refresh/", TokenRefreshView.as_view(), name="token-refresh"),
]
