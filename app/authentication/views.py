"""
Authentication views.

This module provides API views for:
- Signup with business name, phone number and PIN
- Login with phone number and PIN
- Token verification
- Profile retrieval

Related files:
    - serializers.py: Request/response serialization
    - services.py: Business logic (AuthService)
    - urls.py: URL routing

Note:
    Token refresh is served by simplejwt's TokenRefreshView at
    /api/v1/auth/token/refresh/.
"""

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from authentication.serializers import (
    LoginSerializer,
    SignupSerializer,
    UserSerializer,
)
from authentication.services import AuthService


# =============================================================================
# Signup / Login
# =============================================================================


class SignupView(APIView):
    """
    API view for account registration.

    POST: Create an account on the trial tier and return a JWT pair

    URL: /api/v1/auth/signup/

    Request body:
        {
            "business_name": "Duka Bora",
            "phone_number": "0712345678",
            "pin": "1234"
        }
    """

    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(
        summary="Sign up",
        tags=["Auth"],
        request=SignupSerializer,
        responses={
            201: UserSerializer,
            400: OpenApiResponse(description="Invalid input"),
            409: OpenApiResponse(description="Phone number already registered"),
        },
    )
    def post(self, request):
        serializer = SignupSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = AuthService.register(**serializer.validated_data)
        if not result.success:
            return Response(result.to_response(), status=status.HTTP_409_CONFLICT)

        user = result.data
        return Response(
            {
                "success": True,
                "message": "Account created successfully. You can now log in.",
                "data": {
                    "user": UserSerializer(user).data,
                    "tokens": AuthService.issue_tokens(user),
                },
            },
            status=status.HTTP_201_CREATED,
        )


class LoginView(APIView):
    """
    API view for PIN login.

    POST: Verify phone number and PIN, return a JWT pair

    URL: /api/v1/auth/login/
    """

    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(
        summary="Log in",
        tags=["Auth"],
        request=LoginSerializer,
        responses={
            200: UserSerializer,
            401: OpenApiResponse(description="Invalid phone number or PIN"),
        },
    )
    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = AuthService.authenticate(**serializer.validated_data)
        if not result.success:
            return Response(result.to_response(), status=status.HTTP_401_UNAUTHORIZED)

        user = result.data
        return Response(
            {
                "success": True,
                "message": "Login successful",
                "data": {
                    "user": UserSerializer(user).data,
                    "tokens": AuthService.issue_tokens(user),
                },
            }
        )


# =============================================================================
# Authenticated Account Views
# =============================================================================


class VerifyTokenView(APIView):
    """
    API view for checking an access token.

    GET: Return the account behind the bearer token

    URL: /api/v1/auth/verify/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Verify access token",
        tags=["Auth"],
        responses={200: UserSerializer},
    )
    def get(self, request):
        return Response({"success": True, "data": UserSerializer(request.user).data})


class ProfileView(APIView):
    """
    API view for the current account's profile.

    GET: Retrieve business name, phone number and subscription tier

    URL: /api/v1/auth/profile/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Get current account",
        tags=["Auth - Profile"],
        responses={200: UserSerializer},
    )
    def get(self, request):
        serializer = UserSerializer(request.user)
        return Response(serializer.data)
