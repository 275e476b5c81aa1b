"""
Back-Office Authentication Views

JWT login for staff users with the tokens kept in HTTP-only cookies.

Views:
- CustomTokenObtainPairView: Login, sets access and refresh cookies
- CustomTokenRefreshView: New tokens from the refresh cookie
- LogoutView: Blacklists the refresh token and clears the cookies
- CurrentAdminView: The logged in admin (id, display name, email)

Author: DSP Development Team
Version: 1.0.0
"""

import logging

from django.conf import settings
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAdminUser
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.serializers import TokenRefreshSerializer
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework_simplejwt.views import TokenObtainPairView

from backend.custom_auth import ACCESS_TOKEN_COOKIE, REFRESH_TOKEN_COOKIE
from core.audit_logs.services import get_admin_display_name

logger = logging.getLogger(__name__)


def _set_token_cookies(response: Response, access=None, refresh=None) -> None:
    """
    Store the tokens as HTTP-only cookies. ``secure`` and ``samesite`` come
    from JWT_COOKIE_SECURE / JWT_COOKIE_SAMESITE.
    """
    options = dict(
        httponly=True,
        secure=settings.JWT_COOKIE_SECURE,
        samesite=settings.JWT_COOKIE_SAMESITE,
        path="/",
    )
    if refresh:
        response.set_cookie(
            REFRESH_TOKEN_COOKIE,
            refresh,
            max_age=settings.SIMPLE_JWT["REFRESH_TOKEN_LIFETIME"],
            **options,
        )
    if access:
        response.set_cookie(
            ACCESS_TOKEN_COOKIE,
            access,
            max_age=settings.SIMPLE_JWT["ACCESS_TOKEN_LIFETIME"],
            **options,
        )


class CustomTokenObtainPairView(TokenObtainPairView):
    """
    Login endpoint. Tokens go into cookies and are removed from the JSON body.
    """

    permission_classes = [AllowAny]

    def post(self, request, *args, **kwargs):
        response = super().post(request, *args, **kwargs)
        if response.status_code == 200:
            data = response.data
            _set_token_cookies(
                response, access=data.pop("access", None), refresh=data.pop("refresh", None)
            )
            data["detail"] = "Login successful."
        return response


class CustomTokenRefreshView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request):
        refresh_token = request.COOKIES.get(REFRESH_TOKEN_COOKIE) or request.data.get("refresh")
        if not refresh_token:
            return Response(
                {"detail": "Refresh token not provided"},
                status=status.HTTP_400_BAD_REQUEST,
            )

        serializer = TokenRefreshSerializer(data={"refresh": refresh_token})
        try:
            serializer.is_valid(raise_exception=True)
        except TokenError as e:
            return Response({"detail": str(e)}, status=status.HTTP_401_UNAUTHORIZED)

        data = serializer.validated_data
        response = Response({"detail": "Token refreshed."}, status=status.HTTP_200_OK)
        _set_token_cookies(response, access=data.get("access"), refresh=data.get("refresh"))
        return response


class LogoutView(APIView):
    """
    Blacklists the refresh token (if any) and deletes both cookies.
    Always answers 205, also for an already invalid token.
    """

    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request):
        refresh_token = request.COOKIES.get(REFRESH_TOKEN_COOKIE)
        if refresh_token:
            try:
                RefreshToken(refresh_token).blacklist()
            except TokenError as e:
                logger.info(f"Logout with invalid refresh token: {e}")

        response = Response({"detail": "Successfully logged out."}, status=status.HTTP_205_RESET_CONTENT)
        response.delete_cookie(REFRESH_TOKEN_COOKIE, path="/")
        response.delete_cookie(ACCESS_TOKEN_COOKIE, path="/")
        return response


class CurrentAdminView(APIView):
    permission_classes = [IsAdminUser]

    def get(self, request: Request) -> Response:
        user = request.user
        return Response(
            {
                "id": user.id,
                "username": user.get_username(),
                "display_name": get_admin_display_name(user),
                "email": user.email,
                "is_superuser": user.is_superuser,
            }
        )
