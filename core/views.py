"""
Authentication, account and push-subscription endpoints.

Core workflows:
    1.  **Registration**:
        - POST /auth/register/ -> Creates the account and emails a verification code.
        - POST /auth/verify-email/ -> Confirms the code; the account may now order.
        - POST /auth/resend-verification/ -> Emails a fresh code.
    2.  **Login**:
        - POST /auth/login/ -> Email and password in, JWT tokens out.
    3.  **Password reset**:
        - POST /auth/password-reset-request/ -> Emails a reset code.
        - POST /auth/password-reset-confirm/ -> Code plus new password.
    4.  **Profile**:
        - GET/PATCH /auth/me/ -> Current account.
    5.  **Push**:
        - /push-subscriptions/ -> Register or remove browser push endpoints.
"""

import logging

from django.contrib.auth import get_user_model
from django.utils.translation import gettext_lazy as _
from drf_spectacular.utils import OpenApiExample, OpenApiResponse, extend_schema
from rest_framework import mixins, status
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.throttling import AnonRateThrottle
from rest_framework.viewsets import GenericViewSet, ReadOnlyModelViewSet, ViewSet
from rest_framework_simplejwt.tokens import RefreshToken

from .constants import VerificationPurpose
from .permissions import IsMarketplaceAdmin
from .serializers import (
    EmailSerializer,
    LoginSerializer,
    PasswordResetConfirmSerializer,
    ProfileUpdateSerializer,
    PushSubscriptionSerializer,
    RegisterSerializer,
    UserSerializer,
    VerifyEmailSerializer,
)
from .services import VerificationCodeService

logger = logging.getLogger(__name__)

User = get_user_model()


def get_tokens_for_user(user):
    """
    Generate JWT refresh and access tokens for the given user.

    Returns:
        dict: ``{"refresh": str, "access": str}``
    """
    refresh = RefreshToken.for_user(user)
    return {
        "refresh": str(refresh),
        "access": str(refresh.access_token),
    }


class VerificationThrottle(AnonRateThrottle):
    """Limits how often anonymous clients can trigger verification emails."""

    scope = "verification"


class AuthViewSet(ViewSet):
    """
    Handles registration, login, email verification and the current profile.

    Endpoints:
        - register → Create an account and send a verification code.
        - verify_email → Confirm the emailed code.
        - resend_verification → Send a fresh verification code.
        - login → Authenticate with email and password.
        - password_reset_request → Email a reset code.
        - password_reset_confirm → Set a new password with the reset code.
        - me → Read or update the authenticated account.
    """

    @extend_schema(
        tags=["Authentication"],
        summary="Register a new account",
        description="""
        **Endpoint**: POST /auth/register/

        Creates a customer or producer account and emails a 6-digit
        verification code. Tokens are returned right away; ordering stays
        blocked until the email is verified.
        """,
        request=RegisterSerializer,
        responses={
            status.HTTP_201_CREATED: OpenApiResponse(
                description="Account created.",
                examples={
                    "created": OpenApiExample(
                        "Registered",
                        value={
                            "detail": "Account created. Check your email for the verification code.",
                            "tokens": {"refresh": "eyJ...", "access": "eyJ..."},
                            "user": {"id": 1, "email": "ana@example.com", "role": "customer"},
                        },
                    )
                },
            ),
            status.HTTP_400_BAD_REQUEST: OpenApiResponse(description="Invalid data."),
        },
    )
    @action(
        detail=False,
        methods=["post"],
        permission_classes=[AllowAny],
        throttle_classes=[VerificationThrottle],
    )
    def register(self, request):
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()

        VerificationCodeService.send_code(
            user.email, VerificationPurpose.EMAIL_VERIFICATION
        )
        logger.info("Registered %s account %s", user.role, user.pk)

        return Response(
            {
                "detail": _("Account created. Check your email for the verification code."),
                "tokens": get_tokens_for_user(user),
                "user": UserSerializer(user).data,
            },
            status=status.HTTP_201_CREATED,
        )

    @extend_schema(
        tags=["Authentication"],
        summary="Verify email address",
        request=VerifyEmailSerializer,
        responses={
            status.HTTP_200_OK: OpenApiResponse(description="Email verified."),
            status.HTTP_400_BAD_REQUEST: OpenApiResponse(
                description="Invalid or expired code."
            ),
        },
    )
    @action(
        detail=False,
        methods=["post"],
        url_path="verify-email",
        permission_classes=[AllowAny],
    )
    def verify_email(self, request):
        serializer = VerifyEmailSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        email = serializer.validated_data["email"]

        user = User.objects.filter(email=email).first()
        if user is None or not VerificationCodeService.verify_code(
            email,
            serializer.validated_data["code"],
            VerificationPurpose.EMAIL_VERIFICATION,
        ):
            return Response(
                {"detail": _("Invalid or expired code.")},
                status=status.HTTP_400_BAD_REQUEST,
            )

        if not user.is_email_verified:
            user.is_email_verified = True
            user.save(update_fields=["is_email_verified"])

        return Response(
            {"detail": _("Email verified."), "user": UserSerializer(user).data},
            status=status.HTTP_200_OK,
        )

    @extend_schema(
        tags=["Authentication"],
        summary="Resend the verification code",
        request=EmailSerializer,
        responses={status.HTTP_200_OK: OpenApiResponse(description="Code sent if applicable.")},
    )
    @action(
        detail=False,
        methods=["post"],
        url_path="resend-verification",
        permission_classes=[AllowAny],
        throttle_classes=[VerificationThrottle],
    )
    def resend_verification(self, request):
        serializer = EmailSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        email = serializer.validated_data["email"]

        # Same answer whether or not the account exists
        if User.objects.filter(email=email, is_email_verified=False).exists():
            VerificationCodeService.send_code(
                email, VerificationPurpose.EMAIL_VERIFICATION
            )
        return Response(
            {"detail": _("If the account needs verification, a code was sent.")},
            status=status.HTTP_200_OK,
        )

    @extend_schema(
        tags=["Authentication"],
        summary="Login with password",
        request=LoginSerializer,
        responses={
            status.HTTP_200_OK: OpenApiResponse(
                description="Login successful.",
                examples={
                    "success": OpenApiExample(
                        "Logged In",
                        value={
                            "detail": "Login successful.",
                            "tokens": {"refresh": "eyJ...", "access": "eyJ..."},
                            "user": {"id": 1, "email": "ana@example.com"},
                        },
                    )
                },
            ),
            status.HTTP_400_BAD_REQUEST: OpenApiResponse(description="Invalid credentials."),
        },
    )
    @action(detail=False, methods=["post"], permission_classes=[AllowAny])
    def login(self, request):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.validated_data["user"]

        return Response(
            {
                "detail": _("Login successful."),
                "tokens": get_tokens_for_user(user),
                "user": UserSerializer(user).data,
            },
            status=status.HTTP_200_OK,
        )

    @extend_schema(
        tags=["Authentication"],
        summary="Request a password reset code",
        request=EmailSerializer,
        responses={status.HTTP_200_OK: OpenApiResponse(description="Code sent if applicable.")},
    )
    @action(
        detail=False,
        methods=["post"],
        url_path="password-reset-request",
        permission_classes=[AllowAny],
        throttle_classes=[VerificationThrottle],
    )
    def password_reset_request(self, request):
        serializer = EmailSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        email = serializer.validated_data["email"]

        if User.objects.filter(email=email, is_active=True).exists():
            VerificationCodeService.send_code(email, VerificationPurpose.PASSWORD_RESET)
        return Response(
            {"detail": _("If the account exists, a reset code was sent.")},
            status=status.HTTP_200_OK,
        )

    @extend_schema(
        tags=["Authentication"],
        summary="Set a new password with the reset code",
        request=PasswordResetConfirmSerializer,
        responses={
            status.HTTP_200_OK: OpenApiResponse(description="Password updated."),
            status.HTTP_400_BAD_REQUEST: OpenApiResponse(description="Invalid or expired code."),
        },
    )
    @action(
        detail=False,
        methods=["post"],
        url_path="password-reset-confirm",
        permission_classes=[AllowAny],
    )
    def password_reset_confirm(self, request):
        serializer = PasswordResetConfirmSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        user = User.objects.filter(email=data["email"], is_active=True).first()
        if user is None or not VerificationCodeService.verify_code(
            data["email"], data["code"], VerificationPurpose.PASSWORD_RESET
        ):
            return Response(
                {"detail": _("Invalid or expired code.")},
                status=status.HTTP_400_BAD_REQUEST,
            )

        user.set_password(data["new_password"])
        user.save(update_fields=["password"])
        return Response({"detail": _("Password updated.")}, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["Authentication"],
        summary="Current account",
        request=ProfileUpdateSerializer,
        responses={status.HTTP_200_OK: UserSerializer},
    )
    @action(detail=False, methods=["get", "patch"], permission_classes=[IsAuthenticated])
    def me(self, request):
        if request.method == "PATCH":
            serializer = ProfileUpdateSerializer(
                request.user, data=request.data, partial=True
            )
            serializer.is_valid(raise_exception=True)
            serializer.save()
        return Response(UserSerializer(request.user).data, status=status.HTTP_200_OK)


@extend_schema(tags=["Push notifications"])
class PushSubscriptionViewSet(
    mixins.CreateModelMixin,
    mixins.ListModelMixin,
    mixins.DestroyModelMixin,
    GenericViewSet,
):
    """
    Browser push subscriptions of the authenticated user.

        - GET    /push-subscriptions/      → List own subscriptions.
        - POST   /push-subscriptions/      → Register (or re-activate) an endpoint.
        - DELETE /push-subscriptions/{id}/ → Remove a subscription.
    """

    serializer_class = PushSubscriptionSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        return self.request.user.push_subscriptions.order_by("-created_at")


@extend_schema(tags=["Admin"])
class UserViewSet(ReadOnlyModelViewSet):
    """
    Admin-only listing of accounts.

        - GET /users/        → List all users.
        - GET /users/{id}/   → Retrieve a specific user.
    """

    serializer_class = UserSerializer
    queryset = User.objects.order_by("-date_joined")
    permission_classes = [IsMarketplaceAdmin]
    filterset_fields = ["role", "is_email_verified", "is_active"]
