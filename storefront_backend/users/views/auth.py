from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.throttling import AnonRateThrottle
from rest_framework.views import APIView

from users.serializers import RegisterSerializer, UserSerializer


class PublicWriteThrottle(AnonRateThrottle):
    scope = "public_write"


class RegisterView(APIView):
    """
    Customer sign-up.

    Tokens are issued by SimpleJWT at /api/auth/jwt/create/.
    """

    permission_classes = [AllowAny]
    throttle_classes = [PublicWriteThrottle]
    serializer_class = RegisterSerializer

    @extend_schema(
        request=RegisterSerializer,
        responses={201: UserSerializer},
        description="Register a new customer account",
        tags=["Auth"],
    )
    def post(self, request):
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()

        return Response(UserSerializer(user).data, status=status.HTTP_201_CREATED)
