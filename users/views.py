from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from drf_yasg.utils import swagger_auto_schema
from drf_yasg import openapi

from authentication.core.exceptions import OwnershipException
from authentication.core.pagination import EnvelopePagination
from authentication.core.permissions import IsAdmin
from authentication.core.response import standardized_response
from authentication.models import CustomUser
from .serializers import AdminStatsSerializer, AdminUserSerializer, AdminUserUpdateSerializer
from .services import AdminStatsService, UserAdminService


BEARER = [{"Bearer": []}]


class AdminBaseViewSet(viewsets.ViewSet):
    """
    Base ViewSet for admin operations.
    """
    permission_classes = [IsAuthenticated, IsAdmin]


class AdminStatsViewSet(AdminBaseViewSet):

    @swagger_auto_schema(
        operation_id="admin_stats",
        operation_summary="Admin Dashboard Statistics",
        operation_description="Totals for users, products and orders, paid revenue, sales over the last 30 days, "
                              "low stock count and order breakdowns by status and payment status.",
        tags=["Admin"],
        responses={
            200: openapi.Response("Statistics retrieved successfully", AdminStatsSerializer()),
            403: openapi.Response("Admin access only"),
        },
        security=BEARER,
    )
    @action(detail=False, methods=["get"])
    def overview(self, request):
        serializer = AdminStatsSerializer(AdminStatsService.overview())
        return Response(standardized_response(data=serializer.data))


class AdminUserViewSet(AdminBaseViewSet):
    """
    User management. Reading a single account is also open to its owner.
    """

    def get_permissions(self):
        if self.action == 'retrieve':
            return [IsAuthenticated()]
        return super().get_permissions()

    @swagger_auto_schema(
        operation_id="admin_users_list",
        operation_summary="List Users",
        tags=["Admin"],
        manual_parameters=[
            openapi.Parameter('page', openapi.IN_QUERY, type=openapi.TYPE_INTEGER),
            openapi.Parameter('limit', openapi.IN_QUERY, type=openapi.TYPE_INTEGER),
            openapi.Parameter('role', openapi.IN_QUERY, type=openapi.TYPE_STRING,
                              enum=[choice for choice, _ in CustomUser.Role.choices]),
            openapi.Parameter('search', openapi.IN_QUERY, type=openapi.TYPE_STRING, description="Name or email"),
        ],
        responses={200: AdminUserSerializer(many=True), 403: openapi.Response("Admin access only")},
        security=BEARER,
    )
    def list(self, request):
        queryset = UserAdminService.list_users(
            role=request.query_params.get('role'),
            search=request.query_params.get('search'),
        )
        paginator = EnvelopePagination()
        paginator.page_size = 10
        page = paginator.paginate_queryset(queryset, request, view=self)
        return Response(standardized_response(
            data=AdminUserSerializer(page, many=True).data,
            pagination=paginator.get_pagination(),
        ))

    @swagger_auto_schema(
        operation_id="admin_users_retrieve",
        operation_summary="Retrieve User",
        tags=["Admin"],
        responses={200: AdminUserSerializer(), 403: openapi.Response("Admin or the user themself"),
                   404: openapi.Response("User not found")},
        security=BEARER,
    )
    def retrieve(self, request, pk=None):
        if not request.user.is_admin and str(request.user.pk) != str(pk):
            raise OwnershipException("Not authorized to view this user")
        user = UserAdminService.get_user(pk)
        return Response(standardized_response(data=AdminUserSerializer(user).data))

    @swagger_auto_schema(
        operation_id="admin_users_update",
        operation_summary="Update User",
        operation_description="Update a user's details or change their role.",
        tags=["Admin"],
        request_body=AdminUserUpdateSerializer,
        responses={200: AdminUserSerializer(), 404: openapi.Response("User not found")},
        security=BEARER,
    )
    def update(self, request, pk=None):
        serializer = AdminUserUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = UserAdminService.update_user(request.user, pk, serializer.validated_data)
        return Response(standardized_response(data=AdminUserSerializer(user).data, message="User updated successfully"))

    @swagger_auto_schema(
        operation_id="admin_users_delete",
        operation_summary="Delete User",
        tags=["Admin"],
        responses={200: openapi.Response("User deleted"), 400: openapi.Response("Cannot delete yourself"),
                   404: openapi.Response("User not found")},
        security=BEARER,
    )
    def destroy(self, request, pk=None):
        UserAdminService.delete_user(request.user, pk)
        return Response(standardized_response(message="User deleted successfully"))
