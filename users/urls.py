from django.urls import path
from .views import AdminStatsViewSet, AdminUserViewSet

# =========================
# ADMIN
# =========================
admin_stats = AdminStatsViewSet.as_view({"get": "overview"})

admin_user_list = AdminUserViewSet.as_view({"get": "list"})
admin_user_detail = AdminUserViewSet.as_view({
    "get": "retrieve",
    "put": "update",
    "patch": "update",
    "delete": "destroy",
})

urlpatterns = [
    path("admin/stats", admin_stats, name="admin-stats"),
    path("users", admin_user_list, name="admin-user-list"),
    path("users/<int:pk>", admin_user_detail, name="admin-user-detail"),
]
