import logging
from datetime import timedelta

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db.models import Count, Q, Sum
from django.utils import timezone
from rest_framework.exceptions import NotFound, ValidationError

from store.models import Product
from transactions.models import Order

logger = logging.getLogger(__name__)

User = get_user_model()


class AdminStatsService:

    @staticmethod
    def _grouped(field):
        rows = Order.objects.values(field).annotate(count=Count('id')).order_by(field)
        return {row[field]: row['count'] for row in rows}

    @staticmethod
    def overview():
        """Dashboard figures. Revenue only counts orders whose payment is ``paid``."""
        paid = Order.objects.filter(payment_status=Order.PaymentStatus.PAID)
        since = timezone.now() - timedelta(days=30)

        return {
            'totalUsers': User.objects.count(),
            'totalProducts': Product.objects.count(),
            'totalOrders': Order.objects.count(),
            'totalRevenue': paid.aggregate(total=Sum('total'))['total'] or 0,
            'recentSales': paid.filter(created_at__gte=since).aggregate(total=Sum('total'))['total'] or 0,
            'lowStockProducts': Product.objects.filter(stock__lte=settings.LOW_STOCK_THRESHOLD).count(),
            'ordersByStatus': AdminStatsService._grouped('status'),
            'ordersByPaymentStatus': AdminStatsService._grouped('payment_status'),
            'recentOrders': (
                Order.objects.select_related('user').prefetch_related('items').order_by('-created_at', '-id')[:5]
            ),
        }


class UserAdminService:

    @staticmethod
    def list_users(role=None, search=None):
        queryset = User.objects.all().order_by('-created_at', '-id')
        if role:
            queryset = queryset.filter(role=role)
        if search:
            queryset = queryset.filter(Q(name__icontains=search) | Q(email__icontains=search))
        return queryset

    @staticmethod
    def get_user(user_id):
        user = User.objects.filter(pk=user_id).first()
        if user is None:
            raise NotFound("User not found")
        return user

    @staticmethod
    def update_user(admin, user_id, data):
        user = UserAdminService.get_user(user_id)
        previous_role = user.role
        for field, value in data.items():
            setattr(user, field, value)
        user.is_staff = user.role == User.Role.ADMIN or user.is_superuser
        user.save()

        if previous_role != user.role:
            logger.info(f"{admin.email} changed role of {user.email}: {previous_role} -> {user.role}")
        return user

    @staticmethod
    def delete_user(admin, user_id):
        user = UserAdminService.get_user(user_id)
        if user.pk == admin.pk:
            raise ValidationError("You cannot delete your own account")
        email = user.email
        user.delete()
        logger.info(f"User {email} deleted by {admin.email}")
