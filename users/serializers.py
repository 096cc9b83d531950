from rest_framework import serializers

from authentication.models import CustomUser
from authentication.serializers import UserBaseSerializer
from transactions.serializers import OrderSerializer


class AdminUserSerializer(UserBaseSerializer):
    isActive = serializers.BooleanField(source='is_active', read_only=True)
    lastLogin = serializers.DateTimeField(source='last_login', read_only=True)

    class Meta(UserBaseSerializer.Meta):
        fields = UserBaseSerializer.Meta.fields + ['isActive', 'lastLogin']


class AdminUserUpdateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=150, required=False)
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True, allow_null=True)
    address = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    role = serializers.ChoiceField(choices=CustomUser.Role.choices, required=False)


class AdminStatsSerializer(serializers.Serializer):
    totalUsers = serializers.IntegerField()
    totalProducts = serializers.IntegerField()
    totalOrders = serializers.IntegerField()
    totalRevenue = serializers.DecimalField(max_digits=14, decimal_places=2)
    recentSales = serializers.DecimalField(max_digits=14, decimal_places=2)
    lowStockProducts = serializers.IntegerField()
    ordersByStatus = serializers.DictField(child=serializers.IntegerField())
    ordersByPaymentStatus = serializers.DictField(child=serializers.IntegerField())
    recentOrders = OrderSerializer(many=True)
