from rest_framework import serializers

from authentication.serializers import UserSummarySerializer
from .models import Order, OrderItem


class AddressSerializer(serializers.Serializer):
    firstName = serializers.CharField(max_length=100)
    lastName = serializers.CharField(max_length=100)
    street = serializers.CharField(max_length=255)
    apartment = serializers.CharField(max_length=100, required=False, allow_blank=True)
    city = serializers.CharField(max_length=100)
    state = serializers.CharField(max_length=100)
    zipCode = serializers.CharField(max_length=20)
    country = serializers.CharField(max_length=100)
    phone = serializers.CharField(max_length=30)


class OrderItemSerializer(serializers.ModelSerializer):
    productId = serializers.IntegerField(source='product_id', read_only=True, allow_null=True)
    name = serializers.CharField(source='product_name', read_only=True)
    lineTotal = serializers.DecimalField(source='line_total', max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = OrderItem
        fields = ['id', 'productId', 'name', 'variant', 'quantity', 'price', 'lineTotal']
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    orderNumber = serializers.CharField(source='order_number', read_only=True)
    user = UserSummarySerializer(read_only=True)
    items = OrderItemSerializer(many=True, read_only=True)
    shippingAddress = serializers.JSONField(source='shipping_address', read_only=True)
    billingAddress = serializers.JSONField(source='billing_address', read_only=True)
    paymentMethod = serializers.CharField(source='payment_method', read_only=True)
    paymentStatus = serializers.CharField(source='payment_status', read_only=True)
    trackingNumber = serializers.CharField(source='tracking_number', read_only=True)
    estimatedDelivery = serializers.DateTimeField(source='estimated_delivery', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)

    class Meta:
        model = Order
        fields = [
            'id', 'orderNumber', 'user', 'items', 'shippingAddress', 'billingAddress',
            'paymentMethod', 'paymentStatus', 'status',
            'subtotal', 'discount', 'shipping', 'tax', 'total',
            'notes', 'trackingNumber', 'estimatedDelivery', 'createdAt', 'updatedAt',
        ]
        read_only_fields = fields


class OrderCreateSerializer(serializers.Serializer):
    shippingAddress = AddressSerializer()
    billingAddress = AddressSerializer(required=False, allow_null=True)
    paymentMethod = serializers.CharField(max_length=50)
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class OrderStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Order.Status.choices)
    trackingNumber = serializers.CharField(max_length=100, required=False, allow_blank=True)
    estimatedDelivery = serializers.DateTimeField(required=False, allow_null=True)
