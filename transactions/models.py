import secrets

from django.db import models
from django.utils import timezone

from authentication.models import CustomUser


def generate_order_number():
    return f"ORD-{timezone.now():%Y%m%d}-{secrets.token_hex(3).upper()}"


# ========================
# ORDER SYSTEM
# ========================
class Order(models.Model):
    """
    Snapshot of a cart at checkout. Money fields are computed once at
    creation and never recalculated; only the status fields move afterwards.
    """
    class Status(models.TextChoices):
        PENDING = 'pending', 'Pending'
        CONFIRMED = 'confirmed', 'Confirmed'
        PROCESSING = 'processing', 'Processing'
        SHIPPED = 'shipped', 'Shipped'
        DELIVERED = 'delivered', 'Delivered'
        CANCELLED = 'cancelled', 'Cancelled'
        RETURNED = 'returned', 'Returned'

    class PaymentStatus(models.TextChoices):
        PENDING = 'pending', 'Pending'
        PAID = 'paid', 'Paid'
        FAILED = 'failed', 'Failed'
        REFUNDED = 'refunded', 'Refunded'

    order_number = models.CharField(max_length=32, unique=True, editable=False)
    user = models.ForeignKey(CustomUser, on_delete=models.CASCADE, related_name='orders')
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    payment_status = models.CharField(max_length=20, choices=PaymentStatus.choices, default=PaymentStatus.PENDING)
    payment_method = models.CharField(max_length=50)

    shipping_address = models.JSONField()
    billing_address = models.JSONField()

    subtotal = models.DecimalField(max_digits=12, decimal_places=2)
    discount = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    shipping = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    tax = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    total = models.DecimalField(max_digits=12, decimal_places=2)

    notes = models.TextField(blank=True, default='')
    tracking_number = models.CharField(max_length=100, blank=True, null=True)
    estimated_delivery = models.DateTimeField(blank=True, null=True)

    # Set once stock has been handed back so a second cancellation is a no-op
    stock_restored = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['status'], name='order_status_idx'),
            models.Index(fields=['payment_status', 'created_at'], name='order_payment_created_idx'),
        ]

    def save(self, *args, **kwargs):
        if not self.order_number:
            self.order_number = generate_order_number()
            while Order.objects.filter(order_number=self.order_number).exists():
                self.order_number = generate_order_number()
        super().save(*args, **kwargs)

    @property
    def is_cancellable(self):
        return self.status == self.Status.PENDING

    def contains_products_of(self, merchant):
        return self.items.filter(product__merchant=merchant).exists()

    def __str__(self):
        return f"Order {self.order_number} ({getattr(self.user, 'email', 'Unknown')})"


class OrderItem(models.Model):
    """
    An order line. The product reference is cleared if the product is
    deleted later; name, variant and unit price stay as they were bought.
    """
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='items')
    product = models.ForeignKey(
        'store.Product', on_delete=models.SET_NULL, null=True, blank=True, related_name='order_items'
    )
    product_name = models.CharField(max_length=255)
    variant = models.JSONField(null=True, blank=True)
    quantity = models.PositiveIntegerField()
    price = models.DecimalField(max_digits=10, decimal_places=2, help_text="Unit price at purchase, variant modifier included")

    class Meta:
        ordering = ['id']

    @property
    def line_total(self):
        return self.price * self.quantity

    def __str__(self):
        return f"{self.product_name} x {self.quantity}"
