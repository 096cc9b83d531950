import logging

from django.db import transaction
from django.db.models import F, Q
from rest_framework.exceptions import NotFound

from authentication.core.exceptions import (
    EmptyCartException,
    InsufficientStockException,
    OrderNotCancellableException,
    OwnershipException,
)
from store.models import Cart, Product
from store.services.pricing import PricingService
from .models import Order, OrderItem

logger = logging.getLogger(__name__)


def _variant_snapshot(variant):
    if variant is None:
        return None
    return {
        'id': variant.id,
        'name': variant.name,
        'type': variant.type,
        'value': variant.value,
        'priceModifier': str(variant.price_modifier),
    }


class OrderService:
    """
    Checkout and order lifecycle.

    Placing an order is all-or-nothing: every stock decrement is a
    conditional update inside one transaction, so a line that no longer
    fits the live stock rolls back the order and every earlier decrement.
    """

    @staticmethod
    def base_queryset():
        return Order.objects.select_related('user').prefetch_related('items')

    # ==============================================================
    # CREATE
    # ==============================================================
    @staticmethod
    @transaction.atomic
    def create_from_cart(user, shipping_address, payment_method, billing_address=None, notes=''):
        cart, _ = Cart.objects.get_or_create(user=user)
        lines = list(cart.items.select_related('product', 'variant'))
        if not lines:
            raise EmptyCartException()

        totals = PricingService.cart_totals(lines)
        order = Order.objects.create(
            user=user,
            shipping_address=shipping_address,
            billing_address=billing_address or shipping_address,
            payment_method=payment_method,
            notes=notes or '',
            **totals,
        )

        for line in lines:
            decremented = (
                Product.objects
                .filter(pk=line.product_id, stock__gte=line.quantity)
                .update(stock=F('stock') - line.quantity)
            )
            if not decremented:
                raise InsufficientStockException(f"Insufficient stock for {line.product.name}")

            OrderItem.objects.create(
                order=order,
                product=line.product,
                product_name=line.product.name,
                variant=_variant_snapshot(line.variant),
                quantity=line.quantity,
                price=line.unit_price,
            )

        cart.items.all().delete()
        logger.info(f"Order {order.order_number} placed by {user.email}: {len(lines)} line(s), total {order.total}")
        return order

    # ==============================================================
    # READ
    # ==============================================================
    @staticmethod
    def scoped_queryset(user):
        """Users see their own orders, merchants orders holding their products, admins all"""
        queryset = OrderService.base_queryset()
        if user.is_admin:
            return queryset
        if user.is_merchant:
            return queryset.filter(items__product__merchant=user).distinct()
        return queryset.filter(user=user)

    @staticmethod
    def list_orders(user, status=None, search=None):
        queryset = OrderService.scoped_queryset(user)
        if status:
            queryset = queryset.filter(status=status)
        if search:
            query = Q(order_number__icontains=search)
            if user.is_admin:
                query |= Q(user__name__icontains=search) | Q(user__email__icontains=search)
            queryset = queryset.filter(query)
        return queryset.order_by('-created_at', '-id')

    @staticmethod
    def _get(order_id, lock=False):
        queryset = Order.objects.select_for_update() if lock else OrderService.base_queryset()
        order = queryset.filter(pk=order_id).first()
        if order is None:
            raise NotFound("Order not found")
        return order

    @staticmethod
    def get_order(user, order_id):
        order = OrderService._get(order_id)
        if user.is_admin or order.user_id == user.id:
            return order
        if user.is_merchant and order.contains_products_of(user):
            return order
        raise OwnershipException("Not authorized to view this order")

    # ==============================================================
    # CANCEL / STATUS
    # ==============================================================
    @staticmethod
    def _restore_stock(order):
        if order.stock_restored:
            return
        for item in order.items.exclude(product__isnull=True):
            Product.objects.filter(pk=item.product_id).update(stock=F('stock') + item.quantity)
        order.stock_restored = True
        logger.info(f"Stock restored for order {order.order_number}")

    @staticmethod
    @transaction.atomic
    def cancel(user, order_id):
        order = OrderService._get(order_id, lock=True)
        if order.user_id != user.id:
            raise OwnershipException("Not authorized to cancel this order")
        if not order.is_cancellable:
            raise OrderNotCancellableException(f"Cannot cancel order with status: {order.status}")

        OrderService._restore_stock(order)
        order.status = Order.Status.CANCELLED
        order.save(update_fields=['status', 'stock_restored', 'updated_at'])
        return order

    @staticmethod
    @transaction.atomic
    def update_status(user, order_id, status, tracking_number=None, estimated_delivery=None):
        order = OrderService._get(order_id, lock=True)
        if user.is_merchant and not order.contains_products_of(user):
            raise OwnershipException("Not authorized to update this order. Order does not contain your products.")

        if status == Order.Status.CANCELLED:
            OrderService._restore_stock(order)

        order.status = status
        if tracking_number:
            order.tracking_number = tracking_number
        if estimated_delivery:
            order.estimated_delivery = estimated_delivery
        order.save()
        return order
