from django.contrib import admin
from .models import Order, OrderItem


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    readonly_fields = ('product', 'product_name', 'variant', 'quantity', 'price')


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ('order_number', 'user', 'status', 'payment_status', 'total', 'created_at')
    search_fields = ('order_number', 'user__email', 'user__name')
    list_filter = ('status', 'payment_status', 'created_at')
    readonly_fields = ('order_number', 'subtotal', 'discount', 'shipping', 'tax', 'total',
                       'stock_restored', 'created_at', 'updated_at')
    inlines = [OrderItemInline]


@admin.register(OrderItem)
class OrderItemAdmin(admin.ModelAdmin):
    list_display = ('id', 'order', 'product_name', 'quantity', 'price', 'line_total')
    search_fields = ('product_name', 'order__order_number')
    list_filter = ('order__created_at',)
