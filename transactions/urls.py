from django.urls import path
from .views import OrderListCreateView, OrderDetailView, OrderCancelView, OrderStatusView

urlpatterns = [
    path('orders', OrderListCreateView.as_view(), name='order-list-create'),
    path('orders/<int:pk>', OrderDetailView.as_view(), name='order-detail'),
    path('orders/<int:pk>/cancel', OrderCancelView.as_view(), name='order-cancel'),
    path('orders/<int:pk>/status', OrderStatusView.as_view(), name='order-status'),
]
