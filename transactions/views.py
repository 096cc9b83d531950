from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from drf_yasg.utils import swagger_auto_schema
from drf_yasg import openapi

from authentication.core.base_view import BaseAPIView
from authentication.core.pagination import EnvelopePagination
from authentication.core.permissions import IsAdminOrMerchant
from authentication.core.response import standardized_response
from .models import Order
from .serializers import OrderSerializer, OrderCreateSerializer, OrderStatusSerializer
from .services import OrderService


BEARER = [{"Bearer": []}]


# ----------------------
# Order endpoints
# ----------------------
class OrderListCreateView(BaseAPIView):
    """
    GET: orders visible to the caller, paginated.
    POST: place an order from the caller's cart.
    """
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(
        operation_id="orders_list",
        tags=["Orders"],
        security=BEARER,
        manual_parameters=[
            openapi.Parameter('page', openapi.IN_QUERY, type=openapi.TYPE_INTEGER),
            openapi.Parameter('limit', openapi.IN_QUERY, type=openapi.TYPE_INTEGER),
            openapi.Parameter('status', openapi.IN_QUERY, type=openapi.TYPE_STRING,
                              enum=[choice for choice, _ in Order.Status.choices]),
            openapi.Parameter('search', openapi.IN_QUERY, type=openapi.TYPE_STRING,
                              description="Order number; admins also match customer name or email"),
        ],
        responses={200: OrderSerializer(many=True)}
    )
    def get(self, request):
        queryset = OrderService.list_orders(
            request.user,
            status=request.query_params.get('status'),
            search=request.query_params.get('search'),
        )
        paginator = EnvelopePagination()
        paginator.page_size = 10
        page = paginator.paginate_queryset(queryset, request, view=self)
        return Response(standardized_response(
            data=OrderSerializer(page, many=True).data,
            pagination=paginator.get_pagination(),
        ))

    @swagger_auto_schema(
        operation_id="orders_create",
        tags=["Orders"],
        security=BEARER,
        request_body=OrderCreateSerializer,
        responses={201: OrderSerializer, 400: "Cart is empty or insufficient stock"}
    )
    def post(self, request):
        serializer = OrderCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        order = OrderService.create_from_cart(
            request.user,
            shipping_address=data['shippingAddress'],
            payment_method=data['paymentMethod'],
            billing_address=data.get('billingAddress'),
            notes=data.get('notes', ''),
        )
        order = OrderService.get_order(request.user, order.pk)
        return Response(
            standardized_response(data=OrderSerializer(order).data, message="Order created successfully"),
            status=status.HTTP_201_CREATED
        )


class OrderDetailView(BaseAPIView):
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(
        operation_id="orders_retrieve",
        tags=["Orders"],
        security=BEARER,
        responses={200: OrderSerializer, 403: "Not authorized", 404: "Order not found"}
    )
    def get(self, request, pk):
        order = OrderService.get_order(request.user, pk)
        return Response(standardized_response(data=OrderSerializer(order).data))


class OrderCancelView(BaseAPIView):
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(
        operation_id="orders_cancel",
        tags=["Orders"],
        security=BEARER,
        responses={200: OrderSerializer, 400: "Order can no longer be cancelled", 403: "Not the owner"}
    )
    def put(self, request, pk):
        OrderService.cancel(request.user, pk)
        order = OrderService.get_order(request.user, pk)
        return Response(standardized_response(data=OrderSerializer(order).data, message="Order cancelled successfully"))


class OrderStatusView(BaseAPIView):
    permission_classes = [IsAdminOrMerchant]

    @swagger_auto_schema(
        operation_id="orders_update_status",
        tags=["Orders"],
        security=BEARER,
        request_body=OrderStatusSerializer,
        responses={200: OrderSerializer, 403: "Order does not contain your products", 404: "Order not found"}
    )
    def put(self, request, pk):
        serializer = OrderStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        OrderService.update_status(
            request.user,
            pk,
            data['status'],
            tracking_number=data.get('trackingNumber'),
            estimated_delivery=data.get('estimatedDelivery'),
        )
        order = OrderService.get_order(request.user, pk)
        return Response(standardized_response(data=OrderSerializer(order).data, message="Order status updated"))
