import logging

from rest_framework import status
from rest_framework.permissions import IsAuthenticated, AllowAny
from rest_framework.parsers import JSONParser, MultiPartParser, FormParser
from rest_framework.response import Response
from rest_framework.exceptions import NotFound
from drf_yasg.utils import swagger_auto_schema
from drf_yasg import openapi

from authentication.core.base_view import BaseAPIView
from authentication.core.pagination import EnvelopePagination
from authentication.core.permissions import (
    ReadOnlyOrAdmin,
    ReadOnlyOrAdminOrMerchant,
    IsProductOwnerOrAdmin,
)
from authentication.core.response import standardized_response
from .filters import ProductFilter
from .models import Review
from .serializers import (
    CategorySerializer,
    ProductSerializer,
    ProductWriteSerializer,
    CartSerializer,
    AddCartItemSerializer,
    UpdateCartItemSerializer,
    MergeCartSerializer,
    WishlistItemSerializer,
    WishlistAddSerializer,
    MergeWishlistSerializer,
    ReviewSerializer,
    ReviewCreateSerializer,
    ReviewUpdateSerializer,
)
from .services.cart_service import CartService
from .services.catalog_service import CatalogService
from .services.product_service import ProductService
from .services.review_service import ReviewService
from .services.wishlist_service import WishlistService

logger = logging.getLogger(__name__)

BEARER = [{"Bearer": []}]


# ======================================================
# PRODUCT VIEWS
# ======================================================
class ProductListView(BaseAPIView):
    """
    GET: public catalog query with filters, sort and pagination.
    POST: admins and merchants create products (JSON or multipart with images).
    """
    permission_classes = [ReadOnlyOrAdminOrMerchant]
    parser_classes = [JSONParser, MultiPartParser, FormParser]

    @swagger_auto_schema(
        operation_id="products_list",
        tags=["Products"],
        manual_parameters=[
            openapi.Parameter('page', openapi.IN_QUERY, type=openapi.TYPE_INTEGER, description="Page number (default 1)"),
            openapi.Parameter('limit', openapi.IN_QUERY, type=openapi.TYPE_INTEGER, description="Page size (default 12)"),
            openapi.Parameter('category', openapi.IN_QUERY, type=openapi.TYPE_STRING, description="Category name or slug (substring)"),
            openapi.Parameter('search', openapi.IN_QUERY, type=openapi.TYPE_STRING, description="Matches name, description or brand"),
            openapi.Parameter('sort', openapi.IN_QUERY, type=openapi.TYPE_STRING,
                              enum=['newest', 'price-asc', 'price-desc', 'rating', 'popular']),
            openapi.Parameter('minPrice', openapi.IN_QUERY, type=openapi.TYPE_NUMBER),
            openapi.Parameter('maxPrice', openapi.IN_QUERY, type=openapi.TYPE_NUMBER),
            openapi.Parameter('brand', openapi.IN_QUERY, type=openapi.TYPE_STRING),
            openapi.Parameter('rating', openapi.IN_QUERY, type=openapi.TYPE_NUMBER, description="Minimum rating"),
            openapi.Parameter('inStock', openapi.IN_QUERY, type=openapi.TYPE_BOOLEAN),
            openapi.Parameter('featured', openapi.IN_QUERY, type=openapi.TYPE_BOOLEAN),
            openapi.Parameter('mine', openapi.IN_QUERY, type=openapi.TYPE_BOOLEAN, description="Merchants: only own products"),
        ],
        responses={200: ProductSerializer(many=True)}
    )
    def get(self, request):
        queryset = ProductService.base_queryset().order_by('-created_at', '-id')
        queryset = ProductFilter(request.query_params, queryset=queryset, request=request).qs

        paginator = EnvelopePagination()
        page = paginator.paginate_queryset(queryset, request, view=self)
        serializer = ProductSerializer(page, many=True, context={'request': request})
        return Response(standardized_response(data=serializer.data, pagination=paginator.get_pagination()))

    @swagger_auto_schema(
        operation_id="products_create",
        tags=["Products"],
        security=BEARER,
        request_body=ProductWriteSerializer,
        responses={201: ProductSerializer, 400: "Validation error", 403: "Admin or merchant only"}
    )
    def post(self, request):
        serializer = ProductWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        product = ProductService.create_product(request.user, serializer)
        product = ProductService.get_by_id_or_slug(product.pk)
        return Response(
            standardized_response(data=ProductSerializer(product).data, message="Product created successfully"),
            status=status.HTTP_201_CREATED
        )


class ProductDetailView(BaseAPIView):
    permission_classes = [ReadOnlyOrAdminOrMerchant, IsProductOwnerOrAdmin]
    parser_classes = [JSONParser, MultiPartParser, FormParser]

    def get_object(self, identifier):
        product = ProductService.get_by_id_or_slug(identifier)
        if product is None:
            raise NotFound("Product not found")
        self.check_object_permissions(self.request, product)
        return product

    @swagger_auto_schema(
        operation_id="products_retrieve",
        tags=["Products"],
        responses={200: ProductSerializer, 404: "Product not found"}
    )
    def get(self, request, identifier):
        product = self.get_object(identifier)
        return Response(standardized_response(data=ProductSerializer(product).data))

    @swagger_auto_schema(
        operation_id="products_update",
        tags=["Products"],
        security=BEARER,
        request_body=ProductWriteSerializer,
        responses={200: ProductSerializer, 403: "Not the owner", 404: "Product not found"}
    )
    def put(self, request, identifier):
        product = self.get_object(identifier)
        serializer = ProductWriteSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        ProductService.update_product(product, serializer)
        product = ProductService.get_by_id_or_slug(product.pk)
        return Response(standardized_response(data=ProductSerializer(product).data, message="Product updated successfully"))

    def patch(self, request, identifier):
        return self.put(request, identifier)

    @swagger_auto_schema(
        operation_id="products_delete",
        tags=["Products"],
        security=BEARER,
        responses={200: "Product deleted", 403: "Not the owner", 404: "Product not found"}
    )
    def delete(self, request, identifier):
        product = self.get_object(identifier)
        ProductService.delete_product(product, request.user)
        return Response(standardized_response(message="Product deleted successfully"))


class FeaturedProductsView(BaseAPIView):
    permission_classes = [AllowAny]

    @swagger_auto_schema(operation_id="products_featured", tags=["Products"], responses={200: ProductSerializer(many=True)})
    def get(self, request):
        products = ProductService.featured()
        return Response(standardized_response(data=ProductSerializer(products, many=True).data))


class CategoryListView(BaseAPIView):
    permission_classes = [ReadOnlyOrAdmin]

    @swagger_auto_schema(operation_id="categories_list", tags=["Products"], responses={200: CategorySerializer(many=True)})
    def get(self, request):
        categories = CatalogService.list_categories()
        return Response(standardized_response(data=CategorySerializer(categories, many=True).data))

    @swagger_auto_schema(
        operation_id="categories_create",
        tags=["Products"],
        security=BEARER,
        request_body=CategorySerializer,
        responses={201: CategorySerializer, 400: "Category already exists"}
    )
    def post(self, request):
        serializer = CategorySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        category = serializer.save()
        logger.info(f"Category '{category.name}' created by {request.user.email}")
        return Response(
            standardized_response(data=CategorySerializer(category).data, message="Category created successfully"),
            status=status.HTTP_201_CREATED
        )


# ======================================================
# CART VIEWS
# ======================================================
def cart_response(cart, message=None, **extra):
    return Response(standardized_response(data={**CartSerializer(cart).data, **extra}, message=message))


class CartView(BaseAPIView):
    """GET the cart with totals; POST adds an item; DELETE clears it"""
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(operation_id="cart_retrieve", tags=["Cart"], security=BEARER)
    def get(self, request):
        return cart_response(CartService.get_cart(request.user))

    @swagger_auto_schema(
        operation_id="cart_add_item_root",
        tags=["Cart"],
        security=BEARER,
        request_body=AddCartItemSerializer,
        responses={200: "Cart with totals", 400: "Insufficient stock", 404: "Product not found"}
    )
    def post(self, request):
        serializer = AddCartItemSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        cart = CartService.add_item(request.user, data['productId'], data['quantity'], data.get('variant'))
        return cart_response(cart, message="Item added to cart")

    @swagger_auto_schema(operation_id="cart_clear", tags=["Cart"], security=BEARER)
    def delete(self, request):
        return cart_response(CartService.clear(request.user), message="Cart cleared")


class CartItemsView(CartView):
    http_method_names = ['post', 'options']

    @swagger_auto_schema(
        operation_id="cart_add_item",
        tags=["Cart"],
        security=BEARER,
        request_body=AddCartItemSerializer,
        responses={200: "Cart with totals", 400: "Insufficient stock", 404: "Product not found"}
    )
    def post(self, request):
        return super().post(request)


class CartItemDetailView(BaseAPIView):
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(
        operation_id="cart_update_item",
        tags=["Cart"],
        security=BEARER,
        request_body=UpdateCartItemSerializer,
        responses={200: "Cart with totals", 400: "Insufficient stock", 404: "Item not found in cart"}
    )
    def put(self, request, item_id):
        serializer = UpdateCartItemSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        cart = CartService.update_item(request.user, item_id, serializer.validated_data['quantity'])
        return cart_response(cart, message="Cart item updated")

    @swagger_auto_schema(operation_id="cart_remove_item", tags=["Cart"], security=BEARER,
                         responses={200: "Cart with totals", 404: "Item not found in cart"})
    def delete(self, request, item_id):
        cart = CartService.remove_item(request.user, item_id)
        return cart_response(cart, message="Item removed from cart")


class CartMergeView(BaseAPIView):
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(
        operation_id="cart_merge",
        tags=["Cart"],
        security=BEARER,
        request_body=MergeCartSerializer,
        responses={200: "Merged cart with totals and skipped lines"}
    )
    def post(self, request):
        serializer = MergeCartSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        cart, skipped = CartService.merge_guest_items(request.user, serializer.validated_data['items'])
        return cart_response(cart, message="Cart merged", skipped=skipped)


# ======================================================
# WISHLIST VIEWS
# ======================================================
def wishlist_response(user, message=None):
    items = WishlistService.items(user)
    return Response(standardized_response(data=WishlistItemSerializer(items, many=True).data, message=message))


class WishlistView(BaseAPIView):
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(operation_id="wishlist_list", tags=["Wishlist"], security=BEARER,
                         responses={200: WishlistItemSerializer(many=True)})
    def get(self, request):
        WishlistService.get_wishlist(request.user)
        return wishlist_response(request.user)

    @swagger_auto_schema(
        operation_id="wishlist_add",
        tags=["Wishlist"],
        security=BEARER,
        request_body=WishlistAddSerializer,
        responses={200: WishlistItemSerializer(many=True), 400: "Already in wishlist", 404: "Product not found"}
    )
    def post(self, request):
        serializer = WishlistAddSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        WishlistService.add(request.user, serializer.validated_data['productId'])
        return wishlist_response(request.user, message="Product added to wishlist")


class WishlistItemView(BaseAPIView):
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(operation_id="wishlist_remove", tags=["Wishlist"], security=BEARER,
                         responses={200: WishlistItemSerializer(many=True), 404: "Product not found in wishlist"})
    def delete(self, request, product_id):
        WishlistService.remove(request.user, product_id)
        return wishlist_response(request.user, message="Product removed from wishlist")


class WishlistCheckView(BaseAPIView):
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(operation_id="wishlist_check", tags=["Wishlist"], security=BEARER)
    def get(self, request, product_id):
        in_wishlist = WishlistService.contains(request.user, product_id)
        return Response(standardized_response(data={'inWishlist': in_wishlist}))


class WishlistMergeView(BaseAPIView):
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(operation_id="wishlist_merge", tags=["Wishlist"], security=BEARER,
                         request_body=MergeWishlistSerializer)
    def post(self, request):
        serializer = MergeWishlistSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        skipped = WishlistService.merge(request.user, serializer.validated_data['productIds'])
        items = WishlistService.items(request.user)
        return Response(standardized_response(
            data={'items': WishlistItemSerializer(items, many=True).data, 'skipped': skipped},
            message="Wishlist merged"
        ))


# ======================================================
# REVIEW VIEWS
# ======================================================
class ProductReviewListView(BaseAPIView):
    permission_classes = [AllowAny]

    @swagger_auto_schema(operation_id="reviews_for_product", tags=["Reviews"],
                         responses={200: ReviewSerializer(many=True)})
    def get(self, request, product_id):
        reviews = Review.objects.filter(product_id=product_id).select_related('user')
        return Response(standardized_response(data=ReviewSerializer(reviews, many=True).data))


class ReviewCreateView(BaseAPIView):
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(
        operation_id="reviews_create",
        tags=["Reviews"],
        security=BEARER,
        request_body=ReviewCreateSerializer,
        responses={201: ReviewSerializer, 400: "Already reviewed", 404: "Product not found"}
    )
    def post(self, request):
        serializer = ReviewCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        review = ReviewService.create_review(request.user, data['productId'], data['rating'], data.get('comment', ''))
        return Response(
            standardized_response(data=ReviewSerializer(review).data, message="Review submitted successfully"),
            status=status.HTTP_201_CREATED
        )


class ReviewDetailView(BaseAPIView):
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(
        operation_id="reviews_update",
        tags=["Reviews"],
        security=BEARER,
        request_body=ReviewUpdateSerializer,
        responses={200: ReviewSerializer, 403: "Not the author", 404: "Review not found"}
    )
    def put(self, request, review_id):
        serializer = ReviewUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        review = ReviewService.update_review(request.user, review_id, serializer.validated_data)
        return Response(standardized_response(data=ReviewSerializer(review).data, message="Review updated successfully"))

    @swagger_auto_schema(operation_id="reviews_delete", tags=["Reviews"], security=BEARER,
                         responses={200: "Review deleted", 403: "Not the author", 404: "Review not found"})
    def delete(self, request, review_id):
        ReviewService.delete_review(request.user, review_id)
        return Response(standardized_response(message="Review deleted successfully"))
