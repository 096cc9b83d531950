import json

from django.conf import settings
from rest_framework import serializers
from rest_framework.utils import html

from authentication.serializers import UserSummarySerializer
from .models import Category, Product, ProductVariant, CartItem, WishlistItem, Review
from .services.catalog_service import CatalogService
from .services.pricing import PricingService


class FormListField(serializers.ListField):
    """
    A list that may also arrive as one multipart form value: either a JSON
    array or a comma-separated string.
    """

    def get_value(self, dictionary):
        if html.is_html_input(dictionary) and self.field_name in dictionary:
            values = dictionary.getlist(self.field_name)
            return values[0] if len(values) == 1 else values
        return super().get_value(dictionary)

    def to_internal_value(self, data):
        if isinstance(data, str):
            text = data.strip()
            if text.startswith('['):
                try:
                    data = json.loads(text)
                except ValueError:
                    self.fail('not_a_list', input_type='malformed JSON')
            else:
                data = [part.strip() for part in text.split(',') if part.strip()]
        return super().to_internal_value(data)


# ---------------------------
# Category Serializer
# ---------------------------
class CategorySerializer(serializers.ModelSerializer):
    productCount = serializers.IntegerField(source='product_count', read_only=True, default=0)

    class Meta:
        model = Category
        fields = ['id', 'name', 'slug', 'image', 'productCount']
        read_only_fields = ['slug']

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Category name is required")
        if CatalogService.category_exists(value):
            raise serializers.ValidationError("Category already exists")
        return value


# ---------------------------
# Product Serializers
# ---------------------------
class ProductVariantSerializer(serializers.ModelSerializer):
    priceModifier = serializers.DecimalField(
        source='price_modifier', max_digits=10, decimal_places=2, required=False
    )

    class Meta:
        model = ProductVariant
        fields = ['id', 'name', 'type', 'value', 'priceModifier', 'stock']


class ProductSerializer(serializers.ModelSerializer):
    originalPrice = serializers.DecimalField(source='original_price', max_digits=10, decimal_places=2, read_only=True)
    images = serializers.SerializerMethodField()
    category = serializers.CharField(source='category.name', read_only=True)
    categorySlug = serializers.CharField(source='category.slug', read_only=True)
    variants = ProductVariantSerializer(many=True, read_only=True)
    reviewCount = serializers.IntegerField(source='review_count', read_only=True)
    isFeatured = serializers.BooleanField(source='is_featured', read_only=True)
    isNew = serializers.BooleanField(source='is_new', read_only=True)
    merchant = UserSummarySerializer(read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)

    class Meta:
        model = Product
        fields = [
            'id', 'name', 'slug', 'description', 'price', 'originalPrice', 'discount',
            'images', 'category', 'categorySlug', 'brand', 'stock', 'variants',
            'rating', 'reviewCount', 'isFeatured', 'isNew', 'tags', 'merchant',
            'createdAt', 'updatedAt',
        ]
        ref_name = "StoreProductSerializer"

    def get_images(self, obj):
        return obj.image_urls or [settings.PRODUCT_PLACEHOLDER_IMAGE]


class ProductWriteSerializer(serializers.Serializer):
    """Create/update input for products; accepts JSON or multipart with ``images`` files"""
    name = serializers.CharField(max_length=255)
    description = serializers.CharField()
    price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0)
    originalPrice = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=0, required=False, allow_null=True
    )
    category = serializers.CharField()
    brand = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=255)
    stock = serializers.IntegerField(min_value=0)
    isFeatured = serializers.BooleanField(required=False)
    isNew = serializers.BooleanField(required=False)
    tags = FormListField(child=serializers.CharField(max_length=100), required=False)
    variants = FormListField(child=ProductVariantSerializer(), required=False)
    images = serializers.ListField(
        child=serializers.ImageField(),
        required=False,
        max_length=settings.MAX_PRODUCT_IMAGES,
    )

    FIELD_MAP = {
        'name': 'name',
        'description': 'description',
        'price': 'price',
        'originalPrice': 'original_price',
        'brand': 'brand',
        'stock': 'stock',
        'isFeatured': 'is_featured',
        'isNew': 'is_new',
        'tags': 'tags',
    }

    def validate_category(self, value):
        category = CatalogService.resolve_category(value)
        if category is None:
            raise serializers.ValidationError(f"Unknown category '{value}'")
        return category

    def to_model_fields(self):
        """validated_data renamed to model field names, without images/variants"""
        fields = {
            model_field: self.validated_data[key]
            for key, model_field in self.FIELD_MAP.items()
            if key in self.validated_data
        }
        if 'category' in self.validated_data:
            fields['category'] = self.validated_data['category']
        return fields


# ---------------------------
# Cart Serializers
# ---------------------------
class CartItemSerializer(serializers.ModelSerializer):
    product = ProductSerializer(read_only=True)
    variant = ProductVariantSerializer(read_only=True)
    price = serializers.DecimalField(source='unit_price', max_digits=10, decimal_places=2, read_only=True)
    lineTotal = serializers.DecimalField(source='line_total', max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = CartItem
        fields = ['id', 'product', 'variant', 'quantity', 'price', 'lineTotal']


class CartSerializer(serializers.BaseSerializer):
    """Cart lines plus the totals derived from them"""

    def to_representation(self, cart):
        items = list(
            cart.items
            .select_related('product__category', 'product__merchant', 'variant')
            .prefetch_related('product__images', 'product__variants')
        )
        return {
            'id': cart.id,
            'items': CartItemSerializer(items, many=True, context=self.context).data,
            **PricingService.cart_totals(items),
        }


class AddCartItemSerializer(serializers.Serializer):
    productId = serializers.IntegerField()
    quantity = serializers.IntegerField(min_value=1, default=1)
    variant = serializers.IntegerField(required=False, allow_null=True)


class UpdateCartItemSerializer(serializers.Serializer):
    quantity = serializers.IntegerField(min_value=1)


class GuestCartLineSerializer(serializers.Serializer):
    productId = serializers.IntegerField()
    quantity = serializers.IntegerField(min_value=1)
    variant = serializers.IntegerField(required=False, allow_null=True)


class MergeCartSerializer(serializers.Serializer):
    items = GuestCartLineSerializer(many=True, allow_empty=True)


# ---------------------------
# Wishlist Serializers
# ---------------------------
class WishlistItemSerializer(serializers.ModelSerializer):
    product = ProductSerializer(read_only=True)
    addedAt = serializers.DateTimeField(source='added_at', read_only=True)

    class Meta:
        model = WishlistItem
        fields = ['id', 'product', 'addedAt']


class WishlistAddSerializer(serializers.Serializer):
    productId = serializers.IntegerField()


class MergeWishlistSerializer(serializers.Serializer):
    productIds = serializers.ListField(child=serializers.IntegerField(), allow_empty=True)


# ---------------------------
# Review Serializers
# ---------------------------
class ReviewSerializer(serializers.ModelSerializer):
    user = UserSummarySerializer(read_only=True)
    productId = serializers.IntegerField(source='product_id', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)

    class Meta:
        model = Review
        fields = ['id', 'productId', 'user', 'rating', 'comment', 'createdAt', 'updatedAt']


class ReviewCreateSerializer(serializers.Serializer):
    productId = serializers.IntegerField()
    rating = serializers.IntegerField(min_value=1, max_value=5)
    comment = serializers.CharField(required=False, allow_blank=True, default='')


class ReviewUpdateSerializer(serializers.Serializer):
    rating = serializers.IntegerField(min_value=1, max_value=5, required=False)
    comment = serializers.CharField(required=False, allow_blank=True)
