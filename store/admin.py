from django.contrib import admin
from .models import (
    Category, Product, ProductImage, ProductVariant,
    Cart, CartItem, Wishlist, WishlistItem, Review,
)


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ('name', 'slug', 'created_at')
    search_fields = ('name', 'slug')
    readonly_fields = ('created_at', 'updated_at')


class ProductImageInline(admin.TabularInline):
    model = ProductImage
    extra = 0


class ProductVariantInline(admin.TabularInline):
    model = ProductVariant
    extra = 0


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ('name', 'merchant', 'category', 'price', 'stock', 'rating', 'review_count', 'is_featured', 'created_at')
    list_filter = ('category', 'is_featured', 'is_new', 'created_at')
    search_fields = ('name', 'description', 'brand')
    readonly_fields = ('slug', 'discount', 'rating', 'review_count', 'created_at', 'updated_at')
    inlines = [ProductImageInline, ProductVariantInline]
    fieldsets = (
        ('Basic Information', {
            'fields': ('name', 'slug', 'merchant', 'category', 'brand', 'tags')
        }),
        ('Details', {
            'fields': ('description', 'price', 'original_price', 'discount', 'stock', 'is_featured', 'is_new')
        }),
        ('Reviews', {
            'fields': ('rating', 'review_count'),
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )


class CartItemInline(admin.TabularInline):
    model = CartItem
    extra = 0


@admin.register(Cart)
class CartAdmin(admin.ModelAdmin):
    list_display = ('user', 'created_at', 'updated_at')
    search_fields = ('user__email', 'user__name')
    readonly_fields = ('created_at', 'updated_at')
    inlines = [CartItemInline]


class WishlistItemInline(admin.TabularInline):
    model = WishlistItem
    extra = 0


@admin.register(Wishlist)
class WishlistAdmin(admin.ModelAdmin):
    list_display = ('user', 'created_at')
    search_fields = ('user__email',)
    inlines = [WishlistItemInline]


@admin.register(Review)
class ReviewAdmin(admin.ModelAdmin):
    list_display = ('product', 'user', 'rating', 'created_at')
    list_filter = ('rating', 'created_at')
    search_fields = ('product__name', 'user__email')
    readonly_fields = ('created_at',)
