from django.urls import path
from .views import (
    ProductListView, ProductDetailView, FeaturedProductsView, CategoryListView,
    CartView, CartItemsView, CartItemDetailView, CartMergeView,
    WishlistView, WishlistItemView, WishlistCheckView, WishlistMergeView,
    ProductReviewListView, ReviewCreateView, ReviewDetailView,
)

urlpatterns = [
    # Products
    path('products', ProductListView.as_view(), name='product-list'),
    path('products/featured', FeaturedProductsView.as_view(), name='product-featured'),
    path('products/categories', CategoryListView.as_view(), name='category-list'),
    path('products/<str:identifier>', ProductDetailView.as_view(), name='product-detail'),

    # Cart
    path('cart', CartView.as_view(), name='cart'),
    path('cart/items', CartItemsView.as_view(), name='cart-items'),
    path('cart/items/<int:item_id>', CartItemDetailView.as_view(), name='cart-item-detail'),
    path('cart/merge', CartMergeView.as_view(), name='cart-merge'),

    # Wishlist
    path('wishlist', WishlistView.as_view(), name='wishlist'),
    path('wishlist/merge', WishlistMergeView.as_view(), name='wishlist-merge'),
    path('wishlist/check/<int:product_id>', WishlistCheckView.as_view(), name='wishlist-check'),
    path('wishlist/<int:product_id>', WishlistItemView.as_view(), name='wishlist-item'),

    # Reviews
    path('reviews', ReviewCreateView.as_view(), name='review-create'),
    path('reviews/product/<int:product_id>', ProductReviewListView.as_view(), name='product-reviews'),
    path('reviews/<int:review_id>', ReviewDetailView.as_view(), name='review-detail'),
]
