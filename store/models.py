import time
from decimal import Decimal, ROUND_HALF_UP

from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from django.db.models import Avg, Count, Q
from django.utils.text import slugify

from authentication.models import CustomUser


# ==========================================
# Category Model
# ==========================================
class Category(models.Model):
    """
    A referenced product category. Products point at it by foreign key, so
    renaming a category changes every product that belongs to it.
    ``product_count`` is annotated on read, never stored.
    """
    name = models.CharField(max_length=255, unique=True)
    slug = models.SlugField(max_length=255, unique=True, blank=True)
    image = models.CharField(max_length=500, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name_plural = "Categories"
        ordering = ['name']

    def save(self, *args, **kwargs):
        if not self.slug:
            self.slug = slugify(self.name)
        super().save(*args, **kwargs)

    def __str__(self):
        return self.name


# ==========================================
# Product Model
# ==========================================
class Product(models.Model):
    merchant = models.ForeignKey(
        CustomUser, on_delete=models.SET_NULL, null=True, blank=True, related_name='products'
    )
    category = models.ForeignKey(Category, on_delete=models.PROTECT, related_name='products')
    name = models.CharField(max_length=255)
    slug = models.SlugField(max_length=300, unique=True, blank=True)
    description = models.TextField()
    price = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(0)])
    original_price = models.DecimalField(
        max_digits=10, decimal_places=2, null=True, blank=True, validators=[MinValueValidator(0)]
    )
    discount = models.PositiveSmallIntegerField(null=True, blank=True, help_text="Derived percentage off original_price")
    brand = models.CharField(max_length=255, null=True, blank=True)
    stock = models.PositiveIntegerField(default=0)
    tags = models.JSONField(default=list, blank=True)

    # Derived from reviews
    rating = models.DecimalField(max_digits=2, decimal_places=1, default=Decimal('0.0'))
    review_count = models.PositiveIntegerField(default=0)

    is_featured = models.BooleanField(default=False)
    is_new = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['is_featured', '-created_at'], name='product_featured_created_idx'),
            models.Index(fields=['price'], name='product_price_idx'),
        ]

    def save(self, *args, **kwargs):
        if not self.slug or self._name_changed():
            self.slug = self._generate_slug()
        self.discount = self.compute_discount(self.price, self.original_price)
        super().save(*args, **kwargs)

    def _name_changed(self):
        if not self.pk:
            return False
        stored = Product.objects.filter(pk=self.pk).values_list('name', flat=True).first()
        return stored is not None and stored != self.name

    def _generate_slug(self):
        base_slug = slugify(self.name) or 'product'
        timestamp = int(time.time() * 1000)
        slug = f"{base_slug}-{timestamp}"
        num = 1
        while Product.objects.filter(slug=slug).exclude(pk=self.pk).exists():
            slug = f"{base_slug}-{timestamp}-{num}"
            num += 1
        return slug

    @staticmethod
    def compute_discount(price, original_price):
        if price is None or not original_price:
            return None
        price, original_price = Decimal(str(price)), Decimal(str(original_price))
        if original_price <= price:
            return None
        percent = (original_price - price) / original_price * 100
        return int(percent.quantize(Decimal('1'), rounding=ROUND_HALF_UP))

    def refresh_rating(self):
        """Recompute rating (mean, one decimal) and review_count from stored reviews"""
        stats = self.reviews.aggregate(avg=Avg('rating'), count=Count('id'))
        if not stats['count']:
            rating = Decimal('0.0')
        else:
            rating = Decimal(str(stats['avg'])).quantize(Decimal('0.1'), rounding=ROUND_HALF_UP)
        Product.objects.filter(pk=self.pk).update(rating=rating, review_count=stats['count'])
        self.rating, self.review_count = rating, stats['count']

    @property
    def in_stock(self):
        return self.stock > 0

    @property
    def image_urls(self):
        return [image.image.url for image in self.images.all()]

    def __str__(self):
        return self.name


# ==========================================
# Product Image Model
# ==========================================
class ProductImage(models.Model):
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='images')
    image = models.ImageField(upload_to='products/')
    display_order = models.PositiveIntegerField(default=0, help_text="Order in which to display images")
    uploaded_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['display_order', 'uploaded_at']

    def __str__(self):
        return f"Image {self.display_order} for {self.product.name}"


# ==========================================
# Product Variant Model
# ==========================================
class ProductVariant(models.Model):
    class VariantType(models.TextChoices):
        COLOR = 'color', 'Color'
        SIZE = 'size', 'Size'
        MATERIAL = 'material', 'Material'

    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='variants')
    name = models.CharField(max_length=100)
    type = models.CharField(max_length=20, choices=VariantType.choices)
    value = models.CharField(max_length=100)
    price_modifier = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    stock = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ['id']

    def __str__(self):
        return f"{self.product.name} / {self.name}: {self.value}"


# -------------------------------
# Cart & Related Models
# -------------------------------
class Cart(models.Model):
    user = models.OneToOneField(CustomUser, on_delete=models.CASCADE, related_name='cart', help_text="Each user has one cart")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Cart for {self.user.email}"


class CartItem(models.Model):
    cart = models.ForeignKey(Cart, on_delete=models.CASCADE, related_name='items')
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='cart_items')
    variant = models.ForeignKey(ProductVariant, on_delete=models.CASCADE, null=True, blank=True, related_name='cart_items')
    quantity = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    added_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['added_at', 'id']
        constraints = [
            models.UniqueConstraint(fields=['cart', 'product', 'variant'], name='unique_cart_line_with_variant'),
            models.UniqueConstraint(
                fields=['cart', 'product'],
                condition=Q(variant__isnull=True),
                name='unique_cart_line_without_variant',
            ),
        ]

    @property
    def unit_price(self):
        modifier = self.variant.price_modifier if self.variant_id else Decimal('0')
        return self.product.price + modifier

    @property
    def line_total(self):
        return self.unit_price * self.quantity

    def __str__(self):
        return f"{self.quantity} x {self.product.name}"


# -------------------------------
# Wishlist
# -------------------------------
class Wishlist(models.Model):
    user = models.OneToOneField(CustomUser, on_delete=models.CASCADE, related_name='wishlist')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"Wishlist for {self.user.email}"


class WishlistItem(models.Model):
    wishlist = models.ForeignKey(Wishlist, on_delete=models.CASCADE, related_name='items')
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='wishlisted_by')
    added_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-added_at', '-id']
        unique_together = ('wishlist', 'product')

    def __str__(self):
        return f"{self.wishlist.user.email} wishlisted {self.product.name}"


# -------------------------------
# Reviews
# -------------------------------
class Review(models.Model):
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='reviews')
    user = models.ForeignKey(CustomUser, on_delete=models.CASCADE, related_name='reviews')
    rating = models.PositiveSmallIntegerField(validators=[MinValueValidator(1), MaxValueValidator(5)])
    comment = models.TextField(blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at', '-id']
        constraints = [
            models.UniqueConstraint(fields=['product', 'user'], name='one_review_per_user_per_product'),
        ]

    def __str__(self):
        return f"Review for {self.product.name} by {self.user.email}"
