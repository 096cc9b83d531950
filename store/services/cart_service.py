import logging

from django.db import IntegrityError, transaction
from rest_framework.exceptions import NotFound

from authentication.core.exceptions import InsufficientStockException
from store.models import Cart, CartItem, Product, ProductVariant

logger = logging.getLogger(__name__)


class CartService:
    """
    Mutations on a user's single cart. Lines are addressed by their integer
    id, always scoped to the caller's cart.
    """

    @staticmethod
    def get_cart(user):
        cart, created = Cart.objects.get_or_create(user=user)
        if created:
            logger.info(f"Cart created for {user.email}")
        return cart

    @staticmethod
    def _get_product(product_id):
        try:
            return Product.objects.get(pk=product_id)
        except (Product.DoesNotExist, ValueError, TypeError):
            raise NotFound("Product not found")

    @staticmethod
    def _get_variant(product, variant_id):
        if variant_id in (None, ''):
            return None
        try:
            return product.variants.get(pk=variant_id)
        except (ProductVariant.DoesNotExist, ValueError, TypeError):
            raise NotFound("Variant not found")

    @staticmethod
    def _get_line(user, item_id):
        line = (
            CartItem.objects
            .select_related('product', 'variant')
            .filter(pk=item_id, cart__user=user)
            .first()
        )
        if line is None:
            raise NotFound("Item not found in cart")
        return line

    @staticmethod
    def _check_stock(product, quantity):
        if product.stock < quantity:
            raise InsufficientStockException(
                f"Insufficient stock for {product.name}. Available: {product.stock}"
            )

    @staticmethod
    def _find_line(cart, product, variant):
        return cart.items.select_for_update().filter(product=product, variant=variant).first()

    @staticmethod
    def _write_line(cart, product, variant, combine):
        """
        Create or grow the line for ``product`` and ``variant``. ``combine``
        maps the quantity already in the cart (0 for a new line) to the new one.
        """
        line = CartService._find_line(cart, product, variant)
        if line is None:
            try:
                with transaction.atomic():
                    return cart.items.create(product=product, variant=variant, quantity=combine(0))
            except IntegrityError:
                # Another request inserted the same line since the lookup
                line = CartService._find_line(cart, product, variant)
                if line is None:
                    raise

        line.quantity = combine(line.quantity)
        line.save(update_fields=['quantity'])
        return line

    @staticmethod
    def _locked_cart(user):
        return Cart.objects.select_for_update().get(pk=CartService.get_cart(user).pk)

    # ==============================================================
    # ADD / UPDATE / REMOVE / CLEAR
    # ==============================================================
    @staticmethod
    @transaction.atomic
    def add_item(user, product_id, quantity, variant_id=None):
        """Add a line, or grow the existing line for the same product and variant"""
        product = CartService._get_product(product_id)
        variant = CartService._get_variant(product, variant_id)
        cart = CartService._locked_cart(user)

        def grow(existing):
            CartService._check_stock(product, existing + quantity)
            return existing + quantity

        CartService._write_line(cart, product, variant, grow)

        cart.save(update_fields=['updated_at'])
        logger.info(f"Cart {cart.pk}: {product.pk} x{quantity} added for {user.email}")
        return cart

    @staticmethod
    @transaction.atomic
    def update_item(user, item_id, quantity):
        line = CartService._get_line(user, item_id)
        CartService._check_stock(line.product, quantity)

        line.quantity = quantity
        line.save(update_fields=['quantity'])
        return line.cart

    @staticmethod
    def remove_item(user, item_id):
        line = CartService._get_line(user, item_id)
        cart = line.cart
        line.delete()
        logger.info(f"Cart {cart.pk}: line {item_id} removed for {user.email}")
        return cart

    @staticmethod
    def clear(user):
        cart = CartService.get_cart(user)
        cart.items.all().delete()
        return cart

    # ==============================================================
    # GUEST MERGE
    # ==============================================================
    @staticmethod
    @transaction.atomic
    def merge_guest_items(user, items):
        """
        Fold a guest's locally kept cart into the server cart.

        Server lines are kept. A guest line for the same product and variant
        is summed into the existing line; the result is capped at the
        product's current stock. Lines whose product or variant no longer
        exists, or whose product is out of stock, are skipped and reported.
        """
        cart = CartService._locked_cart(user)
        skipped = []

        for entry in items:
            product_id = entry['productId']
            product = Product.objects.select_for_update().filter(pk=product_id).first()
            if product is None:
                skipped.append({'productId': product_id, 'reason': 'Product not found'})
                continue
            if product.stock < 1:
                skipped.append({'productId': product_id, 'reason': 'Out of stock'})
                continue

            variant_id = entry.get('variant')
            variant = None
            if variant_id is not None:
                variant = product.variants.filter(pk=variant_id).first()
                if variant is None:
                    skipped.append({'productId': product_id, 'reason': 'Variant not found'})
                    continue

            wanted, available = entry['quantity'], product.stock
            CartService._write_line(
                cart, product, variant,
                lambda existing: min(existing + wanted, available),
            )

        cart.save(update_fields=['updated_at'])
        logger.info(f"Guest cart merged for {user.email} ({len(items)} lines, {len(skipped)} skipped)")
        return cart, skipped
