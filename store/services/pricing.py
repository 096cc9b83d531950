from decimal import Decimal, ROUND_HALF_UP

from django.conf import settings

CENT = Decimal('0.01')


def to_money(value):
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


class PricingService:
    """
    Cart and order totals:

        subtotal = sum((price + variant modifier) * quantity)
        discount = 0
        shipping = 0 when subtotal >= FREE_SHIPPING_THRESHOLD else FLAT_SHIPPING_FEE
        tax      = (subtotal - discount) * SALES_TAX_RATE
        total    = subtotal - discount + shipping + tax

    Each component is rounded half-up to cents before summing, so the
    total always equals the sum of the reported parts.
    """

    @staticmethod
    def shipping_for(subtotal):
        if subtotal >= settings.FREE_SHIPPING_THRESHOLD:
            return to_money(0)
        return to_money(settings.FLAT_SHIPPING_FEE)

    @staticmethod
    def calculate_totals(lines):
        """``lines`` is an iterable of (unit_price, quantity) pairs"""
        subtotal = to_money(sum((Decimal(price) * quantity for price, quantity in lines), Decimal('0')))
        discount = to_money(0)
        shipping = PricingService.shipping_for(subtotal)
        tax = to_money((subtotal - discount) * settings.SALES_TAX_RATE)
        total = subtotal - discount + shipping + tax
        return {
            'subtotal': subtotal,
            'discount': discount,
            'shipping': shipping,
            'tax': tax,
            'total': total,
        }

    @staticmethod
    def cart_totals(items):
        return PricingService.calculate_totals((item.unit_price, item.quantity) for item in items)
