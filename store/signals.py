from django.db.models.signals import post_save, post_delete, pre_save
from django.dispatch import receiver
import logging

from .models import Product, Review

logger = logging.getLogger(__name__)


@receiver(pre_save, sender=Product)
def log_stock_change(sender, instance, **kwargs):
    """
    Log manual stock edits. Order placement and cancellation adjust stock
    with queryset updates and log on their own.
    """
    if instance.pk:
        old_stock = Product.objects.filter(pk=instance.pk).values_list('stock', flat=True).first()
        if old_stock is not None and old_stock != instance.stock:
            logger.info(f"Product '{instance.name}' stock changed from {old_stock} to {instance.stock}")


@receiver([post_save, post_delete], sender=Review)
def refresh_product_rating(sender, instance, **kwargs):
    """Keep Product.rating and Product.review_count in step with its reviews"""
    product = Product.objects.filter(pk=instance.product_id).first()
    if product is None:
        return
    product.refresh_rating()
    logger.debug(f"Product {product.pk} rating now {product.rating} over {product.review_count} review(s)")
