from django.db.models.signals import pre_save
from django.dispatch import receiver
import logging

from .models import Order

logger = logging.getLogger(__name__)


@receiver(pre_save, sender=Order)
def log_status_change(sender, instance, **kwargs):
    """Log every status and payment status transition of an existing order"""
    if not instance.pk:
        return
    previous = Order.objects.filter(pk=instance.pk).values('status', 'payment_status').first()
    if previous is None:
        return
    if previous['status'] != instance.status:
        logger.info(f"Order {instance.order_number} status {previous['status']} -> {instance.status}")
    if previous['payment_status'] != instance.payment_status:
        logger.info(
            f"Order {instance.order_number} payment {previous['payment_status']} -> {instance.payment_status}"
        )
