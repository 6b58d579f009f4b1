"""
Signal handlers for housekeeping of pricing group lock rows.
"""

from django.db.models.signals import post_delete
from django.dispatch import receiver
from .models import Hotel, PricingGroupLock


@receiver(post_delete, sender=Hotel)
def delete_hotel_group_locks(sender, instance, **kwargs):
    """
    When a hotel is deleted its pricing rows cascade away; drop the
    lock rows of its groups as well (keys start with the hotel id).
    """
    PricingGroupLock.objects.filter(key__startswith=f"{instance.pk}:").delete()
