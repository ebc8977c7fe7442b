import logging
from django.db.models.signals import post_save
from django.dispatch import receiver

from users.models import User, UserType, ArtistProfile

logger = logging.getLogger(__name__)

@receiver(post_save, sender=User)
def create_artist_profile(sender, instance, created, **kwargs):
    if instance.user_type != UserType.ARTIST:
        return
    try:
        _, profile_created = ArtistProfile.objects.get_or_create(user=instance)
        if profile_created:
            logger.info(f"Artist profile created for user {instance.id}")
    except Exception as e:
        logger.error(f"Error creating artist profile for user {instance.id}: {e}")
        raise
