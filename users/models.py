from django.db import models
from django.contrib.auth.models import AbstractUser
from phonenumber_field.modelfields import PhoneNumberField
from django.core.validators import MinValueValidator, MaxValueValidator
from django.utils.translation import gettext_lazy as _
import uuid



# User & Roles

class UserType(models.TextChoices):
        ARTIST = 'artist', _('Artist')
        CUSTOMER = 'customer', _('Customer')
        ADMIN = 'admin', _('Administrator')
        STAFF = 'staff', _('Staff Member')

class User(AbstractUser):

    # Authentication fields
    phone_number = PhoneNumberField(
        unique=True,
        verbose_name=_('Phone Number'),
        help_text=_('Required. International format with country code (e.g. +254...)'),
        error_messages={
            'unique': _("A user with that phone number already exists."),
        }
    )

    # User profile fields
    user_type = models.CharField(
        max_length=20,
        choices=UserType.choices,
        default=UserType.CUSTOMER,
        verbose_name=_('User Type')
    )

    full_name = models.CharField(
        max_length=150,
        blank=True,
        verbose_name=_('Full Name')
    )

    # Settings
    USERNAME_FIELD = 'phone_number'
    REQUIRED_FIELDS = ['username', 'user_type']

    class Meta:
        verbose_name = _('User')
        verbose_name_plural = _('Users')
        ordering = ['-date_joined']
        indexes = [
            models.Index(fields=['phone_number'], name='users_user_phone_n_7a1c0e_idx'),
            models.Index(fields=['user_type'], name='users_user_user_ty_4b9f2d_idx'),
        ]

    def __str__(self):
        return f"{self.display_name}"

    @property
    def is_artist(self):
        return self.user_type == UserType.ARTIST

    @property
    def is_ledger_admin(self):
        return self.is_superuser or self.user_type in [UserType.ADMIN, UserType.STAFF]

    @property
    def display_name(self):
        return self.full_name or self.get_full_name() or self.username

    def save(self, *args, **kwargs):
        # Ensure username is set if not provided
        if not self.username:
            self.username = f"user_{uuid.uuid4().hex[:6]}"
        super().save(*args, **kwargs)



class ArtistProfile(models.Model):
    """Artist-facing rollups. ``total_earnings`` is a cache of the earnings ledger."""
    user = models.OneToOneField(
        User,
        on_delete=models.CASCADE,
        related_name='artist_profile',
        verbose_name=_('Artist Account')
    )

    total_earnings = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=0,
        verbose_name=_('Total Earnings'),
        help_text=_('Available plus withdrawn net earnings')
    )

    completed_orders = models.PositiveIntegerField(default=0)

    rating = models.DecimalField(
        max_digits=3,
        decimal_places=2,
        default=0,
        validators=[MinValueValidator(0), MaxValueValidator(5)]
    )

    total_reviews = models.PositiveIntegerField(default=0)
    is_verified = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _('Artist Profile')
        verbose_name_plural = _('Artist Profiles')

    def __str__(self):
        return f"Artist profile for {self.user}"
