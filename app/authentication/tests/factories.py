"""
Factory Boy factories for authentication models.

Usage:
    from authentication.tests.factories import UserFactory

    # Trial account with PIN "1234"
    user = UserFactory()

    # Premium account
    user = UserFactory(subscription_status=SubscriptionTier.PREMIUM)
"""

import factory

from authentication.models import SubscriptionTier, User


class UserFactory(factory.django.DjangoModelFactory):
    """
    Factory for User model.

    Creates active, verified trial accounts with sequential Safaricom
    numbers in canonical form.
    """

    class Meta:
        model = User
        skip_postgeneration_save = True

    phone_number = factory.Sequence(lambda n: f"2547{n:08d}")
    business_name = factory.Sequence(lambda n: f"Duka {n}")
    subscription_status = SubscriptionTier.TRIAL
    is_verified = True
    is_active = True
    is_staff = False

    @classmethod
    def _create(cls, model_class, *args, **kwargs):
        """Override create to use UserManager.create_user()."""
        pin = kwargs.pop("pin", "1234")
        return model_class.objects.create_user(
            phone_number=kwargs.pop("phone_number"), pin=pin, **kwargs
        )
