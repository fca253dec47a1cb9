"""
Account factories for tests.

Example:
    >>> user = UserFactory()
    >>> user.check_password("defaultpassword")
    True
    >>> producer_user = UserFactory(role="producer")
"""

import factory
from django.contrib.auth import get_user_model

from .constants import UserRole
from .models import PushSubscription

User = get_user_model()


class UserFactory(factory.django.DjangoModelFactory):
    """
    Verified customer accounts with fake names and a known password.

    Meta:
        skip_postgeneration_save (bool): The password hook saves explicitly.
    """

    class Meta:
        model = User
        skip_postgeneration_save = True

    email = factory.Sequence(lambda n: f"user{n}@example.com")
    first_name = factory.Faker("first_name")
    last_name = factory.Faker("last_name")
    role = UserRole.CUSTOMER
    is_email_verified = True

    @factory.post_generation
    def password(self, create, extracted, **kwargs):
        """Hash `extracted` (or "defaultpassword") so `check_password` works."""

        if not create:
            return

        self.set_password(extracted or "defaultpassword")
        self.save()


class AdminFactory(UserFactory):
    role = UserRole.ADMIN
    is_staff = True


class PushSubscriptionFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = PushSubscription

    user = factory.SubFactory(UserFactory)
    endpoint = factory.Sequence(lambda n: f"https://push.example.com/send/{n}")
    p256dh = "BNcRdreALRFXTkOOUHK1EtK2wtaz5Ry4YfYCA_0QTpQtUbVlUls0VJXg7A8u-Ts1XbjhazAkj7I99e8QcYP7DkM"
    auth = "tBHItJI5svbpez7KI4CCXg"
