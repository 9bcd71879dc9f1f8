"""
Factory Boy factories for authentication models.

Usage:
    from authentication.tests.factories import AdminFactory, UserFactory

    customer = UserFactory()
    agent = AdminFactory(display_name="Dana from Support")
"""

import factory

from authentication.models import User


class UserFactory(factory.django.DjangoModelFactory):
    """
    Factory for User model. Creates active customers by default.

    Examples:
        user = UserFactory()
        user = UserFactory(role=User.Role.ADMIN)
        user = UserFactory(is_active=False)
    """

    class Meta:
        model = User
        skip_postgeneration_save = True

    email = factory.Sequence(lambda n: f"user{n}@example.com")
    display_name = factory.Faker("name")
    role = User.Role.CUSTOMER
    is_active = True
    is_staff = False

    @classmethod
    def _create(cls, model_class, *args, **kwargs):
        """Override create to use UserManager.create_user()."""
        password = kwargs.pop("password", "TestPass123!")
        return model_class.objects.create_user(
            email=kwargs.pop("email"), password=password, **kwargs
        )


class AdminFactory(UserFactory):
    """Support agent."""

    email = factory.Sequence(lambda n: f"agent{n}@example.com")
    role = User.Role.ADMIN
