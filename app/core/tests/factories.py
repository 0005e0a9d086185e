"""
Factory Boy factories for users.

Every app's tests build buyers, sellers and admins from here.

Usage:
    from core.tests.factories import AdminUserFactory, UserFactory

    seller = UserFactory()
    admin = AdminUserFactory()
"""

import factory


class UserFactory(factory.django.DjangoModelFactory):
    """Regular marketplace user (buyer or seller)."""

    class Meta:
        model = "auth.User"
        django_get_or_create = ("username",)
        skip_postgeneration_save = True

    username = factory.Sequence(lambda n: f"user{n}")
    email = factory.LazyAttribute(lambda o: f"{o.username}@example.com")
    password = factory.PostGenerationMethodCall("set_password", "testpass123")
    is_active = True


class AdminUserFactory(UserFactory):
    """Staff user allowed to use the admin settlement endpoints."""

    username = factory.Sequence(lambda n: f"admin{n}")
    is_staff = True
