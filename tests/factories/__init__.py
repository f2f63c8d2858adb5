"""Test factories for generating test data.

Re-exports all factories for convenient imports:
    from tests.factories import IdentityFactory, SessionFactory
"""

from tests.factories.base import BaseFactory, generate_id, utc_now
from tests.factories.identity import IdentityFactory, SessionFactory

__all__ = [
    "BaseFactory",
    "IdentityFactory",
    "SessionFactory",
    "generate_id",
    "utc_now",
]
