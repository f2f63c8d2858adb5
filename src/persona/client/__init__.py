"""Python client for the internal identity API."""

from src.persona.client.client import IdentityAdminClient, NoOpPersonaClient, PersonaClient

__all__ = ["IdentityAdminClient", "NoOpPersonaClient", "PersonaClient"]
