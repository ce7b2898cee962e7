"""
Licensed identity model.

Read-only view of the account behind a license key, including the
provider API keys needed for generation. Keys are SecretStr so they
never render in logs or reprs.

Dependencies: pydantic
System role: Output of the identity resolver
"""

from uuid import UUID

from pydantic import BaseModel, ConfigDict, SecretStr

from diagrammaton.models.generation import Provider


class LicensedIdentity(BaseModel):
    """Account reached through a valid license key."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    email: str | None = None
    openai_api_key: SecretStr | None = None
    anthropic_api_key: SecretStr | None = None

    def api_key_for(self, provider: Provider) -> SecretStr | None:
        """Stored key for a provider, or None when absent or blank."""
        key = self.openai_api_key if provider is Provider.OPENAI else self.anthropic_api_key
        if key is None or not key.get_secret_value().strip():
            return None
        return key
