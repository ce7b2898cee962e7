"""
Model catalog schemas.

Dependencies: pydantic
System role: Request/response models for POST /models
"""

from pydantic import BaseModel, ConfigDict, Field

from diagrammaton.models.generation import Provider, Variant


class ModelsRequest(BaseModel):
    """Body of POST /models."""

    model_config = ConfigDict(populate_by_name=True)

    license_key: str | None = Field(default=None, alias="licenseKey")


class ModelOption(BaseModel):
    """One selectable provider/model/variant combination."""

    id: str = Field(description="Composite provider:model:variant token")
    label: str = Field(description="Human readable label")
    provider: Provider
    model: str
    variant: Variant


class ProviderAvailability(BaseModel):
    """Whether each provider could be listed for this user."""

    openai: bool = False
    anthropic: bool = False


class ModelCatalogResponse(BaseModel):
    """Response of POST /models."""

    model_config = ConfigDict(populate_by_name=True)

    default_model_id: str | None = Field(default=None, alias="defaultModelId")
    models: list[ModelOption] = Field(default_factory=list)
    providers: ProviderAvailability = Field(default_factory=ProviderAvailability)
