import enum
from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field


class AssetSlot(str, enum.Enum):
    HERO = "hero"
    ABOUT = "about"
    SERVICES_PRIMARY = "services_primary"
    SERVICES_SECONDARY = "services_secondary"
    GALLERY_1 = "gallery_1"
    GALLERY_2 = "gallery_2"
    GALLERY_3 = "gallery_3"


class BusinessProfile(BaseModel):
    """Structured description of the business the site is for."""

    model_config = ConfigDict(frozen=True)

    company_name: str = ""
    sector: str = ""
    style: str = ""
    tone: str = ""
    features: list[str] = Field(default_factory=list)
    pages: list[str] = Field(default_factory=list)


class GenerationRequest(BaseModel):
    """A submitted site request. Immutable once created."""

    model_config = ConfigDict(frozen=True)

    prompt: str = ""
    profile: BusinessProfile | None = None
    conversation_id: str | None = None


class ResolvedAsset(BaseModel):
    """An image produced for one slot of a site."""

    slot: AssetSlot
    url: str
    storage_path: str | None = None
    placeholder: bool = False


@dataclass(frozen=True)
class ProviderDescriptor:
    """One entry of the provider fallback chain."""

    name: str
    max_output_tokens: int
    vendor: str = "openai"  # openai|anthropic


@dataclass
class CodeArtifact:
    """Progressive states of one generated site. Only `final` is persisted."""

    raw: str = ""
    normalized: str = ""
    sanitized: str = ""
    final: str = ""
