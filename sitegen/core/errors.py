"""Error kinds raised along the generation pipeline."""


class SitegenError(Exception):
    pass


class ProviderFailure(SitegenError):
    """A single provider attempt failed; the fallback chain moves on."""

    def __init__(self, provider: str, message: str):
        super().__init__(f"{provider}: {message}")
        self.provider = provider


class ArtifactTooShort(ProviderFailure):
    def __init__(self, provider: str, length: int, minimum: int):
        super().__init__(
            provider, f"artifact too short ({length} chars, minimum {minimum})"
        )
        self.length = length
        self.minimum = minimum


class AllProvidersFailed(SitegenError):
    """Every provider in the chain failed. Carries the last underlying error."""

    def __init__(self, attempts: list[str], last_error: Exception | None):
        detail = f": {last_error}" if last_error else ""
        super().__init__(
            f"All providers failed ({', '.join(attempts) or 'none configured'}){detail}"
        )
        self.attempts = attempts
        self.last_error = last_error


class AssetResolutionFailure(SitegenError):
    def __init__(self, slot: str, message: str):
        super().__init__(f"asset {slot}: {message}")
        self.slot = slot


class PersistenceFailure(SitegenError):
    pass
