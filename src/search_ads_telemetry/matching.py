"""Provider resolution and ad URL detection."""

from __future__ import annotations

from collections.abc import Iterable

from .providers import PROVIDERS, SearchProviderModel


def resolve_provider(
    url: str, providers: tuple[SearchProviderModel, ...] = PROVIDERS
) -> SearchProviderModel | None:
    """Return the first provider whose results-page pattern occurs in ``url``.

    The URL is matched as-is; catalog order breaks ties between providers
    whose patterns overlap.
    """
    for provider in providers:
        if provider.pattern.search(url):
            return provider
    return None


def contains_ads(provider: SearchProviderModel, urls: Iterable[str]) -> bool:
    """Return True when any URL matches one of the provider's ad-server patterns."""
    if not provider.ad_server_patterns:
        return False
    return any(
        pattern.search(url) for url in urls for pattern in provider.ad_server_patterns
    )
