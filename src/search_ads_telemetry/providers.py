"""Search provider catalog used to attribute results pages and ad URLs.

Each provider carries the pattern that recognises its results page and the
patterns that recognise its ad-server (ad click redirect) URLs. The attribution
metadata (query/code params, follow-on params and cookies) is kept as catalog
data; the ad detection paths do not read it.

Catalog order is significant: the first provider whose pattern matches a URL
wins, so keep ``PROVIDERS`` in declaration order.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, field

from .errors import ConfigError


@dataclass(frozen=True)
class SearchProviderCookie:
    """Cookie based follow-on attribution rule for a provider."""

    extra_code_param: str
    extra_code_prefixes: tuple[str, ...]
    host: str
    name: str
    code_param: str
    code_prefixes: tuple[str, ...]


@dataclass(frozen=True)
class SearchProviderModel:
    """One provider rule; regexes are compiled once when the rule is built."""

    name: str
    regexp: str
    query_param: str
    code_param: str = ""
    code_prefixes: tuple[str, ...] = ()
    follow_on_params: tuple[str, ...] = ()
    follow_on_cookies: tuple[SearchProviderCookie, ...] = ()
    extra_ad_servers_regexps: tuple[str, ...] = ()
    pattern: re.Pattern[str] = field(init=False, repr=False, compare=False)
    ad_server_patterns: tuple[re.Pattern[str], ...] = field(
        init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        try:
            pattern = re.compile(self.regexp)
            ad_server_patterns = tuple(re.compile(value) for value in self.extra_ad_servers_regexps)
        except re.error as exc:
            raise ConfigError(f"Invalid pattern for provider {self.name!r}: {exc}") from exc
        object.__setattr__(self, "pattern", pattern)
        object.__setattr__(self, "ad_server_patterns", ad_server_patterns)


def build_catalog(providers: Iterable[SearchProviderModel]) -> tuple[SearchProviderModel, ...]:
    """Freeze providers into an ordered catalog, rejecting duplicate names."""
    catalog = tuple(providers)
    seen: set[str] = set()
    for provider in catalog:
        if provider.name in seen:
            raise ConfigError(f"Duplicate provider name in catalog: {provider.name}")
        seen.add(provider.name)
    return catalog


PROVIDERS: tuple[SearchProviderModel, ...] = build_catalog(
    [
        SearchProviderModel(
            name="google",
            regexp=r"^https://www\.google\.(?:.+)/search",
            query_param="q",
            code_param="client",
            code_prefixes=("firefox",),
            follow_on_params=("oq", "ved", "ei"),
            extra_ad_servers_regexps=(
                r"^https?://www\.google(?:adservices)?\.com/(?:pagead/)?aclk",
            ),
        ),
        SearchProviderModel(
            name="duckduckgo",
            regexp=r"^https://duckduckgo\.com/",
            query_param="q",
            code_param="t",
            code_prefixes=("ff",),
            follow_on_params=("oq", "ved", "ei"),
            extra_ad_servers_regexps=(
                r"^https://duckduckgo.com/y\.js",
                r"^https://www\.amazon\.(?:[a-z.]{2,24}).*(?:tag=duckduckgo-)",
            ),
        ),
        SearchProviderModel(
            name="yahoo",
            regexp=r"^https://(?:.*)search\.yahoo\.com/search",
            query_param="p",
        ),
        SearchProviderModel(
            name="baidu",
            regexp=r"^https://www\.baidu\.com/from=844b/(?:s|baidu)",
            query_param="wd",
            code_param="tn",
            code_prefixes=("34046034_", "monline_"),
            follow_on_params=("oq",),
        ),
        SearchProviderModel(
            name="bing",
            regexp=r"^https://www\.bing\.com/search",
            query_param="q",
            code_param="pc",
            code_prefixes=("MOZ", "MZ"),
            follow_on_params=("oq", "ved", "ei"),
            follow_on_cookies=(
                SearchProviderCookie(
                    extra_code_param="form",
                    extra_code_prefixes=("QBRE",),
                    host="www.bing.com",
                    name="SRCHS",
                    code_param="PC",
                    code_prefixes=("MOZ", "MZ"),
                ),
            ),
            extra_ad_servers_regexps=(
                r"^https://www\.bing\.com/acli?c?k",
                r"^https://www\.bing\.com/fd/ls/GLinkPingPost\.aspx.*acli?c?k",
            ),
        ),
    ]
)


def get_provider(
    name: str, providers: tuple[SearchProviderModel, ...] = PROVIDERS
) -> SearchProviderModel | None:
    """Look up a provider by its unique name."""
    for provider in providers:
        if provider.name == name:
            return provider
    return None
