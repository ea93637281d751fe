"""Wildcard host matching used to filter which images get imported."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from fnmatch import fnmatchcase
from typing import Iterable, Optional, Sequence, Tuple
from urllib.parse import urlsplit

from .errors import InvalidInvocation


def uri_host(uri: str) -> Optional[str]:
    """Return the host of a URI with its original casing, or None."""
    if not uri:
        return None
    try:
        netloc = urlsplit(uri.strip()).netloc
    except ValueError:
        return None
    if not netloc:
        return None
    host = netloc.rpartition("@")[2]
    if host.startswith("["):
        host = host[: host.find("]") + 1]
    else:
        host = host.split(":", 1)[0]
    return host or None


def uri_matches_host(uri: str, patterns: Iterable[str]) -> bool:
    """Check whether the URI's host matches any of the wildcard patterns.

    `*` matches any run of characters including dots, so `*.example.com`
    covers every subdomain but not `example.com` itself, while
    `example.*` covers every domain extension.
    """
    patterns = list(patterns)
    if not patterns or not uri:
        return False
    host = uri_host(uri)
    if host is None:
        return False
    return any(fnmatchcase(host, pattern) for pattern in patterns)


class FilterMode(Enum):
    EXCLUDE = "exclude"
    INCLUDE_ONLY = "include_only"


@dataclass(frozen=True)
class HostFilter:
    """Decides which image hosts may be downloaded from during a run."""

    mode: FilterMode
    patterns: Tuple[str, ...] = ()

    def allows(self, uri: str) -> bool:
        matched = uri_matches_host(uri, self.patterns)
        if self.mode is FilterMode.INCLUDE_ONLY:
            return matched
        return not matched


def build_host_filter(
    exclude_hosts: Optional[Sequence[str]],
    only_download_from_hosts: Optional[Sequence[str]],
    site_host: Optional[str],
) -> HostFilter:
    """Combine the user's host options and the site's own host into a filter."""
    if exclude_hosts and only_download_from_hosts:
        raise InvalidInvocation(
            "When providing the `--only-download-from-hosts` param, "
            "do not use the `--exclude-hosts` at the same time."
        )
    if only_download_from_hosts:
        return HostFilter(FilterMode.INCLUDE_ONLY, tuple(only_download_from_hosts))

    patterns = []
    if site_host:
        patterns.append(site_host)
    patterns.extend(exclude_hosts or ())
    return HostFilter(FilterMode.EXCLUDE, tuple(patterns))
