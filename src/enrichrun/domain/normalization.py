"""Domain and tax ID normalization shared by merging, filtering and commit."""

from __future__ import annotations

import re
from functools import lru_cache
from typing import TYPE_CHECKING

from publicsuffix2 import PublicSuffixList

from enrichrun.domain.errors import ValidationError
from enrichrun.domain.model import DiscoverySource, DomainGroup, SourceUrl

if TYPE_CHECKING:
    from collections.abc import Iterable

_SCHEME = re.compile(r"^[a-z][a-z0-9+.-]*://")
_TAX_ID = re.compile(r"^(?:\d{10}|\d{12})$")


@lru_cache(maxsize=1)
def _suffix_list() -> PublicSuffixList:
    return PublicSuffixList()


def host_of(value: str | None) -> str:
    """Return the bare lowercase host of a URL or domain, without ``www.``.

    Userinfo, port, path, query, fragment and a trailing dot are removed and
    internationalized labels are converted to punycode. Blank input yields ``""``.
    """

    if value is None:
        return ""
    text = value.strip().lower()
    if not text:
        return ""
    text = _SCHEME.sub("", text)
    for separator in ("/", "?", "#"):
        text = text.split(separator, 1)[0]
    text = text.rsplit("@", 1)[-1]
    if not text.startswith("["):
        text = text.split(":", 1)[0]
    text = text.strip(".")
    if text.startswith("www."):
        text = text[4:]
    return _to_ascii(text)


def _to_ascii(host: str) -> str:
    labels: list[str] = []
    for label in host.split("."):
        if not label or label.isascii():
            labels.append(label)
            continue
        try:
            labels.append(label.encode("idna").decode("ascii"))
        except UnicodeError:
            labels.append(label)
    return ".".join(labels)


def normalize_domain(value: str | None) -> str:
    """Reduce a URL or host to its registrable root domain.

    ``normalize_domain("HTTPS://Sub.Example.com/path")`` and ``normalize_domain("example.com")``
    both return ``"example.com"``. The function is idempotent.
    """

    host = host_of(value)
    if not host:
        return ""
    root = _suffix_list().get_sld(host, wildcard=True, strict=False)
    return root or host


def is_valid_tax_id(value: str | None) -> bool:
    """Check the INN shape: 10 digits for organizations, 12 for individuals."""

    if value is None:
        return False
    return bool(_TAX_ID.match(value.strip()))


def require_tax_id(value: str | None) -> str:
    candidate = (value or "").strip()
    if not _TAX_ID.match(candidate):
        raise ValidationError(f"Malformed tax ID: {value!r}")
    return candidate


def group_urls(
    urls: Iterable[str],
    *,
    source: DiscoverySource = DiscoverySource.UNKNOWN,
    keyword: str | None = None,
) -> list[DomainGroup]:
    """Group URLs and hosts under their root domain, in first-seen order.

    Blank entries and values with no usable host are dropped.
    """

    grouped: dict[str, list[SourceUrl]] = {}
    for url in urls:
        root = normalize_domain(url)
        if not root:
            continue
        grouped.setdefault(root, []).append(SourceUrl(url.strip(), source, keyword))
    return [DomainGroup(domain, tuple(members)) for domain, members in grouped.items()]
