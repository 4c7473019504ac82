from __future__ import annotations

import re

from ..errors import InvalidDomainError

LABEL_RE = re.compile(r"^(?!-)[a-z0-9-]{1,63}(?<!-)$")
SCHEME_RE = re.compile(r"^[a-z][a-z0-9+.-]*://")


def normalize_domain(domain: object) -> str:
    """Reduce user input such as ``https://Example.com/login`` to ``example.com``.

    Raises InvalidDomainError for non-strings, blank input and anything that
    is not a multi-label hostname after cleanup.
    """
    if not isinstance(domain, str) or not domain.strip():
        raise InvalidDomainError("domain is required")
    value = domain.strip().lower()
    value = SCHEME_RE.sub("", value)
    value = re.split(r"[/?#]", value, maxsplit=1)[0]
    value = value.rsplit("@", 1)[-1]
    value = value.split(":", 1)[0]
    value = value.rstrip(".")
    if not is_valid_hostname(value) or "." not in value:
        raise InvalidDomainError(f"invalid domain: {domain.strip()!r}")
    return value


def is_valid_hostname(name: str) -> bool:
    if not name or len(name) > 253:
        return False
    return all(LABEL_RE.match(label) for label in name.split("."))


def split_domain(domain: str) -> tuple[str, str]:
    """``brand.co.uk`` -> (``brand``, ``co.uk``). Single-label input gives an empty suffix."""
    name, _, suffix = domain.partition(".")
    return name, suffix


def base_name(domain: str) -> str:
    return split_domain(domain.lower())[0]


def is_same_or_subdomain(candidate: str, domain: str) -> bool:
    candidate = candidate.lower().rstrip(".")
    domain = domain.lower()
    return candidate == domain or candidate.endswith(f".{domain}")
