"""Lookalike domain generation.

Mutations are applied to the first label only; the remaining labels are
treated as the suffix, so ``brand.co.uk`` mutates ``brand`` and keeps
``co.uk`` except for the TLD-swap strategy.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Iterator, Mapping, Sequence

from ..models.results import PermutationCandidate
from ..utils.normalize import is_valid_hostname, split_domain

CONFUSABLES: Mapping[str, tuple[str, ...]] = MappingProxyType(
    {
        "o": ("0",),
        "i": ("1", "l"),
        "l": ("1", "i"),
        "e": ("3",),
        "a": ("4",),
        "s": ("5",),
        "t": ("7",),
        "g": ("9", "q"),
        "b": ("d",),
        "d": ("b",),
        "m": ("n", "rn"),
        "n": ("m",),
        "c": ("k",),
        "k": ("c",),
        "u": ("v",),
        "v": ("u",),
        "w": ("vv",),
    }
)

AFFIXES: tuple[str, ...] = ("login", "secure", "support", "portal", "account", "verify")

ALT_TLDS: tuple[str, ...] = ("com", "net", "org", "co", "info", "xyz", "io")

DEFAULT_LIMIT = 60


def _homoglyphs(name: str, confusables: Mapping[str, Sequence[str]]) -> Iterator[str]:
    for i, ch in enumerate(name):
        for sub in confusables.get(ch, ()):
            yield name[:i] + sub + name[i + 1 :]


def _omissions(name: str) -> Iterator[str]:
    for i in range(len(name)):
        yield name[:i] + name[i + 1 :]


def _repetitions(name: str) -> Iterator[str]:
    for i, ch in enumerate(name):
        yield name[: i + 1] + ch + name[i + 1 :]


def _transpositions(name: str) -> Iterator[str]:
    for i in range(len(name) - 1):
        yield name[:i] + name[i + 1] + name[i] + name[i + 2 :]


def _affixed(name: str, affixes: Sequence[str]) -> Iterator[str]:
    for affix in affixes:
        yield f"{name}-{affix}"
        yield f"{affix}-{name}"


def generate_candidates(
    domain: str,
    limit: int = DEFAULT_LIMIT,
    confusables: Mapping[str, Sequence[str]] = CONFUSABLES,
    affixes: Sequence[str] = AFFIXES,
    alt_tlds: Sequence[str] = ALT_TLDS,
) -> list[PermutationCandidate]:
    """Return up to ``limit`` lookalikes of ``domain`` in generation order.

    The first strategy to produce a name owns it. The input domain and
    names that are not valid hostnames are never returned.
    """
    domain = domain.lower()
    name, suffix = split_domain(domain)
    if not name or not suffix:
        return []

    def with_suffix(names: Iterator[str]) -> Iterator[str]:
        for mutated in names:
            yield f"{mutated}.{suffix}"

    strategies = (
        ("homoglyph", with_suffix(_homoglyphs(name, confusables))),
        ("omission", with_suffix(_omissions(name))),
        ("repetition", with_suffix(_repetitions(name))),
        ("transposition", with_suffix(_transpositions(name))),
        ("affix", with_suffix(_affixed(name, affixes))),
        ("tld_swap", (f"{name}.{tld}" for tld in alt_tlds if tld != suffix)),
    )

    seen: dict[str, str] = {}
    for strategy, names in strategies:
        for candidate in names:
            if candidate == domain or candidate in seen or not is_valid_hostname(candidate):
                continue
            seen[candidate] = strategy

    return [PermutationCandidate(domain=d, strategy=s) for d, s in list(seen.items())[: max(0, limit)]]


def generate_permutations(domain: str, limit: int = DEFAULT_LIMIT) -> list[str]:
    return [c.domain for c in generate_candidates(domain, limit=limit)]
