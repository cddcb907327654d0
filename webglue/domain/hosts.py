from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from .contracts import HostRequest

__all__ = [
    "DEV_SUFFIX_PATTERN",
    "CallbackRule",
    "DomainMatcher",
    "LiteralRule",
    "SubstitutionRule",
]

# Development hosts look like "example.com.dev"; stripping the suffix lets one
# matcher serve both environments.
DEV_SUFFIX_PATTERN = re.compile(r"\.dev$")

Pattern = str | re.Pattern[str]
Replacer = Callable[[str], str]


def _compile(pattern: Pattern) -> re.Pattern[str]:
    """Compiled patterns are regexes; plain strings match literally."""
    if isinstance(pattern, re.Pattern):
        return pattern
    return re.compile(re.escape(pattern))


@dataclass(frozen=True)
class LiteralRule:
    """Replace every match of `pattern` with a fixed string."""

    pattern: re.Pattern[str]
    replacement: str = ""

    def apply(self, host: str) -> str:
        # A callable avoids re.sub interpreting backslashes in the replacement.
        return self.pattern.sub(lambda _m: self.replacement, host)


@dataclass(frozen=True)
class CallbackRule:
    """Replace every match of `pattern` with `fn(matched_text)`."""

    pattern: re.Pattern[str]
    fn: Replacer

    def apply(self, host: str) -> str:
        return self.pattern.sub(lambda m: self.fn(m.group(0)), host)


SubstitutionRule = LiteralRule | CallbackRule


class DomainMatcher:
    """Match requests by their (rewritten) host against a set of domains.

    The host is first rewritten with the substitution rule and then compared
    by exact membership. `replace_pattern` is a regex only when it is an
    `re.Pattern`; a plain string is matched as a literal substring. A
    callback, when given, wins over `replace_string` and receives the matched
    text (a `str`, not the `re.Match`).
    """

    __slots__ = ("_domains", "_rule")

    def __init__(
        self,
        domains: str | Iterable[str],
        replace_pattern: Pattern = DEV_SUFFIX_PATTERN,
        replace_string: str = "",
        replace_callback: Replacer | None = None,
    ) -> None:
        if isinstance(domains, str):
            domains = [domains]
        self._domains = frozenset(domains)

        pattern = _compile(replace_pattern)
        if replace_callback is not None:
            self._rule: SubstitutionRule = CallbackRule(pattern, replace_callback)
        else:
            self._rule = LiteralRule(pattern, replace_string)

    @property
    def domains(self) -> frozenset[str]:
        return self._domains

    @property
    def rule(self) -> SubstitutionRule:
        return self._rule

    def final_host(self, host: str) -> str:
        """Return `host` after the substitution rule has been applied."""
        return self._rule.apply(host)

    def matches(self, request: HostRequest) -> bool:
        """Return True if the request's rewritten host is one of the domains."""
        return self.final_host(request.host) in self._domains

    def __repr__(self) -> str:
        return f"DomainMatcher(domains={sorted(self._domains)!r}, rule={self._rule!r})"
