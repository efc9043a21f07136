# catalog_auth/domain/services/scope_service.py

"""
Pure scope rules.

Two different merges exist for the same client data:

* IssuableScopes: what a token may carry. Only legacy (global) scopes count.
* DisplayScopes: everything a client holds, legacy plus every application
  grant. Used for enumeration, never to mint tokens.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from catalog_auth.domain.models.application_domain_model import ClientApplicationPermission


def _unique(values: Iterable[str]) -> List[str]:
    seen = set()
    result = []
    for value in values:
        if value and value not in seen:
            seen.add(value)
            result.append(value)
    return result


@dataclass(frozen=True)
class IssuableScopes:
    """Outcome of matching requested scopes against legacy scopes."""
    requested: List[str]
    granted: List[str]

    @property
    def denied(self) -> List[str]:
        return [s for s in self.requested if s not in self.granted]

    @property
    def is_rejected(self) -> bool:
        """Scopes were asked for and none of them can be granted."""
        return bool(self.requested) and not self.granted


@dataclass(frozen=True)
class DisplayScopes:
    """Union of legacy scopes and all application component scopes."""
    legacy: List[str]
    by_application: Dict[str, List[str]] = field(default_factory=dict)

    @property
    def all(self) -> List[str]:
        merged = list(self.legacy)
        for scopes in self.by_application.values():
            merged.extend(scopes)
        return _unique(merged)


class ScopeService:
    """
    Domain service holding the scope resolution rules.
    """

    @staticmethod
    def parse_scope_param(scope: Optional[str]) -> List[str]:
        """Split an OAuth2 space-delimited scope string, dropping blanks and repeats."""
        if not scope:
            return []
        return _unique(scope.split())

    @staticmethod
    def issuable(requested: Iterable[str], legacy_scopes: Iterable[str]) -> IssuableScopes:
        """
        Intersect requested scopes with the client's legacy scopes.

        Order follows the request. Partial matches narrow silently; the caller
        decides what an empty intersection means via IssuableScopes.is_rejected.
        """
        requested = _unique(requested)
        allowed = set(legacy_scopes)
        return IssuableScopes(
            requested=requested,
            granted=[s for s in requested if s in allowed],
        )

    @staticmethod
    def display(
            legacy_scopes: Iterable[str],
            permissions: Iterable[ClientApplicationPermission],
    ) -> DisplayScopes:
        by_application: Dict[str, List[str]] = {}
        for permission in permissions:
            by_application[permission.application_id] = _unique(permission.component_scopes)
        return DisplayScopes(legacy=_unique(legacy_scopes), by_application=by_application)
