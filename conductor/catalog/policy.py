"""HTTP handler and access policy metadata."""

from dataclasses import dataclass
from enum import Enum
from typing import Protocol


@dataclass(frozen=True)
class HttpHandler:
    """A request handler. Its identity is its name within the namespace."""

    namespace: str
    name: str
    body: str  # normalized SQL statement run for each request
    policy: str  # name of an AuthorizationPolicy in the same namespace

    def fully_qualified_name(self) -> str:
        return f"{self.namespace}.{self.name}"


class AuthenticationPolicyType(Enum):
    """Supported authentication schemes."""

    ANONYMOUS = "anonymous"


@dataclass(frozen=True)
class AuthenticationPolicy:
    """Authentication policy metadata."""

    namespace: str
    name: str
    type: AuthenticationPolicyType = AuthenticationPolicyType.ANONYMOUS

    def fully_qualified_name(self) -> str:
        return f"{self.namespace}.{self.name}"


@dataclass(frozen=True)
class AuthorizationPolicy:
    """Authorization policy metadata.

    ``permissive_expr`` is a boolean SQL expression kept as normalized text.
    Deciding whether it grants access is left to an AuthorizationEvaluator.
    """

    namespace: str
    name: str
    permissive_expr: str

    def fully_qualified_name(self) -> str:
        return f"{self.namespace}.{self.name}"


class AuthorizationEvaluator(Protocol):
    """Decides the outcome of an authorization policy."""

    def evaluate(self, policy: AuthorizationPolicy) -> bool:
        """Return True when the policy grants access."""
        ...
