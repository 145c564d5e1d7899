"""Per-route authentication and tenant policies.

Every path is classified by the first matching rule in ``ROUTE_POLICIES``.
A path no rule matches needs both a token and a tenant.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class RoutePolicy:
    """What a route requires before its handler runs."""

    auth: bool
    tenant: bool


PUBLIC = RoutePolicy(auth=False, tenant=False)
TENANT_ONLY = RoutePolicy(auth=False, tenant=True)
PROTECTED = RoutePolicy(auth=True, tenant=True)


@dataclass(frozen=True)
class PathRule:
    """Exact path, or a prefix when the pattern ends with ``*``."""

    pattern: str
    policy: RoutePolicy

    def matches(self, path: str) -> bool:
        if self.pattern.endswith("*"):
            return path.startswith(self.pattern[:-1])
        return path == self.pattern


ROUTE_POLICIES: tuple[PathRule, ...] = (
    PathRule("/health", PUBLIC),
    PathRule("/health/*", PUBLIC),
    PathRule("/swagger", PUBLIC),
    PathRule("/swagger/*", PUBLIC),
    PathRule("/dev/*", PUBLIC),
    PathRule("/images/*", PUBLIC),
    PathRule("/api/auth/login", TENANT_ONLY),
    PathRule("/api/*", PROTECTED),
)


def policy_for(path: str, rules: tuple[PathRule, ...] = ROUTE_POLICIES) -> RoutePolicy:
    """Return the policy of the first rule matching ``path``."""
    for rule in rules:
        if rule.matches(path):
            return rule.policy
    return PROTECTED
