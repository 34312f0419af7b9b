"""
Route security rules loaded from `config/security_config.yaml`.

A request is matched against the rules in two passes: rules whose path is
exactly the request path, then rules whose `{param}` template matches it.
The first rule listing the request method wins; no match means the default.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, PrivateAttr

_PARAM = re.compile(r"\{[^/]+\}")


@dataclass(frozen=True)
class EffectiveRule:
    auth_required: bool
    required_roles: frozenset[str]
    scope_notifications: bool


class AuthConfig(BaseModel):
    provider: str = "jwt"
    authorization_header: str = "Authorization"
    bearer_prefix: str = "Bearer"


class DefaultRule(BaseModel):
    auth_required: bool = True
    required_roles: list[str] = Field(default_factory=list)
    scope_notifications: bool = False

    def effective(self) -> EffectiveRule:
        return EffectiveRule(
            auth_required=self.auth_required,
            required_roles=frozenset(self.required_roles),
            scope_notifications=self.scope_notifications,
        )


class RouteRule(BaseModel):
    path: str
    methods: list[str] = Field(default_factory=lambda: ["GET"])

    auth_required: bool | None = None
    required_roles: list[str] = Field(default_factory=list)
    scope_notifications: bool | None = None

    _pattern: re.Pattern[str] = PrivateAttr()

    def model_post_init(self, context: Any) -> None:
        # "/reports/{id}" matches "/reports/12" but not "/reports/12/approve".
        self._pattern = re.compile("^" + _PARAM.sub("[^/]+", self.path) + "$")

    def allows_method(self, method: str) -> bool:
        return method in {m.upper() for m in self.methods}

    def matches_template(self, path: str) -> bool:
        return self._pattern.match(path) is not None

    def resolve(self, default: DefaultRule) -> EffectiveRule:
        """Fill unset fields from the default rule."""
        scope = default.scope_notifications if self.scope_notifications is None else self.scope_notifications
        if self.auth_required is not None:
            auth_required = self.auth_required
        else:
            # Roles and notification scoping only make sense for a known caller.
            auth_required = default.auth_required or bool(self.required_roles) or scope

        return EffectiveRule(
            auth_required=auth_required,
            required_roles=frozenset(self.required_roles or default.required_roles),
            scope_notifications=scope,
        )


class SecurityConfigModel(BaseModel):
    auth: AuthConfig = Field(default_factory=AuthConfig)
    default: DefaultRule = Field(default_factory=DefaultRule)
    routes: list[RouteRule] = Field(default_factory=list)


class SecurityConfig:
    def __init__(self, model: SecurityConfigModel):
        self.model = model

    @property
    def auth(self) -> AuthConfig:
        return self.model.auth

    def match(self, path: str, method: str) -> EffectiveRule:
        method = method.upper()
        candidates = [r for r in self.model.routes if r.allows_method(method)]

        rule = next((r for r in candidates if r.path == path), None)
        if rule is None:
            rule = next((r for r in candidates if r.matches_template(path)), None)
        if rule is None:
            return self.model.default.effective()
        return rule.resolve(self.model.default)


def load_security_config(path: Path) -> SecurityConfig:
    raw: dict[str, Any] = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if "security" not in raw:
        raise ValueError(f"Missing top-level 'security' key in config: {path}")
    return SecurityConfig(SecurityConfigModel.model_validate(raw["security"]))
