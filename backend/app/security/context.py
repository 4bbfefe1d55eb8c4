"""
Request context resolution.

Every handler works on behalf of a tenant (account) and a user. Until real
authentication exists the values come from settings; swap the resolver on
`app.state.context_resolver` to change that without touching the routes.
"""
from dataclasses import dataclass
from typing import Protocol

from fastapi import Request

from app.config import settings


@dataclass(frozen=True)
class RequestContext:
    account_id: int
    user_id: int


class ContextResolver(Protocol):
    def resolve(self, request: Request) -> RequestContext: ...


class StaticContextResolver:
    def __init__(self, account_id: int = None, user_id: int = None):
        self.account_id = account_id if account_id is not None else settings.DEFAULT_ACCOUNT_ID
        self.user_id = user_id if user_id is not None else settings.DEFAULT_USER_ID

    def resolve(self, request: Request) -> RequestContext:
        return RequestContext(account_id=self.account_id, user_id=self.user_id)


def get_request_context(request: Request) -> RequestContext:
    resolver = getattr(request.app.state, "context_resolver", None) or StaticContextResolver()
    return resolver.resolve(request)
