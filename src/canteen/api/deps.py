"""Request dependencies: who is calling."""

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from canteen.errors import Forbidden
from canteen.identity import Caller, get_resolver

bearer_scheme = HTTPBearer(auto_error=False)


def current_caller(credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme)) -> Caller:
    return get_resolver().resolve(credentials.credentials if credentials else None)


def optional_caller(credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme)) -> Caller | None:
    if credentials is None:
        return None
    return get_resolver().resolve(credentials.credentials)


def current_merchant(caller: Caller = Depends(current_caller)) -> Caller:
    if not caller.is_merchant:
        raise Forbidden("Merchant account required")
    return caller


def current_customer(caller: Caller = Depends(current_caller)) -> Caller:
    if not caller.is_customer:
        raise Forbidden("Customer account required")
    return caller
