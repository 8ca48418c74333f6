import logging

from fastapi import Depends, Request
from sqlalchemy.exc import SQLAlchemyError

from ..config import API_KEY_HEADER
from ..errors import AuthInvalid, AuthMissing, AuthzInsufficientScope, QueryFailure
from ..keystore import KeyStore, key_prefix
from ..schemas.apikey import ApiKeyRecord
from .scopes import has_scope

log = logging.getLogger("crudgate")


class KeyGates:
    """
    Auth Gate and Scope Gate bound to one key store.

    ``authenticate`` is a per-request FastAPI dependency; every scope
    dependency depends on it, so FastAPI's dependency cache gives exactly
    one key lookup per request whatever the number of scope checks.
    """

    def __init__(self, keystore: KeyStore):
        self.keystore = keystore

    async def authenticate(self, request: Request) -> ApiKeyRecord:
        token = (request.headers.get(API_KEY_HEADER) or "").strip()
        if not token:
            raise AuthMissing()

        try:
            record = await self.keystore.find_active_key(token)
        except SQLAlchemyError as e:
            log.error("AUTH: key store lookup failed: %s", e)
            raise QueryFailure("API key validation failed", details=str(e))

        if record is None:
            log.warning("AUTH: key=%s not found or inactive", key_prefix(token))
            raise AuthInvalid()

        request.state.api_key = record
        request.state.scopes = record.scope_set
        log.info("AUTH: key=%s matched, scopes=%s", key_prefix(token), sorted(record.scope_set))
        return record

    def require_scope(self, *required: str):
        """Dependency requiring every scope in ``required`` ("any" always passes)."""

        async def dep(record: ApiKeyRecord = Depends(self.authenticate)) -> ApiKeyRecord:
            granted = record.scope_set
            missing = [s for s in required if not has_scope(granted, s)]
            if missing:
                log.warning("AUTH: scope denied, need=%s token=%s", missing, sorted(granted))
                raise AuthzInsufficientScope(details={"required": missing})
            return record

        return dep
