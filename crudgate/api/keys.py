"""
API key issuance endpoints.

With ``key_issuance = open`` (the default) these bypass both gates and
protecting them is left to the deployer. ``scoped`` puts them behind the
gates with ``key_issuance_scope``.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends
from sqlalchemy.exc import SQLAlchemyError

from ..auth.deps import KeyGates
from ..config import GatewayConfig, KeyIssuance
from ..errors import QueryFailure
from ..keystore import KeyStore
from ..schemas.apikey import GenerateKeyRequest, GenerateKeyResponse

log = logging.getLogger("crudgate")


def build_keys_router(keystore: KeyStore, gates: KeyGates, config: GatewayConfig) -> APIRouter:
    router = APIRouter()

    dependencies = []
    if config.key_issuance == KeyIssuance.SCOPED:
        dependencies.append(Depends(gates.require_scope(config.key_issuance_scope)))

    async def issue(scope: Optional[str]) -> GenerateKeyResponse:
        scope = (scope or "").strip() or config.default_key_scope
        try:
            record = await keystore.create_key(scope)
        except SQLAlchemyError as e:
            log.error("KEYS: issuance failed: %s", e)
            raise QueryFailure("Error generating API key", details=str(getattr(e, "orig", None) or e))
        return GenerateKeyResponse(apiKey=record.api_key, scope=record.scopes)

    @router.get("/generate-api-key", status_code=201, response_model=GenerateKeyResponse,
                dependencies=dependencies)
    async def generate_key_get(scope: Optional[str] = None):
        """Issue a new key; ?scope= defaults to read"""
        return await issue(scope)

    @router.post("/generate-api-key", status_code=201, response_model=GenerateKeyResponse,
                 dependencies=dependencies)
    async def generate_key_post(request: Optional[GenerateKeyRequest] = Body(None)):
        return await issue(request.scope if request else None)

    return router
