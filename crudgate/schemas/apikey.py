from pydantic import BaseModel, ConfigDict, Field
from typing import FrozenSet, Optional

from ..auth.scopes import parse_scopes


class ApiKeyRecord(BaseModel):
    id: Optional[int] = None
    api_key: str
    scopes: str
    active: bool = True

    @property
    def scope_set(self) -> FrozenSet[str]:
        return parse_scopes(self.scopes)


class GenerateKeyRequest(BaseModel):
    scope: Optional[str] = None


class GenerateKeyResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    api_key: str = Field(..., alias="apiKey")
    scope: str
