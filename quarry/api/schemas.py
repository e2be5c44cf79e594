from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SnippetCreateRequest(BaseModel):
    # Clients often POST a copy of an existing snippet; unknown keys are ignored
    model_config = ConfigDict(extra="ignore")

    name: str = Field(..., min_length=1, max_length=254)
    content: str
    description: Optional[str] = None
    collection_id: Optional[int] = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        if v[0].isspace():
            raise ValueError('Snippet name cannot start with whitespace')
        if '}' in v:
            raise ValueError("Snippet name cannot contain '}'")
        return v


class SnippetUpdateRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: Optional[str] = Field(None, min_length=1, max_length=254)
    content: Optional[str] = None
    description: Optional[str] = None
    archived: Optional[bool] = None
    collection_id: Optional[int] = None


class SnippetResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    entity_id: str
    name: str
    description: Optional[str] = None
    content: str
    creator_id: int
    archived: bool
    collection_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime


class CollectionCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=254)
    description: Optional[str] = None
    namespace: Optional[str] = None
    parent_id: Optional[int] = None


class CollectionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    entity_id: str
    name: str
    description: Optional[str] = None
    namespace: Optional[str] = None
    location: str
    archived: bool


class CollectionItemsResponse(BaseModel):
    total: int
    data: List[Dict[str, Any]]
    models: List[str]


class HealthResponse(BaseModel):
    status: str
    timestamp: datetime
    version: str
