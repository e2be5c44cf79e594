from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..permissions.policy import PermissionSet
from ..premium import PremiumFeatures
from ..services import snippets as snippet_service
from .deps import get_permissions, get_premium_features, get_session
from .schemas import SnippetCreateRequest, SnippetResponse, SnippetUpdateRequest

router = APIRouter(prefix="/api/native-query-snippet", tags=["native-query-snippet"])


@router.get("", response_model=List[SnippetResponse])
async def list_snippets(
    archived: bool = False,
    session: AsyncSession = Depends(get_session),
    perms: PermissionSet = Depends(get_permissions),
    features: PremiumFeatures = Depends(get_premium_features),
) -> List[SnippetResponse]:
    snippets = await snippet_service.list_snippets(session, perms, features, archived=archived)
    return [SnippetResponse.model_validate(s) for s in snippets]


@router.get("/{snippet_id}", response_model=SnippetResponse)
async def fetch_snippet(
    snippet_id: int,
    session: AsyncSession = Depends(get_session),
    perms: PermissionSet = Depends(get_permissions),
    features: PremiumFeatures = Depends(get_premium_features),
) -> SnippetResponse:
    snippet = await snippet_service.get_snippet(session, perms, features, snippet_id)
    return SnippetResponse.model_validate(snippet)


@router.post("", response_model=SnippetResponse, status_code=status.HTTP_200_OK)
async def create_snippet(
    req: SnippetCreateRequest,
    session: AsyncSession = Depends(get_session),
    perms: PermissionSet = Depends(get_permissions),
    features: PremiumFeatures = Depends(get_premium_features),
) -> SnippetResponse:
    snippet = await snippet_service.create_snippet(
        session,
        perms,
        features,
        name=req.name,
        content=req.content,
        description=req.description,
        collection_id=req.collection_id,
    )
    return SnippetResponse.model_validate(snippet)


@router.put("/{snippet_id}", response_model=SnippetResponse)
async def update_snippet(
    snippet_id: int,
    req: SnippetUpdateRequest,
    session: AsyncSession = Depends(get_session),
    perms: PermissionSet = Depends(get_permissions),
    features: PremiumFeatures = Depends(get_premium_features),
) -> SnippetResponse:
    # Only keys the client actually sent; an explicit null collection_id moves to the root
    changes = req.model_dump(exclude_unset=True)
    snippet = await snippet_service.update_snippet(session, perms, features, snippet_id, changes)
    return SnippetResponse.model_validate(snippet)
