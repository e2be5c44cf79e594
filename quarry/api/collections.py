from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..permissions.policy import PermissionSet, check_collection_write
from ..premium import PremiumFeatures
from ..services import collections as collection_service
from .deps import get_permissions, get_premium_features, get_session
from .schemas import CollectionCreateRequest, CollectionItemsResponse, CollectionResponse

router = APIRouter(prefix="/api/collection", tags=["collection"])


@router.get("/{collection_id}/items", response_model=CollectionItemsResponse)
async def collection_items(
    collection_id: str,
    namespace: Optional[str] = None,
    archived: bool = False,
    model: Optional[List[str]] = Query(default=None),
    session: AsyncSession = Depends(get_session),
    perms: PermissionSet = Depends(get_permissions),
    features: PremiumFeatures = Depends(get_premium_features),
) -> CollectionItemsResponse:
    """
    Items in a collection; `root` addresses the Root Collection of `namespace`.
    """
    items = await collection_service.list_collection_items(
        session,
        perms,
        features,
        collection_service.parse_collection_id(collection_id),
        namespace=namespace,
        archived=archived,
        models=model,
    )
    return CollectionItemsResponse(**items)


@router.post("", response_model=CollectionResponse)
async def create_collection(
    req: CollectionCreateRequest,
    session: AsyncSession = Depends(get_session),
    perms: PermissionSet = Depends(get_permissions),
    features: PremiumFeatures = Depends(get_premium_features),
) -> CollectionResponse:
    parent = await collection_service.get_collection(session, req.parent_id, req.namespace)
    check_collection_write(perms, parent.id, parent.namespace, features).raise_if_denied()

    collection = await collection_service.create_collection(
        session,
        name=req.name,
        namespace=req.namespace,
        parent=parent,
        description=req.description,
    )
    await session.commit()
    return CollectionResponse.model_validate(collection)
