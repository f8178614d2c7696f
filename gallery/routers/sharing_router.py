from typing import Optional

from fastapi import APIRouter, Depends

from ..application.ports.shared_gallery_repo import SnapshotDto
from ..application.services.sharing_service import SharingService
from ..exceptions import create_success_response
from ..schemas.sharing.gallery import (
    SharedGalleryCreate, AddImagesRequest, SharedGalleryCreated,
    SharedGallerySummary, SharedGalleryView,
)
from .deps import get_current_user, get_optional_user, get_sharing_service

router = APIRouter(prefix="/shared-galleries", tags=["Sharing"])
public_router = APIRouter(prefix="/share", tags=["Sharing"])


def summary_to_response(snapshot: SnapshotDto, share_url: str) -> dict:
    return SharedGallerySummary(
        share_id=snapshot.id,
        share_url=share_url,
        title=snapshot.title,
        image_count=len(snapshot.images),
        created_at=snapshot.created_at,
        expires_at=snapshot.expires_at,
        access_count=snapshot.access_count,
    ).model_dump(mode="json")


@router.post("/")
def create_shared_gallery(
    request: SharedGalleryCreate,
    current_user: str = Depends(get_current_user),
    sharing_service: SharingService = Depends(get_sharing_service),
):
    created = sharing_service.create(current_user, request.title, request.image_ids, request.expiration_days)
    return create_success_response(SharedGalleryCreated(**created).model_dump())


@router.get("/")
def list_shared_galleries(
    current_user: str = Depends(get_current_user),
    sharing_service: SharingService = Depends(get_sharing_service),
):
    galleries = sharing_service.list(current_user)
    return create_success_response({
        "galleries": [summary_to_response(g, sharing_service.share_url(g.id)) for g in galleries]
    })


@router.post("/{share_id}/images")
def add_images_to_gallery(
    share_id: str,
    request: AddImagesRequest,
    current_user: str = Depends(get_current_user),
    sharing_service: SharingService = Depends(get_sharing_service),
):
    added = sharing_service.add_images(current_user, share_id, request.image_ids)
    return create_success_response({"share_id": share_id, "added_count": added})


@router.delete("/{share_id}")
def delete_shared_gallery(
    share_id: str,
    current_user: str = Depends(get_current_user),
    sharing_service: SharingService = Depends(get_sharing_service),
):
    sharing_service.delete(current_user, share_id)
    return create_success_response({"share_id": share_id})


@public_router.get("/{share_id}")
def view_shared_gallery(
    share_id: str,
    viewer_id: Optional[str] = Depends(get_optional_user),
    sharing_service: SharingService = Depends(get_sharing_service),
):
    view = sharing_service.view(share_id, viewer_id)
    return create_success_response(SharedGalleryView(**view).model_dump(mode="json"))
