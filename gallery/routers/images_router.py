import logging

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import Response

from ..application.ports.image_repo import ImageDto, ImagePatch
from ..application.services.image_service import ImageService
from ..exceptions import create_success_response
from ..media_utils import to_data_uri, parse_data_uri
from ..schemas.images.image import (
    ImageResponse, DataUriUploadRequest, EditedCopyRequest,
    BulkDeleteRequest, BulkDeleteResponse, DeleteImageResponse,
)
from .deps import get_current_user, get_image_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/images", tags=["Images"])


def image_to_response(image: ImageDto) -> dict:
    return ImageResponse(
        id=image.id,
        name=image.name,
        mime_type=image.mime_type,
        size=image.size,
        width=image.width,
        height=image.height,
        metadata=image.metadata,
        tags=image.tags,
        folder_id=image.folder_id,
        is_defective=image.is_defective,
        defect_type=image.defect_type,
        data_uri=to_data_uri(image.data, image.mime_type) if image.has_content else None,
        created_at=image.created_at,
        updated_at=image.updated_at,
    ).model_dump(mode="json")


@router.get("/")
def list_images(
    current_user: str = Depends(get_current_user),
    image_service: ImageService = Depends(get_image_service),
):
    images = image_service.list(current_user)
    return create_success_response({"images": [image_to_response(i) for i in images]})


@router.post("/upload")
async def upload_image(
    file: UploadFile = File(...),
    current_user: str = Depends(get_current_user),
    image_service: ImageService = Depends(get_image_service),
):
    data = await file.read()
    logger.info(f"Upload from user {current_user}: {file.filename} ({len(data)} bytes)")
    image = await image_service.upload(current_user, data, file.filename, file.content_type)
    return create_success_response({"image": image_to_response(image)})


@router.post("/upload-data-uri")
async def upload_data_uri(
    request: DataUriUploadRequest,
    current_user: str = Depends(get_current_user),
    image_service: ImageService = Depends(get_image_service),
):
    image = await image_service.upload_data_uri(current_user, request.data_uri, request.filename)
    return create_success_response({"image": image_to_response(image)})


@router.post("/bulk-delete")
def bulk_delete(
    request: BulkDeleteRequest,
    current_user: str = Depends(get_current_user),
    image_service: ImageService = Depends(get_image_service),
):
    result = image_service.bulk_delete(current_user, request.image_ids)
    return create_success_response(
        BulkDeleteResponse(success_count=result.success_count, failed_count=result.failed_count).model_dump()
    )


@router.get("/{image_id}")
def get_image(
    image_id: str,
    current_user: str = Depends(get_current_user),
    image_service: ImageService = Depends(get_image_service),
):
    image = image_service.get(current_user, image_id, with_content=True)
    return create_success_response({"image": image_to_response(image)})


@router.get("/{image_id}/content")
def get_image_content(
    image_id: str,
    current_user: str = Depends(get_current_user),
    image_service: ImageService = Depends(get_image_service),
):
    data, mime_type = image_service.get_content(current_user, image_id)
    return Response(
        content=data,
        media_type=mime_type,
        headers={"Cache-Control": "private, max-age=3600"},
    )


@router.patch("/{image_id}")
def update_image(
    image_id: str,
    patch: ImagePatch,
    current_user: str = Depends(get_current_user),
    image_service: ImageService = Depends(get_image_service),
):
    image = image_service.update(current_user, image_id, patch)
    return create_success_response({"image": image_to_response(image)})


@router.delete("/{image_id}")
def delete_image(
    image_id: str,
    current_user: str = Depends(get_current_user),
    image_service: ImageService = Depends(get_image_service),
):
    action = image_service.delete(current_user, image_id)
    return create_success_response(DeleteImageResponse(id=image_id, action=action).model_dump())


@router.delete("/{image_id}/permanent")
def permanently_delete_image(
    image_id: str,
    current_user: str = Depends(get_current_user),
    image_service: ImageService = Depends(get_image_service),
):
    image_service.permanently_delete(current_user, image_id)
    return create_success_response(DeleteImageResponse(id=image_id, action="deleted").model_dump())


@router.post("/{image_id}/bin")
def move_image_to_bin(
    image_id: str,
    current_user: str = Depends(get_current_user),
    image_service: ImageService = Depends(get_image_service),
):
    image_service.move_to_bin(current_user, image_id)
    return create_success_response(DeleteImageResponse(id=image_id, action="binned").model_dump())


@router.post("/{image_id}/restore")
def restore_image(
    image_id: str,
    current_user: str = Depends(get_current_user),
    image_service: ImageService = Depends(get_image_service),
):
    image_service.restore(current_user, image_id)
    image = image_service.get(current_user, image_id, with_content=True)
    return create_success_response({"image": image_to_response(image)})


@router.post("/{image_id}/edited-copy")
def save_edited_copy(
    image_id: str,
    request: EditedCopyRequest,
    current_user: str = Depends(get_current_user),
    image_service: ImageService = Depends(get_image_service),
):
    data, mime_type = parse_data_uri(request.data_uri)
    image = image_service.save_edited_copy(current_user, image_id, data, mime_type)
    return create_success_response({"image": image_to_response(image)})
