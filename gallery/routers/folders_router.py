from fastapi import APIRouter, Depends

from ..application.ports.folder_repo import FolderDto
from ..application.services.folder_service import FolderService
from ..exceptions import create_success_response
from ..schemas.folders.folder import FolderCreate, FolderResponse
from .deps import get_current_user, get_folder_service

router = APIRouter(prefix="/folders", tags=["Folders"])


def folder_to_response(folder: FolderDto) -> dict:
    return FolderResponse(
        id=folder.id,
        name=folder.name,
        created_at=folder.created_at,
        updated_at=folder.updated_at,
    ).model_dump(mode="json")


@router.get("/")
def list_folders(
    current_user: str = Depends(get_current_user),
    folder_service: FolderService = Depends(get_folder_service),
):
    return create_success_response({"folders": [folder_to_response(f) for f in folder_service.list(current_user)]})


@router.post("/")
def create_folder(
    request: FolderCreate,
    current_user: str = Depends(get_current_user),
    folder_service: FolderService = Depends(get_folder_service),
):
    folder = folder_service.create(current_user, request.name)
    return create_success_response({"folder": folder_to_response(folder)})


@router.delete("/{folder_id}")
def delete_folder(
    folder_id: str,
    current_user: str = Depends(get_current_user),
    folder_service: FolderService = Depends(get_folder_service),
):
    folder_service.delete(current_user, folder_id)
    return create_success_response({"id": folder_id})
