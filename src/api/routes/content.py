"""Content catalog routes.

Catalog browsing, the caller's library, admin catalog management and the
download endpoint. Downloads go through the access gateway only.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from fastapi.responses import FileResponse
from pydantic import ValidationError as PydanticValidationError

from api.routes.auth import get_bearer_token, get_current_user, require_admin
from config import MAX_UPLOAD_SIZE
from core.dependencies import (
    AccessGatewayDep,
    ArtifactStoreDep,
    ContentManagerDep,
    EntitlementEngineDep,
)
from core.exceptions import (
    AccessDeniedError,
    ArtifactNotFoundError,
    ContentNotFoundError,
    NoArtifactError,
    UnauthenticatedError,
    UserNotFoundError,
)
from schemas.content import (
    ContentDetail,
    ContentItem,
    ContentSummary,
    CreateContentRequest,
    GrantContentRequest,
    PurchasedContent,
    UpdateContentRequest,
)
from schemas.user import User
from utils.content_manager import detect_content_type

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/content", tags=["Content"])


def _content_not_found(content_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Content '{content_id}' not found.",
    )


async def _read_upload(file: UploadFile) -> bytes:
    data = await file.read()
    if not data:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Uploaded file is empty.",
        )
    if len(data) > MAX_UPLOAD_SIZE:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File exceeds maximum allowed size of {MAX_UPLOAD_SIZE // (1024 * 1024)}MB",
        )
    return data


@router.get("", response_model=List[ContentSummary], summary="List catalog")
def list_content(content_manager: ContentManagerDep) -> List[ContentSummary]:
    return [ContentSummary.from_item(item) for item in content_manager.list_content()]


@router.get(
    "/purchased",
    response_model=List[PurchasedContent],
    summary="List the caller's library",
)
def list_purchased_content(
    entitlement_engine: EntitlementEngineDep,
    current_user: User = Depends(get_current_user),
) -> List[PurchasedContent]:
    items = entitlement_engine.get_library_content(current_user)
    return [PurchasedContent.from_item(item) for item in items]


@router.get("/{content_id}", response_model=ContentDetail, summary="Get content")
def get_content(content_id: str, content_manager: ContentManagerDep) -> ContentDetail:
    item = content_manager.get_content_by_id(content_id)
    if item is None:
        raise _content_not_found(content_id)
    return ContentDetail.from_item(item)


@router.post(
    "",
    response_model=ContentItem,
    status_code=status.HTTP_201_CREATED,
    summary="Create content",
)
def create_content(
    req: CreateContentRequest,
    entitlement_engine: EntitlementEngineDep,
    current_user: User = Depends(require_admin),
) -> ContentItem:
    """Create a catalog item without a file. Admin only.

    Free items land in every library straight away.
    """
    item = entitlement_engine.create_content(req.model_dump())
    logger.info("Admin %s created content %s", current_user.user_id, item.content_id)
    return item


@router.post(
    "/upload",
    response_model=ContentItem,
    status_code=status.HTTP_201_CREATED,
    summary="Create content with a file",
)
async def upload_content(
    file: UploadFile = File(..., description="Content file"),
    title: str = Form(...),
    description: str = Form(...),
    subject: str = Form(...),
    price: float = Form(...),
    lessons: int = Form(...),
    preview_url: Optional[str] = Form(default=None),
    entitlement_engine: EntitlementEngineDep = None,
    artifact_store: ArtifactStoreDep = None,
    current_user: User = Depends(require_admin),
) -> ContentItem:
    """Create a catalog item together with its file. Admin only."""
    try:
        req = CreateContentRequest(
            title=title,
            description=description,
            subject=subject,
            price=price,
            lessons=lessons,
            preview_url=preview_url,
            type=detect_content_type(file.content_type),
        )
    except PydanticValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )

    data = await _read_upload(file)
    artifact = artifact_store.save(data, file.filename, file.content_type)

    fields = req.model_dump()
    fields.update(
        file_id=artifact.file_id,
        file_name=artifact.file_name,
        file_type=artifact.content_type,
        file_size=artifact.size,
    )
    item = entitlement_engine.create_content(fields)
    logger.info(
        "Admin %s uploaded content %s (%d bytes)",
        current_user.user_id,
        item.content_id,
        artifact.size,
    )
    return item


@router.put("/{content_id}", response_model=ContentItem, summary="Update content")
def update_content(
    content_id: str,
    req: UpdateContentRequest,
    content_manager: ContentManagerDep,
    current_user: User = Depends(require_admin),
) -> ContentItem:
    try:
        return content_manager.update_content(
            content_id, req.model_dump(exclude_none=True)
        )
    except ContentNotFoundError:
        raise _content_not_found(content_id)


@router.put(
    "/{content_id}/file",
    response_model=ContentItem,
    summary="Attach or replace a content file",
)
async def replace_content_file(
    content_id: str,
    file: UploadFile = File(..., description="Content file"),
    content_manager: ContentManagerDep = None,
    artifact_store: ArtifactStoreDep = None,
    current_user: User = Depends(require_admin),
) -> ContentItem:
    existing = content_manager.get_content_by_id(content_id)
    if existing is None:
        raise _content_not_found(content_id)

    data = await _read_upload(file)
    artifact = artifact_store.save(data, file.filename, file.content_type)
    try:
        item = content_manager.attach_artifact(
            content_id,
            file_id=artifact.file_id,
            file_name=artifact.file_name,
            file_type=artifact.content_type,
            file_size=artifact.size,
        )
    except ContentNotFoundError:
        # Deleted while the upload was in flight.
        artifact_store.delete(artifact.file_id)
        raise _content_not_found(content_id)

    if existing.file_id:
        artifact_store.delete(existing.file_id)
    return item


@router.delete("/{content_id}", summary="Delete content")
def delete_content(
    content_id: str,
    entitlement_engine: EntitlementEngineDep,
    artifact_store: ArtifactStoreDep,
    current_user: User = Depends(require_admin),
) -> dict:
    """Delete a catalog item, its library entries and its file. Admin only."""
    try:
        item = entitlement_engine.delete_content(content_id)
    except ContentNotFoundError:
        raise _content_not_found(content_id)

    if item.file_id:
        artifact_store.delete(item.file_id)
    return {"success": True}


@router.post("/{content_id}/grants", summary="Grant content to a user")
def grant_content(
    content_id: str,
    req: GrantContentRequest,
    entitlement_engine: EntitlementEngineDep,
    current_user: User = Depends(require_admin),
) -> dict:
    """Record direct ownership of an item for one user. Admin only."""
    try:
        added = entitlement_engine.grant_content(req.user_id, content_id)
    except UserNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"User '{req.user_id}' not found.",
        )
    except ContentNotFoundError:
        raise _content_not_found(content_id)
    return {"success": True, "added": added}


@router.get("/{content_id}/file", summary="Download content file")
def download_content_file(
    content_id: str,
    access_gateway: AccessGatewayDep,
    artifact_store: ArtifactStoreDep,
    token: Optional[str] = Depends(get_bearer_token),
) -> FileResponse:
    """Stream a content file to an entitled caller."""
    try:
        ref = access_gateway.authorize_download(token, content_id)
        path = artifact_store.path_for(ref.file_id)
    except UnauthenticatedError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )
    except ContentNotFoundError:
        raise _content_not_found(content_id)
    except AccessDeniedError:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not have access to this content.",
        )
    except NoArtifactError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No file has been uploaded for this content.",
        )
    except ArtifactNotFoundError:
        logger.error("File for content %s is missing from storage", content_id)
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Content file is missing.",
        )

    return FileResponse(
        path,
        media_type=ref.file_type or "application/octet-stream",
        filename=ref.file_name or content_id,
    )
