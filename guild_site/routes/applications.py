"""
Recruitment applications

Anyone may apply; listing, reviewing and commenting are for officers.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ..core.context import get_storage
from ..models.application import (
    ApplicationCreate,
    ApplicationResponse,
    ApplicationStatus,
    ApplicationStatusUpdate,
    CommentCreate,
    CommentResponse,
)
from ..models.user import User
from ..services.storage import GuildStorage
from .auth import require_officer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/applications", tags=["applications"])

STATUS_VALUES = [status.value for status in ApplicationStatus]


def _dump(model) -> dict:
    return model.model_dump(mode="json", by_alias=True)


def _not_found() -> JSONResponse:
    return JSONResponse(status_code=404, content={"message": "Application not found"})


@router.post("", status_code=201)
async def submit_application(body: ApplicationCreate, storage: GuildStorage = Depends(get_storage)):
    application = await storage.create_application(**body.model_dump())
    logger.info(f"New application from {application.character_name} ({application.class_name})")
    return {
        "application": _dump(ApplicationResponse.model_validate(application)),
        "message": "Application submitted successfully",
    }


@router.get("", dependencies=[Depends(require_officer)])
async def list_applications(status: Optional[str] = None, storage: GuildStorage = Depends(get_storage)):
    applications = await storage.get_applications(status)
    return {"applications": [_dump(ApplicationResponse.model_validate(a)) for a in applications]}


@router.get("/{application_id}", dependencies=[Depends(require_officer)])
async def get_application(application_id: int, storage: GuildStorage = Depends(get_storage)):
    application = await storage.get_application(application_id)
    if application is None:
        return _not_found()
    return {"application": _dump(ApplicationResponse.model_validate(application))}


@router.patch("/{application_id}/status")
async def update_application_status(
    application_id: int,
    body: ApplicationStatusUpdate,
    user: User = Depends(require_officer),
    storage: GuildStorage = Depends(get_storage)
):
    """Approve, reject or reopen an application; the reviewer is recorded"""
    if body.status not in STATUS_VALUES:
        return JSONResponse(
            status_code=400,
            content={"message": "Invalid status. Must be 'pending', 'approved', or 'rejected'."},
        )
    application = await storage.get_application(application_id)
    if application is None:
        return _not_found()

    application = await storage.change_application_status(application, body.status, user.id, body.review_notes)
    logger.info(f"{user.battletag} set application {application_id} to {body.status}")
    return {
        "application": _dump(ApplicationResponse.model_validate(application)),
        "message": "Application status updated successfully",
    }


@router.post("/{application_id}/comments", status_code=201)
async def add_comment(
    application_id: int,
    body: CommentCreate,
    user: User = Depends(require_officer),
    storage: GuildStorage = Depends(get_storage)
):
    text = body.comment.strip()
    if not text:
        return JSONResponse(status_code=400, content={"message": "Comment cannot be empty"})
    if await storage.get_application(application_id) is None:
        return _not_found()

    comment = await storage.create_application_comment(
        application_id=application_id, author_id=user.id, comment=text
    )
    return {"comment": _dump(CommentResponse.model_validate(comment)), "message": "Comment added successfully"}


@router.get("/{application_id}/comments", dependencies=[Depends(require_officer)])
async def list_comments(application_id: int, storage: GuildStorage = Depends(get_storage)):
    if await storage.get_application(application_id) is None:
        return _not_found()
    comments = await storage.get_application_comments(application_id)
    return {"comments": [_dump(CommentResponse.model_validate(c)) for c in comments]}
