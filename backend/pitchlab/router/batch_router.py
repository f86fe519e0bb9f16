# backend/pitchlab/router/batch_router.py
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from pitchlab.container import AppContainer
from pitchlab.core.entities import CallerIdentity
from pitchlab.core.services.batch_service import BatchCheckReport, BatchSubmission
from pitchlab.db.deps import get_container, require_user
from pitchlab.models.pitch_model import BatchUploadRequest

logger = logging.getLogger("pitchlab.batch")

router = APIRouter(prefix="/pitches", tags=["pitches"])


@router.post("/batch")
async def batch_upload(
    payload: BatchUploadRequest,
    caller: CallerIdentity = Depends(require_user),
    container: AppContainer = Depends(get_container),
):
    outcome = await container.batch_coordinator.submit(
        caller.uid,
        BatchSubmission(
            pitcher_id=payload.pitcher_id,
            pitches=payload.pitches,
            check_only=payload.check_only,
            skip_duplicates=payload.skip_duplicates,
            force_insert=payload.force_insert,
        ),
    )

    if isinstance(outcome, BatchCheckReport):
        return JSONResponse(status_code=status.HTTP_200_OK, content=outcome.to_dict())
    if outcome.count == 0 and outcome.skipped_duplicates is not None:
        return JSONResponse(status_code=status.HTTP_200_OK, content=outcome.to_dict())
    return JSONResponse(status_code=status.HTTP_201_CREATED, content=outcome.to_dict())
