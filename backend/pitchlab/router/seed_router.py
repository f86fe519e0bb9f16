# backend/pitchlab/router/seed_router.py
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends

from pitchlab.container import AppContainer
from pitchlab.core.entities import CallerIdentity, JobStatus, SeedMode, SeedProgress
from pitchlab.db.deps import get_container, require_admin
from pitchlab.models.schemas import PreviewRequest, SeedRequest

logger = logging.getLogger("pitchlab.seed")

router = APIRouter(prefix="/seed", tags=["seed"])


def resolve_mode(payload: SeedRequest, has_data: bool) -> Optional[SeedMode]:
    """None means: data exists and the caller has not said what to do with it."""
    if payload.mode is not None:
        return payload.mode
    if payload.append:
        return SeedMode.APPEND
    if has_data and not payload.force:
        return None
    if payload.force:
        return SeedMode.REPLACE
    return SeedMode.APPEND


@router.post("")
async def seed(
    payload: Optional[SeedRequest] = None,
    caller: CallerIdentity = Depends(require_admin),
    container: AppContainer = Depends(get_container),
):
    payload = payload or SeedRequest()
    start, end = payload.start_date, payload.end_date
    windows = container.seed_ingestor.plan(start, end)

    store = container.store
    has_data = await store.has_reference_data()
    mode = resolve_mode(payload, has_data)
    if mode is None:
        return {
            "message": "MLB data already exists. Use force=true to re-seed or append=true to add more data.",
            "exists": True,
            "stats": (await store.reference_stats()).to_dict(),
        }

    job = await container.jobs.start(caller.session_id, f"Fetching data from {start} to {end}...")
    logger.info(
        "▶️ Seed started | caller=%s | range=%s..%s | mode=%s | windows=%d",
        caller.uid, start, end, mode.value, len(windows),
    )

    def on_progress(p: SeedProgress) -> None:
        container.jobs.touch(caller.session_id)
        logger.info(
            "   Progress: window %d/%d (%s..%s) | inserted=%d | skipped=%d",
            p.window_index, p.windows_total, p.window.start, p.window.end, p.inserted, p.skipped,
        )

    result = await container.seed_ingestor.run(start, end, mode, job, on_progress=on_progress)
    stats = await store.reference_stats()

    if result.status is JobStatus.CANCELLED:
        message = "MLB data seeding cancelled"
    elif mode is SeedMode.APPEND:
        message = "MLB data appended successfully"
    else:
        message = "MLB data seeded successfully"

    return {
        "message": message,
        "status": result.status.value,
        "mode": mode.value,
        "result": result.to_dict(),
        "stats": stats.to_dict(),
    }


@router.get("")
async def seed_status(
    _: CallerIdentity = Depends(require_admin),
    container: AppContainer = Depends(get_container),
):
    store = container.store
    if not await store.has_reference_data():
        return {
            "message": "No MLB data loaded. POST to this endpoint to seed data.",
            "exists": False,
            "stats": None,
        }
    return {
        "message": "MLB data is loaded",
        "exists": True,
        "stats": (await store.reference_stats()).to_dict(),
    }


@router.delete("")
async def delete_seed(
    caller: CallerIdentity = Depends(require_admin),
    container: AppContainer = Depends(get_container),
):
    store = container.store
    if not await store.has_reference_data():
        return {"message": "No data to delete.", "deleted": False}

    await store.truncate_reference()
    try:
        await store.refresh_stats_view()
    except Exception as e:
        logger.warning(f"⚠️ Could not refresh stats view after delete: {e}")

    logger.warning("🗑️ Reference data deleted by %s", caller.uid)
    return {"message": "All MLB data has been deleted.", "deleted": True}


@router.post("/preview")
async def preview(
    payload: Optional[PreviewRequest] = None,
    _: CallerIdentity = Depends(require_admin),
    container: AppContainer = Depends(get_container),
):
    payload = payload or PreviewRequest()
    result = await container.preview_estimator.preview(payload.start_date, payload.end_date)
    return {"message": "Preview complete", "preview": result.to_dict()}


# ------------------------------------------------------------
# Caller-session job state
# ------------------------------------------------------------
@router.get("/job")
async def job_status(
    caller: CallerIdentity = Depends(require_admin),
    container: AppContainer = Depends(get_container),
):
    return {"job": container.jobs.current(caller.session_id).to_dict()}


@router.post("/job/cancel")
async def cancel_job(
    caller: CallerIdentity = Depends(require_admin),
    container: AppContainer = Depends(get_container),
):
    job = container.jobs.cancel(caller.session_id)
    logger.info("⏹️ Cancel requested | caller=%s | status=%s", caller.uid, job.status.value)
    return {"job": job.to_dict()}


@router.post("/job/reset")
async def reset_job(
    caller: CallerIdentity = Depends(require_admin),
    container: AppContainer = Depends(get_container),
):
    return {"job": container.jobs.reset(caller.session_id).to_dict()}
