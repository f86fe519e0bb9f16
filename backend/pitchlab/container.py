from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Optional

from pitchlab.core.ports.admission import IAdmissionStore
from pitchlab.core.ports.session import ISessionStore
from pitchlab.core.ports.source import IPitchSource
from pitchlab.core.ports.store import IPitchStore
from pitchlab.core.services.admission import AdmissionControl, RatePolicy
from pitchlab.core.services.auth_gate import AuthGate
from pitchlab.core.services.batch_service import BatchCommitCoordinator
from pitchlab.core.services.fingerprint_engine import FingerprintEngine
from pitchlab.core.services.job_registry import JobRegistry
from pitchlab.core.services.preview_service import PreviewEstimator
from pitchlab.core.services.seed_service import SeedIngestor
from pitchlab.db.database import Database
from pitchlab.models.admission.inmemory_admission import InMemoryAdmissionStore
from pitchlab.models.session.inmemory_session import InMemorySessionStore
from pitchlab.models.source.savant_source import SavantSource
from pitchlab.models.store.inmemory_store import InMemoryPitchStore
from pitchlab.models.store.pg_store import PgPitchStore

logger = logging.getLogger("pitchlab.container")


@dataclass
class AppContainer:
    store: IPitchStore
    source: IPitchSource
    seed_ingestor: SeedIngestor
    preview_estimator: PreviewEstimator
    batch_coordinator: BatchCommitCoordinator
    admission: AdmissionControl
    auth_gate: AuthGate
    jobs: JobRegistry
    admission_store: IAdmissionStore
    session_store: ISessionStore


def build_policies(settings) -> dict:
    return {
        "heavy": RatePolicy("heavy", settings.rate_limit_heavy_max, settings.rate_limit_heavy_window_sec),
        "batch": RatePolicy("batch", settings.rate_limit_batch_max, settings.rate_limit_batch_window_sec),
    }


def build_container(
    settings,
    db: Optional[Database] = None,
    store: Optional[IPitchStore] = None,
    source: Optional[IPitchSource] = None,
) -> AppContainer:
    """
    Wire stores, source and services. ``store`` / ``source`` overrides let a
    caller (tests, scripts) swap adapters without touching settings.
    """
    if store is None:
        if settings.store_backend == "memory":
            store = InMemoryPitchStore()
            logger.info("🔌 Using in-memory pitch store")
        else:
            if db is None:
                raise RuntimeError("Postgres store requested but no database was provided")
            store = PgPitchStore(db)
            logger.info("🔌 Using Postgres pitch store")

    if source is None:
        source = SavantSource(
            base_url=settings.savant_base_url,
            timeout=settings.source_timeout_sec,
            min_interval=settings.source_min_interval_sec,
        )
        logger.info(f"🔌 Using Baseball Savant source: {settings.savant_base_url}")

    admission_store = InMemoryAdmissionStore()
    session_store = InMemorySessionStore(ttl_sec=settings.session_ttl_sec)
    engine = FingerprintEngine(store)

    container = AppContainer(
        store=store,
        source=source,
        seed_ingestor=SeedIngestor(
            source=source,
            store=store,
            max_window_days=settings.max_window_days,
            insert_batch_size=settings.seed_insert_batch_size,
        ),
        preview_estimator=PreviewEstimator(
            source=source,
            max_window_days=settings.max_window_days,
            sample_chunks=settings.preview_sample_chunks,
        ),
        batch_coordinator=BatchCommitCoordinator(
            store=store,
            engine=engine,
            chunk_size=settings.batch_chunk_size,
            max_rows=settings.batch_max_rows,
            detail_limit=settings.validation_detail_limit,
        ),
        admission=AdmissionControl(admission_store, build_policies(settings)),
        auth_gate=AuthGate(settings.jwt_secret, settings.jwt_algorithm),
        jobs=JobRegistry(session_store, takeover_timeout_sec=settings.job_takeover_timeout_sec),
        admission_store=admission_store,
        session_store=session_store,
    )
    logger.info("✅ Container built successfully")
    return container
