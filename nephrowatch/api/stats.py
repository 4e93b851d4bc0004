from datetime import datetime, time, timedelta, timezone

from fastapi import APIRouter, Depends

from nephrowatch.api.deps import get_alert_repo, get_consultation_repo, get_patient_repo
from nephrowatch.config import settings
from nephrowatch.schemas.stats import StatsResponse
from nephrowatch.services.alerts import AlertRepository
from nephrowatch.services.consultations import ConsultationRepository
from nephrowatch.services.patients import PatientRepository
from nephrowatch.utils.cache import CacheKeys, get_cached, set_cached

router = APIRouter(prefix="/stats", tags=["Stats"])


@router.get("/", response_model=StatsResponse)
async def get_stats(
    patients: PatientRepository = Depends(get_patient_repo),
    consultations: ConsultationRepository = Depends(get_consultation_repo),
    alerts: AlertRepository = Depends(get_alert_repo),
):
    """Patient count, consultations recorded today (UTC) and unread alerts."""
    cache_key = CacheKeys.stats()
    cached = await get_cached(cache_key)
    if cached is not None:
        return cached

    start = datetime.combine(datetime.now(timezone.utc).date(), time.min, tzinfo=timezone.utc)
    response = StatsResponse(
        total_patients=await patients.count(),
        today_consultations=await consultations.count_between(start, start + timedelta(days=1)),
        active_alerts=await alerts.count_unread(),
    )
    await set_cached(cache_key, response, ttl_seconds=settings.response_cache_ttl_seconds)
    return response
