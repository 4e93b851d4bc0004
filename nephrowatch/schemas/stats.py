from pydantic import BaseModel


class StatsResponse(BaseModel):
    """Headline counters for the clinician dashboard."""

    total_patients: int
    today_consultations: int
    active_alerts: int
