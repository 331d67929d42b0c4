from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from slunch.api.deps import get_container, require_admin
from slunch.containers import AppContainer

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


def stat_response(stat) -> dict:
    return {
        "schoolCode": stat.school_code,
        "regionCode": stat.region_code,
        "requestCount": stat.count,
        "lastAccessed": stat.last_accessed.isoformat(),
    }


@router.get("/popular-schools")
def popular_schools(
    limit: int = Query(100, ge=1, le=1000),
    container: AppContainer = Depends(get_container),
):
    """Schools that qualify for precaching, plus the raw access statistics."""
    tracker = container.access_tracker
    popular = tracker.rank(container.settings.precache_popular_limit)
    stats = tracker.stats(limit)
    return {
        "statsBasedSchools": [stat_response(stat) for stat in stats],
        "allPopularSchools": [
            {"schoolCode": stat.school_code, "regionCode": stat.region_code}
            for stat in popular
        ],
        "totalStatsBasedCount": len(stats),
        "totalPopularCount": len(popular),
    }


@router.post("/force-preload")
def force_preload(container: AppContainer = Depends(get_container)):
    report = container.precache.run()
    return {
        "message": "Preload completed",
        **report.summary(),
    }
