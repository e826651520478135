"""Cron router - time-based statistics roll-up trigger.

Hit daily by an external scheduler. Rolls up every channel for each period in
STATS_CRON_PERIODS. Per-channel failures are logged and do not fail the run.
"""

import logging
import secrets
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, status
from fastapi.responses import JSONResponse

from config import get_settings
from services.stats_rollup import RollupEngine, get_rollup_engine

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/cron", tags=["cron"])


def verify_cron_secret(
    authorization: Annotated[Optional[str], Header()] = None,
) -> None:
    """Require ``Authorization: Bearer <CRON_SECRET>`` when a secret is configured."""
    cron_secret = get_settings().cron_secret
    if not cron_secret:
        return
    expected = f"Bearer {cron_secret}"
    if not authorization or not secrets.compare_digest(authorization, expected):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid cron secret",
        )


@router.get("/generate-stats", dependencies=[Depends(verify_cron_secret)])
async def generate_stats(
    engine: Annotated[RollupEngine, Depends(get_rollup_engine)],
):
    """Roll up statistics for all channels."""
    settings = get_settings()
    try:
        results = await engine.roll_up_periods(settings.stats_cron_periods)
    except Exception as e:
        logger.exception(f"Error generating stats: {e}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"success": False, "error": "Failed to generate stats"},
        )

    return {
        "success": True,
        "periods": {
            result.period.value: {
                "written": len(result.snapshots),
                "failed": len(result.failures),
            }
            for result in results
        },
    }
