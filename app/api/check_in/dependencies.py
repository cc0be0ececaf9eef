from datetime import timedelta
from functools import lru_cache
from typing import Optional
from zoneinfo import ZoneInfo

from app.api.check_in.scanner import ScanProcessor
from app.core.config import settings
from app.core.sia_register import SIARegisterClient


@lru_cache()
def get_register_client() -> Optional[SIARegisterClient]:
    if not settings.SIA_REGISTER_ENABLED:
        return None
    return SIARegisterClient(
        url=settings.SIA_REGISTER_URL,
        timeout=settings.SIA_REGISTER_TIMEOUT,
    )


@lru_cache()
def get_scan_processor() -> ScanProcessor:
    return ScanProcessor(
        duplicate_window=timedelta(minutes=settings.DUPLICATE_CHECK_WINDOW_MINUTES),
        register_client=get_register_client(),
        pack_steward_names=settings.STEWARD_PACKED_NAMES,
        display_timezone=ZoneInfo(settings.GATE_TIMEZONE),
    )
