"""GeocodePendingJobsUseCase — resolve coordinates for jobs still missing them."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from app.application.ports.geocoder_port import GeocoderPort
from app.application.ports.job_repo import JobRepository
from app.config import settings
from app.domain.value_objects.enums import GeocodingStatus
from app.domain.value_objects.geo_point import is_valid_point

logger = logging.getLogger(__name__)


@dataclass
class GeocodingSummary:
    processed: int = 0
    geocoded: int = 0
    failed: int = 0


class GeocodePendingJobsUseCase:
    def __init__(
        self,
        job_repo: JobRepository,
        geocoder: GeocoderPort,
        max_retries: int | None = None,
    ):
        self._jobs = job_repo
        self._geocoder = geocoder
        self._max_retries = max_retries or settings.geocoding_max_retries

    async def execute(self, limit: int = 10) -> GeocodingSummary:
        summary = GeocodingSummary()
        pending = await self._jobs.get_pending_geocoding(self._max_retries, limit)

        for job in pending:
            summary.processed += 1
            point = await self._geocoder.geocode(job.address or "")

            if is_valid_point(point):
                await self._jobs.update_geocoding(
                    job.id, point, GeocodingStatus.COMPLETE.value, job.geocoding_retries
                )
                summary.geocoded += 1
                continue

            retries = job.geocoding_retries + 1
            await self._jobs.update_geocoding(job.id, None, GeocodingStatus.FAILED.value, retries)
            summary.failed += 1
            if retries >= self._max_retries:
                logger.warning("Job %s: geocoding gave up after %d attempts", job.id, retries)

        if summary.processed:
            logger.info(
                "Geocoding pass: %d processed, %d geocoded, %d failed",
                summary.processed, summary.geocoded, summary.failed,
            )
        return summary
