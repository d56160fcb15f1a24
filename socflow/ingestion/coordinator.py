"""
Upload coordinator: the fixed set of four upload slots and the readiness gate.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional

from socflow.core.failures import Failure, classify_exception
from socflow.core.fanout import Fanout, SequentialFanout
from socflow.core.types import (
    SOURCE_ORDER,
    UPLOAD_TIMEOUT_SECONDS,
    ErrorKind,
    SelectedFile,
    SourceType,
    UploadStatus,
)
from socflow.ingestion.models import SourceUploadResult, UploadSummary
from socflow.ingestion.slot import UploadSlot
from socflow.sdk.errors import AnalyticsError

logger = logging.getLogger("SocFlow.Upload.Coordinator")


class UploadCoordinator:
    """
    Owns one UploadSlot per SourceType for an ingestion session.

    ``client`` is anything exposing the async ``upload_source`` coroutine of
    ``AsyncAnalyticsClient``.
    """

    def __init__(
        self,
        client: Any,
        *,
        fanout: Optional[Fanout] = None,
        upload_timeout: float = UPLOAD_TIMEOUT_SECONDS,
    ) -> None:
        self._client = client
        self._fanout = fanout or SequentialFanout()
        self._upload_timeout = upload_timeout
        self._slots: Dict[SourceType, UploadSlot] = {
            source_type: UploadSlot(source_type) for source_type in SOURCE_ORDER
        }

    def slot_for(self, source_type: SourceType) -> UploadSlot:
        return self._slots[SourceType(source_type)]

    def select_file(self, source_type: SourceType, file: SelectedFile) -> UploadSlot:
        slot = self.slot_for(source_type)
        slot.select_file(file)
        return slot

    @property
    def all_ready(self) -> bool:
        return all(slot.status == UploadStatus.SUCCEEDED for slot in self._slots.values())

    @property
    def status(self) -> Dict[str, Any]:
        return {
            "all_ready": self.all_ready,
            "slots": [self._slots[source_type].snapshot() for source_type in SOURCE_ORDER],
        }

    def reset(self) -> None:
        for slot in self._slots.values():
            slot.clear()

    async def upload(self, source_type: SourceType) -> UploadSlot:
        """Run one slot's upload sequence until it reaches a terminal state."""
        slot = self.slot_for(source_type)
        if not slot.begin_upload():
            logger.warning("Upload for %s skipped: no file selected", slot.source_type.value)
            return slot

        file = slot.selected_file
        logger.info(
            "Uploading %s file %r (%d bytes)",
            slot.source_type.value,
            file.name,
            file.size,
        )
        try:
            receipt = await asyncio.wait_for(
                self._client.upload_source(
                    slot.source_type,
                    file,
                    timeout=self._upload_timeout,
                    progress=slot.report_progress,
                ),
                timeout=self._upload_timeout,
            )
        except asyncio.CancelledError:
            logger.warning("Upload for %s cancelled", slot.source_type.value)
            slot.fail(Failure(ErrorKind.UNKNOWN, "cancelled"))
            raise
        except asyncio.TimeoutError:
            logger.error(
                "Upload for %s timed out after %.0fs", slot.source_type.value, self._upload_timeout
            )
            slot.fail(Failure(ErrorKind.TIMEOUT))
            return slot
        except AnalyticsError as exc:
            failure = classify_exception(exc)
            logger.error("Upload for %s failed (%s): %s", slot.source_type.value, failure.kind.value, exc)
            slot.fail(failure)
            return slot
        except Exception as exc:
            logger.error("Upload for %s failed unexpectedly: %s", slot.source_type.value, exc)
            slot.fail(classify_exception(exc))
            return slot

        slot.complete(receipt.record_count)
        logger.info(
            "Upload for %s succeeded (%d records)", slot.source_type.value, receipt.record_count
        )
        return slot

    async def trigger_all(self) -> UploadSummary:
        """
        Upload every slot that has a selected file, in the fixed source order.

        A failing slot never aborts the remaining ones and nothing is retried.
        """
        pending = [s for s in SOURCE_ORDER if self._slots[s].selected_file is not None]
        skipped = [s for s in SOURCE_ORDER if self._slots[s].selected_file is None]

        slots = await self._fanout.run(pending, self.upload)

        summary = UploadSummary(
            results=[
                SourceUploadResult(
                    source_type=slot.source_type,
                    status=slot.status,
                    record_count=slot.record_count,
                    error=slot.error,
                )
                for slot in slots
            ],
            skipped=skipped,
        )
        logger.info(
            "Upload sequence finished: %d/%d succeeded, %d records, %d skipped",
            summary.succeeded,
            summary.attempted,
            summary.total_records,
            len(skipped),
        )
        return summary
