"""Batch generation service: render every pending record and publish completions."""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass, field

from labcert.assembler import ReportGenerator
from labcert.core.config import BatchConfig
from labcert.exceptions import BatchGenerationError
from labcert.models import Footer
from labcert.storage.protocols import (
    CompletionEvent,
    IAssetStore,
    IEventPublisher,
    IRecordSource,
    IReportStore,
)

log = logging.getLogger(__name__)


@dataclass
class BatchSummary:
    fetched: int = 0
    stored: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


class BatchGenerationService:
    """Fetch pending records, attach branding, render, store and publish."""

    def __init__(
        self,
        generator: ReportGenerator,
        records: IRecordSource,
        assets: IAssetStore,
        reports: IReportStore,
        events: IEventPublisher,
        config: BatchConfig,
    ) -> None:
        self._generator = generator
        self._records = records
        self._assets = assets
        self._reports = reports
        self._events = events
        self._config = config

    def run(self) -> BatchSummary:
        """Process every pending record.

        A report that cannot be stored counts as failed; events are still
        published for the reports stored before and after it.

        Raises ``AssetNotFoundError`` when a logo is missing and
        ``BatchGenerationError`` when records were fetched but none stored.
        """
        summary = BatchSummary()
        pending = self._records.fetch_pending()
        summary.fetched = len(pending)
        if not pending:
            log.info("No records need report generation")
            return summary
        log.info(f"Retrieved {len(pending)} records")

        logo = self._encoded_asset(self._config.logo_container, self._config.logo_file)
        footer = Footer(
            contact_details=self._config.footer_contact_details,
            footer_content=self._config.footer_content,
            logo_base64=self._encoded_asset(self._config.footer_logo_container, self._config.footer_logo_file),
        )

        events: list[CompletionEvent] = []
        for record in pending:
            label_id = record.sample.label_id
            log.info(f"Processing URN: {label_id}")
            outcome = self._generator.generate_report(
                record.model_copy(update={"logo_base64": logo, "footer": footer})
            )
            if not outcome.ok or outcome.pdf is None:
                log.warning(f"Failed to process URN {label_id}: {outcome.status.value}")
                summary.failed.append(label_id)
                continue

            try:
                self._reports.save(f"{label_id}.pdf", outcome.pdf)
            except OSError as exc:
                log.error(f"Failed to store report for URN {label_id}: {exc}")
                summary.failed.append(label_id)
                continue
            summary.stored.append(label_id)
            events.append(CompletionEvent(urn=label_id, completion_process=self._config.process_name))
            log.info(f"URN {label_id} has been processed")

        if not events:
            raise BatchGenerationError("No reports were stored; nothing to complete")

        log.info(f"Publishing {len(events)} completion events")
        self._events.publish(events)
        return summary

    def _encoded_asset(self, container: str, name: str) -> str:
        return base64.b64encode(self._assets.get(container, name)).decode("ascii")
