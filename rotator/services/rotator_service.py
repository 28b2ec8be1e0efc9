import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from rotator.services.discovery.file_discovery_service import FileDiscoveryService
from rotator.services.metrics import MetricsSink, NullMetrics
from rotator.services.policy.policy_resolver import PolicyResolver
from rotator.services.rotation.rotation_engine import RotationEngine


@dataclass
class ScanCycleReport:
    started_at: datetime
    files_found: int = 0
    rotated: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    duration_seconds: float = 0.0


class RotatorService:
    """Runs discovery and rotation on a fixed interval."""

    def __init__(
        self,
        discovery_service: FileDiscoveryService,
        policy_resolver: PolicyResolver,
        rotation_engine: RotationEngine,
        scan_interval_seconds: float = 30,
        metrics: Optional[MetricsSink] = None,
    ):
        self.discovery_service = discovery_service
        self.policy_resolver = policy_resolver
        self.rotation_engine = rotation_engine
        self.scan_interval_seconds = scan_interval_seconds
        self._metrics = metrics or NullMetrics()
        self._running = False
        self._scan_task: Optional[asyncio.Task] = None
        self.last_report: Optional[ScanCycleReport] = None

        logging.info("RotatorService initialized")
        logging.info(f"Monitoring: {discovery_service.root}")
        logging.info(f"Scan interval: {scan_interval_seconds}s")

    @property
    def is_running(self) -> bool:
        return self._running

    async def run_scan_cycle(self) -> ScanCycleReport:
        report = ScanCycleReport(started_at=datetime.now())
        self._metrics.record_scan_cycle()

        files = await self.discovery_service.discover_all_files()
        report.files_found = len(files)
        self._metrics.set_files_discovered(len(files))
        logging.info(f"Scan cycle: {len(files)} files found")

        for discovered_file in files:
            try:
                policy = self.policy_resolver.effective_policy(
                    discovered_file.namespace, discovered_file.path
                )
                logging.debug(
                    f"Processing {discovered_file.path} "
                    f"(namespace={discovered_file.namespace}, size={discovered_file.size_bytes}, "
                    f"threshold={policy.size_threshold})"
                )
                result = await self.rotation_engine.process_file(discovered_file, policy)
                if result is not None:
                    report.rotated.append(discovered_file.path)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self._metrics.count_error("process_file")
                report.failed.append(discovered_file.path)
                logging.warning(f"Processing failed for {discovered_file.path}: {e}")

        report.duration_seconds = (datetime.now() - report.started_at).total_seconds()
        self.last_report = report
        logging.debug(
            f"Scan cycle completed in {report.duration_seconds:.2f}s: "
            f"{len(report.rotated)} rotated, {len(report.failed)} failed"
        )
        return report

    async def start_scanning(self) -> None:
        if self._running:
            logging.warning("Rotator is already running")
            return

        self._running = True
        self._scan_task = asyncio.create_task(self._scan_loop())
        logging.info("Rotator scan loop started in background")

    async def stop_scanning(self) -> None:
        if not self._running:
            logging.warning("Rotator is not running")
            return

        self._running = False
        logging.info("Rotator stop requested")

        if self._scan_task and not self._scan_task.done():
            self._scan_task.cancel()
            try:
                await self._scan_task
            except asyncio.CancelledError:
                logging.debug("Scan task cancelled successfully")
            except Exception as e:
                logging.error(f"Error during scan task cancellation: {e}")

        self._scan_task = None
        logging.info("Rotator stopped")

    async def _scan_loop(self) -> None:
        try:
            while self._running:
                try:
                    await self.run_scan_cycle()
                except asyncio.CancelledError:
                    raise
                except Exception as e:
                    self._metrics.count_error("scan_cycle")
                    logging.error(f"Error in scan cycle: {e}")
                await asyncio.sleep(self.scan_interval_seconds)
        except asyncio.CancelledError:
            logging.info("Scan loop cancelled")
            raise
        finally:
            self._running = False
            logging.info("Scan loop completed")
