"""
Puzzlescribe Orchestrator: converts a batch of saved puzzle pages.

Every page is an independent job. A failing page is reported and recorded in
the manifest while the remaining pages carry on.
"""

from __future__ import annotations

import os
import time
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, List, Dict
from concurrent.futures import ThreadPoolExecutor, as_completed
import threading

from .logger import ErrorTracker
from .markup_converter import MarkupConverter
from utils.file_manager import FileManager
from utils.manifest import Manifest, ManifestRecord
from utils.validators import validate_source_url


@dataclass
class PageJob:
    html_path: str
    source_url: str
    output_path: Optional[str] = None


@dataclass
class RunConfig:
    jobs: List[PageJob] = field(default_factory=list)
    output_dir: str = "output"
    concurrency: int = 1
    overwrite: bool = True
    resume: bool = False  # skip pages whose latest manifest status is completed


class ConversionController:
    def __init__(self, config: RunConfig, logger: Optional[logging.Logger] = None):
        self.config = config
        self.logger = logger or logging.getLogger(__name__)
        self.converter = MarkupConverter()
        self.files = FileManager(config.output_dir)
        self.manifest = Manifest(config.output_dir)
        self.errors = ErrorTracker(self.logger)
        self.results: List[Dict[str, Any]] = []
        self._stop_event = threading.Event()
        self._lock = threading.Lock()

    def stop(self):
        self._stop_event.set()

    def run(self, progress: Optional[Callable[[object], None]] = None) -> Dict[str, int]:
        """Convert every job and return the outcome counters."""
        jobs = self.config.jobs
        stats = {"total": len(jobs), "converted": 0, "skipped": 0, "failed": 0, "cancelled": 0}
        outcomes: List[Optional[Dict[str, Any]]] = [None] * len(jobs)

        self.logger.info(f"Converting {len(jobs)} page(s) into {self.config.output_dir}")

        # Resume support
        completed = self.manifest.get_completed_set() if self.config.resume else set()

        def record(idx: int, job: PageJob, status: str, started: float, source_url: str,
                   output_path: Optional[str] = None, title: Optional[str] = None,
                   error: Optional[str] = None) -> str:
            outcome = {
                'html_path': job.html_path,
                'source_url': source_url,
                'title': title,
                'output_path': output_path,
                'status': status,
                'error': error,
            }
            with self._lock:
                outcomes[idx] = outcome
                if status != 'cancelled':
                    self.manifest.append(ManifestRecord(html_path=job.html_path, source_url=source_url,
                                                        status=status, title=title, output_path=output_path,
                                                        started_at=started, finished_at=time.time(),
                                                        error=error))
            if progress:
                progress({"type": "page", "index": idx + 1, "stage": status, "path": job.html_path})
            return status

        def fail(idx: int, job: PageJob, started: float, source_url: str, exc: Exception,
                 output_path: Optional[str] = None) -> str:
            with self._lock:
                self.errors.log_error(exc, context=f"converting {job.html_path}", url=source_url)
            return record(idx, job, 'failed', started, source_url, output_path=output_path,
                          error=f"{type(exc).__name__}: {exc}")

        def process_one(idx: int, job: PageJob) -> str:
            started = time.time()
            if self._stop_event.is_set():
                return record(idx, job, 'cancelled', started, job.source_url)

            source_url = job.source_url
            ok, reason = validate_source_url(source_url)
            if not ok:
                return fail(idx, job, started, source_url,
                            ValueError(f"Invalid source URL {source_url!r}: {reason}"))

            output_path = self.files.get_output_path(job.html_path, job.output_path)
            if job.html_path in completed:
                self.logger.info(f"Skipping completed: {job.html_path}")
                return record(idx, job, 'skipped', started, source_url, output_path=output_path)
            if not self.config.overwrite and os.path.exists(output_path):
                self.logger.info(f"Skipping existing output: {output_path}")
                return record(idx, job, 'skipped', started, source_url, output_path=output_path)

            if progress:
                progress({"type": "page", "index": idx + 1, "stage": "converting", "path": job.html_path})
            try:
                html_content = self.files.read_page(job.html_path)
                result = self.converter.convert_html(html_content, source_url)
                self.files.save_markdown(result.body, output_path)
            except Exception as e:
                # Failures are reported against this page only
                return fail(idx, job, started, source_url, e, output_path=output_path)

            return record(idx, job, 'completed', started, source_url,
                          output_path=output_path, title=result.title)

        if self.config.concurrency > 1:
            with ThreadPoolExecutor(max_workers=self.config.concurrency) as ex:
                futures = [ex.submit(process_one, idx, job) for idx, job in enumerate(jobs)]
                statuses = [fut.result() for fut in as_completed(futures)]
        else:
            statuses = [process_one(idx, job) for idx, job in enumerate(jobs)]

        for status in statuses:
            if status == 'completed':
                stats["converted"] += 1
            else:
                stats[status] += 1

        self.results = [outcome for outcome in outcomes if outcome is not None]

        self.logger.info(
            f"Conversion finished: {stats['converted']} converted, {stats['skipped']} skipped, "
            f"{stats['failed']} failed, {stats['cancelled']} cancelled"
        )
        if progress:
            progress({"type": "counters", "stats": stats})
        return stats
