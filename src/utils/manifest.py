"""
Manifest utilities for tracking per-page conversion results.
Stores an append-only JSON Lines file with one record per converted page.
"""

import json
import os
from dataclasses import dataclass, asdict
from typing import Optional, Dict, Any, Iterable, Set


DEFAULT_MANIFEST_NAME = "manifest.jsonl"


@dataclass
class ManifestRecord:
    html_path: str
    source_url: str
    status: str  # completed|skipped|failed
    title: Optional[str] = None
    output_path: Optional[str] = None
    started_at: float = 0.0
    finished_at: float = 0.0
    error: Optional[str] = None


class Manifest:
    def __init__(self, output_dir: str):
        self.output_dir = output_dir
        os.makedirs(self.output_dir, exist_ok=True)
        self.path = os.path.join(self.output_dir, DEFAULT_MANIFEST_NAME)

    def append(self, rec: ManifestRecord) -> None:
        with open(self.path, 'a', encoding='utf-8') as f:
            f.write(json.dumps(asdict(rec), ensure_ascii=False) + "\n")

    def iter_records(self) -> Iterable[Dict[str, Any]]:
        if not os.path.exists(self.path):
            return
        with open(self.path, 'r', encoding='utf-8') as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                yield json.loads(line)

    def get_completed_set(self) -> Set[str]:
        """
        Return the html paths whose latest conversion outcome is completed.

        Skipped records are ignored: a skip leaves the previous outcome intact.
        """
        latest = {}
        for rec in self.iter_records():
            key = rec.get('html_path')
            if not key or rec.get('status') == 'skipped':
                continue
            latest[key] = rec.get('status')
        return {k for k, v in latest.items() if v == 'completed'}
