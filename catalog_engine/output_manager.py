"""
Output Manager — Timestamped output directories and retention cleanup for run.py.

Each CLI run that saves its results creates a folder under the base output
directory with the format: YYYYMMDD_HHMM_{storefront_name}
(e.g., "20261019_1430_Shopify_Storefront").

Inside each folder, run.py saves:
  - catalog_page.json:  The fetched Connection (one page, or every page with --all)
  - run_results.json:   Run metadata: request, counts, list state, errors

The retention policy deletes folders older than OUTPUT_RETENTION_DAYS at the
start of each run (before creating a new folder). Set retention_days=0 to keep
all output indefinitely.
"""

import json
import logging
import os
import re
import shutil
from datetime import datetime, timedelta
from typing import Any, Optional

logger = logging.getLogger(__name__)

FOLDER_PATTERN = re.compile(r"^(\d{8})_(\d{4})_.*$")


class OutputManager:
    """Manages output directories with timestamping and retention policies.

    Attributes:
        base_dir: Root output directory (default: ./output).
        storefront_name: Used in folder naming (sanitized to alphanumeric, "-" and "_").
        retention_days: Delete folders older than this many days (0 = keep forever).
        current_dir: Path to the current run's output directory (None until created).
    """

    def __init__(self, base_dir: str, storefront_name: str, retention_days: int = 30, now: Optional[datetime] = None):
        self.base_dir = base_dir
        self.storefront_name = storefront_name
        self.retention_days = retention_days
        self.current_dir: Optional[str] = None
        self._run_timestamp = now or datetime.now()

    def create_timestamped_dir(self) -> str:
        """Create the output directory for the current run and return its path."""
        timestamp = self._run_timestamp.strftime("%Y%m%d_%H%M")
        safe_name = "".join(c if c.isalnum() or c in "-_" else "_" for c in self.storefront_name)
        self.current_dir = os.path.join(self.base_dir, f"{timestamp}_{safe_name}")
        os.makedirs(self.current_dir, exist_ok=True)
        return self.current_dir

    def cleanup_old_folders(self) -> int:
        """Remove output folders older than retention_days.

        Only folders matching the YYYYMMDD_HHMM_* pattern are considered.

        Returns:
            The number of folders deleted.
        """
        if self.retention_days <= 0 or not os.path.exists(self.base_dir):
            return 0

        deleted_count = 0
        cutoff_date = self._run_timestamp - timedelta(days=self.retention_days)

        for folder_name in os.listdir(self.base_dir):
            folder_path = os.path.join(self.base_dir, folder_name)
            if not os.path.isdir(folder_path):
                continue

            match = FOLDER_PATTERN.match(folder_name)
            if not match:
                continue

            try:
                folder_datetime = datetime.strptime(f"{match.group(1)}_{match.group(2)}", "%Y%m%d_%H%M")
                if folder_datetime < cutoff_date:
                    shutil.rmtree(folder_path)
                    deleted_count += 1
                    logger.debug("Deleted old output folder: %s", folder_name)
            except (ValueError, OSError) as e:
                logger.warning("Could not process folder %s: %s", folder_name, e)

        return deleted_count

    def get_output_path(self, filename: str) -> str:
        """Full path for a file in the current output directory.

        Raises:
            RuntimeError: If create_timestamped_dir() has not been called yet.
        """
        if not self.current_dir:
            raise RuntimeError("Output directory not created. Call create_timestamped_dir() first.")
        return os.path.join(self.current_dir, filename)

    def write_json(self, filename: str, payload: Any) -> str:
        path = self.get_output_path(filename)
        with open(path, "w") as f:
            json.dump(payload, f, indent=2, default=str)
        return path
