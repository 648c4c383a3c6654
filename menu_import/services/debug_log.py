"""Per-run debug log for AI extraction (development only)."""

from __future__ import annotations

import logging
import secrets
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

DEBUG_LOG_DIRNAME = "ai-import-logs"


class DebugSession:
    """
    Handle for one extraction run's debug log.

    When enabled, every ``write`` appends a stage-labelled block to
    ``<log_dir>/<session_id>.log``. Writes never raise.
    """

    def __init__(self, session_id: str, log_dir: Optional[Path] = None, enabled: bool = False):
        self.session_id = session_id
        self.log_dir = log_dir
        self.enabled = enabled and log_dir is not None

    @classmethod
    def start(cls, log_dir: Optional[Path] = None, enabled: bool = False) -> "DebugSession":
        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H-%M-%S-%fZ")
        session = cls(f"{timestamp}_{secrets.token_hex(3)}", log_dir, enabled)
        if session.enabled:
            logger.info("AI import debug session %s started (%s)", session.session_id, log_dir)
        return session

    @property
    def path(self) -> Optional[Path]:
        if self.log_dir is None:
            return None
        return self.log_dir / f"{self.session_id}.log"

    def write(self, stage: str, content: str) -> None:
        if not self.enabled:
            return
        try:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            timestamp = datetime.now(timezone.utc).isoformat()
            rule = "=" * 80
            with self.path.open("a", encoding="utf-8") as fh:
                fh.write(f"\n{rule}\n[{timestamp}] {stage}\n{rule}\n{content}\n")
        except OSError:
            logger.warning("Failed to write debug log for stage %s", stage, exc_info=True)
