"""Per-call request/response log files, partitioned by UTC day.

Layout: ``<logs_dir>/<YYYY-MM-DD>/<generation_id>.json``, one pretty-printed
JSON document per outbound call. Files are written to a temp name in the
same directory and renamed into place, so a reader never sees a partial
entry under its final name.
"""

import json
import os
import platform
import re
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

from openrouter_client.config.settings import Settings
from openrouter_client.logging.audit import generate_trace_id, get_audit_logger
from openrouter_client.security.masking import mask_sensitive_data

DATE_FORMAT = "%Y-%m-%d"
ISO_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

_UNSAFE_ID_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def _today() -> str:
    return datetime.now(timezone.utc).strftime(DATE_FORMAT)


def _iso(timestamp: float | None) -> str:
    moment = datetime.fromtimestamp(timestamp, tz=timezone.utc) if timestamp else datetime.now(timezone.utc)
    return moment.strftime(ISO_FORMAT)


def _safe_name(generation_id: str) -> str:
    # Ids come from the remote API; keep them inside their day directory
    return _UNSAFE_ID_CHARS.sub("_", generation_id)


class ApiLogStore:
    """Optional file store for complete request/response pairs."""

    def __init__(
        self,
        logs_dir: str | os.PathLike = "api-logs",
        enabled: bool = False,
        retention_days: int = 30,
        mask_keys: bool = True,
    ):
        self.logs_dir = Path(logs_dir)
        self.enabled = enabled
        self.retention_days = retention_days
        self.mask_keys = mask_keys

    @classmethod
    def from_settings(cls, settings: Settings) -> "ApiLogStore":
        return cls(
            logs_dir=settings.api_logs_dir,
            enabled=settings.enable_api_logging,
            retention_days=settings.api_logs_retention_days,
            mask_keys=settings.api_logs_mask_keys,
        )

    def _path(self, generation_id: str, date: str | None = None) -> Path:
        return self.logs_dir / (date or _today()) / f"{_safe_name(generation_id)}.json"

    def build_entry(
        self,
        generation_id: str,
        request: dict[str, Any],
        response: dict[str, Any],
        metadata: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        metadata = dict(metadata or {})
        if self.mask_keys:
            request = mask_sensitive_data(request)
            metadata = mask_sensitive_data(metadata)

        now = datetime.now(timezone.utc)
        request_ts = request.get("timestamp") or now.timestamp()
        response_ts = response.get("timestamp") or now.timestamp()

        entry_request = {
            "endpoint": request.get("endpoint"),
            "method": request.get("method", "POST"),
            "headers": request.get("headers", {}),
            "body": request.get("body"),
            "timestamp": request_ts,
            "iso_timestamp": _iso(request_ts),
        }
        if "auth" in request:
            entry_request["auth"] = request["auth"]

        return {
            "generation_id": generation_id,
            "trace_id": metadata.get("trace_id") or generate_trace_id(),
            "logged_at": now.strftime(ISO_FORMAT),
            "request": entry_request,
            "response": {
                "status_code": response.get("status_code"),
                "headers": response.get("headers", {}),
                "body": response.get("body"),
                "duration_ms": response.get("duration_ms", 0),
                "timestamp": response_ts,
                "iso_timestamp": _iso(response_ts),
            },
            "metadata": {
                "python_version": platform.python_version(),
                "pid": os.getpid(),
                **metadata,
            },
        }

    def log(
        self,
        generation_id: str,
        request: dict[str, Any],
        response: dict[str, Any],
        metadata: dict[str, Any] | None = None,
    ) -> str | None:
        """Persist one exchange. Returns the file path, or None if disabled or failed.

        Never raises: a logging problem must not fail the call it describes.
        """
        if not self.enabled:
            return None

        try:
            entry = self.build_entry(generation_id, request, response, metadata)
            payload = json.dumps(entry, indent=4, ensure_ascii=False, default=str)

            path = self._path(generation_id)
            path.parent.mkdir(parents=True, exist_ok=True)

            fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(payload)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except (OSError, TypeError, ValueError) as e:
            get_audit_logger().warning(
                "API log write failed",
                extra={"audit_data": {"generation_id": generation_id, "error": str(e)}},
            )
            return None

        return str(path)

    def read(self, generation_id: str, date: str | None = None) -> dict[str, Any] | None:
        """Load an entry from ``date`` (default today); a miss on an explicit date retries today."""
        path = self._path(generation_id, date)
        if not path.is_file():
            if date is None:
                return None
            path = self._path(generation_id)
            if not path.is_file():
                return None

        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            return None

    def list(self, date: str, limit: int = 100) -> list[str]:
        day_dir = self.logs_dir / date
        if not day_dir.is_dir():
            return []
        return [p.stem for p in day_dir.glob("*.json")][:limit]

    def cleanup(self, days_to_keep: int | None = None) -> int:
        """Delete log files in day partitions older than the cutoff.

        Partitions whose name is not a YYYY-MM-DD date are never touched.
        Returns the number of files deleted.
        """
        if days_to_keep is None:
            days_to_keep = self.retention_days
        cutoff = datetime.now(timezone.utc) - timedelta(days=days_to_keep)
        deleted = 0

        if not self.logs_dir.is_dir():
            return 0

        for day_dir in self.logs_dir.iterdir():
            if not day_dir.is_dir():
                continue
            try:
                day = datetime.strptime(day_dir.name, DATE_FORMAT).replace(tzinfo=timezone.utc)
            except ValueError:
                continue
            if day >= cutoff:
                continue

            for log_file in day_dir.glob("*.json"):
                try:
                    log_file.unlink()
                    deleted += 1
                except OSError as e:
                    get_audit_logger().warning(
                        "API log delete failed",
                        extra={"audit_data": {"path": str(log_file), "error": str(e)}},
                    )

            if not any(day_dir.iterdir()):
                day_dir.rmdir()

        return deleted
