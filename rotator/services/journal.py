"""
Audit journal of the last action taken per file path.

The whole journal is rewritten on every record. It is history only, the
engine never reads it back to decide whether a file should be rotated.
"""

import json
import logging
import os
from pathlib import Path
from threading import Lock
from typing import Dict, Optional

JOURNAL_VERSION = 1

ACTION_ROTATED = "rotated"
ACTION_COMPRESSED = "compressed"


class Journal:
    def __init__(self, path: str):
        self.path = Path(path)
        self._files: Dict[str, str] = {}
        self._lock = Lock()

    def load(self) -> int:
        """
        Restore the mapping from disk.

        A missing, unreadable or malformed file leaves the journal empty.
        Returns the number of entries restored.
        """
        try:
            raw = self.path.read_bytes()
        except OSError:
            logging.debug(f"No journal at {self.path}, starting empty")
            return 0

        try:
            data = json.loads(raw.decode("utf-8"))
            files = data.get("files") or {}
            if not isinstance(files, dict):
                raise ValueError("'files' is not a mapping")
            restored = {str(path): str(action) for path, action in files.items()}
        except (ValueError, AttributeError) as e:
            logging.warning(f"Ignoring malformed journal {self.path}: {e}")
            return 0

        with self._lock:
            self._files = restored

        logging.info(f"Journal loaded from {self.path} with {len(restored)} entries")
        return len(restored)

    def record(self, path: str, action: str) -> None:
        with self._lock:
            self._files[path] = action
            self._save_unlocked()

    def get(self, path: str) -> Optional[str]:
        with self._lock:
            return self._files.get(path)

    def snapshot(self) -> Dict[str, str]:
        with self._lock:
            return dict(self._files)

    def _save_unlocked(self) -> None:
        temp_path = self.path.with_name(self.path.name + ".tmp")
        payload = {"version": JOURNAL_VERSION, "files": self._files}

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            temp_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
            os.replace(temp_path, self.path)
        except OSError as e:
            logging.warning(f"Could not write journal {self.path}: {e}")
