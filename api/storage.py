"""JSON-file persistence for test definitions and scored results.

The application constructs one :class:`ResultStore` at startup and hands it
to request handlers; nothing here is a process-wide singleton.  The layout
is plain JSON on disk so results survive restarts and stay easy to inspect:

    <root>/tests/<test_id>.json
    <root>/results/<result_id>.json
    <root>/results_index.json
"""

from __future__ import annotations

import json
import os
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from sat_core.types import InvalidInput, UpstreamFailure


def default_root() -> Path:
    return Path(os.getenv("DATA_DIR", "data")).resolve()


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _safe_name(key: str) -> str:
    if not key or "/" in key or "\\" in key or key.startswith("."):
        raise InvalidInput(f"invalid id {key!r}", ref=key)
    return key


class ResultStore:
    def __init__(self, root: Optional[Path] = None):
        self.root = Path(root) if root is not None else default_root()
        self.tests_dir = self.root / "tests"
        self.results_dir = self.root / "results"
        self.index_path = self.root / "results_index.json"
        self._lock = threading.Lock()
        self._open = False

    # ---- lifecycle ----
    def open(self) -> "ResultStore":
        try:
            self.tests_dir.mkdir(parents=True, exist_ok=True)
            self.results_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise UpstreamFailure(f"cannot prepare data dir {self.root}: {e}")
        self._open = True
        return self

    def close(self) -> None:
        self._open = False

    @property
    def is_open(self) -> bool:
        return self._open

    def __enter__(self) -> "ResultStore":
        return self.open()

    def __exit__(self, *exc: object) -> None:
        self.close()

    # ---- json helpers ----
    def _require_open(self) -> None:
        if not self._open:
            raise UpstreamFailure("result store is not open")

    def _read_json(self, path: Path, default: Any) -> Any:
        if not path.exists():
            return default
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise UpstreamFailure(f"cannot read {path.name}: {e}")

    def _write_json(self, path: Path, payload: Any) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp = path.with_suffix(path.suffix + ".tmp")
            tmp.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")
            tmp.replace(path)
        except OSError as e:
            raise UpstreamFailure(f"cannot write {path.name}: {e}")

    # ---- tests ----
    def save_test(self, test_id: str, payload: Dict[str, Any]) -> None:
        self._require_open()
        self._write_json(self.tests_dir / f"{_safe_name(test_id)}.json", payload)

    def load_test(self, test_id: str) -> Optional[Dict[str, Any]]:
        self._require_open()
        return self._read_json(self.tests_dir / f"{_safe_name(test_id)}.json", None)

    # ---- results ----
    def save_result_once(self, result_id: str, result: Dict[str, Any], metadata: Dict[str, Any]) -> Dict[str, Any]:
        """Store ``result`` unless its attempt already has one.

        Returns whichever result is stored for ``metadata["attemptId"]``
        afterwards, so concurrent submissions of one attempt agree on it.
        """
        self._require_open()
        with self._lock:
            index: Dict[str, Dict[str, Any]] = self._read_json(self.index_path, {})
            existing = self._find_in_index(index, metadata.get("attemptId"))
            if existing is not None:
                return existing
            self._write_json(self.results_dir / f"{_safe_name(result_id)}.json", result)
            index[result_id] = metadata
            self._write_json(self.index_path, index)
            return result

    def _find_in_index(self, index: Dict[str, Dict[str, Any]], attempt_id: Any) -> Optional[Dict[str, Any]]:
        for rid, meta in index.items():
            if meta.get("attemptId") == attempt_id:
                return self.load_result(rid)
        return None

    def load_result(self, result_id: str) -> Optional[Dict[str, Any]]:
        self._require_open()
        return self._read_json(self.results_dir / f"{_safe_name(result_id)}.json", None)

    def find_result_by_attempt(self, attempt_id: str) -> Optional[Dict[str, Any]]:
        self._require_open()
        return self._find_in_index(self._read_json(self.index_path, {}), attempt_id)

    def list_results_for_user(self, user_id: str) -> List[Dict[str, Any]]:
        self._require_open()
        index: Dict[str, Dict[str, Any]] = self._read_json(self.index_path, {})
        out: List[Dict[str, Any]] = []
        for rid, meta in index.items():
            if meta.get("userId") == user_id:
                item = {"id": rid}
                item.update({k: v for k, v in meta.items() if k != "id"})
                out.append(item)
        out.sort(key=lambda r: r.get("createdAt", ""), reverse=True)
        return out
