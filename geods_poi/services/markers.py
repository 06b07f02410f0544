from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Dict, Optional

import orjson

logger = logging.getLogger(__name__)

SHADOW_FILE = "_shadow.png"


class MarkerIcons:
    """
    Category → marker icon lookup.

    The mapping file is a JSON object {category: icon_filename}; filenames
    are resolved inside `markers_dir`. Loaded on first use.
    """

    def __init__(self, *, markers_dir: str, mapping_path: str):
        self.markers_dir = Path(markers_dir).resolve()
        self.mapping_path = Path(mapping_path)
        self._icons: Optional[Dict[str, str]] = None
        self._lock = threading.Lock()

    def _load(self) -> Dict[str, str]:
        if self._icons is None:
            with self._lock:
                if self._icons is None:
                    raw = orjson.loads(self.mapping_path.read_bytes())
                    if not isinstance(raw, dict):
                        raise ValueError(f"marker mapping must be a JSON object: {self.mapping_path}")
                    self._icons = {str(k): str(v) for k, v in raw.items() if v}
                    logger.info("[markers] Loaded %d icon mappings from %s", len(self._icons), self.mapping_path)
        return self._icons

    def icon_for(self, category: str) -> Optional[str]:
        return self._load().get(category)

    def path_for(self, filename: str) -> Optional[Path]:
        """Resolve an icon filename, refusing anything outside markers_dir."""
        path = (self.markers_dir / filename).resolve()
        if self.markers_dir not in path.parents:
            return None
        return path

    def shadow_path(self) -> Path:
        return self.markers_dir / SHADOW_FILE
