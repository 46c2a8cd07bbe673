"""Tracked issue list persisted as YAML between sessions.

The file is a flat key/value mapping; the tracked issues live under
``trackedIssues`` as a list of ``owner/repo#number`` strings.
"""

import logging
from pathlib import Path
from typing import Any

import yaml

from quotegraph.models import parse_issue_ref

TRACKED_KEY = "trackedIssues"

LOG = logging.getLogger("quotegraph.services.tracked_store")


class TrackedIssueStore:
    """Small YAML-backed key/value store."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def _load(self) -> dict[str, Any]:
        if not self.path.is_file():
            return {}
        try:
            data = yaml.safe_load(self.path.read_text(encoding="utf-8"))
        except (OSError, yaml.YAMLError) as e:
            LOG.warning("Failed to load %s: %s", self.path, e)
            return {}
        if not isinstance(data, dict):
            LOG.warning("Ignoring %s: expected a mapping, got %s", self.path, type(data).__name__)
            return {}
        return data

    def get(self, key: str, default: Any = None) -> Any:
        return self._load().get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Write key, keeping other keys. Creates the directory if needed."""
        data = self._load()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        raw = yaml.dump(
            data,
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False,
            width=1000,
        )
        self.path.write_text(raw, encoding="utf-8")
        LOG.debug("Saved %s to %s", key, self.path)

    def load_tracked(self) -> list[str]:
        """Valid issue references in stored order; malformed entries are skipped."""
        raw = self.get(TRACKED_KEY) or []
        if not isinstance(raw, list):
            LOG.warning("Ignoring %s in %s: expected a list", TRACKED_KEY, self.path)
            return []
        out: list[str] = []
        for item in raw:
            try:
                parse_issue_ref(str(item))
            except ValueError as e:
                LOG.warning("Skip tracked issue entry: %s", e)
                continue
            if item not in out:
                out.append(str(item))
        return out

    def save_tracked(self, refs: list[str]) -> None:
        self.set(TRACKED_KEY, list(refs))
