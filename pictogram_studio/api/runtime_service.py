from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
import logging
from typing import Any, Dict, List, Optional

from pictogram_studio.api import schemas
from pictogram_studio.api.errors import PictogramError
from pictogram_studio.runtime.engine import RecompositionEngine
from pictogram_studio.runtime.sources import AssetSource, default_source


logger = logging.getLogger(__name__)

MAX_RUN_LOG = 100


def _iso_now() -> str:
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


@dataclass
class RunRecord:
    run_id: str
    generation: int
    preset: str
    status: str
    started_at: str
    finished_at: Optional[str] = None
    animation: Optional[Dict[str, Any]] = None
    error: Optional[Dict[str, Any]] = None

    @property
    def committed(self) -> bool:
        return self.status == "completed"

    def summary(self) -> Dict[str, Any]:
        return {
            "runId": self.run_id,
            "generation": self.generation,
            "preset": self.preset,
            "status": self.status,
            "startedAt": self.started_at,
            "finishedAt": self.finished_at,
            "error": self.error,
        }


@dataclass
class RuntimeService:
    """Catalog loading plus generation-guarded recomposition for one control surface."""

    source: AssetSource = field(default_factory=default_source)
    engine: Optional[RecompositionEngine] = None
    generation: int = 0
    runs: List[RunRecord] = field(default_factory=list)
    catalogs: Dict[schemas.CatalogKind, List[schemas.CatalogEntry]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.engine is None:
            self.engine = RecompositionEngine(self.source)

    async def load_catalog(self, kind: schemas.CatalogKind | str, refresh: bool = False) -> List[schemas.CatalogEntry]:
        kind = schemas.CatalogKind(kind)
        if not refresh and kind in self.catalogs:
            return list(self.catalogs[kind])

        try:
            entries = await self.source.fetch_catalog(kind)
        except PictogramError as exc:
            logger.warning("Could not load %s catalog (%s): %s", kind.value, exc.code, exc)
            return []

        self.catalogs[kind] = list(entries)
        return list(entries)

    def begin_run(self, preset: str) -> RunRecord:
        self.generation += 1
        run = RunRecord(
            run_id=f"run_{self.generation:06d}",
            generation=self.generation,
            preset=preset,
            status="running",
            started_at=_iso_now(),
        )
        self.runs.append(run)
        if len(self.runs) > MAX_RUN_LOG:
            self.runs = self.runs[-MAX_RUN_LOG:]
        return run

    def is_current(self, run: RunRecord) -> bool:
        return run.generation == self.generation

    async def recompose(self, configuration: schemas.Configuration) -> RunRecord:
        """Recompose for ``configuration``; results superseded by a newer call are marked stale."""

        run = self.begin_run(configuration.animationPresetFilename)
        try:
            animation = await self.engine.recompose(configuration.animationPresetFilename, configuration)
        except PictogramError as exc:
            run.finished_at = _iso_now()
            run.error = exc.to_dict()
            run.status = "failed" if self.is_current(run) else "stale"
            logger.error("Recomposition %s failed: %s", run.run_id, exc)
            return run

        run.finished_at = _iso_now()
        if not self.is_current(run):
            run.status = "stale"
            logger.debug("Discarding stale recomposition %s (current generation %d)", run.run_id, self.generation)
            return run

        run.status = "completed"
        run.animation = animation
        return run

    def run_log(self, limit: int = 20) -> List[Dict[str, Any]]:
        return [run.summary() for run in reversed(self.runs[-limit:])]

    def diagnostics(self) -> Dict[str, Any]:
        return {
            "generation": self.generation,
            "catalogs": {kind.value: len(entries) for kind, entries in self.catalogs.items()},
            "runs": {
                status: sum(1 for run in self.runs if run.status == status)
                for status in ("running", "completed", "failed", "stale")
            },
        }

    async def aclose(self) -> None:
        await self.source.aclose()
