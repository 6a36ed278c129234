"""
Time-sliced heightmap extraction.

An ExtractionSession walks every selected body on an equirectangular
latitude/longitude grid and fills a HeightmapGrid from the body's terrain
provider. The host drives it by calling tick() repeatedly; each tick runs
one phase step and sampling gives control back once the frame budget is
spent, so the host loop is never blocked for long.

All cursor state lives on the session, so a tick resumes exactly where the
previous one stopped.

Sampling is adaptive: near the poles consecutive columns map to almost the
same point on the sphere, so each row is sampled with a stride of
1 / cos(latitude) columns and the single sample is copied across the
skipped span. Polar rows therefore hold one representative value rather
than true per-cell data.
"""

import asyncio
import time
from enum import Enum
from pathlib import Path
from typing import Callable, Iterable, List, Optional

import structlog
from pydantic import ValidationError

from ..config.extraction import ConfigInput, ExtractionConfig
from .bodies import Body, column_jump, resolve_bodies, sample_elevation
from .errors import CapabilityUnavailableError, ConfigurationError, PersistenceError
from .heightmap import HeightmapGrid
from .progress import BodyResult, ProgressReport, fraction_complete

logger = structlog.get_logger()

Clock = Callable[[], float]


class ExtractionState(Enum):
    """Heightmap generation states."""

    NONE = "none"  # idle or finished
    INITIATING = "initiating"  # setting up for a new body
    GENERATING = "generating"
    SAVING = "saving"


class ExtractionSession:
    """State of one extraction run over a list of bodies."""

    def __init__(
        self,
        config: ExtractionConfig,
        bodies: List[Body],
        clock: Optional[Clock] = None,
    ):
        """
        Initialize a session. Prefer start_extraction(), which validates the
        configuration and resolves bodies first.

        Args:
            config: Validated extraction configuration
            bodies: Bodies to extract, in order
            clock: Monotonic clock in seconds, used for the frame budget and timers
        """
        self.config = config
        self.bodies = list(bodies)
        self.clock = clock or time.perf_counter
        self.destination = Path(config.destination_path)

        self.body_index = 0
        self.row = 0
        self.column = 0
        self.body: Optional[Body] = None
        self.grid: Optional[HeightmapGrid] = None
        self.state = ExtractionState.INITIATING
        self.message = ""
        self.results: List[BodyResult] = []
        self.suspensions = 0

        self._started_at = self.clock()
        self._finished_at: Optional[float] = None
        self._body_started_at = self._started_at

    # Properties

    @property
    def width(self) -> int:
        return self.config.width

    @property
    def height(self) -> int:
        return self.config.height

    @property
    def resolution(self) -> int:
        return self.config.resolution

    @property
    def body_count(self) -> int:
        return len(self.bodies)

    @property
    def is_complete(self) -> bool:
        return self.body_index >= self.body_count

    @property
    def current_body(self) -> Optional[str]:
        return self.body.name if self.body is not None else None

    @property
    def elapsed_seconds(self) -> float:
        """Time since the session started, frozen once it completes."""
        end = self._finished_at if self._finished_at is not None else self.clock()
        return end - self._started_at

    @property
    def body_elapsed_seconds(self) -> float:
        return self.clock() - self._body_started_at

    def latitude(self, row: int) -> float:
        """Latitude in degrees of a grid row."""
        c = self.config
        span = c.ending_latitude - c.starting_latitude
        lat = row * span / self.height + c.starting_latitude + c.latitude_offset
        return -lat if c.invert_latitude else lat

    def longitude(self, column: int) -> float:
        """Longitude in degrees of a grid column."""
        c = self.config
        span = c.ending_longitude - c.starting_longitude
        lon = column * span / self.width + c.starting_longitude + c.longitude_offset
        return -lon if c.invert_longitude else lon

    def progress(self) -> float:
        """Fraction of the whole session completed, in [0, 1]."""
        if self.is_complete:
            return 1.0
        return fraction_complete(
            self.body_index, self.row, self.column, self.width, self.resolution, self.body_count
        )

    def report(self) -> ProgressReport:
        return ProgressReport(
            state=self.state.value,
            message=self.message,
            fraction_complete=self.progress(),
            complete=self.is_complete,
            elapsed_seconds=self.elapsed_seconds,
            current_body=self.current_body,
            bodies_total=self.body_count,
            bodies_done=min(self.body_index, self.body_count),
            results=list(self.results),
        )

    # Scheduling

    def tick(self) -> bool:
        """
        Run one step of the extraction.

        Returns:
            True while there is work left, False once the session is complete
        """
        if self.is_complete:
            return False

        if self.state == ExtractionState.INITIATING:
            self._initiate()
        elif self.state == ExtractionState.GENERATING:
            self._generate()
        elif self.state == ExtractionState.SAVING:
            self._save()

        return not self.is_complete

    def _initiate(self):
        """Set up for the next body."""
        self.body = self.bodies[self.body_index]
        self.row = 0
        self.column = 0
        self._body_started_at = self.clock()

        if not self.body.has_terrain:
            error = CapabilityUnavailableError(
                f"Body {self.body.name} has no terrain provider", body=self.body.name
            )
            logger.warning(
                "Skipping body without terrain", body=self.body.name, error_kind=error.kind
            )
            self.results.append(
                BodyResult(
                    body=self.body.name,
                    status="skipped",
                    error_kind=error.kind,
                    error_message=str(error),
                )
            )
            self._advance()
            return

        self.grid = HeightmapGrid(self.width, self.height, self.config.invert_colours)
        self.message = f"Extracting {self.body.name}"
        self.state = ExtractionState.GENERATING
        logger.info("Extracting heightmap", body=self.body.name, width=self.width, height=self.height)

    def _generate(self):
        """Fill grid cells until the row walk ends or the frame budget runs out."""
        c = self.config
        deadline = self.clock() + c.frame_budget

        while True:
            lat = self.latitude(self.row)
            jump = column_jump(lat, self.width)
            try:
                value = sample_elevation(
                    self.body, lat, self.longitude(self.column), c.min_altitude, c.max_altitude
                )
            except Exception as e:
                self._fail_body(e)
                return

            self.grid.fill_span(self.row, self.column, self.column + jump, value)
            self.column += jump

            if self.column >= self.width:
                self.row += 1
                self.column = 0
                if self.row >= self.height:
                    self.state = ExtractionState.SAVING
                    self.message = f"Saving {self.body.name}"
                    return

            if self.clock() >= deadline:
                self.suspensions += 1
                return

    def _save(self):
        name = self.body.name
        logger.info("Map generation complete, saving file", body=name)
        try:
            paths = self.grid.save(self.destination / name, self.config.save_type, body=name)
        except PersistenceError as e:
            logger.error(
                "Could not save heightmap",
                body=name,
                error_kind=e.kind,
                error=str(e),
            )
            self.results.append(
                BodyResult(
                    body=name,
                    status="failed",
                    elapsed_seconds=self.body_elapsed_seconds,
                    error_kind=e.kind,
                    error_message=str(e),
                )
            )
        else:
            elapsed = self.body_elapsed_seconds
            logger.info("Saved heightmap", body=name, seconds=round(elapsed, 3))
            self.results.append(
                BodyResult(
                    body=name,
                    status="saved",
                    paths=[str(p) for p in paths],
                    elapsed_seconds=elapsed,
                )
            )
        self._advance()

    def _fail_body(self, error: Exception):
        """Record a sampling failure and move on to the next body."""
        kind = type(error).__name__
        logger.error(
            "Sampling failed", body=self.body.name, error_kind=kind, error=str(error),
            row=self.row, column=self.column,
        )
        self.results.append(
            BodyResult(
                body=self.body.name,
                status="failed",
                elapsed_seconds=self.body_elapsed_seconds,
                error_kind=kind,
                error_message=str(error),
            )
        )
        self._advance()

    def _advance(self):
        """Move to the next body or finish the session."""
        self.body_index += 1
        self.row = 0
        self.column = 0
        self.grid = None

        if self.body_index >= self.body_count:
            self._finish()
        else:
            self.state = ExtractionState.INITIATING

    def _finish(self):
        self._finished_at = self.clock()
        self.state = ExtractionState.NONE
        self.message = "Complete"
        logger.info(
            "Total map generation time",
            seconds=round(self.elapsed_seconds, 3),
            saved=sum(1 for r in self.results if r.status == "saved"),
            failed=sum(1 for r in self.results if r.status == "failed"),
            skipped=sum(1 for r in self.results if r.status == "skipped"),
        )


def build_config(config: Optional[ConfigInput]) -> ExtractionConfig:
    """Validate raw settings into an ExtractionConfig."""
    if config is None:
        raise ConfigurationError("Extraction settings are missing")
    if isinstance(config, ExtractionConfig):
        return config
    try:
        return ExtractionConfig.model_validate(config)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid extraction settings: {e}") from e


def start_extraction(
    config: Optional[ConfigInput],
    bodies: Iterable[Body],
    clock: Optional[Clock] = None,
) -> ExtractionSession:
    """
    Validate settings, resolve bodies and start a session.

    Args:
        config: ExtractionConfig or a mapping of its fields
        bodies: Every body the host knows about
        clock: Optional clock override

    Returns:
        A session ready to be ticked

    Raises:
        ConfigurationError: If settings are missing or invalid, no body can
            be sampled, or the destination directory cannot be created
    """
    config = build_config(config)
    selected = resolve_bodies(config.bodies, bodies)

    destination = Path(config.destination_path)
    try:
        destination.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ConfigurationError(f"Cannot create destination {destination}: {e}") from e

    logger.info(
        "Starting map extraction",
        bodies=[b.name for b in selected],
        width=config.width,
        height=config.height,
        save_type=config.save_type.name,
        destination=str(destination),
    )
    return ExtractionSession(config, selected, clock)


def run_to_completion(session: ExtractionSession) -> List[BodyResult]:
    """Tick a session until it completes."""
    while session.tick():
        pass
    return session.results


async def run_async(session: ExtractionSession) -> List[BodyResult]:
    """Tick a session from an event loop, yielding between ticks."""
    while session.tick():
        await asyncio.sleep(0)
    return session.results
