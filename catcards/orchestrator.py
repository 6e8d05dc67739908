"""Batch rendering of every (product, catalogue) pair with resumable progress.

One ``BatchRenderOrchestrator`` owns one ``RenderingState``. The state is
persisted to a ``KeyValueStore`` after every step so an interrupted batch
can be resumed within ``settings.resume_max_age_hours``. Item renders run
in a worker thread; everything else runs on the event loop, so the state
has a single writer.
"""

import asyncio
import json
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Iterable, Optional

from .config import settings
from .errors import BatchFatalError
from .models import Catalogue, Product, RenderingState, RenderStats
from .storage import KeyValueStore
from .utils import get_logger

logger = get_logger(__name__)

ItemRenderer = Callable[[Product, Catalogue], Any]


class BatchStatus(Enum):
    """Lifecycle of a batch."""

    IDLE = "idle"
    RENDERING = "rendering"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


class CompletionStatus(str, Enum):
    """Outcome reported to observers when a batch ends."""

    SUCCESS = "success"
    PARTIAL = "partial"
    ERROR = "error"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class ProgressSnapshot:
    """Read-only copy of the batch progress."""

    status: BatchStatus
    current_product_index: int
    total_products: int
    current_catalogue_index: int
    total_catalogues: int
    completed_items: int
    total_items: int
    percentage: float
    successful: int
    failed: int
    failed_product_names: tuple[str, ...]


@dataclass(frozen=True)
class ProgressEvent:
    completed: int
    total: int
    percentage: float
    product_index: int
    product_name: str
    catalogue_label: Optional[str] = None
    skipped: bool = False


@dataclass(frozen=True)
class CompletionEvent:
    status: CompletionStatus
    message: str
    stats: RenderStats


@dataclass(frozen=True)
class ErrorEvent:
    message: str
    error: Exception


class RenderObserver:
    """Receives batch events. Subclass and override what you need."""

    def on_progress(self, event: ProgressEvent) -> None:
        pass

    def on_complete(self, event: CompletionEvent) -> None:
        pass

    def on_error(self, event: ErrorEvent) -> None:
        pass


class CallbackObserver(RenderObserver):
    """Forwards events to plain callables."""

    def __init__(
        self,
        on_progress: Optional[Callable[[ProgressEvent], Any]] = None,
        on_complete: Optional[Callable[[CompletionEvent], Any]] = None,
        on_error: Optional[Callable[[ErrorEvent], Any]] = None,
    ):
        self._on_progress = on_progress
        self._on_complete = on_complete
        self._on_error = on_error

    def on_progress(self, event: ProgressEvent) -> None:
        if self._on_progress:
            self._on_progress(event)

    def on_complete(self, event: CompletionEvent) -> None:
        if self._on_complete:
            self._on_complete(event)

    def on_error(self, event: ErrorEvent) -> None:
        if self._on_error:
            self._on_error(event)


class QueueObserver(RenderObserver):
    """Puts every event on a bounded ``asyncio.Queue``.

    When the queue is full the oldest event is dropped, so the final
    ``CompletionEvent`` is never lost to a slow consumer.
    """

    def __init__(self, maxsize: int = 100):
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)

    def _put(self, event: Any) -> None:
        if self.queue.full():
            self.queue.get_nowait()
        self.queue.put_nowait(event)

    def on_progress(self, event: ProgressEvent) -> None:
        self._put(event)

    def on_complete(self, event: CompletionEvent) -> None:
        self._put(event)

    def on_error(self, event: ErrorEvent) -> None:
        self._put(event)


def build_result_message(stats: RenderStats) -> tuple[CompletionStatus, str]:
    """Human-readable summary distinguishing all / none / some succeeded."""
    if stats.failed == 0:
        return CompletionStatus.SUCCESS, f"All {stats.successful} images rendered successfully!"
    if stats.successful == 0:
        return CompletionStatus.ERROR, "Rendering failed for all products"
    names = ", ".join(stats.failed_product_names)
    return (
        CompletionStatus.PARTIAL,
        f"Rendered {stats.successful}/{stats.total_processed} images. {stats.failed} failed: {names}",
    )


class BatchRenderOrchestrator:
    """Drives a catalogue-wide render batch with cancel and resume."""

    def __init__(
        self,
        store: KeyValueStore,
        item_renderer: Optional[ItemRenderer] = None,
        state_key: Optional[str] = None,
        delay_s: Optional[float] = None,
        max_age_hours: Optional[float] = None,
    ):
        self.store = store
        self._item_renderer = item_renderer
        self.state_key = state_key or settings.rendering_state_key
        self.delay_s = settings.inter_product_delay_s if delay_s is None else delay_s
        self.max_age_hours = settings.resume_max_age_hours if max_age_hours is None else max_age_hours
        self.state: Optional[RenderingState] = None
        self.status = BatchStatus.IDLE

    @property
    def item_renderer(self) -> ItemRenderer:
        if self._item_renderer is None:
            from .card_renderer import CardRenderer
            from .encoder import RenderedImageStore

            self._item_renderer = CardRenderer(image_store=RenderedImageStore(self.store)).render_item
        return self._item_renderer

    @property
    def is_rendering(self) -> bool:
        return self.state is not None and self.state.is_rendering

    async def start(
        self,
        products: Iterable[Product],
        catalogues: Iterable[Catalogue],
        observer: Optional[RenderObserver] = None,
    ) -> Optional[CompletionEvent]:
        """
        Render every product for every catalogue.

        Returns:
            The completion event, or None if a batch is already running
        """
        if self.is_rendering:
            logger.warning("Rendering already in progress, ignoring start request")
            return None

        products = list(products)
        catalogues = list(catalogues)
        now = datetime.now()
        state = RenderingState(
            is_rendering=True,
            total_products=len(products),
            total_catalogues=len(catalogues),
            started_at=now,
            updated_at=now,
        )
        logger.info(f"Starting batch: {len(products)} products x {len(catalogues)} catalogues")
        return await self._run(products, catalogues, state, observer or RenderObserver())

    def cancel(self) -> None:
        """Stop after the in-flight item and forget the persisted state."""
        if not self.is_rendering:
            return
        logger.info("Cancelling rendering")
        self.state.is_cancelled = True
        self._clear_persisted()

    def check_resumable_rendering(self) -> Optional[RenderingState]:
        """Persisted state of an interrupted batch, or None.

        Unreadable or stale state is removed.
        """
        raw = self.store.get(self.state_key)
        if raw is None:
            return None
        try:
            saved = RenderingState.from_dict(json.loads(raw))
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"Discarding unreadable rendering state: {e}")
            self._clear_persisted()
            return None

        if not saved.is_rendering or saved.is_cancelled:
            self._clear_persisted()
            return None
        if saved.is_stale(self.max_age_hours):
            logger.info(f"Discarding rendering state older than {self.max_age_hours}h")
            self._clear_persisted()
            return None
        return saved

    async def resume(
        self,
        products: Iterable[Product],
        catalogues: Iterable[Catalogue],
        observer: Optional[RenderObserver] = None,
    ) -> bool:
        """Continue an interrupted batch from the product it stopped at.

        That product is rendered again from scratch, with the stats that
        were current when it started.
        """
        if self.is_rendering:
            logger.warning("Rendering already in progress, ignoring resume request")
            return False

        saved = self.check_resumable_rendering()
        if saved is None:
            return False

        products = list(products)
        catalogues = list(catalogues)
        if saved.total_products != len(products) or saved.total_catalogues != len(catalogues):
            logger.warning(
                f"Cannot resume: saved batch had {saved.total_products}x{saved.total_catalogues} items, "
                f"got {len(products)}x{len(catalogues)}"
            )
            return False

        state = RenderingState(
            is_rendering=True,
            current_product_index=saved.current_product_index,
            total_products=saved.total_products,
            total_catalogues=saved.total_catalogues,
            completed_items=saved.current_product_index * saved.total_catalogues,
            stats=saved.checkpoint.copy(),
            checkpoint=saved.checkpoint.copy(),
            started_at=saved.started_at,
            updated_at=datetime.now(),
        )
        logger.info(f"Resuming batch at product {saved.current_product_index + 1}/{saved.total_products}")
        await self._run(products, catalogues, state, observer or RenderObserver())
        return True

    def snapshot(self) -> Optional[ProgressSnapshot]:
        state = self.state
        if state is None:
            return None
        return ProgressSnapshot(
            status=self.status,
            current_product_index=state.current_product_index,
            total_products=state.total_products,
            current_catalogue_index=state.current_catalogue_index,
            total_catalogues=state.total_catalogues,
            completed_items=state.completed_items,
            total_items=state.total_items,
            percentage=state.percentage,
            successful=state.stats.successful,
            failed=state.stats.failed,
            failed_product_names=tuple(state.stats.failed_product_names),
        )

    async def _run(
        self,
        products: list[Product],
        catalogues: list[Catalogue],
        state: RenderingState,
        observer: RenderObserver,
    ) -> CompletionEvent:
        self.state = state
        self.status = BatchStatus.RENDERING

        try:
            self._persist()
            for index in range(state.current_product_index, len(products)):
                if state.is_cancelled:
                    break
                await self._render_product(index, products[index], catalogues, observer)
                if index < len(products) - 1 and not state.is_cancelled:
                    await asyncio.sleep(self.delay_s)
        except BatchFatalError as e:
            return self._fail(e, observer)

        return self._finish(observer)

    async def _render_product(
        self,
        index: int,
        product: Product,
        catalogues: list[Catalogue],
        observer: RenderObserver,
    ) -> None:
        state = self.state
        state.current_product_index = index
        state.current_catalogue_index = 0
        state.completed_items = index * len(catalogues)
        state.checkpoint = state.stats.copy()

        if not product.has_image:
            logger.warning(f"Skipping {product.name!r}: no image")
            state.current_catalogue_index = len(catalogues)
            state.completed_items += len(catalogues)
            self._step(observer, ProgressEvent(
                completed=state.completed_items,
                total=state.total_items,
                percentage=state.percentage,
                product_index=index,
                product_name=product.name,
                skipped=True,
            ))
            return

        for catalogue_index, catalogue in enumerate(catalogues):
            if state.is_cancelled:
                return
            state.current_catalogue_index = catalogue_index
            try:
                await asyncio.to_thread(self.item_renderer, product, catalogue)
                state.stats.record_success()
            except Exception as e:
                logger.error(f"Failed to render {product.name!r} for {catalogue.label}: {e}")
                state.stats.record_failure(product.name)
            state.completed_items += 1
            self._step(observer, ProgressEvent(
                completed=state.completed_items,
                total=state.total_items,
                percentage=state.percentage,
                product_index=index,
                product_name=product.name,
                catalogue_label=catalogue.label,
            ))

    def _step(self, observer: RenderObserver, event: ProgressEvent) -> None:
        self.state.updated_at = datetime.now()
        if self.state.is_cancelled:
            return
        self._persist()
        self._notify(observer.on_progress, event)

    def _finish(self, observer: RenderObserver) -> CompletionEvent:
        state = self.state
        state.is_rendering = False
        self._clear_persisted()

        stats = state.stats.copy()
        if state.is_cancelled:
            self.status = BatchStatus.CANCELLED
            event = CompletionEvent(
                CompletionStatus.CANCELLED,
                f"Rendering cancelled after {stats.total_processed} images",
                stats,
            )
        else:
            self.status = BatchStatus.COMPLETED
            status, message = build_result_message(stats)
            event = CompletionEvent(status, message, stats)

        logger.info(event.message)
        self._notify(observer.on_complete, event)
        return event

    def _fail(self, error: BatchFatalError, observer: RenderObserver) -> CompletionEvent:
        logger.error(f"Batch aborted: {error}")
        self.status = BatchStatus.FAILED
        self.state.is_rendering = False
        self._clear_persisted()

        self._notify(observer.on_error, ErrorEvent(str(error), error))
        event = CompletionEvent(CompletionStatus.ERROR, str(error), self.state.stats.copy())
        self._notify(observer.on_complete, event)
        return event

    def _persist(self) -> None:
        try:
            self.store.set(self.state_key, json.dumps(self.state.to_dict()))
        except (OSError, TypeError, ValueError) as e:
            raise BatchFatalError(f"Cannot persist rendering state: {e}") from e

    def _clear_persisted(self) -> None:
        try:
            self.store.remove(self.state_key)
        except OSError as e:
            logger.warning(f"Failed to clear rendering state: {e}")

    def _notify(self, callback: Callable[[Any], Any], event: Any) -> None:
        try:
            callback(event)
        except Exception as e:
            logger.warning(f"Observer {callback.__qualname__} raised: {e}")
