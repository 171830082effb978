"""Window-by-window ingestion of token logs into holder balances."""

import time
import logging
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional, Tuple

from holder_sleuth.balances.accumulator import BalanceAccumulator
from holder_sleuth.blockexplorer.etherscan import BlockResolver
from holder_sleuth.config.settings import DEFAULT_START_TIMESTAMP, Settings, settings
from holder_sleuth.decoder.decoder import EventDecoder
from holder_sleuth.decoder.utils import normalize_address
from holder_sleuth.rpc.node import LATEST, BlockTag, LogFetcher
from holder_sleuth.storage.checkpoints import Checkpoint, CheckpointStore
from holder_sleuth.storage.database import Database
from holder_sleuth.storage.holders import BalanceStore

logger = logging.getLogger(__name__)

WINDOW_SECONDS = 25 * 24 * 60 * 60


class Stage(Enum):
    RESOLVING = "resolving"
    FETCHING = "fetching"
    DECODING = "decoding"
    ACCUMULATING = "accumulating"
    PERSISTING = "persisting"
    CHECKPOINTING = "checkpointing"
    DONE = "done"


@dataclass(frozen=True)
class Window:
    start_timestamp: int
    end_timestamp: int
    from_block: int
    to_block: BlockTag

    @property
    def is_final(self) -> bool:
        """The window reaches the chain head, so it is the last of the run."""
        return self.to_block == LATEST


@dataclass
class IngestionResult:
    windows_processed: int = 0
    logs_fetched: int = 0
    events_decoded: int = 0
    events_skipped: int = 0
    holders_updated: int = 0
    last_checkpoint: Optional[Checkpoint] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["last_checkpoint"] = (
            asdict(self.last_checkpoint) if self.last_checkpoint else None
        )
        return data


class IngestionOrchestrator:
    """Drives the resolve → fetch → decode → accumulate → persist loop.

    A window's balances and its checkpoint are committed in one transaction,
    so an aborted run resumes from the last fully persisted window.
    Runs must not overlap; callers serialize them.
    """

    def __init__(
        self,
        token_address: str,
        resolver: BlockResolver,
        fetcher: LogFetcher,
        database: Database,
        schema_path: str,
        accumulator: Optional[BalanceAccumulator] = None,
        start_timestamp: int = DEFAULT_START_TIMESTAMP,
        window_seconds: int = WINDOW_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.token_address = normalize_address(token_address)
        self.resolver = resolver
        self.fetcher = fetcher
        self.database = database
        self.schema_path = schema_path
        self.accumulator = accumulator or BalanceAccumulator()
        self.checkpoints = CheckpointStore(database)
        self.balances = BalanceStore(database)
        self.start_timestamp = start_timestamp
        self.window_seconds = window_seconds
        self.stage = Stage.DONE
        self._clock = clock

    @classmethod
    def from_settings(
        cls, config: Settings = settings, database: Optional[Database] = None
    ) -> "IngestionOrchestrator":
        config.validate()
        return cls(
            token_address=config.node.token_address,
            resolver=BlockResolver(
                base_url=config.explorer.base_url,
                api_key=config.explorer.api_key,
                calls_per_second=config.explorer.rate_limit,
            ),
            fetcher=LogFetcher(
                provider_url=config.node.provider_url, timeout=config.node.timeout
            ),
            database=database or Database(config.database.get_connection_url()),
            schema_path=config.ingestion.event_schema_path,
            start_timestamp=config.ingestion.start_timestamp,
            window_seconds=config.ingestion.window_seconds,
        )

    def _enter(self, stage: Stage) -> None:
        self.stage = stage
        logger.debug(f"Stage: {stage.value}")

    def _now(self) -> int:
        return int(self._clock())

    def resume_point(self) -> Tuple[int, Optional[int]]:
        """Return the window start timestamp and, if known, its first block.

        A fresh store starts at ``start_timestamp``. Otherwise the run picks
        up the window after the last checkpoint, except when that window
        ended at the chain head and has not closed yet: then its remaining
        blocks are ingested under the same start timestamp. Rows without an
        end block always point at the successor window, which may still lie
        in the future.
        """
        last = self.checkpoints.latest()
        if last is None:
            return self.start_timestamp, None

        next_block = last.end_block + 1 if last.end_block is not None else None
        window_end = last.timestamp + self.window_seconds
        if next_block is not None and window_end > self._now():
            return last.timestamp, next_block
        return window_end, next_block

    def plan_window(self, start_timestamp: int, from_block: Optional[int] = None) -> Window:
        self._enter(Stage.RESOLVING)
        if from_block is None:
            from_block = self.resolver.resolve(start_timestamp)

        end_timestamp = start_timestamp + self.window_seconds
        if end_timestamp > self._now():
            # Never resolve a time the chain has not reached yet
            to_block: BlockTag = LATEST
        else:
            to_block = self.resolver.resolve(end_timestamp)

        return Window(start_timestamp, end_timestamp, from_block, to_block)

    def process_window(self, window: Window, result: IngestionResult) -> Checkpoint:
        self._enter(Stage.FETCHING)
        end_block = self.fetcher.head_block() if window.is_final else int(window.to_block)
        if window.from_block > end_block:
            logger.info(f"No new blocks after {window.from_block - 1}")
            logs = []
            end_block = window.from_block - 1
        else:
            logs = self.fetcher.fetch(self.token_address, window.from_block, end_block)

        self._enter(Stage.DECODING)
        decoder = EventDecoder.from_file(self.schema_path)
        batch = decoder.decode_logs(logs)

        self._enter(Stage.ACCUMULATING)
        deltas = self.accumulator.accumulate(batch.events)

        self._enter(Stage.PERSISTING)
        with self.database.transaction() as conn:
            if deltas:
                holders = self.balances.apply_deltas(deltas, conn=conn)
                result.holders_updated += len(holders)

            self._enter(Stage.CHECKPOINTING)
            checkpoint = self.checkpoints.record(
                Checkpoint(
                    timestamp=window.start_timestamp,
                    block_number=window.from_block,
                    end_block=end_block,
                ),
                conn=conn,
            )

        result.windows_processed += 1
        result.logs_fetched += len(logs)
        result.events_decoded += len(batch.events)
        result.events_skipped += batch.skipped
        result.last_checkpoint = checkpoint
        logger.info(
            f"Window {window.start_timestamp}: blocks {window.from_block}-{end_block}, "
            f"{len(logs)} logs, {len(batch.events)} events, {len(deltas)} addresses"
        )
        return checkpoint

    def run(self) -> IngestionResult:
        """Process windows until caught up with the chain head."""
        result = IngestionResult()
        current_timestamp, from_block = self.resume_point()
        if from_block is None and current_timestamp > self._now():
            # Open window without a recorded end block; wait for it to close
            logger.info(
                f"Window starting at {current_timestamp} has not opened yet, nothing to process"
            )
            self._enter(Stage.DONE)
            return result

        logger.info(
            f"Processing logs for {self.token_address} from timestamp {current_timestamp}"
        )

        while True:
            try:
                window = self.plan_window(current_timestamp, from_block)
                checkpoint = self.process_window(window, result)
            except Exception as e:
                logger.error(f"Error processing logs ({self.stage.value}): {e}")
                raise

            current_timestamp = window.end_timestamp
            from_block = checkpoint.end_block + 1
            if window.is_final:
                break

        self._enter(Stage.DONE)
        logger.info(
            f"Processed {result.windows_processed} windows, {result.holders_updated} holder updates"
        )
        return result
