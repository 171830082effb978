import pytest

from holder_sleuth.core.exceptions import FetchError, SchemaError, UpstreamError
from holder_sleuth.pipeline import IngestionOrchestrator, Stage, WINDOW_SECONDS
from holder_sleuth.storage import BalanceStore, Checkpoint, CheckpointStore, Holder

from conftest import mint_log, transfer_log

START = 1709785187
DAY = 24 * 60 * 60
TOKEN = "0xDcc0F2D8F90FDe85b10aC1c8Ab57dc0AE946A543"
ZERO = "0x" + "0" * 40
HOLDER_ABC = "0x" + "0" * 37 + "abc"
ALICE = "0x" + "a1" * 20


class FakeResolver:
    def __init__(self, blocks):
        self.blocks = blocks
        self.calls = []

    def resolve(self, timestamp):
        self.calls.append(timestamp)
        if timestamp not in self.blocks:
            raise UpstreamError(f"no block for {timestamp}")
        return self.blocks[timestamp]


class FakeFetcher:
    def __init__(self, logs=None, head=0, error=None):
        self.logs = logs or {}
        self.head = head
        self.error = error
        self.calls = []

    def fetch(self, address, from_block, to_block):
        self.calls.append((address, from_block, to_block))
        if self.error:
            raise self.error
        return self.logs.get(from_block, [])

    def head_block(self):
        return self.head


def make_orchestrator(database, schema, resolver, fetcher, now):
    return IngestionOrchestrator(
        token_address=TOKEN,
        resolver=resolver,
        fetcher=fetcher,
        database=database,
        schema_path=schema,
        start_timestamp=START,
        clock=lambda: now,
    )


def test_window_width_is_25_days():
    assert WINDOW_SECONDS == 25 * DAY


def test_single_window_end_to_end(database, bare_schema_path):
    resolver = FakeResolver({START: 1000})
    fetcher = FakeFetcher(logs={1000: [transfer_log(ZERO, HOLDER_ABC, 500, block=1200)]}, head=1500)
    orchestrator = make_orchestrator(database, bare_schema_path, resolver, fetcher, now=START + 10 * DAY)

    result = orchestrator.run()

    assert BalanceStore(database).all() == [Holder(HOLDER_ABC, 500)]
    assert CheckpointStore(database).all() == [Checkpoint(START, 1000, 1500)]
    assert resolver.calls == [START]
    assert fetcher.calls == [(TOKEN.lower(), 1000, 1500)]
    assert result.windows_processed == 1
    assert result.events_decoded == 1
    assert result.holders_updated == 1
    assert result.last_checkpoint == Checkpoint(START, 1000, 1500)
    assert orchestrator.stage is Stage.DONE


def test_windows_advance_until_latest(database, abi_schema_path):
    resolver = FakeResolver({START: 100, START + 25 * DAY: 200, START + 50 * DAY: 300})
    fetcher = FakeFetcher(
        logs={
            100: [mint_log(ALICE, 10)],
            201: [transfer_log(ZERO, ALICE, 5)],
            301: [transfer_log(ALICE, HOLDER_ABC, 3)],
        },
        head=350,
    )
    orchestrator = make_orchestrator(database, abi_schema_path, resolver, fetcher, now=START + 60 * DAY)

    result = orchestrator.run()

    assert [(f, t) for _, f, t in fetcher.calls] == [(100, 200), (201, 300), (301, 350)]
    assert CheckpointStore(database).all() == [
        Checkpoint(START, 100, 200),
        Checkpoint(START + 25 * DAY, 201, 300),
        Checkpoint(START + 50 * DAY, 301, 350),
    ]
    # Balances accumulate across windows
    assert BalanceStore(database).all() == [
        Holder(HOLDER_ABC, 3),
        Holder(ALICE, 12),
    ]
    assert result.windows_processed == 3
    assert START + 75 * DAY not in resolver.calls


def test_resume_starts_at_successor_window(database, bare_schema_path):
    last = START + 25 * DAY
    CheckpointStore(database).record(Checkpoint(last, 5000))
    resolver = FakeResolver({last + 25 * DAY: 6000})
    fetcher = FakeFetcher(head=6100)
    orchestrator = make_orchestrator(database, bare_schema_path, resolver, fetcher, now=last + 30 * DAY)

    orchestrator.run()

    assert resolver.calls[0] == last + 25 * DAY
    assert last not in resolver.calls
    assert CheckpointStore(database).latest() == Checkpoint(last + 25 * DAY, 6000, 6100)


def test_resume_continues_after_recorded_end_block(database, bare_schema_path):
    last = START
    CheckpointStore(database).record(Checkpoint(last, 1000, 1999))
    resolver = FakeResolver({last + 50 * DAY: 3000})
    fetcher = FakeFetcher(head=3100)
    orchestrator = make_orchestrator(database, bare_schema_path, resolver, fetcher, now=last + 60 * DAY)

    orchestrator.run()

    assert [(f, t) for _, f, t in fetcher.calls] == [(2000, 3000), (3001, 3100)]
    assert CheckpointStore(database).all()[1] == Checkpoint(last + 25 * DAY, 2000, 3000)


def test_resume_open_window_picks_up_its_tail(database, bare_schema_path):
    last = START
    CheckpointStore(database).record(Checkpoint(last, 1000, 1500))
    resolver = FakeResolver({})
    fetcher = FakeFetcher(logs={1501: [transfer_log(ZERO, ALICE, 7)]}, head=1600)
    orchestrator = make_orchestrator(database, bare_schema_path, resolver, fetcher, now=last + 5 * DAY)

    orchestrator.run()

    assert resolver.calls == []
    assert fetcher.calls == [(TOKEN.lower(), 1501, 1600)]
    assert CheckpointStore(database).latest() == Checkpoint(last, 1501, 1600)
    assert BalanceStore(database).get(ALICE) == Holder(ALICE, 7)


def test_open_window_without_end_block_waits_for_successor(database, bare_schema_path):
    CheckpointStore(database).record(Checkpoint(START, 4000))
    resolver = FakeResolver({})
    fetcher = FakeFetcher(head=4500)
    orchestrator = make_orchestrator(database, bare_schema_path, resolver, fetcher, now=START + 5 * DAY)

    result = orchestrator.run()

    assert resolver.calls == []
    assert fetcher.calls == []
    assert result.windows_processed == 0
    assert result.last_checkpoint is None
    assert CheckpointStore(database).all() == [Checkpoint(START, 4000)]
    assert orchestrator.stage is Stage.DONE


def test_no_new_blocks_records_checkpoint_without_fetching(database, bare_schema_path):
    CheckpointStore(database).record(Checkpoint(START, 1000, 1500))
    fetcher = FakeFetcher(head=1500)
    orchestrator = make_orchestrator(database, bare_schema_path, FakeResolver({}), fetcher, now=START + DAY)

    result = orchestrator.run()

    assert fetcher.calls == []
    assert result.last_checkpoint == Checkpoint(START, 1501, 1500)


def test_fetch_failure_aborts_without_checkpoint(database, bare_schema_path):
    resolver = FakeResolver({START: 1000})
    fetcher = FakeFetcher(head=1500, error=FetchError("Failed to fetch logs after 3 attempts"))
    orchestrator = make_orchestrator(database, bare_schema_path, resolver, fetcher, now=START + DAY)

    with pytest.raises(FetchError):
        orchestrator.run()

    assert CheckpointStore(database).latest() is None
    assert BalanceStore(database).all() == []
    assert orchestrator.stage is Stage.FETCHING


def test_resolver_failure_aborts(database, bare_schema_path):
    orchestrator = make_orchestrator(
        database, bare_schema_path, FakeResolver({}), FakeFetcher(), now=START + DAY
    )

    with pytest.raises(UpstreamError):
        orchestrator.run()
    assert CheckpointStore(database).latest() is None


def test_failure_in_later_window_keeps_earlier_windows(database, bare_schema_path):
    resolver = FakeResolver({START: 100, START + 25 * DAY: 200})
    fetcher = FakeFetcher(logs={100: [transfer_log(ZERO, ALICE, 5)]}, head=300)
    orchestrator = make_orchestrator(database, bare_schema_path, resolver, fetcher, now=START + 60 * DAY)

    with pytest.raises(UpstreamError):
        orchestrator.run()

    assert CheckpointStore(database).all() == [Checkpoint(START, 100, 200)]
    assert BalanceStore(database).get(ALICE) == Holder(ALICE, 5)


def test_missing_schema_aborts_run(database, tmp_path):
    resolver = FakeResolver({START: 1000})
    fetcher = FakeFetcher(logs={1000: [transfer_log(ZERO, ALICE, 5)]}, head=1500)
    orchestrator = make_orchestrator(
        database, str(tmp_path / "missing.json"), resolver, fetcher, now=START + DAY
    )

    with pytest.raises(SchemaError):
        orchestrator.run()
    assert CheckpointStore(database).latest() is None


def test_undecodable_logs_are_skipped(database, abi_schema_path):
    resolver = FakeResolver({START: 1000})
    junk = {"topics": ["0x" + "99" * 32], "data": "0x01"}
    fetcher = FakeFetcher(logs={1000: [junk, mint_log(ALICE, 9)]}, head=1500)
    orchestrator = make_orchestrator(database, abi_schema_path, resolver, fetcher, now=START + DAY)

    result = orchestrator.run()

    assert result.logs_fetched == 2
    assert result.events_decoded == 1
    assert result.events_skipped == 1
    assert BalanceStore(database).get(ALICE) == Holder(ALICE, 9)


def test_window_without_events_still_checkpoints(database, bare_schema_path):
    resolver = FakeResolver({START: 1000})
    orchestrator = make_orchestrator(
        database, bare_schema_path, resolver, FakeFetcher(head=1100), now=START + DAY
    )

    result = orchestrator.run()

    assert result.holders_updated == 0
    assert CheckpointStore(database).latest() == Checkpoint(START, 1000, 1100)
