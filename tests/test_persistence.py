"""
Tests for storage backends and the snapshot persistence adapter.
"""

import json
import pytest
from datetime import date, datetime, timezone
from decimal import Decimal

from expense_tracker.audit import AuditLogger
from expense_tracker.models.audit import AuditEventType
from expense_tracker.models.expense import (
    Category,
    DateRange,
    Expense,
    FilterState,
    PaymentMode,
    View,
)
from expense_tracker.services.persistence import PersistenceAdapter
from expense_tracker.services.storage import (
    CorruptSnapshotError,
    InMemoryStorage,
    JsonFileStorage,
    StorageError,
    StorageUnavailableError,
)
from expense_tracker.services.storage import json_file


EXPENSES_KEY = "expenseTrackerData"
FILTERS_KEY = "expenseTrackerFilters"
VIEW_KEY = "expenseTrackerActiveTab"


def sample_expenses() -> list[Expense]:
    return [
        Expense(
            id=1704448800000,
            amount=Decimal("1000"),
            category=Category.RENTAL,
            payment_mode=PaymentMode.NET_BANKING,
            expense_date=date(2024, 1, 5),
            notes="January rent",
            created_at=datetime(2024, 1, 5, 10, 0, tzinfo=timezone.utc),
        ),
        Expense(
            id=1707559200000,
            amount=Decimal("499.99"),
            category=Category.GROCERIES,
            payment_mode=PaymentMode.UPI,
            expense_date=date(2024, 2, 10),
            notes="",
            created_at=datetime(2024, 2, 10, 10, 0, 0, 123000, tzinfo=timezone.utc),
        ),
    ]


def event_types(audit_logger: AuditLogger) -> list[AuditEventType]:
    return [event.event_type for event in audit_logger.events]


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def audit_logger():
    return AuditLogger()


@pytest.fixture
def adapter(storage, audit_logger):
    return PersistenceAdapter(
        storage,
        audit_logger=audit_logger,
        expenses_key=EXPENSES_KEY,
        filters_key=FILTERS_KEY,
        view_key=VIEW_KEY,
    )


class TestInMemoryStorage:
    """Tests for the in-memory backend."""

    def test_get_set_delete(self, storage):
        assert storage.get("k") is None
        storage.set("k", "v")
        assert storage.get("k") == "v"
        storage.delete("k")
        storage.delete("k")
        assert storage.get("k") is None

    def test_unavailable(self, storage):
        storage.available = False
        assert storage.is_available() is False
        with pytest.raises(StorageUnavailableError):
            storage.get("k")


class TestJsonFileStorage:
    """Tests for the JSON file backend."""

    def test_round_trip(self, tmp_path):
        storage = JsonFileStorage(tmp_path, retry_attempts=1)
        storage.set("expenseTrackerData", '[{"a": "₹"}]')
        assert storage.get("expenseTrackerData") == '[{"a": "₹"}]'
        assert (tmp_path / "expenseTrackerData.json").exists()

    def test_missing_key(self, tmp_path):
        assert JsonFileStorage(tmp_path).get("nothing") is None

    def test_delete_missing_key(self, tmp_path):
        storage = JsonFileStorage(tmp_path)
        storage.delete("nothing")
        storage.set("k", "v")
        storage.delete("k")
        assert storage.get("k") is None

    def test_creates_directory(self, tmp_path):
        storage = JsonFileStorage(tmp_path / "nested" / "data")
        assert storage.data_dir.is_dir()
        assert storage.is_available() is True

    def test_no_temp_files_left_behind(self, tmp_path):
        storage = JsonFileStorage(tmp_path)
        storage.set("k", "one")
        storage.set("k", "two")
        assert [p.name for p in tmp_path.iterdir()] == ["k.json"]

    @pytest.mark.parametrize("key", ["../escape", "", "key\n"])
    def test_invalid_key(self, tmp_path, key):
        with pytest.raises(StorageError):
            JsonFileStorage(tmp_path).path_for(key)

    def test_undecodable_file_is_corrupt(self, tmp_path):
        (tmp_path / "expenseTrackerData.json").write_bytes(b"\xff\xfe[garbage")
        with pytest.raises(CorruptSnapshotError):
            JsonFileStorage(tmp_path, retry_attempts=1).get("expenseTrackerData")

    def test_directory_is_a_file(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        with pytest.raises(StorageUnavailableError):
            JsonFileStorage(blocker)

    def test_transient_errors_are_retried(self, tmp_path, monkeypatch):
        calls = []
        real_read = json_file._read_text

        def flaky_read(path):
            calls.append(path)
            if len(calls) == 1:
                raise OSError("temporarily unavailable")
            return real_read(path)

        storage = JsonFileStorage(tmp_path, retry_attempts=3, retry_wait_multiplier=0)
        storage.set("k", "v")
        monkeypatch.setattr(json_file, "_read_text", flaky_read)
        assert storage.get("k") == "v"
        assert len(calls) == 2

    def test_persistent_errors_become_unavailable(self, tmp_path, monkeypatch):
        calls = []

        def broken_write(path, content):
            calls.append(path)
            raise PermissionError("read-only filesystem")

        storage = JsonFileStorage(tmp_path, retry_attempts=3, retry_wait_multiplier=0)
        monkeypatch.setattr(json_file, "_atomic_write", broken_write)
        with pytest.raises(StorageUnavailableError):
            storage.set("k", "v")
        assert len(calls) == 3


class TestSnapshotEncoding:
    """Tests for the JSON snapshot format."""

    def test_expense_snapshot_layout(self):
        data = json.loads(PersistenceAdapter.encode_expenses(sample_expenses()[:1]))
        assert data == [{
            "id": 1704448800000,
            "amount": 1000,
            "category": "Rental",
            "paymentMode": "Net Banking",
            "date": "2024-01-05",
            "notes": "January rent",
            "createdAt": "2024-01-05T10:00:00Z",
        }]

    def test_decode_rejects_non_list(self):
        with pytest.raises(CorruptSnapshotError):
            PersistenceAdapter.decode_expenses('{"id": 1}')

    def test_decode_rejects_invalid_json(self):
        with pytest.raises(CorruptSnapshotError):
            PersistenceAdapter.decode_expenses("[{")

    def test_decode_skips_invalid_records(self):
        raw = json.dumps([
            {"id": 1, "amount": 5, "category": "Rental", "paymentMode": "UPI",
             "date": "2024-01-01", "createdAt": "2024-01-01T00:00:00Z"},
            {"id": 2, "amount": 5, "category": "Food", "paymentMode": "UPI",
             "date": "2024-01-01", "createdAt": "2024-01-01T00:00:00Z"},
            {"id": 1, "amount": 7, "category": "Travel", "paymentMode": "Cash",
             "date": "2024-01-02", "createdAt": "2024-01-02T00:00:00Z"},
        ])
        expenses, skipped = PersistenceAdapter.decode_expenses(raw)
        assert [e.id for e in expenses] == [1]
        assert skipped == 2

    def test_decode_view(self):
        assert PersistenceAdapter.decode_view("analytics") == View.ANALYTICS
        with pytest.raises(CorruptSnapshotError):
            PersistenceAdapter.decode_view("settings")


class TestPersistenceAdapterRoundTrip:
    """load(save(x)) == x for every snapshot."""

    def test_expenses_round_trip(self, adapter):
        expenses = sample_expenses()
        assert adapter.save_expenses(expenses) is True
        assert adapter.load_expenses() == expenses

    def test_empty_collection_round_trip(self, adapter):
        adapter.save_expenses([])
        assert adapter.load_expenses() == []

    def test_filters_round_trip(self, adapter):
        state = FilterState(
            date_range=DateRange.LAST_90,
            categories=[Category.TRAVEL, Category.RENTAL],
            payment_modes=[PaymentMode.CASH],
        )
        adapter.save_filters(state)
        assert adapter.load_filters() == state

    def test_view_round_trip(self, adapter, storage):
        adapter.save_view(View.ANALYTICS)
        assert storage.get(VIEW_KEY) == "analytics"
        assert adapter.load_view() == View.ANALYTICS

    def test_round_trip_through_files(self, tmp_path, audit_logger):
        adapter = PersistenceAdapter(
            JsonFileStorage(tmp_path, retry_attempts=1),
            audit_logger=audit_logger,
        )
        adapter.save_expenses(sample_expenses())
        reloaded = PersistenceAdapter(
            JsonFileStorage(tmp_path, retry_attempts=1),
            audit_logger=audit_logger,
        )
        assert reloaded.load_expenses() == sample_expenses()

    @pytest.mark.parametrize("amount", [
        "12345678901234567.5",
        "0.1",
        "1234567.891234567891",
    ])
    def test_amount_precision_survives_round_trip(self, tmp_path, amount):
        expense = sample_expenses()[1].model_copy(update={"amount": Decimal(amount)})
        adapter = PersistenceAdapter(JsonFileStorage(tmp_path, retry_attempts=1))
        adapter.save_expenses([expense])

        loaded = adapter.load_expenses()
        assert loaded == [expense]
        assert str(loaded[0].amount) == amount

    def test_long_amounts_are_stored_as_text(self):
        expense = sample_expenses()[1].model_copy(
            update={"amount": Decimal("12345678901234567.5")}
        )
        data = json.loads(PersistenceAdapter.encode_expenses([expense]))
        assert data[0]["amount"] == "12345678901234567.5"


class TestPersistenceAdapterFailures:
    """Missing, corrupt and unavailable snapshots fall back to defaults."""

    def test_missing_snapshots(self, adapter, audit_logger):
        assert adapter.load_expenses() == []
        assert adapter.load_filters() == FilterState()
        assert adapter.load_view() == View.LIST
        assert event_types(audit_logger).count(AuditEventType.SNAPSHOT_MISSING) == 3

    @pytest.mark.parametrize("raw", ["not json", "{}", "null", "42"])
    def test_corrupt_expenses(self, adapter, storage, audit_logger, raw):
        storage.set(EXPENSES_KEY, raw)
        assert adapter.load_expenses() == []
        assert AuditEventType.SNAPSHOT_CORRUPT in event_types(audit_logger)

    @pytest.mark.parametrize("raw", ["not json", "[]", '{"dateRange": "yesterday"}'])
    def test_corrupt_filters(self, adapter, storage, audit_logger, raw):
        storage.set(FILTERS_KEY, raw)
        assert adapter.load_filters() == FilterState()
        assert AuditEventType.SNAPSHOT_CORRUPT in event_types(audit_logger)

    def test_corrupt_view(self, adapter, storage):
        storage.set(VIEW_KEY, "dashboard")
        assert adapter.load_view() == View.LIST

    def test_partially_corrupt_expenses_keep_valid_records(self, adapter, storage, audit_logger):
        good = json.loads(PersistenceAdapter.encode_expenses(sample_expenses()[:1]))
        storage.set(EXPENSES_KEY, json.dumps(good + [{"id": "x"}]))
        assert adapter.load_expenses() == sample_expenses()[:1]
        assert AuditEventType.SNAPSHOT_CORRUPT in event_types(audit_logger)

    def test_unavailable_storage_loads_defaults(self, adapter, storage, audit_logger):
        storage.available = False
        assert adapter.load_expenses() == []
        assert adapter.load_filters() == FilterState()
        assert adapter.load_view() == View.LIST
        assert event_types(audit_logger).count(AuditEventType.STORAGE_UNAVAILABLE) == 3

    def test_undecodable_snapshot_file_loads_defaults(self, tmp_path, audit_logger):
        (tmp_path / EXPENSES_KEY).with_suffix(".json").write_bytes(b"\xff\xfe[garbage")
        (tmp_path / FILTERS_KEY).with_suffix(".json").write_bytes(b"\x80\x81")
        adapter = PersistenceAdapter(
            JsonFileStorage(tmp_path, retry_attempts=1),
            audit_logger=audit_logger,
        )
        assert adapter.load_expenses() == []
        assert adapter.load_filters() == FilterState()
        assert event_types(audit_logger).count(AuditEventType.SNAPSHOT_CORRUPT) == 2

    def test_invalid_key_is_a_storage_error(self, tmp_path, audit_logger):
        adapter = PersistenceAdapter(
            JsonFileStorage(tmp_path, retry_attempts=1),
            audit_logger=audit_logger,
            expenses_key="../outside",
        )
        assert adapter.load_expenses() == []
        assert adapter.save_expenses(sample_expenses()) is False
        assert event_types(audit_logger).count(AuditEventType.STORAGE_ERROR) == 2

    def test_each_save_is_guarded_independently(self, adapter, storage):
        storage.available = False
        assert adapter.save_expenses(sample_expenses()) is False
        assert adapter.save_filters(FilterState()) is False

        storage.available = True
        assert adapter.save_expenses(sample_expenses()) is True
        assert adapter.load_expenses() == sample_expenses()


class TestPersistenceAdapterClear:
    """Tests for removing snapshots."""

    def test_clear_removes_expenses_and_filters_but_not_view(self, adapter, storage):
        adapter.save_expenses(sample_expenses())
        adapter.save_filters(FilterState(date_range=DateRange.LAST_30))
        adapter.save_view(View.ANALYTICS)

        assert adapter.clear() is True
        assert storage.keys() == [VIEW_KEY]

    def test_clear_is_not_the_same_as_saving_empty(self, adapter, storage):
        adapter.save_expenses([])
        assert storage.get(EXPENSES_KEY) == "[]"
        adapter.clear()
        assert storage.get(EXPENSES_KEY) is None

    def test_clear_with_unavailable_storage(self, adapter, storage, audit_logger):
        storage.available = False
        assert adapter.clear() is False
        assert AuditEventType.STORAGE_UNAVAILABLE in event_types(audit_logger)
