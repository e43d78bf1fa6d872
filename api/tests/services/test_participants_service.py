"""Tests for participant creation, bulk import and verification."""

import pytest

from core.errors import DuplicateError, NotFoundError, StoreError, ValidationError
from factories import ParticipantRowFactory
from schemas import ParticipantCreate
from services.participants_service import (
    ScanContext,
    add_participant,
    add_participants_bulk,
    delete_participant,
    get_participant,
    get_participants,
    list_participants,
    verify_participant,
)

pytestmark = pytest.mark.unit


class TestAddParticipant:
    async def test_creates_with_generated_id(self, store):
        participant = await add_participant(
            store, ParticipantCreate(name="John Doe", email="john@example.com")
        )

        assert participant.verification_id.startswith("CERT-")
        assert "-JOH-" in participant.verification_id
        assert participant.role == "Participant"
        assert participant.is_generated is False

    async def test_writes_pending_manual_log(self, store):
        participant = await add_participant(store, ParticipantCreate(name="Ada"))

        [log] = store.rows("certificate_logs")
        assert log["participant_id"] == participant.id
        assert log["generation_type"] == "manual"
        assert log["status"] == "pending"

    async def test_blank_name_rejected(self, store):
        with pytest.raises(ValidationError, match="Name"):
            await add_participant(store, ParticipantCreate(name="   "))
        assert store.rows("participants") == []

    async def test_duplicate_email_rejected(self, store):
        store.seed("participants", ParticipantRowFactory(email="ada@example.com"))
        with pytest.raises(DuplicateError):
            await add_participant(
                store, ParticipantCreate(name="Ada", email="ada@example.com")
            )

    async def test_provided_id_is_kept(self, store):
        participant = await add_participant(
            store, ParticipantCreate(name="Ada", verification_id="IMPORTED-7")
        )
        assert participant.verification_id == "IMPORTED-7"

    async def test_taken_provided_id_is_regenerated(self, store):
        store.seed("participants", ParticipantRowFactory(verification_id="IMPORTED-7"))
        participant = await add_participant(
            store, ParticipantCreate(name="Ada", verification_id="IMPORTED-7")
        )
        assert participant.verification_id != "IMPORTED-7"
        assert participant.verification_id.startswith("CERT-")

    async def test_log_failure_does_not_fail_creation(self, store):
        store.fail_on("insert", "certificate_logs")
        participant = await add_participant(store, ParticipantCreate(name="Ada"))
        assert len(store.rows("participants")) == 1
        assert participant.name == "Ada"

    async def test_store_failure_propagates(self, store):
        store.fail_on("insert", "participants")
        with pytest.raises(StoreError):
            await add_participant(store, ParticipantCreate(name="Ada"))


class TestBulkImport:
    async def test_counts_each_outcome(self, store):
        store.seed("participants", ParticipantRowFactory(email="taken@example.com"))
        rows = [
            ParticipantCreate(name="Ada", email="ada@example.com"),
            ParticipantCreate(name="Bob", email="taken@example.com"),
            ParticipantCreate(name=""),
            ParticipantCreate(name="Cy"),
        ]

        result = await add_participants_bulk(store, rows)

        assert result.success_count == 2
        assert result.duplicate_count == 1
        assert result.failed_count == 1
        assert result.total == 4
        assert result.messages[0].startswith("Row 2:")
        assert result.messages[1].startswith("Row 3:")

    async def test_store_failure_on_one_row_continues(self, store):
        store.fail_on(
            "insert",
            "participants",
            when=lambda filters, values: values.get("name") == "Bob",
        )
        rows = [ParticipantCreate(name=name) for name in ("Ada", "Bob", "Cy")]

        result = await add_participants_bulk(store, rows)

        assert result.success_count == 2
        assert result.failed_count == 1
        assert [row["name"] for row in store.rows("participants")] == ["Ada", "Cy"]


class TestLookups:
    async def test_get_participant(self, store):
        row = store.seed("participants", ParticipantRowFactory(name="Ada"))
        participant = await get_participant(store, row["id"])
        assert participant.name == "Ada"

    async def test_get_missing_participant(self, store):
        with pytest.raises(NotFoundError):
            await get_participant(store, "missing")

    async def test_get_participants_keeps_requested_order(self, store):
        first = store.seed("participants", ParticipantRowFactory(name="Ada"))
        second = store.seed("participants", ParticipantRowFactory(name="Bob"))

        participants, result = await get_participants(
            store, [second["id"], first["id"]]
        )
        assert [p.name for p in participants] == ["Bob", "Ada"]
        assert result.failed_count == 0

    async def test_get_participants_defaults_to_all(self, store):
        store.seed("participants", ParticipantRowFactory(name="Ada"))
        store.seed("participants", ParticipantRowFactory(name="Bob"))
        participants, _ = await get_participants(store)
        assert [p.name for p in participants] == ["Bob", "Ada"]

    async def test_get_participants_skips_unknown_ids(self, store):
        row = store.seed("participants", ParticipantRowFactory(name="Ada"))

        participants, result = await get_participants(store, ["missing", row["id"]])

        assert [p.name for p in participants] == ["Ada"]
        assert result.failed_count == 1
        assert result.messages[0].startswith("missing: ")

    async def test_get_participants_skips_failed_lookups(self, store):
        first = store.seed("participants", ParticipantRowFactory(name="Ada"))
        second = store.seed("participants", ParticipantRowFactory(name="Bob"))
        store.fail_on(
            "select",
            "participants",
            when=lambda filters, _: filters.get("id") == first["id"],
        )

        participants, result = await get_participants(
            store, [first["id"], second["id"]]
        )

        assert [p.name for p in participants] == ["Bob"]
        assert result.failed_count == 1
        assert result.success_count == 0

    async def test_list_is_most_recent_first(self, store):
        store.seed("participants", ParticipantRowFactory(name="Ada"))
        store.seed("participants", ParticipantRowFactory(name="Bob"))
        assert [p.name for p in await list_participants(store)] == ["Bob", "Ada"]

    async def test_delete(self, store):
        row = store.seed("participants", ParticipantRowFactory())
        await delete_participant(store, row["id"])
        with pytest.raises(NotFoundError):
            await delete_participant(store, row["id"])


class TestVerifyParticipant:
    async def test_valid_id_records_scan(self, store):
        row = store.seed(
            "participants",
            ParticipantRowFactory(name="Ada", verification_id="CERT-2024-ADA-1"),
        )
        result = await verify_participant(
            store,
            "CERT-2024-ADA-1",
            ScanContext(ip_address="203.0.113.9", user_agent="Camera/1.0"),
        )

        assert result.is_valid is True
        assert result.participant.id == row["id"]
        assert result.message == "Valid certificate issued to Ada"
        assert result.verification_url == (
            "http://localhost:3000/verify/CERT-2024-ADA-1"
        )
        [scan] = store.rows("qr_scan_logs")
        assert scan["participant_id"] == row["id"]
        assert scan["ip_address"] == "203.0.113.9"
        assert scan["user_agent"] == "Camera/1.0"

    async def test_unknown_id(self, store):
        result = await verify_participant(store, "CERT-NOPE")

        assert result.is_valid is False
        assert result.participant is None
        assert "not found" in result.message
        assert store.rows("qr_scan_logs") == []

    async def test_scan_log_failure_still_valid(self, store):
        store.seed("participants", ParticipantRowFactory(verification_id="V-1"))
        store.fail_on("insert", "qr_scan_logs")

        result = await verify_participant(store, "V-1")
        assert result.is_valid is True

    async def test_lookup_failure_propagates(self, store):
        store.fail_on("select", "participants")
        with pytest.raises(StoreError):
            await verify_participant(store, "V-1")
