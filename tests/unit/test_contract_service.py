"""Tests for contract_intel/services/contract_service.py — CRUD and dashboard stats."""

from datetime import timedelta

import pytest

from contract_intel.exceptions import ExtractionFailedError, NotFoundError, ValidationError
from contract_intel.models.contract import ContractStatus, FileType, RiskLevel, utcnow
from contract_intel.services.contract_service import ContractService


@pytest.fixture
def service(settings, store):
    return ContractService(settings, store)


class TestCreate:

    @pytest.mark.asyncio
    async def test_text_upload(self, service, store, tmp_path, sample_contract_text):
        path = tmp_path / "msa.txt"
        path.write_text(sample_contract_text, encoding="utf-8")

        record = await service.create_contract(path, "msa.txt", "text/plain")

        assert record.title == "msa.txt"
        assert record.file_type == FileType.TEXT
        assert record.status == ContractStatus.PENDING
        assert record.raw_text == sample_contract_text
        assert await store.get(record.id) is not None

    @pytest.mark.asyncio
    async def test_title_used_when_given(self, service, tmp_path):
        path = tmp_path / "nda.txt"
        path.write_text("Mutual confidentiality terms.", encoding="utf-8")
        record = await service.create_contract(path, "nda.txt", "text/plain", title="  Mutual NDA ")
        assert record.title == "Mutual NDA"

    @pytest.mark.asyncio
    async def test_title_too_long(self, service, tmp_path):
        path = tmp_path / "nda.txt"
        path.write_text("terms", encoding="utf-8")
        with pytest.raises(ValidationError):
            await service.create_contract(path, "nda.txt", "text/plain", title="x" * 201)

    @pytest.mark.asyncio
    async def test_empty_file_rejected(self, service, store, tmp_path):
        path = tmp_path / "blank.txt"
        path.write_text("  \n\n ", encoding="utf-8")
        with pytest.raises(ExtractionFailedError):
            await service.create_contract(path, "blank.txt", "text/plain")
        assert await store.count() == 0

    @pytest.mark.asyncio
    async def test_unsupported_type_rejected(self, service, tmp_path):
        path = tmp_path / "sheet.xlsx"
        path.write_bytes(b"PK\x03\x04")
        with pytest.raises(ExtractionFailedError, match="Unsupported file type"):
            await service.create_contract(path, "sheet.xlsx", "application/vnd.ms-excel")


class TestLookup:

    @pytest.mark.asyncio
    async def test_get_missing(self, service):
        with pytest.raises(NotFoundError, match="Contract not found"):
            await service.get_contract("nope")

    @pytest.mark.asyncio
    async def test_list_filters_and_order(self, service, store, make_record):
        base = utcnow()
        first = await store.create(
            make_record("a", title="First", risk_level=RiskLevel.HIGH, created_at=base)
        )
        second = await store.create(
            make_record("b", title="Second", status=ContractStatus.ANALYZED, risk_level=RiskLevel.LOW,
                        created_at=base + timedelta(seconds=1))
        )
        third = await store.create(
            make_record("c", title="Third", status=ContractStatus.ANALYZED, risk_level=RiskLevel.HIGH,
                        created_at=base + timedelta(seconds=2))
        )

        everything = await service.list_contracts()
        assert [r.id for r in everything] == [third.id, second.id, first.id]

        analyzed = await service.list_contracts(status=ContractStatus.ANALYZED)
        assert {r.id for r in analyzed} == {second.id, third.id}

        high = await service.list_contracts(risk_level=RiskLevel.HIGH)
        assert {r.id for r in high} == {first.id, third.id}

        assert len(await service.list_contracts(limit=1)) == 1


class TestDelete:

    @pytest.mark.asyncio
    async def test_removes_record_and_file(self, service, store, make_record):
        record = await store.create(make_record("terms"))

        result = await service.delete_contract(record.id)

        assert result.deleted and result.file_deleted
        assert await store.get(record.id) is None

    @pytest.mark.asyncio
    async def test_missing_file_reported_not_blocking(self, service, store, make_record):
        record = make_record("terms")
        record.file_path = "/nonexistent/dir/contract.txt"
        await store.create(record)

        result = await service.delete_contract(record.id)

        assert result.deleted
        assert not result.file_deleted
        assert result.file_error
        assert await store.get(record.id) is None

    @pytest.mark.asyncio
    async def test_delete_unknown(self, service):
        with pytest.raises(NotFoundError):
            await service.delete_contract("nope")


class TestDashboard:

    @pytest.mark.asyncio
    async def test_empty_store(self, service):
        stats = await service.dashboard_stats()
        assert stats.total_contracts == 0
        assert stats.avg_compliance_score == 0
        assert stats.upcoming_deadlines == 0

    @pytest.mark.asyncio
    async def test_counts(self, service, store, make_record, key_date_in):
        now = utcnow()
        await store.create(make_record(
            "a", title="A", status=ContractStatus.ANALYZED, risk_level=RiskLevel.HIGH,
            compliance_score=80,
            key_dates=[key_date_in(timedelta(days=5)), key_date_in(timedelta(days=45))],
        ))
        await store.create(make_record(
            "b", title="B", status=ContractStatus.ANALYZED, risk_level=RiskLevel.CRITICAL,
            compliance_score=60,
            key_dates=[key_date_in(timedelta(days=29)), key_date_in(timedelta(days=-1))],
        ))
        await store.create(make_record("c", title="C", risk_level=RiskLevel.LOW))

        stats = await service.dashboard_stats(now=now)

        assert stats.total_contracts == 3
        assert stats.analyzed_contracts == 2
        assert stats.high_risk_contracts == 2
        assert stats.avg_compliance_score == 70.0
        assert stats.upcoming_deadlines == 2

    @pytest.mark.asyncio
    async def test_upcoming_deadlines_sorted(self, service, store, make_record, key_date_in):
        await store.create(make_record(
            "a", title="Later", key_dates=[key_date_in(timedelta(days=20), "renewal")],
        ))
        await store.create(make_record(
            "b", title="Sooner", key_dates=[key_date_in(timedelta(days=3), "expiration")],
        ))

        deadlines = await service.list_upcoming_deadlines()

        assert [d.contract_title for d in deadlines] == ["Sooner", "Later"]
        assert [d.date_type for d in deadlines] == ["expiration", "renewal"]
