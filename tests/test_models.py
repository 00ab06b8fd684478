"""
Tests for Fortress Ledger

Test strategy:
1. Unit tests for individual components (models, validators, stores)
2. Flow tests against in-memory stores and a fixed clock
3. No real notifications and no network in tests
"""

import json
from datetime import date
from decimal import Decimal

import pytest

from fortress.models.ledger import (
    EMPTY_BREAKDOWN_SUMMARY,
    BreakdownLine,
    FundAllocation,
    HistoryEntry,
    LedgerDocument,
    LedgerUpdate,
    Milestone,
    ValidationIssue,
    format_ratio,
)
from fortress.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)


def sample_document() -> LedgerDocument:
    return LedgerDocument(
        surplus=Decimal("50000"),
        allocations=[
            FundAllocation(name="ICICI Savings", ratio=50),
            FundAllocation(name="Axis Short Duration", ratio=30),
            FundAllocation(name="ICICI BAF", ratio=20),
        ],
        history=[
            HistoryEntry(
                entry_date=date(2025, 12, 1),
                total=Decimal("50000"),
                summary="ICICI Savings (50%) | Axis Short Duration (30%) | ICICI BAF (20%)",
                breakdown=(
                    BreakdownLine(fund_name="ICICI Savings", ratio=50, amount=Decimal("25000")),
                    BreakdownLine(fund_name="Axis Short Duration", ratio=30, amount=Decimal("15000")),
                    BreakdownLine(fund_name="ICICI BAF", ratio=20, amount=Decimal("10000")),
                ),
            ),
        ],
        todos=[
            Milestone(title="Renew FD", target_date=date(2026, 1, 14)),
            Milestone(title="Review SIPs", target_date=date(2026, 3, 1), completed=True),
        ],
    )


class TestFundModels:
    """Tests for fund and history models."""

    def test_fund_allocation_creation(self):
        """Test FundAllocation model creation."""
        fund = FundAllocation(name="ICICI Savings", ratio=50)
        assert fund.name == "ICICI Savings"
        assert fund.ratio == 50.0

    def test_fund_allocation_accepts_json_key(self):
        """Test that the persisted 'fundName' key populates name."""
        fund = FundAllocation.model_validate({"fundName": "ICICI BAF", "ratio": 20})
        assert fund.name == "ICICI BAF"

    def test_fund_allocation_strips_whitespace(self):
        """Test that whitespace is stripped from fund name."""
        fund = FundAllocation(name="  ICICI BAF  ", ratio=20)
        assert fund.name == "ICICI BAF"

    def test_fund_allocation_rejects_out_of_range_ratio(self):
        """Test that ratios outside 0-100 are rejected."""
        with pytest.raises(ValueError):
            FundAllocation(name="X", ratio=101)
        with pytest.raises(ValueError):
            FundAllocation(name="X", ratio=-1)

    def test_fund_allocation_rejects_nan(self):
        """Test that NaN ratios are rejected."""
        with pytest.raises(ValueError):
            FundAllocation(name="X", ratio=float("nan"))

    def test_fund_allocation_is_frozen(self):
        """Test that fund definitions cannot be edited in place."""
        fund = FundAllocation(name="X", ratio=10)
        with pytest.raises(ValueError):
            fund.ratio = 20

    def test_fund_label(self):
        """Test the summary label drops a trailing .0."""
        assert FundAllocation(name="X", ratio=50).label == "X (50%)"
        assert FundAllocation(name="Y", ratio=12.5).label == "Y (12.5%)"

    def test_format_ratio(self):
        assert format_ratio(50.0) == "50"
        assert format_ratio(0) == "0"
        assert format_ratio(33.3) == "33.3"
        assert format_ratio(100.0) == "100"

    def test_format_ratio_small_values(self):
        """Test tiny ratios never render in scientific notation."""
        assert format_ratio(1e-05) == "0.00001"
        assert FundAllocation(name="Z", ratio=0.0001).label == "Z (0.0001%)"

    def test_history_entry_allocated_amount(self):
        """Test allocated_amount sums the breakdown."""
        entry = sample_document().history[0]
        assert entry.allocated_amount == Decimal("50000")

    def test_history_entry_rejects_zero_total(self):
        """Test that a history entry needs a positive total."""
        with pytest.raises(ValueError):
            HistoryEntry(entry_date=date(2026, 1, 1), total=Decimal("0"), summary="x")

    def test_history_entry_is_frozen(self):
        """Test that history entries are immutable."""
        entry = sample_document().history[0]
        with pytest.raises(ValueError):
            entry.summary = "edited"


class TestMilestoneModel:

    def test_milestone_gets_an_id(self):
        """Test that each milestone gets a distinct id."""
        a = Milestone(title="A", target_date=date(2026, 1, 1))
        b = Milestone(title="A", target_date=date(2026, 1, 1))
        assert a.id and b.id
        assert a.id != b.id

    def test_milestone_defaults_to_open(self):
        milestone = Milestone(title="A", target_date=date(2026, 1, 1))
        assert milestone.completed is False

    def test_milestone_rejects_empty_title(self):
        with pytest.raises(ValueError):
            Milestone(title="   ", target_date=date(2026, 1, 1))


class TestLedgerDocument:
    """Tests for the root document and its JSON codec."""

    def test_empty_document(self):
        """Test the empty default document."""
        doc = LedgerDocument.empty()
        assert doc.surplus == Decimal("0")
        assert doc.allocations == []
        assert doc.history == []
        assert doc.todos == []

    def test_to_json_uses_persisted_keys(self):
        """Test the JSON shape matches the persisted format."""
        data = json.loads(sample_document().to_json())

        assert set(data) == {"surplus", "allocations", "history", "todos"}
        assert data["surplus"] == 50000
        assert data["allocations"][0] == {"fundName": "ICICI Savings", "ratio": 50}
        assert data["history"][0]["date"] == "2025-12-01"
        assert data["history"][0]["total"] == 50000
        assert data["history"][0]["summary"].startswith("ICICI Savings (50%)")
        assert data["history"][0]["breakdown"][1] == {
            "fundName": "Axis Short Duration",
            "ratio": 30,
            "amount": 15000,
        }
        assert data["todos"][0]["title"] == "Renew FD"
        assert data["todos"][0]["date"] == "2026-01-14"
        assert data["todos"][0]["completed"] is False

    def test_json_round_trip(self):
        """Test from_json(to_json(doc)) == doc."""
        doc = sample_document()
        assert LedgerDocument.from_json(doc.to_json()) == doc

    def test_from_json_without_breakdown_or_ids(self):
        """Test documents written without breakdown or todo ids still load."""
        text = json.dumps({
            "surplus": 1000,
            "allocations": [{"fundName": "X", "ratio": 100}],
            "history": [{"date": "2025-11-01", "total": 1000, "summary": "X (100%)"}],
            "todos": [{"title": "Pay tax", "date": "2026-01-14", "completed": False}],
        })
        doc = LedgerDocument.from_json(text)

        assert doc.history[0].breakdown == ()
        assert doc.todos[0].id
        assert doc.todos[0].target_date == date(2026, 1, 14)

    def test_from_json_rejects_duplicate_fund_names(self):
        """Test that duplicate fund names are a schema violation."""
        text = json.dumps({
            "surplus": 0,
            "allocations": [
                {"fundName": "X", "ratio": 10},
                {"fundName": "X", "ratio": 20},
            ],
            "history": [],
            "todos": [],
        })
        with pytest.raises(ValueError, match="Duplicate fund names"):
            LedgerDocument.from_json(text)

    def test_from_json_rejects_garbage(self):
        with pytest.raises(ValueError):
            LedgerDocument.from_json("{not json")

    def test_from_json_rejects_negative_surplus(self):
        with pytest.raises(ValueError):
            LedgerDocument.from_json('{"surplus": -1}')

    def test_ledger_update_defaults(self):
        update = LedgerUpdate(document=LedgerDocument.empty(), saved=True)
        assert update.warnings == []


class TestValidationIssue:

    def test_default_severity_is_error(self):
        issue = ValidationIssue(field="ratio", issue_type="out_of_range", message="bad")
        assert issue.severity == "error"

    def test_rejects_unknown_severity(self):
        with pytest.raises(ValueError):
            ValidationIssue(field="x", issue_type="y", message="z", severity="fatal")


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.FUND_ADDED,
            description="Fund added",
        )
        assert event.event_type == AuditEventType.FUND_ADDED
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEventBuilder.investment_logged(
            total=Decimal("50000"),
            fund_count=3,
            summary="X (100%)",
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "investment_logged"
        assert log_dict["details"]["total"] == "50000"
        assert log_dict["is_user_action"] is True

    def test_audit_event_builder_fund_added(self):
        event = AuditEventBuilder.fund_added("ICICI Savings", 50)
        assert event.event_type == AuditEventType.FUND_ADDED
        assert event.entity_type == "fund"
        assert event.entity_id == "ICICI Savings"
        assert event.is_user_action is True

    def test_audit_event_builder_save_failed(self):
        event = AuditEventBuilder.save_failed("fallback", "quota exceeded")
        assert event.severity == AuditSeverity.WARNING
        assert event.error_message == "quota exceeded"
        assert event.details["backend"] == "fallback"

    def test_audit_event_builder_snapshot_exported(self):
        event = AuditEventBuilder.snapshot_exported("fortress_backup_2026-01-14.json", 120)
        assert event.event_type == AuditEventType.SNAPSHOT_EXPORTED
        assert event.entity_id == "fortress_backup_2026-01-14.json"
        assert event.details["size_bytes"] == 120

    def test_audit_event_builder_backend_downgraded(self):
        event = AuditEventBuilder.backend_downgraded("permission denied")
        assert event.event_type == AuditEventType.BACKEND_DOWNGRADED
        assert event.severity == AuditSeverity.WARNING


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
