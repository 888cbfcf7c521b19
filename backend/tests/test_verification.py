from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from catalog_api.promo.scope import ScopeType
from catalog_api.promo.verification import VerdictReason, VerificationEngine

NOW = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def engine(lookups):
    return VerificationEngine(lookups, clock=lambda: NOW)


def add(lookups, **fields):
    fields.setdefault("code", "SAVE10")
    fields.setdefault("scope_type", ScopeType.ALL)
    fields.setdefault("discount_percent", Decimal("10.00"))
    return lookups.add_promo(**fields)


@pytest.mark.parametrize("code", [None, "", "   "])
def test_blank_code_is_required_before_lookup(engine, lookups, code):
    add(lookups, code="   ")
    verdict = engine.verify(code)
    assert verdict.valid is False
    assert verdict.reason is VerdictReason.CODE_REQUIRED
    assert verdict.record is None


def test_unknown_code_not_found(engine):
    verdict = engine.verify("missing", NOW)
    assert (verdict.valid, verdict.reason.value, verdict.record) == (False, "not_found", None)


def test_lookup_is_trimmed_and_case_insensitive(engine, lookups):
    promo = add(lookups)
    verdict = engine.verify("  save10 ")
    assert verdict.valid is True
    assert verdict.reason is VerdictReason.VALID
    assert verdict.record is promo


def test_no_window_and_active_is_valid(engine, lookups):
    add(lookups)
    assert engine.verify("SAVE10").reason is VerdictReason.VALID


def test_inactive_wins_over_expired(engine, lookups):
    promo = add(lookups, is_active=False, expires_at=NOW - timedelta(days=1))
    verdict = engine.verify("SAVE10")
    assert verdict.reason is VerdictReason.INACTIVE
    assert verdict.record is promo


def test_not_started(engine, lookups):
    add(lookups, starts_at=NOW + timedelta(hours=1))
    verdict = engine.verify("SAVE10")
    assert (verdict.valid, verdict.reason.value) == (False, "not_started")
    assert verdict.record is not None


def test_not_started_wins_over_expired_for_inverted_window(engine, lookups):
    add(lookups, starts_at=NOW + timedelta(hours=1), expires_at=NOW - timedelta(hours=1))
    assert engine.verify("SAVE10").reason is VerdictReason.NOT_STARTED


def test_expired(engine, lookups):
    add(lookups, expires_at=NOW - timedelta(seconds=1))
    assert engine.verify("SAVE10").reason is VerdictReason.EXPIRED


def test_window_edges_are_inclusive(engine, lookups):
    add(lookups, starts_at=NOW, expires_at=NOW)
    assert engine.verify("SAVE10", NOW).reason is VerdictReason.VALID


def test_naive_stored_instants_are_read_as_utc(engine, lookups):
    add(lookups, expires_at=(NOW - timedelta(minutes=5)).replace(tzinfo=None))
    assert engine.verify("SAVE10").reason is VerdictReason.EXPIRED


def test_explicit_now_overrides_clock(engine, lookups):
    add(lookups, expires_at=NOW - timedelta(days=1))
    assert engine.verify("SAVE10", NOW - timedelta(days=2)).reason is VerdictReason.VALID


def test_verify_does_not_mutate_record(engine, lookups):
    promo = add(lookups, is_active=False)
    engine.verify("SAVE10")
    assert promo.is_active is False
    assert promo.code == "SAVE10"
