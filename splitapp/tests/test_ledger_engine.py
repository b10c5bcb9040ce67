"""
Unit tests for the ledger engine.

Pure netting logic: no database involved.
"""

from decimal import Decimal

import pytest

from splitapp.app.domain.ledger.ledger_engine import (
    LedgerLine,
    LedgerRecord,
    UNKNOWN_USERNAME,
    accumulate_balances,
    compute_user_balance,
)

A, B, C = 1, 2, 3
NAMES = {A: "alice", B: "bob", C: "carol"}
EVERYONE = set(NAMES)


def expense(payer, *lines):
    return LedgerRecord(payer_id=payer, lines=[LedgerLine(debtor, Decimal(str(amount))) for debtor, amount in lines])


def as_dict(entries):
    return {e.id: e.amount for e in entries}


def signed_view(user_id, records, threshold=Decimal("1")):
    summary = compute_user_balance(user_id, records, EVERYONE, NAMES, threshold)
    view = {e.id: Decimal(e.amount) for e in summary.owed_list}
    view.update({e.id: -Decimal(e.amount) for e in summary.owe_list})
    return view


def test_payer_is_owed_debtor_owes():
    records = [expense(A, (B, 50))]

    a = compute_user_balance(A, records, EVERYONE, NAMES)
    b = compute_user_balance(B, records, EVERYONE, NAMES)

    assert as_dict(a.owed_list) == {B: "50.00"}
    assert a.owe_list == []
    assert as_dict(b.owe_list) == {A: "50.00"}
    assert b.owed_list == []
    assert a.owed_list[0].username == "bob"


def test_contributions_are_summed_across_records():
    records = [
        expense(A, (B, 30), (C, 30)),
        expense(B, (A, 10)),
        expense(A, (B, 5)),
    ]
    sheet = accumulate_balances(A, records, EVERYONE)
    assert sheet == {B: Decimal("25"), C: Decimal("30")}


def test_settlement_nets_debt_to_zero():
    records = [
        expense(A, (B, 50)),
        expense(B, (A, 50)),  # settlement: B pays A
    ]
    assert compute_user_balance(A, records, EVERYONE, NAMES).owed_list == []
    assert compute_user_balance(B, records, EVERYONE, NAMES).owe_list == []


@pytest.mark.parametrize("records", [
    [expense(A, (B, 50))],
    [expense(A, (B, 12.5), (C, 7)), expense(B, (A, 3.25))],
    [expense(B, (A, 100)), expense(A, (B, 40)), expense(C, (A, 5), (B, 5))],
    [expense(A, (A, 10), (B, 20)), expense(B, (B, 99))],
])
def test_balances_are_antisymmetric(records):
    for x in EVERYONE:
        for y in EVERYONE - {x}:
            x_view = signed_view(x, records, Decimal("0"))
            y_view = signed_view(y, records, Decimal("0"))
            assert x_view.get(y, Decimal("0")) == -y_view.get(x, Decimal("0"))


def test_threshold_boundary_keeps_exact_unit():
    at_threshold = [expense(A, (B, 1))]
    below = [expense(A, (B, "0.99"))]

    assert as_dict(compute_user_balance(A, at_threshold, EVERYONE, NAMES).owed_list) == {B: "1.00"}
    assert as_dict(compute_user_balance(B, at_threshold, EVERYONE, NAMES).owe_list) == {A: "1.00"}
    assert compute_user_balance(A, below, EVERYONE, NAMES).owed_list == []
    assert compute_user_balance(B, below, EVERYONE, NAMES).owe_list == []


def test_threshold_is_configurable():
    records = [expense(A, (B, "0.50"))]
    summary = compute_user_balance(A, records, EVERYONE, NAMES, threshold=Decimal("0.01"))
    assert as_dict(summary.owed_list) == {B: "0.50"}


@pytest.mark.parametrize("amount", [0, 1, 50, "1234.56"])
def test_self_split_never_contributes(amount):
    records = [expense(A, (A, amount))]
    assert accumulate_balances(A, records, EVERYONE) == {}


def test_unresolved_payer_skips_whole_record():
    ghost = 99
    records = [expense(ghost, (A, 40)), expense(B, (A, 10))]
    sheet = accumulate_balances(A, records, EVERYONE)
    assert sheet == {B: Decimal("-10")}


def test_unresolved_debtor_skips_line_only():
    ghost = 99
    records = [expense(A, (ghost, 40), (B, 10), (None, 5))]
    sheet = accumulate_balances(A, records, EVERYONE)
    assert sheet == {B: Decimal("10")}


def test_record_without_splits_is_ignored():
    records = [LedgerRecord(payer_id=A, lines=None), LedgerRecord(payer_id=None, lines=[])]
    assert accumulate_balances(A, records, EVERYONE) == {}


def test_missing_display_name_falls_back_to_unknown():
    records = [expense(A, (C, 20))]
    summary = compute_user_balance(A, records, EVERYONE, {A: "alice"})
    assert summary.owed_list[0].username == UNKNOWN_USERNAME


def test_decimal_accumulation_has_no_float_drift():
    records = [expense(A, (B, "0.10")) for _ in range(30)]
    summary = compute_user_balance(A, records, EVERYONE, NAMES)
    assert as_dict(summary.owed_list) == {B: "3.00"}
    assert accumulate_balances(A, records, EVERYONE)[B] == Decimal("3.00")


def test_unrelated_records_do_not_leak_in():
    records = [expense(B, (C, 70))]
    summary = compute_user_balance(A, records, EVERYONE, NAMES)
    assert summary.owe_list == [] and summary.owed_list == []
