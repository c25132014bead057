"""Tests for the token ledger: balances, transfers and approvals."""

import pytest

from conftest import ALICE, BOB, CAROL, ZERO, mint
from core.access_control import AccessControlManager
from core.ledger import CarLedger, MAX_BALANCE
from core.ownership import OwnershipManager
from core.exceptions import (
    NotTokenOwner,
    NotApproved,
    InvalidAddress,
    LedgerInconsistency,
    BalanceUnderflow,
    BalanceOverflow,
)
from models import OwnerBalance, EventLog


def _total_balance(db):
    return sum(row.count for row in db.query(OwnerBalance).all())


class TestReads:

    def test_unknown_address_has_zero_balance(self, db):
        assert CarLedger.balance_of(db, ALICE) == 0

    def test_owner_of_unminted_is_zero_address(self, db):
        assert CarLedger.owner_of(db, 42) == ZERO

    def test_malformed_address_rejected(self, db):
        with pytest.raises(InvalidAddress):
            CarLedger.balance_of(db, "not-an-address")

    def test_cars_by_owner_matches_balance(self, db):
        mint(db, ALICE)
        mint(db, BOB)
        mint(db, ALICE)

        assert CarLedger.get_cars_by_owner(db, ALICE) == [0, 2]
        assert CarLedger.get_cars_by_owner(db, BOB) == [1]
        assert CarLedger.get_cars_by_owner(db, CAROL) == []
        assert len(CarLedger.get_cars_by_owner(db, ALICE)) == CarLedger.balance_of(db, ALICE)

    def test_cars_by_owner_detects_drift(self, db):
        mint(db, ALICE)
        row = db.query(OwnerBalance).filter(OwnerBalance.address == ALICE).one()
        row.count = 3
        db.commit()

        with pytest.raises(LedgerInconsistency):
            CarLedger.get_cars_by_owner(db, ALICE)


class TestTransfer:

    def test_transfer_moves_token_and_balances(self, db):
        car = mint(db, ALICE)

        OwnershipManager.transfer(db, ALICE, BOB, car.id)

        assert CarLedger.owner_of(db, car.id) == BOB
        assert CarLedger.balance_of(db, ALICE) == 0
        assert CarLedger.balance_of(db, BOB) == 1
        [event] = db.query(EventLog).filter(EventLog.event_type == "TRANSFER").all()
        assert event.data == {"from": ALICE, "to": BOB, "token_id": car.id}

    def test_non_owner_cannot_transfer(self, db):
        car = mint(db, ALICE)

        with pytest.raises(NotTokenOwner):
            OwnershipManager.transfer(db, BOB, CAROL, car.id)

        assert CarLedger.owner_of(db, car.id) == ALICE
        assert CarLedger.balance_of(db, ALICE) == 1
        assert CarLedger.balance_of(db, CAROL) == 0

    def test_transfer_of_unminted_token_fails(self, db):
        with pytest.raises(NotTokenOwner):
            OwnershipManager.transfer(db, ALICE, BOB, 7)

    def test_transfer_to_self_keeps_balance(self, db):
        car = mint(db, ALICE)
        OwnershipManager.transfer(db, ALICE, ALICE, car.id)
        assert CarLedger.balance_of(db, ALICE) == 1

    def test_balances_sum_to_supply(self, db):
        for owner in (ALICE, ALICE, BOB, CAROL):
            mint(db, owner)
        OwnershipManager.transfer(db, ALICE, BOB, 0)
        OwnershipManager.transfer(db, BOB, CAROL, 2)
        OwnershipManager.transfer(db, CAROL, ALICE, 3)

        assert _total_balance(db) == CarLedger.total_supply(db) == 4


class TestApproval:

    def test_approve_then_take_ownership(self, db):
        car = mint(db, ALICE)
        OwnershipManager.transfer(db, ALICE, BOB, car.id)
        OwnershipManager.approve(db, BOB, CAROL, car.id)

        OwnershipManager.take_ownership(db, CAROL, car.id)

        assert CarLedger.owner_of(db, car.id) == CAROL
        assert CarLedger.balance_of(db, ALICE) == 0
        assert CarLedger.balance_of(db, BOB) == 0
        assert CarLedger.balance_of(db, CAROL) == 1

    def test_only_owner_can_approve(self, db):
        car = mint(db, ALICE)
        with pytest.raises(NotTokenOwner):
            OwnershipManager.approve(db, BOB, BOB, car.id)
        assert CarLedger.get_car(db, car.id).approved_address == ZERO

    def test_new_approval_overwrites_old(self, db):
        car = mint(db, ALICE)
        OwnershipManager.approve(db, ALICE, BOB, car.id)
        OwnershipManager.approve(db, ALICE, CAROL, car.id)

        with pytest.raises(NotApproved):
            OwnershipManager.take_ownership(db, BOB, car.id)
        assert CarLedger.owner_of(db, car.id) == ALICE

    def test_take_without_approval_fails(self, db):
        car = mint(db, ALICE)
        with pytest.raises(NotApproved):
            OwnershipManager.take_ownership(db, BOB, car.id)
        assert CarLedger.balance_of(db, BOB) == 0

    def test_stale_approval_survives_transfer(self, db):
        car = mint(db, ALICE)
        OwnershipManager.approve(db, ALICE, BOB, car.id)
        OwnershipManager.take_ownership(db, BOB, car.id)

        assert CarLedger.get_car(db, car.id).approved_address == BOB

    def test_approval_cleared_when_configured(self, db, settings, monkeypatch):
        monkeypatch.setattr(settings, "clear_approval_on_transfer", True)
        car = mint(db, ALICE)
        OwnershipManager.approve(db, ALICE, BOB, car.id)
        OwnershipManager.take_ownership(db, BOB, car.id)

        assert CarLedger.get_car(db, car.id).approved_address == ZERO


class TestCheckedBalances:

    def test_underflow_on_empty_balance(self, db):
        with pytest.raises(BalanceUnderflow):
            CarLedger.adjust_balance(db, ALICE, -1)
        db.rollback()

        assert CarLedger.balance_of(db, ALICE) == 0
        assert db.query(OwnerBalance).count() == 0

    def test_overflow_reverts_mint(self, db):
        db.add(OwnerBalance(address=ALICE, count=MAX_BALANCE))
        db.commit()

        with pytest.raises(BalanceOverflow):
            mint(db, ALICE)

        assert CarLedger.total_supply(db) == 0
        assert CarLedger.balance_of(db, ALICE) == MAX_BALANCE
        assert AccessControlManager.get_state(db).creation_counter == 0
        assert db.query(EventLog).filter(EventLog.event_type == "NEW_CAR").count() == 0

    def test_overflow_reverts_transfer(self, db):
        car = mint(db, ALICE)
        db.add(OwnerBalance(address=BOB, count=MAX_BALANCE))
        db.commit()

        with pytest.raises(BalanceOverflow):
            OwnershipManager.transfer(db, ALICE, BOB, car.id)

        assert CarLedger.owner_of(db, car.id) == ALICE
        assert CarLedger.balance_of(db, ALICE) == 1
        assert CarLedger.balance_of(db, BOB) == MAX_BALANCE
        assert CarLedger.total_supply(db) == 1
