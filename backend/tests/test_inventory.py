# Overview: Pytest coverage for concession stock: registration, activation and adjustments.

import pytest

from cinema.errors import ConflictError, InvalidStateError, NotFoundError, ValidationError
from cinema.models import AuditLog, InventoryAdjustment, InventoryItem
from cinema.services import inventory_service
from cinema.services.audit_service import AuditLogger
from cinema.services.sales_service import SaleAggregate
from cinema.validation import InventoryAdjustmentInput, InventoryItemInput, ProductItemInput

from conftest import CASHIER_CPF, MANAGER_CPF


class TestCreateItem:

    def test_duplicate_sku_conflicts(self, db_session, company_a, popcorn_a):
        data = InventoryItemInput.from_payload({"sku": "popcorn-l", "name": "Outra", "unit_price_cents": 100})
        with pytest.raises(ConflictError):
            inventory_service.create_item(db_session, company_a.id, data)

    def test_same_sku_in_other_company(self, db_session, company_b, popcorn_a):
        data = InventoryItemInput.from_payload({"sku": "POPCORN-L", "name": "Pipoca", "unit_price_cents": 2000})
        item = inventory_service.create_item(db_session, company_b.id, data)
        assert item.company_id == company_b.id


class TestActivation:

    def test_deactivated_item_cannot_be_sold(self, db_session, company_a, popcorn_a):
        item = inventory_service.set_item_active(db_session, company_a.id, "popcorn-l", False)
        assert item.is_active is False

        aggregate = SaleAggregate(db_session, company_a.id)
        sale = aggregate.create(CASHIER_CPF)
        with pytest.raises(NotFoundError):
            aggregate.add_item(sale.id, ProductItemInput("POPCORN-L", 1))

    def test_reactivated_item_sells_again(self, db_session, company_a, popcorn_a):
        inventory_service.set_item_active(db_session, company_a.id, "POPCORN-L", False)
        inventory_service.set_item_active(db_session, company_a.id, "POPCORN-L", True)

        aggregate = SaleAggregate(db_session, company_a.id)
        sale = aggregate.create(CASHIER_CPF)
        line = aggregate.add_item(sale.id, ProductItemInput("POPCORN-L", 2))
        assert line.line_total_cents == 5000

    def test_only_state_changes_are_audited(self, db_session, company_a, popcorn_a):
        audit = AuditLogger(db_session, company_a.id, actor_cpf=MANAGER_CPF)
        inventory_service.set_item_active(db_session, company_a.id, "POPCORN-L", False, audit=audit)
        inventory_service.set_item_active(db_session, company_a.id, "POPCORN-L", False, audit=audit)

        actions = [row.action for row in db_session.query(AuditLog).all()]
        assert actions == ["DEACTIVATE_INVENTORY_ITEM"]

    def test_unknown_sku(self, db_session, company_a):
        with pytest.raises(NotFoundError):
            inventory_service.set_item_active(db_session, company_a.id, "NOPE", False)

    def test_other_company_cannot_touch_item(self, db_session, company_b, popcorn_a):
        with pytest.raises(NotFoundError):
            inventory_service.set_item_active(db_session, company_b.id, "POPCORN-L", False)


class TestAdjustments:

    def test_restock_and_damage(self, db_session, company_a, popcorn_a):
        restock = inventory_service.record_adjustment(
            db_session, company_a.id, "POPCORN-L",
            InventoryAdjustmentInput(delta=10, reason="RESTOCK"),
            actor_cpf=MANAGER_CPF,
        )
        damage = inventory_service.record_adjustment(
            db_session, company_a.id, "POPCORN-L",
            InventoryAdjustmentInput(delta=-3, reason="DAMAGE", notes="Bag torn"),
        )

        assert (restock.qty_before, restock.qty_after) == (5, 15)
        assert (damage.qty_before, damage.qty_after) == (15, 12)
        assert restock.actor_cpf == MANAGER_CPF
        db_session.refresh(popcorn_a)
        assert popcorn_a.qty_on_hand == 12
        assert db_session.query(InventoryAdjustment).count() == 2

    def test_cannot_go_negative(self, db_session, company_a, popcorn_a):
        with pytest.raises(InvalidStateError) as exc_info:
            inventory_service.record_adjustment(
                db_session, company_a.id, "POPCORN-L",
                InventoryAdjustmentInput(delta=-6, reason="THEFT"),
            )

        assert exc_info.value.details == {"current_stock": 5, "requested_change": -6, "resulting_stock": -1}
        assert db_session.query(InventoryAdjustment).count() == 0
        assert db_session.query(InventoryItem).filter_by(sku="POPCORN-L").one().qty_on_hand == 5

    def test_adjustment_payload(self):
        data = InventoryAdjustmentInput.from_payload({"delta": "-2", "reason": "count_correction"})
        assert data.delta == -2
        assert data.reason == "COUNT_CORRECTION"

        with pytest.raises(ValidationError):
            InventoryAdjustmentInput.from_payload({"delta": 0, "reason": "RESTOCK"})
        with pytest.raises(ValidationError):
            InventoryAdjustmentInput.from_payload({"delta": 1, "reason": "GIFT"})
