"""
Integration tests for the proposal builder cart.
"""

import pytest
from decimal import Decimal
from unittest.mock import patch

from proposal_manager.exceptions import ValidationError, NotFoundError, StoreError
from proposal_manager.services.pricing_service import Discount
from proposal_manager.services.proposal_cart_service import ProposalCart


def item_plan_ids(store, proposal_id):
    return [item.service_plan_id for item in store.select('proposal_items', order_by='id', proposal_id=proposal_id)]


class TestProposalCart:

    def test_add_item_persists_before_append(self, store, draft_proposal, catalog):
        cart = ProposalCart(store, draft_proposal.id).load()
        plan = catalog['monthly_plan']

        entry = cart.add_item(plan)

        assert entry['service_name'] == 'Gestão de Tráfego'
        assert entry['plan_name'] == 'Mensal'
        assert cart.plan_ids == [plan.id]
        assert item_plan_ids(store, draft_proposal.id) == [plan.id]

    def test_duplicate_plan_rejected(self, store, draft_proposal, catalog):
        cart = ProposalCart(store, draft_proposal.id).load()
        cart.add_item(catalog['monthly_plan'])

        with pytest.raises(ValidationError):
            cart.add_item(catalog['monthly_plan'])

        assert len(item_plan_ids(store, draft_proposal.id)) == 1

    def test_store_failure_leaves_cart_untouched(self, store, draft_proposal, catalog):
        cart = ProposalCart(store, draft_proposal.id).load()

        with patch.object(store, 'insert', side_effect=StoreError('falhou', 'proposal_items')):
            with pytest.raises(StoreError):
                cart.add_item(catalog['monthly_plan'])

        assert cart.entries == []

    def test_add_then_remove_restores_items(self, store, draft_proposal, catalog):
        cart = ProposalCart(store, draft_proposal.id).load()
        cart.add_item(catalog['monthly_plan'])
        before = item_plan_ids(store, draft_proposal.id)

        cart.add_item(catalog['setup_plan'])
        cart.remove_item(catalog['setup_plan'].id)

        assert item_plan_ids(store, draft_proposal.id) == before
        assert cart.plan_ids == before

    def test_remove_unknown_plan(self, store, draft_proposal):
        cart = ProposalCart(store, draft_proposal.id).load()
        with pytest.raises(NotFoundError):
            cart.remove_item(12345)

    def test_load_rebuilds_entries_and_discount(self, store, saved_proposal, catalog):
        store.update('proposals', saved_proposal.id, {'discount_value': Decimal('20.00')})

        cart = ProposalCart(store, saved_proposal.id).load()

        assert cart.plan_ids == [catalog['monthly_plan'].id, catalog['setup_plan'].id]
        assert cart.discount == Discount.absolute(20)
        assert cart.totals().final == Decimal('130')

    def test_set_discount_is_local(self, store, draft_proposal, catalog):
        cart = ProposalCart(store, draft_proposal.id).load()
        cart.add_item(catalog['monthly_plan'])
        cart.add_item(catalog['setup_plan'])

        cart.set_discount(Discount.percentage(10))

        assert cart.totals().final == Decimal('135')
        assert store.get('proposals', draft_proposal.id).discount_value == Decimal('0')

    def test_finalize_persists_rounded_totals(self, store, draft_proposal, catalog):
        cart = ProposalCart(store, draft_proposal.id).load()
        cart.add_item(catalog['monthly_plan'])
        cart.add_item(catalog['setup_plan'])
        cart.set_discount(Discount.percentage('33.333'))

        cart.finalize()

        proposal = store.get('proposals', draft_proposal.id)
        assert proposal.total_monthly == Decimal('100.00')
        assert proposal.total_setup == Decimal('50.00')
        assert proposal.discount_value == Decimal('50.00')

    def test_finalize_is_idempotent(self, store, draft_proposal, catalog):
        cart = ProposalCart(store, draft_proposal.id).load()
        cart.add_item(catalog['monthly_plan'])
        cart.add_item(catalog['setup_plan'])
        cart.set_discount(Discount.absolute(20))

        cart.finalize()
        first = store.get('proposals', draft_proposal.id)
        snapshot = (first.total_monthly, first.total_setup, first.discount_value)

        cart.finalize()
        second = store.get('proposals', draft_proposal.id)

        assert (second.total_monthly, second.total_setup, second.discount_value) == snapshot

    def test_finalize_refuses_negative_total(self, store, draft_proposal, catalog):
        cart = ProposalCart(store, draft_proposal.id).load()
        cart.add_item(catalog['setup_plan'])
        cart.set_discount(Discount.absolute(60))

        with pytest.raises(ValidationError):
            cart.finalize()

        assert store.get('proposals', draft_proposal.id).total_setup == Decimal('0')

    def test_to_dict(self, store, saved_proposal):
        data = ProposalCart(store, saved_proposal.id).load().to_dict()

        assert data['proposal_id'] == saved_proposal.id
        assert len(data['items']) == 2
        assert data['totals']['final'] == Decimal('150')
