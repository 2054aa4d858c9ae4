"""
Integration tests for the record store facade.
"""

import pytest
from decimal import Decimal

from proposal_manager.exceptions import StoreError, NotFoundError, ConflictError
from proposal_manager.models import Proposal, Client


class TestRecordStore:

    def test_insert_and_get(self, store):
        record = store.insert('clients', {'name': 'Ana', 'company': 'Loja da Ana'})

        assert record.id is not None
        assert store.get('clients', record.id).company == 'Loja da Ana'

    def test_get_missing_raises_not_found(self, store):
        with pytest.raises(NotFoundError):
            store.get('clients', 999)

    def test_unknown_table(self, store):
        with pytest.raises(StoreError):
            store.select('invoices')

    def test_insert_unknown_column(self, store):
        with pytest.raises(StoreError):
            store.insert('clients', {'name': 'Ana', 'nickname': 'A'})

    def test_insert_constraint_violation_rolls_back(self, store, session):
        with pytest.raises(StoreError) as exc:
            store.insert('clients', {'email': 'sem-nome@test.com'})

        assert exc.value.status_code == 502
        assert exc.value.table == 'clients'
        assert session.query(Client).count() == 0

    def test_select_filters_and_order(self, store):
        for name in ('Carlos', 'Ana', 'Bruno'):
            store.insert('clients', {'name': name, 'company': 'X'})
        store.insert('clients', {'name': 'Zeca', 'company': 'Y'})

        names = [c.name for c in store.select('clients', order_by='name', company='X')]
        assert names == ['Ana', 'Bruno', 'Carlos']

        names = [c.name for c in store.select('clients', order_by='-name')]
        assert names[0] == 'Zeca'

    def test_select_unknown_order_column(self, store):
        with pytest.raises(StoreError):
            store.select('clients', order_by='nope')

    def test_update_bumps_version(self, store, draft_proposal):
        assert draft_proposal.version == 1

        updated = store.update('proposals', draft_proposal.id, {'observations': 'Nota'})

        assert updated.observations == 'Nota'
        assert updated.version == 2

    def test_update_with_matching_version(self, store, draft_proposal):
        updated = store.update('proposals', draft_proposal.id, {'total_monthly': Decimal('10')},
                               expected_version=1)
        assert updated.version == 2

    def test_update_with_stale_version_conflicts(self, store, draft_proposal):
        store.update('proposals', draft_proposal.id, {'observations': 'primeira'})

        with pytest.raises(ConflictError) as exc:
            store.update('proposals', draft_proposal.id, {'observations': 'segunda'}, expected_version=1)

        assert exc.value.status_code == 409
        assert store.get('proposals', draft_proposal.id).observations == 'primeira'

    def test_update_rejects_protected_columns(self, store, draft_proposal):
        with pytest.raises(StoreError):
            store.update('proposals', draft_proposal.id, {'version': 10})
        with pytest.raises(StoreError):
            store.update('proposals', draft_proposal.id, {'unknown': 1})

    def test_delete(self, store, session, draft_proposal):
        store.delete('proposals', draft_proposal.id)
        assert session.query(Proposal).count() == 0

    def test_delete_where_requires_filter(self, store):
        with pytest.raises(StoreError):
            store.delete_where('proposal_items')

    def test_delete_client_detaches_proposals(self, store, saved_proposal, acme):
        proposal_id = saved_proposal.id

        store.delete('clients', acme.id)

        proposal = store.get('proposals', proposal_id)
        assert proposal.client_id is None
        assert proposal.status == 'Salva'

    def test_delete_proposal_keeps_client_and_removes_items(self, store, saved_proposal, acme):
        store.delete('proposals', saved_proposal.id)

        assert store.get('clients', acme.id).name == 'Maria Souza'
        assert store.select('proposal_items') == []
