"""
Proposal cart (builder) - working set of plans for one proposal.

Unlike a session cart, every add/remove is written to the record store before
the in-memory list changes, so a reload (load()) always recovers the same
state. Only the discount stays local until finalize().
"""

import logging
from typing import Any, Dict, List, Optional

from proposal_manager.exceptions import ValidationError, NotFoundError
from proposal_manager.services.pricing_service import (
    Discount, ProposalTotals, compute_totals, quantize_money
)
from proposal_manager.services.record_store import RecordStore

logger = logging.getLogger(__name__)


def cart_entry(plan, service_name: Optional[str] = None) -> Dict[str, Any]:
    """Denormalized cart entry: the plan's fields plus its service name."""
    entry = plan.to_dict()
    entry['service_name'] = service_name if service_name is not None else plan.service.name
    return entry


class ProposalCart:
    """In-memory mirror of a proposal's items, kept in sync with the store."""

    def __init__(self, store: RecordStore, proposal_id: int):
        self.store = store
        self.proposal_id = proposal_id
        self.entries: List[Dict[str, Any]] = []
        self.discount = Discount.none()

    def load(self) -> 'ProposalCart':
        """Rebuild entries from proposal_items (source of truth after a reload)."""
        proposal = self.store.get('proposals', self.proposal_id)
        items = self.store.select('proposal_items', order_by='id', proposal_id=self.proposal_id)
        self.entries = [cart_entry(item.plan) for item in items]
        self.discount = Discount.absolute(proposal.discount_value or 0)
        return self

    def contains(self, plan_id: int) -> bool:
        return any(entry['id'] == plan_id for entry in self.entries)

    @property
    def plan_ids(self) -> List[int]:
        return [entry['id'] for entry in self.entries]

    def add_item(self, plan, service_name: Optional[str] = None) -> Dict[str, Any]:
        """Insert the proposal item, then append the plan to the cart."""
        if self.contains(plan.id):
            raise ValidationError(f'O plano "{plan.plan_name}" já está na proposta.')

        self.store.insert('proposal_items', {
            'proposal_id': self.proposal_id,
            'service_plan_id': plan.id,
        })

        entry = cart_entry(plan, service_name)
        self.entries.append(entry)
        logger.info(f"Plan {plan.id} added to proposal {self.proposal_id}")
        return entry

    def remove_item(self, plan_id: int) -> None:
        """Delete the proposal item(s) for this plan, then drop it from the cart."""
        deleted = self.store.delete_where(
            'proposal_items',
            proposal_id=self.proposal_id,
            service_plan_id=plan_id
        )
        if not deleted and not self.contains(plan_id):
            raise NotFoundError('Item não encontrado no carrinho.')

        self.entries = [entry for entry in self.entries if entry['id'] != plan_id]
        logger.info(f"Plan {plan_id} removed from proposal {self.proposal_id}")

    def set_discount(self, discount: Discount) -> None:
        """Local only; persisted by finalize()."""
        self.discount = discount

    def totals(self) -> ProposalTotals:
        return compute_totals(self.entries, self.discount)

    def finalize(self, expected_version: Optional[int] = None) -> ProposalTotals:
        """
        Persist the computed totals onto the proposal.

        The only point where derived totals become durable. Calling it twice
        with the same cart and discount writes the same values.
        """
        totals = self.totals()
        if totals.is_negative:
            raise ValidationError('O desconto não pode ser maior que o valor total da proposta.')

        self.store.update('proposals', self.proposal_id, {
            'total_monthly': quantize_money(totals.monthly),
            'total_setup': quantize_money(totals.setup),
            'discount_value': quantize_money(totals.discount_amount),
        }, expected_version=expected_version)

        logger.info(
            f"Proposal {self.proposal_id} finalized: monthly={totals.monthly} "
            f"setup={totals.setup} discount={totals.discount_amount}"
        )
        return totals

    def to_dict(self):
        return {
            'proposal_id': self.proposal_id,
            'items': self.entries,
            'discount': self.discount.to_dict(),
            'totals': self.totals().to_dict(),
        }
