"""
Proposal status lifecycle.

    Rascunho -> Salva -> Enviada -> Aceita | Recusada

Only two rules are enforced: nothing goes back to Rascunho, and leaving
Rascunho for Salva needs a client. Any other move (including lateral ones such
as Aceita -> Enviada) is applied as requested.
"""

import enum
import logging
from typing import Optional

from proposal_manager.models import Proposal, ProposalStatus
from proposal_manager.exceptions import ValidationError
from proposal_manager.services.record_store import RecordStore

logger = logging.getLogger(__name__)


class TransitionOutcome(enum.Enum):
    APPLIED = 'applied'
    REJECTED = 'rejected'
    CLIENT_REQUIRED = 'client_required'


class TransitionResult:
    """Outcome of a requested status change."""

    def __init__(self, outcome: TransitionOutcome, status: ProposalStatus, message: Optional[str] = None):
        self.outcome = outcome
        self.status = status
        self.message = message

    @property
    def applied(self) -> bool:
        return self.outcome is TransitionOutcome.APPLIED

    @property
    def client_required(self) -> bool:
        return self.outcome is TransitionOutcome.CLIENT_REQUIRED

    def to_dict(self):
        return {
            'outcome': self.outcome.value,
            'status': self.status.value,
            'message': self.message,
        }

    def __repr__(self):
        return f"<TransitionResult(outcome={self.outcome.value}, status='{self.status.value}')>"


def parse_status(value) -> ProposalStatus:
    """Map a boundary token ('Salva', ...) to ProposalStatus."""
    if isinstance(value, ProposalStatus):
        return value
    try:
        return ProposalStatus(value)
    except ValueError:
        raise ValidationError(
            f'Status inválido: {value!r}. Valores aceitos: {", ".join(ProposalStatus.values())}.'
        )


def transition(current, requested, has_client: bool) -> TransitionResult:
    """
    Decide the next status without touching storage.

    Returns a TransitionResult whose status is the status the proposal ends
    up in (unchanged unless the outcome is APPLIED).
    """
    current = parse_status(current)
    requested = parse_status(requested)

    if requested is ProposalStatus.DRAFT:
        return TransitionResult(
            TransitionOutcome.REJECTED, current,
            'Não é possível voltar para Rascunho.'
        )

    if current is ProposalStatus.DRAFT and requested is ProposalStatus.SAVED and not has_client:
        return TransitionResult(
            TransitionOutcome.CLIENT_REQUIRED, current,
            'Selecione um cliente para salvar a proposta.'
        )

    return TransitionResult(TransitionOutcome.APPLIED, requested)


def change_status(store: RecordStore, proposal_id: int, requested,
                  expected_version: Optional[int] = None) -> TransitionResult:
    """
    Apply a status change and persist it immediately.

    REJECTED and CLIENT_REQUIRED outcomes leave the proposal untouched; the
    caller decides how to surface them (client-required opens client selection).
    """
    proposal = store.get('proposals', proposal_id)
    result = transition(proposal.status, requested, proposal.has_client)

    if not result.applied:
        logger.info(
            f"Status change {proposal.status} -> {requested} on proposal {proposal_id}: {result.outcome.value}"
        )
        return result

    store.update('proposals', proposal_id, {'status': result.status.value}, expected_version=expected_version)
    logger.info(f"Proposal {proposal_id} status set to {result.status.value}")
    return result


def attach_client_and_save(store: RecordStore, proposal_id: int, client_id: int,
                           expected_version: Optional[int] = None) -> Proposal:
    """Link a client and move the proposal to Salva in a single update."""
    client = store.get('clients', client_id)
    proposal = store.update(
        'proposals', proposal_id,
        {'client_id': client.id, 'status': ProposalStatus.SAVED.value},
        expected_version=expected_version
    )
    logger.info(f"Client {client.id} attached to proposal {proposal_id}; status {proposal.status}")
    return proposal


def ensure_exportable(proposal: Proposal) -> None:
    """Raise ValidationError unless the proposal may be downloaded as PDF."""
    if proposal.is_draft:
        raise ValidationError('Você precisa salvar a proposta antes de baixar o PDF.')
    if not proposal.has_client or proposal.client is None:
        raise ValidationError('Cliente não encontrado para esta proposta.')
