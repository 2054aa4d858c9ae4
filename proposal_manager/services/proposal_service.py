"""
Proposal service - create, list, view, delete, observations and PDF export.

The cart, pricing and status modules own the rules; this module stitches
them together for the web layer.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple
from io import BytesIO

from sqlalchemy import or_, cast, String

from proposal_manager.models import Proposal, ProposalStatus, Client
from proposal_manager.exceptions import ProposalAppError, RenderError
from proposal_manager.services.pricing_service import Discount, compute_totals, quantize_money
from proposal_manager.services.proposal_cart_service import cart_entry
from proposal_manager.services.proposal_status_service import parse_status, ensure_exportable
from proposal_manager.services.proposal_pdf_service import render_proposal_pdf, proposal_filename, coerce_theme
from proposal_manager.services.record_store import RecordStore
from proposal_manager.utils.formatters import optional_text

logger = logging.getLogger(__name__)


def create_proposal(store: RecordStore, user_id: Optional[int] = None,
                    client_id: Optional[int] = None) -> Proposal:
    """
    Create an empty proposal.

    Without a client it starts in Rascunho; with one it starts directly in
    Salva (the "new proposal for this client" flow).
    """
    row = {'user_id': user_id, 'status': ProposalStatus.DRAFT.value}
    if client_id is not None:
        client = store.get('clients', client_id)
        row.update(client_id=client.id, status=ProposalStatus.SAVED.value)

    proposal = store.insert('proposals', row)
    logger.info(f"Proposal {proposal.id} created (status={proposal.status}, client={proposal.client_id})")
    return proposal


def list_proposals(session, status: Optional[str] = None, search: Optional[str] = None) -> List[Proposal]:
    """Proposals, newest first, optionally filtered by status token and free text."""
    query = session.query(Proposal).outerjoin(Client, Proposal.client_id == Client.id)

    if status:
        query = query.filter(Proposal.status == parse_status(status).value)

    search = optional_text(search)
    if search:
        query = query.filter(
            or_(
                Client.name.ilike(f'%{search}%'),
                Client.company.ilike(f'%{search}%'),
                Proposal.observations.ilike(f'%{search}%'),
                cast(Proposal.id, String).like(f'%{search}%'),
            )
        )

    return query.order_by(Proposal.created_at.desc(), Proposal.id.desc()).all()


def proposal_items(store: RecordStore, proposal_id: int) -> List[Dict[str, Any]]:
    """Items of a proposal joined with plan and service data, in insertion order."""
    items = store.select('proposal_items', order_by='id', proposal_id=proposal_id)
    return [cart_entry(item.plan) for item in items]


def delivery_time_days(items: List[Dict[str, Any]]) -> int:
    """Longest delivery time among one-time plans (setup fee only); 0 when none."""
    one_time = [
        item for item in items
        if (item.get('setup_fee') or 0) > 0 and not (item.get('monthly_fee') or 0)
    ]
    return max((item.get('delivery_time_days') or 0 for item in one_time), default=0)


def get_proposal_view(store: RecordStore, proposal_id: int) -> Dict[str, Any]:
    """
    Proposal joined with its client and items.

    Stored totals are the snapshot from the last finalize; live totals are
    recomputed from the current items and totals_stale flags a difference.
    """
    proposal = store.get('proposals', proposal_id)
    items = proposal_items(store, proposal_id)
    live = compute_totals(items, Discount.absolute(proposal.discount_value or 0))

    stale = (
        quantize_money(live.monthly) != quantize_money(proposal.total_monthly or 0)
        or quantize_money(live.setup) != quantize_money(proposal.total_setup or 0)
    )

    data = proposal.to_dict()
    data.update({
        'client': proposal.client.to_dict() if proposal.client else None,
        'items': items,
        'live_totals': live.to_dict(),
        'totals_stale': stale,
        'delivery_time_days': delivery_time_days(items),
    })
    return data


def delete_proposal(store: RecordStore, proposal_id: int) -> None:
    """Delete a proposal and its items; the client is left untouched."""
    store.delete('proposals', proposal_id)
    logger.info(f"Proposal {proposal_id} deleted")


def update_observations(store: RecordStore, proposal_id: int, observations: Optional[str],
                        expected_version: Optional[int] = None) -> Proposal:
    return store.update(
        'proposals', proposal_id,
        {'observations': optional_text(observations)},
        expected_version=expected_version
    )


def export_proposal_pdf(store: RecordStore, proposal_id: int, theme=None,
                        business_info: Optional[Dict[str, Any]] = None) -> Tuple[BytesIO, str]:
    """
    Render the proposal PDF.

    Returns:
        (buffer, download filename)

    Raises:
        ValidationError: proposal is still a draft or has no client
        RenderError: the document could not be generated
    """
    from proposal_manager.blueprints.metrics import record_pdf_render

    proposal = store.get('proposals', proposal_id)
    ensure_exportable(proposal)
    theme = coerce_theme(theme)

    client = proposal.client.to_dict()
    # The document describes each item with its plan's deliverables
    items = [dict(item, description=item.get('deliverables')) for item in proposal_items(store, proposal_id)]

    try:
        buffer = render_proposal_pdf(proposal.to_dict(), client, items, theme, business_info)
    except ProposalAppError:
        record_pdf_render(theme.value, 'error')
        raise
    except Exception as e:
        logger.exception(f"Unexpected error rendering proposal {proposal_id}: {e}")
        record_pdf_render(theme.value, 'error')
        raise RenderError() from e

    record_pdf_render(theme.value, 'success')
    logger.info(f"Proposal {proposal_id} exported as PDF ({theme.value})")
    return buffer, proposal_filename(client)
