"""Client service - create, edit, list/search and detail."""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import or_

from proposal_manager.models import Client, Proposal
from proposal_manager.exceptions import ValidationError
from proposal_manager.services.record_store import RecordStore
from proposal_manager.utils.formatters import optional_text

logger = logging.getLogger(__name__)


def create_client(store: RecordStore, name: str, email: Optional[str] = None,
                  phone: Optional[str] = None, company: Optional[str] = None) -> Client:
    """
    Create a client.

    Raises:
        ValidationError: name is blank
    """
    name = optional_text(name)
    if not name:
        raise ValidationError('O nome do cliente é obrigatório.')

    client = store.insert('clients', {
        'name': name,
        'email': optional_text(email),
        'phone': optional_text(phone),
        'company': optional_text(company),
    })
    logger.info(f"Client {client.id} created: {client.name}")
    return client


def update_client(store: RecordStore, client_id: int, name: str, email: Optional[str] = None,
                  phone: Optional[str] = None, company: Optional[str] = None) -> Client:
    """
    Replace the contact fields of a client.

    Raises:
        NotFoundError: unknown client
        ValidationError: name is blank
    """
    name = optional_text(name)
    if not name:
        raise ValidationError('O nome do cliente é obrigatório.')

    client = store.update('clients', client_id, {
        'name': name,
        'email': optional_text(email),
        'phone': optional_text(phone),
        'company': optional_text(company),
    })
    logger.info(f"Client {client.id} updated: {client.name}")
    return client


def list_clients(session, search: Optional[str] = None) -> List[Client]:
    """Clients by name, optionally filtered on name, company or email."""
    query = session.query(Client)

    search = optional_text(search)
    if search:
        query = query.filter(
            or_(
                Client.name.ilike(f'%{search}%'),
                Client.company.ilike(f'%{search}%'),
                Client.email.ilike(f'%{search}%'),
            )
        )

    return query.order_by(Client.name).all()


def get_client_detail(store: RecordStore, client_id: int) -> Dict[str, Any]:
    """Client plus its proposals, newest first."""
    client = store.get('clients', client_id)
    proposals = store.select('proposals', order_by='-created_at', client_id=client.id)

    data = client.to_dict()
    data['proposals'] = [proposal.to_dict() for proposal in proposals]
    return data


def delete_client(store: RecordStore, client_id: int) -> None:
    """Delete a client; its proposals stay, detached."""
    store.delete('clients', client_id)
    logger.info(f"Client {client_id} deleted")
