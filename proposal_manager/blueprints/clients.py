"""Clients blueprint."""
from flask import Blueprint, jsonify, request

from proposal_manager.database import get_session
from proposal_manager.forms.client_forms import ClientForm, first_error
from proposal_manager.middleware import require_login, require_admin
from proposal_manager.services.client_service import (
    create_client,
    update_client,
    list_clients,
    get_client_detail,
    delete_client
)
from proposal_manager.services.record_store import RecordStore

clients_bp = Blueprint('clients', __name__, url_prefix='/clients')


@clients_bp.route('', methods=['GET'])
@require_login
def index():
    """List clients; ?q= filters by name, company or email."""
    clients = list_clients(get_session(), request.args.get('q', ''))
    return jsonify({'clients': [client.to_dict() for client in clients]})


@clients_bp.route('', methods=['POST'])
@require_login
def create():
    form = ClientForm()
    if not form.validate_on_submit():
        return jsonify({'status': 'error', 'message': first_error(form)}), 400

    client = create_client(
        RecordStore(get_session()),
        name=form.name.data,
        email=form.email.data,
        phone=form.phone.data,
        company=form.company.data
    )
    return jsonify(client.to_dict()), 201


@clients_bp.route('/<int:client_id>', methods=['GET'])
@require_login
def detail(client_id):
    return jsonify(get_client_detail(RecordStore(get_session()), client_id))


@clients_bp.route('/<int:client_id>', methods=['PUT'])
@require_login
def update(client_id):
    """Replace name, email, phone and company."""
    form = ClientForm()
    if not form.validate_on_submit():
        return jsonify({'status': 'error', 'message': first_error(form)}), 400

    client = update_client(
        RecordStore(get_session()),
        client_id,
        name=form.name.data,
        email=form.email.data,
        phone=form.phone.data,
        company=form.company.data
    )
    return jsonify(client.to_dict())


@clients_bp.route('/<int:client_id>', methods=['DELETE'])
@require_login
@require_admin
def delete(client_id):
    """Admins only. Proposals of the client are kept without a client."""
    delete_client(RecordStore(get_session()), client_id)
    return jsonify({'status': 'ok'})
