"""Proposals blueprint - list/create/view, builder cart, status and PDF export."""
from flask import Blueprint, jsonify, request, session, send_file, current_app, g

from proposal_manager.database import get_session
from proposal_manager.exceptions import ValidationError
from proposal_manager.middleware import require_login
from proposal_manager.services.catalog_service import get_plan
from proposal_manager.services.pricing_service import Discount, DiscountKind
from proposal_manager.services.proposal_cart_service import ProposalCart
from proposal_manager.services.proposal_service import (
    create_proposal,
    list_proposals,
    get_proposal_view,
    delete_proposal,
    update_observations,
    export_proposal_pdf
)
from proposal_manager.services.proposal_status_service import (
    change_status,
    attach_client_and_save,
    TransitionOutcome
)
from proposal_manager.services.record_store import RecordStore
from proposal_manager.utils.number_format import parse_br_number

proposals_bp = Blueprint('proposals', __name__, url_prefix='/proposals')

PENDING_DISCOUNTS_KEY = 'proposal_discounts'


def _store():
    return RecordStore(get_session())


def _json_body():
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError('O corpo da requisição deve ser um objeto JSON.')
    return data


def _expected_version(data):
    """Optional 'version' field used for compare-and-swap updates."""
    version = data.get('version')
    if version is None or version == '':
        return None
    try:
        return int(version)
    except (TypeError, ValueError):
        raise ValidationError('Versão inválida.')


def _int_field(data, name, label):
    value = data.get(name)
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f'{label} é obrigatório.')


def get_pending_discount(proposal_id):
    """Unfinalized discount chosen in the builder, kept in the Flask session."""
    stored = session.get(PENDING_DISCOUNTS_KEY, {}).get(str(proposal_id))
    if not stored:
        return None
    return Discount(DiscountKind(stored['kind']), stored['value'])


def set_pending_discount(proposal_id, discount):
    pending = session.get(PENDING_DISCOUNTS_KEY, {})
    pending[str(proposal_id)] = {'kind': discount.kind.value, 'value': str(discount.value)}
    session[PENDING_DISCOUNTS_KEY] = pending
    session.modified = True


def clear_pending_discount(proposal_id):
    pending = session.get(PENDING_DISCOUNTS_KEY, {})
    if pending.pop(str(proposal_id), None) is not None:
        session[PENDING_DISCOUNTS_KEY] = pending
        session.modified = True


def load_cart(store, proposal_id):
    """Cart rebuilt from the store, with the session's pending discount applied."""
    cart = ProposalCart(store, proposal_id).load()
    pending = get_pending_discount(proposal_id)
    if pending is not None:
        cart.set_discount(pending)
    return cart


def parse_discount(data):
    """Builder input {"percentage": p} or {"amount": v} -> Discount."""
    if 'percentage' in data:
        kind, raw = DiscountKind.PERCENTAGE, data['percentage']
    elif 'amount' in data:
        kind, raw = DiscountKind.ABSOLUTE, data['amount']
    else:
        raise ValidationError('Informe "percentage" ou "amount".')

    try:
        value = parse_br_number(raw)
    except ValueError as e:
        raise ValidationError(str(e))
    return Discount(kind, value)


@proposals_bp.route('', methods=['GET'])
@require_login
def index():
    """List proposals; ?status= (token) and ?q= (client, company, observations, id)."""
    proposals = list_proposals(
        get_session(),
        status=request.args.get('status') or None,
        search=request.args.get('q', '')
    )
    return jsonify({'proposals': [
        dict(proposal.to_dict(), client=proposal.client.to_dict() if proposal.client else None)
        for proposal in proposals
    ]})


@proposals_bp.route('', methods=['POST'])
@require_login
def create():
    """Create an empty proposal; optional client_id starts it as Salva."""
    data = _json_body()
    client_id = data.get('client_id')
    if client_id is not None:
        client_id = _int_field(data, 'client_id', 'Cliente')

    proposal = create_proposal(_store(), user_id=g.ctx.user_id, client_id=client_id)
    return jsonify(proposal.to_dict()), 201


@proposals_bp.route('/<int:proposal_id>', methods=['GET'])
@require_login
def view(proposal_id):
    return jsonify(get_proposal_view(_store(), proposal_id))


@proposals_bp.route('/<int:proposal_id>', methods=['DELETE'])
@require_login
def delete(proposal_id):
    delete_proposal(_store(), proposal_id)
    clear_pending_discount(proposal_id)
    return jsonify({'status': 'ok'})


# Builder cart

@proposals_bp.route('/<int:proposal_id>/cart', methods=['GET'])
@require_login
def cart_view(proposal_id):
    return jsonify(load_cart(_store(), proposal_id).to_dict())


@proposals_bp.route('/<int:proposal_id>/cart/items', methods=['POST'])
@require_login
def cart_add(proposal_id):
    data = _json_body()
    plan_id = _int_field(data, 'plan_id', 'Plano')

    store = _store()
    cart = load_cart(store, proposal_id)
    cart.add_item(get_plan(store, plan_id))
    return jsonify(cart.to_dict()), 201


@proposals_bp.route('/<int:proposal_id>/cart/items/<int:plan_id>', methods=['DELETE'])
@require_login
def cart_remove(proposal_id, plan_id):
    cart = load_cart(_store(), proposal_id)
    cart.remove_item(plan_id)
    return jsonify(cart.to_dict())


@proposals_bp.route('/<int:proposal_id>/cart/discount', methods=['PUT'])
@require_login
def cart_discount(proposal_id):
    """Set the pending discount; nothing is persisted until finalize."""
    discount = parse_discount(_json_body())

    cart = load_cart(_store(), proposal_id)
    cart.set_discount(discount)
    set_pending_discount(proposal_id, discount)
    return jsonify(cart.to_dict())


@proposals_bp.route('/<int:proposal_id>/finalize', methods=['POST'])
@require_login
def finalize(proposal_id):
    """Persist totals computed from the cart and the pending discount."""
    data = _json_body()
    store = _store()

    cart = load_cart(store, proposal_id)
    totals = cart.finalize(expected_version=_expected_version(data))
    clear_pending_discount(proposal_id)

    proposal = store.get('proposals', proposal_id)
    return jsonify({'proposal': proposal.to_dict(), 'totals': totals.to_dict()})


# Status lifecycle

@proposals_bp.route('/<int:proposal_id>/status', methods=['POST'])
@require_login
def update_status(proposal_id):
    """
    Request a status change.

    200 when applied, 400 when rejected (back to Rascunho),
    422 when a client must be selected first.
    """
    from proposal_manager.blueprints.metrics import record_status_change

    data = _json_body()
    if not data.get('status'):
        raise ValidationError('Informe o status.')

    store = _store()
    result = change_status(store, proposal_id, data['status'], expected_version=_expected_version(data))

    body = {
        'outcome': result.outcome.value,
        'message': result.message,
        'proposal': store.get('proposals', proposal_id).to_dict(),
    }

    if result.outcome is TransitionOutcome.REJECTED:
        return jsonify(dict(body, status='error')), 400
    if result.outcome is TransitionOutcome.CLIENT_REQUIRED:
        return jsonify(dict(body, status='error')), 422

    record_status_change(result.status.value)
    return jsonify(dict(body, status='ok'))


@proposals_bp.route('/<int:proposal_id>/client', methods=['POST'])
@require_login
def attach_client(proposal_id):
    """Link a client and save the proposal (status Salva)."""
    from proposal_manager.blueprints.metrics import record_status_change

    data = _json_body()
    client_id = _int_field(data, 'client_id', 'Cliente')

    proposal = attach_client_and_save(
        _store(), proposal_id, client_id, expected_version=_expected_version(data)
    )
    record_status_change(proposal.status)
    return jsonify(proposal.to_dict())


@proposals_bp.route('/<int:proposal_id>/observations', methods=['PUT'])
@require_login
def observations(proposal_id):
    data = _json_body()
    proposal = update_observations(
        _store(), proposal_id, data.get('observations'),
        expected_version=_expected_version(data)
    )
    return jsonify(proposal.to_dict())


# Export

@proposals_bp.route('/<int:proposal_id>/pdf', methods=['GET'])
@require_login
def download_pdf(proposal_id):
    """Download the proposal as PDF (?theme=pills|classic)."""
    config = current_app.config
    theme = request.args.get('theme') or config.get('PDF_DEFAULT_THEME', 'pills')
    business_info = {
        'name': config.get('BUSINESS_NAME'),
        'subtitle': config.get('BUSINESS_SUBTITLE'),
        'email': config.get('BUSINESS_EMAIL'),
        'phone': config.get('BUSINESS_PHONE'),
        'initials': config.get('BRAND_INITIALS'),
    }

    buffer, filename = export_proposal_pdf(_store(), proposal_id, theme, business_info)
    return send_file(
        buffer,
        mimetype='application/pdf',
        as_attachment=True,
        download_name=filename
    )
