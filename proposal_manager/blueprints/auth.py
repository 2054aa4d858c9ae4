"""Authentication blueprint - email/password login over JSON."""
from flask import Blueprint, jsonify, g
from flask_wtf.csrf import generate_csrf

from proposal_manager.database import get_session
from proposal_manager.forms.client_forms import LoginForm, first_error
from proposal_manager.middleware import require_login
from proposal_manager.services.auth_service import authenticate, get_user_role

auth_bp = Blueprint('auth', __name__, url_prefix='/auth')


@auth_bp.route('/csrf-token')
def csrf_token():
    """Token for the X-CSRFToken header of subsequent writes."""
    return jsonify({'csrf_token': generate_csrf()})


@auth_bp.route('/login', methods=['POST'])
def login():
    form = LoginForm()
    if not form.validate_on_submit():
        return jsonify({'status': 'error', 'message': first_error(form)}), 400

    db_session = get_session()
    user = authenticate(db_session, form.email.data, form.password.data)
    if not user:
        return jsonify({'status': 'error', 'message': 'Email ou senha incorretos.'}), 401

    g.ctx.begin(user, get_user_role(db_session, user.id))
    return jsonify({'status': 'ok', **g.ctx.to_dict()})


@auth_bp.route('/logout', methods=['POST'])
def logout():
    g.ctx.end()
    return jsonify({'status': 'ok'})


@auth_bp.route('/me')
@require_login
def me():
    return jsonify(g.ctx.to_dict())
