"""Catalog blueprint - services and plans available to proposals."""
from flask import Blueprint, jsonify

from proposal_manager.database import get_session
from proposal_manager.middleware import require_login
from proposal_manager.services.catalog_service import list_catalog
from proposal_manager.services.record_store import RecordStore

catalog_bp = Blueprint('catalog', __name__, url_prefix='/catalog')


@catalog_bp.route('')
@require_login
def list_services():
    """Services ordered by name, with nested plans."""
    services = list_catalog(RecordStore(get_session()))
    return jsonify({'services': services})
