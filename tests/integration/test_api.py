"""
Integration tests for the JSON API.
"""

import pytest
from decimal import Decimal

from proposal_manager.models import Proposal, ProposalItem, Client


class TestAuth:

    def test_login_with_valid_credentials(self, client, user):
        response = client.post('/auth/login', json={'email': 'user@test.com', 'password': 'password123'})

        assert response.status_code == 200
        data = response.get_json()
        assert data['authenticated'] is True
        assert data['role'] == 'user'
        assert data['is_admin'] is False

        with client.session_transaction() as sess:
            assert sess['user_id'] == user.id

    def test_login_with_wrong_password(self, client, user):
        response = client.post('/auth/login', json={'email': 'user@test.com', 'password': 'errada'})
        assert response.status_code == 401

    def test_login_validation(self, client):
        response = client.post('/auth/login', json={'email': 'nao-e-email', 'password': 'x'})

        assert response.status_code == 400
        assert response.get_json()['message'] == 'Email inválido'

    def test_me_requires_login(self, client):
        assert client.get('/auth/me').status_code == 401

    def test_me_as_admin(self, admin_client):
        data = admin_client.get('/auth/me').get_json()
        assert data['is_admin'] is True
        assert data['user']['email'] == 'admin@test.com'

    def test_logout_ends_session(self, auth_client):
        assert auth_client.post('/auth/logout').status_code == 200
        assert auth_client.get('/auth/me').status_code == 401


class TestHealthAndMetrics:

    def test_health(self, client):
        response = client.get('/health')
        assert response.status_code == 200
        assert response.get_json()['database'] == 'connected'

    def test_cache_health_degraded_without_redis(self, client):
        response = client.get('/health/cache')
        assert response.status_code == 200
        assert response.get_json()['status'] == 'degraded'

    def test_metrics(self, client):
        client.get('/health')
        response = client.get('/metrics')

        assert response.status_code == 200
        assert b'http_requests_total' in response.data


class TestCatalogAndClients:

    def test_catalog(self, auth_client, catalog):
        services = auth_client.get('/catalog').get_json()['services']

        assert [s['name'] for s in services] == ['Gestão de Tráfego', 'Site']
        assert services[1]['plans'][0]['plan_name'] == 'Landing Page'

    def test_create_client(self, auth_client, session):
        response = auth_client.post('/clients', json={
            'name': 'João Lima', 'company': 'Padaria Lima', 'email': 'joao@lima.com'
        })

        assert response.status_code == 201
        assert session.query(Client).filter_by(company='Padaria Lima').count() == 1

    def test_create_client_requires_name(self, auth_client):
        response = auth_client.post('/clients', json={'company': 'Sem Nome'})
        assert response.status_code == 400

    def test_search_clients(self, auth_client, acme):
        assert len(auth_client.get('/clients?q=acme').get_json()['clients']) == 1
        assert auth_client.get('/clients?q=zzz').get_json()['clients'] == []

    def test_client_detail_lists_proposals(self, auth_client, saved_proposal, acme):
        data = auth_client.get(f'/clients/{acme.id}').get_json()

        assert data['name'] == 'Maria Souza'
        assert [p['id'] for p in data['proposals']] == [saved_proposal.id]

    def test_update_client(self, auth_client, session, acme):
        response = auth_client.put(f'/clients/{acme.id}', json={
            'name': 'Maria S. Souza', 'email': 'maria@acme.com', 'phone': '(48) 3333-0000', 'company': ''
        })

        assert response.status_code == 200
        client = session.get(Client, acme.id)
        assert client.name == 'Maria S. Souza'
        assert client.email == 'maria@acme.com'
        assert client.phone == '(48) 3333-0000'
        assert client.company is None

    def test_update_client_validation(self, auth_client, session, acme):
        response = auth_client.put(f'/clients/{acme.id}', json={'company': 'Nova'})
        assert response.status_code == 400

        response = auth_client.put(f'/clients/{acme.id}', json={'name': 'Maria', 'email': 'nao-e-email'})
        assert response.status_code == 400
        assert session.get(Client, acme.id).company == 'Acme Ltda'

    def test_update_client_not_found(self, auth_client):
        assert auth_client.put('/clients/999', json={'name': 'Ninguém'}).status_code == 404

    def test_client_delete_requires_admin(self, auth_client, acme):
        response = auth_client.delete(f'/clients/{acme.id}')

        assert response.status_code == 403
        assert response.get_json()['message'] == 'Acesso restrito a administradores.'

    def test_client_not_found(self, auth_client):
        response = auth_client.get('/clients/999')

        assert response.status_code == 404
        assert response.get_json()['status'] == 'error'


class TestProposalFlow:

    def test_requires_login(self, client):
        assert client.get('/proposals').status_code == 401

    def test_build_finalize_save_and_export(self, auth_client, session, catalog, acme):
        proposal_id = auth_client.post('/proposals', json={}).get_json()['id']

        for plan in (catalog['monthly_plan'], catalog['setup_plan']):
            response = auth_client.post(f'/proposals/{proposal_id}/cart/items', json={'plan_id': plan.id})
            assert response.status_code == 201

        response = auth_client.put(f'/proposals/{proposal_id}/cart/discount', json={'amount': '20,00'})
        assert response.get_json()['totals']['final'] == '130.00'

        # Pending discount survives a reload of the cart
        cart = auth_client.get(f'/proposals/{proposal_id}/cart').get_json()
        assert cart['discount'] == {'kind': 'absolute', 'value': '20.00'}

        response = auth_client.post(f'/proposals/{proposal_id}/finalize', json={})
        assert response.status_code == 200

        proposal = session.get(Proposal, proposal_id)
        assert proposal.discount_value == Decimal('20.00')
        assert proposal.final_total == Decimal('130.00')

        # Draft cannot be exported
        response = auth_client.get(f'/proposals/{proposal_id}/pdf')
        assert response.status_code == 400

        # Saving without a client asks for one
        response = auth_client.post(f'/proposals/{proposal_id}/status', json={'status': 'Salva'})
        assert response.status_code == 422
        assert response.get_json()['outcome'] == 'client_required'

        response = auth_client.post(f'/proposals/{proposal_id}/client', json={'client_id': acme.id})
        assert response.get_json()['status'] == 'Salva'

        response = auth_client.get(f'/proposals/{proposal_id}/pdf?theme=pills')
        assert response.status_code == 200
        assert response.mimetype == 'application/pdf'
        assert 'attachment' in response.headers['Content-Disposition']
        assert response.data.startswith(b'%PDF')

    def test_duplicate_plan(self, auth_client, saved_proposal, catalog):
        response = auth_client.post(
            f'/proposals/{saved_proposal.id}/cart/items',
            json={'plan_id': catalog['monthly_plan'].id}
        )
        assert response.status_code == 400

    def test_remove_item(self, auth_client, session, saved_proposal, catalog):
        plan_id = catalog['setup_plan'].id
        response = auth_client.delete(f'/proposals/{saved_proposal.id}/cart/items/{plan_id}')

        assert response.status_code == 200
        assert response.get_json()['totals']['final'] == '100.00'
        assert session.query(ProposalItem).filter_by(proposal_id=saved_proposal.id).count() == 1

    def test_percentage_discount_and_finalize(self, auth_client, session, saved_proposal):
        auth_client.put(f'/proposals/{saved_proposal.id}/cart/discount', json={'percentage': '10'})
        auth_client.post(f'/proposals/{saved_proposal.id}/finalize', json={})

        proposal = session.get(Proposal, saved_proposal.id)
        assert proposal.discount_value == Decimal('15.00')

    def test_invalid_discount(self, auth_client, saved_proposal):
        response = auth_client.put(f'/proposals/{saved_proposal.id}/cart/discount', json={'percentage': '150'})
        assert response.status_code == 400

        response = auth_client.put(f'/proposals/{saved_proposal.id}/cart/discount', json={'amount': '-3'})
        assert response.status_code == 400

    def test_finalize_negative_total_rejected(self, auth_client, saved_proposal):
        auth_client.put(f'/proposals/{saved_proposal.id}/cart/discount', json={'amount': '500'})
        response = auth_client.post(f'/proposals/{saved_proposal.id}/finalize', json={})

        assert response.status_code == 400
        assert 'desconto' in response.get_json()['message']

    def test_status_back_to_draft_rejected(self, auth_client, saved_proposal):
        response = auth_client.post(f'/proposals/{saved_proposal.id}/status', json={'status': 'Rascunho'})

        assert response.status_code == 400
        assert response.get_json()['outcome'] == 'rejected'

    def test_status_with_stale_version(self, auth_client, saved_proposal):
        response = auth_client.post(f'/proposals/{saved_proposal.id}/status', json={'status': 'Enviada', 'version': 1})
        assert response.status_code == 200

        response = auth_client.post(f'/proposals/{saved_proposal.id}/status', json={'status': 'Aceita', 'version': 1})
        assert response.status_code == 409

    def test_list_and_view(self, auth_client, saved_proposal):
        data = auth_client.get('/proposals?status=Salva').get_json()
        assert [p['id'] for p in data['proposals']] == [saved_proposal.id]
        assert data['proposals'][0]['client']['company'] == 'Acme Ltda'

        view = auth_client.get(f'/proposals/{saved_proposal.id}').get_json()
        assert len(view['items']) == 2
        assert view['totals_stale'] is False

    def test_non_object_json_body(self, auth_client, saved_proposal):
        response = auth_client.post(f'/proposals/{saved_proposal.id}/status', json=['Enviada'])

        assert response.status_code == 400
        assert response.get_json()['status'] == 'error'

    def test_observations(self, auth_client, saved_proposal):
        response = auth_client.put(f'/proposals/{saved_proposal.id}/observations',
                                   json={'observations': 'Validade de 15 dias.'})
        assert response.get_json()['observations'] == 'Validade de 15 dias.'

    def test_delete_proposal(self, auth_client, session, saved_proposal):
        assert auth_client.delete(f'/proposals/{saved_proposal.id}').status_code == 200
        assert session.query(Proposal).count() == 0
