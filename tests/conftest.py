import pytest
from decimal import Decimal

from proposal_manager import create_app
from proposal_manager.database import get_session, create_tables, drop_tables
from proposal_manager.models import (
    AppUser, UserRole, AppRole, Service, ServicePlan, Client, Proposal, ProposalStatus
)
from proposal_manager.services.record_store import RecordStore


@pytest.fixture(scope='function')
def app():
    """Application on a fresh in-memory database."""
    app = create_app('config.TestConfig')
    ctx = app.app_context()
    ctx.push()
    create_tables()
    yield app
    get_session().remove()
    drop_tables()
    ctx.pop()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def session(app):
    """Database session for testing."""
    session = get_session()
    yield session
    session.rollback()


@pytest.fixture(scope='function')
def store(session):
    return RecordStore(session)


def _make_user(session, email, role):
    user = AppUser(email=email, full_name='Test User', active=True)
    user.set_password('password123')
    user.role_assignment = UserRole(role=role.value)
    session.add(user)
    session.commit()
    return user


@pytest.fixture(scope='function')
def user(session):
    """Plain user (password: password123)."""
    return _make_user(session, 'user@test.com', AppRole.USER)


@pytest.fixture(scope='function')
def admin_user(session):
    """Admin user (password: password123)."""
    return _make_user(session, 'admin@test.com', AppRole.ADMIN)


def login(test_client, user_id):
    with test_client.session_transaction() as sess:
        sess['user_id'] = user_id


@pytest.fixture(scope='function')
def auth_client(client, user):
    """Test client logged in as the plain user."""
    login(client, user.id)
    return client


@pytest.fixture(scope='function')
def admin_client(client, admin_user):
    """Test client logged in as the admin."""
    login(client, admin_user.id)
    return client


@pytest.fixture(scope='function')
def catalog(session):
    """
    Two services:
    - Gestão de Tráfego / Mensal: 100.00 monthly, no setup
    - Site / Landing Page: setup-only 50.00, 15 days
    """
    traffic = Service(name='Gestão de Tráfego', category='Marketing')
    traffic.plans.append(ServicePlan(
        plan_name='Mensal', monthly_fee=Decimal('100.00'), setup_fee=Decimal('0.00'),
        deliverables='Campanhas no Google Ads.', delivery_time_days=0
    ))
    site = Service(name='Site', category='Tecnologia')
    site.plans.append(ServicePlan(
        plan_name='Landing Page', monthly_fee=Decimal('0.00'), setup_fee=Decimal('50.00'),
        deliverables=None, delivery_time_days=15
    ))
    session.add_all([traffic, site])
    session.commit()
    return {
        'monthly_plan': traffic.plans[0],
        'setup_plan': site.plans[0],
    }


@pytest.fixture(scope='function')
def acme(session):
    """Client record with a company name."""
    record = Client(name='Maria Souza', company='Acme Ltda', email='maria@acme.com', phone='(48) 3333-0000')
    session.add(record)
    session.commit()
    return record


@pytest.fixture(scope='function')
def draft_proposal(session):
    """Draft without client or items."""
    proposal = Proposal(status=ProposalStatus.DRAFT.value)
    session.add(proposal)
    session.commit()
    return proposal


@pytest.fixture(scope='function')
def saved_proposal(session, acme, catalog):
    """Saved proposal for acme with both catalog plans, finalized without discount."""
    from proposal_manager.models import ProposalItem

    proposal = Proposal(
        status=ProposalStatus.SAVED.value,
        client_id=acme.id,
        total_monthly=Decimal('100.00'),
        total_setup=Decimal('50.00'),
        discount_value=Decimal('0.00'),
    )
    session.add(proposal)
    session.flush()
    for plan in (catalog['monthly_plan'], catalog['setup_plan']):
        session.add(ProposalItem(proposal_id=proposal.id, service_plan_id=plan.id))
    session.commit()
    return proposal
