"""
Integration tests for the Flask CLI commands and catalog seeding.
"""

from proposal_manager.models import AppUser, Service, ServicePlan
from proposal_manager.services.auth_service import get_user_role
from proposal_manager.services.catalog_service import seed_catalog, DEFAULT_CATALOG
from proposal_manager.models import AppRole


class TestCreateUserCommand:

    def test_create_admin(self, app, session):
        runner = app.test_cli_runner()
        result = runner.invoke(args=['create-user', '--email', 'Chefe@Agencia.com',
                                     '--password', 'segredo123', '--admin'])

        assert result.exit_code == 0
        user = session.query(AppUser).filter_by(email='chefe@agencia.com').one()
        assert user.check_password('segredo123')
        assert get_user_role(session, user.id) is AppRole.ADMIN

    def test_short_password_fails(self, app, session):
        runner = app.test_cli_runner()
        result = runner.invoke(args=['create-user', '--email', 'a@b.com', '--password', '123'])

        assert result.exit_code == 1
        assert session.query(AppUser).count() == 0

    def test_duplicate_email_fails(self, app, user):
        runner = app.test_cli_runner()
        result = runner.invoke(args=['create-user', '--email', 'user@test.com', '--password', 'password123'])

        assert result.exit_code == 1
        assert 'Já existe' in result.output


class TestSeedCatalog:

    def test_seed_command(self, app, session):
        result = app.test_cli_runner().invoke(args=['seed-catalog'])

        assert result.exit_code == 0
        assert session.query(Service).count() == len(DEFAULT_CATALOG)
        assert session.query(ServicePlan).count() == sum(len(entry[3]) for entry in DEFAULT_CATALOG)

    def test_seed_is_idempotent(self, session):
        assert seed_catalog(session) == len(DEFAULT_CATALOG)
        assert seed_catalog(session) == 0
        assert session.query(Service).count() == len(DEFAULT_CATALOG)


class TestAuthService:

    def test_user_without_role_is_plain_user(self, session):
        user = AppUser(email='sem-papel@test.com', active=True)
        user.set_password('password123')
        session.add(user)
        session.commit()

        assert get_user_role(session, user.id) is AppRole.USER
