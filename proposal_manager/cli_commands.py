"""
Flask CLI commands.

Commands:
- flask init-db: Create missing tables
- flask create-user: Create a user (optionally admin)
- flask seed-catalog: Insert the default services and plans
"""

import click

from proposal_manager.database import get_session, create_tables
from proposal_manager.exceptions import ProposalAppError


def init_cli_commands(app):
    """Register CLI commands with Flask app."""

    @app.cli.command('init-db')
    def init_db_command():
        """Create all tables that do not exist yet."""
        create_tables()
        click.echo(click.style('Tabelas criadas.', fg='green'))

    @app.cli.command('create-user')
    @click.option('--email', prompt=True, help='User email address')
    @click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='User password')
    @click.option('--name', default=None, help='Full name')
    @click.option('--admin', is_flag=True, default=False, help='Grant the admin role')
    def create_user_command(email, password, name, admin):
        """Create a user able to log in and build proposals."""
        from proposal_manager.services.auth_service import create_user

        try:
            user = create_user(get_session(), email, password, full_name=name, admin=admin)
        except ProposalAppError as e:
            click.echo(click.style(f'Erro: {e.message}', fg='red'))
            raise SystemExit(1)

        click.echo(click.style('Usuário criado com sucesso!', fg='green', bold=True))
        click.echo(f'   Email: {user.email}')
        click.echo(f'   ID: {user.id}')
        click.echo(f'   Papel: {user.role_assignment.role}')

    @app.cli.command('seed-catalog')
    def seed_catalog_command():
        """Insert the default catalog (existing services are skipped)."""
        from proposal_manager.services.catalog_service import seed_catalog

        created = seed_catalog(get_session())
        click.echo(click.style(f'{created} serviço(s) criado(s).', fg='green'))
