# Overview: Flask CLI command groups for bootstrap and inspection.

# backend/caisse/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init-db
#   Create all tables (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Restaurant management (MULTI-TENANT):
# - python -m flask restaurants list
#   List all restaurants.
# - python -m flask restaurants create --name "Chez Maman"
#   Create a new restaurant (tenant).
# - python -m flask restaurants token --restaurant-id 1 --user-id cashier-1
#   Issue a bearer token binding a user to a restaurant.
#
# Cash desk inspection:
# - python -m flask cash sessions --restaurant-id 1 [--status open] [--limit 20]
#   List recent cash sessions.
# - python -m flask cash balance --restaurant-id 1 --session-id 3
#   Print the reconciled balance of a session.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Restaurant, CashSession
from .services import session_service
from .services.balance_service import build_report
from .validation import (
    EXPENSE_CATEGORY_LABELS,
    PAYMENT_METHOD_LABELS,
    ExpenseCategory,
    SettlementMethod,
)


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Database schema created.")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete.")


@click.group('restaurants')
def restaurants_group():
    """Restaurant (tenant) management commands."""


@restaurants_group.command('list')
@with_appcontext
def list_restaurants():
    """List all restaurants."""
    restaurants = db.session.query(Restaurant).order_by(Restaurant.id).all()

    if not restaurants:
        click.echo("No restaurants found.")
        return

    click.echo("\n" + "="*60)
    click.echo(f"{'ID':<5} {'Name':<30} {'Active':<8} {'Sessions'}")
    click.echo("="*60)

    for restaurant in restaurants:
        session_count = db.session.query(CashSession).filter_by(restaurant_id=restaurant.id).count()
        active_str = "Yes" if restaurant.is_active else "No"
        click.echo(f"{restaurant.id:<5} {restaurant.name:<30} {active_str:<8} {session_count}")

    click.echo("="*60 + "\n")


@restaurants_group.command('create')
@click.option('--name', required=True, help='Restaurant name')
@with_appcontext
def create_restaurant_cli(name):
    """Create a new restaurant (tenant)."""
    restaurant = Restaurant(name=name, is_active=True)
    db.session.add(restaurant)
    db.session.commit()

    click.echo(f"PASS Created restaurant: {restaurant.name} (ID: {restaurant.id})")


@restaurants_group.command('token')
@click.option('--restaurant-id', type=int, required=True, help='Restaurant ID')
@click.option('--user-id', required=True, help='Opaque user id from the identity provider')
@with_appcontext
def issue_token_cli(restaurant_id, user_id):
    """Issue a bearer token for (user, restaurant)."""
    try:
        session, token = session_service.create_session(user_id, restaurant_id)
    except ValueError as e:
        click.echo(f"FAIL {e}")
        return

    click.echo(f"PASS Token for user '{user_id}' in restaurant {restaurant_id}")
    click.echo(f"   expires_at: {session.expires_at.isoformat()}Z")
    click.echo(f"   token:      {token}")


@click.group('cash')
def cash_group():
    """Cash desk inspection commands."""


@cash_group.command('sessions')
@click.option('--restaurant-id', type=int, required=True, help='Restaurant ID')
@click.option('--status', type=click.Choice(['open', 'closed']), help='Filter by status')
@click.option('--limit', type=int, default=20, help='Max sessions to show')
@with_appcontext
def list_sessions_cli(restaurant_id, status, limit):
    """
    List cash sessions, most recent day first.

    Example:
        flask cash sessions --restaurant-id 1
        flask cash sessions --restaurant-id 1 --status open
    """
    query = db.session.query(CashSession).filter_by(restaurant_id=restaurant_id)
    if status:
        query = query.filter_by(status=status)

    sessions = query.order_by(
        CashSession.session_date.desc(),
        CashSession.id.desc(),
    ).limit(limit).all()

    if not sessions:
        click.echo("No sessions found.")
        return

    click.echo("\n" + "="*100)
    click.echo(f"{'ID':<5} {'Date':<12} {'Status':<8} {'Opening':<14} {'Closing':<14} {'Difference':<14} {'Notes'}")
    click.echo("="*100)

    for session in sessions:
        closing = f"{session.closing_balance}" if session.closing_balance is not None else "-"
        difference = f"{session.balance_difference:+}" if session.balance_difference is not None else "-"
        notes = session.notes[:30] if session.notes else "-"
        historical = "*" if session.is_historical else ""

        click.echo(f"{session.id:<5} {session.session_date.isoformat() + historical:<12} {session.status:<8} "
                   f"{session.opening_balance!s:<14} {closing:<14} {difference:<14} {notes}")

    click.echo("="*100)
    click.echo("* historical (backfilled) session\n")


@cash_group.command('balance')
@click.option('--restaurant-id', type=int, required=True, help='Restaurant ID')
@click.option('--session-id', type=int, required=True, help='Cash session ID')
@with_appcontext
def balance_cli(restaurant_id, session_id):
    """Print the reconciled balance of one session."""
    session = db.session.query(CashSession).filter_by(
        id=session_id,
        restaurant_id=restaurant_id,
    ).first()
    if session is None:
        click.echo(f"FAIL Session {session_id} not found in restaurant {restaurant_id}")
        return

    report = build_report(session)

    click.echo(f"\nSession {report.session_id} ({report.session_date}, {report.status})")
    click.echo("-"*40)
    click.echo(f"{'Opening':<24} {report.opening_balance:>14}")
    for method, amount in report.manual_revenue_by_method.items():
        click.echo(f"{'+ manual ' + _label(PAYMENT_METHOD_LABELS, SettlementMethod, method):<24} {amount:>14}")
    for method, amount in report.platform_revenue_by_method.items():
        click.echo(f"{'+ platform ' + _label(PAYMENT_METHOD_LABELS, SettlementMethod, method):<24} {amount:>14}")
    for method, amount in report.expenses_by_method.items():
        click.echo(f"{'- expense ' + _label(PAYMENT_METHOD_LABELS, SettlementMethod, method):<24} {amount:>14}")
    for category, amount in report.expenses_by_category.items():
        click.echo(f"{'  of which ' + _label(EXPENSE_CATEGORY_LABELS, ExpenseCategory, category):<24} {amount:>14}")
    click.echo("-"*40)
    click.echo(f"{'Theoretical':<24} {report.theoretical_balance:>14}")
    click.echo(f"{'Theoretical (cash)':<24} {report.theoretical_cash_balance:>14}")
    if report.actual_balance is not None:
        click.echo(f"{'Counted':<24} {report.actual_balance:>14}")
        click.echo(f"{'Difference':<24} {report.difference:>+14} ({report.difference_status})")
    click.echo("")


def _label(labels, vocabulary, tag: str) -> str:
    try:
        return labels[vocabulary(tag)]
    except ValueError:
        return tag


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(restaurants_group)
    app.cli.add_command(cash_group)
