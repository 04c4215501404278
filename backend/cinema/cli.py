# Overview: Flask CLI command groups for bootstrap, catalog setup and maintenance.

# backend/cinema/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create any missing tables (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Company (tenant) management:
# - python -m flask companies create --name "Cine Centro" --code "CENTRO"
# - python -m flask companies list
#
# Employees:
# - python -m flask employees create --company-id 1 --cpf 12345678901 --name "Ana" --role MANAGER
# - python -m flask employees issue-token --company-id 1 --cpf 12345678901
#   Prints a bearer token once; only its hash is stored.
#
# Catalog:
# - python -m flask catalog add-movie --company-id 1 --title "Dune" --duration 155
# - python -m flask catalog add-room --company-id 1 --name "Sala 1" --rows 10 --cols 12
#   Builds the seat map with codes A1..J12.
#
# Maintenance:
# - python -m flask maintenance sweep-reservations
#   Delete expired seat holds for every company.

import click
from flask import current_app
from flask.cli import with_appcontext

from .errors import CinemaError
from .extensions import db
from .models import Company, Employee
from .models.auth import EMPLOYEE_ROLES
from .models.catalog import ROOM_TYPES
from .services import catalog_service, token_service
from .services.reservation_service import SeatReservationManager


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Database initialized.")


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


@click.group('companies')
def companies_group():
    """Company (tenant) management commands."""


@companies_group.command('create')
@click.option('--name', required=True, help='Company name')
@click.option('--code', required=True, help='Short code (unique)')
@click.option('--cnpj', default=None, help='CNPJ (14 digits)')
@with_appcontext
def create_company_cli(name, code, cnpj):
    """Create a new company (tenant)."""
    code = code.upper()
    existing = db.session.query(Company).filter_by(code=code).first()
    if existing:
        click.echo(f"FAIL Company with code '{code}' already exists")
        return

    company = Company(name=name, code=code, cnpj=cnpj, is_active=True)
    db.session.add(company)
    db.session.commit()

    click.echo(f"PASS Created company: {company.name} (ID: {company.id}, Code: {company.code})")


@companies_group.command('list')
@with_appcontext
def list_companies():
    """List all companies."""
    companies = db.session.query(Company).order_by(Company.id).all()
    if not companies:
        click.echo("No companies found.")
        return

    for company in companies:
        status = "active" if company.is_active else "inactive"
        click.echo(f"{company.id:>4}  {company.code:<12} {company.name} ({status})")


@click.group('employees')
def employees_group():
    """Employee bootstrap and token commands."""


@employees_group.command('create')
@click.option('--company-id', type=int, required=True, help='Company ID')
@click.option('--cpf', required=True, help='CPF (11 digits)')
@click.option('--name', required=True, help='Full name')
@click.option('--role', type=click.Choice(EMPLOYEE_ROLES, case_sensitive=False), default='CASHIER', help='Role')
@with_appcontext
def create_employee_cli(company_id, cpf, name, role):
    """Create an employee."""
    if not (len(cpf) == 11 and cpf.isdigit()):
        click.echo("FAIL CPF must be 11 digits")
        return

    company = db.session.query(Company).filter_by(id=company_id).first()
    if not company:
        click.echo(f"FAIL Company {company_id} not found")
        return

    if db.session.query(Employee).filter_by(company_id=company_id, cpf=cpf).first():
        click.echo(f"FAIL Employee with CPF {cpf} already exists in {company.code}")
        return

    employee = Employee(company_id=company_id, cpf=cpf, name=name, role=role.upper(), is_active=True)
    db.session.add(employee)
    db.session.commit()

    click.echo(f"PASS Created employee: {employee.name} (ID: {employee.id}, Role: {employee.role})")


@employees_group.command('issue-token')
@click.option('--company-id', type=int, required=True, help='Company ID')
@click.option('--cpf', required=True, help='Employee CPF')
@click.option('--hours', type=int, default=None, help='Token lifetime (defaults to SESSION_TOKEN_HOURS)')
@with_appcontext
def issue_token_cli(company_id, cpf, hours):
    """Mint an API token. The plaintext is printed once."""
    hours = hours or current_app.config["SESSION_TOKEN_HOURS"]
    try:
        record, plaintext = token_service.issue_token(db.session, company_id, cpf, hours=hours)
    except CinemaError as e:
        click.echo(f"FAIL {e.message}")
        return

    click.echo(f"PASS Token issued (expires {record.expires_at.isoformat()}Z)")
    click.echo(plaintext)


@click.group('catalog')
def catalog_group():
    """Movies and rooms."""


@catalog_group.command('add-movie')
@click.option('--company-id', type=int, required=True, help='Company ID')
@click.option('--title', required=True, help='Movie title')
@click.option('--duration', 'duration_min', type=int, required=True, help='Duration in minutes')
@click.option('--genre', default=None)
@click.option('--rating', default=None)
@with_appcontext
def add_movie_cli(company_id, title, duration_min, genre, rating):
    try:
        movie = catalog_service.add_movie(db.session, company_id, title, duration_min, genre, rating)
    except CinemaError as e:
        click.echo(f"FAIL {e.message}")
        return

    click.echo(f"PASS Created movie: {movie.title} (ID: {movie.id})")


@catalog_group.command('add-room')
@click.option('--company-id', type=int, required=True, help='Company ID')
@click.option('--name', required=True, help='Room name (unique per company)')
@click.option('--rows', type=int, required=True, help='Seat rows (labelled A, B, ...)')
@click.option('--cols', type=int, required=True, help='Seats per row')
@click.option('--room-type', type=click.Choice(ROOM_TYPES, case_sensitive=False), default='TWO_D')
@click.option('--accessible-rows', type=int, default=0, help='Number of back rows flagged accessible')
@with_appcontext
def add_room_cli(company_id, name, rows, cols, room_type, accessible_rows):
    try:
        room = catalog_service.add_room(
            db.session, company_id, name, rows, cols,
            room_type=room_type.upper(), accessible_rows=accessible_rows,
        )
    except CinemaError as e:
        db.session.rollback()
        click.echo(f"FAIL {e.message}")
        return

    click.echo(f"PASS Created room: {room.name} (ID: {room.id}, Seats: {room.capacity}, Seat map: {room.seat_map_id})")


@click.group('maintenance')
def maintenance_group():
    """Maintenance and cleanup commands."""


@maintenance_group.command('sweep-reservations')
@with_appcontext
def sweep_reservations():
    """Delete expired seat holds across all companies."""
    removed = SeatReservationManager(db.session, None).sweep_expired()
    click.echo(f"PASS Removed {removed} expired seat reservations")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(companies_group)
    app.cli.add_command(employees_group)
    app.cli.add_command(catalog_group)
    app.cli.add_command(maintenance_group)
