# Overview: Flask CLI command groups for bootstrap, sample data, users and the reminder sweep.

# backend/budgetboard/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to budgetboard (PowerShell: $env:FLASK_APP="budgetboard").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create all tables (use `flask db upgrade` for migration-managed databases).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask system seed
#   Load the sample project (four users, password "password123"). Idempotent.
#
# User inspection/bootstrap:
# - python -m flask users list
#   List all users with their project count.
# - python -m flask users create --name "Alice Uwimana" --email alice@example.com --password secret1
#   Create a user (prompts if options are omitted).
#
# Reminders:
# - python -m flask reminders run
#   Run the overdue / due-tomorrow / budget sweep once, now.

from datetime import date
from decimal import Decimal

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .errors import AppError
from .models import Expense, Project, ProjectMember, Task, User
from .services.auth_service import create_user, derive_initials, hash_password


SEED_PASSWORD = "password123"

SEED_USERS = [
    ("Alice Uwimana", "alice@somabox.rw"),
    ("Bob Niyomugabo", "bob@somabox.rw"),
    ("Carol Ingabire", "carol@somabox.rw"),
    ("David Mutabazi", "david@somabox.rw"),
]


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Database tables created")


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
    click.echo("BUILD Creating all tables...")
    db.create_all()
    click.echo("PASS Database reset complete")


@system_group.command('seed')
@with_appcontext
def seed():
    """Load the sample project. Does nothing if the sample users already exist."""
    emails = [email for _, email in SEED_USERS]
    if db.session.query(User).filter(User.email.in_(emails)).first():
        click.echo("WARN  Users already seeded")
        return

    click.echo("START Seeding database with sample data...")
    password_hash = hash_password(SEED_PASSWORD)
    users = [
        User(name=name, email=email, password_hash=password_hash, avatar=derive_initials(name))
        for name, email in SEED_USERS
    ]
    db.session.add_all(users)
    db.session.flush()
    alice, bob = users[0], users[1]
    click.echo("PASS Users created")

    project = Project(
        name="Community Event 2024",
        description="Annual community gathering with performances and workshops",
        total_budget=Decimal("300000"),
        currency="RWF",
        owner_id=alice.id,
        due_date=date(2024, 12, 31),
    )
    db.session.add(project)
    db.session.flush()
    db.session.add_all([
        ProjectMember(project_id=project.id, user_id=alice.id, role="owner"),
        ProjectMember(project_id=project.id, user_id=bob.id, role="admin"),
    ])
    click.echo("PASS Project created")

    task_rows = [
        ("Book Venue", "Secure and book the main event venue", "completed", 100, alice, date(2024, 11, 15), "high"),
        ("Hire Sound System", "Contact audio equipment vendors", "in_progress", 60, bob, date(2024, 11, 20), "high"),
        ("Design Event Poster", "Create promotional materials for social media", "in_progress", 40, alice, date(2024, 11, 18), "medium"),
        ("Contact Sponsors", "Reach out to potential corporate sponsors", "todo", 0, bob, date(2024, 11, 25), "high"),
        ("Set Up Registration", "Create online registration form", "todo", 0, alice, date(2024, 11, 22), "medium"),
    ]
    tasks = [
        Task(
            project_id=project.id,
            title=title,
            description=description,
            status=status,
            progress=progress,
            assigned_to=assignee.id,
            due_date=due_date,
            priority=priority,
            created_by=alice.id,
        )
        for title, description, status, progress, assignee, due_date, priority in task_rows
    ]
    db.session.add_all(tasks)
    db.session.flush()
    venue_task = tasks[0]
    click.echo("PASS Tasks created")

    expense_rows = [
        (venue_task.id, "80000", "Venue deposit payment", "Venue", alice, date(2024, 11, 1)),
        (venue_task.id, "45000", "Catering advance", "Catering", alice, date(2024, 11, 5)),
        (None, "25000", "Marketing materials printing", "Marketing", bob, date(2024, 11, 8)),
        (None, "20000", "Transportation for team", "Transport", alice, date(2024, 11, 10)),
    ]
    db.session.add_all([
        Expense(
            project_id=project.id,
            task_id=task_id,
            amount=Decimal(amount),
            description=description,
            category=category,
            created_by=author.id,
            date=spent_on,
        )
        for task_id, amount, description, category, author, spent_on in expense_rows
    ])
    db.session.commit()
    click.echo("PASS Expenses created")

    click.echo("\n" + "="*60)
    click.echo("DONE Database seeded successfully!")
    click.echo("="*60)
    click.echo(f"\nLogin with: {SEED_USERS[0][1]} / {SEED_PASSWORD}")


@click.group('users')
def users_group():
    """User management commands."""


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with their project count."""
    users = db.session.query(User).order_by(User.created_at.asc()).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*100)
    click.echo(f"{'ID':<38} {'Name':<25} {'Email':<30} {'Projects'}")
    click.echo("="*100)

    for user in users:
        project_count = db.session.query(ProjectMember).filter_by(user_id=user.id).count()
        click.echo(f"{user.id:<38} {user.name:<25} {user.email:<30} {project_count}")

    click.echo("="*100 + "\n")


@users_group.command('create')
@click.option('--name', prompt=True, help='Display name')
@click.option('--email', prompt=True, help='Email address (login)')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password (min 6 characters)')
@with_appcontext
def create_user_cli(name, email, password):
    """Create a new user."""
    try:
        user = create_user(name, email, password)
    except AppError as e:
        click.echo(f"FAIL {e.message}")
        raise SystemExit(1)

    click.echo(f"PASS Created user: {user.name} ({user.email}, ID: {user.id})")


@click.group('reminders')
def reminders_group():
    """Reminder sweep commands."""


@reminders_group.command('run')
@with_appcontext
def run_reminders():
    """Run one reminder sweep now."""
    sweep = current_app.extensions["reminder_sweep"]
    results = sweep.run_once()
    for scan, count in results.items():
        status = "FAIL" if count is None else "PASS"
        click.echo(f"{status} {scan}: {'error (see log)' if count is None else count}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(reminders_group)
