#!/usr/bin/env python3
"""
Database management script for deployment.

Usage:
    python manage_db.py deploy   # apply Alembic migrations
    python manage_db.py seed     # replace all data with the demo dataset
"""
import logging
import sys

from flask_migrate import upgrade

from courtside.app import create_app
from courtside.seed import seed_database

logger = logging.getLogger('courtside.manage_db')


def deploy():
    """Run deployment tasks."""
    app = create_app()
    with app.app_context():
        logger.info("Starting database migration...")
        try:
            upgrade()
        except Exception:
            logger.exception("Error applying migrations")
            sys.exit(1)
        logger.info("Database migrations applied.")


def seed():
    app = create_app()
    with app.app_context():
        users = seed_database()
        for username, user in users.items():
            logger.info(f"{username} ({user.role.value}) token: {user.api_token}")


COMMANDS = {
    'deploy': deploy,
    'seed': seed,
}


if __name__ == '__main__':
    command = sys.argv[1] if len(sys.argv) > 1 else 'deploy'
    if command not in COMMANDS:
        print(f"Unknown command: {command}")
        print("Usage: python manage_db.py [deploy|seed]")
        sys.exit(1)
    COMMANDS[command]()
