#!/usr/bin/env python
"""
Management script for ChoreQuest.

This script provides command-line utilities for database migrations
and other administrative tasks, e.g. ``flask --app manage db upgrade``.
"""

from chorequest.app import create_app

# Create Flask app (Flask-Migrate is initialized by the factory)
app = create_app()

if __name__ == '__main__':
    # This allows running: python manage.py
    app.run(debug=True)
