#!/usr/bin/env python3
"""
Script to seed the league's teams into the database.
Existing teams (matched by name) are left untouched.
"""

import os
import sys

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from fantaschedina import create_app  # noqa: E402
from fantaschedina.services.team_import import import_default_teams  # noqa: E402


def main():
    app = create_app()

    with app.app_context():
        created, skipped = import_default_teams()

        for name in created:
            print(f"✅ Created team: {name}")
        for name in skipped:
            print(f"⚪ Team already exists: {name}")

        print(f"\n🎉 Imported {len(created)} teams ({len(skipped)} skipped)")


if __name__ == "__main__":
    main()
