#!/usr/bin/env python3
"""Load reference cities into the database. Idempotent."""

import json
import os
import sys

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from weather_sync import create_app
from weather_sync.extensions import db
from weather_sync.models.city import City


def seed_cities(filepath):
    """Load cities from JSON. Skip existing by (name, lat, lon)."""
    with open(filepath) as f:
        cities = json.load(f)

    added = 0
    skipped = 0
    for c in cities:
        existing = City.query.filter_by(name=c['name'], lat=c['lat'], lon=c['lon']).first()
        if existing:
            skipped += 1
            continue

        city = City(
            name=c['name'],
            lat=c['lat'],
            lon=c['lon'],
            timezone=c.get('timezone'),
        )
        db.session.add(city)
        added += 1

    db.session.commit()
    print(f"Cities: {added} added, {skipped} skipped (already exist)")
    return added


if __name__ == '__main__':
    app = create_app()
    project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    path = sys.argv[1] if len(sys.argv) > 1 else os.path.join(project_root, 'seed_cities.json')

    with app.app_context():
        print(f"Seeding cities from {path}...")
        seed_cities(path)
        print("Done.")
