#!/usr/bin/env python3
"""Run the weather dispatcher once (what the hourly trigger does)."""

import json
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from weather_sync import create_app
from weather_sync.services.dispatcher import WeatherDispatcher
from weather_sync.settings import get_settings

if __name__ == '__main__':
    app = create_app()
    with app.app_context():
        report = WeatherDispatcher(get_settings(app)).run()
        print(json.dumps(report['summary'], indent=2))
        if '-v' in sys.argv:
            print(json.dumps(report['results'], indent=2))
