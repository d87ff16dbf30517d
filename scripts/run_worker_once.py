#!/usr/bin/env python3
"""Drain one batch of weather jobs for testing/debugging."""

import json
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from weather_sync import create_app
from weather_sync.services.worker import WeatherWorker
from weather_sync.settings import get_settings

if __name__ == '__main__':
    app = create_app()
    with app.app_context():
        report = WeatherWorker(get_settings(app)).run()
        summary = report['summary']
        print(f"Worker complete: {summary['done']} done, {summary['no_weather_data']} without data, "
              f"{summary['errors']} errors (of {summary['total']})")
        for result in report['results']:
            if result['status'] == 'error':
                print(f"  {result['job_id']} ({result['user_id']} {result['local_date']}): {result['error']}")
        if '-v' in sys.argv:
            print(json.dumps(report['results'], indent=2))
