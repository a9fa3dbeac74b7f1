#!/usr/bin/env python
"""
Test runner script for the full suite
Usage: python run_tests.py (or python manage.py test)
"""
import os
import sys
import django
from django.conf import settings
from django.test.utils import get_runner

if __name__ == "__main__":
    os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'papaloma.config.settings')
    django.setup()
    TestRunner = get_runner(settings)
    test_runner = TestRunner()
    failures = test_runner.run_tests([
        'papaloma.core',
        'papaloma.accounts',
        'papaloma.inventory',
        'papaloma.users',
        'papaloma.notifications',
        'papaloma.reports',
        'papaloma.activity',
        'papaloma.ui',
        'papaloma.tests',
    ])
    sys.exit(bool(failures))
