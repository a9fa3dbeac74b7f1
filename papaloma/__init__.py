"""
Papaloma Inventory client: state containers for the restaurant inventory API.
"""
import os

__version__ = '1.0.0'


def setup(settings_module='papaloma.config.settings'):
    """Configure Django for standalone use (scripts, REPL, embedding)"""
    import django

    os.environ.setdefault('DJANGO_SETTINGS_MODULE', settings_module)
    django.setup()
