"""Log every toast so headless runs keep a trace of what the user would see"""
import logging
from django.dispatch import receiver
from .signals import toast

logger = logging.getLogger('papaloma.toast')


@receiver(toast)
def log_toast(sender, level='info', message='', **kwargs):
    if level == 'error':
        logger.warning(f"[{sender.__name__}] {message}")
    else:
        logger.info(f"[{sender.__name__}] {message}")
