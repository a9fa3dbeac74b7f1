from django.apps import AppConfig


class CoreConfig(AppConfig):
    name = 'papaloma.core'

    def ready(self):
        """Import signal receivers when app is ready"""
        import papaloma.core.receivers  # noqa: F401
