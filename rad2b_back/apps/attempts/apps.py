from django.apps import AppConfig


class AttemptsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.attempts'
    verbose_name = '케이스 풀이'
