# Generated manually - 기본 역할(ADMIN, TRAINEE) 등록

from django.db import migrations


DEFAULT_ROLES = [
    ("ADMIN", "Administrator", "케이스 라이브러리 및 사용자 관리"),
    ("TRAINEE", "Trainee", "케이스 연습 및 시험 응시"),
]


def seed_roles(apps, schema_editor):
    Role = apps.get_model("accounts", "Role")
    for code, name, description in DEFAULT_ROLES:
        Role.objects.get_or_create(
            code=code,
            defaults={"name": name, "description": description, "is_active": True},
        )


def unseed_roles(apps, schema_editor):
    Role = apps.get_model("accounts", "Role")
    Role.objects.filter(code__in=[code for code, _, _ in DEFAULT_ROLES]).delete()


class Migration(migrations.Migration):

    dependencies = [
        ("accounts", "0001_initial"),
    ]

    operations = [
        migrations.RunPython(seed_roles, unseed_roles),
    ]
