# core/management/commands/ensure_profiles.py
from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand

from core.models import Profile

User = get_user_model()


class Command(BaseCommand):
    help = "Asegura que cada usuario tenga un perfil; los superusuarios quedan como ADMIN."

    def handle(self, *args, **options):
        users_without_profile = User.objects.filter(profile__isnull=True)
        if not users_without_profile.exists():
            self.stdout.write(self.style.SUCCESS("Todos los usuarios ya tienen un perfil."))
            return

        self.stdout.write(f"Encontrados {users_without_profile.count()} usuarios sin perfil. Creando perfiles...")
        count = 0
        for user in users_without_profile:
            role = "ADMIN" if user.is_superuser else "ASOCIADO"
            Profile.objects.create(user=user, full_name=user.get_full_name(), role=role)
            count += 1
            self.stdout.write(f"  - Perfil {role} creado para: {user.username}")

        self.stdout.write(self.style.SUCCESS(f"Proceso completado. Se crearon {count} perfiles nuevos."))
