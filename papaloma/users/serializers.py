from rest_framework import serializers
from papaloma.accounts.serializers import password_field

ROLE_ADMIN = 'admin'
ROLE_SUPER_ADMIN = 'super_admin'
ROLE_CHOICES = [
    (ROLE_ADMIN, 'Admin'),
    (ROLE_SUPER_ADMIN, 'Super Admin'),
]

STATUS_ACTIVE = 'active'
STATUS_INACTIVE = 'inactive'
STATUS_CHOICES = [
    (STATUS_ACTIVE, 'Aktif'),
    (STATUS_INACTIVE, 'Nonaktif'),
]


class UserUpdateSerializer(serializers.Serializer):
    name = serializers.CharField(
        min_length=2,
        error_messages={'min_length': 'Nama minimal 2 karakter', 'blank': 'Nama minimal 2 karakter'},
    )
    email = serializers.EmailField(error_messages={'invalid': 'Email tidak valid'})
    role = serializers.ChoiceField(choices=ROLE_CHOICES, required=False)
    status = serializers.ChoiceField(choices=STATUS_CHOICES, required=False)


class UserCreateSerializer(UserUpdateSerializer):
    password = password_field()


class ResetUserPasswordSerializer(serializers.Serializer):
    newPassword = password_field()
