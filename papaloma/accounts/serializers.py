from rest_framework import serializers

PASSWORD_MIN_LENGTH = 6


def password_field(message='Password minimal 6 karakter', **kwargs):
    return serializers.CharField(
        min_length=PASSWORD_MIN_LENGTH,
        trim_whitespace=False,
        error_messages={
            'min_length': message,
            'blank': message,
            'required': message,
        },
        **kwargs
    )


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField(error_messages={'invalid': 'Email tidak valid', 'required': 'Email tidak valid'})
    password = password_field()


class ProfileSerializer(serializers.Serializer):
    name = serializers.CharField(
        min_length=2,
        required=False,
        error_messages={'min_length': 'Nama minimal 2 karakter', 'blank': 'Nama minimal 2 karakter'},
    )
    email = serializers.EmailField(required=False, error_messages={'invalid': 'Email tidak valid'})


class ChangePasswordSerializer(serializers.Serializer):
    currentPassword = password_field()
    newPassword = password_field('Password baru minimal 6 karakter')
    confirmPassword = serializers.CharField(trim_whitespace=False)

    def validate(self, attrs):
        if attrs['newPassword'] != attrs['confirmPassword']:
            raise serializers.ValidationError({'confirmPassword': 'Password tidak cocok'})
        return attrs


class ResetPasswordSerializer(serializers.Serializer):
    token = serializers.CharField()
    newPassword = password_field()
    confirmPassword = serializers.CharField(trim_whitespace=False)

    def validate(self, attrs):
        if attrs['newPassword'] != attrs['confirmPassword']:
            raise serializers.ValidationError({'confirmPassword': 'Password tidak cocok'})
        return attrs


class ForgotPasswordSerializer(serializers.Serializer):
    email = serializers.EmailField(error_messages={'invalid': 'Email tidak valid', 'required': 'Email tidak valid'})
