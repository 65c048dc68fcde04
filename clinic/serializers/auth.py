from rest_framework import serializers

from .fields import CleanCharField


class LoginSerializer(serializers.Serializer):
    email = serializers.CharField(required=False, allow_blank=True)
    username = serializers.CharField(required=False, allow_blank=True)
    password = serializers.CharField()

    def validate(self, attrs):
        identifier = (attrs.get('email') or attrs.get('username') or '').strip()
        if not identifier:
            raise serializers.ValidationError('Email is required')
        attrs['identifier'] = identifier
        return attrs

    def validate_password(self, v):
        if not v:
            raise serializers.ValidationError('Password is required')
        return v


class RegisterSerializer(serializers.Serializer):
    name = CleanCharField(max_length=255)
    email = serializers.EmailField()
    gender = serializers.CharField(max_length=20, required=False, allow_blank=True)
    password = serializers.CharField(write_only=True)

    def validate_name(self, v):
        if len(v) < 2:
            raise serializers.ValidationError('Name must be at least 2 characters')
        return v


class UserUpdateSerializer(serializers.Serializer):
    name = CleanCharField(max_length=255, required=False)
    email = serializers.EmailField(required=False)
    gender = serializers.CharField(max_length=20, required=False, allow_blank=True)
    role = serializers.ChoiceField(choices=['admin', 'doctor', 'staff', 'patient'], required=False)
    status = serializers.ChoiceField(choices=['active', 'inactive'], required=False)
    hospital = serializers.IntegerField(required=False, allow_null=True)


class ProfileUpdateSerializer(serializers.Serializer):
    name = CleanCharField(max_length=255, required=False)
    email = serializers.EmailField(required=False)
    gender = serializers.CharField(max_length=20, required=False, allow_blank=True)


class ChangePasswordSerializer(serializers.Serializer):
    currentPassword = serializers.CharField()
    newPassword = serializers.CharField()
