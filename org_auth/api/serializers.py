"""
Request validation and response shapes for the REST API
"""

from rest_framework import serializers

from ..conf import auth_settings
from ..constants import MEMBER_ROLES


# Requests

class SignupSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255, trim_whitespace=True)
    email = serializers.EmailField(max_length=254)
    password = serializers.CharField(trim_whitespace=False, write_only=True)

    def validate_password(self, value):
        min_length = int(auth_settings.PASSWORD_MIN_LENGTH)
        if len(value) < min_length:
            raise serializers.ValidationError(f"Password must be at least {min_length} characters")
        return value


class SigninSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(trim_whitespace=False, write_only=True)


class RefreshTokenSerializer(serializers.Serializer):
    refresh_token = serializers.CharField()


class OrganizationCreateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class OrganizationUpdateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255, required=False)
    description = serializers.CharField(required=False, allow_blank=True, allow_null=True)

    def validate(self, attrs):
        unknown = sorted(set(self.initial_data) - set(self.fields))
        if unknown:
            raise serializers.ValidationError(f"Unsupported fields: {', '.join(unknown)}")
        return attrs


class InviteMemberSerializer(serializers.Serializer):
    email = serializers.EmailField()


class ChangeRoleSerializer(serializers.Serializer):
    role = serializers.ChoiceField(choices=MEMBER_ROLES)


class PaginationSerializer(serializers.Serializer):
    page = serializers.IntegerField(min_value=1, default=1)
    limit = serializers.IntegerField(min_value=1, required=False)
    search = serializers.CharField(required=False, allow_blank=True)


# Responses

class TokenPairSerializer(serializers.Serializer):
    access_token = serializers.CharField()
    refresh_token = serializers.CharField()


class UserProfileSerializer(serializers.Serializer):
    id = serializers.CharField()
    name = serializers.CharField()
    email = serializers.EmailField()
    organizations = serializers.ListField(child=serializers.CharField())


class MemberSerializer(serializers.Serializer):
    name = serializers.CharField()
    email = serializers.EmailField()
    role = serializers.CharField()


class OrganizationSerializer(serializers.Serializer):
    id = serializers.CharField()
    name = serializers.CharField()
    description = serializers.CharField(allow_null=True)
    created_by = serializers.CharField()
    members = MemberSerializer(many=True)
    version = serializers.IntegerField()


def page_data(page, item_serializer):
    return {
        'items': item_serializer(page.items, many=True).data,
        'page': page.page,
        'limit': page.limit,
        'total': page.total,
        'total_pages': page.total_pages,
    }
