"""
Org Auth REST API

Thin adapter: validates request shape, calls the identity gateway and maps
its result to an HTTP response. Error bodies are ``{"error", "code"}``.
"""

from functools import lru_cache

from django.core.signals import setting_changed
from rest_framework import status
from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.response import Response

from ..constants import ErrorCode
from ..decorators import require_access_token
from ..gateway import IdentityGateway
from .serializers import (
    ChangeRoleSerializer,
    InviteMemberSerializer,
    MemberSerializer,
    OrganizationCreateSerializer,
    OrganizationSerializer,
    OrganizationUpdateSerializer,
    PaginationSerializer,
    RefreshTokenSerializer,
    SigninSerializer,
    SignupSerializer,
    TokenPairSerializer,
    UserProfileSerializer,
    page_data,
)


GATEWAY_SETTINGS = ('ORG_AUTH', 'CACHES', 'SECRET_KEY')


@lru_cache(maxsize=None)
def get_gateway() -> IdentityGateway:
    """Gateway shared by every request, built on first use"""
    return IdentityGateway.from_settings()


def reset_gateway(*, setting, **kwargs):
    if setting in GATEWAY_SETTINGS:
        get_gateway.cache_clear()


setting_changed.connect(reset_gateway)


def _invalid(serializer):
    """First validation message as a bad_request body"""
    field, messages = next(iter(serializer.errors.items()))
    message = messages[0] if isinstance(messages, list) else messages
    if field != 'non_field_errors':
        message = f"{field}: {message}"
    return Response({
        'error': str(message),
        'code': ErrorCode.BAD_REQUEST
    }, status=status.HTTP_400_BAD_REQUEST)


def _respond(result, render=None, success_status=status.HTTP_200_OK):
    if not result.ok:
        return Response({
            'error': result.error.message,
            'code': result.error.kind
        }, status=result.error.status)

    if render is None:
        return Response(status=success_status)
    return Response(render(result.value), status=success_status)


# Authentication

@api_view(['POST'])
@authentication_classes([])
@permission_classes([])
def signup(request):
    """Register a user"""
    serializer = SignupSerializer(data=request.data)
    if not serializer.is_valid():
        return _invalid(serializer)

    result = get_gateway().signup(**serializer.validated_data)
    return _respond(
        result,
        lambda user_id: {'id': user_id, 'message': 'User registered successfully'},
        success_status=status.HTTP_201_CREATED
    )


@api_view(['POST'])
@authentication_classes([])
@permission_classes([])
def signin(request):
    """Exchange credentials for a token pair"""
    serializer = SigninSerializer(data=request.data)
    if not serializer.is_valid():
        return _invalid(serializer)

    result = get_gateway().signin(**serializer.validated_data)
    return _respond(result, lambda pair: TokenPairSerializer(pair).data)


@api_view(['POST'])
@authentication_classes([])
@permission_classes([])
def refresh_token(request):
    """Rotate a refresh token"""
    serializer = RefreshTokenSerializer(data=request.data)
    if not serializer.is_valid():
        return _invalid(serializer)

    result = get_gateway().refresh_token(serializer.validated_data['refresh_token'])
    return _respond(result, lambda pair: TokenPairSerializer(pair).data)


@api_view(['POST'])
@authentication_classes([])
@permission_classes([])
@require_access_token
def revoke_refresh_token(request):
    """Revoke one of the caller's refresh tokens"""
    serializer = RefreshTokenSerializer(data=request.data)
    if not serializer.is_valid():
        return _invalid(serializer)

    result = get_gateway().revoke_refresh_token(
        request.access_token,
        serializer.validated_data['refresh_token']
    )
    return _respond(result, lambda _: {'message': 'Refresh token revoked'})


@api_view(['GET'])
@authentication_classes([])
@permission_classes([])
@require_access_token
def profile(request):
    result = get_gateway().profile(request.access_token)
    return _respond(result, lambda user: UserProfileSerializer(user).data)


# Organizations

@api_view(['GET', 'POST'])
@authentication_classes([])
@permission_classes([])
@require_access_token
def organizations(request):
    """GET lists the caller's organizations, POST creates one"""
    gateway = get_gateway()

    if request.method == 'POST':
        serializer = OrganizationCreateSerializer(data=request.data)
        if not serializer.is_valid():
            return _invalid(serializer)

        result = gateway.create_organization(
            request.access_token,
            serializer.validated_data['name'],
            serializer.validated_data.get('description')
        )
        return _respond(
            result,
            lambda org_id: {'id': org_id, 'message': 'Organization created successfully'},
            success_status=status.HTTP_201_CREATED
        )

    serializer = PaginationSerializer(data=request.query_params)
    if not serializer.is_valid():
        return _invalid(serializer)

    result = gateway.list_organizations(
        request.access_token,
        page=serializer.validated_data['page'],
        limit=serializer.validated_data.get('limit'),
        search_term=serializer.validated_data.get('search')
    )
    return _respond(result, lambda page: page_data(page, OrganizationSerializer))


@api_view(['GET', 'PUT', 'DELETE'])
@authentication_classes([])
@permission_classes([])
@require_access_token
def organization_detail(request, org_id):
    gateway = get_gateway()

    if request.method == 'PUT':
        serializer = OrganizationUpdateSerializer(data=request.data)
        if not serializer.is_valid():
            return _invalid(serializer)

        result = gateway.update_organization(request.access_token, org_id, dict(serializer.validated_data))
        return _respond(result, lambda org: OrganizationSerializer(org).data)

    if request.method == 'DELETE':
        result = gateway.delete_organization(request.access_token, org_id)
        return _respond(result, success_status=status.HTTP_204_NO_CONTENT)

    result = gateway.get_organization(request.access_token, org_id)
    return _respond(result, lambda org: OrganizationSerializer(org).data)


# Members

@api_view(['POST'])
@authentication_classes([])
@permission_classes([])
@require_access_token
def invite_member(request, org_id):
    serializer = InviteMemberSerializer(data=request.data)
    if not serializer.is_valid():
        return _invalid(serializer)

    result = get_gateway().invite_member(request.access_token, org_id, serializer.validated_data['email'])
    return _respond(result, lambda org: OrganizationSerializer(org).data)


@api_view(['GET'])
@authentication_classes([])
@permission_classes([])
@require_access_token
def members(request, org_id):
    serializer = PaginationSerializer(data=request.query_params)
    if not serializer.is_valid():
        return _invalid(serializer)

    result = get_gateway().list_members(
        request.access_token,
        org_id,
        page=serializer.validated_data['page'],
        limit=serializer.validated_data.get('limit')
    )
    return _respond(result, lambda page: page_data(page, MemberSerializer))


@api_view(['DELETE'])
@authentication_classes([])
@permission_classes([])
@require_access_token
def remove_member(request, org_id, email):
    result = get_gateway().remove_member(request.access_token, org_id, email)
    return _respond(result, lambda org: OrganizationSerializer(org).data)


@api_view(['PUT'])
@authentication_classes([])
@permission_classes([])
@require_access_token
def change_role(request, org_id, email):
    serializer = ChangeRoleSerializer(data=request.data)
    if not serializer.is_valid():
        return _invalid(serializer)

    result = get_gateway().change_role(request.access_token, org_id, email, serializer.validated_data['role'])
    return _respond(result, lambda member: MemberSerializer(member).data)
