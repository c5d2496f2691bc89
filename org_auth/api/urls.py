"""
Org Auth REST API routes

Include under any prefix:
    path('api/', include('org_auth.api.urls'))
"""

from django.urls import path

from . import views


app_name = 'org_auth'

urlpatterns = [
    # Authentication
    path('auth/signup', views.signup, name='signup'),  # POST
    path('auth/signin', views.signin, name='signin'),  # POST
    path('auth/refresh-token', views.refresh_token, name='refresh-token'),  # POST
    path('auth/revoke-refresh-token', views.revoke_refresh_token, name='revoke-refresh-token'),  # POST, Bearer
    path('auth/profile', views.profile, name='profile'),  # GET, Bearer

    # Organizations
    path('organization', views.organizations, name='organizations'),  # GET/POST
    path('organization/<str:org_id>', views.organization_detail, name='organization-detail'),  # GET/PUT/DELETE
    path('organization/<str:org_id>/invite', views.invite_member, name='organization-invite'),  # POST
    path('organization/<str:org_id>/members', views.members, name='organization-members'),  # GET
    path(
        'organization/<str:org_id>/members/<str:email>',
        views.remove_member,
        name='organization-member'
    ),  # DELETE
    path(
        'organization/<str:org_id>/members/<str:email>/role',
        views.change_role,
        name='organization-member-role'
    ),  # PUT
]
