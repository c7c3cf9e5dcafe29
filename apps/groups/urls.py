from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'groups'

# Router for ViewSets
router = DefaultRouter()
router.register(r'', views.GroupViewSet, basename='group')

urlpatterns = [
    # Group ViewSet routes
    # GET    /api/groups/                          - List user's groups
    # POST   /api/groups/                          - Create group
    # GET    /api/groups/{id}/                     - Group detail with balances
    # DELETE /api/groups/{id}/                     - Delete group (creator)

    # Custom group actions
    # GET    /api/groups/{id}/members/             - List members
    # POST   /api/groups/{id}/members/             - Add member or invite email
    # DELETE /api/groups/{id}/members/{email}/     - Remove member (creator)
    # GET    /api/groups/{id}/invites/             - List pending invites
    # DELETE /api/groups/{id}/invites/{email}/     - Cancel invite (creator)
    # POST   /api/groups/{id}/leave/               - Leave group
    # GET    /api/groups/{id}/messages/            - List chat messages
    # POST   /api/groups/{id}/messages/            - Post chat message
    # GET    /api/groups/{id}/balances/            - Balances only

    # Include router URLs
    path('', include(router.urls)),
]
