from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.pagination import PageNumberPagination
from drf_spectacular.utils import extend_schema

from .models import EmailInvite
from .serializers import (
    GroupSerializer,
    GroupCreateSerializer,
    GroupListSerializer,
    GroupDetailSerializer,
    GroupMemberSerializer,
    AddMemberSerializer,
    EmailInviteSerializer,
    MessageCreateSerializer,
    GroupMessageSerializer,
    BalancesSerializer,
)

from apps.groups.services import (
    create_group,
    list_user_groups,
    get_group_detail,
    get_group_balances,
    delete_group,
    add_member,
    remove_member,
    leave_group,
    get_group_members,
    cancel_invite,
    list_invites,
    post_message,
    list_messages,
    require_membership,
    # Exceptions
    GroupNotFoundError,
    UserNotFoundError,
    AlreadyMemberError,
    AlreadyInvitedError,
    NotMemberError,
    CreatorCannotLeaveError,
    CannotRemoveCreatorError,
    InsufficientPermissionsError,
    InvalidMessageError,
)


class GroupPagination(PageNumberPagination):
    """Custom pagination for groups."""
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100


class GroupViewSet(viewsets.GenericViewSet):
    """
    ViewSet for groups, their members, invites, chat and balances.

    All business logic is handled by services.
    Views are thin HTTP handlers only.

    list: Get all groups (user is member of)
    create: Create a new group
    retrieve: Get group detail with computed balances
    destroy: Delete a group (creator only)
    """

    serializer_class = GroupSerializer
    permission_classes = [IsAuthenticated]
    pagination_class = GroupPagination

    def get_queryset(self):
        """Return only groups where user is a member."""
        return list_user_groups(user=self.request.user)

    def get_serializer_class(self):
        """Use different serializers for different actions."""
        if self.action == 'list':
            return GroupListSerializer
        elif self.action == 'create':
            return GroupCreateSerializer
        elif self.action == 'retrieve':
            return GroupDetailSerializer
        return GroupSerializer

    def list(self, request):
        """List groups the current user belongs to."""
        queryset = self.get_queryset()
        page = self.paginate_queryset(queryset)
        if page is not None:
            serializer = GroupListSerializer(page, many=True)
            return self.get_paginated_response(serializer.data)

        serializer = GroupListSerializer(queryset, many=True)
        return Response(serializer.data)

    @extend_schema(request=GroupCreateSerializer, responses={201: GroupSerializer})
    def create(self, request):
        """Create a new group."""
        serializer = GroupCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            group = create_group(
                name=serializer.validated_data['name'],
                creator=request.user,
                member_ids=serializer.validated_data['member_ids'],
            )
        except UserNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)

        output_serializer = GroupSerializer(group, context={'request': request})
        return Response(output_serializer.data, status=status.HTTP_201_CREATED)

    def retrieve(self, request, pk=None):
        """Get group detail, balances recomputed on every call."""
        try:
            detail = get_group_detail(group_id=pk, user=request.user)
        except GroupNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except NotMemberError as e:
            return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)

        serializer = GroupDetailSerializer(detail, context={'request': request})
        return Response(serializer.data)

    def destroy(self, request, pk=None):
        """Delete a group."""
        try:
            delete_group(group_id=pk, user=request.user)
        except GroupNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except InsufficientPermissionsError as e:
            return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)

        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(
        methods=['GET'],
        request=None,
        responses={200: GroupMemberSerializer(many=True)},
    )
    @extend_schema(
        methods=['POST'],
        request=AddMemberSerializer,
        responses={201: GroupMemberSerializer},
        description="Add a registered user, or record a pending invite for an unknown email.",
    )
    @action(detail=True, methods=['get', 'post'])
    def members(self, request, pk=None):
        """List members, or add a member by email."""
        if request.method == 'GET':
            try:
                memberships = get_group_members(group_id=pk, user=request.user)
            except GroupNotFoundError as e:
                return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
            except NotMemberError as e:
                return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)

            serializer = GroupMemberSerializer(memberships, many=True)
            return Response(serializer.data)

        try:
            require_membership(group_id=pk, user=request.user)

            serializer = AddMemberSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)

            result = add_member(
                group_id=pk,
                email=serializer.validated_data['email'],
                added_by=request.user,
                display_name=serializer.validated_data.get('display_name', ''),
            )
        except GroupNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except NotMemberError as e:
            return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)
        except (AlreadyMemberError, AlreadyInvitedError) as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        if isinstance(result, EmailInvite):
            return Response(
                {'status': 'invited', 'invite': EmailInviteSerializer(result).data},
                status=status.HTTP_201_CREATED
            )

        return Response(
            {'status': 'member', 'member': GroupMemberSerializer(result).data},
            status=status.HTTP_201_CREATED
        )

    @extend_schema(request=None, responses={204: None})
    @action(
        detail=True,
        methods=['delete'],
        url_path=r'members/(?P<email>[^/]+)',
        url_name='remove-member'
    )
    def remove_member(self, request, pk=None, email=None):
        """Remove a member (and any pending invite) by email (creator only)."""
        try:
            remove_member(group_id=pk, email=email, removed_by=request.user)
        except GroupNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except (NotMemberError, InsufficientPermissionsError) as e:
            return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)
        except CannotRemoveCreatorError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(request=None, responses={200: EmailInviteSerializer(many=True)})
    @action(detail=True, methods=['get'])
    def invites(self, request, pk=None):
        """List pending invites."""
        try:
            invites = list_invites(group_id=pk, user=request.user)
        except GroupNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except NotMemberError as e:
            return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)

        serializer = EmailInviteSerializer(invites, many=True)
        return Response(serializer.data)

    @extend_schema(request=None, responses={204: None})
    @action(
        detail=True,
        methods=['delete'],
        url_path=r'invites/(?P<email>[^/]+)',
        url_name='cancel-invite'
    )
    def cancel_invite(self, request, pk=None, email=None):
        """Cancel a pending invite (creator only). Absent invites are a no-op."""
        try:
            cancel_invite(group_id=pk, email=email, user=request.user)
        except GroupNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except (NotMemberError, InsufficientPermissionsError) as e:
            return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)

        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(request=None, responses={204: None})
    @action(detail=True, methods=['post'])
    def leave(self, request, pk=None):
        """Leave a group."""
        try:
            leave_group(group_id=pk, user=request.user)
        except GroupNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except NotMemberError as e:
            return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)
        except CreatorCannotLeaveError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(
        methods=['GET'],
        request=None,
        responses={200: GroupMessageSerializer(many=True)},
    )
    @extend_schema(
        methods=['POST'],
        request=MessageCreateSerializer,
        responses={201: GroupMessageSerializer},
    )
    @action(detail=True, methods=['get', 'post'])
    def messages(self, request, pk=None):
        """List the chat log, or post a message to it."""
        if request.method == 'GET':
            try:
                messages = list_messages(group_id=pk, user=request.user)
            except GroupNotFoundError as e:
                return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
            except NotMemberError as e:
                return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)

            serializer = GroupMessageSerializer(messages, many=True)
            return Response(serializer.data)

        try:
            require_membership(group_id=pk, user=request.user)

            serializer = MessageCreateSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)

            message = post_message(
                group_id=pk,
                user=request.user,
                content=serializer.validated_data['content'],
            )
        except GroupNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except NotMemberError as e:
            return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)
        except InvalidMessageError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        output_serializer = GroupMessageSerializer(message)
        return Response(output_serializer.data, status=status.HTTP_201_CREATED)

    @extend_schema(request=None, responses={200: BalancesSerializer})
    @action(detail=True, methods=['get'])
    def balances(self, request, pk=None):
        """Get per-member balances only."""
        try:
            balances = get_group_balances(group_id=pk, user=request.user)
        except GroupNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except NotMemberError as e:
            return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)

        serializer = BalancesSerializer({'balances': balances})
        return Response(serializer.data)
