from rest_framework import serializers
from .models import Group, GroupMembership, EmailInvite, GroupMessage
from apps.accounts.serializers import UserMinimalSerializer
from apps.expenses.serializers import ExpenseListSerializer


# =============================================================================
# Input Serializers
# =============================================================================

class GroupCreateSerializer(serializers.Serializer):
    """Serializer for creating groups."""

    name = serializers.CharField(max_length=200)
    member_ids = serializers.ListField(
        child=serializers.UUIDField(),
        required=False,
        default=list,
        help_text="Registered users to add straight away. The creator is always a member."
    )

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError('Group name cannot be blank')
        return value


class AddMemberSerializer(serializers.Serializer):
    """Serializer for adding a member (or inviting an email) to a group."""

    email = serializers.EmailField(max_length=255)
    display_name = serializers.CharField(max_length=100, required=False, allow_blank=True)


class MessageCreateSerializer(serializers.Serializer):
    """Serializer for posting a chat message."""

    content = serializers.CharField(trim_whitespace=True)


# =============================================================================
# Output Serializers
# =============================================================================

class GroupSerializer(serializers.ModelSerializer):
    """Main serializer for groups."""

    created_by = UserMinimalSerializer(read_only=True)
    member_count = serializers.SerializerMethodField()
    is_creator = serializers.SerializerMethodField()

    class Meta:
        model = Group
        fields = [
            'id',
            'name',
            'created_by',
            'member_count',
            'is_creator',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields

    def get_member_count(self, obj):
        """Get number of members in the group."""
        return obj.memberships.count()

    def get_is_creator(self, obj):
        """Whether the current user created the group."""
        request = self.context.get('request')
        if request and request.user.is_authenticated:
            return obj.is_creator(request.user)
        return False


class GroupListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for list views."""

    created_by = UserMinimalSerializer(read_only=True)
    member_count = serializers.SerializerMethodField()

    class Meta:
        model = Group
        fields = [
            'id',
            'name',
            'created_by',
            'member_count',
            'created_at',
        ]
        read_only_fields = fields

    def get_member_count(self, obj):
        # memberships are prefetched by list_user_groups
        return len(obj.memberships.all())


class GroupMemberSerializer(serializers.ModelSerializer):
    """Member information."""

    user = UserMinimalSerializer(read_only=True)

    class Meta:
        model = GroupMembership
        fields = ['id', 'user', 'joined_at']
        read_only_fields = fields


class EmailInviteSerializer(serializers.ModelSerializer):
    """Pending invite of an unregistered email."""

    invited_by = UserMinimalSerializer(read_only=True)

    class Meta:
        model = EmailInvite
        fields = ['id', 'email', 'display_name', 'invited_by', 'created_at']
        read_only_fields = fields


class GroupMessageSerializer(serializers.ModelSerializer):
    """Persisted chat message."""

    sender = UserMinimalSerializer(read_only=True)

    class Meta:
        model = GroupMessage
        fields = ['id', 'content', 'sender', 'created_at']
        read_only_fields = fields


class BalancesSerializer(serializers.Serializer):
    """Per-member balances: positive owes, negative is owed."""

    balances = serializers.DictField(
        child=serializers.DecimalField(max_digits=14, decimal_places=2)
    )


class GroupDetailSerializer(serializers.Serializer):
    """Serializer for the assembled group detail view."""

    group = GroupSerializer()
    members = UserMinimalSerializer(many=True)
    email_invites = EmailInviteSerializer(many=True)
    expenses = ExpenseListSerializer(many=True)
    messages = GroupMessageSerializer(many=True)
    balances = serializers.DictField(
        child=serializers.DecimalField(max_digits=14, decimal_places=2)
    )
