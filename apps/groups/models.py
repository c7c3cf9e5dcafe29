# ==========================================
# apps/groups/models.py
# ==========================================

from django.db import models
import uuid


class Group(models.Model):
    """Named collection of users sharing expenses and a chat log."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=200)
    created_by = models.ForeignKey('accounts.User', on_delete=models.CASCADE, related_name='created_groups')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'groups'
        indexes = [
            models.Index(fields=['created_by', 'created_at'], name='groups_creator_idx'),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return self.name

    def has_member(self, user):
        return self.memberships.filter(user=user).exists()

    def is_creator(self, user):
        return self.created_by_id == user.id

    def member_ids(self):
        return list(self.memberships.values_list('user_id', flat=True))


class GroupMembership(models.Model):
    """A user's membership in a group."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey('accounts.User', on_delete=models.CASCADE, related_name='group_memberships')
    group = models.ForeignKey(Group, on_delete=models.CASCADE, related_name='memberships')
    joined_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'group_memberships'
        unique_together = [['user', 'group']]
        indexes = [
            models.Index(fields=['user', 'joined_at'], name='memberships_user_idx'),
        ]
        ordering = ['joined_at']

    def __str__(self):
        return f"{self.user.get_display_name()} in {self.group.name}"


class EmailInvite(models.Model):
    """Pending invitation of an unregistered email address to a group."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    group = models.ForeignKey(Group, on_delete=models.CASCADE, related_name='email_invites')
    email = models.EmailField(max_length=255, db_index=True)
    display_name = models.CharField(max_length=100, blank=True)
    invited_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='sent_invites'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'group_email_invites'
        unique_together = [['group', 'email']]
        ordering = ['created_at']

    def __str__(self):
        return f"{self.email} invited to {self.group.name}"


class GroupMessage(models.Model):
    """Persisted chat message in a group's message log."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    group = models.ForeignKey(Group, on_delete=models.CASCADE, related_name='messages')
    sender = models.ForeignKey('accounts.User', on_delete=models.CASCADE, related_name='group_messages')
    content = models.TextField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'group_messages'
        indexes = [
            models.Index(fields=['group', 'created_at'], name='messages_group_idx'),
        ]
        ordering = ['created_at']

    def __str__(self):
        return f"{self.sender.get_display_name()}: {self.content[:40]}"
