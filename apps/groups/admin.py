# ==========================================
# apps/groups/admin.py
# ==========================================

from django.contrib import admin
from apps.groups.models import Group, GroupMembership, EmailInvite, GroupMessage


class GroupMembershipInline(admin.TabularInline):
    """Inline admin for group memberships."""
    model = GroupMembership
    extra = 0
    fields = ['user', 'joined_at']
    readonly_fields = ['joined_at']


class EmailInviteInline(admin.TabularInline):
    """Inline admin for pending email invites."""
    model = EmailInvite
    extra = 0
    fields = ['email', 'display_name', 'invited_by', 'created_at']
    readonly_fields = ['created_at']


class GroupMessageInline(admin.TabularInline):
    """Inline admin for the chat log."""
    model = GroupMessage
    extra = 0
    fields = ['sender', 'content', 'created_at']
    readonly_fields = ['sender', 'content', 'created_at']

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Group)
class GroupAdmin(admin.ModelAdmin):
    """Admin interface for Groups."""

    list_display = [
        'name',
        'created_by',
        'member_count',
        'created_at'
    ]
    list_filter = ['created_at']
    search_fields = ['name', 'created_by__email']
    readonly_fields = ['created_at', 'updated_at']
    inlines = [GroupMembershipInline, EmailInviteInline, GroupMessageInline]
    date_hierarchy = 'created_at'
    ordering = ['-created_at']

    fieldsets = (
        ('Basic Information', {
            'fields': ('name', 'created_by')
        }),
        ('Metadata', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    def member_count(self, obj):
        """Show number of members."""
        return obj.memberships.count()
    member_count.short_description = 'Members'


@admin.register(GroupMembership)
class GroupMembershipAdmin(admin.ModelAdmin):
    """Admin interface for Group Memberships."""

    list_display = ['user', 'group', 'joined_at']
    list_filter = ['joined_at']
    search_fields = ['user__email', 'group__name']
    readonly_fields = ['joined_at']
    date_hierarchy = 'joined_at'
    ordering = ['-joined_at']

    def get_queryset(self, request):
        """Optimize query."""
        qs = super().get_queryset(request)
        return qs.select_related('user', 'group')


@admin.register(EmailInvite)
class EmailInviteAdmin(admin.ModelAdmin):
    """Admin interface for pending invites."""

    list_display = ['email', 'display_name', 'group', 'invited_by', 'created_at']
    search_fields = ['email', 'group__name']
    readonly_fields = ['created_at']
    ordering = ['-created_at']

    def get_queryset(self, request):
        """Optimize query."""
        qs = super().get_queryset(request)
        return qs.select_related('group', 'invited_by')
