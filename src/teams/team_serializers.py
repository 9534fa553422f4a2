"""DRF Serializers for the teams module."""
from rest_framework import serializers

from accounts.models import User
from teams.models import Team, TeamMember


class TeamMemberSerializer(serializers.ModelSerializer):
    user_name = serializers.CharField(source="user.get_full_name", read_only=True)
    email = serializers.EmailField(source="user.email", read_only=True)

    class Meta:
        model = TeamMember
        fields = ["id", "user", "user_name", "email", "role", "created_at"]
        read_only_fields = ["id", "user_name", "email", "created_at"]


class TeamSerializer(serializers.ModelSerializer):
    manager_name = serializers.CharField(source="manager.get_full_name", read_only=True, default=None)
    members = TeamMemberSerializer(source="memberships", many=True, read_only=True)

    class Meta:
        model = Team
        fields = [
            "id", "name", "description", "manager", "manager_name",
            "is_active", "members", "created_at", "updated_at",
        ]
        read_only_fields = ["id", "members", "created_at", "updated_at"]


class AddMemberSerializer(serializers.Serializer):
    user_id = serializers.UUIDField()
    role = serializers.ChoiceField(choices=TeamMember.Role.choices, default=TeamMember.Role.MEMBER)

    def validate_user_id(self, value):
        if not User.objects.active().filter(pk=value).exists():
            raise serializers.ValidationError("No active user with this id.")
        return value


class LeaderboardQuerySerializer(serializers.Serializer):
    period = serializers.ChoiceField(choices=["week", "month", "quarter", "year"], default="month")
    limit = serializers.IntegerField(min_value=1, max_value=100, default=10)
