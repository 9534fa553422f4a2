"""API views for the teams module."""
from __future__ import annotations

import logging

from django.db.models import Prefetch
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.capabilities import READ, has_any_scope
from accounts.models import User
from api.normalization import normalize_keys
from api.v1.permissions import IsManager, PolicyPermission
from api.v1.serializers import UserBriefSerializer
from core.exceptions import ResourceNotFound, ServiceError
from teams import services
from teams.models import Team, TeamMember
from teams.team_serializers import (
    AddMemberSerializer,
    LeaderboardQuerySerializer,
    TeamMemberSerializer,
    TeamSerializer,
)

logger = logging.getLogger(__name__)


# ────────────────────────────────────────────────────────────
# Teams
# ────────────────────────────────────────────────────────────

class TeamViewSet(viewsets.ModelViewSet):
    """Team CRUD and membership. Managers only."""

    serializer_class = TeamSerializer
    permission_classes = [PolicyPermission]
    policy_resource = "teams"
    policy_actions = {"add_member": "manage", "remove_member": "manage"}
    not_found_code = "TEAM_NOT_FOUND"
    filterset_fields = ["is_active"]
    search_fields = ["name", "description"]

    def get_queryset(self):
        return Team.objects.select_related("manager").prefetch_related(
            Prefetch("memberships", queryset=TeamMember.objects.select_related("user"))
        )

    @action(detail=True, methods=["post"], url_path="members")
    def add_member(self, request, pk=None):
        team = self.get_object()
        serializer = AddMemberSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user_id = serializer.validated_data["user_id"]
        if TeamMember.objects.filter(team=team, user_id=user_id).exists():
            raise ServiceError("User is already a member of this team.", code="ALREADY_MEMBER")
        member = TeamMember.objects.create(
            team=team,
            user_id=user_id,
            role=serializer.validated_data["role"],
        )
        logger.info("User %s added to team %s", user_id, team.pk)
        return Response({"member": TeamMemberSerializer(member).data}, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["delete"], url_path=r"members/(?P<user_id>[0-9a-f-]+)")
    def remove_member(self, request, pk=None, user_id=None):
        team = self.get_object()
        deleted, _ = TeamMember.objects.filter(team=team, user_id=user_id).delete()
        if not deleted:
            raise ResourceNotFound("Member not found.", code="MEMBER_NOT_FOUND")
        return Response(status=status.HTTP_204_NO_CONTENT)


# ────────────────────────────────────────────────────────────
# Team insights
# ────────────────────────────────────────────────────────────

class TeamMembersView(APIView):
    """Managers see every non-deleted user; agents see themselves."""

    permission_classes = [IsAuthenticated]

    def get(self, request):
        if has_any_scope(request.user, READ, "users"):
            qs = User.objects.not_deleted().order_by("last_name", "first_name")
        else:
            qs = User.objects.filter(pk=request.user.pk)
        return Response({"members": UserBriefSerializer(qs, many=True).data})


class LeaderboardView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        params = LeaderboardQuerySerializer(data=normalize_keys(request.query_params.dict()))
        params.is_valid(raise_exception=True)
        period = params.validated_data["period"]
        entries = services.leaderboard(
            request.user,
            period=period,
            limit=params.validated_data["limit"],
        )
        return Response({"period": period, "leaderboard": entries})


class TeamStatsView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response({"stats": services.team_stats(request.user)})


class TopAgentsView(APIView):
    permission_classes = [IsManager]

    def get(self, request):
        return Response({"agents": services.top_agents()})
