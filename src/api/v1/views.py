"""ViewSets and API views for the back-office API v1."""
import logging

from django.db import transaction
from django.db.models import F, Q
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import SAFE_METHODS, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts import services as account_services
from accounts.capabilities import CREATE, MANAGE, READ, UPDATE, has_any_scope
from accounts.models import User
from api.normalization import query_param
from api.v1.pagination import ContentPagination
from api.v1.permissions import IsManager, PolicyPermission
from api.v1.serializers import (
    ChangePasswordSerializer,
    ClientNoteSerializer,
    ClientSerializer,
    ContentCategorySerializer,
    ContentSerializer,
    MeSerializer,
    ProductSerializer,
    ReminderSerializer,
    ResetPasswordSerializer,
    SaleSerializer,
    SaleWriteSerializer,
    UserBriefSerializer,
    UserCreateSerializer,
    UserSerializer,
)
from clients.models import Client, ClientNote
from content.models import Content, ContentCategory
from core.exceptions import AccessDenied, ResourceNotFound, ServiceError
from core.export import rows_to_xlsx_response
from products.models import Product
from reminders.models import Reminder
from sales import services as sale_services
from sales.models import Sale

logger = logging.getLogger("bulwark")


def _scope_to_owner(qs, user, resource, owner_field):
    """Restrict *qs* to the user's own rows unless their role reads any."""
    if has_any_scope(user, READ, resource):
        return qs
    return qs.filter(**{owner_field: user.pk})


def _resolve_owner(user, agent_id, resource, action=CREATE):
    """Managers may assign a record to another active user."""
    if agent_id is None or str(agent_id) == str(user.pk):
        return user
    if not has_any_scope(user, action, resource):
        raise AccessDenied("Only managers can assign records to another agent.")
    agent = User.objects.active().filter(pk=agent_id).first()
    if agent is None:
        raise ResourceNotFound("Agent not found.", code="USER_NOT_FOUND")
    return agent


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------

class UserViewSet(viewsets.ModelViewSet):
    """
    User management. Managers only, except ``agents/``.

    Deletion is a soft delete; the last active manager cannot be removed.
    """

    permission_classes = [IsManager]
    not_found_code = "USER_NOT_FOUND"
    filterset_fields = ['role', 'is_active', 'department']
    search_fields = ['email', 'first_name', 'last_name']
    ordering_fields = ['last_name', 'date_joined', 'role', 'last_login']

    def get_permissions(self):
        if self.action == 'agents':
            return [IsAuthenticated()]
        return super().get_permissions()

    def get_queryset(self):
        qs = User.objects.select_related('manager')
        if self.action in ('reactivate', 'retrieve'):
            return qs
        return qs.filter(deleted_at__isnull=True)

    def get_serializer_class(self):
        if self.action == 'create':
            return UserCreateSerializer
        return UserSerializer

    def create(self, request, *args, **kwargs):
        serializer = UserCreateSerializer(data=request.data, context=self.get_serializer_context())
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        logger.info("User %s (%s) created by %s", user.pk, user.role, request.user.pk)
        return Response({"user": UserSerializer(user).data}, status=status.HTTP_201_CREATED)

    def perform_update(self, serializer):
        user = serializer.instance
        new_role = serializer.validated_data.get('role', user.role)
        with transaction.atomic():
            if new_role != User.Role.MANAGER:
                account_services.ensure_not_last_manager(user, "Cannot demote the last active manager.")
            serializer.save()

    def destroy(self, request, *args, **kwargs):
        user = self.get_object()
        account_services.soft_delete_user(user, acting_user=request.user)
        return Response({"message": "User deleted successfully"})

    @action(detail=True, methods=['post'], url_path='reactivate')
    def reactivate(self, request, pk=None):
        user = account_services.reactivate_user(self.get_object())
        return Response({"message": "User reactivated successfully", "user": UserSerializer(user).data})

    @action(detail=True, methods=['post'], url_path='reset-password')
    def reset_password(self, request, pk=None):
        user = self.get_object()
        serializer = ResetPasswordSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        account_services.reset_password(user, serializer.validated_data['new_password'])
        return Response({"message": "Password reset successfully"})

    @action(detail=True, methods=['post'], url_path='unlock')
    def unlock(self, request, pk=None):
        user = account_services.unlock_account(self.get_object())
        logger.info("User %s unlocked by %s", user.pk, request.user.pk)
        return Response({"message": "Account unlocked", "user": UserSerializer(user).data})

    @action(detail=False, methods=['get'], url_path='agents')
    def agents(self, request):
        qs = User.objects.active().agents().order_by('last_name', 'first_name')
        return Response({"agents": UserBriefSerializer(qs, many=True).data})


class MeView(APIView):
    """GET/PATCH the authenticated user's profile."""

    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response({"user": MeSerializer(request.user).data})

    def patch(self, request):
        serializer = MeSerializer(request.user, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response({"user": serializer.data})


class ChangePasswordView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = ChangePasswordSerializer(data=request.data, context={'request': request})
        serializer.is_valid(raise_exception=True)
        request.user.set_password(serializer.validated_data['new_password'])
        request.user.save(update_fields=['password', 'updated_at'])
        logger.info("User %s changed their password", request.user.pk)
        return Response({"message": "Password changed successfully"})


# ---------------------------------------------------------------------------
# Clients
# ---------------------------------------------------------------------------

class ClientViewSet(viewsets.ModelViewSet):
    """
    Agent-owned clients.

    - Managers see every client and may filter by ``agent_id``.
    - Agents see and change their own clients only.
    """

    serializer_class = ClientSerializer
    permission_classes = [PolicyPermission]
    policy_resource = "clients"
    policy_owner_field = "agent_id"
    policy_actions = {"export": "export", "notes": "read"}
    not_found_code = "CLIENT_NOT_FOUND"
    filterset_fields = ['status']
    search_fields = ['first_name', 'last_name', 'email', 'phone']
    ordering_fields = ['created_at', 'last_name', 'status']

    def get_queryset(self):
        qs = Client.objects.select_related('agent')
        if self.action not in ('list', 'export'):
            return qs
        qs = _scope_to_owner(qs, self.request.user, self.policy_resource, 'agent_id')
        agent_id = query_param(self.request, 'agent_id')
        if agent_id and has_any_scope(self.request.user, READ, self.policy_resource):
            qs = qs.filter(agent_id=agent_id)
        return qs

    def perform_create(self, serializer):
        agent_id = serializer.validated_data.pop('agent_id', None)
        agent = _resolve_owner(self.request.user, agent_id, self.policy_resource)
        client = serializer.save(agent=agent)
        logger.info("Client %s created for agent %s", client.pk, agent.pk)

    def perform_update(self, serializer):
        agent_id = serializer.validated_data.pop('agent_id', None)
        if agent_id is not None:
            agent = _resolve_owner(self.request.user, agent_id, self.policy_resource, UPDATE)
            serializer.save(agent=agent)
        else:
            serializer.save()

    def perform_destroy(self, instance):
        if instance.sales.exists():
            raise ServiceError(
                "Client has recorded sales and cannot be deleted.",
                code="CLIENT_HAS_SALES",
            )
        logger.info("Client %s deleted by %s", instance.pk, self.request.user.pk)
        instance.delete()

    @action(detail=True, methods=['get', 'post'], url_path='notes')
    def notes(self, request, pk=None):
        client = self.get_object()
        if request.method == 'POST':
            serializer = ClientNoteSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)
            note = serializer.save(client=client, agent=request.user)
            return Response({"note": ClientNoteSerializer(note).data}, status=status.HTTP_201_CREATED)

        notes = (
            ClientNote.objects.filter(client=client)
            .filter(Q(is_private=False) | Q(agent=request.user))
            .select_related('agent')
        )
        return Response({"notes": ClientNoteSerializer(notes, many=True).data})

    @action(detail=False, methods=['get'], url_path='export')
    def export(self, request):
        qs = self.filter_queryset(self.get_queryset())
        columns = [
            ('first_name', 'First name'),
            ('last_name', 'Last name'),
            ('email', 'Email'),
            ('phone', 'Phone'),
            ('date_of_birth', 'Date of birth'),
            ('employer', 'Employer'),
            (lambda c: c.get_status_display(), 'Status'),
            (lambda c: c.agent.get_full_name(), 'Agent'),
            ('created_at', 'Created'),
        ]
        filename = "clients"
        return rows_to_xlsx_response(qs, columns, filename, title="Clients")


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------

class ProductViewSet(viewsets.ReadOnlyModelViewSet):
    """Product catalogue (read-only). Agents only see active products."""

    serializer_class = ProductSerializer
    permission_classes = [PolicyPermission]
    policy_resource = "products"
    not_found_code = "PRODUCT_NOT_FOUND"
    filterset_fields = ['category', 'is_active']
    search_fields = ['name', 'description']
    ordering_fields = ['name', 'category']

    def get_queryset(self):
        qs = Product.objects.all()
        if not has_any_scope(self.request.user, MANAGE, self.policy_resource):
            qs = qs.filter(is_active=True)
        return qs


# ---------------------------------------------------------------------------
# Sales
# ---------------------------------------------------------------------------

class SaleViewSet(viewsets.ModelViewSet):
    """
    Policy sales.

    Writes go through ``sales.services``; goal refreshes are queued by
    signals once the transaction commits.
    """

    serializer_class = SaleSerializer
    permission_classes = [PolicyPermission]
    policy_resource = "sales"
    policy_owner_field = "agent_id"
    not_found_code = "SALE_NOT_FOUND"
    search_fields = ['policy_number', 'product_name', 'client__first_name', 'client__last_name']
    ordering_fields = ['sale_date', 'premium_amount', 'created_at']

    def get_queryset(self):
        qs = Sale.objects.select_related('agent', 'client', 'product')
        if self.action != 'list':
            return qs
        user = self.request.user
        qs = _scope_to_owner(qs, user, self.policy_resource, 'agent_id')

        params = {
            name: query_param(self.request, name)
            for name in ('start_date', 'end_date', 'status', 'client_id', 'product_id', 'agent_id')
        }
        if params['start_date']:
            qs = qs.filter(sale_date__gte=params['start_date'])
        if params['end_date']:
            qs = qs.filter(sale_date__lte=params['end_date'])
        if params['status']:
            qs = qs.filter(status=params['status'])
        if params['client_id']:
            qs = qs.filter(client_id=params['client_id'])
        if params['product_id']:
            qs = qs.filter(product_id=params['product_id'])
        if params['agent_id'] and has_any_scope(user, READ, self.policy_resource):
            qs = qs.filter(agent_id=params['agent_id'])
        return qs.order_by('-sale_date', '-created_at')

    def create(self, request, *args, **kwargs):
        serializer = SaleWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        sale = sale_services.create_sale(acting_user=request.user, data=serializer.validated_data)
        return Response({"sale": SaleSerializer(sale).data}, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        sale = self.get_object()
        serializer = SaleWriteSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        sale = sale_services.update_sale(sale, acting_user=request.user, data=serializer.validated_data)
        return Response({"sale": SaleSerializer(sale).data})

    def perform_destroy(self, instance):
        logger.info("Sale %s deleted by %s", instance.pk, self.request.user.pk)
        instance.delete()


# ---------------------------------------------------------------------------
# Reminders
# ---------------------------------------------------------------------------

class ReminderViewSet(viewsets.ModelViewSet):
    serializer_class = ReminderSerializer
    permission_classes = [PolicyPermission]
    policy_resource = "reminders"
    policy_owner_field = "agent_id"
    policy_actions = {"upcoming": "read", "complete": "update"}
    not_found_code = "REMINDER_NOT_FOUND"
    filterset_fields = ['priority', 'reminder_type', 'is_completed']
    search_fields = ['title', 'description']
    ordering_fields = ['reminder_date', 'priority', 'created_at']

    def get_queryset(self):
        qs = Reminder.objects.select_related('client')
        if self.action != 'list':
            return qs
        qs = qs.filter(agent=self.request.user)

        reminder_type = query_param(self.request, 'type')
        if reminder_type:
            qs = qs.filter(reminder_type=reminder_type)
        completed = query_param(self.request, 'completed')
        if completed is not None:
            qs = qs.filter(is_completed=completed.lower() in ('1', 'true', 'yes'))
        start_date = query_param(self.request, 'start_date')
        if start_date:
            qs = qs.filter(reminder_date__date__gte=start_date)
        end_date = query_param(self.request, 'end_date')
        if end_date:
            qs = qs.filter(reminder_date__date__lte=end_date)
        return qs

    def perform_create(self, serializer):
        serializer.save(agent=self.request.user)

    @action(detail=False, methods=['get'], url_path='upcoming')
    def upcoming(self, request):
        qs = Reminder.objects.upcoming().select_related('client')
        qs = _scope_to_owner(qs, request.user, self.policy_resource, 'agent_id')
        qs = qs.order_by('reminder_date')[:10]
        return Response({"reminders": ReminderSerializer(qs, many=True).data})

    @action(detail=True, methods=['put', 'post'], url_path='complete')
    def complete(self, request, pk=None):
        reminder = self.get_object()
        if reminder.is_completed:
            raise ServiceError("Reminder is already completed.", code="ALREADY_COMPLETED")
        reminder.mark_completed()
        return Response({"reminder": ReminderSerializer(reminder).data})


# ---------------------------------------------------------------------------
# Content
# ---------------------------------------------------------------------------

class ContentCategoryViewSet(viewsets.ModelViewSet):
    """Categories: readable by everyone, managed by managers."""

    serializer_class = ContentCategorySerializer
    queryset = ContentCategory.objects.all()
    not_found_code = "CATEGORY_NOT_FOUND"
    pagination_class = None
    filterset_fields = ['is_active', 'parent']
    search_fields = ['name']

    def get_permissions(self):
        if self.request.method in SAFE_METHODS:
            return [IsAuthenticated()]
        return [IsManager()]


class ContentViewSet(viewsets.ModelViewSet):
    """
    Shared content library.

    Only public items and the requester's own items are ever visible, for
    managers as much as for agents.
    """

    serializer_class = ContentSerializer
    permission_classes = [PolicyPermission]
    policy_resource = "content"
    policy_owner_field = "author_id"
    policy_actions = {"download": "read"}
    not_found_code = "CONTENT_NOT_FOUND"
    pagination_class = ContentPagination
    filter_backends = []

    def get_queryset(self):
        user = self.request.user
        qs = Content.objects.visible_to(user).select_related('author', 'category')
        if self.action != 'list':
            return qs

        content_type = query_param(self.request, 'type')
        if content_type:
            qs = qs.filter(content_type=content_type)
        visibility = query_param(self.request, 'visibility')
        if visibility == 'public':
            qs = qs.filter(is_public=True)
        elif visibility == 'private':
            qs = qs.filter(is_public=False)
        author_id = query_param(self.request, 'author_id')
        if author_id and has_any_scope(user, UPDATE, self.policy_resource):
            qs = qs.filter(author_id=author_id)
        category_id = query_param(self.request, 'category_id')
        if category_id:
            qs = qs.filter(category_id=category_id)
        search = query_param(self.request, 'search')
        if search:
            qs = qs.filter(
                Q(title__icontains=search)
                | Q(description__icontains=search)
                | Q(body__icontains=search)
            )
        return qs.order_by('-is_featured', '-created_at')

    def perform_create(self, serializer):
        item = serializer.save(author=self.request.user)
        logger.info("Content %s created by %s (public=%s)", item.pk, item.author_id, item.is_public)

    def retrieve(self, request, *args, **kwargs):
        item = self.get_object()
        Content.objects.filter(pk=item.pk).update(view_count=F('view_count') + 1)
        item.refresh_from_db(fields=['view_count'])
        return Response({"content": self.get_serializer(item).data})

    @action(detail=True, methods=['get'], url_path='download')
    def download(self, request, pk=None):
        item = self.get_object()
        Content.objects.filter(pk=item.pk).update(download_count=F('download_count') + 1)
        item.refresh_from_db(fields=['download_count'])
        return Response({
            "content_url": item.content_url,
            "download_count": item.download_count,
        })

