"""Serializers for the back-office API v1."""
from decimal import Decimal

from django.contrib.auth.password_validation import validate_password as django_validate_password
from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import serializers
from rest_framework_simplejwt.tokens import RefreshToken

from accounts.capabilities import READ, can
from accounts.models import User
from accounts.services import authenticate_with_lockout
from clients.models import Client, ClientNote
from content.models import Content, ContentCategory
from core.exceptions import ServiceError
from products.models import Product
from reminders.models import Reminder
from sales.models import Sale


def _check_password_strength(value, user=None):
    try:
        django_validate_password(value, user=user)
    except DjangoValidationError as exc:
        raise serializers.ValidationError(list(exc.messages))
    return value


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------

class UserSerializer(serializers.ModelSerializer):
    """Read/update serializer for managed users."""

    full_name = serializers.CharField(source='get_full_name', read_only=True)
    is_locked = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            'id', 'email', 'first_name', 'last_name', 'full_name',
            'phone', 'department', 'position', 'bio', 'role', 'manager',
            'is_active', 'is_locked', 'failed_login_attempts',
            'last_login', 'date_joined', 'deleted_at',
        ]
        read_only_fields = [
            'id', 'is_active', 'failed_login_attempts',
            'last_login', 'date_joined', 'deleted_at',
        ]

    def get_is_locked(self, obj) -> bool:
        return obj.is_locked()


class UserCreateSerializer(serializers.ModelSerializer):
    """Create a user; the creating manager is recorded on the row."""

    password = serializers.CharField(write_only=True, min_length=8)

    class Meta:
        model = User
        fields = [
            'id', 'email', 'first_name', 'last_name', 'phone',
            'department', 'position', 'role', 'manager', 'password',
        ]
        read_only_fields = ['id']

    def validate_password(self, value):
        return _check_password_strength(value)

    def create(self, validated_data):
        password = validated_data.pop('password')
        request = self.context.get('request')
        if request is not None:
            validated_data.setdefault('created_by', request.user)
        return User.objects.create_user(password=password, **validated_data)


class UserBriefSerializer(serializers.ModelSerializer):
    full_name = serializers.CharField(source='get_full_name', read_only=True)

    class Meta:
        model = User
        fields = ['id', 'email', 'first_name', 'last_name', 'full_name', 'role', 'department']
        read_only_fields = fields


class MeSerializer(serializers.ModelSerializer):
    """The authenticated user's own profile (GET/PATCH)."""

    full_name = serializers.CharField(source='get_full_name', read_only=True)

    class Meta:
        model = User
        fields = [
            'id', 'email', 'first_name', 'last_name', 'full_name',
            'phone', 'department', 'position', 'bio', 'role',
            'preferences', 'last_login',
        ]
        read_only_fields = ['id', 'email', 'role', 'last_login']


class ChangePasswordSerializer(serializers.Serializer):
    current_password = serializers.CharField(required=True, write_only=True)
    new_password = serializers.CharField(required=True, min_length=8, write_only=True)

    def validate_current_password(self, value):
        user = self.context['request'].user
        if not user.check_password(value):
            raise ServiceError('Current password is incorrect.', code='INVALID_PASSWORD')
        return value

    def validate_new_password(self, value):
        return _check_password_strength(value, user=self.context['request'].user)


class ResetPasswordSerializer(serializers.Serializer):
    new_password = serializers.CharField(required=True, min_length=8, write_only=True)

    def validate_new_password(self, value):
        return _check_password_strength(value)


# ---------------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------------

class LoginSerializer(serializers.Serializer):
    """Email/password login that honours the lockout counter.

    ``validated_data`` carries the user and a fresh token pair.
    """

    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, trim_whitespace=False)

    def validate(self, attrs):
        user = authenticate_with_lockout(attrs['email'], attrs['password'])
        refresh = RefreshToken.for_user(user)
        refresh['role'] = user.role
        return {
            'user': user,
            'refresh_token': str(refresh),
            'access_token': str(refresh.access_token),
        }


# ---------------------------------------------------------------------------
# Clients
# ---------------------------------------------------------------------------

class ClientSerializer(serializers.ModelSerializer):
    full_name = serializers.CharField(read_only=True)
    agent_name = serializers.CharField(source='agent.get_full_name', read_only=True)
    agent_id = serializers.UUIDField(required=False, write_only=True)

    class Meta:
        model = Client
        fields = [
            'id', 'agent', 'agent_id', 'agent_name', 'first_name', 'last_name',
            'full_name', 'email', 'phone', 'date_of_birth', 'employer',
            'address', 'status', 'notes', 'created_at', 'updated_at',
        ]
        read_only_fields = ['id', 'agent', 'created_at', 'updated_at']


class ClientNoteSerializer(serializers.ModelSerializer):
    agent_name = serializers.CharField(source='agent.get_full_name', read_only=True)

    class Meta:
        model = ClientNote
        fields = [
            'id', 'client', 'agent', 'agent_name', 'note', 'note_type',
            'is_private', 'created_at',
        ]
        read_only_fields = ['id', 'client', 'agent', 'created_at']


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------

class ProductSerializer(serializers.ModelSerializer):
    class Meta:
        model = Product
        fields = ['id', 'name', 'description', 'category', 'is_active']
        read_only_fields = fields


# ---------------------------------------------------------------------------
# Sales
# ---------------------------------------------------------------------------

class SaleSerializer(serializers.ModelSerializer):
    agent_name = serializers.CharField(source='agent.get_full_name', read_only=True)
    client_name = serializers.CharField(source='client.full_name', read_only=True)

    class Meta:
        model = Sale
        fields = [
            'id', 'agent', 'agent_name', 'client', 'client_name', 'product',
            'product_name', 'policy_number', 'premium_amount',
            'commission_rate', 'commission_amount', 'sale_date', 'status',
            'notes', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class SaleWriteSerializer(serializers.Serializer):
    """Validates sale input; ownership and existence are checked in the service."""

    client_id = serializers.IntegerField(min_value=1)
    product_id = serializers.IntegerField(min_value=1)
    agent_id = serializers.UUIDField(required=False)
    product_name = serializers.CharField(max_length=200, required=False, allow_blank=True)
    policy_number = serializers.CharField(max_length=100, required=False, allow_blank=True)
    premium_amount = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal('0.00'))
    commission_rate = serializers.DecimalField(
        max_digits=5, decimal_places=2, required=False,
        min_value=Decimal('0.00'), max_value=Decimal('100.00'),
    )
    commission_amount = serializers.DecimalField(
        max_digits=10, decimal_places=2, required=False, min_value=Decimal('0.00'),
    )
    sale_date = serializers.DateField(required=False)
    status = serializers.ChoiceField(choices=Sale.Status.choices, required=False)
    notes = serializers.CharField(required=False, allow_blank=True)


# ---------------------------------------------------------------------------
# Reminders
# ---------------------------------------------------------------------------

class ReminderSerializer(serializers.ModelSerializer):
    client_id = serializers.IntegerField(required=False, allow_null=True)
    client_name = serializers.CharField(source='client.full_name', read_only=True, default=None)

    class Meta:
        model = Reminder
        fields = [
            'id', 'agent', 'client_id', 'client_name', 'title', 'description',
            'reminder_date', 'priority', 'reminder_type', 'is_completed',
            'completed_at', 'created_at', 'updated_at',
        ]
        read_only_fields = ['id', 'agent', 'is_completed', 'completed_at', 'created_at', 'updated_at']

    def validate_client_id(self, value):
        if value is None:
            return value
        client = Client.objects.filter(pk=value).first()
        if client is None:
            raise ServiceError('Client not found.', code='CLIENT_NOT_FOUND', status_code=404)
        user = self.context['request'].user
        if not can(user, READ, 'clients', owner_id=client.agent_id):
            raise ServiceError('Access denied.', code='ACCESS_DENIED', status_code=403)
        return value


# ---------------------------------------------------------------------------
# Content
# ---------------------------------------------------------------------------

class ContentCategorySerializer(serializers.ModelSerializer):
    class Meta:
        model = ContentCategory
        fields = ['id', 'name', 'description', 'parent', 'is_active']


class ContentSerializer(serializers.ModelSerializer):
    author_name = serializers.CharField(source='author.get_full_name', read_only=True)
    category_name = serializers.CharField(source='category.name', read_only=True, default=None)
    tags = serializers.ListField(child=serializers.CharField(max_length=50), required=False)

    class Meta:
        model = Content
        fields = [
            'id', 'title', 'slug', 'content_type', 'body', 'description',
            'content_url', 'author', 'author_name', 'category', 'category_name',
            'tags', 'is_featured', 'is_published', 'is_public', 'status',
            'published_at', 'view_count', 'download_count',
            'created_at', 'updated_at',
        ]
        read_only_fields = [
            'id', 'slug', 'author', 'published_at', 'view_count',
            'download_count', 'created_at', 'updated_at',
        ]
