"""Main API URL router for /api/v1/."""
from django.db import transaction
from django.urls import include, path
from rest_framework.routers import DefaultRouter

from api.auth_views import (
    CookieTokenRefreshView,
    CSRFTokenAPIView,
    LoginAPIView,
    LogoutAPIView,
)
from api.v1 import views as v1_views
from goals import goal_views
from reports import report_views
from teams import team_views

router = DefaultRouter()
router.register(r'users', v1_views.UserViewSet, basename='user')
router.register(r'clients', v1_views.ClientViewSet, basename='client')
router.register(r'products', v1_views.ProductViewSet, basename='product')
router.register(r'sales', v1_views.SaleViewSet, basename='sale')
router.register(r'goals', goal_views.GoalViewSet, basename='goal')
router.register(r'reminders', v1_views.ReminderViewSet, basename='reminder')
router.register(r'content/categories', v1_views.ContentCategoryViewSet, basename='content-category')
router.register(r'content/content', v1_views.ContentViewSet, basename='content')
router.register(r'teams', team_views.TeamViewSet, basename='team')

auth_urlpatterns = [
    # Failed attempts must persist even though the request raises.
    path('login/', transaction.non_atomic_requests(LoginAPIView.as_view()), name='auth-login'),
    path('refresh/', CookieTokenRefreshView.as_view(), name='auth-refresh'),
    path('logout/', LogoutAPIView.as_view(), name='auth-logout'),
    path('csrf/', CSRFTokenAPIView.as_view(), name='auth-csrf'),
    path('me/', v1_views.MeView.as_view(), name='auth-me'),
    path('change-password/', v1_views.ChangePasswordView.as_view(), name='auth-change-password'),
]

team_urlpatterns = [
    path('members/', team_views.TeamMembersView.as_view(), name='team-members'),
    path('leaderboard/', team_views.LeaderboardView.as_view(), name='team-leaderboard'),
    path('stats/', team_views.TeamStatsView.as_view(), name='team-stats'),
    path('top-agents/', team_views.TopAgentsView.as_view(), name='team-top-agents'),
]

report_urlpatterns = [
    path('dashboard/', report_views.DashboardReportView.as_view(), name='report-dashboard'),
    path('sales/', report_views.SalesReportView.as_view(), name='report-sales'),
    path('performance/', report_views.PerformanceReportView.as_view(), name='report-performance'),
    path('team/', report_views.TeamReportView.as_view(), name='report-team'),
    path('goals/', report_views.GoalsReportView.as_view(), name='report-goals'),
]

urlpatterns = [
    path('auth/', include(auth_urlpatterns)),
    path('team/', include(team_urlpatterns)),
    path('reports/', include(report_urlpatterns)),
    path('', include(router.urls)),
]
