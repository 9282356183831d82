"""Dashboard, analytics and reports blueprint."""
from flask import Blueprint, g
from studio_core.schemas import AnalyticsQuery, RecentClientsQuery, RecentSessionsQuery, ReportsQuery
from ..base.validation import Presets, with_validation
from ..services.dashboard_service import (
    get_analytics, get_dashboard_stats, get_recent_clients, get_recent_sessions, get_reports
)

bp = Blueprint('dashboard', __name__, url_prefix='/api/admin')


@bp.route('/dashboard/stats', methods=['GET'])
@with_validation(Presets.DASHBOARD_READ)
def dashboard_stats():
    return get_dashboard_stats()


@bp.route('/dashboard/recent-sessions', methods=['GET'])
@with_validation(Presets.DASHBOARD_READ.replace(query_schema=RecentSessionsQuery))
def recent_sessions():
    return get_recent_sessions(g.validated_query.limit)


@bp.route('/dashboard/recent-clients', methods=['GET'])
@with_validation(Presets.DASHBOARD_READ.replace(query_schema=RecentClientsQuery))
def recent_clients():
    return get_recent_clients(g.validated_query.limit)


@bp.route('/analytics', methods=['GET'])
@with_validation(Presets.DASHBOARD_READ.replace(query_schema=AnalyticsQuery))
def analytics():
    query = g.validated_query
    return get_analytics(query.period, query.months)


@bp.route('/reports', methods=['GET'])
@with_validation(Presets.DASHBOARD_READ.replace(query_schema=ReportsQuery))
def reports():
    return get_reports(months=g.validated_query.months)
