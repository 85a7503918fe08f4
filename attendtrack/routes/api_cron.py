"""
Cron API Blueprint
External trigger for the end-of-day sweep (e.g. a platform cron job)
"""
from flask import Blueprint, request, jsonify, current_app
import hmac
import logging

from attendtrack.error_handlers import handle_errors, AuthenticationException
from attendtrack.routes.common import build_scheduler
from attendtrack.utils.timezone import get_clock

logger = logging.getLogger(__name__)


def init_cron_routes(db, models):
    """
    Initialize cron routes

    Returns:
        Blueprint mounted at /api/cron
    """
    cron_api_bp = Blueprint('cron_api', __name__, url_prefix='/api/cron')

    def verify_cron_secret():
        secret = current_app.config.get('CRON_SECRET')
        header = request.headers.get('Authorization', '')
        if not secret or not hmac.compare_digest(header, f"Bearer {secret}"):
            raise AuthenticationException('Invalid cron credentials')

    @cron_api_bp.route('/run-sweep', methods=['POST'])
    @handle_errors
    def run_sweep():
        """
        Run backfill and today's sweeps

        Headers:
            Authorization: Bearer <CRON_SECRET>

        Returns:
            JSON {success, autoCheckouts, absentRecords, missedDaysProcessed}
        """
        verify_cron_secret()
        now = get_clock().now()
        result = build_scheduler(db, models).run(now)
        logger.info(f"Sweep triggered via cron endpoint: {result}")
        return jsonify(dict(result, success=True, ranAt=now.isoformat()))

    return cron_api_bp
