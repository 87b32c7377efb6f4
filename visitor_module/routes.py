# Routes for the visitor_module - logs page views and reports visit statistics.

from flask import current_app, render_template, jsonify, request
from . import visitor_bp
from .models import PageVisit
from .helpers import get_ip, record_visit
from database import db
import logging
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from sqlalchemy import func


def _display_tz():
    try:
        return ZoneInfo(current_app.config["DISPLAY_TIMEZONE"])
    except Exception:
        logging.warning("Unknown time zone %s, showing UTC", current_app.config.get("DISPLAY_TIMEZONE"))
        return timezone.utc


def to_local_time(utc_dt, tz):
    """
    Convert a UTC datetime (naive values are treated as UTC) to a display string
    like '2025-10-12 01:23:45 PM MDT'. Returns None for None.
    """
    if utc_dt is None:
        return None
    if utc_dt.tzinfo is None:
        utc_dt = utc_dt.replace(tzinfo=timezone.utc)
    return utc_dt.astimezone(tz).strftime('%Y-%m-%d %I:%M:%S %p %Z')


def collect_visit_stats(tz, recent_limit=10):
    """Summary numbers used by both the JSON API and the HTML page."""
    total_visits = PageVisit.query.count()
    unique_visitors = db.session.query(func.count(func.distinct(PageVisit.ip_address))).scalar() or 0

    # "Today" is midnight in the display time zone; rows are stored as naive UTC
    local_midnight = datetime.now(tz).replace(hour=0, minute=0, second=0, microsecond=0)
    since = local_midnight.astimezone(timezone.utc).replace(tzinfo=None)
    visits_today = PageVisit.query.filter(PageVisit.visited_at >= since).count()

    top_pages = (db.session.query(PageVisit.page_visited, func.count(PageVisit.id).label('visits'))
                 .group_by(PageVisit.page_visited)
                 .order_by(func.count(PageVisit.id).desc(), PageVisit.page_visited)
                 .limit(10).all())
    top_countries = (db.session.query(PageVisit.country, func.count(PageVisit.id))
                     .filter(PageVisit.country.isnot(None))
                     .group_by(PageVisit.country)
                     .order_by(func.count(PageVisit.id).desc(), PageVisit.country)
                     .limit(10).all())
    recent = (PageVisit.query.order_by(PageVisit.visited_at.desc(), PageVisit.id.desc())
              .limit(recent_limit).all())

    return {
        "total_visits": total_visits,
        "unique_visitors": unique_visitors,
        "visits_today": visits_today,
        "top_pages": [{"page": page, "visits": count} for page, count in top_pages],
        "top_countries": [{"country": country, "visits": count} for country, count in top_countries],
        "recent_visits": [
            {
                "page": v.page_visited,
                "city": v.city,
                "country": v.country,
                "visited_at": to_local_time(v.visited_at, tz),
                "visited_at_utc": v.visited_at.isoformat() if v.visited_at else None,
            }
            for v in recent
        ],
    }


@visitor_bp.route("/api/track-visit", methods=["POST"])
def track_visit():
    """Accept JSON {"pageVisited": "home"} from the browser and log it."""
    data = request.get_json(silent=True) or {}
    try:
        record_visit(
            get_ip(),
            user_agent=request.headers.get("User-Agent"),
            page_visited=str(data.get("pageVisited") or "home"),
            geolookup=current_app.config.get("VISITOR_GEOLOOKUP", False),
        )
        return jsonify({"success": True})
    except Exception:
        logging.exception("Error tracking visit")
        db.session.rollback()
        return jsonify({"success": False}), 500


@visitor_bp.route("/api/visit-stats")
def visit_stats():
    try:
        tz = _display_tz()
        stats = collect_visit_stats(tz)
        stats["timezone"] = str(tz)
        return jsonify(stats)
    except Exception:
        logging.exception("Error getting visit stats")
        return jsonify({"error": "Failed to get visit stats"}), 500


@visitor_bp.route("/visitors")
def visitors_page():
    """HTML page with the same numbers as /api/visit-stats."""
    tz = _display_tz()
    try:
        stats = collect_visit_stats(tz, recent_limit=50)
        return render_template("visitors.html", timezone_display=str(tz), **stats)
    except Exception as e:
        logging.exception("Error loading visitors page")
        return render_template("visitors.html", timezone_display=str(tz), total_visits=0,
                               unique_visitors=0, visits_today=0, top_pages=[],
                               top_countries=[], recent_visits=[], error=str(e))
