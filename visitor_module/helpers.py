from flask import request
import ipaddress
import logging
from functools import lru_cache

import requests

from database import db

# Reusable HTTP session for the geolocation service
HTTP_SESSION = requests.Session()


def _is_private(ip: str) -> bool:
    """True for blank, localhost, private-network and other non-routable addresses.

    Anything that doesn't parse as an IP address is treated as private too,
    since there is nothing to look up.
    """
    if not ip:
        return True
    ip = ip.strip().lower()
    if ip in ("localhost", "unknown"):
        return True
    try:
        return not ipaddress.ip_address(ip).is_global
    except ValueError:
        return True


def get_ip() -> str:
    """
    Gets the real IP address of the visitor.

    Behind a proxy the address we see is the proxy's, so the forwarding
    headers are checked first. X-Forwarded-For may hold a list
    ("client, proxy1, proxy2"); the first entry is the client.
    """
    hdr = request.headers.get
    for h in ("X-Forwarded-For", "X-Real-IP", "X-MS-Forwarded-Client-IP", "X-Original-Remote-Addr"):
        v = hdr(h)
        if v:
            return v.split(",")[0].strip()
    return request.environ.get("REMOTE_ADDR") or request.remote_addr or "unknown"


def _norm(v):
    """Strip a value to a string, or None if empty."""
    if v is None:
        return None
    s = str(v).strip()
    return s if s else None


@lru_cache(maxsize=10000)
def get_location(ip: str):
    """
    Resolve IP -> {"city": ..., "country": ...} using ipapi.co.
    Returns None for private IPs or when the lookup fails.
    """
    if _is_private(ip):
        logging.info("Skipping geolocation for private IP: %s", ip)
        return None
    try:
        r = HTTP_SESSION.get(f"https://ipapi.co/{ip}/json/", timeout=4)
    except requests.RequestException:
        logging.exception("Geolocation request failed for %s", ip)
        return None
    if not r.ok:
        logging.warning("ipapi.co lookup failed %s for %s", r.status_code, ip)
        return None

    try:
        d = r.json()
    except ValueError:
        logging.warning("ipapi.co sent a non-JSON reply for %s", ip)
        return None
    if not isinstance(d, dict):
        logging.warning("ipapi.co sent unexpected JSON for %s: %r", ip, d)
        return None
    if d.get("error"):
        logging.warning(f"ipapi.co returned error for {ip}: {d.get('reason')}")
        return None
    return {"city": _norm(d.get("city")), "country": _norm(d.get("country_name"))}


def record_visit(ip, user_agent=None, page_visited="home", geolookup=False):
    """
    Store one page view and return the new PageVisit.
    Location is copied from an earlier visit by the same IP when we have one,
    otherwise looked up (only if geolookup is enabled).
    """
    from .models import PageVisit

    city = country = None
    if geolookup:
        previous = (PageVisit.query.filter_by(ip_address=ip)
                    .filter(PageVisit.country.isnot(None))
                    .order_by(PageVisit.visited_at.desc())
                    .first())
        if previous:
            city, country = previous.city, previous.country
        else:
            location = get_location(ip)
            if location:
                city, country = location["city"], location["country"]

    visit = PageVisit(
        ip_address=(ip or "unknown")[:45],
        user_agent=(user_agent or "unknown")[:255],
        page_visited=(page_visited or "home")[:255],
        city=city,
        country=country,
    )
    db.session.add(visit)
    db.session.commit()
    return visit
