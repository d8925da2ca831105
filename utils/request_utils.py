"""
Gloo Request Utilities
Helper functions for extracting request information
"""

from fastapi import Request
import ipaddress

# Proxy headers in order of preference
FORWARDED_IP_HEADERS = (
    "cf-connecting-ip",
    "x-forwarded-for",
    "x-real-ip",
    "x-client-ip",
)


def get_client_ip(request: Request) -> str:
    """
    Extract client IP address from request headers

    Handles proxy headers and falls back to the direct peer address
    """
    for header in FORWARDED_IP_HEADERS:
        ip = request.headers.get(header)
        if ip:
            # X-Forwarded-For can contain multiple IPs, take the first (original client)
            ip = ip.split(",")[0].strip()
            if _is_valid_ip(ip):
                return ip

    if request.client and request.client.host:
        return request.client.host

    return "unknown"


def _is_valid_ip(ip: str) -> bool:
    try:
        ipaddress.ip_address(ip)
        return True
    except ValueError:
        return False
