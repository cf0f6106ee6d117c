"""
Hetzner Cloud API payload builders.

Each builder returns a dict shaped like the real API response and takes
overrides for the fields a test cares about.
"""

from typing import Any, Dict, List, Optional


def location_payload(name: str = "fsn1", location_id: int = 1, **overrides) -> Dict[str, Any]:
    payload = {
        "id": location_id,
        "name": name,
        "description": f"Datacenter location {name}",
        "country": "DE",
        "city": "Falkenstein",
        "latitude": 50.47612,
        "longitude": 12.370071,
        "network_zone": "eu-central",
    }
    payload.update(overrides)
    return payload


def datacenter_payload(location: str = "fsn1", **overrides) -> Dict[str, Any]:
    payload = {
        "id": 4,
        "name": f"{location}-dc14",
        "description": f"{location} virtual DC 14",
        "location": location_payload(location),
    }
    payload.update(overrides)
    return payload


def price_payload(location: str, monthly_gross: str, monthly_net: Optional[str] = None) -> Dict[str, Any]:
    return {
        "location": location,
        "price_hourly": {"gross": "0.0080", "net": "0.0067"},
        "price_monthly": {"gross": monthly_gross, "net": monthly_net or monthly_gross},
    }


def server_type_payload(
    server_type_id: int = 22,
    name: str = "cpx11",
    prices: Optional[List[Dict[str, Any]]] = None,
    **overrides,
) -> Dict[str, Any]:
    payload = {
        "id": server_type_id,
        "name": name,
        "description": name.upper(),
        "cores": 2,
        "memory": 2.0,
        "disk": 40,
        "prices": prices if prices is not None else [price_payload("fsn1", "4.5800")],
        "storage_type": "local",
        "cpu_type": "shared",
        "architecture": "x86",
        "deprecated": False,
    }
    payload.update(overrides)
    return payload


def server_payload(
    server_id: int = 42,
    name: str = "web-1",
    status: str = "running",
    location: str = "fsn1",
    server_type: Optional[Dict[str, Any]] = None,
    **overrides,
) -> Dict[str, Any]:
    payload = {
        "id": server_id,
        "name": name,
        "status": status,
        "created": "2026-01-10T10:00:00+00:00",
        "public_net": {
            "ipv4": {"id": 1, "ip": "203.0.113.10", "blocked": False, "dns_ptr": "static.example"},
            "ipv6": {"id": 2, "ip": "2001:db8::/64", "blocked": False, "dns_ptr": []},
            "floating_ips": [],
            "firewalls": [],
        },
        "private_net": [],
        "server_type": server_type or server_type_payload(),
        "datacenter": datacenter_payload(location),
        "image": image_payload(),
        "backup_window": None,
        "rescue_enabled": False,
        "locked": False,
        "protection": {"delete": False, "rebuild": False},
        "labels": {},
        "volumes": [],
        "primary_disk_size": 40,
        "outgoing_traffic": 123456,
    }
    payload.update(overrides)
    return payload


def image_payload(image_id: int = 114690387, name: str = "ubuntu-24.04", **overrides) -> Dict[str, Any]:
    payload = {
        "id": image_id,
        "type": "system",
        "status": "available",
        "name": name,
        "description": "Ubuntu 24.04",
        "image_size": None,
        "disk_size": 5,
        "created": "2024-04-25T12:00:00+00:00",
        "os_flavor": "ubuntu",
        "os_version": "24.04",
        "architecture": "x86",
        "rapid_deploy": True,
        "deprecated": None,
        "labels": {},
    }
    payload.update(overrides)
    return payload


def volume_payload(volume_id: int = 7, size: int = 100, **overrides) -> Dict[str, Any]:
    payload = {
        "id": volume_id,
        "name": f"data-{volume_id}",
        "created": "2026-01-11T10:00:00+00:00",
        "server": 42,
        "location": location_payload("fsn1"),
        "size": size,
        "linux_device": f"/dev/disk/by-id/scsi-0HC_Volume_{volume_id}",
        "protection": {"delete": False},
        "labels": {},
        "status": "available",
        "format": "ext4",
    }
    payload.update(overrides)
    return payload


def floating_ip_payload(floating_ip_id: int = 9, ip_type: str = "ipv4", **overrides) -> Dict[str, Any]:
    payload = {
        "id": floating_ip_id,
        "name": f"fip-{floating_ip_id}",
        "description": None,
        "ip": "198.51.100.7" if ip_type == "ipv4" else "2001:db8:1::/64",
        "type": ip_type,
        "server": None,
        "dns_ptr": [],
        "home_location": location_payload("fsn1"),
        "blocked": False,
        "protection": {"delete": False},
        "labels": {},
        "created": "2026-01-12T10:00:00+00:00",
    }
    payload.update(overrides)
    return payload


def pricing_payload(
    server_types: Optional[List[Dict[str, Any]]] = None,
    volume_gross: str = "0.0440",
    floating_ip_gross: str = "3.5700",
    **overrides,
) -> Dict[str, Any]:
    payload = {
        "currency": "EUR",
        "vat_rate": "19.00",
        "image": {"price_per_gb_month": {"gross": "0.0119", "net": "0.0100"}},
        "floating_ip": {"price_monthly": {"gross": floating_ip_gross, "net": "3.0000"}},
        "floating_ips": [],
        "primary_ips": [],
        "server_types": server_types if server_types is not None else [],
        "volume": {"price_per_gb_month": {"gross": volume_gross, "net": "0.0370"}},
    }
    payload.update(overrides)
    return payload


def action_payload(action_id: int = 13, command: str = "start_server", server_id: int = 42, **overrides) -> Dict[str, Any]:
    payload = {
        "id": action_id,
        "command": command,
        "status": "running",
        "progress": 0,
        "started": "2026-01-13T10:00:00+00:00",
        "finished": None,
        "resources": [{"id": server_id, "type": "server"}],
        "error": None,
    }
    payload.update(overrides)
    return payload


def metrics_payload(**overrides) -> Dict[str, Any]:
    payload = {
        "start": "2026-01-13T09:00:00+00:00",
        "end": "2026-01-13T10:00:00+00:00",
        "step": 60,
        "time_series": {
            "cpu": {"values": [[1768294800.0, "12.5"], [1768294860.0, "14.0"]]},
        },
    }
    payload.update(overrides)
    return payload


def paginated(key: str, items: List[Dict[str, Any]], page: int = 1, next_page: Optional[int] = None) -> Dict[str, Any]:
    """Wrap items in a list envelope with pagination meta."""
    return {
        key: items,
        "meta": {
            "pagination": {
                "page": page,
                "per_page": 50,
                "previous_page": page - 1 if page > 1 else None,
                "next_page": next_page,
                "last_page": next_page or page,
                "total_entries": len(items),
            }
        },
    }


def error_payload(code: str, message: str) -> Dict[str, Any]:
    return {"error": {"code": code, "message": message, "details": {}}}
