"""Tests for clock helpers, the permission matrix, request identity and app wiring."""

import pytest
from starlette.requests import Request

from app.config.permissions_config import get_role_permissions, role_has_permission
from app.core.rate_limit import get_rate_limit_key
from app.core.security import get_client_ip, get_request_token
from app.core.time_utils import compute_work_hours, month_bounds, parse_time_of_day


def make_request(headers=None, client=("10.0.0.9", 5000)):
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/api/v1/sites",
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        "client": client,
        "query_string": b"",
    }
    return Request(scope)


class TestTimeUtils:
    def test_parse_time_of_day(self):
        assert parse_time_of_day("08:30").total_seconds() == 8.5 * 3600
        assert parse_time_of_day("23:59:59").total_seconds() == 86399

    @pytest.mark.parametrize("value", ["24:00", "8", "12:60", "aa:bb"])
    def test_parse_time_of_day_rejects(self, value):
        with pytest.raises(ValueError):
            parse_time_of_day(value)

    def test_regular_shift(self):
        assert compute_work_hours("08:00", "17:00") == (9.0, 1.0, 1.12)

    def test_short_shift_has_no_overtime(self):
        assert compute_work_hours("08:00:00", "12:00:00") == (4.0, 0.0, 0.5)

    def test_overnight_shift_wraps(self):
        assert compute_work_hours("22:00", "06:00") == (8.0, 0.0, 1.0)

    def test_open_shift(self):
        assert compute_work_hours("08:00", None) == (0.0, 0.0, 0.0)

    def test_month_bounds(self):
        assert month_bounds(2024, 2) == ("2024-02-01", "2024-02-29")
        assert month_bounds(2025, 12) == ("2025-12-01", "2025-12-31")
        with pytest.raises(ValueError):
            month_bounds(2025, 0)


class TestPermissions:
    def test_worker(self):
        assert role_has_permission("worker", "daily_reports:write")
        assert not role_has_permission("worker", "daily_reports:approve")

    def test_site_manager_extends_worker(self):
        assert set(get_role_permissions("worker")) <= set(get_role_permissions("site_manager"))
        assert role_has_permission("site_manager", "attendance:manage")

    def test_customer_manager_is_read_only(self):
        permissions = get_role_permissions("customer_manager")
        assert permissions
        assert all(p.endswith(":read") for p in permissions)

    def test_admins_have_everything(self):
        assert get_role_permissions("admin") == get_role_permissions("system_admin")
        assert role_has_permission("admin", "signup_requests:manage")

    def test_unknown_role(self):
        assert get_role_permissions("visitor") == []
        assert not role_has_permission("visitor", "sites:read")


class TestRequestIdentity:
    def test_forwarded_for_first_hop(self):
        request = make_request({"X-Forwarded-For": "203.0.113.7, 10.0.0.1"})
        assert get_client_ip(request) == "203.0.113.7"

    def test_real_ip_then_peer(self):
        assert get_client_ip(make_request({"X-Real-IP": "198.51.100.2"})) == "198.51.100.2"
        assert get_client_ip(make_request()) == "10.0.0.9"

    def test_token_from_header_or_cookie(self):
        assert get_request_token(make_request({"Authorization": "Bearer abc"})) == "abc"
        assert get_request_token(make_request({"Cookie": "sb-access-token=xyz"})) == "xyz"
        assert get_request_token(make_request({"Authorization": "Basic abc"})) is None

    def test_rate_limit_key(self):
        """Authenticated callers are keyed by token, anonymous ones by IP."""
        anonymous = get_rate_limit_key(make_request())
        assert anonymous == "ip:10.0.0.9"

        first = get_rate_limit_key(make_request({"Authorization": "Bearer token-1"}))
        second = get_rate_limit_key(make_request({"Authorization": "Bearer token-2"}))
        assert first.startswith("user:")
        assert "token-1" not in first
        assert first != second


def test_health_endpoints(client):
    assert client.get("/health").json() == {"status": "healthy"}
    assert client.get("/ready").json() == {"status": "ready"}
    assert client.get("/").status_code == 200


def test_security_headers(client):
    response = client.get("/health")
    assert response.headers["x-content-type-options"] == "nosniff"
    assert response.headers["x-frame-options"] == "DENY"
    assert "strict-transport-security" not in response.headers


def test_api_responses_carry_request_id(client, worker):
    response = client.get("/api/v1/auth/me", headers=worker["headers"])
    assert len(response.headers["x-request-id"]) == 36
    assert "x-request-id" not in client.get("/health").headers
