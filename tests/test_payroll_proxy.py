"""
Tests for the PayrollProxy service.

Provider HTTP calls go through httpx.MockTransport; the session is the
shared AsyncMock.
"""

import pytest
from datetime import timedelta
from unittest.mock import MagicMock

import httpx

from app.models.base import utc_now
from app.payroll.crypto import TokenCipher
from app.payroll.models import PayrollConnection, PayrollRun
from app.payroll.service import ACTIONS, PayrollProxy, PayrollProxyError


@pytest.fixture
def cipher():
    return TokenCipher("proxy-test-secret")


def make_connection(cipher, provider="gusto", status="connected", expires_in=timedelta(hours=1), extra_data=None):
    return PayrollConnection(
        organization_id="org1",
        provider=provider,
        connection_status=status,
        external_company_id="company-1",
        access_token_encrypted=cipher.encrypt("access-old"),
        refresh_token_encrypted=cipher.encrypt("refresh-old"),
        token_expires_at=utc_now() + expires_in,
        extra_data=extra_data or {},
    )


def with_connection(mock_db, connection):
    result = MagicMock()
    result.scalar_one_or_none.return_value = connection
    mock_db.execute.return_value = result


def mock_client(routes):
    """AsyncClient answering (method, path) pairs; records every request."""
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        status_code, body = routes.get((request.method, request.url.path), (404, {"error": "unrouted"}))
        return httpx.Response(status_code, json=body)

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    client.recorded = requests
    return client


# =============================================================================
# Connection checks
# =============================================================================

class TestConnectionChecks:
    """Tests for the checks made before any provider call."""

    @pytest.mark.asyncio
    async def test_no_connection(self, mock_db, cipher):
        with_connection(mock_db, None)

        with pytest.raises(PayrollProxyError) as exc:
            await PayrollProxy(mock_db, cipher, mock_client({})).execute("org1", "getCompany")

        assert exc.value.status_code == 404
        assert exc.value.to_dict() == {"error": "No payroll provider connected"}

    @pytest.mark.asyncio
    async def test_not_connected(self, mock_db, cipher):
        with_connection(mock_db, make_connection(cipher, status="error"))

        with pytest.raises(PayrollProxyError) as exc:
            await PayrollProxy(mock_db, cipher, mock_client({})).execute("org1", "getCompany")

        assert exc.value.status_code == 400
        assert exc.value.to_dict() == {"error": "Payroll provider not connected", "status": "error"}

    @pytest.mark.asyncio
    async def test_unknown_provider(self, mock_db, cipher):
        with_connection(mock_db, make_connection(cipher, provider="adp"))

        with pytest.raises(PayrollProxyError) as exc:
            await PayrollProxy(mock_db, cipher, mock_client({})).execute("org1", "getCompany")

        assert exc.value.status_code == 400
        assert exc.value.message == "Unknown provider"

    @pytest.mark.asyncio
    async def test_unknown_action(self, mock_db, cipher):
        with_connection(mock_db, make_connection(cipher, provider="quickbooks"))

        with pytest.raises(PayrollProxyError) as exc:
            await PayrollProxy(mock_db, cipher, mock_client({})).execute("org1", "deleteEverything")

        assert exc.value.status_code == 400
        assert exc.value.message == "Unknown QuickBooks action: deleteEverything"

    @pytest.mark.asyncio
    async def test_missing_payroll_id(self, mock_db, cipher):
        with_connection(mock_db, make_connection(cipher))

        with pytest.raises(PayrollProxyError) as exc:
            await PayrollProxy(mock_db, cipher, mock_client({})).execute("org1", "getPayroll", {})

        assert exc.value.status_code == 400
        assert exc.value.message == "Missing payrollId"


# =============================================================================
# Token refresh
# =============================================================================

class TestTokenRefresh:
    """Tests for refreshing inside the provider's expiry buffer."""

    @pytest.mark.asyncio
    async def test_fresh_token_not_refreshed(self, mock_db, cipher):
        connection = make_connection(cipher, expires_in=timedelta(hours=1))
        client = mock_client({})

        await PayrollProxy(mock_db, cipher, client).ensure_fresh_token(connection)

        assert client.recorded == []
        mock_db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_gusto_refreshes_within_thirty_minutes(self, mock_db, cipher):
        connection = make_connection(cipher, expires_in=timedelta(minutes=20), extra_data={"error": "old"})
        client = mock_client({
            ("POST", "/oauth/token"): (200, {"access_token": "access-new", "refresh_token": "refresh-new", "expires_in": 7200}),
        })

        await PayrollProxy(mock_db, cipher, client).ensure_fresh_token(connection)

        assert cipher.decrypt(connection.access_token_encrypted) == "access-new"
        assert cipher.decrypt(connection.refresh_token_encrypted) == "refresh-new"
        assert connection.token_expires_at > utc_now() + timedelta(hours=1)
        assert "error" not in connection.extra_data
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_quickbooks_not_refreshed_at_twenty_minutes(self, mock_db, cipher):
        connection = make_connection(cipher, provider="quickbooks", expires_in=timedelta(minutes=20))
        client = mock_client({})

        await PayrollProxy(mock_db, cipher, client).ensure_fresh_token(connection)

        assert client.recorded == []

    @pytest.mark.asyncio
    async def test_refresh_failure_is_401_and_recorded(self, mock_db, cipher):
        connection = make_connection(cipher, expires_in=timedelta(minutes=-5))
        client = mock_client({("POST", "/oauth/token"): (400, {"error": "invalid_grant"})})

        with pytest.raises(PayrollProxyError) as exc:
            await PayrollProxy(mock_db, cipher, client).ensure_fresh_token(connection)

        assert exc.value.status_code == 401
        assert exc.value.message == "Failed to refresh token"
        assert "details" in exc.value.to_dict()
        assert connection.extra_data["error"] == "Token refresh failed"
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_missing_refresh_token_fails(self, mock_db, cipher):
        connection = make_connection(cipher, expires_in=timedelta(minutes=-5))
        connection.refresh_token_encrypted = None

        with pytest.raises(PayrollProxyError) as exc:
            await PayrollProxy(mock_db, cipher, mock_client({})).ensure_fresh_token(connection)

        assert exc.value.status_code == 401


# =============================================================================
# Dispatch and side effects
# =============================================================================

class TestExecute:
    """Tests for dispatching actions and local bookkeeping."""

    def test_action_names(self):
        assert set(ACTIONS) == {
            "getCompany", "getEmployees", "getPayrolls", "getPayroll",
            "createPayroll", "submitPayroll", "getPaySchedules",
        }

    @pytest.mark.asyncio
    async def test_get_employees(self, mock_db, cipher):
        connection = make_connection(cipher)
        with_connection(mock_db, connection)
        client = mock_client({
            ("GET", "/v1/companies/company-1/employees"): (200, [{"uuid": "emp-1"}]),
        })

        result = await PayrollProxy(mock_db, cipher, client).execute("org1", "getEmployees")

        assert result.status_code == 200
        assert result.body == {"success": True, "data": [{"uuid": "emp-1"}]}
        assert client.recorded[0].headers["authorization"] == "Bearer access-old"
        assert connection.last_synced_at is not None

    @pytest.mark.asyncio
    async def test_provider_error_passed_through(self, mock_db, cipher):
        with_connection(mock_db, make_connection(cipher))
        client = mock_client({
            ("GET", "/v1/companies/company-1/payrolls/pay-9"): (404, {"message": "Not found"}),
        })

        result = await PayrollProxy(mock_db, cipher, client).execute(
            "org1", "getPayroll", {"payrollId": "pay-9"}
        )

        assert result.status_code == 404
        assert result.body == {"success": False, "data": {"message": "Not found"}}

    @pytest.mark.asyncio
    async def test_create_records_draft_run(self, mock_db, cipher):
        with_connection(mock_db, make_connection(cipher))
        client = mock_client({
            ("POST", "/v1/companies/company-1/payrolls"): (200, {
                "uuid": "pay-1",
                "pay_period": {"start_date": "2026-10-01", "end_date": "2026-10-15"},
                "check_date": "2026-10-20",
            }),
        })

        result = await PayrollProxy(mock_db, cipher, client).execute(
            "org1", "createPayroll", {"payroll": {"off_cycle": False}}
        )

        assert result.body["success"] is True
        run = mock_db.add.call_args[0][0]
        assert isinstance(run, PayrollRun)
        assert run.external_payroll_id == "pay-1"
        assert run.status == "draft"
        assert run.provider == "gusto"
        assert run.pay_period_start.isoformat() == "2026-10-01"
        assert run.check_date.isoformat() == "2026-10-20"

    @pytest.mark.asyncio
    async def test_failed_create_records_nothing(self, mock_db, cipher):
        with_connection(mock_db, make_connection(cipher))
        client = mock_client({
            ("POST", "/v1/companies/company-1/payrolls"): (422, {"errors": ["invalid"]}),
        })

        result = await PayrollProxy(mock_db, cipher, client).execute(
            "org1", "createPayroll", {"payroll": {"off_cycle": False}}
        )

        assert result.status_code == 422
        mock_db.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_submit_marks_run_submitted(self, mock_db, cipher):
        with_connection(mock_db, make_connection(cipher, provider="quickbooks"))
        client = mock_client({
            ("POST", "/v1/employers/company-1/payroll-runs/run-1/actions/approve"): (200, {"status": "approved"}),
        })

        result = await PayrollProxy(mock_db, cipher, client).execute(
            "org1", "submitPayroll", {"payrollId": "run-1"}
        )

        assert result.body == {"success": True, "data": {"status": "approved"}}
        # Connection lookup, then the status update
        assert mock_db.execute.await_count == 2
        update_sql = str(mock_db.execute.await_args_list[1][0][0])
        assert "UPDATE payroll_runs" in update_sql

    @pytest.mark.asyncio
    async def test_create_with_unreadable_date_still_succeeds(self, mock_db, cipher):
        with_connection(mock_db, make_connection(cipher))
        client = mock_client({
            ("POST", "/v1/companies/company-1/payrolls"): (200, {
                "uuid": "pay-3",
                "pay_period": {"start_date": "2026-10-01", "end_date": "10/15/2026"},
                "check_date": "soon",
            }),
        })

        result = await PayrollProxy(mock_db, cipher, client).execute(
            "org1", "createPayroll", {"payroll": {"off_cycle": False}}
        )

        assert result.status_code == 200
        assert result.body["success"] is True
        run = mock_db.add.call_args[0][0]
        assert run.external_payroll_id == "pay-3"
        assert run.pay_period_start.isoformat() == "2026-10-01"
        assert run.pay_period_end is None
        assert run.check_date is None
