"""
Tests for the AnomalyDetector.

Checkers are replaced with stubs so these tests cover aggregation,
persistence and alert dispatch rather than the individual thresholds.
"""

import pytest
from datetime import date
from unittest.mock import AsyncMock, MagicMock

from sqlalchemy.exc import SQLAlchemyError

from app.anomalies.engine import AnomalyDetector, DetectionRun
from app.anomalies.models import (
    AnomalyResult,
    AnomalySeverity,
    AnomalyType,
    DetectedAnomaly,
)
from tests.conftest import row_result, scalar_result


TODAY = date(2026, 10, 19)


def make_anomaly(severity=AnomalySeverity.WARNING, anomaly_type=AnomalyType.NO_SHOW_SURGE):
    return AnomalyResult(
        type=anomaly_type,
        severity=severity,
        metric_value=3,
        expected_value=1,
        deviation_percent=200,
        context={"date": TODAY.isoformat(), "threshold": 3},
    )


def stub_checker(result):
    return AsyncMock(return_value=result)


@pytest.fixture
def mock_dispatcher():
    dispatcher = MagicMock()
    dispatcher.dispatch = AsyncMock(return_value=0)
    return dispatcher


# =============================================================================
# DetectionRun
# =============================================================================

class TestDetectionRun:
    """Tests for the run summary returned to the endpoint."""

    def test_response_envelope(self):
        run = DetectionRun(organization_id="org1", location_id=None, anomalies=[make_anomaly()])

        response = run.to_response()

        assert response["success"] is True
        assert response["detected"] == 1
        assert response["anomalies"][0]["type"] == "no_show_surge"
        assert response["anomalies"][0]["metricValue"] == 3
        assert response["anomalies"][0]["deviationPercent"] == 200
        assert response["checkedAt"] == run.checked_at.isoformat()

    def test_empty_run(self):
        run = DetectionRun(organization_id="org1", location_id="loc1")

        assert run.detected == 0
        assert run.to_response()["anomalies"] == []


# =============================================================================
# AnomalyDetector
# =============================================================================

class TestAnomalyDetector:
    """Tests for aggregation, persistence and dispatch."""

    @pytest.mark.asyncio
    async def test_collects_only_fired_checkers(self, mock_db, mock_dispatcher):
        fired = make_anomaly()
        checkers = [stub_checker(None), stub_checker(fired), stub_checker(None)]
        detector = AnomalyDetector(mock_db, "org1", checkers=checkers, dispatcher=mock_dispatcher)

        run = await detector.detect(TODAY)

        assert run.anomalies == [fired]
        assert run.persisted is True
        for checker in checkers:
            checker.assert_awaited_once_with(mock_db, "org1", None, TODAY)

    @pytest.mark.asyncio
    async def test_nothing_detected_skips_persistence_and_alerts(self, mock_db, mock_dispatcher):
        detector = AnomalyDetector(
            mock_db, "org1", checkers=[stub_checker(None)], dispatcher=mock_dispatcher
        )

        run = await detector.detect(TODAY)

        assert run.detected == 0
        mock_db.add_all.assert_not_called()
        mock_db.commit.assert_not_awaited()
        mock_dispatcher.dispatch.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_rows_tagged_with_organization_and_location(self, mock_db, mock_dispatcher):
        detector = AnomalyDetector(
            mock_db, "org1", "loc1", checkers=[stub_checker(make_anomaly())], dispatcher=mock_dispatcher
        )

        await detector.detect(TODAY)

        rows = mock_db.add_all.call_args[0][0]
        assert len(rows) == 1
        assert isinstance(rows[0], DetectedAnomaly)
        assert rows[0].organization_id == "org1"
        assert rows[0].location_id == "loc1"
        assert rows[0].anomaly_type == "no_show_surge"
        assert rows[0].deviation_percent == 200

    @pytest.mark.asyncio
    async def test_repeated_runs_store_duplicates(self, mock_db, mock_dispatcher):
        detector = AnomalyDetector(
            mock_db, "org1", checkers=[stub_checker(make_anomaly())], dispatcher=mock_dispatcher
        )

        await detector.detect(TODAY)
        await detector.detect(TODAY)

        assert mock_db.add_all.call_count == 2
        assert mock_db.commit.await_count == 2

    @pytest.mark.asyncio
    async def test_persist_failure_is_logged_not_raised(self, mock_db, mock_dispatcher):
        mock_db.commit.side_effect = SQLAlchemyError("insert failed")
        detector = AnomalyDetector(
            mock_db, "org1", checkers=[stub_checker(make_anomaly())], dispatcher=mock_dispatcher
        )

        run = await detector.detect(TODAY)

        assert run.detected == 1
        assert run.persisted is False
        mock_db.rollback.assert_awaited_once()
        mock_dispatcher.dispatch.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_checker_error_aborts_run(self, mock_db, mock_dispatcher):
        failing = AsyncMock(side_effect=RuntimeError("query failed"))
        after = stub_checker(make_anomaly())
        detector = AnomalyDetector(
            mock_db, "org1", checkers=[failing, after], dispatcher=mock_dispatcher
        )

        with pytest.raises(RuntimeError, match="query failed"):
            await detector.detect(TODAY)

        after.assert_not_awaited()
        mock_db.add_all.assert_not_called()

    @pytest.mark.asyncio
    async def test_dispatches_all_anomalies(self, mock_db, mock_dispatcher):
        critical = make_anomaly(AnomalySeverity.CRITICAL)
        warning = make_anomaly(AnomalySeverity.WARNING, AnomalyType.REVENUE_DROP)
        mock_dispatcher.dispatch.return_value = 1
        detector = AnomalyDetector(
            mock_db, "org1",
            checkers=[stub_checker(critical), stub_checker(warning)],
            dispatcher=mock_dispatcher,
        )

        run = await detector.detect(TODAY)

        mock_dispatcher.dispatch.assert_awaited_once_with("org1", [critical, warning])
        assert run.alerts_sent == 1


class TestDefaultCheckerRun:
    """End-to-end run over the real checkers with a mocked session."""

    @pytest.mark.asyncio
    async def test_missing_revenue_row_still_runs_other_checks(self, mock_db, mock_dispatcher):
        mock_db.execute.side_effect = [
            row_result(0, 0),                       # revenue: no row today
            row_result(10, 3), row_result(60, 6),   # cancellations: warning
            scalar_result(5),                       # no-shows: critical
            scalar_result(10), *[scalar_result(10)] * 4,  # bookings: flat
        ]
        detector = AnomalyDetector(mock_db, "org1", dispatcher=mock_dispatcher)

        run = await detector.detect(TODAY)

        assert [a.type for a in run.anomalies] == [
            AnomalyType.CANCELLATION_SPIKE,
            AnomalyType.NO_SHOW_SURGE,
        ]
        assert mock_db.execute.await_count == 9
