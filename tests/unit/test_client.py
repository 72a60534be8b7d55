"""Unit tests for the 12306 client."""

import pytest
import responses

from crt_monitor.core.cache import StopSequenceCache, TicketCache
from crt_monitor.core.client import (
    STOP_SEQUENCE_URL,
    TICKET_QUERY_URL,
    RailwayClient,
)
from crt_monitor.core.exceptions import NetworkError, StopSequenceError
from crt_monitor.core.fetcher import RetryingFetcher
from crt_monitor.core.pacing import Pacer


@pytest.fixture
def client(directory):
    """Client with no retries and no pacing delay."""
    fetcher = RetryingFetcher(max_retries=0, sleep=lambda _: None)
    return RailwayClient(
        fetcher,
        directory,
        ticket_cache=TicketCache(),
        stop_cache=StopSequenceCache(),
        pacer=Pacer(0),
    )


def stop_payload(*names: str) -> dict:
    return {
        "status": True,
        "data": {
            "data": [
                {
                    "station_no": f"{i:02d}",
                    "station_name": name,
                    "arrive_time": "----" if i == 1 else f"{7 + i:02d}:00",
                    "start_time": f"{7 + i:02d}:05",
                    "stopover_time": "----" if i == 1 else "5分钟",
                }
                for i, name in enumerate(names, 1)
            ]
        },
    }


class TestQueryTickets:
    """Test ticket queries."""

    @responses.activate
    def test_query_tickets(self, client, record_factory):
        """Test the request parameters and returned records."""
        record = record_factory()
        responses.add(
            responses.GET,
            TICKET_QUERY_URL,
            json={"status": True, "data": {"result": [record, 42]}},
            status=200,
        )

        records = client.query_tickets("2026-02-18", "CWQ", "WHN")

        assert records == [record]
        request = responses.calls[0].request
        assert request.params["leftTicketDTO.train_date"] == "2026-02-18"
        assert request.params["leftTicketDTO.from_station"] == "CWQ"
        assert request.params["leftTicketDTO.to_station"] == "WHN"
        assert request.params["purpose_codes"] == "ADULT"
        assert request.headers["Cookie"] == "JSESSIONID="

    @responses.activate
    def test_query_tickets_cached(self, client, record_factory):
        """Test that a repeated query is served from the cache."""
        responses.add(
            responses.GET,
            TICKET_QUERY_URL,
            json={"status": True, "data": {"result": [record_factory()]}},
            status=200,
        )

        first = client.query_tickets("2026-02-18", "CWQ", "WHN")
        second = client.query_tickets("2026-02-18", "CWQ", "WHN")

        assert first == second
        assert len(responses.calls) == 1

    @responses.activate
    def test_status_false(self, client):
        """Test that an upstream failure status raises NetworkError."""
        responses.add(
            responses.GET,
            TICKET_QUERY_URL,
            json={"status": False, "messages": ["查询失败"]},
            status=200,
        )

        with pytest.raises(NetworkError, match="failed"):
            client.query_tickets("2026-02-18", "CWQ", "WHN")
        assert len(client.ticket_cache) == 0

    @responses.activate
    def test_non_json_body(self, client):
        """Test that an HTML error page raises NetworkError."""
        responses.add(
            responses.GET,
            TICKET_QUERY_URL,
            body="<html>网络可能存在问题</html>",
            status=200,
        )

        with pytest.raises(NetworkError, match="non-JSON"):
            client.query_tickets("2026-02-18", "CWQ", "WHN")

    @responses.activate
    def test_result_not_a_list(self, client):
        """Test that a success status with a malformed result raises NetworkError."""
        responses.add(
            responses.GET,
            TICKET_QUERY_URL,
            json={"status": True, "data": {"result": 5}},
            status=200,
        )

        with pytest.raises(NetworkError, match="unexpected result of type int"):
            client.query_tickets("2026-02-18", "CWQ", "WHN")
        assert len(client.ticket_cache) == 0

    @responses.activate
    def test_empty_result(self, client):
        """Test a successful query without trains."""
        responses.add(
            responses.GET,
            TICKET_QUERY_URL,
            json={"status": True, "data": {"result": []}},
            status=200,
        )

        assert client.query_tickets("2026-02-18", "CWQ", "WHN") == []

    @responses.activate
    def test_paced(self, directory):
        """Test that each uncached request passes through the pacer."""
        waits = []

        class RecordingPacer(Pacer):
            def wait(self):
                waits.append(1)
                return 0.0

        responses.add(
            responses.GET,
            TICKET_QUERY_URL,
            json={"status": True, "data": {"result": []}},
            status=200,
        )
        client = RailwayClient(
            RetryingFetcher(max_retries=0), directory, pacer=RecordingPacer()
        )

        client.query_tickets("2026-02-18", "CWQ", "WHN")
        client.query_tickets("2026-02-18", "CWQ", "WHN")
        client.query_tickets("2026-02-18", "IZQ", "WHN")

        assert len(waits) == 2


class TestStopSequence:
    """Test stop sequence queries."""

    @responses.activate
    def test_get_stop_sequence(self, client):
        """Test that stops are returned in order with resolved codes."""
        responses.add(
            responses.GET,
            STOP_SEQUENCE_URL,
            json=stop_payload("广州南", "长沙南", "某站", "武汉"),
            status=200,
        )

        stops = client.get_stop_sequence("6i000G100100", "CWQ", "WHN", "2026-02-18")

        assert [stop.station_code for stop in stops] == ["IZQ", "CWQ", "", "WHN"]
        assert [stop.stop_index for stop in stops] == [1, 2, 3, 4]
        assert stops[1].arrive_time == "09:00"
        assert stops[1].depart_time == "09:05"
        assert stops[1].stopover_time == "5分钟"
        request = responses.calls[0].request
        assert request.params["train_no"] == "6i000G100100"
        assert request.params["depart_date"] == "2026-02-18"

    @responses.activate
    def test_stop_sequence_cached_by_train(self, client):
        """Test that a train's stops are fetched once."""
        responses.add(
            responses.GET,
            STOP_SEQUENCE_URL,
            json=stop_payload("广州南", "长沙南", "武汉"),
            status=200,
        )

        client.get_stop_sequence("6i000G100100", "CWQ", "WHN", "2026-02-18")
        client.get_stop_sequence("6i000G100100", "IZQ", "WHN", "2026-02-18")

        assert len(responses.calls) == 1

    @responses.activate
    def test_stop_sequence_http_failure(self, client):
        """Test that a failed request raises StopSequenceError."""
        responses.add(responses.GET, STOP_SEQUENCE_URL, status=500)

        with pytest.raises(StopSequenceError) as exc_info:
            client.get_stop_sequence("6i000G100100", "CWQ", "WHN", "2026-02-18")
        assert isinstance(exc_info.value.__cause__, NetworkError)

    @responses.activate
    def test_stop_sequence_bad_payload(self, client):
        """Test that a payload without a stop list raises StopSequenceError."""
        responses.add(
            responses.GET, STOP_SEQUENCE_URL, json={"status": True}, status=200
        )

        with pytest.raises(StopSequenceError, match="no stop list"):
            client.get_stop_sequence("6i000G100100", "CWQ", "WHN", "2026-02-18")
        assert len(client.stop_cache) == 0

    def test_close_clears_caches(self, client):
        """Test that closing drops cached data."""
        client.ticket_cache.set(("2026-02-18", "CWQ", "WHN"), [])
        client.close()
        assert len(client.ticket_cache) == 0
