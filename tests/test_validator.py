"""
End-to-end tests for gbfs_validator.validator.FeedValidator.

Every run goes through a real ``httpx.AsyncClient`` wired to
``httpx.MockTransport`` (see ``tests._support.feeds.FeedServer``).
"""

from __future__ import annotations

import asyncio

import httpx
import pytest

from gbfs_validator import CoerceOptions, FeedValidator, ValidationOptions
from tests._support.feeds import (
    BASE_URL,
    MANIFEST_URL,
    VALID_V23_DOCUMENTS,
    feed_doc,
    manifest,
)

V23_ORDER = [
    "gbfs",
    "gbfs_versions",
    "system_information",
    "vehicle_types",
    "station_information",
    "station_status",
    "free_bike_status",
    "system_hours",
    "system_calendar",
    "system_regions",
    "system_pricing_plans",
    "system_alerts",
    "geofencing_zones",
]

BOTH = ValidationOptions(docked=True, freefloating=True)


def _validator(server, settings, options: ValidationOptions | None = None) -> FeedValidator:
    return FeedValidator(options, settings=settings, transport=server.transport())


def _messages(report, name: str) -> list[str]:
    return [i.message for i in report.get_file(name).issues]


# ── Happy path ───────────────────────────────────────────────────────────


@pytest.mark.integration
class TestValidFeed:
    @pytest.mark.asyncio
    async def test_valid_feed_has_no_errors(self, valid_feed, settings):
        report = await _validator(valid_feed, settings, BOTH).validate(MANIFEST_URL)

        assert report.summary.has_errors is False
        assert report.summary.errors_count == 0
        assert report.summary.version_unimplemented is False
        assert report.summary.version.detected == "2.3"
        assert report.summary.version.validated == "2.3"
        assert report.summary.coercion_summary is None

    @pytest.mark.asyncio
    async def test_files_follow_policy_order(self, valid_feed, settings):
        report = await _validator(valid_feed, settings, BOTH).validate(MANIFEST_URL)
        assert [f.name for f in report.files] == V23_ORDER

    @pytest.mark.asyncio
    async def test_listed_and_unlisted_documents(self, valid_feed, settings):
        report = await _validator(valid_feed, settings, BOTH).validate(MANIFEST_URL)

        station_status = report.get_file("station_status")
        assert station_status.exists and station_status.required
        assert station_status.url == f"{BASE_URL}/station_status.json"

        hours = report.get_file("system_hours")
        assert not hours.exists and not hours.required
        assert hours.url is None
        assert hours.issues == ()

    def test_validate_sync(self, valid_feed, settings):
        report = _validator(valid_feed, settings, BOTH).validate_sync(MANIFEST_URL)
        assert report.has_errors is False

    @pytest.mark.asyncio
    async def test_each_document_fetched_once(self, valid_feed, settings):
        await _validator(valid_feed, settings, BOTH).validate(MANIFEST_URL)
        for name in VALID_V23_DOCUMENTS:
            assert len(valid_feed.requested(f"{BASE_URL}/{name}.json")) == 1


# ── Version handling ─────────────────────────────────────────────────────


class TestVersions:
    @pytest.mark.asyncio
    async def test_override_wins(self, valid_feed, settings):
        options = ValidationOptions(version="3.0")
        report = await _validator(valid_feed, settings, options).validate(MANIFEST_URL)

        assert report.summary.version.detected == "2.3"
        assert report.summary.version.validated == "3.0"
        assert "vehicle_status" in [f.name for f in report.files]

    @pytest.mark.asyncio
    async def test_manifest_without_version_is_1_0(self, feed_server, settings):
        feed_server.publish({"system_information": VALID_V23_DOCUMENTS["system_information"]}, version=None)
        report = await _validator(feed_server, settings).validate(MANIFEST_URL)

        assert report.summary.version.detected == "1.0"
        assert report.summary.version.validated == "1.0"
        assert "gbfs_versions" not in [f.name for f in report.files]


# ── Missing and failing documents ────────────────────────────────────────


class TestDocumentOutcomes:
    @pytest.mark.asyncio
    async def test_docked_manifest_missing_station_documents(self, feed_server, settings):
        feed_server.publish({"system_information": VALID_V23_DOCUMENTS["system_information"]})
        options = ValidationOptions(docked=True)

        report = await _validator(feed_server, settings, options).validate(MANIFEST_URL)

        for name in ("station_information", "station_status"):
            result = report.get_file(name)
            assert result.required is True
            assert result.exists is False
            assert _messages(report, name) == [f"Required file {name}.json not found in autodiscovery"]
        assert report.summary.errors_count == 2
        assert report.get_file("free_bike_status").issues == ()

    @pytest.mark.asyncio
    async def test_listed_required_document_404(self, valid_feed, settings):
        del valid_feed.routes[f"{BASE_URL}/station_status.json"]
        report = await _validator(valid_feed, settings, BOTH).validate(MANIFEST_URL)

        assert _messages(report, "station_status") == ["Required file station_status.json not found (HTTP 404)"]
        assert report.get_file("station_status").exists is False

    @pytest.mark.asyncio
    async def test_listed_optional_document_404_is_fine(self, feed_server, settings):
        documents = dict(VALID_V23_DOCUMENTS)
        feed_server.publish(documents)
        feed_server.add(MANIFEST_URL, manifest([*documents, "system_hours"]))

        report = await _validator(feed_server, settings, BOTH).validate(MANIFEST_URL)

        hours = report.get_file("system_hours")
        assert hours.exists is False and hours.issues == ()
        assert hours.url == f"{BASE_URL}/system_hours.json"

    @pytest.mark.asyncio
    async def test_optional_document_server_error(self, feed_server, settings):
        feed_server.publish({**VALID_V23_DOCUMENTS, "system_hours": 500})
        report = await _validator(feed_server, settings, BOTH).validate(MANIFEST_URL)

        assert _messages(report, "system_hours") == [
            "File system_hours.json could not be fetched: unexpected status code: 500"
        ]
        assert report.summary.has_errors is True

    @pytest.mark.asyncio
    async def test_structural_issue_reported(self, feed_server, settings):
        documents = dict(VALID_V23_DOCUMENTS)
        documents["system_information"] = feed_doc({"system_id": "x", "timezone": "UTC"})
        feed_server.publish(documents)

        report = await _validator(feed_server, settings, BOTH).validate(MANIFEST_URL)

        issue = report.get_file("system_information").issues[0]
        assert issue.message == "name is required"
        assert issue.instance_path == "/data/name"

    @pytest.mark.asyncio
    async def test_cross_reference_issue_reported(self, feed_server, settings):
        documents = dict(VALID_V23_DOCUMENTS)
        documents["station_status"] = feed_doc({"stations": [{"station_id": "ghost"}]})
        feed_server.publish(documents)

        report = await _validator(feed_server, settings, BOTH).validate(MANIFEST_URL)

        assert _messages(report, "station_status") == ["station_id 'ghost' not found in station_information.json"]
        assert report.summary.errors_count == 1

    @pytest.mark.asyncio
    async def test_unlisted_vehicle_types_escalated(self, feed_server, settings):
        documents = dict(VALID_V23_DOCUMENTS)
        del documents["vehicle_types"]
        feed_server.publish(documents)

        report = await _validator(feed_server, settings, BOTH).validate(MANIFEST_URL)

        vehicle_types = report.get_file("vehicle_types")
        assert vehicle_types.required is True
        assert _messages(report, "vehicle_types") == [
            "vehicle_types.json is required when vehicle_type_id is used in free_bike_status.json"
        ]


# ── Manifest ─────────────────────────────────────────────────────────────


class TestManifest:
    @pytest.mark.asyncio
    async def test_missing_manifest(self, feed_server, settings):
        report = await _validator(feed_server, settings).validate(MANIFEST_URL)

        assert report.summary.version_unimplemented is True
        assert report.summary.has_errors is True
        assert [f.name for f in report.files] == ["gbfs"]
        assert _messages(report, "gbfs") == ["gbfs.json is required but not found"]

    @pytest.mark.asyncio
    async def test_missing_manifest_allowed_for_v1(self, feed_server, settings):
        options = ValidationOptions(version="1.0")
        report = await _validator(feed_server, settings, options).validate(MANIFEST_URL)

        assert report.summary.version_unimplemented is True
        assert report.get_file("gbfs").issues == ()

    @pytest.mark.asyncio
    async def test_manifest_server_error(self, feed_server, settings):
        feed_server.add(MANIFEST_URL, 500)
        report = await _validator(feed_server, settings).validate(MANIFEST_URL)

        assert _messages(report, "gbfs") == ["gbfs.json could not be fetched: unexpected status code: 500"]
        assert report.summary.version_unimplemented is True

    @pytest.mark.asyncio
    async def test_unparsable_manifest(self, feed_server, settings):
        feed_server.add(MANIFEST_URL, b"{not json")
        report = await _validator(feed_server, settings).validate(MANIFEST_URL)

        manifest_result = report.get_file("gbfs")
        assert manifest_result.exists is True
        assert manifest_result.issues[0].message.startswith("Failed to parse gbfs.json: ")
        assert report.summary.version_unimplemented is True

    @pytest.mark.asyncio
    async def test_fallback_to_gbfs_json(self, valid_feed, settings):
        report = await _validator(valid_feed, settings, BOTH).validate(BASE_URL)

        assert report.get_file("gbfs").url == MANIFEST_URL
        assert report.summary.has_errors is False
        assert len(valid_feed.requested(BASE_URL)) == 1
        assert len(valid_feed.requested(MANIFEST_URL)) == 1

    @pytest.mark.asyncio
    async def test_no_fallback_when_url_is_manifest(self, feed_server, settings):
        await _validator(feed_server, settings).validate(MANIFEST_URL)
        assert len(feed_server.requests) == 1


# ── Deadline ─────────────────────────────────────────────────────────────


class TestDeadline:
    @pytest.mark.asyncio
    async def test_deadline_keeps_completed_results(self, feed_server, settings):
        async def slow(request: httpx.Request) -> httpx.Response:
            await asyncio.sleep(5)
            return httpx.Response(200, json=VALID_V23_DOCUMENTS["station_status"])

        feed_server.publish({**VALID_V23_DOCUMENTS, "station_status": slow})
        settings = settings.model_copy(update={"run_timeout": 0.5})

        report = await _validator(feed_server, settings, BOTH).validate(MANIFEST_URL)

        assert _messages(report, "station_status") == [
            "Required file station_status.json could not be fetched: run deadline exceeded"
        ]
        assert report.get_file("station_status").exists is False
        assert report.get_file("station_information").exists is True
        assert report.get_file("station_information").issues == ()
        assert report.summary.errors_count == 1

    @pytest.mark.asyncio
    async def test_tasks_finished_at_the_deadline_are_kept(self, valid_feed, settings, monkeypatch):
        wait = asyncio.wait

        async def wait_then_time_out(tasks, timeout=None):
            done, pending = await wait(tasks)
            return set(), done | pending

        monkeypatch.setattr(asyncio, "wait", wait_then_time_out)
        report = await _validator(valid_feed, settings, BOTH).validate(MANIFEST_URL)

        assert report.summary.has_errors is False
        assert all(f.exists for f in report.files if f.url is not None)


# ── Lenient mode ─────────────────────────────────────────────────────────


class TestLenientMode:
    @pytest.fixture
    def sloppy_feed(self, feed_server):
        documents = dict(VALID_V23_DOCUMENTS)
        documents["station_status"] = feed_doc(
            {"stations": [{"station_id": "s1", "is_installed": "1", "num_bikes_available": "3"}]}
        )
        return feed_server.publish(documents)

    @pytest.mark.asyncio
    async def test_strict_reports_type_errors(self, sloppy_feed, settings):
        report = await _validator(sloppy_feed, settings, BOTH).validate(MANIFEST_URL)

        assert _messages(report, "station_status") == [
            "is_installed must be a boolean",
            "num_bikes_available must be an integer",
        ]
        assert report.summary.lenient_mode is False

    @pytest.mark.asyncio
    async def test_lenient_normalizes_and_logs(self, sloppy_feed, settings):
        options = ValidationOptions(docked=True, freefloating=True, lenient_mode=True)
        report = await _validator(sloppy_feed, settings, options).validate(MANIFEST_URL)

        assert report.summary.has_errors is False
        assert report.summary.lenient_mode is True
        assert report.get_file("station_status").coercion_count == 2
        summary = report.summary.coercion_summary
        assert summary.total_coercions == 2
        assert summary.by_field == {"is_installed": 1, "num_bikes_available": 1}

    @pytest.mark.asyncio
    async def test_lenient_respects_toggles(self, sloppy_feed, settings):
        options = ValidationOptions(
            docked=True,
            freefloating=True,
            lenient_mode=True,
            coerce_options=CoerceOptions(coerce_booleans=False),
        )
        report = await _validator(sloppy_feed, settings, options).validate(MANIFEST_URL)

        assert _messages(report, "station_status") == ["is_installed must be a boolean"]

    @pytest.mark.asyncio
    async def test_report_json_shape(self, sloppy_feed, settings):
        options = ValidationOptions(docked=True, freefloating=True, lenient_mode=True)
        report = await _validator(sloppy_feed, settings, options).validate(MANIFEST_URL)

        data = report.to_dict()
        assert set(data) == {"summary", "files"}
        assert data["summary"]["coercionSummary"]["totalCoercions"] == 2
        station_status = next(f for f in data["files"] if f["name"] == "station_status")
        assert station_status["coercionCount"] == 2
        assert "errors" not in station_status

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("name", "body"),
        [
            (
                "station_information",
                b'{"last_updated":1,"ttl":0,"data":{"stations":[{"station_id":"s1","lat":1'
                + b"0" * 400
                + b',"lon":2,"name":"A"}]}}',
            ),
            ("station_information", b'{"last_updated":1,"ttl":0,"data":{"stations":[{"station_id":"s1","lat":1e400}]}}'),
            ("system_information", b'{"last_updated":1e400,"ttl":"60","data":{"system_id":"x","name":"X"}}'),
        ],
    )
    async def test_out_of_range_numbers_match_strict(self, feed_server, settings, name, body):
        feed_server.publish({**VALID_V23_DOCUMENTS, name: body})
        lenient = ValidationOptions(docked=True, freefloating=True, lenient_mode=True)

        strict_report = await _validator(feed_server, settings, BOTH).validate(MANIFEST_URL)
        lenient_report = await _validator(feed_server, settings, lenient).validate(MANIFEST_URL)

        assert lenient_report.get_file(name).exists is True
        assert _messages(lenient_report, name) == _messages(strict_report, name)
