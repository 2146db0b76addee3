"""
Tests for the FastAPI endpoints.
"""

import pytest
from sqlalchemy.exc import OperationalError

from backend.app.services.grant_repository import GrantRepository

LAKAS_HEADER = [
    "Control No.", "YEAR OBLIGATED", "REG", "HEI", "CHED RESEARCH PLATFORM",
    "BUDGET APPROVED ", "BUDGET RELEASED", "STATUS",
]


def test_root_endpoint(client):
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "RMD Grants Dashboard API"
    assert data["version"] == "1.0.0"
    assert data["docs"] == "/docs"
    assert data["health"] == "/api/health"


def test_metrics_endpoint(client):
    """Prometheus exposition includes the HTTP and upload counters."""
    client.get("/")
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "text/plain" in response.headers["content-type"]

    content = response.text
    assert "http_requests_total" in content
    assert "http_request_duration_seconds" in content
    assert "csv_uploads_total" in content


def test_health_endpoint(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "OK"
    assert data["message"] == "RMD Dashboard API is running"
    assert data["database_connected"] is True


def test_openapi_lists_program_routes(client):
    response = client.get("/openapi.json")
    assert response.status_code == 200
    paths = response.json()["paths"]
    for program in ("gia", "idig", "lakas", "nafes"):
        assert f"/api/{program}/overview" in paths
        assert f"/api/{program}/upload-csv" in paths


class TestProgramRegistry:

    def test_list_programs(self, client):
        response = client.get("/api/grants")
        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 4
        assert {p["program"] for p in data["programs"]} == {"gia", "idig", "lakas", "nafes"}
        assert all(p["records"] == 0 for p in data["programs"])

    def test_program_summary_counts_rows(self, client, upload, gia_csv):
        upload("gia", gia_csv)

        response = client.get("/api/grants/gia")
        assert response.status_code == 200
        assert response.json() == {
            "program": "gia",
            "label": "GIA",
            "table": "gia_grants",
            "load_mode": "replace",
            "records": 3,
        }

    def test_program_lookup_is_case_insensitive(self, client):
        response = client.get("/api/grants/LAKAS")
        assert response.status_code == 200
        assert response.json()["load_mode"] == "upsert"

    def test_unknown_program(self, client):
        response = client.get("/api/grants/unknown")
        assert response.status_code == 404
        assert response.json() == {"error": "Unknown grant program: unknown"}


class TestGiaDashboard:
    """GIA export uploaded, then read back through every chart."""

    @pytest.fixture(autouse=True)
    def loaded(self, upload, gia_csv):
        response = upload("gia", gia_csv)
        assert response.status_code == 200
        return response

    def test_upload_response(self, loaded):
        assert loaded.json() == {
            "message": "GIA CSV file processed successfully",
            "recordsProcessed": 3,
            "replaceAll": True,
        }

    def test_priority_area_by_disbursed_amount(self, client):
        response = client.get("/api/gia/priority-area")
        assert response.status_code == 200
        assert response.json() == [
            {"area": "Tech", "projects": 1, "amount": 1000.0},
            {"area": "Health", "projects": 2, "amount": 500.0},
        ]

    def test_overview(self, client):
        response = client.get("/api/gia/overview")
        assert response.status_code == 200
        assert response.json() == {
            "totalGrants": 3,
            "totalAmount": 3800.0,
            "totalAllocated": 3800.0,
            "totalDisbursed": 1500.0,
            "disbursedProjects": 2,
            "obligatedProjects": 0,
            "allocatedProjects": 1,
            "amountProjects": 0,
        }

    def test_region_sorted_by_name(self, client):
        response = client.get("/api/gia/region")
        assert [row["region"] for row in response.json()] == ["NCR", "Region V", "Region VII"]

    def test_hei_type_derived_from_name(self, client):
        response = client.get("/api/gia/hei-type")
        assert {row["type"] for row in response.json()} == {"SUC", "Technical", "Private"}

    def test_status_derived_from_amounts(self, client):
        response = client.get("/api/gia/status")
        assert response.json() == [
            {"status": "Disbursed", "projects": 2, "amount": 1500.0},
            {"status": "Allocated", "projects": 1, "amount": 0.0},
        ]

    def test_yearly_trends(self, client):
        response = client.get("/api/gia/yearly-trends")
        assert response.json() == [
            {"year": 2023, "projects": 2, "amount": 500.0},
            {"year": 2024, "projects": 1, "amount": 1000.0},
        ]

    def test_year_filter(self, client):
        response = client.get("/api/gia/priority-area", params={"year": "2024"})
        assert response.json() == [{"area": "Tech", "projects": 1, "amount": 1000.0}]

        response = client.get("/api/gia/overview", params={"year": "2023"})
        assert response.json()["totalGrants"] == 2

    @pytest.mark.parametrize("year", ["All", ""])
    def test_year_all_means_unfiltered(self, client, year):
        response = client.get("/api/gia/overview", params={"year": year})
        assert response.status_code == 200
        assert response.json()["totalGrants"] == 3

    def test_invalid_year(self, client):
        response = client.get("/api/gia/region", params={"year": "abc"})
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid year: abc"}

    def test_reupload_replaces(self, client, upload, gia_csv):
        upload("gia", gia_csv)
        assert client.get("/api/gia/overview").json()["totalGrants"] == 3

    def test_append_without_replace(self, client, upload, gia_csv):
        upload("gia", gia_csv, replace_all=False)
        assert client.get("/api/gia/overview").json()["totalGrants"] == 6


def test_gia_grouping_trims_and_skips_blank_areas(client, upload, make_csv, gia_header):
    rows = [
        ["1", "GIA", "2023", "U-1", "Cavite State University", "Luzon", "A", "100", "Health", "100", "100", "100"],
        ["2", "GIA", "2023", "U-2", "Cavite State University", "  Luzon  ", "B", "100", "Health", "100", "100", "50"],
        ["3", "GIA", "2023", "U-3", "Cavite State University", "Luzon", "C", "100", "", "100", "0", "0"],
    ]
    upload("gia", make_csv(gia_header, rows))

    assert client.get("/api/gia/region").json() == [{"region": "Luzon", "projects": 2, "amount": 150.0}]
    assert [row["area"] for row in client.get("/api/gia/priority-area").json()] == ["Health"]
    assert client.get("/api/gia/overview").json()["totalGrants"] == 3


def test_idig_dashboard(client, upload, make_csv):
    header = ["Project ID", "Project Title", "Year", "HEI Name", "Region", "Priority Area",
              "Budget", "Amount Released", "Status"]
    rows = [
        ["I-1", "Sensors", "2022", "Batangas State University", "Region IV-A", "ICT", "500", "200", "Ongoing"],
        ["I-2", "Drones", "2023", "Technical Institute of Iloilo", "Region VI", "ICT", "300", "300", "Completed"],
        ["I-3", "Seeds", "2023", "Xavier University", "Region X", "Agriculture", "N/A", "", "Ongoing"],
    ]
    response = upload("idig", make_csv(header, rows))
    assert response.json()["recordsProcessed"] == 3

    assert client.get("/api/idig/overview").json() == {
        "totalGrants": 3,
        "totalAmount": 800.0,
        "totalReleased": 500.0,
        "activeProjects": 2,
        "completedProjects": 1,
    }
    assert client.get("/api/idig/priority-area").json() == [
        {"area": "ICT", "projects": 2, "amount": 500.0},
        {"area": "Agriculture", "projects": 1, "amount": 0.0},
    ]
    assert [row["type"] for row in client.get("/api/idig/hei-type").json()] == ["Technical", "SUC", "Other"]


class TestLakasUpsert:

    def test_reupload_updates_by_control_number(self, client, upload, make_csv):
        first = make_csv(LAKAS_HEADER, [
            ["L-001", "2023", "Region III", "Central Luzon State University", "Food Security", "1,000", "400", "Ongoing"],
            ["L-002", "2023", "Region VI", "Iloilo Science College", "Climate", "500", "500", "Ongoing"],
        ])
        second = make_csv(LAKAS_HEADER, [
            ["L-002", "2024", "Region VI", "Iloilo Science College", "Climate", "600", "600", "Completed"],
            ["L-003", "2024", "NCR", "De La Salle University", "Health", "700", "0", "Ongoing"],
        ])

        assert upload("lakas", first, replace_all=False).json()["recordsProcessed"] == 2
        assert upload("lakas", second, replace_all=False).json()["recordsProcessed"] == 2

        overview = client.get("/api/lakas/overview").json()
        assert overview["totalGrants"] == 3
        assert overview["totalAmount"] == 2300.0
        # Released amounts are not overwritten on update
        assert overview["totalReleased"] == 900.0
        assert overview["completedProjects"] == 1
        assert overview["activeProjects"] == 2

        assert client.get("/api/lakas/status").json() == [
            {"name": "Ongoing", "value": 2},
            {"name": "Completed", "value": 1},
        ]

    def test_rows_without_control_number_do_not_multiply(self, client, upload, make_csv):
        csv_text = make_csv(LAKAS_HEADER, [
            ["LK-1", "2023", "Region III", "Central Luzon State University", "Food Security", "1,000", "400", "Ongoing"],
            ["", "2023", "Region VI", "Iloilo Science College", "Climate", "500", "0", "Ongoing"],
        ])

        for _ in range(3):
            assert upload("lakas", csv_text, replace_all=False).json()["recordsProcessed"] == 2

        assert client.get("/api/grants/lakas").json()["records"] == 2
        # The keyless row is stored once but stays off the dashboard
        assert client.get("/api/lakas/overview").json()["totalGrants"] == 1

    def test_replace_all_clears_first(self, client, upload, make_csv):
        upload("lakas", make_csv(LAKAS_HEADER, [
            ["L-001", "2023", "Region III", "Central Luzon State University", "Food Security", "1,000", "400", "Ongoing"],
        ]))
        upload("lakas", make_csv(LAKAS_HEADER, [
            ["L-009", "2024", "NCR", "Polytechnic University", "Health", "50", "0", "Ongoing"],
        ]), replace_all=True)

        assert client.get("/api/grants/lakas").json()["records"] == 1
        assert client.get("/api/lakas/hei-type").json() == [
            {"name": "Local Colleges", "projects": 1, "amount": 50.0, "released": 0.0},
        ]


class TestUploadRejection:

    def test_no_file(self, client):
        response = client.post("/api/gia/upload-csv", data={"replaceAll": "true"})
        assert response.status_code == 400
        assert response.json() == {"error": "No file uploaded"}

    def test_wrong_extension(self, upload, upload_dir):
        response = upload("gia", "a,b\n1,2\n", filename="grants.xlsx")
        assert response.status_code == 400
        assert response.json() == {"error": "Please upload a CSV file"}
        assert not upload_dir.exists() or list(upload_dir.iterdir()) == []

    def test_wrong_content_type(self, upload):
        response = upload("gia", "a,b\n1,2\n", content_type="image/png")
        assert response.status_code == 400
        assert "Unsupported file type" in response.json()["error"]

    def test_empty_file(self, upload):
        response = upload("gia", b"")
        assert response.status_code == 400
        assert response.json() == {"error": "Uploaded file is empty"}

    def test_undecodable_file_leaves_table_untouched(self, client, upload, upload_dir, gia_csv):
        upload("gia", gia_csv)

        response = upload("gia", b"\xff\xfe\x00\x81 not utf-8")
        assert response.status_code == 400
        assert response.json()["error"].startswith("CSV parsing error")
        assert client.get("/api/gia/overview").json()["totalGrants"] == 3
        assert list(upload_dir.iterdir()) == []


def test_upload_file_removed_after_success(upload, upload_dir, gia_csv):
    upload("gia", gia_csv)
    assert list(upload_dir.iterdir()) == []


def test_database_failure_during_upload(client, upload, gia_csv, monkeypatch):
    upload("gia", gia_csv)

    calls = {"n": 0}
    original = GrantRepository.insert

    def flaky_insert(self, record):
        calls["n"] += 1
        if calls["n"] == 2:
            raise OperationalError("INSERT", {}, Exception("disk full"))
        original(self, record)

    monkeypatch.setattr(GrantRepository, "insert", flaky_insert)

    response = upload("gia", gia_csv)
    assert response.status_code == 500
    assert response.json()["error"].startswith("Database error at row 2")
    # The clear and the first insert were rolled back
    assert client.get("/api/grants/gia").json()["records"] == 3


def test_database_failure_during_query(client, monkeypatch):
    def broken(self, dimension, year=None):
        raise OperationalError("SELECT", {}, Exception("connection lost"))

    monkeypatch.setattr(GrantRepository, "aggregate", broken)

    response = client.get("/api/nafes/region")
    assert response.status_code == 500
    assert "error" in response.json()
