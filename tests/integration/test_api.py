"""
Integration Tests - HTTP API
"""
import pytest


async def _import_sales(client, rows, **extra):
    response = await client.post("/api/v1/data/import", json={"type": "sales", "data": rows, **extra})
    assert response.status_code == 200, response.text
    return response.json()


class TestImportEndpoints:

    async def test_import_json_rows(self, client, sales_rows):
        body = await _import_sales(client, sales_rows, fileName="sales.xlsx")

        assert body["success"] is True
        assert body["record_type"] == "sales"
        assert body["file_name"] == "sales.xlsx"
        assert body["stats"]["added"] == 2
        assert body["stats"]["seasons"] == ["26FA"]
        assert body["validation"]["warnings"] == []

    async def test_csv_upload(self, client):
        content = (
            b"Style,Season,Customer Name,Customer Type,Units Current Booked,$ Current Booked Net\n"
            b"5099,,REI Co-op,BB,4,200\n"
        )

        response = await client.post(
            "/api/v1/data/upload",
            files={"file": ("sales_SP27.csv", content, "text/csv")},
            data={"type": "sales"},
        )

        assert response.status_code == 200, response.text
        assert response.json()["stats"]["seasons"] == ["27SP"]

    async def test_corrupt_workbook_is_rejected(self, client):
        response = await client.post(
            "/api/v1/data/upload",
            files={"file": ("broken.xlsx", b"this is not a workbook", "application/octet-stream")},
        )

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["kind"] == "parse_error"

    async def test_detect(self, client):
        response = await client.post(
            "/api/v1/data/detect",
            json={"headers": ["Style #", "Season", "FOB", "Landed", "Duty"], "fileName": "landed_FA26.xlsx"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["record_type"] == "costs"
        assert body["confidence"] == "medium"
        assert body["season"] == "26FA"

    async def test_cleanup(self, client, sales_rows):
        await _import_sales(client, sales_rows)

        response = await client.post("/api/v1/data/cleanup", json={"seasons": ["FA26"]})

        assert response.status_code == 200
        assert response.json()["deleted"]["sales"] == 2

    async def test_cleanup_requires_seasons(self, client):
        response = await client.post("/api/v1/data/cleanup", json={"seasons": []})

        assert response.status_code == 422

    async def test_import_log(self, client, sales_rows):
        await _import_sales(client, sales_rows, fileName="sales.xlsx")

        response = await client.get("/api/v1/data/imports")

        assert response.status_code == 200
        entries = response.json()
        assert len(entries) == 1
        assert entries[0]["file_type"] == "sales"
        assert entries[0]["added"] == 2


class TestReadEndpoints:

    async def test_style_pricing_uses_implied_wholesale(self, client, sales_rows):
        await _import_sales(client, sales_rows)

        response = await client.get("/api/v1/pricing/5099/FA26")

        assert response.status_code == 200
        body = response.json()
        assert body["season"] == "26FA"
        assert body["price"] == {"wholesale": 50.0, "msrp": None, "source": "sales", "calculated": True}
        assert body["cost"]["source"] == "none"
        assert body["margin"] is None
        assert body["margin_grade"] == "unknown"
        assert body["revenue"] == 1000.0

    async def test_style_pricing_with_costs(self, client, sales_rows):
        await _import_sales(client, sales_rows)
        await client.post("/api/v1/data/import", json={
            "type": "costs",
            "data": [{"Style #": "5099", "Season": "FA26", "Landed": 20, "FOB": 15}],
        })

        body = (await client.get("/api/v1/pricing/5099/26FA")).json()

        assert body["cost"] == {"landed": 20.0, "fob": 15.0, "source": "landed_sheet"}
        assert body["margin"] == pytest.approx(60.0)
        assert body["analysis"]["cost_to_wholesale_multiplier"] == 2.5

    async def test_by_channel(self, client, sales_rows):
        await _import_sales(client, sales_rows)

        response = await client.get("/api/v1/dashboard/by-channel", params={"season": "Fall 26"})

        assert response.status_code == 200
        channels = response.json()
        assert [c["channel"] for c in channels] == ["BB", "WH"]
        assert channels[0]["channel_name"] == "REI"

    async def test_summary(self, client, sales_rows):
        await _import_sales(client, sales_rows)

        body = (await client.get("/api/v1/dashboard/summary")).json()

        assert body["totals"]["revenue"] == 1750.0
        assert body["seasons"][0]["season"] == "26FA"

    async def test_seasons(self, client, sales_rows):
        await _import_sales(client, sales_rows)

        response = await client.get("/api/v1/seasons")

        assert response.status_code == 200
        body = response.json()
        assert len(body["current_shipping_season"]) == 4
        assert body["seasons"][0]["season"] == "26FA"
        assert body["seasons"][0]["label"] == "Fall 2026"
        assert body["seasons"][0]["counts"] == {"sales": 2}

    async def test_pivot(self, client, sales_rows):
        await _import_sales(client, sales_rows)

        response = await client.get("/api/v1/pricing/pivot", params={"metric": "units", "seasons": "FA26"})

        assert response.status_code == 200
        body = response.json()
        assert body["seasons"] == ["26FA"]
        assert [row["style_number"] for row in body["rows"]] == ["5099", "6102"]

    async def test_inventory_summary(self, client):
        response = await client.post("/api/v1/data/import", json={
            "type": "inventory",
            "data": [
                {"Style": "5099", "Whse": "01", "Type": "Receipt", "Qty": 10, "Extension": 200, "Period": "2026-01"},
                {"Style": "5099", "Whse": "01", "Type": "Shipment", "Qty": -4, "Extension": -80, "Period": "2026-02"},
            ],
        })
        assert response.status_code == 200, response.text

        response = await client.get("/api/v1/dashboard/inventory")

        assert response.status_code == 200
        body = response.json()
        assert body["total_count"] == 2
        assert body["by_warehouse"] == [
            {"warehouse": "01", "count": 2, "total_qty": 6.0, "total_extension": 120.0},
        ]
        assert [p["period"] for p in body["by_period"]] == ["2026-01", "2026-02"]

    async def test_unknown_pivot_metric(self, client):
        response = await client.get("/api/v1/pricing/pivot", params={"metric": "velocity"})

        assert response.status_code == 400
        assert response.json()["kind"] == "parse_error"


class TestHealth:

    async def test_health(self, client):
        response = await client.get("/api/v1/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"]["status"] == "healthy"

    async def test_request_id_header(self, client):
        response = await client.get("/api/v1/health/live", headers={"X-Request-ID": "abc123"})

        assert response.headers["X-Request-ID"] == "abc123"
        assert "X-Response-Time" in response.headers


class TestWithoutDatabase:

    async def test_import_reports_store_unavailable(self, offline_client, sales_rows):
        response = await offline_client.post("/api/v1/data/import", json={"type": "sales", "data": sales_rows})

        assert response.status_code == 503
        assert response.json()["kind"] == "store_unavailable"

    async def test_dashboard_falls_back_to_files(self, offline_client):
        response = await offline_client.get("/api/v1/dashboard/by-channel")

        assert response.status_code == 200
        assert response.json() == []

    async def test_inventory_without_any_source(self, offline_client):
        response = await offline_client.get("/api/v1/dashboard/inventory")

        assert response.status_code == 200
        assert response.json()["total_count"] == 0

    async def test_readiness(self, offline_client):
        response = await offline_client.get("/api/v1/health/ready")

        assert response.status_code == 503

    async def test_health_without_any_source(self, offline_client):
        body = (await offline_client.get("/api/v1/health")).json()

        assert body["status"] == "unhealthy"
        assert body["database"]["status"] == "unhealthy"
        assert body["snapshot"]["status"] == "missing"
