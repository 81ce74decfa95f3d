# file: tests/test_main.py

import csv
import io

import pytest
from fastapi.testclient import TestClient

from backend import main, scheduler
from backend.ingest import SAMPLE_CSV
from backend.models import Insight

client = TestClient(main.app)


@pytest.fixture
def fake_database(monkeypatch):
    """In-memory stand-in for InfluxDB shared by save_readings and get_readings."""
    saved = []

    def save_readings(readings):
        saved.extend(readings)
        return len(readings)

    monkeypatch.setattr(main, "save_readings", save_readings)
    monkeypatch.setattr(scheduler, "get_readings", lambda: list(saved))
    yield saved
    main.reading_store.load([])


def test_readings_all_and_filtered(loaded_reading_store):
    response = client.get("/readings")
    assert response.status_code == 200
    assert [item["id"] for item in response.json()] == [1, 2, 3]

    response = client.get("/readings", params = [("region", "LAGOS")])
    assert [item["location"] for item in response.json()] == ["Victoria Island"]


def test_regions(loaded_reading_store):
    assert client.get("/regions").json() == ["ABUJA", "LAGOS"]
    grouped = client.get("/regions/grouped").json()
    assert list(grouped) == ["ABUJA", "LAGOS"]
    assert [item["id"] for item in grouped["ABUJA"]] == [1, 2]


def test_classify_endpoint():
    response = client.get("/classify", params = {"value" : 160})
    assert response.status_code == 200
    assert response.json()["label"] == "Hazardous"
    assert client.get("/classify", params = {"value" : -3}).json()["label"] == "Good"


@pytest.mark.parametrize("value", ["nan", "abc"])
def test_classify_rejects_invalid_values(value):
    assert client.get("/classify", params = {"value" : value}).status_code == 422


def test_classify_uncalibrated_pollutant():
    assert client.get("/classify", params = {"value" : 10, "pollutant" : "co2"}).status_code == 400


def test_legend():
    assert len(client.get("/legend").json()) == 5


def test_heatmap(loaded_reading_store):
    points = client.get("/heatmap", params = [("pollutant", "pm25"), ("region", "ABUJA")]).json()
    assert [point["intensity"] for point in points] == pytest.approx([0.25, 1.0])
    assert points[0]["lat"] == 9.0765


def test_heatmap_empty_store():
    assert client.get("/heatmap").json() == []


def test_export_csv(loaded_reading_store):
    response = client.get("/export/csv", params = [("region", "ABUJA")])
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert 'filename="ABUJA-environmental-data.csv"' in response.headers["content-disposition"]
    rows = list(csv.DictReader(io.StringIO(response.text)))
    assert [row["location"] for row in rows] == ["Maitama", "Wuse"]

    response = client.get("/export/csv")
    assert 'filename="all-environmental-data.csv"' in response.headers["content-disposition"]


def test_export_geojson(loaded_reading_store):
    response = client.get("/export/geojson")
    assert response.status_code == 200
    assert 'filename="environmental-data-filtered.geojson"' in response.headers["content-disposition"]
    features = response.json()["features"]
    assert len(features) == 3
    assert features[2]["geometry"]["coordinates"] == [3.4219, 6.4281]


def test_export_geojson_empty_is_valid():
    assert client.get("/export/geojson").json() == {"type" : "FeatureCollection", "features" : []}


def test_upload_stores_and_refreshes(fake_database):
    response = client.post("/upload", files = {"file" : ("abuja.csv", SAMPLE_CSV, "text/csv")},
                           data = {"uploader_name" : "Ada"})
    assert response.status_code == 200
    body = response.json()
    assert body["count"] == 3
    assert body["dropped"] == 0
    assert len(fake_database) == 3
    assert client.get("/regions").json() == ["ABUJA"]


def test_upload_reports_dropped_rows(fake_database):
    content = "location,latitude,longitude,pm25\nA,9.0,7.4,10\nB,,7.5,20\n"
    body = client.post("/upload", files = {"file" : ("mixed.csv", content, "text/csv")},
                       data = {"uploader_name" : "Ada"}).json()
    assert body["count"] == 1
    assert body["dropped"] == 1
    assert "skipped" in body["message"]


def test_upload_falls_back_to_local_merge(fake_database, monkeypatch):
    def broken():
        raise ConnectionError("influx down")

    monkeypatch.setattr(scheduler, "get_readings", broken)
    response = client.post("/upload", files = {"file" : ("abuja.csv", SAMPLE_CSV, "text/csv")},
                           data = {"uploader_name" : "Ada"})
    assert response.status_code == 200
    assert len(client.get("/readings").json()) == 3


def test_upload_validation_errors(fake_database):
    assert client.post("/upload", data = {"uploader_name" : "Ada"}).status_code == 400
    response = client.post("/upload", files = {"file" : ("abuja.csv", SAMPLE_CSV, "text/csv")})
    assert response.status_code == 400
    assert "Uploader name" in response.json()["detail"]
    response = client.post("/upload", files = {"file" : ("bad.csv", "pm25\n12\n", "text/csv")},
                           data = {"uploader_name" : "Ada"})
    assert response.status_code == 400
    assert "Missing required columns" in response.json()["detail"]


def test_upload_database_failure(monkeypatch):
    def broken(readings):
        raise ConnectionError("influx down")

    monkeypatch.setattr(main, "save_readings", broken)
    response = client.post("/upload", files = {"file" : ("abuja.csv", SAMPLE_CSV, "text/csv")},
                           data = {"uploader_name" : "Ada"})
    assert response.status_code == 500


def test_refresh(fake_database, scenario_readings):
    fake_database.extend(scenario_readings)
    assert client.post("/refresh").json() == {"loaded" : 3, "dropped" : 0}


def test_refresh_failure(monkeypatch):
    def broken():
        raise ConnectionError("influx down")

    monkeypatch.setattr(scheduler, "get_readings", broken)
    assert client.post("/refresh").status_code == 503


def test_insights(loaded_reading_store, monkeypatch):
    async def fake_generate(snapshot, pollutant):
        return [Insight(title = f"About {snapshot['location']}", description = "ok", severity = "low")]

    monkeypatch.setattr(main, "generate_insights", fake_generate)
    response = client.get("/insights/2")
    assert response.status_code == 200
    body = response.json()
    assert body["snapshot"]["aqi_description"] == "Unhealthy"
    assert body["insights"][0]["title"] == "About Wuse"


def test_insights_unknown_reading(loaded_reading_store):
    assert client.get("/insights/404").status_code == 404


def test_insights_model_failure(loaded_reading_store, monkeypatch):
    from backend import config
    monkeypatch.setattr(config, "GEMINI_API_KEY", None)
    assert client.get("/insights/1").status_code == 502


def test_chat(monkeypatch):
    async def fake_chat(messages):
        return f"You said {messages[-1].content}"

    monkeypatch.setattr(main, "chat_with_model", fake_chat)
    response = client.post("/chat", json = {"messages" : [{"role" : "user", "content" : "hi"}]})
    assert response.json() == {"reply" : "You said hi"}


def test_export_csv_filename_from_unsafe_region():
    response = client.get("/export/csv", params = [("region", 'La"gos'), ("region", "\u1eccy\u1ecd")])
    assert response.status_code == 200
    assert 'filename="La_gos_y-environmental-data.csv"' in response.headers["content-disposition"]
