"""HTTP routes, with the database and API clients swapped for test doubles."""

import csv
import io
from datetime import timedelta

from conftest import utc_today


def record_payload(location="Paris", start_offset=1, end_offset=2):
    today = utc_today()
    return {
        "location": location,
        "start_date": (today + timedelta(days=start_offset)).isoformat(),
        "end_date": (today + timedelta(days=end_offset)).isoformat(),
    }


class TestWeatherApi:

    def test_weather_by_location(self, client):
        r = client.get("/api/weather", params={"location": "Paris"})

        assert r.status_code == 200
        body = r.json()
        assert body["resolved"]["name"] == "Paris"
        assert body["unit"] == "metric"
        # the searched place replaces the station name
        assert body["current"]["name"] == "Paris"
        # today is covered by "current", leaving four forecast days
        assert len(body["forecast"]) == 4
        assert body["forecast"][0]["date"] == (utc_today() + timedelta(days=1)).isoformat()

    def test_weather_imperial(self, client):
        r = client.get("/api/weather", params={"location": "Eiffel Tower", "unit": "imperial"})
        assert r.status_code == 200
        assert r.json()["unit"] == "imperial"
        assert r.json()["resolved"]["lat"] == 48.8584

    def test_location_is_required(self, client):
        assert client.get("/api/weather").status_code == 422

    def test_bad_unit(self, client):
        assert client.get("/api/weather", params={"location": "Paris", "unit": "kelvin"}).status_code == 422

    def test_unknown_location(self, client):
        r = client.get("/api/weather", params={"location": "Nowhere"})
        assert r.status_code == 404
        assert "not found" in r.json()["detail"]

    def test_invalid_location_text(self, client):
        r = client.get("/api/weather", params={"location": "Paris!!"})
        assert r.status_code == 400
        assert r.json()["detail"] == "Location name contains invalid characters"

    def test_by_coords(self, client, weather_client):
        r = client.get("/api/weather/by-coords", params={"lat": 40.7128, "lon": -74.006})
        assert r.status_code == 200
        assert weather_client.geocode_calls == ["40.712800,-74.006000"]
        assert r.json()["resolved"]["lat"] == 40.7128

    def test_by_coords_out_of_range(self, client):
        r = client.get("/api/weather/by-coords", params={"lat": 95, "lon": 0})
        assert r.status_code == 400
        assert "Invalid coordinates" in r.json()["detail"]

    def test_location_data(self, client):
        r = client.get("/api/location-data", params={"location": "Paris"})

        assert r.status_code == 200
        body = r.json()
        assert body["maps"]["location"] == "48.8566,2.3522"
        assert "48.8566,2.3522" in body["maps"]["embed_url"]
        assert body["youtube"][0]["title"] == "Paris in 4K"
        assert body["youtube_url"].startswith("https://www.youtube.com/results?search_query=Paris")

    def test_location_data_unknown(self, client):
        assert client.get("/api/location-data", params={"location": "Nowhere"}).status_code == 404


class TestPages:

    def test_home(self, client):
        r = client.get("/")
        assert r.status_code == 200
        assert "Check the weather" in r.text

    def test_results(self, client):
        r = client.get("/results", params={"q": "Paris"})
        assert r.status_code == 200
        assert "Paris" in r.text
        assert "Paris in 4K" in r.text
        assert "°C" in r.text

    def test_results_error_keeps_status(self, client):
        r = client.get("/results", params={"q": "Nowhere"})
        assert r.status_code == 404
        assert "not found" in r.text

    def test_records_page(self, client):
        client.post("/api/records", json=record_payload("Lisbon"))
        r = client.get("/records")
        assert r.status_code == 200
        assert "Lisbon" in r.text

    def test_record_detail(self, client):
        rec = client.post("/api/records", json=record_payload("Lisbon")).json()
        r = client.get(f"/records/{rec['id']}")
        assert r.status_code == 200
        assert "Lisbon" in r.text

    def test_record_detail_missing(self, client):
        assert client.get("/records/999").status_code == 404


class TestRecordsApi:

    def test_crud_flow(self, client):
        created = client.post("/api/records", json=record_payload("Paris"))
        assert created.status_code == 200
        rec = created.json()
        assert rec["location"] == "Paris"
        assert rec["temperature_celsius"] == 20.0
        assert rec["temperature_fahrenheit"] == 68.0
        assert rec["humidity"] == 60

        listed = client.get("/api/records").json()
        assert [r["id"] for r in listed] == [rec["id"]]

        assert client.get(f"/api/records/{rec['id']}").json()["location"] == "Paris"

        updated = client.put(f"/api/records/{rec['id']}", json={"location": "Lyon"})
        assert updated.status_code == 200
        assert updated.json()["location"] == "Lyon"
        assert updated.json()["start_date"] == rec["start_date"]

        deleted = client.delete(f"/api/records/{rec['id']}")
        assert deleted.status_code == 200
        assert deleted.json()["ok"] is True

        assert client.get(f"/api/records/{rec['id']}").status_code == 404

    def test_past_dates_rejected(self, client):
        r = client.post("/api/records", json=record_payload(start_offset=-10, end_offset=-8))
        assert r.status_code == 400
        assert r.json()["detail"] == "Cannot create records for past dates"

    def test_range_limit(self, client):
        r = client.post("/api/records", json=record_payload(start_offset=1, end_offset=8))
        assert r.status_code == 400
        assert "cannot exceed 5 days" in r.json()["detail"]

    def test_unknown_location(self, client):
        r = client.post("/api/records", json=record_payload("Nowhere"))
        assert r.status_code == 404

    def test_payload_validation(self, client):
        r = client.post("/api/records", json={"location": "P", "start_date": "tomorrow"})
        assert r.status_code == 422

    def test_update_missing(self, client):
        assert client.put("/api/records/999", json={"location": "Lyon"}).status_code == 404

    def test_update_invalid_range(self, client):
        rec = client.post("/api/records", json=record_payload()).json()
        r = client.put(f"/api/records/{rec['id']}", json={"end_date": "2000-01-01"})
        assert r.status_code == 400

    def test_delete_missing(self, client):
        assert client.delete("/api/records/999").status_code == 404

    def test_pagination(self, client):
        for name in ("Oslo", "Bergen", "Tromso"):
            client.post("/api/records", json=record_payload(name))

        page = client.get("/api/records", params={"limit": 2, "offset": 1}).json()
        assert [r["location"] for r in page] == ["Bergen", "Oslo"]


class TestExport:

    def test_nothing_to_export(self, client):
        r = client.get("/api/records/export")
        assert r.status_code == 404
        assert r.json()["detail"] == "No records found to export"

    def test_default_is_json(self, client):
        client.post("/api/records", json=record_payload("Paris"))
        r = client.get("/api/records/export")

        assert r.status_code == 200
        assert r.headers["content-type"].startswith("application/json")
        assert r.headers["content-disposition"] == 'attachment; filename="weather-records.json"'
        assert r.json()[0]["location"] == "Paris"

    def test_csv(self, client):
        client.post("/api/records", json=record_payload("Paris"))
        client.post("/api/records", json=record_payload("Rome"))

        r = client.get("/api/records/export", params={"format": "csv"})

        assert r.headers["content-type"].startswith("text/csv")
        rows = list(csv.DictReader(io.StringIO(r.text)))
        assert [row["location"] for row in rows] == ["Rome", "Paris"]

    def test_pdf(self, client):
        client.post("/api/records", json=record_payload("Paris"))
        r = client.get("/api/records/export", params={"format": "pdf"})

        assert r.status_code == 200
        assert r.headers["content-type"] == "application/pdf"
        assert r.content.startswith(b"%PDF")

    def test_markdown_alias(self, client):
        client.post("/api/records", json=record_payload("Paris"))
        r = client.get("/api/records/export", params={"format": "md"})
        assert r.headers["content-disposition"] == 'attachment; filename="weather-records.md"'
        assert r.text.startswith("# Weather Records")

    def test_filters(self, client):
        client.post("/api/records", json=record_payload("Paris", 1, 1))
        client.post("/api/records", json=record_payload("Rome", 3, 4))

        r = client.get("/api/records/export", params={"format": "csv", "location": "rom"})
        assert [row["location"] for row in csv.DictReader(io.StringIO(r.text))] == ["Rome"]

        day2 = (utc_today() + timedelta(days=2)).isoformat()
        r = client.get("/api/records/export", params={"start_date": day2, "end_date": day2})
        assert r.status_code == 404

        r = client.get("/api/records/export", params={"location": "Berlin"})
        assert r.status_code == 404

    def test_unknown_format(self, client):
        client.post("/api/records", json=record_payload("Paris"))
        assert client.get("/api/records/export", params={"format": "yaml"}).status_code == 422
