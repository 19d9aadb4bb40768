from fastapi.testclient import TestClient

EVENTS_CSV = (
    b"event_id,event_name,description,start_date,end_date,status,target_promos,target_stores\n"
    b"E1,Spring Sale,,2026-03-10,2026-03-20,Planned,10,2\n"
)
CAMPAIGNS_CSV = (
    b"campaign_id,event_id,store_id,created_at\n"
    b"C1,E1,S1,2026-03-11\n"
    b"C2,E1,S2,2026-03-12\n"
)
STORES_CSV = (
    b"store_id,brand,region,city,commercial,segment,ops_zone,gmv_last_30d\n"
    b"S1,Tacos,Centro,Puebla,Ana,SMB,Z1,1000\n"
    b"S2,Pizza,Norte,Monterrey,Eva,KA,Z2,500\n"
)
TARGETS_CSV = b"event_id,store_id\nE1,S1\nE1,S2\n"


def upload(client: TestClient, **overrides):
    files = {
        "events": ("events.csv", EVENTS_CSV, "text/csv"),
        "campaigns": ("campaigns.csv", CAMPAIGNS_CSV, "text/csv"),
        "stores": ("stores.csv", STORES_CSV, "text/csv"),
        "event_targets": ("event_targets.csv", TARGETS_CSV, "text/csv"),
    }
    files.update(overrides)
    return client.post("/api/datasets", files=files)


def test_current_dataset_is_404_before_any_upload(client: TestClient) -> None:
    response = client.get("/api/datasets/current")

    assert response.status_code == 404
    assert response.json()["detail"] == "No dataset has been loaded yet."


def test_upload_adopts_valid_tables(client: TestClient) -> None:
    response = upload(client)

    assert response.status_code == 201
    payload = response.json()
    assert payload["adopted"] is True
    assert payload["validation"] == {"hard_errors": [], "warnings": []}
    assert payload["counts"] == {"events": 1, "campaigns": 2, "stores": 2, "event_targets": 2}
    assert payload["snapshot"]["persisted"] is True
    assert payload["snapshot"]["written"] == 1

    current = client.get("/api/datasets/current").json()
    assert current["version"] == 2
    assert current["counts"]["stores"] == 2
    assert current["allowed_store_count"] is None


def test_upload_with_hard_errors_is_rejected(client: TestClient) -> None:
    bad_stores = STORES_CSV + b"S3,Sushi,Norte,Monterrey,Eva,KA,Z2,-10\n"

    response = upload(client, stores=("stores.csv", bad_stores, "text/csv"))

    assert response.status_code == 422
    payload = response.json()
    assert payload["adopted"] is False
    assert payload["validation"]["hard_errors"] == ["Store 'S3' has a negative gmv_last_30d (-10)."]
    assert payload["snapshot"] is None
    assert client.get("/api/datasets/current").status_code == 404


def test_rejected_upload_keeps_previous_dataset(client: TestClient) -> None:
    upload(client)

    response = upload(
        client,
        campaigns=("campaigns.csv", CAMPAIGNS_CSV + b"C3,E9,S1,2026-03-11\n", "text/csv"),
    )

    assert response.status_code == 422
    assert client.get("/api/datasets/current").json()["counts"]["campaigns"] == 2


def test_upload_without_targets(client: TestClient) -> None:
    files = {
        "events": ("events.csv", EVENTS_CSV, "text/csv"),
        "campaigns": ("campaigns.csv", CAMPAIGNS_CSV, "text/csv"),
        "stores": ("stores.csv", STORES_CSV, "text/csv"),
    }

    response = client.post("/api/datasets", files=files)

    assert response.status_code == 201
    payload = response.json()
    assert payload["counts"]["event_targets"] is None
    assert payload["validation"]["warnings"] == [
        "Event 'E1' has no valid targets and will be treated as open (target_stores=2)."
    ]


def test_missing_column_is_a_bad_request(client: TestClient) -> None:
    response = upload(client, stores=("stores.csv", b"store_id,brand\nS1,Tacos\n", "text/csv"))

    assert response.status_code == 400
    assert response.json()["detail"] == "stores: missing required column 'region'"


def test_unsupported_extension_is_rejected(client: TestClient) -> None:
    response = upload(client, events=("events.json", b"{}", "application/json"))

    assert response.status_code == 400


def test_sample_dataset(client: TestClient) -> None:
    response = client.post("/api/datasets/sample")

    assert response.status_code == 201
    payload = response.json()
    assert payload["adopted"] is True
    assert payload["counts"] == {"events": 5, "campaigns": 20, "stores": 18, "event_targets": 10}
    assert payload["validation"]["hard_errors"] == []


def test_scope_filter_is_kept_across_uploads(client: TestClient) -> None:
    client.post("/api/datasets/sample")

    response = client.put("/api/datasets/current/scope", json={"cities": ["Puebla"]})

    assert response.status_code == 200
    assert response.json()["allowed_store_count"] == 4
    assert response.json()["scope_filter"]["cities"] == ["Puebla"]

    client.post("/api/datasets/sample")
    current = client.get("/api/datasets/current").json()
    assert current["scope_filter"]["cities"] == ["Puebla"]
    assert current["allowed_store_count"] == 4


def test_scope_requires_a_dataset(client: TestClient) -> None:
    response = client.put("/api/datasets/current/scope", json={"brands": ["Tacos"]})

    assert response.status_code == 404


def test_clear_current_dataset(client: TestClient) -> None:
    client.post("/api/datasets/sample")

    response = client.delete("/api/datasets/current")

    assert response.status_code == 204
    assert client.get("/api/datasets/current").status_code == 404
    assert client.get("/api/events").status_code == 404
    assert client.delete("/api/datasets/current").status_code == 404
