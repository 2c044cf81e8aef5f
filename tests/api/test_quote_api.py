PROJECT_ID = "recProject000001"


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_metrics_endpoint(client):
    r = client.get("/metrics")
    assert r.status_code == 200
    assert "evquote_quote_transitions_total" in r.text


def test_projects_and_photos(client, store):
    store.seed(
        "PHOTOS",
        {
            "Project": [PROJECT_ID],
            "Photo Type": "Electrical Panel",
            "File": [
                {
                    "id": "att1",
                    "url": "https://files.example.com/panel.jpg",
                    "filename": "panel.jpg",
                    "thumbnails": {"large": {"url": "https://files.example.com/panel_large.jpg"}},
                }
            ],
        },
    )

    projects = client.get("/api/projects").json()
    assert projects["success"] is True
    assert [p["id"] for p in projects["data"]] == [PROJECT_ID]
    assert projects["data"][0]["customerName"] == "Dana Whitfield"

    photos = client.get(f"/api/photos/{PROJECT_ID}").json()["data"]
    assert photos[0]["photoType"] == "Electrical Panel"
    assert photos[0]["files"][0]["thumbnailUrl"].endswith("panel_large.jpg")


def test_unknown_project_is_404_envelope(client):
    r = client.get("/api/projects/recMissing")
    assert r.status_code == 404
    assert r.json()["success"] is False
    assert "recMissing" in r.json()["error"]


def test_project_status_update(client):
    r = client.patch(f"/api/projects/{PROJECT_ID}/status", json={"status": "New"})
    assert r.status_code == 200
    assert r.json()["data"]["status"] == "New"

    bad = client.patch(f"/api/projects/{PROJECT_ID}/status", json={"status": "Archived"})
    assert bad.status_code == 400
    assert bad.json()["success"] is False


def test_company_config(client):
    data = client.get("/api/company-config").json()["data"]
    assert data["companyName"] == "Peach State EV"
    assert data["stateTaxRates"] == {"GA": 4.0}


def test_get_or_create_quote_id(client):
    first = client.get("/api/get-or-create-quote", params={"projectId": PROJECT_ID}).json()["data"]
    second = client.get("/api/get-or-create-quote", params={"projectId": PROJECT_ID}).json()["data"]

    assert first["created"] is True
    assert second == {"quoteId": first["quoteId"], "created": False}


def test_generate_quote(client, assessment_data):
    r = client.post("/api/generate-quote", json=assessment_data)
    assert r.status_code == 200
    quote = r.json()["data"]

    assert quote["status"] == "draft"
    assert quote["date"] == "2026-10-17"
    assert quote["validUntil"] == "2026-11-16"
    assert quote["pricing"]["total"] == 1834.56
    assert quote["pricing"]["salesTaxRate"] == 4.0
    assert quote["installation"]["location"] == "Attached Garage"
    assert quote["vehicle"]["chargingRequirements"] == "Level 2, 48A"

    current = client.get(f"/api/quotes/{quote['quoteId']}").json()["data"]
    assert current["quoteId"] == quote["quoteId"]


def test_generate_quote_rejects_bad_input(client, assessment_data):
    bad = dict(assessment_data, conduitType="overhead", distance=-5)
    r = client.post("/api/generate-quote", json=bad)

    assert r.status_code == 422
    assert r.json()["success"] is False
    assert r.json()["details"]


def test_generate_quote_rejects_unknown_fields(client, assessment_data):
    r = client.post("/api/generate-quote", json=dict(assessment_data, discount=50))
    assert r.status_code == 422


def test_versions_and_listing(client, assessment_data):
    quote_id = client.post("/api/generate-quote", json=assessment_data).json()["data"]["quoteId"]
    client.post("/api/generate-quote", json=dict(assessment_data, distance=35))

    versions = client.get(f"/api/quotes/{quote_id}/versions").json()["data"]
    assert [v["version"] for v in versions] == [2, 1]
    assert versions[0]["quoteData"]["pricing"]["conduit"] == 430.0

    listed = client.get("/api/quotes", params={"status": "All"}).json()["data"]
    assert [(q["quoteId"], q["version"]) for q in listed] == [(quote_id, 2)]
    assert client.get("/api/quotes", params={"status": "sent"}).json()["data"] == []


def test_send_view_accept_flow(client, store, assessment_data):
    quote_id = client.post("/api/generate-quote", json=assessment_data).json()["data"]["quoteId"]

    sent = client.post("/api/send-quote", json={"quoteId": quote_id, "projectId": PROJECT_ID}).json()["data"]
    assert sent["shareableLink"] == f"https://quotes.example.com/quote/{sent['token']}"

    viewed = client.get(f"/api/quote/{sent['token']}").json()["data"]
    assert viewed["status"] == "viewed"
    assert viewed["shareableLink"] == sent["shareableLink"]
    assert store.get("PROJECTS", PROJECT_ID)["fields"]["Project Status"] == "Quote Viewed"

    decision = client.post(
        "/api/customer-decision",
        json={"quoteId": quote_id, "projectId": PROJECT_ID, "decision": "accept", "reason": "Ready to go"},
    )
    assert decision.json()["data"] == {"status": "accepted", "changed": True}

    # bekijken na acceptatie verandert niets meer
    again = client.get(f"/api/quote/{sent['token']}").json()["data"]
    assert again["status"] == "accepted"
    assert store.get("PROJECTS", PROJECT_ID)["fields"]["Project Status"] == "Accepted"


def test_transition_out_of_terminal_state_is_409(client, assessment_data):
    quote_id = client.post("/api/generate-quote", json=assessment_data).json()["data"]["quoteId"]
    client.post("/api/send-quote", json={"quoteId": quote_id, "projectId": PROJECT_ID})
    client.post(
        f"/api/quotes/{quote_id}/status",
        json={"projectId": PROJECT_ID, "status": "rejected", "reason": "Too expensive"},
    )

    r = client.post(f"/api/quotes/{quote_id}/status", json={"projectId": PROJECT_ID, "status": "sent"})
    assert r.status_code == 409
    assert r.json()["success"] is False


def test_unknown_share_token_is_404(client):
    r = client.get("/api/quote/does-not-exist")
    assert r.status_code == 404
    assert r.json() == {"success": False, "error": "Quote not found"}


def test_numeric_contact_fields_from_airtable_are_accepted(client, store, assessment_data):
    store.update("PROJECTS", PROJECT_ID, {"Customer Phone": 4045550147})

    r = client.post("/api/generate-quote", json=assessment_data)

    assert r.status_code == 200
    assert r.json()["data"]["customer"]["phone"] == "4045550147"


def test_unreadable_stored_project_is_server_side_error(client, store):
    store.update("PROJECTS", PROJECT_ID, {"Available Slots": "plenty"})

    r = client.get(f"/api/projects/{PROJECT_ID}")

    assert r.status_code == 500
    assert r.json()["success"] is False
    assert PROJECT_ID in r.json()["error"]


def test_unknown_status_filter_is_client_error(client):
    r = client.get("/api/quotes", params={"status": "archived"})

    assert r.status_code == 400
    assert r.json() == {"success": False, "error": "Unknown quote status: 'archived'"}


def test_unexpected_errors_keep_json_envelope():
    from fastapi.testclient import TestClient

    from evquote import dependencies
    from evquote.main import app

    class CrashingStore:
        def list(self, table, **kwargs):
            raise KeyError(table)

    app.dependency_overrides[dependencies.get_store] = lambda: CrashingStore()
    try:
        with TestClient(app, raise_server_exceptions=False) as c:
            r = c.get("/api/company-config")
    finally:
        app.dependency_overrides.clear()

    assert r.status_code == 500
    assert r.headers["content-type"].startswith("application/json")
    assert r.json() == {"success": False, "error": "Internal server error"}
