"""
API tests - status codes, proposal flows and exports over HTTP.
"""
import pytest


@pytest.fixture
def catalog(client):
    """A Ravello template with a faucet group and one shared upgrade."""
    template = client.post("/api/templates", json={
        "name": "Ravello", "base_price": 630990, "base_cost": 500000, "beds": "4 Beds",
    }).json()

    def upgrade(**data):
        body = {"template": "Ravello", "category": "Kitchen", "location": "Island",
                "parent_selection": "Faucet", "builder_cost": 600, "client_price": 1000}
        body.update(data)
        response = client.post("/api/upgrades", json=body)
        assert response.status_code == 201
        return response.json()

    return {
        "template": template,
        "chrome": upgrade(choice_title="Chrome"),
        "brass": upgrade(choice_title="Brass", client_price=1500, builder_cost=900),
        "tile": upgrade(category="Bath", location="Primary", parent_selection="Tile",
                        choice_title="Marble", client_price=2500, builder_cost=2000),
        "shared": upgrade(template=None, category="Exterior", location=None,
                          parent_selection="Patio", choice_title="Pavers"),
    }


def new_proposal(client, **overrides):
    body = {
        "buyer_last_name": "Smith",
        "community": "Heritage Hills",
        "lot_number": "12",
        "lot_address": "123 Main St",
        "house_plan": "Ravello",
        "base_price": 600000,
        "lot_premium": 5000,
        "design_studio_allowance": 2000,
    }
    body.update(overrides)
    response = client.post("/api/proposals", json=body)
    assert response.status_code == 201, response.text
    return response.json()


# Status

def test_root_and_health(client):
    assert client.get("/").json()["status"] == "online"
    assert client.get("/api/health").json()["status"] == "ok"


# Templates

def test_template_crud(client):
    created = client.post("/api/templates", json={"name": "Verona", "base_price": 609990})
    assert created.status_code == 201
    template_id = created.json()["id"]

    assert client.post("/api/templates", json={"name": "Verona", "base_price": 1}).status_code == 400

    patched = client.patch(f"/api/templates/{template_id}", json={"base_price": 615000})
    assert patched.json()["base_price"] == 615000
    assert patched.json()["name"] == "Verona"

    assert client.delete(f"/api/templates/{template_id}").status_code == 204
    assert client.get(f"/api/templates/{template_id}").status_code == 404
    assert client.delete(f"/api/templates/{template_id}").status_code == 404


def test_validation_error_is_400(client):
    response = client.post("/api/templates", json={"base_price": "lots"})
    assert response.status_code == 400
    assert response.json()["detail"]


# Upgrades

def test_upgrade_listing(client, catalog):
    ravello = client.get("/api/upgrades", params={"template": "Ravello"}).json()
    assert len(ravello) == 4

    sorrento = client.get("/api/upgrades", params={"template": "Sorrento"}).json()
    assert [u["choice_title"] for u in sorrento] == ["Pavers"]

    kitchen = client.get("/api/upgrades/category/Kitchen").json()
    assert {u["choice_title"] for u in kitchen} == {"Chrome", "Brass"}


def test_grouped_upgrades(client, catalog):
    grouped = client.get("/api/upgrades/grouped", params={"template": "Ravello"}).json()

    assert list(grouped) == ["Bath", "Exterior", "Kitchen"]
    faucets = grouped["Kitchen"]["Island"]["Faucet"]
    assert [u["choice_title"] for u in faucets] == ["Brass", "Chrome"]
    assert "Patio" in grouped["Exterior"]["N/A"]


def test_upgrade_margin_follows_price(client, catalog):
    upgrade_id = catalog["chrome"]["id"]
    assert catalog["chrome"]["margin"] == 40.0

    patched = client.patch(f"/api/upgrades/{upgrade_id}", json={"client_price": 800})
    assert patched.json()["margin"] == 25.0

    patched = client.patch(f"/api/upgrades/{upgrade_id}", json={"client_price": 1000, "margin": 50})
    assert patched.json()["margin"] == 50


def test_upgrade_update_nulls(client, catalog):
    url = f"/api/upgrades/{catalog['chrome']['id']}"

    shared = client.patch(url, json={"template": None, "location": None})
    assert shared.status_code == 200
    assert shared.json()["template"] is None

    assert client.patch(url, json={"choice_title": None}).status_code == 400
    assert client.patch(url, json={"client_price": None}).status_code == 400


def test_template_update_null_is_400(client):
    template_id = client.post("/api/templates", json={"name": "Verona", "base_price": 609990}).json()["id"]

    assert client.patch(f"/api/templates/{template_id}", json={"base_price": None}).status_code == 400
    assert client.get(f"/api/templates/{template_id}").json()["base_price"] == 609990


def test_upgrade_not_found(client):
    assert client.get("/api/upgrades/999").status_code == 404
    assert client.patch("/api/upgrades/999", json={"client_price": 1}).status_code == 404
    assert client.delete("/api/upgrades/999").status_code == 404


# Proposals

def test_create_proposal_computes_total(client, catalog):
    proposal = new_proposal(client, selected_upgrades=[catalog["chrome"]["id"]])

    assert proposal["total_price"] == 608000
    assert proposal["todays_date"]
    assert proposal["archived"] is False
    assert proposal["special_requests"] == []


def test_create_proposal_keeps_one_choice_per_group(client, catalog):
    proposal = new_proposal(client, selected_upgrades=[catalog["chrome"]["id"], catalog["brass"]["id"]])

    assert proposal["selected_upgrades"] == [catalog["brass"]["id"]]


def test_update_proposal(client, catalog):
    proposal = new_proposal(client)

    updated = client.patch(f"/api/proposals/{proposal['id']}", json={
        "sales_incentive": -10000, "sales_incentive_enabled": True,
    }).json()

    assert updated["buyer_last_name"] == "Smith"
    assert updated["total_price"] == 597000


def test_plan_change_drops_selections_not_offered(client, catalog):
    proposal = new_proposal(client, selected_upgrades=[catalog["chrome"]["id"], catalog["shared"]["id"]])
    assert proposal["total_price"] == 609000

    switched = client.patch(f"/api/proposals/{proposal['id']}", json={"house_plan": "Verona"}).json()

    assert switched["house_plan"] == "Verona"
    assert switched["selected_upgrades"] == [catalog["shared"]["id"]]
    assert switched["total_price"] == 608000


def test_update_with_null_field_is_400(client):
    proposal = new_proposal(client)
    url = f"/api/proposals/{proposal['id']}"

    response = client.patch(url, json={"buyer_last_name": None})
    assert response.status_code == 400
    assert "buyer_last_name" in response.json()["detail"]
    assert client.get(url).json()["buyer_last_name"] == "Smith"

    cleared = client.patch(url, json={"selected_upgrades": None})
    assert cleared.status_code == 200
    assert cleared.json()["selected_upgrades"] == []


def test_toggle_selection(client, catalog):
    proposal = new_proposal(client)
    url = f"/api/proposals/{proposal['id']}/selections/toggle"
    chrome, brass, tile = catalog["chrome"]["id"], catalog["brass"]["id"], catalog["tile"]["id"]

    assert client.post(url, json={"upgrade_id": chrome}).json()["selected_upgrades"] == [chrome]
    assert client.post(url, json={"upgrade_id": tile}).json()["selected_upgrades"] == [chrome, tile]

    swapped = client.post(url, json={"upgrade_id": brass}).json()
    assert swapped["selected_upgrades"] == [tile, brass]
    assert swapped["total_price"] == 607000 + 2500 + 1500

    cleared = client.post(url, json={"upgrade_id": brass}).json()
    assert cleared["selected_upgrades"] == [tile]

    assert client.post(url, json={"upgrade_id": 999}).status_code == 400
    assert client.post("/api/proposals/999/selections/toggle", json={"upgrade_id": chrome}).status_code == 404


def test_summary(client, catalog):
    proposal = new_proposal(client, selected_upgrades=[catalog["chrome"]["id"]])

    summary = client.get(f"/api/proposals/{proposal['id']}/summary").json()
    assert summary["grand_total"] == 608000
    assert summary["base_subtotal"] == 605000
    assert summary["selections_subtotal"] == 3000
    assert summary["total_cost"] is None
    assert "Grand Total" in summary["trace_text"]

    costs = client.get(f"/api/proposals/{proposal['id']}/summary", params={"show_costs": True}).json()
    assert costs["base_cost"] == 500000
    assert costs["total_cost"] == 500000 + 600 + 2000
    assert costs["lines"][0]["builder_cost"] == 600


def test_archive_flow(client, catalog):
    first = new_proposal(client, buyer_last_name="Adams")
    second = new_proposal(client, buyer_last_name="Baker")

    active = client.get("/api/proposals").json()
    assert [p["id"] for p in active] == [second["id"], first["id"]]

    archived = client.patch(f"/api/proposals/{first['id']}/archive").json()
    assert archived["archived"] is True
    assert [p["id"] for p in client.get("/api/proposals").json()] == [second["id"]]
    assert [p["id"] for p in client.get("/api/proposals/archived").json()] == [first["id"]]

    client.patch(f"/api/proposals/{first['id']}/unarchive")
    assert client.get("/api/proposals/archived").json() == []
    assert client.patch("/api/proposals/999/archive").status_code == 404


def test_duplicate_proposal(client, catalog):
    proposal = new_proposal(client, todays_date="01/02/2024", selected_upgrades=[catalog["tile"]["id"]])
    client.post("/api/special-requests", json={
        "proposal_id": proposal["id"], "description": "Extra outlet", "builder_cost": 80, "client_price": 150,
    })

    response = client.post(f"/api/proposals/{proposal['id']}/duplicate")
    assert response.status_code == 201
    duplicate = response.json()

    assert duplicate["id"] != proposal["id"]
    assert duplicate["buyer_last_name"] == "Smith (Copy)"
    assert duplicate["todays_date"] != "01/02/2024"
    assert duplicate["selected_upgrades"] == [catalog["tile"]["id"]]
    assert [sr["description"] for sr in duplicate["special_requests"]] == ["Extra outlet"]
    assert duplicate["total_price"] == 607000 + 2500 + 150

    # The copy owns its special requests
    original = client.get(f"/api/proposals/{proposal['id']}/special-requests").json()
    assert duplicate["special_requests"][0]["id"] != original[0]["id"]


def test_delete_proposal(client):
    proposal = new_proposal(client)

    assert client.delete(f"/api/proposals/{proposal['id']}").status_code == 204
    assert client.get(f"/api/proposals/{proposal['id']}").status_code == 404
    assert client.delete(f"/api/proposals/{proposal['id']}").status_code == 404


def test_proposal_missing_fields_is_400(client):
    assert client.post("/api/proposals", json={"buyer_last_name": "Smith"}).status_code == 400


# Special requests

def test_special_request_crud(client):
    proposal = new_proposal(client)
    base_total = proposal["total_price"]

    created = client.post("/api/special-requests", json={
        "proposal_id": proposal["id"], "description": "Extra outlet", "client_price": 250,
    })
    assert created.status_code == 201
    request_id = created.json()["id"]
    assert client.get(f"/api/proposals/{proposal['id']}").json()["total_price"] == base_total + 250

    patched = client.patch(f"/api/special-requests/{request_id}", json={"client_price": 300})
    assert patched.json()["client_price"] == 300
    assert patched.json()["description"] == "Extra outlet"
    assert client.get(f"/api/proposals/{proposal['id']}").json()["total_price"] == base_total + 300

    assert client.delete(f"/api/special-requests/{request_id}").status_code == 204
    assert client.get(f"/api/proposals/{proposal['id']}/special-requests").json() == []
    assert client.get(f"/api/proposals/{proposal['id']}").json()["total_price"] == base_total


def test_special_request_not_found(client):
    assert client.get("/api/proposals/999/special-requests").status_code == 404
    assert client.post("/api/special-requests", json={
        "proposal_id": 999, "description": "x",
    }).status_code == 404
    assert client.patch("/api/special-requests/999", json={"client_price": 1}).status_code == 404
    assert client.delete("/api/special-requests/999").status_code == 404


def test_deleting_proposal_removes_special_requests(client):
    proposal = new_proposal(client)
    request_id = client.post("/api/special-requests", json={
        "proposal_id": proposal["id"], "description": "Extra outlet",
    }).json()["id"]

    client.delete(f"/api/proposals/{proposal['id']}")
    assert client.patch(f"/api/special-requests/{request_id}", json={"client_price": 1}).status_code == 404


# Communities

def test_communities(client):
    created = client.post("/api/communities", json={"name": "Heritage Hills", "location": "Burr Ridge"})
    assert created.status_code == 201
    assert created.json()["slug"] == "heritage-hills"

    assert client.post("/api/communities", json={"name": "Heritage Hills"}).status_code == 400
    client.post("/api/communities", json={"name": "Old Farm", "is_active": False})

    assert [c["slug"] for c in client.get("/api/communities").json()] == ["heritage-hills"]
    assert client.get("/api/communities/heritage-hills").json()["name"] == "Heritage Hills"
    assert client.get("/api/communities/nowhere").status_code == 404

    patched = client.patch(f"/api/communities/{created.json()['id']}", json={"location": "Willowbrook"})
    assert patched.json()["location"] == "Willowbrook"


def test_lots(client):
    client.post("/api/communities", json={"name": "Heritage Hills"})

    lot = client.post("/api/communities/heritage-hills/lots", json={"lot_number": "12", "premium": 5000})
    assert lot.status_code == 201
    assert lot.json()["premium"] == 5000

    lots = client.get("/api/communities/heritage-hills/lots").json()
    assert [lot["lot_number"] for lot in lots] == ["12"]
    assert client.get("/api/communities/nowhere/lots").status_code == 404


# Pricing preview

def test_pricing_preview(client, catalog):
    response = client.post("/api/pricing/preview", json={
        "house_plan": "Ravello",
        "base_price": 600000,
        "lot_premium": 5000,
        "design_studio_allowance": 2000,
        "selected_upgrades": [catalog["chrome"]["id"]],
        "special_requests": [{"description": "Outlet", "client_price": 150, "builder_cost": 80}],
        "show_costs": True,
    })
    summary = response.json()

    assert response.status_code == 200
    assert summary["grand_total"] == 608150
    assert summary["special_requests_cost"] == 80
    assert client.get("/api/proposals").json() == []


def test_preview_warns_on_unknown_upgrade(client):
    summary = client.post("/api/pricing/preview", json={"base_price": 1000, "selected_upgrades": [42]}).json()

    assert summary["grand_total"] == 1000
    assert any("42" in w for w in summary["warnings"])


def test_preview_keeps_one_choice_per_group(client, catalog):
    summary = client.post("/api/pricing/preview", json={
        "house_plan": "Ravello",
        "base_price": 0,
        "selected_upgrades": [catalog["chrome"]["id"], catalog["brass"]["id"]],
    }).json()

    assert [line["title"] for line in summary["lines"] if line["kind"] == "upgrade"] == ["Brass"]
    assert summary["grand_total"] == 1500
    assert any("replaced" in w for w in summary["warnings"])


def test_preview_drops_upgrades_from_other_plans(client, catalog):
    summary = client.post("/api/pricing/preview", json={
        "house_plan": "Sorrento",
        "selected_upgrades": [catalog["chrome"]["id"], catalog["shared"]["id"]],
    }).json()

    assert [line["title"] for line in summary["lines"] if line["kind"] == "upgrade"] == ["Pavers"]
    assert summary["selections_subtotal"] == 1000


# Exports

def test_export_xlsx(client, catalog):
    proposal = new_proposal(client, selected_upgrades=[catalog["chrome"]["id"]])

    response = client.get(f"/api/proposals/{proposal['id']}/export/xlsx")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("application/vnd.openxmlformats")
    assert "PO_Ravello_Smith_" in response.headers["content-disposition"]
    assert response.content[:2] == b"PK"


def test_export_pdf(client, catalog):
    proposal = new_proposal(client, selected_upgrades=[catalog["chrome"]["id"]])

    response = client.get(f"/api/proposals/{proposal['id']}/export/pdf", params={"show_costs": True})
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert response.content.startswith(b"%PDF")


def test_export_missing_proposal(client):
    assert client.get("/api/proposals/999/export/xlsx").status_code == 404
    assert client.get("/api/proposals/999/export/pdf").status_code == 404
