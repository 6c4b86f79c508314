from taskynet.models import RoleName


def test_role_crud_normalizes_names(client, admin_headers):
    resp = client.post("/api/roles", json={"name": "  field SUPERVISOR "}, headers=admin_headers)
    assert resp.status_code == 201
    role = resp.get_json()
    assert role["name"] == "Field supervisor"

    dup = client.post("/api/roles", json={"name": "field supervisor"}, headers=admin_headers)
    assert dup.status_code == 400
    assert dup.get_json()["error"] == "Role already exists"

    renamed = client.put(f"/api/roles/{role['id']}", json={"name": "dispatcher"}, headers=admin_headers)
    assert renamed.get_json()["name"] == "Dispatcher"

    assert client.delete(f"/api/roles/{role['id']}", headers=admin_headers).status_code == 200
    assert client.get(f"/api/roles/{role['id']}", headers=admin_headers).status_code == 404


def test_role_in_use_cannot_be_deleted(client, factory, admin_headers):
    factory.user(RoleName.COLLECTOR)
    roles = client.get("/api/roles", headers=admin_headers).get_json()
    collector_role = next(role for role in roles if role["name"] == RoleName.COLLECTOR)
    resp = client.delete(f"/api/roles/{collector_role['id']}", headers=admin_headers)
    assert resp.status_code == 400
    assert "error" in resp.get_json()


def test_service_crud(client, manager_headers):
    resp = client.post("/api/services", json={"name": "Fiber 50", "cost": "45.5"}, headers=manager_headers)
    assert resp.status_code == 201
    service = resp.get_json()
    assert service["cost"] == 45.5

    bad = client.post("/api/services", json={"name": "Fiber 60", "cost": -1}, headers=manager_headers)
    assert bad.status_code == 400

    updated = client.put(f"/api/services/{service['id']}", json={"cost": 50}, headers=manager_headers)
    assert updated.get_json()["cost"] == 50.0
    assert updated.get_json()["name"] == "Fiber 50"

    listed = client.get("/api/services", headers=manager_headers).get_json()
    assert [s["name"] for s in listed] == ["Fiber 50"]


def test_service_in_use_cannot_be_deleted(client, factory, admin_headers):
    service_id = factory.service()
    factory.customer(service_id=service_id)
    resp = client.delete(f"/api/services/{service_id}", headers=admin_headers)
    assert resp.status_code == 400


def test_zone_and_category_crud(client, admin_headers):
    for path in ("/api/zones", "/api/categories"):
        created = client.post(path, json={"name": "north BEIRUT"}, headers=admin_headers)
        assert created.status_code == 201
        item = created.get_json()
        assert item["name"] == "North beirut"

        assert client.post(path, json={"name": "x"}, headers=admin_headers).status_code == 400
        assert client.get(f"{path}/{item['id']}", headers=admin_headers).get_json()["id"] == item["id"]

        updated = client.put(f"{path}/{item['id']}", json={"name": "south"}, headers=admin_headers)
        assert updated.get_json()["name"] == "South"

        assert client.delete(f"{path}/{item['id']}", headers=admin_headers).status_code == 200
        assert client.get(f"{path}/{item['id']}", headers=admin_headers).status_code == 404


def test_customer_crud_and_validation(client, factory, admin_headers):
    service_id = factory.service()
    zone_id = factory.zone()
    payload = {
        "name": "Rami Khoury",
        "location": "Achrafieh, Beirut",
        "phoneNumber": "+96103123456",
        "serviceId": service_id,
        "zoneId": zone_id,
    }
    resp = client.post("/api/customers", json=payload, headers=admin_headers)
    assert resp.status_code == 201
    customer = resp.get_json()
    assert customer["isActive"] is True
    assert customer["service"]["id"] == service_id

    dup = client.post("/api/customers", json={**payload, "name": "Someone Else"}, headers=admin_headers)
    assert dup.status_code == 400
    assert dup.get_json()["error"] == "Phone number already exists"

    missing_zone = client.post(
        "/api/customers", json={**payload, "phoneNumber": "+96103999999", "zoneId": 9999}, headers=admin_headers
    )
    assert missing_zone.status_code == 404

    short = client.post("/api/customers", json={**payload, "location": "abc"}, headers=admin_headers)
    assert short.status_code == 400

    updated = client.put(f"/api/customers/{customer['id']}", json={"isActive": False}, headers=admin_headers)
    assert updated.get_json()["isActive"] is False

    assert client.delete(f"/api/customers/{customer['id']}", headers=admin_headers).status_code == 200


def test_user_crud(client, admin_headers, admin_id):
    roles = client.get("/api/roles", headers=admin_headers).get_json()
    tech_role = next(role for role in roles if role["name"] == RoleName.TECHNICIAN)
    payload = {
        "firstName": "Karim",
        "lastName": "Saad",
        "phoneNumber": "+96176111222",
        "address": "Jounieh, main road 4",
        "email": "karim@example.com",
        "password": "tech1234",
        "roleId": tech_role["id"],
    }
    resp = client.post("/api/users", json=payload, headers=admin_headers)
    assert resp.status_code == 201
    user = resp.get_json()
    assert user["role"] == RoleName.TECHNICIAN

    dup = client.post("/api/users", json={**payload, "phoneNumber": "+96176111333"}, headers=admin_headers)
    assert dup.status_code == 400
    assert dup.get_json()["error"] == "Email already exists"

    no_role = client.post("/api/users", json={k: v for k, v in payload.items() if k != "roleId"}, headers=admin_headers)
    assert no_role.status_code == 400

    updated = client.put(f"/api/users/{user['id']}", json={"address": "Byblos, old souk 9"}, headers=admin_headers)
    assert updated.get_json()["address"] == "Byblos, old souk 9"

    assert client.delete(f"/api/users/{admin_id}", headers=admin_headers).status_code == 400
    assert client.delete(f"/api/users/{user['id']}", headers=admin_headers).status_code == 200
