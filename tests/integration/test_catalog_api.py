import pytest

from src.infrastructure.db.models import Service, ServiceCategory, UserRole, Vendor, VendorStatus


@pytest.fixture
def pending_vendor(db_session, marketplace, user_factory):
    """Unapproved vendor with a cheap photography service."""
    user = user_factory("pending@example.com", UserRole.VENDOR)
    vendor = Vendor(
        user_id=user.id,
        business_name="Not Yet Approved",
        service_type="Photography",
        status=VendorStatus.PENDING_APPROVAL,
    )
    db_session.add(vendor)
    db_session.commit()
    service = Service(
        name="Budget Photography",
        description="",
        price=2000,
        category_id=marketplace["category"].id,
        vendor_id=vendor.id,
    )
    db_session.add(service)
    db_session.commit()
    return {"user": user, "vendor": vendor, "service": service}


# ---------------------
# ADMIN CATEGORIES
# ---------------------

def test_admin_category_lifecycle(client, marketplace, auth_headers):
    headers = auth_headers(marketplace["admin"])

    created = client.post(
        "/api/admin/service-categories",
        json={"name": "Floral Design", "description": "Flowers"},
        headers=headers,
    )
    assert created.status_code == 201
    category_id = created.json()["id"]

    updated = client.put(
        f"/api/admin/service-categories/{category_id}",
        json={"description": "Bouquets and centerpieces"},
        headers=headers,
    )
    assert updated.status_code == 200
    assert updated.json()["name"] == "Floral Design"
    assert updated.json()["description"] == "Bouquets and centerpieces"

    listed = client.get("/api/admin/service-categories", headers=headers).json()
    counts = {item["name"]: item["serviceCount"] for item in listed}
    assert counts == {"Floral Design": 0, "Photography": 1}

    deleted = client.delete(f"/api/admin/service-categories/{category_id}", headers=headers)
    assert deleted.status_code == 200
    assert client.get(f"/api/admin/service-categories/{category_id}", headers=headers).status_code == 404


def test_admin_category_requires_name(client, marketplace, auth_headers):
    response = client.post(
        "/api/admin/service-categories",
        json={"description": "nameless"},
        headers=auth_headers(marketplace["admin"]),
    )
    assert response.status_code == 400


def test_category_with_services_cannot_be_deleted(client, marketplace, auth_headers):
    response = client.delete(
        f"/api/admin/service-categories/{marketplace['category'].id}",
        headers=auth_headers(marketplace["admin"]),
    )
    assert response.status_code == 400


def test_admin_category_detail_lists_services(client, marketplace, auth_headers):
    response = client.get(
        f"/api/admin/service-categories/{marketplace['category'].id}",
        headers=auth_headers(marketplace["admin"]),
    )
    assert response.status_code == 200
    assert [item["name"] for item in response.json()["services"]] == ["Full Day Photography"]


def test_admin_routes_reject_clients(client, marketplace, auth_headers):
    response = client.get("/api/admin/service-categories", headers=auth_headers(marketplace["client_user"]))
    assert response.status_code == 403


# ---------------------
# PUBLIC BROWSING
# ---------------------

def test_public_categories_are_sorted_by_name(client, db_session, marketplace):
    db_session.add(ServiceCategory(name="Catering", description=""))
    db_session.commit()

    names = [item["name"] for item in client.get("/api/client/service-categories").json()]
    assert names == ["Catering", "Photography"]


def test_public_category_hides_unapproved_vendors(client, marketplace, pending_vendor):
    response = client.get(f"/api/client/service-categories/{marketplace['category'].id}")
    assert response.status_code == 200
    names = [item["name"] for item in response.json()["services"]]
    assert names == ["Full Day Photography"]


def test_browse_services_only_from_approved_vendors(client, marketplace, pending_vendor):
    response = client.get("/api/client/services")

    assert response.status_code == 200
    data = response.json()
    assert [item["name"] for item in data["services"]] == ["Full Day Photography"]
    assert data["services"][0]["vendor"]["ownerName"] == "Selam Tesfaye"
    assert data["pagination"] == {"total": 1, "page": 1, "limit": 10, "totalPages": 1}


def test_browse_services_search_is_case_insensitive(client, marketplace):
    assert len(client.get("/api/client/services", params={"search": "full day"}).json()["services"]) == 1
    assert client.get("/api/client/services", params={"search": "catering"}).json()["services"] == []


@pytest.mark.parametrize(
    "params",
    [{"sortBy": "rating"}, {"sortOrder": "up"}, {"page": 0}, {"limit": -1}],
)
def test_browse_services_rejects_bad_parameters(client, marketplace, params):
    assert client.get("/api/client/services", params=params).status_code == 400


def test_get_service_of_unapproved_vendor(client, marketplace, pending_vendor):
    response = client.get(f"/api/client/services/{pending_vendor['service'].id}")
    assert response.status_code == 403
    assert response.json()["detail"] == "This service is not available"


def test_get_service_includes_contact(client, marketplace):
    response = client.get(f"/api/client/services/{marketplace['service'].id}")
    assert response.status_code == 200
    assert response.json()["service"]["vendor"]["contactEmail"] == "vendor@example.com"


def test_vendors_by_category(client, marketplace, pending_vendor):
    response = client.get("/api/client/vendors/category/Photography")

    assert response.status_code == 200
    vendors = response.json()["vendors"]
    assert [vendor["businessName"] for vendor in vendors] == ["Golden Lens Studio"]
    assert vendors[0]["services"][0]["packageType"] == "Standard"
    assert vendors[0]["serviceCount"] == 1


def test_vendors_by_unknown_category(client, marketplace):
    assert client.get("/api/client/vendors/category/Juggling").status_code == 404


def test_vendor_profile_groups_services_with_generated_details(client, marketplace):
    response = client.get(f"/api/client/vendors/{marketplace['vendor'].id}")

    assert response.status_code == 200
    vendor = response.json()["vendor"]
    entry = vendor["servicesByCategory"]["Photography"][0]
    assert entry["timeline"] == "9-12 months before wedding date"
    assert entry["pricing"] == "Starting at ETB 15,000"
    assert "Full-day wedding coverage" in entry["features"]
    assert entry["image"] == "/image/service-photography.jpg"
    assert vendor["reviews"] == []


def test_unapproved_vendor_profile_is_hidden(client, marketplace, pending_vendor):
    assert client.get(f"/api/client/vendors/{pending_vendor['vendor'].id}").status_code == 404


# ---------------------
# VENDOR SERVICES
# ---------------------

def test_vendor_manages_own_services(client, marketplace, auth_headers):
    headers = auth_headers(marketplace["vendor_user"])

    created = client.post(
        "/api/vendor/services",
        json={"title": "Engagement Shoot", "price": 4000, "features": ["2 hours", "40 photos"]},
        headers=headers,
    )
    assert created.status_code == 201
    service = created.json()
    assert service["categoryName"] == "Photography"
    assert service["features"] == ["2 hours", "40 photos"]

    updated = client.put(
        f"/api/vendor/services/{service['serviceId']}",
        json={"price": 4500, "packageType": "Basic"},
        headers=headers,
    )
    assert updated.status_code == 200
    assert updated.json()["price"] == 4500
    assert updated.json()["packageType"] == "Basic"
    assert updated.json()["title"] == "Engagement Shoot"

    titles = [item["title"] for item in client.get("/api/vendor/services", headers=headers).json()]
    assert set(titles) == {"Engagement Shoot", "Full Day Photography"}

    deleted = client.delete(f"/api/vendor/services/{service['serviceId']}", headers=headers)
    assert deleted.status_code == 200


@pytest.mark.parametrize("body", [{"title": "No price"}, {"title": "Free", "price": 0}, {"price": 100}])
def test_vendor_service_validation(client, marketplace, auth_headers, body):
    response = client.post("/api/vendor/services", json=body, headers=auth_headers(marketplace["vendor_user"]))
    assert response.status_code == 400


def test_vendor_service_unknown_category(client, marketplace, auth_headers):
    response = client.post(
        "/api/vendor/services",
        json={"title": "Album", "price": 100, "categoryId": "missing"},
        headers=auth_headers(marketplace["vendor_user"]),
    )
    assert response.status_code == 404


def test_vendor_cannot_touch_others_services(client, marketplace, pending_vendor, auth_headers):
    headers = auth_headers(pending_vendor["user"])
    service_id = marketplace["service"].id

    assert client.put(f"/api/vendor/services/{service_id}", json={"price": 1}, headers=headers).status_code == 403
    assert client.delete(f"/api/vendor/services/{service_id}", headers=headers).status_code == 403


def test_vendor_role_without_profile(client, marketplace, user_factory, auth_headers):
    bare = user_factory("bare-vendor@example.com", UserRole.VENDOR)
    assert client.get("/api/vendor/services", headers=auth_headers(bare)).status_code == 404


def test_vendor_service_list_includes_bookings(client, marketplace, auth_headers):
    response = client.get("/api/vendor/services", headers=auth_headers(marketplace["vendor_user"]))

    assert response.status_code == 200
    [service] = response.json()
    [booking] = service["bookings"]
    assert booking["id"] == marketplace["booking"].id
    assert booking["clientId"] == marketplace["client"].id
    assert booking["location"] == "Addis Ababa"
    assert booking["attendees"] == 120
    assert booking["status"] == "PENDING"


def test_booked_service_cannot_be_deleted(client, db_session, marketplace, auth_headers):
    response = client.delete(
        f"/api/vendor/services/{marketplace['service'].id}",
        headers=auth_headers(marketplace["vendor_user"]),
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "Cannot delete a service that has bookings"
    db_session.expire_all()
    assert db_session.get(Service, marketplace["service"].id) is not None
