import pytest
from fastapi.testclient import TestClient

from storefront.api.app import create_app


@pytest.fixture()
def client():
    return TestClient(create_app())


@pytest.fixture()
def admin_headers():
    return {"X-Actor-Id": "admin-001", "X-Actor-Role": "admin"}


@pytest.fixture()
def customer_headers():
    return {"X-Actor-Id": "cust-001", "X-Actor-Role": "customer"}


@pytest.fixture()
def stocked_product(client, admin_headers):
    """A product with one Red variant holding five units, created through the API."""
    response = client.post(
        "/products",
        json={"name": "Glass Bauble", "slug": "glass-bauble", "price": 100_000, "images": ["/img/b.jpg"]},
        headers=admin_headers,
    )
    assert response.status_code == 201
    product_id = response.json()["id"]

    response = client.post(
        f"/products/{product_id}/variants",
        json={"name": "Red", "variant_type": "color", "value": "red", "stock": 5},
        headers=admin_headers,
    )
    assert response.status_code == 201
    return {"product_id": product_id, "variant_id": response.json()["id"]}
