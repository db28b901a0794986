from fastapi.testclient import TestClient
from api import app

client = TestClient(app)


def test_connection():
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "priceFeedConnected": False}


def test_error_page_defaults():
    response = client.get("/error")
    assert response.status_code == 200
    page = response.json()
    assert page["status"] == 500
    assert page["title"] == "Internal Server Error"
    assert page["message"] == "Something went wrong!"
    assert page["severity"] == "danger"


def test_error_page_reads_status_and_message():
    response = client.get("/error", params={"message": "Order missing", "status": "403"})
    page = response.json()
    assert page["title"] == "Access Forbidden"
    assert page["message"] == "Order missing"
    assert page["severity"] == "warning"


def test_error_page_with_garbage_status_falls_back_to_500():
    assert client.get("/error", params={"status": "oops"}).json()["status"] == 500


def test_unknown_route_renders_not_found_page():
    response = client.get("/no/such/page")
    assert response.status_code == 404
    assert response.json()["title"] == "Page Not Found"
