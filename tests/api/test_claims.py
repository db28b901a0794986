from urllib.parse import parse_qs
from fastapi.testclient import TestClient
from api import app

client = TestClient(app)

CLAIM = {
    "_id": "c1",
    "subscriptionId": "sub_1",
    "sku": "SKU-1",
    "productDescription": "Bar arrived dented",
    "claimType": "damage",
    "images": ["/uploads/1.jpg", "/uploads/2.jpg", "/uploads/3.jpg", "/uploads/4.jpg"],
    "status": "pending",
}


def test_claim_without_images_is_accepted(backend):
    backend.add("POST", "/claims/create", {"success": True, "claim": CLAIM})

    response = client.post(
        "/claims",
        data={"subscriptionId": "sub_1", "productDescription": "Bar arrived dented", "claimType": "damage"},
    )
    assert response.status_code == 200
    assert response.json()["success"] is True
    sent = parse_qs(backend.calls[0].content.decode())
    assert sent["productDescription"] == ["Bar arrived dented"]
    assert "images" not in sent


def test_claim_images_are_sent_under_one_field(backend):
    backend.add("POST", "/claims/create", {"success": True})

    client.post(
        "/claims",
        data={"subscriptionId": "sub_1", "productDescription": "Scratches", "claimType": "damage", "notes": "both sides"},
        files=[
            ("images", ("front.jpg", b"front-bytes", "image/jpeg")),
            ("images", ("back.jpg", b"back-bytes", "image/jpeg")),
        ],
    )
    content = backend.calls[0].content
    assert content.count(b'name="images"') == 2
    assert b'filename="back.jpg"' in content
    assert b"both sides" in content


def test_empty_description_is_blocked_before_any_network_call(backend):
    response = client.post("/claims", data={"subscriptionId": "sub_1", "productDescription": "  ", "claimType": "loss"})
    assert response.status_code == 400
    assert response.json()["message"] == "Please describe the product and the issue."
    assert backend.calls == []


def test_unknown_claim_type_is_blocked(backend):
    response = client.post("/claims", data={"subscriptionId": "sub_1", "productDescription": "Gone", "claimType": "fire"})
    assert response.status_code == 400
    assert backend.calls == []


def test_backend_rejection(backend):
    backend.add("POST", "/claims/create", {"success": False, "message": "Plan is not active"})
    response = client.post("/claims", data={"subscriptionId": "sub_1", "productDescription": "Gone", "claimType": "theft"})
    assert response.status_code == 400
    assert response.json()["message"] == "Plan is not active"


def test_my_claims(backend):
    assert client.get("/my-claims").json()["showEmailForm"] is True

    backend.add("GET", "/claims", {"success": True, "claims": [CLAIM]})
    view = client.get("/my-claims", params={"email": "ann@example.com"}).json()
    item = view["claims"][0]
    assert item["typeLabel"] == "Damage"
    assert item["previewImages"] == CLAIM["images"][:3]
    assert item["moreImages"] == 1
    assert backend.calls[0].url.params["email"] == "ann@example.com"
