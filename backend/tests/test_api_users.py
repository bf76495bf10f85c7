def test_register_and_lookup(client):
    college = client.post("/colleges", json=[{"name": "KMC Manipal", "state": "Karnataka"}]).json()[0]
    r = client.post(
        "/users",
        json={"name": "Asha", "phone": "98765 43210", "college_id": college["id"], "year_of_study": 2},
    )
    assert r.status_code == 201
    user = r.json()
    assert user["phone"] == "+919876543210"
    assert user["status"] == "pending"
    assert user["phone_verified"] is False

    status = client.get("/users/status", params={"phone": "9876543210"}).json()
    assert status == {"registered": True, "user_id": user["id"], "status": "pending", "phone_verified": False}
    assert client.get(f"/users/{user['id']}").json()["name"] == "Asha"


def test_duplicate_phone_conflicts(client):
    client.post("/users", json={"name": "Asha", "phone": "9876543210"})
    r = client.post("/users", json={"name": "Other", "phone": "+919876543210"})
    assert r.status_code == 409


def test_register_validation(client):
    assert client.post("/users", json={"name": "Asha", "phone": "12"}).status_code == 400
    assert client.post("/users", json={"name": "Asha", "phone": "9876543210", "college_id": 42}).status_code == 404


def test_unregistered_status(client):
    assert client.get("/users/status", params={"phone": "9000000000"}).json()["registered"] is False


def test_update_status(client):
    user = client.post("/users", json={"name": "Asha", "phone": "9876543210"}).json()
    r = client.patch(f"/users/{user['id']}/status", json={"status": "active"})
    assert r.json()["status"] == "active"
    assert client.patch(f"/users/{user['id']}/status", json={"status": "gone"}).status_code == 422
    assert client.patch("/users/999/status", json={"status": "active"}).status_code == 404


def test_colleges_sorted_by_name(client):
    client.post("/colleges", json=[{"name": "Seth GS"}, {"name": "AIIMS"}])
    assert [c["name"] for c in client.get("/colleges").json()] == ["AIIMS", "Seth GS"]


def test_send_otp_normalises_phone(client, sms):
    r = client.post("/auth/send-otp", json={"phone": "98765-43210"})
    assert r.json() == {"success": True, "status": "pending"}
    assert sms.started == ["+919876543210"]


def test_verify_otp_marks_user_verified(client, sms):
    user = client.post("/users", json={"name": "Asha", "phone": "9876543210"}).json()
    r = client.post("/auth/verify-otp", json={"phone": "9876543210", "code": "123456"})
    assert r.json() == {"success": True, "user_id": user["id"]}
    assert sms.checked == [("+919876543210", "123456")]
    assert client.get(f"/users/{user['id']}").json()["phone_verified"] is True


def test_verify_otp_rejected(client, sms):
    sms.check_status = "pending"
    r = client.post("/auth/verify-otp", json={"phone": "9876543210", "code": "000000"})
    assert r.status_code == 400
    assert r.json() == {"error": "Invalid OTP"}
