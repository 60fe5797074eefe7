"""HTTP tests for the v1 API using FastAPI's TestClient."""

API = "/api/v1"


def register(client, email="voter@example.com", name="Voter"):
    response = client.post(f"{API}/users/", json={"email": email, "password": "secret", "name": name})
    assert response.status_code == 201, response.text
    return response.json()


def submit_leader(client, user_id, name="Asha Rao"):
    response = client.post(
        f"{API}/leaders/",
        json={"name": name, "partyName": "Independent", "location": {"state": "Kerala"}},
        headers={"X-User-Id": user_id},
    )
    assert response.status_code == 201, response.text
    return response.json()


def test_register_returns_camel_case(client):
    body = register(client)
    assert body["email"] == "voter@example.com"
    assert body["isBlocked"] is False
    assert "createdAt" in body
    assert "password" not in body


def test_register_duplicate_email(client):
    register(client)
    response = client.post(f"{API}/users/", json={"email": "VOTER@example.com"})
    assert response.status_code == 409


def test_register_duplicate_email_with_padding(client):
    register(client)
    response = client.post(f"{API}/users/", json={"email": " voter@example.com "})
    assert response.status_code == 409


def test_non_ascii_bearer_token_is_forbidden(client):
    headers = {"Authorization": "Bearer été".encode("utf-8")}
    assert client.get(f"{API}/users/", headers=headers).status_code == 403


def test_only_recipient_marks_message_read(client, admin_headers):
    recipient = register(client)
    other = register(client, email="other@example.com", name="Other")
    sent = client.post(
        f"{API}/users/{recipient['id']}/messages",
        json={"message": "Please verify your constituency"},
        headers=admin_headers,
    )
    assert sent.status_code == 201, sent.text
    message_id = sent.json()["id"]
    url = f"{API}/users/messages/{message_id}/read"

    assert client.post(url, headers={"X-User-Id": other["id"]}).status_code == 403
    unread = client.get(
        f"{API}/users/{recipient['id']}/messages",
        params={"unread": True},
        headers={"X-User-Id": recipient["id"]},
    ).json()
    assert [m["id"] for m in unread] == [message_id]

    assert client.post(f"{API}/users/messages/missing/read", headers={"X-User-Id": other["id"]}).status_code == 404
    assert client.post(url, headers={"X-User-Id": recipient["id"]}).status_code == 204
    unread = client.get(
        f"{API}/users/{recipient['id']}/messages",
        params={"unread": True},
        headers={"X-User-Id": recipient["id"]},
    ).json()
    assert unread == []


def test_listing_users_requires_admin(client, admin_headers):
    register(client)
    assert client.get(f"{API}/users/").status_code == 403
    assert client.get(f"{API}/users/", headers={"Authorization": "Bearer wrong"}).status_code == 403
    response = client.get(f"{API}/users/", headers=admin_headers)
    assert response.status_code == 200
    assert len(response.json()) == 1


def test_profile_update_needs_identity(client):
    user = register(client)
    url = f"{API}/users/{user['id']}"
    assert client.patch(url, json={"state": "Goa"}).status_code == 401
    assert client.patch(url, json={"state": "Goa"}, headers={"X-User-Id": "someone-else"}).status_code == 403
    response = client.patch(url, json={"state": "Goa", "mpConstituency": "South Goa"}, headers={"X-User-Id": user["id"]})
    assert response.status_code == 200
    assert response.json()["mpConstituency"] == "South Goa"


def test_leader_flow(client, admin_headers):
    user = register(client)
    leader = submit_leader(client, user["id"])
    assert leader["status"] == "pending"
    assert client.get(f"{API}/leaders/").json() == []

    assert client.post(f"{API}/leaders/{leader['id']}/approve", headers=admin_headers).status_code == 204
    listed = client.get(f"{API}/leaders/").json()
    assert [l["id"] for l in listed] == [leader["id"]]

    rated = client.put(
        f"{API}/ratings/{leader['id']}",
        json={"rating": 4, "comment": "Responsive", "socialBehaviour": "good"},
        headers={"X-User-Id": user["id"]},
    )
    assert rated.status_code == 200, rated.text
    assert rated.json()["rating"] == 4.0
    assert rated.json()["reviewCount"] == 1

    reviews = client.get(f"{API}/leaders/{leader['id']}/reviews").json()
    assert reviews[0]["comment"] == "Responsive"
    assert reviews[0]["userName"] == "Voter"


def test_edit_by_other_user_is_forbidden(client):
    owner = register(client, "owner@example.com", "Owner")
    other = register(client, "other@example.com", "Other")
    leader = submit_leader(client, owner["id"])
    response = client.put(
        f"{API}/leaders/{leader['id']}",
        json={"name": "Hijacked"},
        headers={"X-User-Id": other["id"]},
    )
    assert response.status_code == 403
    assert response.json()["detail"] == "You are not authorized to edit this leader."


def test_unknown_leader_is_404(client, admin_headers):
    assert client.get(f"{API}/leaders/missing").status_code == 404
    assert client.delete(f"{API}/leaders/missing", headers=admin_headers).status_code == 404


def test_invalid_rating_rejected(client):
    user = register(client)
    leader = submit_leader(client, user["id"])
    response = client.put(
        f"{API}/ratings/{leader['id']}", json={"rating": 9}, headers={"X-User-Id": user["id"]}
    )
    assert response.status_code == 422


def test_poll_flow(client, admin_headers):
    payload = {
        "title": "Ward survey",
        "questions": [
            {
                "questionText": "Best new project?",
                "questionType": "single-choice",
                "questionOrder": 1,
                "options": [
                    {"optionText": "Park", "optionOrder": 1},
                    {"optionText": "Library", "optionOrder": 2},
                ],
            }
        ],
    }
    assert client.post(f"{API}/polls/", json=payload).status_code == 403
    created = client.post(f"{API}/polls/", json=payload, headers=admin_headers)
    assert created.status_code == 201
    poll_id = created.json()["id"]
    question_id = f"{poll_id}_q_1"

    answer = {"answers": [{"questionId": question_id, "selectedOptionId": f"{question_id}_o_2"}]}
    url = f"{API}/polls/{poll_id}/responses"
    assert client.post(url, json=answer).status_code == 401
    assert client.post(url, json=answer, headers={"X-User-Id": "u1"}).status_code == 201
    assert client.post(url, json=answer, headers={"X-User-Id": "u1"}).status_code == 409

    results = client.get(f"{API}/polls/{poll_id}/results").json()
    assert results[0]["totalResponses"] == 1
    assert [o["percentage"] for o in results[0]["options"]] == [0, 100]

    assert client.delete(f"{API}/polls/{poll_id}", headers=admin_headers).status_code == 204
    assert client.get(f"{API}/polls/{poll_id}").status_code == 404


def test_notifications(client, admin_headers):
    created = client.post(
        f"{API}/notifications/", json={"message": "Counting day"}, headers=admin_headers
    )
    assert created.status_code == 201
    active = client.get(f"{API}/notifications/active").json()
    assert [n["message"] for n in active] == ["Counting day"]
    missing = client.put(
        f"{API}/notifications/missing", json={"message": "x"}, headers=admin_headers
    )
    assert missing.status_code == 404


def test_settings_and_maintenance(client, admin_headers):
    assert client.get(f"{API}/settings/maintenance").json() == {"active": False, "message": None}
    assert client.put(f"{API}/settings/", json={"maintenance_active": "true"}).status_code == 403
    updated = client.put(
        f"{API}/settings/",
        json={"maintenance_active": True, "maintenance_message": "Back soon"},
        headers=admin_headers,
    )
    assert updated.status_code == 200
    assert updated.json()["maintenance_active"] == "true"
    assert client.get(f"{API}/settings/maintenance").json() == {"active": True, "message": "Back soon"}


def test_support_tickets(client, admin_headers):
    created = client.post(
        f"{API}/support/tickets",
        json={
            "user_name": "Citizen",
            "user_email": "citizen@example.com",
            "subject": "Typo on profile",
            "message": "Party name is misspelt.",
        },
    )
    assert created.status_code == 201
    ticket_id = created.json()["id"]

    assert client.get(f"{API}/support/tickets").status_code == 403
    listed = client.get(f"{API}/support/tickets", params={"status": "open"}, headers=admin_headers)
    assert [t["id"] for t in listed.json()] == [ticket_id]

    response = client.put(
        f"{API}/support/tickets/{ticket_id}/status",
        json={"status": "resolved", "admin_notes": "Corrected"},
        headers=admin_headers,
    )
    assert response.status_code == 204

    stats = client.get(f"{API}/support/stats", headers=admin_headers).json()
    assert stats["total"] == 1
    assert stats["resolved"] == 1
    assert stats["inProgress"] == 0
    assert stats["avgResolutionHours"] == 0
    assert stats["contact_email"] is None
