"""
API tests for the clinical trial endpoints.
"""
import pytest


@pytest.fixture
def rita(login, researcher):
    return login("rita")


@pytest.fixture
def oscar(login, other_researcher):
    return login("oscar")


@pytest.fixture
def adele(login, admin):
    return login("adele", portal="admin")


@pytest.fixture
def created(rita, trial_payload):
    response = rita.post("/api/trials", json=trial_payload())
    assert response.status_code == 201, response.text
    return response.json()["trial"]


def test_trials_require_session(client):
    assert client.get("/api/trials").status_code == 401
    assert client.post("/api/trials", json={}).status_code == 401


def test_create_returns_wire_format(rita, trial_payload):
    response = rita.post("/api/v1/trials", json=trial_payload(trialId="abc-123"))

    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Clinical trial created successfully"

    trial = body["trial"]
    assert trial["trialId"] == "ABC-123"
    assert trial["startDate"] == "2024-01-15"
    assert trial["createdBy"]["username"] == "rita"
    assert trial["lastModifiedBy"]["username"] == "rita"
    assert trial["studyLocations"] == [{"facility": "City Hospital", "city": "Boston", "country": "USA"}]
    assert trial["notes"] == []
    assert trial["enrollmentPercentage"] == 20
    assert trial["durationDays"] == 897
    assert trial["isOngoing"] is False


def test_create_then_read(rita, created):
    response = rita.get("/api/trials/onc-001")

    assert response.status_code == 200
    assert response.json()["trial"] == created


def test_read_by_record_id(rita, created):
    response = rita.get(f"/api/trials/{created['id']}")
    assert response.json()["trial"]["trialId"] == "ONC-001"


def test_create_validation_error(rita, trial_payload):
    response = rita.post("/api/trials", json=trial_payload(trialName="", phase="Phase 9"))

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Validation Error"
    assert len(body["messages"]) == 2


def test_create_duplicate(rita, created, trial_payload):
    response = rita.post("/api/trials", json=trial_payload(trialId="onc-001"))

    assert response.status_code == 400
    assert response.json() == {
        "error": "Duplicate Error",
        "message": "A trial with this ID already exists",
    }


def test_invalid_identifier(rita):
    response = rita.get("/api/trials/not a valid id")

    assert response.status_code == 400
    assert response.json()["message"] == "Invalid trial ID format"


def test_unknown_trial(rita):
    response = rita.get("/api/trials/NOPE-404")

    assert response.status_code == 404
    assert response.json()["message"] == "Clinical trial not found"


def test_update(rita, created):
    response = rita.put(f"/api/trials/{created['id']}", json={"status": "Active", "actualEnrollment": 25})

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Clinical trial updated successfully"
    assert body["trial"]["status"] == "Active"
    assert body["trial"]["enrollmentPercentage"] == 50
    assert body["trial"]["trialName"] == created["trialName"]


def test_update_rejected_leaves_record_unchanged(rita, created):
    response = rita.put("/api/trials/ONC-001", json={"endDate": "2024-01-15"})

    assert response.status_code == 400
    assert response.json()["messages"] == ["End date must be at least one day after start date"]
    assert rita.get("/api/trials/ONC-001").json()["trial"]["endDate"] == "2026-06-30"


def test_update_merged_enrollment(rita, trial_payload):
    rita.post("/api/trials", json=trial_payload(trialId="ENR-1", estimatedEnrollment=50, actualEnrollment=40))

    response = rita.put("/api/trials/ENR-1", json={"estimatedEnrollment": 30})

    assert response.status_code == 400
    assert response.json()["messages"] == [
        "Actual enrollment (40) cannot exceed estimated enrollment (30)"
    ]


def test_researcher_cannot_touch_others_trial(oscar, created):
    path = f"/api/trials/{created['id']}"

    assert oscar.get(path).status_code == 403
    assert oscar.put(path, json={"status": "Active"}).status_code == 403
    assert oscar.delete(path).status_code == 403
    assert oscar.post(f"{path}/notes", json={"content": "hi"}).status_code == 403


def test_admin_can_manage_any_trial(adele, created):
    path = f"/api/trials/{created['id']}"

    assert adele.get(path).status_code == 200

    response = adele.put(path, json={"status": "Suspended"})
    assert response.status_code == 200
    assert response.json()["trial"]["lastModifiedBy"]["username"] == "adele"
    assert response.json()["trial"]["createdBy"]["username"] == "rita"

    response = adele.delete(path)
    assert response.status_code == 200
    assert response.json() == {"message": "Clinical trial deleted successfully"}
    assert adele.get(path).status_code == 404


def test_delete_own_trial(rita, created):
    assert rita.delete("/api/trials/ONC-001").status_code == 200
    assert rita.get("/api/trials/ONC-001").status_code == 404


def test_add_note(rita, created):
    response = rita.post("/api/trials/ONC-001/notes", json={"content": "First patient enrolled"})

    assert response.status_code == 201
    notes = response.json()["trial"]["notes"]
    assert len(notes) == 1
    assert notes[0]["content"] == "First patient enrolled"
    assert notes[0]["createdBy"]["username"] == "rita"


def test_pagination(rita, trial_payload):
    for i in range(25):
        response = rita.post("/api/trials", json=trial_payload(trialId=f"PAGE-{i:02d}"))
        assert response.status_code == 201

    page1 = rita.get("/api/trials", params={"page": 1, "limit": 10}).json()
    assert len(page1["trials"]) == 10
    assert page1["pagination"] == {
        "currentPage": 1,
        "totalPages": 3,
        "totalTrials": 25,
        "hasNextPage": True,
        "hasPrevPage": False,
    }

    page3 = rita.get("/api/trials", params={"page": 3, "limit": 10}).json()
    assert len(page3["trials"]) == 5
    assert page3["pagination"]["hasNextPage"] is False
    assert page3["pagination"]["hasPrevPage"] is True


def test_list_is_owner_scoped(rita, oscar, adele, trial_payload):
    rita.post("/api/trials", json=trial_payload(trialId="R-1"))
    oscar.post("/api/trials", json=trial_payload(trialId="O-1", therapeuticArea="Neurology"))

    assert [t["trialId"] for t in rita.get("/api/trials").json()["trials"]] == ["R-1"]
    assert [t["trialId"] for t in oscar.get("/api/trials").json()["trials"]] == ["O-1"]
    assert adele.get("/api/trials").json()["pagination"]["totalTrials"] == 2

    neuro = adele.get("/api/trials", params={"therapeuticArea": "neuro"}).json()
    assert [t["trialId"] for t in neuro["trials"]] == ["O-1"]


@pytest.mark.parametrize("params", [
    {"limit": 101},
    {"page": 0},
    {"page": "first"},
    {"status": "Unknown"},
])
def test_list_rejects_bad_parameters(rita, params):
    response = rita.get("/api/trials", params=params)

    assert response.status_code == 400
    assert response.json()["error"] == "Validation Error"
