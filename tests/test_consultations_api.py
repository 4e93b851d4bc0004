def _create_patient(client, **overrides):
    payload = {"first_name": "Kofi", "last_name": "Asante", "ckd_stage": 4}
    payload.update(overrides)
    return client.post("/api/patients/", json=payload).json()


def test_create_consultation_raises_alerts(client, store):
    patient = _create_patient(client)

    response = client.post(
        "/api/consultations/",
        json={
            "patient_id": patient["id"],
            "creatinine": "3.2",
            "weight": "72.1",
            "systolic_bp": 185,
            "diastolic_bp": 110,
            "notes": "Tension artérielle critique.",
        },
    )

    assert response.status_code == 201
    body = response.json()
    assert body["patient_id"] == patient["id"]
    assert body["doctor_name"] == "Dr. Kouakou"
    assert body["date"]

    alerts = client.get(f"/api/alerts/patient/{patient['id']}").json()
    assert sorted((a["type"], a["severity"]) for a in alerts) == [
        ("blood_pressure", "critical"),
        ("creatinine", "critical"),
    ]
    thresholds = client.get("/api/thresholds/").json()
    assert {t["type"] for t in thresholds} == {"creatinine", "blood_pressure"}


def test_create_consultation_for_unknown_patient(client):
    response = client.post("/api/consultations/", json={"patient_id": 99, "creatinine": "1.0"})

    assert response.status_code == 404
    assert response.json()["error"]["message"] == "Patient not found"


def test_create_consultation_rejects_invalid_vitals(client):
    patient = _create_patient(client)

    response = client.post(
        "/api/consultations/",
        json={"patient_id": patient["id"], "systolic_bp": 500, "creatinine": "abc"},
    )

    assert response.status_code == 422
    assert response.json()["error"]["type"] == "validation_error"


def test_consultation_is_kept_when_alerting_fails(client, alert_repository, monkeypatch, store):
    async def _broken(**_kwargs):
        raise RuntimeError("alerts table unavailable")

    monkeypatch.setattr(alert_repository, "create_alert", _broken)
    patient = _create_patient(client)

    response = client.post(
        "/api/consultations/",
        json={"patient_id": patient["id"], "creatinine": "4.0"},
    )

    assert response.status_code == 201
    assert len(store.consultations) == 1
    assert store.alerts == []


def test_list_recent_and_by_patient(client):
    first = _create_patient(client)
    second = _create_patient(client, first_name="Fatou", last_name="Diallo")
    client.post(
        "/api/consultations/",
        json={"patient_id": first["id"], "date": "2026-09-01T09:00:00Z", "weight": "70"},
    )
    client.post(
        "/api/consultations/",
        json={"patient_id": first["id"], "date": "2026-09-07T09:00:00Z", "weight": "69"},
    )
    client.post(
        "/api/consultations/",
        json={"patient_id": second["id"], "date": "2026-09-03T09:00:00Z"},
    )

    recent = client.get("/api/consultations/recent", params={"limit": 2}).json()
    assert [c["date"][:10] for c in recent] == ["2026-09-07", "2026-09-03"]

    history = client.get(f"/api/consultations/patient/{first['id']}").json()
    assert [c["date"][:10] for c in history] == ["2026-09-07", "2026-09-01"]

    everything = client.get("/api/consultations/").json()
    assert len(everything) == 3

    assert client.get("/api/consultations/patient/99").status_code == 404


def test_naive_dates_are_read_as_utc(client):
    patient = _create_patient(client)

    body = client.post(
        "/api/consultations/",
        json={"patient_id": patient["id"], "date": "2026-09-01T09:00:00"},
    ).json()

    assert body["date"] in ("2026-09-01T09:00:00Z", "2026-09-01T09:00:00+00:00")


def test_update_consultation_re_evaluates_without_duplicates(client):
    patient = _create_patient(client)
    created = client.post(
        "/api/consultations/",
        json={"patient_id": patient["id"], "creatinine": "1.5"},
    ).json()

    response = client.patch(f"/api/consultations/{created['id']}", json={"creatinine": "3.4"})

    assert response.status_code == 200
    assert response.json()["creatinine"] == "3.4"
    alerts = client.get(f"/api/alerts/patient/{patient['id']}").json()
    assert len(alerts) == 1
    assert alerts[0]["severity"] == "critical"
    assert alerts[0]["value"] == "3.4"


def test_update_consultation_ignores_null_required_fields(client):
    patient = _create_patient(client)
    created = client.post(
        "/api/consultations/",
        json={"patient_id": patient["id"], "doctor_name": "Dr. Yao"},
    ).json()

    body = client.patch(
        f"/api/consultations/{created['id']}",
        json={"doctor_name": None, "notes": "Contrôle dans un mois"},
    ).json()

    assert body["doctor_name"] == "Dr. Yao"
    assert body["notes"] == "Contrôle dans un mois"


def test_get_and_delete_consultation(client, store):
    patient = _create_patient(client)
    created = client.post(
        "/api/consultations/",
        json={"patient_id": patient["id"], "creatinine": "2.5"},
    ).json()

    assert client.get(f"/api/consultations/{created['id']}").status_code == 200

    response = client.delete(f"/api/consultations/{created['id']}")

    assert response.status_code == 204
    assert client.get(f"/api/consultations/{created['id']}").status_code == 404
    # The alert outlives the consultation, without the link.
    assert len(store.alerts) == 1
    assert store.alerts[0].consultation_id is None
    assert client.delete(f"/api/consultations/{created['id']}").status_code == 404


def test_update_consultation_clears_alert_that_no_longer_applies(client):
    patient = _create_patient(client)
    created = client.post(
        "/api/consultations/",
        json={"patient_id": patient["id"], "creatinine": "3.2"},
    ).json()

    response = client.patch(f"/api/consultations/{created['id']}", json={"creatinine": "0.9"})

    assert response.status_code == 200
    assert client.get(f"/api/alerts/patient/{patient['id']}").json() == []
    assert client.get("/api/alerts/unread").json() == []
