"""
Integration tests for API endpoints using a SQLite DB.
"""
import pytest


def _entity(client, name):
    r = client.post("/entities", json={"name": name})
    assert r.status_code == 201
    return r.json()["id"]


def _submit(client, entity_id, day, reading=0, subject="Bhagavad Gita", **extra):
    payload = {"date": day, "entity_id": entity_id, "reading_minutes": reading, **extra}
    if reading:
        payload["reading_subject"] = subject
    r = client.post("/submissions", json=payload)
    assert r.status_code == 201, r.text
    return r.json()


_FULL_DAY = {
    "early_session": 2,
    "before_cutoff": 3,
    "mid_morning": 5,
    "late_morning": 6,
    "reading_minutes": 20,
    "reading_subject": "Bhagavad Gita",
    "listening_minutes": 50,
    "speaker": "Guest speaker",
    "service_minutes": 10,
    "service_name": "Kitchen",
}


class TestHealth:
    def test_health(self, client):
        r = client.get("/health")
        assert r.status_code == 200
        assert r.json()["status"] == "ok"


class TestEntities:
    def test_create_and_list_sorted(self, client):
        _entity(client, "Vrinda")
        _entity(client, "  Ananda  ")
        names = [e["name"] for e in client.get("/entities").json()]
        assert names == ["Ananda", "Vrinda"]

    def test_duplicate_name_is_case_insensitive(self, client):
        _entity(client, "Gopal")
        r = client.post("/entities", json={"name": "gopal"})
        assert r.status_code == 409
        assert r.json()["code"] == "ENTITY_NAME_TAKEN"

    def test_blank_name_rejected(self, client):
        r = client.post("/entities", json={"name": "   "})
        assert r.status_code == 422

    def test_rename_keeps_history(self, client):
        eid = _entity(client, "Old")
        _submit(client, eid, "2024-03-04", reading=20)
        r = client.patch(f"/entities/{eid}", json={"name": "New"})
        assert r.status_code == 200
        assert r.json()["name"] == "New"
        items = client.get("/submissions", params={"entity_id": eid}).json()["items"]
        assert items[0]["entity_name"] == "New"

    def test_rename_to_taken_name(self, client):
        _entity(client, "Taken")
        eid = _entity(client, "Free")
        r = client.patch(f"/entities/{eid}", json={"name": "TAKEN"})
        assert r.status_code == 409

    def test_delete_cascades(self, client):
        eid = _entity(client, "Leaving")
        sub = _submit(client, eid, "2024-03-04", reading=20)
        _submit(client, eid, "2024-03-05")
        r = client.delete(f"/entities/{eid}")
        assert r.status_code == 200
        assert r.json() == {"id": eid, "submissions_removed": 2}
        assert client.get(f"/submissions/{sub['id']}").status_code == 404

    def test_unknown_entity(self, client):
        r = client.delete("/entities/9999")
        assert r.status_code == 404
        assert r.json()["code"] == "ENTITY_NOT_FOUND"


class TestSubmissions:
    def test_create_scores_the_day(self, client):
        eid = _entity(client, "Gopal")
        r = client.post("/submissions", json={"date": "2024-03-05", "entity_id": eid, **_FULL_DAY})
        assert r.status_code == 201
        body = r.json()
        assert body["total_rounds"] == 16
        assert (body["score_a"], body["score_b"], body["score_c"], body["score_d"]) == (25, 15, 30, 5)
        assert body["total_score"] == 75
        assert body["entity_name"] == "Gopal"
        assert body["date"] == "2024-03-05"

    def test_score_preview_stores_nothing(self, client):
        r = client.post("/submissions/score", json={"early_session": 1, "service_minutes": 46})
        assert r.status_code == 200
        assert r.json()["score_a"] == 3
        assert r.json()["score_d"] == 15
        assert client.get("/submissions").json()["total"] == 0

    def test_missing_label_rejected(self, client):
        eid = _entity(client, "Gopal")
        r = client.post("/submissions", json={"date": "2024-03-05", "entity_id": eid, "listening_minutes": 10})
        assert r.status_code == 422
        assert r.json()["code"] == "VALIDATION_ERROR"

    @pytest.mark.parametrize("field, value", [
        ("reading_minutes", -5),
        ("early_session", 1.5),
        ("service_minutes", "lots"),
    ])
    def test_bad_counts_rejected(self, client, field, value):
        eid = _entity(client, "Gopal")
        r = client.post("/submissions", json={"date": "2024-03-05", "entity_id": eid, field: value})
        assert r.status_code == 422
        fields = [e["field"] for e in r.json()["details"]["errors"]]
        assert any(field in f for f in fields)

    def test_unknown_entity(self, client):
        r = client.post("/submissions", json={"date": "2024-03-05", "entity_id": 4242})
        assert r.status_code == 404
        assert r.json()["code"] == "ENTITY_NOT_FOUND"

    def test_list_filters_and_order(self, client):
        gopal = _entity(client, "Gopal")
        ananda = _entity(client, "Ananda")
        _submit(client, gopal, "2024-03-04", reading=20)
        _submit(client, gopal, "2024-03-06")
        _submit(client, ananda, "2024-03-05", reading=50)

        body = client.get("/submissions").json()
        assert body["total"] == 3
        assert [i["date"] for i in body["items"]] == ["2024-03-06", "2024-03-05", "2024-03-04"]

        by_name = client.get("/submissions", params={"name": "GOP"}).json()
        assert by_name["total"] == 2

        ranged = client.get("/submissions", params={"start": "2024-03-05", "end": "2024-03-05"}).json()
        assert [i["entity_name"] for i in ranged["items"]] == ["Ananda"]

        page = client.get("/submissions", params={"limit": 1, "offset": 1}).json()
        assert page["total"] == 3
        assert len(page["items"]) == 1
        assert page["items"][0]["date"] == "2024-03-05"

    def test_delete(self, client):
        eid = _entity(client, "Gopal")
        sub = _submit(client, eid, "2024-03-04")
        assert client.delete(f"/submissions/{sub['id']}").status_code == 204
        r = client.get(f"/submissions/{sub['id']}")
        assert r.status_code == 404
        assert r.json()["code"] == "SUBMISSION_NOT_FOUND"

    def test_no_update_route(self, client):
        eid = _entity(client, "Gopal")
        sub = _submit(client, eid, "2024-03-04")
        assert client.patch(f"/submissions/{sub['id']}", json={}).status_code == 405


@pytest.fixture()
def population(client):
    """Two entities across weeks 2024-W10 and 2024-W11 (reading band scores)."""
    gopal = _entity(client, "Gopal")
    ananda = _entity(client, "Ananda")
    _submit(client, gopal, "2024-03-04", reading=20)     # 15
    _submit(client, gopal, "2024-03-05", reading=20)     # 15
    _submit(client, ananda, "2024-03-10", reading=10)    # 7
    _submit(client, gopal, "2024-03-11", reading=20)     # 15
    _submit(client, ananda, "2024-03-12", reading=50)    # 30
    return {"gopal": gopal, "ananda": ananda}


class TestAggregates:
    def test_weekly(self, client, population):
        body = client.get("/aggregates/week").json()
        totals = {(w["window_key"], w["entity_name"]): w["total_score"] for w in body["windows"]}
        assert totals == {
            ("2024-W10", "Ananda"): 7,
            ("2024-W10", "Gopal"): 30,
            ("2024-W11", "Ananda"): 30,
            ("2024-W11", "Gopal"): 15,
        }
        assert body["excluded"] == 0

    def test_selector_and_entity_filter(self, client, population):
        body = client.get(
            "/aggregates/month", params={"key": "2024-03", "entity_id": population["gopal"]}
        ).json()
        assert [(w["entity_name"], w["total_score"], w["submission_count"]) for w in body["windows"]] == [
            ("Gopal", 45, 3)
        ]

    def test_unknown_window_kind(self, client):
        r = client.get("/aggregates/year")
        assert r.status_code == 422

    def test_maxima(self, client, population):
        body = client.get("/aggregates/all_time/maxima").json()
        assert body["highs"] == [{
            "window_key": "all",
            "entity_id": population["ananda"],
            "entity_name": "Ananda",
            "score": 30,
            "date": "2024-03-12",
        }]


class TestLeaderboard:
    def test_weekly_board(self, client, population):
        body = client.get("/leaderboard", params={"as_of": "2024-03-13"}).json()
        assert body["week_key"] == "2024-W11"
        assert body["month_key"] == "2024-03"
        assert [(e["rank"], e["entity_name"], e["weekly_score"]) for e in body["entries"]] == [
            (1, "Ananda", 30),
            (2, "Gopal", 15),
        ]

    def test_all_time_and_limit(self, client, population):
        body = client.get(
            "/leaderboard", params={"as_of": "2024-03-13", "by": "all_time", "limit": 1}
        ).json()
        assert body["total"] == 2
        assert [(e["entity_name"], e["all_time_score"]) for e in body["entries"]] == [("Gopal", 45)]

    def test_bad_selector(self, client):
        assert client.get("/leaderboard", params={"by": "yearly"}).status_code == 422


class TestImprovements:
    def test_population_report(self, client, population):
        body = client.get("/improvements").json()
        assert body["all_time_high"]["entity_name"] == "Ananda"
        # Ananda's 30 on 2024-03-12 is the newest submission and beats every other.
        assert body["new_all_time_record"] is True
        assert [e["entity_name"] for e in body["personal_bests"]] == ["Ananda"]
        assert body["significant_improvements"] == []

    def test_entity_detail(self, client, population):
        body = client.get(f"/improvements/{population['ananda']}").json()
        imp = body["improvement"]
        assert imp["previous_best"] == 7
        assert imp["improvement"] == 23
        assert imp["is_personal_best"] is True
        assert imp["is_significant"] is False
        assert body["is_all_time_record"] is True
        assert [p["score"] for p in body["trend"]] == [7, 30]

    def test_entity_without_history(self, client):
        eid = _entity(client, "Quiet")
        body = client.get(f"/improvements/{eid}").json()
        assert body["improvement"]["history_length"] == 0
        assert body["is_all_time_record"] is False
        assert body["trend"] == []

    def test_unknown_entity(self, client):
        assert client.get("/improvements/777").status_code == 404


class TestStats:
    def test_week(self, client, population):
        body = client.get("/stats/weeks/2024/11").json()
        assert body["window_key"] == "2024-W11"
        assert body["total_score"] == 45
        assert body["previous_total"] == 37
        assert body["leader"]["entity_name"] == "Ananda"
        assert body["favourite_subject"] == {"label": "Bhagavad Gita", "count": 2}

    def test_week_out_of_range(self, client):
        r = client.get("/stats/weeks/2021/53")
        assert r.status_code == 422
        assert r.json()["code"] == "INVALID_INPUT"

    def test_month(self, client, population):
        body = client.get("/stats/months/2024/3").json()
        assert body["total_score"] == 82
        assert [w["entity_name"] for w in body["top"]] == ["Gopal", "Ananda"]
        assert [w["entity_name"] for w in body["needs_attention"]] == ["Ananda", "Gopal"]

    def test_overview(self, client, population):
        body = client.get("/stats/overview", params={"as_of": "2024-03-13"}).json()
        assert body["submissions_this_week"] == 2
        assert body["total_entities"] == 2
        assert body["submissions_needing_attention"] == 5

    def test_monthly_averages(self, client, population):
        body = client.get("/stats/monthly-averages").json()
        assert body == [{"month_key": "2024-03", "average": 16, "submission_count": 5}]

    def test_progress(self, client, population):
        body = client.get(
            f"/stats/entities/{population['gopal']}/progress", params={"year": 2024, "week": 10}
        ).json()
        assert body["week_total"] == 30
        assert [d["score"] for d in body["days"]] == [15, 15]
        assert body["improvement"]["is_personal_best"] is False
