"""Tests for the attempt store API."""
import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from simtrack.models.attempt import Attempt
from simtrack.services import progress as progress_service

from tests.conftest import SIM_ID, TOTAL, auth_cookies, guest_cookies


async def start(client, slug=SIM_ID):
    return await client.post("/api/attempt/start", json={"simulation_slug": slug})


class TestHealthAndSimulations:
    async def test_health(self, make_client):
        resp = await make_client().get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}

    async def test_get_simulation(self, make_client):
        resp = await make_client().get(f"/api/simulations/{SIM_ID}")
        assert resp.status_code == 200
        data = resp.json()
        assert data["total_task_count"] == TOTAL
        assert [t["index"] for t in data["tasks"]] == list(range(TOTAL))

    async def test_inactive_simulation_is_hidden(self, make_client):
        resp = await make_client().get("/api/simulations/retired")
        assert resp.status_code == 404


class TestStart:
    async def test_guest_start_sets_session_cookie(self, make_client):
        resp = await start(make_client())
        assert resp.status_code == 200
        assert "sim_session_id" in resp.headers.get("set-cookie", "")
        data = resp.json()
        assert data["completed_task_indices"] == []
        assert data["total_task_count"] == TOTAL
        assert data["status"] == "started"

    async def test_guest_reuses_attempt_for_same_session(self, make_client):
        client = make_client(guest_cookies("guest-1"))
        first = (await start(client)).json()
        second = (await start(client)).json()
        assert first["attempt_id"] == second["attempt_id"]

    async def test_user_reuses_attempt(self, make_client):
        first = (await start(make_client(auth_cookies(1)))).json()
        second = (await start(make_client(auth_cookies(1)))).json()
        other = (await start(make_client(auth_cookies(2)))).json()
        assert first["attempt_id"] == second["attempt_id"]
        assert other["attempt_id"] != first["attempt_id"]

    async def test_unknown_simulation(self, make_client):
        resp = await start(make_client(), slug="nope")
        assert resp.status_code == 404


class TestProgress:
    async def test_complete_and_read(self, make_client):
        client = make_client(auth_cookies(1))
        attempt_id = (await start(client)).json()["attempt_id"]

        resp = await client.post("/api/attempt/progress", json={"attempt_id": attempt_id, "task_index": 0})
        assert resp.status_code == 200
        assert resp.json()["completed_task_indices"] == [0]

        resp = await client.get("/api/attempt/progress", params={"attempt_id": attempt_id})
        assert resp.json()["completed_task_indices"] == [0]

    async def test_completion_is_idempotent(self, make_client):
        client = make_client(guest_cookies("guest-1"))
        attempt_id = (await start(client)).json()["attempt_id"]
        for _ in range(2):
            resp = await client.post("/api/attempt/progress", json={"attempt_id": attempt_id, "task_index": 1})
            assert resp.status_code == 200
        assert resp.json()["completed_task_indices"] == [1]

    async def test_out_of_range_index(self, make_client):
        client = make_client(auth_cookies(1))
        attempt_id = (await start(client)).json()["attempt_id"]
        resp = await client.post("/api/attempt/progress", json={"attempt_id": attempt_id, "task_index": TOTAL})
        assert resp.status_code == 400
        resp = await client.post("/api/attempt/progress", json={"attempt_id": attempt_id, "task_index": -1})
        assert resp.status_code == 422

    async def test_all_tasks_completes_attempt(self, make_client):
        client = make_client(auth_cookies(1))
        attempt_id = (await start(client)).json()["attempt_id"]
        for i in range(TOTAL):
            resp = await client.post("/api/attempt/progress", json={"attempt_id": attempt_id, "task_index": i})
        assert resp.json()["status"] == "completed"

    async def test_unknown_attempt(self, make_client):
        resp = await make_client(auth_cookies(1)).get("/api/attempt/progress", params={"attempt_id": "missing"})
        assert resp.status_code == 404


class TestOwnership:
    async def test_other_user_is_forbidden(self, make_client):
        attempt_id = (await start(make_client(auth_cookies(1)))).json()["attempt_id"]
        resp = await make_client(auth_cookies(2)).get("/api/attempt/progress", params={"attempt_id": attempt_id})
        assert resp.status_code == 403

    async def test_user_attempt_needs_auth(self, make_client):
        attempt_id = (await start(make_client(auth_cookies(1)))).json()["attempt_id"]
        resp = await make_client().get("/api/attempt/progress", params={"attempt_id": attempt_id})
        assert resp.status_code == 401

    async def test_guest_attempt_needs_its_session(self, make_client):
        attempt_id = (await start(make_client(guest_cookies("guest-1")))).json()["attempt_id"]
        other = await make_client(guest_cookies("guest-2")).get(
            "/api/attempt/progress", params={"attempt_id": attempt_id}
        )
        none = await make_client().get("/api/attempt/progress", params={"attempt_id": attempt_id})
        assert other.status_code == 403
        assert none.status_code == 401

    async def test_tampered_auth_cookie_is_a_guest(self, make_client):
        attempt_id = (await start(make_client(auth_cookies(1)))).json()["attempt_id"]
        cookies = auth_cookies(1)
        cookies["sim_auth"] = cookies["sim_auth"][:-1] + ("0" if cookies["sim_auth"][-1] != "0" else "1")
        resp = await make_client(cookies).get("/api/attempt/progress", params={"attempt_id": attempt_id})
        assert resp.status_code == 401


class TestReset:
    async def test_reset_clears_steps(self, make_client):
        client = make_client(auth_cookies(1))
        attempt_id = (await start(client)).json()["attempt_id"]
        for i in range(TOTAL):
            await client.post("/api/attempt/progress", json={"attempt_id": attempt_id, "task_index": i})

        resp = await client.post("/api/attempt/reset", json={"attempt_id": attempt_id})
        assert resp.json() == {"success": True}

        data = (await client.get("/api/attempt/progress", params={"attempt_id": attempt_id})).json()
        assert data["completed_task_indices"] == []
        assert data["status"] == "started"


class TestStartRace:
    async def test_second_insert_for_same_owner_is_rejected(self, session_factory):
        async with session_factory() as db:
            simulation = await progress_service.get_simulation_by_slug(db, SIM_ID)
            db.add(Attempt(simulation_id=simulation.id, user_id=1))
            await db.commit()
            db.add(Attempt(simulation_id=simulation.id, user_id=1))
            with pytest.raises(IntegrityError):
                await db.commit()

    async def test_losing_start_returns_the_winner(self, session_factory, monkeypatch):
        async with session_factory() as db:
            simulation = await progress_service.get_simulation_by_slug(db, SIM_ID)
            winner = await progress_service.start_attempt(db, simulation, None, "guest-1")
            winner_id = winner.id

            lookup = progress_service._find_attempt
            calls = []

            async def missed_first_lookup(*args):
                calls.append(args)
                if len(calls) == 1:
                    return None
                return await lookup(*args)

            monkeypatch.setattr(progress_service, "_find_attempt", missed_first_lookup)
            loser = await progress_service.start_attempt(db, simulation, None, "guest-1")

            assert loser.id == winner_id
            assert len(calls) == 2
            count = await db.execute(select(func.count(Attempt.id)))
            assert count.scalar_one() == 1
