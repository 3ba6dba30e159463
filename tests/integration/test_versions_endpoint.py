from forge.schemas.training import RunStatus
from tests.mocks.timing import spin


async def _complete_run(client, studio, lessons: int = 2):
    for i in range(lessons):
        await client.post("/studio/dataset/lessons", json={"instruction": f"q{i}", "response": f"r{i}"})
    await client.post("/training/run/start")
    await studio.controller.join()


class TestVersions:
    async def test_empty_list(self, client):
        response = await client.get("/training/versions")
        assert response.status_code == 200
        assert response.json() == {"versions": [], "total": 0}

    async def test_capture_and_get(self, client, studio):
        await _complete_run(client, studio)

        response = await client.post("/training/versions", json={"name": "first"})
        assert response.status_code == 201
        version = response.json()
        assert version["id"] == "v-1"
        assert version["status"] == "COMPLETED"
        assert version["progress"] == 100
        assert len(version["metrics"]) == 30

        listed = (await client.get("/training/versions")).json()
        assert listed["total"] == 1
        assert listed["versions"][0]["steps"] == 30

        response = await client.get("/training/versions/v-1")
        assert response.status_code == 200
        assert response.json()["name"] == "first"

    async def test_capture_requires_name(self, client):
        response = await client.post("/training/versions", json={"name": ""})
        assert response.status_code == 422

    async def test_get_unknown(self, client):
        response = await client.get("/training/versions/missing")
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "not_found"

    async def test_restore(self, client, studio):
        await _complete_run(client, studio)
        await client.post("/training/versions", json={"name": "first"})

        config = (await client.get("/studio/config")).json()
        config["epochs"] = 1
        await client.put("/studio/config", json=config)
        await client.post("/training/run/start")
        await studio.controller.join()
        assert (await client.get("/training/run")).json()["step"] == 10

        response = await client.post("/training/versions/v-1/restore")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "COMPLETED"
        assert data["step"] == 30
        assert data["config"]["epochs"] == 3

        # The restored config becomes the working config
        assert (await client.get("/studio/config")).json()["epochs"] == 3

    async def test_restore_while_training_conflicts(self, parked_client, studio):
        await parked_client.post("/studio/dataset/lessons", json={"instruction": "q", "response": "r"})
        await parked_client.post("/training/run/start")
        await spin()
        assert studio.controller.status is RunStatus.TRAINING
        await parked_client.post("/training/versions", json={"name": "live"})

        response = await parked_client.post("/training/versions/v-1/restore")
        assert response.status_code == 409
        assert response.json()["error"]["code"] == "concurrent_restore"

        response = await parked_client.post("/training/run/interrupt")
        assert response.json()["accepted"] is True
        response = await parked_client.post("/training/versions/v-1/restore")
        assert response.status_code == 200
        assert response.json()["status"] == "TRAINING"

    async def test_delete(self, client, studio):
        await _complete_run(client, studio)
        await client.post("/training/versions", json={"name": "first"})

        response = await client.delete("/training/versions/v-1")
        assert response.status_code == 204
        response = await client.delete("/training/versions/v-1")
        assert response.status_code == 404
