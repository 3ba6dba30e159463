class TestExport:
    async def test_modelfile(self, client):
        response = await client.get("/export/modelfile")
        assert response.status_code == 200
        data = response.json()
        assert data["base_model"] == "llama3:8b"
        assert data["content"].startswith("FROM llama3:8b")

    async def test_modelfile_without_credentials_falls_back(self, client):
        await client.delete("/studio/credentials")
        response = await client.get("/export/modelfile")
        assert response.status_code == 200
        assert response.json()["content"] == "# Modelfile\nFROM llama3:8b"

    async def test_modelfile_raw(self, client):
        response = await client.get("/export/modelfile/raw")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert "Modelfile" in response.headers["content-disposition"]
        assert response.text.startswith("FROM llama3:8b")

    async def test_native(self, client):
        config = (await client.get("/studio/config")).json()
        config["vision_enabled"] = True
        await client.put("/studio/config", json=config)

        response = await client.get("/export/native")
        assert response.status_code == 200
        data = response.json()
        assert "--mmproj vision-projector.mmproj" in data["server_command"]
        assert "from llama_cpp import Llama" in data["engine_script"]
