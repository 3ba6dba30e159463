"""Standalone mock of the Gemini generateContent endpoint for local development and testing.

Run standalone: uvicorn tests.mocks.fake_gemini:app --port 8002

The reply is chosen from the prompt text. Special API keys exercise error paths:
``bad-key`` → 403, ``quota-key`` → 429, ``garbage-key`` → non-JSON text.

Media: requests asking for the AUDIO modality get inline PCM (none when the text
contains "silent"). Video jobs finish on the second poll; prompts containing
"explode" end in an operation error and "stall" never finish.
"""

import base64
import itertools
import json

from fastapi import FastAPI, Header, Request
from fastapi.responses import JSONResponse, Response

app = FastAPI(title="Fake Gemini")

LESSONS = [
    {
        "instruction": "What is a Python decorator?",
        "response": "A callable that wraps another function to extend its behaviour.",
        "thought": "Define the concept, then say what it is for.",
    },
    {
        "instruction": "How do you reverse a list in place?",
        "response": "Call list.reverse().",
        "thought": "In place means no new list, so not slicing.",
    },
    {"instruction": "", "response": "dropped: empty instruction"},
]

PLAN = {
    "config": {
        "base_model": "mistral:v0.3",
        "epochs": 5,
        "learning_rate": 0.0001,
        "batch_size": 6,
        "context_length": 4000,
        "vision_enabled": True,
        "vision_encoder": "SigLIP-SO400M",
        "audio_enabled": False,
        "video_enabled": False,
    },
    "mission_briefing": "Train a concise code reviewer.",
    "protocol": ["Collect examples", "Fine-tune", "Evaluate"],
    "lessons": [
        {"instruction": "Review: x = x + 1", "response": "Prefer x += 1."},
        {"instruction": "Review: if x == True", "response": "Use if x."},
    ],
}

RANKING = {"winner": "B", "critique": "Option B handles the empty case."}

TOOL_LESSONS = [
    {"instruction": "What's the weather in Oslo?", "response": 'get_weather({"city": "Oslo"})'},
]

MODELFILE = "FROM llama3:8b\nPARAMETER temperature 0.7"


def _reply(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}], "role": "model"}}]}


def _verdicts(prompt: str) -> list[dict]:
    dataset = json.loads(prompt.split("Dataset: ", 1)[1])
    verdicts = [{"id": "unknown-id", "status": "pass"}]
    for i, item in enumerate(dataset):
        if i == 0:
            verdicts.append({"id": item["id"], "status": "FAIL", "suggestion": "Add more detail."})
        else:
            verdicts.append({"id": item["id"], "status": "pass"})
    return verdicts


@app.post("/v1beta/models/{model}:generateContent")
async def generate_content(model: str, request: Request, x_goog_api_key: str = Header(default="")):
    if x_goog_api_key == "bad-key":
        return JSONResponse(status_code=403, content={"error": {"message": "API key not valid."}})
    if x_goog_api_key == "quota-key":
        return JSONResponse(status_code=429, content={"error": {"message": "Quota exceeded for metric."}})

    body = await request.json()
    prompt = body["contents"][0]["parts"][0]["text"]

    if x_goog_api_key == "garbage-key":
        return _reply("this is not json")
    if "AUDIO" in (body.get("generationConfig") or {}).get("responseModalities", []):
        return audio_reply(prompt)
    if "instruction-response pairs" in prompt:
        return _reply(json.dumps(LESSONS))
    if "AI orchestrator" in prompt:
        return _reply(json.dumps(PLAN))
    if "Review this training dataset" in prompt:
        return _reply(json.dumps(_verdicts(prompt)))
    if "master AI critic" in prompt:
        return _reply(json.dumps(RANKING))
    if "call the tool" in prompt:
        return _reply(json.dumps(TOOL_LESSONS))
    if "Modelfile" in prompt:
        return _reply(MODELFILE)
    return _reply("null")


# ── Media ───────────────────────────────────────────────────────────────────

AUDIO_BYTES = b"\x00\x01fake-pcm"
VIDEO_BYTES = b"\x00\x00\x00\x18ftypmp42fake-video"

_operation_ids = itertools.count(1)
_operations: dict[str, dict] = {}


@app.post("/v1beta/models/{model}:predictLongRunning")
async def predict_long_running(model: str, request: Request, x_goog_api_key: str = Header(default="")):
    if x_goog_api_key == "bad-key":
        return JSONResponse(status_code=403, content={"error": {"message": "API key not valid."}})

    body = await request.json()
    name = f"models/{model}/operations/op-{next(_operation_ids)}"
    _operations[name] = {"prompt": body["instances"][0]["prompt"], "polls": 0}
    return {"name": name}


@app.get("/v1beta/models/{model}/operations/{op_id}")
async def get_operation(model: str, op_id: str, request: Request):
    name = f"models/{model}/operations/{op_id}"
    op = _operations.get(name)
    if op is None:
        return JSONResponse(status_code=404, content={"error": {"message": "Operation not found."}})

    op["polls"] += 1
    if "stall" in op["prompt"] or op["polls"] < 2:
        return {"name": name, "done": False}
    if "explode" in op["prompt"]:
        return {"name": name, "done": True, "error": {"code": 3, "message": "Prompt rejected by safety filter."}}
    uri = f"{str(request.base_url).rstrip('/')}/v1beta/files/{op_id}:download?alt=media"
    return {
        "name": name,
        "done": True,
        "response": {"generateVideoResponse": {"generatedSamples": [{"video": {"uri": uri}}]}},
    }


@app.get("/v1beta/files/{file_id}:download")
async def download_file(file_id: str):
    return Response(content=VIDEO_BYTES, media_type="video/mp4")


def audio_reply(text: str) -> dict:
    if "silent" in text:
        return {"candidates": [{"content": {"parts": [], "role": "model"}}]}
    data = base64.b64encode(AUDIO_BYTES).decode("ascii")
    return {
        "candidates": [
            {"content": {"parts": [{"inlineData": {"mimeType": "audio/L16;rate=24000", "data": data}}]}}
        ]
    }
