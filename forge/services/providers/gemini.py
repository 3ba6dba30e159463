"""Gemini content provider over the public generateContent REST endpoint."""

import asyncio
import base64
import json
import re
from collections.abc import Awaitable, Callable

import httpx
import structlog

from forge.core.exceptions import ProviderCredentialError, ProviderUnavailableError
from forge.core.ids import IdFactory, new_id
from forge.schemas.dataset import ForgePlan, LessonVerdict, PreferenceRanking, TrainingPair
from forge.schemas.studio import ProviderCredentials
from forge.schemas.training import PRESET_MODELS, ToolDefinition, TrainingConfig
from forge.services.providers.base import ContentProvider, coerce_plan_config

logger = structlog.get_logger()

_QUOTA_RE = re.compile(r"Quota exceeded", re.IGNORECASE)
_RATE_LIMIT_RE = re.compile(r"(rate.?limit|resource.?exhausted|429)", re.IGNORECASE)

# ── Response schemas (Gemini OpenAPI subset) ────────────────────────────────

_LESSON_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "instruction": {"type": "STRING"},
        "response": {"type": "STRING"},
        "thought": {"type": "STRING"},
    },
}

_PLAN_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "config": {
            "type": "OBJECT",
            "properties": {
                "base_model": {"type": "STRING"},
                "epochs": {"type": "NUMBER"},
                "learning_rate": {"type": "NUMBER"},
                "batch_size": {"type": "NUMBER"},
                "context_length": {"type": "NUMBER"},
                "vision_enabled": {"type": "BOOLEAN"},
                "vision_encoder": {"type": "STRING"},
                "audio_enabled": {"type": "BOOLEAN"},
                "video_enabled": {"type": "BOOLEAN"},
            },
        },
        "mission_briefing": {"type": "STRING"},
        "protocol": {"type": "ARRAY", "items": {"type": "STRING"}},
        "lessons": {"type": "ARRAY", "items": _LESSON_SCHEMA},
    },
    "required": ["config", "mission_briefing", "protocol", "lessons"],
}

_VERDICT_SCHEMA = {
    "type": "ARRAY",
    "items": {
        "type": "OBJECT",
        "properties": {
            "id": {"type": "STRING"},
            "status": {"type": "STRING"},
            "suggestion": {"type": "STRING"},
        },
        "required": ["id", "status"],
    },
}

_RANKING_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "winner": {"type": "STRING", "description": "Must be 'A' or 'B'"},
        "critique": {"type": "STRING", "description": "Technical justification for the choice"},
    },
    "required": ["winner", "critique"],
}


def _simplify_error(detail: str) -> str:
    """Condense a verbose API error into a short user-facing string."""
    if _QUOTA_RE.search(detail):
        return "Gemini quota exceeded. See https://ai.google.dev/gemini-api/docs/rate-limits"
    if _RATE_LIMIT_RE.search(detail):
        return "Gemini rate limit hit. Wait a moment and retry."
    if len(detail) > 120:
        return detail[:120] + "…"
    return detail


def _extract_text(data: dict) -> str:
    candidates = data.get("candidates") or []
    if not candidates:
        return ""
    parts = (candidates[0].get("content") or {}).get("parts") or []
    return "".join(p.get("text", "") for p in parts if isinstance(p, dict))


def _extract_inline_data(data: dict) -> str:
    """Base64 payload of the first inline (binary) part, or ''."""
    candidates = data.get("candidates") or []
    if not candidates:
        return ""
    for part in (candidates[0].get("content") or {}).get("parts") or []:
        if isinstance(part, dict) and (part.get("inlineData") or {}).get("data"):
            return part["inlineData"]["data"]
    return ""


class GeminiProvider(ContentProvider):
    def __init__(
        self,
        base_url: str,
        http_client: httpx.AsyncClient | None = None,
        text_model: str = "gemini-3-flash-preview",
        planner_model: str = "gemini-1.5-flash-latest",
        tts_model: str = "gemini-2.5-flash-preview-tts",
        video_model: str = "veo-3.1-fast-generate-preview",
        video_poll_interval: float = 5.0,
        video_poll_attempts: int = 120,
        id_factory: IdFactory = new_id,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.base_url = base_url.rstrip("/")
        self.text_model = text_model
        self.planner_model = planner_model
        self.tts_model = tts_model
        self.video_model = video_model
        self.video_poll_interval = video_poll_interval
        self.video_poll_attempts = video_poll_attempts
        self._id_factory = id_factory
        self._sleep = sleep
        self._client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(connect=5.0, read=120.0, write=5.0, pool=5.0)
        )

    async def generate_lessons(
        self,
        credentials: ProviderCredentials | None,
        topic: str,
        count: int = 5,
        include_thought: bool = False,
    ) -> list[TrainingPair]:
        required = ["instruction", "response", "thought"] if include_thought else ["instruction", "response"]
        prompt = (
            f"Generate {count} high-quality instruction-response pairs for fine-tuning an LLM on: {topic}.\n"
            + (
                'For each pair, include a "thought" field that explains the step-by-step reasoning '
                "(CoT) required to arrive at the answer.\n"
                if include_thought
                else ""
            )
            + "Each pair should be accurate, concise, and professional."
        )
        schema = {"type": "ARRAY", "items": {**_LESSON_SCHEMA, "required": required}}
        raw = await self._generate_json(credentials, self.text_model, prompt, schema)
        return self._to_lessons(raw)

    async def plan_mission(
        self,
        credentials: ProviderCredentials | None,
        mission: str,
        available_models: list[str],
        base_config: TrainingConfig,
    ) -> ForgePlan:
        models = available_models or list(PRESET_MODELS)
        prompt = (
            f'Act as a world-class AI orchestrator. Mission: "{mission}".\n'
            "If the mission involves voice acting, focus on scripts, phonetic markers and emotional "
            "resonance, and enable audio features.\n"
            "If the mission involves video editing, focus on pacing, narrative flow and visual "
            "consistency, and enable vision and video features.\n"
            "General rules:\n"
            f"1. Select base_model from: {', '.join(models)}.\n"
            "2. Determine config (epochs, learning_rate, batch_size, context_length, vision).\n"
            "3. Generate 10 lessons.\n"
            "Return as JSON."
        )
        raw = await self._generate_json(credentials, self.planner_model, prompt, _PLAN_SCHEMA)
        if not isinstance(raw, dict) or not isinstance(raw.get("lessons"), list):
            raise ProviderUnavailableError("Failed to generate mission plan.")

        return ForgePlan(
            config=coerce_plan_config(raw.get("config") or {}, base_config),
            lessons=self._to_lessons(raw["lessons"]),
            mission_briefing=str(raw.get("mission_briefing", "")),
            protocol=[str(p) for p in raw.get("protocol") or []],
        )

    async def verify_dataset(
        self,
        credentials: ProviderCredentials | None,
        lessons: list[TrainingPair],
    ) -> list[LessonVerdict]:
        payload = [{"id": p.id, "instruction": p.instruction, "response": p.response} for p in lessons]
        prompt = (
            "Review this training dataset for quality. For each entry, mark as 'pass' or 'fail'.\n"
            f"Dataset: {json.dumps(payload)}"
        )
        raw = await self._generate_json(credentials, self.text_model, prompt, _VERDICT_SCHEMA)
        known = {p.id for p in lessons}
        verdicts = []
        for item in raw if isinstance(raw, list) else []:
            if not isinstance(item, dict) or item.get("id") not in known:
                continue
            status = "pass" if str(item.get("status", "")).lower() == "pass" else "fail"
            verdicts.append(LessonVerdict(id=item["id"], status=status, suggestion=item.get("suggestion")))
        return verdicts

    async def rank_preference(
        self,
        credentials: ProviderCredentials | None,
        prompt: str,
        option_a: str,
        option_b: str,
    ) -> PreferenceRanking:
        text = (
            "As a master AI critic and senior software architect, evaluate these two AI outputs "
            f'for the prompt: "{prompt}".\n\n'
            "CRITIQUE CRITERIA:\n1. Functional Correctness\n2. Maintainability\n3. Conciseness\n\n"
            f'OPTION A:\n"""\n{option_a}\n"""\n\nOPTION B:\n"""\n{option_b}\n"""\n\n'
            "Select the winner and provide a technical critique."
        )
        raw = await self._generate_json(credentials, self.planner_model, text, _RANKING_SCHEMA)
        winner = str(raw.get("winner", "")).strip().upper() if isinstance(raw, dict) else ""
        if winner not in ("A", "B"):
            raise ProviderUnavailableError("Provider returned no valid winner.")
        return PreferenceRanking(winner=winner, critique=str(raw.get("critique", "")))

    async def generate_tool_lessons(
        self,
        credentials: ProviderCredentials | None,
        tool: ToolDefinition,
        count: int = 3,
    ) -> list[TrainingPair]:
        prompt = (
            f"Generate {count} training lessons teaching a model to call the tool '{tool.name}'.\n"
            f"Description: {tool.description}\nParameters schema: {tool.parameters}"
        )
        schema = {"type": "ARRAY", "items": {**_LESSON_SCHEMA, "required": ["instruction", "response"]}}
        raw = await self._generate_json(credentials, self.text_model, prompt, schema)
        return self._to_lessons(raw)

    async def render_modelfile(
        self,
        credentials: ProviderCredentials | None,
        config: TrainingConfig,
    ) -> str:
        prompt = (
            f'Create an Ollama Modelfile for a model based on "{config.base_model}".\n'
            f"Config: Epochs={config.epochs}, LR={config.learning_rate}, Batch={config.batch_size}."
        )
        data = await self._generate(credentials, self.text_model, {"contents": [{"parts": [{"text": prompt}]}]})
        return _extract_text(data) or f"# Modelfile\nFROM {config.base_model}"

    async def synthesize_audio(
        self,
        credentials: ProviderCredentials | None,
        text: str,
        voice: str = "Kore",
    ) -> str:
        body = {
            "contents": [{"parts": [{"text": text}]}],
            "generationConfig": {
                "responseModalities": ["AUDIO"],
                "speechConfig": {"voiceConfig": {"prebuiltVoiceConfig": {"voiceName": voice}}},
            },
        }
        data = await self._generate(credentials, self.tts_model, body)
        audio = _extract_inline_data(data)
        if not audio:
            raise ProviderUnavailableError("Provider returned no audio.")
        return f"data:audio/pcm;base64,{audio}"

    async def synthesize_video(
        self,
        credentials: ProviderCredentials | None,
        prompt: str,
    ) -> str:
        """Start a Veo job, poll it to completion and inline the first sample."""
        body = {
            "instances": [{"prompt": prompt}],
            "parameters": {"sampleCount": 1, "resolution": "720p", "aspectRatio": "16:9"},
        }
        url = f"{self.base_url}/v1beta/models/{self.video_model}:predictLongRunning"
        operation = (await self._send(credentials, self.video_model, "POST", url, body=body)).json()

        polls = 0
        while not operation.get("done"):
            if polls >= self.video_poll_attempts:
                logger.warning("video_generation_timed_out", operation=operation.get("name"), polls=polls)
                raise ProviderUnavailableError("Video generation did not finish in time.")
            polls += 1
            await self._sleep(self.video_poll_interval)
            poll_url = f"{self.base_url}/v1beta/{operation['name']}"
            operation = (await self._send(credentials, self.video_model, "GET", poll_url)).json()

        if operation.get("error"):
            message = _simplify_error(str((operation["error"] or {}).get("message", "")))
            raise ProviderUnavailableError("Video generation failed.", details={"detail": message})

        samples = ((operation.get("response") or {}).get("generateVideoResponse") or {}).get("generatedSamples") or []
        uri = ((samples[0] if samples else {}).get("video") or {}).get("uri")
        if not uri:
            raise ProviderUnavailableError("Provider returned no video.")

        video = await self._send(credentials, self.video_model, "GET", uri)
        logger.info("video_generated", model=self.video_model, size=len(video.content))
        return "data:video/mp4;base64," + base64.b64encode(video.content).decode("ascii")

    async def close(self):
        """Close the underlying HTTP client."""
        await self._client.aclose()

    # ── Transport ────────────────────────────────────────────────────────────

    async def _generate_json(
        self,
        credentials: ProviderCredentials | None,
        model: str,
        prompt: str,
        schema: dict,
    ):
        body = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": schema,
            },
        }
        data = await self._generate(credentials, model, body)
        text = _extract_text(data)
        try:
            return json.loads(text or "null")
        except json.JSONDecodeError as e:
            logger.warning("provider_reply_unparsable", model=model, error=str(e))
            raise ProviderUnavailableError("Content provider returned malformed JSON.")

    async def _generate(self, credentials: ProviderCredentials | None, model: str, body: dict) -> dict:
        url = f"{self.base_url}/v1beta/models/{model}:generateContent"
        return (await self._send(credentials, model, "POST", url, body=body)).json()

    async def _send(
        self,
        credentials: ProviderCredentials | None,
        model: str,
        method: str,
        url: str,
        body: dict | None = None,
    ) -> httpx.Response:
        if credentials is None:
            raise ProviderCredentialError()

        try:
            response = await self._client.request(
                method,
                url,
                json=body,
                headers={"x-goog-api-key": credentials.api_key},
                follow_redirects=True,
            )
            response.raise_for_status()
            return response
        except httpx.ConnectError as e:
            logger.warning("provider_request_failed", model=model, error=str(e))
            raise ProviderUnavailableError(f"Cannot connect to content provider at {self.base_url}: {e}")
        except httpx.HTTPStatusError as e:
            detail = _simplify_error(e.response.text)
            logger.warning("provider_request_failed", model=model, status=e.response.status_code, detail=detail)
            if e.response.status_code in (401, 403):
                raise ProviderCredentialError("Content provider rejected the credential.")
            raise ProviderUnavailableError(
                f"Content provider returned error: {e.response.status_code}",
                details={"detail": detail},
            )
        except httpx.TimeoutException:
            logger.warning("provider_request_failed", model=model, error="timeout")
            raise ProviderUnavailableError("Content provider request timed out.")

    def _to_lessons(self, raw) -> list[TrainingPair]:
        lessons = []
        for item in raw if isinstance(raw, list) else []:
            if not isinstance(item, dict) or not item.get("instruction") or not item.get("response"):
                continue
            lessons.append(
                TrainingPair(
                    id=self._id_factory(),
                    instruction=str(item["instruction"]),
                    response=str(item["response"]),
                    thought=item.get("thought") or None,
                )
            )
        return lessons
