import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from forge.core.ids import sequential_ids
from forge.schemas.studio import ProviderCredentials
from forge.services.dataset import DatasetStore
from forge.services.inference.ollama import OllamaRuntime
from forge.services.providers.gemini import GeminiProvider
from forge.services.studio import Studio
from forge.services.training.controller import RunController
from forge.services.training.versions import VersionStore
from tests.mocks.timing import fixed_clock, instant_sleep, parked_sleep


def make_controller(**kwargs) -> RunController:
    kwargs.setdefault("sleep", instant_sleep)
    kwargs.setdefault("clock", fixed_clock)
    return RunController(VersionStore(id_factory=sequential_ids("v")), **kwargs)


@pytest_asyncio.fixture
async def controller():
    """Controller whose sessions run to completion within a few loop turns."""
    ctrl = make_controller()
    yield ctrl
    ctrl.shutdown()


@pytest_asyncio.fixture
async def parked_controller():
    """Controller that enters TRAINING right after start and then never ticks on its own."""
    ctrl = make_controller(sleep=parked_sleep, settle_delay=0.0, tick_interval=1.0)
    yield ctrl
    ctrl.shutdown()


@pytest_asyncio.fixture
async def gemini_provider():
    """GeminiProvider wired to the fake Gemini app via in-process ASGITransport."""
    from tests.mocks.fake_gemini import app as fake_gemini_app

    client = AsyncClient(transport=ASGITransport(app=fake_gemini_app), base_url="http://fake-gemini")
    provider = GeminiProvider(
        base_url="http://fake-gemini",
        http_client=client,
        id_factory=sequential_ids("gen"),
        sleep=instant_sleep,
    )
    yield provider
    await client.aclose()


@pytest_asyncio.fixture
async def ollama_runtime():
    from tests.mocks.fake_ollama import app as fake_ollama_app

    client = AsyncClient(transport=ASGITransport(app=fake_ollama_app), base_url="http://fake-ollama")
    yield OllamaRuntime(base_url="http://fake-ollama", http_client=client)
    await client.aclose()


@pytest_asyncio.fixture
async def studio(controller, gemini_provider, ollama_runtime):
    """Studio wired to the fakes, with a provider credential already set."""
    return Studio(
        controller=controller,
        dataset=DatasetStore(id_factory=sequential_ids("lesson")),
        provider=gemini_provider,
        runtime=ollama_runtime,
        credentials=ProviderCredentials(api_key="test-key"),
        id_factory=sequential_ids("tool"),
    )


@pytest_asyncio.fixture
async def forge_app(studio):
    """FastAPI app with the test studio installed in place of the lifespan one."""
    from forge.main import app

    app.state.studio = studio
    yield app


@pytest_asyncio.fixture
async def client(forge_app):
    transport = ASGITransport(app=forge_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def controller_factory():
    """Build controllers with extra keyword overrides (curve, auto_capture, ...)."""
    built = []

    def _make(**kwargs) -> RunController:
        ctrl = make_controller(**kwargs)
        built.append(ctrl)
        return ctrl

    yield _make
    for ctrl in built:
        ctrl.shutdown()


@pytest_asyncio.fixture
async def parked_client(client, studio, parked_controller):
    """Client whose studio drives the parked controller: a started run stays in TRAINING."""
    studio.controller = parked_controller
    yield client
