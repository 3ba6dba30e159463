"""Deployment manifests for a finished configuration: Ollama Modelfile and a native llama.cpp bundle."""

from forge.schemas.studio import ModelfileExport, NativeExport
from forge.schemas.training import TrainingConfig

VISION_HEADER = (
    "# --- HYBRID VISION ACTIVATED ---\n"
    "# This model requires a vision projector (mmproj) for full multimodal capabilities.\n\n"
)

VISION_FOOTER = (
    "\n# Vision Bridging Settings\n"
    "ADAPTER ./vision-projector.mmproj\n\n"
    "PARAMETER temperature 0.1\n"
    "PARAMETER top_p 0.9\n"
    'SYSTEM """You are a multimodal expert. Use visual input to provide precision code solutions."""\n'
)

_ENGINE_TEMPLATE = '''from llama_cpp import Llama
from llama_cpp.llama_chat_format import Llava15ChatHandler

# n_ctx: {context_length} | multimodal: {multimodal}


def run_inference():
    chat_handler = {chat_handler}

    llm = Llama(
        model_path="./trained-brain.gguf",
        chat_handler=chat_handler,
        n_ctx={context_length},
        n_gpu_layers=-1,
    )

    print("Engine online. Type 'exit' to quit.")
    while True:
        user_input = input("You > ")
        if user_input.lower() == "exit":
            break

        response = llm.create_chat_completion(
            messages=[{{"role": "user", "content": user_input}}]
        )
        print(f"Model > {{response['choices'][0]['message']['content']}}")


if __name__ == "__main__":
    run_inference()
'''


def fallback_modelfile(config: TrainingConfig) -> str:
    return f"# Modelfile\nFROM {config.base_model}"


def build_modelfile(config: TrainingConfig, body: str) -> ModelfileExport:
    """Wrap a rendered Modelfile body with the vision projector stanza when vision is on."""
    content = body or fallback_modelfile(config)
    if config.vision_enabled:
        content = VISION_HEADER + content + VISION_FOOTER
    return ModelfileExport(base_model=config.base_model, vision_enabled=config.vision_enabled, content=content)


def build_native(config: TrainingConfig) -> NativeExport:
    command = "./llama-server -m trained-brain.gguf"
    if config.vision_enabled:
        command += " --mmproj vision-projector.mmproj"
    command += f" --port 8080 --ctx-size {config.context_length}"

    script = _ENGINE_TEMPLATE.format(
        context_length=config.context_length,
        multimodal="TRUE" if config.vision_enabled else "FALSE",
        chat_handler=(
            'Llava15ChatHandler(clip_model_path="./vision-projector.mmproj")'
            if config.vision_enabled
            else "None"
        ),
    )
    return NativeExport(server_command=command, engine_script=script)
