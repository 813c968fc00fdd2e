import asyncio
import logging
from typing import Optional

import click
from dotenv import load_dotenv

load_dotenv()

from mathchat.client.camera import CameraCapture  # noqa: E402
from mathchat.client.chat import ChatSession  # noqa: E402
from mathchat.client.dispatcher import MathSolverClient  # noqa: E402
from mathchat.client.render import render_message  # noqa: E402
from mathchat.core.config import settings  # noqa: E402
from mathchat.core.exceptions import CameraError  # noqa: E402
from mathchat.services.images import file_to_data_uri  # noqa: E402

logger = logging.getLogger(__name__)


def _capture_from_camera(device: int) -> Optional[str]:
    try:
        with CameraCapture(device=device) as camera:
            click.echo("Camera ready, press Enter to capture (Ctrl+C to cancel)")
            click.pause(info="")
            return camera.capture_photo()
    except CameraError as e:
        logger.error(f"Camera access error: {e.message}")
        click.echo(f"Camera unavailable: {e.message}", err=True)
        return None


async def _submit_and_print(session: ChatSession, prompt: str, image: Optional[str]) -> None:
    before = len(session.messages)
    await session.submit(prompt, image)
    for message in session.messages[before:]:
        click.echo(render_message(message))
        click.echo("")


@click.group()
@click.option("--proxy-url", default=None, help="Base URL of the solve-math proxy")
@click.option("--anon-key", default=None, help="Anonymous key for the proxy gateway")
@click.option("--log-level", default=settings.LOG_LEVEL, show_default=True)
@click.pass_context
def main(ctx, proxy_url, anon_key, log_level):
    """MathChat: step-by-step math solutions from a hosted model."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    ctx.obj = {"proxy_url": proxy_url, "anon_key": anon_key}


@main.command()
@click.option("--host", default=settings.API_HOST, show_default=True)
@click.option("--port", default=settings.API_PORT, show_default=True, type=int)
@click.option("--reload", is_flag=True, default=settings.DEBUG)
def serve(host, port, reload):
    """Run the solve-math proxy."""
    import uvicorn

    logger.info(f"Starting {settings.APP_NAME} on {host}:{port}")
    uvicorn.run("mathchat.main:app", host=host, port=port, reload=reload)


@main.command()
@click.argument("prompt", required=False, default="")
@click.option("--image", "image_path", type=click.Path(exists=True, dir_okay=False), help="Photo of the problem")
@click.option("--camera", is_flag=True, help="Capture the problem with the camera")
@click.option("--device", default=0, show_default=True, type=int, help="Camera device index")
@click.pass_context
def ask(ctx, prompt, image_path, camera, device):
    """Solve a single problem and print the solution."""
    image = None
    if image_path:
        image = file_to_data_uri(image_path)
    elif camera:
        image = _capture_from_camera(device)

    if not prompt.strip() and not image:
        raise click.UsageError("Give a PROMPT, --image or --camera")

    session = ChatSession(MathSolverClient(ctx.obj["proxy_url"], ctx.obj["anon_key"]))
    asyncio.run(_submit_and_print(session, prompt, image))


@main.command()
@click.option("--device", default=0, show_default=True, type=int, help="Camera device index")
@click.pass_context
def chat(ctx, device):
    """Interactive session. Commands: /image PATH, /camera, /reset, /quit."""
    session = ChatSession(MathSolverClient(ctx.obj["proxy_url"], ctx.obj["anon_key"]))
    pending_image: Optional[str] = None

    click.echo("Ask a math problem. /image PATH or /camera attaches a photo to the next question.")
    while True:
        try:
            line = click.prompt("you", default="", show_default=False)
        except (EOFError, click.Abort):
            break

        command = line.strip()
        if command in ("/quit", "/exit"):
            break
        if command == "/reset":
            session.reset()
            pending_image = None
            click.echo("Transcript cleared.")
            continue
        if command == "/camera":
            pending_image = _capture_from_camera(device)
            if pending_image:
                click.echo("Photo attached.")
            continue
        if command.startswith("/image"):
            path = command[len("/image"):].strip()
            try:
                pending_image = file_to_data_uri(path)
                click.echo("Image attached.")
            except OSError as e:
                click.echo(f"Could not read image: {str(e)}", err=True)
            continue

        if not command and not pending_image:
            continue

        asyncio.run(_submit_and_print(session, line, pending_image))
        pending_image = None


if __name__ == "__main__":
    main()
