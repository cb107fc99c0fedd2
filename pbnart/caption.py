import json
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from pathlib import Path
from typing import Any, Callable, Dict, Union
import typer

from pbnart.artwork import Caption, Difficulty, caption_from_dict

CAPTION_TIMEOUT_SECONDS = 30.0

PLACEHOLDER_CAPTION = Caption(
    title="My Masterpiece",
    description="A beautiful custom paint-by-numbers canvas.",
    difficulty=Difficulty.MEDIUM,
    fun_fact="Paint by numbers was invented in the 1950s!",
)

Captioner = Callable[[Any], Dict[str, Any]]

parse_caption = caption_from_dict


def request_caption(
    captioner: Captioner,
    image_ref: Any,
    timeout: float = CAPTION_TIMEOUT_SECONDS
) -> Caption:
    """
    Ask an external captioning service about the source image.

    The service runs on a worker thread. If it raises, returns something that is
    not a valid caption, or takes longer than `timeout` seconds, the placeholder
    caption is returned instead; this function never raises, so a slow or broken
    service cannot hold up or spoil an artwork that is already finished.

    Args:
        captioner: Callable taking the image reference and returning a dict with
            title, description, difficulty (Easy/Medium/Hard) and funFact.
        image_ref: Whatever the captioner needs to find the image (path, bytes, URL).
        timeout (float): Seconds to wait for the service. Default: 30.

    Returns:
        Caption: The service's caption, or PLACEHOLDER_CAPTION.
    """
    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="pbnart-caption")
    future = executor.submit(captioner, image_ref)
    try:
        return parse_caption(future.result(timeout=timeout))
    except FutureTimeoutError:
        typer.secho(f"Warning: Captioning timed out after {timeout:g}s, using placeholder caption.", fg=typer.colors.YELLOW)
    except Exception as e:
        typer.secho(f"Warning: Captioning failed ({e}), using placeholder caption.", fg=typer.colors.YELLOW)
    finally:
        # Do not wait for a hung service; the worker thread is abandoned.
        executor.shutdown(wait=False)
    return PLACEHOLDER_CAPTION


def load_caption_file(caption_path: Union[str, Path]) -> Dict[str, Any]:
    """Captioner that reads a caption a service already produced, stored as JSON."""
    with open(caption_path, "r", encoding="utf-8") as f:
        return json.load(f)
