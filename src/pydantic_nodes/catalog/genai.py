"""Generative media nodes.

Image generation follows the submit-then-poll protocol common to hosted
generation APIs: a job is submitted, its ``polling_url`` is read until the
status is ``Ready`` or ``Failed``, and the finished sample is copied into the
workflow's object storage.
"""

import asyncio
import logging
import mimetypes
from pathlib import Path
import time
from typing import Any
from typing import Literal
import uuid

import aiohttp
from pydantic import BaseModel
from pydantic import Field as ModelField

from pydantic_nodes.catalog.ports import FLOW_IN
from pydantic_nodes.catalog.ports import FLOW_OUT
from pydantic_nodes.catalog.ports import TOOL_OUT
from pydantic_nodes.core.config import Field
from pydantic_nodes.core.config import FieldKind
from pydantic_nodes.core.config import NodeConfig
from pydantic_nodes.core.config import Port
from pydantic_nodes.core.context import ServerContext
from pydantic_nodes.core.errors import ExternalCallError
from pydantic_nodes.core.errors import InputError
from pydantic_nodes.core.errors import PollingTimeoutError
from pydantic_nodes.core.http import download
from pydantic_nodes.core.http import request_json
from pydantic_nodes.core.values import as_port_values
from pydantic_nodes.core.values import resolve
from pydantic_nodes.nodes.base import BaseNode
from pydantic_nodes.nodes.base import NodeResult
from pydantic_nodes.nodes.base import PortEntries
from pydantic_nodes.nodes.base import RunContext
from pydantic_nodes.nodes.tool import NodeTool
from pydantic_nodes.nodes.tool import ToolBuilder
from pydantic_nodes.registry import register

logger = logging.getLogger(__name__)

MODEL_CREDITS: dict[str, float] = {
    "standard": 4,
    "pro": 6,
    "ultra": 8,
}

type ImageModel = Literal["standard", "pro", "ultra"]
type AspectRatio = Literal["1:1", "16:9", "9:16", "4:3", "3:4"]


class ImageParams(BaseModel):
    """Parameters of the image generation tool."""

    prompt: str = ModelField(
        min_length=1, description="Detailed description of the image to generate."
    )
    model: ImageModel = ModelField(
        default="standard", description="Quality tier of the generation model."
    )
    aspect_ratio: AspectRatio = ModelField(
        default="1:1", description="Aspect ratio of the image."
    )


class GenerationJob(BaseModel):
    """Job handle returned by the submit call."""

    id: str
    polling_url: str


@register
class ImageGenNode(BaseNode):
    """Generate an image from a prompt and store it for the workflow."""

    config = NodeConfig(
        title="Image Generation",
        category="genai",
        type="image_gen_node",
        desc="Generates an image from a text prompt",
        credit=MODEL_CREDITS["standard"],
        inputs=(
            FLOW_IN,
            Port(name="Prompt", type="Text", desc="What the image should show"),
        ),
        outputs=(
            FLOW_OUT,
            Port(name="Image Link", type="Text", desc="URL of the stored image"),
            TOOL_OUT,
        ),
        fields=(
            Field(
                name="Prompt",
                type=FieldKind.TEXT_AREA,
                desc="What the image should show",
                value="",
            ),
            Field(
                name="Model",
                type=FieldKind.SELECT,
                desc="Quality tier",
                value="standard",
                options=tuple(MODEL_CREDITS),
            ),
            Field(
                name="Aspect Ratio",
                type=FieldKind.SELECT,
                desc="Aspect ratio",
                value="1:1",
                options=("1:1", "16:9", "9:16", "4:3", "3:4"),
            ),
            Field(name="IMAGE_API_URL", type=FieldKind.ENV, desc="Generation API"),
            Field(name="IMAGE_API_KEY", type=FieldKind.ENV, desc="Generation API key"),
        ),
        difficulty="medium",
        tags=("image", "generation", "genai"),
    )

    def estimate_usage(
        self,
        inputs: PortEntries,
        contents: PortEntries,
        server_data: ServerContext,
    ) -> float:
        """Price an execution by the selected model tier."""
        try:
            model = resolve(
                as_port_values(inputs),
                as_port_values(contents),
                "Model",
                "standard",
                as_type=str,
            )
        except InputError:
            return self.config.credit
        return MODEL_CREDITS.get(model, self.config.credit)

    async def _wait_for_sample(
        self, session: aiohttp.ClientSession, job: GenerationJob, api_key: str
    ) -> str:
        settings = self.settings
        deadline = time.monotonic() + settings.poll_timeout_seconds
        for attempt in range(1, settings.max_poll_attempts + 1):
            status: Any = await request_json(
                "GET",
                job.polling_url,
                timeout=settings.http_timeout_seconds,
                headers={"x-key": api_key},
                session=session,
            )
            if not isinstance(status, dict):
                msg = "Unexpected polling response"
                raise ExternalCallError(msg)
            match status.get("status"):
                case "Ready":
                    sample = (status.get("result") or {}).get("sample")
                    if not sample:
                        msg = "Job finished without a sample"
                        raise ExternalCallError(msg)
                    self.set_stats("poll_attempts", attempt)
                    return sample
                case "Failed" | "Error" | "Content Moderated":
                    msg = f"Generation failed: {status.get('status')}"
                    raise ExternalCallError(msg)
            if time.monotonic() >= deadline:
                break
            await asyncio.sleep(settings.poll_interval_seconds)

        msg = f"Image job {job.id} did not finish in time"
        raise PollingTimeoutError(msg)

    async def generate(self, server: ServerContext, params: ImageParams) -> str:
        """Generate an image and return its storage URL.

        Raises:
            ConfigurationError: If the API settings or storage are missing.
            ExternalCallError: If the API rejects or fails the job.
            PollingTimeoutError: If the job outlives the poll budget.

        """
        api_url = server.require_env("IMAGE_API_URL")
        api_key = server.require_env("IMAGE_API_KEY")
        storage = server.require_storage()
        timeout = self.settings.http_timeout_seconds

        async with aiohttp.ClientSession() as session:
            submitted = await request_json(
                "POST",
                api_url,
                timeout=timeout,
                headers={"x-key": api_key},
                body={
                    "prompt": params.prompt,
                    "model": params.model,
                    "aspect_ratio": params.aspect_ratio,
                },
                session=session,
            )
            job = GenerationJob.model_validate(submitted)
            sample_url = await self._wait_for_sample(session, job, api_key)
            data, content_type = await download(
                sample_url, timeout=timeout, session=session
            )

        extension = mimetypes.guess_extension(content_type) or ".png"
        scratch = Path(self.settings.scratch_dir) / f"{uuid.uuid4()}{extension}"
        try:
            scratch.parent.mkdir(parents=True, exist_ok=True)
            scratch.write_bytes(data)
            with scratch.open("rb") as stream:
                uploaded = await storage.add_file(scratch.name, stream, content_type)
        finally:
            try:
                scratch.unlink(missing_ok=True)
            except OSError:
                logger.warning("Could not remove scratch file %s", scratch)

        if not uploaded.success or not uploaded.file_url:
            msg = f"Upload failed: {uploaded.message}"
            raise ExternalCallError(msg)
        return uploaded.file_url

    def build_tool(self, ctx: RunContext) -> NodeTool[ImageParams]:
        async def handler(params: ImageParams) -> dict[str, Any]:
            link = await self.generate(ctx.server, params)
            return {"success": True, "imageLink": link}

        return (
            ToolBuilder(self)
            .named("imageGenerator")
            .described(
                "Generates an image from a detailed text prompt and returns a "
                "public link to it."
            )
            .accepts(ImageParams)
            .calls(handler)
            .charges(success=self.config.credit, failure=self.config.credit)
            .priced_by(lambda params: MODEL_CREDITS[params.model])
            .logs_to(ctx.console)
            .build()
        )

    async def execute(self, ctx: RunContext) -> NodeResult:
        prompt = ctx.param("Prompt", "", as_type=str).strip()
        if not prompt:
            msg = "Prompt is empty, returning tool only"
            raise InputError(msg)
        model = ctx.param("Model", "standard", as_type=str)
        if model not in MODEL_CREDITS:
            msg = f"Unknown model {model!r}"
            raise InputError(msg)
        params = ImageParams(
            prompt=prompt,
            model=model,
            aspect_ratio=ctx.param("Aspect Ratio", "1:1", as_type=str),
        )

        ctx.info(f"Generating image with the {model} model")
        link = await self.generate(ctx.server, params)
        ctx.success("Image generated")
        return self.result({"Image Link": link}, credit=MODEL_CREDITS[model])
