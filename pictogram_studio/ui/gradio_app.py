from __future__ import annotations

from dataclasses import dataclass, field
import html
import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from fastapi import FastAPI
import gradio as gr
from pydantic import ValidationError
import uvicorn

from pictogram_studio.api import schemas
from pictogram_studio.api import server
from pictogram_studio.api.runtime_service import RuntimeService
from pictogram_studio.runtime.sources import FileAssetSource
from pictogram_studio.services import config
from pictogram_studio.ui import options


UI_PATH = "/studio"

LOTTIE_WEB_URL = "https://cdnjs.cloudflare.com/ajax/libs/lottie-web/5.12.2/lottie.min.js"

RENDERER_SETTINGS = {
    "preserveAspectRatio": "xMidYMid slice",
    "imagePreserveAspectRatio": "xMidYMid slice",
    "progressiveLoad": False,
    "hideOnTransparent": True,
}

CARD_WIDTH = 640
CARD_HEIGHT = 480

PLAYER_TEMPLATE = """<!doctype html>
<html><head><style>html,body{{margin:0;height:100%;background:{background};}}#player{{width:100%;height:100%;}}</style>
<script src="{script}"></script></head>
<body><div id="player"></div><script>
lottie.loadAnimation({{container: document.getElementById("player"), renderer: "svg", loop: true, autoplay: true,
  rendererSettings: {settings}, animationData: {animation}}});
</script></body></html>"""


def _script_json(payload: Any) -> str:
    return json.dumps(payload).replace("</", "<\\/")


def _message(text: str, background: str) -> str:
    return (
        f'<div style="display:flex;align-items:center;justify-content:center;height:100%;background:{background};">'
        f"<p>{html.escape(text)}</p></div>"
    )


@dataclass
class PictogramController:
    """Owns the selected configuration and feeds recomposed animations to the preview."""

    runtime: RuntimeService = field(default_factory=RuntimeService)
    configuration: Optional[schemas.Configuration] = None
    color: str = options.DEFAULT_COLOR
    canvas: str = options.DEFAULT_CANVAS
    size: int = options.DEFAULT_SIZE
    animation: Optional[Dict[str, Any]] = None
    last_error: Optional[Dict[str, Any]] = None
    catalogs: Dict[str, List[schemas.CatalogEntry]] = field(default_factory=dict)

    async def load_catalogs(self) -> Dict[str, List[schemas.CatalogEntry]]:
        for kind in schemas.CatalogKind:
            self.catalogs[kind.value] = await self.runtime.load_catalog(kind)

        if self.configuration is None:
            pictogram = options.default_pictogram(self.catalogs[schemas.CatalogKind.pictograms.value])
            extras = self.catalogs[schemas.CatalogKind.extras.value]
            if pictogram is not None:
                self.configuration = self.build_configuration(
                    pictogram=pictogram,
                    extra=extras[0].filename if extras else None,
                    color=self.color,
                    preset=options.default_preset(self.catalogs[schemas.CatalogKind.lottie_animations.value]),
                )
        return self.catalogs

    def build_configuration(
        self,
        pictogram: str,
        extra: Optional[str],
        color: str,
        preset: Optional[str],
        show_extra: bool = True,
        show_flair: bool = True,
        show_sparkles: bool = True,
    ) -> schemas.Configuration:
        return schemas.Configuration(
            pictogramFilename=pictogram,
            extraFilename=extra or None,
            extraBackgroundColorHex=options.background_hex(color),
            extraIconColorHex=options.extra_icon_color(color),
            showExtra=bool(show_extra),
            showFlair=bool(show_flair),
            showSparkles=bool(show_sparkles),
            animationPresetFilename=preset or config.DEFAULT_PRESET,
        )

    async def refresh(self) -> Tuple[str, str]:
        if self.configuration is None:
            return self.preview_html(), json.dumps({"ok": False, "error": "No pictograms found"}, indent=2)

        run = await self.runtime.recompose(self.configuration)
        if run.status == "completed":
            self.animation = run.animation
            self.last_error = None
        elif run.status == "failed":
            self.animation = None
            self.last_error = run.error
        return self.preview_html(), json.dumps(run.summary(), indent=2)

    async def update(
        self,
        pictogram: str,
        extra: Optional[str],
        color: str,
        canvas: str,
        size: float,
        preset: Optional[str],
        show_extra: bool,
        show_flair: bool,
        show_sparkles: bool,
    ) -> Tuple[str, str]:
        self.color = color
        self.canvas = canvas
        self.size = options.clamp_size(size)
        try:
            self.configuration = self.build_configuration(
                pictogram, extra, color, preset, show_extra, show_flair, show_sparkles
            )
        except ValidationError as exc:
            errors = [{"path": ".".join(str(part) for part in err["loc"]), "message": err["msg"]} for err in exc.errors()]
            return self.preview_html(), json.dumps({"ok": False, "error": "VALIDATION_ERROR", "details": errors}, indent=2)
        return await self.refresh()

    def preview_html(self) -> str:
        background = options.canvas_hex(self.canvas)
        if self.last_error is not None:
            body = _message(f"Failed to load animation ({self.last_error['code']}): {self.last_error['message']}", background)
        elif self.animation is None:
            body = _message("Loading animation...", background)
        else:
            document = PLAYER_TEMPLATE.format(
                background=background,
                script=LOTTIE_WEB_URL,
                settings=_script_json(RENDERER_SETTINGS),
                animation=_script_json(self.animation),
            )
            body = (
                f'<iframe srcdoc="{html.escape(document, quote=True)}" '
                'style="width:100%;height:100%;border:0;" sandbox="allow-scripts"></iframe>'
            )

        scale = self.size / 100
        return (
            f'<div style="width:{CARD_WIDTH}px;height:{CARD_HEIGHT}px;overflow:hidden;border-radius:12px;'
            f'transform:scale({scale});transform-origin:center;margin:auto;">{body}</div>'
        )

    def diagnostics(self) -> str:
        data = {
            "runtime": self.runtime.diagnostics(),
            "configuration": self.configuration.model_dump() if self.configuration else None,
            "canvas": {"value": self.canvas, "hex": options.canvas_hex(self.canvas)},
            "size": self.size,
            "runs": self.runtime.run_log(limit=10),
        }
        return json.dumps(data, indent=2)


def _choices(entries: List[schemas.CatalogEntry], word: str) -> List[Tuple[str, str]]:
    return [(options.display_label(entry.name, word) or entry.name, entry.filename) for entry in entries]


def create_app(controller: Optional[PictogramController] = None) -> gr.Blocks:
    controller = controller or PictogramController()

    with gr.Blocks(title="Pictogram") as app:
        gr.Markdown("# Pictogram")

        with gr.Row():
            with gr.Column(scale=1):
                pictogram = gr.Dropdown(choices=[], label="Pictogram")
                canvas = gr.Dropdown(choices=options.canvas_choices(), value=options.DEFAULT_CANVAS, label="Background")
                size = gr.Slider(
                    options.SIZE_MIN,
                    options.SIZE_MAX,
                    value=options.DEFAULT_SIZE,
                    step=options.SIZE_STEP,
                    label="Pictogram size (%)",
                )
                preset = gr.Dropdown(choices=[], label="Animation")
                extra = gr.Dropdown(choices=[], label="Extra")
                color = gr.Dropdown(choices=options.color_choices(), value=options.DEFAULT_COLOR, label="Extra color")
                with gr.Row():
                    show_extra = gr.Checkbox(value=True, label="Show extra")
                    show_flair = gr.Checkbox(value=True, label="Show flair")
                    show_sparkles = gr.Checkbox(value=True, label="Show sparkles")
            with gr.Column(scale=2):
                preview = gr.HTML(value=controller.preview_html())
                status = gr.Code(label="Last recomposition", language="json")

        with gr.Accordion("Diagnostics", open=False):
            diag_btn = gr.Button("Refresh Diagnostics")
            diag_out = gr.Code(label="Diagnostics", language="json")
            diag_btn.click(controller.diagnostics, outputs=[diag_out])

        async def initialise() -> Tuple[Any, ...]:
            catalogs = await controller.load_catalogs()
            current = controller.configuration
            preview_html, status_json = await controller.refresh()
            return (
                gr.update(
                    choices=_choices(catalogs[schemas.CatalogKind.pictograms.value], "pictogram"),
                    value=current.pictogramFilename if current else None,
                ),
                gr.update(
                    choices=_choices(catalogs[schemas.CatalogKind.extras.value], "extra"),
                    value=current.extraFilename if current else None,
                ),
                gr.update(
                    choices=[(entry.name, entry.filename) for entry in catalogs[schemas.CatalogKind.lottie_animations.value]],
                    value=current.animationPresetFilename if current else None,
                ),
                preview_html,
                status_json,
            )

        app.load(initialise, outputs=[pictogram, extra, preset, preview, status])

        inputs = [pictogram, extra, color, canvas, size, preset, show_extra, show_flair, show_sparkles]
        for component in inputs:
            component.change(controller.update, inputs=inputs, outputs=[preview, status])

    return app


def create_served_app(
    controller: Optional[PictogramController] = None,
    public_dir: Optional[Path | str] = None,
    path: str = UI_PATH,
) -> FastAPI:
    """Mount the control surface next to the catalog API and the media tree.

    The preview player resolves asset prefixes such as ``/images/`` against the
    page origin, so the UI must be served by the app that serves the media.
    """

    if controller is None:
        runtime = RuntimeService(source=FileAssetSource(public_dir)) if public_dir is not None else RuntimeService()
        controller = PictogramController(runtime=runtime)

    app = server.create_app(public_dir, serve_static=False)
    app = gr.mount_gradio_app(app, create_app(controller), path=path)
    return server.mount_public_dir(app, public_dir)


def main() -> None:
    config.configure_logging()
    uvicorn.run(create_served_app(), host=config.settings.api_host, port=config.settings.api_port)


if __name__ == "__main__":
    main()
