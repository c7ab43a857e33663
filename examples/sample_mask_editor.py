from __future__ import annotations

import base64

import numpy as np
from nicegui import ui

from nicemask import MaskEditor, MaskEditorConfig, configure_logging


def create_demo_image(height: int = 480, width: int = 720) -> np.ndarray:
    """Simple demo image: colored gradients + a few disks to paint over."""
    yy, xx = np.mgrid[0:height, 0:width]
    img = np.zeros((height, width, 3), dtype=float)
    img[..., 0] = xx / width
    img[..., 1] = yy / height
    img[..., 2] = 0.5 + 0.5 * np.sin(xx / 40.0)
    for cx, cy, r in ((180, 160, 70), (480, 300, 110), (600, 100, 40)):
        img[(xx - cx) ** 2 + (yy - cy) ** 2 <= r * r] = (0.95, 0.9, 0.2)
    return img


if __name__ in {"__main__", "__mp_main__"}:
    configure_logging("DEBUG")
    img = create_demo_image()

    ui.label("MaskEditor demo").classes("text-lg font-bold")
    result = ui.image().classes("w-96")
    status = ui.label("No mask yet")

    def on_erase(png: bytes) -> None:
        result.set_source("data:image/png;base64," + base64.b64encode(png).decode("ascii"))
        status.text = f"Erase mask: {len(png)} bytes"

    def on_replace(png: bytes, prompt: str) -> None:
        result.set_source("data:image/png;base64," + base64.b64encode(png).decode("ascii"))
        status.text = f"Replace mask: {len(png)} bytes, prompt={prompt!r}"

    def on_close() -> None:
        ui.notify("Mask editor closed", timeout=1.0)

    with ui.row().classes("gap-2"):
        ui.button(
            "Magic Erase",
            on_click=lambda: MaskEditor(img, on_apply=on_erase, on_close=on_close),
        )
        ui.button(
            "Magic Replace",
            on_click=lambda: MaskEditor(
                img,
                on_apply=on_replace,
                on_close=on_close,
                config=MaskEditorConfig.replace_variant(),
            ),
        )

    ui.run(reload=False)
