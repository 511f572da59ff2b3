"""
Server entry point: read-only FastAPI app over a directory of evidence packs.
Lists packs, returns a loaded pack as canonical JSON, and serves screenshots.
"""

from __future__ import annotations

import contextlib
import pathlib
from collections.abc import AsyncGenerator
from typing import Annotated

import dotenv
import fastapi
import uvicorn
from starlette import responses

from evidence_pack import config
from evidence_pack.models import evidence
from evidence_pack.pack import loader
from evidence_pack.pack import paths as pack_paths
from evidence_pack.utils import logger

dotenv.load_dotenv()

log = logger.create_logger("Server")


@contextlib.asynccontextmanager
async def lifespan(_app: fastapi.FastAPI) -> AsyncGenerator[None]:
    """Log server start on startup."""
    log.section("Evidence Pack Server Started")
    log.info("Serving packs", {"baseDir": str(config.get_settings().base_dir)})
    yield


app = fastapi.FastAPI(title="Evidence Pack Server", lifespan=lifespan)


def get_base_dir() -> pathlib.Path:
    """Directory the API serves packs from."""
    return config.get_settings().base_dir


BaseDir = Annotated[pathlib.Path, fastapi.Depends(get_base_dir)]

# ============================================================================
# API Routes
# ============================================================================


@app.get("/api/packs")
def list_packs(base_dir: BaseDir) -> dict[str, list[str]]:
    """List the run ids of every loadable pack."""
    return {"packs": loader.discover_packs(base_dir)}


@app.get("/api/packs/{run_id}")
def get_pack(run_id: str, base_dir: BaseDir) -> responses.JSONResponse:
    """Return the canonical form of one pack; absent fields are omitted."""
    pack_root = _pack_paths_or_400(base_dir, run_id).root
    loaded: evidence.LoadedPack | None = loader.load_evidence_pack(pack_root)
    if loaded is None:
        raise fastapi.HTTPException(status_code=404, detail=f"No evidence pack for run {run_id}")
    return responses.JSONResponse(loaded.model_dump(mode="json", by_alias=True))


@app.get("/api/packs/{run_id}/screenshots/{name}")
def get_screenshot(run_id: str, name: str, base_dir: BaseDir) -> responses.FileResponse:
    """Serve ``full.png`` or ``crop_<id>.png`` from a pack."""
    paths = _pack_paths_or_400(base_dir, run_id)

    if name == pack_paths.FULL_SCREENSHOT_FILE:
        target = paths.full_screenshot
    elif name.startswith(pack_paths.CROP_PREFIX) and name.endswith(pack_paths.CROP_SUFFIX):
        crop_id = name[len(pack_paths.CROP_PREFIX) : -len(pack_paths.CROP_SUFFIX)]
        try:
            target = paths.crop(crop_id)
        except ValueError as exc:
            raise fastapi.HTTPException(status_code=400, detail=str(exc)) from exc
    else:
        raise fastapi.HTTPException(status_code=400, detail=f"Not a screenshot name: {name}")

    if not target.is_file():
        raise fastapi.HTTPException(status_code=404, detail=f"Screenshot not found: {name}")
    return responses.FileResponse(target, media_type="image/png")


def _pack_paths_or_400(base_dir: pathlib.Path, run_id: str) -> pack_paths.EvidencePackPaths:
    try:
        return pack_paths.get_pack_paths(base_dir, run_id)
    except ValueError as exc:
        raise fastapi.HTTPException(status_code=400, detail=str(exc)) from exc


def main() -> None:
    """Run the API with uvicorn using the configured host and port."""
    settings = config.get_settings()
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
